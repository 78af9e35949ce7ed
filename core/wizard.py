# core/wizard.py
"""
Two-step "parent + children" workflow (e.g. a Class together with its Sections).

Step 1 captures and validates the parent's fields, step 2 edits the child
rows, and the final submit reconciles everything against the data layer:

    parent create/update  ->  child creates/updates (row order)  ->  child deletes

Nothing is written before the final submit. Calls are issued one at a time;
a failure stops the sequence without undoing what already succeeded, and the
wizard drops back to step 2 so the user can retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from core.api import ApiError, ResourceApi
from core.context import TenantContext
from core.forms import Notifier
from core.validation import Schema

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    PARENT_INFO = "parent_info"
    CHILD_COLLECTION = "child_collection"
    SUBMITTING = "submitting"
    CLOSED = "closed"
    CANCELLED = "cancelled"


# ============================================================================
# CHILD ROWS
# ============================================================================

@dataclass(frozen=True)
class New:
    key: int
    fields: Dict[str, Any]


@dataclass(frozen=True)
class Existing:
    key: int
    id: Any
    fields: Dict[str, Any]


@dataclass(frozen=True)
class ExistingModified:
    key: int
    id: Any
    fields: Dict[str, Any]
    original: Dict[str, Any]


@dataclass(frozen=True)
class MarkedForDeletion:
    key: int
    id: Any
    fields: Dict[str, Any]


ChildRow = Union[New, Existing, ExistingModified, MarkedForDeletion]


def is_visible(row: ChildRow) -> bool:
    return not isinstance(row, MarkedForDeletion)


def default_child_name(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA, 27 -> AB ..."""
    name = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        name = chr(65 + rem) + name
    return name


# ============================================================================
# RECONCILIATION
# ============================================================================

@dataclass(frozen=True)
class ChildOperation:
    action: str            # "create" | "update" | "delete"
    row_key: int
    id: Any = None
    fields: Dict[str, Any] = field(default_factory=dict)


def plan_reconciliation(rows: Iterable[ChildRow]) -> List[ChildOperation]:
    """
    Minimal set of child calls for the edited collection.

    Creates and updates follow row order, deletes come last. Unmodified rows
    produce nothing; removed new rows never reach this list.
    """
    writes: List[ChildOperation] = []
    deletes: List[ChildOperation] = []
    for row in rows:
        if isinstance(row, New):
            writes.append(ChildOperation("create", row.key, fields=dict(row.fields)))
        elif isinstance(row, ExistingModified):
            writes.append(ChildOperation("update", row.key, id=row.id, fields=dict(row.fields)))
        elif isinstance(row, MarkedForDeletion):
            if row.id is not None:
                deletes.append(ChildOperation("delete", row.key, id=row.id))
        elif isinstance(row, Existing):
            continue
        else:
            raise TypeError(f"Unknown child row type: {type(row).__name__}")
    return writes + deletes


# ============================================================================
# WIZARD
# ============================================================================

class ParentChildWizard:
    def __init__(
        self,
        parent_schema: Schema,
        child_schema: Schema,
        parent_api: ResourceApi,
        child_api: ResourceApi,
        parent_key: str,
        context: TenantContext,
        parent: Any = None,
        children: Iterable[Any] = (),
        child_defaults: Optional[Callable[[int], Dict[str, Any]]] = None,
        notifier: Optional[Notifier] = None,
        on_success: Optional[Callable[[Any], None]] = None,
    ):
        self.parent_schema = parent_schema
        self.child_schema = child_schema
        self.parent_api = parent_api
        self.child_api = child_api
        self.parent_key = parent_key
        self.context = context
        self.child_defaults = child_defaults or (lambda i: {"name": default_child_name(i)})
        self.notifier = notifier or Notifier()
        self.on_success = on_success

        self.step = WizardStep.PARENT_INFO
        self.parent_id = getattr(parent, "id", None)
        self.edit_mode = self.parent_id is not None
        self.parent_values = self._pick(parent_schema, parent) if parent is not None else parent_schema.defaults()
        self.parent_errors: Dict[str, str] = {}
        self.captured_parent: Optional[Dict[str, Any]] = None
        self._seed_children = list(children)
        self.rows: List[ChildRow] = []
        self.row_errors: Dict[int, Dict[str, str]] = {}
        self.collection_error: Optional[str] = None
        self.result: Any = None
        self._next_key = 0
        self._rows_initialised = False

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _pick(schema: Schema, record: Any) -> Dict[str, Any]:
        data = record.model_dump() if hasattr(record, "model_dump") else dict(record)
        values = schema.defaults()
        for name in schema.field_names:
            if name in data:
                values[name] = data[name]
        return values

    def _new_key(self) -> int:
        key = self._next_key
        self._next_key += 1
        return key

    def _index_of(self, key: int) -> int:
        for i, row in enumerate(self.rows):
            if row.key == key:
                return i
        raise KeyError(f"No child row with key {key}")

    def _require(self, *steps: WizardStep) -> None:
        if self.step not in steps:
            raise RuntimeError(f"Action not allowed in step '{self.step.value}'")

    @property
    def visible_rows(self) -> List[ChildRow]:
        return [r for r in self.rows if is_visible(r)]

    @property
    def is_open(self) -> bool:
        return self.step not in (WizardStep.CLOSED, WizardStep.CANCELLED)

    # ------------------------------------------------------------------
    # step 1
    # ------------------------------------------------------------------

    def set_parent_value(self, name: str, value: Any) -> None:
        self._require(WizardStep.PARENT_INFO)
        self.parent_values[name] = value
        self.parent_errors.pop(name, None)

    def continue_to_children(self, values: Optional[Mapping[str, Any]] = None) -> bool:
        self._require(WizardStep.PARENT_INFO)
        if values:
            self.parent_values.update(values)
        result = self.parent_schema.validate(self.parent_values)
        if not result.valid:
            self.parent_errors = result.errors
            return False
        self.parent_errors = {}
        self.captured_parent = result.cleaned
        if not self._rows_initialised:
            self._initialise_rows()
        self.step = WizardStep.CHILD_COLLECTION
        return True

    def _initialise_rows(self) -> None:
        if self.edit_mode:
            for child in self._seed_children:
                fields = self._pick(self.child_schema, child)
                self.rows.append(Existing(self._new_key(), getattr(child, "id"), fields))
        else:
            fields = self.child_schema.defaults()
            fields.update(self.child_defaults(0))
            fields["display_order"] = 0
            self.rows.append(New(self._new_key(), fields))
        self._rows_initialised = True

    # ------------------------------------------------------------------
    # step 2
    # ------------------------------------------------------------------

    def back(self) -> None:
        self._require(WizardStep.CHILD_COLLECTION)
        self.step = WizardStep.PARENT_INFO

    def add_child(self) -> ChildRow:
        self._require(WizardStep.CHILD_COLLECTION)
        position = len(self.visible_rows)
        fields = self.child_schema.defaults()
        fields.update(self.child_defaults(position))
        fields["display_order"] = position
        row = New(self._new_key(), fields)
        self.rows.append(row)
        self.collection_error = None
        return row

    def remove_child(self, key: int) -> None:
        self._require(WizardStep.CHILD_COLLECTION)
        idx = self._index_of(key)
        row = self.rows[idx]
        if isinstance(row, New):
            del self.rows[idx]
        elif isinstance(row, (Existing, ExistingModified)):
            self.rows[idx] = MarkedForDeletion(row.key, row.id, dict(row.fields))
        self.row_errors.pop(key, None)

    def update_child(self, key: int, **values: Any) -> ChildRow:
        self._require(WizardStep.CHILD_COLLECTION)
        idx = self._index_of(key)
        row = self.rows[idx]
        if isinstance(row, MarkedForDeletion):
            raise ValueError("Cannot edit a row marked for deletion")
        fields = {**row.fields, **values}
        if isinstance(row, New):
            updated: ChildRow = replace(row, fields=fields)
        elif isinstance(row, Existing):
            updated = row if fields == row.fields else ExistingModified(row.key, row.id, fields, dict(row.fields))
        else:
            updated = (
                Existing(row.key, row.id, fields) if fields == row.original else replace(row, fields=fields)
            )
        self.rows[idx] = updated
        errs = self.row_errors.get(key)
        if errs:
            for name in values:
                errs.pop(name, None)
        return updated

    def validate_children(self) -> bool:
        self.row_errors = {}
        self.collection_error = None
        visible = self.visible_rows
        if not visible:
            self.collection_error = "At least one row is required"
            return False
        for row in visible:
            result = self.child_schema.validate(row.fields)
            if not result.valid:
                self.row_errors[row.key] = result.errors
        return not self.row_errors

    # ------------------------------------------------------------------
    # submit / cancel
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        if self.step == WizardStep.SUBMITTING:
            raise RuntimeError("Cannot cancel while submitting")
        self.captured_parent = None
        self.rows = []
        self.row_errors = {}
        self._rows_initialised = False
        self.step = WizardStep.CANCELLED

    def submit(self) -> bool:
        self._require(WizardStep.CHILD_COLLECTION)
        if not self.validate_children():
            return False
        if self.parent_id is None and not self.context.is_complete:
            self.collection_error = "Select a branch and academic session before saving"
            return False

        self.step = WizardStep.SUBMITTING
        try:
            parent = self._save_parent()
            for op in plan_reconciliation(self.rows):
                self._apply(op)
        except ApiError as e:
            logger.warning("Reconciliation stopped: %s", e.message, exc_info=True)
            self.notifier.error(e.message)
            self.step = WizardStep.CHILD_COLLECTION
            return False
        except Exception:
            # unexpected failure: reopen step 2 so the user can retry or cancel
            logger.error("Reconciliation aborted", exc_info=True)
            self.step = WizardStep.CHILD_COLLECTION
            raise

        self.result = parent
        self.step = WizardStep.CLOSED
        verb = "updated" if self.edit_mode else "created"
        self.notifier.success(f"{self.parent_api.label} {verb} with {len(self.visible_rows)} {self.child_api.label.lower()}(s).")
        if self.on_success:
            self.on_success(parent)
        return True

    def _save_parent(self) -> Any:
        values = dict(self.captured_parent or {})
        if self.parent_id is None:
            parent = self.parent_api.create({**values, **self.context.scope()})
            # keep the id so a retry after a child failure updates instead of duplicating
            self.parent_id = parent.id
            return parent
        return self.parent_api.update(self.parent_id, values)

    def _apply(self, op: ChildOperation) -> None:
        idx = self._index_of(op.row_key)
        if op.action == "create":
            cleaned = self.child_schema.validate(op.fields).cleaned
            saved = self.child_api.create({**cleaned, self.parent_key: self.parent_id})
            self.rows[idx] = Existing(op.row_key, saved.id, dict(op.fields))
        elif op.action == "update":
            cleaned = self.child_schema.validate(op.fields).cleaned
            self.child_api.update(op.id, cleaned)
            self.rows[idx] = Existing(op.row_key, op.id, dict(op.fields))
        elif op.action == "delete":
            self.child_api.delete(op.id)
            del self.rows[idx]
        else:
            raise ValueError(f"Unknown operation {op.action}")
