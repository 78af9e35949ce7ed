from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from core.api import ApiError, ResourceApi
from core.context import TenantContext
from core.validation import Schema

logger = logging.getLogger(__name__)


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class Notifier:
    """User-visible messages. The base class only logs; screens queue into RecordingNotifier and replay on StreamlitNotifier."""

    def success(self, msg: str) -> None:
        logger.info(msg)

    def error(self, msg: str) -> None:
        logger.warning(msg)

    def warn(self, msg: str) -> None:
        logger.warning(msg)

    def info(self, msg: str) -> None:
        logger.info(msg)


class StreamlitNotifier(Notifier):
    def success(self, msg: str) -> None:
        import streamlit as st
        st.toast(msg, icon="✅")

    def error(self, msg: str) -> None:
        import streamlit as st
        st.error(msg)

    def warn(self, msg: str) -> None:
        import streamlit as st
        st.warning(msg)

    def info(self, msg: str) -> None:
        import streamlit as st
        st.info(msg)


class RecordingNotifier(Notifier):
    """Keeps messages in memory; handy for flashing after st.rerun() and in tests."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def success(self, msg: str) -> None:
        self.messages.append(("success", msg))

    def error(self, msg: str) -> None:
        self.messages.append(("error", msg))

    def warn(self, msg: str) -> None:
        self.messages.append(("warning", msg))

    def info(self, msg: str) -> None:
        self.messages.append(("info", msg))

    def drain(self) -> List[Tuple[str, str]]:
        out, self.messages = self.messages, []
        return out


# ============================================================================
# ENTITY FORM
# ============================================================================

class EntityForm:
    """
    Field state for one create-or-update form.

    Presence of ``record`` (with an id) selects edit mode. ``submit`` validates,
    then issues exactly one create or update call; branch/session scope is
    added to creates only and never shown as an editable field.
    """

    def __init__(
        self,
        schema: Schema,
        api: ResourceApi,
        context: TenantContext,
        record: Any = None,
        defaults: Optional[Mapping[str, Any]] = None,
        on_success: Optional[Callable[[Any], None]] = None,
        notifier: Optional[Notifier] = None,
        scoped: bool = True,
    ):
        self.schema = schema
        self.api = api
        self.context = context
        self.defaults = dict(defaults or {})
        self.on_success = on_success
        self.notifier = notifier or Notifier()
        self.scoped = scoped
        self.pending = False
        self.errors: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}
        self._initial: Dict[str, Any] = {}
        self.record = None
        self.generation = 0
        self.reset(record)

    @property
    def record_id(self):
        return getattr(self.record, "id", None) if self.record is not None else None

    @property
    def is_edit(self) -> bool:
        return self.record_id is not None

    @property
    def dirty(self) -> bool:
        return self.values != self._initial

    def reset(self, record: Any = None) -> None:
        """(Re)initialise every field from ``record`` or the static defaults."""
        self.record = record
        values = self.schema.defaults()
        values.update(self.defaults)
        if record is not None:
            data = record.model_dump() if hasattr(record, "model_dump") else dict(record)
            for name in self.schema.field_names:
                if name in data:
                    values[name] = data[name]
        self.values = values
        self._initial = copy.deepcopy(values)
        self.errors = {}
        self.generation += 1

    def set_value(self, name: str, value: Any) -> None:
        if name not in self.values:
            raise KeyError(f"Unknown field '{name}'")
        self.values[name] = value
        self.errors.pop(name, None)

    def update_values(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            self.set_value(name, value)

    def submit(self) -> Any:
        """Returns the saved record, or None when validation or the call failed."""
        if self.pending:
            logger.debug("Ignoring submit while a save is in flight")
            return None

        result = self.schema.validate(self.values)
        if not result.valid:
            self.errors = result.errors
            return None

        payload = dict(result.cleaned)
        if not self.is_edit and self.scoped:
            if not self.context.is_complete:
                self.errors = self.context.errors()
                return None
            payload.update(self.context.scope())

        self.pending = True
        try:
            if self.is_edit:
                saved = self.api.update(self.record_id, payload)
            else:
                saved = self.api.create(payload)
        except ApiError as e:
            logger.warning("Saving %s failed: %s", self.api.label, e.message, exc_info=True)
            self.notifier.error(e.message)
            return None
        finally:
            self.pending = False

        verb = "updated" if self.is_edit else "created"
        self.errors = {}
        self.reset(saved)
        self.notifier.success(f"{self.api.label} {verb} successfully.")
        if self.on_success:
            self.on_success(saved)
        return saved

