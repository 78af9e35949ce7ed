# core/listing.py
"""State behind paginated list screens: cursors, debounced search, selection, reorder and bulk actions."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from core.api import ApiError, Page

logger = logging.getLogger(__name__)


# ============================================================================
# PAGINATION
# ============================================================================

class CursorPager:
    """
    Cursor pagination with a per-page cursor cache.

    The data layer only hands out "next" cursors, so the cursor used to open
    each page is remembered to make "previous" possible.
    """

    def __init__(self, page_size: int = 10):
        self.page_size = page_size
        self.current_page = 1
        self._cursors: List[Optional[str]] = [None]
        self._has_next = False

    @property
    def cursor(self) -> Optional[str]:
        return self._cursors[self.current_page - 1]

    @property
    def has_next_page(self) -> bool:
        return self._has_next

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1

    def record(self, page: Page) -> None:
        """Register the result of fetching the current page."""
        self._has_next = page.next_cursor is not None
        del self._cursors[self.current_page:]
        if page.next_cursor is not None:
            self._cursors.append(page.next_cursor)

    def next_page(self) -> bool:
        if not self.has_next_page:
            return False
        self.current_page += 1
        self._has_next = False
        return True

    def previous_page(self) -> bool:
        if not self.has_previous_page:
            return False
        self.current_page -= 1
        # the cursor for the page we left is still cached
        self._has_next = True
        return True

    def reset(self, page_size: Optional[int] = None) -> None:
        if page_size is not None:
            self.page_size = page_size
        self.current_page = 1
        self._cursors = [None]
        self._has_next = False


# ============================================================================
# DEBOUNCE
# ============================================================================

class Debouncer:
    """Holds back a changing value until it has been stable for ``delay`` seconds."""

    def __init__(self, delay: float = 0.3, clock: Callable[[], float] = time.monotonic, initial: Any = ""):
        self.delay = delay
        self.clock = clock
        self.value = initial
        self._pending: Any = initial
        self._changed_at: Optional[float] = None

    def push(self, value: Any) -> None:
        if value == self._pending:
            return
        self._pending = value
        self._changed_at = self.clock()

    def remaining(self) -> float:
        if self._changed_at is None:
            return 0.0
        return max(0.0, self.delay - (self.clock() - self._changed_at))

    @property
    def pending(self) -> bool:
        return self._changed_at is not None

    def settle(self) -> bool:
        """Promote the pending value once the delay has passed. True when ``value`` changed."""
        if self._changed_at is None or self.remaining() > 0:
            return False
        self._changed_at = None
        changed = self._pending != self.value
        self.value = self._pending
        return changed


# ============================================================================
# SELECTION
# ============================================================================

class SelectionMode(str, Enum):
    NONE = "none"
    SINGLE = "single"
    MULTI = "multi"
    ALL_MATCHING = "all_matching"


class RowSelection:
    def __init__(self):
        self.mode = SelectionMode.NONE
        self.ids: Set[Any] = set()

    def __len__(self) -> int:
        return len(self.ids)

    def toggle(self, row_id: Any, multi: bool = True) -> None:
        ids = set() if self.mode == SelectionMode.ALL_MATCHING else set(self.ids)
        if row_id in ids:
            ids.discard(row_id)
        elif multi:
            ids.add(row_id)
        else:
            ids = {row_id}
        self.set(list(ids))

    def set(self, ids: Sequence[Any]) -> None:
        self.ids = set(ids)
        self.mode = {0: SelectionMode.NONE, 1: SelectionMode.SINGLE}.get(len(self.ids), SelectionMode.MULTI)

    def select_all_matching(self) -> None:
        self.mode = SelectionMode.ALL_MATCHING
        self.ids = set()

    def clear(self) -> None:
        self.mode = SelectionMode.NONE
        self.ids = set()

    @property
    def is_empty(self) -> bool:
        return self.mode == SelectionMode.NONE

    def resolve(self, fetch_all_ids: Callable[[], List[Any]]) -> List[Any]:
        """Concrete ids to act on; "all matching" fetches them from the unbounded query."""
        if self.mode == SelectionMode.ALL_MATCHING:
            return list(fetch_all_ids())
        return sorted(self.ids, key=str)


# ============================================================================
# LIST VIEW STATE
# ============================================================================

class ListViewState:
    """
    Pager + debounced search + scope + selection for one list screen.

    Any change to the committed search term, the branch scope or the page size
    sends the list back to page 1 and clears the selection.
    """

    def __init__(
        self,
        page_size: int = 10,
        debounce: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
        branch_id: Any = None,
    ):
        self.pager = CursorPager(page_size)
        self.search = Debouncer(debounce, clock)
        self.selection = RowSelection()
        self.branch_id = branch_id
        self.filters: Dict[str, Any] = {}

    @property
    def current_page(self) -> int:
        return self.pager.current_page

    @property
    def search_term(self) -> str:
        return self.search.value or ""

    def reset(self) -> None:
        self.pager.reset()
        self.selection.clear()

    def set_search(self, term: str) -> None:
        self.search.push((term or "").strip())
        self.refresh()

    def refresh(self) -> bool:
        """Commit a settled search term. True when the list was reset."""
        if self.search.settle():
            self.reset()
            return True
        return False

    def settle_search(self, sleep: Callable[[float], None] = time.sleep) -> bool:
        """
        Wait out what is left of the debounce window, then commit the term.

        Streamlit only reruns when a text input is committed (Enter or blur)
        and has no timer to rerun later, so the wait happens inside the run.
        It is never longer than the debounce delay and only happens when the
        term actually changed.
        """
        if not self.search.pending:
            return False
        remaining = self.search.remaining()
        if remaining > 0:
            sleep(remaining)
        return self.refresh()

    def set_branch(self, branch_id: Any) -> None:
        if branch_id != self.branch_id:
            self.branch_id = branch_id
            self.reset()

    def set_page_size(self, size: int) -> None:
        if size != self.pager.page_size:
            self.pager.reset(size)
            self.selection.clear()

    def set_filter(self, name: str, value: Any) -> None:
        if self.filters.get(name) != value:
            self.filters[name] = value
            self.reset()

    def query(self) -> Dict[str, Any]:
        filters = {k: v for k, v in self.filters.items() if v is not None}
        if self.branch_id is not None:
            filters["branch_id"] = self.branch_id
        return {
            "filters": filters,
            "search": self.search_term or None,
            "cursor": self.pager.cursor,
            "limit": self.pager.page_size,
        }

    def fetch(self, api) -> Page:
        q = self.query()
        page = api.list(filters=q["filters"], search=q["search"], cursor=q["cursor"], limit=q["limit"])
        self.pager.record(page)
        return page

    def matching_ids(self, api) -> List[Any]:
        q = self.query()
        return [r.id for r in api.list_all(filters=q["filters"], search=q["search"])]


# ============================================================================
# REORDER
# ============================================================================

def move_row(ids: Sequence[Any], source_id: Any, target_id: Any) -> Optional[List[Dict[str, Any]]]:
    """
    Drop ``source_id`` onto ``target_id``: the source takes the target's index
    and the rows in between shift by one. Returns the full new order as
    ``[{id, display_order}]`` or None when nothing moves.
    """
    if source_id == target_id:
        return None
    order = list(ids)
    try:
        old_index = order.index(source_id)
        new_index = order.index(target_id)
    except ValueError:
        raise ValueError("Both rows must be part of the current list") from None
    order.insert(new_index, order.pop(old_index))
    return [{"id": row_id, "display_order": i} for i, row_id in enumerate(order)]


# ============================================================================
# BULK ACTIONS
# ============================================================================

@dataclass
class BulkResult:
    verb: str
    succeeded: List[Any] = field(default_factory=list)
    failed: List[Tuple[Any, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def message(self) -> str:
        done = len(self.succeeded)
        total = done + len(self.failed)
        if total == 0:
            return "Nothing selected."
        if self.ok:
            return f"{self.verb.capitalize()} {done} record(s)."
        first = self.failed[0][1]
        return f"{self.verb.capitalize()} {done} of {total} record(s); {len(self.failed)} failed: {first}"


def run_bulk(ids: Sequence[Any], action: Callable[[Any], Any], verb: str = "updated") -> BulkResult:
    result = BulkResult(verb=verb)
    for row_id in ids:
        try:
            action(row_id)
        except ApiError as e:
            logger.warning("Bulk %s failed for id=%s: %s", verb, row_id, e.message)
            result.failed.append((row_id, e.message))
        else:
            result.succeeded.append(row_id)
    return result


def notify_bulk(result: BulkResult, notifier) -> None:
    if result.ok:
        notifier.success(result.message)
    else:
        notifier.error(result.message)
