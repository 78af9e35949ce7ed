# screens/classes/workflow.py
"""Class + Sections wizard wiring."""
from __future__ import annotations

from typing import Any, Callable, Optional

from core.context import TenantContext
from core.forms import Notifier
from core.wizard import ParentChildWizard, default_child_name
from screens.classes.db import ClassApi, ClassRecord, SectionApi
from screens.classes.forms import CLASS_SCHEMA, SECTION_SCHEMA

DEFAULT_SECTION_CAPACITY = 30


def section_defaults(capacity: int = DEFAULT_SECTION_CAPACITY) -> Callable[[int], dict]:
    """New section n is named by letter (A, B, ... Z, AA) with the default capacity."""
    return lambda index: {"name": default_child_name(index), "capacity": capacity}


def make_class_wizard(
    class_api: ClassApi,
    section_api: SectionApi,
    context: TenantContext,
    klass: Optional[ClassRecord] = None,
    default_capacity: int = DEFAULT_SECTION_CAPACITY,
    next_order: int = 0,
    notifier: Optional[Notifier] = None,
    on_success: Optional[Callable[[Any], None]] = None,
) -> ParentChildWizard:
    """Create mode when ``klass`` is None, otherwise edit ``klass`` and its sections."""
    wizard = ParentChildWizard(
        parent_schema=CLASS_SCHEMA,
        child_schema=SECTION_SCHEMA,
        parent_api=class_api,
        child_api=section_api,
        parent_key="class_id",
        context=context,
        parent=klass,
        children=klass.sections if klass is not None else (),
        child_defaults=section_defaults(default_capacity),
        notifier=notifier,
        on_success=on_success,
    )
    if klass is None:
        wizard.parent_values["display_order"] = next_order
    return wizard
