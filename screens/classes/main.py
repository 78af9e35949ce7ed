# screens/classes/main.py
from __future__ import annotations

import logging
from typing import Dict, List

import pandas as pd
import streamlit as st

from core.api import ApiError
from core.listing import move_row
from core.ui import (
    AppContext,
    FieldSpec,
    flush_messages,
    handle_error,
    render_fields,
    require_context,
)
from core.wizard import ParentChildWizard, WizardStep
from screens.classes.db import ClassApi, ClassRecord, SectionApi
from screens.classes.workflow import make_class_wizard
from screens.teachers.db import TeacherApi

logger = logging.getLogger(__name__)

PAGE_TITLE = "🏫 Classes & Sections"
PAGE_NAME = "Classes"
WIZARD_KEY = "classes_wizard"

CLASS_FIELDS = [
    FieldSpec("name", "Class name *", help="For example: Nursery, Class 1, Class 10"),
    FieldSpec("grade", "Grade", kind="int", min_value=1, max_value=12),
    FieldSpec("display_order", "Display order", kind="int", min_value=0),
    FieldSpec("is_active", "Active", kind="bool"),
    FieldSpec("description", "Description", kind="textarea"),
]


def _scope(app: AppContext) -> Dict[str, int]:
    return {"branch_id": app.tenant.branch_id, "session_id": app.tenant.session_id}


def _open_wizard(app: AppContext, klass: ClassRecord | None = None) -> None:
    class_api, section_api = ClassApi(app.engine), SectionApi(app.engine)
    st.session_state[WIZARD_KEY] = make_class_wizard(
        class_api,
        section_api,
        app.tenant,
        klass=klass,
        default_capacity=app.settings.ui.default_section_capacity,
        next_order=class_api.next_display_order(**_scope(app)),
        notifier=app.notifier,
    )


def _close_wizard() -> None:
    st.session_state.pop(WIZARD_KEY, None)


# ============================================================================
# WIZARD
# ============================================================================

def _render_parent_step(wizard: ParentChildWizard) -> None:
    st.caption("Step 1 of 2: class details")
    key = f"wiz_parent_{wizard.parent_id or 'new'}"
    values = render_fields(CLASS_FIELDS, wizard.parent_values, wizard.parent_errors, key)
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Continue to sections ▶", key=f"{key}_continue", type="primary"):
            if wizard.continue_to_children(values):
                st.rerun()
            st.error("Please fix the highlighted fields.")
    with c2:
        if st.button("Cancel", key=f"{key}_cancel"):
            wizard.cancel()
            _close_wizard()
            st.rerun()


def _render_section_rows(wizard: ParentChildWizard, teachers: Dict[int, str]) -> None:
    teacher_options: List = [None] + list(teachers)
    header = st.columns([2, 1, 3, 1, 1])
    for col, title in zip(header, ["Section *", "Capacity *", "Class teacher", "Active", ""]):
        col.markdown(f"**{title}**")

    for row in list(wizard.visible_rows):
        k = f"wiz_row_{row.key}"
        errs = wizard.row_errors.get(row.key, {})
        c1, c2, c3, c4, c5 = st.columns([2, 1, 3, 1, 1])
        with c1:
            name = st.text_input("Section", value=row.fields.get("name") or "", key=f"{k}_name",
                                 label_visibility="collapsed")
            if "name" in errs:
                st.caption(f":red[{errs['name']}]")
        with c2:
            capacity = st.number_input("Capacity", value=row.fields.get("capacity"), step=1,
                                       key=f"{k}_capacity", label_visibility="collapsed")
            if "capacity" in errs:
                st.caption(f":red[{errs['capacity']}]")
        with c3:
            current = row.fields.get("teacher_id")
            teacher_id = st.selectbox(
                "Class teacher", teacher_options,
                index=teacher_options.index(current) if current in teacher_options else 0,
                format_func=lambda i: "(none)" if i is None else teachers.get(i, f"#{i}"),
                key=f"{k}_teacher", label_visibility="collapsed",
            )
        with c4:
            active = st.checkbox("Active", value=bool(row.fields.get("is_active", True)), key=f"{k}_active",
                                 label_visibility="collapsed")
        with c5:
            if st.button("🗑", key=f"{k}_remove", help="Remove section"):
                wizard.remove_child(row.key)
                st.rerun()

        changed = {
            name_: value
            for name_, value in (("name", name), ("capacity", capacity), ("teacher_id", teacher_id), ("is_active", active))
            if row.fields.get(name_) != value
        }
        if changed:
            wizard.update_child(row.key, **changed)


def _render_children_step(app: AppContext, wizard: ParentChildWizard) -> None:
    st.caption(f"Step 2 of 2: sections for {wizard.captured_parent.get('name')}")
    teachers = TeacherApi(app.engine).name_lookup(app.tenant.branch_id)
    _render_section_rows(wizard, teachers)

    if wizard.collection_error:
        st.error(wizard.collection_error)
    if wizard.row_errors:
        st.error("Some sections have invalid values.")

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        if st.button("➕ Add section", key="wiz_add"):
            wizard.add_child()
            st.rerun()
    with c2:
        if st.button("◀ Back", key="wiz_back"):
            wizard.back()
            st.rerun()
    with c3:
        saving = wizard.step == WizardStep.SUBMITTING
        if st.button("💾 Save class", key="wiz_save", type="primary", disabled=saving):
            if wizard.submit():
                _close_wizard()
                st.rerun()
            flush_messages(app.notifier)
    with c4:
        if st.button("Cancel", key="wiz_cancel"):
            wizard.cancel()
            _close_wizard()
            st.rerun()


def _render_wizard(app: AppContext, wizard: ParentChildWizard) -> None:
    title = f"Edit class #{wizard.parent_id}" if wizard.edit_mode else "New class"
    with st.container(border=True):
        st.subheader(title)
        if wizard.step == WizardStep.PARENT_INFO:
            _render_parent_step(wizard)
        elif wizard.step in (WizardStep.CHILD_COLLECTION, WizardStep.SUBMITTING):
            _render_children_step(app, wizard)


# ============================================================================
# LIST / REORDER
# ============================================================================

def _class_rows(classes: List[ClassRecord]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Order": c.display_order,
            "Class": c.name,
            "Grade": c.grade,
            "Sections": ", ".join(s.name for s in c.sections) or "-",
            "Capacity": c.capacity,
            "Status": "Active" if c.is_active else "Inactive",
        }
        for c in classes
    ])


def _render_list(app: AppContext, classes: List[ClassRecord], can_edit: bool) -> None:
    if not classes:
        st.info("No classes in this branch and session yet.")
        return
    st.dataframe(_class_rows(classes), hide_index=True, use_container_width=True)
    if not can_edit:
        return

    api = ClassApi(app.engine)
    labels = {c.id: c.name for c in classes}
    picked = st.selectbox("Class", list(labels), format_func=labels.get, key="classes_pick")
    klass = next(c for c in classes if c.id == picked)
    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("✏️ Edit class & sections", key="classes_edit"):
            _open_wizard(app, api.get_with_sections(klass.id))
            st.rerun()
    with c2:
        verb = "Deactivate" if klass.is_active else "Activate"
        if st.button(verb, key="classes_toggle"):
            api.toggle_status(klass.id, not klass.is_active)
            app.notifier.success(f"{klass.name} {verb.lower()}d.")
            st.rerun()
    with c3:
        if st.button("🗑 Delete", key="classes_delete"):
            api.delete(klass.id)
            app.notifier.success(f"{klass.name} deleted.")
            st.rerun()


def _render_reorder(app: AppContext, classes: List[ClassRecord]) -> None:
    if len(classes) < 2:
        st.info("Add at least two classes to change their order.")
        return
    ids = [c.id for c in classes]
    labels = {c.id: f"{i + 1}. {c.name}" for i, c in enumerate(classes)}
    c1, c2 = st.columns(2)
    with c1:
        source = st.selectbox("Move", ids, format_func=labels.get, key="classes_move_src")
    with c2:
        target = st.selectbox("To the position of", ids, format_func=labels.get, key="classes_move_dst")
    if st.button("Apply order", key="classes_move_apply", type="primary"):
        updates = move_row(ids, source, target)
        if updates is None:
            st.info("The class is already in that position.")
            return
        ClassApi(app.engine).reorder(updates)
        app.notifier.success("Class order updated.")
        st.rerun()


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    wizard = st.session_state.get(WIZARD_KEY)
    if wizard is not None and wizard.context != app.tenant and not wizard.edit_mode:
        # scope switched while creating; the captured class belongs to the old scope
        _close_wizard()
        wizard = None

    if can_edit and wizard is None:
        if st.button("➕ New class", key="classes_new", type="primary"):
            _open_wizard(app)
            st.rerun()
    if wizard is not None:
        try:
            _render_wizard(app, wizard)
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "The class wizard failed.")

    try:
        classes = ClassApi(app.engine).list_with_sections(filters=_scope(app))
    except Exception as e:
        handle_error(app, e, "Could not load classes.")
        return

    tab_list, tab_order = st.tabs(["Classes", "Display order"])
    with tab_list:
        try:
            _render_list(app, classes, can_edit)
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "Class list failed.")
    with tab_order:
        try:
            if can_edit:
                _render_reorder(app, classes)
            else:
                st.info("You have read-only access to classes.")
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "Reordering failed.")
