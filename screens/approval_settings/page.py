# screens/approval_settings/page.py
from __future__ import annotations

import streamlit as st

from core.forms import EntityForm
from core.rbac import role_names
from core.ui import (
    AppContext,
    FieldSpec,
    flush_messages,
    handle_error,
    render_entity_form,
    require_context,
)
from screens.approval_settings.db import ApprovalSettingsApi
from screens.approval_settings.forms import APPROVAL_SETTINGS_SCHEMA, APPROVAL_TYPES

PAGE_TITLE = "⚙️ Concession Approval Settings"
PAGE_NAME = "Approval Settings"
FORM_KEY = "approval_settings_form"


def _fields(roles: list) -> list:
    return [
        FieldSpec("approval_type", "Approval type", kind="select", options=list(APPROVAL_TYPES), format=APPROVAL_TYPES.get),
        FieldSpec("approval_timeout_days", "Timeout (days)", kind="int", min_value=1, max_value=90,
                  help="Pending requests escalate after this many days"),
        FieldSpec("max_approval_amount", "Maximum approval amount", kind="float", min_value=0.0),
        FieldSpec("auto_approve_below", "Auto-approve below", kind="float", min_value=0.0,
                  help="Concessions under this amount are approved without review"),
        FieldSpec("escalation_threshold", "Escalation threshold", kind="float", min_value=0.0),
        FieldSpec("approval_roles", "Approver roles", kind="multiselect", options=roles),
        FieldSpec("require_reason", "Require a reason", kind="bool"),
        FieldSpec("allow_self_approval", "Allow self approval", kind="bool"),
    ]


def _form_for(app: AppContext, api: ApprovalSettingsApi) -> EntityForm:
    """One form per scope; switching branch or session loads that scope's record."""
    form = st.session_state.get(FORM_KEY)
    if form is None or form.context != app.tenant:
        record = api.for_scope(app.tenant.branch_id, app.tenant.session_id)
        form = EntityForm(APPROVAL_SETTINGS_SCHEMA, api, app.tenant, record=record, notifier=app.notifier)
        st.session_state[FORM_KEY] = form
    return form


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    api = ApprovalSettingsApi(app.engine)
    try:
        form = _form_for(app, api)
        roles = [r for r in role_names(app.engine) if r != "superadmin"]
        if not form.is_edit:
            st.info("No settings saved for this branch and session yet; defaults are shown.")
        if not can_edit:
            st.caption("Read-only: you cannot change approval settings.")
        if render_entity_form(form, _fields(roles), "approval_settings", can_edit=can_edit) is not None:
            st.rerun()
    except Exception as e:
        handle_error(app, e, "Could not load approval settings.")
