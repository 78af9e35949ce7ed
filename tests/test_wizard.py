import pytest
from sqlalchemy.exc import OperationalError

from conftest import FakeApi, Rec
from core.context import TenantContext
from core.wizard import (
    Existing,
    ExistingModified,
    MarkedForDeletion,
    New,
    WizardStep,
    default_child_name,
    plan_reconciliation,
)
from screens.classes.workflow import make_class_wizard


@pytest.fixture
def apis():
    return FakeApi(label="Class", first_id=100), FakeApi(label="Section", first_id=500)


def existing_class():
    sections = [
        Rec(id="C1", class_id="P1", name="A", capacity=30, teacher_id=None, display_order=0, is_active=True),
        Rec(id="C2", class_id="P1", name="B", capacity=30, teacher_id=None, display_order=1, is_active=True),
    ]
    return Rec(id="P1", branch_id=1, session_id=2, name="Grade 5", grade=5, display_order=0,
               is_active=True, description=None, sections=sections)


def row_by_name(wizard, name):
    return next(r for r in wizard.visible_rows if r.fields["name"] == name)


def test_default_child_names():
    assert [default_child_name(i) for i in (0, 1, 25, 26, 27, 51, 52)] == ["A", "B", "Z", "AA", "AB", "AZ", "BA"]


def test_create_scenario(apis, context, notifier):
    class_api, section_api = apis
    done = []
    wizard = make_class_wizard(class_api, section_api, context, notifier=notifier, on_success=done.append)

    assert wizard.step == WizardStep.PARENT_INFO
    assert wizard.continue_to_children({"name": "Grade 5", "is_active": True, "display_order": 0})
    assert wizard.step == WizardStep.CHILD_COLLECTION
    (row,) = wizard.rows
    assert isinstance(row, New)
    assert row.fields["name"] == "A" and row.fields["capacity"] == 30 and row.fields["teacher_id"] is None

    assert wizard.submit()
    ((action, payload),) = class_api.calls
    assert action == "create"
    assert payload["name"] == "Grade 5" and payload["is_active"] is True and payload["display_order"] == 0
    assert (payload["branch_id"], payload["session_id"]) == (1, 2)

    ((action, child),) = section_api.calls
    assert action == "create"
    assert (child["name"], child["capacity"], child["class_id"]) == ("A", 30, 100)
    assert wizard.step == WizardStep.CLOSED
    assert done and done[0].id == 100
    assert notifier.messages[-1][0] == "success"


def test_nothing_is_written_before_final_submit(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 1"})
    wizard.add_child()
    wizard.back()
    wizard.continue_to_children()
    assert class_api.calls == [] and section_api.calls == []


def test_edit_scenario(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context, klass=existing_class())
    assert wizard.continue_to_children()
    assert all(isinstance(r, Existing) for r in wizard.rows)

    c1 = row_by_name(wizard, "A")
    wizard.update_child(c1.key, capacity=40)
    wizard.remove_child(row_by_name(wizard, "B").key)
    new = wizard.add_child()
    wizard.update_child(new.key, name="C", capacity=25)

    assert wizard.submit()
    assert class_api.calls[0][:2] == ("update", "P1")
    ops = section_api.calls
    assert [c[0] for c in ops] == ["update", "create", "delete"]
    assert ops[0][1] == "C1" and ops[0][2]["capacity"] == 40
    assert ops[1][1]["name"] == "C" and ops[1][1]["capacity"] == 25 and ops[1][1]["class_id"] == "P1"
    assert ops[2] == ("delete", "C2")


def test_unmodified_rows_are_not_sent(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context, klass=existing_class())
    wizard.continue_to_children()
    row = row_by_name(wizard, "A")
    wizard.update_child(row.key, capacity=35)
    wizard.update_child(row.key, capacity=30)
    assert isinstance(wizard.rows[0], Existing)
    assert wizard.submit()
    assert section_api.calls == []


def test_removing_new_row_drops_it(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 2"})
    extra = wizard.add_child()
    assert len(wizard.rows) == 2
    wizard.remove_child(extra.key)
    assert len(wizard.rows) == 1
    assert wizard.submit()
    assert "delete" not in section_api.actions()


def test_removing_existing_row_hides_it(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context, klass=existing_class())
    wizard.continue_to_children()
    target = row_by_name(wizard, "B")
    wizard.remove_child(target.key)
    assert len(wizard.rows) == 2
    assert len(wizard.visible_rows) == 1
    assert isinstance(wizard.rows[1], MarkedForDeletion)
    assert wizard.submit()
    assert section_api.calls == [("delete", "C2")]


@pytest.mark.parametrize("capacity", [0, -1])
def test_invalid_capacity_blocks_submit(apis, context, capacity):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 3"})
    wizard.update_child(wizard.rows[0].key, capacity=capacity)
    assert not wizard.submit()
    assert wizard.row_errors[wizard.rows[0].key] == {"capacity": "Capacity must be at least 1"}
    assert class_api.calls == [] and section_api.calls == []
    assert wizard.step == WizardStep.CHILD_COLLECTION


def test_at_least_one_row_required(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context, klass=existing_class())
    wizard.continue_to_children()
    for row in list(wizard.visible_rows):
        wizard.remove_child(row.key)
    assert not wizard.submit()
    assert wizard.collection_error == "At least one row is required"
    assert class_api.calls == []


def test_invalid_parent_stays_on_first_step(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    assert not wizard.continue_to_children({"name": "", "grade": 20})
    assert wizard.step == WizardStep.PARENT_INFO
    assert set(wizard.parent_errors) == {"name", "grade"}
    assert wizard.rows == []


def test_back_keeps_rows_and_parent_values(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 4"})
    wizard.add_child()
    wizard.back()
    assert wizard.step == WizardStep.PARENT_INFO
    assert wizard.parent_values["name"] == "Grade 4"
    wizard.continue_to_children()
    assert [r.fields["name"] for r in wizard.visible_rows] == ["A", "B"]


def test_new_rows_get_sequential_names_and_order(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context, default_capacity=40)
    wizard.continue_to_children({"name": "Grade 6"})
    b = wizard.add_child()
    c = wizard.add_child()
    assert (b.fields["name"], b.fields["display_order"], b.fields["capacity"]) == ("B", 1, 40)
    assert (c.fields["name"], c.fields["display_order"]) == ("C", 2)


def test_cancel_discards_state(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 7"})
    wizard.cancel()
    assert wizard.step == WizardStep.CANCELLED
    assert wizard.rows == [] and wizard.captured_parent is None
    assert not wizard.is_open
    assert class_api.calls == []


def test_cancel_refused_while_submitting(apis, context):
    wizard = make_class_wizard(*apis, context)
    wizard.step = WizardStep.SUBMITTING
    with pytest.raises(RuntimeError):
        wizard.cancel()


def test_missing_context_blocks_create(apis):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, TenantContext(branch_id=1))
    wizard.continue_to_children({"name": "Grade 8"})
    assert not wizard.submit()
    assert class_api.calls == []
    assert wizard.collection_error


def test_partial_failure_then_retry_does_not_duplicate(apis, context, notifier):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context, notifier=notifier)
    wizard.continue_to_children({"name": "Grade 9"})
    wizard.add_child()
    wizard.add_child()
    section_api.fail_when = lambda action, fields: action == "create" and fields["name"] == "B"

    assert not wizard.submit()
    assert wizard.step == WizardStep.CHILD_COLLECTION
    assert notifier.messages[-1] == ("error", "Section create failed")
    assert wizard.parent_id == 100
    assert isinstance(wizard.rows[0], Existing) and wizard.rows[0].id == 500
    # "A" stays created; "C" was never attempted
    assert [c[1]["name"] for c in section_api.calls] == ["A", "B"]

    section_api.fail_when = None
    assert wizard.submit()
    assert class_api.actions() == ["create", "update"]
    assert [c[1]["name"] for c in section_api.calls] == ["A", "B", "B", "C"]


def test_plan_orders_deletes_last():
    rows = [
        MarkedForDeletion(0, "x", {"name": "A"}),
        Existing(1, "y", {"name": "B"}),
        ExistingModified(2, "z", {"name": "C2"}, {"name": "C"}),
        New(3, {"name": "D"}),
    ]
    plan = plan_reconciliation(rows)
    assert [(op.action, op.row_key) for op in plan] == [("update", 2), ("create", 3), ("delete", 0)]


def test_deleted_row_cannot_be_edited(apis, context):
    wizard = make_class_wizard(*apis, context, klass=existing_class())
    wizard.continue_to_children()
    row = row_by_name(wizard, "A")
    wizard.remove_child(row.key)
    with pytest.raises(ValueError):
        wizard.update_child(row.key, name="Z")


def test_unexpected_error_reopens_collection_step(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 10"})

    def locked(action, fields):
        raise OperationalError("INSERT INTO sections", {}, Exception("database is locked"))

    section_api.fail_when = locked
    with pytest.raises(OperationalError):
        wizard.submit()
    assert wizard.step == WizardStep.CHILD_COLLECTION
    assert wizard.parent_id == 100

    wizard.back()
    wizard.continue_to_children()
    section_api.fail_when = None
    assert wizard.submit()
    assert class_api.actions() == ["create", "update"]
    assert [c[1]["name"] for c in section_api.calls] == ["A", "A"]


def test_cancel_possible_after_unexpected_error(apis, context):
    class_api, section_api = apis
    wizard = make_class_wizard(class_api, section_api, context)
    wizard.continue_to_children({"name": "Grade 11"})
    class_api.fail_when = lambda action, fields: {}["boom"]
    with pytest.raises(KeyError):
        wizard.submit()
    wizard.cancel()
    assert wizard.step == WizardStep.CANCELLED
