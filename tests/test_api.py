import datetime

import pytest

from core.api import ApiError, ConflictError, NotFoundError
from core.context import TenantContext, list_branches, list_sessions
from core.db import get_engine
from core.forms import EntityForm
from core.listing import run_bulk
from screens.approval_settings.db import ApprovalSettingsApi
from screens.classes.db import ClassApi, SectionApi
from screens.classes.workflow import make_class_wizard
from screens.examinations.db import ExamTermApi
from screens.finance.db import FeeStructureApi
from screens.subjects.db import SubjectApi
from screens.subjects.forms import SUBJECT_SCHEMA
from screens.teachers.db import TeacherApi

SCOPE = {"branch_id": 1, "session_id": 2}


def add_class(api, name, order=0, **extra):
    return api.create({**SCOPE, "name": name, "display_order": order, **extra})


def test_seeded_scope(engine):
    assert {b["code"] for b in list_branches(engine)} == {"MAIN", "NORTH"}
    sessions = list_sessions(engine)
    assert [s["name"] for s in sessions] == ["2025-26", "2024-25"]
    assert sessions[0]["is_active"] == 1


def test_create_get_update_delete(engine):
    api = SubjectApi(engine)
    created = api.create({"branch_id": 1, "name": "Mathematics", "code": "MATH", "subject_type": "CORE"})
    assert created.id and created.is_active is True

    updated = api.update(created.id, {"name": "Maths", "is_active": False})
    assert (updated.name, updated.code, updated.is_active) == ("Maths", "MATH", False)
    assert api.get(created.id) == updated

    api.delete(created.id)
    with pytest.raises(NotFoundError):
        api.get(created.id)
    with pytest.raises(NotFoundError):
        api.delete(created.id)
    with pytest.raises(NotFoundError):
        api.update(created.id, {"name": "Gone"})


def test_cursor_pages_cover_every_row_once(engine):
    api = SubjectApi(engine)
    ids = [api.create({"branch_id": 1, "name": f"Subject {i}", "code": f"S{i}"}).id for i in range(5)]

    seen, cursor, pages = [], None, 0
    while True:
        page = api.list(filters={"branch_id": 1}, cursor=cursor, limit=2)
        seen.extend(s.id for s in page.items)
        pages += 1
        cursor = page.next_cursor
        if cursor is None:
            break
    assert seen == ids
    assert pages == 3


def test_exact_page_has_no_next_cursor(engine):
    api = SubjectApi(engine)
    for i in range(2):
        api.create({"branch_id": 1, "name": f"Subject {i}", "code": f"S{i}"})
    assert api.list(limit=2).next_cursor is None


def test_bad_cursor_and_limit(engine):
    api = SubjectApi(engine)
    with pytest.raises(ApiError):
        api.list(cursor="abc")
    with pytest.raises(ApiError):
        api.list(limit=0)


def test_search_filters_and_count(engine):
    api = SubjectApi(engine)
    api.create({"branch_id": 1, "name": "Physics", "code": "PHY"})
    api.create({"branch_id": 1, "name": "Chemistry", "code": "CHEM", "subject_type": "ELECTIVE"})
    api.create({"branch_id": 2, "name": "Physical Education", "code": "PE", "subject_type": "CO_CURRICULAR"})

    assert [s.code for s in api.list_all(search="phy")] == ["PHY", "PE"]
    assert [s.code for s in api.list_all(filters={"branch_id": 1}, search="PHY")] == ["PHY"]
    assert api.count(filters={"subject_type": "ELECTIVE"}) == 1
    assert api.count(filters={"subject_type": None}) == 3


def test_unknown_filter_is_rejected(engine):
    with pytest.raises(ApiError, match="Unsupported filter"):
        SubjectApi(engine).list(filters={"name; DROP TABLE subjects": 1})


def test_duplicate_is_a_conflict(engine):
    api = ClassApi(engine)
    add_class(api, "Grade 1")
    with pytest.raises(ConflictError, match="already exists"):
        add_class(api, "Grade 1")


def test_teacher_duplicate_code_message(engine):
    api = TeacherApi(engine)
    api.create({"branch_id": 1, "first_name": "Asha", "employee_code": "T001"})
    with pytest.raises(ConflictError, match="Employee code is already used"):
        api.create({"branch_id": 1, "first_name": "Ravi", "employee_code": "T001"})
    other_branch = api.create({"branch_id": 2, "first_name": "Ravi", "employee_code": "T001"})
    assert other_branch.full_name == "Ravi"


def test_delete_blocked_by_dependent_rows(engine):
    classes = ClassApi(engine)
    klass = add_class(classes, "Grade 1")
    FeeStructureApi(engine).create({**SCOPE, "class_id": klass.id, "fee_head": "Tuition", "amount": 1200})
    with pytest.raises(ConflictError, match="still in use"):
        classes.delete(klass.id)
    assert classes.get(klass.id).name == "Grade 1"


def test_toggle_status(engine):
    api = ClassApi(engine)
    klass = add_class(api, "Grade 1")
    assert api.toggle_status(klass.id, False).is_active is False
    assert api.toggle_status(klass.id, True).is_active is True
    with pytest.raises(ApiError):
        ApprovalSettingsApi(engine).toggle_status(1, True)


def test_reorder_applies_whole_batch(engine):
    api = ClassApi(engine)
    a, b, c = (add_class(api, n, i) for i, n in enumerate(["A", "B", "C"]))
    api.reorder([{"id": c.id, "display_order": 0}, {"id": a.id, "display_order": 1}, {"id": b.id, "display_order": 2}])
    assert [k.name for k in api.list_all(filters=SCOPE)] == ["C", "A", "B"]


def test_reorder_with_unknown_id_rolls_back(engine):
    api = ClassApi(engine)
    a, b = add_class(api, "A", 0), add_class(api, "B", 1)
    with pytest.raises(NotFoundError):
        api.reorder([{"id": b.id, "display_order": 0}, {"id": 9999, "display_order": 1}])
    assert [k.name for k in api.list_all(filters=SCOPE)] == ["A", "B"]


def test_sections_follow_their_class(engine):
    classes, sections = ClassApi(engine), SectionApi(engine)
    klass = add_class(classes, "Grade 1")
    other = add_class(classes, "Grade 2", 1)
    sections.create({"class_id": klass.id, "name": "B", "capacity": 30, "display_order": 1})
    sections.create({"class_id": klass.id, "name": "A", "capacity": 25, "display_order": 0})

    loaded = classes.get_with_sections(klass.id)
    assert [s.name for s in loaded.sections] == ["A", "B"]
    assert loaded.capacity == 55
    listed = classes.list_with_sections(filters=SCOPE)
    assert [(c.name, len(c.sections)) for c in listed] == [("Grade 1", 2), ("Grade 2", 0)]
    assert classes.next_display_order(**SCOPE) == 2

    classes.delete(klass.id)
    assert sections.for_classes([klass.id, other.id]) == []


def test_section_capacity_check_is_enforced(engine):
    klass = add_class(ClassApi(engine), "Grade 1")
    with pytest.raises(ConflictError):
        SectionApi(engine).create({"class_id": klass.id, "name": "A", "capacity": 0})


def test_exam_term_current_is_exclusive(engine):
    api = ExamTermApi(engine)
    t1 = api.create({**SCOPE, "name": "Term 1", "start_date": datetime.date(2025, 9, 1),
                     "end_date": datetime.date(2025, 9, 10)})
    t2 = api.create({**SCOPE, "name": "Term 2", "start_date": datetime.date(2026, 2, 1),
                     "end_date": datetime.date(2026, 2, 12), "display_order": 1})
    assert t1.days == 10
    api.set_current(t1.id)
    api.set_current(t2.id)
    assert [t.is_current for t in api.list_all(filters=SCOPE)] == [False, True]
    with pytest.raises(NotFoundError):
        api.set_current(9999)


def test_approval_roles_are_stored_as_json(engine):
    api = ApprovalSettingsApi(engine)
    assert api.for_scope(1, 2) is None
    saved = api.create({**SCOPE, "approval_type": "TWO_PERSON", "approval_roles": ["accountant", "principal"]})
    assert saved.approval_roles == ["accountant", "principal"]
    assert api.for_scope(1, 2).id == saved.id
    with pytest.raises(ConflictError):
        api.create({**SCOPE})


def test_class_wizard_against_database(engine, notifier):
    classes, sections = ClassApi(engine), SectionApi(engine)
    context = TenantContext(**SCOPE)

    wizard = make_class_wizard(classes, sections, context, next_order=classes.next_display_order(**SCOPE),
                               notifier=notifier)
    assert wizard.continue_to_children({"name": "Grade 5", "grade": 5})
    wizard.add_child()
    assert wizard.submit()
    created = classes.get_with_sections(wizard.result.id)
    assert [(s.name, s.capacity, s.display_order) for s in created.sections] == [("A", 30, 0), ("B", 30, 1)]

    editor = make_class_wizard(classes, sections, context, klass=created, notifier=notifier)
    editor.continue_to_children()
    first, second = editor.visible_rows
    editor.update_child(first.key, capacity=45)
    editor.remove_child(second.key)
    extra = editor.add_child()
    editor.update_child(extra.key, name="B")
    assert editor.submit()

    reloaded = classes.get_with_sections(created.id)
    assert [(s.name, s.capacity) for s in reloaded.sections] == [("A", 45), ("B", 30)]
    assert reloaded.sections[1].id != second.id


@pytest.fixture
def bare_engine(tmp_path):
    eng = get_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    yield eng
    eng.dispose()


def test_database_failures_become_api_errors(bare_engine):
    api = SubjectApi(bare_engine)
    with pytest.raises(ApiError, match="Subject could not be loaded: no such table: subjects"):
        api.list()
    with pytest.raises(ApiError, match="could not be loaded"):
        api.get(1)
    with pytest.raises(ApiError, match="Subject could not be saved"):
        api.create({"branch_id": 1, "name": "Maths", "code": "MATH"})
    with pytest.raises(ApiError, match="Subject could not be deleted"):
        api.delete(1)
    with pytest.raises(ApiError, match="Class could not be saved"):
        ClassApi(bare_engine).reorder([{"id": 1, "display_order": 0}])


def test_form_reports_database_failure(bare_engine, notifier):
    form = EntityForm(SUBJECT_SCHEMA, SubjectApi(bare_engine), TenantContext(**SCOPE), notifier=notifier)
    form.update_values({"name": "Maths", "code": "math"})
    assert form.submit() is None
    assert notifier.messages == [("error", "Subject could not be saved: no such table: subjects")]
    assert form.values["name"] == "Maths"
    assert not form.pending


def test_bulk_delete_summarises_database_failure(bare_engine):
    result = run_bulk([1, 2], SubjectApi(bare_engine).delete, verb="deleted")
    assert result.succeeded == []
    assert [row_id for row_id, _ in result.failed] == [1, 2]
    assert result.message.startswith("Deleted 0 of 2 record(s); 2 failed: Subject could not be deleted")
