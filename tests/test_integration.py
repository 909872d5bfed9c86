# tests/test_integration.py
"""End-to-end tests of the portal workflows."""
from rightstudy.catalog import assignments_for, browse_courses, enrolled_courses
from rightstudy.groups import can_access_group, group_members, import_members_csv, visible_groups
from rightstudy.seed import create_store


def test_student_journey():
    """Browse, enroll, work through assignments and chat in a batch group."""
    store = create_store()

    medium = browse_courses(store.courses, category="TECHNICAL", price_band="MEDIUM", sort_by="price_asc")
    assert [c.id for c in medium] == ["2", "1", "3"]

    user = store.login("john@student.com", "student")
    assert store.enroll_in_course("2")
    assert not store.enroll_in_course("2")
    assert [c.id for c in enrolled_courses(store.courses, store.user)] == ["1", "2"]

    pending = [a for a in assignments_for(store.assignments, store.user) if a.status == "Pending"]
    assert [a.id for a in pending] == ["1"]
    store.submit_assignment("1")
    assert all(a.status != "Pending" for a in assignments_for(store.assignments, store.user))

    groups = visible_groups(store.groups, store.user)
    assert "b_mb1" in [g.id for g in groups]
    store.send_message("b_mb1", "Present!")
    assert store.messages_for("b_mb1")[-1].sender_id == user.id
    assert store.live_meeting("b_mb1").title == "Industrial Safety - Intro"


def test_admin_restricts_batch_by_csv():
    """An admin whitelists a batch from CSV, then removes one member."""
    store = create_store()
    store.login("admin@rightstudy.com", "admin")
    assert store.user.id == "st2"

    added = import_members_csv(store, "b_ab1", "Email\njohn@student.com\njane@student.com\n")
    assert added == ["1", "2"]
    store.remove_group_member("b_ab1", "2")
    group = store.get_group("b_ab1")

    john = store.login("john@student.com", "student")
    assert can_access_group(group, john)
    jane = store.login("jane@student.com", "student")
    assert not can_access_group(group, jane)
    director = store.login("director@rightstudy.com", "director")
    assert can_access_group(group, director)

    names = {m.name for m in group_members(group, store.roster())}
    assert {"John Doe", "Admin One"} <= names
    assert "Jane Smith" not in names


def test_teacher_runs_live_class():
    store = create_store()
    store.login("asharma@rightstudy.com", "teacher")
    meeting = store.toggle_meeting("b_eb1", True, "Evening Revision")
    assert store.live_meeting("b_eb1") == meeting
    store.toggle_meeting("b_eb1", False)
    assert store.live_meeting("b_eb1") is None
    assert any(m.id == meeting.id and m.status == "ended" for m in store.meetings)
