import pytest

from rightstudy.models import Course, GroupFile, Meeting, Review
from rightstudy.store import NotFoundError, NotLoggedInError, new_id


def _course(course_id="c-new"):
    return Course(id=course_id, title="New", category="SCHOOL", description="d", duration="1 Year")


def test_new_id_prefix_and_uniqueness():
    a, b = new_id("m"), new_id("m")
    assert a.startswith("m-")
    assert a != b


def test_add_update_delete_course(store):
    store.add_course(_course())
    assert store.courses[-1].id == "c-new"
    store.update_course("c-new", title="Renamed")
    assert store.get_course("c-new").title == "Renamed"
    store.delete_course("c-new")
    with pytest.raises(NotFoundError):
        store.get_course("c-new")


def test_update_replaces_record(store):
    before = store.get_course("1")
    store.update_course("1", title="Changed")
    assert before.title != "Changed"
    assert store.get_course("1").title == "Changed"


def test_update_unknown_id_raises(store):
    with pytest.raises(NotFoundError):
        store.update_student("nope", name="X")
    with pytest.raises(NotFoundError):
        store.delete_faculty("nope")


def test_assign_faculty_courses(store):
    store.assign_faculty_courses("1", ["1", "3"])
    assert [c.id for c in store.courses if c.faculty_id == "1"] == ["1", "3"]
    store.assign_faculty_courses("1", ["2"])
    assert [c.id for c in store.courses if c.faculty_id == "1"] == ["2"]


def test_remove_enrollment(store):
    store.remove_enrollment("1", "1")
    assert store.get_student("1").enrolled_courses == []


def test_submit_assignment(store):
    store.submit_assignment("1")
    assert store.assignments[0].status == "Submitted"


def test_update_site_settings(store):
    store.update_site_settings(brand_name="NewBrand")
    assert store.site_settings.brand_name == "NewBrand"
    with pytest.raises(ValueError):
        store.update_site_settings(not_a_field="x")


def test_group_files_and_announcements(store):
    f = GroupFile(id="f2", name="a.pdf", url="#", uploaded_by="X", uploader_role="admin", date="2024-01-01")
    store.add_group_file("b_mb1", f)
    assert [x.id for x in store.get_group("b_mb1").files] == ["f1", "f2"]
    store.delete_group_file("b_mb1", "f1")
    assert [x.id for x in store.get_group("b_mb1").files] == ["f2"]
    store.delete_group_announcement("g_delhi", "ga1")
    assert store.get_group("g_delhi").announcements == []


def test_set_group_member_role_upserts(store):
    store.set_group_member_role("b_mb1", "1", "coordinator")
    store.set_group_member_role("b_mb1", "1", "admin")
    roles = store.get_group("b_mb1").custom_roles
    assert len(roles) == 1
    assert roles[0].role == "admin"
    with pytest.raises(ValueError):
        store.set_group_member_role("b_mb1", "1", "owner")


def test_remove_group_member_no_duplicates(store):
    store.remove_group_member("b_mb1", "1")
    store.remove_group_member("b_mb1", "1")
    assert store.get_group("b_mb1").excluded_user_ids == ["1"]


def test_bulk_add_group_members_dedupes(store):
    store.bulk_add_group_members("b_ab1", ["1", "2"])
    store.bulk_add_group_members("b_ab1", ["2", "st3"])
    assert store.get_group("b_ab1").member_ids == ["1", "2", "st3"]


def test_send_message_requires_login(store):
    with pytest.raises(NotLoggedInError):
        store.send_message("g_delhi", "hi")


def test_send_and_delete_message(store):
    store.login("john@student.com", "student")
    msg = store.send_message("g_delhi", "hello")
    assert msg.sender_name == "John Doe"
    assert store.messages_for("g_delhi")[-1] == msg
    store.delete_message("g_delhi", msg.id)
    assert msg not in store.messages_for("g_delhi")


def test_send_message_to_unknown_group(store):
    store.login("john@student.com", "student")
    with pytest.raises(NotFoundError):
        store.send_message("nope", "hi")


def test_messages_for_unknown_group_is_empty(store):
    assert store.messages_for("b_eb1") == []


def test_update_meeting_syncs_live_flag(store):
    store.update_meeting("mt1", status="ended")
    assert not store.meetings[0].is_live
    assert store.live_meeting("b_mb1") is None


def test_toggle_meeting_replaces_live_meeting(store):
    store.login("asharma@rightstudy.com", "teacher")
    meeting = store.toggle_meeting("b_mb1", True, "Revision")
    live = [m for m in store.meetings if m.group_id == "b_mb1" and m.is_live]
    assert live == [meeting]
    assert meeting.host_name == "Dr. A. Sharma"


def test_toggle_meeting_keeps_scheduled(store):
    store.add_meeting(Meeting(id="s1", group_id="b_mb1", title="Later", host_name="X"))
    store.toggle_meeting("b_mb1", True)
    store.toggle_meeting("b_mb1", False)
    assert any(m.id == "s1" and m.status == "scheduled" for m in store.meetings)
    assert store.live_meeting("b_mb1") is None


def test_toggle_meeting_host_defaults_to_admin(store):
    meeting = store.toggle_meeting("b_ab1", True)
    assert meeting.host_name == "Admin"
    assert meeting.title == "Live Meeting"


def test_add_review_validates_rating(store):
    with pytest.raises(ValueError):
        store.add_review(Review(id="r9", course_id="1", user_id="1", user_name="J", rating=6, comment="", date=""))
    store.add_review(Review(id="r9", course_id="1", user_id="1", user_name="J", rating=4, comment="", date=""))
    store.delete_review("r9")
    assert [r.id for r in store.reviews] == ["r1"]


def test_roster_roles(store):
    roles = {m.id: m.role for m in store.roster()}
    assert roles["st1"] == "director"
    assert roles["st3"] == "employee"
    assert "student" in roles.values()
    assert "teacher" in roles.values()


def test_login_matches_student(store):
    user = store.login("john@student.com", "student")
    assert user.id == "1"
    assert user.enrolled_courses == ["1"]
    assert store.user is user


def test_login_staff_role_must_match(store):
    user = store.login("director@rightstudy.com", "admin")
    assert user.name == "Admin User"
    assert user.id.startswith("u-")


def test_login_unknown_email_fabricates_user(store):
    user = store.login("someone@x.com", "teacher")
    assert user.name == "Teacher User"
    assert user.role == "teacher"


def test_login_unknown_role(store):
    with pytest.raises(ValueError):
        store.login("john@student.com", "guest")


def test_logout(store):
    store.login("john@student.com", "student")
    store.logout()
    assert store.user is None


def test_enroll_requires_login(store):
    with pytest.raises(NotLoggedInError):
        store.enroll_in_course("1")


def test_enroll_updates_user_and_student(store):
    store.login("john@student.com", "student")
    assert store.enroll_in_course("3") is True
    assert store.user.enrolled_courses == ["1", "3"]
    assert store.get_student("1").enrolled_courses == ["1", "3"]


def test_enroll_is_idempotent(store):
    store.login("john@student.com", "student")
    assert store.enroll_in_course("1") is False
    assert store.user.enrolled_courses == ["1"]


def test_enroll_unknown_course(store):
    store.login("john@student.com", "student")
    with pytest.raises(NotFoundError):
        store.enroll_in_course("999")
