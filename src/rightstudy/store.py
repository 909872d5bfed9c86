"""In-memory state container for the whole site.

Every collection lives in an ordered list on a single ``DataStore``. Mutations
replace records rather than editing them in place, and nothing is persisted.
"""
import logging
from dataclasses import fields, replace
from datetime import date, datetime
from typing import Optional
from uuid import uuid4

from rightstudy.models import (
    Announcement, Assignment, ChatMessage, Course, Faculty, Group, GroupAnnouncement,
    GroupFile, GroupMemberRole, GROUP_MEMBER_ROLES, Meeting, MEETING_ENDED, MEETING_LIVE,
    Member, Review, SiteSettings, StaffProfile, Student, User, USER_ROLES,
)

logger = logging.getLogger(__name__)


class NotFoundError(KeyError):
    """Raised when a record id does not exist in its collection."""


class NotLoggedInError(RuntimeError):
    """Raised by actions that need a session user when nobody is logged in."""


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:8]}"


def today() -> str:
    return date.today().isoformat()


def _find(items: list, item_id: str, kind: str):
    for item in items:
        if item.id == item_id:
            return item
    raise NotFoundError(f"{kind} not found: {item_id}")


def _replace_in(items: list, item_id: str, kind: str, changes: dict) -> list:
    current = _find(items, item_id, kind)
    updated = replace(current, **changes)
    return [updated if item.id == item_id else item for item in items]


def _remove_from(items: list, item_id: str, kind: str) -> list:
    _find(items, item_id, kind)
    return [item for item in items if item.id != item_id]


class DataStore:
    def __init__(self):
        self.courses: list[Course] = []
        self.user: Optional[User] = None
        self.announcements: list[Announcement] = []
        self.faculty: list[Faculty] = []
        self.assignments: list[Assignment] = []
        self.students: list[Student] = []
        self.staff: list[StaffProfile] = []
        self.site_settings = SiteSettings()
        self.groups: list[Group] = []
        self.messages: dict[str, list[ChatMessage]] = {}
        self.meetings: list[Meeting] = []
        self.reviews: list[Review] = []

    # --- Courses ---

    def get_course(self, course_id: str) -> Course:
        return _find(self.courses, course_id, "course")

    def add_course(self, course: Course) -> None:
        self.courses = [*self.courses, course]

    def update_course(self, course_id: str, **changes) -> None:
        self.courses = _replace_in(self.courses, course_id, "course", changes)

    def delete_course(self, course_id: str) -> None:
        self.courses = _remove_from(self.courses, course_id, "course")

    def assign_faculty_courses(self, faculty_id: str, course_ids: list[str]) -> None:
        """Make ``course_ids`` exactly the courses taught by ``faculty_id``."""
        _find(self.faculty, faculty_id, "faculty")
        selected = set(course_ids)
        for course_id in selected:
            _find(self.courses, course_id, "course")
        updated = []
        for course in self.courses:
            if course.id in selected:
                course = replace(course, faculty_id=faculty_id)
            elif course.faculty_id == faculty_id:
                course = replace(course, faculty_id=None)
            updated.append(course)
        self.courses = updated

    # --- Announcements ---

    def add_announcement(self, announcement: Announcement) -> None:
        self.announcements = [*self.announcements, announcement]

    def update_announcement(self, announcement_id: str, **changes) -> None:
        self.announcements = _replace_in(self.announcements, announcement_id, "announcement", changes)

    def delete_announcement(self, announcement_id: str) -> None:
        self.announcements = _remove_from(self.announcements, announcement_id, "announcement")

    # --- Faculty ---

    def add_faculty(self, faculty: Faculty) -> None:
        self.faculty = [*self.faculty, faculty]

    def update_faculty(self, faculty_id: str, **changes) -> None:
        self.faculty = _replace_in(self.faculty, faculty_id, "faculty", changes)

    def delete_faculty(self, faculty_id: str) -> None:
        self.faculty = _remove_from(self.faculty, faculty_id, "faculty")

    # --- Students ---

    def get_student(self, student_id: str) -> Student:
        return _find(self.students, student_id, "student")

    def add_student(self, student: Student) -> None:
        self.students = [*self.students, student]

    def update_student(self, student_id: str, **changes) -> None:
        self.students = _replace_in(self.students, student_id, "student", changes)

    def delete_student(self, student_id: str) -> None:
        self.students = _remove_from(self.students, student_id, "student")

    def remove_enrollment(self, student_id: str, course_id: str) -> None:
        student = self.get_student(student_id)
        remaining = [c for c in student.enrolled_courses if c != course_id]
        self.update_student(student_id, enrolled_courses=remaining)

    # --- Staff ---

    def add_staff(self, profile: StaffProfile) -> None:
        self.staff = [*self.staff, profile]

    def update_staff(self, staff_id: str, **changes) -> None:
        self.staff = _replace_in(self.staff, staff_id, "staff", changes)

    def delete_staff(self, staff_id: str) -> None:
        self.staff = _remove_from(self.staff, staff_id, "staff")

    # --- Assignments ---

    def add_assignment(self, assignment: Assignment) -> None:
        self.assignments = [*self.assignments, assignment]

    def update_assignment(self, assignment_id: str, **changes) -> None:
        self.assignments = _replace_in(self.assignments, assignment_id, "assignment", changes)

    def delete_assignment(self, assignment_id: str) -> None:
        self.assignments = _remove_from(self.assignments, assignment_id, "assignment")

    def submit_assignment(self, assignment_id: str) -> None:
        self.update_assignment(assignment_id, status="Submitted")

    # --- Site settings ---

    def update_site_settings(self, **changes) -> None:
        known = {f.name for f in fields(SiteSettings)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown site settings: {', '.join(sorted(unknown))}")
        self.site_settings = replace(self.site_settings, **changes)

    # --- Groups ---

    def get_group(self, group_id: str) -> Group:
        return _find(self.groups, group_id, "group")

    def add_group(self, group: Group) -> None:
        self.groups = [*self.groups, group]

    def update_group(self, group_id: str, **changes) -> None:
        self.groups = _replace_in(self.groups, group_id, "group", changes)

    def delete_group(self, group_id: str) -> None:
        self.groups = _remove_from(self.groups, group_id, "group")

    def add_group_file(self, group_id: str, file: GroupFile) -> None:
        group = self.get_group(group_id)
        self.update_group(group_id, files=[*group.files, file])

    def delete_group_file(self, group_id: str, file_id: str) -> None:
        group = self.get_group(group_id)
        self.update_group(group_id, files=[f for f in group.files if f.id != file_id])

    def add_group_announcement(self, group_id: str, announcement: GroupAnnouncement) -> None:
        group = self.get_group(group_id)
        self.update_group(group_id, announcements=[*group.announcements, announcement])

    def delete_group_announcement(self, group_id: str, announcement_id: str) -> None:
        group = self.get_group(group_id)
        remaining = [a for a in group.announcements if a.id != announcement_id]
        self.update_group(group_id, announcements=remaining)

    def set_group_member_role(self, group_id: str, user_id: str, role: str) -> None:
        if role not in GROUP_MEMBER_ROLES:
            raise ValueError(f"Unknown group role: {role}")
        group = self.get_group(group_id)
        if any(r.user_id == user_id for r in group.custom_roles):
            roles = [replace(r, role=role) if r.user_id == user_id else r for r in group.custom_roles]
        else:
            roles = [*group.custom_roles, GroupMemberRole(user_id=user_id, role=role)]
        self.update_group(group_id, custom_roles=roles)

    def remove_group_member(self, group_id: str, user_id: str) -> None:
        group = self.get_group(group_id)
        if user_id in group.excluded_user_ids:
            return
        self.update_group(group_id, excluded_user_ids=[*group.excluded_user_ids, user_id])

    def bulk_add_group_members(self, group_id: str, user_ids: list[str]) -> None:
        group = self.get_group(group_id)
        members = list(dict.fromkeys([*group.member_ids, *user_ids]))
        self.update_group(group_id, member_ids=members)

    # --- Chat ---

    def messages_for(self, group_id: str) -> list[ChatMessage]:
        return self.messages.get(group_id, [])

    def send_message(self, group_id: str, content: str, type: str = "text",
                     file_name: Optional[str] = None) -> ChatMessage:
        if self.user is None:
            raise NotLoggedInError("Log in to send messages")
        self.get_group(group_id)
        message = ChatMessage(
            id=new_id("m"),
            sender_id=self.user.id,
            sender_name=self.user.name,
            sender_role=self.user.role,
            content=content,
            timestamp=datetime.now().isoformat(),
            type=type,
            file_name=file_name,
        )
        self.messages = {**self.messages, group_id: [*self.messages_for(group_id), message]}
        return message

    def delete_message(self, group_id: str, message_id: str) -> None:
        remaining = _remove_from(self.messages_for(group_id), message_id, "message")
        self.messages = {**self.messages, group_id: remaining}

    # --- Meetings ---

    def add_meeting(self, meeting: Meeting) -> None:
        self.meetings = [*self.meetings, meeting]

    def update_meeting(self, meeting_id: str, **changes) -> None:
        if "status" in changes:
            changes["is_live"] = changes["status"] == MEETING_LIVE
        self.meetings = _replace_in(self.meetings, meeting_id, "meeting", changes)

    def delete_meeting(self, meeting_id: str) -> None:
        self.meetings = _remove_from(self.meetings, meeting_id, "meeting")

    def live_meeting(self, group_id: str) -> Optional[Meeting]:
        for meeting in self.meetings:
            if meeting.group_id == group_id and meeting.is_live:
                return meeting
        return None

    def toggle_meeting(self, group_id: str, is_live: bool, title: Optional[str] = None) -> Optional[Meeting]:
        """Start or end the live meeting of a group.

        Starting replaces whatever live meeting the group had, so a group never
        has two. Ending marks the group's live meeting as ended. Scheduled
        meetings are left alone either way.
        """
        self.get_group(group_id)
        if is_live:
            now = datetime.now()
            meeting = Meeting(
                id=new_id("mt"),
                group_id=group_id,
                title=title or "Live Meeting",
                host_name=self.user.name if self.user else "Admin",
                is_live=True,
                participants=1,
                status=MEETING_LIVE,
                date=now.date().isoformat(),
                time=now.strftime("%H:%M"),
            )
            kept = [m for m in self.meetings if not (m.group_id == group_id and m.is_live)]
            self.meetings = [*kept, meeting]
            logger.info("Meeting %s started in group %s", meeting.id, group_id)
            return meeting
        self.meetings = [
            replace(m, is_live=False, status=MEETING_ENDED) if m.group_id == group_id and m.is_live else m
            for m in self.meetings
        ]
        logger.info("Live meeting ended in group %s", group_id)
        return None

    # --- Reviews ---

    def add_review(self, review: Review) -> None:
        if not 1 <= review.rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        self.reviews = [*self.reviews, review]

    def delete_review(self, review_id: str) -> None:
        self.reviews = _remove_from(self.reviews, review_id, "review")

    # --- Session ---

    def roster(self) -> list[Member]:
        members = [Member(s.id, s.name, s.email, "student") for s in self.students]
        members += [Member(f.id, f.name, f.email, "teacher") for f in self.faculty]
        members += [Member(s.id, s.name, s.email, s.role) for s in self.staff]
        return members

    def login(self, email: str, role: str) -> User:
        """Log in by email against the roster for ``role``.

        Unknown emails still get in: a user is made up for the role so the
        portal can be explored without a matching record.
        """
        if role not in USER_ROLES:
            raise ValueError(f"Unknown role: {role}")
        user = None
        if role == "student":
            match = next((s for s in self.students if s.email == email), None)
            if match:
                user = User(match.id, match.name, match.email, "student", list(match.enrolled_courses))
        elif role == "teacher":
            match = next((f for f in self.faculty if f.email == email), None)
            if match:
                user = User(match.id, match.name, match.email, "teacher")
        else:
            match = next((s for s in self.staff if s.email == email and s.role == role), None)
            if match:
                user = User(match.id, match.name, match.email, match.role)
        if user is None:
            logger.info("No %s record for %s, using a demo user", role, email)
            user = User(new_id("u"), f"{role.capitalize()} User", email, role)
        self.user = user
        return user

    def logout(self) -> None:
        self.user = None

    def enroll_in_course(self, course_id: str) -> bool:
        """Enroll the session user. Returns False if already enrolled."""
        if self.user is None:
            raise NotLoggedInError("Log in to enroll")
        self.get_course(course_id)
        if course_id in self.user.enrolled_courses:
            return False
        enrolled = [*self.user.enrolled_courses, course_id]
        self.user = replace(self.user, enrolled_courses=enrolled)
        if self.user.role == "student" and any(s.id == self.user.id for s in self.students):
            self.update_student(self.user.id, enrolled_courses=enrolled)
        return True
