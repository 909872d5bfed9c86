"""Seed a store with the mock catalog, roster, groups and site copy."""
import json
from datetime import datetime, timedelta
from pathlib import Path

from rightstudy.models import (
    FAQ, Announcement, Assignment, ChatMessage, Course, Faculty, Group, GroupAnnouncement,
    GroupFile, GroupMemberRole, Meeting, Review, SiteSettings, StaffProfile, Student,
)
from rightstudy.store import DataStore

CONTENT_DIR = Path(__file__).parent / "content"


def _load(name: str) -> dict:
    return json.loads((CONTENT_DIR / name).read_text(encoding="utf-8"))


def is_seeded(store: DataStore) -> bool:
    """Check whether the store already holds the course catalog."""
    return len(store.courses) > 0


def seed_courses(store: DataStore) -> None:
    """Load the course catalog from courses.json."""
    data = _load("courses.json")
    for course in data["courses"]:
        faqs = [FAQ(**faq) for faq in course.pop("faqs", [])]
        store.add_course(Course(**course, faqs=faqs))


def seed_people(store: DataStore) -> None:
    """Load faculty, students and staff from people.json."""
    data = _load("people.json")
    for f in data["faculty"]:
        store.add_faculty(Faculty(**f))
    for s in data["students"]:
        store.add_student(Student(**s))
    for s in data["staff"]:
        store.add_staff(StaffProfile(**s))


def seed_groups(store: DataStore) -> None:
    """Load groups, their chat history and meetings from groups.json."""
    data = _load("groups.json")
    for g in data["groups"]:
        files = [GroupFile(**f) for f in g.pop("files", [])]
        announcements = [GroupAnnouncement(**a) for a in g.pop("announcements", [])]
        roles = [GroupMemberRole(**r) for r in g.pop("custom_roles", [])]
        store.add_group(Group(**g, files=files, announcements=announcements, custom_roles=roles))

    # Message times are stored relative to now so the history always looks recent
    now = datetime.now()
    messages = {}
    for group_id, entries in data["messages"].items():
        history = []
        for m in entries:
            minutes_ago = m.pop("minutes_ago")
            history.append(ChatMessage(**m, timestamp=(now - timedelta(minutes=minutes_ago)).isoformat()))
        messages[group_id] = history
    store.messages = messages

    for m in data["meetings"]:
        store.add_meeting(Meeting(**m))


def seed_site(store: DataStore) -> None:
    """Load site copy, announcements, assignments and reviews from site.json."""
    data = _load("site.json")
    store.site_settings = SiteSettings(**data["settings"])
    for a in data["announcements"]:
        store.add_announcement(Announcement(**a))
    for a in data["assignments"]:
        store.add_assignment(Assignment(**a))
    for r in data["reviews"]:
        store.add_review(Review(**r))


def seed_all(store: DataStore) -> None:
    """Run all seed functions in order."""
    if is_seeded(store):
        return
    seed_courses(store)
    seed_people(store)
    seed_groups(store)
    seed_site(store)


def create_store() -> DataStore:
    store = DataStore()
    seed_all(store)
    return store
