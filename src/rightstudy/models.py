"""Data classes for the institute domain model."""
from dataclasses import dataclass, field
from typing import Optional

TECHNICAL = "TECHNICAL"
SCHOOL = "SCHOOL"
DEGREE = "DEGREE"
COURSE_TYPES = (TECHNICAL, SCHOOL, DEGREE)

SUB_CATEGORIES = (
    "Fire & Safety", "Industrial Safety", "Construction", "Environmental", "General", "Management",
)

USER_ROLES = ("student", "director", "shareholder", "employee", "teacher", "admin")
STAFF_ROLES = ("director", "shareholder", "employee", "admin")
# Roles that see whitelisted groups without being on the list.
PRIVILEGED_ROLES = ("admin", "director", "shareholder")

GROUP_TYPES = ("branch", "online_batch", "general")
GROUP_MEMBER_ROLES = ("admin", "coordinator", "member")

MEETING_SCHEDULED = "scheduled"
MEETING_LIVE = "live"
MEETING_ENDED = "ended"


@dataclass
class FAQ:
    question: str
    answer: str


@dataclass
class Course:
    id: str
    title: str
    category: str
    description: str
    duration: str
    image: str = ""
    sub_category: Optional[str] = None
    price: Optional[str] = None
    price_value: Optional[int] = None
    popularity: Optional[int] = None
    video_url: Optional[str] = None
    syllabus: list[str] = field(default_factory=list)
    faqs: list[FAQ] = field(default_factory=list)
    faculty_id: Optional[str] = None


@dataclass
class User:
    """The session user, rebuilt from a roster match at login."""
    id: str
    name: str
    email: str
    role: str
    enrolled_courses: list[str] = field(default_factory=list)


@dataclass
class Student:
    id: str
    name: str
    email: str
    phone: str = ""
    enrolled_courses: list[str] = field(default_factory=list)
    status: str = "Active"


@dataclass
class Faculty:
    id: str
    name: str
    email: str
    specialization: str = ""
    image: str = ""
    bio: str = ""


@dataclass
class StaffProfile:
    id: str
    name: str
    email: str
    role: str = "employee"
    department: Optional[str] = None
    phone: Optional[str] = None
    status: str = "Active"


@dataclass
class Member:
    """Role-tagged view over a student, faculty or staff record."""
    id: str
    name: str
    email: str
    role: str


@dataclass
class Assignment:
    id: str
    course_id: str
    title: str
    due_date: str
    status: str = "Pending"
    grade: Optional[str] = None


@dataclass
class Announcement:
    id: str
    title: str
    content: str
    date: str
    author: str = "Admin"


@dataclass
class Review:
    id: str
    course_id: str
    user_id: str
    user_name: str
    rating: int
    comment: str
    date: str


@dataclass
class ChatMessage:
    id: str
    sender_id: str
    sender_name: str
    sender_role: str
    content: str
    timestamp: str
    type: str = "text"
    file_name: Optional[str] = None


@dataclass
class GroupFile:
    id: str
    name: str
    url: str
    uploaded_by: str
    uploader_role: str
    date: str
    size: Optional[str] = None


@dataclass
class GroupAnnouncement:
    id: str
    content: str
    date: str
    author_name: str


@dataclass
class GroupMemberRole:
    user_id: str
    role: str


@dataclass
class Group:
    id: str
    name: str
    description: str
    allowed_roles: list[str]
    type: str = "general"
    branch_identifier: Optional[str] = None
    batch_identifier: Optional[str] = None
    files: list[GroupFile] = field(default_factory=list)
    announcements: list[GroupAnnouncement] = field(default_factory=list)
    custom_roles: list[GroupMemberRole] = field(default_factory=list)
    excluded_user_ids: list[str] = field(default_factory=list)
    member_ids: list[str] = field(default_factory=list)


@dataclass
class Meeting:
    id: str
    group_id: str
    title: str
    host_name: str
    is_live: bool = False
    participants: int = 0
    status: str = MEETING_SCHEDULED
    date: Optional[str] = None  # YYYY-MM-DD
    time: Optional[str] = None  # HH:MM
    duration: Optional[int] = None  # minutes


@dataclass
class SiteSettings:
    brand_name: str = ""
    brand_subtitle: str = ""
    footer_description: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    address: str = ""
    hero_title: str = ""
    hero_subtitle: str = ""
    hero_description: str = ""
    hero_image: str = ""
    about_title: str = ""
    about_subtitle: str = ""
    about_description: str = ""
    feature1_title: str = ""
    feature1_desc: str = ""
    feature2_title: str = ""
    feature2_desc: str = ""
    feature3_title: str = ""
    feature3_desc: str = ""
    featured_section_title: str = ""
    featured_section_subtitle: str = ""
    courses_title: str = ""
    courses_subtitle: str = ""
    portal_title: str = ""
    portal_subtitle: str = ""
    certification_text: str = ""
