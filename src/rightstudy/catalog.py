"""Course catalog filtering, sorting and review summaries."""
import re
from urllib.parse import quote

from rightstudy.models import Assignment, Course, Review, TECHNICAL, User

ALL = "ALL"
PRICE_BANDS = ("ALL", "LOW", "MEDIUM", "HIGH")
SORT_OPTIONS = ("default", "popularity", "price_asc", "price_desc", "title", "duration")
TECHNICAL_SUB_CATEGORIES = ("Fire & Safety", "Industrial Safety", "Construction", "Environmental", "Management")

LOW_PRICE_LIMIT = 10000
HIGH_PRICE_LIMIT = 25000


def matches_price_band(price_value: int | None, band: str) -> bool:
    p = price_value or 0
    if band == "LOW":
        return p < LOW_PRICE_LIMIT
    elif band == "MEDIUM":
        return LOW_PRICE_LIMIT <= p <= HIGH_PRICE_LIMIT
    elif band == "HIGH":
        return p > HIGH_PRICE_LIMIT
    return True


def filter_courses(
    courses: list[Course],
    category: str = ALL,
    sub_category: str = ALL,
    price_band: str = ALL,
    search: str = "",
) -> list[Course]:
    """Public catalog filter. Specialization only narrows technical courses."""
    needle = search.lower()
    results = []
    for course in courses:
        if category != ALL and course.category != category:
            continue
        if needle not in course.title.lower():
            continue
        if not matches_price_band(course.price_value, price_band):
            continue
        if category == TECHNICAL and sub_category != ALL and course.sub_category != sub_category:
            continue
        results.append(course)
    return results


def filter_admin_courses(
    courses: list[Course],
    category: str = ALL,
    sub_category: str = ALL,
    price_band: str = ALL,
) -> list[Course]:
    return [
        c for c in courses
        if (category == ALL or c.category == category)
        and (sub_category == ALL or c.sub_category == sub_category)
        and matches_price_band(c.price_value, price_band)
    ]


def sort_courses(courses: list[Course], sort_by: str = "default") -> list[Course]:
    if sort_by == "title":
        return sorted(courses, key=lambda c: c.title.lower())
    elif sort_by == "duration":
        return sorted(courses, key=lambda c: c.duration)
    elif sort_by == "price_asc":
        return sorted(courses, key=lambda c: c.price_value or 0)
    elif sort_by == "price_desc":
        return sorted(courses, key=lambda c: c.price_value or 0, reverse=True)
    elif sort_by == "popularity":
        return sorted(courses, key=lambda c: c.popularity or 0, reverse=True)
    return list(courses)


def browse_courses(
    courses: list[Course],
    category: str = ALL,
    sub_category: str = ALL,
    price_band: str = ALL,
    search: str = "",
    sort_by: str = "default",
) -> list[Course]:
    return sort_courses(filter_courses(courses, category, sub_category, price_band, search), sort_by)


def featured_courses(courses: list[Course], count: int = 3) -> list[Course]:
    return sort_courses(courses, "popularity")[:count]


def is_best_seller(course: Course) -> bool:
    return (course.popularity or 0) > 90


def course_reviews(reviews: list[Review], course_id: str) -> list[Review]:
    return [r for r in reviews if r.course_id == course_id]


def average_rating(reviews: list[Review]) -> float | None:
    """Mean rating to one decimal, or None when there are no reviews."""
    if not reviews:
        return None
    return round(sum(r.rating for r in reviews) / len(reviews), 1)


def share_links(course: Course, url: str, brand_name: str = "RightStudy") -> dict:
    text = quote(f"Check out {course.title} at {brand_name}!")
    encoded = quote(url, safe="")
    return {
        "facebook": f"https://www.facebook.com/sharer/sharer.php?u={encoded}",
        "twitter": f"https://twitter.com/intent/tweet?url={encoded}&text={text}",
        "linkedin": f"https://www.linkedin.com/sharing/share-offsite/?url={encoded}",
    }


def parse_price(text: str | None) -> int:
    """Numeric value of a display price such as '₹15,000'."""
    digits = re.sub(r"[^0-9]", "", text or "")
    return int(digits) if digits else 0


def parse_syllabus(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def enrolled_courses(courses: list[Course], user: User) -> list[Course]:
    return [c for c in courses if c.id in user.enrolled_courses]


def assignments_for(assignments: list[Assignment], user: User) -> list[Assignment]:
    return [a for a in assignments if a.course_id in user.enrolled_courses]
