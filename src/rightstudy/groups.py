"""Group visibility, in-group roles and member import."""
import logging

from rightstudy.models import Group, Member, PRIVILEGED_ROLES, User
from rightstudy.store import DataStore

logger = logging.getLogger(__name__)

MEMBER_TEMPLATE_CSV = "Email\nstudent@example.com\n"


def can_access_group(group: Group, user: User) -> bool:
    """Layered access rule.

    1. A banned user never gets in.
    2. A non-empty whitelist admits privileged roles and listed users only.
    3. Otherwise the group's allowed roles decide.
    """
    if user.id in group.excluded_user_ids:
        return False
    if group.member_ids:
        if user.role in PRIVILEGED_ROLES:
            return True
        return user.id in group.member_ids
    return user.role in group.allowed_roles


def visible_groups(groups: list[Group], user: User | None) -> list[Group]:
    if user is None:
        return []
    return [g for g in groups if can_access_group(g, user)]


def member_role(group: Group, user_id: str) -> str | None:
    for r in group.custom_roles:
        if r.user_id == user_id:
            return r.role
    return None


def can_moderate(group: Group, user: User) -> bool:
    """Site admins and group admins or coordinators can post and clean up."""
    return user.role == "admin" or member_role(group, user.id) in ("admin", "coordinator")


def can_administer(group: Group, user: User) -> bool:
    """Removing members is reserved for site admins and group admins."""
    return user.role == "admin" or member_role(group, user.id) == "admin"


def group_members(group: Group, roster: list[Member]) -> list[Member]:
    members = []
    for m in roster:
        if m.id in group.excluded_user_ids:
            continue
        if group.member_ids:
            if m.id in group.member_ids or m.role == "admin":
                members.append(m)
        elif m.role in group.allowed_roles:
            members.append(m)
    return members


def search_groups(groups: list[Group], query: str) -> list[Group]:
    if not query:
        return list(groups)
    q = query.lower()
    return [
        g for g in groups
        if q in g.name.lower()
        or q in (g.branch_identifier or "").lower()
        or q in (g.batch_identifier or "").lower()
    ]


def parse_member_csv(text: str) -> list[str]:
    """Emails from the first column of every row after the header."""
    emails = []
    for line in text.splitlines()[1:]:
        line = line.strip()
        if not line:
            continue
        first = line.split(",")[0].strip()
        if first:
            emails.append(first)
    return emails


def resolve_member_ids(emails: list[str], roster: list[Member]) -> list[str]:
    wanted = set(emails)
    return [m.id for m in roster if m.email in wanted]


def import_members_csv(store: DataStore, group_id: str, text: str) -> list[str]:
    """Whitelist every roster member whose email appears in the CSV."""
    store.get_group(group_id)
    emails = parse_member_csv(text)
    ids = resolve_member_ids(emails, store.roster())
    if ids:
        store.bulk_add_group_members(group_id, ids)
        logger.info("Added %d members to group %s from CSV", len(ids), group_id)
    else:
        logger.warning("No roster matches for %d CSV emails", len(emails))
    return ids
