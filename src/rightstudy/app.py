"""Interactive CLI application."""
import asyncio
import threading
from dataclasses import fields
from types import UnionType
from typing import Union, get_args, get_origin, get_type_hints

from rich.console import Console, Group as RenderGroup
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt, Confirm
from rich.table import Table
from rich.text import Text

from rightstudy.audio import level_bars
from rightstudy.catalog import (
    ALL, PRICE_BANDS, SORT_OPTIONS, TECHNICAL_SUB_CATEGORIES, assignments_for, average_rating,
    browse_courses, course_reviews, enrolled_courses, featured_courses, filter_admin_courses,
    is_best_seller, parse_price, parse_syllabus, share_links,
)
from rightstudy.chatbot import ChatAssistant, course_tutor, general_assistant
from rightstudy.config import Settings, configure_logging
from rightstudy.groups import (
    MEMBER_TEMPLATE_CSV, can_administer, can_moderate, group_members, import_members_csv,
    member_role, search_groups, visible_groups,
)
from rightstudy.models import (
    COURSE_TYPES, GROUP_MEMBER_ROLES, GROUP_TYPES, STAFF_ROLES, SUB_CATEGORIES, USER_ROLES,
    Announcement, Assignment, Course, Faculty, Group, GroupAnnouncement, GroupFile, Meeting,
    Review, StaffProfile, Student,
)
from rightstudy.seed import create_store
from rightstudy.store import DataStore, NotFoundError, new_id, today
from rightstudy.voice import CONNECTED, STATUS_MESSAGES, LiveVoiceAgent

console = Console()

EXIT_WORDS = ("q", "menu")
SITE_URL = "https://rightstudy.com"


class SessionExitRequested(Exception):
    """Raised when the user leaves a sub-session with 'q' or 'menu'."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str] | None = None, default=None) -> int:
    while True:
        kwargs = {} if default is None else {"default": str(default)}
        answer = session_prompt(prompt, **kwargs)
        if choices and answer not in choices:
            console.print(f"[red]Choose one of: {', '.join(choices)}[/red]")
            continue
        try:
            return int(answer)
        except ValueError:
            console.print("[red]Please enter a number.[/red]")


def show_welcome(store: DataStore):
    s = store.site_settings
    console.print(Panel(
        f"[bold]{s.brand_name}[/bold] [dim]{s.brand_subtitle}[/dim]\n{s.hero_subtitle}",
        title="Welcome", border_style="blue",
    ))


def show_menu(store: DataStore):
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("home", "Institute overview"),
        ("courses", "Browse programs"),
        ("course", "Course details, enrollment and AI tutor"),
        ("chat", "Ask the AI assistant"),
        ("voice", "Talk to the live AI tutor"),
    ]
    if store.user:
        commands.append(("portal", f"Portal for {store.user.name}"))
        if store.user.role == "admin":
            commands.append(("admin", "Admin panel"))
        commands.append(("logout", "Sign out"))
    else:
        commands.append(("login", "Portal login"))
    commands.append(("quit", "Exit"))
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def course_table(courses: list[Course], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Course", style="cyan")
    table.add_column("Category")
    table.add_column("Duration")
    table.add_column("Price", justify="right")
    for c in courses:
        name = c.title + (" [orange1](Best Seller)[/orange1]" if is_best_seller(c) else "")
        category = c.category + (f" / {c.sub_category}" if c.sub_category else "")
        table.add_row(c.id, name, category, c.duration, c.price or "Free")
    return table


# ---------------------------------------------------------------------------
# Public pages
# ---------------------------------------------------------------------------

def cmd_home(store: DataStore):
    s = store.site_settings
    console.print(Panel(
        f"[bold]{s.hero_title}[/bold]\n\n{s.hero_description}",
        title=s.hero_subtitle, border_style="blue",
    ))
    console.print(f"\n[bold]{s.about_subtitle}:[/bold] {s.about_title}\n[dim]{s.about_description}[/dim]\n")
    for title, desc in ((s.feature1_title, s.feature1_desc), (s.feature2_title, s.feature2_desc),
                        (s.feature3_title, s.feature3_desc)):
        console.print(f"  [green]✓[/green] [bold]{title}[/bold]: {desc}")
    console.print()
    console.print(course_table(featured_courses(store.courses), s.featured_section_title))
    console.print(f"[dim]{s.featured_section_subtitle}[/dim]")
    console.print(f"\n[dim]{s.footer_description}\n{s.address} | {s.contact_phone} | {s.contact_email}[/dim]")


def cmd_courses(store: DataStore):
    s = store.site_settings
    console.print(f"\n[bold]{s.courses_title}[/bold]\n[dim]{s.courses_subtitle}[/dim]")
    category = Prompt.ask("Category", choices=[ALL, *COURSE_TYPES], default=ALL)
    sub_category = ALL
    if category in (ALL, "TECHNICAL"):
        sub_category = Prompt.ask("Specialization", choices=[ALL, *TECHNICAL_SUB_CATEGORIES], default=ALL)
    price_band = Prompt.ask("Price (LOW <10k, MEDIUM 10k-25k, HIGH >25k)", choices=list(PRICE_BANDS), default=ALL)
    search = Prompt.ask("Search", default="")
    sort_by = Prompt.ask("Sort by", choices=list(SORT_OPTIONS), default="default")
    courses = browse_courses(store.courses, category, sub_category, price_band, search, sort_by)
    if not courses:
        console.print("[yellow]No courses found matching your criteria.[/yellow]")
        return
    console.print(course_table(courses, f"{len(courses)} programs"))


def show_course_details(store: DataStore, course: Course):
    s = store.site_settings
    header = f"{course.category}" + (f" • {course.sub_category}" if course.sub_category else "")
    console.print(Panel(
        f"[dim]{header}[/dim]\n\n{course.description}\n\n"
        f"[bold]Duration:[/bold] {course.duration}   [bold]Fee:[/bold] {course.price or 'Free'}",
        title=course.title, border_style="blue",
    ))
    if course.video_url:
        console.print(f"[dim]Preview video: {course.video_url}[/dim]")
    if course.faculty_id:
        teacher = next((f for f in store.faculty if f.id == course.faculty_id), None)
        if teacher:
            console.print(f"[bold]Instructor:[/bold] {teacher.name} ({teacher.specialization})")
    if course.syllabus:
        console.print("\n[bold]Syllabus[/bold]")
        for i, module in enumerate(course.syllabus, 1):
            console.print(f"  {i}. {module}")
    if course.faqs:
        console.print("\n[bold]FAQs[/bold]")
        for faq in course.faqs:
            console.print(f"  [cyan]Q:[/cyan] {faq.question}\n  [green]A:[/green] {faq.answer}")
    console.print(f"\n[bold]Certification[/bold]\n[dim]{s.certification_text}[/dim]")

    reviews = course_reviews(store.reviews, course.id)
    avg = average_rating(reviews)
    console.print(f"\n[bold]Reviews[/bold] ({len(reviews)}) | average {avg if avg is not None else 'N/A'}")
    for r in reviews:
        console.print(f"  [yellow]{'★' * r.rating}{'☆' * (5 - r.rating)}[/yellow] {r.user_name} [dim]{r.date}[/dim]")
        console.print(f"    {r.comment}")

    links = share_links(course, f"{SITE_URL}/courses/{course.id}", s.brand_name)
    console.print("\n[bold]Share[/bold]")
    for network, url in links.items():
        console.print(f"  [cyan]{network:<9}[/cyan] {url}")


def run_chat_session(assistant: ChatAssistant, title: str):
    if not assistant.available:
        console.print("[yellow]The AI assistant is not configured. Set GEMINI_API_KEY to enable it.[/yellow]")
        return
    console.print(Panel(assistant.messages[0].text, title=title, border_style="cyan"))
    console.print("[dim]Type 'q' to leave the chat.[/dim]")
    try:
        while True:
            text = session_prompt("[bold]You[/bold]")
            if not text.strip():
                continue
            console.print("[bold cyan]AI:[/bold cyan] ", end="")
            for token in assistant.send(text):
                console.print(token, end="", markup=False, highlight=False)
            console.print()
            last = assistant.messages[-1]
            if last.text == assistant.apology:
                console.print(f"[red]{last.text}[/red]")
    except SessionExitRequested:
        return


def cmd_course(store: DataStore, settings: Settings):
    course_id = Prompt.ask("Course ID")
    try:
        course = store.get_course(course_id)
    except NotFoundError:
        console.print("[red]Course not found.[/red] Use 'courses' to see the catalog.")
        return
    show_course_details(store, course)
    tutor = None
    while True:
        action = Prompt.ask("\nAction", choices=["enroll", "review", "tutor", "back"], default="back")
        if action == "back":
            return
        if action == "tutor":
            tutor = tutor or course_tutor(course, settings)
            run_chat_session(tutor, f"{course.title}: AI Tutor")
            continue
        if store.user is None:
            console.print("[yellow]Please log in first.[/yellow]")
            cmd_login(store)
            if store.user is None:
                continue
        if action == "enroll":
            if store.enroll_in_course(course.id):
                console.print(f"[green]Enrolled in {course.title}![/green]")
            else:
                console.print("[dim]You are already enrolled in this course.[/dim]")
        elif action == "review":
            rating = IntPrompt.ask("Rating", choices=["1", "2", "3", "4", "5"], default=5)
            comment = Prompt.ask("Comment")
            store.add_review(Review(
                id=new_id("rev"), course_id=course.id, user_id=store.user.id,
                user_name=store.user.name, rating=rating, comment=comment, date=today(),
            ))
            console.print("[green]Thanks for your review![/green]")


def cmd_chat(settings: Settings, assistant: ChatAssistant | None = None):
    run_chat_session(assistant or general_assistant(settings), "RightStudy AI Assistant")


# ---------------------------------------------------------------------------
# Voice tutor
# ---------------------------------------------------------------------------

def render_voice(agent: LiveVoiceAgent, bars: list[int]):
    height = max(bars) if any(bars) else 1
    rows = []
    for level in range(height, 0, -1):
        rows.append("".join("█" if b >= level else " " for b in bars))
    visual = Text("\n".join(rows) if agent.is_active else "Visualizer inactive", style="magenta")
    state = f"[bold]{STATUS_MESSAGES[agent.status]}[/bold]"
    if agent.status == CONNECTED:
        state += "  [red](muted)[/red]" if agent.is_muted else "  [green](mic on)[/green]"
    return Panel(RenderGroup(Text.from_markup(state), visual),
                 title="AI Tutor Live", subtitle="m+Enter: mute/unmute | Enter: end call")


def cmd_voice(settings: Settings):
    bars = {"levels": [0] * 32}
    agent = LiveVoiceAgent(settings, on_level=lambda samples: bars.__setitem__("levels", level_bars(samples)))
    console.print(Panel(STATUS_MESSAGES[agent.status], title="AI Tutor Live", border_style="magenta"))
    if not Confirm.ask("Start conversation?", default=True):
        return

    done = threading.Event()

    def read_controls():
        while not done.is_set():
            line = input().strip().lower()
            if line == "m":
                agent.toggle_mute()
                continue
            agent.stop()
            return

    controls = threading.Thread(target=read_controls, daemon=True)
    controls.start()
    with Live(get_renderable=lambda: render_voice(agent, bars["levels"]), console=console, refresh_per_second=8):
        status = asyncio.run(agent.run())
    done.set()
    console.print(f"[dim]{STATUS_MESSAGES[status]}[/dim]")
    if controls.is_alive():
        console.print("[dim]Call ended. Press Enter to return to the menu.[/dim]")
        controls.join()


# ---------------------------------------------------------------------------
# Portal
# ---------------------------------------------------------------------------

def cmd_login(store: DataStore):
    s = store.site_settings
    console.print(Panel(s.portal_subtitle, title=s.portal_title, border_style="blue"))
    role = Prompt.ask("Role", choices=list(USER_ROLES), default="student")
    email = Prompt.ask("Email")
    user = store.login(email.strip(), role)
    console.print(f"[green]Welcome, {user.name}![/green] [dim]({user.role})[/dim]")


def cmd_logout(store: DataStore):
    store.logout()
    console.print("[dim]Signed out.[/dim]")


def show_dashboard(store: DataStore):
    user = store.user
    groups = visible_groups(store.groups, user)
    console.print(Panel(f"Welcome back, [bold]{user.name}[/bold]", title="Dashboard", border_style="blue"))
    if user.role == "student":
        pending = [a for a in assignments_for(store.assignments, user) if a.status == "Pending"]
        console.print(f"  Enrolled Courses: [bold]{len(user.enrolled_courses)}[/bold]  |  "
                      f"Pending Assignments: [bold]{len(pending)}[/bold]  |  "
                      f"Active Groups: [bold]{len(groups)}[/bold]")
    else:
        console.print(f"  Role: [bold]{user.role.capitalize()}[/bold]  |  Active Groups: [bold]{len(groups)}[/bold]")
    live = [m for m in store.meetings if m.is_live and any(g.id == m.group_id for g in groups)]
    for m in live:
        console.print(f"  [red]● LIVE[/red] {m.title} [dim]({m.host_name}, {m.group_id})[/dim]")
    if store.announcements:
        console.print("\n[bold]Announcements[/bold]")
        for a in store.announcements:
            console.print(f"  [cyan]{a.title}[/cyan] [dim]{a.date}, {a.author}[/dim]\n    {a.content}")


def show_my_courses(store: DataStore):
    courses = enrolled_courses(store.courses, store.user)
    if not courses:
        console.print("[yellow]You are not enrolled in any course yet.[/yellow]")
        return
    console.print(course_table(courses, "My Courses"))


def run_assignments(store: DataStore):
    items = assignments_for(store.assignments, store.user)
    if not items:
        console.print("[yellow]No assignments for your courses.[/yellow]")
        return
    table = Table(title="Assignments")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Course")
    table.add_column("Due")
    table.add_column("Status")
    for a in items:
        status = a.status + (f" ({a.grade})" if a.grade else "")
        table.add_row(a.id, a.title, a.course_id, a.due_date, status)
    console.print(table)
    pending = [a.id for a in items if a.status == "Pending"]
    if pending and Confirm.ask("Upload a submission?", default=False):
        assignment_id = Prompt.ask("Assignment ID", choices=pending)
        store.submit_assignment(assignment_id)
        console.print("[green]Submitted.[/green]")


def show_profile(store: DataStore):
    user = store.user
    console.print(Panel(
        f"[bold]{user.name}[/bold]\n{user.email}\nRole: {user.role}\nID: {user.id}",
        title="Profile", border_style="blue",
    ))


def show_group(store: DataStore, group: Group):
    console.print(Panel(group.description, title=group.name, border_style="cyan"))
    meeting = store.live_meeting(group.id)
    if meeting:
        console.print(f"[red]● LIVE[/red] {meeting.title} hosted by {meeting.host_name} "
                      f"({meeting.participants} participants)")
    for a in group.announcements:
        console.print(f"  [yellow]📢 {a.content}[/yellow] [dim]{a.date}, {a.author_name}[/dim]")


def show_messages(store: DataStore, group_id: str, limit: int = 20):
    messages = store.messages_for(group_id)
    if not messages:
        console.print("[dim]No messages yet. Say hello![/dim]")
    for m in messages[-limit:]:
        when = m.timestamp[11:16]
        body = f"📎 {m.file_name}" if m.type == "file" else m.content
        console.print(f"[dim]{when}[/dim] [bold]{m.sender_name}[/bold] [dim]({m.sender_role})[/dim]: {body} [dim]#{m.id}[/dim]")


def show_files(group: Group):
    if not group.files:
        console.print("[dim]No files shared yet.[/dim]")
        return
    table = Table(title="Files")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Uploaded by")
    table.add_column("Date")
    table.add_column("Size", justify="right")
    for f in group.files:
        table.add_row(f.id, f.name, f"{f.uploaded_by} ({f.uploader_role})", f.date, f.size or "")
    console.print(table)


def show_members(store: DataStore, group: Group):
    table = Table(title="Members")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Role")
    table.add_column("Group role")
    for m in group_members(group, store.roster()):
        table.add_row(m.id, m.name, m.role, member_role(group, m.id) or "")
    console.print(table)


def handle_group_command(store: DataStore, group: Group, text: str):
    user = store.user
    command, _, arg = text.strip().partition(" ")
    if command == "/refresh":
        show_group(store, group)
        show_messages(store, group.id)
    elif command == "/files":
        show_files(group)
    elif command == "/upload":
        name = Prompt.ask("File name to upload (e.g. assignment.pdf)")
        store.add_group_file(group.id, GroupFile(
            id=new_id("gf"), name=name, url="#", uploaded_by=user.name,
            uploader_role=user.role, date=today(), size="1.2 MB",
        ))
        console.print("[green]Uploaded.[/green]")
    elif command == "/attach":
        name = Prompt.ask("File name to attach")
        store.send_message(group.id, name, "file", name)
    elif command == "/members":
        show_members(store, group)
    elif command == "/announce":
        if not can_moderate(group, user):
            console.print("[red]Only group admins and coordinators can post announcements.[/red]")
            return
        content = Prompt.ask("Announcement")
        store.add_group_announcement(group.id, GroupAnnouncement(
            id=new_id("ga"), content=content, date=today(), author_name=user.name,
        ))
    elif command == "/meeting":
        meeting = store.live_meeting(group.id)
        if meeting:
            console.print(f"[green]Joining {meeting.title}...[/green]")
        elif user.role in ("teacher", "admin") or can_moderate(group, user):
            title = Prompt.ask("Meeting title", default="Live Class")
            store.toggle_meeting(group.id, True, title)
            console.print(f"[green]{title} is live.[/green]")
        else:
            console.print("[yellow]No live meeting right now.[/yellow]")
    elif command == "/end":
        if not (user.role in ("teacher", "admin") or can_moderate(group, user)):
            console.print("[red]You cannot end this meeting.[/red]")
            return
        store.toggle_meeting(group.id, False)
        console.print("[dim]Meeting ended.[/dim]")
    elif command == "/delete":
        if not can_moderate(group, user):
            console.print("[red]Only moderators can delete messages.[/red]")
            return
        store.delete_message(group.id, arg)
    elif command == "/remove":
        if not can_administer(group, user):
            console.print("[red]Only group admins can remove members.[/red]")
            return
        if Confirm.ask(f"Remove {arg} from the group?", default=False):
            store.remove_group_member(group.id, arg)
    else:
        store.send_message(group.id, text)
        show_messages(store, group.id, limit=5)


def run_group_session(store: DataStore, group_id: str):
    """Chat inside a group until the user types 'q'."""
    console.print("[dim]Type a message to send it, or a command: /files /upload /attach /members "
                  "/announce /meeting /end /delete <id> /remove <user id> /refresh. 'q' leaves.[/dim]")
    try:
        while True:
            group = store.get_group(group_id)
            text = session_prompt(f"[bold]{group.batch_identifier or group.branch_identifier or group.name}[/bold]")
            if not text.strip():
                continue
            try:
                handle_group_command(store, group, text)
            except NotFoundError as e:
                console.print(f"[yellow]{e.args[0]}[/yellow]")
    except SessionExitRequested:
        return


def cmd_groups(store: DataStore):
    groups = visible_groups(store.groups, store.user)
    if not groups:
        console.print("[yellow]You are not a member of any group yet.[/yellow]")
        return
    table = Table(title="My Groups")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Live")
    for g in groups:
        table.add_row(g.id, g.name, g.type, "[red]●[/red]" if store.live_meeting(g.id) else "")
    console.print(table)
    group_id = Prompt.ask("Open group", choices=[g.id for g in groups])
    group = store.get_group(group_id)
    show_group(store, group)
    show_messages(store, group_id)
    run_group_session(store, group_id)


def cmd_portal(store: DataStore):
    if store.user is None:
        cmd_login(store)
    show_dashboard(store)
    tabs = ["dashboard", "groups", "profile", "back"]
    if store.user.role == "student":
        tabs[1:1] = ["courses", "assignments"]
    while True:
        tab = Prompt.ask("\nPortal", choices=tabs, default="back")
        if tab == "back":
            return
        elif tab == "dashboard":
            show_dashboard(store)
        elif tab == "courses":
            show_my_courses(store)
        elif tab == "assignments":
            run_assignments(store)
        elif tab == "groups":
            cmd_groups(store)
        elif tab == "profile":
            show_profile(store)


# ---------------------------------------------------------------------------
# Admin CMS
# ---------------------------------------------------------------------------

ADMIN_TABS = {
    "courses": ("courses", "course"),
    "announcements": ("announcements", "announcement"),
    "faculty": ("faculty", "faculty"),
    "students": ("students", "student"),
    "staff": ("staff", "staff"),
    "groups": ("groups", "group"),
    "assignments": ("assignments", "assignment"),
    "meetings": ("meetings", "meeting"),
    "reviews": ("reviews", "review"),
}

TABLE_COLUMNS = {
    "courses": ("title", "category", "price"),
    "announcements": ("title", "date", "author"),
    "faculty": ("name", "email", "specialization"),
    "students": ("name", "email", "status", "enrolled_courses"),
    "staff": ("name", "role", "department", "status"),
    "groups": ("name", "type", "allowed_roles"),
    "assignments": ("title", "course_id", "due_date", "status"),
    "meetings": ("title", "group_id", "status", "date", "time"),
    "reviews": ("course_id", "user_name", "rating", "comment"),
}


def show_admin_overview(store: DataStore):
    console.print(Panel("Welcome back, Administrator.", title="Overview", border_style="blue"))
    console.print(f"  Students: [bold]{len(store.students)}[/bold]  |  Courses: [bold]{len(store.courses)}[/bold]  |  "
                  f"Staff: [bold]{len(store.faculty) + len(store.staff)}[/bold]  |  Groups: [bold]{len(store.groups)}[/bold]")
    live = [m for m in store.meetings if m.is_live]
    console.print(f"  Live meetings: [bold]{len(live)}[/bold]")


def record_table(tab: str, records: list) -> Table:
    table = Table(title=tab.capitalize())
    table.add_column("ID", style="dim")
    columns = TABLE_COLUMNS[tab]
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for r in records:
        cells = []
        for col in columns:
            value = getattr(r, col)
            cells.append(", ".join(value) if isinstance(value, list) else str(value if value is not None else ""))
        table.add_row(r.id, *cells)
    return table


NESTED_FIELDS = ("id", "faqs", "files", "announcements", "custom_roles")


def coerce_value(field_type, raw: str):
    """Convert prompt text to a field's declared type."""
    if get_origin(field_type) in (Union, UnionType) and type(None) in get_args(field_type):
        if not raw.strip():
            return None
        field_type = next(t for t in get_args(field_type) if t is not type(None))
    if field_type is bool:
        return raw.strip().lower() in ("1", "true", "yes", "y")
    if field_type is int:
        return int(raw)
    if get_origin(field_type) is list:
        return [part.strip() for part in raw.split(",") if part.strip()]
    return raw


def prompt_course() -> Course:
    title = Prompt.ask("Title")
    price = Prompt.ask("Price (e.g. ₹15,000)", default="")
    syllabus = Prompt.ask("Syllabus (one module per ';')", default="")
    return Course(
        id=new_id("c"),
        title=title,
        category=Prompt.ask("Category", choices=list(COURSE_TYPES), default="TECHNICAL"),
        sub_category=Prompt.ask("Specialization", choices=list(SUB_CATEGORIES), default="General"),
        description=Prompt.ask("Description"),
        duration=Prompt.ask("Duration", default="1 Year"),
        price=price or None,
        price_value=parse_price(price),
        popularity=IntPrompt.ask("Popularity (0-100)", default=50),
        syllabus=parse_syllabus(syllabus.replace(";", "\n")),
    )


def prompt_record(tab: str, store: DataStore):
    if tab == "courses":
        return prompt_course()
    if tab == "announcements":
        return Announcement(id=new_id("a"), title=Prompt.ask("Title"), content=Prompt.ask("Content"),
                            date=today(), author=store.user.name)
    if tab == "faculty":
        return Faculty(id=new_id("f"), name=Prompt.ask("Name"), email=Prompt.ask("Email"),
                       specialization=Prompt.ask("Specialization"), bio=Prompt.ask("Bio", default=""))
    if tab == "students":
        return Student(id=new_id("s"), name=Prompt.ask("Name"), email=Prompt.ask("Email"),
                       phone=Prompt.ask("Phone", default=""))
    if tab == "staff":
        return StaffProfile(id=new_id("st"), name=Prompt.ask("Name"), email=Prompt.ask("Email"),
                            role=Prompt.ask("Role", choices=list(STAFF_ROLES), default="employee"),
                            department=Prompt.ask("Department", default="") or None)
    if tab == "groups":
        roles = Prompt.ask("Allowed roles (comma separated)", default="admin,student,teacher")
        return Group(id=new_id("g"), name=Prompt.ask("Name"), description=Prompt.ask("Description", default=""),
                     type=Prompt.ask("Type", choices=list(GROUP_TYPES), default="general"),
                     allowed_roles=[r.strip() for r in roles.split(",") if r.strip() in USER_ROLES])
    if tab == "assignments":
        return Assignment(id=new_id("as"), title=Prompt.ask("Title"),
                          course_id=Prompt.ask("Course", choices=[c.id for c in store.courses]),
                          due_date=Prompt.ask("Due date", default=today()))
    if tab == "meetings":
        return Meeting(id=new_id("mt"), title=Prompt.ask("Title"),
                       group_id=Prompt.ask("Group", choices=[g.id for g in store.groups]),
                       host_name=store.user.name, date=Prompt.ask("Date", default=today()),
                       time=Prompt.ask("Time", default="10:00"), duration=IntPrompt.ask("Duration (min)", default=60))
    return None


def edit_record(store: DataStore, tab: str, record):
    editable = [f.name for f in fields(record) if f.name not in NESTED_FIELDS]
    name = Prompt.ask("Field", choices=editable)
    current = getattr(record, name)
    shown = ", ".join(current) if isinstance(current, list) else str(current if current is not None else "")
    value = coerce_value(get_type_hints(type(record))[name], Prompt.ask(f"New {name}", default=shown))
    changes = {name: value}
    if tab == "courses" and name == "price":
        changes["price_value"] = parse_price(value)
    getattr(store, f"update_{ADMIN_TABS[tab][1]}")(record.id, **changes)


def run_admin_group(store: DataStore, group_id: str):
    group = store.get_group(group_id)
    show_group(store, group)
    while True:
        action = Prompt.ask(
            "Group", choices=["files", "upload", "announce", "members", "import", "template", "role",
                              "remove", "chat", "end-meeting", "back"], default="back",
        )
        group = store.get_group(group_id)
        if action == "back":
            return
        elif action == "files":
            show_files(group)
            if group.files and Confirm.ask("Delete a file?", default=False):
                store.delete_group_file(group_id, Prompt.ask("File ID", choices=[f.id for f in group.files]))
        elif action == "upload":
            store.add_group_file(group_id, GroupFile(
                id=new_id("gf"), name=Prompt.ask("File name"), url="#", uploaded_by="Admin",
                uploader_role="admin", date=today(), size="1.0 MB",
            ))
        elif action == "announce":
            for a in group.announcements:
                console.print(f"  [dim]{a.id}[/dim] {a.content}")
            if group.announcements and Confirm.ask("Delete one?", default=False):
                store.delete_group_announcement(group_id, Prompt.ask("ID", choices=[a.id for a in group.announcements]))
            else:
                store.add_group_announcement(group_id, GroupAnnouncement(
                    id=new_id("ga"), content=Prompt.ask("Announcement"), date=today(), author_name="Admin",
                ))
        elif action == "members":
            show_members(store, group)
        elif action == "import":
            path = Prompt.ask("CSV file path")
            try:
                with open(path, encoding="utf-8") as fh:
                    added = import_members_csv(store, group_id, fh.read())
            except OSError as e:
                console.print(f"[red]Could not read {path}: {e}[/red]")
                continue
            if added:
                console.print(f"[green]Added {len(added)} members to the group.[/green]")
            else:
                console.print("[yellow]No matching users found for emails in CSV.[/yellow]")
        elif action == "template":
            console.print(MEMBER_TEMPLATE_CSV, markup=False)
        elif action == "role":
            user_id = Prompt.ask("User ID")
            store.set_group_member_role(group_id, user_id, Prompt.ask("Role", choices=list(GROUP_MEMBER_ROLES)))
        elif action == "remove":
            user_id = Prompt.ask("User ID")
            if Confirm.ask("Are you sure you want to remove this member from the group?", default=False):
                store.remove_group_member(group_id, user_id)
        elif action == "chat":
            show_messages(store, group_id)
            message_id = Prompt.ask("Message ID to delete (blank to skip)", default="")
            if message_id:
                store.delete_message(group_id, message_id)
        elif action == "end-meeting":
            if Confirm.ask("Are you sure you want to forcefully end this live meeting?", default=False):
                store.toggle_meeting(group_id, False)


def run_admin_tab(store: DataStore, tab: str):
    attr, kind = ADMIN_TABS[tab]
    records = getattr(store, attr)
    if tab == "courses":
        category = Prompt.ask("Category", choices=[ALL, *COURSE_TYPES], default=ALL)
        sub_category = Prompt.ask("Specialization", choices=[ALL, *SUB_CATEGORIES], default=ALL)
        band = Prompt.ask("Price", choices=list(PRICE_BANDS), default=ALL)
        records = filter_admin_courses(records, category, sub_category, band)
    elif tab == "groups":
        records = search_groups(records, Prompt.ask("Search groups", default=""))
    console.print(record_table(tab, records))

    actions = ["add", "edit", "delete", "back"]
    if tab == "reviews":
        actions.remove("add")
        actions.remove("edit")
    extra = {"students": ["toggle", "unenroll"], "staff": ["toggle"], "faculty": ["assign"],
             "groups": ["manage"], "meetings": ["end"]}.get(tab, [])
    action = Prompt.ask("Action", choices=extra + actions, default="back")
    if action == "back":
        return
    if action == "add":
        getattr(store, f"add_{kind}")(prompt_record(tab, store))
        console.print("[green]Saved.[/green]")
        return

    record_id = Prompt.ask("ID", choices=[r.id for r in records])
    record = next(r for r in records if r.id == record_id)
    if action == "edit":
        edit_record(store, tab, record)
    elif action == "delete":
        if Confirm.ask(f"Are you sure you want to delete this {kind}? This action cannot be undone.", default=False):
            getattr(store, f"delete_{kind}")(record_id)
    elif action == "toggle":
        new_status = "Inactive" if record.status == "Active" else "Active"
        if Confirm.ask(f"Change status of {record.name} to {new_status}?", default=True):
            getattr(store, f"update_{kind}")(record_id, status=new_status)
    elif action == "unenroll":
        if record.enrolled_courses:
            course_id = Prompt.ask("Course", choices=record.enrolled_courses)
            store.remove_enrollment(record_id, course_id)
    elif action == "assign":
        current = [c.id for c in store.courses if c.faculty_id == record_id]
        raw = Prompt.ask("Course IDs taught (comma separated)", default=",".join(current))
        store.assign_faculty_courses(record_id, [c.strip() for c in raw.split(",") if c.strip()])
    elif action == "manage":
        run_admin_group(store, record_id)
    elif action == "end":
        store.toggle_meeting(record.group_id, False)
    console.print("[green]Done.[/green]")


def run_settings(store: DataStore):
    s = store.site_settings
    table = Table(title="Site Settings")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for f in fields(s):
        table.add_row(f.name, getattr(s, f.name))
    console.print(table)
    name = Prompt.ask("Field to change (blank to keep)", default="")
    if name:
        store.update_site_settings(**{name: Prompt.ask("New value", default=getattr(s, name, ""))})
        console.print("[green]Settings saved successfully![/green]")


def cmd_admin(store: DataStore):
    if store.user is None or store.user.role != "admin":
        console.print("[red]Admin access only.[/red] Log in with the admin role.")
        return
    show_admin_overview(store)
    while True:
        tab = Prompt.ask("\nAdmin", choices=["dashboard", *ADMIN_TABS, "settings", "back"], default="back")
        if tab == "back":
            return
        try:
            if tab == "dashboard":
                show_admin_overview(store)
            elif tab == "settings":
                run_settings(store)
            else:
                run_admin_tab(store, tab)
        except (NotFoundError, ValueError) as e:
            console.print(f"[red]{e}[/red]")


def main():
    settings = Settings()
    configure_logging(settings.log_level)
    store = create_store()
    show_welcome(store)

    assistant = None
    while True:
        show_menu(store)
        choice = Prompt.ask("\n[bold]>[/bold]", default="home").strip().lower()
        try:
            if choice == "home":
                cmd_home(store)
            elif choice == "courses":
                cmd_courses(store)
            elif choice == "course":
                cmd_course(store, settings)
            elif choice == "chat":
                assistant = assistant or general_assistant(settings)
                cmd_chat(settings, assistant)
            elif choice == "voice":
                cmd_voice(settings)
            elif choice == "login":
                cmd_login(store)
            elif choice == "logout":
                cmd_logout(store)
            elif choice == "portal":
                cmd_portal(store)
            elif choice == "admin":
                cmd_admin(store)
            elif choice in ("quit", "exit", "q"):
                console.print(f"[dim]Thank you for visiting {store.site_settings.brand_name}![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
