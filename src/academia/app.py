"""Interactive CLI application."""
import logging
from datetime import date

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from academia.config import get_settings
from academia.errors import GenerationError, ValidationError
from academia.generate import FlashcardGenerator, generate_for_note
from academia.models import CardStatus, CourseSchedule, Term, ThemeColor, Weekday
from academia.remote import JsonBinClient
from academia.seed import default_state
from academia.store import Store
from academia.sync import SyncEngine
from academia.views import (
    WORK_WEEK, calendar_month, cards_in_deck, course_lookup, dashboard_summary, grade_color,
    group_decks, group_notes, performance_by_course, shift_month, weekly_timetable,
)

console = Console()
logger = logging.getLogger(__name__)

WEEK_HEADER = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

# Theme colors rich has no name for
RICH_STYLES = {ThemeColor.INDIGO: "slate_blue1", ThemeColor.PINK: "hot_pink"}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def style_for(color: ThemeColor) -> str:
    return RICH_STYLES.get(color, color.value)


def require_text(value: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required.")
    return value


def optional_text(value: str):
    value = (value or "").strip()
    return value or None


def optional_number(value: str, label: str):
    value = (value or "").strip()
    if not value:
        return None
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        raise ValidationError(f"{label} must be a number.") from None


def show_welcome():
    console.print(Panel(
        "[bold]RM-Academia[/bold]\n[dim]Notes, flashcards, courses and tasks[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Overview of notes, decks and tasks"),
        ("notes", "Notes by course and folder"),
        ("add-note", "Write a new note"),
        ("edit-note", "Edit a note"),
        ("delete-note", "Delete a note"),
        ("folders", "Add, rename or delete note and deck folders"),
        ("decks", "Flashcard decks by course and folder"),
        ("add-deck", "Create a deck"),
        ("delete-deck", "Delete a deck and its cards"),
        ("add-card", "Add a flashcard to a deck"),
        ("edit-card", "Edit a flashcard"),
        ("delete-card", "Delete a flashcard"),
        ("review", "Review a deck"),
        ("generate", "Generate flashcards from a note"),
        ("tasks", "Task list"),
        ("add-task", "Add a task"),
        ("toggle", "Mark a task done / not done"),
        ("grade", "Record a grade for a task"),
        ("delete-task", "Delete a task"),
        ("courses", "Course list"),
        ("add-course", "Add a course with its weekly sessions"),
        ("edit-course", "Edit a course and its weekly sessions"),
        ("delete-course", "Delete a course"),
        ("timetable", "Weekly timetable"),
        ("calendar", "Tasks by due date for a month"),
        ("performance", "Current grade per course"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def pick(label: str, records, describe) -> str:
    """Print numbered records and return the id of the chosen one."""
    records = list(records)
    if not records:
        raise ValidationError(f"No {label.lower()}s available.")
    for i, record in enumerate(records, 1):
        console.print(f"  [cyan]{i}[/cyan]) {describe(record)}")
    choice = Prompt.ask(f"Select {label.lower()}", choices=[str(i) for i in range(1, len(records) + 1)])
    return records[int(choice) - 1].id


def cmd_dashboard(store: Store):
    state = store.snapshot()
    summary = dashboard_summary(state)
    console.print(Panel(
        f"Notes: [bold]{summary.total_notes}[/bold]  |  "
        f"Decks: [bold]{summary.total_decks}[/bold]  |  "
        f"Tasks: [bold]{summary.total_tasks}[/bold]  |  "
        f"Cards to review: [bold]{summary.cards_to_review}[/bold]",
        title="Dashboard", border_style="blue",
    ))
    courses = course_lookup(state.courses)
    if summary.incomplete_tasks:
        table = Table(title="Upcoming Tasks")
        table.add_column("Task")
        table.add_column("Course", style="cyan")
        table.add_column("Due")
        for t in summary.incomplete_tasks:
            course = courses.get(t.course_id)
            table.add_row(t.title, course.code if course else "", t.due_date or "")
        console.print(table)
    if summary.recent_notes:
        console.print("\n[bold]Recent notes:[/bold]")
        for n in summary.recent_notes:
            console.print(f"  {n.title} [dim]({n.last_modified})[/dim]")
    if summary.decks_to_review:
        console.print("\n[bold]Decks to review:[/bold]")
        for d in summary.decks_to_review:
            console.print(f"  {d.name}")


def _print_grouping(title: str, grouping, state, folders, describe):
    courses = course_lookup(state.courses)
    folder_names = {f.id: f.name for f in folders}
    console.print(f"\n[bold]{title}[/bold]")
    for course_id, items in grouping.by_course.items():
        console.print(f"[cyan]{courses[course_id].code} {courses[course_id].name}[/cyan]")
        for item in items:
            console.print(f"  {describe(item)}")
    for folder_id, items in grouping.by_folder.items():
        console.print(f"[magenta]{folder_names[folder_id]}[/magenta]")
        for item in items:
            console.print(f"  {describe(item)}")
    if grouping.uncategorized:
        console.print("[dim]Uncategorized[/dim]")
        for item in grouping.uncategorized:
            console.print(f"  {describe(item)}")


def cmd_notes(store: Store):
    state = store.snapshot()
    _print_grouping(
        "Notes", group_notes(state), state, state.note_folders,
        lambda n: f"{n.title} [dim]{' '.join('#' + t for t in n.tags)} · {n.last_modified}[/dim]",
    )


def cmd_decks(store: Store):
    state = store.snapshot()
    _print_grouping(
        "Decks", group_decks(state), state, state.deck_folders,
        lambda d: f"{d.name} [dim]({len(cards_in_deck(state, d.id))} cards)[/dim]",
    )


def cmd_add_note(store: Store):
    title = require_text(Prompt.ask("Title"), "Title")
    content = Prompt.ask("Content", default="")
    tags = [t.strip() for t in Prompt.ask("Tags (comma separated)", default="").split(",") if t.strip()]
    state = store.snapshot()
    course_id = folder_id = None
    where = Prompt.ask("File under", choices=["course", "folder", "none"], default="none")
    if where == "course":
        course_id = pick("Course", state.courses, lambda c: f"{c.code} {c.name}")
    elif where == "folder":
        folder_id = pick("Folder", state.note_folders, lambda f: f.name)
    note = store.add_note(title=title, content=content, tags=tags, course_id=course_id, folder_id=folder_id)
    console.print(f"[green]Added note {note.title}[/green]")


def cmd_edit_note(store: Store):
    state = store.snapshot()
    note_id = pick("Note", state.notes, lambda n: n.title)
    note = next(n for n in state.notes if n.id == note_id)
    title = require_text(Prompt.ask("Title", default=note.title), "Title")
    content = Prompt.ask("Content", default=note.content)
    tags = Prompt.ask("Tags (comma separated)", default=", ".join(note.tags))
    store.update_note(
        note_id,
        title=title,
        content=content,
        tags=[t.strip() for t in tags.split(",") if t.strip()],
    )
    console.print("[green]Note saved.[/green]")


def cmd_delete_note(store: Store):
    note_id = pick("Note", store.snapshot().notes, lambda n: n.title)
    if Confirm.ask("Delete this note?", default=False):
        store.delete_note(note_id)
        console.print("[green]Note deleted.[/green]")


def cmd_folders(store: Store):
    """Add, rename or delete a note or deck folder."""
    kind = Prompt.ask("Folder type", choices=["note", "deck"], default="note")
    action = Prompt.ask("Action", choices=["add", "rename", "delete"], default="add")
    if kind == "note":
        folders = store.snapshot().note_folders
        add, update, delete = store.add_note_folder, store.update_note_folder, store.delete_note_folder
    else:
        folders = store.snapshot().deck_folders
        add, update, delete = store.add_deck_folder, store.update_deck_folder, store.delete_deck_folder

    if action == "add":
        folder = add(require_text(Prompt.ask("Folder name"), "Folder name"))
        console.print(f"[green]Added folder {folder.name}[/green]")
    elif action == "rename":
        folder_id = pick("Folder", folders, lambda f: f.name)
        update(folder_id, name=require_text(Prompt.ask("New name"), "Folder name"))
        console.print("[green]Folder renamed.[/green]")
    else:
        folder_id = pick("Folder", folders, lambda f: f.name)
        # Contents are kept and moved out of the folder.
        if Confirm.ask(f"Delete this folder? Its {kind}s become uncategorized.", default=False):
            delete(folder_id)
            console.print("[green]Folder deleted.[/green]")


def cmd_add_deck(store: Store):
    name = require_text(Prompt.ask("Deck name"), "Deck name")
    state = store.snapshot()
    course_id = folder_id = None
    where = Prompt.ask("File under", choices=["course", "folder", "none"], default="none")
    if where == "course":
        course_id = pick("Course", state.courses, lambda c: f"{c.code} {c.name}")
    elif where == "folder":
        folder_id = pick("Folder", state.deck_folders, lambda f: f.name)
    deck = store.add_deck(name, course_id=course_id, folder_id=folder_id)
    console.print(f"[green]Added deck {deck.name}[/green]")


def cmd_add_card(store: Store):
    deck_id = pick("Deck", store.snapshot().decks, lambda d: d.name)
    front = require_text(Prompt.ask("Front"), "Front")
    back = require_text(Prompt.ask("Back"), "Back")
    store.add_flashcard(deck_id, front, back)
    console.print("[green]Card added.[/green]")


def cmd_delete_deck(store: Store):
    state = store.snapshot()
    deck_id = pick("Deck", state.decks, lambda d: d.name)
    count = len(cards_in_deck(state, deck_id))
    if Confirm.ask(f"Delete this deck and its {count} cards?", default=False):
        store.delete_deck(deck_id)
        console.print("[green]Deck deleted.[/green]")


def _pick_card(store: Store) -> str:
    state = store.snapshot()
    deck_id = pick("Deck", state.decks, lambda d: d.name)
    return pick("Card", cards_in_deck(state, deck_id), lambda c: f"{c.front} [dim]({c.status.value})[/dim]")


def cmd_edit_card(store: Store):
    card_id = _pick_card(store)
    card = next(c for c in store.snapshot().flashcards if c.id == card_id)
    front = require_text(Prompt.ask("Front", default=card.front), "Front")
    back = require_text(Prompt.ask("Back", default=card.back), "Back")
    status = Prompt.ask("Status", choices=[s.value for s in CardStatus], default=card.status.value)
    store.update_flashcard(card_id, front=front, back=back, status=status)
    console.print("[green]Card saved.[/green]")


def cmd_delete_card(store: Store):
    card_id = _pick_card(store)
    if Confirm.ask("Delete this card?", default=False):
        store.delete_flashcard(card_id)
        console.print("[green]Card deleted.[/green]")


def run_review_session(store: Store, cards: list) -> None:
    if not cards:
        console.print("[yellow]This deck has no cards yet.[/yellow]")
        return
    statuses = [s.value for s in CardStatus]
    for i, card in enumerate(cards, 1):
        console.print(Panel(card.front, title=f"Card {i}/{len(cards)}", border_style="cyan"))
        Prompt.ask("[dim]Press Enter to reveal answer[/dim]", default="")
        console.print(Panel(card.back, border_style="green"))
        status = Prompt.ask("Status", choices=statuses, default=card.status.value)
        store.update_flashcard(card.id, status=status)


def cmd_review(store: Store):
    state = store.snapshot()
    deck_id = pick("Deck", state.decks, lambda d: d.name)
    run_review_session(store, cards_in_deck(state, deck_id))


def cmd_generate(store: Store, generator: FlashcardGenerator):
    state = store.snapshot()
    note_id = pick("Note", state.notes, lambda n: n.title)
    deck_id = pick("Deck", state.decks, lambda d: d.name)
    while True:
        try:
            with console.status("Generating flashcards..."):
                cards = generate_for_note(store, generator, note_id, deck_id)
        except GenerationError as e:
            console.print(f"[red]{e}[/red]")
            if Confirm.ask("Try again?", default=False):
                continue
            return
        console.print(f"[green]Added {len(cards)} flashcards.[/green]")
        return


def cmd_tasks(store: Store):
    state = store.snapshot()
    courses = course_lookup(state.courses)
    table = Table(title="Tasks")
    table.add_column("", width=3)
    table.add_column("Task")
    table.add_column("Course", style="cyan")
    table.add_column("Due")
    table.add_column("Weight", justify="right")
    table.add_column("Grade", justify="right")
    for t in sorted(state.tasks, key=lambda t: t.completed):
        course = courses.get(t.course_id)
        table.add_row(
            "[green]✔[/green]" if t.completed else "",
            f"[dim]{t.title}[/dim]" if t.completed else t.title,
            course.code if course else "",
            t.due_date or "",
            f"{t.weight}%" if t.weight is not None else "",
            f"{t.grade}/{t.max_grade}" if t.grade is not None and t.max_grade is not None else "",
        )
    console.print(table)


def cmd_add_task(store: Store):
    title = require_text(Prompt.ask("Task title"), "Task title")
    state = store.snapshot()
    course_id = None
    weight = None
    if state.courses and Confirm.ask("Link to a course?", default=False):
        course_id = pick("Course", state.courses, lambda c: f"{c.code} {c.name}")
        weight = optional_number(Prompt.ask("Weight (%)", default=""), "Weight")
    due = optional_text(Prompt.ask("Due date (YYYY-MM-DD)", default=""))
    if due:
        try:
            date.fromisoformat(due)
        except ValueError:
            raise ValidationError("Due date must be YYYY-MM-DD.") from None
    store.add_task(title, course_id=course_id, weight=weight, due_date=due)
    console.print("[green]Task added.[/green]")


def cmd_toggle(store: Store):
    state = store.snapshot()
    task_id = pick("Task", state.tasks, lambda t: f"{'✔' if t.completed else '·'} {t.title}")
    task = next(t for t in state.tasks if t.id == task_id)
    store.update_task(task_id, completed=not task.completed)


def cmd_grade(store: Store):
    state = store.snapshot()
    task_id = pick("Task", [t for t in state.tasks if t.course_id], lambda t: t.title)
    grade = optional_number(Prompt.ask("Grade received"), "Grade")
    max_grade = optional_number(Prompt.ask("Maximum grade"), "Maximum grade")
    weight = optional_number(Prompt.ask("Weight (%)", default=""), "Weight")
    changes = {"grade": grade, "max_grade": max_grade}
    if weight is not None:
        changes["weight"] = weight
    store.update_task(task_id, **changes)
    console.print("[green]Grade saved.[/green]")


def cmd_delete_task(store: Store):
    task_id = pick("Task", store.snapshot().tasks, lambda t: t.title)
    if Confirm.ask("Delete this task?", default=False):
        store.delete_task(task_id)
        console.print("[green]Task deleted.[/green]")


def cmd_courses(store: Store):
    state = store.snapshot()
    table = Table(title="Courses")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Instructor")
    table.add_column("Term")
    table.add_column("Sessions", justify="right")
    for c in state.courses:
        sessions = sum(1 for e in state.timetable if e.course_id == c.id)
        table.add_row(f"[{style_for(c.color)}]{c.code}[/]", c.name, c.instructor, c.term.value, str(sessions))
    console.print(table)


def prompt_schedules() -> list:
    schedules = []
    while Confirm.ask("Add a weekly session?", default=not schedules):
        day = Prompt.ask("Day", choices=[d.value for d in Weekday])
        start = require_text(Prompt.ask("Start (HH:MM)"), "Start time")
        end = require_text(Prompt.ask("End (HH:MM)"), "End time")
        location = optional_text(Prompt.ask("Location", default=""))
        schedules.append(CourseSchedule(day=Weekday(day), start_time=start, end_time=end, location=location))
    return schedules


def cmd_add_course(store: Store):
    name = require_text(Prompt.ask("Course name"), "Course name")
    code = require_text(Prompt.ask("Course code"), "Course code")
    instructor = Prompt.ask("Instructor", default="")
    term = Prompt.ask("Term", choices=[t.value for t in Term], default=Term.SEMESTER_1.value)
    color = Prompt.ask("Color", choices=[c.value for c in ThemeColor], default=ThemeColor.BLUE.value)
    schedules = prompt_schedules()
    course = store.add_course(name, code, instructor=instructor, color=color, term=term, schedules=schedules)
    console.print(f"[green]Added {course.code} with {len(schedules)} weekly sessions.[/green]")


def cmd_edit_course(store: Store):
    state = store.snapshot()
    course_id = pick("Course", state.courses, lambda c: f"{c.code} {c.name}")
    course = next(c for c in state.courses if c.id == course_id)
    name = require_text(Prompt.ask("Course name", default=course.name), "Course name")
    code = require_text(Prompt.ask("Course code", default=course.code), "Course code")
    instructor = Prompt.ask("Instructor", default=course.instructor)
    term = Prompt.ask("Term", choices=[t.value for t in Term], default=course.term.value)
    color = Prompt.ask("Color", choices=[c.value for c in ThemeColor], default=course.color.value)
    schedules = None
    if Confirm.ask("Replace the weekly sessions?", default=False):
        schedules = prompt_schedules()
    store.update_course(
        course_id, schedules=schedules, name=name, code=code, instructor=instructor, term=term, color=color,
    )
    console.print(f"[green]Saved {code}.[/green]")


def cmd_delete_course(store: Store):
    state = store.snapshot()
    course_id = pick("Course", state.courses, lambda c: f"{c.code} {c.name}")
    if Confirm.ask("Delete this course with its tasks and timetable?", default=False):
        store.delete_course(course_id)
        console.print("[green]Course deleted.[/green]")


def cmd_timetable(store: Store, hour_height: int):
    layout = weekly_timetable(store.snapshot(), hour_height=hour_height)
    table = Table(title="Weekly Timetable")
    for day in WORK_WEEK:
        table.add_column(day.value)
    columns = []
    for day in WORK_WEEK:
        blocks = sorted(layout[day], key=lambda b: b.top)
        columns.append([
            f"[{style_for(b.course.color)}]{b.course.code}[/]\n"
            f"{b.entry.start_time}-{b.entry.end_time}"
            + (f"\n[dim]{b.entry.location}[/dim]" if b.entry.location else "")
            for b in blocks
        ])
    for row in range(max((len(c) for c in columns), default=0)):
        table.add_row(*[c[row] if row < len(c) else "" for c in columns])
    console.print(table)


def cmd_calendar(store: Store):
    today = date.today()
    offset = Prompt.ask("Months from now", default="0")
    try:
        offset = int(offset)
    except ValueError:
        raise ValidationError("Months from now must be a whole number.") from None
    year, month_index = shift_month(today.year, today.month - 1, offset)
    state = store.snapshot()
    courses = course_lookup(state.courses)
    cells = calendar_month(year, month_index, state.tasks)
    table = Table(title=date(year, month_index + 1, 1).strftime("%B %Y"), show_lines=True)
    for name in WEEK_HEADER:
        table.add_column(name)
    rendered = []
    for cell in cells:
        if cell is None:
            rendered.append("")
            continue
        lines = [f"[bold]{cell.day.day}[/bold]"]
        for t in cell.tasks:
            course = courses.get(t.course_id)
            color = style_for(course.color) if course else "blue"
            lines.append(f"[dim strike]{t.title}[/dim strike]" if t.completed else f"[{color}]{t.title}[/{color}]")
        rendered.append("\n".join(lines))
    rendered += [""] * (-len(rendered) % 7)
    for i in range(0, len(rendered), 7):
        table.add_row(*rendered[i:i + 7])
    console.print(table)


def cmd_performance(store: Store):
    state = store.snapshot()
    table = Table(title="Performance")
    table.add_column("Course", style="cyan")
    table.add_column("Current Grade", justify="right")
    table.add_column("Progress")
    courses = course_lookup(state.courses)
    for perf in performance_by_course(state.courses, state.tasks):
        course = courses[perf.course_id]
        color = grade_color(perf.current_grade)
        filled = int(min(perf.weight_completed, 100) / 5)
        bar = f"[{style_for(course.color)}]{'█' * filled}{'░' * (20 - filled)}[/]"
        table.add_row(
            f"{course.name} ({course.code})",
            f"[{color}]{perf.current_grade:.2f}%[/{color}]",
            f"{bar} {perf.weight_completed:g}% of 100%",
        )
    console.print(table)


def main():
    settings = get_settings()
    configure_logging(settings.app.log_level)

    store = Store(default_state())
    remote = JsonBinClient.from_settings(settings.jsonbin)
    engine = SyncEngine(store, remote, debounce_seconds=settings.sync.debounce_seconds)
    if remote.is_configured:
        with console.status("Syncing data..."):
            engine.load()
    else:
        engine.load()
    generator = FlashcardGenerator.from_settings(settings.llm)

    show_welcome()

    commands = {
        "dashboard": lambda: cmd_dashboard(store),
        "notes": lambda: cmd_notes(store),
        "add-note": lambda: cmd_add_note(store),
        "edit-note": lambda: cmd_edit_note(store),
        "delete-note": lambda: cmd_delete_note(store),
        "folders": lambda: cmd_folders(store),
        "decks": lambda: cmd_decks(store),
        "add-deck": lambda: cmd_add_deck(store),
        "delete-deck": lambda: cmd_delete_deck(store),
        "add-card": lambda: cmd_add_card(store),
        "edit-card": lambda: cmd_edit_card(store),
        "delete-card": lambda: cmd_delete_card(store),
        "review": lambda: cmd_review(store),
        "generate": lambda: cmd_generate(store, generator),
        "tasks": lambda: cmd_tasks(store),
        "add-task": lambda: cmd_add_task(store),
        "toggle": lambda: cmd_toggle(store),
        "grade": lambda: cmd_grade(store),
        "delete-task": lambda: cmd_delete_task(store),
        "courses": lambda: cmd_courses(store),
        "add-course": lambda: cmd_add_course(store),
        "edit-course": lambda: cmd_edit_course(store),
        "delete-course": lambda: cmd_delete_course(store),
        "timetable": lambda: cmd_timetable(store, settings.app.hour_height),
        "calendar": lambda: cmd_calendar(store),
        "performance": lambda: cmd_performance(store),
    }

    try:
        while True:
            show_menu()
            choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
            try:
                if choice in ("quit", "exit", "q"):
                    console.print("[dim]Goodbye![/dim]")
                    break
                elif choice in commands:
                    commands[choice]()
                else:
                    console.print("[red]Unknown command. Try again.[/red]")
            except ValidationError as e:
                console.print(Panel(str(e), title="Cannot submit", border_style="red"))
            except KeyboardInterrupt:
                console.print("\n[dim]Use 'quit' to exit.[/dim]")
            except Exception as e:
                logger.exception("Command %s failed", choice)
                console.print(f"[red]Error: {e}[/red]")
    finally:
        engine.flush()
        engine.close()
        remote.close()


if __name__ == "__main__":
    main()
