"""Derived views over the store: grouping, grades, calendar and timetable layout.

Everything here is a pure function of its inputs. The heavier computations are
memoized on tuples of frozen records, so recomputing a view for an unchanged
snapshot is a cache hit.
"""
import calendar
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from academia.models import AppState, CardStatus, Course, Task, TimetableEntry, Weekday

DAY_START_HOUR = 8
WORK_WEEK = (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY)


@dataclass(frozen=True)
class Grouping:
    """Partition of course/folder-filed records.

    by_course and by_folder only hold keys for ids that exist and have items.
    Both are read-only since groupings are shared from a cache.
    """
    by_course: Mapping = field(default_factory=lambda: MappingProxyType({}))
    by_folder: Mapping = field(default_factory=lambda: MappingProxyType({}))
    uncategorized: tuple = ()

    def all_items(self) -> list:
        items = [i for bucket in self.by_course.values() for i in bucket]
        items += [i for bucket in self.by_folder.values() for i in bucket]
        return items + list(self.uncategorized)


@lru_cache(maxsize=32)
def _group(items: tuple, course_ids: frozenset, folder_ids: frozenset) -> Grouping:
    by_course: dict[str, list] = {}
    personal = []
    for item in items:
        if item.course_id and item.course_id in course_ids:
            by_course.setdefault(item.course_id, []).append(item)
        else:
            personal.append(item)

    by_folder: dict[str, list] = {}
    uncategorized = []
    for item in personal:
        if item.folder_id and item.folder_id in folder_ids:
            by_folder.setdefault(item.folder_id, []).append(item)
        else:
            uncategorized.append(item)

    return Grouping(
        by_course=MappingProxyType({k: tuple(v) for k, v in by_course.items()}),
        by_folder=MappingProxyType({k: tuple(v) for k, v in by_folder.items()}),
        uncategorized=tuple(uncategorized),
    )


def group_by_course_and_folder(items: Iterable, courses: Iterable, folders: Iterable) -> Grouping:
    """Split items into course buckets, then folder buckets, then uncategorized.

    A course id takes precedence over a folder id. References to a course or
    folder that no longer exists are treated as absent.
    """
    return _group(
        tuple(items),
        frozenset(c.id for c in courses),
        frozenset(f.id for f in folders),
    )


def group_notes(state: AppState) -> Grouping:
    return group_by_course_and_folder(state.notes, state.courses, state.note_folders)


def group_decks(state: AppState) -> Grouping:
    return group_by_course_and_folder(state.decks, state.courses, state.deck_folders)


# --- grades ---

@dataclass(frozen=True)
class CoursePerformance:
    course_id: str
    current_grade: float
    weight_completed: float
    graded_tasks: tuple = ()


def course_performance(course_id: str, tasks: Iterable[Task]) -> CoursePerformance:
    """Weighted grade over the course's tasks that have grade, max grade and weight.

    weight_completed is the summed weight of those tasks and is not capped at 100.
    """
    graded = tuple(t for t in tasks if t.course_id == course_id and t.is_graded)
    total_weight = sum(t.weight for t in graded)
    weighted_score = sum((t.grade / t.max_grade) * t.weight for t in graded)
    current = (weighted_score / total_weight) * 100 if total_weight > 0 else 0.0
    return CoursePerformance(
        course_id=course_id,
        current_grade=current,
        weight_completed=total_weight,
        graded_tasks=graded,
    )


def performance_by_course(courses: Iterable[Course], tasks: Iterable[Task]) -> list[CoursePerformance]:
    tasks = list(tasks)
    return [course_performance(c.id, tasks) for c in courses]


def grade_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


# --- calendar ---

@dataclass(frozen=True)
class CalendarCell:
    day: date
    tasks: tuple = ()


def month_cells(year: int, month_index: int) -> list[Optional[date]]:
    """Sunday-first month grid: None padding, then one date per day.

    month_index is zero-based (0 = January).
    """
    month = month_index + 1
    first_weekday, days_in_month = calendar.monthrange(year, month)
    leading = (first_weekday + 1) % 7  # monthrange counts from Monday
    cells: list[Optional[date]] = [None] * leading
    cells.extend(date(year, month, d) for d in range(1, days_in_month + 1))
    return cells


def tasks_by_due_date(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Bucket tasks by their literal YYYY-MM-DD due date string."""
    buckets: dict[str, list[Task]] = {}
    for task in tasks:
        if task.due_date:
            buckets.setdefault(task.due_date, []).append(task)
    return buckets


def calendar_month(year: int, month_index: int, tasks: Iterable[Task]) -> list[Optional[CalendarCell]]:
    buckets = tasks_by_due_date(tasks)
    return [
        None if day is None else CalendarCell(day=day, tasks=tuple(buckets.get(day.isoformat(), ())))
        for day in month_cells(year, month_index)
    ]


def shift_month(year: int, month_index: int, amount: int) -> tuple[int, int]:
    """Move a (year, zero-based month) pair by amount months."""
    total = year * 12 + month_index + amount
    return total // 12, total % 12


# --- timetable ---

@dataclass(frozen=True)
class TimetableBlock:
    entry: TimetableEntry
    course: Course
    top: float
    height: float


def parse_time(value: str) -> float:
    """'HH:MM' to fractional hours."""
    hours, minutes = value.split(":")
    return int(hours) + int(minutes) / 60


def layout_entry(entry: TimetableEntry, hour_height: float) -> tuple[float, float]:
    """Vertical (top, height) of an entry on a grid starting at 08:00.

    Entries before 08:00 get a negative top; nothing is clipped here.
    """
    start = parse_time(entry.start_time)
    end = parse_time(entry.end_time)
    return (start - DAY_START_HOUR) * hour_height, (end - start) * hour_height


@lru_cache(maxsize=8)
def _weekly(timetable: tuple, courses: tuple, hour_height: float, days: tuple) -> Mapping:
    course_map = {c.id: c for c in courses}
    layout: dict[Weekday, list[TimetableBlock]] = {day: [] for day in days}
    for entry in timetable:
        course = course_map.get(entry.course_id)
        if course is None or entry.day not in layout:
            continue
        top, height = layout_entry(entry, hour_height)
        layout[entry.day].append(TimetableBlock(entry=entry, course=course, top=top, height=height))
    return MappingProxyType({day: tuple(blocks) for day, blocks in layout.items()})


def weekly_timetable(state: AppState, hour_height: float = 64, days: tuple = WORK_WEEK) -> Mapping:
    """Lay out each day's entries; entries of deleted courses are skipped."""
    return _weekly(state.timetable, state.courses, hour_height, tuple(days))


# --- dashboard ---

@dataclass(frozen=True)
class DashboardSummary:
    total_notes: int
    total_decks: int
    total_tasks: int
    cards_to_review: int
    recent_notes: tuple = ()
    incomplete_tasks: tuple = ()
    decks_to_review: tuple = ()


def dashboard_summary(state: AppState) -> DashboardSummary:
    review_cards = [f for f in state.flashcards if f.status == CardStatus.REVIEW]
    review_deck_ids = {f.deck_id for f in review_cards}
    # Notes are kept newest first, so the head of the list is the most recent.
    return DashboardSummary(
        total_notes=len(state.notes),
        total_decks=len(state.decks),
        total_tasks=len(state.tasks),
        cards_to_review=len(review_cards),
        recent_notes=tuple(state.notes[:3]),
        incomplete_tasks=tuple(t for t in state.tasks if not t.completed)[:5],
        decks_to_review=tuple(d for d in state.decks if d.id in review_deck_ids),
    )


def cards_in_deck(state: AppState, deck_id: str) -> list:
    return [c for c in state.flashcards if c.deck_id == deck_id]


def course_lookup(courses: Iterable[Course]) -> dict[str, Course]:
    return {c.id: c for c in courses}
