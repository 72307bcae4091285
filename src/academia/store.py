"""In-memory state store: the only mutation path for the eight collections."""
import logging
import random
import threading
import uuid
from dataclasses import replace
from typing import Callable, Iterable, Optional

from academia.models import (
    AppState, CardStatus, Course, CourseSchedule, Deck, DeckFolder, Flashcard, Note,
    NoteFolder, Task, Term, ThemeColor, TimetableEntry, Weekday,
)

logger = logging.getLogger(__name__)

DECK_ICONS = ["code", "leaf", "language", "atom", "music", "book", "film", "robot", "graduation-cap"]

Listener = Callable[[AppState], None]


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def _update_matching(records: tuple, record_id: str, changes: dict) -> tuple:
    changes = {k: v for k, v in changes.items() if k != "id"}
    return tuple(replace(r, **changes) if r.id == record_id else r for r in records)


def _without(records: tuple, record_id: str) -> tuple:
    return tuple(r for r in records if r.id != record_id)


def _timetable_for(course_id: str, schedules: Iterable[CourseSchedule]) -> tuple:
    return tuple(
        TimetableEntry(
            id=new_id("tt"),
            course_id=course_id,
            day=Weekday(s.day),
            start_time=s.start_time,
            end_time=s.end_time,
            location=s.location,
        )
        for s in schedules
    )


class Store:
    """Holds the current AppState and notifies listeners after each change.

    Every operation replaces the affected collections in one step under a
    lock, so a snapshot never observes half of a cascade.
    """

    def __init__(self, state: Optional[AppState] = None, rng: Optional[random.Random] = None):
        self._state = state or AppState()
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._rng = rng or random.Random()

    # --- observation ---

    @property
    def state(self) -> AppState:
        return self._state

    def snapshot(self) -> AppState:
        with self._lock:
            return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, **changes) -> None:
        with self._lock:
            new_state = replace(self._state, **changes)
            if new_state == self._state:
                return
            self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    def replace(self, state: AppState) -> None:
        """Swap in a whole state, as done after loading the remote document."""
        with self._lock:
            self._state = state
        for listener in list(self._listeners):
            listener(state)

    # --- note folders ---

    def add_note_folder(self, name: str) -> NoteFolder:
        folder = NoteFolder(id=new_id("nf"), name=name)
        with self._lock:
            self._commit(note_folders=self._state.note_folders + (folder,))
        return folder

    def update_note_folder(self, folder_id: str, **changes) -> None:
        with self._lock:
            self._commit(note_folders=_update_matching(self._state.note_folders, folder_id, changes))

    def delete_note_folder(self, folder_id: str) -> None:
        with self._lock:
            s = self._state
            self._commit(
                note_folders=_without(s.note_folders, folder_id),
                notes=tuple(replace(n, folder_id=None) if n.folder_id == folder_id else n for n in s.notes),
            )

    # --- deck folders ---

    def add_deck_folder(self, name: str) -> DeckFolder:
        folder = DeckFolder(id=new_id("df"), name=name)
        with self._lock:
            self._commit(deck_folders=self._state.deck_folders + (folder,))
        return folder

    def update_deck_folder(self, folder_id: str, **changes) -> None:
        with self._lock:
            self._commit(deck_folders=_update_matching(self._state.deck_folders, folder_id, changes))

    def delete_deck_folder(self, folder_id: str) -> None:
        with self._lock:
            s = self._state
            self._commit(
                deck_folders=_without(s.deck_folders, folder_id),
                decks=tuple(replace(d, folder_id=None) if d.folder_id == folder_id else d for d in s.decks),
            )

    # --- decks ---

    def add_deck(self, name: str, course_id: Optional[str] = None, folder_id: Optional[str] = None) -> Deck:
        deck = Deck(
            id=new_id("deck"),
            name=name,
            icon=self._rng.choice(DECK_ICONS),
            course_id=course_id,
            folder_id=folder_id,
        )
        with self._lock:
            self._commit(decks=self._state.decks + (deck,))
        return deck

    def update_deck(self, deck_id: str, **changes) -> None:
        with self._lock:
            self._commit(decks=_update_matching(self._state.decks, deck_id, changes))

    def delete_deck(self, deck_id: str) -> None:
        with self._lock:
            s = self._state
            self._commit(
                decks=_without(s.decks, deck_id),
                flashcards=tuple(c for c in s.flashcards if c.deck_id != deck_id),
            )
        logger.debug("Deleted deck %s with its flashcards", deck_id)

    # --- notes ---

    def add_note(
        self,
        title: str,
        content: str = "",
        tags: Iterable[str] = (),
        course_id: Optional[str] = None,
        folder_id: Optional[str] = None,
    ) -> Note:
        note = Note(
            id=new_id("note"),
            title=title,
            content=content,
            tags=tuple(tags),
            last_modified="Just now",
            course_id=course_id,
            folder_id=folder_id,
        )
        with self._lock:
            self._commit(notes=(note,) + self._state.notes)
        return note

    def update_note(self, note_id: str, **changes) -> None:
        if "tags" in changes:
            changes["tags"] = tuple(changes["tags"])
        changes["last_modified"] = "Just now"
        with self._lock:
            self._commit(notes=_update_matching(self._state.notes, note_id, changes))

    def delete_note(self, note_id: str) -> None:
        with self._lock:
            self._commit(notes=_without(self._state.notes, note_id))

    # --- flashcards ---

    def add_flashcard(self, deck_id: str, front: str, back: str) -> Flashcard:
        return self.add_flashcards_batch([(deck_id, front, back)])[0]

    def add_flashcards_batch(self, cards: Iterable[tuple[str, str, str]]) -> list[Flashcard]:
        """Insert (deck_id, front, back) triples in one transition, newest first."""
        new_cards = [
            Flashcard(
                id=new_id("card"),
                deck_id=deck_id,
                front=front,
                back=back,
                status=CardStatus.REVIEW,
                next_review_date="Today",
            )
            for deck_id, front, back in cards
        ]
        if new_cards:
            with self._lock:
                self._commit(flashcards=tuple(new_cards) + self._state.flashcards)
        return new_cards

    def update_flashcard(self, card_id: str, **changes) -> None:
        if "status" in changes:
            changes["status"] = CardStatus(changes["status"])
        with self._lock:
            self._commit(flashcards=_update_matching(self._state.flashcards, card_id, changes))

    def delete_flashcard(self, card_id: str) -> None:
        with self._lock:
            self._commit(flashcards=_without(self._state.flashcards, card_id))

    # --- courses ---

    def add_course(
        self,
        name: str,
        code: str,
        instructor: str = "",
        color: ThemeColor = ThemeColor.BLUE,
        term: Term = Term.SEMESTER_1,
        schedules: Iterable[CourseSchedule] = (),
    ) -> Course:
        course = Course(
            id=new_id("course"),
            name=name,
            code=code,
            instructor=instructor,
            color=ThemeColor(color),
            term=Term(term),
        )
        with self._lock:
            s = self._state
            self._commit(
                courses=(course,) + s.courses,
                timetable=s.timetable + _timetable_for(course.id, schedules),
            )
        return course

    def update_course(
        self,
        course_id: str,
        schedules: Optional[Iterable[CourseSchedule]] = None,
        **changes,
    ) -> None:
        """Merge course fields; when schedules is given, replace all of the course's sessions."""
        for key, enum_type in (("color", ThemeColor), ("term", Term)):
            if key in changes:
                changes[key] = enum_type(changes[key])
        with self._lock:
            s = self._state
            if not any(c.id == course_id for c in s.courses):
                return
            updates = {"courses": _update_matching(s.courses, course_id, changes)}
            if schedules is not None:
                kept = tuple(e for e in s.timetable if e.course_id != course_id)
                updates["timetable"] = kept + _timetable_for(course_id, schedules)
            self._commit(**updates)

    def delete_course(self, course_id: str) -> None:
        with self._lock:
            s = self._state
            self._commit(
                courses=_without(s.courses, course_id),
                tasks=tuple(t for t in s.tasks if t.course_id != course_id),
                timetable=tuple(e for e in s.timetable if e.course_id != course_id),
                notes=tuple(replace(n, course_id=None) if n.course_id == course_id else n for n in s.notes),
                decks=tuple(replace(d, course_id=None) if d.course_id == course_id else d for d in s.decks),
            )
        logger.debug("Deleted course %s with its tasks and timetable entries", course_id)

    # --- timetable entries ---

    def add_timetable_entry(self, course_id: str, schedule: CourseSchedule) -> TimetableEntry:
        entry = _timetable_for(course_id, [schedule])[0]
        with self._lock:
            self._commit(timetable=self._state.timetable + (entry,))
        return entry

    def update_timetable_entry(self, entry_id: str, **changes) -> None:
        if "day" in changes:
            changes["day"] = Weekday(changes["day"])
        with self._lock:
            self._commit(timetable=_update_matching(self._state.timetable, entry_id, changes))

    def delete_timetable_entry(self, entry_id: str) -> None:
        with self._lock:
            self._commit(timetable=_without(self._state.timetable, entry_id))

    # --- tasks ---

    def add_task(
        self,
        title: str,
        course_id: Optional[str] = None,
        weight: Optional[float] = None,
        due_date: Optional[str] = None,
    ) -> Task:
        task = Task(
            id=new_id("task"),
            title=title,
            completed=False,
            due_date=due_date,
            course_id=course_id,
            weight=weight,
        )
        with self._lock:
            self._commit(tasks=(task,) + self._state.tasks)
        return task

    def update_task(self, task_id: str, **changes) -> None:
        with self._lock:
            self._commit(tasks=_update_matching(self._state.tasks, task_id, changes))

    def delete_task(self, task_id: str) -> None:
        with self._lock:
            self._commit(tasks=_without(self._state.tasks, task_id))
