"""Data classes for the organizer domain model."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CardStatus(str, Enum):
    MASTERED = "Mastered"
    LEARNING = "Learning"
    REVIEW = "Review"


class ThemeColor(str, Enum):
    BLUE = "blue"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    INDIGO = "indigo"
    PINK = "pink"


class Term(str, Enum):
    SEMESTER_1 = "Semester 1"
    SEMESTER_2 = "Semester 2"
    FULL_YEAR = "Full Year"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


def _put_optional(data: dict, key: str, value) -> None:
    # Absent optional fields are omitted from the wire mapping, never null.
    if value is not None:
        data[key] = value


@dataclass(frozen=True)
class NoteFolder:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "NoteFolder":
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class DeckFolder:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "DeckFolder":
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class Note:
    id: str
    title: str
    content: str = ""
    tags: tuple[str, ...] = ()
    last_modified: str = "Just now"
    course_id: Optional[str] = None
    folder_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "lastModified": self.last_modified,
        }
        _put_optional(data, "courseId", self.course_id)
        _put_optional(data, "folderId", self.folder_id)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        return cls(
            id=data["id"],
            title=data["title"],
            content=data.get("content", ""),
            tags=tuple(data.get("tags", ())),
            last_modified=data.get("lastModified", ""),
            course_id=data.get("courseId"),
            folder_id=data.get("folderId"),
        )


@dataclass(frozen=True)
class Deck:
    id: str
    name: str
    icon: str = "book"
    course_id: Optional[str] = None
    folder_id: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "name": self.name, "icon": self.icon}
        _put_optional(data, "courseId", self.course_id)
        _put_optional(data, "folderId", self.folder_id)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Deck":
        return cls(
            id=data["id"],
            name=data["name"],
            icon=data.get("icon", "book"),
            course_id=data.get("courseId"),
            folder_id=data.get("folderId"),
        )


@dataclass(frozen=True)
class Flashcard:
    id: str
    deck_id: str
    front: str
    back: str
    status: CardStatus = CardStatus.REVIEW
    next_review_date: str = "Today"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "deckId": self.deck_id,
            "front": self.front,
            "back": self.back,
            "status": self.status.value,
            "nextReviewDate": self.next_review_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Flashcard":
        return cls(
            id=data["id"],
            deck_id=data["deckId"],
            front=data["front"],
            back=data["back"],
            status=CardStatus(data.get("status", CardStatus.REVIEW.value)),
            next_review_date=data.get("nextReviewDate", "Today"),
        )


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    code: str
    instructor: str = ""
    color: ThemeColor = ThemeColor.BLUE
    term: Term = Term.SEMESTER_1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "instructor": self.instructor,
            "color": self.color.value,
            "term": self.term.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        return cls(
            id=data["id"],
            name=data["name"],
            code=data.get("code", ""),
            instructor=data.get("instructor", ""),
            color=ThemeColor(data.get("color", ThemeColor.BLUE.value)),
            term=Term(data.get("term", Term.SEMESTER_1.value)),
        )


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    completed: bool = False
    due_date: Optional[str] = None  # YYYY-MM-DD
    course_id: Optional[str] = None
    grade: Optional[float] = None
    max_grade: Optional[float] = None
    weight: Optional[float] = None  # percent of the course's final grade

    @property
    def is_graded(self) -> bool:
        return self.grade is not None and self.max_grade is not None and self.weight is not None

    def to_dict(self) -> dict:
        data = {"id": self.id, "title": self.title, "completed": self.completed}
        _put_optional(data, "dueDate", self.due_date)
        _put_optional(data, "courseId", self.course_id)
        _put_optional(data, "grade", self.grade)
        _put_optional(data, "maxGrade", self.max_grade)
        _put_optional(data, "weight", self.weight)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        return cls(
            id=data["id"],
            title=data["title"],
            completed=bool(data.get("completed", False)),
            due_date=data.get("dueDate"),
            course_id=data.get("courseId"),
            grade=data.get("grade"),
            max_grade=data.get("maxGrade"),
            weight=data.get("weight"),
        )


@dataclass(frozen=True)
class TimetableEntry:
    id: str
    course_id: str
    day: Weekday
    start_time: str  # HH:MM, 24h
    end_time: str
    location: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "courseId": self.course_id,
            "day": self.day.value,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }
        _put_optional(data, "location", self.location)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TimetableEntry":
        return cls(
            id=data["id"],
            course_id=data["courseId"],
            day=Weekday(data["day"]),
            start_time=data["startTime"],
            end_time=data["endTime"],
            location=data.get("location"),
        )


@dataclass(frozen=True)
class CourseSchedule:
    """One weekly session entered on the course form."""
    day: Weekday
    start_time: str
    end_time: str
    location: Optional[str] = None


@dataclass(frozen=True)
class AppState:
    notes: tuple[Note, ...] = ()
    decks: tuple[Deck, ...] = ()
    flashcards: tuple[Flashcard, ...] = ()
    courses: tuple[Course, ...] = ()
    tasks: tuple[Task, ...] = ()
    timetable: tuple[TimetableEntry, ...] = ()
    note_folders: tuple[NoteFolder, ...] = ()
    deck_folders: tuple[DeckFolder, ...] = ()
