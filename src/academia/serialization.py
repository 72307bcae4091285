"""Conversion between AppState and the remote document mapping."""
import json

from academia.models import (
    AppState, Course, Deck, DeckFolder, Flashcard, Note, NoteFolder, Task, TimetableEntry,
)

# document key -> (AppState attribute, record type)
DOCUMENT_FIELDS = {
    "notes": ("notes", Note),
    "decks": ("decks", Deck),
    "flashcards": ("flashcards", Flashcard),
    "courses": ("courses", Course),
    "tasks": ("tasks", Task),
    "timetable": ("timetable", TimetableEntry),
    "noteFolders": ("note_folders", NoteFolder),
    "deckFolders": ("deck_folders", DeckFolder),
}


def state_to_document(state: AppState) -> dict:
    """Serialize all eight collections into one flat mapping."""
    return {
        key: [record.to_dict() for record in getattr(state, attr)]
        for key, (attr, _) in DOCUMENT_FIELDS.items()
    }


def state_from_document(document: dict, defaults: AppState) -> AppState:
    """Build an AppState from a document, taking each missing key from defaults."""
    values = {}
    for key, (attr, record_type) in DOCUMENT_FIELDS.items():
        records = document.get(key)
        if records is None:
            values[attr] = getattr(defaults, attr)
        else:
            values[attr] = tuple(record_type.from_dict(r) for r in records)
    return AppState(**values)


def dumps(document: dict) -> str:
    return json.dumps(document, ensure_ascii=False)
