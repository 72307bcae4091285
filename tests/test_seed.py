from academia.models import CardStatus
from academia.seed import default_state, load_default_document
from academia.serialization import DOCUMENT_FIELDS


def test_default_document_has_every_collection():
    document = load_default_document()
    assert set(document) == set(DOCUMENT_FIELDS)


def test_default_state_counts():
    state = default_state()
    assert len(state.notes) == 3
    assert len(state.decks) == 3
    assert len(state.flashcards) == 5
    assert len(state.courses) == 3
    assert len(state.tasks) == 7
    assert len(state.timetable) == 5
    assert len(state.note_folders) == 2
    assert len(state.deck_folders) == 1


def test_default_references_resolve():
    state = default_state()
    course_ids = {c.id for c in state.courses}
    deck_ids = {d.id for d in state.decks}
    assert all(c.deck_id in deck_ids for c in state.flashcards)
    assert all(e.course_id in course_ids for e in state.timetable)
    assert all(t.course_id in course_ids for t in state.tasks if t.course_id)


def test_default_state_is_cached():
    assert default_state() is default_state()
    # Only one card starts out due for review
    assert [c.id for c in default_state().flashcards if c.status == CardStatus.REVIEW] == ["card-3"]
