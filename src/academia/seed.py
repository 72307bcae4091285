"""Built-in default collections shipped with the organizer."""
import json
from functools import lru_cache
from pathlib import Path

from academia.models import AppState
from academia.serialization import state_from_document

CONTENT_DIR = Path(__file__).parent / "content"


def load_default_document() -> dict:
    """Read the raw defaults document from defaults.json."""
    return json.loads((CONTENT_DIR / "defaults.json").read_text(encoding="utf-8"))


@lru_cache(maxsize=1)
def default_state() -> AppState:
    """The default collections used when nothing was loaded from the remote store."""
    return state_from_document(load_default_document(), AppState())
