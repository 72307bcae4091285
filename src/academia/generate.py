"""
Flashcard generation from note text using Gemini.

The model is asked for a JSON array of {"front", "back"} objects. Anything
else (missing key, blank text, unparseable or empty output) surfaces as a
GenerationError that the caller shows to the user; the action can simply be
retried.
"""
import json
import logging
import re
from typing import List, Optional, Tuple

from langchain_google_genai import ChatGoogleGenerativeAI

from academia.config import LLMSettings
from academia.errors import GenerationError
from academia.models import Flashcard
from academia.store import Store

logger = logging.getLogger(__name__)

PROMPT = """Analyze the following text and generate a set of flashcards from it. \
Each flashcard should be a clear question and answer pair. Focus on key concepts, \
definitions, and important facts.

Return ONLY a JSON array of objects with two string fields:
- "front": the question, concise
- "back": a clear and direct answer to the question

Text:
{text}
"""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class FlashcardGenerator:
    """Turns free text into question/answer pairs with a Gemini chat model."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.3,
        llm=None,
    ):
        """
        Args:
            api_key: Google API key; without it generation is disabled
            model_name: Gemini model name
            temperature: Sampling temperature
            llm: Prebuilt chat model (tests pass a mock)
        """
        self.llm = llm
        if self.llm is None and api_key:
            self.llm = ChatGoogleGenerativeAI(
                model=model_name,
                google_api_key=api_key,
                temperature=temperature,
            )
        if self.llm is None:
            logger.warning("LLM API key not provided. Flashcard generation is disabled.")

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> "FlashcardGenerator":
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        return cls(api_key=api_key, model_name=settings.model_name, temperature=settings.temperature)

    @property
    def enabled(self) -> bool:
        return self.llm is not None

    def generate(self, text: str) -> List[Tuple[str, str]]:
        """Return ordered (front, back) pairs generated from text."""
        if not self.enabled:
            raise GenerationError("API key is not configured.")
        if not text or not text.strip():
            raise GenerationError("Selected note is empty or could not be found.")

        try:
            response = self.llm.invoke(PROMPT.format(text=text))
        except Exception as e:
            logger.error("Error generating flashcards with Gemini: %s", e)
            raise GenerationError(f"Failed to generate flashcards: {e}") from e

        cards = parse_cards(response.content)
        logger.info("Generated %d flashcards", len(cards))
        return cards


def parse_cards(raw) -> List[Tuple[str, str]]:
    """Parse the model output into (front, back) pairs."""
    if isinstance(raw, list):
        # Some chat models return content as a list of parts.
        raw = "".join(p if isinstance(p, str) else p.get("text", "") for p in raw)
    try:
        data = json.loads(_FENCE.sub("", raw.strip()))
    except (ValueError, AttributeError) as e:
        raise GenerationError("The generation service returned malformed output.") from e

    if not isinstance(data, list):
        raise GenerationError("The generation service returned malformed output.")
    cards = []
    for item in data:
        if not isinstance(item, dict):
            raise GenerationError("The generation service returned malformed output.")
        front, back = item.get("front"), item.get("back")
        if not isinstance(front, str) or not isinstance(back, str):
            raise GenerationError("The generation service returned malformed output.")
        cards.append((front, back))
    if not cards:
        raise GenerationError("No flashcards were generated. The note might not have enough content.")
    return cards


def generate_for_note(store: Store, generator: FlashcardGenerator, note_id: str, deck_id: str) -> List[Flashcard]:
    """Generate cards from a note's content and add them to a deck in one batch."""
    if not note_id or not deck_id:
        raise GenerationError("Please select a note and a destination deck.")
    state = store.snapshot()
    note = next((n for n in state.notes if n.id == note_id), None)
    if note is None or not note.content.strip():
        raise GenerationError("Selected note is empty or could not be found.")
    pairs = generator.generate(note.content)
    return store.add_flashcards_batch((deck_id, front, back) for front, back in pairs)
