"""Exception types raised across the organizer."""


class AcademiaError(Exception):
    """Base class for organizer errors."""


class RemoteStoreError(AcademiaError):
    """Reading or writing the remote document failed."""


class GenerationError(AcademiaError):
    """Flashcard generation could not produce cards; safe to retry."""


class ValidationError(AcademiaError):
    """A required form field was left empty."""
