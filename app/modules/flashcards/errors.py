"""Exceptions raised by the deck-generation pipeline."""

from __future__ import annotations


class FlashcardsError(Exception):
    """Base error; ``message`` is safe to show to end users."""

    default_message = "Something went wrong while building your deck"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class InputError(FlashcardsError):
    """Empty or invalid source text / URL. Raised before any network call."""

    default_message = "Please provide some text to turn into a deck"


class FetchError(FlashcardsError):
    """Importing a URL failed."""

    default_message = "Could not fetch that page"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        if message is None and status_code is not None:
            message = f"Could not fetch that page (HTTP {status_code})"
        super().__init__(message, detail=detail)
        self.status_code = status_code


class GenerationError(FlashcardsError):
    """Provider call failed or returned something we cannot read."""

    default_message = "Failed to generate deck"


class DeckValidationError(FlashcardsError):
    """Generated cards do not form a usable deck."""

    default_message = "The generated deck was incomplete, please try again"
