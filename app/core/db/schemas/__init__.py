# Import models so Base metadata is aware of them
from .decks import Deck, DeckCard, CardCompletion, UserStamina  # noqa: F401
