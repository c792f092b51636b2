"""Exceptions raised by the review engine and the collection store."""


class TaskdeckError(Exception):
    """Base class for all taskdeck errors."""


class InvalidActionError(TaskdeckError, ValueError):
    """Raised when a review action is not one of the known literals."""

    def __init__(self, action: object):
        self.action = action
        super().__init__(f"Invalid review action: {action!r}")


class CardNotFoundError(TaskdeckError, LookupError):
    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(f"Card {card_id} not found")


class NoteNotFoundError(TaskdeckError, LookupError):
    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"Note {note_id} not found")


class DeckNotFoundError(TaskdeckError, LookupError):
    def __init__(self, deck_id: int):
        self.deck_id = deck_id
        super().__init__(f"Deck {deck_id} not found")


class CollectionError(TaskdeckError):
    """The collection file is missing or does not look like an Anki collection."""
