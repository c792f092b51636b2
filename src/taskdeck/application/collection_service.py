"""Deck, card and note management on top of the CardStore port."""

import logging

from taskdeck.domain.errors import NoteNotFoundError
from taskdeck.domain.models import Card, Deck, Note
from taskdeck.domain.ports import CardStore

logger = logging.getLogger(__name__)


class CollectionService:
    def __init__(self, store: CardStore):
        self._store = store

    def list_decks(self) -> list[Deck]:
        return self._store.list_decks()

    def list_cards(self, deck_id: int | None = None, query: str | None = None) -> list[Card]:
        """
        List cards, suspended ones included.

        A search query takes precedence over the deck filter.
        """
        if query:
            return self._store.get_cards(include_suspended=True, query=query)
        return self._store.get_cards(deck_id=deck_id, include_suspended=True)

    def create_card(self, deck_id: int, front: str, back: str, tags: str = "") -> tuple[int, int]:
        return self._store.create_card(deck_id, [front, back], tags)

    def delete_card(self, card_id: int) -> None:
        self._store.delete_card(card_id)

    def move_card(self, card_id: int, deck_id: int) -> None:
        self._store.move_card(card_id, deck_id)

    def get_note(self, note_id: int) -> Note:
        note = self._store.get_note(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    def update_note(self, note_id: int, fields: list[str], tags: str = "") -> None:
        self._store.update_note(note_id, fields, tags)
