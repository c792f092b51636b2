"""
Ports (interfaces) for reading and writing the card collection.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, Deck, Note


class CardStore(ABC):
    """
    Port for the persistent card collection.

    Implementations:
        - DirectCardStore: Opens the collection with the `anki` library.
    """

    @abstractmethod
    def get_collection_creation(self) -> int:
        """Return the fixed collection epoch (`col.crt`) in Unix seconds."""

    @abstractmethod
    def get_cards(
        self,
        deck_id: int | None = None,
        include_suspended: bool = False,
        query: str | None = None,
    ) -> list[Card]:
        """
        Fetch cards joined with their note and deck.

        Args:
            deck_id: Restrict to one deck.
            include_suspended: Also return cards with a negative queue.
            query: Substring matched against fields, tags and deck name.

        Returns:
            Cards ordered by id.
        """

    @abstractmethod
    def get_card(self, card_id: int) -> Card | None:
        pass

    @abstractmethod
    def save_schedule(self, card: Card) -> None:
        """
        Persist the scheduling fields (type, queue, due, ivl, reps) of one card.

        Raises:
            CardNotFoundError: if no row matches `card.id`.
        """

    @abstractmethod
    def list_decks(self) -> list[Deck]:
        pass

    @abstractmethod
    def get_note(self, note_id: int) -> Note | None:
        pass

    @abstractmethod
    def update_note(self, note_id: int, fields: list[str], tags: str) -> None:
        pass

    @abstractmethod
    def create_card(self, deck_id: int, fields: list[str], tags: str) -> tuple[int, int]:
        """Create a note and one new card for it. Returns (card_id, note_id)."""

    @abstractmethod
    def delete_card(self, card_id: int) -> None:
        pass

    @abstractmethod
    def move_card(self, card_id: int, deck_id: int) -> None:
        pass
