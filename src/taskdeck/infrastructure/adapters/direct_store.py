"""
Direct Card Store: infrastructure adapter for the Anki collection file.

Implements CardStore by opening the collection with the `anki` library.
"""

import logging
from pathlib import Path

from taskdeck.domain.errors import (
    CardNotFoundError,
    DeckNotFoundError,
    NoteNotFoundError,
)
from taskdeck.domain.models import Card, Deck, Note
from taskdeck.domain.ports import CardStore
from taskdeck.infrastructure.anki.repository import CollectionRepository

logger = logging.getLogger(__name__)


def _quote(text: str) -> str:
    # Anki search: backslash-escape quotes and wildcards inside a quoted term.
    for ch in ("\\", '"', "*", "_", ":"):
        text = text.replace(ch, "\\" + ch)
    return text


def build_search(
    deck_id: int | None = None,
    include_suspended: bool = False,
    query: str | None = None,
) -> str:
    """Translate store filters into an Anki search string."""
    parts = []
    if deck_id is not None:
        parts.append(f"did:{deck_id}")
    if not include_suspended:
        parts.append("-is:suspended")
    if query:
        q = _quote(query)
        parts.append(f'("{q}" OR "tag:*{q}*" OR "deck:*{q}*")')
    return " ".join(parts)


def _to_card(anki_card, deck_names: dict[int, str]) -> Card:
    note = anki_card.note()
    return Card(
        id=anki_card.id,
        note_id=anki_card.nid,
        deck_id=anki_card.did,
        ord=anki_card.ord,
        type=anki_card.type,
        queue=anki_card.queue,
        due=anki_card.due,
        interval=anki_card.ivl,
        factor=anki_card.factor,
        reps=anki_card.reps,
        lapses=anki_card.lapses,
        mod=anki_card.mod,
        fields=tuple(note.fields),
        tags=" ".join(note.tags),
        deck_name=deck_names.get(anki_card.did, ""),
    )


class DirectCardStore(CardStore):
    """
    Reads and writes cards straight from the collection file.

    Every method opens its own collection, so one store instance can be
    shared across requests.
    """

    def __init__(self, collection_path: Path):
        self.collection_path = collection_path

    def _open(self) -> CollectionRepository:
        return CollectionRepository(self.collection_path)

    def get_collection_creation(self) -> int:
        with self._open() as repo:
            return repo.collection_creation()

    def get_cards(
        self,
        deck_id: int | None = None,
        include_suspended: bool = False,
        query: str | None = None,
    ) -> list[Card]:
        search = build_search(deck_id, include_suspended, query)
        with self._open() as repo:
            deck_names = repo.deck_names()
            cards = [_to_card(repo.get_card(cid), deck_names) for cid in repo.find_cards(search)]
        logger.debug(f"{len(cards)} cards for search {search!r}")
        return cards

    def get_card(self, card_id: int) -> Card | None:
        with self._open() as repo:
            card = repo.get_card(card_id)
            return _to_card(card, repo.deck_names()) if card is not None else None

    def save_schedule(self, card: Card) -> None:
        with self._open() as repo:
            updated = repo.update_schedule(
                card.id,
                type=int(card.type),
                queue=int(card.queue),
                due=card.due,
                ivl=card.interval,
                reps=card.reps,
            )
        if not updated:
            raise CardNotFoundError(card.id)

    def list_decks(self) -> list[Deck]:
        with self._open() as repo:
            decks = [Deck(id=did, name=name) for did, name in repo.deck_names().items()]
        return sorted(decks, key=lambda d: d.name.lower())

    def get_note(self, note_id: int) -> Note | None:
        with self._open() as repo:
            note = repo.get_note(note_id)
            if note is None:
                return None
            return Note(
                id=note.id,
                guid=note.guid,
                mid=note.mid,
                mod=note.mod,
                tags=" ".join(note.tags),
                fields=list(note.fields),
            )

    def update_note(self, note_id: int, fields: list[str], tags: str) -> None:
        with self._open() as repo:
            updated = repo.update_note(note_id, fields, tags.split())
        if not updated:
            raise NoteNotFoundError(note_id)

    def create_card(self, deck_id: int, fields: list[str], tags: str) -> tuple[int, int]:
        with self._open() as repo:
            if not repo.deck_exists(deck_id):
                raise DeckNotFoundError(deck_id)
            card_id, note_id = repo.add_note(deck_id, fields, tags.split())
        logger.info(f"Created card {card_id} (note {note_id}) in deck {deck_id}")
        return card_id, note_id

    def delete_card(self, card_id: int) -> None:
        with self._open() as repo:
            deleted = repo.remove_card(card_id)
        if not deleted:
            raise CardNotFoundError(card_id)
        logger.info(f"Deleted card {card_id}")

    def move_card(self, card_id: int, deck_id: int) -> None:
        with self._open() as repo:
            if not repo.deck_exists(deck_id):
                raise DeckNotFoundError(deck_id)
            if not repo.move_card(card_id, deck_id):
                raise CardNotFoundError(card_id)
        logger.info(f"Moved card {card_id} to deck {deck_id}")
