"""
Access to an Anki collection through the `anki` library.

The collection is opened per operation through the context manager and
closed (saving changes) on exit. Only the scheduling columns taskdeck
needs are ever written by hand; notes, guids, sort fields and checksums
are left to Anki.
"""

import logging
from pathlib import Path

from anki.collection import Collection
from anki.errors import NotFoundError

from taskdeck.domain.constants import COLLECTION_FILENAME, DEFAULT_NOTETYPE_NAME
from taskdeck.domain.errors import CollectionError

logger = logging.getLogger(__name__)


def create_collection(path: Path | str, crt: int | None = None) -> Path:
    """
    Create a new, empty Anki collection at `path`.

    Args:
        path: Target file; must end in `.anki2` so Anki can place its media folder.
        crt: Collection creation time (Unix seconds). Anki's own value if None.
    """
    path = Path(path)
    if path.suffix != ".anki2":
        raise CollectionError(f"Collection file must end in .anki2: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)

    col = Collection(str(path))
    try:
        if crt is not None:
            col.db.execute("update col set crt = ?", int(crt))
    finally:
        col.close()

    logger.info(f"Created collection {path}")
    return path


class CollectionRepository:
    """
    Context manager around `anki.collection.Collection`.

    Usage:
        with CollectionRepository(path) as repo:
            repo.find_cards("did:1")
    """

    def __init__(self, collection_path: Path | str):
        self.collection_path = Path(collection_path)
        self.col: Collection | None = None

    def __enter__(self) -> "CollectionRepository":
        path = self._resolve_collection_path()
        try:
            self.col = Collection(str(path))
        except Exception as e:
            raise CollectionError(f"Cannot open collection {path}: {e}") from e
        logger.debug(f"Opened collection {path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        if self.col is not None:
            self.col.close()
            self.col = None

    def _resolve_collection_path(self) -> Path:
        path = self.collection_path.expanduser()
        if path.is_dir():
            path = path / COLLECTION_FILENAME
        if not path.exists():
            raise CollectionError(f"Collection not found: {path}")
        if path.suffix != ".anki2":
            raise CollectionError(f"{path} is not an Anki collection (expected .anki2)")
        return path

    # --- Collection ---

    def collection_creation(self) -> int:
        return int(self.col.crt)

    # --- Cards ---

    def find_cards(self, query: str) -> list[int]:
        """Card ids matching an Anki search, ascending."""
        return sorted(self.col.find_cards(query or "deck:*"))

    def get_card(self, card_id: int):
        try:
            return self.col.get_card(card_id)
        except NotFoundError:
            return None

    def update_schedule(
        self,
        card_id: int,
        *,
        type: int,
        queue: int,
        due: int,
        ivl: int,
        reps: int,
    ) -> bool:
        """Write the scheduling columns of one card. False if it does not exist."""
        card = self.get_card(card_id)
        if card is None:
            return False
        card.type = type
        card.queue = queue
        card.due = due
        card.ivl = ivl
        card.reps = reps
        self.col.update_card(card)
        return True

    def remove_card(self, card_id: int) -> bool:
        """Delete a card, and its note if no other card uses it."""
        if self.get_card(card_id) is None:
            return False
        self.col.remove_cards_and_orphaned_notes([card_id])
        return True

    def move_card(self, card_id: int, deck_id: int) -> bool:
        if self.get_card(card_id) is None:
            return False
        self.col.set_deck([card_id], deck_id)
        return True

    # --- Decks ---

    def deck_names(self) -> dict[int, str]:
        return {d.id: d.name for d in self.col.decks.all_names_and_ids()}

    def deck_exists(self, deck_id: int) -> bool:
        return self.col.decks.get(deck_id, default=False) is not None

    # --- Notes ---

    def get_note(self, note_id: int):
        try:
            return self.col.get_note(note_id)
        except NotFoundError:
            return None

    def add_note(self, deck_id: int, fields: list[str], tags: list[str]) -> tuple[int, int]:
        """
        Add a note of the Basic type (or the current type) to a deck.

        Returns:
            (card_id, note_id) of the first generated card.
        """
        model = self.col.models.by_name(DEFAULT_NOTETYPE_NAME) or self.col.models.current()
        note = self.col.new_note(model)
        for i, value in enumerate(fields[: len(note.fields)]):
            note.fields[i] = value
        note.tags = tags
        self.col.add_note(note, deck_id)
        return note.card_ids()[0], note.id

    def update_note(self, note_id: int, fields: list[str], tags: list[str]) -> bool:
        note = self.get_note(note_id)
        if note is None:
            return False
        for i, value in enumerate(fields[: len(note.fields)]):
            note.fields[i] = value
        note.tags = tags
        self.col.update_note(note)
        return True
