import sys
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import MagicMock

import pytest

try:
    import anki.collection  # noqa: F401

    ANKI_AVAILABLE = True
except ImportError:
    # MOCK ANKI DEPENDENCY
    # Lets the package import when 'anki' is missing; tests that need a
    # real collection are skipped.
    ANKI_AVAILABLE = False

    def create_mock_module():
        m = MagicMock()
        m.__spec__ = None
        m.__path__ = []
        return m

    class _NotFoundError(Exception):
        pass

    mock_anki = create_mock_module()
    mock_collection = create_mock_module()
    mock_collection.Collection = MagicMock()
    mock_errors = create_mock_module()
    mock_errors.NotFoundError = _NotFoundError

    sys.modules["anki"] = mock_anki
    sys.modules["anki.collection"] = mock_collection
    sys.modules["anki.errors"] = mock_errors

from anki.collection import Collection  # noqa: E402
from anki.errors import NotFoundError  # noqa: E402

from taskdeck.domain.models import Card, CardType, QueueStatus  # noqa: E402
from taskdeck.infrastructure.anki.repository import create_collection  # noqa: E402

# Collection created at CRT; NOW is 100 days and one hour later.
CRT = 1_700_000_000
DAY = 86400
NOW = CRT + 100 * DAY + 3600
TODAY = 100

# Deck ids for in-memory cards; real collections use builder.urgent/work/home.
URGENT_DECK = 1740140533109
WORK_DECK = 2000
HOME_DECK = 3000

URGENT_NAME = "High importance or urgence tasks"


def make_card(
    id: int,
    deck_id: int = WORK_DECK,
    queue: int = QueueStatus.NEW,
    due: int = 0,
    type: int | None = None,
    **kwargs,
) -> Card:
    """In-memory card; `type` follows `queue` unless given."""
    if type is None:
        type = CardType.NEW if queue < 0 else queue
    return Card(id=id, note_id=id, deck_id=deck_id, queue=queue, due=due, type=type, **kwargs)


class CollectionBuilder:
    """Adds decks, notes and cards to a test collection through the anki library."""

    def __init__(self, path: Path):
        self.path = path
        self.urgent = self.add_deck(URGENT_NAME)
        self.work = self.add_deck("Work tasks")
        self.home = self.add_deck("home")

    @contextmanager
    def collection(self):
        col = Collection(str(self.path))
        try:
            yield col
        finally:
            col.close()

    def add_deck(self, name: str) -> int:
        with self.collection() as col:
            return int(col.decks.id(name))

    def add_card(
        self,
        deck_id: int,
        front: str = "Front",
        back: str = "Back",
        queue: int = QueueStatus.NEW,
        type: int | None = None,
        due: int = 0,
        ivl: int = 0,
        reps: int = 0,
        lapses: int = 0,
        tags: str = "",
    ) -> int:
        if type is None:
            type = CardType.NEW if queue < 0 else queue
        with self.collection() as col:
            note = col.new_note(col.models.by_name("Basic"))
            note.fields[0] = front
            note.fields[1] = back
            note.tags = tags.split()
            col.add_note(note, deck_id)

            card = note.cards()[0]
            card.type = int(type)
            card.queue = int(queue)
            card.due = due
            card.ivl = ivl
            card.reps = reps
            card.lapses = lapses
            col.update_card(card)
            return card.id

    def row(self, card_id: int) -> dict | None:
        """Stored scheduling columns of one card, None if it is gone."""
        with self.collection() as col:
            try:
                card = col.get_card(card_id)
            except NotFoundError:
                return None
            return {
                "nid": card.nid,
                "did": card.did,
                "type": card.type,
                "queue": card.queue,
                "due": card.due,
                "ivl": card.ivl,
                "reps": card.reps,
                "lapses": card.lapses,
                "mod": card.mod,
            }


@pytest.fixture
def collection_path(tmp_path):
    """An empty Anki collection created at CRT."""
    if not ANKI_AVAILABLE:
        pytest.skip("anki is not installed")
    return create_collection(tmp_path / "collection.anki2", crt=CRT)


@pytest.fixture
def builder(collection_path):
    return CollectionBuilder(collection_path)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    for var in ("TASKDECK_COLLECTION_PATH", "TASKDECK_BLOCKING_DECK_ID", "TASKDECK_PORT"):
        monkeypatch.delenv(var, raising=False)
    return home
