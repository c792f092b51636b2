"""
Domain models for the review queue.

These are pure data structures with no I/O or external dependencies.
"""

import time
from dataclasses import dataclass
from enum import Enum, IntEnum

from .constants import SECONDS_PER_DAY
from .errors import InvalidActionError


class QueueStatus(IntEnum):
    """Anki's `cards.queue` column. Negative values are never shown."""

    SUSPENDED = -1
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


class CardType(IntEnum):
    """Anki's `cards.type` column."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


class ReviewAction(str, Enum):
    REPEAT = "repeat"
    SOON = "soon"
    LATER = "later"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: "ReviewAction | str") -> "ReviewAction":
        """
        Validate a wire-level action literal (case-sensitive).

        Raises:
            InvalidActionError: if the value is not one of the four actions.
        """
        if isinstance(value, cls):
            return value
        for action in cls:
            if action.value == value:
                return action
        raise InvalidActionError(value)


@dataclass(frozen=True)
class ReviewClock:
    """
    A single time snapshot shared by every check inside one operation.

    Attributes:
        now: Current Unix time in seconds.
        creation_time: Collection creation time (`col.crt`) in Unix seconds.
        day_number: Whole days elapsed since `creation_time`.
    """

    now: int
    creation_time: int

    @property
    def day_number(self) -> int:
        return (self.now - self.creation_time) // SECONDS_PER_DAY

    @classmethod
    def at(cls, creation_time: int, now: int | None = None) -> "ReviewClock":
        if now is None:
            now = int(time.time())
        return cls(now=int(now), creation_time=int(creation_time))


@dataclass(frozen=True)
class Card:
    """
    A card joined with the note and deck data needed to show it.

    `due` is a day index for review cards and Unix seconds for
    (re)learning cards; it is ignored for new cards.
    """

    id: int
    note_id: int
    deck_id: int
    ord: int = 0
    type: int = CardType.NEW
    queue: int = QueueStatus.NEW
    due: int = 0
    interval: int = 0
    factor: int = 0
    reps: int = 0
    lapses: int = 0
    mod: int = 0
    fields: tuple[str, ...] = ()
    tags: str = ""
    deck_name: str = ""

    @property
    def front(self) -> str:
        return self.fields[0] if self.fields else ""

    @property
    def back(self) -> str:
        return self.fields[1] if len(self.fields) > 1 else ""


@dataclass(frozen=True)
class Deck:
    id: int
    name: str


@dataclass(frozen=True)
class DeckDueCount:
    id: int
    name: str
    due_count: int
    is_blocking: bool = False


@dataclass
class Note:
    id: int
    guid: str
    mid: int
    mod: int
    tags: str
    fields: list[str]


@dataclass
class ReviewQueue:
    """Result of building the global review queue."""

    cards: list[Card]
    urgent_count: int  # Eligible cards in the blocking deck
    is_blocking: bool  # True while the blocking deck still has due cards
    blocking_deck_id: int | None = None
