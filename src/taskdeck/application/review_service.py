"""
Review Service: application layer orchestrator.

Coordinates fetching cards from the store, building queues and recording
review actions.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from taskdeck.domain.errors import CardNotFoundError
from taskdeck.domain.models import (
    Card,
    DeckDueCount,
    ReviewAction,
    ReviewClock,
    ReviewQueue,
)
from taskdeck.domain.ports import CardStore

from .queue_builder import (
    build_deck_queue,
    build_review_queue,
    compute_eligible,
    count_due_by_deck,
)
from .scheduler import apply_action

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of a recorded action plus a fresh view of the queue."""

    card: Card
    remaining_cards: int
    urgent_count: int
    is_blocking: bool


class ReviewService:
    """
    Application service for review sessions.

    Depends on the CardStore abstraction, not on the Anki adapter.
    """

    def __init__(
        self,
        store: CardStore,
        blocking_deck_id: int | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        """
        Args:
            store: The repository (port) for cards.
            blocking_deck_id: Deck that hides every other deck while it has
                due cards. None disables the gate.
            clock: Source of the current Unix time.
            rng: Random source for shuffles; a system RNG if not provided.
        """
        self._store = store
        self.blocking_deck_id = blocking_deck_id
        self._clock = clock
        self._rng = rng

    def snapshot(self) -> ReviewClock:
        """Take the single time snapshot used by one operation."""
        return ReviewClock.at(self._store.get_collection_creation(), now=int(self._clock()))

    def get_queue(self, include_all: bool = False) -> ReviewQueue:
        clock = self.snapshot()
        cards = self._store.get_cards()
        return build_review_queue(
            cards,
            clock,
            self.blocking_deck_id,
            include_all=include_all,
            rng=self._rng,
        )

    def get_deck_queue(self, deck_id: int) -> list[Card]:
        clock = self.snapshot()
        cards = self._store.get_cards(deck_id=deck_id)
        return build_deck_queue(cards, clock, deck_id, rng=self._rng)

    def urgent_count(self) -> int:
        if self.blocking_deck_id is None:
            return 0
        clock = self.snapshot()
        return len(compute_eligible(self._store.get_cards(deck_id=self.blocking_deck_id), clock))

    def deck_due_counts(self) -> list[DeckDueCount]:
        clock = self.snapshot()
        return count_due_by_deck(
            self._store.get_cards(),
            self._store.list_decks(),
            clock,
            self.blocking_deck_id,
        )

    def apply(self, card_id: int, action: ReviewAction | str) -> Card:
        """
        Reschedule one card.

        Raises:
            InvalidActionError: unknown action; nothing is read or written.
            CardNotFoundError: no card with this id.
        """
        action = ReviewAction.parse(action)

        card = self._store.get_card(card_id)
        if card is None:
            raise CardNotFoundError(card_id)

        updated = apply_action(card, action, self.snapshot())
        self._store.save_schedule(updated)
        logger.info(
            f"Card {card_id}: {action.value} -> queue={int(updated.queue)} due={updated.due}"
        )
        return updated

    def record_action(self, card_id: int, action: ReviewAction | str) -> ActionResult:
        """Apply an action, then rebuild the default (gated) queue."""
        card = self.apply(card_id, action)
        queue = self.get_queue()
        return ActionResult(
            card=card,
            remaining_cards=len(queue.cards),
            urgent_count=queue.urgent_count,
            is_blocking=queue.is_blocking,
        )
