"""
Queue builder for task review sessions.

Builds review queues by:
1. Filtering cards that are due against a single clock snapshot
2. Gating everything behind the blocking deck while it has due cards
3. Shuffling the result so overdue and due-today cards are treated alike
"""

import logging
import random

from taskdeck.domain.models import (
    Card,
    Deck,
    DeckDueCount,
    QueueStatus,
    ReviewClock,
    ReviewQueue,
)

logger = logging.getLogger(__name__)

_system_random = random.SystemRandom()


def is_eligible(card: Card, clock: ReviewClock) -> bool:
    """
    Decide whether a card is due at `clock`.

    Review cards compare their day index with the clock's day number,
    (re)learning cards compare Unix seconds with `clock.now`, and new
    cards are always due. Negative queues (suspended, buried) never are.
    """
    if card.queue < 0:
        return False
    if card.queue == QueueStatus.NEW:
        return True
    if card.queue == QueueStatus.REVIEW:
        return card.due <= clock.day_number
    if card.queue in (QueueStatus.LEARNING, QueueStatus.RELEARNING):
        return card.due <= clock.now
    return False


def compute_eligible(cards: list[Card], clock: ReviewClock) -> list[Card]:
    return [card for card in cards if is_eligible(card, clock)]


def shuffle_cards(cards: list[Card], rng: random.Random | None = None) -> list[Card]:
    """
    Return a uniformly random permutation of `cards` (Fisher-Yates).

    The input list is left untouched.
    """
    rng = rng or _system_random
    result = list(cards)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def build_review_queue(
    cards: list[Card],
    clock: ReviewClock,
    blocking_deck_id: int | None,
    include_all: bool = False,
    rng: random.Random | None = None,
) -> ReviewQueue:
    """
    Build the global review queue with the blocking deck gate.

    Args:
        cards: Candidate cards from every deck.
        clock: Snapshot used for every due check.
        blocking_deck_id: Deck whose due cards hide all other decks.
            None disables the gate.
        include_all: Show every due card even while the blocking deck
            still has due cards.
        rng: Random source for the shuffle.

    Returns:
        ReviewQueue with the shuffled cards and blocking diagnostics.
    """
    eligible = compute_eligible(cards, clock)

    if blocking_deck_id is None:
        blocking: list[Card] = []
    else:
        blocking = [card for card in eligible if card.deck_id == blocking_deck_id]
    blocking = shuffle_cards(blocking, rng)

    urgent_count = len(blocking)
    if blocking and not include_all:
        logger.debug(f"Blocking deck {blocking_deck_id} has {urgent_count} due cards")
        queue_cards = blocking
    else:
        queue_cards = shuffle_cards(eligible, rng)

    return ReviewQueue(
        cards=queue_cards,
        urgent_count=urgent_count,
        is_blocking=urgent_count > 0,
        blocking_deck_id=blocking_deck_id,
    )


def build_deck_queue(
    cards: list[Card],
    clock: ReviewClock,
    deck_id: int,
    rng: random.Random | None = None,
) -> list[Card]:
    """Due cards of a single deck, shuffled. The blocking gate does not apply."""
    due = [card for card in compute_eligible(cards, clock) if card.deck_id == deck_id]
    return shuffle_cards(due, rng)


def count_due_by_deck(
    cards: list[Card],
    decks: list[Deck],
    clock: ReviewClock,
    blocking_deck_id: int | None = None,
) -> list[DeckDueCount]:
    """
    Count due cards per deck, skipping decks with nothing due.

    Ordered with the blocking deck first, then by due count (descending),
    then by case-insensitive name.
    """
    counts: dict[int, int] = {}
    for card in compute_eligible(cards, clock):
        counts[card.deck_id] = counts.get(card.deck_id, 0) + 1

    result = [
        DeckDueCount(
            id=deck.id,
            name=deck.name,
            due_count=counts[deck.id],
            is_blocking=deck.id == blocking_deck_id,
        )
        for deck in decks
        if counts.get(deck.id)
    ]
    result.sort(key=lambda d: (not d.is_blocking, -d.due_count, d.name.lower()))
    return result
