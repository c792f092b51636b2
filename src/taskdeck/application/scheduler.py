"""
Due-date transitions for the four review actions.

This is a pure computation module with no I/O. Offsets are fixed; no
interval is derived from review history.
"""

from dataclasses import replace

from taskdeck.domain.constants import LATER_INTERVAL_DAYS, SOON_INTERVAL_DAYS
from taskdeck.domain.models import Card, CardType, QueueStatus, ReviewAction, ReviewClock


def apply_action(card: Card, action: ReviewAction | str, clock: ReviewClock) -> Card:
    """
    Return a copy of `card` rescheduled for `action`.

    - repeat: learning card due right now, so it comes back this session.
    - soon: review card due tomorrow.
    - later: review card due in a week.
    - complete: suspended; type, due and interval are kept.

    Every action bumps `reps` and sets `mod` to `clock.now`. `lapses` is
    never changed.

    Raises:
        InvalidActionError: if `action` is not one of the four literals.
    """
    action = ReviewAction.parse(action)
    reps = card.reps + 1

    if action is ReviewAction.REPEAT:
        return replace(
            card,
            type=CardType.LEARNING,
            queue=QueueStatus.LEARNING,
            due=clock.now,
            interval=0,
            reps=reps,
            mod=clock.now,
        )

    if action is ReviewAction.SOON:
        return _schedule_review(card, clock, SOON_INTERVAL_DAYS)

    if action is ReviewAction.LATER:
        return _schedule_review(card, clock, LATER_INTERVAL_DAYS)

    return replace(card, queue=QueueStatus.SUSPENDED, reps=reps, mod=clock.now)


def _schedule_review(card: Card, clock: ReviewClock, days: int) -> Card:
    return replace(
        card,
        type=CardType.REVIEW,
        queue=QueueStatus.REVIEW,
        due=clock.day_number + days,
        interval=days,
        reps=card.reps + 1,
        mod=clock.now,
    )
