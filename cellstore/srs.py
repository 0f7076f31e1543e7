"""SM-2 spaced-repetition scheduling for flashcards."""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from enum import IntEnum

from cellstore.models import Card, ReviewRecord

MIN_EASE_FACTOR = 1.3


class FeedbackQuality(IntEnum):
    AGAIN = 0
    HARD = 3
    GOOD = 4
    EASY = 5


def review_card(card: Card, quality: int, now: datetime | None = None) -> Card:
    """Return a copy of *card* rescheduled for the given recall quality."""
    if now is None:
        now = datetime.now(timezone.utc)
    history = card.review_history + [ReviewRecord(date=now.isoformat(), quality=int(quality))]

    # Forgotten: start over, but keep the ease factor and due date.
    if quality < 3:
        return replace(card, repetition=0, interval=1, review_history=history)

    q = 5 - quality
    ease = card.ease_factor + (0.1 - q * (0.08 + q * 0.02))
    ease = max(ease, MIN_EASE_FACTOR)

    if card.repetition == 0:
        interval = 1
    elif card.repetition == 1:
        interval = 6
    else:
        interval = math.ceil(card.interval * ease)

    return replace(
        card,
        repetition=card.repetition + 1,
        ease_factor=ease,
        interval=interval,
        next_review_date=(now + timedelta(days=interval)).isoformat(),
        review_history=history,
    )
