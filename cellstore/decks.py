"""Flashcard deck store: validation, selectors, and actions.

Decks live in one persistent cell holding ``list[Deck]``. Actions never
mutate the current list in place; they build a new one and commit it with
set_and_flush, so every change is durable before the action returns.
"""

from __future__ import annotations

import json
import logging
import random
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cellstore.backends import FileBackend
from cellstore.cell import PersistentCell
from cellstore.codecs import model_list_codec
from cellstore.errors import DuplicateCardError, ValidationError
from cellstore.models import Card, Deck
from cellstore.registry import CellRegistry
from cellstore.srs import review_card
from cellstore.workspace import Settings, store_path

logger = logging.getLogger(__name__)

DECKS_FILE = "decks.json"


# ── Validation ────────────────────────────────────────────────


def _parse_date(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_datetime(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        _parse_date(value)
    except ValueError:
        return False
    return True


def validate_card_form(card: dict[str, Any]) -> list[str]:
    """Validate the user-editable part of a card: front, back, tags."""
    errors = []
    for key in ("front", "back"):
        value = card.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"The {key} of the card cannot be empty.")
    tags = card.get("tags", [])
    if tags is not None and (not isinstance(tags, list) or not all(isinstance(t, str) for t in tags)):
        errors.append("tags must be a list of strings")
    return errors


def validate_card(card: dict[str, Any]) -> list[str]:
    """Validate a persisted card and return list of errors (empty if valid)."""
    errors = validate_card_form(card)
    for key in ("id", "deckId"):
        if not card.get(key):
            errors.append(f"Missing required field: {key}")
    for key in ("dateAdded", "nextReviewDate"):
        if not _is_datetime(card.get(key)):
            errors.append(f"{key} must be an ISO datetime")

    repetition = card.get("repetition")
    if not isinstance(repetition, int) or isinstance(repetition, bool) or repetition < 0:
        errors.append("repetition must be a non-negative integer")
    interval = card.get("interval")
    if not isinstance(interval, int) or isinstance(interval, bool) or interval < 1:
        errors.append("interval must be a positive integer")
    ease = card.get("easeFactor")
    if not isinstance(ease, (int, float)) or ease < 1.3:
        errors.append("easeFactor must be at least 1.3")
    return errors


def validate_deck(deck: dict[str, Any]) -> list[str]:
    errors = []
    if not deck.get("id"):
        errors.append("Missing required field: id")
    name = deck.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("The deck name cannot be empty.")
    if not _is_datetime(deck.get("dateAdded")):
        errors.append("dateAdded must be an ISO datetime")
    cards = deck.get("cards")
    if not isinstance(cards, list):
        errors.append("cards must be a list")
    else:
        for i, card in enumerate(cards):
            if not isinstance(card, dict):
                errors.append(f"card {i}: expected an object")
                continue
            errors.extend(f"card {i}: {e}" for e in validate_card(card))
    return errors


DECKS_CODEC = model_list_codec(Deck, validate_deck)


def open_decks(
    registry: CellRegistry,
    settings: Settings | None = None,
    root: Path | None = None,
) -> PersistentCell[list[Deck]]:
    """Register the decks cell (file-backed, debounced, validated)."""
    if settings is None:
        settings = Settings()
    return registry.create(
        "decks",
        [],
        FileBackend(store_path(DECKS_FILE, root)),
        debounce=settings.debounce,
        serialize=DECKS_CODEC.serialize,
        deserialize=DECKS_CODEC.deserialize,
    )


# ── Selectors ─────────────────────────────────────────────────


def _end_of_today(now: datetime | None = None) -> datetime:
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        # Naive datetimes are local time.
        now = now.astimezone()
    return now.replace(hour=23, minute=59, second=59, microsecond=999999)


def find_deck(decks: list[Deck], deck_id: str) -> Deck | None:
    for deck in decks:
        if deck.id == deck_id:
            return deck
    return None


def get_due_cards(deck: Deck, now: datetime | None = None, shuffle: bool = False) -> list[Card]:
    """Cards whose next review falls on or before the end of today."""
    cutoff = _end_of_today(now)
    due = [c for c in deck.cards if _parse_date(c.next_review_date) <= cutoff]
    if shuffle:
        random.shuffle(due)
    return due


def get_due_cards_count(deck: Deck, now: datetime | None = None) -> int:
    return len(get_due_cards(deck, now))


def get_total_due_cards_count(decks: list[Deck], now: datetime | None = None) -> int:
    return sum(get_due_cards_count(deck, now) for deck in decks)


def get_all_unique_tags(decks: list[Deck]) -> list[str]:
    return sorted({tag for deck in decks for card in deck.cards for tag in card.tags})


# ── Actions ───────────────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_front(front: str) -> str:
    return front.strip().lower()


def _replace_deck(decks: list[Deck], updated: Deck) -> list[Deck]:
    return [updated if d.id == updated.id else d for d in decks]


def _require_deck(decks: list[Deck], deck_id: str) -> Deck:
    deck = find_deck(decks, deck_id)
    if deck is None:
        raise ValueError("Deck not found.")
    return deck


async def add_deck(cell: PersistentCell[list[Deck]], name: str) -> Deck:
    if not name.strip():
        raise ValidationError(["The deck name cannot be empty."])
    deck = Deck(id=str(uuid.uuid4()), name=name, cards=[], date_added=_now_iso())
    await cell.set_and_flush([*cell.get(), deck])
    return deck


async def edit_deck(cell: PersistentCell[list[Deck]], deck_id: str, name: str) -> None:
    if not name.strip():
        raise ValidationError(["The deck name cannot be empty."])
    decks = cell.get()
    deck = _require_deck(decks, deck_id)
    await cell.set_and_flush(_replace_deck(decks, replace(deck, name=name)))


async def delete_deck(cell: PersistentCell[list[Deck]], deck_id: str) -> None:
    await cell.set_and_flush([d for d in cell.get() if d.id != deck_id])


async def add_card(cell: PersistentCell[list[Deck]], deck_id: str, form: dict[str, Any]) -> Card:
    """Add a card to a deck. Fronts must be unique per deck, ignoring case."""
    errors = validate_card_form(form)
    if errors:
        raise ValidationError(errors)

    decks = cell.get()
    deck = _require_deck(decks, deck_id)
    front = _normalize_front(form["front"])
    if any(_normalize_front(c.front) == front for c in deck.cards):
        raise DuplicateCardError(["A card with this front already exists in this deck."])

    now = _now_iso()
    card = Card(
        id=str(uuid.uuid4()),
        deck_id=deck_id,
        front=form["front"],
        back=form["back"],
        tags=list(form.get("tags") or []),
        date_added=now,
        next_review_date=now,
    )
    await cell.set_and_flush(_replace_deck(decks, replace(deck, cards=[*deck.cards, card])))
    return card


async def edit_card(
    cell: PersistentCell[list[Deck]],
    deck_id: str,
    card_id: str,
    form: dict[str, Any],
) -> None:
    errors = validate_card_form(form)
    if errors:
        raise ValidationError(errors)

    decks = cell.get()
    deck = _require_deck(decks, deck_id)
    front = _normalize_front(form["front"])
    if any(c.id != card_id and _normalize_front(c.front) == front for c in deck.cards):
        raise DuplicateCardError(["Another card with this front already exists in this deck."])

    cards = [
        replace(c, front=form["front"], back=form["back"], tags=list(form.get("tags") or []))
        if c.id == card_id
        else c
        for c in deck.cards
    ]
    await cell.set_and_flush(_replace_deck(decks, replace(deck, cards=cards)))


async def delete_card(cell: PersistentCell[list[Deck]], deck_id: str, card_id: str) -> None:
    decks = cell.get()
    deck = _require_deck(decks, deck_id)
    cards = [c for c in deck.cards if c.id != card_id]
    await cell.set_and_flush(_replace_deck(decks, replace(deck, cards=cards)))


async def update_card_after_review(
    cell: PersistentCell[list[Deck]],
    deck_id: str,
    card_id: str,
    quality: int,
    now: datetime | None = None,
) -> Card | None:
    """Reschedule a reviewed card with SM-2. Returns the updated card."""
    decks = cell.get()
    deck = _require_deck(decks, deck_id)
    updated = None
    cards = []
    for c in deck.cards:
        if c.id == card_id:
            updated = review_card(c, quality, now)
            cards.append(updated)
        else:
            cards.append(c)
    if updated is None:
        return None
    await cell.set_and_flush(_replace_deck(decks, replace(deck, cards=cards)))
    return updated


async def import_cards_into_deck(cell: PersistentCell[list[Deck]], deck_id: str, raw: str) -> int:
    """Import a JSON array of {front, back, tags} objects into a deck.

    Duplicates and invalid items are skipped and logged. Returns the number of
    cards added.
    """
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("Unable to import cards to deck %s: %s", deck_id, e)
        return 0
    if not isinstance(items, list):
        logger.error("Parsed JSON is not an array: %r", type(items).__name__)
        return 0

    added = 0
    for item in items:
        if not isinstance(item, dict):
            logger.error("Skipping non-object card: %r", item)
            continue
        try:
            await add_card(cell, deck_id, item)
        except DuplicateCardError:
            logger.info("Skipping existing card: %s", item.get("front"))
            continue
        except ValidationError as e:
            logger.error("Skipping invalid card %r: %s", item, e)
            continue
        added += 1
    return added
