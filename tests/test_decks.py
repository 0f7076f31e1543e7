"""Tests for cellstore/decks.py: validation, selectors, and deck actions."""

import json
import logging
from datetime import datetime, timezone

import pytest

from cellstore.decks import (
    DECKS_CODEC,
    add_card,
    add_deck,
    delete_card,
    delete_deck,
    edit_card,
    edit_deck,
    find_deck,
    get_all_unique_tags,
    get_due_cards,
    get_due_cards_count,
    get_total_due_cards_count,
    import_cards_into_deck,
    open_decks,
    update_card_after_review,
    validate_card,
    validate_card_form,
)
from cellstore.errors import CollectingReporter, DuplicateCardError, ValidationError
from cellstore.models import Card, Deck
from cellstore.registry import CellRegistry
from cellstore.workspace import Settings

IMMEDIATE = Settings(debounce_ms=0)


def _card_dict(**kwargs):
    d = {
        "id": "c1",
        "deckId": "d1",
        "front": "Q",
        "back": "A",
        "tags": [],
        "dateAdded": "2024-01-01T00:00:00+00:00",
        "reviewHistory": [],
        "repetition": 0,
        "interval": 1,
        "easeFactor": 2.5,
        "nextReviewDate": "2024-01-01T00:00:00+00:00",
    }
    d.update(kwargs)
    return d


async def _open(root):
    registry = CellRegistry()
    cell = open_decks(registry, IMMEDIATE, root)
    await cell.ready
    return cell


# ── Validation ────────────────────────────────────────────────


def test_valid_card_has_no_errors():
    assert validate_card(_card_dict()) == []


def test_card_form_requires_front_and_back():
    errors = validate_card_form({"front": "  ", "back": ""})
    assert "The front of the card cannot be empty." in errors
    assert "The back of the card cannot be empty." in errors


def test_card_rejects_bad_schedule():
    errors = validate_card(_card_dict(repetition=-1, interval=0, easeFactor=1.0, nextReviewDate="soon"))
    assert "repetition must be a non-negative integer" in errors
    assert "interval must be a positive integer" in errors
    assert "easeFactor must be at least 1.3" in errors
    assert "nextReviewDate must be an ISO datetime" in errors


def test_codec_rejects_invalid_card():
    raw = json.dumps([{"id": "d1", "name": "D", "dateAdded": "2024-01-01T00:00:00Z", "cards": [_card_dict(front="")]}])
    with pytest.raises(ValidationError, match="card 0"):
        DECKS_CODEC.deserialize(raw)


@pytest.mark.asyncio
async def test_corrupt_decks_file_degrades_to_empty(root):
    (root / "decks.json").write_text('[{"id": "d1"}]', encoding="utf-8")
    reporter = CollectingReporter()
    registry = CellRegistry(reporter=reporter)
    cell = open_decks(registry, IMMEDIATE, root)
    await cell.ready
    assert cell.get() == []
    assert reporter.reports[0][1]["cell"] == "decks"


# ── Selectors ─────────────────────────────────────────────────


def _deck_with_due_dates(*dates):
    cards = [
        Card(id=f"c{i}", deck_id="d1", front=f"Q{i}", back="A", tags=[f"t{i % 2}"], next_review_date=d)
        for i, d in enumerate(dates)
    ]
    return Deck(id="d1", name="D", cards=cards)


def test_due_cards_include_rest_of_today():
    now = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)
    deck = _deck_with_due_dates(
        "2024-05-01T00:00:00+00:00",
        "2024-05-10T22:00:00+00:00",
        "2024-05-11T00:00:01+00:00",
    )
    assert [c.id for c in get_due_cards(deck, now)] == ["c0", "c1"]
    assert get_due_cards_count(deck, now) == 2
    assert get_total_due_cards_count([deck, deck], now) == 4


def test_due_cards_shuffle_keeps_members():
    now = datetime(2024, 5, 10, tzinfo=timezone.utc)
    deck = _deck_with_due_dates(*["2024-05-01T00:00:00+00:00"] * 5)
    assert sorted(c.id for c in get_due_cards(deck, now, shuffle=True)) == ["c0", "c1", "c2", "c3", "c4"]


def test_unique_tags_sorted():
    deck = _deck_with_due_dates(*["2024-05-01T00:00:00+00:00"] * 3)
    assert get_all_unique_tags([deck]) == ["t0", "t1"]


# ── Actions ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_add_deck_persists(root):
    cell = await _open(root)
    deck = await add_deck(cell, "Spanish")
    saved = json.loads((root / "decks.json").read_text(encoding="utf-8"))
    assert saved[0]["id"] == deck.id
    assert saved[0]["name"] == "Spanish"
    assert saved[0]["cards"] == []


@pytest.mark.asyncio
async def test_add_deck_rejects_empty_name(root):
    cell = await _open(root)
    with pytest.raises(ValidationError):
        await add_deck(cell, "   ")


@pytest.mark.asyncio
async def test_edit_and_delete_deck(root):
    cell = await _open(root)
    deck = await add_deck(cell, "Old")
    await edit_deck(cell, deck.id, "New")
    assert find_deck(cell.get(), deck.id).name == "New"
    await delete_deck(cell, deck.id)
    assert cell.get() == []
    assert json.loads((root / "decks.json").read_text(encoding="utf-8")) == []


@pytest.mark.asyncio
async def test_add_card_and_reload(root):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    card = await add_card(cell, deck.id, {"front": "hola", "back": "hello", "tags": ["greeting"]})
    assert card.date_added == card.next_review_date

    reopened = await _open(root)
    stored = find_deck(reopened.get(), deck.id).cards
    assert stored == [card]


@pytest.mark.asyncio
async def test_add_card_rejects_duplicate_front(root):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    await add_card(cell, deck.id, {"front": "Hola", "back": "hello"})
    with pytest.raises(DuplicateCardError):
        await add_card(cell, deck.id, {"front": "  hola ", "back": "hi"})


@pytest.mark.asyncio
async def test_add_card_unknown_deck(root):
    cell = await _open(root)
    with pytest.raises(ValueError, match="Deck not found"):
        await add_card(cell, "nope", {"front": "a", "back": "b"})


@pytest.mark.asyncio
async def test_edit_card_allows_same_front(root):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    card = await add_card(cell, deck.id, {"front": "one", "back": "1"})
    other = await add_card(cell, deck.id, {"front": "two", "back": "2"})

    await edit_card(cell, deck.id, card.id, {"front": "ONE", "back": "uno"})
    edited = find_deck(cell.get(), deck.id).cards[0]
    assert (edited.front, edited.back) == ("ONE", "uno")

    with pytest.raises(DuplicateCardError):
        await edit_card(cell, deck.id, other.id, {"front": "one", "back": "2"})


@pytest.mark.asyncio
async def test_delete_card(root):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    card = await add_card(cell, deck.id, {"front": "a", "back": "b"})
    await delete_card(cell, deck.id, card.id)
    assert find_deck(cell.get(), deck.id).cards == []


@pytest.mark.asyncio
async def test_update_card_after_review(root):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    card = await add_card(cell, deck.id, {"front": "a", "back": "b"})
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)

    updated = await update_card_after_review(cell, deck.id, card.id, 4, now)
    assert updated.repetition == 1
    assert updated.next_review_date == "2024-06-02T00:00:00+00:00"
    assert find_deck(cell.get(), deck.id).cards[0] == updated

    assert await update_card_after_review(cell, deck.id, "missing", 4, now) is None


@pytest.mark.asyncio
async def test_import_cards_skips_duplicates_and_invalid(root, caplog):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    await add_card(cell, deck.id, {"front": "existing", "back": "x"})
    raw = json.dumps([
        {"front": "new", "back": "1", "tags": ["t"]},
        {"front": "EXISTING", "back": "2"},
        {"front": "", "back": "3"},
        "not a card",
    ])
    with caplog.at_level(logging.INFO, logger="cellstore"):
        added = await import_cards_into_deck(cell, deck.id, raw)
    assert added == 1
    assert [c.front for c in find_deck(cell.get(), deck.id).cards] == ["existing", "new"]
    assert "Skipping existing card" in caplog.text


@pytest.mark.asyncio
async def test_import_cards_bad_json(root):
    cell = await _open(root)
    deck = await add_deck(cell, "D")
    assert await import_cards_into_deck(cell, deck.id, "{nope") == 0
    assert await import_cards_into_deck(cell, deck.id, '{"front": "a"}') == 0


def test_due_cards_accept_naive_now():
    deck = _deck_with_due_dates("2024-05-01T00:00:00+00:00", "2999-01-01T00:00:00+00:00")
    assert [c.id for c in get_due_cards(deck, datetime(2024, 5, 10, 9, 0))] == ["c0"]
