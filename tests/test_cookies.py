"""Tests for cellstore/cookies.py"""

import json

import pytest

from cellstore.cookies import COOKIES_CODEC, add_parsed_cookie, cookie_header_for, open_cookies
from cellstore.errors import CollectingReporter, ValidationError
from cellstore.models import CookieOptions, ParsedCookie
from cellstore.registry import CellRegistry


def _cookie(name, value, domain="example.com"):
    return ParsedCookie(cookie_name=name, cookie_value=value, options=CookieOptions(domain=domain))


async def _open(root, reporter=None):
    cell = open_cookies(CellRegistry(reporter=reporter), root)
    await cell.ready
    return cell


@pytest.mark.asyncio
async def test_same_name_replaces_cookie(root):
    cell = await _open(root)
    assert add_parsed_cookie(cell, _cookie("session", "a")) is True
    add_parsed_cookie(cell, _cookie("theme", "dark"))
    add_parsed_cookie(cell, _cookie("session", "b"))
    cookies = cell.get()["example.com"]
    assert [(c.cookie_name, c.cookie_value) for c in cookies] == [("theme", "dark"), ("session", "b")]


@pytest.mark.asyncio
async def test_cookie_without_domain_is_ignored(root):
    cell = await _open(root)
    assert add_parsed_cookie(cell, _cookie("session", "a", domain="")) is False
    assert cell.get() == {}


@pytest.mark.asyncio
async def test_cookies_persist_by_domain(root):
    cell = await _open(root)
    add_parsed_cookie(cell, _cookie("session", "a"))
    add_parsed_cookie(cell, _cookie("id", "7", domain="other.org"))
    await cell.flush()

    saved = json.loads((root / "cookies.json").read_text(encoding="utf-8"))
    assert set(saved) == {"example.com", "other.org"}
    assert saved["example.com"][0]["cookieName"] == "session"

    reopened = await _open(root)
    assert reopened.get() == cell.get()


@pytest.mark.asyncio
async def test_invalid_file_degrades_to_empty(root):
    (root / "cookies.json").write_text('{"example.com": [{"cookieName": 1}]}', encoding="utf-8")
    reporter = CollectingReporter()
    cell = await _open(root, reporter)
    assert cell.get() == {}
    assert reporter.reports[0][1]["cell"] == "cookies"


def test_codec_rejects_non_object():
    with pytest.raises(ValidationError, match="Expected an object"):
        COOKIES_CODEC.deserialize("[]")


def test_cookie_header_matches_domain_suffix():
    cookies = {
        "example.com": [_cookie("a", "1"), _cookie("b", "2")],
        "other.org": [_cookie("c", "3", domain="other.org")],
    }
    assert cookie_header_for(cookies, "https://api.example.com/x") == "a=1; b=2"
    assert cookie_header_for(cookies, "https://nowhere.net") is None
    assert cookie_header_for(cookies, "ftp://example.com") is None
