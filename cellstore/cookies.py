"""Cookie jar: parsed cookies grouped by domain, kept in one file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from cellstore.backends import FileBackend
from cellstore.cell import PersistentCell
from cellstore.codecs import Codec, dump_json
from cellstore.errors import ValidationError
from cellstore.models import ParsedCookie
from cellstore.registry import CellRegistry
from cellstore.workspace import store_path

COOKIES_FILE = "cookies.json"

Cookies = dict[str, list[ParsedCookie]]


def validate_cookie(cookie: dict[str, Any]) -> list[str]:
    errors = []
    for key in ("cookieName", "cookieValue"):
        if not isinstance(cookie.get(key), str):
            errors.append(f"{key} must be a string")
    options = cookie.get("options")
    if not isinstance(options, dict):
        errors.append("options must be an object")
        return errors
    for key in ("domain", "path"):
        if not isinstance(options.get(key), str):
            errors.append(f"options.{key} must be a string")
    max_age = options.get("maxAge")
    if not isinstance(max_age, (int, float)) or isinstance(max_age, bool):
        errors.append("options.maxAge must be a number")
    if not isinstance(options.get("httpOnly"), bool):
        errors.append("options.httpOnly must be a boolean")
    same_site = options.get("sameSite")
    if same_site is not None and not isinstance(same_site, bool) and same_site not in ("lax", "strict", "none"):
        errors.append("options.sameSite must be a boolean or lax/strict/none")
    return errors


def _deserialize(raw: str) -> Cookies:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValidationError([f"Expected an object, got {type(data).__name__}"])
    cookies: Cookies = {}
    errors = []
    for domain, items in data.items():
        if not isinstance(items, list):
            errors.append(f"{domain}: expected a list")
            continue
        for i, item in enumerate(items):
            item_errors = validate_cookie(item) if isinstance(item, dict) else ["expected an object"]
            errors.extend(f"{domain}[{i}]: {e}" for e in item_errors)
        cookies[domain] = [ParsedCookie.from_dict(item) for item in items if isinstance(item, dict)]
    if errors:
        raise ValidationError(errors)
    return cookies


def _serialize(cookies: Cookies) -> str:
    return dump_json({domain: [c.to_dict() for c in items] for domain, items in cookies.items()})


COOKIES_CODEC = Codec(_serialize, _deserialize)


def open_cookies(registry: CellRegistry, root: Path | None = None) -> PersistentCell[Cookies]:
    return registry.create(
        "cookies",
        {},
        FileBackend(store_path(COOKIES_FILE, root)),
        serialize=COOKIES_CODEC.serialize,
        deserialize=COOKIES_CODEC.deserialize,
    )


def add_parsed_cookie(cell: PersistentCell[Cookies], cookie: ParsedCookie) -> bool:
    """Store a cookie under its domain, replacing one with the same name.

    Cookies without a domain cannot be stored; returns False for those.
    """
    domain = cookie.options.domain
    if not domain:
        return False
    cookies = cell.get()
    kept = [c for c in cookies.get(domain, []) if c.cookie_name != cookie.cookie_name]
    cell.set({**cookies, domain: [*kept, cookie]})
    return True


def cookie_header_for(cookies: Cookies, url: str) -> str | None:
    """``Cookie`` header value for a URL: every cookie whose domain suffixes its host."""
    if not url.startswith(("http://", "https://")):
        return None
    host = urlparse(url).hostname or ""
    pairs = [
        f"{c.cookie_name}={c.cookie_value}"
        for domain, items in cookies.items()
        if host.endswith(domain)
        for c in items
    ]
    return "; ".join(pairs) or None
