"""Typed dataclasses for the bundled stores.

All models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ── Decks ─────────────────────────────────────────────────────


@dataclass
class ReviewRecord:
    date: str
    quality: int

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ReviewRecord:
        return cls(date=str(d.get("date", "")), quality=int(d.get("quality", 0)))

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "quality": self.quality}


@dataclass
class Card:
    id: str
    deck_id: str
    front: str
    back: str
    tags: list[str] = field(default_factory=list)
    date_added: str = ""
    review_history: list[ReviewRecord] = field(default_factory=list)
    # SM-2 parameters
    repetition: int = 0
    interval: int = 1
    ease_factor: float = 2.5
    next_review_date: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Card:
        return cls(
            id=str(d.get("id", "")),
            deck_id=str(d.get("deckId", "")),
            front=str(d.get("front", "")),
            back=str(d.get("back", "")),
            tags=[str(t) for t in (d.get("tags") or [])],
            date_added=str(d.get("dateAdded", "")),
            review_history=[ReviewRecord.from_dict(r) for r in (d.get("reviewHistory") or [])],
            repetition=int(d.get("repetition", 0)),
            interval=int(d.get("interval", 1)),
            ease_factor=float(d.get("easeFactor", 2.5)),
            next_review_date=str(d.get("nextReviewDate", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "deckId": self.deck_id,
            "front": self.front,
            "back": self.back,
            "tags": list(self.tags),
            "dateAdded": self.date_added,
            "reviewHistory": [r.to_dict() for r in self.review_history],
            "repetition": self.repetition,
            "interval": self.interval,
            "easeFactor": self.ease_factor,
            "nextReviewDate": self.next_review_date,
        }


@dataclass
class Deck:
    id: str
    name: str
    cards: list[Card] = field(default_factory=list)
    date_added: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Deck:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            cards=[Card.from_dict(c) for c in (d.get("cards") or [])],
            date_added=str(d.get("dateAdded", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cards": [c.to_dict() for c in self.cards],
            "dateAdded": self.date_added,
        }


# ── Environments ──────────────────────────────────────────────


@dataclass
class Variable:
    value: str
    is_secret: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Variable:
        return cls(value=str(d.get("value", "")), is_secret=bool(d.get("isSecret", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "isSecret": self.is_secret}


@dataclass
class Environment:
    id: str
    name: str
    variables: dict[str, Variable] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Environment:
        variables = {}
        for key, vd in (d.get("variables") or {}).items():
            if isinstance(vd, dict):
                variables[key] = Variable.from_dict(vd)
        return cls(id=str(d.get("id", "")), name=str(d.get("name", "")), variables=variables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "variables": {k: v.to_dict() for k, v in self.variables.items()},
        }


# ── History ───────────────────────────────────────────────────


@dataclass
class HistoryEntry:
    id: str
    created_at: str
    request_snapshot: dict[str, Any] = field(default_factory=dict)
    response: dict[str, Any] = field(default_factory=dict)
    source_request_id: str | None = None
    active_environment_id: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HistoryEntry:
        return cls(
            id=str(d.get("id", "")),
            created_at=str(d.get("createdAt", "")),
            request_snapshot=dict(d.get("requestSnapshot") or {}),
            response=dict(d.get("response") or {}),
            source_request_id=d.get("sourceRequestId"),
            active_environment_id=d.get("activeEnvironmentId"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "createdAt": self.created_at,
            "requestSnapshot": self.request_snapshot,
            "response": self.response,
        }
        if self.source_request_id:
            d["sourceRequestId"] = self.source_request_id
        if self.active_environment_id:
            d["activeEnvironmentId"] = self.active_environment_id
        return d


# ── Collections ───────────────────────────────────────────────


@dataclass
class Header:
    value: str
    key: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Header:
        key = d.get("key")
        return cls(value=str(d.get("value", "")), key=None if key is None else str(key))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"value": self.value}
        if self.key is not None:
            d["key"] = self.key
        return d


@dataclass
class Request:
    id: str
    method: str
    url: str
    title: str | None = None
    body: str | None = None
    params: str | None = None
    variables: str | None = None
    query: str | None = None
    headers: list[Header] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Request:
        return cls(
            id=str(d.get("id", "")),
            method=str(d.get("method", "GET")),
            url=str(d.get("url", "")),
            title=d.get("title"),
            body=d.get("body"),
            params=d.get("params"),
            variables=d.get("variables"),
            query=d.get("query"),
            headers=[Header.from_dict(h) for h in (d.get("headers") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "method": self.method, "url": self.url}
        for key in ("title", "body", "params", "variables", "query"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        d["headers"] = [h.to_dict() for h in self.headers]
        return d


@dataclass
class Collection:
    id: str
    title: str
    base_url: str = ""
    requests: list[Request] = field(default_factory=list)
    headers: list[Header] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Collection:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            base_url=str(d.get("baseUrl") or ""),
            requests=[Request.from_dict(r) for r in (d.get("requests") or [])],
            headers=[Header.from_dict(h) for h in (d.get("headers") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.base_url:
            d["baseUrl"] = self.base_url
        d["requests"] = [r.to_dict() for r in self.requests]
        d["headers"] = [h.to_dict() for h in self.headers]
        return d


# ── Cookies ───────────────────────────────────────────────────


@dataclass
class CookieOptions:
    domain: str
    path: str = "/"
    max_age: int = 0
    http_only: bool = False
    expires: str | None = None
    secure: bool | None = None
    same_site: bool | str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CookieOptions:
        return cls(
            domain=str(d.get("domain", "")),
            path=str(d.get("path", "/")),
            max_age=int(d.get("maxAge", 0)),
            http_only=bool(d.get("httpOnly", False)),
            expires=d.get("expires"),
            secure=d.get("secure"),
            same_site=d.get("sameSite"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "domain": self.domain,
            "path": self.path,
            "maxAge": self.max_age,
            "httpOnly": self.http_only,
        }
        if self.expires is not None:
            d["expires"] = self.expires
        if self.secure is not None:
            d["secure"] = self.secure
        if self.same_site is not None:
            d["sameSite"] = self.same_site
        return d


@dataclass
class ParsedCookie:
    cookie_name: str
    cookie_value: str
    options: CookieOptions

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ParsedCookie:
        return cls(
            cookie_name=str(d.get("cookieName", "")),
            cookie_value=str(d.get("cookieValue", "")),
            options=CookieOptions.from_dict(d.get("options") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cookieName": self.cookie_name,
            "cookieValue": self.cookie_value,
            "options": self.options.to_dict(),
        }
