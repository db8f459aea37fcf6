"""Plain data carried between the GitHub client, the caches and the panels."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def format_timestamp(value: Optional[str]) -> str:
    """Format an ISO-8601 API timestamp as ``YYYY-MM-DD HH:MM``.

    Anything unparseable is shown as it came.
    """
    if value is None or value == "":
        return ""
    if not isinstance(value, str):
        return str(value)
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime(TIMESTAMP_FORMAT)


def parse_int(value: object, name: str) -> int:
    """Integer field of an API payload; missing counts as 0."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Malformed {name}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ValueError(f"Malformed {name}: {value!r}")


def _login(data: Optional[Dict[str, object]]) -> str:
    if not isinstance(data, dict):
        return "ghost"
    return str(data.get("login") or "ghost")


@dataclass(frozen=True)
class Label:
    name: str
    color: str = "ededed"
    description: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, object]) -> "Label":
        return cls(
            name=str(data.get("name") or ""),
            color=str(data.get("color") or "ededed").lower(),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class ConversationSeed:
    """Snapshot of an issue used to open its conversation before comments load."""

    number: int
    author: str
    created_at: str
    body: Optional[str] = None


@dataclass(frozen=True)
class CommentView:
    id: int
    author: str
    created_at: str
    body: str

    @classmethod
    def from_api(cls, data: Dict[str, object]) -> "CommentView":
        return cls(
            id=parse_int(data.get("id"), "comment id"),
            author=_login(data.get("user")),
            created_at=format_timestamp(data.get("created_at")),
            body=str(data.get("body") or ""),
        )


@dataclass(frozen=True)
class IssueSummary:
    number: int
    title: str
    state: str
    author: str
    created_at: str
    body: Optional[str] = None
    labels: Tuple[Label, ...] = field(default_factory=tuple)
    comments: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, object]) -> "IssueSummary":
        labels = tuple(
            Label.from_api(item) for item in (data.get("labels") or []) if isinstance(item, dict)
        )
        body = data.get("body")
        return cls(
            number=parse_int(data.get("number"), "issue number"),
            title=str(data.get("title") or ""),
            state=str(data.get("state") or "open"),
            author=_login(data.get("user")),
            created_at=format_timestamp(data.get("created_at")),
            body=str(body) if body is not None else None,
            labels=labels,
            comments=parse_int(data.get("comments"), "comment count"),
        )

    def seed(self) -> ConversationSeed:
        return ConversationSeed(
            number=self.number,
            author=self.author,
            created_at=self.created_at,
            body=self.body,
        )


@dataclass(frozen=True)
class AppState:
    """Repository the session is bound to and who is looking at it."""

    owner: str
    repo: str
    current_user: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
