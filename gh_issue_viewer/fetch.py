"""Background remote operations.

Each ``*_task`` coroutine runs one blocking client call in the default
executor and reports the outcome as exactly one Action (two for a search
page).  Tasks never touch component state; the owning component applies
the Action in its own ``handle_action``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Callable, Hashable, Iterator, List, Set

from .actions import (
    Action,
    CommentPostErrored,
    CommentPosted,
    CommentsErrored,
    CommentsLoaded,
    LabelEditErrored,
    LabelMissing,
    LabelsUpdated,
    SearchErrored,
    SearchFinished,
    SearchPage,
)
from .errors import ClientNotInitialized, NotFoundError
from .models import CommentView, IssueSummary, Label, parse_int
from .text import sanitize_message

logger = logging.getLogger('gh_issue_viewer')

Send = Callable[[Action], bool]

_running: Set[asyncio.Task] = set()


def spawn(coro) -> "asyncio.Task":
    """Schedule ``coro`` on the running loop, keeping a reference until it ends."""
    task = asyncio.create_task(coro)
    _running.add(task)
    task.add_done_callback(_running.discard)
    return task


async def call_remote(func: Callable, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


def error_message(exc: BaseException) -> str:
    return sanitize_message(exc) or type(exc).__name__


class LoadingSet:
    """Keys with an outstanding remote operation."""

    def __init__(self) -> None:
        self._keys: Set[Hashable] = set()

    def begin(self, key: Hashable) -> bool:
        """Mark ``key`` in flight; False if it already was."""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def finish(self, key: Hashable) -> None:
        self._keys.discard(key)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(set(self._keys))


def _items(raw) -> list:
    """Dict entries of a JSON array payload."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"Malformed payload: expected a list, got {type(raw).__name__}")
    return [item for item in raw if isinstance(item, dict)]


def _labels(raw) -> tuple:
    return tuple(Label.from_api(item) for item in _items(raw))


async def fetch_comments_task(client, send: Send, owner: str, repo: str, number: int,
                              page_size: int = 100) -> None:
    logger.debug("Fetching comments for #%s", number)
    try:
        if client is None:
            raise ClientNotInitialized()
        raw = await call_remote(client.list_comments, owner, repo, number, page_size, 1)
        comments = [CommentView.from_api(item) for item in _items(raw)]
    except Exception as exc:
        logger.warning("Comment fetch for #%s failed: %s", number, error_message(exc))
        send(CommentsErrored(number=number, message=error_message(exc)))
        return
    send(CommentsLoaded(number=number, comments=comments))


async def post_comment_task(client, send: Send, owner: str, repo: str, number: int, body: str) -> None:
    logger.debug("Posting comment on #%s", number)
    try:
        if client is None:
            raise ClientNotInitialized()
        raw = await call_remote(client.create_comment, owner, repo, number, body)
        if not isinstance(raw, dict):
            raise ValueError(f"Malformed comment payload: {type(raw).__name__}")
        comment = CommentView.from_api(raw)
    except Exception as exc:
        logger.warning("Comment post on #%s failed: %s", number, error_message(exc))
        send(CommentPostErrored(number=number, message=error_message(exc)))
        return
    send(CommentPosted(number=number, comment=comment))


async def add_label_task(client, send: Send, owner: str, repo: str, number: int, name: str) -> None:
    """Attach an existing label; a missing one becomes ``LabelMissing``."""
    try:
        if client is None:
            raise ClientNotInitialized()
        await call_remote(client.get_label, owner, repo, name)
    except NotFoundError:
        logger.info("Label %r does not exist in %s/%s", name, owner, repo)
        send(LabelMissing(name=name, number=number))
        return
    except Exception as exc:
        logger.warning("Label lookup %r failed: %s", name, error_message(exc))
        send(LabelEditErrored(message=error_message(exc), number=number))
        return
    await _attach_labels(client, send, owner, repo, number, [name])


async def create_label_task(client, send: Send, owner: str, repo: str, number: int, name: str,
                            color: str, description: str = "") -> None:
    try:
        if client is None:
            raise ClientNotInitialized()
        await call_remote(client.create_label, owner, repo, name, color, description)
    except Exception as exc:
        logger.warning("Label creation %r failed: %s", name, error_message(exc))
        send(LabelEditErrored(message=error_message(exc), number=number))
        return
    await _attach_labels(client, send, owner, repo, number, [name])


async def _attach_labels(client, send: Send, owner: str, repo: str, number: int, names: List[str]) -> None:
    try:
        raw = await call_remote(client.add_labels, owner, repo, number, names)
        labels = _labels(raw)
    except Exception as exc:
        logger.warning("Adding labels %s to #%s failed: %s", names, number, error_message(exc))
        send(LabelEditErrored(message=error_message(exc), number=number))
        return
    send(LabelsUpdated(number=number, labels=labels))


async def remove_label_task(client, send: Send, owner: str, repo: str, number: int, name: str) -> None:
    try:
        if client is None:
            raise ClientNotInitialized()
        raw = await call_remote(client.remove_label, owner, repo, number, name)
        labels = _labels(raw)
    except Exception as exc:
        logger.warning("Removing label %r from #%s failed: %s", name, number, error_message(exc))
        send(LabelEditErrored(message=error_message(exc), number=number))
        return
    send(LabelsUpdated(number=number, labels=labels))


async def search_task(client, send: Send, query: str, sort: str = "created", order: str = "desc") -> None:
    logger.info("Searching: %s", query)
    try:
        if client is None:
            raise ClientNotInitialized()
        page = await call_remote(client.search_issues, query, sort, order)
        if not isinstance(page, dict):
            raise ValueError(f"Malformed search payload: {type(page).__name__}")
        issues = [
            IssueSummary.from_api(item)
            for item in _items(page.get("items"))
            if "pull_request" not in item
        ]
        total_count = parse_int(page.get("total_count"), "total_count")
    except Exception as exc:
        logger.warning("Search failed: %s", error_message(exc))
        send(SearchErrored(message=error_message(exc)))
        return
    send(SearchPage(total_count=total_count, issues=issues))
    send(SearchFinished())
