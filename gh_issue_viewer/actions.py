"""Action messages and the queue that serializes them for the dispatch loop.

Every input event, timer tick and background-task outcome becomes one
Action.  Producers only ever ``send``; the dispatch loop is the single
consumer.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import CommentView, ConversationSeed, IssueSummary, Label

logger = logging.getLogger('gh_issue_viewer')


class MainScreen(enum.Enum):
    LIST = "list"
    DETAILS = "details"


@dataclass(frozen=True)
class InputEvent:
    """A key press as reported by prompt_toolkit.

    ``key`` is the prompt_toolkit key name ('enter', 'c-s', 'up', ...) or the
    character itself for printable keys; ``data`` is the inserted text.
    """

    key: str
    data: str = ""

    @property
    def is_printable(self) -> bool:
        return len(self.data) == 1 and self.data.isprintable()


class Action:
    """Marker base for everything that travels through the ActionQueue."""


@dataclass(frozen=True)
class RawInput(Action):
    event: InputEvent


@dataclass(frozen=True)
class Tick(Action):
    pass


@dataclass(frozen=True)
class RenderRequest(Action):
    pass


@dataclass(frozen=True)
class Quit(Action):
    pass


@dataclass(frozen=True)
class Started(Action):
    pass


@dataclass(frozen=True)
class ScreenChanged(Action):
    screen: MainScreen


@dataclass(frozen=True)
class ForceFocusChange(Action):
    target: Optional[str] = None


@dataclass(frozen=True)
class EnterDetails(Action):
    seed: ConversationSeed


@dataclass(frozen=True)
class CommentsLoaded(Action):
    number: int
    comments: List[CommentView] = field(default_factory=list)


@dataclass(frozen=True)
class CommentsErrored(Action):
    number: int
    message: str


@dataclass(frozen=True)
class CommentPosted(Action):
    number: int
    comment: CommentView


@dataclass(frozen=True)
class CommentPostErrored(Action):
    number: int
    message: str


@dataclass(frozen=True)
class SelectedIssueLabels(Action):
    number: int
    labels: Tuple[Label, ...]


@dataclass(frozen=True)
class LabelsUpdated(Action):
    number: int
    labels: Tuple[Label, ...]


@dataclass(frozen=True)
class LabelMissing(Action):
    name: str
    number: Optional[int] = None


@dataclass(frozen=True)
class LabelEditErrored(Action):
    message: str
    number: Optional[int] = None


@dataclass(frozen=True)
class SearchPage(Action):
    total_count: int
    issues: List[IssueSummary] = field(default_factory=list)


@dataclass(frozen=True)
class SearchFinished(Action):
    pass


@dataclass(frozen=True)
class SearchErrored(Action):
    message: str


class ActionQueue:
    """Unbounded FIFO with many producers and one consumer."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, action: Action) -> bool:
        """Enqueue ``action``; returns False instead of raising once closed."""
        if self._closed:
            logger.debug("Dropping %s: action queue closed", type(action).__name__)
            return False
        self._queue.put_nowait(action)
        return True

    async def recv(self) -> Action:
        return await self._queue.get()

    def try_recv(self) -> Optional[Action]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def close(self) -> None:
        self._closed = True

    def __len__(self) -> int:
        return self._queue.qsize()
