"""Search bar: free text, ';'-separated labels and an open/closed/all choice."""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..actions import (
    Action,
    ActionQueue,
    InputEvent,
    SearchErrored,
    SearchFinished,
    SearchPage,
    Started,
    Tick,
)
from ..canvas import Canvas
from ..fetch import search_task, spawn
from ..focus import FocusFlag, FocusGroup
from ..models import AppState
from ..text import truncate
from .base import ScreenLayout, border_style
from .widgets import Spinner, TextField

STATE_OPTIONS = ("Open", "Closed", "All")


def build_query(text: str, labels: str, state: str, owner: str, repo: str) -> str:
    """GitHub search syntax for the current form values."""
    parts: List[str] = []
    if text.strip():
        parts.append(text.strip())
    for label in labels.split(";"):
        label = label.strip()
        if not label:
            continue
        if " " in label:
            label = f'"{label}"'
        parts.append(f"label:{label}")
    if state != "All":
        parts.append(f"is:{state.lower()}")
    parts.append(f"repo:{owner}/{repo}")
    parts.append("is:issue")
    return " ".join(parts)


class SearchBar:
    cid = "search_bar"

    def __init__(self, client, app_state: AppState) -> None:
        self.client = client
        self.owner = app_state.owner
        self.repo = app_state.repo
        self.query = TextField("search.query", self)
        self.labels = TextField("search.labels", self)
        self.state_flag = FocusFlag("search.state", self)
        self.state_index = 0
        self.loading = False
        self.error = ""
        self.spinner = Spinner("Searching")
        self._dispatcher: Optional[ActionQueue] = None

    @property
    def state(self) -> str:
        return STATE_OPTIONS[self.state_index]

    def register_dispatcher(self, dispatcher: ActionQueue) -> None:
        self._dispatcher = dispatcher

    def _send(self, action: Action) -> bool:
        if self._dispatcher is None:
            return False
        return self._dispatcher.send(action)

    def current_query(self) -> str:
        return build_query(self.query.text, self.labels.text, self.state, self.owner, self.repo)

    def search(self) -> bool:
        if self.loading:
            return False
        self.loading = True
        self.error = ""
        spawn(search_task(self.client, self._send, self.current_query(), "created", "desc"))
        return True

    def handle_action(self, action: Action) -> bool:
        if isinstance(action, Started):
            return self.search()
        if isinstance(action, SearchFinished):
            self.loading = False
            return True
        if isinstance(action, SearchErrored):
            self.loading = False
            self.error = action.message
            return True
        if isinstance(action, SearchPage):
            self.error = ""
            return False
        if isinstance(action, Tick):
            if not self.loading:
                return False
            self.spinner.advance()
            return True
        return False

    def handle_input(self, event: InputEvent) -> bool:
        if event.key == "enter":
            return self.search()
        if self.state_flag.focused:
            return self._cycle_state(event)
        for field in (self.query, self.labels):
            if field.focused:
                return field.handle(event)
        return False

    def _cycle_state(self, event: InputEvent) -> bool:
        if event.key in ("right", " ", "space"):
            step = 1
        elif event.key == "left":
            step = -1
        else:
            return False
        self.state_index = (self.state_index + step) % len(STATE_OPTIONS)
        return True

    def capture_focus_event(self, event: InputEvent) -> bool:
        # 'q' and '?' are ordinary characters inside the text fields.
        return (self.query.focused or self.labels.focused) and event.is_printable

    def is_visible(self) -> bool:
        return True

    def focus_membership(self) -> FocusGroup:
        return FocusGroup(self.cid, [self.query.flag, self.labels.flag, self.state_flag])

    def cursor_position(self) -> Optional[Tuple[int, int]]:
        return self.query.cursor() or self.labels.cursor()

    def render(self, canvas: Canvas, layout: ScreenLayout) -> None:
        if self.loading:
            title = self.spinner.text()
        elif self.error:
            title = f"Search: {self.error}"
        else:
            title = "Search"
        title_style = "class:error" if self.error and not self.loading else "class:title"
        area = layout.text_search
        canvas.box(area, truncate(title, area.width - 2), border_style(self.query.focused), title_style)
        self.query.render(canvas, area.inner())

        area = layout.label_search
        canvas.box(area, "Labels (a;b)", border_style(self.labels.focused), "class:title")
        self.labels.render(canvas, area.inner())

        area = layout.status_dropdown
        self.state_flag.area = area
        canvas.box(area, "State", border_style(self.state_flag.focused), "class:title")
        inner = area.inner()
        canvas.put(inner.x, inner.y, f"◀ {self.state} ▶", "class:title" if self.state_flag.focused else "",
                   inner.x + inner.width)
