"""Search results; Enter opens the selected issue's conversation."""

from __future__ import annotations

import dataclasses
from typing import List, Optional, Tuple

from ..actions import (
    Action,
    ActionQueue,
    EnterDetails,
    ForceFocusChange,
    InputEvent,
    LabelsUpdated,
    MainScreen,
    ScreenChanged,
    SearchPage,
    SelectedIssueLabels,
)
from ..canvas import Canvas, Rect
from ..focus import FocusFlag, FocusGroup
from ..models import IssueSummary
from ..text import display_width, pad_display, truncate
from .base import ScreenLayout, border_style
from .widgets import ListSelection

CONVERSATION_INPUT = "conversation.input"


class IssueList:
    cid = "issue_list"

    def __init__(self) -> None:
        self.issues: List[IssueSummary] = []
        self.total_count = 0
        self.selection = ListSelection()
        self.flag = FocusFlag("issue_list", self)
        self.screen = MainScreen.LIST
        self._dispatcher: Optional[ActionQueue] = None

    def register_dispatcher(self, dispatcher: ActionQueue) -> None:
        self._dispatcher = dispatcher

    def _send(self, action: Action) -> bool:
        if self._dispatcher is None:
            return False
        return self._dispatcher.send(action)

    def selected_issue(self) -> Optional[IssueSummary]:
        if not self.issues:
            return None
        return self.issues[self.selection.selected]

    def _announce_selection(self) -> None:
        issue = self.selected_issue()
        if issue is not None:
            self._send(SelectedIssueLabels(number=issue.number, labels=issue.labels))

    def handle_action(self, action: Action) -> bool:
        if isinstance(action, SearchPage):
            self.issues = list(action.issues)
            self.total_count = action.total_count
            self.selection.reset()
            self._announce_selection()
            return True
        if isinstance(action, LabelsUpdated):
            for idx, issue in enumerate(self.issues):
                if issue.number == action.number:
                    self.issues[idx] = dataclasses.replace(issue, labels=tuple(action.labels))
                    return True
            return False
        if isinstance(action, ScreenChanged):
            self.screen = action.screen
            return True
        return False

    def handle_input(self, event: InputEvent) -> bool:
        if event.key == "enter":
            issue = self.selected_issue()
            if issue is None:
                return False
            self._send(EnterDetails(seed=issue.seed()))
            self._send(ScreenChanged(screen=MainScreen.DETAILS))
            self._send(ForceFocusChange(target=CONVERSATION_INPUT))
            return True
        if self.selection.handle(event, len(self.issues)):
            self._announce_selection()
            return True
        return False

    def capture_focus_event(self, event: InputEvent) -> bool:
        return False

    def is_visible(self) -> bool:
        return self.screen == MainScreen.LIST

    def focus_membership(self) -> FocusGroup:
        return FocusGroup(self.cid, [self.flag])

    def cursor_position(self) -> Optional[Tuple[int, int]]:
        return None

    def render(self, canvas: Canvas, layout: ScreenLayout) -> None:
        area = layout.main_content
        self.flag.area = area
        title = f"Issues {len(self.issues)}/{self.total_count}"
        canvas.box(area, title, border_style(self.flag.focused), "class:title")
        inner = area.inner()
        if not self.issues:
            canvas.put(inner.x + 1, inner.y, "No issues. Tab to the search bar and press Enter.", "class:dim", inner.x + inner.width)
            return
        rows = self.selection.visible_range(len(self.issues), inner.height)
        for line_no, idx in enumerate(rows):
            issue = self.issues[idx]
            y = inner.y + line_no
            selected = idx == self.selection.selected
            base = ("class:selected.focused" if self.flag.focused else "class:selected") if selected else ""
            if selected:
                canvas.fill(Rect(inner.x, y, inner.width, 1), base)
            state_style = "class:issue.open" if issue.state == "open" else "class:issue.closed"
            col = canvas.put(inner.x, y, f"#{issue.number:<6}", f"{base} class:issue.number".strip())
            col = canvas.put(col, y, "● ", f"{base} {state_style}".strip())
            tail = f"  {issue.author} · {issue.comments}💬"
            room = max(0, inner.width - (col - inner.x) - display_width(tail) - 1)
            col = canvas.put(col, y, pad_display(issue.title, room), base, inner.x + inner.width)
            canvas.put(col, y, truncate(tail, inner.x + inner.width - col), f"{base} class:dim".strip(),
                       inner.x + inner.width)
