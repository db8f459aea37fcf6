"""Bottom line: who, where, how many, and which keys do what."""

from __future__ import annotations

from typing import Optional, Tuple

from ..actions import Action, ActionQueue, InputEvent, MainScreen, ScreenChanged, SearchPage
from ..canvas import Canvas
from ..models import AppState
from .base import ScreenLayout

LIST_HINTS = "Tab focus · Enter open · ? help · q quit"
DETAILS_HINTS = "Esc back · Ctrl+S send · Tab focus · ? help"


class StatusBar:
    cid = "status_bar"

    def __init__(self, app_state: AppState) -> None:
        self.app_state = app_state
        self.issue_count = 0
        self.screen = MainScreen.LIST

    def register_dispatcher(self, dispatcher: ActionQueue) -> None:
        pass

    def handle_action(self, action: Action) -> bool:
        if isinstance(action, SearchPage):
            self.issue_count = len(action.issues)
            return True
        if isinstance(action, ScreenChanged):
            self.screen = action.screen
            return True
        return False

    def handle_input(self, event: InputEvent) -> bool:
        return False

    def capture_focus_event(self, event: InputEvent) -> bool:
        return False

    def is_visible(self) -> bool:
        return True

    def focus_membership(self):
        return None

    def cursor_position(self) -> Optional[Tuple[int, int]]:
        return None

    def render(self, canvas: Canvas, layout: ScreenLayout) -> None:
        area = layout.status_bar
        right = area.x + area.width
        canvas.fill(area, "class:status")
        login = self.app_state.current_user or "anonymous"
        col = canvas.put(area.x + 1, area.y, login, "class:status class:status.user", right)
        col = canvas.put(col, area.y, f"  {self.app_state.full_name}", "class:status", right)
        col = canvas.put(col, area.y, f"  {self.issue_count} issues", "class:status class:status.count", right)
        hints = LIST_HINTS if self.screen == MainScreen.LIST else DETAILS_HINTS
        start = max(col + 2, right - len(hints) - 1)
        canvas.put(start, area.y, hints, "class:status class:dim", right)
