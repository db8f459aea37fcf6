"""Modal key reference drawn over the main area."""

from __future__ import annotations

from typing import Optional, Tuple

from ..actions import Action, ActionQueue, InputEvent
from ..canvas import Canvas, Rect
from .base import ScreenLayout

HELP_LINES = (
    ("Global", ""),
    ("Tab / Shift+Tab", "move focus"),
    ("?", "toggle this help"),
    ("q, Ctrl+C", "quit"),
    ("Search", ""),
    ("Enter", "run search"),
    ("← → Space", "cycle Open / Closed / All"),
    ("Issues", ""),
    ("↑ ↓ j k", "move selection"),
    ("PgUp PgDn Home End", "jump"),
    ("Enter", "open conversation"),
    ("Conversation", ""),
    ("Ctrl+S", "send comment"),
    ("Esc", "back to the issue list"),
    ("Labels", ""),
    ("a / d", "add / remove label"),
    ("y / n", "confirm or cancel creation"),
)


class HelpOverlay:
    cid = "help"

    def __init__(self) -> None:
        self.visible = False

    def toggle(self) -> None:
        self.visible = not self.visible

    def close(self) -> bool:
        if not self.visible:
            return False
        self.visible = False
        return True

    def register_dispatcher(self, dispatcher: ActionQueue) -> None:
        pass

    def handle_action(self, action: Action) -> bool:
        return False

    def handle_input(self, event: InputEvent) -> bool:
        return self.close()

    def capture_focus_event(self, event: InputEvent) -> bool:
        return False

    def is_visible(self) -> bool:
        return self.visible

    def focus_membership(self):
        return None

    def cursor_position(self) -> Optional[Tuple[int, int]]:
        return None

    def render(self, canvas: Canvas, layout: ScreenLayout) -> None:
        full = layout.full
        width = min(full.width - 4, 52)
        height = min(full.height - 2, len(HELP_LINES) + 3)
        if width < 10 or height < 3:
            return
        area = Rect(full.x + (full.width - width) // 2, full.y + (full.height - height) // 2, width, height)
        canvas.fill(area, "class:help")
        canvas.box(area, "Keys (any key closes)", "class:help class:border.focused", "class:help class:title")
        inner = area.inner()
        right = inner.x + inner.width
        for offset, (key, text) in enumerate(HELP_LINES[:inner.height]):
            y = inner.y + offset
            if not text:
                canvas.put(inner.x + 1, y, key, "class:help class:help.section", right)
                continue
            col = canvas.put(inner.x + 2, y, f"{key:<20}", "class:help class:help.key", right)
            canvas.put(col, y, text, "class:help", right)
