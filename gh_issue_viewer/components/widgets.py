"""Small stateful building blocks shared by the panels."""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..actions import InputEvent
from ..canvas import Canvas, Rect
from ..focus import FocusFlag
from ..text import char_width, display_width

BRAILLE_SIX_DOUBLE = ("⠷", "⠯", "⠟", "⠻", "⠽", "⠾")

SCROLL_KEYS = {
    "up": -1, "k": -1,
    "down": 1, "j": 1,
}


class Spinner:
    def __init__(self, label: str, frames: Tuple[str, ...] = BRAILLE_SIX_DOUBLE) -> None:
        self.label = label
        self.frames = frames
        self.index = 0

    def advance(self) -> None:
        self.index = (self.index + 1) % len(self.frames)

    def text(self) -> str:
        return f"{self.frames[self.index]} {self.label}"


class TextField:
    """Editable buffer with the cursor kept at the end."""

    def __init__(self, name: str, owner: object, multiline: bool = False) -> None:
        self.flag = FocusFlag(name, owner)
        self.multiline = multiline
        self.text = ""
        self._cursor: Optional[Tuple[int, int]] = None

    @property
    def focused(self) -> bool:
        return self.flag.focused

    def set_text(self, text: str) -> None:
        self.text = text

    def handle(self, event: InputEvent) -> bool:
        if event.key == "backspace":
            if not self.text:
                return False
            self.text = self.text[:-1]
            return True
        if event.key == "enter":
            if not self.multiline:
                return False
            self.text += "\n"
            return True
        if event.key == "<bracketed-paste>":
            pasted = event.data.replace("\r\n", "\n").replace("\r", "\n")
            if not self.multiline:
                pasted = pasted.replace("\n", " ")
            self.text += pasted
            return bool(pasted)
        if event.is_printable:
            self.text += event.data
            return True
        return False

    def render(self, canvas: Canvas, area: Rect, style: str = "") -> None:
        """Draw the tail of the buffer that fits ``area``; records the cursor cell."""
        self.flag.area = area
        if area.width <= 0 or area.height <= 0:
            self._cursor = None
            return
        lines = self.text.split("\n") if self.multiline else [self.text.replace("\n", " ")]
        visible = lines[-area.height:]
        y = area.y
        col = area.x
        for line in visible:
            shown = _tail(line, area.width - 1)
            col = canvas.put(area.x, y, shown, style, area.x + area.width)
            y += 1
        self._cursor = (col, y - 1)

    def cursor(self) -> Optional[Tuple[int, int]]:
        return self._cursor if self.flag.focused else None


def _tail(text: str, width: int) -> str:
    if display_width(text) <= width:
        return text
    out: List[str] = []
    used = 0
    for ch in reversed(text):
        w = char_width(ch)
        if used + w > width:
            break
        out.append(ch)
        used += w
    return "".join(reversed(out))


class ListSelection:
    """Selected row plus the first visible row of a scrolling list."""

    def __init__(self) -> None:
        self.selected = 0
        self.offset = 0
        self.page = 10

    def reset(self) -> None:
        self.selected = 0
        self.offset = 0

    def clamp(self, count: int) -> None:
        if count <= 0:
            self.selected = 0
            self.offset = 0
            return
        self.selected = max(0, min(self.selected, count - 1))

    def handle(self, event: InputEvent, count: int) -> bool:
        """Move the selection for navigation keys; True when it moved."""
        if count <= 0:
            return False
        before = self.selected
        key = event.key
        if key in SCROLL_KEYS:
            self.selected += SCROLL_KEYS[key]
        elif key == "pageup":
            self.selected -= self.page
        elif key == "pagedown":
            self.selected += self.page
        elif key in ("home", "g"):
            self.selected = 0
        elif key in ("end", "G"):
            self.selected = count - 1
        else:
            return False
        self.clamp(count)
        return self.selected != before

    def visible_range(self, count: int, height: int) -> range:
        height = max(1, height)
        self.page = height
        if self.selected < self.offset:
            self.offset = self.selected
        elif self.selected >= self.offset + height:
            self.offset = self.selected - height + 1
        self.offset = max(0, min(self.offset, max(0, count - height)))
        return range(self.offset, min(count, self.offset + height))
