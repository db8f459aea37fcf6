"""Labels of the selected issue, with add/remove and create-on-demand.

Modes:
  idle            browse the label list; ``a`` add, ``d`` remove
  add             typing a label name
  confirm-create  the name does not exist in the repository; pick a colour
                  and confirm (y/Enter) or cancel (n/Esc)
  pending         a remote label operation is in flight
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..actions import (
    Action,
    ActionQueue,
    InputEvent,
    LabelEditErrored,
    LabelMissing,
    LabelsUpdated,
    SelectedIssueLabels,
)
from ..canvas import Canvas, Rect
from ..fetch import add_label_task, create_label_task, remove_label_task, spawn
from ..focus import FocusFlag, FocusGroup
from ..models import AppState, Label
from ..text import truncate
from .base import ScreenLayout, border_style
from .widgets import ListSelection

MODE_IDLE = "idle"
MODE_ADD = "add"
MODE_CONFIRM = "confirm-create"
MODE_PENDING = "pending"

MARKER = "•"
HEX_COLOR = re.compile(r"^[0-9a-fA-F]{6}$")
HEX_DIGITS = set("0123456789abcdefABCDEF#")
DEFAULT_SWATCH = "ededed"

HUES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Red", ("ffebe9", "ffcecb", "ffaba8", "ff8182", "fa4549")),
    ("Orange", ("fff8c5", "ffec99", "f7c843", "e16f24", "bc4c00")),
    ("Yellow", ("fff8c5", "fae17d", "eac54f", "d4a72c", "bf8700")),
    ("Green", ("dafbe1", "aceebb", "6fdd8b", "4ac26b", "2da44e")),
    ("Teal", ("d2f4ea", "96e9da", "4ac9b0", "1ea7a1", "0a7f7f")),
    ("Blue", ("ddf4ff", "b6e3ff", "80ccff", "54aeff", "0969da")),
    ("Purple", ("fbefff", "ecd8ff", "d8b9ff", "c297ff", "a475f9")),
    ("Gray", ("f6f8fa", "eaeef2", "d0d7de", "8c959f", "57606a")),
)


class ColorPicker:
    """Grid of GitHub label colours: one row per hue, five shades each."""

    def __init__(self, row: int = 7, col: int = 2) -> None:
        self.row = row
        self.col = col

    @classmethod
    def with_initial_hex(cls, value: str) -> "ColorPicker":
        normalized = value.strip().lstrip("#").lower()
        for r, (_, shades) in enumerate(HUES):
            for c, shade in enumerate(shades):
                if shade == normalized:
                    return cls(r, c)
        return cls()

    def selected_hex(self) -> str:
        return HUES[self.row][1][self.col]

    def hue_name(self) -> str:
        return HUES[self.row][0]

    def handle(self, event: InputEvent) -> bool:
        before = (self.row, self.col)
        if event.key == "up":
            self.row = max(0, self.row - 1)
        elif event.key == "down":
            self.row = min(len(HUES) - 1, self.row + 1)
        elif event.key == "left":
            self.col = max(0, self.col - 1)
        elif event.key == "right":
            self.col = min(len(HUES[self.row][1]) - 1, self.col + 1)
        else:
            return False
        return (self.row, self.col) != before


def normalize_color(text: str) -> Optional[str]:
    """Return the lowercase 6-digit hex colour or None when malformed."""
    value = text.strip().lstrip("#")
    if not HEX_COLOR.match(value):
        return None
    return value.lower()


class LabelEditor:
    cid = "label_editor"

    def __init__(self, client, app_state: AppState) -> None:
        self.client = client
        self.owner = app_state.owner
        self.repo = app_state.repo
        self.number: Optional[int] = None
        self.labels: List[Label] = []
        self.selection = ListSelection()
        self.flag = FocusFlag("labels", self)
        self.mode = MODE_IDLE
        self.name_input = ""
        self.pending_name = ""
        self.picker = ColorPicker()
        self.color_input = self.picker.selected_hex()
        self.status = ""
        self.status_is_error = False
        self._cursor: Optional[Tuple[int, int]] = None
        self._dispatcher: Optional[ActionQueue] = None

    def register_dispatcher(self, dispatcher: ActionQueue) -> None:
        self._dispatcher = dispatcher

    def _send(self, action: Action) -> bool:
        if self._dispatcher is None:
            return False
        return self._dispatcher.send(action)

    def _set_status(self, message: str, error: bool = False) -> None:
        self.status = message
        self.status_is_error = error

    # -- remote operations ------------------------------------------------
    def add_label(self, name: str) -> bool:
        name = name.strip()
        if not name:
            self._set_status("Label name cannot be empty", error=True)
            return False
        if self.number is None:
            self._set_status("No issue selected", error=True)
            return False
        self.mode = MODE_PENDING
        self.pending_name = name
        self._set_status(f"Adding {name}…")
        spawn(add_label_task(self.client, self._send, self.owner, self.repo, self.number, name))
        return True

    def create_label(self) -> bool:
        color = normalize_color(self.color_input)
        if color is None:
            self._set_status(f"Invalid color: {self.color_input}", error=True)
            return False
        if self.number is None:
            self._set_status("No issue selected", error=True)
            return False
        name = self.pending_name
        self.mode = MODE_PENDING
        self._set_status(f"Creating {name}…")
        spawn(create_label_task(self.client, self._send, self.owner, self.repo, self.number, name, color))
        return True

    def remove_selected(self) -> bool:
        if self.number is None or not self.labels:
            return False
        name = self.labels[self.selection.selected].name
        self.mode = MODE_PENDING
        self._set_status(f"Removing {name}…")
        spawn(remove_label_task(self.client, self._send, self.owner, self.repo, self.number, name))
        return True

    def _awaiting(self, number: Optional[int]) -> bool:
        """True while a label operation on the current issue is in flight."""
        if number is not None and number != self.number:
            return False
        return self.mode == MODE_PENDING

    # -- dispatch ---------------------------------------------------------
    def handle_action(self, action: Action) -> bool:
        if isinstance(action, SelectedIssueLabels):
            self.number = action.number
            self.labels = list(action.labels)
            self.selection.reset()
            self.mode = MODE_IDLE
            self.name_input = ""
            self._set_status("")
            return True
        if isinstance(action, LabelsUpdated):
            if action.number != self.number:
                return False
            self.labels = list(action.labels)
            self.selection.clamp(len(self.labels))
            self.mode = MODE_IDLE
            self._set_status("Labels updated")
            return True
        if isinstance(action, LabelMissing):
            if not self._awaiting(action.number) or action.name != self.pending_name:
                return False
            self.mode = MODE_CONFIRM
            self.pending_name = action.name
            self.picker = ColorPicker()
            self.color_input = self.picker.selected_hex()
            self._set_status(f'Label "{action.name}" does not exist. Create it? (y/n)')
            return True
        if isinstance(action, LabelEditErrored):
            if not self._awaiting(action.number):
                return False
            self.mode = MODE_IDLE
            self._set_status(action.message, error=True)
            return True
        return False

    def handle_input(self, event: InputEvent) -> bool:
        if self.mode == MODE_ADD:
            return self._handle_add_input(event)
        if self.mode == MODE_CONFIRM:
            return self._handle_confirm_input(event)
        if self.mode == MODE_PENDING:
            return False
        if event.key == "a":
            if self.number is None:
                self._set_status("No issue selected", error=True)
                return True
            self.mode = MODE_ADD
            self.name_input = ""
            self._set_status("Label name (Enter=add, Esc=cancel)")
            return True
        if event.key in ("d", "delete"):
            return self.remove_selected()
        return self.selection.handle(event, len(self.labels))

    def _handle_add_input(self, event: InputEvent) -> bool:
        if event.key == "escape":
            self.mode = MODE_IDLE
            self._set_status("")
            return True
        if event.key == "enter":
            if not self.add_label(self.name_input):
                return True
            self.name_input = ""
            return True
        if event.key == "backspace":
            self.name_input = self.name_input[:-1]
            return True
        if event.is_printable:
            self.name_input += event.data
            return True
        return False

    def _handle_confirm_input(self, event: InputEvent) -> bool:
        if event.key in ("n", "escape"):
            self.mode = MODE_IDLE
            self._set_status("Label creation cancelled")
            return True
        if event.key in ("y", "enter"):
            self.create_label()
            return True
        if self.picker.handle(event):
            self.color_input = self.picker.selected_hex()
            return True
        if event.key == "backspace":
            self.color_input = self.color_input[:-1]
            return True
        if event.is_printable and event.data in HEX_DIGITS:
            if len(self.color_input) >= 6 and normalize_color(self.color_input):
                self.color_input = ""
            self.color_input += event.data
            return True
        return False

    def capture_focus_event(self, event: InputEvent) -> bool:
        return self.mode in (MODE_ADD, MODE_CONFIRM) and event.is_printable

    def is_visible(self) -> bool:
        return True

    def focus_membership(self) -> FocusGroup:
        return FocusGroup(self.cid, [self.flag])

    def cursor_position(self) -> Optional[Tuple[int, int]]:
        if self.mode in (MODE_ADD, MODE_CONFIRM) and self.flag.focused:
            return self._cursor
        return None

    # -- rendering --------------------------------------------------------
    def render(self, canvas: Canvas, layout: ScreenLayout) -> None:
        area = layout.label_list
        self.flag.area = area
        title = "Labels" if self.number is None else f"Labels #{self.number}"
        canvas.box(area, title, border_style(self.flag.focused), "class:title")
        inner = area.inner()
        right = inner.x + inner.width
        footer = self._footer_height()
        list_height = max(0, inner.height - footer)
        rows = self.selection.visible_range(len(self.labels), list_height)
        for line_no, idx in enumerate(rows):
            label = self.labels[idx]
            y = inner.y + line_no
            selected = idx == self.selection.selected and self.mode == MODE_IDLE
            style = "class:selected.focused" if selected and self.flag.focused else ("class:selected" if selected else "")
            col = canvas.put(inner.x, y, f"{MARKER} ", f"fg:#{normalize_color(label.color) or DEFAULT_SWATCH}")
            canvas.put(col, y, truncate(label.name, right - col), style, right)
        if not self.labels and list_height:
            canvas.put(inner.x, inner.y, "(no labels)", "class:dim", right)
        self._render_footer(canvas, Rect(inner.x, inner.y + list_height, inner.width, footer))

    def _footer_height(self) -> int:
        if self.mode == MODE_CONFIRM:
            return 4
        return 2

    def _render_footer(self, canvas: Canvas, area: Rect) -> None:
        right = area.x + area.width
        y = area.y
        self._cursor = None
        if self.mode == MODE_ADD:
            col = canvas.put(area.x, y, "+ ", "class:title", right)
            col = canvas.put(col, y, self.name_input[-max(1, area.width - 3):], "", right)
            self._cursor = (col, y)
            y += 1
        elif self.mode == MODE_CONFIRM:
            col = canvas.put(area.x, y, "■ ", f"fg:#{normalize_color(self.color_input) or self.picker.selected_hex()}")
            col = canvas.put(col, y, f"#{self.color_input}", "", right)
            self._cursor = (col, y)
            y += 1
            swatches = HUES[self.picker.row][1]
            col = canvas.put(area.x, y, f"{self.picker.hue_name():<7}", "class:dim", right)
            for c, shade in enumerate(swatches):
                glyph = "[■]" if c == self.picker.col else " ■ "
                col = canvas.put(col, y, glyph, f"fg:#{shade}", right)
            y += 1
        status_style = "class:error" if self.status_is_error else "class:dim"
        if self.status and y < area.y + area.height:
            canvas.put(area.x, y, truncate(self.status, area.width), status_style, right)
