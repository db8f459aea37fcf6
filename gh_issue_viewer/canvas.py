"""Cell grid the panels paint into, flattened to prompt_toolkit fragments."""

from __future__ import annotations

from typing import List, NamedTuple, Optional, Sequence, Tuple

from .text import char_width, truncate

Fragment = Tuple[str, str]

_WIDE_TAIL = None  # second cell of a double-width glyph


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    def inner(self, margin: int = 1) -> "Rect":
        return Rect(
            self.x + margin,
            self.y + margin,
            max(0, self.width - 2 * margin),
            max(0, self.height - 2 * margin),
        )

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


class Canvas:
    def __init__(self, width: int, height: int, style: str = "") -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self._cells: List[List[Optional[Fragment]]] = [
            [(style, " ") for _ in range(self.width)] for _ in range(self.height)
        ]

    def put(self, x: int, y: int, text: str, style: str = "", max_x: Optional[int] = None) -> int:
        """Write ``text`` starting at (x, y); returns the column after the last glyph."""
        if not 0 <= y < self.height:
            return x
        limit = self.width if max_x is None else min(self.width, max_x)
        col = x
        for ch in text:
            w = char_width(ch)
            if w == 0:
                continue
            if col + w > limit:
                break
            if col >= 0:
                row = self._cells[y]
                # Overwriting half of a wide glyph blanks the other half.
                if row[col] is _WIDE_TAIL and col > 0:
                    row[col - 1] = (style, " ")
                end = col + w
                if end < self.width and row[end] is _WIDE_TAIL:
                    row[end] = (style, " ")
                row[col] = (style, ch)
                if w == 2:
                    row[col + 1] = _WIDE_TAIL
            col += w
        return col

    def put_fragments(self, x: int, y: int, fragments: Sequence[Fragment], max_x: Optional[int] = None,
                      base_style: str = "") -> int:
        col = x
        for style, text in fragments:
            merged = f"{base_style} {style}".strip() if base_style else style
            col = self.put(col, y, text, merged, max_x)
        return col

    def fill(self, rect: Rect, style: str = "") -> None:
        for y in range(rect.y, min(self.height, rect.y + rect.height)):
            for x in range(rect.x, min(self.width, rect.x + rect.width)):
                self._cells[y][x] = (style, " ")

    def box(self, rect: Rect, title: str = "", style: str = "", title_style: str = "") -> None:
        """Rounded border around ``rect`` with an optional title on the top edge."""
        if rect.width < 2 or rect.height < 2:
            return
        right = rect.x + rect.width - 1
        bottom = rect.y + rect.height - 1
        horizontal = "─" * (rect.width - 2)
        self.put(rect.x, rect.y, "╭" + horizontal + "╮", style)
        self.put(rect.x, bottom, "╰" + horizontal + "╯", style)
        for y in range(rect.y + 1, bottom):
            self.put(rect.x, y, "│", style)
            self.put(right, y, "│", style)
        if title:
            self.put(rect.x + 1, rect.y, truncate(title, rect.width - 2), title_style or style, right)

    def to_fragments(self) -> List[Fragment]:
        out: List[Fragment] = []
        for row_index, row in enumerate(self._cells):
            if row_index:
                out.append(("", "\n"))
            run_style: Optional[str] = None
            run: List[str] = []
            for cell in row:
                if cell is _WIDE_TAIL:
                    continue
                style, ch = cell
                if style != run_style and run:
                    out.append((run_style or "", "".join(run)))
                    run = []
                run_style = style
                run.append(ch)
            if run:
                out.append((run_style or "", "".join(run)))
        return out
