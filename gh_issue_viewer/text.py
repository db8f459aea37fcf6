"""Display-width helpers for terminal cells."""

from __future__ import annotations

import re
import unicodedata
from typing import List, Optional

from prompt_toolkit.utils import get_cwidth

_CONTROL_RUN = re.compile(r"[\x00-\x1f\x7f]+")


def char_width(ch: str) -> int:
    """Return printable cell width for a single character."""
    # Combining marks and format characters occupy no cell of their own.
    if unicodedata.combining(ch) or unicodedata.category(ch) == "Cf":
        return 0
    fallback = 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1
    width = get_cwidth(ch)
    if width <= 0:
        return fallback
    return width if width > fallback else fallback


def display_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)


def sanitize_message(value: object) -> str:
    """Collapse control characters (newlines, tabs, ...) into single spaces."""
    text = str(value or "")
    return _CONTROL_RUN.sub(" ", text).strip()


def split_by_width(word: str, width: int) -> List[str]:
    """Break ``word`` anywhere into pieces of at most ``width`` cells.

    A glyph wider than ``width`` still gets a piece of its own so nothing
    is dropped.
    """
    width = max(1, width)
    parts: List[str] = []
    current: List[str] = []
    used = 0
    for ch in word:
        w = char_width(ch)
        if current and used + w > width:
            parts.append("".join(current))
            current = []
            used = 0
        current.append(ch)
        used += w
    if current:
        parts.append("".join(current))
    return parts


def truncate(s: Optional[str], maxlen: int) -> str:
    """Truncate string to a maximum display width, preserving whole glyphs."""
    s = sanitize_message(s)
    if maxlen <= 0:
        return ""
    if display_width(s) <= maxlen:
        return s
    ellipsis = "…"
    out: List[str] = []
    width = 0
    for ch in s:
        ch_w = char_width(ch)
        if width + ch_w + 1 > maxlen:
            break
        out.append(ch)
        width += ch_w
    return "".join(out) + ellipsis


def pad_display(text: Optional[str], width: int) -> str:
    """Pad/truncate text to an exact display width using spaces."""
    raw = truncate(text, width)
    return raw + " " * max(0, width - display_width(raw))
