"""Markdown → fixed-width styled terminal lines.

``layout`` is a pure function: it walks a markdown-it token stream as a
flat sequence of start/end/text events and word-wraps the text into lines
of prompt_toolkit ``(style, text)`` fragments.  Callers cache the result;
see ``MarkdownCache``.
"""

from __future__ import annotations

from typing import Dict, Hashable, Iterator, List, NamedTuple, Optional

from markdown_it import MarkdownIt

from .text import display_width, split_by_width

Fragment = tuple
Line = List[Fragment]

MIN_WIDTH = 10

STYLE_EMPHASIS = "italic"
STYLE_STRONG = "bold"
STYLE_STRIKE = "strike"
STYLE_LINK = "fg:ansiblue underline"
STYLE_HEADING = "bold"
STYLE_INLINE_CODE = "fg:ansiyellow bold"
STYLE_CODE_BLOCK = "fg:ansibrightyellow"
STYLE_QUOTE_MARKER = "fg:ansibrightblack"
STYLE_RULE = "fg:ansibrightblack"

QUOTE_MARKER = "│ "
BULLET = "• "

_SCOPED_STYLES = {
    "emphasis": STYLE_EMPHASIS,
    "strong": STYLE_STRONG,
    "strikethrough": STYLE_STRIKE,
    "link": STYLE_LINK,
    "image": STYLE_LINK,
    "heading": STYLE_HEADING,
}

_parser: Optional[MarkdownIt] = None


def _markdown() -> MarkdownIt:
    global _parser
    if _parser is None:
        _parser = MarkdownIt("commonmark").enable("strikethrough")
    return _parser


class Event(NamedTuple):
    kind: str          # start | end | text | code | soft_break | hard_break | rule
    tag: str = ""
    value: object = None


_INLINE_PAIRS = {
    "em_open": ("start", "emphasis"),
    "em_close": ("end", "emphasis"),
    "strong_open": ("start", "strong"),
    "strong_close": ("end", "strong"),
    "s_open": ("start", "strikethrough"),
    "s_close": ("end", "strikethrough"),
    "link_open": ("start", "link"),
    "link_close": ("end", "link"),
}

_BLOCK_PAIRS = {
    "heading_open": ("start", "heading"),
    "heading_close": ("end", "heading"),
    "blockquote_open": ("start", "block_quote"),
    "blockquote_close": ("end", "block_quote"),
    "list_item_open": ("start", "item"),
    "list_item_close": ("end", "item"),
    "bullet_list_close": ("end", "list"),
    "ordered_list_close": ("end", "list"),
}


def _inline_events(children) -> Iterator[Event]:
    for tok in children or []:
        kind = tok.type
        if kind in _INLINE_PAIRS:
            yield Event(*_INLINE_PAIRS[kind])
        elif kind in ("text", "html_inline"):
            yield Event("text", value=tok.content)
        elif kind == "code_inline":
            yield Event("code", value=tok.content)
        elif kind == "softbreak":
            yield Event("soft_break")
        elif kind == "hardbreak":
            yield Event("hard_break")
        elif kind == "image":
            yield Event("start", "image")
            yield Event("text", value=tok.content)
            yield Event("end", "image")


def iter_events(source: str) -> Iterator[Event]:
    """Flatten markdown-it tokens into start/end/text events."""
    for tok in _markdown().parse(source or ""):
        kind = tok.type
        if kind == "inline":
            yield from _inline_events(tok.children)
        elif kind in ("paragraph_open", "paragraph_close"):
            # Tight list items hide their paragraphs.
            if not tok.hidden:
                yield Event("start" if kind.endswith("open") else "end", "paragraph")
        elif kind in _BLOCK_PAIRS:
            yield Event(*_BLOCK_PAIRS[kind])
        elif kind == "bullet_list_open":
            yield Event("start", "list", None)
        elif kind == "ordered_list_open":
            start = tok.attrGet("start")
            yield Event("start", "list", int(start) if start is not None else 1)
        elif kind in ("fence", "code_block"):
            yield Event("start", "code_block")
            yield Event("text", value=tok.content)
            yield Event("end", "code_block")
        elif kind == "html_block":
            yield Event("text", value=tok.content)
        elif kind == "hr":
            yield Event("rule")


class _ListItem:
    __slots__ = ("marker", "emitted")

    def __init__(self, marker: str) -> None:
        self.marker = marker
        self.emitted = False


class MarkdownRenderer:
    """Single-pass state machine over ``Event``s."""

    def __init__(self, max_width: int, indent: int = 0) -> None:
        self.lines: List[Line] = []
        self.current_line: Line = []
        self.current_width = 0
        self.max_width = max(max_width, MIN_WIDTH)
        self.indent = max(0, indent)
        self.style_stack: List[str] = []
        self.current_style = ""
        self.quote_depth = 0
        self.in_code_block = False
        self.lists: List[Optional[int]] = []
        self.items: List[_ListItem] = []
        self.pending_space = False

    # -- events -----------------------------------------------------------
    def feed(self, event: Event) -> None:
        if event.kind == "start":
            self.start_tag(event.tag, event.value)
        elif event.kind == "end":
            self.end_tag(event.tag)
        elif event.kind == "text":
            self.text(str(event.value or ""))
        elif event.kind == "code":
            self.inline_code(str(event.value or ""))
        elif event.kind == "soft_break":
            self.soft_break()
        elif event.kind == "hard_break":
            self.hard_break()
        elif event.kind == "rule":
            self.rule()

    def start_tag(self, tag: str, value: object = None) -> None:
        if tag in _SCOPED_STYLES:
            self.push_style(_SCOPED_STYLES[tag])
        elif tag == "block_quote":
            self.flush_line()
            self.quote_depth += 1
        elif tag == "code_block":
            self.flush_line()
            self.in_code_block = True
        elif tag == "list":
            self.flush_line()
            self.lists.append(value if isinstance(value, int) else None)
        elif tag == "item":
            self.flush_line()
            self.items.append(_ListItem(self._next_marker()))

    def end_tag(self, tag: str) -> None:
        if tag in _SCOPED_STYLES:
            self.pop_style()
            if tag == "heading":
                self.flush_line()
                self.push_blank_line()
        elif tag == "block_quote":
            self.flush_line()
            self.quote_depth = max(0, self.quote_depth - 1)
            self.push_blank_line()
        elif tag == "code_block":
            self.flush_line()
            self.in_code_block = False
            self.push_blank_line()
        elif tag == "paragraph":
            self.flush_line()
            self.push_blank_line()
        elif tag == "item":
            self.flush_line()
            if self.items:
                self.items.pop()
        elif tag == "list":
            self.flush_line()
            if self.lists:
                self.lists.pop()
            if not self.lists:
                self.push_blank_line()

    def text(self, text: str) -> None:
        if self.in_code_block:
            self.code_block_text(text)
        else:
            self.push_text(text, self.current_style)

    def inline_code(self, text: str) -> None:
        self.push_text(text, _compose(self.current_style, STYLE_INLINE_CODE))

    def soft_break(self) -> None:
        if self.in_code_block:
            self.hard_break()
        else:
            self.pending_space = True

    def hard_break(self) -> None:
        self.flush_line()

    def rule(self) -> None:
        self.flush_line()
        self.start_line()
        width = max(1, self.max_width - self.prefix_width())
        self._append(STYLE_RULE, "─" * width, width)
        self.flush_line()
        self.push_blank_line()

    # -- wrapping ---------------------------------------------------------
    def push_text(self, text: str, style: str) -> None:
        buffer: List[str] = []
        for ch in text:
            if ch == "\n":
                if buffer:
                    self.push_word("".join(buffer), style)
                    buffer = []
                self.flush_line()
            elif ch.isspace():
                if buffer:
                    self.push_word("".join(buffer), style)
                    buffer = []
                self.pending_space = True
            else:
                buffer.append(ch)
        if buffer:
            self.push_word("".join(buffer), style)

    def push_word(self, word: str, style: str) -> None:
        prefix_width = self.prefix_width()
        word_width = display_width(word)
        if word_width > self.max_width - prefix_width:
            self.push_long_word(word, style)
            self.pending_space = False
            return
        if not self.current_line:
            self.start_line()
        space_width = 1 if self.pending_space and self.current_width > prefix_width else 0
        if self.current_width + space_width + word_width > self.max_width and self.current_width > prefix_width:
            self.flush_line()
            self.start_line()
            space_width = 0
        if space_width:
            self._append("", " ", 1)
        self.pending_space = False
        self._append(style, word, word_width)

    def push_long_word(self, word: str, style: str) -> None:
        prefix_width = self.prefix_width()
        if self.current_width > prefix_width:
            self.flush_line()
        available = max(1, self.max_width - prefix_width)
        for idx, part in enumerate(split_by_width(word, available)):
            if idx > 0:
                self.flush_line()
            if not self.current_line:
                self.start_line()
            self._append(style, part, display_width(part))

    def code_block_text(self, text: str) -> None:
        if text.endswith("\n"):
            text = text[:-1]
        for line in text.split("\n"):
            self.flush_line()
            self.start_line()
            self._append(STYLE_CODE_BLOCK, line, display_width(line))
            self.flush_line()

    # -- line bookkeeping -------------------------------------------------
    def prefix_width(self) -> int:
        width = self.indent
        if self.quote_depth:
            width += display_width(QUOTE_MARKER)
        for item in self.items:
            width += display_width(item.marker)
        return width

    def start_line(self) -> None:
        if self.current_line:
            return
        if self.indent:
            self._append("", " " * self.indent, self.indent)
        if self.quote_depth:
            self._append(STYLE_QUOTE_MARKER, QUOTE_MARKER, display_width(QUOTE_MARKER))
        for item in self.items:
            width = display_width(item.marker)
            # An item opening straight into a nested list shows both markers.
            if not item.emitted:
                item.emitted = True
                self._append("", item.marker, width)
            else:
                self._append("", " " * width, width)

    def flush_line(self) -> None:
        self.pending_space = False
        if not self.current_line:
            return
        self.lines.append(self.current_line)
        self.current_line = []
        self.current_width = 0

    def push_blank_line(self) -> None:
        if not self.lines or not self.lines[-1]:
            return
        self.lines.append([])

    def push_style(self, style: str) -> None:
        self.style_stack.append(self.current_style)
        self.current_style = _compose(self.current_style, style)

    def pop_style(self) -> None:
        if self.style_stack:
            self.current_style = self.style_stack.pop()

    def finish(self) -> List[Line]:
        self.flush_line()
        while self.lines and not self.lines[-1]:
            self.lines.pop()
        if not self.lines:
            self.lines.append([("", "")])
        return self.lines

    def _append(self, style: str, text: str, width: int) -> None:
        self.current_line.append((style, text))
        self.current_width += width

    def _next_marker(self) -> str:
        if not self.lists or self.lists[-1] is None:
            return BULLET
        number = self.lists[-1]
        self.lists[-1] = number + 1
        return f"{number}. "


def _compose(base: str, extra: str) -> str:
    # Later attributes win in prompt_toolkit style strings.
    return f"{base} {extra}".strip()


def layout(source: str, max_width: int, indent: int = 0) -> List[Line]:
    """Render markdown ``source`` into lines no wider than ``max_width`` cells."""
    renderer = MarkdownRenderer(max_width, indent)
    for event in iter_events(source):
        renderer.feed(event)
    return renderer.finish()


def line_text(line: Line) -> str:
    return "".join(text for _, text in line)


class MarkdownCache:
    """Rendered lines keyed by content identity, valid for one width only."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent
        self.width = 0
        self._entries: Dict[Hashable, List[Line]] = {}

    def set_width(self, width: int) -> bool:
        """Switch layout width; returns True when cached lines were dropped."""
        if width == self.width:
            return False
        self.width = width
        self._entries.clear()
        return True

    def lines(self, key: Hashable, source: str) -> List[Line]:
        cached = self._entries.get(key)
        if cached is None:
            cached = layout(source, self.width, self.indent)
            self._entries[key] = cached
        return cached

    def discard(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
