"""Issue conversation: body plus comments, and the reply box.

Owns the comment cache, the rendered-markdown cache and the loading set
for comment fetches.  Fetch/post tasks report back only through Actions,
which are applied here on the dispatch thread.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from ..actions import (
    Action,
    ActionQueue,
    CommentPostErrored,
    CommentPosted,
    CommentsErrored,
    CommentsLoaded,
    EnterDetails,
    ForceFocusChange,
    InputEvent,
    MainScreen,
    ScreenChanged,
    Tick,
)
from ..canvas import Canvas, Rect
from ..fetch import LoadingSet, fetch_comments_task, post_comment_task, spawn
from ..focus import FocusFlag, FocusGroup
from ..markdown import Line, MarkdownCache
from ..models import AppState, CommentView, ConversationSeed
from .base import ScreenLayout, border_style
from .widgets import Spinner, TextField

logger = logging.getLogger('gh_issue_viewer')

INPUT_HEIGHT = 5
MARKDOWN_INDENT = 2
SEND_KEYS = ("c-s", "c-j")
LIST_LEAF = "conversation.list"
INPUT_LEAF = "conversation.input"
ISSUE_LIST_LEAF = "issue_list"


def body_key(number: int) -> Tuple[str, int]:
    return ("body", number)


class IssueConversation:
    cid = "conversation"

    def __init__(self, client, app_state: AppState, page_size: int = 100) -> None:
        self.client = client
        self.owner = app_state.owner
        self.repo = app_state.repo
        self.current_user = app_state.current_user
        self.page_size = page_size
        self.current: Optional[ConversationSeed] = None
        self.cache: Dict[int, List[CommentView]] = {}
        self.markdown = MarkdownCache(indent=MARKDOWN_INDENT)
        self.loading = LoadingSet()
        self.posting = False
        self.error: Optional[str] = None
        self.post_error: Optional[str] = None
        self.list_flag = FocusFlag(LIST_LEAF, self)
        self.input = TextField(INPUT_LEAF, self, multiline=True)
        self.scroll = 0
        self.throbber = Spinner("Loading")
        self.post_throbber = Spinner("Sending")
        self.screen = MainScreen.LIST
        self._page = 10
        self._dispatcher: Optional[ActionQueue] = None

    def register_dispatcher(self, dispatcher: ActionQueue) -> None:
        self._dispatcher = dispatcher

    def _send(self, action: Action) -> bool:
        if self._dispatcher is None:
            return False
        return self._dispatcher.send(action)

    # -- remote operations ------------------------------------------------
    def is_loading_current(self) -> bool:
        return self.current is not None and self.current.number in self.loading

    def is_current(self, number: int) -> bool:
        return self.current is not None and self.current.number == number

    def fetch_comments(self, number: int) -> bool:
        """Start a comment fetch for ``number`` unless one is already in flight."""
        if self._dispatcher is None:
            return False
        if number in self.loading:
            logger.debug("Comments for #%s already loading", number)
            return False
        self.loading.begin(number)
        self.error = None
        spawn(fetch_comments_task(self.client, self._send, self.owner, self.repo, number, self.page_size))
        return True

    def send_comment(self, number: int, body: str) -> bool:
        if self._dispatcher is None:
            return False
        self.posting = True
        self.post_error = None
        spawn(post_comment_task(self.client, self._send, self.owner, self.repo, number, body))
        return True

    # -- dispatch ---------------------------------------------------------
    def handle_action(self, action: Action) -> bool:
        if isinstance(action, EnterDetails):
            seed = action.seed
            self.current = seed
            self.post_error = None
            self.scroll = 0
            self.markdown.discard(body_key(seed.number))
            if seed.number in self.cache:
                self.loading.finish(seed.number)
                self.error = None
            else:
                self.fetch_comments(seed.number)
            return True
        if isinstance(action, CommentsLoaded):
            fetched = list(action.comments)
            seen = {comment.id for comment in fetched}
            # Comments posted while the fetch was in flight stay after the fetched ones.
            kept = [c for c in self.cache.get(action.number, []) if c.id not in seen]
            self.cache[action.number] = fetched + kept
            self.loading.finish(action.number)
            if self.is_current(action.number):
                self.error = None
            return True
        if isinstance(action, CommentsErrored):
            self.loading.finish(action.number)
            if self.is_current(action.number):
                self.error = action.message
            return True
        if isinstance(action, CommentPosted):
            self.posting = False
            self.cache.setdefault(action.number, []).append(action.comment)
            if self.is_current(action.number):
                self.post_error = None
            return True
        if isinstance(action, CommentPostErrored):
            self.posting = False
            if self.is_current(action.number):
                self.post_error = action.message
            return True
        if isinstance(action, ScreenChanged):
            self.screen = action.screen
            return True
        if isinstance(action, Tick):
            changed = False
            if self.is_loading_current():
                self.throbber.advance()
                changed = True
            if self.posting:
                self.post_throbber.advance()
                changed = True
            return changed and self.is_visible()
        return False

    def handle_input(self, event: InputEvent) -> bool:
        if self.screen != MainScreen.DETAILS:
            return False
        if event.key == "escape":
            self._send(ScreenChanged(screen=MainScreen.LIST))
            self._send(ForceFocusChange(target=ISSUE_LIST_LEAF))
            return True
        if self.input.focused:
            return self._handle_reply_input(event)
        return self._scroll(event)

    def _handle_reply_input(self, event: InputEvent) -> bool:
        if event.key in SEND_KEYS:
            if self.current is None or self.posting:
                return False
            body = self.input.text.strip()
            if not body:
                self.post_error = "Comment cannot be empty."
                return True
            self.input.set_text("")
            self.send_comment(self.current.number, body)
            return True
        if event.key == "tab":
            self._send(ForceFocusChange(target=LIST_LEAF))
            return True
        return self.input.handle(event)

    def _scroll(self, event: InputEvent) -> bool:
        before = self.scroll
        steps = {"up": -1, "k": -1, "down": 1, "j": 1, "pageup": -self._page, "pagedown": self._page}
        if event.key in steps:
            self.scroll = max(0, self.scroll + steps[event.key])
        elif event.key in ("home", "g"):
            self.scroll = 0
        elif event.key in ("end", "G"):
            self.scroll = 1 << 30
        else:
            return False
        return self.scroll != before

    def capture_focus_event(self, event: InputEvent) -> bool:
        if self.screen != MainScreen.DETAILS or not self.input.focused:
            return False
        return event.key in ("tab", "s-tab") or event.is_printable

    def is_visible(self) -> bool:
        return self.screen == MainScreen.DETAILS

    def focus_membership(self) -> FocusGroup:
        return FocusGroup(self.cid, [self.list_flag, self.input.flag])

    def cursor_position(self) -> Optional[Tuple[int, int]]:
        return self.input.cursor()

    # -- rendering --------------------------------------------------------
    def build_lines(self, width: int) -> List[Line]:
        """Conversation as styled lines for a content area ``width`` cells wide."""
        self.markdown.set_width(max(10, width - 4))
        lines: List[Line] = []
        if self.error:
            lines.append([("class:error", self.error)])
        seed = self.current
        if seed is None:
            lines.append([("class:dim", "Press Enter on an issue to view the conversation.")])
            return lines
        if seed.body and seed.body.strip():
            body = self.markdown.lines(body_key(seed.number), seed.body)
            lines.extend(self._comment_item(seed.author, seed.created_at, body))
        for comment in self.cache.get(seed.number, []):
            body = self.markdown.lines(comment.id, comment.body)
            if lines and lines[-1]:
                lines.append([])
            lines.extend(self._comment_item(comment.author, comment.created_at, body))
        return lines

    def _comment_item(self, author: str, created_at: str, body: List[Line]) -> List[Line]:
        author_style = "class:author.self" if author == self.current_user else "class:author"
        header: Line = [(author_style, author), ("", "  "), ("class:dim", created_at)]
        return [header] + list(body)

    def render(self, canvas: Canvas, layout: ScreenLayout) -> None:
        area = layout.main_content
        input_height = min(INPUT_HEIGHT, max(3, area.height // 3))
        content = Rect(area.x, area.y, area.width, max(2, area.height - input_height))
        reply = Rect(area.x, content.y + content.height, area.width, area.height - content.height)
        self.list_flag.area = content

        title = self.throbber.text() if self.is_loading_current() else "Conversation"
        if self.current is not None:
            title = f"#{self.current.number} {title}"
        canvas.box(content, title, border_style(self.list_flag.focused), "class:title")
        inner = content.inner()
        lines = self.build_lines(content.width)
        self._page = max(1, inner.height)
        self.scroll = max(0, min(self.scroll, max(0, len(lines) - inner.height)))
        for row, line in enumerate(lines[self.scroll:self.scroll + inner.height]):
            canvas.put_fragments(inner.x + 1, inner.y + row, line, inner.x + inner.width)

        reply_title = "Comment (Ctrl+S to send)"
        if self.posting:
            reply_title = f"{reply_title} {self.post_throbber.text()}"
        if self.post_error:
            reply_title = f"{reply_title} | {self.post_error}"
        canvas.box(reply, reply_title, border_style(self.input.focused),
                   "class:error" if self.post_error else "class:title")
        self.input.render(canvas, reply.inner())
