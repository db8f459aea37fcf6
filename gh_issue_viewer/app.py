"""Application shell: one prompt_toolkit window, one queue, one dispatch loop.

Key bindings only translate key presses into ``RawInput`` actions.  The
dispatch loop applies every action to every component in registry order,
rebuilds the focus tree and repaints when something changed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from prompt_toolkit import Application
from prompt_toolkit.data_structures import Point
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.styles import Style

from .actions import (
    Action,
    ActionQueue,
    ForceFocusChange,
    InputEvent,
    Quit,
    RawInput,
    RenderRequest,
    Started,
    Tick,
)
from .canvas import Canvas, Fragment
from .components import ComponentRegistry, build_components, compute_layout
from .config import Config
from .focus import FocusRouter
from .models import AppState

logger = logging.getLogger('gh_issue_viewer')

BASE_STYLE: Dict[str, str] = {
    'border': '#5f5f5f',
    'border.focused': '#ffd75f',
    'title': 'bold #ffd75f',
    'selected': 'bg:#303030',
    'selected.focused': 'bg:#444444 bold',
    'dim': '#8a8a8a',
    'error': 'bold #ff8787',
    'author': 'bold #87d7ff',
    'author.self': 'bold #87ff5f',
    'issue.number': '#87afff',
    'issue.open': '#87ff5f',
    'issue.closed': '#d787ff',
    'status': 'bg:#262626 #d0d0d0',
    'status.user': 'bold #87d7ff',
    'status.count': '#ffd787',
    'help': 'bg:#1c1c1c #f0f0f0',
    'help.section': 'bold #ffd75f',
    'help.key': '#5fd7af',
}

QUIT_KEYS = ("c-c", "c-q")

# prompt_toolkit reports some keys under their control-code names.
KEY_ALIASES = {
    "c-i": "tab",
    "c-m": "enter",
    "c-h": "backspace",
}


def normalize_key(key, data: str = "") -> InputEvent:
    """InputEvent for a prompt_toolkit key press (``Keys`` member or character)."""
    name = key.value if isinstance(key, Keys) else str(key)
    name = KEY_ALIASES.get(name, name)
    if name == Keys.BracketedPaste.value:
        return InputEvent(name, data)
    if len(name) == 1:
        return InputEvent(name, data or name)
    return InputEvent(name, "")


class IssueViewerApp:
    def __init__(self, client, app_state: AppState, config: Optional[Config] = None,
                 registry: Optional[ComponentRegistry] = None) -> None:
        self.config = config or Config(owner=app_state.owner, repo=app_state.repo)
        self.app_state = app_state
        self.queue = ActionQueue()
        self.registry = registry or build_components(client, app_state, self.config.comment_page_size)
        self.focus = FocusRouter()
        for component in self.registry:
            component.register_dispatcher(self.queue)
        self.help = self.registry.get("help")
        self.application: Optional[Application] = None
        self._fragments: List[Fragment] = []
        self._cursor: Optional[Tuple[int, int]] = None
        self._painted_size: Optional[Tuple[int, int]] = None
        self._dirty = True
        self.rebuild_focus()

    # -- focus ------------------------------------------------------------
    def rebuild_focus(self) -> None:
        self.focus.rebuild(c.focus_membership() for c in self.registry if c.is_visible())

    def _focused_owner(self):
        flag = self.focus.focused()
        return None if flag is None else flag.owner

    # -- dispatch ---------------------------------------------------------
    def dispatch(self, action: Action) -> bool:
        """Apply one action; False once the application should stop."""
        if isinstance(action, Quit):
            return False
        changed = isinstance(action, RenderRequest)
        if isinstance(action, RawInput):
            changed = self._handle_raw_input(action.event) or changed
        elif isinstance(action, ForceFocusChange):
            if action.target is None:
                self.focus.advance(1)
                changed = True
            else:
                changed = self.focus.force_transfer(action.target)
        for component in self.registry:
            try:
                changed = bool(component.handle_action(action)) or changed
            except Exception:
                logger.exception("%s failed to handle %s", component.cid, type(action).__name__)
        self.rebuild_focus()
        if changed:
            self.request_paint()
        return True

    def _handle_raw_input(self, event: InputEvent) -> bool:
        if event.key in QUIT_KEYS:
            self.queue.send(Quit())
            return False
        if self.help.is_visible():
            return self.help.handle_input(event)
        owner = self._focused_owner()
        captured = owner is not None and owner.capture_focus_event(event)
        if not captured:
            if event.key == "tab":
                self.focus.advance(1)
                return True
            if event.key == "s-tab":
                self.focus.advance(-1)
                return True
            if event.key == "q":
                self.queue.send(Quit())
                return False
            if event.key == "?":
                self.help.toggle()
                return True
        try:
            return self.focus.route(event)
        except Exception:
            logger.exception("Input handler failed for %r", event.key)
            return False

    async def run_loop(self) -> None:
        self.queue.send(Started())
        logger.info("Dispatch loop started for %s", self.app_state.full_name)
        try:
            while True:
                action = await self.queue.recv()
                if not self.dispatch(action):
                    break
        finally:
            self.queue.close()
            logger.info("Dispatch loop stopped")
            app = self.application
            if app is not None and app.is_running and not app.is_done:
                app.exit()

    async def _ticker(self) -> None:
        while not self.queue.closed:
            await asyncio.sleep(self.config.tick_interval)
            self.queue.send(Tick())

    # -- painting ---------------------------------------------------------
    def request_paint(self) -> None:
        self._dirty = True
        if self.application is not None:
            self.application.invalidate()

    def paint(self, cols: int, rows: int) -> List[Fragment]:
        layout = compute_layout(cols, rows)
        canvas = Canvas(layout.full.width, layout.full.height)
        for component in self.registry:
            if not component.is_visible():
                continue
            try:
                component.render(canvas, layout)
            except Exception:
                logger.exception("%s failed to render", component.cid)
        owner = self._focused_owner()
        self._cursor = None
        if owner is not None and owner.is_visible() and not self.help.is_visible():
            self._cursor = owner.cursor_position()
        self._fragments = canvas.to_fragments()
        self._painted_size = (cols, rows)
        self._dirty = False
        return self._fragments

    def _get_fragments(self) -> List[Fragment]:
        size = self.application.output.get_size() if self.application is not None else None
        cols, rows = (size.columns, size.rows) if size is not None else (80, 24)
        if self._dirty or self._painted_size != (cols, rows):
            self.paint(cols, rows)
        return self._fragments

    def _get_cursor(self) -> Optional[Point]:
        if self._cursor is None:
            return None
        return Point(x=self._cursor[0], y=self._cursor[1])

    def build_application(self) -> Application:
        kb = KeyBindings()

        @kb.add(Keys.Any, eager=True)
        def _(event):
            press = event.key_sequence[0]
            self.queue.send(RawInput(normalize_key(press.key, event.data or press.data)))

        control = FormattedTextControl(text=self._get_fragments, get_cursor_position=self._get_cursor)
        window = Window(content=control, wrap_lines=False,
                        always_hide_cursor=Condition(lambda: self._cursor is None))
        style = Style.from_dict({**BASE_STYLE, **self.config.style})
        self.application = Application(layout=Layout(window), key_bindings=kb, full_screen=True, style=style)
        return self.application

    def run(self) -> None:
        app = self.build_application()

        def _start_tasks() -> None:
            app.create_background_task(self.run_loop())
            app.create_background_task(self._ticker())

        app.run(pre_run=_start_tasks)
