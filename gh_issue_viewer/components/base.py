"""Component protocol, the ordered registry and screen geometry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from ..actions import Action, ActionQueue, InputEvent
from ..canvas import Canvas, Rect
from ..focus import FocusGroup


class Component(Protocol):
    """Capabilities every panel provides; the dispatch loop knows nothing else."""

    cid: str

    def render(self, canvas: Canvas, layout: "ScreenLayout") -> None: ...

    def handle_action(self, action: Action) -> bool:
        """Apply ``action``; True when something visible changed."""

    def handle_input(self, event: InputEvent) -> bool:
        """Routed key press for one of this component's focus leaves."""

    def register_dispatcher(self, dispatcher: ActionQueue) -> None: ...

    def cursor_position(self) -> Optional[Tuple[int, int]]: ...

    def is_visible(self) -> bool: ...

    def focus_membership(self) -> Optional[FocusGroup]: ...

    def capture_focus_event(self, event: InputEvent) -> bool:
        """True to keep global keys (tab, q, ?) for the focused leaf."""


class ComponentRegistry:
    """Components in dispatch order plus an id → index lookup."""

    def __init__(self) -> None:
        self._components: List[Component] = []
        self._index: Dict[str, int] = {}

    def register(self, component: Component) -> int:
        if component.cid in self._index:
            raise ValueError(f"Component id already registered: {component.cid}")
        self._components.append(component)
        self._index[component.cid] = len(self._components) - 1
        return self._index[component.cid]

    def index_of(self, cid: str) -> int:
        return self._index[cid]

    def get(self, cid: str) -> Component:
        return self._components[self._index[cid]]

    def __iter__(self) -> Iterator[Component]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)


@dataclass(frozen=True)
class ScreenLayout:
    full: Rect
    text_search: Rect
    label_search: Rect
    status_dropdown: Rect
    main_content: Rect
    label_list: Rect
    status_bar: Rect


SEARCH_HEIGHT = 3
DROPDOWN_WIDTH = 14


def compute_layout(cols: int, rows: int) -> ScreenLayout:
    cols = max(cols, 20)
    rows = max(rows, 6)
    label_search_width = max(12, cols // 4)
    text_width = max(1, cols - label_search_width - DROPDOWN_WIDTH)
    middle_height = max(1, rows - SEARCH_HEIGHT - 1)
    label_width = min(32, max(16, cols // 4))
    main_width = max(1, cols - label_width)
    return ScreenLayout(
        full=Rect(0, 0, cols, rows),
        text_search=Rect(0, 0, text_width, SEARCH_HEIGHT),
        label_search=Rect(text_width, 0, label_search_width, SEARCH_HEIGHT),
        status_dropdown=Rect(text_width + label_search_width, 0, DROPDOWN_WIDTH, SEARCH_HEIGHT),
        main_content=Rect(0, SEARCH_HEIGHT, main_width, middle_height),
        label_list=Rect(main_width, SEARCH_HEIGHT, label_width, middle_height),
        status_bar=Rect(0, rows - 1, cols, 1),
    )


def border_style(focused: bool) -> str:
    return "class:border.focused" if focused else "class:border"
