"""Focus tree and input routing.

Components own ``FocusFlag`` leaves and expose them through a
``FocusGroup``.  Only the ``FocusRouter`` ever changes a flag, so at most
one leaf in the current tree is focused.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from .canvas import Rect

logger = logging.getLogger('gh_issue_viewer')


class FocusFlag:
    """A focusable leaf; ``owner`` receives routed input."""

    def __init__(self, name: str, owner: object = None) -> None:
        self.name = name
        self.owner = owner
        self.focused = False
        self.area = Rect(0, 0, 0, 0)

    def __repr__(self) -> str:
        return f"FocusFlag({self.name!r}, focused={self.focused})"


class FocusGroup:
    def __init__(self, name: str, children: Sequence[Union["FocusGroup", FocusFlag]]) -> None:
        self.name = name
        self.children = list(children)

    def leaves(self) -> Iterator[FocusFlag]:
        for child in self.children:
            if isinstance(child, FocusGroup):
                yield from child.leaves()
            else:
                yield child


class FocusRouter:
    """Tab order is the in-order traversal of the groups given to ``rebuild``."""

    def __init__(self) -> None:
        self._leaves: List[FocusFlag] = []
        self._known: List[FocusFlag] = []

    @property
    def leaves(self) -> List[FocusFlag]:
        return list(self._leaves)

    def rebuild(self, groups: Iterable[Optional[FocusGroup]]) -> None:
        leaves: List[FocusFlag] = []
        for group in groups:
            if group is not None:
                leaves.extend(group.leaves())
        # Leaves that dropped out of the tree must not stay focused.
        for flag in self._known:
            if flag not in leaves:
                flag.focused = False
        self._leaves = leaves
        self._known = list(leaves)
        focused = [flag for flag in leaves if flag.focused]
        for extra in focused[1:]:
            extra.focused = False
        if not focused and leaves:
            leaves[0].focused = True

    def focused(self) -> Optional[FocusFlag]:
        for flag in self._leaves:
            if flag.focused:
                return flag
        return None

    def focus_named(self, name: str) -> Optional[FocusFlag]:
        for flag in self._leaves:
            if flag.name == name:
                return flag
        return None

    def advance(self, direction: int = 1) -> None:
        if not self._leaves:
            return
        current = self.focused()
        if current is None:
            index = 0 if direction >= 0 else len(self._leaves) - 1
        else:
            index = (self._leaves.index(current) + (1 if direction >= 0 else -1)) % len(self._leaves)
        self.force_transfer(self._leaves[index])

    def force_transfer(self, target: Union[FocusFlag, str]) -> bool:
        """Move focus to ``target`` even if another component owns the current leaf."""
        if isinstance(target, str):
            flag = self.focus_named(target)
            if flag is None:
                logger.debug("Focus target %s is not in the tree", target)
                return False
        else:
            flag = target
        for leaf in self._known:
            leaf.focused = False
        flag.focused = True
        if flag not in self._leaves:
            # Visible from the next rebuild on; keep it known until then.
            self._known.append(flag)
        return True

    def route(self, event: object) -> bool:
        """Deliver ``event`` to the focused leaf's owner only."""
        flag = self.focused()
        if flag is None or flag.owner is None:
            return False
        return bool(flag.owner.handle_input(event))
