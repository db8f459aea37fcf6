"""UI panels and the registry that fixes their dispatch and paint order."""

from .base import Component, ComponentRegistry, ScreenLayout, compute_layout
from .conversation import IssueConversation
from .help import HelpOverlay
from .issue_list import IssueList
from .labels import LabelEditor
from .search import SearchBar
from .status import StatusBar


def build_components(client, app_state, comment_page_size=100):
    """Register every panel in dispatch order; help is last so it paints on top."""
    registry = ComponentRegistry()
    registry.register(SearchBar(client, app_state))
    registry.register(IssueList())
    registry.register(IssueConversation(client, app_state, page_size=comment_page_size))
    registry.register(LabelEditor(client, app_state))
    registry.register(StatusBar(app_state))
    registry.register(HelpOverlay())
    return registry


__all__ = [
    "Component",
    "ComponentRegistry",
    "ScreenLayout",
    "compute_layout",
    "build_components",
    "HelpOverlay",
    "IssueConversation",
    "IssueList",
    "LabelEditor",
    "SearchBar",
    "StatusBar",
]
