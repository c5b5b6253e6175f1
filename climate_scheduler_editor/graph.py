"""Collaborators the controller drives: the schedule graph and notifications."""
import logging
from typing import Any, Callable, Dict, List, Protocol

_LOGGER = logging.getLogger(__name__)


class GraphComponent(Protocol):
    """Interactive schedule graph.

    The graph reports edits through the controller's
    async_handle_nodes_changed hook and, after applying loaded nodes,
    through handle_load_complete.
    """

    enabled: bool

    def set_nodes(self, nodes: List[Dict[str, Any]]) -> None:
        """Replace the displayed nodes."""

    def get_nodes(self) -> List[Dict[str, Any]]:
        """Nodes currently displayed."""


Notifier = Callable[[str, str], None]


def log_notifier(message: str, level: str = "info") -> None:
    """Notifier that writes toasts to the log."""
    if level == "error":
        _LOGGER.error(message)
    elif level == "warning":
        _LOGGER.warning(message)
    else:
        _LOGGER.info(message)
