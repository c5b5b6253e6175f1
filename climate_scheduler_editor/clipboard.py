"""Schedule clipboard."""
import logging
from typing import Any, Dict, List, Optional

from .schedule import copy_nodes

_LOGGER = logging.getLogger(__name__)


class ClipboardService:
    """Single clipboard slot shared by every editor.

    The slot is not tied to a target or day; pasting somewhere else than the
    copy came from is how schedules are duplicated.
    """

    def __init__(self) -> None:
        """Initialize the clipboard."""
        self._nodes: Optional[List[Dict[str, Any]]] = None

    @property
    def has_content(self) -> bool:
        return bool(self._nodes)

    def copy(self, nodes: Optional[List[Dict[str, Any]]]) -> bool:
        """Store a snapshot of nodes. Empty lists leave the slot unchanged."""
        if not nodes:
            return False
        self._nodes = copy_nodes(nodes)
        _LOGGER.debug(f"Copied {len(self._nodes)} nodes to clipboard")
        return True

    def paste(self) -> Optional[List[Dict[str, Any]]]:
        """A fresh copy of the clipboard contents, or None when empty."""
        if not self._nodes:
            return None
        return copy_nodes(self._nodes)

    def clear(self) -> None:
        self._nodes = None
