"""Guard against saves triggered by the editor's own schedule loads.

Loading a schedule pushes nodes into the graph, and the graph answers with a
"nodes changed" notification. Saving in response would write the transitional
node list back over the one that is being loaded. The guard tracks whether a
load is in progress so that those saves can be dropped.
"""
import asyncio
import logging
from enum import StrEnum
from typing import Optional

from .const import SETTLE_SECONDS

_LOGGER = logging.getLogger(__name__)


class SyncState(StrEnum):
    """Sync guard states."""

    IDLE = "idle"
    LOADING = "loading"
    SAVING = "saving"


class SyncGuard:
    """State machine for load/save reentrancy."""

    def __init__(self, settle_seconds: float = SETTLE_SECONDS) -> None:
        """Initialize the guard."""
        self._settle_seconds = settle_seconds
        self._state = SyncState.IDLE
        self._saves_in_flight = 0
        self._settle_handle: Optional[asyncio.Handle] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is SyncState.LOADING

    def begin_load(self) -> None:
        """Enter the loading state before the displayed nodes are replaced.

        A fallback timer ends the load if the graph never reports completion.
        """
        self._cancel_settle()
        self._state = SyncState.LOADING
        loop = asyncio.get_running_loop()
        self._settle_handle = loop.call_later(self._settle_seconds, self._settle)
        _LOGGER.debug("Sync guard: loading")

    def load_complete(self) -> None:
        """Graph finished applying loaded nodes.

        Change notifications queued by the load itself still arrive in the
        current loop iteration, so the guard releases on the next one.
        """
        if self._state is not SyncState.LOADING:
            return
        self._cancel_settle()
        loop = asyncio.get_running_loop()
        self._settle_handle = loop.call_soon(self._settle)

    def try_begin_save(self) -> bool:
        """Enter the saving state, or refuse while a load is in progress."""
        if self._state is SyncState.LOADING:
            _LOGGER.debug("Sync guard: save suppressed while loading schedule")
            return False
        self._saves_in_flight += 1
        self._state = SyncState.SAVING
        return True

    def end_save(self) -> None:
        """Leave the saving state once the last in-flight save settles."""
        self._saves_in_flight = max(0, self._saves_in_flight - 1)
        if self._state is SyncState.SAVING and self._saves_in_flight == 0:
            self._state = SyncState.IDLE

    def _settle(self) -> None:
        self._settle_handle = None
        if self._state is SyncState.LOADING:
            self._state = SyncState.SAVING if self._saves_in_flight else SyncState.IDLE
            _LOGGER.debug(f"Sync guard: load settled, now {self._state}")

    def _cancel_settle(self) -> None:
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None
