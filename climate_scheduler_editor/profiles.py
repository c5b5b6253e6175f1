"""Profile overlays: edit a profile without making it the live one."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from homeassistant.exceptions import HomeAssistantError

from .exceptions import ProfileReactivationFailure
from .models import ScheduleMode, ScheduleState
from .session import EditorSession
from .store import ScheduleStore

_LOGGER = logging.getLogger(__name__)


class ProfileOverlay:
    """Route loads and saves to the profile being edited.

    The store only writes into the active profile, so saving a different
    profile temporarily activates it and then restores the original.
    """

    def __init__(self, store: ScheduleStore) -> None:
        """Initialize the overlay."""
        self._store = store

    def sync_from_state(self, session: EditorSession, state: Optional[ScheduleState]) -> None:
        """Adopt the store's active profile and drop a stale editing pointer."""
        if state is None:
            session.active_profile = None
            session.editing_profile = None
            return
        session.active_profile = state.active_profile
        if session.editing_profile is not None and session.editing_profile not in state.profiles:
            _LOGGER.warning(
                f"Profile '{session.editing_profile}' no longer exists for "
                f"'{session.target.target_id}', editing '{state.active_profile}'"
            )
            session.editing_profile = None
        elif session.editing_profile == state.active_profile:
            session.editing_profile = None

    def schedules_for(
        self, session: EditorSession, state: Optional[ScheduleState]
    ) -> Tuple[Dict[str, List[Dict[str, Any]]], ScheduleMode, Optional[List[Dict[str, Any]]]]:
        """Bucket map, mode and legacy nodes of the profile in view."""
        if state is None:
            return {}, session.mode, None
        if session.is_overlaying:
            profile = state.profile(session.editing_profile)
            if profile is not None:
                return profile.schedules, profile.schedule_mode, None
        return state.schedules, state.schedule_mode, state.nodes

    def select(self, session: EditorSession, profile_name: str) -> None:
        """Start editing a profile; selecting the active one ends the overlay."""
        if session.state is not None and profile_name not in session.state.profiles:
            raise ValueError(f"Profile '{profile_name}' does not exist")
        if profile_name == session.active_profile:
            session.editing_profile = None
        else:
            session.editing_profile = profile_name
        _LOGGER.info(f"Editing profile '{profile_name}' (active: '{session.active_profile}')")

    def return_to_active(self, session: EditorSession) -> bool:
        """Stop editing a non-active profile. Returns True if one was being edited."""
        was_overlaying = session.is_overlaying
        session.editing_profile = None
        return was_overlaying

    async def async_write(
        self,
        session: EditorSession,
        nodes: List[Dict[str, Any]],
        bucket: str,
        mode: ScheduleMode,
    ) -> None:
        """Write nodes into one bucket of the profile in view."""
        await self.async_write_buckets(session, [(bucket, nodes)], mode)

    async def async_write_buckets(
        self,
        session: EditorSession,
        writes: List[Tuple[str, List[Dict[str, Any]]]],
        mode: ScheduleMode,
    ) -> None:
        """Write several buckets of the profile in view.

        For a non-active profile: activate it, write, then reactivate the
        original. A failed write still attempts the reactivation; a failed
        reactivation raises ProfileReactivationFailure.
        """
        target = session.target
        if not session.is_overlaying:
            for bucket, nodes in writes:
                await self._store.async_set_schedule(target, nodes, bucket, mode)
            return

        editing = session.editing_profile
        original = session.active_profile
        _LOGGER.debug(
            f"Writing {[bucket for bucket, _ in writes]} of profile '{editing}' through temporary activation"
        )

        await self._store.async_set_active_profile(target, editing)
        try:
            for bucket, nodes in writes:
                await self._store.async_set_schedule(target, nodes, bucket, mode)
        finally:
            try:
                await self._store.async_set_active_profile(target, original)
            except (HomeAssistantError, ValueError) as err:
                _LOGGER.error(
                    f"Could not restore active profile '{original}' for '{target.target_id}': {err}"
                )
                raise ProfileReactivationFailure(target.target_id, original, editing, err) from err

    async def async_activate(self, session: EditorSession, profile_name: str) -> None:
        """Make a profile live and stop overlaying."""
        await self._store.async_set_active_profile(session.target, profile_name)
        session.active_profile = profile_name
        session.editing_profile = None

    async def async_create(self, session: EditorSession, profile_name: str) -> None:
        await self._store.async_create_profile(session.target, profile_name)

    async def async_rename(self, session: EditorSession, old_name: str, new_name: str) -> None:
        await self._store.async_rename_profile(session.target, old_name, new_name)
        if session.editing_profile == old_name:
            session.editing_profile = new_name
        if session.active_profile == old_name:
            session.active_profile = new_name

    async def async_delete(self, session: EditorSession, profile_name: str) -> None:
        await self._store.async_delete_profile(session.target, profile_name)
        if session.editing_profile == profile_name:
            session.editing_profile = None
