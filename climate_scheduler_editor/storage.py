"""In-process schedule store with the same semantics as the integration's storage."""
import copy
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from homeassistant.const import UnitOfTemperature

from .const import (
    BUCKET_ALL_DAYS,
    DEFAULT_PROFILE,
    MAX_TEMP,
    MAX_TEMP_F,
    MIN_TEMP,
    MIN_TEMP_F,
)
from .models import (
    Capabilities,
    GroupRecord,
    ScheduleMode,
    ScheduleState,
    Target,
    parse_groups,
)
from .schedule import validate_nodes
from .store import ScheduleStore

_LOGGER = logging.getLogger(__name__)

SINGLE_ENTITY_PREFIX = "__entity_"


def _new_group(entities: List[str], mode: str = BUCKET_ALL_DAYS, single: bool = False) -> Dict[str, Any]:
    group = {
        "entities": entities,
        "enabled": True,
        "schedule_mode": mode,
        "schedules": {},
        "profiles": {
            DEFAULT_PROFILE: {
                "schedule_mode": mode,
                "schedules": {},
            }
        },
        "active_profile": DEFAULT_PROFILE,
    }
    if single:
        group["_is_single_entity_group"] = True
    return group


class LocalScheduleStore(ScheduleStore):
    """Handle storage of schedules in memory.

    Mirrors the climate_scheduler backend: entities live in single-entity
    groups, and every schedule write is copied into whichever profile is
    active at the time of the write.
    """

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        temperature_unit: str = UnitOfTemperature.CELSIUS,
    ) -> None:
        """Initialize storage."""
        self._data: Dict[str, Any] = copy.deepcopy(data) if data else {}
        self._data.setdefault("groups", {})
        self._data.setdefault("states", {})
        self._data.setdefault("history", {})
        settings = self._data.setdefault("settings", {})
        # Ensure min/max temp defaults are present in settings
        if "min_temp" not in settings:
            settings["min_temp"] = MIN_TEMP_F if temperature_unit == UnitOfTemperature.FAHRENHEIT else MIN_TEMP
        if "max_temp" not in settings:
            settings["max_temp"] = MAX_TEMP_F if temperature_unit == UnitOfTemperature.FAHRENHEIT else MAX_TEMP

    def as_dict(self) -> Dict[str, Any]:
        """Snapshot of everything stored."""
        return copy.deepcopy(self._data)

    def _group_key(self, target: Target) -> str:
        if target.is_group:
            return target.target_id
        for group_name, group_data in self._data["groups"].items():
            if not group_data.get("_is_single_entity_group", False) and target.target_id in group_data.get("entities", []):
                return group_name
        return f"{SINGLE_ENTITY_PREFIX}{target.target_id}"

    def _group(self, target: Target, create: bool = False) -> Optional[Dict[str, Any]]:
        key = self._group_key(target)
        group_data = self._data["groups"].get(key)
        if group_data is None and create:
            if target.is_group:
                raise ValueError(f"Group '{key}' does not exist")
            group_data = _new_group([target.target_id], single=True)
            self._data["groups"][key] = group_data
            _LOGGER.info(f"Created single-entity group '{key}' for {target.target_id}")
        return group_data

    def _require_group(self, target: Target) -> Dict[str, Any]:
        group_data = self._group(target)
        if group_data is None:
            raise ValueError(f"'{target.target_id}' does not exist")
        return group_data

    def create_group(self, group_name: str, entities: Optional[List[str]] = None) -> None:
        """Create a new group."""
        if group_name in self._data["groups"]:
            raise ValueError(f"Group '{group_name}' already exists")
        self._data["groups"][group_name] = _new_group(list(entities or []))
        _LOGGER.info(f"Created group '{group_name}'")

    def delete_group(self, group_name: str) -> None:
        """Delete a group."""
        if self._data["groups"].pop(group_name, None) is not None:
            _LOGGER.info(f"Deleted group '{group_name}'")

    def set_entity_state(
        self,
        entity_id: str,
        attributes: Dict[str, Any],
        history: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """Record a climate entity's attributes and temperature history."""
        self._data["states"][entity_id] = dict(attributes)
        if history is not None:
            self._data["history"][entity_id] = copy.deepcopy(history)

    async def async_get_schedule(self, target: Target) -> Optional[ScheduleState]:
        group_data = self._group(target)
        if group_data is None:
            return None
        return ScheduleState.from_dict(copy.deepcopy(group_data))

    async def async_set_schedule(
        self, target: Target, nodes: List[Dict[str, Any]], bucket: str, mode: ScheduleMode
    ) -> None:
        """Set one bucket of a target's schedule and copy it into the active profile."""
        nodes = validate_nodes(copy.deepcopy(nodes))
        group_data = self._group(target, create=True)
        current_mode = str(ScheduleMode.parse(mode))
        group_data["schedule_mode"] = current_mode
        group_data.setdefault("schedules", {})[bucket] = nodes

        active_profile = group_data.get("active_profile", DEFAULT_PROFILE)
        profiles = group_data.setdefault("profiles", {})
        profiles[active_profile] = {
            "schedule_mode": current_mode,
            "schedules": copy.deepcopy(group_data["schedules"]),
        }
        _LOGGER.info(
            f"Saved schedule to profile '{active_profile}' for '{target.target_id}' - "
            f"bucket: {bucket}, mode: {current_mode}, nodes: {len(nodes)}"
        )

    async def async_enable(self, target: Target) -> None:
        self._group(target, create=True)["enabled"] = True
        _LOGGER.info(f"Enabled '{target.target_id}'")

    async def async_disable(self, target: Target) -> None:
        self._group(target, create=True)["enabled"] = False
        _LOGGER.info(f"Disabled '{target.target_id}'")

    async def async_get_profiles(self, target: Target) -> ScheduleState:
        group_data = self._group(target)
        if group_data is None:
            return ScheduleState()
        return ScheduleState.from_dict(
            {
                "profiles": copy.deepcopy(group_data.get("profiles", {})),
                "active_profile": group_data.get("active_profile"),
            }
        )

    async def async_create_profile(self, target: Target, profile_name: str) -> None:
        """Create a new profile with the current live schedule as template."""
        target_data = self._require_group(target)
        profiles = target_data.setdefault("profiles", {})
        if profile_name in profiles:
            raise ValueError(f"Profile '{profile_name}' already exists")
        profiles[profile_name] = {
            "schedule_mode": target_data.get("schedule_mode", BUCKET_ALL_DAYS),
            "schedules": copy.deepcopy(target_data.get("schedules", {})),
        }
        _LOGGER.info(f"Created profile '{profile_name}' for '{target.target_id}'")

    async def async_rename_profile(self, target: Target, old_name: str, new_name: str) -> None:
        target_data = self._require_group(target)
        profiles = target_data.get("profiles", {})
        if old_name not in profiles:
            raise ValueError(f"Profile '{old_name}' does not exist")
        if new_name in profiles:
            raise ValueError(f"Profile '{new_name}' already exists")
        profiles[new_name] = profiles.pop(old_name)
        if target_data.get("active_profile") == old_name:
            target_data["active_profile"] = new_name
        _LOGGER.info(f"Renamed profile from '{old_name}' to '{new_name}' for '{target.target_id}'")

    async def async_delete_profile(self, target: Target, profile_name: str) -> None:
        target_data = self._require_group(target)
        profiles = target_data.get("profiles", {})
        if profile_name not in profiles:
            raise ValueError(f"Profile '{profile_name}' does not exist")
        # Don't allow deleting the active profile or the last profile
        if profile_name == target_data.get("active_profile"):
            raise ValueError("Cannot delete the active profile. Switch to another profile first.")
        if len(profiles) <= 1:
            raise ValueError("Cannot delete the last profile")
        del profiles[profile_name]
        _LOGGER.info(f"Deleted profile '{profile_name}' from '{target.target_id}'")

    async def async_set_active_profile(self, target: Target, profile_name: str) -> None:
        """Activate a profile and load its schedule into the live fields."""
        target_data = self._require_group(target)
        if profile_name not in target_data.get("profiles", {}):
            raise ValueError(f"Profile '{profile_name}' does not exist")
        target_data["active_profile"] = profile_name
        profile_data = target_data["profiles"][profile_name]
        target_data["schedule_mode"] = profile_data.get("schedule_mode", BUCKET_ALL_DAYS)
        target_data["schedules"] = copy.deepcopy(profile_data.get("schedules", {}))
        _LOGGER.info(f"Set active profile to '{profile_name}' for '{target.target_id}'")

    async def async_get_groups(self) -> Dict[str, GroupRecord]:
        return parse_groups({"groups": copy.deepcopy(self._data["groups"])})

    async def async_get_settings(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data["settings"])

    async def async_save_settings(self, settings: Dict[str, Any]) -> None:
        """Merge provided settings into the stored ones."""
        self._data["settings"].update(copy.deepcopy(settings))
        _LOGGER.debug(f"Saved settings: {self._data['settings']}")

    async def async_get_history(
        self, entity_id: str, start: datetime, end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._data["history"].get(entity_id, []))

    async def async_get_capabilities(self, entity_id: str) -> Capabilities:
        attributes = self._data["states"].get(entity_id)
        if attributes is None:
            raise ValueError(f"Entity '{entity_id}' not found")
        return Capabilities.from_attributes(attributes)
