"""Typed models for schedules, targets and profiles.

Store responses are deserialized exactly once, at the store boundary, into
these types. Node lists stay plain dicts so that unknown node fields survive
a round trip through the editor.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, List, Optional, Union

import voluptuous as vol

from .const import (
    BUCKET_ALL_DAYS,
    BUCKET_WEEKDAY,
    BUCKET_WEEKEND,
    DEFAULT_PROFILE,
    WEEKDAYS,
)
from .exceptions import InvalidScheduleData
from .schedule import NODES_SCHEMA


class ScheduleMode(StrEnum):
    """How a schedule is split across the week."""

    ALL_DAYS = "all_days"
    FIVE_TWO = "5/2"
    INDIVIDUAL = "individual"

    @property
    def buckets(self) -> List[str]:
        """Buckets this mode stores nodes under."""
        if self is ScheduleMode.ALL_DAYS:
            return [BUCKET_ALL_DAYS]
        if self is ScheduleMode.FIVE_TWO:
            return [BUCKET_WEEKDAY, BUCKET_WEEKEND]
        return list(WEEKDAYS)

    @classmethod
    def parse(cls, value: Union[str, "ScheduleMode", None]) -> "ScheduleMode":
        """Parse a mode string, defaulting to all days when unset."""
        if value is None:
            return cls.ALL_DAYS
        try:
            return cls(value)
        except ValueError as err:
            raise ValueError(f"Unknown schedule mode: {value}") from err


@dataclass(frozen=True)
class EntityTarget:
    """A single climate entity."""

    entity_id: str

    @property
    def target_id(self) -> str:
        return self.entity_id

    @property
    def members(self) -> List[str]:
        return [self.entity_id]

    @property
    def is_group(self) -> bool:
        return False


@dataclass(frozen=True)
class GroupTarget:
    """A named group of climate entities sharing one schedule."""

    name: str
    member_ids: tuple = ()

    @property
    def target_id(self) -> str:
        return self.name

    @property
    def members(self) -> List[str]:
        return list(self.member_ids)

    @property
    def is_group(self) -> bool:
        return True


Target = Union[EntityTarget, GroupTarget]


@dataclass
class Capabilities:
    """Climate modes a target supports."""

    hvac_modes: List[str] = field(default_factory=list)
    fan_modes: List[str] = field(default_factory=list)
    swing_modes: List[str] = field(default_factory=list)
    preset_modes: List[str] = field(default_factory=list)
    friendly_name: Optional[str] = None

    @classmethod
    def from_attributes(cls, attributes: Dict[str, Any]) -> "Capabilities":
        """Build from a climate entity's state attributes."""
        return cls(
            hvac_modes=list(attributes.get("hvac_modes") or []),
            fan_modes=list(attributes.get("fan_modes") or []),
            swing_modes=list(attributes.get("swing_modes") or []),
            preset_modes=list(attributes.get("preset_modes") or []),
            friendly_name=attributes.get("friendly_name"),
        )

    @classmethod
    def merge(cls, items: List["Capabilities"]) -> "Capabilities":
        """Union of several members' capabilities, in first-seen order. Names are not merged."""
        merged = cls()
        for item in items:
            for name in ("hvac_modes", "fan_modes", "swing_modes", "preset_modes"):
                target_list = getattr(merged, name)
                for mode in getattr(item, name):
                    if mode not in target_list:
                        target_list.append(mode)
        return merged


SCHEDULES_SCHEMA = vol.Schema({str: NODES_SCHEMA})

PROFILE_SCHEMA = vol.Schema(
    {
        vol.Optional("schedule_mode", default=BUCKET_ALL_DAYS): str,
        vol.Optional("schedules", default=dict): vol.Any(None, SCHEDULES_SCHEMA),
    },
    extra=vol.ALLOW_EXTRA,
)

SCHEDULE_STATE_SCHEMA = vol.Schema(
    {
        vol.Optional("schedules", default=dict): vol.Any(None, SCHEDULES_SCHEMA),
        vol.Optional("schedule_mode", default=BUCKET_ALL_DAYS): vol.Any(None, str),
        vol.Optional("enabled", default=True): vol.Any(None, bool),
        vol.Optional("nodes"): vol.Any(None, NODES_SCHEMA),
        vol.Optional("profiles", default=dict): vol.Any(None, {str: PROFILE_SCHEMA}),
        vol.Optional("active_profile"): vol.Any(None, str),
        vol.Optional("entities", default=list): vol.Any(None, [str]),
    },
    extra=vol.ALLOW_EXTRA,
)


@dataclass
class Profile:
    """Named overlay of bucketed schedules."""

    name: str
    schedule_mode: ScheduleMode = ScheduleMode.ALL_DAYS
    schedules: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Profile":
        data = PROFILE_SCHEMA(data or {})
        return cls(
            name=name,
            schedule_mode=ScheduleMode.parse(data.get("schedule_mode")),
            schedules=data.get("schedules") or {},
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "schedule_mode": str(self.schedule_mode),
            "schedules": copy.deepcopy(self.schedules),
        }


@dataclass
class ScheduleState:
    """Full remote state of a target's schedule."""

    schedules: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    schedule_mode: ScheduleMode = ScheduleMode.ALL_DAYS
    enabled: bool = True
    nodes: Optional[List[Dict[str, Any]]] = None
    profiles: Dict[str, Profile] = field(default_factory=dict)
    active_profile: str = DEFAULT_PROFILE
    entities: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ScheduleState"]:
        """Deserialize a get_schedule or group record response.

        Returns None for a target the store has no schedule for.
        """
        if not data or ("schedule" in data and data["schedule"] is None):
            return None
        try:
            data = SCHEDULE_STATE_SCHEMA(data)
            mode = ScheduleMode.parse(data.get("schedule_mode"))
            profiles = {
                name: Profile.from_dict(name, profile)
                for name, profile in (data.get("profiles") or {}).items()
            }
        except (vol.Invalid, ValueError) as err:
            raise InvalidScheduleData(f"Malformed schedule data: {err}") from err
        return cls(
            schedules=data.get("schedules") or {},
            schedule_mode=mode,
            enabled=data.get("enabled") is not False,
            nodes=data.get("nodes"),
            profiles=profiles,
            active_profile=data.get("active_profile") or DEFAULT_PROFILE,
            entities=list(data.get("entities") or []),
        )

    def profile(self, name: Optional[str]) -> Optional[Profile]:
        if name is None:
            return None
        return self.profiles.get(name)


@dataclass
class GroupRecord:
    """A group as returned by get_groups."""

    name: str
    state: ScheduleState
    is_single_entity: bool = False

    @property
    def entities(self) -> List[str]:
        return self.state.entities

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "GroupRecord":
        state = ScheduleState.from_dict(data) or ScheduleState()
        return cls(
            name=name,
            state=state,
            is_single_entity=bool(data.get("_is_single_entity_group", False)),
        )

    def as_target(self) -> Target:
        if self.is_single_entity and len(self.entities) == 1:
            return EntityTarget(self.entities[0])
        return GroupTarget(self.name, tuple(self.entities))


def parse_groups(data: Optional[Dict[str, Any]]) -> Dict[str, GroupRecord]:
    """Deserialize a get_groups response."""
    data = data or {}
    groups = data.get("groups", data)
    if not isinstance(groups, dict):
        raise InvalidScheduleData(f"Malformed groups response: {data}")
    return {
        name: GroupRecord.from_dict(name, record)
        for name, record in groups.items()
        if isinstance(record, dict)
    }
