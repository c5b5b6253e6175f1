"""Temperature unit conversion for schedules and settings."""
import logging
import math
from typing import Any, Dict, List, Optional

from homeassistant.util.unit_conversion import TemperatureConverter

from .models import GroupRecord
from .profiles import ProfileOverlay
from .session import EditorSession
from .store import ScheduleStore

_LOGGER = logging.getLogger(__name__)


def convert_temperature(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a temperature between °C and °F."""
    if from_unit == to_unit:
        return value
    return TemperatureConverter.convert(value, from_unit, to_unit)


def round_half(value: float) -> float:
    """Round to the nearest 0.5, halves rounding up."""
    return math.floor(value * 2 + 0.5) / 2


def convert_schedule_nodes(
    nodes: Optional[List[Dict[str, Any]]], from_unit: str, to_unit: str
) -> Optional[List[Dict[str, Any]]]:
    """Convert the temp of every node, rounded to 0.5.

    Returns the same list object when there is nothing to convert.
    """
    if not nodes or from_unit == to_unit:
        return nodes
    return [
        {**node, "temp": round_half(convert_temperature(float(node["temp"]), from_unit, to_unit))}
        for node in nodes
    ]


def convert_settings(settings: Dict[str, Any], from_unit: str, to_unit: str) -> Dict[str, Any]:
    """Convert min/max bounds and the default schedule in a settings dict."""
    converted = dict(settings)
    if from_unit == to_unit:
        return converted
    for key in ("min_temp", "max_temp"):
        if converted.get(key) is not None:
            converted[key] = round_half(convert_temperature(float(converted[key]), from_unit, to_unit))
    if converted.get("defaultSchedule"):
        converted["defaultSchedule"] = convert_schedule_nodes(converted["defaultSchedule"], from_unit, to_unit)
    return converted


async def _async_convert_group(
    overlay: ProfileOverlay, record: GroupRecord, from_unit: str, to_unit: str
) -> None:
    state = record.state
    session = EditorSession(target=record.as_target(), active_profile=state.active_profile)

    writes = [
        (bucket, convert_schedule_nodes(nodes, from_unit, to_unit))
        for bucket, nodes in state.schedules.items()
        if nodes
    ]
    if writes:
        await overlay.async_write_buckets(session, writes, state.schedule_mode)

    for name, profile in state.profiles.items():
        if name == state.active_profile:
            continue
        session.editing_profile = name
        writes = [
            (bucket, convert_schedule_nodes(nodes, from_unit, to_unit))
            for bucket, nodes in profile.schedules.items()
            if nodes
        ]
        if not writes:
            continue
        await overlay.async_write_buckets(session, writes, profile.schedule_mode)

    _LOGGER.debug(f"Converted schedules of '{record.name}' from {from_unit} to {to_unit}")


async def async_convert_all(store: ScheduleStore, from_unit: str, to_unit: str) -> Dict[str, Any]:
    """Convert every stored schedule, profile and temperature setting.

    A one-shot migration: running it twice in the same direction converts
    twice. Returns the converted settings, already saved with the new unit.
    """
    settings = await store.async_get_settings()
    if from_unit == to_unit:
        return settings

    _LOGGER.info(f"Converting all schedules from {from_unit} to {to_unit}")
    overlay = ProfileOverlay(store)
    groups = await store.async_get_groups()
    for record in groups.values():
        await _async_convert_group(overlay, record, from_unit, to_unit)

    settings = convert_settings(settings, from_unit, to_unit)
    settings["temperature_unit"] = to_unit
    await store.async_save_settings(settings)
    _LOGGER.info(f"Converted {len(groups)} schedules from {from_unit} to {to_unit}")
    return settings
