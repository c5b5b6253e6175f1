"""Schedule node helpers: time arithmetic, validation and step interpolation."""
import copy
import logging
from datetime import datetime, time
from typing import Any, Dict, List, Optional, Union

import voluptuous as vol

from .const import DEFAULT_TEMP

_LOGGER = logging.getLogger(__name__)

TimeOfDay = Union[str, time, datetime]


def _valid_time(value: Any) -> str:
    """Validate an HH:MM time string."""
    if not isinstance(value, str) or len(value) != 5 or value[2] != ":":
        raise vol.Invalid(f"Invalid time format: {value}")
    try:
        h, m = int(value[:2]), int(value[3:])
    except ValueError as err:
        raise vol.Invalid(f"Cannot parse time: {value}") from err
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise vol.Invalid(f"Time out of range: {value}")
    return value


NODE_SCHEMA = vol.Schema(
    {
        vol.Required("time"): _valid_time,
        vol.Required("temp"): vol.Coerce(float),
        vol.Optional("hvac_mode"): vol.Any(None, str),
        vol.Optional("fan_mode"): vol.Any(None, str),
        vol.Optional("swing_mode"): vol.Any(None, str),
        vol.Optional("preset_mode"): vol.Any(None, str),
    },
    extra=vol.ALLOW_EXTRA,
)

NODES_SCHEMA = vol.Schema([NODE_SCHEMA])


def validate_node(node: Dict[str, Any]) -> bool:
    """Validate a schedule node structure."""
    try:
        NODE_SCHEMA(node)
    except vol.Invalid as err:
        _LOGGER.error(f"Invalid schedule node {node}: {err}")
        return False
    return True


def validate_nodes(nodes: Any) -> List[Dict[str, Any]]:
    """Validate and normalize a node list, raising ValueError when malformed."""
    try:
        return NODES_SCHEMA(nodes)
    except vol.Invalid as err:
        raise ValueError(f"Invalid schedule nodes: {err}") from err


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM string to minutes since midnight."""
    parts = time_str.split(":")
    hours = int(parts[0])
    minutes = int(parts[1])
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to an HH:MM string, wrapping at 24h."""
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: Union[time, datetime]) -> str:
    """Format a time or datetime as HH:MM."""
    return f"{value.hour:02d}:{value.minute:02d}"


def _query_minutes(time_of_day: TimeOfDay) -> int:
    if isinstance(time_of_day, str):
        return time_to_minutes(time_of_day)
    return time_of_day.hour * 60 + time_of_day.minute


def sort_nodes(nodes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return nodes sorted by time of day; ties keep their list order."""
    return sorted(nodes, key=lambda n: time_to_minutes(n["time"]))


def get_active_node(nodes: List[Dict[str, Any]], time_of_day: TimeOfDay) -> Optional[Dict[str, Any]]:
    """Get the node in effect at a given time (hold until next node).

    The active node is the latest node at or before the query time. Before the
    first node of the day the last node of the previous day is still in
    effect, so the search wraps to the last node in sorted order.
    """
    if not nodes:
        return None

    sorted_nodes = sort_nodes(nodes)
    current_minutes = _query_minutes(time_of_day)

    active_node = None
    for node in sorted_nodes:
        if time_to_minutes(node["time"]) <= current_minutes:
            active_node = node
        else:
            break

    if active_node is None:
        active_node = sorted_nodes[-1]

    return active_node


def interpolate(nodes: List[Dict[str, Any]], time_of_day: TimeOfDay) -> float:
    """Calculate temperature at a given time using a step function.

    An empty schedule returns DEFAULT_TEMP, which callers must not treat as a
    scheduled value.
    """
    active_node = get_active_node(nodes, time_of_day)
    if active_node is None:
        return DEFAULT_TEMP
    return float(active_node["temp"])


def get_next_node(nodes: List[Dict[str, Any]], time_of_day: TimeOfDay) -> Optional[Dict[str, Any]]:
    """Get the next scheduled node after the given time, wrapping to tomorrow."""
    if not nodes:
        return None

    sorted_nodes = sort_nodes(nodes)
    current_minutes = _query_minutes(time_of_day)

    for node in sorted_nodes:
        if time_to_minutes(node["time"]) > current_minutes:
            return node

    return sorted_nodes[0]


def copy_nodes(nodes: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Copy a node list so neither side sees later mutation of the other."""
    return copy.deepcopy(list(nodes or []))
