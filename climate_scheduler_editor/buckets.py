"""Map schedule modes and days to storage buckets."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from homeassistant.util import dt as dt_util

from .const import (
    ALL_BUCKETS,
    BUCKET_ALL_DAYS,
    BUCKET_WEEKDAY,
    BUCKET_WEEKEND,
    WEEKDAYS,
    WEEKEND_DAYS,
    WORKDAYS,
)
from .models import ScheduleMode, ScheduleState
from .schedule import copy_nodes

_LOGGER = logging.getLogger(__name__)


def today_code(now: Optional[datetime] = None) -> str:
    """Three-letter code for the current day."""
    now = now or dt_util.now()
    return WEEKDAYS[now.weekday()]


def default_bucket(mode: Union[str, ScheduleMode], now: Optional[datetime] = None) -> str:
    """Bucket that applies today under a schedule mode."""
    mode = ScheduleMode.parse(mode)
    day = today_code(now)
    if mode is ScheduleMode.ALL_DAYS:
        return BUCKET_ALL_DAYS
    if mode is ScheduleMode.FIVE_TWO:
        return BUCKET_WEEKEND if day in WEEKEND_DAYS else BUCKET_WEEKDAY
    return day


def resolve_bucket(
    mode: Union[str, ScheduleMode],
    requested_day: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Resolve the bucket to read or write for a mode and optional day.

    A requested day is used as-is when it is a bucket of the mode. Otherwise
    the mode decides: all_days always resolves to "all_days", 5/2 maps
    single days onto weekday/weekend, and individual falls back to today.
    Unknown day codes raise ValueError.
    """
    mode = ScheduleMode.parse(mode)
    if requested_day is None:
        return default_bucket(mode, now)
    if requested_day not in ALL_BUCKETS:
        raise ValueError(f"Unknown day: {requested_day}")

    if requested_day in mode.buckets:
        return requested_day

    if mode is ScheduleMode.FIVE_TWO:
        if requested_day in WORKDAYS:
            return BUCKET_WEEKDAY
        if requested_day in WEEKEND_DAYS:
            return BUCKET_WEEKEND

    resolved = default_bucket(mode, now)
    _LOGGER.debug(f"Day '{requested_day}' is not a bucket of mode '{mode}', using '{resolved}'")
    return resolved


def nodes_for_bucket(
    schedules: Optional[Dict[str, List[Dict[str, Any]]]],
    bucket: str,
    default_schedule: Optional[List[Dict[str, Any]]] = None,
    legacy_nodes: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """Pick the node list for a bucket, falling back when it is missing.

    Schedules are built up one day at a time, so an untouched bucket borrows
    from the closest stored one: weekday from Monday, weekend from Saturday,
    then the all-days schedule, the legacy flat list and finally the default
    schedule. Returns a copy; an empty list means nothing resolved.
    """
    schedules = schedules or {}

    candidates: List[Tuple[str, Optional[List[Dict[str, Any]]]]] = [(bucket, schedules.get(bucket))]
    if bucket == BUCKET_WEEKDAY:
        candidates.append(("mon", schedules.get("mon")))
    elif bucket == BUCKET_WEEKEND:
        candidates.append(("sat", schedules.get("sat")))
    if bucket != BUCKET_ALL_DAYS:
        candidates.append((BUCKET_ALL_DAYS, schedules.get(BUCKET_ALL_DAYS)))
    candidates.append(("legacy nodes", legacy_nodes))
    candidates.append(("default schedule", default_schedule))

    for source, nodes in candidates:
        if nodes:
            if source != bucket:
                _LOGGER.debug(f"Bucket '{bucket}' not stored, using {source}")
            return copy_nodes(nodes)

    return []


def nodes_for_state(
    state: Optional[ScheduleState],
    bucket: str,
    default_schedule: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """Apply the fallback chain to a target's live schedules."""
    if state is None:
        return copy_nodes(default_schedule)
    return nodes_for_bucket(state.schedules, bucket, default_schedule, state.nodes)


def buckets_for_mode(mode: Union[str, ScheduleMode]) -> List[str]:
    """Every bucket a mode stores nodes under."""
    return ScheduleMode.parse(mode).buckets


def clear_writes(
    mode: Union[str, ScheduleMode],
    default_schedule: List[Dict[str, Any]],
) -> List[Tuple[str, List[Dict[str, Any]]]]:
    """Writes needed to reset a schedule: one per bucket, each with its own copy."""
    return [(bucket, copy_nodes(default_schedule)) for bucket in buckets_for_mode(mode)]
