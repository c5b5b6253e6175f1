"""Measured temperature feed for a target's members."""
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from homeassistant.util import dt as dt_util

from .const import HISTORY_COLORS
from .models import Target
from .store import ScheduleStore

_LOGGER = logging.getLogger(__name__)


async def async_get_target_history(
    store: ScheduleStore,
    target: Target,
    names: Optional[Dict[str, str]] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Today's temperature samples for every member of a target.

    Members are fetched in parallel. A member whose fetch fails, or that has
    no samples, is left out; the rest are still returned.
    """
    members = target.members
    if not members:
        return []

    now = now or dt_util.now()
    start = dt_util.start_of_local_day(now)
    names = names or {}

    results = await asyncio.gather(
        *(store.async_get_history(entity_id, start, now) for entity_id in members),
        return_exceptions=True,
    )

    feed = []
    for index, (entity_id, result) in enumerate(zip(members, results)):
        if isinstance(result, Exception):
            _LOGGER.warning(f"Failed to load history for {entity_id}: {result}")
            continue
        if not result:
            continue
        feed.append(
            {
                "entity_id": entity_id,
                "name": names.get(entity_id, entity_id),
                "data": result,
                "color": HISTORY_COLORS[index % len(HISTORY_COLORS)],
            }
        )
    return feed
