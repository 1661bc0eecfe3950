"""Mercedes me vehicle data to channel states.

Every element of a container answer is a single-key object::

    {"odo": {"value": "4131", "timestamp": 1655655991000}}

:func:`get_channel_state_map` turns one element into a
:class:`~homepoll.models.channel.ChannelStateMap`, or ``None`` when the key
is not mapped.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from homepoll.models.channel import (
    UNIT_DEGREE_ANGLE,
    UNIT_KILOMETRE,
    UNIT_PERCENT,
    ChannelStateMap,
    DecimalType,
    OnOffType,
    OpenClosedType,
    QuantityType,
    State,
)

_logger = logging.getLogger(__name__)

GROUP_RANGE = "range"
GROUP_LOCK = "lock"
GROUP_LOCATION = "location"
GROUP_DOORS = "doors"
GROUP_WINDOWS = "windows"
GROUP_LIGHTS = "lights"


class ValueKind(enum.Enum):
    KILOMETRE = "km"
    PERCENT = "percent"
    DEGREE = "degree"
    DECIMAL = "decimal"
    OPEN_CLOSED = "open-closed"
    ON_OFF = "on-off"
    # lock status keys report "false" when locked
    LOCKED_ON_OFF = "locked-on-off"


class Rule(NamedTuple):
    group: str
    channel: str
    kind: ValueKind


RULES: dict[str, Rule] = {
    # range
    "odo": Rule(GROUP_RANGE, "mileage", ValueKind.KILOMETRE),
    "rangeelectric": Rule(GROUP_RANGE, "range-electric", ValueKind.KILOMETRE),
    "rangeliquid": Rule(GROUP_RANGE, "range-fuel", ValueKind.KILOMETRE),
    "soc": Rule(GROUP_RANGE, "soc", ValueKind.PERCENT),
    "tanklevelpercent": Rule(GROUP_RANGE, "fuel-level", ValueKind.PERCENT),
    # lock
    "doorlockstatusvehicle": Rule(GROUP_LOCK, "doors", ValueKind.DECIMAL),
    "doorlockstatusdecklid": Rule(GROUP_LOCK, "deck-lid", ValueKind.LOCKED_ON_OFF),
    "doorlockstatusgas": Rule(GROUP_LOCK, "flap", ValueKind.LOCKED_ON_OFF),
    # location
    "positionHeading": Rule(GROUP_LOCATION, "heading", ValueKind.DEGREE),
    # doors
    "decklidstatus": Rule(GROUP_DOORS, "deck-lid", ValueKind.OPEN_CLOSED),
    "doorstatusfrontleft": Rule(GROUP_DOORS, "driver-front", ValueKind.OPEN_CLOSED),
    "doorstatusfrontright": Rule(GROUP_DOORS, "passenger-front", ValueKind.OPEN_CLOSED),
    "doorstatusrearleft": Rule(GROUP_DOORS, "driver-rear", ValueKind.OPEN_CLOSED),
    "doorstatusrearright": Rule(GROUP_DOORS, "passenger-rear", ValueKind.OPEN_CLOSED),
    "rooftopstatus": Rule(GROUP_DOORS, "rooftop", ValueKind.DECIMAL),
    "sunroofstatus": Rule(GROUP_DOORS, "sunroof", ValueKind.DECIMAL),
    # lights
    "interiorLightsFront": Rule(GROUP_LIGHTS, "interior-front", ValueKind.ON_OFF),
    "interiorLightsRear": Rule(GROUP_LIGHTS, "interior-rear", ValueKind.ON_OFF),
    "lightswitchposition": Rule(GROUP_LIGHTS, "light-switch", ValueKind.DECIMAL),
    "readingLampFrontLeft": Rule(GROUP_LIGHTS, "reading-left", ValueKind.ON_OFF),
    "readingLampFrontRight": Rule(GROUP_LIGHTS, "reading-right", ValueKind.ON_OFF),
    # windows
    "windowstatusfrontleft": Rule(GROUP_WINDOWS, "driver-front", ValueKind.DECIMAL),
    "windowstatusfrontright": Rule(GROUP_WINDOWS, "passenger-front", ValueKind.DECIMAL),
    "windowstatusrearleft": Rule(GROUP_WINDOWS, "driver-rear", ValueKind.DECIMAL),
    "windowstatusrearright": Rule(GROUP_WINDOWS, "passenger-rear", ValueKind.DECIMAL),
}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() == "true"


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    number = float(str(value).strip())
    return int(number) if number.is_integer() else number


def to_state(kind: ValueKind, value: Any) -> State:
    """Convert a raw vendor value; raises :class:`ValueError` on malformed numbers."""
    if kind is ValueKind.KILOMETRE:
        return QuantityType(_to_number(value), UNIT_KILOMETRE)
    if kind is ValueKind.PERCENT:
        return QuantityType(_to_number(value), UNIT_PERCENT)
    if kind is ValueKind.DEGREE:
        return QuantityType(_to_number(value), UNIT_DEGREE_ANGLE)
    if kind is ValueKind.DECIMAL:
        return DecimalType(_to_number(value))
    if kind is ValueKind.OPEN_CLOSED:
        return OpenClosedType.from_bool(_to_bool(value))
    if kind is ValueKind.ON_OFF:
        return OnOffType.from_bool(_to_bool(value))
    return OnOffType.from_bool(not _to_bool(value))


def _single_entry(element: Mapping[str, Any]) -> tuple[str, Any] | None:
    if not element:
        return None
    key = next(iter(element))
    return key, element[key]


def get_channel_state_map(element: Mapping[str, Any]) -> ChannelStateMap | None:
    """Map one container element; unknown keys and malformed values yield ``None``."""
    entry = _single_entry(element)
    if entry is None:
        return None
    key, body = entry
    rule = RULES.get(key)
    if rule is None or not isinstance(body, Mapping) or "value" not in body:
        return None
    try:
        state = to_state(rule.kind, body["value"])
    except (TypeError, ValueError):
        _logger.debug("Cannot map %s value %r", key, body["value"])
        return None
    return ChannelStateMap(rule.group, rule.channel, state)


def map_elements(elements: Iterable[Mapping[str, Any]]) -> list[ChannelStateMap]:
    result = []
    for element in elements:
        csm = get_channel_state_map(element)
        if csm is not None:
            result.append(csm)
    return result


def latest_timestamp(elements: Iterable[Mapping[str, Any]]) -> int:
    """Timestamp (epoch ms) of the last element carrying one, ``0`` if none does."""
    last = 0
    for element in elements:
        entry = _single_entry(element)
        if entry is None:
            continue
        body = entry[1]
        if isinstance(body, Mapping) and "timestamp" in body:
            try:
                last = int(body["timestamp"])
            except (TypeError, ValueError):
                continue
    return last
