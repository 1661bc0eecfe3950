"""Typed channel states handed to the host.

The string form of every state matches what the host prints for it,
e.g. ``QuantityType(4131, "km")`` renders as ``"4131 km"`` and a
:class:`ChannelStateMap` renders as ``"range:mileage 4131 km"``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Union

UNIT_KILOMETRE = "km"
UNIT_MILE = "mi"
UNIT_PERCENT = "%"
UNIT_DEGREE_ANGLE = "°"
UNIT_KILOWATT_HOUR = "kWh"
UNIT_BAR = "bar"
UNIT_CENTIMETRE = "cm"
UNIT_LITRE = "l"

# Factors relative to a common base unit per dimension.
_LENGTH_IN_METRES: dict[str, float] = {
    UNIT_KILOMETRE: 1000.0,
    UNIT_MILE: 1609.344,
    UNIT_CENTIMETRE: 0.01,
}


def format_number(value: int | float) -> str:
    """Render a number without a trailing ``.0``."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class UnDefType(enum.Enum):
    UNDEF = "UNDEF"
    NULL = "NULL"

    def __str__(self) -> str:
        return self.value


UNDEF = UnDefType.UNDEF


class OnOffType(enum.Enum):
    ON = "ON"
    OFF = "OFF"

    @classmethod
    def from_bool(cls, value: bool) -> OnOffType:
        return cls.ON if value else cls.OFF

    def __str__(self) -> str:
        return self.value


class OpenClosedType(enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"

    @classmethod
    def from_bool(cls, is_open: bool) -> OpenClosedType:
        return cls.OPEN if is_open else cls.CLOSED

    def __str__(self) -> str:
        return self.value


class RefreshType(enum.Enum):
    """Host command asking a handler to re-emit a channel's state."""

    REFRESH = "REFRESH"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class QuantityType:
    value: float
    unit: str

    def __str__(self) -> str:
        return f"{format_number(self.value)} {self.unit}"

    def __add__(self, other: QuantityType) -> QuantityType:
        if not isinstance(other, QuantityType):
            return NotImplemented
        if other.unit != self.unit:
            other = other.to_unit(self.unit)
        return QuantityType(self.value + other.value, self.unit)

    def to_unit(self, unit: str) -> QuantityType:
        if unit == self.unit:
            return self
        if self.unit in _LENGTH_IN_METRES and unit in _LENGTH_IN_METRES:
            metres = self.value * _LENGTH_IN_METRES[self.unit]
            return QuantityType(metres / _LENGTH_IN_METRES[unit], unit)
        raise ValueError(f"Cannot convert {self.unit} to {unit}")

    def __float__(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class DecimalType:
    value: int | float

    def __str__(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class StringType:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DateTimeType:
    value: datetime

    @classmethod
    def parse(cls, text: str) -> DateTimeType:
        """Parse an ISO 8601 timestamp (``Z`` suffix accepted)."""
        normalized = text.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        return cls(datetime.fromisoformat(normalized))

    def __str__(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True)
class PointType:
    latitude: float
    longitude: float

    @classmethod
    def parse(cls, text: str) -> PointType:
        """Parse ``"lat,lon"``; raises :class:`ValueError` on malformed input."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) < 2:
            raise ValueError(f"Not a location: {text!r}")
        return cls(float(parts[0]), float(parts[1]))

    def __str__(self) -> str:
        return f"{format_number(self.latitude)},{format_number(self.longitude)}"


State = Union[QuantityType, DecimalType, StringType, DateTimeType, PointType, OnOffType, OpenClosedType, UnDefType]


@dataclass(frozen=True)
class StateOption:
    """Selectable value for list-like channels."""

    value: str
    label: str


def build_channel_uid(thing_uid: str, group: str, channel: str) -> str:
    if group:
        return f"{thing_uid}:{group}#{channel}"
    return f"{thing_uid}:{channel}"


@dataclass(frozen=True)
class ChannelStateMap:
    """A state addressed to ``group#channel`` of a thing."""

    group: str
    channel: str
    state: State

    def channel_uid(self, thing_uid: str) -> str:
        return build_channel_uid(thing_uid, self.group, self.channel)

    def __str__(self) -> str:
        if self.group:
            return f"{self.group}:{self.channel} {self.state}"
        return f"{self.channel} {self.state}"


class ThingStatus(enum.Enum):
    UNKNOWN = "UNKNOWN"
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class ThingStatusDetail(enum.Enum):
    NONE = "NONE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    COMMUNICATION_ERROR = "COMMUNICATION_ERROR"
