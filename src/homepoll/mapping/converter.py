"""Conversion helpers for the BMW / MINI binding."""

from __future__ import annotations

import copy
import json
import logging
import math
import secrets
import string
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from homepoll._constants import (
    ANONYMOUS,
    CLOSED,
    CONNECTED,
    KILOMETERS_JSON,
    LOCKED,
    NULL_DATE,
    OPEN,
    UNCONNECTED,
    UNDEF,
    UNLOCKED,
)
from homepoll.models.bmw import Coordinates, Distance, Location, Mileage, Range, Vehicle
from homepoll.models.channel import UNDEF as UNDEF_STATE
from homepoll.models.channel import UNIT_MILE, QuantityType, State, StringType

_logger = logging.getLogger(__name__)

DATE_OUTPUT_PATTERN = "%Y-%m-%dT%H:%M:%S"
EARTH_RADIUS_KM = 6378.137
RANGE_RADIUS_FACTOR = 0.8
_TITLE_SPLITTERS = (" ", "-", "(")


def round_one_decimal(value: float) -> float:
    """Round half up to one decimal."""
    return math.floor(value * 10 + 0.5) / 10


def _parse_iso(text: str) -> datetime:
    normalized = text.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    return datetime.fromisoformat(normalized)


def get_local_date_time_without_offset(value: str | None) -> str:
    """Drop any UTC offset and fractional seconds; ``None`` yields the null date."""
    if value is None:
        return NULL_DATE
    return _parse_iso(value).replace(tzinfo=None).strftime(DATE_OUTPUT_PATTERN)


def get_zoned_date_time(value: str) -> str:
    """Format a zoned ISO timestamp as local wall time of its own zone."""
    return _parse_iso(value).strftime(DATE_OUTPUT_PATTERN)


def get_instant(value: str) -> datetime:
    """Aware datetime of an ISO timestamp; one without offset is taken as UTC."""
    parsed = _parse_iso(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def _title_case_split(text: str, splitter: str) -> str:
    parts = text.split(splitter)
    return splitter.join(part[:1].upper() + part[1:] for part in parts).strip()


def to_title_case(value: str | None) -> str:
    """``NOT_CHARGING`` -> ``Not Charging``; ``None`` -> ``Undef``."""
    if value is None:
        return to_title_case(UNDEF)
    if len(value) == 1:
        return value
    converted = value.replace("_", " ").lower()
    for splitter in _TITLE_SPLITTERS:
        converted = _title_case_split(converted, splitter)
    return converted


def capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:]


def measure_distance(
    source_latitude: float,
    source_longitude: float,
    destination_latitude: float,
    destination_longitude: float,
) -> float:
    """Great circle distance in km (haversine)."""
    d_lat = math.radians(destination_latitude) - math.radians(source_latitude)
    d_lon = math.radians(destination_longitude) - math.radians(source_longitude)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(source_latitude))
        * math.cos(math.radians(destination_latitude))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def guess_range_radius(range_km: float) -> float:
    """Map a road range to the air-line radius drawn on a map.

    Road distances measured between German cities came out between 70%
    and 90% longer than the air-line distance.
    """
    return range_km * RANGE_RADIUS_FACTOR


def get_miles(length: QuantityType) -> State:
    if int(length.value) == -1:
        return UNDEF_STATE
    try:
        return length.to_unit(UNIT_MILE)
    except ValueError:
        _logger.debug("Cannot convert %s to miles", length)
        return UNDEF_STATE


def get_index(text: str) -> int:
    try:
        return int(text)
    except (TypeError, ValueError):
        return -1


def get_vehicle_list(payload: str | bytes) -> list[Vehicle]:
    """Parse a vehicle list; malformed input yields an empty list."""
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        _logger.warning("Vehicle list is not valid JSON: %s", exc)
        return []
    if not isinstance(data, list):
        _logger.warning("Vehicle list is not a JSON array")
        return []
    try:
        return [Vehicle.model_validate(item) for item in data if isinstance(item, dict)]
    except ValidationError as exc:
        _logger.warning("Vehicle list does not match the expected structure: %s", exc)
        return []


def get_consistent_vehicle(vehicle: Vehicle) -> Vehicle:
    """Fill mileage, combustion range and location when the API omits them."""
    status = vehicle.status
    if status.current_mileage is None:
        status = status.model_copy(update={"current_mileage": Mileage(mileage=-1, units="km")})
    properties = vehicle.properties
    updates: dict[str, Any] = {}
    if properties.combustion_range is None:
        updates["combustion_range"] = Range(distance=Distance(value=-1, units=KILOMETERS_JSON))
    if properties.vehicle_location is None:
        updates["vehicle_location"] = Location(
            heading=-1,
            coordinates=Coordinates(latitude=-1.234, longitude=-9.876),
        )
    if updates:
        properties = properties.model_copy(update=updates)
    return vehicle.model_copy(update={"status": status, "properties": properties})


def get_vehicle(vin: str, payload: str | bytes) -> Vehicle:
    """Pick *vin* out of a vehicle list; an unknown VIN yields an invalid vehicle."""
    for vehicle in get_vehicle_list(payload):
        if vehicle.vin == vin:
            return get_consistent_vehicle(vehicle.model_copy(update={"valid": True}))
    return Vehicle()


def get_random_string(size: int) -> str:
    """Random lower case ASCII letters."""
    return "".join(secrets.choice(string.ascii_lowercase) for _ in range(size))


def get_lock_state(locked: bool) -> StringType:
    return StringType(LOCKED if locked else UNLOCKED)


def get_closed_state(closed: bool) -> StringType:
    return StringType(CLOSED if closed else OPEN)


def get_connection_state(connected: bool) -> StringType:
    return StringType(CONNECTED if connected else UNCONNECTED)


def get_current_iso_time(now: datetime | None = None) -> str:
    """UTC time as ``yyyy-MM-ddTHH:mm:ss.SSSSSS`` (milliseconds, zero padded to six digits)."""
    current = (now or datetime.now(UTC)).astimezone(UTC)
    millis = current.microsecond // 1000
    return f"{current.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:06d}"


def get_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def get_offset_minutes(now: datetime | None = None) -> int:
    """UTC offset of *now* (default: current local time) in minutes."""
    current = now if now is not None else datetime.now().astimezone()
    offset = current.utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() // 60)


def get_anonymous_fingerprint(vehicles: list[Vehicle]) -> str:
    """JSON of *vehicles* with VIN, address and coordinates masked."""
    anonymized = []
    for vehicle in vehicles:
        data = copy.deepcopy(vehicle.raw) if vehicle.raw else vehicle.model_dump(by_alias=True)
        data["vin"] = ANONYMOUS
        location = (data.get("properties") or {}).get("vehicleLocation")
        if isinstance(location, dict):
            if isinstance(location.get("address"), dict):
                location["address"]["formatted"] = ANONYMOUS
            if isinstance(location.get("coordinates"), dict):
                location["coordinates"]["latitude"] = 1.234
                location["coordinates"]["longitude"] = 9.876
        anonymized.append(data)
    return json.dumps(anonymized)
