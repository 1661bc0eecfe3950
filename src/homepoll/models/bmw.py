"""BMW / MINI vehicle models.

Mirrors the ``/eadrax-vcs/v1/vehicles`` list payload plus the charging
statistics, charging sessions and remote command answers.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import Field

from homepoll._constants import INT_UNDEF, KILOMETERS_JSON, UNDEF
from homepoll.models._base import HomePollBaseModel, HomePollStrEnum


class VehicleType(HomePollStrEnum):
    """Drive train reported by the vehicle list."""

    CONVENTIONAL = "CONVENTIONAL"
    PLUGIN_HYBRID = "PLUGIN_HYBRID"
    ELECTRIC_REX = "ELECTRIC_REX"
    ELECTRIC = "ELECTRIC"
    UNKNOWN = "UNKNOWN"

    @property
    def has_fuel(self) -> bool:
        return self in (VehicleType.CONVENTIONAL, VehicleType.PLUGIN_HYBRID, VehicleType.ELECTRIC_REX)

    @property
    def is_electric(self) -> bool:
        return self in (VehicleType.PLUGIN_HYBRID, VehicleType.ELECTRIC_REX, VehicleType.ELECTRIC)

    @property
    def is_hybrid(self) -> bool:
        return self.has_fuel and self.is_electric


class RemoteService(enum.Enum):
    """Remote commands offered on the ``remote#command`` channel."""

    LIGHT_FLASH = ("light", "Flash Lights", "light-flash")
    VEHICLE_FINDER = ("finder", "Vehicle Finder", "vehicle-finder")
    DOOR_LOCK = ("lock", "Door Lock", "door-lock")
    DOOR_UNLOCK = ("unlock", "Door Unlock", "door-unlock")
    HORN_BLOW = ("horn", "Horn Blow", "horn-blow")
    CLIMATE_NOW_START = ("climate-now-start", "Start Climate", "climate-now?action=START")
    CLIMATE_NOW_STOP = ("climate-now-stop", "Stop Climate", "climate-now?action=STOP")

    def __init__(self, command_id: str, label: str, service: str) -> None:
        self.command_id = command_id
        self.label = label
        self.service = service

    @classmethod
    def from_command(cls, command: str) -> RemoteService | None:
        for member in cls:
            if member.command_id == command:
                return member
        return None


# ------------------------------------------------------------------
# Vehicle properties
# ------------------------------------------------------------------


class Distance(HomePollBaseModel):
    value: int = INT_UNDEF
    units: str = KILOMETERS_JSON


class Range(HomePollBaseModel):
    distance: Distance = Field(default_factory=Distance)


class Mileage(HomePollBaseModel):
    mileage: int = INT_UNDEF
    units: str = "km"
    formatted_mileage: str = UNDEF


class FuelLevel(HomePollBaseModel):
    value: int = INT_UNDEF
    units: str = "LITERS"


class ChargingState(HomePollBaseModel):
    charge_percentage: int = INT_UNDEF
    state: str = UNDEF
    type: str = UNDEF
    is_charger_connected: bool = False


class Doors(HomePollBaseModel):
    driver_front: str = UNDEF
    driver_rear: str = UNDEF
    passenger_front: str = UNDEF
    passenger_rear: str = UNDEF


class Windows(HomePollBaseModel):
    driver_front: str = UNDEF
    driver_rear: str = UNDEF
    passenger_front: str = UNDEF
    passenger_rear: str = UNDEF


class DoorsWindows(HomePollBaseModel):
    doors: Doors = Field(default_factory=Doors)
    windows: Windows = Field(default_factory=Windows)
    trunk: str = UNDEF
    hood: str = UNDEF
    moonroof: str = UNDEF


class Coordinates(HomePollBaseModel):
    latitude: float = INT_UNDEF
    longitude: float = INT_UNDEF


class Address(HomePollBaseModel):
    formatted: str = UNDEF


class Location(HomePollBaseModel):
    coordinates: Coordinates = Field(default_factory=Coordinates)
    address: Address = Field(default_factory=Address)
    heading: int = INT_UNDEF


class TireStatus(HomePollBaseModel):
    current_pressure: int = INT_UNDEF
    target_pressure: int = INT_UNDEF


class Tire(HomePollBaseModel):
    status: TireStatus = Field(default_factory=TireStatus)


class Tires(HomePollBaseModel):
    front_left: Tire = Field(default_factory=Tire)
    front_right: Tire = Field(default_factory=Tire)
    rear_left: Tire = Field(default_factory=Tire)
    rear_right: Tire = Field(default_factory=Tire)


class CBS(HomePollBaseModel):
    """Condition based service entry (``serviceRequired``)."""

    type: str = UNDEF
    status: str = UNDEF
    date_time: str | None = None
    distance: Distance | None = None


class CCMMessage(HomePollBaseModel):
    """Check control message."""

    type: str = UNDEF
    state: str = UNDEF
    title: str = UNDEF
    long_description: str = UNDEF


class Properties(HomePollBaseModel):
    last_updated_at: str | None = None
    in_motion: bool = False
    are_doors_locked: bool = False
    are_doors_closed: bool = False
    are_doors_open: bool = False
    are_windows_closed: bool = False
    is_service_required: bool = False
    doors_and_windows: DoorsWindows = Field(default_factory=DoorsWindows)
    fuel_level: FuelLevel = Field(default_factory=FuelLevel)
    charging_state: ChargingState = Field(default_factory=ChargingState)
    combustion_range: Range | None = None
    combined_range: Range = Field(default_factory=Range)
    electric_range: Range = Field(default_factory=Range)
    vehicle_location: Location | None = None
    tires: Tires | None = None
    service_required: list[CBS] = Field(default_factory=list)


class VehicleStatus(HomePollBaseModel):
    last_updated_at: str | None = None
    current_mileage: Mileage | None = None
    check_control_messages: list[CCMMessage] = Field(default_factory=list)
    check_control_messages_general_state: str = UNDEF


class Vehicle(HomePollBaseModel):
    """One entry of the vehicle list.

    ``valid`` is never sent by the API; it is set once the vehicle was
    found by VIN in a response.
    """

    vin: str = UNDEF
    model: str = UNDEF
    year: int = INT_UNDEF
    brand: str = UNDEF
    head_unit_type: str = UNDEF
    drive_train: VehicleType = VehicleType.UNKNOWN
    properties: Properties = Field(default_factory=Properties)
    status: VehicleStatus = Field(default_factory=VehicleStatus)
    valid: bool = False
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)


# ------------------------------------------------------------------
# Charging
# ------------------------------------------------------------------


class ChargeStatistics(HomePollBaseModel):
    total_energy_charged: float = INT_UNDEF
    total_energy_charged_semantics: str = UNDEF
    symbol: str = UNDEF
    number_of_charging_sessions: int = INT_UNDEF


class ChargeStatisticsContainer(HomePollBaseModel):
    description: str = UNDEF
    opt_state_type: str = UNDEF
    statistics: ChargeStatistics = Field(default_factory=ChargeStatistics)


class ChargeSession(HomePollBaseModel):
    id: str = UNDEF
    title: str = UNDEF
    subtitle: str = UNDEF
    energy_charged: str | None = None
    issues: str | None = None
    is_public: bool = False
    session_status: str = UNDEF
    timestamp: str | None = None


class ChargeSessions(HomePollBaseModel):
    total_value: str = UNDEF
    sessions: list[ChargeSession] = Field(default_factory=list)


class ChargeSessionsContainer(HomePollBaseModel):
    charging_sessions: ChargeSessions = Field(default_factory=ChargeSessions)


# ------------------------------------------------------------------
# Remote commands
# ------------------------------------------------------------------


class ExecutionResponse(HomePollBaseModel):
    """Answer of a remote command POST."""

    event_id: str = ""
    creation_time: str = UNDEF


class RemoteServiceStatus(HomePollBaseModel):
    """Answer of the ``eventStatus`` poll."""

    event_status: str = UNDEF
    error_details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_final(self) -> bool:
        return self.event_status.upper() in ("EXECUTED", "ERROR", "CANCELLED", "TIMED_OUT")
