"""BMW / MINI vehicle payloads to channel states.

:class:`VehicleChannelMapper` is stateful only in the list selections it
remembers (service, check control, charge session) and the options it
publishes for them. Every ``map_*`` / ``update_*`` / ``select_*`` call
returns the channel states to hand to the host.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from homepoll._constants import HYPHEN, KILOMETERS_JSON, NO_ENTRIES, UNDEF
from homepoll.mapping.converter import (
    get_closed_state,
    get_connection_state,
    get_instant,
    get_lock_state,
    get_miles,
    get_zoned_date_time,
    guess_range_radius,
    to_title_case,
)
from homepoll.models.bmw import (
    CBS,
    CCMMessage,
    ChargeSession,
    ChargeStatisticsContainer,
    DoorsWindows,
    Location,
    RemoteService,
    Tires,
    Vehicle,
    VehicleType,
)
from homepoll.models.channel import UNDEF as UNDEF_STATE
from homepoll.models.channel import (
    UNIT_BAR,
    UNIT_DEGREE_ANGLE,
    UNIT_KILOMETRE,
    UNIT_KILOWATT_HOUR,
    UNIT_LITRE,
    UNIT_MILE,
    UNIT_PERCENT,
    ChannelStateMap,
    DateTimeType,
    DecimalType,
    PointType,
    QuantityType,
    State,
    StateOption,
    StringType,
)

_logger = logging.getLogger(__name__)

GROUP_STATUS = "status"
GROUP_RANGE = "range"
GROUP_DOORS = "doors"
GROUP_LOCATION = "location"
GROUP_TIRES = "tires"
GROUP_SERVICE = "service"
GROUP_CHECK_CONTROL = "check"
GROUP_CHARGE_STATISTICS = "charge-statistics"
GROUP_CHARGE_SESSION = "charge-session"
GROUP_REMOTE = "remote"

# status
LOCK = "lock"
SERVICE_DATE = "service-date"
SERVICE_MILEAGE = "service-mileage"
CHECK_CONTROL = "check-control"
LAST_UPDATE = "last-update"
DOORS = "doors"
WINDOWS = "windows"
PLUG_CONNECTION = "plug-connection"
CHARGE_STATUS = "charge-status"
CHARGE_TYPE = "charge-type"

# range
MILEAGE = "mileage"
RANGE_ELECTRIC = "electric"
RANGE_RADIUS_ELECTRIC = "radius-electric"
RANGE_FUEL = "fuel"
RANGE_RADIUS_FUEL = "radius-fuel"
RANGE_HYBRID = "hybrid"
RANGE_RADIUS_HYBRID = "radius-hybrid"
SOC = "soc"
REMAINING_FUEL = "remaining-fuel"

# doors and windows
DOOR_DRIVER_FRONT = "driver-front"
DOOR_DRIVER_REAR = "driver-rear"
DOOR_PASSENGER_FRONT = "passenger-front"
DOOR_PASSENGER_REAR = "passenger-rear"
TRUNK = "trunk"
HOOD = "hood"
WINDOW_DOOR_DRIVER_FRONT = "win-driver-front"
WINDOW_DOOR_DRIVER_REAR = "win-driver-rear"
WINDOW_DOOR_PASSENGER_FRONT = "win-passenger-front"
WINDOW_DOOR_PASSENGER_REAR = "win-passenger-rear"
SUNROOF = "sunroof"

# location
GPS = "gps"
HEADING = "heading"

# list groups
NAME = "name"
DATE = "date"
DETAILS = "details"
SEVERITY = "severity"
TITLE = "title"
SUBTITLE = "subtitle"
ENERGY = "energy"
SESSIONS = "sessions"
ISSUE = "issue"
STATUS = "status"
REMOTE_SERVICE_COMMAND = "command"

TIRE_CHANNELS: tuple[tuple[str, str], ...] = (
    ("front_left", "fl"),
    ("front_right", "fr"),
    ("rear_left", "rl"),
    ("rear_right", "rr"),
)


def _csm(group: str, channel: str, state: State) -> ChannelStateMap:
    return ChannelStateMap(group, channel, state)


def _date_state(value: str | None) -> State:
    if not value:
        return UNDEF_STATE
    try:
        return DateTimeType.parse(get_zoned_date_time(value))
    except ValueError:
        _logger.debug("Unparsable date %s", value)
        return UNDEF_STATE


def _length(value: float, imperial: bool) -> State:
    quantity = QuantityType(value, UNIT_KILOMETRE)
    return get_miles(quantity) if imperial else quantity


def _kept_index(labels: list[str], selected: str) -> int:
    """Index of the previous selection, or the first entry when it is gone."""
    return labels.index(selected) if selected in labels else 0


def remote_service_options() -> list[StateOption]:
    return [StateOption(service.command_id, service.label) for service in RemoteService]


def next_service_date(services: Sequence[CBS]) -> State:
    """Earliest due date among the condition based services.

    Dates are compared as instants; unparsable ones are skipped.
    """
    dated: list[tuple[datetime, str]] = []
    for service in services:
        if not service.date_time:
            continue
        try:
            dated.append((get_instant(service.date_time), service.date_time))
        except ValueError:
            _logger.debug("Skipping unparsable service date %s", service.date_time)
    if not dated:
        return UNDEF_STATE
    return _date_state(min(dated, key=lambda pair: pair[0])[1])


def next_service_mileage(services: Sequence[CBS]) -> State:
    """Smallest remaining distance among the condition based services."""
    with_distance = [s.distance for s in services if s.distance is not None and s.distance.value >= 0]
    if not with_distance:
        return UNDEF_STATE
    nearest = min(with_distance, key=lambda d: d.value)
    unit = UNIT_KILOMETRE if nearest.units == KILOMETERS_JSON else UNIT_MILE
    return QuantityType(nearest.value, unit)


class VehicleChannelMapper:
    """Channel mapping of one vehicle.

    Parameters
    ----------
    drive_train : VehicleType or str
        Decides which range, charge and fuel channels exist.
    """

    def __init__(self, drive_train: VehicleType | str) -> None:
        self.drive_train = VehicleType(drive_train)
        self.has_fuel = self.drive_train.has_fuel
        self.is_electric = self.drive_train.is_electric
        self.is_hybrid = self.drive_train.is_hybrid

        self.service_list: list[CBS] = []
        self.selected_service = UNDEF
        self.check_control_list: list[CCMMessage] = []
        self.selected_cc = UNDEF
        self.session_list: list[ChargeSession] = []
        self.selected_session = UNDEF

        self.options: dict[tuple[str, str], list[StateOption]] = {
            (GROUP_REMOTE, REMOTE_SERVICE_COMMAND): remote_service_options(),
        }

    # ------------------------------------------------------------------
    # Whole vehicle
    # ------------------------------------------------------------------

    def map_vehicle(self, vehicle: Vehicle) -> list[ChannelStateMap]:
        states = self.map_status(vehicle)
        states += self.map_range(vehicle)
        states += self.map_doors(vehicle.properties.doors_and_windows)
        states += self.map_windows(vehicle.properties.doors_and_windows)
        if vehicle.properties.vehicle_location is not None:
            states += self.map_position(vehicle.properties.vehicle_location)
        states += self.update_services(vehicle.properties.service_required)
        states += self.update_check_controls(vehicle.status.check_control_messages)
        states += self.map_tires(vehicle.properties.tires)
        return states

    def map_status(self, vehicle: Vehicle) -> list[ChannelStateMap]:
        props = vehicle.properties
        states = [
            _csm(GROUP_STATUS, LOCK, get_lock_state(props.are_doors_locked)),
            _csm(GROUP_STATUS, SERVICE_DATE, next_service_date(props.service_required)),
            _csm(GROUP_STATUS, SERVICE_MILEAGE, next_service_mileage(props.service_required)),
            _csm(GROUP_STATUS, CHECK_CONTROL, StringType(vehicle.status.check_control_messages_general_state)),
            _csm(GROUP_STATUS, LAST_UPDATE, _date_state(props.last_updated_at)),
            _csm(GROUP_STATUS, DOORS, get_closed_state(props.are_doors_closed)),
            _csm(GROUP_STATUS, WINDOWS, get_closed_state(props.are_windows_closed)),
        ]
        if self.is_electric:
            charging = props.charging_state
            states += [
                _csm(GROUP_STATUS, PLUG_CONNECTION, get_connection_state(charging.is_charger_connected)),
                _csm(GROUP_STATUS, CHARGE_STATUS, StringType(to_title_case(charging.state))),
                _csm(GROUP_STATUS, CHARGE_TYPE, StringType(to_title_case(charging.type))),
            ]
        return states

    def map_range(self, vehicle: Vehicle) -> list[ChannelStateMap]:
        props = vehicle.properties
        states: list[ChannelStateMap] = []
        imperial = False
        electric = props.electric_range.distance
        fuel = props.combustion_range.distance if props.combustion_range else None

        if self.is_electric:
            imperial = electric.units != KILOMETERS_JSON
            states += [
                _csm(GROUP_RANGE, RANGE_ELECTRIC, _length(electric.value, imperial)),
                _csm(GROUP_RANGE, RANGE_RADIUS_ELECTRIC, _length(guess_range_radius(electric.value), imperial)),
            ]
        if self.has_fuel and fuel is not None:
            imperial = fuel.units != KILOMETERS_JSON
            states += [
                _csm(GROUP_RANGE, RANGE_FUEL, _length(fuel.value, imperial)),
                _csm(GROUP_RANGE, RANGE_RADIUS_FUEL, _length(guess_range_radius(fuel.value), imperial)),
            ]
        if self.is_hybrid and fuel is not None:
            imperial = props.combined_range.distance.units != KILOMETERS_JSON
            # the combined range reported by the API is wrong; sum the parts
            combined = electric.value + fuel.value
            states += [
                _csm(GROUP_RANGE, RANGE_HYBRID, _length(combined, imperial)),
                _csm(GROUP_RANGE, RANGE_RADIUS_HYBRID, _length(guess_range_radius(combined), imperial)),
            ]

        mileage = vehicle.status.current_mileage
        mileage_value = mileage.mileage if mileage is not None else -1
        states.append(_csm(GROUP_RANGE, MILEAGE, QuantityType(mileage_value, UNIT_MILE if imperial else UNIT_KILOMETRE)))
        if self.is_electric:
            states.append(_csm(GROUP_RANGE, SOC, QuantityType(props.charging_state.charge_percentage, UNIT_PERCENT)))
        if self.has_fuel:
            states.append(_csm(GROUP_RANGE, REMAINING_FUEL, QuantityType(props.fuel_level.value, UNIT_LITRE)))
        return states

    def map_doors(self, dw: DoorsWindows) -> list[ChannelStateMap]:
        return [
            _csm(GROUP_DOORS, DOOR_DRIVER_FRONT, StringType(to_title_case(dw.doors.driver_front))),
            _csm(GROUP_DOORS, DOOR_DRIVER_REAR, StringType(to_title_case(dw.doors.driver_rear))),
            _csm(GROUP_DOORS, DOOR_PASSENGER_FRONT, StringType(to_title_case(dw.doors.passenger_front))),
            _csm(GROUP_DOORS, DOOR_PASSENGER_REAR, StringType(to_title_case(dw.doors.passenger_rear))),
            _csm(GROUP_DOORS, TRUNK, StringType(to_title_case(dw.trunk))),
            _csm(GROUP_DOORS, HOOD, StringType(to_title_case(dw.hood))),
        ]

    def map_windows(self, dw: DoorsWindows) -> list[ChannelStateMap]:
        return [
            _csm(GROUP_DOORS, WINDOW_DOOR_DRIVER_FRONT, StringType(to_title_case(dw.windows.driver_front))),
            _csm(GROUP_DOORS, WINDOW_DOOR_DRIVER_REAR, StringType(to_title_case(dw.windows.driver_rear))),
            _csm(GROUP_DOORS, WINDOW_DOOR_PASSENGER_FRONT, StringType(to_title_case(dw.windows.passenger_front))),
            _csm(GROUP_DOORS, WINDOW_DOOR_PASSENGER_REAR, StringType(to_title_case(dw.windows.passenger_rear))),
            _csm(GROUP_DOORS, SUNROOF, StringType(to_title_case(dw.moonroof))),
        ]

    def map_position(self, location: Location) -> list[ChannelStateMap]:
        point = PointType(location.coordinates.latitude, location.coordinates.longitude)
        return [
            _csm(GROUP_LOCATION, GPS, point),
            _csm(GROUP_LOCATION, HEADING, QuantityType(location.heading, UNIT_DEGREE_ANGLE)),
        ]

    def map_tires(self, tires: Tires | None) -> list[ChannelStateMap]:
        states = []
        for attr, prefix in TIRE_CHANNELS:
            if tires is None:
                current: State = UNDEF_STATE
                target: State = UNDEF_STATE
            else:
                status = getattr(tires, attr).status
                current = QuantityType(status.current_pressure / 100, UNIT_BAR)
                target = QuantityType(status.target_pressure / 100, UNIT_BAR)
            states.append(_csm(GROUP_TIRES, f"{prefix}-current", current))
            states.append(_csm(GROUP_TIRES, f"{prefix}-target", target))
        return states

    # ------------------------------------------------------------------
    # Charging
    # ------------------------------------------------------------------

    def map_charge_statistics(self, csc: ChargeStatisticsContainer) -> list[ChannelStateMap]:
        return [
            _csm(GROUP_CHARGE_STATISTICS, TITLE, StringType(csc.description)),
            _csm(
                GROUP_CHARGE_STATISTICS,
                ENERGY,
                QuantityType(csc.statistics.total_energy_charged, UNIT_KILOWATT_HOUR),
            ),
            _csm(GROUP_CHARGE_STATISTICS, SESSIONS, DecimalType(csc.statistics.number_of_charging_sessions)),
        ]

    # ------------------------------------------------------------------
    # Selectable lists
    # ------------------------------------------------------------------

    def update_services(self, services: Sequence[CBS]) -> list[ChannelStateMap]:
        self.service_list = list(services) or [CBS(type=NO_ENTRIES)]
        self.options[(GROUP_SERVICE, NAME)] = [
            StateOption(str(i), entry.type) for i, entry in enumerate(self.service_list)
        ]
        return self.select_service(_kept_index([e.type for e in self.service_list], self.selected_service))

    def select_service(self, index: int) -> list[ChannelStateMap]:
        if not 0 <= index < len(self.service_list):
            return []
        entry = self.service_list[index]
        self.selected_service = entry.type
        if entry.distance is None:
            mileage: State = QuantityType(-1, UNIT_KILOMETRE)
        elif entry.distance.units == KILOMETERS_JSON:
            mileage = QuantityType(entry.distance.value, UNIT_KILOMETRE)
        else:
            mileage = QuantityType(entry.distance.value, UNIT_MILE)
        return [
            _csm(GROUP_SERVICE, NAME, StringType(to_title_case(entry.type))),
            _csm(GROUP_SERVICE, DATE, _date_state(entry.date_time)),
            _csm(GROUP_SERVICE, MILEAGE, mileage),
        ]

    def update_check_controls(self, messages: Sequence[CCMMessage]) -> list[ChannelStateMap]:
        self.check_control_list = list(messages) or [
            CCMMessage(title=NO_ENTRIES, long_description=NO_ENTRIES, state=NO_ENTRIES)
        ]
        self.options[(GROUP_CHECK_CONTROL, NAME)] = [
            StateOption(str(i), entry.title) for i, entry in enumerate(self.check_control_list)
        ]
        return self.select_check_control(
            _kept_index([e.title for e in self.check_control_list], self.selected_cc)
        )

    def select_check_control(self, index: int) -> list[ChannelStateMap]:
        if not 0 <= index < len(self.check_control_list):
            return []
        entry = self.check_control_list[index]
        self.selected_cc = entry.title
        return [
            _csm(GROUP_CHECK_CONTROL, NAME, StringType(entry.title)),
            _csm(GROUP_CHECK_CONTROL, DETAILS, StringType(entry.long_description)),
            _csm(GROUP_CHECK_CONTROL, SEVERITY, StringType(entry.state)),
        ]

    def update_sessions(self, sessions: Sequence[ChargeSession]) -> list[ChannelStateMap]:
        self.session_list = list(sessions) or [ChargeSession(title=NO_ENTRIES)]
        self.options[(GROUP_CHARGE_SESSION, TITLE)] = [
            StateOption(str(i), entry.title) for i, entry in enumerate(self.session_list)
        ]
        return self.select_session(_kept_index([e.title for e in self.session_list], self.selected_session))

    def select_session(self, index: int) -> list[ChannelStateMap]:
        if not 0 <= index < len(self.session_list):
            return []
        entry = self.session_list[index]
        self.selected_session = entry.title
        return [
            _csm(GROUP_CHARGE_SESSION, TITLE, StringType(entry.title)),
            _csm(GROUP_CHARGE_SESSION, SUBTITLE, StringType(entry.subtitle)),
            _csm(GROUP_CHARGE_SESSION, ENERGY, StringType(entry.energy_charged or UNDEF)),
            _csm(GROUP_CHARGE_SESSION, ISSUE, StringType(entry.issues if entry.issues is not None else HYPHEN)),
            _csm(GROUP_CHARGE_SESSION, STATUS, StringType(entry.session_status)),
        ]
