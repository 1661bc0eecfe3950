"""Binding configuration for homepoll.

Each binding reads a plain data holder from the host's persisted thing
configuration. The host stores camelCase keys (``refreshInterval``,
``warningLevel1``...), so every config class accepts those through
:meth:`from_mapping` and ``HOMEPOLL_*`` environment variables through
:meth:`from_env`.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any, TypeVar

from homepoll._constants import (
    AUTODETECT,
    EADRAX_SERVER_MAP,
    EMPTY,
    INT_MAX,
    MB_CONTAINER_SCOPES,
    REGION_ROW,
    UNKNOWN,
)
from homepoll.exceptions import HomePollConfigError

TConfig = TypeVar("TConfig")


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Convert *value* to the type of the field's *default*."""
    try:
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            return _env_bool(str(value), default)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as exc:
        raise HomePollConfigError(f"Invalid value for {name}: {value!r}") from exc
    return str(value)


def _build(
    cls: type[TConfig],
    sources: list[tuple[Mapping[str, Any], Mapping[str, str]]],
    overrides: Mapping[str, Any],
) -> TConfig:
    defaults = {
        f.name: f.default
        for f in dataclasses.fields(cls)  # type: ignore[arg-type]
        if f.default is not dataclasses.MISSING
    }
    kwargs: dict[str, Any] = {}
    for data, key_map in sources:
        for key, field_name in key_map.items():
            if key in data and data[key] is not None:
                raw = data[key]
                default = defaults.get(field_name)
                kwargs[field_name] = raw if default is None else _coerce(field_name, raw, default)
    kwargs.update(overrides)
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise HomePollConfigError(f"Incomplete {cls.__name__}: {exc}") from exc


@dataclasses.dataclass(frozen=True)
class MyBmwConfig:
    """BMW / MINI account bridge configuration.

    Parameters
    ----------
    username : str
        ConnectedDrive account user name.
    password : str
        ConnectedDrive account password.
    region : str
        One of ``NORTH_AMERICA``, ``ROW`` or ``CHINA``.
    language : str
        ``accept-language`` sent with every request. Empty means the
        host locale is used.
    """

    username: str = EMPTY
    password: str = EMPTY
    region: str = REGION_ROW
    language: str = EMPTY

    _KEYS = {"userName": "username", "password": "password", "region": "region", "language": "language"}
    _ENV = {
        "HOMEPOLL_BMW_USERNAME": "username",
        "HOMEPOLL_BMW_PASSWORD": "password",
        "HOMEPOLL_BMW_REGION": "region",
        "HOMEPOLL_BMW_LANGUAGE": "language",
    }

    def is_valid(self) -> bool:
        """Credentials present and region known."""
        if not self.username or not self.password:
            return False
        return self.region in EADRAX_SERVER_MAP

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> MyBmwConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> MyBmwConfig:
        return _build(cls, [(os.environ, cls._ENV)], overrides)


@dataclasses.dataclass(frozen=True)
class MyBmwVehicleConfig:
    """Single vehicle below a BMW bridge."""

    vin: str = EMPTY
    vehicle_brand: str = EMPTY
    refresh_interval: int = 5
    drive_train: str = EMPTY

    _KEYS = {
        "vin": "vin",
        "vehicleBrand": "vehicle_brand",
        "refreshInterval": "refresh_interval",
        "driveTrain": "drive_train",
    }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> MyBmwVehicleConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)


@dataclasses.dataclass(frozen=True)
class MercedesMeConfig:
    """Mercedes me account configuration.

    The ``*_scope`` flags select which vehicle data containers the
    authorization is requested for.
    """

    client_id: str = EMPTY
    client_secret: str = EMPTY
    callback_ip: str = "127.0.0.1"
    callback_port: int = 8090
    odo_scope: bool = True
    vehicle_scope: bool = True
    lock_scope: bool = True
    fuel_scope: bool = True
    ev_scope: bool = True

    _KEYS = {
        "clientId": "client_id",
        "clientSecret": "client_secret",
        "callbackIP": "callback_ip",
        "callbackPort": "callback_port",
        "odoScope": "odo_scope",
        "vehicleScope": "vehicle_scope",
        "lockScope": "lock_scope",
        "fuelScope": "fuel_scope",
        "evScope": "ev_scope",
    }
    _ENV = {
        "HOMEPOLL_MB_CLIENT_ID": "client_id",
        "HOMEPOLL_MB_CLIENT_SECRET": "client_secret",
        "HOMEPOLL_MB_CALLBACK_IP": "callback_ip",
        "HOMEPOLL_MB_CALLBACK_PORT": "callback_port",
    }

    def containers(self) -> list[str]:
        """Vehicle data containers enabled by the scope flags."""
        enabled = {
            "payasyoudrive": self.odo_scope,
            "vehiclestatus": self.vehicle_scope,
            "vehiclelockstatus": self.lock_scope,
            "fuelstatus": self.fuel_scope,
            "electricvehicle": self.ev_scope,
        }
        return [name for name in MB_CONTAINER_SCOPES if enabled.get(name)]

    def is_valid(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> MercedesMeConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> MercedesMeConfig:
        return _build(cls, [(os.environ, cls._ENV)], overrides)


@dataclasses.dataclass(frozen=True)
class MercedesVehicleConfig:
    vin: str = EMPTY
    refresh_interval: int = 5

    _KEYS = {"vin": "vin", "refreshInterval": "refresh_interval"}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> MercedesVehicleConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)


@dataclasses.dataclass(frozen=True)
class PegelOnlineConfig:
    """River gauge station configuration.

    Warning levels are in centimetres; ``INT_MAX`` means "not configured".
    ``refresh_interval`` is in minutes.
    """

    uuid: str = UNKNOWN
    warning_level1: int = INT_MAX
    warning_level2: int = INT_MAX
    warning_level3: int = INT_MAX
    hq10: int = INT_MAX
    hq100: int = INT_MAX
    hq_extreme: int = INT_MAX
    refresh_interval: int = 15

    _KEYS = {
        "uuid": "uuid",
        "warningLevel1": "warning_level1",
        "warningLevel2": "warning_level2",
        "warningLevel3": "warning_level3",
        "hq10": "hq10",
        "hq100": "hq100",
        "hqhqExtereme": "hq_extreme",
        "hqExtreme": "hq_extreme",
        "refreshInterval": "refresh_interval",
    }
    _ENV = {
        "HOMEPOLL_PEGEL_UUID": "uuid",
        "HOMEPOLL_PEGEL_REFRESH_INTERVAL": "refresh_interval",
    }

    def levels(self) -> list[int]:
        """All thresholds in ascending escalation order."""
        return [
            self.warning_level1,
            self.warning_level2,
            self.warning_level3,
            self.hq10,
            self.hq100,
            self.hq_extreme,
        ]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> PegelOnlineConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> PegelOnlineConfig:
        return _build(cls, [(os.environ, cls._ENV)], overrides)


@dataclasses.dataclass(frozen=True)
class ForecastSolarBridgeConfig:
    """Site wide Forecast.Solar settings.

    ``location`` is ``"lat,lon"`` or ``AUTODETECT`` to use the host location.
    ``channel_refresh_interval`` is in minutes, ``-1`` means every minute.
    """

    location: str = "0.0,0.0"
    channel_refresh_interval: int = -1
    api_key: str = EMPTY

    _KEYS = {
        "location": "location",
        "channelRefreshInterval": "channel_refresh_interval",
        "apiKey": "api_key",
    }
    _ENV = {
        "HOMEPOLL_SOLAR_LOCATION": "location",
        "HOMEPOLL_SOLAR_CHANNEL_REFRESH_INTERVAL": "channel_refresh_interval",
        "HOMEPOLL_SOLAR_API_KEY": "api_key",
    }

    @property
    def autodetect(self) -> bool:
        return self.location.strip().upper() == AUTODETECT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> ForecastSolarBridgeConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> ForecastSolarBridgeConfig:
        return _build(cls, [(os.environ, cls._ENV)], overrides)


@dataclasses.dataclass(frozen=True)
class ForecastSolarPlaneConfig:
    """One PV plane (string) of a Forecast.Solar site.

    ``declination`` 0..90 degrees, ``azimuth`` -180..180 (0 = south),
    ``kwp`` installed peak power. The defaults mark the plane as
    unconfigured.
    """

    declination: int = -1
    azimuth: int = 360
    kwp: float = 0.0
    refresh_interval: int = -1

    _KEYS = {
        "declination": "declination",
        "azimuth": "azimuth",
        "kwp": "kwp",
        "refreshInterval": "refresh_interval",
    }

    def is_valid(self) -> bool:
        return 0 <= self.declination <= 90 and -180 <= self.azimuth <= 180 and self.kwp > 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> ForecastSolarPlaneConfig:
        return _build(cls, [(data, cls._KEYS)], overrides)
