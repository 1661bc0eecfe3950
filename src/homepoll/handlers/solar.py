"""Forecast.Solar site (bridge) and plane handlers.

The bridge owns the schedule. On every tick each plane refreshes its
forecast when the cached one is no longer valid, publishes its own
channels, and the bridge publishes the sum over all planes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from homepoll._api.forecast_solar import fetch_estimate
from homepoll._transport import Transport
from homepoll.config import ForecastSolarBridgeConfig, ForecastSolarPlaneConfig
from homepoll.exceptions import HomePollError
from homepoll.handlers.base import BaseHandler, StateCallback, StatusCallback
from homepoll.mapping.solar import UNDEF_VALUE, ForecastObject
from homepoll.models.channel import (
    PointType,
    RefreshType,
    StringType,
    ThingStatus,
    ThingStatusDetail,
)
from homepoll.polling import Poller

_logger = logging.getLogger(__name__)

CHANNEL_ACTUAL = "actual"
CHANNEL_REMAINING = "remaining"
CHANNEL_TODAY = "today"
CHANNEL_TOMORROW = "tomorrow"
CHANNEL_RAW = "raw"

Clock = Callable[[], datetime]


def forecast_values(forecast: ForecastObject, now: datetime) -> dict[str, float]:
    return {
        CHANNEL_ACTUAL: forecast.actual_value(now),
        CHANNEL_REMAINING: forecast.remaining_production(now),
        CHANNEL_TODAY: forecast.day_total(now, 0),
        CHANNEL_TOMORROW: forecast.day_total(now, 1),
    }


class ForecastSolarPlaneHandler(BaseHandler):
    """One PV plane; fetched through its bridge's location and API key."""

    def __init__(
        self,
        thing_uid: str,
        transport: Transport,
        config: ForecastSolarPlaneConfig,
        *,
        bridge: ForecastSolarBridgeHandler | None = None,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self._transport = transport
        self.config = config
        self.bridge = bridge
        self.forecast = ForecastObject()

    async def initialize(self) -> None:
        if not self.config.is_valid():
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "Invalid plane parameters")
            return
        if self.bridge is None:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "No bridge")
            return
        self.bridge.add_plane(self)

    async def dispose(self) -> None:
        if self.bridge is not None:
            self.bridge.remove_plane(self)

    async def get_forecast(self, location: PointType, api_key: str, now: datetime) -> ForecastObject:
        """Current forecast, fetched only when the cached one expired."""
        if not self.forecast.is_valid(now):
            try:
                self.forecast = await fetch_estimate(
                    self._transport,
                    location,
                    self.config,
                    api_key=api_key,
                    now=now,
                )
            except HomePollError as exc:
                _logger.debug("Estimate of %s failed: %s", self.thing_uid, exc)
                self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, str(exc))
                return self.forecast
            self.update_channel("", CHANNEL_RAW, StringType(self.forecast.raw))
            self.update_status(ThingStatus.ONLINE)
        self.publish(now)
        return self.forecast

    def publish(self, now: datetime) -> None:
        for channel, value in forecast_values(self.forecast, now).items():
            self.update_channel("", channel, ForecastObject.state_for(value))

    async def handle_command(self, channel_uid: str, command: Any) -> None:
        if isinstance(command, RefreshType):
            self.publish(self.bridge.now() if self.bridge is not None else datetime.now())


class ForecastSolarBridgeHandler(BaseHandler):
    """Site of one or more planes.

    Parameters
    ----------
    host_location : PointType
        Used when the configured location is ``AUTODETECT``.
    clock : Callable
        Returns the local wall time; replaced in tests.
    """

    def __init__(
        self,
        thing_uid: str,
        config: ForecastSolarBridgeConfig,
        *,
        host_location: PointType | None = None,
        clock: Clock = datetime.now,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self.config = config
        self.host_location = host_location or PointType(0.0, 0.0)
        self.location: PointType | None = None
        self.planes: list[ForecastSolarPlaneHandler] = []
        self._clock = clock
        self._poller = Poller(f"solar-{thing_uid}", self.refresh)

    async def initialize(self) -> None:
        if self.config.autodetect:
            self.location = self.host_location
        else:
            try:
                self.location = PointType.parse(self.config.location)
            except ValueError:
                self.update_status(
                    ThingStatus.OFFLINE,
                    ThingStatusDetail.CONFIGURATION_ERROR,
                    f"Invalid location {self.config.location}",
                )
                return
        self.update_status(ThingStatus.ONLINE)
        minutes = self.config.channel_refresh_interval if self.config.channel_refresh_interval > 0 else 1
        self._poller.start(interval=minutes * 60)

    def now(self) -> datetime:
        return self._clock()

    async def dispose(self) -> None:
        await self._poller.stop()

    def add_plane(self, plane: ForecastSolarPlaneHandler) -> None:
        if plane not in self.planes:
            self.planes.append(plane)

    def remove_plane(self, plane: ForecastSolarPlaneHandler) -> None:
        if plane in self.planes:
            self.planes.remove(plane)

    async def refresh(self) -> None:
        if self.location is None:
            return
        now = self._clock()
        totals = {CHANNEL_ACTUAL: 0.0, CHANNEL_REMAINING: 0.0, CHANNEL_TODAY: 0.0, CHANNEL_TOMORROW: 0.0}
        seen = dict.fromkeys(totals, False)
        for plane in list(self.planes):
            forecast = await plane.get_forecast(self.location, self.config.api_key, now)
            for channel, value in forecast_values(forecast, now).items():
                if value >= 0:
                    totals[channel] += value
                    seen[channel] = True
        for channel, value in totals.items():
            self.update_channel("", channel, ForecastObject.state_for(value if seen[channel] else UNDEF_VALUE))

    async def handle_command(self, channel_uid: str, command: Any) -> None:
        if isinstance(command, RefreshType):
            await self.refresh()
