"""MyBMW account bridge and vehicle handlers."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from homepoll._api.bmw import MyBmwProxy
from homepoll._transport import Transport
from homepoll.config import MyBmwConfig, MyBmwVehicleConfig
from homepoll.exceptions import HomePollError, HomePollTransportError
from homepoll.handlers.base import BaseHandler, StateCallback, StatusCallback
from homepoll.mapping.bmw import (
    GROUP_CHARGE_SESSION,
    GROUP_CHECK_CONTROL,
    GROUP_REMOTE,
    GROUP_SERVICE,
    NAME,
    REMOTE_SERVICE_COMMAND,
    STATUS,
    TITLE,
    VehicleChannelMapper,
)
from homepoll.mapping.converter import get_anonymous_fingerprint, get_index, get_vehicle, get_vehicle_list
from homepoll.models.bmw import RemoteService, Vehicle
from homepoll.models.channel import RefreshType, StringType, ThingStatus, ThingStatusDetail
from homepoll.polling import Poller

_logger = logging.getLogger(__name__)

DISCOVERY_DELAY_SEC = 2.0


class MyBmwBridgeHandler(BaseHandler):
    """Account bridge; owns the proxy shared by all vehicles of the account.

    After start-up the vehicle list of every brand is requested once. The
    answer (or the network error) is kept as an anonymized fingerprint that
    users attach to bug reports.
    """

    def __init__(
        self,
        thing_uid: str,
        transport: Transport,
        config: MyBmwConfig,
        *,
        language: str = "en",
        discovery_delay: float = DISCOVERY_DELAY_SEC,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self._transport = transport
        self.config = config
        self._language = language
        self._discovery_delay = discovery_delay
        self.proxy: MyBmwProxy | None = None
        self.vehicles: list[Vehicle] = []
        self.fingerprint = ""
        self._poller = Poller(f"bmw-bridge-{thing_uid}", self.discover)

    def check_configuration(self) -> bool:
        return self.config.is_valid()

    async def initialize(self) -> None:
        if not self.check_configuration():
            self.update_status(
                ThingStatus.OFFLINE,
                ThingStatusDetail.CONFIGURATION_ERROR,
                "Check user name, password and region",
            )
            return
        self.proxy = MyBmwProxy(self._transport, self.config, language=self._language)
        self.update_status(ThingStatus.UNKNOWN)
        self._poller.start(interval=None, initial_delay=self._discovery_delay)

    async def dispose(self) -> None:
        await self._poller.stop()

    async def discover(self) -> None:
        if self.proxy is None:
            return
        try:
            payloads = await self.proxy.request_all_vehicles()
        except HomePollTransportError as exc:
            _logger.debug("Vehicle discovery failed: %s", exc)
            self.fingerprint = exc.to_json()
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, exc.reason)
            return
        vehicles: list[Vehicle] = []
        for payload in payloads.values():
            vehicles += get_vehicle_list(payload)
        self.vehicles = vehicles
        self.fingerprint = get_anonymous_fingerprint(vehicles)
        self.update_status(ThingStatus.ONLINE)
        _logger.debug("###### Discovery Fingerprint Data - BEGIN ######")
        _logger.debug("%s", self.fingerprint)
        _logger.debug("###### Discovery Fingerprint Data - END ######")


class MyBmwVehicleHandler(BaseHandler):
    """One vehicle; polled through its bridge's proxy.

    Host commands
    -------------
    ``REFRESH`` on any channel
        Poll immediately.
    ``service#name``, ``check#name``, ``charge-session#title``
        Select the list entry with the given index.
    ``remote#command``
        Run a remote service by id and report its final state on
        ``remote#status``.
    """

    def __init__(
        self,
        thing_uid: str,
        bridge: MyBmwBridgeHandler,
        config: MyBmwVehicleConfig,
        *,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self.bridge = bridge
        self.config = config
        self.mapper = VehicleChannelMapper(config.drive_train)
        self.vehicle: Vehicle | None = None
        self._poller = Poller(f"bmw-{config.vin}", self.update_data)

    async def initialize(self) -> None:
        if not self.config.vin:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "VIN missing")
            return
        self._poller.start(interval=self.config.refresh_interval * 60)

    async def dispose(self) -> None:
        await self._poller.stop()

    async def update_data(self) -> None:
        proxy = self.bridge.proxy
        if proxy is None:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "Bridge not initialized")
            return
        try:
            payload = await proxy.request_vehicles(self.config.vehicle_brand)
            if payload is None:
                self.update_status(
                    ThingStatus.OFFLINE,
                    ThingStatusDetail.CONFIGURATION_ERROR,
                    f"Unknown brand {self.config.vehicle_brand}",
                )
                return
            vehicle = get_vehicle(self.config.vin, payload)
            if not vehicle.valid:
                self.update_status(
                    ThingStatus.OFFLINE,
                    ThingStatusDetail.COMMUNICATION_ERROR,
                    f"Vehicle {self.config.vin} not found",
                )
                return
            self.vehicle = vehicle
            self.update_states(self.mapper.map_vehicle(vehicle))
            self.update_status(ThingStatus.ONLINE)
            if self.mapper.is_electric:
                await self._update_charging(proxy)
        except (HomePollError, ValidationError) as exc:
            _logger.debug("Update of %s failed: %s", self.config.vin, exc)
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, str(exc))

    async def _update_charging(self, proxy: MyBmwProxy) -> None:
        statistics = await proxy.request_charge_statistics(self.config.vin, self.config.vehicle_brand)
        if statistics is not None:
            self.update_states(self.mapper.map_charge_statistics(statistics))
        sessions = await proxy.request_charge_sessions(self.config.vin, self.config.vehicle_brand)
        if sessions is not None:
            self.update_states(self.mapper.update_sessions(sessions.charging_sessions.sessions))

    async def run_remote_service(self, command: str) -> None:
        service = RemoteService.from_command(command)
        proxy = self.bridge.proxy
        if service is None or proxy is None:
            _logger.debug("Remote service %s not available", command)
            return
        self.update_channel(GROUP_REMOTE, REMOTE_SERVICE_COMMAND, StringType(service.command_id))
        try:
            status = await proxy.run_remote_service(self.config.vin, self.config.vehicle_brand, service)
        except (HomePollError, ValidationError) as exc:
            _logger.debug("Remote service %s failed: %s", command, exc)
            self.update_channel(GROUP_REMOTE, STATUS, StringType("ERROR"))
            return
        if status is not None:
            self.update_channel(GROUP_REMOTE, STATUS, StringType(status.event_status))

    async def handle_command(self, channel_uid: str, command: Any) -> None:
        if isinstance(command, RefreshType):
            await self.update_data()
            return
        group, channel = self.split_channel_uid(channel_uid)
        if group == GROUP_REMOTE and channel == REMOTE_SERVICE_COMMAND:
            await self.run_remote_service(str(command))
            return
        index = get_index(str(command))
        if group == GROUP_SERVICE and channel == NAME:
            self.update_states(self.mapper.select_service(index))
        elif group == GROUP_CHECK_CONTROL and channel == NAME:
            self.update_states(self.mapper.select_check_control(index))
        elif group == GROUP_CHARGE_SESSION and channel == TITLE:
            self.update_states(self.mapper.select_session(index))
