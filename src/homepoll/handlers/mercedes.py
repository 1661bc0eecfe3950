"""Mercedes me account and vehicle handlers."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from homepoll._api.mercedes import authorization_url, callback_url, exchange_code, fetch_container, refresh_token
from homepoll._transport import Transport
from homepoll.config import MercedesMeConfig, MercedesVehicleConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollError
from homepoll.handlers.base import BaseHandler, StateCallback, StatusCallback
from homepoll.mapping.mercedes import latest_timestamp, map_elements
from homepoll.models.auth import Token
from homepoll.models.channel import RefreshType, ThingStatus, ThingStatusDetail
from homepoll.polling import Poller
from homepoll.server import CallbackServer

_logger = logging.getLogger(__name__)

THING_TYPE_BEV = "bev"
THING_TYPE_COMBUSTION = "combustion"
THING_TYPE_HYBRID = "hybrid"

THING_TYPE_CONTAINERS: dict[str, tuple[str, ...]] = {
    THING_TYPE_BEV: ("electricvehicle", "vehiclestatus", "vehiclelockstatus", "payasyoudrive"),
    THING_TYPE_COMBUSTION: ("fuelstatus", "vehiclestatus", "vehiclelockstatus", "payasyoudrive"),
    THING_TYPE_HYBRID: ("electricvehicle", "fuelstatus", "vehiclestatus", "vehiclelockstatus", "payasyoudrive"),
}


class MercedesAccountHandler(BaseHandler):
    """Holds the OAuth token of one Mercedes me client.

    Without a token the account stays OFFLINE until the user completes the
    browser flow started on the callback server.
    """

    def __init__(
        self,
        thing_uid: str,
        transport: Transport,
        config: MercedesMeConfig,
        *,
        token: Token | None = None,
        clock: Callable[[], float] = time.time,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self.transport = transport
        self.config = config
        self.token = token or Token()
        self._clock = clock
        self._token_lock = asyncio.Lock()
        self.server = CallbackServer(
            config.callback_ip,
            config.callback_port,
            authorization_url(config),
            self.receive_code,
        )

    def now(self) -> float:
        return self._clock()

    async def initialize(self) -> None:
        if not self.config.is_valid():
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "Client id or secret missing")
            return
        try:
            await self.server.start()
        except OSError as exc:
            _logger.warning("Callback server on port %d failed to start: %s", self.config.callback_port, exc)
            self.update_status(
                ThingStatus.OFFLINE,
                ThingStatusDetail.CONFIGURATION_ERROR,
                f"Port {self.config.callback_port} already in use",
            )
            return
        if self.token.refresh_token:
            await self.get_token()
        if self.token.is_valid(self._clock()):
            self.update_status(ThingStatus.ONLINE)
        else:
            self.update_status(
                ThingStatus.OFFLINE,
                ThingStatusDetail.CONFIGURATION_ERROR,
                f"Open {callback_url(self.config)} to authorize",
            )

    async def dispose(self) -> None:
        await self.server.stop()

    async def receive_code(self, code: str) -> None:
        try:
            token = await exchange_code(self.transport, self.config, code, now=self._clock())
        except (HomePollError, ValidationError) as exc:
            _logger.warning("Authorization code exchange failed: %s", exc)
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, str(exc))
            return
        self.token = token
        self.update_status(ThingStatus.ONLINE)

    async def get_token(self) -> Token:
        """Current token, refreshed first when it expired.

        A failed refresh is logged and the stale token returned.
        """
        async with self._token_lock:
            now = self._clock()
            if self.token.is_valid(now) or not self.token.refresh_token:
                return self.token
            try:
                self.token = await refresh_token(self.transport, self.config, self.token, now=now)
            except (HomePollAuthenticationError, ValidationError) as exc:
                _logger.warning("Token refresh failed: %s", exc)
            return self.token


class MercedesVehicleHandler(BaseHandler):
    """Polls the data containers of one vehicle.

    Parameters
    ----------
    thing_type : str
        ``bev``, ``combustion`` or ``hybrid``; selects the relevant
        containers, further narrowed to the ones the account is
        authorized for.
    """

    def __init__(
        self,
        thing_uid: str,
        account: MercedesAccountHandler,
        config: MercedesVehicleConfig,
        thing_type: str = THING_TYPE_HYBRID,
        *,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self.account = account
        self.config = config
        self.thing_type = thing_type
        self.last_timestamp = 0
        self._poller = Poller(f"mercedes-{config.vin}", self.update_data)

    def containers(self) -> list[str]:
        relevant = THING_TYPE_CONTAINERS.get(self.thing_type, ())
        return [name for name in self.account.config.containers() if name in relevant]

    async def initialize(self) -> None:
        if not self.config.vin:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "VIN missing")
            return
        if self.thing_type not in THING_TYPE_CONTAINERS:
            self.update_status(
                ThingStatus.OFFLINE,
                ThingStatusDetail.CONFIGURATION_ERROR,
                f"Unknown thing type {self.thing_type}",
            )
            return
        self._poller.start(interval=self.config.refresh_interval * 60)

    async def dispose(self) -> None:
        await self._poller.stop()

    async def update_data(self) -> None:
        token = await self.account.get_token()
        if not token.is_valid(self.account.now()):
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, "Account not authorized")
            return
        for container in self.containers():
            try:
                elements = await fetch_container(self.account.transport, token, self.config.vin, container)
            except HomePollError as exc:
                _logger.debug("Container %s of %s failed: %s", container, self.config.vin, exc)
                self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, str(exc))
                return
            self.update_states(map_elements(elements))
            stamp = latest_timestamp(elements)
            if stamp > self.last_timestamp:
                self.last_timestamp = stamp
        self.update_status(ThingStatus.ONLINE)
        if self.last_timestamp:
            _logger.debug(
                "%s data as of %s",
                self.config.vin,
                datetime.fromtimestamp(self.last_timestamp / 1000, tz=UTC).isoformat(),
            )

    async def handle_command(self, channel_uid: str, command: Any) -> None:
        if isinstance(command, RefreshType):
            await self.update_data()
