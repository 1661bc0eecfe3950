"""PEGELONLINE gauge station handler."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from homepoll._api.pegel import fetch_measure
from homepoll._constants import UNKNOWN
from homepoll._transport import Transport
from homepoll.config import PegelOnlineConfig
from homepoll.exceptions import HomePollError
from homepoll.handlers.base import BaseHandler, StateCallback, StatusCallback
from homepoll.mapping.pegel import channel_state, map_measure
from homepoll.models.channel import ChannelStateMap, RefreshType, ThingStatus, ThingStatusDetail
from homepoll.models.pegel import Measure
from homepoll.polling import Poller

_logger = logging.getLogger(__name__)


class PegelOnlineHandler(BaseHandler):
    """Polls the current water level of one station every ``refresh_interval`` minutes."""

    def __init__(
        self,
        thing_uid: str,
        transport: Transport,
        config: PegelOnlineConfig,
        *,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        super().__init__(thing_uid, on_state=on_state, on_status=on_status)
        self._transport = transport
        self.config = config
        self.cache: Measure | None = None
        self._poller = Poller(f"pegel-{config.uuid}", self.measure)

    async def initialize(self) -> None:
        if not self.config.uuid or self.config.uuid == UNKNOWN:
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.CONFIGURATION_ERROR, "Station uuid missing")
            return
        self._poller.start(interval=self.config.refresh_interval * 60)

    async def dispose(self) -> None:
        await self._poller.stop()

    async def measure(self) -> None:
        try:
            measure = await fetch_measure(self._transport, self.config.uuid)
        except (HomePollError, ValidationError) as exc:
            _logger.debug("Measurement of %s failed: %s", self.config.uuid, exc)
            self.update_status(ThingStatus.OFFLINE, ThingStatusDetail.COMMUNICATION_ERROR, str(exc))
            return
        self.cache = measure
        self.update_states(map_measure(measure, self.config))
        self.update_status(ThingStatus.ONLINE)

    async def handle_command(self, channel_uid: str, command: Any) -> None:
        if not isinstance(command, RefreshType) or self.cache is None:
            return
        group, channel = self.split_channel_uid(channel_uid)
        state = channel_state(channel, self.cache, self.config)
        if state is not None:
            self.update_state(ChannelStateMap(group, channel, state))
