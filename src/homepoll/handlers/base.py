"""Glue between pollers and the host.

A handler owns one thing: it pushes channel states and thing status to
the host callbacks and answers host commands. The host (or a test)
constructs the handler, awaits :meth:`BaseHandler.initialize` and later
:meth:`BaseHandler.dispose`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from homepoll.models.channel import ChannelStateMap, State, ThingStatus, ThingStatusDetail, build_channel_uid

_logger = logging.getLogger(__name__)

StateCallback = Callable[[str, State], None]
StatusCallback = Callable[[ThingStatus, ThingStatusDetail, str], None]


class BaseHandler:
    """Common state and status bookkeeping.

    Parameters
    ----------
    thing_uid : str
        Host identifier of the thing, prefix of every channel UID.
    on_state : Callable or None
        Called with ``(channel_uid, state)`` for every state update.
    on_status : Callable or None
        Called with ``(status, detail, description)`` on status changes.
    """

    def __init__(
        self,
        thing_uid: str,
        *,
        on_state: StateCallback | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        self.thing_uid = thing_uid
        self._on_state = on_state
        self._on_status = on_status
        self.states: dict[str, State] = {}
        self.status = ThingStatus.UNKNOWN
        self.status_detail = ThingStatusDetail.NONE
        self.status_description = ""

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    def channel_uid(self, group: str, channel: str) -> str:
        return build_channel_uid(self.thing_uid, group, channel)

    def split_channel_uid(self, channel_uid: str) -> tuple[str, str]:
        """``"<thing>:<group>#<channel>"`` -> ``(group, channel)``; group is empty when absent."""
        prefix = f"{self.thing_uid}:"
        local = channel_uid[len(prefix) :] if channel_uid.startswith(prefix) else channel_uid
        if "#" in local:
            group, channel = local.split("#", 1)
            return group, channel
        return "", local

    def update_state(self, csm: ChannelStateMap) -> None:
        uid = csm.channel_uid(self.thing_uid)
        self.states[uid] = csm.state
        _logger.debug("%s update %s", uid, csm.state)
        if self._on_state is not None:
            self._on_state(uid, csm.state)

    def update_states(self, states: list[ChannelStateMap]) -> None:
        for csm in states:
            self.update_state(csm)

    def update_channel(self, group: str, channel: str, state: State) -> None:
        self.update_state(ChannelStateMap(group, channel, state))

    def update_status(
        self,
        status: ThingStatus,
        detail: ThingStatusDetail = ThingStatusDetail.NONE,
        description: str = "",
    ) -> None:
        self.status = status
        self.status_detail = detail
        self.status_description = description
        _logger.debug("%s status %s %s %s", self.thing_uid, status.value, detail.value, description)
        if self._on_status is not None:
            self._on_status(status, detail, description)

    def state_of(self, group: str, channel: str) -> State | None:
        return self.states.get(self.channel_uid(group, channel))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        raise NotImplementedError

    async def dispose(self) -> None:
        """Stop background work; the default has none."""

    async def handle_command(self, channel_uid: str, command: Any) -> None:
        """React to a host command; the default ignores all commands."""
