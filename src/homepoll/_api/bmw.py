"""BMW / MINI vehicle data endpoints.

Endpoints:
  - /eadrax-vcs/v1/vehicles (vehicle list incl. status)
  - /eadrax-ics/v3/presentation/vehicles/{vin}/images (vehicle picture)
  - /eadrax-chs/v1/charging-statistics
  - /eadrax-chs/v1/charging-sessions
  - /eadrax-vrccs/v2/presentation/remote-commands/{vin}/{service}
  - /eadrax-vrccs/v2/presentation/remote-commands/eventStatus

Every call needs a valid token; :class:`MyBmwProxy` obtains one lazily
through :func:`homepoll._api.bmw_auth.request_token`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from datetime import datetime

from homepoll._api.bmw_auth import request_token
from homepoll._constants import (
    ALL_BRANDS,
    API_CHARGE_SESSIONS,
    API_CHARGE_STATISTICS,
    API_IMAGES,
    API_REMOTE_SERVICE_BASE_URL,
    API_VEHICLES,
    BRAND_USER_AGENTS_MAP,
    CONTENT_TYPE_JSON_ENCODED,
    EADRAX_SERVER_MAP,
    HEADER_X_USER_AGENT,
    REGION_ROW,
)
from homepoll._transport import HttpResponse, Transport
from homepoll.config import MyBmwConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollConfigError, HomePollTransportError
from homepoll.mapping.converter import get_current_iso_time, get_offset_minutes
from homepoll.models.auth import Token
from homepoll.models.bmw import (
    ChargeSessionsContainer,
    ChargeStatisticsContainer,
    ExecutionResponse,
    RemoteService,
    RemoteServiceStatus,
)

_logger = logging.getLogger(__name__)

ACCEPT_IMAGE = "image/png"


def build_vehicle_params(now: datetime | None = None) -> dict[str, str]:
    """Query of the vehicle list call.

    ``appDateTime`` is the epoch in ms and ``apptimezone`` the UTC offset
    of *now* in minutes.
    """
    current = now if now is not None else datetime.now().astimezone()
    return {
        "tireGuardMode": "ENABLED",
        "appDateTime": str(int(current.timestamp() * 1000)),
        "apptimezone": str(get_offset_minutes(current)),
    }


class MyBmwProxy:
    """Authenticated access to the MyBMW API of one account.

    Parameters
    ----------
    transport : Transport
        HTTP transport.
    config : MyBmwConfig
        Account configuration; ``region`` selects the vehicle server.
    language : str
        ``accept-language`` used when the config does not set one.
    """

    def __init__(self, transport: Transport, config: MyBmwConfig, *, language: str = "en") -> None:
        if config.region not in EADRAX_SERVER_MAP:
            raise HomePollConfigError(f"Unknown region {config.region!r}")
        self._transport = transport
        self._config = config
        self._language = config.language or language
        self._token = Token()
        self._token_lock = asyncio.Lock()
        server = EADRAX_SERVER_MAP[config.region]
        self.vehicle_url = f"https://{server}{API_VEHICLES}"
        self.remote_command_url = f"https://{server}{API_REMOTE_SERVICE_BASE_URL}"
        self.remote_status_url = f"{self.remote_command_url}eventStatus"

    @property
    def token(self) -> Token:
        return self._token

    # ------------------------------------------------------------------
    # Token handling
    # ------------------------------------------------------------------

    async def get_token(self) -> Token:
        """Return the current token, refreshing it first when it expired.

        A failed refresh keeps the previous token, so the request using it
        fails and surfaces as a communication error.
        """
        if not self._token.is_valid():
            if not await self.update_token():
                _logger.debug("Authorization failed!")
        return self._token

    async def update_token(self) -> bool:
        async with self._token_lock:
            if self._token.is_valid():
                return True
            try:
                self._token = await request_token(self._transport, self._config)
            except HomePollAuthenticationError as exc:
                _logger.warning("Authorization Exception: %s", exc)
                return False
            _logger.info("Token valid %s", self._token.is_valid())
            return True

    # ------------------------------------------------------------------
    # Generic calls
    # ------------------------------------------------------------------

    async def _headers(self, brand: str, *, image: bool = False) -> dict[str, str] | None:
        user_agent = BRAND_USER_AGENTS_MAP.get(brand.lower())
        if user_agent is None:
            _logger.warning("Unknown Brand %s", brand)
            return None
        token = await self.get_token()
        return {
            "Authorization": token.bearer,
            HEADER_X_USER_AGENT: user_agent,
            "accept-language": self._language,
            "accept": ACCEPT_IMAGE if image else CONTENT_TYPE_JSON_ENCODED,
        }

    async def call(
        self,
        method: str,
        url: str,
        brand: str,
        *,
        params: Mapping[str, str] | None = None,
        data: str | None = None,
        content_type: str | None = None,
        image: bool = False,
    ) -> HttpResponse | None:
        """Issue one authorized request.

        Returns ``None`` without any I/O for an unknown *brand*. Non-200
        answers raise :class:`~homepoll.exceptions.HomePollTransportError`.
        """
        headers = await self._headers(brand, image=image)
        if headers is None:
            return None
        if content_type is not None:
            headers["Content-Type"] = content_type
        return await self._transport.request(method, url, headers=headers, params=params, data=data)

    # ------------------------------------------------------------------
    # Vehicle data
    # ------------------------------------------------------------------

    async def request_vehicles(self, brand: str, *, now: datetime | None = None) -> str | None:
        """Vehicle list of one brand as raw JSON text."""
        response = await self.call("GET", self.vehicle_url, brand, params=build_vehicle_params(now))
        return None if response is None else response.text()

    async def request_all_vehicles(self, *, now: datetime | None = None) -> dict[str, str]:
        """Vehicle lists keyed by brand; unknown brands are skipped.

        A brand whose request fails is left out. The last transport error
        is raised only when no brand answered.
        """
        results: dict[str, str] = {}
        error: HomePollTransportError | None = None
        for brand in ALL_BRANDS:
            try:
                text = await self.request_vehicles(brand, now=now)
            except HomePollTransportError as exc:
                _logger.debug("Vehicle list of brand %s failed: %s", brand, exc)
                error = exc
                continue
            if text is not None:
                results[brand] = text
        if error is not None and not results:
            raise error
        return results

    async def request_image(self, vin: str, brand: str, viewport: str) -> bytes | None:
        url = f"https://{EADRAX_SERVER_MAP[REGION_ROW]}{API_IMAGES.format(vin=vin)}"
        response = await self.call("GET", url, brand, params={"carView": viewport}, image=True)
        return None if response is None else response.body

    async def request_charge_statistics(
        self,
        vin: str,
        brand: str,
        *,
        now: datetime | None = None,
    ) -> ChargeStatisticsContainer | None:
        url = f"https://{EADRAX_SERVER_MAP[REGION_ROW]}{API_CHARGE_STATISTICS}"
        params = {"vin": vin, "currentDate": get_current_iso_time(now)}
        response = await self.call("GET", url, brand, params=params)
        if response is None:
            return None
        return ChargeStatisticsContainer.model_validate(response.json())

    async def request_charge_sessions(self, vin: str, brand: str) -> ChargeSessionsContainer | None:
        url = f"https://{EADRAX_SERVER_MAP[REGION_ROW]}{API_CHARGE_SESSIONS}"
        params = {"vin": vin, "maxResults": "40", "include_date_picker": "true"}
        response = await self.call("GET", url, brand, params=params)
        if response is None:
            return None
        return ChargeSessionsContainer.model_validate(response.json())

    # ------------------------------------------------------------------
    # Remote services
    # ------------------------------------------------------------------

    async def execute_remote_service(self, vin: str, brand: str, service: RemoteService) -> str | None:
        """Trigger *service*; returns the event id to poll."""
        url = f"{self.remote_command_url}{vin}/{service.service}"
        response = await self.call("POST", url, brand, content_type=CONTENT_TYPE_JSON_ENCODED, data="{}")
        if response is None:
            return None
        execution = ExecutionResponse.model_validate(response.json())
        _logger.debug("Remote service %s started, event %s", service.command_id, execution.event_id)
        return execution.event_id

    async def request_remote_service_status(self, event_id: str, brand: str) -> RemoteServiceStatus | None:
        response = await self.call("POST", self.remote_status_url, brand, params={"eventId": event_id})
        if response is None:
            return None
        return RemoteServiceStatus.model_validate(response.json())

    async def run_remote_service(
        self,
        vin: str,
        brand: str,
        service: RemoteService,
        *,
        poll_attempts: int = 10,
        poll_interval: float = 5.0,
    ) -> RemoteServiceStatus | None:
        """Trigger *service* and poll its event until a final state.

        Parameters
        ----------
        poll_attempts : int
            Maximum number of status polls.
        poll_interval : float
            Seconds between status polls.

        Returns
        -------
        RemoteServiceStatus or None
            The last status seen, ``None`` when nothing was triggered.
        """
        event_id = await self.execute_remote_service(vin, brand, service)
        if not event_id:
            return None
        status: RemoteServiceStatus | None = None
        started = time.monotonic()
        for attempt in range(1, poll_attempts + 1):
            await asyncio.sleep(poll_interval)
            status = await self.request_remote_service_status(event_id, brand)
            _logger.debug(
                "Remote service %s poll %d/%d: %s",
                service.command_id,
                attempt,
                poll_attempts,
                status.event_status if status else None,
            )
            if status is None or status.is_final:
                break
        _logger.debug("Remote service %s finished after %.1fs", service.command_id, time.monotonic() - started)
        return status
