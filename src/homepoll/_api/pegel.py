"""PEGELONLINE REST endpoints.

Endpoints:
  - /stations/{uuid}/W/currentmeasurement.json
"""

from __future__ import annotations

import logging

from homepoll._constants import PEGEL_STATIONS_URI
from homepoll._transport import Transport
from homepoll.exceptions import HomePollParseError
from homepoll.models.pegel import Measure

_logger = logging.getLogger(__name__)


def measurement_url(uuid: str) -> str:
    return f"{PEGEL_STATIONS_URI}/{uuid}/W/currentmeasurement.json"


async def fetch_measure(transport: Transport, uuid: str) -> Measure:
    """Current water level of the gauge *uuid*."""
    response = await transport.request("GET", measurement_url(uuid))
    payload = response.json()
    if not isinstance(payload, dict):
        raise HomePollParseError("Measurement is not a JSON object", url=response.url)
    _logger.debug("Measurement of %s: %s", uuid, payload)
    return Measure.model_validate(payload)
