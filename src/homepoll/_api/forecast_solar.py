"""Forecast.Solar public API.

Endpoints:
  - /estimate/{lat}/{lon}/{dec}/{az}/{kwp}
  - /{apikey}/estimate/{lat}/{lon}/{dec}/{az}/{kwp} (personal plans)
"""

from __future__ import annotations

import logging
from datetime import datetime

from homepoll._constants import FORECAST_SOLAR_BASE_URL
from homepoll._transport import Transport
from homepoll.config import ForecastSolarPlaneConfig
from homepoll.mapping.solar import ForecastObject
from homepoll.models.channel import PointType, format_number

_logger = logging.getLogger(__name__)


def estimate_url(location: PointType, plane: ForecastSolarPlaneConfig, api_key: str = "") -> str:
    prefix = f"{FORECAST_SOLAR_BASE_URL}{api_key}/" if api_key else FORECAST_SOLAR_BASE_URL
    return (
        f"{prefix}estimate/{format_number(location.latitude)}/{format_number(location.longitude)}/"
        f"{plane.declination}/{plane.azimuth}/{format_number(plane.kwp)}"
    )


async def fetch_estimate(
    transport: Transport,
    location: PointType,
    plane: ForecastSolarPlaneConfig,
    *,
    api_key: str = "",
    now: datetime | None = None,
) -> ForecastObject:
    """Fetch one plane's estimate and wrap it in a :class:`ForecastObject`."""
    url = estimate_url(location, plane, api_key)
    response = await transport.request("GET", url)
    _logger.debug("Estimate for %s/%s received (%d bytes)", plane.declination, plane.azimuth, len(response.body))
    return ForecastObject(response.text(), now or datetime.now())
