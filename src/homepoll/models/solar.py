"""Forecast.Solar estimate models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from homepoll._constants import UNDEF
from homepoll.models._base import HomePollBaseModel


class EstimateResult(HomePollBaseModel):
    """Time series keyed by local ``"YYYY-MM-DD HH:MM:SS"`` (or day) strings."""

    watts: dict[str, float] = Field(default_factory=dict)
    watt_hours: dict[str, float] = Field(default_factory=dict)
    watt_hours_day: dict[str, float] = Field(default_factory=dict)


class RateLimit(HomePollBaseModel):
    period: int = -1
    limit: int = -1
    remaining: int = -1


class EstimateInfo(HomePollBaseModel):
    latitude: float = 0.0
    longitude: float = 0.0
    place: str = UNDEF
    timezone: str = UNDEF


class EstimateMessage(HomePollBaseModel):
    code: int = -1
    type: str = UNDEF
    text: str = ""
    info: EstimateInfo = Field(default_factory=EstimateInfo)
    ratelimit: RateLimit = Field(default_factory=RateLimit)


class Estimate(HomePollBaseModel):
    """Full ``/estimate`` answer."""

    result: EstimateResult = Field(default_factory=EstimateResult)
    message: EstimateMessage = Field(default_factory=EstimateMessage)
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
