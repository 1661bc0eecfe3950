"""PEGELONLINE measurement model."""

from __future__ import annotations

from homepoll._constants import INT_UNDEF, UNKNOWN
from homepoll.models._base import HomePollBaseModel


class Measure(HomePollBaseModel):
    """``currentmeasurement.json`` of a gauge.

    ``trend`` is ``1`` rising, ``0`` constant and ``-1`` lowering; ``None``
    when the gauge does not report one.
    """

    timestamp: str | None = None
    value: float = INT_UNDEF
    trend: int | None = None
    state_mnw_mhw: str = UNKNOWN
    state_nsw_hsw: str = UNKNOWN
