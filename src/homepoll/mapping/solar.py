"""Forecast.Solar estimate interpolation.

Forecast.Solar answers with cumulative watt-hour samples per day. The
production "so far" at an arbitrary minute is interpolated linearly
between the two samples around it.
"""

from __future__ import annotations

import bisect
import json
import logging
import math
from datetime import datetime, timedelta

from pydantic import ValidationError

from homepoll.exceptions import HomePollParseError
from homepoll.models.channel import UNDEF, UNIT_KILOWATT_HOUR, QuantityType, State
from homepoll.models.solar import Estimate

_logger = logging.getLogger(__name__)

UNDEF_VALUE = -1.0


def _round_wh_to_kwh(watt_hours: float) -> float:
    # Half-up rounding to full Wh.
    return math.floor(watt_hours + 0.5) / 1000.0


def parse_sample_time(key: str) -> datetime:
    """``"2022-07-17 16:00:00"`` -> naive local datetime."""
    return datetime.fromisoformat(key.strip().replace(" ", "T"))


class ForecastObject:
    """Today's watt-hour samples of one estimate.

    Parameters
    ----------
    content : str
        Raw JSON text of the ``/estimate`` answer. Empty builds an invalid
        object that reports ``-1`` everywhere.
    now : datetime or None
        Local wall time the estimate was fetched; selects "today".
    """

    def __init__(self, content: str = "", now: datetime | None = None) -> None:
        built_at = now or datetime.now()
        self._construction_hour = built_at.hour
        self._estimate: Estimate | None = None
        self._times: list[datetime] = []
        self._values: list[float] = []
        self._valid = False
        if not content:
            return
        try:
            self._estimate = Estimate.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise HomePollParseError(f"Invalid forecast content: {exc}") from exc

        samples: dict[datetime, float] = {}
        for key, value in self._estimate.result.watt_hours.items():
            stamp = parse_sample_time(key)
            if stamp.date() == built_at.date():
                samples[stamp] = float(value)
        self._times = sorted(samples)
        self._values = [samples[t] for t in self._times]
        self._valid = True

    @property
    def raw(self) -> str:
        if self._estimate is None:
            return ""
        return json.dumps(self._estimate.raw)

    @property
    def estimate(self) -> Estimate | None:
        return self._estimate

    def is_valid(self, now: datetime | None = None) -> bool:
        """Usable only within the hour it was built and when it holds samples."""
        current = now or datetime.now()
        return self._valid and self._construction_hour == current.hour and bool(self._times)

    def actual_value(self, now: datetime) -> float:
        """Production so far today in kWh, ``-1`` without data."""
        if not self._times:
            return UNDEF_VALUE
        floor_idx = bisect.bisect_right(self._times, now) - 1
        ceil_idx = bisect.bisect_left(self._times, now)
        if floor_idx < 0:
            # before sunrise
            return 0.0
        floor_time = self._times[floor_idx]
        floor_value = self._values[floor_idx]
        if ceil_idx >= len(self._times):
            # after sunset
            return _round_wh_to_kwh(floor_value)
        production = self._values[ceil_idx] - floor_value
        minutes = now.minute - floor_time.minute
        return _round_wh_to_kwh(floor_value + production * minutes / 60)

    def day_total(self, now: datetime, offset: int = 0) -> float:
        """Forecast of the whole day ``now + offset days`` in kWh, ``-1`` if unknown."""
        if self._estimate is None:
            return UNDEF_VALUE
        day = (now + timedelta(days=offset)).date().isoformat()
        day_values = self._estimate.result.watt_hours_day
        if day in day_values:
            return _round_wh_to_kwh(day_values[day])
        return UNDEF_VALUE

    def remaining_production(self, now: datetime) -> float:
        if not self._times:
            return UNDEF_VALUE
        return self.day_total(now, 0) - self.actual_value(now)

    @staticmethod
    def state_for(value: float) -> State:
        if value < 0:
            return UNDEF
        return QuantityType(value, UNIT_KILOWATT_HOUR)

    def __repr__(self) -> str:
        return f"ForecastObject(hour={self._construction_hour}, valid={self._valid}, samples={len(self._times)})"
