"""River gauge measurement to channel states."""

from __future__ import annotations

from homepoll._constants import (
    INT_MAX,
    LEVEL_HIGH,
    LEVEL_LOW,
    LEVEL_NORMAL,
    TREND_CONSTANT,
    TREND_LOWERING,
    TREND_RISING,
    UNKNOWN,
)
from homepoll.config import PegelOnlineConfig
from homepoll.models.channel import (
    UNDEF,
    UNIT_CENTIMETRE,
    ChannelStateMap,
    DateTimeType,
    DecimalType,
    QuantityType,
    State,
    StringType,
)
from homepoll.models.pegel import Measure

MEASURE_CHANNEL = "measure"
TREND_CHANNEL = "trend"
TIMESTAMP_CHANNEL = "timestamp"
LEVEL_CHANNEL = "level"
WARNING_LEVELS_CHANNEL = "warning-levels"
ACTUAL_WARNING_LEVEL_CHANNEL = "actual-warning-level"

_TRENDS: dict[int, str] = {0: TREND_CONSTANT, 1: TREND_RISING, -1: TREND_LOWERING}


def get_trend(measure: Measure) -> str:
    if measure.trend is None:
        return UNKNOWN
    return _TRENDS.get(measure.trend, UNKNOWN)


def get_level(measure: Measure) -> str:
    """Low / Normal from the MNW-MHW state, High from the NSW-HSW state."""
    low = measure.state_mnw_mhw.lower()
    high = measure.state_nsw_hsw.lower()
    if low == LEVEL_LOW.lower():
        return LEVEL_LOW
    if low == LEVEL_NORMAL.lower():
        return LEVEL_NORMAL
    if high == LEVEL_HIGH.lower():
        return LEVEL_HIGH
    return UNKNOWN


def get_warning_levels(config: PegelOnlineConfig) -> int:
    """Number of configured thresholds."""
    return sum(1 for level in config.levels() if level < INT_MAX)


def get_actual_warning_level(measure: Measure, config: PegelOnlineConfig) -> int:
    """Number of thresholds the current value exceeds."""
    return sum(1 for level in config.levels() if measure.value > level)


def _timestamp_state(measure: Measure) -> State:
    if not measure.timestamp:
        return UNDEF
    try:
        return DateTimeType.parse(measure.timestamp)
    except ValueError:
        return UNDEF


def channel_state(channel: str, measure: Measure, config: PegelOnlineConfig) -> State | None:
    """State of one channel; ``None`` for channels this binding does not know."""
    if channel == MEASURE_CHANNEL:
        return QuantityType(measure.value, UNIT_CENTIMETRE)
    if channel == TREND_CHANNEL:
        return StringType(get_trend(measure))
    if channel == TIMESTAMP_CHANNEL:
        return _timestamp_state(measure)
    if channel == LEVEL_CHANNEL:
        return StringType(get_level(measure))
    if channel == WARNING_LEVELS_CHANNEL:
        return DecimalType(get_warning_levels(config))
    if channel == ACTUAL_WARNING_LEVEL_CHANNEL:
        return DecimalType(get_actual_warning_level(measure, config))
    return None


def map_measure(measure: Measure, config: PegelOnlineConfig) -> list[ChannelStateMap]:
    channels = (
        MEASURE_CHANNEL,
        TREND_CHANNEL,
        TIMESTAMP_CHANNEL,
        LEVEL_CHANNEL,
        WARNING_LEVELS_CHANNEL,
        ACTUAL_WARNING_LEVEL_CHANNEL,
    )
    result: list[ChannelStateMap] = []
    for channel in channels:
        state = channel_state(channel, measure, config)
        if state is not None:
            result.append(ChannelStateMap("", channel, state))
    return result
