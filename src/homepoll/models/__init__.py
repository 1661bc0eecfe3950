"""Typed models for vendor payloads and channel states."""

from homepoll.models.auth import AuthQueryResponse, AuthResponse, Token
from homepoll.models.bmw import (
    CBS,
    CCMMessage,
    ChargeSession,
    ChargeSessionsContainer,
    ChargeStatisticsContainer,
    RemoteService,
    Vehicle,
    VehicleType,
)
from homepoll.models.channel import (
    UNDEF,
    ChannelStateMap,
    DateTimeType,
    DecimalType,
    OnOffType,
    OpenClosedType,
    PointType,
    QuantityType,
    RefreshType,
    State,
    StateOption,
    StringType,
    ThingStatus,
    ThingStatusDetail,
    UnDefType,
)
from homepoll.models.pegel import Measure
from homepoll.models.solar import Estimate

__all__ = [
    "CBS",
    "UNDEF",
    "AuthQueryResponse",
    "AuthResponse",
    "CCMMessage",
    "ChannelStateMap",
    "ChargeSession",
    "ChargeSessionsContainer",
    "ChargeStatisticsContainer",
    "DateTimeType",
    "DecimalType",
    "Estimate",
    "Measure",
    "OnOffType",
    "OpenClosedType",
    "PointType",
    "QuantityType",
    "RefreshType",
    "RemoteService",
    "State",
    "StateOption",
    "StringType",
    "ThingStatus",
    "ThingStatusDetail",
    "Token",
    "UnDefType",
    "Vehicle",
    "VehicleType",
]
