"""Thing handlers wiring API clients and channel mapping to host callbacks."""

from homepoll.handlers.base import BaseHandler
from homepoll.handlers.bmw import MyBmwBridgeHandler, MyBmwVehicleHandler
from homepoll.handlers.mercedes import MercedesAccountHandler, MercedesVehicleHandler
from homepoll.handlers.pegel import PegelOnlineHandler
from homepoll.handlers.solar import ForecastSolarBridgeHandler, ForecastSolarPlaneHandler

__all__ = [
    "BaseHandler",
    "ForecastSolarBridgeHandler",
    "ForecastSolarPlaneHandler",
    "MercedesAccountHandler",
    "MercedesVehicleHandler",
    "MyBmwBridgeHandler",
    "MyBmwVehicleHandler",
    "PegelOnlineHandler",
]
