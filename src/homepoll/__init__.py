"""homepoll - Async polling bindings for vehicle, river gauge and solar forecast APIs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("homepoll")
except PackageNotFoundError:
    __version__ = "0+local"
from homepoll._api.bmw import MyBmwProxy
from homepoll._transport import HttpResponse, HttpTransport, Transport
from homepoll.config import (
    ForecastSolarBridgeConfig,
    ForecastSolarPlaneConfig,
    MercedesMeConfig,
    MercedesVehicleConfig,
    MyBmwConfig,
    MyBmwVehicleConfig,
    PegelOnlineConfig,
)
from homepoll.exceptions import (
    HomePollAuthenticationError,
    HomePollConfigError,
    HomePollError,
    HomePollParseError,
    HomePollTransportError,
)
from homepoll.handlers import (
    BaseHandler,
    ForecastSolarBridgeHandler,
    ForecastSolarPlaneHandler,
    MercedesAccountHandler,
    MercedesVehicleHandler,
    MyBmwBridgeHandler,
    MyBmwVehicleHandler,
    PegelOnlineHandler,
)
from homepoll.mapping.solar import ForecastObject
from homepoll.models import ChannelStateMap, State, ThingStatus, ThingStatusDetail
from homepoll.polling import Poller
from homepoll.server import CallbackServer

__all__ = [
    "BaseHandler",
    "CallbackServer",
    "ChannelStateMap",
    "ForecastObject",
    "ForecastSolarBridgeConfig",
    "ForecastSolarBridgeHandler",
    "ForecastSolarPlaneConfig",
    "ForecastSolarPlaneHandler",
    "HomePollAuthenticationError",
    "HomePollConfigError",
    "HomePollError",
    "HomePollParseError",
    "HomePollTransportError",
    "HttpResponse",
    "HttpTransport",
    "MercedesAccountHandler",
    "MercedesMeConfig",
    "MercedesVehicleConfig",
    "MyBmwBridgeHandler",
    "MyBmwConfig",
    "MyBmwProxy",
    "MyBmwVehicleConfig",
    "PegelOnlineConfig",
    "PegelOnlineHandler",
    "Poller",
    "State",
    "ThingStatus",
    "ThingStatusDetail",
    "Transport",
    "__version__",
]
