"""Internal constants shared across the library."""

HTTP_TIMEOUT_SEC = 10
CONTENT_TYPE_URL_ENCODED = "application/x-www-form-urlencoded"
CONTENT_TYPE_JSON_ENCODED = "application/json"

UNDEF = "UNDEF"
UNKNOWN = "Unknown"
EMPTY = ""
INT_UNDEF = -1
# Largest signed 32-bit int; marks a river gauge level as not configured.
INT_MAX = 2**31 - 1

# ------------------------------------------------------------------
# BMW / MINI
# ------------------------------------------------------------------

REGION_NORTH_AMERICA = "NORTH_AMERICA"
REGION_ROW = "ROW"
REGION_CHINA = "CHINA"

EADRAX_SERVER_MAP: dict[str, str] = {
    REGION_NORTH_AMERICA: "cocoapi.bmwgroup.us",
    REGION_ROW: "cocoapi.bmwgroup.com",
    REGION_CHINA: "myprofile.bmw.com.cn",
}

OCP_APIM_KEYS: dict[str, str] = {
    REGION_NORTH_AMERICA: "31e102f5-6f7e-7ef3-9044-ddce63891362",
    REGION_ROW: "4f1c85a3-758f-a37d-bbb6-f8704494acfa",
}

BRAND_BMW = "bmw"
BRAND_MINI = "mini"
ALL_BRANDS: tuple[str, ...] = (BRAND_BMW, BRAND_MINI)

USER_AGENT_BMW = "android(v1.07_20200330);bmw;1.7.0(11152)"
USER_AGENT_MINI = "android(v1.07_20200330);mini;1.7.0(11152)"
BRAND_USER_AGENTS_MAP: dict[str, str] = {
    BRAND_BMW: USER_AGENT_BMW,
    BRAND_MINI: USER_AGENT_MINI,
}

API_OAUTH_CONFIG = "/eadrax-ucs/v1/presentation/oauth/config"
OAUTH_ENDPOINT = "/oauth/authenticate"
API_VEHICLES = "/eadrax-vcs/v1/vehicles"
API_REMOTE_SERVICE_BASE_URL = "/eadrax-vrccs/v2/presentation/remote-commands/"
API_CHARGE_STATISTICS = "/eadrax-chs/v1/charging-statistics"
API_CHARGE_SESSIONS = "/eadrax-chs/v1/charging-sessions"
API_IMAGES = "/eadrax-ics/v3/presentation/vehicles/{vin}/images"

LOGIN_NONCE = "login_nonce"
AUTHORIZATION_CODE = "authorization_code"

HEADER_ACP_SUBSCRIPTION_KEY = "ocp-apim-subscription-key"
HEADER_X_USER_AGENT = "x-user-agent"

KILOMETERS_JSON = "KILOMETERS"
NO_ENTRIES = "-"
HYPHEN = " - "
NULL_DATE = "1900-01-01T00:00:00"
ANONYMOUS = "anonymous"

OPEN = "Open"
CLOSED = "Closed"
LOCKED = "Locked"
UNLOCKED = "Unlocked"
CONNECTED = "Connected"
UNCONNECTED = "Not connected"

# ------------------------------------------------------------------
# Mercedes me
# ------------------------------------------------------------------

MB_AUTH_URL = "https://id.mercedes-benz.com/as/authorization.oauth2"
MB_TOKEN_URL = "https://id.mercedes-benz.com/as/token.oauth2"
MB_VEHICLE_DATA_URL = "https://api.mercedes-benz.com/vehicledata/v2/vehicles"
MB_CALLBACK_PATH = "/mb-callback"
MB_SCOPE_OFFLINE = "offline_access"

MB_CONTAINER_SCOPES: dict[str, str] = {
    "electricvehicle": "mb:vehicle:mbdata:evstatus",
    "fuelstatus": "mb:vehicle:mbdata:fuelstatus",
    "payasyoudrive": "mb:vehicle:mbdata:payasyoudrive",
    "vehiclelockstatus": "mb:vehicle:mbdata:vehiclelock",
    "vehiclestatus": "mb:vehicle:mbdata:vehiclestatus",
}

# ------------------------------------------------------------------
# PEGELONLINE
# ------------------------------------------------------------------

PEGEL_STATIONS_URI = "https://www.pegelonline.wsv.de/webservices/rest-api/v2/stations"

TREND_RISING = "Rising"
TREND_CONSTANT = "Constant"
TREND_LOWERING = "Lowering"

LEVEL_HIGH = "High"
LEVEL_NORMAL = "Normal"
LEVEL_LOW = "Low"

# ------------------------------------------------------------------
# Forecast.Solar
# ------------------------------------------------------------------

FORECAST_SOLAR_BASE_URL = "https://api.forecast.solar/"
AUTODETECT = "AUTODETECT"
