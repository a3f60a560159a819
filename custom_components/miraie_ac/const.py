"""Constants for MirAIe AC integration.

This module contains all the constants used throughout the integration,
including API endpoints, MQTT broker details, configuration keys, and the
wire vocabularies of the MirAIe platform.
"""

from .models import TargetMode

DOMAIN = "miraie_ac"
MANUFACTURER = "Panasonic"
MODEL = "MirAIe AC"

LOGIN_URL = "https://auth.miraie.in/simplifi/v1/userManagement/login"
HOMES_URL = "https://app.miraie.in/simplifi/v1/homeManagement/homes"
HTTP_CLIENT_ID = "PBcMcfG19njNCL8AOgvRzIC8AjQa"

LOGIN_RETRY_DELAY = 360  # 6 minutes
# Safety net only, a 401 from the API triggers a login on its own
LOGIN_TOKEN_REFRESH_INTERVAL = 604800  # 7 days

MQTT_HOST = "mqtt.miraie.in"
MQTT_PORT = 8883
MQTT_USE_TLS = True
MQTT_QOS = 0
MQTT_CLIENT_ID_PREFIX = "ha-miraie-"
MQTT_RECONNECT_DELAY = 5  # Seconds to wait before reconnecting

STATUS_TOPIC_SUFFIX = "status"
CONNECTION_STATUS_TOPIC_SUFFIX = "connectionStatus"
CONTROL_TOPIC_SUFFIX = "control"

CONF_USER_ID = "user_id"

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_API_ERROR = "api_error"
ERROR_UNKNOWN = "unknown_error"

MODE_AUTO = "auto"
MODE_COOL = "cool"
MODE_DRY = "dry"
MODE_FAN = "fan"
KNOWN_MODES = (MODE_AUTO, MODE_COOL, MODE_DRY, MODE_FAN)

# The heater-cooler vocabulary has no dry or fan slot. Dry and fan are shown
# as AUTO, and a HEAT request is carried out as dry since the units cannot heat.
TARGET_MODE_MAP = {
    MODE_AUTO: TargetMode.AUTO,
    MODE_COOL: TargetMode.COOL,
    MODE_DRY: TargetMode.AUTO,
    MODE_FAN: TargetMode.AUTO,
}
MODE_COMMAND_MAP = {
    TargetMode.AUTO: MODE_AUTO,
    TargetMode.COOL: MODE_COOL,
    TargetMode.HEAT: MODE_DRY,
}

# Index is the rotation level reported to Home Assistant
FAN_SPEEDS = ("auto", "quiet", "low", "medium", "high")
FAN_SPEED_LEVEL_MAP = {speed: level for level, speed in enumerate(FAN_SPEEDS)}

SWING_ENABLED_POSITION = 0
SWING_DISABLED_POSITION = 5

POWER_ON = "on"
POWER_OFF = "off"
DISPLAY_ON = "on"
DISPLAY_OFF = "off"
ONLINE_STATUS_TRUE = "true"

MIN_TARGET_TEMP = 16.0
MAX_TARGET_TEMP = 30.0
TARGET_TEMP_STEP = 1.0

