"""Constants for the Storage Heater Scheduler integration."""

DOMAIN = "storage_heater_scheduler"

# Configuration Keys
CONF_DEVICE_HOST = "device_host"
CONF_SWITCH_IDS = "switch_ids"

CONF_CHARGING_WINDOW_START = "charging_window_start"
CONF_CHARGING_WINDOW_END = "charging_window_end"
CONF_DATA_FETCH_TIME = "data_fetch_time"

CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_TIMEZONE = "timezone"

# Heating curve
CONF_START_TEMP = "start_temp"
CONF_SLOPE = "slope"
CONF_MAX_RUNTIME_HOURS = "max_runtime_hours"

# Seasonal fallback (hours per calendar quarter)
CONF_FALLBACK_HOURS_Q1 = "fallback_hours_q1"
CONF_FALLBACK_HOURS_Q2 = "fallback_hours_q2"
CONF_FALLBACK_HOURS_Q3 = "fallback_hours_q3"
CONF_FALLBACK_HOURS_Q4 = "fallback_hours_q4"

# Notifications
CONF_NOTIFY_SERVICE = "notify_service"
CONF_TELEGRAM_BOT_TOKEN = "telegram_bot_token"
CONF_TELEGRAM_CHAT_ID = "telegram_chat_id"
CONF_NOTIFY_ON_SCHEDULE = "notify_on_schedule"
CONF_NOTIFY_ON_ERROR = "notify_on_error"

# Test mode / timing
CONF_TEST_MODE = "test_mode"
CONF_TEST_INTERVAL_MINUTES = "test_interval_minutes"
CONF_TICK_INTERVAL_SECONDS = "tick_interval_seconds"
CONF_FILE_LOGGING = "file_logging"

# Defaults
DEFAULT_NAME = "Storage Heater Scheduler"
DEFAULT_SWITCH_IDS = "0"
DEFAULT_CHARGING_WINDOW_START = "22:00:00"
DEFAULT_CHARGING_WINDOW_END = "06:00:00"
DEFAULT_DATA_FETCH_TIME = "19:00:00"

DEFAULT_START_TEMP = 15.0
DEFAULT_SLOPE = 0.5
DEFAULT_MAX_RUNTIME_HOURS = 8.0

DEFAULT_FALLBACK_HOURS_Q1 = 6.0
DEFAULT_FALLBACK_HOURS_Q2 = 2.0
DEFAULT_FALLBACK_HOURS_Q3 = 0.0
DEFAULT_FALLBACK_HOURS_Q4 = 5.0

DEFAULT_NOTIFY_ON_SCHEDULE = True
DEFAULT_NOTIFY_ON_ERROR = True

DEFAULT_TEST_MODE = False
DEFAULT_TEST_INTERVAL_MINUTES = 5
DEFAULT_TICK_INTERVAL_SECONDS = 60
DEFAULT_FILE_LOGGING = False

# Time
SECONDS_PER_DAY = 24 * 3600
TRIGGER_RESET_TIME = "00:01"

# External endpoints
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_HOURLY_VARIABLE = "temperature_2m"
OPEN_METEO_FORECAST_DAYS = 2
TELEGRAM_API_URL = "https://api.telegram.org"
NOTIFICATION_PREFIX = "Shelly Heater: "

# Request timeouts (seconds)
WEATHER_TIMEOUT = 15
NOTIFY_TIMEOUT = 10
DEVICE_TIMEOUT = 10

# Forecast slice for tomorrow within a 48 hour series
FORECAST_TOMORROW_START = 24
FORECAST_TOMORROW_END = 48
FORECAST_MIN_SAMPLES = 24

# Dispatcher signal for entity refresh
SIGNAL_STATE_UPDATED = f"{DOMAIN}_update"

# Services
SERVICE_RUN_DECISION_CYCLE = "run_decision_cycle"
