SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"
DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "shift_attendance_test",
}

TIMEZONE = "UTC"

WEBHOOK_BASE_URL = "http://webhooks.test/webhook"
WEBHOOK_TIMEOUT = 1.0
WEBHOOK_MAX_RETRIES = 0

GEOFENCE = {"lat": 40.7128, "lng": -74.0060, "radius_m": 100.0}
REVERSE_GEOCODE_URL = ""

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
