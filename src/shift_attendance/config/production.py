import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")
DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_attendance"),
}

TIMEZONE = os.getenv("TIMEZONE", "UTC")

WEBHOOK_BASE_URL = os.getenv("WEBHOOK_BASE_URL", "")
WEBHOOK_TIMEOUT = float(os.getenv("WEBHOOK_TIMEOUT", "15"))
WEBHOOK_MAX_RETRIES = int(os.getenv("WEBHOOK_MAX_RETRIES", "1"))

GEOFENCE = {
    "lat": float(os.getenv("GEOFENCE_LAT", "40.7128")),
    "lng": float(os.getenv("GEOFENCE_LNG", "-74.0060")),
    "radius_m": float(os.getenv("GEOFENCE_RADIUS_M", "100")),
}
REVERSE_GEOCODE_URL = os.getenv("REVERSE_GEOCODE_URL", "https://api.bigdatacloud.net/data/reverse-geocode-client")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
