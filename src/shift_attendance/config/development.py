import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")
DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_attendance"),
}

# Business timezone used to derive calendar dates from stored timestamps.
TIMEZONE = os.getenv("TIMEZONE", "UTC")

WEBHOOK_BASE_URL = os.getenv("WEBHOOK_BASE_URL", "http://localhost:5678/webhook")
WEBHOOK_TIMEOUT = float(os.getenv("WEBHOOK_TIMEOUT", "15"))
WEBHOOK_MAX_RETRIES = int(os.getenv("WEBHOOK_MAX_RETRIES", "1"))

GEOFENCE = {
    "lat": float(os.getenv("GEOFENCE_LAT", "40.7128")),
    "lng": float(os.getenv("GEOFENCE_LNG", "-74.0060")),
    "radius_m": float(os.getenv("GEOFENCE_RADIUS_M", "100")),
}
REVERSE_GEOCODE_URL = os.getenv("REVERSE_GEOCODE_URL", "https://api.bigdatacloud.net/data/reverse-geocode-client")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
