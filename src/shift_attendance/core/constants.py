"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

PAIRING_WINDOW_HOURS = 36
DEFAULT_SHIFT_START = time(9, 0)
LATE_FLAG = "late"
PLACEHOLDER = "—"

SESSION_STATE_KEY = "attendanceStateV1"
AUTH_USER_KEY = "authUser"
PENDING_ACTION_KEY = "pendingAction"
SELFIE_KEY = "selfieDataUrl"
LAST_GEO_KEY = "lastGeo"
LAST_ADDRESS_KEY = "lastAddress"
CLOCK_IN_ID_KEY = "currentClockInId"
BREAK_COMPLETED_KEY = "breakCompleted"
DEVICE_ID_KEY = "device_uuid"

EXPORT_FILENAME = "public_work_hours.xls"
EXPORT_MIMETYPE = "application/vnd.ms-excel"
