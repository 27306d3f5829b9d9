"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "Asia/Kolkata"

UPLOAD_MAX_ATTEMPTS = 3
UPLOAD_TIMEOUT_SECONDS = 120
UPLOAD_MAX_TOTAL_SECONDS = 1200
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png")
SELFIE_FOLDER = "fieldapp/selfies"
SELFIE_MAX_EDGE = 800

ADDRESS_UNAVAILABLE = "Address unavailable"
GEOCODE_TIMEOUT_SECONDS = 10
GEOCODE_BACKFILL_DELAY_SECONDS = 1.2

REPLICATION_WORKERS = 2
TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600

TOP_EMPLOYEES_LIMIT = 5
