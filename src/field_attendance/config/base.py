import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "field-attendance-dev-secret"

    # Canonical document store
    MONGODB_URI = os.environ.get("MONGODB_URI", "mongodb://localhost:27017/fieldapp")
    MONGODB_DB = os.environ.get("MONGODB_DB", "fieldapp")

    # Secondary (HR) replica; empty disables replication
    MONGODB_URI_SECONDARY = os.environ.get("MONGODB_URI_SECONDARY", "")
    MONGODB_DB_SECONDARY = os.environ.get("MONGODB_DB_SECONDARY", "fieldapp_hr")
    REPLICATION_OUTBOX = bool(int(os.environ.get("REPLICATION_OUTBOX", "1")))
    REPLICATION_WORKERS = int(os.environ.get("REPLICATION_WORKERS", "2"))

    # Image host
    CLOUDINARY_CLOUD_NAME = os.environ.get("CLOUDINARY_CLOUD_NAME", "")
    CLOUDINARY_API_KEY = os.environ.get("CLOUDINARY_API_KEY", "")
    CLOUDINARY_API_SECRET = os.environ.get("CLOUDINARY_API_SECRET", "")
    UPLOAD_MAX_ATTEMPTS = int(os.environ.get("UPLOAD_MAX_ATTEMPTS", "3"))
    UPLOAD_TIMEOUT_SECONDS = float(os.environ.get("UPLOAD_TIMEOUT_SECONDS", "120"))
    UPLOAD_MAX_TOTAL_SECONDS = float(os.environ.get("UPLOAD_MAX_TOTAL_SECONDS", "1200"))
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_FILE_SIZE", str(5 * 1024 * 1024)))

    # Reverse geocoding
    LOCATIONIQ_API_KEY = os.environ.get("LOCATIONIQ_API_KEY", "")
    LOCATIONIQ_URL = os.environ.get("LOCATIONIQ_URL", "https://us1.locationiq.com/v1/reverse")

    TIMEZONE = os.environ.get("TIMEZONE", "Asia/Kolkata")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
