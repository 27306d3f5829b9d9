import os

SECRET_KEY = "test-secret"

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/fieldapp_test")
MONGODB_DB = "fieldapp_test"
MONGODB_URI_SECONDARY = ""
MONGODB_DB_SECONDARY = "fieldapp_hr_test"
REPLICATION_OUTBOX = False
REPLICATION_WORKERS = 1

CLOUDINARY_CLOUD_NAME = "test-cloud"
CLOUDINARY_API_KEY = "test-key"
CLOUDINARY_API_SECRET = "test-secret"
UPLOAD_MAX_ATTEMPTS = 3
UPLOAD_TIMEOUT_SECONDS = 5
UPLOAD_MAX_TOTAL_SECONDS = 60
MAX_CONTENT_LENGTH = 5 * 1024 * 1024

LOCATIONIQ_API_KEY = ""
LOCATIONIQ_URL = "https://us1.locationiq.com/v1/reverse"

TIMEZONE = "Asia/Kolkata"
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
