import os

from .base import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

MONGODB_URI = Config.MONGODB_URI
MONGODB_DB = Config.MONGODB_DB
MONGODB_URI_SECONDARY = Config.MONGODB_URI_SECONDARY
MONGODB_DB_SECONDARY = Config.MONGODB_DB_SECONDARY
REPLICATION_OUTBOX = Config.REPLICATION_OUTBOX
REPLICATION_WORKERS = Config.REPLICATION_WORKERS

CLOUDINARY_CLOUD_NAME = Config.CLOUDINARY_CLOUD_NAME
CLOUDINARY_API_KEY = Config.CLOUDINARY_API_KEY
CLOUDINARY_API_SECRET = Config.CLOUDINARY_API_SECRET
UPLOAD_MAX_ATTEMPTS = Config.UPLOAD_MAX_ATTEMPTS
UPLOAD_TIMEOUT_SECONDS = Config.UPLOAD_TIMEOUT_SECONDS
UPLOAD_MAX_TOTAL_SECONDS = Config.UPLOAD_MAX_TOTAL_SECONDS
MAX_CONTENT_LENGTH = Config.MAX_CONTENT_LENGTH

LOCATIONIQ_API_KEY = Config.LOCATIONIQ_API_KEY
LOCATIONIQ_URL = Config.LOCATIONIQ_URL

TIMEZONE = Config.TIMEZONE
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
