import os

from dotenv import load_dotenv

load_dotenv()

# Render provides DATABASE_URL starting with "postgres://..."
# SQLAlchemy 2.x requires "postgresql://...", patched here.
_raw_db_url = os.getenv("DATABASE_URL", "sqlite:///./maywa.db")
DATABASE_URL = _raw_db_url.replace("postgres://", "postgresql://", 1)

SECRET_KEY = os.getenv("SECRET_KEY", "maywa-dev-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# PBKDF2 hash of the fallback PIN, generate with scripts/hash_pin.py
APP_PIN_HASH = os.getenv("APP_PIN_HASH", "")

# "mutex" serialises read-modify-write per collection, "none" keeps the bare race.
STORE_LOCKING = os.getenv("STORE_LOCKING", "mutex").strip().lower()

# Dose history "today" and reminder wall-clock times are evaluated here.
LOCAL_TIMEZONE = os.getenv("LOCAL_TIMEZONE", "UTC")

# Firebase: service account JSON in FIREBASE_SERVICE_ACCOUNT, or
# GOOGLE_APPLICATION_CREDENTIALS pointing to the file.
FIREBASE_SERVICE_ACCOUNT = os.getenv("FIREBASE_SERVICE_ACCOUNT", "")
DEVICE_PUSH_TOKEN = os.getenv("DEVICE_PUSH_TOKEN", "")

# Android notification channel used for reminders.
NOTIFICATION_CHANNEL_ID = os.getenv("NOTIFICATION_CHANNEL_ID", "default")
NOTIFICATION_LIGHT_COLOR = "#1a8e2d"
NOTIFICATION_VIBRATION_PATTERN = [0, 250, 250, 250]

# Secret for external scheduler endpoint (e.g., cron-job.org)
JOB_RUN_KEY = os.getenv("JOB_RUN_KEY", "")

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
