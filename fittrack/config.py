import os
from dataclasses import dataclass

from dotenv import load_dotenv
load_dotenv()


MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "fittrack")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))
DEFAULT_TOKEN_SECRET = "change-me"
TOKEN_SECRET = os.getenv("TOKEN_SECRET", DEFAULT_TOKEN_SECRET)
TOKEN_TTL_DAYS = int(os.getenv("TOKEN_TTL_DAYS", "30"))
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "10"))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("data", "uploads"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000/files")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass
class Settings:
    mongo_uri: str = MONGO_URI
    mongo_db: str = MONGO_DB
    mongo_timeout_ms: int = MONGO_TIMEOUT_MS
    token_secret: str = TOKEN_SECRET
    token_ttl_days: int = TOKEN_TTL_DAYS
    otp_ttl_minutes: int = OTP_TTL_MINUTES
    upload_dir: str = UPLOAD_DIR
    public_base_url: str = PUBLIC_BASE_URL
    log_level: str = LOG_LEVEL
