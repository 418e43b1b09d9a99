import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

FILE_CATEGORIES = ["Tax", "GST", "Financial", "Legal", "Audit", "Other"]


class Config(BaseModel):
    app_name: str = "Document Portal"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./portal.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
    min_password_length: int = 6

    # Bootstrap admin account (skipped when unset)
    admin_email: Optional[str] = os.getenv("ADMIN_EMAIL") or None
    admin_password: Optional[str] = os.getenv("ADMIN_PASSWORD") or None

    # Object storage
    storage_dir: str = os.getenv("STORAGE_DIR", "./storage/company-files")
    signed_url_expire_seconds: int = int(os.getenv("SIGNED_URL_EXPIRE_SECONDS", "300"))
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "50"))

    # Activity log
    activity_log_cap: int = int(os.getenv("ACTIVITY_LOG_CAP", "100"))

    # Client session
    session_idle_minutes: int = int(os.getenv("SESSION_IDLE_MINUTES", "30"))

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:8000,http://127.0.0.1:8000,"
                "http://localhost:5500,http://127.0.0.1:5500,"
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    # Rate limiting
    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "200"))
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("⚠ Using insecure default SECRET_KEY: only acceptable in development.")
