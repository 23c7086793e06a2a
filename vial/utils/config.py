import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config(BaseModel):
    # Storage Paths
    storage_path: Path = Path("./data")
    database_path: str = "./data/vial.db"

    # Scheduling
    timezone: str = "UTC"  # IANA name used to interpret publish date/time

    # Session Configuration
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    session_days: int = 7
    remember_me_days: int = 30
    secure_cookies: bool = False  # Set to True in production with HTTPS

    # Access Control
    admin_emails: List[str] = []
    cron_secret: str = ""  # Bearer secret for the publish sweep (empty = open)

    # Media Store Configuration
    media_backend: str = "local"  # local or s3
    media_public_base_url: str = ""
    max_audio_mb: int = 200
    s3_bucket: str = ""
    s3_region: str = "us-east-1"
    s3_prefix: str = "vial/audio"
    s3_endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    # Mail Configuration
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_username: str = ""
    smtp_password: str = ""
    mail_from: str = ""
    app_url: str = "http://localhost:8000"

    # Web Server Configuration
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Client Configuration
    poll_interval_seconds: float = 30.0

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._ensure_directories()

    def _ensure_directories(self):
        """Create necessary directories if they don't exist"""
        self.storage_path.mkdir(parents=True, exist_ok=True)
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def media_path(self) -> Path:
        return self.storage_path / "media"

    @property
    def max_audio_bytes(self) -> int:
        return self.max_audio_mb * 1024 * 1024

    @property
    def mail_enabled(self) -> bool:
        return bool(self.smtp_host and self.mail_from)


def load_config(env_file: Optional[str] = None) -> Config:
    """Load configuration from environment variables and .env file"""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    media_backend = os.getenv("MEDIA_BACKEND", "local").lower()
    s3_bucket = os.getenv("S3_BUCKET", "")

    if media_backend not in ("local", "s3"):
        raise ValueError(f"MEDIA_BACKEND must be 'local' or 's3', got '{media_backend}'")
    if media_backend == "s3" and not s3_bucket:
        raise ValueError(
            "S3_BUCKET environment variable is required when MEDIA_BACKEND=s3. "
            "Please set it in your .env file or environment, or switch to MEDIA_BACKEND=local."
        )

    # All default paths derived from storage_path for cross-platform compatibility
    storage_path = Path(os.getenv("STORAGE_PATH", "./data"))

    config_data = {
        "storage_path": storage_path,
        "database_path": os.getenv("DATABASE_PATH", str(storage_path / "vial.db")),
        "timezone": os.getenv("TIMEZONE", "UTC"),
        "jwt_secret_key": os.getenv("JWT_SECRET_KEY", ""),
        "jwt_algorithm": os.getenv("JWT_ALGORITHM", "HS256"),
        "session_days": int(os.getenv("SESSION_DAYS", "7")),
        "remember_me_days": int(os.getenv("REMEMBER_ME_DAYS", "30")),
        "secure_cookies": os.getenv("SECURE_COOKIES", "false").lower() == "true",
        "admin_emails": [email.lower() for email in _split_list(os.getenv("ADMIN_EMAILS", ""))],
        "cron_secret": os.getenv("CRON_SECRET", ""),
        "media_backend": media_backend,
        "media_public_base_url": os.getenv("MEDIA_PUBLIC_BASE_URL", "").rstrip("/"),
        "max_audio_mb": int(os.getenv("MAX_AUDIO_MB", "200")),
        "s3_bucket": s3_bucket,
        "s3_region": os.getenv("S3_REGION", "us-east-1"),
        "s3_prefix": os.getenv("S3_PREFIX", "vial/audio"),
        "s3_endpoint_url": os.getenv("S3_ENDPOINT_URL") or None,
        "aws_access_key_id": os.getenv("AWS_ACCESS_KEY_ID") or None,
        "aws_secret_access_key": os.getenv("AWS_SECRET_ACCESS_KEY") or None,
        "smtp_host": os.getenv("SMTP_HOST", ""),
        "smtp_port": int(os.getenv("SMTP_PORT", "465")),
        "smtp_username": os.getenv("SMTP_USERNAME", ""),
        "smtp_password": os.getenv("SMTP_PASSWORD", ""),
        "mail_from": os.getenv("MAIL_FROM", ""),
        "app_url": os.getenv("APP_URL", "http://localhost:8000").rstrip("/"),
        "host": os.getenv("HOST", "127.0.0.1"),
        "port": int(os.getenv("PORT", "8000")),
        "poll_interval_seconds": float(os.getenv("POLL_INTERVAL_SECONDS", "30")),
    }

    cors_origins = os.getenv("CORS_ORIGINS")
    if cors_origins:
        config_data["cors_origins"] = _split_list(cors_origins)

    return Config(**config_data)
