import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    CONFIG_STRICT: bool = False

    # Data sources: "live" talks to the database/storage, "simulated" stays in memory
    DATA_SOURCE: str = "simulated"

    # Database & Cache
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None
    REDIS_URL: str = "redis://localhost:6379"

    # Offline submission queue
    QUEUE_BACKEND: str = "file"  # file | redis
    QUEUE_STORAGE_DIR: str = ".artspark"
    QUEUE_STORAGE_KEY: str = "@artspark:upload-queue"
    QUEUE_MAX_RETRY: int = 3
    QUEUE_EXPIRY_DAYS: int = 7

    # Prompt generation
    ROTATION_WINDOW_DAYS: int = 14

    # Submissions
    ONLINE_ATTEMPT_TIMEOUT_SECONDS: float = 20.0

    # Image storage
    STORAGE_BASE_URL: Optional[str] = None
    STORAGE_BUCKET: str = "responses"
    STORAGE_API_KEY: Optional[str] = None

    # Connectivity probe (live only)
    CONNECTIVITY_PROBE_URL: Optional[str] = None
    CONNECTIVITY_PROBE_INTERVAL_SECONDS: float = 15.0

    # Streaks are counted on local calendar days; None = host timezone
    STREAK_TIMEZONE: Optional[str] = None

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    Only the live data source needs external services. In strict mode raise
    RuntimeError; otherwise emit warnings only. Secrets are not logged, only
    missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("artspark")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    if (getattr(cfg, "DATA_SOURCE", "simulated") or "simulated").lower() != "live":
        return True

    required_keys = [
        "DATABASE_URL",
        "STORAGE_BASE_URL",
    ]
    if (getattr(cfg, "QUEUE_BACKEND", "file") or "file").lower() == "redis":
        required_keys.append("REDIS_URL")

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
