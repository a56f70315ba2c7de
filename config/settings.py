# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    APP_NAME: str = Field(default="mom", validation_alias="APP_NAME")
    APP_VERSION: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(default="*", validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_ENABLED: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    RATE_LIMIT_TIMES: int = Field(default=120, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Storage layout
    KEY_ROOT: str = Field(default="mom", validation_alias="KEY_ROOT")
    MAP_MAX_ATTEMPTS: int = Field(default=3, ge=2, validation_alias="MAP_MAX_ATTEMPTS")
    ALLOCATE_MAX_ATTEMPTS: int = Field(
        default=5, ge=1, validation_alias="ALLOCATE_MAX_ATTEMPTS"
    )
    OPERATION_TIMEOUT_SECONDS: float = Field(
        default=10.0, gt=0, validation_alias="OPERATION_TIMEOUT_SECONDS"
    )

    # Mapping policy
    ARBITRARY_TARGET_MODE: bool = Field(
        default=False, validation_alias="ARBITRARY_TARGET_MODE"
    )

    # System app
    SYSTEM_APP_ID: str = Field(default="system", validation_alias="SYSTEM_APP_ID")
    SYSTEM_APP_SECRET: str = Field(..., validation_alias="SYSTEM_APP_SECRET")

    # Logging knobs
    LOGGER_NAME: str = "mom"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="mom.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
