# marketplace/core/config.py
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator


class Settings(BaseModel):
    """Process-wide runtime configuration, built once at startup."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    app_name: str = "Service Marketplace API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite:///./marketplace.db"

    jwt_secret: str = "marketplace-development-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    client_url: str = "http://localhost:3000"
    bcrypt_rounds: int = 12

    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100
    max_body_bytes: int = 10 * 1024 * 1024

    mock_otp_code: str = "123456"
    max_login_attempts: int = 5
    lock_duration_minutes: int = 120

    @field_validator(
        "jwt_expire_minutes",
        "rate_limit_window_seconds",
        "rate_limit_max_requests",
        "max_body_bytes",
        "max_login_attempts",
        "lock_duration_minutes",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be greater than 0.")
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        # bcrypt accepts log rounds 4..31
        if not 4 <= value <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31.")
        return value

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


# env var name -> settings field
_ENV_KEYS = {
    "APP_NAME": "app_name",
    "APP_VERSION": "app_version",
    "ENV": "environment",
    "LOG_LEVEL": "log_level",
    "DATABASE_URL": "database_url",
    "JWT_SECRET": "jwt_secret",
    "JWT_ALGORITHM": "jwt_algorithm",
    "JWT_EXPIRE_MINUTES": "jwt_expire_minutes",
    "CLIENT_URL": "client_url",
    "BCRYPT_ROUNDS": "bcrypt_rounds",
    "RATE_LIMIT_WINDOW_SECONDS": "rate_limit_window_seconds",
    "RATE_LIMIT_MAX_REQUESTS": "rate_limit_max_requests",
    "MAX_BODY_BYTES": "max_body_bytes",
    "MOCK_OTP_CODE": "mock_otp_code",
    "MAX_LOGIN_ATTEMPTS": "max_login_attempts",
    "LOCK_DURATION_MINUTES": "lock_duration_minutes",
}


def load_settings(*, load_env: bool = True) -> Settings:
    """Load settings from `.env` and the process environment."""

    if load_env:
        load_dotenv()

    values = {}
    for env_name, field_name in _ENV_KEYS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()
    return Settings.model_validate(values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
