import re
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value: str) -> timedelta:
    """Parse a token lifetime such as ``7d``, ``12h``, ``30m`` or ``3600``."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class Settings(BaseSettings):
    # Database
    DB_URI: str = "sqlite:///./tasktracker.db"

    # Redis (optional backend for revocations and rate limits)
    REDIS_URL: Optional[str] = None

    # JWT
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE: str = "7d"

    # Email
    EMAIL_HOST: Optional[str] = None
    EMAIL_PORT: int = 587
    EMAIL_USER: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "no-reply@taskmanagement.com"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    LOGIN_RATE_LIMIT: int = 5
    API_RATE_LIMIT: int = 100

    # Background maintenance
    REVOCATION_SWEEP_SECONDS: int = 60

    # App
    APP_NAME: str = "Task Tracker API"
    APP_ENV: str = Field("production", validation_alias=AliasChoices("APP_ENV", "NODE_ENV"))
    API_PREFIX: str = "/api"
    PORT: int = 5000

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("JWT_EXPIRE")
    @classmethod
    def _check_expire(cls, value: str) -> str:
        parse_duration(value)
        return value

    @property
    def token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRE)

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"

    @property
    def email_enabled(self) -> bool:
        return bool(self.EMAIL_HOST)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
