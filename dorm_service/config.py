import re
from datetime import timedelta

from pydantic import field_validator
from pydantic_settings import BaseSettings

_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> timedelta:
    """'7d', '12h', '30m', '45s' or bare seconds -> timedelta."""
    match = _DURATION.match(value)
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNITS[unit])


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dorm.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    # no default: the service refuses to start without a signing secret
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: str = "7d"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGIN: str | None = None
    LOG_LEVEL: str = "INFO"
    CACHE_ENABLED: bool = True
    CACHE_TTL: int = 300  # 5 minutes
    BCRYPT_ROUNDS: int = 10
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "10/minute"
    SEED_ADMIN: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("JWT_SECRET")
    @classmethod
    def secret_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @field_validator("JWT_EXPIRES_IN")
    @classmethod
    def valid_lifetime(cls, v: str) -> str:
        if parse_duration(v) <= timedelta(0):
            raise ValueError("JWT_EXPIRES_IN must be positive")
        return v

    @property
    def token_lifetime(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRES_IN)


settings = Settings()
