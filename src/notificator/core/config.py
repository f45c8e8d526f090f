import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from src.notificator.core.errors import ConfigError

logger = logging.getLogger(__name__)

# Push services reject VAPID tokens that expire more than 24 hours ahead.
MAX_TOKEN_EXPIRE_HOURS = 24

LOG_LEVELS = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _clean(value):
    """Tolerate values wrapped in quotes, e.g. API_KEY="secret"."""
    if value is None:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value


def _int_env(name: str, default: int) -> int:
    raw = _clean(os.getenv(name))
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using default {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = _clean(os.getenv(name))
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using default {default}")
        return default


@dataclass(frozen=True)
class Settings:
    api_key: str
    api_key_header: str = "api_key"
    key_file: str = "vapid_keys.json"
    vapid_claim_email: str = "mailto:admin@example.com"
    vapid_token_expire_hours: int = 12
    push_ttl: int = 2419200
    push_timeout: float = 10
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    def __post_init__(self):
        if not self.api_key:
            raise ConfigError("API_KEY is not configured")
        if not self.api_key_header:
            raise ConfigError("API_KEY_HEADER must not be empty")
        if not 0 < self.vapid_token_expire_hours <= MAX_TOKEN_EXPIRE_HOURS:
            raise ConfigError(
                f"VAPID_TOKEN_EXPIRE_HOURS must be between 1 and {MAX_TOKEN_EXPIRE_HOURS}"
            )
        if self.push_ttl < 0:
            raise ConfigError("PUSH_TTL must not be negative")
        if not self.push_timeout > 0:
            raise ConfigError("PUSH_TIMEOUT must be positive")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown LOG_LEVEL {self.log_level!r}")

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS[self.log_level.upper()]

    @classmethod
    def from_env(cls, dotenv_path=None) -> "Settings":
        """Build settings from the environment, reading a .env file first if present."""
        load_dotenv(dotenv_path)

        claim = _clean(os.getenv("VAPID_CLAIM_EMAIL")) or cls.vapid_claim_email
        if not claim.startswith(("mailto:", "https:")):
            claim = f"mailto:{claim}"

        return cls(
            api_key=_clean(os.getenv("API_KEY")) or "",
            api_key_header=_clean(os.getenv("API_KEY_HEADER")) or cls.api_key_header,
            key_file=_clean(os.getenv("VAPID_KEY_FILE")) or cls.key_file,
            vapid_claim_email=claim,
            vapid_token_expire_hours=_int_env(
                "VAPID_TOKEN_EXPIRE_HOURS", cls.vapid_token_expire_hours
            ),
            push_ttl=_int_env("PUSH_TTL", cls.push_ttl),
            push_timeout=_float_env("PUSH_TIMEOUT", cls.push_timeout),
            log_level=_clean(os.getenv("LOG_LEVEL")) or cls.log_level,
            host=_clean(os.getenv("HOST")) or cls.host,
            port=_int_env("PORT", cls.port),
        )
