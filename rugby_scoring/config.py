"""
Deployment configuration.

Settings are read from environment variables; domain constants live in
``rugby_scoring.utils.constants``.
"""
import os
from dataclasses import dataclass
from typing import Optional


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}") from None


@dataclass
class AppConfig:
    """
    Settings of the web server.

    Attributes:
        data_file: JSON database file; None keeps data in memory only
        host: Bind address (localhost only by default)
        port: Listen port
        debug: Flask debug mode
        secret_key: Flask secret key signing the session cookie
        log_file: Optional extra log file
    """
    data_file: Optional[str] = "rugby_data.json"
    host: str = "127.0.0.1"
    port: int = 7122
    debug: bool = False
    secret_key: str = "dev"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            data_file=os.getenv("RUGBY_DATA_FILE", cls.data_file) or None,
            host=os.getenv("RUGBY_HOST", cls.host),
            port=get_int_env("RUGBY_PORT", cls.port),
            debug=get_bool_env("RUGBY_DEBUG", cls.debug),
            secret_key=os.getenv("RUGBY_SECRET_KEY", cls.secret_key),
            log_file=os.getenv("RUGBY_LOG_FILE") or None,
        )
