"""
Configuration - settings read from the environment (and a .env file)
"""
from dotenv import load_dotenv
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

load_dotenv()


class Settings(BaseModel):
    buffer_capacity: int = Field(default=50000, ge=1)
    initial_lines: int = Field(default=100, ge=0)
    poll_interval: float = Field(default=1.0, gt=0)
    read_chunk_size: int = Field(default=4096, ge=1)
    log_dir: Path = Path("app_log")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    session_file: Path = Path("~/.kitsune/sessions.json")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value


_ENV_KEYS = {
    "buffer_capacity": "KITSUNE_BUFFER_CAPACITY",
    "initial_lines": "KITSUNE_INITIAL_LINES",
    "poll_interval": "KITSUNE_POLL_INTERVAL",
    "read_chunk_size": "KITSUNE_READ_CHUNK_SIZE",
    "log_dir": "KITSUNE_LOG_DIR",
    "log_level": "KITSUNE_LOG_LEVEL",
    "session_file": "KITSUNE_SESSION_FILE",
}


def get_settings() -> Settings:
    """
    Build settings from KITSUNE_* environment variables

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    values = {}
    for field, key in _ENV_KEYS.items():
        value = os.getenv(key)
        if value:
            values[field] = value
    return Settings(**values)
