# streamchat/config.py
"""
Runtime settings for streamchat, read from the environment (and a local
.env file, if present). The DH group is not configurable here; it is
hardcoded on both peers.
"""
import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_READ_TIMEOUT = 120.0
KEYSTREAM_PREVIEW_BYTES = 8


@dataclass(frozen=True)
class Settings:
    read_timeout: float = DEFAULT_READ_TIMEOUT
    log_level: int = logging.INFO
    transcript_dir: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        timeout = float(environ.get("STREAMCHAT_READ_TIMEOUT", DEFAULT_READ_TIMEOUT))
        if not math.isfinite(timeout) or timeout <= 0:
            raise ValueError("STREAMCHAT_READ_TIMEOUT must be a positive number of seconds")

        level_name = environ.get("STREAMCHAT_LOG_LEVEL", "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {level_name}")

        return cls(
            read_timeout=timeout,
            log_level=level,
            transcript_dir=environ.get("STREAMCHAT_TRANSCRIPT_DIR") or None,
        )
