"""
Utilities: logging setup, hashing, text truncation
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys


def get_log_level() -> int:
    """LOG_LEVEL env (default INFO)"""
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: int | None = None, name: str | None = None) -> logging.Logger:
    """Install a stdout handler (once) and set the level"""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    logger.setLevel(level if level is not None else get_log_level())
    return logger


def sha256_bytes(data: bytes) -> str:
    """SHA256 of raw bytes"""
    return hashlib.sha256(data).hexdigest()


def truncate_text(text: str, max_length: int = 100) -> str:
    """Cut text to max_length (adds "...")"""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
