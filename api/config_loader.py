"""
Application Configuration Loader

Tunable limits and messages live in config/app.yaml.
Rules can be changed in the YAML file without touching the code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


# config directory
CONFIG_DIR = Path(__file__).parent.parent / "config"


@lru_cache(maxsize=8)
def _load_yaml(filename: str) -> dict[str, Any]:
    """Load a YAML file (cached)"""
    filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_app_config() -> dict[str, Any]:
    """Full config/app.yaml"""
    return _load_yaml("app.yaml")


def _section(name: str) -> dict[str, Any]:
    return get_app_config().get(name, {}) or {}


def clear_cache():
    """Reset the cache (tests)"""
    _load_yaml.cache_clear()


# =============================================================================
# Upload
# =============================================================================

def get_allowed_upload_extensions() -> list[str]:
    """
    Accepted upload extensions

    Returns:
        ["pdf", "txt"]
    """
    return [e.lower() for e in _section("upload").get("allowed_extensions", ["pdf", "txt"])]


def get_max_upload_bytes() -> int:
    """Upload size limit in bytes"""
    return int(_section("upload").get("max_bytes", 20 * 1024 * 1024))


# =============================================================================
# Extraction
# =============================================================================

def get_extraction_max_chars() -> int:
    """Document text sent to the extraction prompt"""
    return int(_section("extraction").get("max_chars", 60000))


# =============================================================================
# Compare
# =============================================================================

def get_compare_max_chars() -> int:
    """Per-side truncation for schedule / wording text"""
    return int(_section("compare").get("max_chars", 20000))


# =============================================================================
# Chat
# =============================================================================

def get_chat_window_chars() -> int:
    """Context window size (characters)"""
    return int(_section("chat").get("window_chars", 1200))


def get_chat_window_overlap() -> int:
    """Overlap between consecutive windows"""
    return int(_section("chat").get("window_overlap", 200))


def get_chat_top_k() -> int:
    """Windows kept per document"""
    return int(_section("chat").get("top_k", 4))


def get_chat_max_policies_listed() -> int:
    """Policies listed in the selection prompt"""
    return int(_section("chat").get("max_policies_listed", 20))


def get_chat_messages() -> dict[str, str]:
    """
    Fixed chat replies

    Returns:
        {"clarification_question": "...", "no_policies": "...", "llm_failed": "..."}
    """
    return dict(_section("chat").get("messages", {}))


# =============================================================================
# Wording webhook
# =============================================================================

def get_wording_webhook_url() -> str | None:
    """External wording intake webhook (env overrides YAML)"""
    url = os.environ.get("WORDING_WEBHOOK_URL") or _section("wording").get("webhook_url")
    return url or None


def get_wording_webhook_timeout() -> float:
    """Webhook request timeout (seconds)"""
    return float(_section("wording").get("webhook_timeout", 60))
