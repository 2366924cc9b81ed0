"""
Insurer / wording version normalization

Shared by the matcher and the diagnostic payloads so that the strings shown
to an operator are exactly the strings that were compared.
"""

from __future__ import annotations

import re

_PTY_LIMITED_RE = re.compile(r"pty[.\s]*limited")
_LIMITED_RE = re.compile(r"limited")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_insurer(name: str | None) -> str:
    """
    Insurer name normalization

    Rules:
    1. lower()
    2. "pty limited" / "pty. limited" -> "pty ltd"
    3. remaining "limited" -> "ltd"
    4. periods removed
    5. whitespace runs -> single space, trim

    Periods are also dropped before the suffix rules so that
    "lim.ited" cannot turn back into "limited" after step 4.
    """
    if not name:
        return ""

    s = name.lower()
    s = s.replace(".", "")

    s = _PTY_LIMITED_RE.sub("pty ltd", s)
    s = _LIMITED_RE.sub("ltd", s)

    s = _WHITESPACE_RE.sub(" ", s)
    return s.strip()


def normalize_version(version: str | None) -> str:
    """Wording version normalization (trim, lower, single spaces)"""
    if not version:
        return ""
    return _WHITESPACE_RE.sub(" ", version).strip().lower()


def leading_token(normalized_insurer: str) -> str:
    """
    First word of an already-normalized insurer name

    "dual australia pty ltd" -> "dual"
    """
    parts = normalized_insurer.split()
    return parts[0] if parts else ""
