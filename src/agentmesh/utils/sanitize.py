"""Sanitization of error messages and source snippets before they land in reports."""

from __future__ import annotations

import os
import re
from typing import Optional

MAX_ERROR_LENGTH = 500

_SECRET_PATTERNS: list[tuple[str, str]] = [
    (r"sk-ant-[a-zA-Z0-9_-]+", "[REDACTED_KEY]"),
    (r"sk-[a-zA-Z0-9_-]{20,}", "[REDACTED_KEY]"),
    (r"gh[pousr]_[A-Za-z0-9]{20,}", "[REDACTED_KEY]"),
    (r"Bearer\s+\S+", "Bearer [REDACTED]"),
    (r"(?i)x-api-key:\s*\S+", "x-api-key: [REDACTED]"),
    (r"(?i)(?<!x-)api-key:\s*\S+", "api-key: [REDACTED]"),
    (r"(?i)Authorization:\s*\S+", "Authorization: [REDACTED]"),
]


def sanitize_error(message: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Redact credentials and the user's home path, collapse to one line."""
    if not message:
        return message

    sanitized = message
    for pattern, replacement in _SECRET_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized)

    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    sanitized = " ".join(sanitized.split())
    if len(sanitized) > max_length:
        sanitized = sanitized[: max_length - 3] + "..."
    return sanitized


def describe_exception(exc: BaseException) -> str:
    """Sanitized one-line description of an exception."""
    text = str(exc) or exc.__class__.__name__
    return sanitize_error(text)


CREDENTIAL_PATTERNS: list[re.Pattern] = [
    re.compile(r"password\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"api[_-]?key\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"secret\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE),
    re.compile(r"token\s*[:=]\s*[\"'][^\"']+[\"']", re.IGNORECASE),
]

_QUOTED_RE = re.compile(r"[\"'][^\"']+[\"']")


def find_credential(line: str) -> Optional[re.Match]:
    """First hardcoded credential assignment on ``line``, if any."""
    for pattern in CREDENTIAL_PATTERNS:
        m = pattern.search(line)
        if m:
            return m
    return None


def mask_secrets(line: str) -> str:
    """Replace every quoted literal with a placeholder."""
    return _QUOTED_RE.sub('"***"', line)


def safe_snippet(line: str) -> str:
    """``line`` with its literals masked when it holds a credential."""
    return mask_secrets(line) if find_credential(line) else line
