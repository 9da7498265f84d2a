"""
Data-quality validators - Form Scoring & Access Engine
formengine/core/validation.py

Pure sanitizers applied on every form write. Each returns the cleaned value
and how many raw entries were dropped, so callers can log without raising.
"""

import json
import math
import re
from typing import Any, List, Optional, Tuple

import httpx

from formengine.core.exceptions import EmailValidationException, ValidationException
from formengine.models.form import ScoreRange

# One "@", no whitespace, a dot in the domain.
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _as_bound(value: Any):
    """Return an int bound, or None when the value is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def validate_score_ranges(raw: Any) -> Tuple[List[ScoreRange], int]:
    """
    Keep every well-formed range, in order.

    An entry is dropped when it is not a mapping (or ScoreRange), when either
    bound is missing or not a whole number, when the message is not a string,
    or when min > max. A missing message becomes "".

    Args:
        raw: List of candidate ranges (dicts or ScoreRange instances)

    Returns:
        Tuple of (clean ranges, dropped count)
    """
    if not isinstance(raw, (list, tuple)):
        return [], 0

    clean: List[ScoreRange] = []
    dropped = 0
    for item in raw:
        if isinstance(item, ScoreRange):
            clean.append(item.model_copy())
            continue
        if not isinstance(item, dict):
            dropped += 1
            continue

        low = _as_bound(item.get("min"))
        high = _as_bound(item.get("max"))
        message = item.get("message", "")
        if message is None:
            message = ""

        if low is None or high is None or not isinstance(message, str) or low > high:
            dropped += 1
            continue

        clean.append(ScoreRange(min=low, max=high, message=message))

    return clean, dropped


def _coerce_email_list(raw: Any) -> List[Any]:
    """Accept a list, a JSON-encoded list, or a single email string."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        return list(raw)
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            parsed = json.loads(raw)
        except ValueError:
            return [raw]
        if isinstance(parsed, list):
            return parsed
        return [raw]
    return []


def normalize_emails(raw: Any, field: str = "collaborators") -> Tuple[List[str], int]:
    """
    Lower-case, trim and de-duplicate a list of emails, preserving order.

    Blank and non-string entries are dropped silently and counted. A
    non-blank entry that is not an email address rejects the whole list.

    Raises:
        EmailValidationException: If any non-blank entry is malformed
    """
    items = _coerce_email_list(raw)

    seen = set()
    clean: List[str] = []
    invalid: List[str] = []
    dropped = 0
    for item in items:
        if not isinstance(item, str) or not item.strip():
            dropped += 1
            continue
        email = item.strip().lower()
        if not EMAIL_PATTERN.match(email):
            invalid.append(item.strip())
            continue
        if email in seen:
            dropped += 1
            continue
        seen.add(email)
        clean.append(email)

    if invalid:
        raise EmailValidationException(field, invalid)

    return clean, dropped


def validate_webhook_url(url: Optional[str]) -> Optional[str]:
    """
    Trimmed absolute http(s) URL, or None when blank.

    Raises:
        ValidationException: If httpx cannot parse the URL or it is not http(s)
    """
    if url is None or not url.strip():
        return None
    url = url.strip()

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ValidationException(f"Invalid webhook URL '{url}': {e}", field="http_config")
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValidationException(f"Webhook URL must be absolute http(s): '{url}'", field="http_config")
    return url
