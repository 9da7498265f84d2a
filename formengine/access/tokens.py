"""
Access tokens - Form Scoring & Access Engine
formengine/access/tokens.py

Per-form secrets that let anyone holding the link respond to a private form.
"""

import secrets
from typing import Optional
from urllib.parse import quote

TOKEN_BYTES = 24


def generate_access_token() -> str:
    """Mint a new URL-safe access token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def tokens_match(expected: Optional[str], presented: Optional[str]) -> bool:
    """Constant-time comparison; empty tokens never match."""
    if not expected or not presented:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


def build_access_url(base_url: str, form_id: str, token: str) -> str:
    """Shareable link binding a token to its form."""
    return f"{base_url.rstrip('/')}/forms/{quote(form_id, safe='')}/access/{quote(token, safe='')}"
