"""Email capture for the newsletter banner/popup."""

from __future__ import annotations

import re
from typing import Any, Tuple

EMAIL_RX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_EMAIL = 254


class SignupError(ValueError):
    pass


def parse_signup(body: Any) -> Tuple[str, str]:
    """Return ``(email, source)`` normalized, or raise SignupError."""
    body = body if isinstance(body, dict) else {}
    raw = body.get("email")
    email = raw.strip().lower() if isinstance(raw, str) else ""
    source = "banner" if body.get("source") == "banner" else "popup"

    if not email or len(email) > MAX_EMAIL or not EMAIL_RX.match(email):
        raise SignupError("Valid email required")
    return email, source
