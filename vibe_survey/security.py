# security.py
from __future__ import annotations

import html
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

EMAIL_MAX_LENGTH = 254
TEXT_MAX_LENGTH = 5000

_EMAIL_RE = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")


# -------------------- SANITIZE --------------------
def sanitize_text(value: Optional[str]) -> str:
    """Trim and HTML-escape; nothing is removed."""
    if value is None:
        return ""
    return html.escape(str(value).strip(), quote=True)


def sanitize_email(value: Optional[str]) -> str:
    email = (value or "").strip().lower()
    return email if validate_email(email) else ""


# -------------------- VALIDATE --------------------
def validate_email(email: str) -> bool:
    return bool(email) and len(email) <= EMAIL_MAX_LENGTH and bool(_EMAIL_RE.match(email))


def validate_text(text: Optional[str], min_length: int = 1, max_length: int = TEXT_MAX_LENGTH) -> bool:
    n = len((text or "").strip())
    return min_length <= n <= max_length


def is_allowed_email_domain(email: str, allowed_domains: Iterable[str]) -> bool:
    domain = email.rsplit("@", 1)[-1].lower() if "@" in email else ""
    return domain in {d.lower() for d in allowed_domains}


# -------------------- RATE LIMIT --------------------
@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    Fixed-window attempt counter keyed by an identifier (user id, email, ...).

    One instance is shared by the process; swap it for a shared store when
    running more than one instance.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def is_rate_limited(self, identifier: str, max_attempts: int = 5, window_seconds: float = 15 * 60) -> bool:
        now = self._clock()
        with self._lock:
            w = self._windows.get(identifier)
            if w is None or now > w.reset_at:
                self._windows[identifier] = _Window(count=1, reset_at=now + window_seconds)
                return False
            if w.count >= max_attempts:
                return True
            w.count += 1
            return False

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._windows.pop(identifier, None)
