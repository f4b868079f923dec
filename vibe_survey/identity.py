from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Iterable

from vibe_survey.db import upsert_user
from vibe_survey.security import is_allowed_email_domain, sanitize_email

logger = logging.getLogger(__name__)


class SignInError(ValueError):
    """Sign-in refused; the message is safe to show to the user."""


@dataclass(frozen=True)
class User:
    uid: str
    email: str
    display_name: str = ""


def user_id_for_email(email: str) -> str:
    return hashlib.sha256(email.encode("utf-8")).hexdigest()[:28]


def sign_in(email: str, allowed_domains: Iterable[str], display_name: str = "") -> User:
    """
    Stand-in for the identity provider: accepts any well-formed address on an
    allowed domain and gives it a stable uid.
    """
    clean = sanitize_email(email)
    if not clean:
        raise SignInError("Invalid email format")

    allowed = list(allowed_domains)
    if not is_allowed_email_domain(clean, allowed):
        logger.warning("Rejected sign-in from domain outside %s", allowed)
        raise SignInError("Only Minerva University email addresses are allowed")

    name = (display_name or "").strip() or clean.split("@", 1)[0]
    user = User(uid=user_id_for_email(clean), email=clean, display_name=name)
    upsert_user(user.uid, user.email, user.display_name)
    logger.info("Signed in %s", user.uid)
    return user
