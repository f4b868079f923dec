# Optional: load .env locally. Safe on Streamlit Cloud even if python-dotenv isn't installed.
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

import os
from pathlib import Path
from typing import List

PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"

DEFAULT_QUESTIONS_PATH = DATA_DIR / "legacy_questions.csv"
DEFAULT_DB_PATH = "vibe_survey.db"

# Two ILO orderings exist in the question bank's history. The bank must use one
# of them consistently; pick with the ILO_ORDER setting.
ILO_ORDER = ["CR", "IC", "PD", "SW", "IE"]
ILO_ORDER_LEGACY = ["CR", "IR", "PR", "SW", "IE"]

QUESTIONS_PER_ILO = 5

DEFAULT_ALLOWED_EMAIL_DOMAINS = ["minerva.edu", "uni.minerva.edu"]

# (max_attempts, window_seconds)
RATE_LIMITS = {
    "auth": (5, 15 * 60),
    "questions": (30, 60),
}


def get_setting(key: str, default: str = "") -> str:
    try:
        import streamlit as st
        return str(st.secrets[key])
    except Exception:
        return str(os.getenv(key, default) or default)


def _split_list(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


def questions_source() -> str:
    return get_setting("QUESTIONS_URL") or str(DEFAULT_QUESTIONS_PATH)


def db_path() -> str:
    return get_setting("VIBE_DB_PATH") or DEFAULT_DB_PATH


def ilo_order() -> List[str]:
    return _split_list(get_setting("ILO_ORDER")) or list(ILO_ORDER)


def allowed_email_domains() -> List[str]:
    domains = _split_list(get_setting("ALLOWED_EMAIL_DOMAINS"))
    return [d.lower() for d in domains] or list(DEFAULT_ALLOWED_EMAIL_DOMAINS)
