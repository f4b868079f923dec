import logging
import sys
from pathlib import Path

# -------------------------------------------------------------------
# Ensure the package is importable on Streamlit Cloud (streamlit run vibe_survey/app.py)
# -------------------------------------------------------------------
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import streamlit as st

from vibe_survey.config import RATE_LIMITS, allowed_email_domains, ilo_order, questions_source
from vibe_survey.db import StorageError, init_db
from vibe_survey.identity import SignInError, sign_in
from vibe_survey.pdf_export import result_to_pdf_bytes
from vibe_survey.question_store import load_question_bank
from vibe_survey.recorder import mark_completed, record_answer
from vibe_survey.reporting import resolve_result
from vibe_survey.sampler import build_question_sequence
from vibe_survey.security import RateLimiter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("vibe_survey.app")


# -------------------- CONFIG --------------------
st.set_page_config(page_title="Minerva Identity Survey", layout="centered")
init_db()

SESSION_KEYS = ["user", "page", "questions", "current_question", "response_id", "resolution"]


@st.cache_resource
def get_rate_limiter() -> RateLimiter:
    # One limiter per server process, shared by every browser session.
    return RateLimiter()


# -------------------- HELPERS --------------------
def _go(page: str):
    st.session_state["page"] = page
    st.rerun()


def _reset_survey():
    for k in ["questions", "current_question", "response_id", "resolution"]:
        st.session_state.pop(k, None)


def _sign_out():
    for k in SESSION_KEYS:
        st.session_state.pop(k, None)


def _question_sequence():
    # Sampled once per browser session; a reload starts a new sequence.
    if "questions" not in st.session_state:
        records = load_question_bank(questions_source())
        st.session_state["questions"] = build_question_sequence(records, ilo_order())
        st.session_state["current_question"] = 1
    return st.session_state["questions"]


# -------------------- SIGN IN --------------------
def render_sign_in(limiter: RateLimiter):
    st.header("Sign in")
    st.caption("Use your Minerva University email address.")

    with st.form("sign_in"):
        email = st.text_input("Email", placeholder="name@uni.minerva.edu")
        display_name = st.text_input("Name (optional)")
        if st.form_submit_button("Continue"):
            max_attempts, window = RATE_LIMITS["auth"]
            if limiter.is_rate_limited(f"auth-{email.strip().lower()}", max_attempts, window):
                st.error("Too many sign-in attempts. Please try again later.")
                return
            try:
                user = sign_in(email, allowed_email_domains(), display_name)
            except SignInError as e:
                st.error(str(e))
                return
            except StorageError:
                logger.exception("Sign-in failed")
                st.error("We couldn't sign you in right now. Please try again.")
                return
            st.session_state["user"] = user
            _reset_survey()
            _go("questions")


# -------------------- QUESTIONS --------------------
def render_questions(user, limiter: RateLimiter):
    questions = _question_sequence()
    if not questions:
        st.info("Loading questions...")
        return

    total = len(questions)
    n = min(max(1, int(st.session_state.get("current_question", 1))), total)
    q = questions[n - 1]

    st.progress(n / total, text=f"Question {n} of {total}")

    choices = q.choices()
    with st.form(f"question_{n}"):
        picked = st.radio(
            q.prompt,
            options=list(range(len(choices))),
            format_func=lambda i: choices[i][1] or choices[i][0],
            index=None,
        )
        submitted = st.form_submit_button("Finish" if n == total else "Next")

    if not submitted:
        return

    if picked is None:
        st.error("Please select an answer before continuing.")
        return

    max_attempts, window = RATE_LIMITS["questions"]
    if limiter.is_rate_limited(f"question-{user.uid}", max_attempts, window):
        st.error("You're submitting answers too quickly. Please wait a moment.")
        return

    try:
        response_id = record_answer(
            st.session_state.get("response_id"),
            user,
            question_ordinal=n,
            category=q.category,
            answer_label=choices[picked][0],
            prompt_text=q.prompt,
            total_questions=total,
        )
    except ValueError as e:
        st.error(str(e))
        return
    except (StorageError, KeyError):
        logger.exception("Error saving response")
        st.error("Failed to save response. Please try again.")
        return

    st.session_state["response_id"] = response_id

    if n < total:
        st.session_state["current_question"] = n + 1
        st.rerun()

    try:
        mark_completed(response_id)
    except (StorageError, KeyError):
        logger.exception("Error marking response %s completed", response_id)
    _go("final")


# -------------------- FINAL --------------------
def render_final(user):
    if "resolution" not in st.session_state:
        try:
            st.session_state["resolution"] = resolve_result(user, st.session_state.get("response_id"))
        except StorageError:
            logger.exception("Error getting responses")
            st.error("Error retrieving responses.")
            return

    resolution = st.session_state["resolution"]
    if not resolution.ok:
        st.warning(resolution.message)
        return

    summary = resolution.summary
    st.header("Congratulations!")
    st.write("You've successfully completed the Minerva Identity Survey")
    st.write("Your Minerva vibe is")
    st.markdown(f"## {summary.chosen_outcome}")
    st.caption("Get ready for an amazing Foundation Week experience!")

    st.download_button(
        "Download result (PDF)",
        data=result_to_pdf_bytes(summary, user.email if user else None),
        file_name="minerva_vibe.pdf",
        mime="application/pdf",
    )

    if st.button("Take the survey again"):
        _reset_survey()
        _go("questions")


# -------------------- SIDEBAR --------------------
user = st.session_state.get("user")
with st.sidebar:
    st.header("Minerva Identity Survey")
    if user:
        st.write(f"Signed in as **{user.email}**")
        if st.button("Sign out"):
            _sign_out()
            st.rerun()


# -------------------- ROUTING --------------------
limiter = get_rate_limiter()
page = st.session_state.get("page", "sign_in")

if not user:
    render_sign_in(limiter)
    st.stop()

if page == "final":
    render_final(user)
    st.stop()

render_questions(user, limiter)
