from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from vibe_survey.db import create_document, now_iso, update_document
from vibe_survey.identity import User
from vibe_survey.security import sanitize_text, validate_text

logger = logging.getLogger(__name__)

RESPONSES = "responses"


def question_key(ordinal: int, category: str) -> str:
    return f"q{int(ordinal)}_{category}"


def is_answer_key(key: str, value: Any) -> bool:
    return key.startswith("q") and isinstance(value, dict)


def list_answers(document: Dict[str, Any]) -> List[Tuple[str, Dict[str, Any]]]:
    """AnswerEntries of a response document, in stored order."""
    return [(k, v) for k, v in document.items() if is_answer_key(k, v)]


def _answer_entry(ordinal: int, category: str, answer_label: str, prompt_text: str) -> Dict[str, Any]:
    return {
        "answer": answer_label,
        "question": prompt_text,
        "questionIndex": ordinal,
        "ilo": category,
        "timestamp": now_iso(),
    }


def record_answer(
    response_id: Optional[str],
    user: User,
    question_ordinal: int,
    category: str,
    answer_label: str,
    prompt_text: str,
    total_questions: int,
) -> str:
    """
    Save one answer and return the response id.

    The first answer creates the response document; later answers merge
    into it under q{ordinal}_{ilo}. Re-sending the same question overwrites
    its entry. StorageError propagates to the caller.
    """
    if int(question_ordinal) < 1:
        raise ValueError("question_ordinal must be >= 1")

    category = sanitize_text(category)
    answer_label = sanitize_text(answer_label)
    prompt_text = sanitize_text(prompt_text)
    if not (validate_text(category) and validate_text(answer_label, 1, 500) and validate_text(prompt_text)):
        raise ValueError("Invalid data detected. Please try again.")

    key = question_key(question_ordinal, category)
    entry = _answer_entry(int(question_ordinal), category, answer_label, prompt_text)

    if not response_id:
        ts = now_iso()
        data = {
            "userId": user.uid,
            "userEmail": user.email,
            "startedAt": ts,
            "lastUpdated": ts,
            "totalQuestions": int(total_questions),
            key: entry,
        }
        response_id = create_document(RESPONSES, data)
        logger.info("Created new response document: %s", response_id)
        return response_id

    update_document(RESPONSES, response_id, {key: entry, "lastUpdated": now_iso()})
    logger.info("Updated response document: %s (%s)", response_id, key)
    return response_id


def mark_completed(response_id: str) -> None:
    ts = now_iso()
    update_document(RESPONSES, response_id, {"isCompleted": True, "completedAt": ts, "lastUpdated": ts})
    logger.info("Marked response %s completed", response_id)
