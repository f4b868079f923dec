import csv
import io
import logging
from pathlib import Path
from typing import List

import requests

from vibe_survey.questions import CSV_COLUMNS, ILO_COLUMN, QUESTION_COLUMN, QuestionRecord

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 10


def parse_question_bank(text: str) -> List[QuestionRecord]:
    """
    Parse CSV text (header row first) into QuestionRecords.
    Rows without an ILO or a Question are skipped.
    """
    if not text:
        return []

    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    header = [h.strip() for h in (reader.fieldnames or [])]
    reader.fieldnames = header
    missing = [c for c in CSV_COLUMNS if c not in header]
    if ILO_COLUMN in missing or QUESTION_COLUMN in missing:
        logger.error("Question bank header is missing %s; no rows usable", missing)
        return []
    if missing:
        logger.warning("Question bank header is missing %s", missing)

    out: List[QuestionRecord] = []
    skipped = 0
    for row in reader:
        q = QuestionRecord.from_row(row)
        if q is None:
            skipped += 1
            continue
        out.append(q)

    if skipped:
        logger.debug("Skipped %d incomplete rows in question bank", skipped)
    return out


def fetch_question_bank_text(source: str) -> str:
    if not source:
        raise RuntimeError("QUESTIONS_URL is not set")

    if source.startswith(("http://", "https://")):
        resp = requests.get(source, timeout=FETCH_TIMEOUT)
        resp.raise_for_status()
        # Servers often send text/csv without a charset; the bank is always UTF-8.
        return resp.content.decode("utf-8-sig")

    return Path(source).read_text(encoding="utf-8")


def load_question_bank(source: str) -> List[QuestionRecord]:
    """
    Fetch and parse the bank. A failed fetch is logged and gives an empty
    list; callers show a loading state for that.
    """
    try:
        text = fetch_question_bank_text(source)
    except (requests.RequestException, OSError, RuntimeError, UnicodeDecodeError) as e:
        logger.error("Error loading questions from %s: %s", source, e)
        return []

    questions = parse_question_bank(text)
    logger.info("Loaded %d questions from %s", len(questions), source)
    return questions
