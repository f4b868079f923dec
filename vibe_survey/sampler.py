"""
Per-ILO sampling of the question bank.

Each session gets at most QUESTIONS_PER_ILO questions from every ILO in the
expected order, then the whole selection is shuffled again so questions from
the same ILO don't come in a block.
"""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, TypeVar

from vibe_survey.config import QUESTIONS_PER_ILO
from vibe_survey.questions import QuestionRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of `items`."""
    rng = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def group_by_category(
    records: Sequence[QuestionRecord], expected_order: Sequence[str]
) -> Dict[str, List[QuestionRecord]]:
    """
    Group records by ILO. Keys follow `expected_order`; ILOs outside it are
    dropped and ILOs with no records are left out.
    """
    grouped: Dict[str, List[QuestionRecord]] = {ilo: [] for ilo in expected_order}
    for q in records:
        if q.category in grouped:
            grouped[q.category].append(q)
    return {ilo: qs for ilo, qs in grouped.items() if qs}


def sample_per_category(
    grouped: Dict[str, List[QuestionRecord]],
    per_category: int = QUESTIONS_PER_ILO,
    rng: Optional[random.Random] = None,
) -> Dict[str, List[QuestionRecord]]:
    selected: Dict[str, List[QuestionRecord]] = {}
    for ilo, qs in grouped.items():
        picked = fisher_yates_shuffle(qs, rng)[: min(per_category, len(qs))]
        selected[ilo] = picked
        logger.info("Selected %d questions from ILO: %s", len(picked), ilo)
    return selected


def build_question_sequence(
    records: Sequence[QuestionRecord],
    expected_order: Sequence[str],
    per_category: int = QUESTIONS_PER_ILO,
    rng: Optional[random.Random] = None,
) -> List[QuestionRecord]:
    grouped = group_by_category(records, expected_order)
    selected = sample_per_category(grouped, per_category, rng)

    merged: List[QuestionRecord] = []
    for ilo in expected_order:
        merged.extend(selected.get(ilo, []))

    sequence = fisher_yates_shuffle(merged, rng)
    logger.info("Total questions selected: %d", len(sequence))
    logger.debug("Question sequence by ILO: %s", [q.category for q in sequence])
    return sequence
