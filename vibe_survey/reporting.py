from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from vibe_survey.db import StorageError, get_document, now_iso, query_documents, update_document
from vibe_survey.identity import User
from vibe_survey.recorder import RESPONSES
from vibe_survey.scoring import pick_top_label, tally_answers

logger = logging.getLogger(__name__)

VIBE_POOLS: Dict[str, List[str]] = {
    "Civic": ["Stewardship", "Altruism", "Community"],
    "Legion": ["Camaraderie", "Valor", "Solidarity"],
    "Liberty": ["Autonomy", "Empowerment", "Liberation"],
    "North": ["Vision", "Foresight", "Aspiration"],
    "Tower": ["Courage", "Perspective", "Resilience"],
    "Lands": ["Heritage", "Immersion", "Diversity"],
    "Ocean": ["Voyage", "Depth", "Exploration"],
    "Plaza": ["Inclusivity", "Exchange", "Openness"],
    "Reserve": ["Discernment", "Essence", "Prudence"],
    "Vista": ["Reflection", "Narrative", "Evolution"],
    "Pier": ["Conviction", "Launch", "Promise"],
    "Cable": ["Bonds", "Interdependence", "Network"],
    "Chronicle": ["Veracity", "Documentation", "Accountability"],
    "Pyramid": ["Identity", "Introspection", "Foundation"],
    "Union": ["Alliance", "Commitment", "Loyalty"],
    "Field": ["Cultivation", "Synergy", "Growth"],
    "Gate": ["Progression", "Threshold", "Ambition"],
    "Labyrinth": ["Journey", "Discovery", "Persistence"],
    "Laurel": ["Innovation", "Inquiry", "Curiosity"],
    "Mason": ["Craftsmanship", "Collaboration", "Education"],
    "Circuit": ["Cycles", "Interconnectedness", "Flow"],
    "Eureka": ["Breakthrough", "Revelation", "Ingenuity"],
    "Hunter": ["Pursuit", "Instinct", "Tenacity"],
    "Mission": ["Purpose", "Vocation", "Calling"],
    "Octagon": ["Equilibrium", "Harmony", "Balance"],
}

FALLBACK_POOL = ["unique"]

ResolutionStatus = Literal["ok", "not_logged_in", "no_response", "no_answers"]

STATUS_MESSAGES = {
    "not_logged_in": "User not logged in.",
    "no_response": "No response found.",
    "no_answers": "No valid responses found.",
}


def vibe_pool(label: Optional[str]) -> List[str]:
    return VIBE_POOLS.get(label or "", FALLBACK_POOL)


def pick_vibe(label: Optional[str], rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return rng.choice(vibe_pool(label)) or "unique"


@dataclass
class ResultSummary:
    top_category: str
    category_tally: Dict[str, int]
    chosen_outcome: str
    calculated_at: str = field(default_factory=now_iso)

    def to_document(self) -> Dict[str, Any]:
        return {
            "topCategory": self.top_category,
            "minervaVibe": self.chosen_outcome,
            "categoryTally": dict(self.category_tally),
            "calculatedAt": self.calculated_at,
        }


@dataclass
class Resolution:
    status: ResolutionStatus
    summary: Optional[ResultSummary] = None
    response_id: Optional[str] = None
    saved: bool = False

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def message(self) -> str:
        if self.summary:
            return self.summary.chosen_outcome
        return STATUS_MESSAGES.get(self.status, "")


def build_result_summary(document: Dict[str, Any], rng: Optional[random.Random] = None) -> Optional[ResultSummary]:
    """None when the document has no usable answers."""
    tally = tally_answers(document)
    top = pick_top_label(tally)
    if top is None:
        return None
    return ResultSummary(top_category=top, category_tally=tally, chosen_outcome=pick_vibe(top, rng))


def _find_response(user: User, response_id: Optional[str]):
    if response_id:
        doc = get_document(RESPONSES, response_id)
        if doc is not None and doc.get("userId") == user.uid:
            return response_id, doc
    found = query_documents(RESPONSES, userId=user.uid)
    return found[0] if found else (None, None)


def resolve_result(
    user: Optional[User],
    response_id: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> Resolution:
    """
    Tally the signed-in user's answers and pick their vibe.

    Reading raises StorageError. Saving the result back is best effort: a
    failure is logged and the summary is still returned.
    """
    if user is None:
        logger.info("User not logged in")
        return Resolution(status="not_logged_in")

    doc_id, doc = _find_response(user, response_id)
    if doc is None:
        logger.info("No responses document found for user %s", user.uid)
        return Resolution(status="no_response")

    summary = build_result_summary(doc, rng)
    if summary is None:
        return Resolution(status="no_answers", response_id=doc_id)

    logger.info("Tally results for %s: %s", doc_id, summary.category_tally)

    saved = False
    try:
        update_document(RESPONSES, doc_id, {"results": summary.to_document(), "lastUpdated": now_iso()})
        saved = True
        logger.info("Results saved for %s", doc_id)
    except (StorageError, KeyError) as e:
        logger.error("Error saving results for %s: %s", doc_id, e)

    return Resolution(status="ok", summary=summary, response_id=doc_id, saved=saved)
