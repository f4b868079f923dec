from typing import Any, Dict, Optional

from vibe_survey.recorder import list_answers


def tally_answers(document: Dict[str, Any]) -> Dict[str, int]:
    # Keyed by the answer label (the "vibe" group), not by ILO.
    tally: Dict[str, int] = {}
    for _, entry in list_answers(document):
        answer = entry.get("answer")
        if isinstance(answer, str) and answer:
            tally[answer] = tally.get(answer, 0) + 1
    return tally


def pick_top_label(tally: Dict[str, int]) -> Optional[str]:
    """Label with the highest count; ties go to whichever came first in the tally."""
    best = None
    for label, count in tally.items():
        if best is None or count > best[1]:
            best = (label, count)
    return best[0] if best else None
