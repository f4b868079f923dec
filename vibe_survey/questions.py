# Question records as they come out of the CSV bank.
# Column names are part of the bank format; keep them stable.
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

OPTION_LETTERS = ["A", "B", "C", "D", "E"]

ILO_COLUMN = "ILO"
QUESTION_COLUMN = "Question"
CSV_COLUMNS = [ILO_COLUMN, QUESTION_COLUMN] + [
    f"{prefix}_{letter}" for prefix in ("Group", "Option") for letter in OPTION_LETTERS
]


def _cell(row: Mapping[str, Optional[str]], key: str) -> str:
    v = row.get(key)
    return v.strip() if isinstance(v, str) else ""


@dataclass(frozen=True)
class QuestionRecord:
    category: str
    prompt: str
    # (group_label, option_text) per letter A..E; missing letters are ("", "")
    options: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def from_row(row: Mapping[str, Optional[str]]) -> Optional["QuestionRecord"]:
        """Build a record from a CSV row, or None when ILO/Question is blank."""
        category = _cell(row, ILO_COLUMN)
        prompt = _cell(row, QUESTION_COLUMN)
        if not category or not prompt:
            return None
        options = tuple(
            (_cell(row, f"Group_{letter}"), _cell(row, f"Option_{letter}"))
            for letter in OPTION_LETTERS
        )
        return QuestionRecord(category=category, prompt=prompt, options=options)

    def group_value(self, letter: str) -> str:
        i = OPTION_LETTERS.index(letter)
        return self.options[i][0] if i < len(self.options) else ""

    def option_value(self, letter: str) -> str:
        i = OPTION_LETTERS.index(letter)
        return self.options[i][1] if i < len(self.options) else ""

    def choices(self) -> List[Tuple[str, str]]:
        """Options worth showing: (group_label, option_text) with at least one side set."""
        return [(g, o) for g, o in self.options if g or o]

