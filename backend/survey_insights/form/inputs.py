"""Typed answer builders for the structured question types.

Each builder keeps the working selection and renders the stored answer
string (JSON for structured answers) plus its numeric value where one exists.
"""

import json
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_PERCENTAGE_CATEGORIES = ["Data Entry", "Selling", "Other"]


def _load_object(raw: Optional[str], kind: type):
    if not raw:
        return kind()
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[form] discarding unreadable stored answer: %r", raw)
        return kind()
    return parsed if isinstance(parsed, kind) else kind()


def likert_numeric(value: str) -> Optional[int]:
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class RankingInput:
    """Ranks 1..n over the options; each rank belongs to at most one option."""

    def __init__(self, options: List[str], value: Optional[str] = None):
        self.options = list(options)
        self.rankings: Dict[str, int] = {
            str(option): int(rank) for option, rank in _load_object(value, dict).items()
        }

    def assign(self, option: str, rank: int) -> str:
        if option not in self.options or not 1 <= rank <= len(self.options):
            raise ValueError(f"cannot rank {option!r} as {rank}")
        rankings = {key: current for key, current in self.rankings.items() if key != option and current != rank}
        rankings[option] = rank
        self.rankings = rankings
        return self.value

    @property
    def is_complete(self) -> bool:
        return len(self.rankings) == len(self.options)

    @property
    def value(self) -> str:
        return json.dumps(self.rankings, ensure_ascii=False)


class PercentageInput:
    """Percentages per category; valid once they add up to 100."""

    def __init__(self, options: List[str], value: Optional[str] = None):
        self.categories = list(options) or list(DEFAULT_PERCENTAGE_CATEGORIES)
        self.percentages: Dict[str, float] = {}
        for category, raw in _load_object(value, dict).items():
            self.percentages[str(category)] = _to_float(raw)

    def set(self, category: str, raw: str) -> str:
        self.percentages = {**self.percentages, category: _to_float(raw)}
        return self.value

    @property
    def total(self) -> float:
        return sum(self.percentages.values())

    @property
    def is_valid(self) -> bool:
        return abs(self.total - 100) < 0.01

    @property
    def value(self) -> str:
        return json.dumps(self.percentages, ensure_ascii=False)


def _to_float(raw) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


class CheckboxInput:
    """Any subset of the options; numeric value is the selection count."""

    def __init__(self, options: List[str], value: Optional[str] = None):
        self.options = list(options)
        self.selected: List[str] = [str(item) for item in _load_object(value, list)]

    def toggle(self, option: str, checked: bool) -> str:
        if checked and option not in self.selected:
            self.selected = [*self.selected, option]
        elif not checked:
            self.selected = [item for item in self.selected if item != option]
        return self.value

    @property
    def value(self) -> str:
        if not self.selected:
            return ""
        return json.dumps(self.selected, ensure_ascii=False)

    @property
    def numeric_value(self) -> int:
        return len(self.selected)
