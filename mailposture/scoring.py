"""Point accumulation, clamping and level mapping shared by the scorers."""

import math
from typing import List, Sequence, Tuple

from mailposture.models import POOR, FAIR, GOOD, EXCELLENT, ScoreBreakdown

# (minimum value, level) pairs, highest first
DMARC_LEVELS = ((8, EXCELLENT), (6, GOOD), (4, FAIR))
SPF_LEVELS = ((4, EXCELLENT), (3, GOOD), (2, FAIR))
DKIM_LEVELS = SPF_LEVELS
MX_LEVELS = ((2.5, EXCELLENT), (2, GOOD), (1, FAIR))
OVERALL_LEVELS = DMARC_LEVELS


def round_score(value: float) -> float:
    """Round half-up to one decimal place"""
    return math.floor(value * 10 + 0.5) / 10


def level_for(value: float, thresholds: Sequence[Tuple[float, str]]) -> str:
    for minimum, level in thresholds:
        if value >= minimum:
            return level
    return POOR


class ScoreCard:
    """Additive score with an ordered list of point contributions"""

    def __init__(self, out_of: float, thresholds: Sequence[Tuple[float, str]]):
        self.out_of = out_of
        self.thresholds = thresholds
        self.base = 0.0
        self.details: List[str] = []

    def add(self, points: float, detail: str = None):
        self.base += points
        if detail:
            self.details.append(detail)

    def note(self, detail: str):
        """Record a detail line that carries no points"""
        self.details.append(detail)

    def result(self) -> ScoreBreakdown:
        final_score = max(min(self.base, self.out_of), 0)
        return ScoreBreakdown(
            value=round_score(final_score),
            out_of=self.out_of,
            level=level_for(final_score, self.thresholds),
            details=list(self.details),
        )

    @classmethod
    def zero(cls, out_of: float) -> ScoreBreakdown:
        return ScoreBreakdown(value=0, out_of=out_of, level=POOR, details=[])
