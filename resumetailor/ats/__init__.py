from .engine import ATSInputError, calculate_ats_score
from .keywords import extract_keywords
from .types import ATSBreakdown, DimensionScore, KeywordMatch, ScoreResult

__all__ = [
    "calculate_ats_score",
    "extract_keywords",
    "ATSInputError",
    "ATSBreakdown",
    "DimensionScore",
    "KeywordMatch",
    "ScoreResult",
]
