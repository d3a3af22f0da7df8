from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

KEYWORDS_MAX = 40
EXPERIENCE_MAX = 25
SKILLS_MAX = 15
EDUCATION_MAX = 15
FORMAT_MAX = 5


@dataclass(frozen=True)
class DimensionScore:
    score: int
    max: int

    def to_dict(self) -> Dict[str, int]:
        return {"score": self.score, "max": self.max}


@dataclass(frozen=True)
class ATSBreakdown:
    keywords: DimensionScore
    experience: DimensionScore
    skills: DimensionScore
    education: DimensionScore
    format: DimensionScore

    @property
    def total(self) -> int:
        return sum(d.score for d in self.dimensions().values())

    def dimensions(self) -> Dict[str, DimensionScore]:
        return {
            "keywords": self.keywords,
            "experience": self.experience,
            "skills": self.skills,
            "education": self.education,
            "format": self.format,
        }

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {name: d.to_dict() for name, d in self.dimensions().items()}


@dataclass(frozen=True)
class KeywordMatch:
    """
    Weighted matcher output.

    score is on the raw 0-50 scale. points/categories make every awarded point
    traceable: keyword -> earned points (0 for missing) and keyword -> category.
    """
    score: int
    matched: List[str]
    missing: List[str]
    points: Dict[str, float] = field(default_factory=dict)
    categories: Dict[str, str] = field(default_factory=dict)
    max_points: float = 0.0


@dataclass(frozen=True)
class ScoreResult:
    score: int
    matched: List[str]
    # Recommendation lines, kept under keywords.missing for the dashboard.
    missing: List[str]
    recommendations: List[str]
    breakdown: ATSBreakdown
    # Raw unmatched keyword tokens.
    missing_keywords: List[str]

    @property
    def keywords(self) -> Dict[str, List[str]]:
        return {"matched": list(self.matched), "missing": list(self.missing)}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "keywords": self.keywords,
            "recommendations": list(self.recommendations),
            "breakdown": self.breakdown.to_dict(),
            "missing_keywords": list(self.missing_keywords),
        }
