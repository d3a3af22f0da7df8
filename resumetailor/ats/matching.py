from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

from resumetailor.ats.categories import (
    CATEGORY_WEIGHTS,
    DEFAULT_VOCABULARY,
    Vocabulary,
    classify_keyword,
)
from resumetailor.ats.types import KEYWORDS_MAX, KeywordMatch
from resumetailor.core.text_processing import count_term
from resumetailor.models import StructuredResume

RAW_KEYWORD_MAX = 50

SUMMARY_BONUS = 1.30
EXPERIENCE_BONUS = 1.15
FREQUENCY_BONUS_3_PLUS = 1.15
FREQUENCY_BONUS_2 = 1.08


def round_half_up(x: float) -> int:
    # Python's round() is banker's rounding; scores round .5 up.
    return int(math.floor(x + 0.5))


def clamp(value: int, low: int, high: int) -> int:
    return low if value < low else (high if value > high else value)


def resume_to_text(resume: StructuredResume) -> str:
    parts: List[str] = [resume.contact.name, resume.contact.email, resume.summary or ""]
    for exp in resume.experience:
        parts.append(exp.company)
        parts.append(exp.role)
        parts.extend(exp.bullets)
    for edu in resume.education:
        parts.append(edu.school)
        parts.append(edu.degree)
        parts.append(edu.details or "")
    parts.extend(resume.skills)
    return " ".join(p for p in parts if p)


def location_bonus(keyword: str, summary: str, bullets: Sequence[str]) -> float:
    if keyword in summary:
        return SUMMARY_BONUS
    if any(keyword in b for b in bullets):
        return EXPERIENCE_BONUS
    return 1.0


def frequency_bonus(frequency: int) -> float:
    if frequency >= 3:
        return FREQUENCY_BONUS_3_PLUS
    if frequency == 2:
        return FREQUENCY_BONUS_2
    return 1.0


def match_keywords(
        resume: StructuredResume,
        job_keywords: Sequence[str],
        *,
        vocabulary: Optional[Vocabulary] = None,
) -> KeywordMatch:
    """
    Weighted keyword coverage on the raw 0-50 scale.

    earned = category weight * location bonus * frequency bonus, per matched keyword.
    Presence is a literal substring test on the lowercased resume text; frequency
    counts whole-term occurrences.
    """
    vocab = vocabulary if vocabulary is not None else DEFAULT_VOCABULARY

    resume_text = resume_to_text(resume).lower()
    summary = (resume.summary or "").lower()
    bullets = [b.lower() for b in resume.bullets]

    matched: List[str] = []
    missing: List[str] = []
    points: Dict[str, float] = {}
    categories: Dict[str, str] = {}

    total_points = 0.0
    max_points = 0.0

    for keyword in job_keywords:
        kw = (keyword or "").lower()
        if not kw or kw in categories:
            continue
        category = classify_keyword(kw, vocab)
        weight = CATEGORY_WEIGHTS[category]
        categories[kw] = category.value
        max_points += weight

        if kw in resume_text:
            matched.append(kw)
            earned = weight * location_bonus(kw, summary, bullets) * frequency_bonus(count_term(resume_text, kw))
            points[kw] = round(earned, 4)
            total_points += earned
        else:
            missing.append(kw)
            points[kw] = 0.0

    if max_points <= 0:
        score = 0
    else:
        score = clamp(round_half_up((total_points / max_points) * RAW_KEYWORD_MAX), 0, RAW_KEYWORD_MAX)

    return KeywordMatch(
        score=score,
        matched=matched,
        missing=missing,
        points=points,
        categories=categories,
        max_points=max_points,
    )


def rescale_keyword_score(raw_score: int) -> int:
    """Raw 0-50 matcher score -> the 40-point keyword share of the total."""
    return clamp(round_half_up(raw_score * KEYWORDS_MAX / RAW_KEYWORD_MAX), 0, KEYWORDS_MAX)
