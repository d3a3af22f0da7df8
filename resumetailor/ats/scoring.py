from __future__ import annotations

import re
from typing import Optional, Tuple

from resumetailor.ats.matching import round_half_up
from resumetailor.ats.types import EDUCATION_MAX, EXPERIENCE_MAX, FORMAT_MAX, SKILLS_MAX
from resumetailor.models import StructuredResume

# A number, a percentage or a dollar amount.
_QUANTIFIED_RE = re.compile(r"\$\s?\d|\d+(?:[.,]\d+)?\s?%|\d")

_DEGREE_REQUIREMENT_RE = re.compile(r"bachelor|master|mba|phd|degree", re.IGNORECASE)

_REQUIRED_LEVELS = (
    (re.compile(r"phd", re.IGNORECASE), 3),
    (re.compile(r"master|mba", re.IGNORECASE), 2),
    (re.compile(r"bachelor", re.IGNORECASE), 1),
)

# (pattern, level) - higher level satisfies lower requirements.
_DEGREE_LEVELS = (
    (re.compile(r"\b(?:ph\.?\s?d|doctorate|doctor of)\b", re.IGNORECASE), 3),
    (re.compile(r"\b(?:masters?|mba|m\.?s\.?c?|m\.?a\.?|m\.?eng)\b", re.IGNORECASE), 2),
    (re.compile(r"\b(?:bachelors?|b\.?s\.?c?|b\.?a\.?|b\.?eng|b\.?tech)\b", re.IGNORECASE), 1),
)
_BACHELOR_LEVEL = 1

MAX_SKILLS_CONSIDERED = 10
QUANTIFIED_POINTS = 20
MULTI_ROLE_BONUS = 5


def is_quantified(bullet: str) -> bool:
    return bool(_QUANTIFIED_RE.search(bullet or ""))


def quantified_ratio(resume: StructuredResume) -> float:
    bullets = resume.bullets
    if not bullets:
        return 0.0
    return sum(1 for b in bullets if is_quantified(b)) / len(bullets)


def experience_score(resume: StructuredResume) -> int:
    score = round_half_up(quantified_ratio(resume) * QUANTIFIED_POINTS)
    if len(resume.experience) >= 2:
        score += MULTI_ROLE_BONUS
    return min(score, EXPERIENCE_MAX)


def skills_overlap(resume: StructuredResume, job_description: str) -> Tuple[int, int]:
    """(matched, considered) over the first MAX_SKILLS_CONSIDERED declared skills."""
    considered = resume.skills[:MAX_SKILLS_CONSIDERED]
    if not considered:
        return 0, 0
    job = (job_description or "").lower()
    matched = sum(1 for s in considered if s.lower() in job)
    return matched, len(considered)


def skills_score(resume: StructuredResume, job_description: str) -> int:
    matched, considered = skills_overlap(resume, job_description)
    if not considered:
        return 0
    return min(round_half_up((matched / considered) * SKILLS_MAX), SKILLS_MAX)


def requires_degree(job_description: str) -> bool:
    return bool(_DEGREE_REQUIREMENT_RE.search(job_description or ""))


def degree_level(text: str) -> Optional[int]:
    """Highest degree level named in text: bachelor 1, master/mba 2, phd 3."""
    for pattern, level in _DEGREE_LEVELS:
        if pattern.search(text or ""):
            return level
    return None


def required_degree_level(job_description: str) -> int:
    """
    Lowest level the posting names ("Bachelor's or Master's" -> bachelor).
    A bare "degree" means bachelor.
    """
    levels = [level for pattern, level in _REQUIRED_LEVELS if pattern.search(job_description or "")]
    return min(levels) if levels else _BACHELOR_LEVEL


def education_score(resume: StructuredResume, job_description: str) -> int:
    if not requires_degree(job_description):
        return EDUCATION_MAX
    if not resume.education:
        return 3
    levels = [lvl for lvl in (degree_level(e.degree) for e in resume.education) if lvl is not None]
    if levels and max(levels) >= required_degree_level(job_description):
        return EDUCATION_MAX
    return 12


def format_score(resume: StructuredResume) -> int:
    checks = (
        bool(resume.summary) and len(resume.summary) > 50,
        len(resume.experience) >= 2,
        # all() of an empty sequence is True; no entries cannot satisfy "every entry"
        bool(resume.experience) and all(len(e.bullets) >= 2 for e in resume.experience),
        len(resume.skills) >= 5,
        len(resume.education) >= 1,
    )
    return min(sum(1 for c in checks if c), FORMAT_MAX)
