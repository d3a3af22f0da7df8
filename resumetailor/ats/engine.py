from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from resumetailor.ats.categories import Vocabulary
from resumetailor.ats.keywords import extract_keywords
from resumetailor.ats.matching import clamp, match_keywords, rescale_keyword_score, round_half_up
from resumetailor.ats.recommendations import recommend
from resumetailor.ats.scoring import education_score, experience_score, format_score, skills_score
from resumetailor.ats.types import (
    EDUCATION_MAX,
    EXPERIENCE_MAX,
    FORMAT_MAX,
    KEYWORDS_MAX,
    SKILLS_MAX,
    ATSBreakdown,
    DimensionScore,
    ScoreResult,
)
from resumetailor.models import StructuredResume


class ATSInputError(ValueError):
    """Raised when the resume or the job description is missing."""


def _coerce_resume(resume: Union[StructuredResume, Mapping[str, Any]]) -> StructuredResume:
    if isinstance(resume, StructuredResume):
        return resume
    if isinstance(resume, Mapping):
        return StructuredResume.from_dict(resume)
    raise ATSInputError(f"resume must be a StructuredResume or a mapping, got {type(resume).__name__}")


def calculate_ats_score(
        resume: Union[StructuredResume, Mapping[str, Any]],
        job_description: str,
        *,
        vocabulary: Optional[Vocabulary] = None,
) -> ScoreResult:
    """
    Score a structured resume against a job description (0-100).

    extract keywords -> weighted match -> experience/skills/education/format
    -> recommendations. Pure and deterministic: the same inputs always give the
    same ScoreResult. Irregular input degrades to zero/default sub-scores; only a
    missing resume or job description raises ATSInputError.
    """
    if resume is None:
        raise ATSInputError("resume is required")
    if job_description is None:
        raise ATSInputError("job_description is required")
    res = _coerce_resume(resume)
    job = job_description if isinstance(job_description, str) else str(job_description)

    job_keywords = extract_keywords(job, vocabulary=vocabulary)
    match = match_keywords(res, job_keywords, vocabulary=vocabulary)

    keywords_points = rescale_keyword_score(match.score)
    experience_points = min(experience_score(res), EXPERIENCE_MAX)
    skills_points = skills_score(res, job)
    education_points = education_score(res, job)
    format_points = format_score(res)

    recommendations = recommend(res, job, match, vocabulary=vocabulary)

    breakdown = ATSBreakdown(
        keywords=DimensionScore(keywords_points, KEYWORDS_MAX),
        experience=DimensionScore(experience_points, EXPERIENCE_MAX),
        skills=DimensionScore(skills_points, SKILLS_MAX),
        education=DimensionScore(education_points, EDUCATION_MAX),
        format=DimensionScore(format_points, FORMAT_MAX),
    )
    total = clamp(
        round_half_up(keywords_points + experience_points + skills_points + education_points + format_points),
        0,
        100,
    )

    return ScoreResult(
        score=total,
        matched=list(match.matched),
        missing=list(recommendations),
        recommendations=list(recommendations),
        breakdown=breakdown,
        missing_keywords=list(match.missing),
    )
