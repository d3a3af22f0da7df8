from __future__ import annotations

from typing import List, Optional

from resumetailor.ats.categories import DEFAULT_VOCABULARY, KeywordCategory, Vocabulary, classify_keyword
from resumetailor.ats.matching import resume_to_text
from resumetailor.ats.scoring import quantified_ratio, requires_degree, skills_overlap
from resumetailor.ats.types import KeywordMatch
from resumetailor.core.text_processing import count_term
from resumetailor.models import StructuredResume

MAX_MISSING_TECHNICAL = 4
MAX_MISSING_TOOLS = 3
MAX_MISSING_SOFT = 2
MAX_MISSING_CERTIFICATIONS = 2
MAX_SUMMARY_SUGGESTIONS = 2
MAX_REPEAT_SUGGESTIONS = 2
# Leading matched keywords treated as the posting's important terms.
IMPORTANT_MATCHED_WINDOW = 5

LOW_SKILLS_OVERLAP = 0.30
LOW_QUANTIFIED_RATIO = 0.40


def _category_of(keyword: str, match: KeywordMatch, vocab: Vocabulary) -> KeywordCategory:
    raw = match.categories.get(keyword)
    return KeywordCategory(raw) if raw else classify_keyword(keyword, vocab)


def _missing_in(match: KeywordMatch, category: KeywordCategory, vocab: Vocabulary) -> List[str]:
    return [k for k in match.missing if _category_of(k, match, vocab) is category]


def recommend(
        resume: StructuredResume,
        job_description: str,
        match: KeywordMatch,
        *,
        vocabulary: Optional[Vocabulary] = None,
) -> List[str]:
    """
    Actionable lines for the weakest areas, highest priority first.

    Each rule adds at most one line; every firing rule is included.
    """
    vocab = vocabulary if vocabulary is not None else DEFAULT_VOCABULARY
    out: List[str] = []

    technical = _missing_in(match, KeywordCategory.TECHNICAL, vocab)
    if technical:
        out.append(
            f"Skills: Add {', '.join(technical[:MAX_MISSING_TECHNICAL])} "
            "to your skills and experience if you have used them"
        )

    tools = _missing_in(match, KeywordCategory.TOOL, vocab)
    if tools:
        out.append(f"Tools: Mention hands-on experience with {', '.join(tools[:MAX_MISSING_TOOLS])}")

    soft = _missing_in(match, KeywordCategory.SOFT_SKILL, vocab)
    if soft:
        out.append(
            f"Skills: Show {', '.join(soft[:MAX_MISSING_SOFT])} through concrete examples in your bullets"
        )

    certs = _missing_in(match, KeywordCategory.CERTIFICATION, vocab)
    if certs:
        out.append(
            f"Education: List {', '.join(certs[:MAX_MISSING_CERTIFICATIONS])} if you hold or are pursuing them"
        )

    matched_skills, considered = skills_overlap(resume, job_description)
    overlap = (matched_skills / considered) if considered else 0.0
    if overlap < LOW_SKILLS_OVERLAP:
        out.append("Skills: Align your skills section with the terms used in the job description")

    if quantified_ratio(resume) < LOW_QUANTIFIED_RATIO:
        out.append("Experience: Add numbers, percentages or dollar amounts to show the impact of your work")

    summary = (resume.summary or "").lower()
    top_technical = [k for k in match.matched if _category_of(k, match, vocab) is KeywordCategory.TECHNICAL]
    absent_from_summary = [k for k in top_technical if k not in summary][:MAX_SUMMARY_SUGGESTIONS]
    if absent_from_summary:
        out.append(
            f"Summary: Add {', '.join(absent_from_summary)} to your professional summary, "
            "where keywords carry the most weight"
        )

    if requires_degree(job_description) and not resume.education:
        out.append("Education: Add relevant education or certifications; this posting asks for a degree")

    resume_text = resume_to_text(resume).lower()
    single_mentions = [
        k for k in match.matched[:IMPORTANT_MATCHED_WINDOW] if count_term(resume_text, k) < 2
    ][:MAX_REPEAT_SUGGESTIONS]
    if single_mentions:
        out.append(f"Keywords: Mention {', '.join(single_mentions)} more than once across your resume")

    return out
