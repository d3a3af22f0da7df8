from __future__ import annotations

import pytest

from resumetailor.ats import calculate_ats_score
from resumetailor.ats.matching import (
    EXPERIENCE_BONUS,
    SUMMARY_BONUS,
    frequency_bonus,
    location_bonus,
    match_keywords,
    rescale_keyword_score,
    resume_to_text,
    round_half_up,
)
from resumetailor.models import Contact, EducationItem, ExperienceItem, StructuredResume


def _resume(*, summary=None, bullets=(), skills=(), education=()) -> StructuredResume:
    return StructuredResume(
        contact=Contact(name="Jane Doe", email="jane@example.com"),
        summary=summary,
        experience=[ExperienceItem(company="Acme", role="Engineer", dates="2020 - 2023", bullets=list(bullets))],
        education=list(education),
        skills=list(skills),
    )


def test_round_half_up() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert round_half_up(1.49) == 1


def test_resume_to_text_covers_every_section(backend_resume: StructuredResume) -> None:
    text = resume_to_text(backend_resume)
    assert "Dana Whitfield" in text
    assert "reliable APIs" in text
    assert "Northwind Logistics" in text
    assert "Mentored four engineers" in text
    assert "Bachelor of Science" in text
    assert "Mentoring" in text
    assert "2021 - Present" not in text


def test_location_bonus_prefers_summary() -> None:
    assert location_bonus("python", "python developer", ["python scripts"]) == SUMMARY_BONUS
    assert location_bonus("python", "developer", ["python scripts"]) == EXPERIENCE_BONUS
    assert location_bonus("python", "developer", ["shell scripts"]) == 1.0


def test_frequency_bonus() -> None:
    assert frequency_bonus(1) == 1.0
    assert frequency_bonus(2) == 1.08
    assert frequency_bonus(3) == 1.15
    assert frequency_bonus(7) == 1.15


def test_no_keywords_scores_zero() -> None:
    match = match_keywords(_resume(summary="Python developer"), [])
    assert match.score == 0
    assert match.matched == []
    assert match.missing == []


def test_matched_and_missing_partition_the_keywords() -> None:
    keywords = ["python", "kubernetes", "jira", "banana"]
    match = match_keywords(_resume(summary="Python developer", skills=["Jira"]), keywords)
    assert match.matched == ["python", "jira"]
    assert match.missing == ["kubernetes", "banana"]
    assert set(match.matched) | set(match.missing) == set(keywords)
    assert not set(match.matched) & set(match.missing)


def test_duplicate_and_empty_keywords_are_skipped() -> None:
    match = match_keywords(_resume(summary="Python developer"), ["python", "Python", ""])
    assert match.matched == ["python"]
    assert match.max_points == 3


def test_points_apply_weight_location_and_frequency() -> None:
    resume = _resume(
        summary="Python and AWS developer",
        bullets=["Deployed Docker containers, reducing costs by 20%"],
    )
    match = match_keywords(resume, ["python", "aws", "docker"])

    assert match.points["python"] == pytest.approx(3 * 1.30)
    assert match.points["aws"] == pytest.approx(3 * 1.30)
    assert match.points["docker"] == pytest.approx(3 * 1.15)
    assert match.categories == {"python": "technical", "aws": "technical", "docker": "technical"}
    # bonuses push earned above max; the raw score is capped
    assert match.score == 50


def test_frequency_bonus_counts_whole_term_occurrences() -> None:
    resume = _resume(summary="Python engineer", bullets=["Wrote Python tooling"], skills=["Python"])
    match = match_keywords(resume, ["python"])
    assert match.points["python"] == pytest.approx(3 * 1.30 * 1.15)


def test_missing_keywords_earn_nothing_but_count_toward_max() -> None:
    resume = _resume(skills=["Banana"])
    match = match_keywords(resume, ["python", "banana"])
    assert match.points == {"python": 0.0, "banana": 1.0}
    assert match.max_points == 4
    # 1 / 4 * 50 = 12.5 rounds half up
    assert match.score == 13


def test_adding_a_missing_keyword_never_lowers_the_score() -> None:
    keywords = ["python", "aws", "docker", "jira"]
    before = match_keywords(_resume(summary="Python developer"), keywords)
    after = match_keywords(_resume(summary="Python developer", skills=["Docker"]), keywords)
    assert after.score >= before.score
    assert "docker" in after.matched


def test_keyword_moved_into_summary_never_lowers_the_score() -> None:
    keywords = ["python", "aws", "docker", "jira"]
    before = match_keywords(_resume(summary="Python developer"), keywords)
    after = match_keywords(_resume(summary="Python and Docker developer"), keywords)
    assert after.score > before.score
    assert "docker" in after.matched

    jd = "python aws docker jira"
    before_ats = calculate_ats_score(_resume(summary="Python developer"), jd)
    after_ats = calculate_ats_score(_resume(summary="Python and Docker developer"), jd)
    assert after_ats.breakdown.keywords.score >= before_ats.breakdown.keywords.score


def test_presence_is_a_substring_test() -> None:
    match = match_keywords(_resume(summary="Worked with Javascript"), ["java"])
    assert match.matched == ["java"]
    # counted as a whole term it never appears, so no frequency bonus
    assert match.points["java"] == pytest.approx(3 * 1.30)


@pytest.mark.parametrize("raw, expected", [(0, 0), (13, 10), (44, 35), (47, 38), (50, 40), (60, 40)])
def test_rescale_keyword_score(raw: int, expected: int) -> None:
    assert rescale_keyword_score(raw) == expected
