from __future__ import annotations

from datetime import datetime, timezone

import pytest

from resumetailor.models import (
    ApplicationRecord,
    ApplicationStatus,
    Contact,
    ExperienceItem,
    JobMetadata,
    StructuredResume,
    normalize_skills,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (["Python", " SQL ", "", 7], ["Python", "SQL"]),
        ({"technical": ["Python", "SQL"], "soft": ["Mentoring"]}, ["Python", "SQL", "Mentoring"]),
        ("Python, SQL; Docker | Git\n• Mentoring", ["Python", "SQL", "Docker", "Git", "Mentoring"]),
        ({"b", "a"}, ["a", "b"]),
        ({"technical": "Python, SQL"}, ["Python", "SQL"]),
        (None, []),
        (42, []),
    ],
)
def test_normalize_skills(raw, expected) -> None:
    assert normalize_skills(raw) == expected


def test_structured_resume_normalizes_fields() -> None:
    resume = StructuredResume(
        contact=Contact(name="  Jane   Doe "),
        summary="   ",
        experience=[ExperienceItem(company="Acme", role="Dev", bullets=["  Shipped  it ", ""]), "junk"],
        skills="Python, SQL",
    )
    assert resume.contact.name == "Jane Doe"
    assert resume.summary is None
    assert len(resume.experience) == 1
    assert resume.experience[0].bullets == ["Shipped it"]
    assert resume.skills == ["Python", "SQL"]
    assert resume.bullets == ["Shipped it"]


def test_from_dict_is_tolerant_of_llm_output() -> None:
    resume = StructuredResume.from_dict({
        "contact": {"name": "Jane Doe"},
        "experience": [
            {"company": "Acme", "title": "Engineer", "bullets": "Single bullet as a string"},
            "not an entry",
        ],
        "education": [{"school": "State University"}],
    })
    assert resume.experience[0].role == "Engineer"
    assert resume.experience[0].bullets == ["Single bullet as a string"]
    assert resume.education[0].degree == ""
    assert resume.skills == []


def test_from_dict_on_garbage_gives_an_empty_resume() -> None:
    resume = StructuredResume.from_dict(None)
    assert resume.contact.name == ""
    assert resume.experience == []


def test_non_list_sections_become_empty() -> None:
    resume = StructuredResume.from_dict({"contact": {"name": "Jane Doe"}, "experience": 5, "education": {"school": "X"}})
    assert resume.experience == []
    assert resume.education == []

    direct = StructuredResume(contact=Contact(name="Jane Doe"), experience=5, education="BSc")
    assert direct.experience == []
    assert direct.education == []


def test_to_dict_round_trips(backend_resume: StructuredResume) -> None:
    assert StructuredResume.from_dict(backend_resume.to_dict()) == backend_resume


def test_job_metadata_blank_values_become_none() -> None:
    meta = JobMetadata.from_dict({"company": " Acme ", "role": "", "location": None})
    assert meta == JobMetadata(company="Acme", role=None, location=None)


def test_application_record_serializes_status_and_timestamp(backend_resume: StructuredResume) -> None:
    created = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    record = ApplicationRecord(
        user_id="u1",
        job_description="Python role",
        resume=backend_resume,
        tailored_resume=backend_resume,
        ats_score=72,
        keywords={"matched": ["python"], "missing": ["Skills: Add aws"]},
        status=ApplicationStatus.INTERVIEW,
        created_at=created,
    )
    payload = record.to_dict()

    assert payload["status"] == "interview"
    assert payload["created_at"] == "2026-03-01T12:00:00+00:00"

    restored = ApplicationRecord.from_dict(payload)
    assert restored.status is ApplicationStatus.INTERVIEW
    assert restored.created_at == created
    assert restored.keywords == record.keywords
    assert restored.resume == backend_resume
