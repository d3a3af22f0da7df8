from __future__ import annotations

import json
from pathlib import Path

import pytest

import resumetailor.config as config
import resumetailor.tailoring as tailoring
from resumetailor.llm.tailor import ResumeTailorError
from resumetailor.models import JobMetadata, StructuredResume
from resumetailor.ratelimit import FixedWindowRateLimiter, InMemoryCounterStore, RateLimitExceededError
from resumetailor.tracking import JsonApplicationRepository, QuotaExceededError


class _FakeTailor:
    """Adds the missing infrastructure terms to the summary; never calls a model."""

    def __init__(self, *, fail_tailor: bool = False, fail_metadata: bool = False) -> None:
        self.fail_tailor = fail_tailor
        self.fail_metadata = fail_metadata
        self.tailor_calls = 0

    def structure_resume(self, resume_text: str) -> StructuredResume:
        return StructuredResume.from_dict({"contact": {"name": resume_text.splitlines()[0]}})

    def tailor_resume(self, resume, job_description, *, score=None):
        self.tailor_calls += 1
        if self.fail_tailor:
            raise ResumeTailorError("LLM call failed: APITimeoutError")
        data = resume.to_dict()
        data["summary"] = (resume.summary or "") + " Runs Docker and Kubernetes workloads with Terraform."
        return StructuredResume.from_dict(data)

    def rewrite_section(self, original_text, instruction, job_context):
        return original_text

    def extract_job_metadata(self, job_description):
        if self.fail_metadata:
            raise ResumeTailorError("LLM call failed: APIError")
        return JobMetadata(company="Acme Freight", role="Senior Python Engineer", location="Remote")


@pytest.fixture
def no_llm(monkeypatch):
    for name in (
            "RESUMETAILOR_LLM_KEY",
            "RESUMETAILOR_OPENAI_KEY",
            "RESUMETAILOR_ANTHROPIC_KEY",
            "OPENAI_API_KEY",
            "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "RESUMETAILOR_REDIS_URL", None)


# ------------------------------------------------------------------
# run_tailoring
# ------------------------------------------------------------------

def test_tailoring_improves_score_and_persists(tmp_path: Path, backend_resume, backend_job) -> None:
    repo = JsonApplicationRepository(tmp_path)
    tailor = _FakeTailor()

    result = tailoring.run_tailoring(
        user_id="u1",
        resume=backend_resume,
        job_description=backend_job,
        tailor=tailor,
        repo=repo,
    )

    assert result.tailored is True
    assert result.final_score.score > result.original_score.score
    assert "kubernetes" in result.final_score.matched
    assert result.job_metadata.company == "Acme Freight"

    stored = repo.get(result.application_id)
    assert stored is not None
    assert stored.ats_score == result.final_score.score
    assert stored.resume == backend_resume
    assert stored.tailored_resume == result.final_resume
    assert stored.keywords["missing"] == result.final_score.recommendations


def test_tailoring_failure_falls_back_to_original(tmp_path: Path, backend_resume, backend_job, capsys) -> None:
    result = tailoring.run_tailoring(
        user_id="u1",
        resume=backend_resume,
        job_description=backend_job,
        tailor=_FakeTailor(fail_tailor=True, fail_metadata=True),
        repo=JsonApplicationRepository(tmp_path),
    )

    assert result.tailored is False
    assert result.final_resume == backend_resume
    assert result.final_score == result.original_score
    # heuristic metadata: first line role, second line company
    assert result.job_metadata == JobMetadata(company="Acme Freight", role="Senior Python Engineer")
    err = capsys.readouterr().err
    assert "[ResumeTailor] WARNING: tailoring failed" in err


def test_dry_run_saves_nothing(tmp_path: Path, backend_resume, backend_job) -> None:
    repo = JsonApplicationRepository(tmp_path)

    result = tailoring.run_tailoring(
        user_id="u1",
        resume=backend_resume,
        job_description=backend_job,
        repo=repo,
        dry_run=True,
    )

    assert result.application_id is None
    assert result.dry_run is True
    assert repo.count_for_user("u1") == 0


def test_no_tailor_skips_the_model(tmp_path: Path, backend_resume, backend_job) -> None:
    tailor = _FakeTailor()
    result = tailoring.run_tailoring(
        user_id="u1",
        resume=backend_resume,
        job_description=backend_job,
        tailor=tailor,
        repo=JsonApplicationRepository(tmp_path),
        no_tailor=True,
    )

    assert tailor.tailor_calls == 0
    assert result.tailored is False


def test_quota_is_enforced_before_scoring(tmp_path: Path, backend_resume, backend_job, monkeypatch) -> None:
    repo = JsonApplicationRepository(tmp_path)
    for _ in range(2):
        tailoring.run_tailoring(user_id="u1", resume=backend_resume, job_description=backend_job, repo=repo)

    monkeypatch.setattr(config, "FREE_TIER_APPLICATION_LIMIT", 2)
    with pytest.raises(QuotaExceededError):
        tailoring.run_tailoring(user_id="u1", resume=backend_resume, job_description=backend_job, repo=repo)

    result = tailoring.run_tailoring(
        user_id="u1",
        resume=backend_resume,
        job_description=backend_job,
        repo=repo,
        subscription="pro",
    )
    assert result.application_id is not None
    assert repo.count_for_user("u1") == 3


def test_rate_limit_is_enforced(backend_resume, backend_job) -> None:
    limiter = FixedWindowRateLimiter(InMemoryCounterStore(), max_requests=1, window_seconds=3600)

    tailoring.run_tailoring(
        user_id="u1", resume=backend_resume, job_description=backend_job, limiter=limiter, dry_run=True
    )
    with pytest.raises(RateLimitExceededError, match="Maximum 1 requests per 3600 seconds"):
        tailoring.run_tailoring(
            user_id="u1", resume=backend_resume, job_description=backend_job, limiter=limiter, dry_run=True
        )


def test_result_dict_shape(backend_resume, backend_job) -> None:
    result = tailoring.run_tailoring(
        user_id="u1", resume=backend_resume, job_description=backend_job, dry_run=True
    )
    payload = result.to_dict()

    assert set(payload) == {
        "user_id", "application_id", "job_metadata", "tailored",
        "original_score", "ats", "resume", "duration_ms", "dry_run",
    }
    assert payload["ats"]["score"] == result.final_score.score
    json.dumps(payload)


def test_guess_job_metadata() -> None:
    assert tailoring.guess_job_metadata("") == JobMetadata()
    assert tailoring.guess_job_metadata("\n  Data Analyst \n\nGlobex\nRemote") == JobMetadata(
        company="Globex", role="Data Analyst"
    )


# ------------------------------------------------------------------
# CLI
# ------------------------------------------------------------------

def test_cli_json_dry_run(fixtures_dir: Path, no_llm, capsys) -> None:
    tailoring.main([
        "--resume", str(fixtures_dir / "resume_backend.json"),
        "--job", str(fixtures_dir / "job_backend.txt"),
        "--dry-run",
        "--json",
    ])

    payload = json.loads(capsys.readouterr().out)
    assert payload["dry_run"] is True
    assert payload["tailored"] is False
    assert payload["ats"]["score"] == 79
    assert payload["job_metadata"]["role"] == "Senior Python Engineer"


def test_cli_human_summary(fixtures_dir: Path, no_llm, capsys) -> None:
    tailoring.main([
        "--resume", str(fixtures_dir / "resume_backend.json"),
        "--job", str(fixtures_dir / "job_backend.txt"),
        "--dry-run",
    ])

    out = capsys.readouterr().out
    assert "=== Resume Tailor ===" in out
    assert "Job: Senior Python Engineer @ Acme Freight" in out
    assert "ATS score: 79" in out
    assert "Recommendations:" in out


def test_cli_missing_job_file_exits_2(tmp_path: Path, fixtures_dir: Path, no_llm) -> None:
    with pytest.raises(SystemExit) as exc_info:
        tailoring.main([
            "--resume", str(fixtures_dir / "resume_backend.json"),
            "--job", str(tmp_path / "nope.txt"),
        ])
    assert exc_info.value.code == 2


def test_cli_raw_resume_without_llm_exits_2(fixtures_dir: Path, no_llm) -> None:
    with pytest.raises(SystemExit) as exc_info:
        tailoring.main([
            "--resume-text", str(fixtures_dir / "resume.txt"),
            "--job", str(fixtures_dir / "job_backend.txt"),
            "--dry-run",
        ])
    assert exc_info.value.code == 2


def test_cli_quota_exceeded_exits_3(tmp_path: Path, fixtures_dir: Path, no_llm, monkeypatch) -> None:
    monkeypatch.setattr(config, "RESUMETAILOR_DATA_DIR", str(tmp_path))
    monkeypatch.setattr(config, "FREE_TIER_APPLICATION_LIMIT", 0)

    with pytest.raises(SystemExit) as exc_info:
        tailoring.main([
            "--resume", str(fixtures_dir / "resume_backend.json"),
            "--job", str(fixtures_dir / "job_backend.txt"),
        ])
    assert exc_info.value.code == 3
