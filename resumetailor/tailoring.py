from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from resumetailor import config
from resumetailor.ats import ScoreResult, calculate_ats_score
from resumetailor.io.resume_loader import load_resume_text, load_structured_resume
from resumetailor.llm.tailor import FailoverResumeTailor, ResumeTailor, ResumeTailorError
from resumetailor.models import ApplicationRecord, JobMetadata, StructuredResume
from resumetailor.ratelimit import FixedWindowRateLimiter, RateLimitExceededError, build_rate_limiter
from resumetailor.tracking import (
    ApplicationRepository,
    JsonApplicationRepository,
    QuotaExceededError,
    check_usage_quota,
    default_repo_dir,
)


def _warn(message: str) -> None:
    print(f"[ResumeTailor] WARNING: {message}", file=sys.stderr)


@dataclass(frozen=True)
class TailoringResult:
    user_id: str
    application_id: Optional[str]
    original_score: ScoreResult
    final_score: ScoreResult
    final_resume: StructuredResume
    job_metadata: JobMetadata
    tailored: bool
    duration_ms: int
    dry_run: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "application_id": self.application_id,
            "job_metadata": self.job_metadata.to_dict(),
            "tailored": self.tailored,
            "original_score": self.original_score.to_dict(),
            "ats": self.final_score.to_dict(),
            "resume": self.final_resume.to_dict(),
            "duration_ms": self.duration_ms,
            "dry_run": self.dry_run,
        }


def guess_job_metadata(job_description: str) -> JobMetadata:
    """
    No-LLM fallback: first non-empty line is the role, second the company.
    """
    lines = [ln.strip() for ln in (job_description or "").splitlines() if ln.strip()]
    role = lines[0][:120] if lines else None
    company = lines[1][:120] if len(lines) > 1 else None
    return JobMetadata(company=company, role=role, location=None)


def run_tailoring(
        *,
        user_id: str,
        resume: StructuredResume,
        job_description: str,
        tailor: Optional[ResumeTailor] = None,
        repo: Optional[ApplicationRepository] = None,
        limiter: Optional[FixedWindowRateLimiter] = None,
        subscription: str = "free",
        dry_run: bool = False,
        no_tailor: bool = False,
) -> TailoringResult:
    """
    One tailoring run for an account:
      rate limit -> usage quota -> score original -> tailor (optional)
      -> job metadata -> score final -> persist application
    LLM failures fall back to the original resume; the run still completes.
    """
    start = time.time()

    if limiter is not None and not limiter.check_and_consume(user_id):
        raise RateLimitExceededError(
            f"Rate limit exceeded. Maximum {limiter.max_requests} requests per {limiter.window_seconds} seconds."
        )

    if not dry_run:
        repo = repo or JsonApplicationRepository(default_repo_dir())
        check_usage_quota(repo, user_id, subscription=subscription)

    original_score = calculate_ats_score(resume, job_description)

    final_resume = resume
    tailored = False
    job_metadata: Optional[JobMetadata] = None

    if tailor is not None and not no_tailor:
        try:
            final_resume = tailor.tailor_resume(resume, job_description, score=original_score)
            tailored = True
        except ResumeTailorError as exc:
            _warn(f"tailoring failed, keeping the original resume: {exc}")
        try:
            job_metadata = tailor.extract_job_metadata(job_description)
        except ResumeTailorError as exc:
            _warn(f"job metadata extraction failed: {exc}")

    if job_metadata is None:
        job_metadata = guess_job_metadata(job_description)

    final_score = calculate_ats_score(final_resume, job_description) if tailored else original_score

    application_id = None
    if not dry_run and repo is not None:
        record = ApplicationRecord(
            user_id=user_id,
            job_description=job_description,
            resume=resume,
            tailored_resume=final_resume,
            ats_score=final_score.score,
            keywords=final_score.keywords,
            job_metadata=job_metadata,
        )
        repo.put(record)
        application_id = record.application_id

    duration_ms = int((time.time() - start) * 1000)

    return TailoringResult(
        user_id=user_id,
        application_id=application_id,
        original_score=original_score,
        final_score=final_score,
        final_resume=final_resume,
        job_metadata=job_metadata,
        tailored=tailored,
        duration_ms=duration_ms,
        dry_run=dry_run,
    )


def print_human_summary(result: TailoringResult) -> None:
    ats = result.final_score
    meta = result.job_metadata

    print("\n=== Resume Tailor ===")
    print(f"User: {result.user_id}")
    role = meta.role or "Position"
    company = f" @ {meta.company}" if meta.company else ""
    print(f"Job: {role}{company}")
    if result.dry_run:
        print("Mode: DRY RUN (no application saved)")
    elif result.application_id:
        print(f"Application: {result.application_id}")
    print(f"Duration: {result.duration_ms}ms")

    if result.tailored:
        print(f"\nATS score: {result.original_score.score} -> {ats.score} (tailored)")
    else:
        print(f"\nATS score: {ats.score}")

    print("Breakdown:")
    for name, dim in ats.breakdown.dimensions().items():
        print(f"   {name:<11} {dim.score:>3} / {dim.max}")

    matched = ats.matched[:10]
    missing = ats.missing_keywords[:10]
    print(f"\nMatched keywords: {', '.join(matched)}" if matched else "\nMatched keywords: -")
    print(f"Missing keywords: {', '.join(missing)}" if missing else "Missing keywords: -")

    if ats.recommendations:
        print("\nRecommendations:")
        for idx, rec in enumerate(ats.recommendations, start=1):
            print(f"{idx}) {rec}")


def _read_job_description(raw: str) -> str:
    p = Path(raw)
    if p.exists():
        return p.read_text(encoding="utf-8")
    if raw == "-":
        return sys.stdin.read()
    raise FileNotFoundError(raw)


def _load_resume(args: argparse.Namespace, tailor: Optional[ResumeTailor]) -> StructuredResume:
    if args.resume:
        return load_structured_resume(args.resume)

    loaded = load_resume_text(
        resume_text_path=args.resume_text or None,
        resume_pdf_path=args.resume_pdf or None,
        resume_docx_path=args.resume_docx or None,
    )
    if loaded.source == "none":
        print(f"\n[ResumeTailor] Could not read a resume from: {loaded.path or '(no path given)'}")
        print("Tip: pass --resume resume.json, or --resume-text / --resume-pdf / --resume-docx\n")
        raise SystemExit(2)
    if tailor is None:
        print("\n[ResumeTailor] Structuring a raw resume needs an LLM key.")
        print("Tip: set RESUMETAILOR_LLM_KEY (or OPENAI_API_KEY / ANTHROPIC_API_KEY), or pass --resume resume.json\n")
        raise SystemExit(2)
    try:
        return tailor.structure_resume(loaded.text)
    except ResumeTailorError as exc:
        print(f"\n[ResumeTailor] Resume structuring failed: {exc}\n")
        raise SystemExit(2)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Score and tailor a resume against a job description")
    parser.add_argument("--user-id", default="local-user", help="Account identifier for quota and rate limiting")
    parser.add_argument("--resume", type=str, default="", help="Path to a structured resume .json")
    parser.add_argument("--resume-text", type=str, default="", help="Path to a resume .txt (structured via LLM)")
    parser.add_argument("--resume-pdf", type=str, default="", help="Path to a resume .pdf (structured via LLM)")
    parser.add_argument("--resume-docx", type=str, default="", help="Path to a resume .docx (structured via LLM)")
    parser.add_argument("--job", type=str, required=True, help="Path to the job description text, or - for stdin")
    parser.add_argument("--subscription", choices=["free", "pro"], default="free", help="Account tier for the usage quota")
    parser.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    parser.add_argument("--dry-run", action="store_true", help="Run without saving the application")
    parser.add_argument("--no-tailor", action="store_true", help="Score only, even when an LLM key is set")
    args = parser.parse_args(argv)

    try:
        job_description = _read_job_description(args.job)
    except FileNotFoundError:
        print(f"\n[ResumeTailor] Job description file not found: {args.job}")
        print("Tip: pass a path to a .txt file, or - to read from stdin\n")
        raise SystemExit(2)

    tailor: Optional[ResumeTailor] = None
    if config.llm_configured():
        tailor = FailoverResumeTailor.from_config()

    # Counters only mean something when shared; a local run without Redis is unlimited.
    limiter = build_rate_limiter() if config.RESUMETAILOR_REDIS_URL else None

    try:
        resume = _load_resume(args, tailor)
    except FileNotFoundError:
        print(f"\n[ResumeTailor] Resume file not found: {args.resume}\n")
        raise SystemExit(2)
    except json.JSONDecodeError as exc:
        print(f"\n[ResumeTailor] Resume file is not valid JSON: {exc}\n")
        raise SystemExit(2)

    try:
        result = run_tailoring(
            user_id=args.user_id,
            resume=resume,
            job_description=job_description,
            tailor=tailor,
            limiter=limiter,
            subscription=args.subscription,
            dry_run=args.dry_run,
            no_tailor=args.no_tailor,
        )
    except (QuotaExceededError, RateLimitExceededError) as exc:
        print(f"\n[ResumeTailor] {exc}\n")
        raise SystemExit(3)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_human_summary(result)


if __name__ == "__main__":
    main()
