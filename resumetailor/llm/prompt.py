"""
resumetailor/llm/prompt.py

Prompts for the language-model collaborators: resume structuring, tailoring,
section rewriting and job metadata extraction.

Every prompt that expects JSON is sent with JSON-object response mode; the
schema is spelled out in the system prompt so both providers return the same shape.
"""
from __future__ import annotations

import json

from resumetailor.ats.types import ScoreResult
from resumetailor.models import StructuredResume

RESUME_SCHEMA = """\
{
  "contact": {"name": "string", "email": "string", "phone": "string (optional)",
              "linkedin": "string (optional)", "location": "string (optional)"},
  "summary": "string (optional)",
  "experience": [{"company": "string", "role": "string", "dates": "string", "bullets": ["string"]}],
  "education": [{"school": "string", "degree": "string", "dates": "string", "details": "string (optional)"}],
  "skills": ["string"]
}"""

STRUCTURE_SYSTEM_PROMPT = f"""\
Extract the resume into JSON with exactly this structure:
{RESUME_SCHEMA}
Be precise and extract all information accurately. Do not add information that is not in the text.\
"""

TAILOR_SYSTEM_PROMPT = """\
You are an expert resume writer specializing in ATS optimization.
Tailor the provided resume for the given job description while following these rules:
1. Keep all information TRUTHFUL - never fabricate experience, skills, employers, dates or metrics
2. Use keywords from the job description where the candidate's experience supports them
3. Reframe bullets to emphasize relevant experience
4. Maintain professional tone and clarity
5. Keep the same structure and format
6. Focus on quantifiable achievements where the original already states them
Return the tailored resume as JSON in the same structure as the input.\
"""

REWRITE_SYSTEM_PROMPT = """\
Rewrite the given resume section as instructed.
Keep it truthful, professional, and ATS-friendly. Consider the job context for relevance.
Return only the rewritten text, no additional commentary.\
"""

JOB_METADATA_SYSTEM_PROMPT = """\
Extract company name, role/position, and location from the job description.
Return JSON: { "company": "string or null", "role": "string or null", "location": "string or null" }\
"""

# Long postings are truncated before they reach the model.
MAX_JOB_DESCRIPTION_CHARS = 6000


def _clip(job_description: str) -> str:
    jd = (job_description or "").strip()
    return jd[:MAX_JOB_DESCRIPTION_CHARS]


def build_structure_prompt(resume_text: str) -> str:
    return (resume_text or "").strip()


def build_tailor_prompt(
        *,
        resume: StructuredResume,
        job_description: str,
        score: ScoreResult | None = None,
) -> str:
    """
    User turn for tailoring. When a current ATS score is given, the missing
    keywords are listed so the model knows which gaps to close (truthfully).
    """
    gaps = ""
    if score is not None and score.missing_keywords:
        gaps = (
            "\n\nKeywords from the posting that the resume does not mention yet "
            "(use only where the experience genuinely supports them):\n"
            + ", ".join(score.missing_keywords[:15])
        )
    return (
        f"Master Resume:\n{json.dumps(resume.to_dict(), indent=2)}\n\n"
        f"Job Description:\n{_clip(job_description)}"
        f"{gaps}\n\n"
        "Tailor this resume for maximum ATS compatibility while keeping all information truthful."
    )


def build_rewrite_prompt(*, original_text: str, instruction: str, job_context: str) -> str:
    return (
        f"Original text: {original_text}\n\n"
        f"Job context: {_clip(job_context)}\n\n"
        f"Rewrite this to be {instruction}."
    )


def build_job_metadata_prompt(job_description: str) -> str:
    return _clip(job_description)
