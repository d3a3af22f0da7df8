from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

_SKILL_SPLIT_RE = re.compile(r"[,;|\n•]")


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    REJECTED = "rejected"
    OFFER = "offer"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def _clean_str(value: Any) -> str:
    return normalize_whitespace(value) if isinstance(value, str) else ""


def _optional_str(value: Any) -> Optional[str]:
    s = _clean_str(value)
    return s or None


def _split_skill_string(raw: str) -> List[str]:
    return [s for s in (normalize_whitespace(p) for p in _SKILL_SPLIT_RE.split(raw)) if s]


def normalize_skills(raw: Any) -> List[str]:
    """
    Collapse every accepted skills shape into one flat, ordered list of strings.

    - ["Python", "SQL"]                     -> ["Python", "SQL"]
    - {"technical": ["Python"], "soft": []} -> values flattened in mapping order
    - "Python, SQL"                         -> split on , ; | bullets and newlines
    - anything else                         -> []
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return _split_skill_string(raw)
    if isinstance(raw, Mapping):
        out: List[str] = []
        for value in raw.values():
            out.extend(normalize_skills(value))
        return out
    if isinstance(raw, (set, frozenset)):
        return [s for s in sorted(_clean_str(x) for x in raw if isinstance(x, str)) if s]
    if isinstance(raw, (list, tuple)):
        out = []
        for item in raw:
            s = _clean_str(item)
            if s:
                out.append(s)
        return out
    return []


def _as_list(raw: Any) -> List[Any]:
    return list(raw) if isinstance(raw, (list, tuple)) else []


def _normalize_bullets(raw: Any) -> List[str]:
    if isinstance(raw, str):
        s = normalize_whitespace(raw)
        return [s] if s else []
    if isinstance(raw, (list, tuple)):
        return [s for s in (_clean_str(b) for b in raw) if s]
    return []


@dataclass(frozen=True)
class Contact:
    name: str
    email: str = ""
    phone: Optional[str] = None
    linkedin: Optional[str] = None
    location: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _clean_str(self.name))
        object.__setattr__(self, "email", _clean_str(self.email))

    @classmethod
    def from_dict(cls, data: Any) -> "Contact":
        data = data if isinstance(data, Mapping) else {}
        return cls(
            name=_clean_str(data.get("name")),
            email=_clean_str(data.get("email")),
            phone=_optional_str(data.get("phone")),
            linkedin=_optional_str(data.get("linkedin")),
            location=_optional_str(data.get("location")),
        )


@dataclass(frozen=True)
class ExperienceItem:
    company: str
    role: str
    dates: str = ""
    bullets: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "company", _clean_str(self.company))
        object.__setattr__(self, "role", _clean_str(self.role))
        object.__setattr__(self, "dates", _clean_str(self.dates))
        object.__setattr__(self, "bullets", _normalize_bullets(self.bullets))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExperienceItem":
        return cls(
            company=data.get("company") or "",
            role=data.get("role") or data.get("title") or "",
            dates=data.get("dates") or "",
            bullets=data.get("bullets") or [],
        )


@dataclass(frozen=True)
class EducationItem:
    school: str
    degree: str
    dates: str = ""
    details: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "school", _clean_str(self.school))
        object.__setattr__(self, "degree", _clean_str(self.degree))
        object.__setattr__(self, "dates", _clean_str(self.dates))
        object.__setattr__(self, "details", _optional_str(self.details))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EducationItem":
        return cls(
            school=data.get("school") or "",
            degree=data.get("degree") or "",
            dates=data.get("dates") or "",
            details=data.get("details"),
        )


@dataclass(frozen=True)
class StructuredResume:
    """
    Parsed resume as produced by the structuring service.

    `skills` accepts a list, a category -> list mapping, or a single string and is
    always stored as the canonical flat list (see normalize_skills).
    """
    contact: Contact
    summary: Optional[str] = None
    experience: List[ExperienceItem] = field(default_factory=list)
    education: List[EducationItem] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "summary", _optional_str(self.summary))
        object.__setattr__(self, "experience", [e for e in _as_list(self.experience) if isinstance(e, ExperienceItem)])
        object.__setattr__(self, "education", [e for e in _as_list(self.education) if isinstance(e, EducationItem)])
        object.__setattr__(self, "skills", normalize_skills(self.skills))

    @property
    def bullets(self) -> List[str]:
        return [b for e in self.experience for b in e.bullets]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StructuredResume":
        """Tolerant constructor for LLM output and stored records; malformed entries are skipped."""
        data = data if isinstance(data, Mapping) else {}
        experience = [
            ExperienceItem.from_dict(e) for e in _as_list(data.get("experience")) if isinstance(e, Mapping)
        ]
        education = [
            EducationItem.from_dict(e) for e in _as_list(data.get("education")) if isinstance(e, Mapping)
        ]
        return cls(
            contact=Contact.from_dict(data.get("contact")),
            summary=data.get("summary"),
            experience=experience,
            education=education,
            skills=data.get("skills"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class JobMetadata:
    company: Optional[str] = None
    role: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "JobMetadata":
        data = data if isinstance(data, Mapping) else {}
        return cls(
            company=_optional_str(data.get("company")),
            role=_optional_str(data.get("role")),
            location=_optional_str(data.get("location")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_application_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ApplicationRecord:
    """
    One tailoring run persisted for an account.

    `keywords.missing` holds the recommendation lines (what the dashboard shows);
    the raw unmatched tokens are recomputed on demand.
    """
    user_id: str
    job_description: str
    resume: StructuredResume
    tailored_resume: StructuredResume
    ats_score: int
    keywords: Dict[str, List[str]]
    job_metadata: JobMetadata = field(default_factory=JobMetadata)
    status: ApplicationStatus = ApplicationStatus.APPLIED
    application_id: str = field(default_factory=new_application_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "application_id": self.application_id,
            "user_id": self.user_id,
            "job_description": self.job_description,
            "job_metadata": self.job_metadata.to_dict(),
            "resume": self.resume.to_dict(),
            "tailored_resume": self.tailored_resume.to_dict(),
            "ats_score": self.ats_score,
            "keywords": {
                "matched": list(self.keywords.get("matched", [])),
                "missing": list(self.keywords.get("missing", [])),
            },
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ApplicationRecord":
        keywords = data.get("keywords") or {}
        created_raw = data.get("created_at")
        return cls(
            application_id=data["application_id"],
            user_id=data["user_id"],
            job_description=data.get("job_description") or "",
            job_metadata=JobMetadata.from_dict(data.get("job_metadata")),
            resume=StructuredResume.from_dict(data.get("resume") or {}),
            tailored_resume=StructuredResume.from_dict(data.get("tailored_resume") or {}),
            ats_score=int(data.get("ats_score") or 0),
            keywords={
                "matched": list(keywords.get("matched") or []),
                "missing": list(keywords.get("missing") or []),
            },
            status=ApplicationStatus(data.get("status") or ApplicationStatus.APPLIED.value),
            created_at=datetime.fromisoformat(created_raw) if created_raw else utc_now(),
        )
