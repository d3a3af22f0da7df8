from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docx import Document
from pypdf import PdfReader

from resumetailor.models import StructuredResume


@dataclass(frozen=True)
class LoadedResume:
    text: str
    source: str  # "text" | "pdf" | "docx" | "none"
    path: Optional[str] = None


def _read_pdf(p: Path) -> str:
    reader = PdfReader(str(p))
    parts = []
    for page in reader.pages:
        t = page.extract_text() or ""
        if t.strip():
            parts.append(t)
    return "\n".join(parts).strip()


def _read_docx(p: Path) -> str:
    doc = Document(str(p))
    parts = [para.text for para in doc.paragraphs if para.text and para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text and c.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts).strip()


def load_resume_text(
        *,
        resume_text_path: Optional[str] = None,
        resume_pdf_path: Optional[str] = None,
        resume_docx_path: Optional[str] = None,
) -> LoadedResume:
    """
    Load raw resume content for the structuring service.
    Precedence:
      1) resume_text_path (.txt)
      2) resume_pdf_path (.pdf)
      3) resume_docx_path (.docx)
      4) none
    Best-effort: failures return source='none' and empty text.
    """
    if resume_text_path:
        p = Path(resume_text_path)
        try:
            return LoadedResume(text=p.read_text(encoding="utf-8"), source="text", path=str(p))
        except (OSError, UnicodeDecodeError):
            return LoadedResume(text="", source="none", path=str(p))

    for raw_path, source, reader in (
            (resume_pdf_path, "pdf", _read_pdf),
            (resume_docx_path, "docx", _read_docx),
    ):
        if not raw_path:
            continue
        p = Path(raw_path)
        try:
            text = reader(p)
        except Exception:
            # pypdf / python-docx raise a variety of parser errors on damaged files
            return LoadedResume(text="", source="none", path=str(p))
        if not text:
            return LoadedResume(text="", source="none", path=str(p))
        return LoadedResume(text=text, source=source, path=str(p))

    return LoadedResume(text="", source="none", path=None)


def load_structured_resume(path: str | Path) -> StructuredResume:
    """Read a StructuredResume from JSON. Raises on a missing file or invalid JSON."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return StructuredResume.from_dict(data)
