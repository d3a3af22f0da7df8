import json
from pathlib import Path
import pytest

from resumetailor.models import StructuredResume

# Sample resumes and postings live in tests/fixtures
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_text(fixtures_dir):
    """
    load_text("job_backend.txt") -> file contents as str
    """
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """
    load_json("resume_backend.json") -> parsed JSON (raw dict, no model conversion)
    """
    def _load(name: str) -> dict:
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def backend_resume(load_json) -> StructuredResume:
    """Two roles, a bachelor's degree, skills given as a category mapping."""
    return StructuredResume.from_dict(load_json("resume_backend.json"))


@pytest.fixture
def backend_job(load_text) -> str:
    """Senior Python Engineer posting: Python/AWS/Docker/Kubernetes/Terraform, Jira/Confluence, a degree."""
    return load_text("job_backend.txt")
