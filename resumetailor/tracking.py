from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from resumetailor import config
from resumetailor.models import ApplicationRecord


class QuotaExceededError(Exception):
    pass


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _best_effort_lockdown_file_permissions(path: Path) -> None:
    """
    Best-effort privacy: on Unix, set 600. On Windows, no-op.
    """
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


class ApplicationRepository(Protocol):
    def get(self, application_id: str) -> Optional[ApplicationRecord]:
        ...

    def put(self, record: ApplicationRecord) -> None:
        ...

    def list_for_user(self, user_id: str) -> List[ApplicationRecord]:
        """Newest first."""
        ...

    def count_for_user(self, user_id: str) -> int:
        ...


class JsonApplicationRepository:
    """
    Local persistence using a JSON file.

    Layout:
      <base_dir>/
        applications.json -> { "<application_id>": {ApplicationRecord...}, ... }
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.applications_path = base_dir / "applications.json"
        _ensure_dir(self.base_dir)

    def _load(self) -> Dict[str, ApplicationRecord]:
        if not self.applications_path.exists():
            return {}
        raw_text = self.applications_path.read_text(encoding="utf-8").strip()
        if not raw_text:
            return {}
        data = json.loads(raw_text)
        return {app_id: ApplicationRecord.from_dict(entry) for app_id, entry in data.items()}

    def _write(self, records: Dict[str, ApplicationRecord]) -> None:
        payload = {app_id: rec.to_dict() for app_id, rec in records.items()}
        self.applications_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        _best_effort_lockdown_file_permissions(self.applications_path)

    def get(self, application_id: str) -> Optional[ApplicationRecord]:
        return self._load().get(application_id)

    def put(self, record: ApplicationRecord) -> None:
        records = self._load()
        records[record.application_id] = record
        self._write(records)

    def list_for_user(self, user_id: str) -> List[ApplicationRecord]:
        mine = [r for r in self._load().values() if r.user_id == user_id]
        mine.sort(key=lambda r: r.created_at, reverse=True)
        return mine

    def count_for_user(self, user_id: str) -> int:
        return sum(1 for r in self._load().values() if r.user_id == user_id)


def check_usage_quota(
        repo: ApplicationRepository,
        user_id: str,
        *,
        subscription: str = "free",
        limit: Optional[int] = None,
) -> int:
    """
    Raise QuotaExceededError when a free account has used its applications.
    Returns the number of applications already stored. Pro accounts are unlimited.
    """
    used = repo.count_for_user(user_id)
    if (subscription or "free").strip().lower() == "pro":
        return used
    cap = config.FREE_TIER_APPLICATION_LIMIT if limit is None else limit
    if used >= cap:
        raise QuotaExceededError(
            f"Free tier limit reached ({cap} applications). Upgrade to Pro for unlimited tailoring."
        )
    return used


def default_repo_dir() -> Path:
    return config.default_data_dir()
