from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

# --- Storage ---

# Local persistence for application records (JSON repository).
RESUMETAILOR_DATA_DIR: str = os.environ.get("RESUMETAILOR_DATA_DIR", "").strip() or ".resumetailor"

# --- ATS scorer ---

# Optional replacement for the bundled term dictionaries (same JSON shape as
# resumetailor/ats/vocabulary.json). Empty -> bundled file.
ATS_VOCABULARY_PATH: str | None = os.environ.get("RESUMETAILOR_ATS_VOCABULARY") or None

# --- Redis (shared rate-limit counters across server instances) ---

RESUMETAILOR_REDIS_URL: str | None = os.environ.get("RESUMETAILOR_REDIS_URL") or None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Usage quota ---

# Applications a free account may create. Pro accounts are unlimited.
FREE_TIER_APPLICATION_LIMIT: int = _env_int("RESUMETAILOR_FREE_TIER_LIMIT", 10)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: int


def load_rate_limit_config() -> RateLimitConfig:
    return RateLimitConfig(
        max_requests=_env_int("RESUMETAILOR_RATE_LIMIT_MAX_REQUESTS", 100),
        window_seconds=_env_int("RESUMETAILOR_RATE_LIMIT_WINDOW_SECONDS", 3600),
    )


def _parse_llm_chain(raw: str | None) -> List[Tuple[str, str]]:
    """
    Parses: "openai/gpt-4o-mini,anthropic/claude-sonnet-4-6"
    -> [("openai","gpt-4o-mini"), ("anthropic","claude-sonnet-4-6")]
    """
    if not raw:
        return []
    items: List[Tuple[str, str]] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "/" not in part:
            # "gpt-4o-mini" shorthand -> assume openai
            items.append(("openai", part))
            continue
        provider, model = part.split("/", 1)
        provider = provider.strip().lower()
        model = model.strip()
        if provider and model:
            items.append((provider, model))
    return items


@dataclass(frozen=True)
class LLMFailoverConfig:
    chain: List[Tuple[str, str]]
    max_retries: int
    breaker_consecutive_fails: int


def load_llm_failover_config() -> LLMFailoverConfig:
    chain_raw = os.getenv(
        "RESUMETAILOR_LLM_CHAIN",
        "openai/gpt-4o-mini,anthropic/claude-sonnet-4-6",
    )
    return LLMFailoverConfig(
        chain=_parse_llm_chain(chain_raw),
        max_retries=_env_int("RESUMETAILOR_LLM_MAX_RETRIES", 2),
        breaker_consecutive_fails=_env_int("RESUMETAILOR_LLM_CIRCUIT_BREAKER_FAILS", 2),
    )


# --- Language model (resume structuring / tailoring / rewriting) ---

# Never logged, never written to disk, never included in structured output.
RESUMETAILOR_LLM_KEY: str | None = os.environ.get("RESUMETAILOR_LLM_KEY") or None

# Provider selection: "openai" | "anthropic"  (default: openai)
RESUMETAILOR_LLM_PROVIDER: str = os.environ.get("RESUMETAILOR_LLM_PROVIDER", "openai").strip().lower()

_DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-6",
}
RESUMETAILOR_LLM_MODEL: str = (
        os.environ.get("RESUMETAILOR_LLM_MODEL", "").strip()
        or _DEFAULT_MODELS.get(RESUMETAILOR_LLM_PROVIDER, "gpt-4o-mini")
)


def resolve_api_key(provider: str) -> str | None:
    """Provider-specific key first, then the generic RESUMETAILOR_LLM_KEY."""
    provider = (provider or "").strip().lower()
    if provider == "openai":
        specific = os.getenv("RESUMETAILOR_OPENAI_KEY") or os.getenv("OPENAI_API_KEY")
    elif provider == "anthropic":
        specific = os.getenv("RESUMETAILOR_ANTHROPIC_KEY") or os.getenv("ANTHROPIC_API_KEY")
    else:
        specific = None
    return specific or os.getenv("RESUMETAILOR_LLM_KEY") or None


def llm_configured() -> bool:
    return bool(
        os.getenv("RESUMETAILOR_OPENAI_KEY")
        or os.getenv("RESUMETAILOR_ANTHROPIC_KEY")
        or os.getenv("RESUMETAILOR_LLM_KEY")
        or os.getenv("OPENAI_API_KEY")
        or os.getenv("ANTHROPIC_API_KEY")
    )


def default_data_dir() -> Path:
    return Path(RESUMETAILOR_DATA_DIR)
