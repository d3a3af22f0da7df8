"""
resumetailor/llm/tailor.py

ResumeTailor protocol + LLMResumeTailor / FailoverResumeTailor implementations.

Design principles:
- One chat call per operation, hard timeout
- JSON-object responses for structured operations, parsed and normalized
  through StructuredResume.from_dict
- Raises ResumeTailorError on any failure (timeout, bad output, API error);
  callers fall back to the untailored resume
- API keys MUST NOT appear in any log, exception message or structured output
"""
from __future__ import annotations

import json
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

import anthropic
import openai

from resumetailor import config as _config
from resumetailor.ats.types import ScoreResult
from resumetailor.llm.prompt import (
    JOB_METADATA_SYSTEM_PROMPT,
    REWRITE_SYSTEM_PROMPT,
    STRUCTURE_SYSTEM_PROMPT,
    TAILOR_SYSTEM_PROMPT,
    build_job_metadata_prompt,
    build_rewrite_prompt,
    build_structure_prompt,
    build_tailor_prompt,
)
from resumetailor.models import JobMetadata, StructuredResume

T = TypeVar("T")

TRANSIENT_HINTS = (
    "rate limit",
    "ratelimit",
    "too many requests",
    "overloaded",
    "timeout",
    "timed out",
    "try again",
    "server error",
    "503",
    "529",
)


class ResumeTailorError(Exception):
    """Raised when a language-model operation fails for any reason."""


class ResumeTailor(Protocol):
    def structure_resume(self, resume_text: str) -> StructuredResume:
        ...

    def tailor_resume(
            self, resume: StructuredResume, job_description: str, *, score: Optional[ScoreResult] = None
    ) -> StructuredResume:
        ...

    def rewrite_section(self, original_text: str, instruction: str, job_context: str) -> str:
        ...

    def extract_job_metadata(self, job_description: str) -> JobMetadata:
        ...


def merge_tailored(original: StructuredResume, tailored: Dict[str, Any]) -> StructuredResume:
    """
    Overlay the model's resume on the original so fields it dropped survive
    (contact details, education, skills).
    """
    merged = original.to_dict()
    for key, value in tailored.items():
        if key in merged and value not in (None, "", [], {}):
            merged[key] = value
    return StructuredResume.from_dict(merged)


class LLMResumeTailor:
    """
    Calls an LLM (OpenAI or Anthropic) for resume structuring, tailoring,
    rewriting and job metadata extraction.
    """

    _TIMEOUT_SECONDS = 30
    _MAX_TOKENS = 3000

    def __init__(
            self,
            *,
            api_key: str,
            model: Optional[str] = None,
            provider: str = "openai",
    ) -> None:
        if not api_key:
            raise ResumeTailorError("LLM API key must not be empty.")
        self._api_key = api_key
        self._model = (model or _config.RESUMETAILOR_LLM_MODEL).strip()
        self._provider = provider.strip().lower()

        if self._provider not in ("anthropic", "openai"):
            raise ResumeTailorError(
                f"Unsupported provider '{self._provider}'. Use 'openai' or 'anthropic'."
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def structure_resume(self, resume_text: str) -> StructuredResume:
        if not (resume_text or "").strip():
            raise ResumeTailorError("Resume text is empty.")
        data = self._complete_json(STRUCTURE_SYSTEM_PROMPT, build_structure_prompt(resume_text), temperature=0.1)
        resume = StructuredResume.from_dict(data)
        if not resume.contact.name and not resume.experience:
            raise ResumeTailorError("LLM returned a resume without contact name or experience.")
        return resume

    def tailor_resume(
            self, resume: StructuredResume, job_description: str, *, score: Optional[ScoreResult] = None
    ) -> StructuredResume:
        prompt = build_tailor_prompt(resume=resume, job_description=job_description, score=score)
        data = self._complete_json(TAILOR_SYSTEM_PROMPT, prompt, temperature=0.7)
        # Some models wrap the resume: {"tailored_resume": {...}}
        if isinstance(data.get("tailored_resume"), dict):
            data = data["tailored_resume"]
        return merge_tailored(resume, data)

    def rewrite_section(self, original_text: str, instruction: str, job_context: str) -> str:
        prompt = build_rewrite_prompt(original_text=original_text, instruction=instruction, job_context=job_context)
        text = self._complete(REWRITE_SYSTEM_PROMPT, prompt, json_mode=False, temperature=0.7).strip()
        return text or original_text

    def extract_job_metadata(self, job_description: str) -> JobMetadata:
        data = self._complete_json(
            JOB_METADATA_SYSTEM_PROMPT, build_job_metadata_prompt(job_description), temperature=0.1
        )
        return JobMetadata.from_dict(data)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _complete_json(self, system: str, prompt: str, *, temperature: float) -> Dict[str, Any]:
        raw = self._complete(system, prompt, json_mode=True, temperature=temperature)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            raise ResumeTailorError("LLM returned invalid JSON.") from None
        if not isinstance(data, dict):
            raise ResumeTailorError("LLM returned JSON that is not an object.")
        return data

    def _complete(self, system: str, prompt: str, *, json_mode: bool, temperature: float) -> str:
        try:
            if self._provider == "anthropic":
                return self._call_anthropic(system, prompt, json_mode=json_mode, temperature=temperature)
            return self._call_openai(system, prompt, json_mode=json_mode, temperature=temperature)
        except ResumeTailorError:
            raise
        except Exception as exc:
            # Sanitize: never let the key propagate through exception messages
            raise ResumeTailorError(f"LLM call failed: {type(exc).__name__}") from None

    # ------------------------------------------------------------------
    # Provider implementations
    # ------------------------------------------------------------------

    def _call_anthropic(self, system: str, prompt: str, *, json_mode: bool, temperature: float) -> str:
        client = anthropic.Anthropic(api_key=self._api_key)
        if json_mode:
            system = system + "\nRespond with a single JSON object and nothing else."
        try:
            message = client.messages.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                timeout=self._TIMEOUT_SECONDS,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError:
            raise ResumeTailorError(f"Anthropic API timed out after {self._TIMEOUT_SECONDS} seconds.")
        except anthropic.APIError as exc:
            raise ResumeTailorError(f"Anthropic API error: {type(exc).__name__}") from None

        for block in message.content:
            if block.type == "text":
                return block.text
        raise ResumeTailorError("Anthropic returned no text content.")

    def _call_openai(self, system: str, prompt: str, *, json_mode: bool, temperature: float) -> str:
        client = openai.OpenAI(api_key=self._api_key, timeout=self._TIMEOUT_SECONDS)
        kwargs: Dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = client.chat.completions.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                **kwargs,
            )
        except openai.APITimeoutError:
            raise ResumeTailorError(f"OpenAI API timed out after {self._TIMEOUT_SECONDS} seconds.")
        except openai.APIError as exc:
            raise ResumeTailorError(f"OpenAI API error: {type(exc).__name__}") from None

        content = response.choices[0].message.content
        if not content:
            raise ResumeTailorError("OpenAI returned empty content.")
        return content


BACKOFF_BASE_SECONDS = 0.8
BACKOFF_MAX_JITTER_SECONDS = 0.25


def _is_transient_error(err: Exception) -> bool:
    text = str(err).lower()
    return any(hint in text for hint in TRANSIENT_HINTS)


def _sleep_backoff(attempt: int) -> None:
    """Doubles per attempt from BACKOFF_BASE_SECONDS, plus a little jitter."""
    delay = BACKOFF_BASE_SECONDS * 2 ** attempt
    time.sleep(delay + random.uniform(0.0, BACKOFF_MAX_JITTER_SECONDS))


Candidate = Tuple[str, str]


@dataclass
class FailoverState:
    """Mutable per-instance bookkeeping for FailoverResumeTailor."""
    consecutive_failures: int = 0
    disabled_reason: Optional[str] = None
    preferred: Optional[Candidate] = None

    @property
    def disabled(self) -> bool:
        return self.disabled_reason is not None


class FailoverResumeTailor:
    """
    ResumeTailor that walks a (provider, model) chain.

    Transient errors are retried on the same candidate with backoff. The last
    candidate that succeeded is tried first next time. After
    breaker_consecutive_fails failed candidates in a row every call fails fast
    until a new instance is built.
    """

    def __init__(
            self,
            *,
            api_key_resolver: Callable[[str], Optional[str]],
            candidates: List[Candidate],
            max_retries: int = 2,
            breaker_consecutive_fails: int = 2,
    ) -> None:
        self._api_key_resolver = api_key_resolver
        self._candidates = candidates
        self._max_retries = max(0, max_retries)
        self._breaker_fails = max(1, breaker_consecutive_fails)
        self._state = FailoverState()

    @classmethod
    def from_config(cls) -> "FailoverResumeTailor":
        cfg = _config.load_llm_failover_config()
        return cls(
            api_key_resolver=_config.resolve_api_key,
            candidates=cfg.chain,
            max_retries=cfg.max_retries,
            breaker_consecutive_fails=cfg.breaker_consecutive_fails,
        )

    def is_disabled(self) -> bool:
        return self._state.disabled

    def structure_resume(self, resume_text: str) -> StructuredResume:
        return self._run(lambda t: t.structure_resume(resume_text))

    def tailor_resume(
            self, resume: StructuredResume, job_description: str, *, score: Optional[ScoreResult] = None
    ) -> StructuredResume:
        return self._run(lambda t: t.tailor_resume(resume, job_description, score=score))

    def rewrite_section(self, original_text: str, instruction: str, job_context: str) -> str:
        return self._run(lambda t: t.rewrite_section(original_text, instruction, job_context))

    def extract_job_metadata(self, job_description: str) -> JobMetadata:
        return self._run(lambda t: t.extract_job_metadata(job_description))

    def _run(self, op: Callable[[LLMResumeTailor], T]) -> T:
        if self._state.disabled:
            raise ResumeTailorError(f"LLM tailoring disabled: {self._state.disabled_reason}")

        errors: List[ResumeTailorError] = []
        for candidate in self._ordered_candidates():
            try:
                tailor = self._build_tailor(candidate)
            except ResumeTailorError as exc:
                # misconfigured candidates never count toward the breaker
                errors.append(exc)
                continue

            try:
                out = self._call_with_retries(tailor, op)
            except ResumeTailorError as exc:
                errors.append(exc)
                if self._record_failure():
                    break
                continue

            self._state.consecutive_failures = 0
            self._state.preferred = candidate
            return out

        if not errors:
            raise ResumeTailorError("LLM tailoring failed: no candidates available")
        raise errors[-1]

    def _build_tailor(self, candidate: Candidate) -> LLMResumeTailor:
        provider, model = candidate
        api_key = self._api_key_resolver(provider)
        if not api_key:
            raise ResumeTailorError(f"Missing API key for provider: {provider}")
        return LLMResumeTailor(api_key=api_key, provider=provider, model=model)

    def _call_with_retries(self, tailor: LLMResumeTailor, op: Callable[[LLMResumeTailor], T]) -> T:
        attempt = 0
        while True:
            try:
                return op(tailor)
            except ResumeTailorError as exc:
                if attempt >= self._max_retries or not _is_transient_error(exc):
                    raise
            _sleep_backoff(attempt)
            attempt += 1

    def _record_failure(self) -> bool:
        """Count one failed candidate; True once the breaker has tripped."""
        self._state.consecutive_failures += 1
        if self._state.consecutive_failures < self._breaker_fails:
            return False
        self._state.disabled_reason = f"circuit-breaker tripped after {self._state.consecutive_failures} failures"
        return True

    def _ordered_candidates(self) -> List[Candidate]:
        preferred = self._state.preferred
        if preferred is None:
            return list(self._candidates)
        return [preferred] + [c for c in self._candidates if c != preferred]
