from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from resumetailor import config

DEFAULT_VOCABULARY_PATH = Path(__file__).with_name("vocabulary.json")


class KeywordCategory(str, Enum):
    TECHNICAL = "technical"
    TOOL = "tool"
    CERTIFICATION = "certification"
    SOFT_SKILL = "soft_skill"
    INDUSTRY = "industry"
    GENERIC = "generic"


CATEGORY_WEIGHTS: Dict[KeywordCategory, int] = {
    KeywordCategory.TECHNICAL: 3,
    KeywordCategory.TOOL: 2,
    KeywordCategory.CERTIFICATION: 2,
    KeywordCategory.SOFT_SKILL: 1,
    KeywordCategory.INDUSTRY: 1,
    KeywordCategory.GENERIC: 1,
}

# First match wins.
CLASSIFICATION_ORDER: Tuple[KeywordCategory, ...] = (
    KeywordCategory.TECHNICAL,
    KeywordCategory.TOOL,
    KeywordCategory.CERTIFICATION,
    KeywordCategory.SOFT_SKILL,
    KeywordCategory.INDUSTRY,
)


def _normalize_term(term: str) -> str:
    return " ".join((term or "").lower().split())


def _clean_terms(items: Iterable[str]) -> Tuple[str, ...]:
    out = []
    seen = set()
    for it in items or []:
        if not isinstance(it, str):
            continue
        t = _normalize_term(it)
        if t and t not in seen:
            out.append(t)
            seen.add(t)
    return tuple(out)


@dataclass(frozen=True)
class Vocabulary:
    """
    Known terms per category, as data.

    Tuples keep the file order (used when scanning text for domain terms);
    membership tests go through the frozenset views.
    """
    technical: Tuple[str, ...] = ()
    tool: Tuple[str, ...] = ()
    certification: Tuple[str, ...] = ()
    soft_skill: Tuple[str, ...] = ()
    industry: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for c in CLASSIFICATION_ORDER:
            object.__setattr__(self, c.value, _clean_terms(getattr(self, c.value)))
        object.__setattr__(
            self, "_sets", {c: frozenset(getattr(self, c.value)) for c in CLASSIFICATION_ORDER}
        )

    def terms(self, category: KeywordCategory) -> Tuple[str, ...]:
        if category is KeywordCategory.GENERIC:
            return ()
        return getattr(self, category.value)

    def contains(self, category: KeywordCategory, term: str) -> bool:
        if category is KeywordCategory.GENERIC:
            return False
        return _normalize_term(term) in self._sets[category]

    def domain_terms(self) -> Tuple[str, ...]:
        """Terms the keyword extractor always keeps: technical, tool, certification."""
        seen = set()
        out = []
        for t in self.technical + self.tool + self.certification:
            if t not in seen:
                out.append(t)
                seen.add(t)
        return tuple(out)

    @classmethod
    def from_dict(cls, data: Dict[str, Iterable[str]]) -> "Vocabulary":
        return cls(
            technical=_clean_terms(data.get("technical", [])),
            tool=_clean_terms(data.get("tool", [])),
            certification=_clean_terms(data.get("certification", [])),
            soft_skill=_clean_terms(data.get("soft_skill", [])),
            industry=_clean_terms(data.get("industry", [])),
        )


def load_vocabulary(path: Optional[Path] = None) -> Vocabulary:
    """
    Load term dictionaries from JSON.
    Precedence: explicit path -> RESUMETAILOR_ATS_VOCABULARY -> bundled vocabulary.json
    """
    if path is None:
        path = Path(config.ATS_VOCABULARY_PATH) if config.ATS_VOCABULARY_PATH else DEFAULT_VOCABULARY_PATH
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return Vocabulary.from_dict(data)


DEFAULT_VOCABULARY = load_vocabulary()


def _vocab(vocabulary: Optional[Vocabulary]) -> Vocabulary:
    return vocabulary if vocabulary is not None else DEFAULT_VOCABULARY


def is_technical(term: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    return _vocab(vocabulary).contains(KeywordCategory.TECHNICAL, term)


def is_tool(term: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    return _vocab(vocabulary).contains(KeywordCategory.TOOL, term)


def is_certification(term: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    return _vocab(vocabulary).contains(KeywordCategory.CERTIFICATION, term)


def is_soft_skill(term: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    return _vocab(vocabulary).contains(KeywordCategory.SOFT_SKILL, term)


def is_industry(term: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    return _vocab(vocabulary).contains(KeywordCategory.INDUSTRY, term)


def classify_keyword(keyword: str, vocabulary: Optional[Vocabulary] = None) -> KeywordCategory:
    vocab = _vocab(vocabulary)
    for category in CLASSIFICATION_ORDER:
        if vocab.contains(category, keyword):
            return category
    return KeywordCategory.GENERIC


def keyword_weight(keyword: str, vocabulary: Optional[Vocabulary] = None) -> int:
    return CATEGORY_WEIGHTS[classify_keyword(keyword, vocabulary)]
