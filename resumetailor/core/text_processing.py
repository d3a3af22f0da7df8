from __future__ import annotations

import re
import unicodedata
from functools import lru_cache
from typing import List, Pattern

# NOTE: Shared by the keyword extractor, the matcher and the recommendation
# generator. Tokenization rules live here only.

_NON_WORD_RE = re.compile(r"[^\w\s]")

# Exact-match stop words. Substrings are never filtered ("teamwork" survives "team").
STOPWORDS = frozenset({
    # English function words
    "a", "an", "the", "and", "or", "but", "nor", "to", "of", "in", "for", "on", "with", "as", "at", "by", "from",
    "is", "are", "be", "been", "being", "was", "were", "am", "has", "have", "had", "having", "do", "does", "did",
    "this", "that", "these", "those", "it", "its", "they", "them", "their", "you", "your", "yours",
    "we", "our", "ours", "us", "he", "she", "his", "her", "him", "who", "whom", "what", "which", "where", "when",
    "will", "can", "may", "must", "should", "could", "would", "shall", "might",
    "not", "no", "yes", "all", "any", "each", "every", "some", "other", "more", "most", "very", "well",
    "into", "over", "under", "between", "within", "without", "across", "per", "through", "while", "via",
    "about", "also", "such", "than", "then", "there", "here", "how", "why", "just", "only", "own", "etc",
    "new", "one", "two", "three", "plus", "including", "like", "based", "using", "use",
    # job-posting filler: frequent in every listing, zero signal for matching
    "role", "roles", "job", "jobs", "position", "positions", "responsibilities", "responsibility",
    "requirements", "requirement", "required", "require", "requires", "preferred", "skills", "skill",
    "experience", "experienced", "team", "teams", "work", "working", "years", "year",
    "ability", "able", "strong", "excellent", "good", "great", "ideal", "knowledge", "understanding",
    "familiarity", "proficiency", "proven", "track", "record", "demonstrated",
    "apply", "applicant", "applicants", "application", "applications", "submit",
    "candidate", "candidates", "qualified", "qualifications", "successful",
    "hire", "hiring", "join", "joining", "company", "environment", "culture",
    "competitive", "opportunity", "opportunities", "benefit", "benefits", "salary", "package",
    "responsible", "seeking", "looking", "need", "needs", "want", "wants", "help", "make",
    "bonus", "nice", "equal", "employer", "remote", "hybrid", "onsite", "full", "time", "part",
    "https", "http", "www", "com",
})


def is_stopword(token: str) -> bool:
    return token in STOPWORDS


def normalize_text(text: str) -> str:
    """
    Deterministic normalization for display strings and stored fields.

    - NFKC (smart quotes, ligatures)
    - NBSP -> space, unicode dashes -> '-'
    - collapse whitespace
    """
    if not text:
        return ""
    t = unicodedata.normalize("NFKC", text)
    t = t.replace("\u00a0", " ")
    t = re.sub(r"[\u2010-\u2015]", "-", t)
    return " ".join(t.split())


def tokenize_stream(text: str) -> List[str]:
    """Ordered token stream: lowercase, non-word chars -> spaces, >= 3 chars, no stop words."""
    if not text:
        return []
    cleaned = _NON_WORD_RE.sub(" ", text.lower())
    return [tok for tok in cleaned.split() if len(tok) >= 3 and tok not in STOPWORDS]


@lru_cache(maxsize=4096)
def term_pattern(term: str) -> Pattern[str]:
    """
    Whole-term regex for a (possibly multi-word) lowercase term.

    Lookarounds instead of \\b so terms ending in symbols (c++, c#, ci/cd) still
    anchor correctly.
    """
    escaped = r"\s+".join(re.escape(part) for part in term.split())
    return re.compile(rf"(?<!\w){escaped}(?!\w)")


def count_term(text: str, term: str) -> int:
    if not text or not term:
        return 0
    return len(term_pattern(term.lower()).findall(text.lower()))


def has_term(text: str, term: str) -> bool:
    if not text or not term:
        return False
    return term_pattern(term.lower()).search(text.lower()) is not None
