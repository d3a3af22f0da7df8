from __future__ import annotations

from typing import Dict, List, Optional

from resumetailor.ats.categories import Vocabulary, DEFAULT_VOCABULARY
from resumetailor.core.text_processing import count_term, tokenize_stream

MAX_KEYWORDS = 50
MIN_KEYWORD_LENGTH = 3
# Generic words need repetition to count; recognized domain terms do not.
MIN_GENERIC_FREQUENCY = 2


def extract_keywords(
        text: str,
        *,
        vocabulary: Optional[Vocabulary] = None,
        max_keywords: int = MAX_KEYWORDS,
) -> List[str]:
    """
    Ranked candidate keywords from a job description.

    - token frequencies from the stop-word-filtered stream
    - every technical/tool/certification term found in the raw text is kept,
      even with a single mention (multi-word terms included)
    - generic tokens need MIN_GENERIC_FREQUENCY mentions
    - frequency descending, ties in first-seen order, top max_keywords
    """
    if not text:
        return []
    vocab = vocabulary if vocabulary is not None else DEFAULT_VOCABULARY

    counts: Dict[str, int] = {}
    for tok in tokenize_stream(text):
        counts[tok] = counts.get(tok, 0) + 1

    lowered = text.lower()
    domain: Dict[str, int] = {}
    for term in vocab.domain_terms():
        if len(term) < MIN_KEYWORD_LENGTH:
            continue
        n = count_term(lowered, term)
        if n:
            domain[term] = max(n, counts.get(term, 0))

    candidates: Dict[str, int] = {}
    for tok, n in counts.items():
        if tok in domain:
            candidates[tok] = domain[tok]
        elif n >= MIN_GENERIC_FREQUENCY:
            candidates[tok] = n
    for term, n in domain.items():
        candidates.setdefault(term, n)

    # sorted() is stable: equal counts keep insertion (first-seen) order
    ranked = sorted(candidates.items(), key=lambda kv: -kv[1])
    return [k for k, _ in ranked[:max_keywords]]
