"""
Text similarity helpers used by outline validation and stitching.
Pure string functions, no I/O.
"""

import re
from typing import Iterable, List, Optional

from rapidfuzz.distance import Levenshtein

# Key terms are content-bearing words longer than this many characters
KEY_TERM_MIN_LENGTH = 4
# Words kept when matching a title word-by-word (e.g. expected-topic checks)
TITLE_WORD_MIN_LENGTH = 3

COMMON_WORDS = frozenset([
    "about", "after", "before", "during", "through",
    "under", "over", "between", "their", "which",
    "where", "when", "while", "these", "those",
    "could", "would", "should", "might", "must",
])

_EDGE_PUNCTUATION = "\"'`.,;:!?()[]{}<>*#“”‘’"


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    text = " ".join(text.split())
    text = re.sub(r"[^\w\s]", "", text.lower())
    return text.strip()


def is_common_word(word: str) -> bool:
    return word.lower() in COMMON_WORDS


def _clean_word(word: str) -> str:
    return word.strip(_EDGE_PUNCTUATION)


def key_terms_from_text(text: str, limit: Optional[int] = None) -> List[str]:
    """
    Content-bearing words of `text` in order of appearance:
    longer than KEY_TERM_MIN_LENGTH characters and not a common word.
    """
    terms = []
    for raw in (text or "").split():
        word = _clean_word(raw)
        if len(word) > KEY_TERM_MIN_LENGTH and not is_common_word(word):
            terms.append(word)
        if limit is not None and len(terms) >= limit:
            break
    return terms


def title_words(title: str) -> List[str]:
    """Words of a title split on colons, dashes and whitespace."""
    return [
        w.lower() for w in re.split(r"[:\-\s]+", title or "")
        if len(w) > TITLE_WORD_MIN_LENGTH
    ]


def dedupe(items: Iterable[str]) -> List[str]:
    """Order-preserving de-duplication."""
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def contains_phrase(text: str, phrase: str) -> bool:
    """Case-insensitive substring test."""
    if not phrase:
        return False
    return phrase.lower() in (text or "").lower()


def contains_whole_phrase(text: str, phrase: str) -> bool:
    """Case-insensitive phrase test that only matches on word boundaries."""
    if not phrase or not phrase.strip():
        return False
    pattern = r"(?<!\w)" + re.escape(phrase.strip()) + r"(?!\w)"
    return re.search(pattern, text or "", re.IGNORECASE) is not None


def fuzzy_title_overlap(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a_lower, b_lower = (a or "").lower(), (b or "").lower()
    if not a_lower or not b_lower:
        return False
    return a_lower in b_lower or b_lower in a_lower


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (insert, delete, substitute all cost 1)."""
    return Levenshtein.distance(a or "", b or "")


def string_similarity(a: str, b: str) -> float:
    """Edit distance normalized by the longer string: 1.0 identical, 0.0 disjoint."""
    return Levenshtein.normalized_similarity(a or "", b or "")


def word_jaccard(a: str, b: str) -> float:
    """Jaccard overlap of lowercased words longer than TITLE_WORD_MIN_LENGTH."""
    if not a or not b:
        return 0.0
    words_a = {w for w in a.lower().split() if len(w) > TITLE_WORD_MIN_LENGTH}
    words_b = {w for w in b.lower().split() if len(w) > TITLE_WORD_MIN_LENGTH}
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def count_words(text: str) -> int:
    return len((text or "").split())
