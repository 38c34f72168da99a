"""Stitching generated chunks into one script, with duplicate and meta-text cleanup."""

import re
from typing import List, Optional, Sequence, Tuple

from longform_scripts.domain.text_similarity import count_words, word_jaccard

CHUNK_SEPARATOR = "\n\n---\n\n"
# Sections whose opening text is more similar than this to an earlier section are dropped
DUPLICATE_SIMILARITY_THRESHOLD = 0.8
FINGERPRINT_CHARS = 500

_META_LINE_PATTERNS = [
    re.compile(r"^I'll (expand|add|continue).*?:[ \t]*\n?", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Here'?s? (the|my|a)\b.*?:[ \t]*\n?", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\[?Continuing.*?\]?\.{3}[ \t]*\n?", re.IGNORECASE | re.MULTILINE),
]

_META_BLOCK_PATTERNS = [
    re.compile(r"###\s*Here's.*word.*expansion.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"###\s*Note:.*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\[Total word count added:.*?\]", re.IGNORECASE),
    re.compile(r"\[Word count:.*?\]", re.IGNORECASE),
    re.compile(r"\[[^\]]*?\d+[^\]]*?words[^\]]*?added[^\]]*?\]", re.IGNORECASE),
]

_SECTION_SPLIT_RE = re.compile(r"(?m)^(?=###\s+)")
_HEADER_RE = re.compile(r"^###\s+(.+?)\s*(?:\n|$)")
_ANY_HEADER_RE = re.compile(r"^(###|##)\s+(.+)$")


def strip_meta_commentary(text: str) -> str:
    for pattern in _META_LINE_PATTERNS:
        text = pattern.sub("", text)
    return text


def dedupe_chunk_sections(text: str) -> str:
    """
    Drop repeated ### sections inside one chunk: same header (case-insensitive),
    or opening text nearly identical to an earlier section's.
    """
    kept: List[str] = []
    seen_headers = set()
    fingerprints: List[str] = []

    for part in _SECTION_SPLIT_RE.split(text):
        if not part.strip():
            continue
        match = _HEADER_RE.match(part)
        if not match:
            kept.append(part.strip())
            continue

        header = match.group(1).strip()
        key = header.lower()
        fingerprint = part[match.end():].strip()[:FINGERPRINT_CHARS].lower()

        if key in seen_headers:
            print(f'  🧹 Removing duplicate section: "### {header}"')
            continue
        similar = _most_similar(fingerprint, fingerprints)
        if similar is not None and similar > DUPLICATE_SIMILARITY_THRESHOLD:
            print(f'  🧹 Removing duplicate content for section "### {header}" ({round(similar * 100)}% similar)')
            continue

        seen_headers.add(key)
        if fingerprint:
            fingerprints.append(fingerprint)
        kept.append(part.strip())
    return "\n\n".join(kept)


def _most_similar(fingerprint: str, earlier: Sequence[str]) -> Optional[float]:
    if not fingerprint or not earlier:
        return None
    return max(1.0 if fingerprint == e else word_jaccard(fingerprint, e) for e in earlier)


def remove_duplicate_sections(script: str) -> str:
    """Keep only the first occurrence of each ## / ### header across the document."""
    blocks: List[Tuple[Optional[str], List[str]]] = []
    current_key: Optional[str] = None
    for line in script.split("\n"):
        match = _ANY_HEADER_RE.match(line)
        if match:
            current_key = match.group(2).strip().lower()
            blocks.append((current_key, [line]))
        elif current_key is None:
            blocks.append((None, [line]))
        else:
            blocks[-1][1].append(line)

    seen = set()
    result: List[str] = []
    removed = 0
    removed_words = 0
    for key, lines in blocks:
        if key is not None and key in seen:
            removed += 1
            removed_words += count_words(" ".join(lines[1:]))
            continue
        if key is not None:
            seen.add(key)
        result.extend(lines)

    if removed:
        print(f"  🧹 Final pass removed {removed} duplicate section(s) ({removed_words} words)")
    return "\n".join(result)


def stitch_chunks(texts: Sequence[str]) -> str:
    """Join chunk texts in order into one cleaned-up script."""
    processed = [dedupe_chunk_sections(strip_meta_commentary(t)) for t in texts]
    stitched = CHUNK_SEPARATOR.join(processed)
    for pattern in _META_BLOCK_PATTERNS:
        stitched = pattern.sub("", stitched)
    return remove_duplicate_sections(stitched)
