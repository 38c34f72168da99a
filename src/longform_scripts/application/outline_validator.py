"""
Outline validation – checks generated text against the outline it was
generated from: missing sections, weak key-term coverage, topics that belong
to other chunks, and whole-document coverage. Pure functions over text;
results are printed in the pipeline's progress style.
"""

import re
from typing import Dict, List, Optional, Sequence

from longform_scripts.config import WORDS_PER_MINUTE
from longform_scripts.domain.models import (
    SEVERITY_CRITICAL,
    SEVERITY_PASS,
    SEVERITY_WARNING,
    Chunk,
    CompletenessReport,
    ForbiddenSection,
    Outline,
    Section,
    TopicMatch,
    TopicMatchScore,
    ValidationIssue,
    ValidationResult,
)
from longform_scripts.domain.text_similarity import (
    contains_phrase,
    contains_whole_phrase,
    count_words,
    dedupe,
    key_terms_from_text,
    string_similarity,
    title_words,
)

# Present-but-weak sections below this key-term match percentage get a warning
WEAK_COVERAGE_THRESHOLD = 50
# check_topic_match counts as a match strictly above this score
TOPIC_MATCH_THRESHOLD = 0.5
TOPIC_WEIGHT = 0.5
KEYWORD_WEIGHT = 0.5
# Outline title vs requested title: normalized edit similarity below this is a mismatch
TITLE_SIMILARITY_THRESHOLD = 0.5
# Fraction of an expected topic's words that must appear in one outline section title
EXPECTED_TOPIC_WORD_RATIO = 0.6
# Share of expected words a finished script must reach
COMPLETENESS_RATIO = 0.8

CONTENT_TERM_LIMIT = 5
KEY_POINT_TERM_LIMIT = 2

PLACEHOLDER_PATTERNS = [
    re.compile(r"\[continue.*\]", re.IGNORECASE),
    re.compile(r"\[rest of.*\]", re.IGNORECASE),
    re.compile(r"\[add more.*\]", re.IGNORECASE),
    re.compile(r"\[.*remaining.*\]", re.IGNORECASE),
    re.compile(r"\[insert.*\]", re.IGNORECASE),
    re.compile(r"\[include.*here\]", re.IGNORECASE),
    re.compile(r"to be continued", re.IGNORECASE),
    re.compile(r"\.\.\.\]$", re.MULTILINE),
    re.compile(r"etc\.\]$", re.MULTILINE),
]
_TIMESTAMP_RE = re.compile(r"\d{1,2}:\d{2}")


def extract_key_terms(section: Section) -> List[str]:
    """Title terms, first content terms and first terms of each key point, de-duplicated."""
    terms = key_terms_from_text(section.title)
    terms += key_terms_from_text(section.content, limit=CONTENT_TERM_LIMIT)
    for point in section.key_points:
        terms += key_terms_from_text(point, limit=KEY_POINT_TERM_LIMIT)
    return dedupe(terms)


def title_present(text: str, title: str) -> bool:
    """Exact title (plain or as a ### heading), or every title key term present."""
    if contains_phrase(text, title):
        return True
    if re.search(r"###\s*" + re.escape(title), text, re.IGNORECASE):
        return True
    terms = key_terms_from_text(title)
    return bool(terms) and all(contains_phrase(text, term) for term in terms)


def _skipped(note: str) -> ValidationResult:
    return ValidationResult(passed=True, severity=SEVERITY_PASS, skipped=True, note=note)


def _severity(issues: Sequence[ValidationIssue]) -> str:
    if any(i.severity == SEVERITY_CRITICAL for i in issues):
        return SEVERITY_CRITICAL
    if issues:
        return SEVERITY_WARNING
    return SEVERITY_PASS


def validate_chunk(
    text: str,
    outline_chunk: Optional[Chunk],
    chunk_number: int,
    forbidden_sections: Sequence[ForbiddenSection] = (),
) -> ValidationResult:
    """Validate one generated chunk against its outline chunk."""
    if outline_chunk is None or not outline_chunk.sections:
        return _skipped(f"No outline sections for chunk {chunk_number}, validation skipped")

    issues: List[ValidationIssue] = []
    matches: Dict[str, TopicMatch] = {}

    for section in outline_chunk.sections:
        found_title = title_present(text, section.title)
        terms = extract_key_terms(section)
        found = [t for t in terms if contains_phrase(text, t)]
        missing = [t for t in terms if t not in found]
        if terms:
            percentage = len(found) / len(terms) * 100
        else:
            percentage = 100.0 if found_title else 0.0

        matches[section.title] = TopicMatch(
            title_found=found_title,
            match_percentage=percentage,
            key_terms_found=tuple(found),
            key_terms_missing=tuple(missing),
        )

        if not found_title:
            issues.append(ValidationIssue(
                type="missing_section",
                severity=SEVERITY_CRITICAL,
                subject=section.title,
                message=f'Required section "{section.title}" not found in chunk {chunk_number}',
            ))
        elif percentage < WEAK_COVERAGE_THRESHOLD:
            issues.append(ValidationIssue(
                type="weak_coverage",
                severity=SEVERITY_WARNING,
                subject=section.title,
                message=f'Section "{section.title}" has weak coverage ({round(percentage)}% match)',
                missing_terms=tuple(missing),
            ))

    for forbidden in forbidden_sections:
        if contains_whole_phrase(text, forbidden.title):
            issues.append(ValidationIssue(
                type="forbidden_topic",
                severity=SEVERITY_CRITICAL,
                subject=forbidden.title,
                message=(f'Chunk {chunk_number} contains forbidden topic "{forbidden.title}" '
                         f"that belongs to chunk {forbidden.assigned_to_chunk}"),
            ))

    severity = _severity(issues)
    return ValidationResult(
        passed=severity != SEVERITY_CRITICAL,
        severity=severity,
        issues=tuple(issues),
        topic_matches=matches,
    )


def validate_complete_script(full_text: str, outline: Optional[Outline]) -> ValidationResult:
    """Every outline section title must appear somewhere in the final document."""
    if outline is None or not outline.chunks:
        return _skipped("No outline available: outline-based validation was skipped")

    issues = []
    coverage: Dict[str, bool] = {}
    for title in outline.all_section_titles():
        found = contains_phrase(full_text, title)
        coverage[title] = found
        if not found:
            issues.append(ValidationIssue(
                type="missing_topic",
                severity=SEVERITY_CRITICAL,
                subject=title,
                message=f'Required topic "{title}" not found in final script',
            ))

    severity = _severity(issues)
    return ValidationResult(
        passed=severity != SEVERITY_CRITICAL,
        severity=severity,
        issues=tuple(issues),
        topic_coverage=coverage,
    )


def calculate_match_score(topic_found: bool, keyword_matches: Sequence[str], expected_keywords: Sequence[str]) -> float:
    """Weighted 0-1 score: topic presence and keyword fraction, half each."""
    topic_score = 1.0 if topic_found else 0.0
    keyword_score = len(keyword_matches) / len(expected_keywords) if expected_keywords else 1.0
    return topic_score * TOPIC_WEIGHT + keyword_score * KEYWORD_WEIGHT


def check_topic_match(text: str, expected_topic: str, expected_keywords: Sequence[str] = ()) -> TopicMatchScore:
    topic_found = contains_phrase(text, expected_topic)
    keyword_matches = [k for k in expected_keywords if contains_phrase(text, k)]
    score = calculate_match_score(topic_found, keyword_matches, expected_keywords)
    return TopicMatchScore(
        matches=score > TOPIC_MATCH_THRESHOLD,
        score=score,
        topic_found=topic_found,
        keyword_matches=tuple(keyword_matches),
        missed_keywords=tuple(k for k in expected_keywords if k not in keyword_matches),
    )


def _expected_topic_found(expected_topic: str, section_titles: Sequence[str]) -> bool:
    topic_lower = expected_topic.lower()
    words = title_words(expected_topic)
    for section in section_titles:
        if topic_lower in section or section in topic_lower:
            return True
        if words and sum(1 for w in words if w in section) / len(words) >= EXPECTED_TOPIC_WORD_RATIO:
            return True
    return False


def validate_outline_before_generation(
    outline: Outline,
    title: str,
    expected_topics: Sequence[str] = (),
) -> ValidationResult:
    """Soft sanity checks on a fresh outline. Produces warnings only."""
    issues = []
    outline_title = (outline.title or "").lower()
    expected_title = (title or "").lower()

    if outline_title not in expected_title and expected_title not in outline_title:
        if string_similarity(outline_title, expected_title) < TITLE_SIMILARITY_THRESHOLD:
            issues.append(ValidationIssue(
                type="title_mismatch",
                severity=SEVERITY_WARNING,
                subject=outline.title,
                message=f'Outline title "{outline.title}" doesn\'t match expected "{title}"',
            ))

    sections = [t.lower() for t in outline.all_section_titles()]
    for topic in expected_topics:
        if not _expected_topic_found(topic, sections):
            issues.append(ValidationIssue(
                type="missing_expected_topic",
                severity=SEVERITY_WARNING,
                subject=topic,
                message=f'Expected topic "{topic}" not found in outline (may be paraphrased)',
            ))

    return ValidationResult(passed=True, severity=_severity(issues), issues=tuple(issues))


def validate_completeness(script: str, target_minutes: float, words_per_minute: int = WORDS_PER_MINUTE) -> CompletenessReport:
    """Length, placeholder and timestamp checks on a finished script."""
    word_count = count_words(script)
    expected = round(target_minutes * words_per_minute)
    has_placeholders = any(p.search(script) for p in PLACEHOLDER_PATTERNS)
    has_timestamps = bool(_TIMESTAMP_RE.search(script))

    issues = []
    if word_count < expected * COMPLETENESS_RATIO:
        issues.append(f"Script too short: {word_count}/{expected} words")
    if has_placeholders:
        issues.append("Contains placeholder text")
    if not has_timestamps:
        issues.append("Missing timestamps")

    return CompletenessReport(
        word_count=word_count,
        expected_words=expected,
        percent_complete=round(word_count / expected * 100) if expected else 100,
        has_placeholders=has_placeholders,
        has_timestamps=has_timestamps,
        issues=tuple(issues),
    )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def log_validation_results(result: ValidationResult, chunk_number: int) -> None:
    if result.skipped:
        print(f"  ⚠️  {result.note}")
        return
    if result.passed:
        print(f"  ✅ Chunk {chunk_number} passed outline validation")
    else:
        print(f"  ❌ Chunk {chunk_number} FAILED outline validation")
    for issue in result.issues:
        marker = "🚨" if issue.severity == SEVERITY_CRITICAL else "⚠️ "
        print(f"    {marker} {issue.message}")

    print(f"  📊 Topic match for chunk {chunk_number}:")
    for title, match in result.topic_matches.items():
        status = "✓" if match.title_found else "✗"
        print(f'     {status} "{title}": {round(match.match_percentage)}% match')
        if match.key_terms_missing:
            print(f"       Missing terms: {', '.join(match.key_terms_missing)}")


def log_script_validation(result: ValidationResult) -> None:
    if result.skipped:
        print(f"  ⚠️  {result.note}")
    elif result.passed:
        print(f"  ✅ Complete script covers all {len(result.topic_coverage)} outline sections")
    else:
        print(f"  ❌ Complete script FAILED outline validation ({len(result.issues)} critical issues)")
        for issue in result.issues:
            print(f"    🚨 {issue.message}")
