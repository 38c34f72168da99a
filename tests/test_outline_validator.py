import pytest

from conftest import chunk_text
from longform_scripts.application.outline_generator import get_forbidden_sections
from longform_scripts.application.outline_validator import (
    calculate_match_score,
    check_topic_match,
    extract_key_terms,
    validate_chunk,
    validate_complete_script,
    validate_completeness,
    validate_outline_before_generation,
)
from longform_scripts.domain.models import SEVERITY_CRITICAL, SEVERITY_PASS, SEVERITY_WARNING, ForbiddenSection


def _validate(outline, n, text):
    return validate_chunk(text, outline.chunk(n), n, get_forbidden_sections(outline, n))


def test_extract_key_terms(outline):
    section = outline.chunk(1).sections[0]
    assert extract_key_terms(section) == [
        "Bridges", "Introduce", "structural", "failure", "promise", "video", "Failures", "instructive",
    ]


@pytest.mark.parametrize("n", [1, 2, 3])
def test_complete_chunk_passes(outline, n):
    result = _validate(outline, n, chunk_text(outline.chunk(n)))
    assert result.passed is True
    assert result.severity == SEVERITY_PASS
    assert result.issues == ()
    assert all(m.title_found and m.match_percentage == 100 for m in result.topic_matches.values())


def test_missing_section_is_one_critical_issue(outline):
    text = chunk_text(outline.chunk(1), skip=["A Short History of Collapse"])
    result = _validate(outline, 1, text)

    assert result.passed is False
    assert result.severity == SEVERITY_CRITICAL
    assert len(result.issues) == 1
    issue = result.issues[0]
    assert (issue.type, issue.severity, issue.subject) == (
        "missing_section", SEVERITY_CRITICAL, "A Short History of Collapse",
    )


def test_title_found_when_all_title_terms_present(outline):
    text = chunk_text(outline.chunk(1), skip=["A Short History of Collapse"])
    text += "\n\nThe history of every collapse is short."
    result = _validate(outline, 1, text)
    assert result.topic_matches["A Short History of Collapse"].title_found
    assert not result.issues_of("missing_section")


def test_forbidden_topic_is_critical(outline):
    text = chunk_text(outline.chunk(1)) + "\n\n### How Resonance Works\nA preview of the physics."
    result = _validate(outline, 1, text)

    assert result.passed is False
    assert result.severity == SEVERITY_CRITICAL
    forbidden = result.issues_of("forbidden_topic")
    assert [i.subject for i in forbidden] == ["How Resonance Works"]
    assert "chunk 2" in forbidden[0].message


def test_forbidden_title_only_matches_whole_words(outline):
    owned_elsewhere = [ForbiddenSection(title="Intro", assigned_to_chunk=1, time_range=(0, 15))]
    text = chunk_text(outline.chunk(2)) + "\n\nLet me introduce three more cases."
    result = validate_chunk(text, outline.chunk(2), 2, owned_elsewhere)

    assert result.passed is True
    assert not result.issues_of("forbidden_topic")

    flagged = validate_chunk(text + "\n\n### Intro\nAgain.", outline.chunk(2), 2, owned_elsewhere)
    assert [i.subject for i in flagged.issues_of("forbidden_topic")] == ["Intro"]


def test_weak_coverage_is_a_warning(outline):
    text = chunk_text(outline.chunk(2)).replace("Explain natural frequency and periodic forcing", "Something")
    text = text.replace("Wind can drive oscillation", "else")
    result = _validate(outline, 2, text)

    assert result.passed is True
    assert result.severity == SEVERITY_WARNING
    weak = result.issues_of("weak_coverage")
    assert [i.subject for i in weak] == ["How Resonance Works"]
    assert "frequency" in weak[0].missing_terms


def test_no_outline_chunk_skips_validation():
    result = validate_chunk("anything", None, 2)
    assert result.passed and result.skipped
    assert "skipped" in result.note


def test_round_trip_coverage(outline):
    texts = [chunk_text(c) for c in outline.chunks]
    for chunk, text in zip(outline.chunks, texts):
        assert _validate(outline, chunk.chunk_number, text).passed

    result = validate_complete_script("\n\n".join(texts), outline)
    assert result.passed
    assert result.topic_coverage == {title: True for title in outline.all_section_titles()}


def test_complete_script_missing_topic(outline):
    texts = [chunk_text(c) for c in outline.chunks[:2]]
    result = validate_complete_script("\n\n".join(texts), outline)
    assert result.passed is False
    assert result.topic_coverage["Lessons for Engineers"] is False
    assert [i.type for i in result.issues] == ["missing_topic"]


def test_complete_script_without_outline_discloses_skip():
    result = validate_complete_script("text", None)
    assert result.skipped
    assert "outline-based validation was skipped" in result.note


def test_topic_match_scoring():
    text = "Resonance explains why wind destroyed the Tacoma Narrows bridge."
    full = check_topic_match(text, "Tacoma Narrows", ["resonance", "wind"])
    assert full.matches and full.score == pytest.approx(1.0)

    half = check_topic_match(text, "Golden Gate", ["resonance", "wind"])
    assert half.score == pytest.approx(0.5)
    assert not half.matches

    partial = check_topic_match(text, "Tacoma Narrows", ["resonance", "concrete"])
    assert partial.score == pytest.approx(0.75)
    assert partial.missed_keywords == ("concrete",)

    assert calculate_match_score(True, [], []) == pytest.approx(1.0)


def test_outline_precheck_warns_only(outline):
    ok = validate_outline_before_generation(outline, "Why Bridges Fall Down", ["Resonance Works", "History of Collapse"])
    assert ok.passed and ok.issues == ()

    bad = validate_outline_before_generation(outline, "Cooking pasta at home", ["Sauce Recipes Explained"])
    assert bad.passed
    assert bad.severity == SEVERITY_WARNING
    assert {i.type for i in bad.issues} == {"title_mismatch", "missing_expected_topic"}


def test_outline_precheck_word_overlap(outline):
    # 2 of 3 words (engineers, lessons) appear in "lessons for engineers"
    result = validate_outline_before_generation(outline, "Why Bridges Fall Down", ["Lessons Modern Engineers"])
    assert result.issues == ()


def test_completeness():
    script = "[0:00] " + "word " * 1100
    report = validate_completeness(script, 10)
    assert report.expected_words == 1300
    assert report.is_valid

    short = validate_completeness("[0:00] too short", 10)
    assert not short.is_valid
    assert short.issues[0].startswith("Script too short")

    placeholder = validate_completeness("word " * 1300 + "[Continue with the rest]", 10)
    assert placeholder.has_placeholders
    assert "Missing timestamps" in placeholder.issues
