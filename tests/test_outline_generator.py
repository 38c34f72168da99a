import json

import pytest

from conftest import FakeTextGenerator, outline_json
from longform_scripts.application.outline_generator import (
    OutlineGenerator,
    build_outline_prompt,
    get_chunk_sections,
    get_forbidden_sections,
    load_outline,
    outline_structure_errors,
    outline_to_dict,
    parse_outline_payload,
    save_outline,
    strip_code_fence,
    validate_outline_structure,
)
from longform_scripts.domain.errors import ConfigError, TextGenerationError
from longform_scripts.domain.models import Outline, OutlineFailure


def _generate(responses, points, minutes=40, chunks=3):
    fake = FakeTextGenerator(responses)
    result = OutlineGenerator(fake).generate_outline("Why Bridges Fall Down", "bridges", points, minutes, chunks)
    return result, fake


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('Sure!\n```\n{"a": 1}\n```\nDone') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_parse_repairs_trailing_commas_and_ignores_prose():
    data = parse_outline_payload('Here you go: {"chunks": [{"sections": [],},],} thanks')
    assert data == {"chunks": [{"sections": []}]}


def test_parse_rejects_non_json():
    with pytest.raises(ValueError):
        parse_outline_payload("I could not produce an outline today.")


def test_prompt_lists_points_ranges_and_verbatim_rule(bridge_points):
    prompt = build_outline_prompt("Why Bridges Fall Down", "bridges", bridge_points, 40, 3, {"tone": "Calm"})
    for point in bridge_points:
        assert point["title"] in prompt
    assert "Chunk 1: Minutes 0-15" in prompt
    assert "Chunk 3: Minutes 30-40" in prompt
    assert "EXACT titles" in prompt
    assert "Tone: Calm" in prompt


def test_generate_outline_from_fenced_json(outline, bridge_points):
    result, fake = _generate([outline_json(outline)], bridge_points)

    assert isinstance(result, Outline)
    assert [c.time_range for c in result.chunks] == [(0, 15), (15, 30), (30, 40)]
    assert result.all_section_titles() == outline.all_section_titles()
    assert result.chunk(3).transition_to_next == ""
    assert result.chunk(1).sections[0].key_points == ("Failures are rare but instructive",)

    request = fake.requests[0]
    assert request.temperature == pytest.approx(0.3)
    assert request.max_output_tokens == 16000
    assert len(fake.requests) == 1


def test_malformed_response_returns_failure(bridge_points):
    result, fake = _generate(["Sorry, here is a list of ideas instead."], bridge_points)
    assert isinstance(result, OutlineFailure)
    assert "unparseable" in result.reason
    assert result.raw_text.startswith("Sorry")
    assert len(fake.requests) == 1


def test_service_error_returns_failure(bridge_points):
    result, _ = _generate([TextGenerationError("quota exceeded")], bridge_points)
    assert isinstance(result, OutlineFailure)
    assert "quota exceeded" in result.reason


def test_wrong_chunk_count_returns_failure(outline, bridge_points):
    data = outline_to_dict(outline)
    data["chunks"] = data["chunks"][:2]
    result, _ = _generate([json.dumps(data)], bridge_points)
    assert isinstance(result, OutlineFailure)
    assert "expected 3 chunks" in result.reason


def test_duplicate_titles_across_chunks_are_rejected(outline):
    data = outline_to_dict(outline)
    data["chunks"][2]["sections"][0]["title"] = "how resonance works"
    errors = outline_structure_errors(data, expected_chunks=3)
    assert any("How Resonance Works" in e or "how resonance works" in e for e in errors)
    assert not validate_outline_structure(data)


@pytest.mark.parametrize("key", ["title", "timestamp", "content"])
def test_sections_need_title_timestamp_and_content(outline, key):
    data = outline_to_dict(outline)
    data["chunks"][1]["sections"][0][key] = "  "
    assert not validate_outline_structure(data, expected_chunks=3)


def test_empty_structures_are_invalid():
    assert not validate_outline_structure({})
    assert not validate_outline_structure({"chunks": []})
    assert not validate_outline_structure({"chunks": [{"sections": []}]})
    assert not validate_outline_structure(["not", "an", "object"])


def test_invalid_request_raises_config_error(bridge_points):
    with pytest.raises(ConfigError):
        OutlineGenerator(FakeTextGenerator()).generate_outline("t", "t", bridge_points, 40, 0)


def test_lookups(outline):
    assert get_chunk_sections(outline, 2).theme == "The physics"
    assert get_chunk_sections(outline, 9) is None
    assert get_chunk_sections(None, 1) is None

    forbidden = get_forbidden_sections(outline, 2)
    assert {(f.title, f.assigned_to_chunk) for f in forbidden} == {
        ("Why Bridges Fall", 1),
        ("A Short History of Collapse", 1),
        ("Lessons for Engineers", 3),
    }
    assert get_forbidden_sections(None, 1) == []


def test_outline_titles_are_unique(outline):
    titles = [t.lower() for t in outline.all_section_titles()]
    assert len(titles) == len(set(titles))


def test_save_and_load(outline, tmp_path):
    path = tmp_path / "outline.json"
    save_outline(outline, str(path))
    loaded = load_outline(str(path))
    assert loaded.all_section_titles() == outline.all_section_titles()
    assert [c.time_range for c in loaded.chunks] == [c.time_range for c in outline.chunks]


def test_parse_repairs_raw_newlines_inside_strings():
    data = parse_outline_payload('{"overview": "Line one\nline two",\n "chunks": [],}')
    assert data == {"overview": "Line one\nline two", "chunks": []}


def test_outline_total_follows_requested_duration(outline, bridge_points):
    payload = outline_to_dict(outline)
    payload["totalMinutes"] = 55
    result, _ = _generate([json.dumps(payload)], bridge_points)

    assert isinstance(result, Outline)
    assert result.total_minutes == 40
    assert result.chunks[-1].time_range[1] == 40
