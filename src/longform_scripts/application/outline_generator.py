"""
Comprehensive outline generation for long-form scripts.

One structured call produces the authoritative outline BEFORE any chunk is
generated: every content point is assigned to exactly one chunk and section
titles reuse content-point titles verbatim, which is what lets validation use
exact matching later. Any failure returns an OutlineFailure value instead of
raising, so the caller always has a fallback path (mechanical chunking).
"""

import json
import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from longform_scripts.application.chunk_planner import chunk_time_ranges, get_chunk_config
from longform_scripts.config import OUTLINE_MAX_TOKENS, OUTLINE_TEMPERATURE
from longform_scripts.domain.errors import ConfigError, TextGenerationError
from longform_scripts.domain.models import (
    Chunk,
    ChunkPlanConfig,
    ContentPoint,
    ForbiddenSection,
    GenerationRequest,
    Outline,
    OutlineFailure,
    OutlineResult,
    Section,
    point_title,
)
from longform_scripts.ports.interfaces import ITextGenerator

# Allowed gap (minutes) between a chunk's span and the sum of its section durations
DURATION_TOLERANCE_MINUTES = 1.0

OUTLINE_SYSTEM_DIRECTIVES = (
    "You are a senior video script planner. You produce precise JSON outlines "
    "that partition a long video into chunks and sections. Return only JSON."
)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------


def outline_time_ranges(total_minutes: int, chunk_count: int) -> List[Tuple[int, int]]:
    """Planner ranges when the chunk count agrees with the planner, else an even split."""
    planned = get_chunk_config(total_minutes)
    if planned.chunk_count == chunk_count:
        return chunk_time_ranges(total_minutes, planned)
    even = ChunkPlanConfig(chunk_count=chunk_count, minutes_per_chunk=math.ceil(total_minutes / chunk_count))
    return chunk_time_ranges(total_minutes, even)


def _format_content_points(content_points: Sequence[ContentPoint]) -> str:
    if not content_points:
        return "No specific content points provided - create logical sections based on the topic."
    lines = []
    for idx, point in enumerate(content_points, 1):
        duration = point.get("duration")
        duration_text = f"{math.ceil(duration / 60)} minutes" if duration else "Flexible"
        lines.append(
            f"{idx}. {point_title(point, f'Topic {idx}')}\n"
            f"   - Description: {point.get('description') or 'N/A'}\n"
            f"   - Duration: {duration_text}\n"
            f"   - Key Takeaway: {point.get('keyTakeaway') or 'N/A'}"
        )
    return "\n".join(lines)


def build_outline_prompt(
    title: str,
    topic: str,
    content_points: Sequence[ContentPoint],
    total_minutes: int,
    chunk_count: int,
    context: Optional[Dict[str, Any]] = None,
) -> str:
    context = context or {}
    ranges = outline_time_ranges(total_minutes, chunk_count)
    chunk_lines = "\n".join(
        f"Chunk {i}: Minutes {start}-{end} ({end - start} minutes)"
        for i, (start, end) in enumerate(ranges, 1)
    )
    research = context.get("research") or {}
    research_summary = research.get("summary", "") if isinstance(research, dict) else str(research)
    first_end = ranges[0][1] if ranges else total_minutes

    return f"""You are creating a DETAILED OUTLINE for a {total_minutes}-minute YouTube video that will be generated in {chunk_count} chunks.

VIDEO DETAILS:
- Title: {title}
- Topic: {topic}
- Target Audience: {context.get('target_audience') or 'General YouTube viewers'}
- Tone: {context.get('tone') or 'Informative and engaging'}
- Hook: {context.get('hook') or 'Create compelling hook'}
{f"- Research summary: {research_summary[:1500]}" if research_summary else ""}

CONTENT POINTS TO COVER:
{_format_content_points(content_points)}

CHUNK STRUCTURE (fill these exact ranges):
{chunk_lines}

YOUR TASK:
Create a DETAILED outline that:
1. Assigns each content point to EXACTLY ONE chunk (no duplicates)
2. Uses the EXACT titles from the content points above as section titles, word-for-word including punctuation
3. Includes a timestamp for each section
4. Provides a transition from each chunk to the next (leave it empty for the last chunk)
5. Balances content across chunks so section durations add up to each chunk's range

CRITICAL TITLE REQUIREMENT:
Section titles will be enforced verbatim during generation and validation.
DO NOT paraphrase, shorten or "improve" a content point title.

CRITICAL REQUIREMENTS:
- Exactly {chunk_count} chunks, numbered 1 to {chunk_count}
- Each section title appears in ONLY ONE chunk
- Chunk 1 opens with the introduction/hook
- The last chunk closes with the conclusion/CTA
- Every section has a non-empty title, timestamp and content description

FORMAT YOUR RESPONSE AS JSON:
{{
  "title": "Full Video Title",
  "totalMinutes": {total_minutes},
  "overview": "One paragraph summary of entire video",
  "chunks": [
    {{
      "chunkNumber": 1,
      "timeRange": "0:00-{first_end}:00",
      "theme": "Opening theme/focus",
      "sections": [
        {{
          "timestamp": "0:00",
          "title": "EXACT TITLE FROM CONTENT POINTS",
          "duration": 3,
          "content": "What to cover in this section",
          "keyPoints": ["Specific point 1", "Specific point 2"],
          "visualCues": "[Visual: Description]",
          "narrativeNote": "How to present this"
        }}
      ],
      "transitionToNext": "How to bridge to chunk 2"
    }}
  ],
  "keyTakeaways": ["Main takeaway 1", "Main takeaway 2", "Main takeaway 3"]
}}

Return ONLY valid JSON."""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced code block, or the text unchanged."""
    if not text:
        return ""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1)
    return text.strip()


def extract_json_object(text: str) -> Optional[str]:
    """First balanced {...} object in `text`, respecting string literals."""
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        char = text[i]
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def repair_json_string(json_str: str) -> str:
    """Escape raw newlines/tabs inside string literals and drop trailing commas."""
    out = []
    in_string = False
    escape_next = False
    for char in json_str:
        if escape_next:
            escape_next = False
        elif char == "\\":
            escape_next = True
        elif char == '"':
            in_string = not in_string
        elif in_string and char in _CONTROL_ESCAPES:
            char = _CONTROL_ESCAPES[char]
        out.append(char)
    return re.sub(r",(\s*[}\]])", r"\1", "".join(out))


def parse_outline_payload(text: str) -> Dict[str, Any]:
    """Strip any code fence and decode the outline JSON. Raises ValueError."""
    body = strip_code_fence(text)
    json_str = extract_json_object(body)
    if json_str is None:
        raise ValueError("No JSON object found in response")
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError:
        data = json.loads(repair_json_string(json_str))
    if not isinstance(data, dict):
        raise ValueError("Outline JSON is not an object")
    return data


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def outline_structure_errors(data: Any, expected_chunks: Optional[int] = None) -> List[str]:
    """Structural problems of a decoded outline. Empty list means valid."""
    if not isinstance(data, dict):
        return ["outline is not an object"]
    chunks = data.get("chunks")
    if not isinstance(chunks, list) or not chunks:
        return ["outline has no chunks"]

    errors = []
    if expected_chunks is not None and len(chunks) != expected_chunks:
        errors.append(f"expected {expected_chunks} chunks, got {len(chunks)}")

    seen_titles = {}
    seen_numbers = set()
    for idx, chunk in enumerate(chunks, 1):
        if not isinstance(chunk, dict):
            errors.append(f"chunk {idx} is not an object")
            continue
        number = chunk.get("chunkNumber", idx)
        if number in seen_numbers:
            errors.append(f"chunk number {number} appears twice")
        seen_numbers.add(number)
        sections = chunk.get("sections")
        if not isinstance(sections, list) or not sections:
            errors.append(f"chunk {number} has no sections")
            continue
        for s_idx, section in enumerate(sections, 1):
            if not isinstance(section, dict):
                errors.append(f"chunk {number} section {s_idx} is not an object")
                continue
            for key in ("title", "timestamp", "content"):
                if not _non_empty_str(section.get(key)):
                    errors.append(f"chunk {number} section {s_idx} missing {key}")
            title = section.get("title")
            if _non_empty_str(title):
                key = title.strip().lower()
                if key in seen_titles:
                    errors.append(
                        f"section \"{title}\" assigned to chunk {seen_titles[key]} and chunk {number}"
                    )
                else:
                    seen_titles[key] = number
    return errors


def validate_outline_structure(data: Any, expected_chunks: Optional[int] = None) -> bool:
    return not outline_structure_errors(data, expected_chunks)


def _parse_minutes(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = re.search(r"\d+(?:\.\d+)?", value)
        if match:
            return float(match.group(0))
    return 0.0


def _string_list(value: Any) -> Tuple[str, ...]:
    if isinstance(value, list):
        return tuple(str(v) for v in value if str(v).strip())
    if _non_empty_str(value):
        return (value,)
    return ()


def _chunk_order(item: Tuple[int, Dict[str, Any]]) -> int:
    position, raw = item
    number = raw.get("chunkNumber")
    return number if isinstance(number, int) else position


def outline_from_dict(data: Dict[str, Any], total_minutes: int,
                      time_ranges: Sequence[Tuple[int, int]]) -> Outline:
    """
    Build an Outline from structurally valid JSON. Chunks are ordered by
    chunkNumber and take the planner's time ranges, so ranges stay contiguous.
    """
    raw_chunks = sorted(enumerate(data["chunks"], 1), key=_chunk_order)
    chunks = []
    for position, (_, raw) in enumerate(raw_chunks, 1):
        sections = tuple(
            Section(
                timestamp=str(s["timestamp"]).strip(),
                title=s["title"].strip(),
                duration_minutes=_parse_minutes(s.get("duration")),
                content=s["content"].strip(),
                key_points=_string_list(s.get("keyPoints")),
                visual_cues=str(s.get("visualCues") or ""),
                narrative_note=str(s.get("narrativeNote") or ""),
            )
            for s in raw["sections"]
        )
        is_last = position == len(raw_chunks)
        chunks.append(Chunk(
            chunk_number=position,
            time_range=tuple(time_ranges[position - 1]),
            theme=str(raw.get("theme") or ""),
            sections=sections,
            transition_to_next="" if is_last else str(raw.get("transitionToNext") or ""),
        ))
    return Outline(
        title=str(data.get("title") or ""),
        total_minutes=int(total_minutes),
        overview=str(data.get("overview") or ""),
        chunks=tuple(chunks),
        key_takeaways=_string_list(data.get("keyTakeaways")),
    )


def duration_drift(outline: Outline) -> List[str]:
    """Chunks whose section durations do not add up to their time range."""
    warnings = []
    for chunk in outline.chunks:
        gap = abs(chunk.section_minutes - chunk.span_minutes)
        if gap > DURATION_TOLERANCE_MINUTES:
            warnings.append(
                f"Chunk {chunk.chunk_number}: sections total {chunk.section_minutes:g} min "
                f"for a {chunk.span_minutes}-minute range"
            )
    return warnings


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_chunk_sections(outline: Optional[Outline], chunk_number: int) -> Optional[Chunk]:
    if outline is None:
        return None
    return outline.chunk(chunk_number)


def get_forbidden_sections(outline: Optional[Outline], chunk_number: int) -> List[ForbiddenSection]:
    """Every section owned by a chunk other than `chunk_number`."""
    if outline is None:
        return []
    return [
        ForbiddenSection(title=s.title, assigned_to_chunk=c.chunk_number, time_range=c.time_range)
        for c in outline.chunks
        if c.chunk_number != chunk_number
        for s in c.sections
    ]


# ---------------------------------------------------------------------------
# Serialization (debugging / hand-off to persistence)
# ---------------------------------------------------------------------------


def outline_to_dict(outline: Outline) -> Dict[str, Any]:
    return {
        "title": outline.title,
        "totalMinutes": outline.total_minutes,
        "overview": outline.overview,
        "chunks": [
            {
                "chunkNumber": c.chunk_number,
                "timeRange": c.time_label,
                "theme": c.theme,
                "sections": [
                    {
                        "timestamp": s.timestamp,
                        "title": s.title,
                        "duration": s.duration_minutes,
                        "content": s.content,
                        "keyPoints": list(s.key_points),
                        "visualCues": s.visual_cues,
                        "narrativeNote": s.narrative_note,
                    }
                    for s in c.sections
                ],
                "transitionToNext": c.transition_to_next,
            }
            for c in outline.chunks
        ],
        "keyTakeaways": list(outline.key_takeaways),
    }


def save_outline(outline: Outline, filepath: str) -> None:
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(outline_to_dict(outline), f, indent=2, ensure_ascii=False)


def load_outline(filepath: str) -> Outline:
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    errors = outline_structure_errors(data)
    if errors:
        raise ValueError(f"Invalid outline file {filepath}: {'; '.join(errors)}")
    total = int(_parse_minutes(data.get("totalMinutes")))
    return outline_from_dict(data, total, outline_time_ranges(total, len(data["chunks"])))


def log_outline_summary(outline: Outline) -> None:
    print(f"  📋 Outline: {outline.title or '(untitled)'} – {len(outline.chunks)} chunks")
    for chunk in outline.chunks:
        print(f"     Chunk {chunk.chunk_number} [{chunk.time_label}] {chunk.theme}")
        for section in chunk.sections:
            print(f"       - [{section.timestamp}] {section.title} ({section.duration_minutes:g} min)")


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class OutlineGenerator:
    """Builds the single authoritative outline with one generation call."""

    def __init__(self, text_generator: ITextGenerator):
        self._generator = text_generator

    def generate_outline(
        self,
        title: str,
        topic: str,
        content_points: Sequence[ContentPoint],
        total_minutes: int,
        chunk_count: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> OutlineResult:
        """Return an Outline, or OutlineFailure when the call or the structure fails."""
        if chunk_count <= 0 or total_minutes <= 0:
            raise ConfigError(f"Invalid outline request: {total_minutes} minutes, {chunk_count} chunks")

        prompt = build_outline_prompt(title, topic, content_points, total_minutes, chunk_count, context)
        request = GenerationRequest(
            user_directives=prompt,
            system_directives=OUTLINE_SYSTEM_DIRECTIVES,
            max_output_tokens=OUTLINE_MAX_TOKENS,
            temperature=OUTLINE_TEMPERATURE,
        )

        print(f"  📝 Generating comprehensive outline ({total_minutes} min, {chunk_count} chunks)...")
        try:
            response = self._generator.generate(request)
        except TextGenerationError as e:
            print(f"  ⚠️  Outline generation call failed: {e}")
            return OutlineFailure(reason=f"generation failed: {e}")

        try:
            data = parse_outline_payload(response.text)
        except ValueError as e:
            print(f"  ⚠️  Could not parse outline JSON: {e}")
            print(f"  📄 Response preview: {response.text[:300]}...")
            return OutlineFailure(reason=f"unparseable outline: {e}", raw_text=response.text)

        errors = outline_structure_errors(data, expected_chunks=chunk_count)
        if errors:
            print(f"  ⚠️  Invalid outline structure: {'; '.join(errors[:5])}")
            return OutlineFailure(reason="invalid structure: " + "; ".join(errors), raw_text=response.text)

        outline = outline_from_dict(data, total_minutes, outline_time_ranges(total_minutes, chunk_count))
        for warning in duration_drift(outline):
            print(f"  ⚠️  {warning}")
        print(f"  ✅ Outline generated with {len(outline.chunks)} chunks, "
              f"{len(outline.all_section_titles())} sections")
        return outline
