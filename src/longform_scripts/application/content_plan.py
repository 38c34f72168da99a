"""
Content plan – a lighter chunk -> section assignment produced before generation.
Used when no comprehensive outline is available; falls back to mechanical
distribution when the plan cannot be parsed, and to an empty time-based plan
when the service fails or there are no content points.
"""

import json
import math
from typing import Any, Dict, List, Optional, Sequence

from longform_scripts.application.outline_generator import extract_json_object, repair_json_string, strip_code_fence
from longform_scripts.config import PLAN_MAX_TOKENS, PLAN_TEMPERATURE
from longform_scripts.domain.errors import TextGenerationError
from longform_scripts.domain.models import (
    ContentPlan,
    ContentPoint,
    GenerationRequest,
    PlannedChunk,
    PlannedSection,
    point_title,
)
from longform_scripts.ports.interfaces import ITextGenerator


def _time_range(index: int, minutes_per_chunk: float) -> str:
    return f"{index * minutes_per_chunk:g}-{(index + 1) * minutes_per_chunk:g}"


def generate_basic_plan(total_minutes: int, chunk_count: int) -> ContentPlan:
    """Time-based plan with no section assignments."""
    minutes_per_chunk = total_minutes / chunk_count
    return ContentPlan(chunks=tuple(
        PlannedChunk(chunk_number=i + 1, time_range=_time_range(i, minutes_per_chunk))
        for i in range(chunk_count)
    ))


def distribute_content_mechanically(
    content_points: Sequence[ContentPoint],
    chunk_count: int,
    minutes_per_chunk: float,
) -> ContentPlan:
    """Contiguous equal groups of points by index: ceil(len / chunk_count) per chunk."""
    points_per_chunk = max(math.ceil(len(content_points) / chunk_count), 1)
    chunks = []
    for i in range(chunk_count):
        start = i * points_per_chunk
        group = content_points[start:start + points_per_chunk]
        sections = tuple(
            PlannedSection(
                title=point_title(point, f"Section {start + 1}"),
                description=point.get("description") or "",
                estimated_minutes=math.ceil(
                    (point.get("duration") or minutes_per_chunk * 60 / points_per_chunk) / 60
                ),
            )
            for point in group
        )
        chunks.append(PlannedChunk(
            chunk_number=i + 1,
            time_range=_time_range(i, minutes_per_chunk),
            assigned_sections=sections,
        ))
    return ContentPlan(chunks=tuple(chunks))


def content_plan_from_dict(data: Dict[str, Any]) -> ContentPlan:
    """Build a ContentPlan from camelCase or snake_case JSON. Raises ValueError."""
    raw_chunks = data.get("chunks") if isinstance(data, dict) else None
    if not isinstance(raw_chunks, list):
        raise ValueError("Invalid plan structure: missing chunks")

    chunks = []
    for idx, raw in enumerate(raw_chunks, 1):
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid plan structure: chunk {idx} is not an object")
        raw_sections = raw.get("assignedSections") or raw.get("assigned_sections") or []
        if not isinstance(raw_sections, list):
            raise ValueError(f"Invalid plan structure: chunk {idx} sections are not a list")
        sections = []
        for s in raw_sections:
            if not isinstance(s, dict) or not s.get("title"):
                continue
            try:
                minutes = float(s.get("estimatedMinutes") or s.get("estimated_minutes") or 0)
            except (TypeError, ValueError):
                minutes = 0
            sections.append(PlannedSection(
                title=str(s["title"]).strip(),
                description=str(s.get("description") or ""),
                estimated_minutes=minutes,
            ))
        number = raw.get("chunkNumber") or raw.get("chunk_number") or idx
        try:
            number = int(number)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid plan structure: chunk {idx} has chunk number {number!r}") from None
        chunks.append(PlannedChunk(
            chunk_number=number,
            time_range=str(raw.get("timeRange") or raw.get("time_range") or ""),
            assigned_sections=tuple(sections),
        ))
    return ContentPlan(chunks=tuple(chunks))


def parse_content_plan(text: str) -> ContentPlan:
    """Extract and decode a plan from a model response. Raises ValueError."""
    json_str = extract_json_object(strip_code_fence(text))
    if json_str is None:
        raise ValueError("No JSON object found in response")
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError:
        data = json.loads(repair_json_string(json_str))
    return content_plan_from_dict(data)


def content_plan_to_dict(plan: ContentPlan) -> Dict[str, Any]:
    return {
        "chunks": [
            {
                "chunkNumber": c.chunk_number,
                "timeRange": c.time_range,
                "assignedSections": [
                    {"title": s.title, "description": s.description, "estimatedMinutes": s.estimated_minutes}
                    for s in c.assigned_sections
                ],
            }
            for c in plan.chunks
        ]
    }


def apply_content_plan(plan: Optional[ContentPlan], chunk_index: int) -> Optional[Dict[str, List[str]]]:
    """
    Assigned and forbidden section titles for the chunk at 0-based `chunk_index`,
    i.e. the plan chunk numbered `chunk_index + 1`. Returns None when the plan
    has no such chunk.
    """
    if plan is None or chunk_index < 0:
        return None
    target = plan.chunk(chunk_index + 1)
    if target is None:
        return None
    return {
        "assigned": target.titles,
        "forbidden": [
            title
            for chunk in plan.chunks if chunk is not target
            for title in chunk.titles
        ],
    }


def plan_covers_chunks(plan: Optional[ContentPlan], chunk_count: int) -> bool:
    """True when every chunk 1..chunk_count has at least one assigned section."""
    if plan is None or chunk_count < 1:
        return False
    return all(
        plan.chunk(n) is not None and plan.chunk(n).assigned_sections
        for n in range(1, chunk_count + 1)
    )


def build_plan_prompt(
    title: str,
    topic: str,
    content_points: Sequence[ContentPoint],
    total_minutes: int,
    chunk_count: int,
) -> str:
    minutes_per_chunk = total_minutes / chunk_count
    point_lines = []
    for idx, point in enumerate(content_points, 1):
        duration = point.get("duration")
        point_lines += [
            f'{idx}. "{point_title(point, f"Topic {idx}")}"',
            f"   Description: {point.get('description') or 'N/A'}",
            f"   Duration: {str(math.ceil(duration / 60)) + ' minutes' if duration else 'Flexible'}",
            f"   Key Takeaway: {point.get('keyTakeaway') or 'N/A'}",
        ]
    chunk_lines = [f"Chunk {i + 1}: Minutes {_time_range(i, minutes_per_chunk)}" for i in range(chunk_count)]

    return f"""You are planning how to distribute content across {chunk_count} chunks for a {total_minutes}-minute YouTube script.

VIDEO: {title}
TOPIC: {topic}

CONTENT POINTS TO DISTRIBUTE:
{chr(10).join(point_lines)}

CHUNK STRUCTURE:
{chr(10).join(chunk_lines)}

YOUR TASK:
Create a content distribution plan that:
1. Assigns each content point to EXACTLY ONE chunk
2. Balances content across chunks (similar amount of content per chunk)
3. Groups related topics together when possible
4. Ensures logical flow and narrative progression
5. Specifies EXACT section titles for each chunk

FORMAT YOUR RESPONSE AS JSON:
{{
  "chunks": [
    {{
      "chunkNumber": 1,
      "timeRange": "0-15",
      "assignedSections": [
        {{"title": "Exact Section Title", "description": "What to cover", "estimatedMinutes": 5}}
      ]
    }}
  ]
}}

CRITICAL RULES:
- Each section title must appear in EXACTLY ONE chunk
- No section can appear in multiple chunks
- All content points must be assigned
- Response must be valid JSON"""


class ContentPlanner:
    """Asks the generation service for a chunk -> section assignment."""

    def __init__(self, text_generator: ITextGenerator):
        self._generator = text_generator

    def generate_content_plan(
        self,
        title: str,
        topic: str,
        content_points: Sequence[ContentPoint],
        total_minutes: int,
        chunk_count: int,
    ) -> ContentPlan:
        if not content_points:
            return generate_basic_plan(total_minutes, chunk_count)

        request = GenerationRequest(
            user_directives=build_plan_prompt(title, topic, content_points, total_minutes, chunk_count),
            max_output_tokens=PLAN_MAX_TOKENS,
            temperature=PLAN_TEMPERATURE,
        )
        try:
            response = self._generator.generate(request)
        except TextGenerationError as e:
            print(f"  ❌ Content planning error: {e}")
            return generate_basic_plan(total_minutes, chunk_count)

        try:
            plan = parse_content_plan(response.text)
        except ValueError as e:
            print(f"  ⚠️  Could not parse content plan ({e}), using mechanical distribution")
            return distribute_content_mechanically(content_points, chunk_count, total_minutes / chunk_count)

        print(f"  ✅ Content plan: {sum(len(c.assigned_sections) for c in plan.chunks)} sections "
              f"across {len(plan.chunks)} chunks")
        return plan
