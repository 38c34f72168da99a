"""
Directive text for chunk generation calls. Pure string assembly, no I/O.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from longform_scripts.application.chunk_planner import words_for_minutes
from longform_scripts.application.outline_generator import get_chunk_sections, get_forbidden_sections
from longform_scripts.domain.models import ContentPoint, ContinuityState, Outline, point_title

RULE = "=" * 60


def format_outline_for_prompt(outline: Optional[Outline], chunk_number: int) -> str:
    """
    Enforcement directive for one outline chunk: mandatory sections with word
    budgets, sections owned by other chunks, and the closing transition.
    Empty string when there is no outline for this chunk.
    """
    chunk = get_chunk_sections(outline, chunk_number)
    if chunk is None:
        return ""
    forbidden = get_forbidden_sections(outline, chunk_number)

    lines = [
        f"MANDATORY OUTLINE FOR CHUNK {chunk_number} - TOPIC ENFORCEMENT",
        RULE,
        "You MUST write about the EXACT sections below. Any deviation will be rejected.",
        "",
        f"Time Range: {chunk.time_label}",
    ]
    if chunk.theme:
        lines.append(f"MANDATORY THEME: {chunk.theme}")
    lines += ["", "SECTIONS YOU MUST WRITE (NO SUBSTITUTIONS):"]

    for idx, section in enumerate(chunk.sections, 1):
        section_words = words_for_minutes(section.duration_minutes)
        lines += [
            "",
            f'{idx}. [{section.timestamp}] "{section.title}" ({section.duration_minutes:g} minutes)',
            "   Start this section with the EXACT header:",
            f"   ### {section.title}",
            f"   WORD COUNT: at least {section_words} words",
            f"   MANDATORY CONTENT: {section.content}",
        ]
        if section.key_points:
            lines.append("   REQUIRED KEY POINTS:")
            lines += [f"   - {point}" for point in section.key_points]
        if section.visual_cues:
            lines.append(f"   REQUIRED VISUAL: {section.visual_cues}")
        if section.narrative_note:
            lines.append(f"   NARRATIVE INSTRUCTION: {section.narrative_note}")
        lines.append(f'   DO NOT use a different title - use exactly: "{section.title}"')

    if chunk.transition_to_next:
        lines += ["", "MANDATORY TRANSITION TO NEXT CHUNK:", chunk.transition_to_next]

    if forbidden:
        lines += ["", "ABSOLUTELY FORBIDDEN TOPICS (reserved for other chunks):"]
        lines += [f'- "{f.title}" - Reserved for Chunk {f.assigned_to_chunk} ONLY' for f in forbidden]

    total_words = words_for_minutes(chunk.section_minutes)
    lines += [
        "",
        RULE,
        "ENFORCEMENT RULES:",
        "1. Write EVERY section listed above IN ORDER",
        "2. Each section starts with ### followed by the EXACT title given",
        "3. Include ALL key points specified",
        "4. Do NOT write about topics reserved for other chunks",
        "5. Never paraphrase or modify section titles",
        f"6. Total chunk length: {total_words} words MINIMUM",
        RULE,
    ]
    return "\n".join(lines)


def format_assigned_points(points: Sequence[ContentPoint], duration_minutes: int) -> str:
    """Un-enforced topic list for chunks without an outline."""
    lines = []
    per_point_seconds = duration_minutes * 60 / max(len(points), 1)
    for idx, point in enumerate(points, 1):
        minutes = round((point.get("duration") or per_point_seconds) / 60) or 1
        lines += [
            f'SECTION {idx}: "{point_title(point, f"Topic {idx}")}"',
            f"   - Description: {point.get('description') or 'Cover this topic thoroughly'}",
            f"   - Duration: ~{minutes} minutes",
            f"   - Key focus: {point.get('keyTakeaway') or 'Explain in detail'}",
        ]
    return "\n".join(lines)


def format_continuity(continuity: ContinuityState, chunk_number: int, start_minute: int) -> str:
    """Do-not-repeat block for chunk 2 onward."""
    if chunk_number <= 1:
        return ""
    previous = chunk_number - 1
    lines = [
        "CONTINUITY FROM PREVIOUS CHUNKS:",
        f"- Time marker: Continue from minute {start_minute}",
        f"- Last topic covered: {continuity.last_topic}",
        "- Transition smoothly from the previous section without repeating covered points",
        f"- DO NOT repeat ANY content from the {previous} previous chunk{'s' if previous > 1 else ''}. "
        "Start with completely NEW content only.",
    ]
    if continuity.covered_sections:
        lines.append("ALREADY COVERED (MUST NOT COVER AGAIN):")
        lines += [f'- "{title}"' for title in continuity.covered_sections]
    return "\n".join(lines)


def format_voice_profile(voice_params: Optional[Dict[str, Any]]) -> str:
    """Voice style guidelines. Accepts `basic` at the top level or under `training_data`."""
    if not voice_params:
        return ""
    basic = voice_params.get("basic") or (voice_params.get("training_data") or {}).get("basic")
    name = voice_params.get("profile_name") or voice_params.get("name") or "Custom Voice"
    if not basic:
        return f"VOICE PROFILE: {name}\n{json.dumps(voice_params, indent=2, ensure_ascii=False)}"

    lines = [f"VOICE PROFILE & STYLE GUIDELINES ({name}):"]
    for key in ("tone", "style", "pace", "energy", "vocabulary"):
        lines.append(f"- {key.capitalize()}: {basic.get(key) or 'not specified'}")
    for key, label in (("dos", "DO"), ("donts", "DON'T")):
        items = basic.get(key) or []
        if items:
            lines.append(f"{label}:")
            lines += [f"- {item}" for item in items]
    phrases = basic.get("signature_phrases") or []
    if phrases:
        lines.append("SIGNATURE PHRASES:")
        lines += [f'- "{phrase}"' for phrase in phrases]
    return "\n".join(lines)


def format_target_audience(audience: Any) -> str:
    if not audience:
        return ""
    if isinstance(audience, str):
        return f"TARGET AUDIENCE:\n{audience}"
    return f"TARGET AUDIENCE:\n{json.dumps(audience, indent=2, ensure_ascii=False)}"


def format_research(research: Optional[Dict[str, Any]], limit: int = 5) -> str:
    if not research or not research.get("sources"):
        return ""
    lines = ["RESEARCH SOURCES:"]
    for i, source in enumerate(research["sources"][:limit], 1):
        content = (source.get("source_content") or "")[:200]
        lines.append(f"{i}. {source.get('source_title') or 'Source'}: {content}...")
    return "\n".join(lines)


def join_blocks(blocks: List[str]) -> str:
    return "\n\n".join(b for b in blocks if b)
