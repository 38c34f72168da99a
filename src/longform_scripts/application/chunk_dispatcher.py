"""
Chunk dispatcher – resolves each chunk's section assignment, threads continuity
state through the chunks and issues one generation call per chunk, strictly
in order.

Assignment priority per chunk:
  1. comprehensive outline (enforced sections)
  2. upstream content plan (explicit titles)
  3. mechanical slice of the content points by index
"""

import math
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from longform_scripts.application.chunk_planner import (
    buffered_words,
    chunk_time_ranges,
    get_chunk_config,
    words_for_minutes,
)
from longform_scripts.application.content_plan import apply_content_plan, plan_covers_chunks
from longform_scripts.application.outline_generator import get_chunk_sections
from longform_scripts.application.prompt_formatter import (
    format_assigned_points,
    format_continuity,
    format_outline_for_prompt,
    format_research,
    format_target_audience,
    format_voice_profile,
    join_blocks,
)
from longform_scripts.config import CHUNK_MAX_TOKENS, CHUNK_TEMPERATURE
from longform_scripts.domain.errors import GenerationFailure, TextGenerationError
from longform_scripts.domain.models import (
    ChunkJob,
    ContentPlan,
    ContentPoint,
    ContinuityState,
    DispatchResult,
    GeneratedChunk,
    GenerationRequest,
    MechanicalSlice,
    Outline,
    OutlineDerived,
    PlanDerived,
    SectionAssignment,
    point_title,
)
from longform_scripts.domain.text_similarity import fuzzy_title_overlap
from longform_scripts.ports.interfaces import ITextGenerator

CHUNK_SYSTEM_DIRECTIVES = (
    "You are an expert YouTube scriptwriter writing one part of a long video script. "
    "Write complete spoken narration with timestamps and [Visual: ...] cues. "
    "Never use placeholders and never comment on the writing process."
)

ChunkCallback = Callable[[ChunkJob, GeneratedChunk], None]
ChunkProducer = Callable[[ChunkJob], GeneratedChunk]


# ---------------------------------------------------------------------------
# Section assignment
# ---------------------------------------------------------------------------


def mechanical_slice(content_points: Sequence[ContentPoint], chunk_number: int, chunk_count: int) -> MechanicalSlice:
    """Contiguous slice of ceil(len / chunk_count) points for this chunk."""
    if not content_points:
        return MechanicalSlice()
    per_chunk = math.ceil(len(content_points) / chunk_count)
    start = (chunk_number - 1) * per_chunk
    return MechanicalSlice(points=tuple(content_points[start:start + per_chunk]), start_index=start)


def resolve_assignment(
    chunk_number: int,
    outline: Optional[Outline],
    content_plan: Optional[ContentPlan],
    content_points: Sequence[ContentPoint],
    chunk_count: int,
) -> SectionAssignment:
    outline_chunk = get_chunk_sections(outline, chunk_number)
    if outline_chunk is not None and outline_chunk.sections:
        titles = outline_chunk.section_titles
        points = tuple(
            p for p in content_points
            if any(fuzzy_title_overlap(point_title(p), t) for t in titles)
        )
        return OutlineDerived(chunk=outline_chunk, points=points)

    # Plan tier applies to the whole document or not at all
    if plan_covers_chunks(content_plan, chunk_count):
        applied = apply_content_plan(content_plan, chunk_number - 1)
        if applied is not None:
            wanted = {t.lower() for t in applied["assigned"]}
            points = tuple(p for p in content_points if point_title(p).lower() in wanted)
            return PlanDerived(
                titles=tuple(applied["assigned"]),
                points=points,
                forbidden=tuple(applied["forbidden"]),
            )

    return mechanical_slice(content_points, chunk_number, chunk_count)


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------


def _section_requirements(chunk_number: int, total_chunks: int, start: int, end: int, hook: str) -> str:
    is_first, is_last = chunk_number == 1, chunk_number == total_chunks
    lines = ["SECTION REQUIREMENTS:"]
    if is_first:
        lines += [
            "- INCLUDE INTRO: start with a compelling introduction and hook",
            f"- Use this hook: {hook}" if hook else "- Create an engaging opening",
            "- Include timestamps starting from [0:00]",
            "- Set up the video's main promise and preview what's coming",
        ]
    else:
        lines += [
            f"- This section covers minutes {start}-{end}; continue naturally from the previous section",
            "- Do NOT re-introduce the video or greet the viewer again",
        ]
    if is_last:
        lines += [
            "- INCLUDE CONCLUSION: summarize the key points of the whole video",
            "- Add a compelling call-to-action and a next video teaser",
        ]
    else:
        lines.append("- Do NOT conclude the video; more parts follow")
    lines.append(f"- Include timestamps from [{start}:00] to [{end}:00]")
    return "\n".join(lines)


def _assignment_block(
    assignment: SectionAssignment,
    outline: Optional[Outline],
    chunk_number: int,
    duration: int,
) -> str:
    if isinstance(assignment, OutlineDerived):
        return format_outline_for_prompt(outline, chunk_number)

    if isinstance(assignment, PlanDerived):
        lines = ["ASSIGNED SECTIONS FOR THIS CHUNK (cover ONLY these):"]
        lines += [f'- "{title}"' for title in assignment.titles]
        if assignment.forbidden:
            lines.append("FORBIDDEN SECTIONS (assigned to other chunks):")
            lines += [f'- "{title}"' for title in assignment.forbidden]
        if assignment.points:
            lines += ["", format_assigned_points(assignment.points, duration)]
        return "\n".join(lines)

    if assignment.points:
        return "CONTENT TO COVER IN THIS SECTION:\n" + format_assigned_points(assignment.points, duration)
    return ""


def build_chunk_prompt(
    *,
    title: str,
    topic: str,
    chunk_number: int,
    total_chunks: int,
    start: int,
    end: int,
    assignment: SectionAssignment,
    continuity: ContinuityState,
    target_words: int,
    buffer_words: int,
    outline: Optional[Outline] = None,
    hook: str = "",
    voice_params: Optional[Dict[str, Any]] = None,
    audience: Any = None,
    tone: str = "",
    research: Optional[Dict[str, Any]] = None,
) -> str:
    duration = end - start
    context = [
        f"Generate PART {chunk_number} of {total_chunks} for a YouTube script.",
        "",
        "VIDEO CONTEXT:",
        f"- Title: {title}",
        f"- Topic: {topic}",
        f"- This section: Minutes {start}-{end} ({duration} minutes)",
    ]
    if tone:
        context.append(f"- Tone: {tone}")

    rules = [
        "CRITICAL RULES:",
        f"- Write at least {buffer_words} words (target {target_words} words for {duration} minutes)",
        "- Include specific timestamps throughout",
        "- NO placeholders or shortcuts - write everything in full",
        "- Include [Visual: ...] cues for production",
        "- Do not add word counts, notes or commentary about the script",
        "",
        "Write the complete section now:",
    ]

    return join_blocks([
        "\n".join(context),
        format_voice_profile(voice_params),
        format_target_audience(audience),
        format_research(research),
        _section_requirements(chunk_number, total_chunks, start, end, hook),
        format_continuity(continuity, chunk_number, start),
        _assignment_block(assignment, outline, chunk_number, duration),
        "\n".join(rules),
    ])


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class ChunkDispatcher:
    """Sequential chunk generation with continuity threaded between chunks."""

    def __init__(self, text_generator: ITextGenerator):
        self._generator = text_generator

    def plan_chunks(
        self,
        outline: Optional[Outline],
        content_points: Sequence[ContentPoint],
        total_minutes: int,
        hook: str = "",
        voice_params: Optional[Dict[str, Any]] = None,
        audience: Any = None,
        tone: str = "",
        *,
        title: str,
        topic: str,
        content_plan: Optional[ContentPlan] = None,
        research: Optional[Dict[str, Any]] = None,
    ) -> List[ChunkJob]:
        """One ChunkJob per chunk; continuity folded over the assignments in order."""
        if outline is not None and outline.chunks:
            ranges: List[Tuple[int, int]] = [c.time_range for c in outline.chunks]
        else:
            ranges = chunk_time_ranges(total_minutes, get_chunk_config(total_minutes))
        total_chunks = len(ranges)

        jobs = []
        continuity = ContinuityState()
        for chunk_number, (start, end) in enumerate(ranges, 1):
            assignment = resolve_assignment(chunk_number, outline, content_plan, content_points, total_chunks)
            target = words_for_minutes(end - start)
            buffer = buffered_words(target)
            prompt = build_chunk_prompt(
                title=title,
                topic=topic,
                chunk_number=chunk_number,
                total_chunks=total_chunks,
                start=start,
                end=end,
                assignment=assignment,
                continuity=continuity,
                target_words=target,
                buffer_words=buffer,
                outline=outline,
                hook=hook if chunk_number == 1 else "",
                voice_params=voice_params,
                audience=audience,
                tone=tone,
                research=research,
            )
            jobs.append(ChunkJob(
                chunk_number=chunk_number,
                total_chunks=total_chunks,
                start_minute=start,
                end_minute=end,
                assignment=assignment,
                continuity=continuity,
                request=GenerationRequest(
                    user_directives=prompt,
                    system_directives=CHUNK_SYSTEM_DIRECTIVES,
                    max_output_tokens=CHUNK_MAX_TOKENS,
                    temperature=CHUNK_TEMPERATURE,
                ),
                target_words=target,
                buffer_words=buffer,
            ))
            continuity = continuity.advance(assignment.covered_titles())
        return jobs

    def generate_chunk(self, job: ChunkJob, attempt: int = 1) -> GeneratedChunk:
        """One generation call. Raises GenerationFailure."""
        try:
            response = self._generator.generate(job.request)
        except TextGenerationError as e:
            raise GenerationFailure(job.chunk_number, str(e), transient=e.transient) from e
        return GeneratedChunk(chunk_number=job.chunk_number, text=response.text, attempts=attempt)

    def run_jobs(
        self,
        jobs: Sequence[ChunkJob],
        produce: Optional[ChunkProducer] = None,
        cancel_event: Optional[threading.Event] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> DispatchResult:
        """
        Generate `jobs` in order. Stops at the first GenerationFailure and
        returns the chunks completed before it. Cancellation is checked
        between chunks only.
        """
        produce = produce or self.generate_chunk
        completed: List[GeneratedChunk] = []
        for job in jobs:
            if cancel_event is not None and cancel_event.is_set():
                print(f"  ⚠️  Cancelled before chunk {job.chunk_number}/{job.total_chunks}")
                return DispatchResult(chunks=tuple(completed), cancelled=True)

            print(f"  📝 Chunk {job.chunk_number}/{job.total_chunks} "
                  f"[{job.start_minute}-{job.end_minute} min, {job.assignment.kind}] "
                  f"target {job.target_words} words")
            try:
                chunk = produce(job)
            except GenerationFailure as e:
                print(f"  ❌ {e}")
                return DispatchResult(chunks=tuple(completed), failure=e)

            print(f"  ✅ Chunk {job.chunk_number}: {chunk.word_count} words")
            completed.append(chunk)
            if on_chunk is not None:
                on_chunk(job, chunk)
        return DispatchResult(chunks=tuple(completed))

    def dispatch(
        self,
        outline: Optional[Outline],
        content_points: Sequence[ContentPoint],
        total_minutes: int,
        hook: str = "",
        voice_params: Optional[Dict[str, Any]] = None,
        audience: Any = None,
        tone: str = "",
        *,
        title: str,
        topic: str,
        content_plan: Optional[ContentPlan] = None,
        research: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[threading.Event] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> DispatchResult:
        jobs = self.plan_chunks(
            outline, content_points, total_minutes, hook, voice_params, audience, tone,
            title=title, topic=topic, content_plan=content_plan, research=research,
        )
        return self.run_jobs(jobs, cancel_event=cancel_event, on_chunk=on_chunk)
