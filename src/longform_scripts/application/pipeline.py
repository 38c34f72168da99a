"""
Long-form script pipeline – single responsibility: orchestrate
outline → chunk plan → sequential chunk generation (validated) → stitch → document validation.
Depends only on the ITextGenerator port.
"""

import threading
from typing import Any, Dict, List, Optional

from longform_scripts.application.chunk_dispatcher import ChunkDispatcher
from longform_scripts.application.chunk_planner import get_chunk_config, needs_chunking, total_minutes_for
from longform_scripts.application.content_plan import ContentPlanner
from longform_scripts.application.outline_generator import (
    OutlineGenerator,
    get_chunk_sections,
    get_forbidden_sections,
    log_outline_summary,
)
from longform_scripts.application.outline_validator import (
    log_script_validation,
    log_validation_results,
    validate_chunk,
    validate_complete_script,
    validate_completeness,
    validate_outline_before_generation,
)
from longform_scripts.application.stitcher import stitch_chunks
from longform_scripts.config import CHUNK_MAX_RETRIES, OUTLINE_MIN_MINUTES
from longform_scripts.domain.errors import GenerationFailure
from longform_scripts.domain.models import (
    SEVERITY_PASS,
    SEVERITY_WARNING,
    ChunkJob,
    ContentPlan,
    GeneratedChunk,
    Outline,
    OutlineFailure,
    ScriptRequest,
    ScriptResult,
    ValidationResult,
    point_title,
)
from longform_scripts.ports.interfaces import ITextGenerator


class LongFormScriptPipeline:
    """
    Generates one long-form script.
    The outline step degrades to outline-free chunking on failure; chunk
    failures are retried up to `max_chunk_retries` times, regenerating only
    the failed chunk.
    """

    def __init__(
        self,
        *,
        text_generator: ITextGenerator,
        max_chunk_retries: int = CHUNK_MAX_RETRIES,
        outline_min_minutes: int = OUTLINE_MIN_MINUTES,
        plan_content: bool = False,
    ):
        self._outlines = OutlineGenerator(text_generator)
        self._planner = ContentPlanner(text_generator)
        self._dispatcher = ChunkDispatcher(text_generator)
        self._max_retries = max(0, max_chunk_retries)
        self._outline_min_minutes = outline_min_minutes
        self._plan_content = plan_content

    def run(self, request: ScriptRequest, cancel_event: Optional[threading.Event] = None) -> ScriptResult:
        """Generate the script. Raises ConfigError on an invalid duration."""
        total_minutes = total_minutes_for(request.duration_seconds)
        if not needs_chunking(request.duration_seconds):
            return self._run_single(request, total_minutes, cancel_event)

        chunk_config = get_chunk_config(total_minutes)
        print("=" * 60)
        print(f"Generating long-form script: {request.title}")
        print(f"  {total_minutes} minutes → {chunk_config.chunk_count} chunks")
        print("=" * 60)

        print("\n[1/5] Generating comprehensive outline...")
        outline, outline_failure = self._outline(request, total_minutes, chunk_config.chunk_count)

        print("\n[2/5] Planning chunk assignments...")
        content_plan = self._content_plan(request, outline, total_minutes, chunk_config.chunk_count)

        print("\n[3/5] Generating chunks...")
        validations: Dict[int, ValidationResult] = {}
        jobs = self._dispatcher.plan_chunks(
            outline,
            request.content_points,
            total_minutes,
            request.hook,
            request.voice_params,
            request.audience,
            request.tone,
            title=request.title,
            topic=request.topic,
            content_plan=content_plan,
            research=request.research,
        )
        dispatch = self._dispatcher.run_jobs(
            jobs,
            produce=lambda job: self._generate_validated(job, outline, validations),
            cancel_event=cancel_event,
        )

        print("\n[4/5] Stitching chunks...")
        script = stitch_chunks([c.text for c in dispatch.chunks])
        print(f"  📝 Script: {len(script.split())} words from {len(dispatch.chunks)} chunks")

        print("\n[5/5] Validating complete script...")
        if not dispatch.completed:
            document_validation = ValidationResult(
                passed=False,
                severity=SEVERITY_WARNING,
                skipped=True,
                note="Document validation skipped: generation did not complete",
            )
        elif outline_failure is not None:
            document_validation = ValidationResult(
                passed=True,
                severity=SEVERITY_PASS,
                skipped=True,
                note=f"Outline-based validation skipped: outline generation failed ({outline_failure.reason})",
            )
        else:
            document_validation = validate_complete_script(script, outline)
        log_script_validation(document_validation)

        completeness = validate_completeness(script, total_minutes)
        if not completeness.is_valid:
            print(f"  ⚠️  Completeness: {'; '.join(completeness.issues)}")

        result = ScriptResult(
            script=script,
            chunks=list(dispatch.chunks),
            chunk_validations=validations,
            document_validation=document_validation,
            outline=outline,
            outline_failure=outline_failure,
            completeness=completeness,
            failure=dispatch.failure,
            cancelled=dispatch.cancelled,
        )
        self._print_summary(result)
        return result

    def _run_single(
        self,
        request: ScriptRequest,
        total_minutes: int,
        cancel_event: Optional[threading.Event],
    ) -> ScriptResult:
        print(f"  📝 {total_minutes}-minute script: single generation call")
        jobs = self._dispatcher.plan_chunks(
            None,
            request.content_points,
            total_minutes,
            request.hook,
            request.voice_params,
            request.audience,
            request.tone,
            title=request.title,
            topic=request.topic,
            research=request.research,
        )
        dispatch = self._dispatcher.run_jobs(
            jobs,
            produce=lambda job: self._generate_validated(job, None, {}),
            cancel_event=cancel_event,
        )
        script = dispatch.chunks[0].text if dispatch.chunks else ""
        return ScriptResult(
            script=script,
            chunks=list(dispatch.chunks),
            document_validation=ValidationResult(
                passed=dispatch.completed,
                severity=SEVERITY_PASS,
                skipped=True,
                note="Single-call script: no outline to validate against",
            ),
            completeness=validate_completeness(script, total_minutes) if script else None,
            failure=dispatch.failure,
            cancelled=dispatch.cancelled,
            chunked=False,
        )

    def _outline(self, request: ScriptRequest, total_minutes: int, chunk_count: int):
        if total_minutes < self._outline_min_minutes:
            print(f"  ⚠️  Outline skipped for {total_minutes}-minute script")
            return None, None

        context = {
            "hook": request.hook,
            "target_audience": request.audience,
            "tone": request.tone,
            "research": request.research,
        }
        result = self._outlines.generate_outline(
            request.title, request.topic, request.content_points, total_minutes, chunk_count, context
        )
        if isinstance(result, OutlineFailure):
            print("  ⚠️  Falling back to chunking without an outline")
            return None, result

        log_outline_summary(result)
        expected = [point_title(p) for p in request.content_points if point_title(p)]
        precheck = validate_outline_before_generation(result, request.title, expected)
        for issue in precheck.issues:
            print(f"  ⚠️  {issue.message}")
        return result, None

    def _content_plan(
        self,
        request: ScriptRequest,
        outline: Optional[Outline],
        total_minutes: int,
        chunk_count: int,
    ) -> Optional[ContentPlan]:
        if outline is not None:
            print("  ✅ Using outline sections")
            return request.content_plan
        if request.content_plan is not None:
            print("  ✅ Using provided content plan")
            return request.content_plan
        if self._plan_content:
            return self._planner.generate_content_plan(
                request.title, request.topic, request.content_points, total_minutes, chunk_count
            )
        print("  ⚠️  No outline or content plan: slicing content points mechanically")
        return None

    def _generate_validated(
        self,
        job: ChunkJob,
        outline: Optional[Outline],
        validations: Dict[int, ValidationResult],
    ) -> GeneratedChunk:
        """
        Generate one chunk, retrying transient failures and critical validation
        issues until the retry budget is spent. The last attempt is kept even if
        it still has critical issues.
        """
        n = job.chunk_number
        outline_chunk = get_chunk_sections(outline, n)
        forbidden = get_forbidden_sections(outline, n)
        attempt = 0
        while True:
            attempt += 1
            can_retry = attempt <= self._max_retries
            try:
                chunk = self._dispatcher.generate_chunk(job, attempt=attempt)
            except GenerationFailure as e:
                if e.transient and can_retry:
                    print(f"  ⚠️  {e} – retrying ({attempt}/{self._max_retries})")
                    continue
                raise

            validation = validate_chunk(chunk.text, outline_chunk, n, forbidden)
            validations[n] = validation
            if outline_chunk is not None:
                log_validation_results(validation, n)
            if validation.is_critical and can_retry:
                print(f"  ⚠️  Chunk {n} has critical issues – regenerating ({attempt}/{self._max_retries})")
                continue
            return chunk

    def _print_summary(self, result: ScriptResult) -> None:
        if result.cancelled:
            print(f"\n⚠️  Cancelled after {len(result.chunks)} chunk(s)")
        elif result.failure is not None:
            print(f"\n❌ {result.failure} ({len(result.chunks)} chunk(s) completed)")
        else:
            print(f"\n✅ Script complete: {len(result.script.split())} words")


def build_report(result: ScriptResult) -> Dict[str, Any]:
    """JSON-serializable validation report for a ScriptResult."""

    def issues(validation: Optional[ValidationResult]) -> List[Dict[str, Any]]:
        if validation is None:
            return []
        return [
            {
                "type": i.type,
                "severity": i.severity,
                "subject": i.subject,
                "message": i.message,
                "missingTerms": list(i.missing_terms),
            }
            for i in validation.issues
        ]

    def summary(validation: Optional[ValidationResult]) -> Optional[Dict[str, Any]]:
        if validation is None:
            return None
        return {
            "passed": validation.passed,
            "severity": validation.severity,
            "skipped": validation.skipped,
            "note": validation.note,
            "issues": issues(validation),
            "topicCoverage": dict(validation.topic_coverage),
        }

    completeness = result.completeness
    return {
        "completed": result.completed,
        "cancelled": result.cancelled,
        "chunked": result.chunked,
        "failure": str(result.failure) if result.failure else None,
        "outlineUsed": result.outline is not None,
        "outlineFailure": result.outline_failure.reason if result.outline_failure else None,
        "chunks": [
            {
                "chunkNumber": c.chunk_number,
                "words": c.word_count,
                "attempts": c.attempts,
                "validation": summary(result.chunk_validations.get(c.chunk_number)),
            }
            for c in result.chunks
        ],
        "document": summary(result.document_validation),
        "completeness": None if completeness is None else {
            "wordCount": completeness.word_count,
            "expectedWords": completeness.expected_words,
            "percentComplete": completeness.percent_complete,
            "hasPlaceholders": completeness.has_placeholders,
            "hasTimestamps": completeness.has_timestamps,
            "issues": list(completeness.issues),
        },
    }
