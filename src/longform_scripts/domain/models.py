"""Domain models – outline, chunk assignment, generation and validation values."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TypedDict, Union

from longform_scripts.domain.errors import GenerationFailure


class ContentPoint(TypedDict, total=False):
    """One upstream content point. Compatible with the dict-based planning flow."""
    title: str
    name: str  # legacy alias for title
    description: str
    duration: float  # seconds
    keyTakeaway: str


def point_title(point: ContentPoint, fallback: str = "") -> str:
    return point.get("title") or point.get("name") or fallback


# ---------------------------------------------------------------------------
# Outline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Section:
    """Smallest planned unit of content. `title` must be reproduced verbatim."""
    timestamp: str
    title: str
    duration_minutes: float
    content: str
    key_points: Tuple[str, ...] = ()
    visual_cues: str = ""
    narrative_note: str = ""


@dataclass(frozen=True)
class Chunk:
    """Outline-level chunk: a contiguous time range and its ordered sections."""
    chunk_number: int
    time_range: Tuple[int, int]
    theme: str
    sections: Tuple[Section, ...]
    transition_to_next: str = ""

    @property
    def span_minutes(self) -> int:
        return self.time_range[1] - self.time_range[0]

    @property
    def section_minutes(self) -> float:
        return sum(s.duration_minutes for s in self.sections)

    @property
    def section_titles(self) -> List[str]:
        return [s.title for s in self.sections]

    @property
    def time_label(self) -> str:
        start, end = self.time_range
        return f"{start}:00-{end}:00"


@dataclass(frozen=True)
class Outline:
    """Single source of truth for the whole document. Read-only once built."""
    title: str
    total_minutes: int
    overview: str
    chunks: Tuple[Chunk, ...]
    key_takeaways: Tuple[str, ...] = ()

    def chunk(self, chunk_number: int) -> Optional[Chunk]:
        for c in self.chunks:
            if c.chunk_number == chunk_number:
                return c
        return None

    def all_section_titles(self) -> List[str]:
        return [s.title for c in self.chunks for s in c.sections]


@dataclass(frozen=True)
class OutlineFailure:
    """Outline generation did not produce a usable outline. Callers fall back."""
    reason: str
    raw_text: str = ""


OutlineResult = Union[Outline, OutlineFailure]


@dataclass(frozen=True)
class ForbiddenSection:
    title: str
    assigned_to_chunk: int
    time_range: Tuple[int, int]


@dataclass(frozen=True)
class ChunkPlanConfig:
    chunk_count: int
    minutes_per_chunk: int


# ---------------------------------------------------------------------------
# Upstream content plan (simpler chunk -> section assignment)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlannedSection:
    title: str
    description: str = ""
    estimated_minutes: float = 0


@dataclass(frozen=True)
class PlannedChunk:
    chunk_number: int
    time_range: str
    assigned_sections: Tuple[PlannedSection, ...] = ()

    @property
    def titles(self) -> List[str]:
        return [s.title for s in self.assigned_sections]


@dataclass(frozen=True)
class ContentPlan:
    chunks: Tuple[PlannedChunk, ...]

    def chunk(self, chunk_number: int) -> Optional[PlannedChunk]:
        for c in self.chunks:
            if c.chunk_number == chunk_number:
                return c
        return None


# ---------------------------------------------------------------------------
# Section assignment (one variant per fallback tier)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OutlineDerived:
    """Sections come from the comprehensive outline chunk."""
    chunk: Chunk
    points: Tuple[ContentPoint, ...] = ()
    kind = "outline"

    def covered_titles(self) -> List[str]:
        return self.chunk.section_titles


@dataclass(frozen=True)
class PlanDerived:
    """Sections come from an upstream content plan."""
    titles: Tuple[str, ...]
    points: Tuple[ContentPoint, ...] = ()
    forbidden: Tuple[str, ...] = ()
    kind = "plan"

    def covered_titles(self) -> List[str]:
        return list(self.titles)


@dataclass(frozen=True)
class MechanicalSlice:
    """Contiguous index slice of the content points. No enforcement."""
    points: Tuple[ContentPoint, ...] = ()
    start_index: int = 0
    kind = "mechanical"

    def covered_titles(self) -> List[str]:
        return [point_title(p, "Section") for p in self.points]


SectionAssignment = Union[OutlineDerived, PlanDerived, MechanicalSlice]


@dataclass(frozen=True)
class ContinuityState:
    """Accumulated record of what earlier chunks covered. Grows monotonically."""
    covered_sections: Tuple[str, ...] = ()
    chunks_completed: int = 0

    @property
    def last_topic(self) -> str:
        return self.covered_sections[-1] if self.covered_sections else "Previous discussion"

    def advance(self, titles: List[str]) -> "ContinuityState":
        return ContinuityState(
            covered_sections=self.covered_sections + tuple(titles),
            chunks_completed=self.chunks_completed + 1,
        )


# ---------------------------------------------------------------------------
# Generation service values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationRequest:
    user_directives: str
    system_directives: str = ""
    max_output_tokens: int = 8192
    temperature: float = 0.7


@dataclass(frozen=True)
class GenerationResponse:
    text: str
    provider: str = ""


@dataclass(frozen=True)
class ChunkJob:
    """Everything needed to issue the generation call for one chunk."""
    chunk_number: int
    total_chunks: int
    start_minute: int
    end_minute: int
    assignment: SectionAssignment
    continuity: ContinuityState
    request: GenerationRequest
    target_words: int
    buffer_words: int

    @property
    def is_first(self) -> bool:
        return self.chunk_number == 1

    @property
    def is_last(self) -> bool:
        return self.chunk_number == self.total_chunks


@dataclass(frozen=True)
class GeneratedChunk:
    chunk_number: int
    text: str
    attempts: int = 1

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class DispatchResult:
    chunks: Tuple[GeneratedChunk, ...]
    failure: Optional[GenerationFailure] = None
    cancelled: bool = False

    @property
    def completed(self) -> bool:
        return self.failure is None and not self.cancelled


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

SEVERITY_PASS = "pass"
SEVERITY_WARNING = "warning"
SEVERITY_CRITICAL = "critical"


@dataclass(frozen=True)
class ValidationIssue:
    type: str  # missing_section | weak_coverage | forbidden_topic | missing_topic | ...
    severity: str
    subject: str  # section title or topic
    message: str
    missing_terms: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TopicMatch:
    title_found: bool
    match_percentage: float
    key_terms_found: Tuple[str, ...] = ()
    key_terms_missing: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    passed: bool
    severity: str
    issues: Tuple[ValidationIssue, ...] = ()
    topic_matches: Dict[str, TopicMatch] = field(default_factory=dict)
    topic_coverage: Dict[str, bool] = field(default_factory=dict)
    skipped: bool = False
    note: str = ""

    def issues_of(self, issue_type: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.type == issue_type]

    @property
    def is_critical(self) -> bool:
        return self.severity == SEVERITY_CRITICAL


@dataclass(frozen=True)
class TopicMatchScore:
    matches: bool
    score: float
    topic_found: bool
    keyword_matches: Tuple[str, ...] = ()
    missed_keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CompletenessReport:
    word_count: int
    expected_words: int
    percent_complete: int
    has_placeholders: bool
    has_timestamps: bool
    issues: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.issues


# ---------------------------------------------------------------------------
# Pipeline input/output
# ---------------------------------------------------------------------------


@dataclass
class ScriptRequest:
    """Everything upstream collaborators hand to the pipeline for one document."""
    title: str
    topic: str
    duration_seconds: int
    content_points: List[ContentPoint] = field(default_factory=list)
    hook: str = ""
    voice_params: Optional[Dict[str, Any]] = None
    audience: Any = None
    tone: str = ""
    research: Optional[Dict[str, Any]] = None
    content_plan: Optional[ContentPlan] = None


@dataclass
class ScriptResult:
    script: str
    chunks: List[GeneratedChunk] = field(default_factory=list)
    chunk_validations: Dict[int, ValidationResult] = field(default_factory=dict)
    document_validation: Optional[ValidationResult] = None
    outline: Optional[Outline] = None
    outline_failure: Optional[OutlineFailure] = None
    completeness: Optional[CompletenessReport] = None
    failure: Optional[GenerationFailure] = None
    cancelled: bool = False
    chunked: bool = True

    @property
    def completed(self) -> bool:
        return self.failure is None and not self.cancelled
