"""Domain models, errors and value objects."""

from longform_scripts.domain.errors import ConfigError, GenerationFailure, TextGenerationError
from longform_scripts.domain.models import (
    Chunk,
    ChunkPlanConfig,
    ContentPlan,
    ContentPoint,
    GeneratedChunk,
    GenerationRequest,
    GenerationResponse,
    Outline,
    OutlineFailure,
    Section,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "Chunk",
    "ChunkPlanConfig",
    "ConfigError",
    "ContentPlan",
    "ContentPoint",
    "GeneratedChunk",
    "GenerationFailure",
    "GenerationRequest",
    "GenerationResponse",
    "Outline",
    "OutlineFailure",
    "Section",
    "TextGenerationError",
    "ValidationIssue",
    "ValidationResult",
]
