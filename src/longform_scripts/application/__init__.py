"""Application layer – planning, generation, validation and pipeline orchestration."""

from longform_scripts.application.chunk_dispatcher import ChunkDispatcher
from longform_scripts.application.content_plan import ContentPlanner
from longform_scripts.application.outline_generator import OutlineGenerator
from longform_scripts.application.pipeline import LongFormScriptPipeline

__all__ = ["ChunkDispatcher", "ContentPlanner", "LongFormScriptPipeline", "OutlineGenerator"]
