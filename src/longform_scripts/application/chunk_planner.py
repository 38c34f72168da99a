"""
Chunk planning – decides whether a script needs decomposition and how many chunks.
Each tier keeps a single generation call within a word budget the service can
reliably fill in one response.
"""

import math
from typing import List, Tuple

from longform_scripts.config import CHUNKING_THRESHOLD_MINUTES, WORD_BUFFER_RATIO, WORDS_PER_MINUTE
from longform_scripts.domain.errors import ConfigError
from longform_scripts.domain.models import ChunkPlanConfig

STANDARD_CHUNK_MINUTES = 15


def needs_chunking(duration_seconds: float) -> bool:
    """True when the script is long enough to need chunked generation."""
    if duration_seconds is None or duration_seconds <= 0:
        raise ConfigError(f"Duration must be positive, got {duration_seconds!r}")
    minutes = math.ceil(duration_seconds / 60)
    return minutes >= CHUNKING_THRESHOLD_MINUTES


def get_chunk_config(total_minutes: int) -> ChunkPlanConfig:
    """Tiered chunk count / size policy."""
    if total_minutes is None or total_minutes <= 0:
        raise ConfigError(f"Total minutes must be positive, got {total_minutes!r}")

    if total_minutes < CHUNKING_THRESHOLD_MINUTES:
        return ChunkPlanConfig(chunk_count=1, minutes_per_chunk=total_minutes)
    if total_minutes <= 30:
        return ChunkPlanConfig(chunk_count=2, minutes_per_chunk=math.ceil(total_minutes / 2))
    if total_minutes <= 45:
        return ChunkPlanConfig(chunk_count=3, minutes_per_chunk=STANDARD_CHUNK_MINUTES)
    if total_minutes <= 60:
        return ChunkPlanConfig(chunk_count=4, minutes_per_chunk=STANDARD_CHUNK_MINUTES)
    return ChunkPlanConfig(
        chunk_count=math.ceil(total_minutes / STANDARD_CHUNK_MINUTES),
        minutes_per_chunk=STANDARD_CHUNK_MINUTES,
    )


def chunk_time_ranges(total_minutes: int, plan: ChunkPlanConfig) -> List[Tuple[int, int]]:
    """Contiguous (start, end) minute ranges; the last chunk absorbs the remainder."""
    ranges = []
    for i in range(plan.chunk_count):
        start = i * plan.minutes_per_chunk
        end = min((i + 1) * plan.minutes_per_chunk, total_minutes)
        ranges.append((start, end))
    return ranges


def total_minutes_for(duration_seconds: float) -> int:
    if duration_seconds is None or duration_seconds <= 0:
        raise ConfigError(f"Duration must be positive, got {duration_seconds!r}")
    return math.ceil(duration_seconds / 60)


def words_for_minutes(minutes: float) -> int:
    return math.ceil(minutes * WORDS_PER_MINUTE)


def buffered_words(target_words: int) -> int:
    """Target inflated by the completeness buffer."""
    return math.ceil(round(target_words * WORD_BUFFER_RATIO, 6))
