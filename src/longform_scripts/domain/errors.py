"""Domain errors for long-form script generation."""

from typing import Optional


class ConfigError(ValueError):
    """Invalid duration or chunking input. Fatal, surfaced immediately."""


class TextGenerationError(Exception):
    """
    The text generation service failed.
    `transient` tells the caller whether retrying the same request may succeed
    (timeouts, every provider temporarily down) or not (empty/blocked output).
    """

    def __init__(self, message: str, transient: bool = True, provider: Optional[str] = None):
        super().__init__(message)
        self.transient = transient
        self.provider = provider


class GenerationFailure(Exception):
    """Generation of one chunk failed. Chunks before it remain valid."""

    def __init__(self, chunk_number: int, reason: str, transient: bool = True):
        super().__init__(f"Chunk {chunk_number} generation failed: {reason}")
        self.chunk_number = chunk_number
        self.reason = reason
        self.transient = transient
