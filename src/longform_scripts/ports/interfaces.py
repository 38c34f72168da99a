"""
Port interfaces (SOLID – Dependency Inversion).
The orchestrator depends only on these abstractions; adapters implement them.
"""

from abc import ABC, abstractmethod

from longform_scripts.domain.models import GenerationRequest, GenerationResponse


class ITextGenerator(ABC):
    """Text generation service: structured directives in, plain text out."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GenerationResponse:
        """
        Run one generation call.
        Raises TextGenerationError; `transient` says whether a retry may help.
        """
        pass
