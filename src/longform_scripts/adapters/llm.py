"""ITextGenerator adapter using the fallback LLMClient."""

from typing import Optional

from longform_scripts.domain.errors import TextGenerationError
from longform_scripts.domain.models import GenerationRequest, GenerationResponse
from longform_scripts.ports.interfaces import ITextGenerator


class LLMTextGenerator(ITextGenerator):
    """Wraps LLMClient (Gemini → OpenRouter → Ollama)."""

    def __init__(self, client=None, timeout: Optional[int] = None):
        if client is None:
            from longform_scripts.llm_client import LLMClient
            client = LLMClient(timeout=timeout)
        self._client = client

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        options = {
            "temperature": request.temperature,
            "num_predict": request.max_output_tokens,
        }
        if request.system_directives:
            options["system"] = request.system_directives

        result = self._client.generate(request.user_directives, options)
        text = (result.get("response") or "").strip()
        provider = result.get("provider", "")
        if not text:
            raise TextGenerationError("Empty response", transient=False, provider=provider)
        return GenerationResponse(text=text, provider=provider)
