"""
Adapters – concrete implementations of ports.
The default text generator is LLMClient with Gemini → OpenRouter → Ollama fallback.
Inject a different ITextGenerator for tests or another provider.
"""

from longform_scripts.adapters.llm import LLMTextGenerator


def default_adapters(**overrides):
    """
    Build default adapter instances (use package config).
    Overrides: text_generator=... for testing or a custom provider.
    """
    defaults = {}
    if "text_generator" not in overrides:
        defaults["text_generator"] = LLMTextGenerator()
    defaults.update(overrides)
    return defaults


__all__ = ["LLMTextGenerator", "default_adapters"]
