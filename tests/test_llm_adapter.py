import pytest
import requests

from conftest import FakeTextGenerator
from longform_scripts.adapters import LLMTextGenerator, default_adapters
from longform_scripts.application.outline_generator import OutlineGenerator
from longform_scripts.domain.errors import TextGenerationError
from longform_scripts.domain.models import GenerationRequest, OutlineFailure
from longform_scripts.llm_client import LLMClient


class RecordingClient:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def generate(self, prompt, options=None):
        self.calls.append((prompt, options))
        return self.result


def _offline_client(gemini=None, openrouter=None, ollama=None):
    client = LLMClient(probe=False)
    for name, behaviour in (("gemini", gemini), ("openrouter", openrouter), ("ollama", ollama)):
        setattr(client, f"_generate_{name}", behaviour or (lambda prompt, options: None))
    return client


def _timeout(prompt, options):
    raise requests.Timeout("slow")


def test_adapter_maps_request_to_client_options():
    client = RecordingClient({"response": "  Script text  ", "provider": "gemini"})
    response = LLMTextGenerator(client=client).generate(
        GenerationRequest(user_directives="write", system_directives="be brief", max_output_tokens=100, temperature=0.2)
    )

    assert response.text == "Script text"
    assert response.provider == "gemini"
    assert client.calls == [("write", {"temperature": 0.2, "num_predict": 100, "system": "be brief"})]


def test_adapter_rejects_empty_text():
    client = RecordingClient({"response": "   ", "provider": "ollama"})
    with pytest.raises(TextGenerationError) as exc:
        LLMTextGenerator(client=client).generate(GenerationRequest(user_directives="write"))
    assert exc.value.transient is False
    assert exc.value.provider == "ollama"


def test_client_falls_back_and_switches_provider():
    client = _offline_client(openrouter=lambda prompt, options: {"response": "hello", "provider": "openrouter"})
    result = client.generate("prompt", {"temperature": 0.5})
    assert result == {"response": "hello", "provider": "openrouter"}
    assert client.current_provider == "openrouter"


def test_client_raises_when_every_provider_fails():
    with pytest.raises(TextGenerationError) as exc:
        _offline_client().generate("prompt")
    assert exc.value.transient is True
    assert "returned no text" in str(exc.value)


def test_client_reports_timeouts():
    with pytest.raises(TextGenerationError) as exc:
        _offline_client(gemini=_timeout).generate("prompt")
    assert "timed out" in str(exc.value)


def test_default_adapters_accept_overrides():
    fake = FakeTextGenerator()
    assert default_adapters(text_generator=fake) == {"text_generator": fake}


class CannedResponse:
    def __init__(self, status_code=200, payload=None, body="not json"):
        self.status_code = status_code
        self.payload = payload
        self.text = body

    def json(self):
        if self.payload is None:
            raise ValueError(self.text)
        return self.payload


def _rest_client(monkeypatch, response, provider):
    monkeypatch.setattr("longform_scripts.llm_client.requests.post", lambda *args, **kwargs: response)
    client = _offline_client()
    if provider == "gemini":
        client.gemini_config["api_key"] = "test-key"
        del client._generate_gemini
    else:
        client.openrouter_config["api_key"] = "test-key"
        del client._generate_openrouter
    return client


@pytest.mark.parametrize("provider, response", [
    ("gemini", CannedResponse()),
    ("gemini", CannedResponse(payload={"candidates": []})),
    ("openrouter", CannedResponse()),
    ("openrouter", CannedResponse(payload={"choices": []})),
])
def test_unreadable_provider_reply_falls_through(monkeypatch, provider, response):
    client = _rest_client(monkeypatch, response, provider)
    with pytest.raises(TextGenerationError) as exc:
        client.generate("prompt")
    assert exc.value.transient is True


def test_outline_degrades_when_provider_reply_is_not_json(monkeypatch, bridge_points):
    client = _rest_client(monkeypatch, CannedResponse(), "gemini")
    result = OutlineGenerator(LLMTextGenerator(client=client)).generate_outline(
        "Why Bridges Fall Down", "bridges", bridge_points, 40, 3,
    )
    assert isinstance(result, OutlineFailure)
