from __future__ import annotations

import logging

import pytest

from GalleryTranslator.ai import service as service_module
from GalleryTranslator.ai.contracts import AIError, AIResponse
from GalleryTranslator.ai.service import NO_CONNECTION, TRANSLATION_FAILED, RecognitionService
from GalleryTranslator.util.config.configuration import (
    AI_GEMINI,
    AI_GROQ,
    AI_LM_STUDIO,
    AI_OLLAMA,
    AI_OPENAI,
    Ai,
)


class _StubRegistry:
    def __init__(self, client):
        self._client = client

    def get_client(self, _config):
        return self._client


class _FailoverClient:
    def __init__(self, primary_model: str, backup_model: str, raw_text: str = '{"originalText":"猫","translation":"Cat"}'):
        self.primary_model = primary_model
        self.backup_model = backup_model
        self.raw_text = raw_text
        self.models_seen: list[str] = []

    def generate(self, request):
        self.models_seen.append(request.model)
        if request.model == self.primary_model:
            raise AIError("Processing failed: 429 RESOURCE_EXHAUSTED", transient=True)
        if request.model == self.backup_model:
            return AIResponse(
                provider=request.provider,
                model=request.model,
                raw_text=self.raw_text,
                latency_ms=5,
            )
        raise AIError("Unexpected model", transient=False)


class _AlwaysFailClient:
    def __init__(self, primary_model: str, backup_model: str):
        self.primary_model = primary_model
        self.backup_model = backup_model
        self.models_seen: list[str] = []

    def generate(self, request):
        self.models_seen.append(request.model)
        if request.model == self.primary_model:
            raise AIError("Primary failed", transient=True)
        if request.model == self.backup_model:
            raise AIError("Backup failed", transient=True)
        raise AIError("Unexpected model", transient=False)


class _EchoClient:
    def __init__(self, raw_text: str):
        self.raw_text = raw_text
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        return AIResponse(provider=request.provider, model=request.model, raw_text=self.raw_text, latency_ms=1)


@pytest.fixture(autouse=True)
def _online(monkeypatch):
    monkeypatch.setattr(service_module, "is_connected", lambda: True)


def _build_service(ai_config: Ai, client) -> RecognitionService:
    return RecognitionService(
        config=ai_config,
        logger=logging.getLogger("test.ai.service"),
        registry=_StubRegistry(client),
    )


def _build_ai_config(provider: str, primary_model: str, backup_model: str = "") -> Ai:
    if provider == AI_GEMINI:
        return Ai(
            provider=provider,
            gemini_model=primary_model,
            gemini_backup_model=backup_model,
            gemini_api_key="test-key",
        )
    if provider == AI_GROQ:
        return Ai(
            provider=provider,
            groq_model=primary_model,
            groq_backup_model=backup_model,
            groq_api_key="test-key",
        )
    if provider == AI_OPENAI:
        return Ai(
            provider=provider,
            open_ai_url="https://api.example.com/v1",
            open_ai_model=primary_model,
            open_ai_backup_model=backup_model,
            open_ai_api_key="test-key",
        )
    if provider == AI_OLLAMA:
        return Ai(
            provider=provider,
            ollama_url="http://localhost:11434",
            ollama_model=primary_model,
            ollama_backup_model=backup_model,
        )
    if provider == AI_LM_STUDIO:
        return Ai(
            provider=provider,
            lm_studio_url="http://localhost:1234/v1",
            lm_studio_model=primary_model,
            lm_studio_backup_model=backup_model,
            lm_studio_api_key="lm-studio",
        )
    raise AssertionError(f"Unsupported provider in test: {provider}")


PROVIDER_MODELS = [
    (AI_GEMINI, "gemini-2.5-flash", "gemini-2.5-flash-lite"),
    (AI_GROQ, "meta-llama/llama-4-scout-17b-16e-instruct", "meta-llama/llama-4-maverick-17b-128e-instruct"),
    (AI_OPENAI, "gpt-4o-mini", "gpt-4.1-mini"),
    (AI_OLLAMA, "qwen3-vl:8b", "qwen2.5vl:7b"),
    (AI_LM_STUDIO, "qwen2.5-vl-7b-instruct", "gemma-3-12b-it"),
]


@pytest.mark.parametrize(("provider", "primary_model", "backup_model"), PROVIDER_MODELS)
def test_execute_request_retries_with_backup_model_on_primary_failure(provider: str, primary_model: str, backup_model: str):
    client = _FailoverClient(primary_model=primary_model, backup_model=backup_model)
    service = _build_service(_build_ai_config(provider, primary_model, backup_model), client)

    request = service._make_request(prompt="read this", request_kind="region", images=(b"jpeg",))
    response = service._execute_request(request)

    assert response.model == backup_model
    assert client.models_seen == [primary_model, backup_model]


@pytest.mark.parametrize(("provider", "primary_model", "backup_model"), PROVIDER_MODELS)
def test_execute_request_raises_primary_error_when_backup_also_fails(provider: str, primary_model: str, backup_model: str):
    client = _AlwaysFailClient(primary_model=primary_model, backup_model=backup_model)
    service = _build_service(_build_ai_config(provider, primary_model, backup_model), client)

    request = service._make_request(prompt="read this", request_kind="region")
    with pytest.raises(AIError, match="Primary failed"):
        service._execute_request(request)

    assert client.models_seen == [primary_model, backup_model]


def test_recognize_uses_backup_model_and_parses_answer():
    client = _FailoverClient(primary_model="qwen3-vl:8b", backup_model="qwen2.5vl:7b")
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b", "qwen2.5vl:7b"), client)

    item = service.recognize(b"jpeg", "English")

    assert (item.original_text, item.translated_text) == ("猫", "Cat")
    assert not item.is_error


def test_recognize_returns_labeled_failure_instead_of_raising():
    client = _AlwaysFailClient(primary_model="qwen3-vl:8b", backup_model="")
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b"), client)

    item = service.recognize(b"jpeg", "English")

    assert item.is_error
    assert item.original_text == "Error"
    assert "Primary failed" in item.translated_text
    assert client.models_seen == ["qwen3-vl:8b"]


def test_recognize_many_sends_image_and_page_prompt():
    client = _EchoClient('[{"originalText":"一","translation":"One"},{"originalText":"二","translation":"Two"}]')
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b"), client)

    items = service.recognize_many(b"page-bytes", "German")

    assert [item.translated_text for item in items] == ["One", "Two"]
    request = client.requests[0]
    assert request.images == (b"page-bytes",)
    assert request.json_output is True
    assert "German" in request.prompt
    assert "Order top-to-bottom" in request.prompt
    assert request.temperature == 0.1


def test_recognize_many_returns_single_failure_on_transport_error():
    client = _AlwaysFailClient(primary_model="qwen3-vl:8b", backup_model="")
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b"), client)

    items = service.recognize_many(b"page-bytes", "English")

    assert len(items) == 1
    assert items[0].is_error


def test_remote_provider_offline_yields_failure(monkeypatch):
    monkeypatch.setattr(service_module, "is_connected", lambda: False)
    client = _EchoClient('{"originalText":"一","translation":"One"}')
    service = _build_service(_build_ai_config(AI_GEMINI, "gemini-2.5-flash"), client)

    item = service.recognize(b"jpeg", "English")

    assert item.is_error
    assert item.translated_text == NO_CONNECTION
    assert client.requests == []


def test_local_provider_skips_connectivity_check(monkeypatch):
    monkeypatch.setattr(service_module, "is_connected", lambda: False)
    client = _EchoClient('{"originalText":"一","translation":"One"}')
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b"), client)

    assert service.recognize(b"jpeg", "English").translated_text == "One"


def test_openai_on_localhost_is_treated_as_local(monkeypatch):
    monkeypatch.setattr(service_module, "is_connected", lambda: False)
    client = _EchoClient('{"originalText":"一","translation":"One"}')
    config = Ai(provider=AI_OPENAI, open_ai_url="http://127.0.0.1:8080/v1", open_ai_model="local-vl", open_ai_api_key="x")
    service = _build_service(config, client)

    assert service.recognize(b"jpeg", "English").translated_text == "One"


def test_translate_text_reads_translation_field():
    client = _EchoClient('{"translation": "Good morning"}')
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b"), client)

    assert service.translate_text("おはよう", "English") == "Good morning"
    assert client.requests[0].images == ()
    assert "おはよう" in client.requests[0].prompt


def test_translate_text_returns_fixed_message_on_failure():
    client = _AlwaysFailClient(primary_model="qwen3-vl:8b", backup_model="")
    service = _build_service(_build_ai_config(AI_OLLAMA, "qwen3-vl:8b"), client)

    assert service.translate_text("おはよう", "English") == TRANSLATION_FAILED


def test_unsupported_provider_is_reported_as_failure():
    service = RecognitionService(config=Ai(provider="Carrier Pigeon"), logger=logging.getLogger("test.ai.service"))

    item = service.recognize(b"jpeg", "English")

    assert item.is_error
    assert "Unsupported AI provider" in item.translated_text


def test_service_keeps_its_own_copy_of_config():
    config = _build_ai_config(AI_OLLAMA, "qwen3-vl:8b")
    client = _EchoClient('{"originalText":"一","translation":"One"}')
    service = _build_service(config, client)

    config.ollama_model = "changed"
    service.recognize(b"jpeg", "English")

    assert client.requests[0].model == "qwen3-vl:8b"
