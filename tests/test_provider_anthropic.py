"""Tests for the Anthropic provider adapter."""

from types import SimpleNamespace

import httpx
import pytest

from anthropic import APIConnectionError

from llm_nexus.config import ProviderKind
from llm_nexus.models import FileContent, LLMRequest, MediaType
from llm_nexus.providers.anthropic import AnthropicProvider
from llm_nexus.providers.base import ProviderError

from conftest import make_config


def _message(**overrides):
    values = dict(
        id="msg_01",
        model="claude-test",
        content=[
            SimpleNamespace(type="text", text="Hello "),
            SimpleNamespace(type="tool_use", name="ignored"),
            SimpleNamespace(type="text", text="there"),
        ],
        stop_reason="stop_sequence",
        stop_sequence="END",
        usage=SimpleNamespace(input_tokens=12, output_tokens=4),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class _FakeMessages:
    def __init__(self, response=None, error_factory=None):
        self._response = response
        self._error_factory = error_factory
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self._error_factory is not None:
            raise self._error_factory()
        return self._response


class _FakeClient:
    def __init__(self, messages):
        self.messages = messages
        self.closed = False

    async def close(self):
        self.closed = True


@pytest.fixture
def install_client(monkeypatch):
    def _install(messages):
        client = _FakeClient(messages)
        monkeypatch.setattr(
            "llm_nexus.providers.anthropic.AsyncAnthropic",
            lambda *args, **kwargs: client,
        )
        return client

    return _install


@pytest.mark.asyncio
async def test_anthropic_provider_success(install_client, metrics):
    client = install_client(_FakeMessages(_message()))
    provider = AnthropicProvider(make_config(ProviderKind.ANTHROPIC, max_tokens=None), metrics=metrics)

    response = await provider.generate(
        LLMRequest(prompt="Greet me", system_message="You are terse", temperature=0.5)
    )

    assert response.content == "Hello there"
    assert response.id == "msg_01"
    assert response.model == "claude-test"
    assert response.provider == "Anthropic"
    assert response.finish_reason == "stop_sequence"
    assert response.stop_sequence == "END"
    assert response.usage.prompt_tokens == 12
    assert response.usage.completion_tokens == 4
    assert response.usage.total_tokens == 16

    call = client.messages.calls[0]
    assert call["model"] == "anthropic-model"
    assert call["max_tokens"] == 2000
    assert call["system"] == "You are terse"
    assert call["temperature"] == 0.5
    assert call["messages"] == [{"role": "user", "content": "Greet me"}]
    assert metrics.events[0].status == "success"


@pytest.mark.asyncio
async def test_anthropic_provider_request_max_tokens_and_clamped_temperature(install_client):
    client = install_client(_FakeMessages(_message(stop_sequence=None, stop_reason="end_turn")))
    provider = AnthropicProvider(make_config(ProviderKind.ANTHROPIC, max_tokens=512))

    response = await provider.generate(LLMRequest(prompt="hi", max_tokens=64, temperature=1.8))

    call = client.messages.calls[0]
    assert call["max_tokens"] == 64
    assert call["temperature"] == 1.0
    assert "system" not in call
    assert response.stop_sequence is None
    assert response.finish_reason == "end_turn"


@pytest.mark.asyncio
async def test_anthropic_provider_attachment_blocks(install_client):
    client = install_client(_FakeMessages(_message()))
    provider = AnthropicProvider(make_config(ProviderKind.ANTHROPIC))

    image = FileContent.from_bytes(b"jpg", MediaType.IMAGE, "image/jpeg")
    pdf_url = FileContent.from_url("https://example.com/paper.pdf", MediaType.DOCUMENT, "application/pdf")

    await provider.generate(LLMRequest(prompt="Compare", files=[image, pdf_url]))

    content = client.messages.calls[0]["messages"][0]["content"]
    assert content == [
        {
            "type": "image",
            "source": {"type": "base64", "media_type": "image/jpeg", "data": image.data},
        },
        {"type": "document", "source": {"type": "url", "url": "https://example.com/paper.pdf"}},
        {"type": "text", "text": "Compare"},
    ]


@pytest.mark.asyncio
async def test_anthropic_provider_rejects_audio(install_client):
    client = install_client(_FakeMessages(_message()))
    provider = AnthropicProvider(make_config(ProviderKind.ANTHROPIC))
    audio = FileContent.from_bytes(b"mp3", MediaType.AUDIO, "audio/mpeg")

    with pytest.raises(ProviderError) as exc:
        await provider.generate(LLMRequest(prompt="Transcribe", files=[audio]))

    assert exc.value.code == "unsupported_media"
    assert exc.value.provider == "anthropic"
    assert client.messages.calls == []


@pytest.mark.asyncio
async def test_anthropic_provider_propagates_connection_error(install_client, metrics):
    def _error():
        return APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com"))

    install_client(_FakeMessages(error_factory=_error))
    provider = AnthropicProvider(make_config(ProviderKind.ANTHROPIC), name="claude", metrics=metrics)

    with pytest.raises(APIConnectionError) as exc:
        await provider.generate_text("hi")

    assert provider.is_retryable(exc.value) is True
    assert metrics.events[0].provider == "claude"
    assert metrics.events[0].error_code == "APIConnectionError"


@pytest.mark.asyncio
async def test_anthropic_provider_keeps_prompt_over_reserved_additional_parameters(install_client):
    client = install_client(_FakeMessages(_message()))
    provider = AnthropicProvider(make_config(ProviderKind.ANTHROPIC, max_tokens=512))

    request = LLMRequest(
        prompt="hi",
        system_message="Be brief",
        additional_parameters={"model": "claude-other", "messages": [], "system": "x", "top_k": 3},
    )
    await provider.generate(request)

    call = client.messages.calls[0]
    assert call["model"] == "anthropic-model"
    assert call["messages"] == [{"role": "user", "content": "hi"}]
    assert call["system"] == "Be brief"
    assert call["top_k"] == 3
