"""Completion capability tests."""

import threading
from types import SimpleNamespace

import openai
import pytest

from tests.helpers import MockProvider
from utils.llm import (
    CompletionRequest,
    OpenAIProvider,
    OperationCancelled,
    OperationContext,
    TransportError,
    request_completion,
)


class _FakeCompletions:
    def __init__(self, handler):
        self.handler = handler
        self.kwargs = []

    def create(self, **kwargs):
        self.kwargs.append(kwargs)
        return self.handler(**kwargs)


def _provider(handler) -> tuple[OpenAIProvider, _FakeCompletions]:
    provider = OpenAIProvider(api_key="test-key", model="test-model")
    completions = _FakeCompletions(handler)
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return provider, completions


def _response(content, prompt_tokens=12, completion_tokens=7):
    return SimpleNamespace(
        model="test-model",
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def test_cancelled_context_never_reaches_provider():
    provider = MockProvider("ok")
    ctx = OperationContext()
    ctx.cancel()
    with pytest.raises(OperationCancelled):
        request_completion(provider, ctx, CompletionRequest(prompt="hi"))
    assert provider.calls == []


def test_provider_exception_becomes_transport_error():
    boom = RuntimeError("socket closed")
    with pytest.raises(TransportError) as exc_info:
        request_completion(MockProvider(boom), None, CompletionRequest(prompt="hi"))
    assert exc_info.value.__cause__ is boom


def test_request_completion_returns_content():
    assert request_completion(MockProvider("hello"), None, CompletionRequest(prompt="hi")) == "hello"


def test_context_deadline():
    assert OperationContext(timeout=0).cancelled
    ctx = OperationContext(timeout=60)
    assert not ctx.cancelled
    assert 0 < ctx.remaining() <= 60
    assert OperationContext.background().remaining() is None


def test_openai_provider_completion():
    provider, completions = _provider(lambda **kw: _response("the answer"))
    resp = provider.complete(
        OperationContext(),
        CompletionRequest(prompt="question", system_prompt="be brief", max_tokens=100, temperature=0.2),
    )
    assert resp.content == "the answer"
    assert resp.usage.input_tokens == 12
    assert resp.usage.output_tokens == 7

    sent = completions.kwargs[0]
    assert sent["model"] == "test-model"
    assert sent["max_tokens"] == 100
    assert sent["temperature"] == 0.2
    assert sent["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "question"},
    ]
    assert "timeout" not in sent


def test_openai_provider_defaults():
    provider, _ = _provider(lambda **kw: _response(None))
    kwargs = provider._build_kwargs(CompletionRequest(prompt="q"))
    assert kwargs["max_tokens"] == 4096
    assert "temperature" not in kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "q"}]


def test_openai_provider_passes_remaining_deadline():
    provider, completions = _provider(lambda **kw: _response("x"))
    provider.complete(OperationContext(timeout=30), CompletionRequest(prompt="q"))
    assert 0 < completions.kwargs[0]["timeout"] <= 30


def test_openai_error_becomes_transport_error():
    def fail(**kw):
        raise openai.OpenAIError("boom")

    provider, _ = _provider(fail)
    with pytest.raises(TransportError, match="boom"):
        provider.complete(OperationContext(), CompletionRequest(prompt="q"))


def test_in_flight_call_abandoned_on_cancel():
    release = threading.Event()
    started = threading.Event()

    def slow(**kw):
        started.set()
        release.wait(5)
        return _response("late")

    provider, _ = _provider(slow)
    ctx = OperationContext()
    threading.Timer(0.1, ctx.cancel).start()
    try:
        with pytest.raises(OperationCancelled):
            provider.complete(ctx, CompletionRequest(prompt="q"))
        assert started.is_set()
    finally:
        release.set()
