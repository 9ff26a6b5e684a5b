"""
LLM completion capability — the single seam between the analysis engines
and any model backend.

Engines only ever call request_completion(); anything satisfying the
Provider protocol (the OpenAI adapter below, a test double) can be
plugged in.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Protocol

from openai import OpenAI, OpenAIError

import config

log = logging.getLogger(__name__)


class TransportError(Exception):
    """The completion call could not be completed (network, auth, cancellation)."""


class OperationCancelled(TransportError):
    """The operation context was cancelled or its deadline passed."""


class OperationContext:
    """Cancellable context for a single analysis operation.

    An optional ``timeout`` (seconds) turns into an absolute deadline;
    once it passes the context reports itself cancelled.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    @classmethod
    def background(cls) -> "OperationContext":
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("operation cancelled")
        if self.cancelled:
            raise OperationCancelled("operation deadline exceeded")


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class CompletionRequest:
    """A single-shot, non-streaming completion request."""
    prompt: str
    system_prompt: str = ""
    model: str = ""  # empty = provider default
    max_tokens: int = 0  # 0 = provider default
    temperature: float | None = None


@dataclass
class CompletionResponse:
    content: str
    model: str = ""
    usage: Usage = field(default_factory=Usage)


class Provider(Protocol):
    def complete(self, ctx: OperationContext, request: CompletionRequest) -> CompletionResponse:
        """Return the completion for ``request``; must honour ``ctx`` cancellation."""
        ...


def request_completion(
    provider: Provider,
    ctx: OperationContext | None,
    request: CompletionRequest,
) -> str:
    """Issue one completion and return its text.

    An already-cancelled context fails without contacting the provider.
    Every provider exception surfaces as TransportError.
    """
    ctx = ctx or OperationContext.background()
    ctx.raise_if_cancelled()
    try:
        resp = provider.complete(ctx, request)
    except TransportError:
        raise
    except Exception as e:
        raise TransportError(f"LLM completion failed: {e}") from e
    return resp.content or ""


# ── OpenAI adapter ────────────────────────────────────────────────────

DEFAULT_MAX_TOKENS = 4096
_POLL_INTERVAL = 0.05  # seconds between cancellation checks while in flight

_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="llm")


class OpenAIProvider:
    """Provider backed by the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        self.model = model or config.OPENAI_MODEL
        self.client = OpenAI(
            api_key=api_key or config.OPENAI_API_KEY,
            timeout=timeout if timeout is not None else config.OPENAI_TIMEOUT,
            max_retries=max_retries if max_retries is not None else config.OPENAI_MAX_RETRIES,
        )

    def _build_kwargs(self, request: CompletionRequest) -> dict:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})
        kwargs: dict = {
            "model": request.model or self.model,
            "messages": messages,
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
        }
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        return kwargs

    def complete(self, ctx: OperationContext, request: CompletionRequest) -> CompletionResponse:
        ctx.raise_if_cancelled()
        kwargs = self._build_kwargs(request)
        remaining = ctx.remaining()
        if remaining is not None:
            kwargs["timeout"] = remaining

        future = _executor.submit(self.client.chat.completions.create, **kwargs)
        while not future.done():
            if ctx.cancelled:
                future.cancel()
                log.warning("Abandoning in-flight completion (model=%s)", kwargs["model"])
                ctx.raise_if_cancelled()
            wait([future], timeout=_POLL_INTERVAL)

        try:
            resp = future.result()
        except OpenAIError as e:
            raise TransportError(f"OpenAI request failed: {e}") from e

        usage = Usage()
        if resp.usage is not None:
            usage = Usage(
                input_tokens=resp.usage.prompt_tokens or 0,
                output_tokens=resp.usage.completion_tokens or 0,
            )
        content = resp.choices[0].message.content if resp.choices else ""
        log.debug(
            "Completion done: model=%s in=%d out=%d",
            resp.model, usage.input_tokens, usage.output_tokens,
        )
        return CompletionResponse(content=content or "", model=resp.model or "", usage=usage)


_provider: OpenAIProvider | None = None


def get_provider() -> OpenAIProvider:
    global _provider
    if _provider is None:
        _provider = OpenAIProvider()
    return _provider
