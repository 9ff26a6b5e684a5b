"""Shared test doubles."""

from __future__ import annotations

from utils.llm import CompletionRequest, CompletionResponse, OperationContext, Usage


class MockProvider:
    """Returns canned responses in order, repeating the last one.

    A response that is an Exception instance is raised instead of returned.
    Every request is recorded in ``calls``.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[CompletionRequest] = []
        self._idx = 0

    def complete(self, ctx: OperationContext, request: CompletionRequest) -> CompletionResponse:
        ctx.raise_if_cancelled()
        self.calls.append(request)
        if not self.responses:
            return CompletionResponse(content="", model="mock")

        r = self.responses[self._idx]
        if self._idx < len(self.responses) - 1:
            self._idx += 1
        if isinstance(r, Exception):
            raise r
        return CompletionResponse(content=r, model="mock", usage=Usage(input_tokens=10, output_tokens=5))
