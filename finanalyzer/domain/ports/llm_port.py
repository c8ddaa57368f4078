"""Port for chat-completion backends.

Implementations send exactly one request per call and classify the outcome;
they never retry and never raise for backend-side failures.
"""

from __future__ import annotations

from typing import Protocol

from finanalyzer.domain.pipeline.models import BackendDescriptor, Prompt, RawModelResponse


class ChatCompletionPort(Protocol):
    """Abstraction over the chat-completion transport used by the orchestrator."""

    def invoke(self, backend: BackendDescriptor, prompt: Prompt, timeout: float) -> RawModelResponse: ...

    async def ainvoke(self, backend: BackendDescriptor, prompt: Prompt, timeout: float) -> RawModelResponse: ...
