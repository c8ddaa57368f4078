from __future__ import annotations

from typing import Any

import httpx

from finanalyzer.core.logging import get_logger
from finanalyzer.domain.pipeline.models import (
    BackendDescriptor,
    InvocationOutcome,
    Prompt,
    RawModelResponse,
    StatusClass,
)

ERROR_BODY_MAX_CHARS = 500

logger = get_logger(__name__)


class ChatCompletionsHttpClient:
    """OpenAI-compatible chat-completions client (OpenRouter by default).

    One request per call, no retries. Every outcome is returned as a
    classified ``RawModelResponse``; only cancellation propagates.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        *,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        verify_ssl: bool = True,
        referer: str | None = None,
        title: str | None = None,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._verify_ssl = verify_ssl
        self._referer = referer
        self._title = title
        self._transport = transport
        self._async_transport = async_transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._title:
            headers["X-Title"] = self._title
        return headers

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(
            timeout=timeout,
            verify=self._verify_ssl,
            transport=self._transport,
            headers=self._headers(),
        )

    def _async_client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout,
            verify=self._verify_ssl,
            transport=self._async_transport,
            headers=self._headers(),
        )

    def build_payload(self, backend: BackendDescriptor, prompt: Prompt) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": backend.identifier,
            "messages": prompt.messages(),
            "temperature": self._temperature,
            "max_tokens": prompt.max_tokens or self._max_tokens,
        }
        if prompt.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def invoke(self, backend: BackendDescriptor, prompt: Prompt, timeout: float) -> RawModelResponse:
        payload = self.build_payload(backend, prompt)
        try:
            with self._client(timeout) as client:
                resp = client.post(self._base_url, json=payload)
        except httpx.RequestError as exc:
            return _transport_failure(backend, exc)
        return classify_response(backend, resp)

    async def ainvoke(self, backend: BackendDescriptor, prompt: Prompt, timeout: float) -> RawModelResponse:
        payload = self.build_payload(backend, prompt)
        try:
            async with self._async_client(timeout) as client:
                resp = await client.post(self._base_url, json=payload)
        except httpx.RequestError as exc:
            return _transport_failure(backend, exc)
        return classify_response(backend, resp)


def _transport_failure(backend: BackendDescriptor, exc: httpx.RequestError) -> RawModelResponse:
    reason = "timeout" if isinstance(exc, httpx.TimeoutException) else (str(exc) or type(exc).__name__)
    logger.warning("llm_transport_failure", extra={"backend": backend.identifier, "reason": reason})
    return RawModelResponse(
        backend=backend.identifier,
        outcome=InvocationOutcome.TRANSPORT_FAILURE,
        status_class=StatusClass.TRANSPORT_ERROR,
        error_message=reason,
    )


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
        return str(error.get("type") or error)
    return str(error)


def extract_message_content(data: dict[str, Any]) -> str | None:
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if isinstance(content, str) and content.strip():
        return content
    return None


def classify_response(backend: BackendDescriptor, resp: httpx.Response) -> RawModelResponse:
    """Turn one HTTP response into a classified ``RawModelResponse``.

    The ``error`` member of the envelope is checked before ``choices``.
    """
    status_class = StatusClass.from_status_code(resp.status_code)
    try:
        data = resp.json()
    except ValueError:
        data = None

    if status_class is not StatusClass.SUCCESS:
        if isinstance(data, dict) and data.get("error"):
            message = _error_message(data["error"])
        else:
            message = (resp.text or "")[:ERROR_BODY_MAX_CHARS] or resp.reason_phrase
        return RawModelResponse(
            backend=backend.identifier,
            outcome=InvocationOutcome.HTTP_FAILURE,
            status_class=status_class,
            status_code=resp.status_code,
            error_message=f"HTTP {resp.status_code}: {message}",
        )

    if not isinstance(data, dict):
        message = "unreadable response envelope"
    elif data.get("error"):
        message = _error_message(data["error"])
    else:
        content = extract_message_content(data)
        if content is not None:
            return RawModelResponse(
                backend=backend.identifier,
                outcome=InvocationOutcome.SUCCESS,
                status_class=status_class,
                status_code=resp.status_code,
                content=content,
            )
        message = "response carried no message content"

    return RawModelResponse(
        backend=backend.identifier,
        outcome=InvocationOutcome.BACKEND_ERROR,
        status_class=status_class,
        status_code=resp.status_code,
        error_message=message,
    )
