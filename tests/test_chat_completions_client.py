from __future__ import annotations

import json

import httpx
import pytest

from finanalyzer.application.llm.prompts import build_analysis_prompt, build_structured_prompt
from finanalyzer.domain.errors import BackendError, HttpFailure, TransportFailure
from finanalyzer.domain.pipeline.models import BackendDescriptor, InvocationOutcome, StatusClass
from finanalyzer.infrastructure.clients.chat_completions_http import ChatCompletionsHttpClient

URL = "https://openrouter.test/api/v1/chat/completions"
BACKEND = BackendDescriptor(identifier="meta-llama/llama-3.2-3b-instruct:free", priority=0)


def _client(handler, **kwargs) -> ChatCompletionsHttpClient:
    transport = httpx.MockTransport(handler)
    return ChatCompletionsHttpClient(
        base_url=URL,
        api_key="sk-or-test-key-0123456789",
        referer="https://github.com",
        title="Financial Document POC",
        transport=transport,
        async_transport=transport,
        **kwargs,
    )


def _choices(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_success_returns_content_and_sends_chat_payload() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["title"] = request.headers.get("X-Title")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_choices('{"document_type": "Invoice"}'))

    resp = _client(handler, temperature=0.1, max_tokens=2000).invoke(
        BACKEND, build_analysis_prompt("INVOICE"), timeout=5
    )

    assert resp.outcome is InvocationOutcome.SUCCESS
    assert resp.status_class is StatusClass.SUCCESS
    assert resp.content == '{"document_type": "Invoice"}'
    assert seen["auth"] == "Bearer sk-or-test-key-0123456789"
    assert seen["title"] == "Financial Document POC"
    body = seen["body"]
    assert body["model"] == BACKEND.identifier
    assert body["temperature"] == 0.1
    assert body["max_tokens"] == 2000
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "response_format" not in body


def test_json_mode_prompt_requests_json_object() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_choices("{}"))

    _client(handler).invoke(BACKEND, build_structured_prompt("RECEIPT"), timeout=5)
    assert seen["body"]["response_format"] == {"type": "json_object"}


def test_error_envelope_on_200_is_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": {"message": "Provider returned error", "type": "upstream"}})

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.BACKEND_ERROR
    assert resp.error_message == "Provider returned error"
    assert resp.content is None
    assert isinstance(resp.failure(), BackendError)


def test_error_wins_over_choices() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        payload = _choices("{}")
        payload["error"] = {"message": "quota exceeded"}
        return httpx.Response(200, json=payload)

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.BACKEND_ERROR


@pytest.mark.parametrize(
    "payload",
    [{"choices": []}, {"choices": [{"message": {"content": "   "}}]}, {"id": "gen-1"}],
)
def test_missing_content_is_backend_error(payload: dict) -> None:
    resp = _client(lambda request: httpx.Response(200, json=payload)).invoke(
        BACKEND, build_analysis_prompt("x"), timeout=5
    )
    assert resp.outcome is InvocationOutcome.BACKEND_ERROR


def test_non_json_envelope_is_backend_error() -> None:
    resp = _client(lambda request: httpx.Response(200, text="<html>gateway</html>")).invoke(
        BACKEND, build_analysis_prompt("x"), timeout=5
    )
    assert resp.outcome is InvocationOutcome.BACKEND_ERROR
    assert resp.error_message == "unreadable response envelope"


@pytest.mark.parametrize("status,status_class", [(401, StatusClass.CLIENT_ERROR), (503, StatusClass.SERVER_ERROR)])
def test_non_2xx_is_http_failure(status: int, status_class: StatusClass) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": "nope", "code": status}})

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.HTTP_FAILURE
    assert resp.status_class is status_class
    assert resp.status_code == status
    assert resp.error_message == f"HTTP {status}: nope"
    failure = resp.failure()
    assert isinstance(failure, HttpFailure)
    assert failure.status_code == status


def test_connection_error_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.TRANSPORT_FAILURE
    assert resp.status_class is StatusClass.TRANSPORT_ERROR
    assert resp.status_code is None
    assert isinstance(resp.failure(), TransportFailure)


def test_timeout_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=0.01)
    assert resp.outcome is InvocationOutcome.TRANSPORT_FAILURE
    assert resp.error_message == "timeout"


@pytest.mark.asyncio
async def test_async_invoke_classifies_the_same_way() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_choices('{"document_type": "Receipt"}'))

    resp = await _client(handler).ainvoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.SUCCESS
    assert resp.content == '{"document_type": "Receipt"}'

    def failing(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("dns failure", request=request)

    resp = await _client(failing).ainvoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.TRANSPORT_FAILURE


def test_undecodable_body_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.TRANSPORT_FAILURE
    assert resp.content is None
    assert isinstance(resp.failure(), TransportFailure)


def test_redirect_loop_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

    resp = _client(handler).invoke(BACKEND, build_analysis_prompt("x"), timeout=5)
    assert resp.outcome is InvocationOutcome.TRANSPORT_FAILURE
    assert "redirects" in (resp.error_message or "")
