from __future__ import annotations

import json

import httpx
import pytest

from finanalyzer.application.llm.orchestrator import FallbackOrchestrator
from finanalyzer.application.usecases.analyze_document import aanalyze_document, analyze_document
from finanalyzer.domain.errors import InvalidInputError
from finanalyzer.domain.pipeline.models import BackendDescriptor
from finanalyzer.infrastructure.clients.chat_completions_http import ChatCompletionsHttpClient

BANK_STATEMENT = (
    "BANK STATEMENT\nAccount: ****1234\nStatement Period: Jan 1-31, 2024\n"
    "Beginning Balance: $12,500.00\nEnding Balance: $16,714.50"
)
BACKENDS = BackendDescriptor.from_identifiers(
    ["meta-llama/llama-3.2-3b-instruct:free", "google/gemini-2.0-flash-exp:free"]
)


def _orchestrator(handler) -> FallbackOrchestrator:
    transport = httpx.MockTransport(handler)
    client = ChatCompletionsHttpClient(
        base_url="https://openrouter.test/api/v1/chat/completions",
        api_key="sk-or-test-key-0123456789",
        transport=transport,
        async_transport=transport,
    )
    return FallbackOrchestrator(client, BACKENDS, timeout_seconds=1)


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("name resolution failed", request=request)


def _assert_bank_statement_simulation(report) -> None:
    assert report.source == "simulation"
    assert report.backend is None
    assert report.analysis.document_type == "Bank Statement"
    assert report.analysis.confidence == 0.95
    assert "Ending balance: $16,714.50" in report.analysis.document_insights
    assert "Statement period: Jan 1-31, 2024" in report.analysis.document_insights


def test_unreachable_backends_yield_bank_statement_simulation() -> None:
    report = analyze_document(BANK_STATEMENT, orchestrator=_orchestrator(_unreachable))

    _assert_bank_statement_simulation(report)
    assert len(report.failures) == 2
    assert all("transport_failure" in f for f in report.failures)


def test_simulation_mode_without_orchestrator() -> None:
    report = analyze_document(BANK_STATEMENT, orchestrator=None)
    _assert_bank_statement_simulation(report)
    assert report.failures == []


def test_corrupt_response_encoding_falls_through_to_simulation() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    report = analyze_document(BANK_STATEMENT, orchestrator=_orchestrator(handler))

    _assert_bank_statement_simulation(report)
    assert len(report.failures) == 2
    assert all("transport_failure" in f for f in report.failures)


def test_model_result_is_used_when_a_backend_answers() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        model = json.loads(request.content)["model"]
        calls.append(model)
        if model.startswith("meta-llama"):
            return httpx.Response(429, json={"error": {"message": "rate limited"}})
        content = json.dumps(
            {
                "document_type": "Bank Statement",
                "confidence": 0.88,
                "extracted_data": {"ending_balance": "$16,714.50", "period": "Jan 1-31, 2024"},
                "validation_errors": ["Missing vendor"],
            }
        )
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})

    report = analyze_document(BANK_STATEMENT, orchestrator=_orchestrator(handler))

    assert report.source == "model"
    assert report.backend == "google/gemini-2.0-flash-exp:free"
    assert report.analysis.validation_errors == []
    assert report.analysis.document_insights == [
        "Ending balance: $16,714.50",
        "Statement period: Jan 1-31, 2024",
        "Moderate confidence analysis",
    ]
    assert len(report.failures) == 1 and "HTTP 429" in report.failures[0]
    assert calls == [b.identifier for b in BACKENDS]


def test_empty_text_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        analyze_document("", orchestrator=None)


def test_unknown_document_simulation() -> None:
    report = analyze_document("Dear team, lunch is at noon.", orchestrator=_orchestrator(_unreachable))
    assert report.analysis.document_type == "Unknown"
    assert report.analysis.confidence == 0.5


@pytest.mark.asyncio
async def test_async_unreachable_backends_yield_simulation() -> None:
    report = await aanalyze_document(BANK_STATEMENT, orchestrator=_orchestrator(_unreachable))
    _assert_bank_statement_simulation(report)
    assert len(report.failures) == 2
