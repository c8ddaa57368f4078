from __future__ import annotations

from finanalyzer.application.llm.orchestrator import FallbackOrchestrator
from finanalyzer.core.config import Settings, get_settings
from finanalyzer.core.logging import get_logger
from finanalyzer.domain.pipeline.models import BackendDescriptor
from finanalyzer.infrastructure.clients.chat_completions_http import ChatCompletionsHttpClient

logger = get_logger(__name__)


def build_llm_client(settings: Settings | None = None) -> ChatCompletionsHttpClient:
    s = settings or get_settings()
    api_key = s.LLM_API_KEY.get_secret_value() if s.LLM_API_KEY else None
    return ChatCompletionsHttpClient(
        base_url=s.LLM_BASE_URL,
        api_key=api_key,
        temperature=s.LLM_TEMPERATURE,
        max_tokens=s.LLM_MAX_TOKENS,
        verify_ssl=s.LLM_VERIFY_SSL,
        referer=s.LLM_HTTP_REFERER,
        title=s.LLM_APP_TITLE,
    )


def build_orchestrator(settings: Settings | None = None) -> FallbackOrchestrator | None:
    """Orchestrator over the configured backends, or None in simulation mode."""
    s = settings or get_settings()
    if not s.has_usable_api_key:
        logger.warning("simulation_mode", extra={"reason": "no usable LLM API key"})
        return None
    return FallbackOrchestrator(
        build_llm_client(s),
        BackendDescriptor.from_identifiers(s.LLM_BACKENDS),
        timeout_seconds=s.LLM_TIMEOUT_SECONDS,
    )
