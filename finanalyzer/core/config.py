from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BACKENDS: tuple[str, ...] = (
    "meta-llama/llama-3.2-3b-instruct:free",
    "google/gemini-2.0-flash-exp:free",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FINAI_", env_file=".env", extra="ignore", populate_by_name=True
    )

    APP_NAME: str = Field(default="financial-doc-analyzer")
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    LLM_BASE_URL: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    LLM_API_KEY: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("FINAI_LLM_API_KEY", "OPENROUTER_API_KEY"),
    )
    LLM_BACKENDS: list[str] = Field(default_factory=lambda: list(DEFAULT_BACKENDS))
    LLM_TIMEOUT_SECONDS: float = Field(default=30.0)
    LLM_TEMPERATURE: float = Field(default=0.1)
    LLM_MAX_TOKENS: int = Field(default=2000)
    LLM_VERIFY_SSL: bool = Field(default=True)
    LLM_HTTP_REFERER: str = Field(default="https://github.com")
    LLM_APP_TITLE: str = Field(default="Financial Document POC")

    @field_validator("LLM_BACKENDS")
    @classmethod
    def _backends_not_empty(cls, value: list[str]) -> list[str]:
        cleaned = [v.strip() for v in value if v and v.strip()]
        if not cleaned:
            raise ValueError("LLM_BACKENDS must name at least one backend")
        return cleaned

    @property
    def has_usable_api_key(self) -> bool:
        """OpenRouter keys look like ``sk-or-...``; anything else means simulation mode."""
        if self.LLM_API_KEY is None:
            return False
        key = self.LLM_API_KEY.get_secret_value()
        return key.startswith("sk-or-") and len(key) > 20


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
