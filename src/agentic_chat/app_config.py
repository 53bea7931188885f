from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from agentic_chat.provider import DEFAULT_PROVIDER
from agentic_chat.reliability import RetryOptions
from agentic_chat.storage.factory import StorageConfig
from agentic_chat.storage.local import DEFAULT_STORAGE_KEY

_DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-5-20250929",
}


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str
    supabase_url: str | None
    supabase_anon_key: str | None
    exa_api_key: str | None


@dataclass
class AppConfig:
    provider_name: str
    model: str
    max_tokens: int
    temperature: float
    system_prompt: str | None
    local_store_path: str
    storage_key: str
    user_id: str | None
    request_timeout_seconds: float
    max_retries: int
    retry_base_delay_seconds: float
    retry_max_delay_seconds: float
    retry_backoff_multiplier: float
    circuit_breaker_threshold: int
    circuit_breaker_timeout_seconds: float
    max_tool_rounds: int
    max_tool_result_chars: int
    log_level: str
    log_consumers: list | None

    def retry_options(self) -> RetryOptions:
        return RetryOptions(
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay_seconds,
            max_delay=self.retry_max_delay_seconds,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    def storage_config(self, env: RuntimeEnv) -> StorageConfig:
        return StorageConfig(
            remote_url=env.supabase_url,
            remote_key=env.supabase_anon_key,
            local_store_path=self.local_store_path,
            storage_key=self.storage_key,
            request_timeout=self.request_timeout_seconds,
            retry_options=self.retry_options(),
            breaker_threshold=self.circuit_breaker_threshold,
            breaker_timeout=self.circuit_breaker_timeout_seconds,
        )


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def parse_app_config(config: dict) -> AppConfig:
    provider_name = str(config.get("Provider", DEFAULT_PROVIDER)).strip().lower()
    return AppConfig(
        provider_name=provider_name,
        model=config.get("Model") or _DEFAULT_MODELS.get(provider_name, _DEFAULT_MODELS[DEFAULT_PROVIDER]),
        max_tokens=int(config.get("MaxTokens", 4096)),
        temperature=float(config.get("Temperature", 0.7)),
        system_prompt=_optional_str(config.get("SystemPrompt")),
        # An empty LocalStorePath keeps history in an in-memory database.
        local_store_path=_optional_str(config.get("LocalStorePath", ".agentic_chat/chat.db")) or ":memory:",
        storage_key=str(config.get("StorageKey", DEFAULT_STORAGE_KEY)),
        user_id=_optional_str(config.get("UserId")),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 60)),
        max_retries=int(config.get("MaxRetries", 3)),
        retry_base_delay_seconds=float(config.get("RetryBaseDelaySeconds", 1.0)),
        retry_max_delay_seconds=float(config.get("RetryMaxDelaySeconds", 10.0)),
        retry_backoff_multiplier=float(config.get("RetryBackoffMultiplier", 2.0)),
        circuit_breaker_threshold=int(config.get("CircuitBreakerThreshold", 5)),
        circuit_breaker_timeout_seconds=float(config.get("CircuitBreakerTimeoutSeconds", 60.0)),
        max_tool_rounds=int(config.get("MaxToolRounds", 5)),
        max_tool_result_chars=int(config.get("MaxToolResultChars", 40_000)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    if provider_name == "anthropic":
        provider_env_var = "ANTHROPIC_API_KEY"
    else:
        provider_env_var = "OPENAI_API_KEY"

    return RuntimeEnv(
        provider_api_key=os.environ.get(provider_env_var, ""),
        provider_env_var=provider_env_var,
        supabase_url=_optional_str(os.environ.get("SUPABASE_URL")),
        supabase_anon_key=_optional_str(os.environ.get("SUPABASE_ANON_KEY")),
        exa_api_key=_optional_str(os.environ.get("EXA_API_KEY")),
    )
