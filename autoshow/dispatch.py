"""
Backend dispatch.

A :class:`Dispatcher` holds a fixed table of adapters for one pipeline stage
and calls the one a job selected, exactly once.  It adds no policy of its
own: no fallback to another backend and no retries.  Whatever the adapter
raises comes back as a :class:`~autoshow.errors.BackendError` naming the
backend, chained to the original exception.
"""

import logging
from types import MappingProxyType
from typing import Any, Mapping

from .config import Settings
from .errors import BackendError, ConfigurationError
from .stt_service import (
    AssemblyBackend,
    DeepgramBackend,
    WhisperCppBackend,
    WhisperDockerBackend,
)
from .summarizer import (
    ClaudeBackend,
    CohereBackend,
    GeminiBackend,
    OllamaBackend,
    OpenAICompatibleBackend,
)

logger = logging.getLogger(__name__)


class Dispatcher:
    def __init__(self, stage: str, adapters: Mapping[str, Any]):
        self.stage = stage
        self.adapters = MappingProxyType(dict(adapters))

    def dispatch(self, tag: str, payload: Any) -> Any:
        """Invoke the adapter registered under ``tag`` with ``payload``.

        Raises:
            ConfigurationError: If no adapter is registered for ``tag``.
            BackendError: If the adapter fails.
        """
        adapter = self.adapters.get(tag)
        if adapter is None:
            raise ConfigurationError(f"Invalid {self.stage} option: {tag}")
        logger.info("Dispatching %s to %s", self.stage, tag)
        try:
            return adapter.invoke(payload)
        except Exception as exc:
            logger.error("%s backend %s failed: %s", self.stage, tag, exc)
            raise BackendError(tag, str(exc) or type(exc).__name__) from exc


def build_transcription_dispatcher(settings: Settings) -> Dispatcher:
    return Dispatcher(
        "transcription",
        {
            "whisper": WhisperCppBackend(settings.whisper_cpp_dir),
            "whisperDocker": WhisperDockerBackend(settings.whisper_docker_container),
            "deepgram": DeepgramBackend(settings.deepgram_api_key),
            "assembly": AssemblyBackend(settings.assembly_api_key),
        },
    )


def build_llm_dispatcher(settings: Settings) -> Dispatcher:
    return Dispatcher(
        "llm",
        {
            "chatgpt": OpenAICompatibleBackend(
                "chatgpt", "https://api.openai.com/v1", settings.openai_api_key, "gpt-4o-mini"
            ),
            "claude": ClaudeBackend(settings.anthropic_api_key),
            "cohere": CohereBackend(settings.cohere_api_key),
            "mistral": OpenAICompatibleBackend(
                "mistral", "https://api.mistral.ai/v1", settings.mistral_api_key, "mistral-small-latest"
            ),
            "octo": OpenAICompatibleBackend(
                "octo", "https://text.octoai.run/v1", settings.octoai_api_key, "meta-llama-3.1-8b-instruct"
            ),
            "llama": OpenAICompatibleBackend(
                "llama", settings.llama_server_url, None, "local", requires_key=False
            ),
            "ollama": OllamaBackend(settings.ollama_host, settings.ollama_port),
            "gemini": GeminiBackend(settings.gemini_api_key),
            "deepseek": OpenAICompatibleBackend(
                "deepseek", "https://api.deepseek.com/v1", settings.deepseek_api_key, "deepseek-chat"
            ),
            "fireworks": OpenAICompatibleBackend(
                "fireworks",
                "https://api.fireworks.ai/inference/v1",
                settings.fireworks_api_key,
                "accounts/fireworks/models/llama-v3p1-8b-instruct",
            ),
        },
    )
