"""
Show-note generation adapters.

Each adapter sends the assembled prompt to one language model provider and
returns the generated markdown.  Gemini goes through the
``google-generativeai`` client; the other providers are called over HTTP.
Most of them speak the OpenAI chat completions dialect, so a single
:class:`OpenAICompatibleBackend` covers ChatGPT, Mistral, OctoAI, DeepSeek,
Fireworks and a local llama.cpp server.

Adapters retry server errors and dropped connections a few times with
exponential backoff; client errors such as a rejected key fail at once.  They
do not catch errors beyond that; failures surface to the dispatcher.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import google.generativeai as genai
import requests

from .retries import transient_retry

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 4000


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    model: Optional[str] = None


class LanguageModelBackend(ABC):
    """Base interface for language model adapters."""

    name = "llm"
    default_model = ""

    def model_for(self, request: GenerationRequest) -> str:
        return request.model or self.default_model

    @abstractmethod
    def invoke(self, request: GenerationRequest) -> str:
        raise NotImplementedError


@transient_retry
def _post_json(url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    response = requests.post(url, json=payload, headers=headers or {}, timeout=600)
    response.raise_for_status()
    return response.json()


def _require_key(name: str, api_key: Optional[str]) -> str:
    if not api_key:
        raise ValueError(f"No API key configured for {name}")
    return api_key


class OpenAICompatibleBackend(LanguageModelBackend):
    """Chat completions against any OpenAI-compatible endpoint.

    Args:
        name: Service tag used in logs and errors.
        base_url: API root, e.g. ``https://api.openai.com/v1``.
        api_key: Bearer token; may be ``None`` for local servers.
        default_model: Model used when the job does not name one.
        requires_key: Fail before calling out when ``api_key`` is missing.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: Optional[str],
        default_model: str,
        *,
        requires_key: bool = True,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.default_model = default_model
        self.requires_key = requires_key

    def invoke(self, request: GenerationRequest) -> str:
        headers = {}
        if self.requires_key:
            headers["Authorization"] = f"Bearer {_require_key(self.name, self.api_key)}"
        elif self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        model = self.model_for(request)
        logger.info("Calling %s model %s", self.name, model)
        data = _post_json(
            f"{self.base_url}/chat/completions",
            {
                "model": model,
                "messages": [{"role": "user", "content": request.prompt}],
                "max_tokens": MAX_OUTPUT_TOKENS,
            },
            headers,
        )
        choice = data["choices"][0]
        logger.info("%s finished with reason %s", self.name, choice.get("finish_reason"))
        return choice["message"]["content"] or ""


class ClaudeBackend(LanguageModelBackend):
    name = "claude"
    default_model = "claude-3-haiku-20240307"

    def __init__(self, api_key: Optional[str], *, url: str = "https://api.anthropic.com/v1/messages"):
        self.api_key = api_key
        self.url = url

    def invoke(self, request: GenerationRequest) -> str:
        headers = {
            "x-api-key": _require_key(self.name, self.api_key),
            "anthropic-version": "2023-06-01",
        }
        model = self.model_for(request)
        logger.info("Calling claude model %s", model)
        data = _post_json(
            self.url,
            {
                "model": model,
                "max_tokens": MAX_OUTPUT_TOKENS,
                "messages": [{"role": "user", "content": request.prompt}],
            },
            headers,
        )
        return "".join(block.get("text", "") for block in data.get("content", []))


class CohereBackend(LanguageModelBackend):
    name = "cohere"
    default_model = "command-r"

    def __init__(self, api_key: Optional[str], *, url: str = "https://api.cohere.com/v1/chat"):
        self.api_key = api_key
        self.url = url

    def invoke(self, request: GenerationRequest) -> str:
        headers = {"Authorization": f"Bearer {_require_key(self.name, self.api_key)}"}
        model = self.model_for(request)
        logger.info("Calling cohere model %s", model)
        data = _post_json(self.url, {"model": model, "message": request.prompt}, headers)
        return data.get("text", "")


class OllamaBackend(LanguageModelBackend):
    """Chat with a model served by a local Ollama instance."""

    name = "ollama"
    default_model = "qwen2.5:0.5b"

    def __init__(self, host: str = "localhost", port: str = "11434"):
        self.url = f"http://{host}:{port}/api/chat"

    def invoke(self, request: GenerationRequest) -> str:
        model = self.model_for(request)
        logger.info("Sending chat request to %s using model %s", self.url, model)
        data = _post_json(
            self.url,
            {
                "model": model,
                "messages": [{"role": "user", "content": request.prompt}],
                "stream": False,
            },
        )
        return (data.get("message") or {}).get("content", "")


class GeminiBackend(LanguageModelBackend):
    name = "gemini"
    default_model = "gemini-1.5-flash"

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def invoke(self, request: GenerationRequest) -> str:
        genai.configure(api_key=_require_key(self.name, self.api_key))
        model_name = self.model_for(request)
        logger.info("Calling generative model %s for show notes", model_name)
        model = genai.GenerativeModel(model_name)
        response = model.generate_content(
            request.prompt,
            generation_config={"temperature": 0.4, "max_output_tokens": MAX_OUTPUT_TOKENS},
        )
        return response.text.strip()
