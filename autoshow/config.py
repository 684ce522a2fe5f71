"""
Environment-driven settings.

Environment variables are read once, by :meth:`Settings.from_env`, when the
entrypoint starts.  Backend adapters receive the values they need as
constructor arguments and never consult the environment themselves.

* ``DEEPGRAM_API_KEY``, ``ASSEMBLY_API_KEY`` – transcription credentials.
* ``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY``, ``COHERE_API_KEY``,
  ``MISTRAL_API_KEY``, ``OCTOAI_API_KEY``, ``GEMINI_API_KEY``,
  ``DEEPSEEK_API_KEY``, ``FIREWORKS_API_KEY`` – language model credentials.
* ``OLLAMA_HOST`` / ``OLLAMA_PORT`` – local Ollama server.
* ``LLAMA_SERVER_URL`` – OpenAI-compatible llama.cpp server.
* ``WHISPER_CPP_DIR`` – checkout of whisper.cpp with compiled binary.
* ``WHISPER_DOCKER_CONTAINER`` – container running whisper.cpp.
* ``OUTPUT_DIR`` – where finished documents go by default.
* ``REQUIRED_DEPENDENCIES`` – comma separated executables checked at start.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class Settings:
    deepgram_api_key: Optional[str] = None
    assembly_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    cohere_api_key: Optional[str] = None
    mistral_api_key: Optional[str] = None
    octoai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    deepseek_api_key: Optional[str] = None
    fireworks_api_key: Optional[str] = None
    ollama_host: str = "localhost"
    ollama_port: str = "11434"
    llama_server_url: str = "http://localhost:8080/v1"
    whisper_cpp_dir: str = "whisper.cpp"
    whisper_docker_container: str = "autoshow-whisper-1"
    output_dir: str = "content"
    required_dependencies: Tuple[str, ...] = field(default=("ffmpeg",))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        deps = env.get("REQUIRED_DEPENDENCIES", "ffmpeg")
        return cls(
            deepgram_api_key=env.get("DEEPGRAM_API_KEY"),
            assembly_api_key=env.get("ASSEMBLY_API_KEY"),
            openai_api_key=env.get("OPENAI_API_KEY"),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY"),
            cohere_api_key=env.get("COHERE_API_KEY"),
            mistral_api_key=env.get("MISTRAL_API_KEY"),
            octoai_api_key=env.get("OCTOAI_API_KEY"),
            gemini_api_key=env.get("GEMINI_API_KEY"),
            deepseek_api_key=env.get("DEEPSEEK_API_KEY"),
            fireworks_api_key=env.get("FIREWORKS_API_KEY"),
            ollama_host=env.get("OLLAMA_HOST", "localhost"),
            ollama_port=env.get("OLLAMA_PORT", "11434"),
            llama_server_url=env.get("LLAMA_SERVER_URL", "http://localhost:8080/v1"),
            whisper_cpp_dir=env.get("WHISPER_CPP_DIR", "whisper.cpp"),
            whisper_docker_container=env.get("WHISPER_DOCKER_CONTAINER", "autoshow-whisper-1"),
            output_dir=env.get("OUTPUT_DIR", "content"),
            required_dependencies=tuple(d.strip() for d in deps.split(",") if d.strip()),
        )
