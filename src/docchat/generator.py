"""
generator.py — Streamed, context-grounded answers
==================================================

This is where the RAG loop closes:
  Question → Filtered chunks → System prompt → Streamed answer

The system prompt lives in a template file (prompts/system.txt by
default) so it can be edited without touching code. The template is a
LangChain PromptTemplate in f-string syntax with two variables:
  {context}     numbered excerpts retrieved for this question
  {store_name}  name of the vector store being searched
Literal braces in the template must be doubled: {{ and }}.

Provider-agnostic:
  Retrieval always goes through the OpenAI vector store, but the answer
  can come from any chat model through a small adapter:
  - OpenAI-compatible APIs (GPT, DeepSeek, OpenRouter, ...)
  - Anthropic Claude (native SDK)
  - Ollama (local models, no API key needed)

  All backends share one method: stream(system, user) → text deltas.

Usage:
  from docchat.generator import RAGGenerator
  gen = RAGGenerator(preset="gpt4o-mini", template_path="prompts/system.txt")
  gen.answer("What is FreeBSD?", results)
"""

import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path

import anthropic
import openai
from langchain_core.prompts import PromptTemplate


# Errors raised by the remote APIs. The chat loop reports these and keeps
# going; anything else is a bug and ends the program.
API_ERRORS = (openai.OpenAIError, anthropic.AnthropicError)

NO_CONTEXT = "No excerpts from the documents scored high enough for this question."


# ==================== PROMPT ====================

def build_context_block(results: list[dict]) -> str:
    """Format filtered chunks into a numbered context block."""
    if not results:
        return NO_CONTEXT
    blocks = []
    for i, r in enumerate(results, 1):
        chunk = r["chunk"]
        source = chunk.filename or chunk.file_id
        blocks.append(
            f"--- Excerpt [{i}] | {source} | score {r['score']:.2f} ---\n"
            f"{chunk.text.strip()}"
        )
    return "\n\n".join(blocks)


def render_system_prompt(template_path: str | Path, results: list[dict],
                         store_name: str = "") -> str:
    """Read the template from disk and fill in the retrieved context."""
    template = PromptTemplate.from_file(str(template_path))
    return template.format(
        context=build_context_block(results),
        store_name=store_name,
    )


# ==================== LLM BACKENDS ====================

class LLMBackend(ABC):
    """
    Abstract base for chat providers.

    stream() takes a system prompt + user message and yields the reply
    as it is generated.
    """

    @abstractmethod
    def stream(self, system: str, user: str):
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        ...


class OpenAIBackend(LLMBackend):
    """
    OpenAI-compatible chat completions.

    Any provider that speaks /v1/chat/completions works here:
      - OpenAI:      https://api.openai.com/v1
      - OpenRouter:  https://openrouter.ai/api/v1
      - DeepSeek:    https://api.deepseek.com/v1
    """

    def __init__(self, model: str, max_tokens: int, temperature: float,
                 base_url: str | None = None, api_key: str | None = None):
        if api_key is None:
            if base_url and "openrouter" in base_url:
                api_key = os.environ.get("OPENROUTER_API_KEY")
            elif base_url and "deepseek" in base_url:
                api_key = os.environ.get("DEEPSEEK_API_KEY")
            if not api_key:
                api_key = os.environ.get("OPENAI_SECRET") or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "No API key found. Set one of:\n"
                "  $env:OPENAI_SECRET = '...'\n"
                "  $env:OPENROUTER_API_KEY = '...'\n"
                "  $env:DEEPSEEK_API_KEY = '...'"
            )

        kwargs = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        self.client = openai.OpenAI(**kwargs)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._base_url = base_url or "openai"

    @property
    def name(self) -> str:
        for keyword in ["openrouter", "deepseek"]:
            if keyword in self._base_url:
                return keyword
        return "openai"

    def stream(self, system: str, user: str):
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            stream=True,
        )
        for event in response:
            if not event.choices:
                continue
            delta = event.choices[0].delta.content
            if delta:
                yield delta


class ClaudeBackend(LLMBackend):
    """Anthropic Claude via native SDK."""

    def __init__(self, model: str, max_tokens: int, temperature: float):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY not set.\n"
                "PowerShell: $env:ANTHROPIC_API_KEY = 'sk-ant-...'"
            )
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def name(self) -> str:
        return "claude"

    def stream(self, system: str, user: str):
        with self.client.messages.stream(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system,
            messages=[{"role": "user", "content": user}],
        ) as response:
            yield from response.text_stream


class OllamaBackend(OpenAIBackend):
    """
    Ollama for local models, through its OpenAI-compatible endpoint.

    ollama pull llama3.1
    Then it just works at localhost:11434.
    """

    def __init__(self, model: str, max_tokens: int, temperature: float,
                 host: str = "http://localhost:11434"):
        # Ollama ignores the key but the SDK requires one
        super().__init__(model, max_tokens, temperature,
                         base_url=f"{host}/v1", api_key="ollama")

    @property
    def name(self) -> str:
        return "ollama"


# ==================== PRESETS ====================

PRESETS = {
    # --- OpenAI ---
    "gpt4o-mini":   {"provider": "openai",  "model": "gpt-4o-mini"},
    "gpt4o":        {"provider": "openai",  "model": "gpt-4o"},
    "gpt41":        {"provider": "openai",  "model": "gpt-4.1"},

    # --- Anthropic ---
    "claude":       {"provider": "claude",  "model": "claude-sonnet-4-20250514"},
    "claude-haiku": {"provider": "claude",  "model": "claude-haiku-4-5-20251001"},

    # --- DeepSeek ---
    "deepseek":     {"provider": "openai",  "model": "deepseek-chat",
                     "base_url": "https://api.deepseek.com/v1"},

    # --- Local (Ollama) ---
    "llama3":       {"provider": "ollama",  "model": "llama3.1"},
    "qwen":         {"provider": "ollama",  "model": "qwen2.5"},
}


def list_presets() -> str:
    """List available model presets."""
    lines = ["Available presets:"]
    for name, cfg in PRESETS.items():
        url = cfg.get("base_url", "")
        extra = f"  ({url})" if url else ""
        lines.append(f"  {name:<16} {cfg['provider']:<8} {cfg['model']}{extra}")
    return "\n".join(lines)


def create_backend(
    provider: str,
    model: str,
    max_tokens: int = 1024,
    temperature: float = 0.0,
    base_url: str | None = None,
    api_key: str | None = None,
) -> LLMBackend:
    """Factory — create the right backend from provider string."""
    if provider == "openai":
        return OpenAIBackend(model, max_tokens, temperature, base_url, api_key)
    elif provider == "claude":
        return ClaudeBackend(model, max_tokens, temperature)
    elif provider == "ollama":
        return OllamaBackend(model, max_tokens, temperature)
    else:
        raise ValueError(f"Unknown provider: {provider!r}. Use: openai, claude, ollama")


# ==================== GENERATOR ====================

class RAGGenerator:
    """
    Stream answers grounded in retrieved chunks.

    Owns the prompt template and the chat backend. The backend can be
    swapped mid-session with switch().
    """

    def __init__(
        self,
        preset: str = "gpt4o-mini",
        template_path: str | Path = "prompts/system.txt",
        store_name: str = "",
        api_key: str | None = None,
        max_output_tokens: int = 1024,
        temperature: float = 0.0,
    ):
        self.template_path = Path(template_path)
        self.store_name = store_name
        self.api_key = api_key
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.switch(preset)

    def switch(self, preset: str):
        """Select a chat preset. Raises ValueError for unknown presets."""
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset: {preset!r}\n{list_presets()}")
        cfg = PRESETS[preset]
        # The OpenAI key only goes to OpenAI itself
        api_key = self.api_key if "base_url" not in cfg else None
        self.backend = create_backend(
            provider=cfg["provider"], model=cfg["model"],
            max_tokens=self.max_output_tokens, temperature=self.temperature,
            base_url=cfg.get("base_url"), api_key=api_key,
        )
        self.preset = preset
        self.model = cfg["model"]

    def answer(self, query: str, results: list[dict], out=None) -> str:
        """Stream the reply to `out` (stdout by default) and return it."""
        out = out or sys.stdout
        system = render_system_prompt(self.template_path, results, self.store_name)

        parts = []
        for delta in self.backend.stream(system, query):
            out.write(delta)
            out.flush()
            parts.append(delta)
        return "".join(parts)
