"""
config.py — Runtime settings for docchat
=========================================

Everything tunable lives in one dataclass. Values come from three places,
in increasing priority:
  1. Defaults below
  2. A .env file in the working directory (if present)
  3. The process environment

API key (PowerShell):
  $env:OPENAI_SECRET = "sk-..."        # preferred
  $env:OPENAI_API_KEY = "sk-..."       # fallback

Optional overrides:
  DOCCHAT_DOCUMENTS     directory of PDFs           (default: documents)
  DOCCHAT_PROMPT        system prompt template      (default: prompts/system.txt)
  DOCCHAT_STORE_NAME    vector store name           (default: FreeBSD Handbook)
  DOCCHAT_THRESHOLD     minimum chunk score         (default: 0.7)
  DOCCHAT_POLL_TIMEOUT  seconds to wait for index   (default: 600, 0 = forever)
  DOCCHAT_MODEL         chat preset                 (default: gpt4o-mini)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when required settings are missing or malformed."""


@dataclass
class Settings:
    api_key: str
    documents_dir: Path = Path("documents")
    prompt_path: Path = Path("prompts/system.txt")
    store_name: str = "FreeBSD Handbook"
    score_threshold: float = 0.7
    max_results: int = 10
    poll_interval: float = 0.5
    poll_backoff: float = 1.0
    poll_max_interval: float = 5.0
    poll_timeout: float | None = 600.0
    model: str = "gpt4o-mini"


def _float(env: dict, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_settings(env: dict | None = None) -> Settings:
    """
    Build Settings from the environment.

    Pass `env` explicitly to skip the .env file and os.environ (tests do).
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    api_key = env.get("OPENAI_SECRET") or env.get("OPENAI_API_KEY")
    if not api_key:
        raise ConfigError(
            "No API key found. Set one of:\n"
            "  $env:OPENAI_SECRET = 'sk-...'\n"
            "  $env:OPENAI_API_KEY = 'sk-...'"
        )

    threshold = _float(env, "DOCCHAT_THRESHOLD", 0.7)
    if not 0.0 <= threshold <= 1.0:
        raise ConfigError(f"DOCCHAT_THRESHOLD must be within [0, 1], got {threshold}")

    timeout = _float(env, "DOCCHAT_POLL_TIMEOUT", 600.0)

    return Settings(
        api_key=api_key,
        documents_dir=Path(env.get("DOCCHAT_DOCUMENTS") or "documents"),
        prompt_path=Path(env.get("DOCCHAT_PROMPT") or "prompts/system.txt"),
        store_name=env.get("DOCCHAT_STORE_NAME") or "FreeBSD Handbook",
        score_threshold=threshold,
        poll_timeout=timeout if timeout > 0 else None,
        model=env.get("DOCCHAT_MODEL") or "gpt4o-mini",
    )
