"""Tests for settings loading."""

from pathlib import Path

import pytest

from docchat.config import ConfigError, load_settings


def test_defaults():
    settings = load_settings({"OPENAI_SECRET": "sk-secret"})
    assert settings.api_key == "sk-secret"
    assert settings.documents_dir == Path("documents")
    assert settings.prompt_path == Path("prompts/system.txt")
    assert settings.store_name == "FreeBSD Handbook"
    assert settings.score_threshold == 0.7
    assert settings.poll_interval == 0.5
    assert settings.poll_timeout == 600.0


def test_secret_preferred_over_api_key():
    settings = load_settings({"OPENAI_SECRET": "a", "OPENAI_API_KEY": "b"})
    assert settings.api_key == "a"
    assert load_settings({"OPENAI_API_KEY": "b"}).api_key == "b"


def test_missing_key():
    with pytest.raises(ConfigError, match="No API key"):
        load_settings({})


def test_overrides():
    settings = load_settings({
        "OPENAI_SECRET": "sk",
        "DOCCHAT_DOCUMENTS": "pdfs",
        "DOCCHAT_STORE_NAME": "Ports",
        "DOCCHAT_THRESHOLD": "0.5",
        "DOCCHAT_POLL_TIMEOUT": "0",
        "DOCCHAT_MODEL": "claude",
    })
    assert settings.documents_dir == Path("pdfs")
    assert settings.store_name == "Ports"
    assert settings.score_threshold == 0.5
    assert settings.poll_timeout is None
    assert settings.model == "claude"


@pytest.mark.parametrize("value", ["high", "1.5", "-0.1"])
def test_bad_threshold(value):
    with pytest.raises(ConfigError, match="DOCCHAT_THRESHOLD"):
        load_settings({"OPENAI_SECRET": "sk", "DOCCHAT_THRESHOLD": value})
