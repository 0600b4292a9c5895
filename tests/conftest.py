"""Shared fakes for the OpenAI client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest


def make_hit(score, text="chunk text", file_id="file-1", filename="handbook.pdf"):
    """One vector store search hit, shaped like the SDK's response."""
    return SimpleNamespace(
        score=score,
        file_id=file_id,
        filename=filename,
        attributes={},
        content=[SimpleNamespace(type="text", text=text)],
    )


def make_store(status="completed", store_id="vs_test"):
    return SimpleNamespace(id=store_id, status=status)


@pytest.fixture
def client():
    """A MagicMock standing in for openai.OpenAI()."""
    fake = MagicMock()
    fake.vector_stores.search.return_value = SimpleNamespace(data=[])
    return fake
