"""
retriever.py — Semantic search against the hosted vector store
===============================================================

The service ranks chunks for us and returns a relevance score in [0, 1]
for each one. We only decide what is "relevant enough": anything at or
below the threshold (0.7 by default) is dropped before it can reach the
prompt. A weak chunk in the context does more harm than no chunk: the
model will happily quote it.

Results use the same shape everywhere in the package:
  {"chunk": Chunk, "score": float, "rank": int}

Usage:
  from docchat.retriever import VectorStoreRetriever
  retriever = VectorStoreRetriever(client, store.id)
  results = retriever.search("What is FreeBSD?")
"""

from dataclasses import dataclass, field


@dataclass
class Chunk:
    """A retrieved fragment of an indexed document."""
    text: str
    file_id: str
    filename: str = ""
    attributes: dict = field(default_factory=dict)

    def __repr__(self):
        preview = self.text[:60].replace('\n', ' ')
        return f"Chunk(file={self.filename!r}, text={preview!r}...)"


def _hit_text(hit) -> str:
    """Join the text parts of one search hit."""
    return "\n".join(part.text for part in hit.content
                     if getattr(part, "type", "text") == "text")


def search(client, store_id: str, query: str, max_results: int = 10) -> list[dict]:
    """Run a semantic search. Results keep the service's ranking."""
    page = client.vector_stores.search(
        vector_store_id=store_id,
        query=query,
        max_num_results=max_results,
    )

    results = []
    for rank, hit in enumerate(page.data, 1):
        chunk = Chunk(
            text=_hit_text(hit),
            file_id=hit.file_id,
            filename=hit.filename or "",
            attributes=dict(hit.attributes or {}),
        )
        results.append({"chunk": chunk, "score": float(hit.score), "rank": rank})
    return results


def filter_by_score(results: list[dict], threshold: float = 0.7) -> list[dict]:
    """Keep results scoring strictly above `threshold`, order preserved."""
    return [r for r in results if r["score"] > threshold]


class VectorStoreRetriever:
    """Search + threshold filter bound to one vector store."""

    def __init__(self, client, store_id: str, threshold: float = 0.7,
                 max_results: int = 10):
        self.client = client
        self.store_id = store_id
        self.threshold = threshold
        self.max_results = max_results

    def search(self, query: str) -> list[dict]:
        results = search(self.client, self.store_id, query, self.max_results)
        return filter_by_score(results, self.threshold)
