"""Tests for vector store search and the relevance threshold."""

from types import SimpleNamespace

from conftest import make_hit
from docchat.retriever import VectorStoreRetriever, filter_by_score, search


def _result(score):
    return {"chunk": None, "score": score, "rank": 0}


class TestFilterByScore:

    def test_threshold_is_strict(self):
        kept = filter_by_score([_result(0.71), _result(0.7), _result(0.69)], 0.7)
        assert [r["score"] for r in kept] == [0.71]

    def test_order_preserved(self):
        kept = filter_by_score([_result(0.8), _result(0.1), _result(0.95)])
        assert [r["score"] for r in kept] == [0.8, 0.95]

    def test_empty(self):
        assert filter_by_score([]) == []


class TestSearch:

    def test_converts_hits(self, client):
        client.vector_stores.search.return_value = SimpleNamespace(data=[
            make_hit(0.9, text="FreeBSD is an operating system."),
            make_hit(0.4, text="Ports collection", file_id="file-2", filename=None),
        ])
        results = search(client, "vs_test", "What is FreeBSD?", max_results=5)

        client.vector_stores.search.assert_called_once_with(
            vector_store_id="vs_test", query="What is FreeBSD?", max_num_results=5,
        )
        assert [r["rank"] for r in results] == [1, 2]
        assert results[0]["chunk"].text == "FreeBSD is an operating system."
        assert results[0]["chunk"].filename == "handbook.pdf"
        assert results[1]["chunk"].filename == ""
        assert results[1]["score"] == 0.4

    def test_joins_multiple_text_parts(self, client):
        hit = make_hit(0.8)
        hit.content = [SimpleNamespace(type="text", text="one"),
                       SimpleNamespace(type="text", text="two")]
        client.vector_stores.search.return_value = SimpleNamespace(data=[hit])
        results = search(client, "vs_test", "q")
        assert results[0]["chunk"].text == "one\ntwo"


class TestRetriever:

    def test_freebsd_example_keeps_one_result(self, client):
        client.vector_stores.search.return_value = SimpleNamespace(
            data=[make_hit(0.9), make_hit(0.5)]
        )
        retriever = VectorStoreRetriever(client, "vs_test")
        results = retriever.search("What is FreeBSD?")

        assert len(results) == 1
        assert results[0]["score"] == 0.9

    def test_no_low_scores_pass(self, client):
        client.vector_stores.search.return_value = SimpleNamespace(
            data=[make_hit(s) for s in (0.2, 0.7, 0.71, 0.99, 0.0)]
        )
        retriever = VectorStoreRetriever(client, "vs_test", threshold=0.7)
        assert all(r["score"] > 0.7 for r in retriever.search("q"))
