"""Tests for keyword retrieval and the chunk store."""

from unittest.mock import patch

import pytest

from kbqa import ChunkStore, KeywordRetriever, TextChunker


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        ("What is Machine Learning?", ["what", "machine", "learning"]),
        ("an AI is ok", []),
        ("neural-networks, deep!", ["neuralnetworks", "deep"]),
        ("alpha alpha", ["alpha", "alpha"]),
        ("... ?!? ***", []),
        ("  spaced   out\tquery\n", ["spaced", "out", "query"]),
    ],
)
def test_tokenize(query, expected):
    assert KeywordRetriever.tokenize(query) == expected


def test_score_counts_exact_and_partial_matches(chunk_factory):
    chunk = chunk_factory("Alpha beta.\n\ngamma alpha ALPHA", filename="notes.txt")

    # three whole-word matches (10 each) and three substring matches (2 each)
    assert KeywordRetriever.score(chunk, ["alpha"]) == 36


def test_score_partial_only_match(chunk_factory):
    chunk = chunk_factory("Learning and relearning", filename="notes.txt")

    # "learn" is never a whole word but occurs twice as a substring
    assert KeywordRetriever.score(chunk, ["learn"]) == 4


def test_score_title_bonus(chunk_factory):
    chunk = chunk_factory("Nothing relevant here", filename="Budget_2024.xlsx")

    assert KeywordRetriever.score(chunk, ["budget"]) == 50


def test_score_repeated_keyword_counts_twice(chunk_factory):
    chunk = chunk_factory("alpha", filename="notes.txt")

    assert KeywordRetriever.score(chunk, ["alpha", "alpha"]) == 24


def test_score_no_match(chunk_factory):
    chunk = chunk_factory("Completely unrelated", filename="notes.txt")

    assert KeywordRetriever.score(chunk, ["quantum"]) == 0


def test_search_example_document(retriever):
    chunker = TextChunker(chunk_size=1000, overlap=100)
    chunks = chunker.chunk_document(
        "Alpha beta.\n\ngamma alpha ALPHA", source_id="doc", filename="greek.txt"
    )

    assert len(chunks) == 1
    assert retriever.rank(chunks, "alpha", k=5) == [(chunks[0], 36)]
    assert retriever.search(chunks, "alpha", k=5) == chunks


def test_search_orders_by_score(retriever, sample_chunks):
    results = retriever.search(sample_chunks, "deep learning layers", k=5)

    assert results[0].text.startswith("Deep learning")
    scores = [
        KeywordRetriever.score(chunk, ["deep", "learning", "layers"])
        for chunk in results
    ]
    assert scores == sorted(scores, reverse=True)
    assert all(score > 0 for score in scores)


def test_search_excludes_zero_scores(retriever, sample_chunks):
    results = retriever.search(sample_chunks, "bread", k=5)

    assert [chunk.text for chunk in results] == [
        "Bake the bread for forty minutes at high heat."
    ]


def test_search_ties_keep_store_order(retriever, chunk_factory):
    chunks = [
        chunk_factory("first mention of topic", ordinal=1),
        chunk_factory("second mention of topic", ordinal=2),
        chunk_factory("topic topic", ordinal=3),
    ]

    results = retriever.search(chunks, "topic", k=3)

    assert [chunk.ordinal for chunk in results] == [3, 1, 2]


@pytest.mark.parametrize("k", [1, 2, 3])
def test_search_never_exceeds_k(retriever, sample_chunks, k):
    assert len(retriever.search(sample_chunks, "learning", k=k)) <= k


def test_search_without_keywords_returns_first_k(retriever, sample_chunks):
    results = retriever.search(sample_chunks, "is it a go", k=2)

    assert results == sample_chunks[:2]


def test_search_zero_score_fallback(retriever, sample_chunks):
    results = retriever.search(sample_chunks, "astronomy telescopes", k=5)

    assert results == sample_chunks[:3]


def test_search_zero_score_fallback_respects_k(retriever, sample_chunks):
    results = retriever.search(sample_chunks, "astronomy telescopes", k=2)

    assert results == sample_chunks[:2]


def test_search_empty_store(retriever):
    assert retriever.search([], "anything useful", k=5) == []


def test_search_non_positive_k(retriever, sample_chunks):
    assert retriever.search(sample_chunks, "learning", k=0) == []


def test_title_boost_outranks_body_matches(retriever, chunk_factory):
    chunks = [
        chunk_factory("budget budget budget", filename="notes.txt", ordinal=1),
        chunk_factory("summary of spending", filename="budget.pdf", ordinal=2),
    ]

    results = retriever.rank(chunks, "budget", k=2)

    assert [chunk.ordinal for chunk, _ in results] == [2, 1]
    assert [score for _, score in results] == [50, 36]


def test_default_fallback_count_from_config():
    with patch("kbqa.retrieval.config.ZERO_SCORE_FALLBACK_COUNT", 7):
        assert KeywordRetriever().fallback_count == 7


def test_chunk_store_add_and_snapshot(sample_chunks):
    store = ChunkStore()

    assert store.add_chunks(sample_chunks) == len(sample_chunks)
    assert len(store) == len(sample_chunks)
    snapshot = store.snapshot()
    assert snapshot == sample_chunks
    snapshot.clear()
    assert len(store) == len(sample_chunks)


def test_chunk_store_remove_source(chunk_store, sample_chunks):
    removed = chunk_store.remove_source("recipes")

    assert removed == 2
    assert all(chunk.source_id != "recipes" for chunk in chunk_store.snapshot())
    assert chunk_store.snapshot() == sample_chunks[:3]


def test_chunk_store_remove_unknown_source(chunk_store, sample_chunks):
    assert chunk_store.remove_source("missing") == 0
    assert len(chunk_store) == len(sample_chunks)


def test_chunk_store_source_ids_and_clear(chunk_store):
    assert chunk_store.source_ids() == ["ml", "dl", "recipes"]

    chunk_store.clear()

    assert len(chunk_store) == 0
    assert chunk_store.source_ids() == []
