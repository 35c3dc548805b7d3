"""Keyword-based retrieval over document chunks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .config import config

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import DocumentChunk

logger = config.get_logger(__name__)

MIN_KEYWORD_LENGTH = 3
EXACT_MATCH_POINTS = 10
PARTIAL_MATCH_POINTS = 2
TITLE_MATCH_POINTS = 50

_NON_WORD = re.compile(r"\W")


class KeywordRetriever:
    """Scores chunks by literal keyword matches and returns the best ones.

    Exact whole-word matches also count as substring matches, so a keyword
    that appears as a word earns both the exact and the partial points.
    A keyword found in the chunk's filename earns a flat title bonus.
    """

    def __init__(self, fallback_count: int | None = None) -> None:
        """Initialize the retriever.

        Args:
            fallback_count: Chunks returned from the start of the store when
                nothing scores. If None, uses config.ZERO_SCORE_FALLBACK_COUNT.
        """
        if fallback_count is None:
            fallback_count = config.ZERO_SCORE_FALLBACK_COUNT
        self.fallback_count = fallback_count

    @staticmethod
    def tokenize(query: str) -> list[str]:
        """Turn a query into search keywords.

        Returns:
            Lower-cased keywords longer than two characters, stripped of
            non-word characters, in query order.
        """
        keywords = []
        for word in query.lower().split():
            if len(word) < MIN_KEYWORD_LENGTH:
                continue
            keyword = _NON_WORD.sub("", word)
            if keyword:
                keywords.append(keyword)
        return keywords

    @staticmethod
    def score(chunk: DocumentChunk, keywords: Sequence[str]) -> int:
        """Compute the keyword relevance score of a chunk.

        Returns:
            Integer score; zero means no keyword matched.
        """
        text = chunk.text.lower()
        filename = chunk.filename.lower()
        total = 0
        for keyword in keywords:
            exact = re.findall(rf"\b{re.escape(keyword)}\b", text)
            total += len(exact) * EXACT_MATCH_POINTS
            total += text.count(keyword) * PARTIAL_MATCH_POINTS
            if keyword in filename:
                total += TITLE_MATCH_POINTS
        return total

    def rank(
        self,
        chunks: Sequence[DocumentChunk],
        query: str,
        k: int,
    ) -> list[tuple[DocumentChunk, int]]:
        """Score and order chunks for a query.

        Returns:
            Up to ``k`` (chunk, score) pairs, best first. Fallback results carry
            a score of 0.
        """
        if not chunks:
            logger.info("No documents in the knowledge base")
            return []
        if k <= 0:
            return []

        logger.info("Searching through %d document chunks", len(chunks))
        keywords = self.tokenize(query)
        logger.info("Search keywords: %s", ", ".join(keywords))

        if not keywords:
            logger.info("No meaningful keywords found, returning first documents")
            return [(chunk, 0) for chunk in chunks[:k]]

        scored = [(chunk, self.score(chunk, keywords)) for chunk in chunks]
        relevant = [pair for pair in scored if pair[1] > 0]
        relevant.sort(key=lambda pair: pair[1], reverse=True)
        results = relevant[:k]

        logger.info("Found %d relevant document chunks", len(results))
        if not results:
            logger.info("No scored results, returning sample documents")
            return [(chunk, 0) for chunk in chunks[: min(self.fallback_count, k)]]

        return results

    def search(
        self,
        chunks: Sequence[DocumentChunk],
        query: str,
        k: int,
    ) -> list[DocumentChunk]:
        """Return at most ``k`` chunks ordered by descending relevance.

        Returns:
            The matching chunks, or leading chunks of the store when no keyword
            is usable or nothing matched.
        """
        return [chunk for chunk, _ in self.rank(chunks, query, k)]
