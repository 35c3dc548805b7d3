"""Test configuration and fixtures for KBQA tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock completion API responses
- Text processing fixtures
- Knowledge-base store fixtures
- Sample data factories
- Conversation helpers
"""

from contextlib import contextmanager
from unittest.mock import Mock, create_autospec, patch

import pytest

from kbqa import (
    ChunkStore,
    CompletionService,
    ConversationManager,
    ConversationWindowStore,
    DocumentChunk,
    KeywordRetriever,
    KnowledgeBasePipeline,
    KnowledgeBaseRepository,
    TextChunker,
)


class TestConstants:
    """Centralized test constants to avoid repetition across test files.

    All test constants are defined here to maintain consistency across
    the test suite and make it easy to update values globally.
    """

    # API Configuration
    TEST_API_KEY = "test-key"
    TEST_BASE_URL = "https://models.example.test/inference"
    TEST_CHAT_MODEL = "openai/gpt-4.1"

    # Text Chunking Configuration
    SMALL_CHUNK_SIZE = 100
    SMALL_CHUNK_OVERLAP = 20
    DEFAULT_CHUNK_SIZE = 1000
    DEFAULT_CHUNK_OVERLAP = 100

    # Conversation Configuration
    HISTORY_MAX_TURNS = 20
    TEST_USER_ID = "tester"


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing OpenAI chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


def make_chunk(
    text: str,
    *,
    source_id: str = "doc-1",
    ordinal: int = 1,
    filename: str = "notes.txt",
) -> DocumentChunk:
    """Build a DocumentChunk with sensible defaults for tests."""
    return DocumentChunk(
        text=text,
        source_id=source_id,
        ordinal=ordinal,
        filename=filename,
        file_type=filename.rsplit(".", 1)[-1],
    )


@pytest.fixture
def text_chunker_factory():
    """Factory fixture that creates ``TextChunker`` instances on demand."""
    presets: dict[str, tuple[int, int]] = {
        "small": (
            TestConstants.SMALL_CHUNK_SIZE,
            TestConstants.SMALL_CHUNK_OVERLAP,
        ),
        "default": (
            TestConstants.DEFAULT_CHUNK_SIZE,
            TestConstants.DEFAULT_CHUNK_OVERLAP,
        ),
    }

    def _create_chunker(
        name: str = "default",
        *,
        chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> TextChunker:
        if chunk_size is None or overlap is None:
            try:
                preset_chunk_size, preset_overlap = presets[name]
            except KeyError as exc:
                msg = f"Unknown text chunker preset: {name}"
                raise ValueError(msg) from exc
            chunk_size = preset_chunk_size if chunk_size is None else chunk_size
            overlap = preset_overlap if overlap is None else overlap

        return TextChunker(chunk_size=chunk_size, overlap=overlap)

    return _create_chunker


@pytest.fixture
def text_chunker_small(text_chunker_factory):
    """Text chunker configured for small chunks (100/20)."""
    return text_chunker_factory("small")


@pytest.fixture
def text_chunker_default(text_chunker_factory):
    """Text chunker configured with default settings (1000/100)."""
    return text_chunker_factory("default")


@pytest.fixture
def chunk_factory():
    """Factory fixture building DocumentChunk objects."""
    return make_chunk


@pytest.fixture
def retriever():
    """Keyword retriever with the standard three-chunk fallback."""
    return KeywordRetriever(fallback_count=3)


@pytest.fixture
def sample_chunks():
    """Create sample document chunks spread over three documents."""
    return [
        make_chunk(
            "Machine learning is a subset of artificial intelligence.",
            source_id="ml",
            ordinal=1,
            filename="ml_intro.txt",
        ),
        make_chunk(
            "Neural networks are computational models inspired by the brain.",
            source_id="ml",
            ordinal=2,
            filename="ml_intro.txt",
        ),
        make_chunk(
            "Deep learning uses multiple layers to learn complex patterns.",
            source_id="dl",
            ordinal=1,
            filename="deep_learning.pdf",
        ),
        make_chunk(
            "Supervised learning uses labeled training data.",
            source_id="recipes",
            ordinal=1,
            filename="recipes.docx",
        ),
        make_chunk(
            "Bake the bread for forty minutes at high heat.",
            source_id="recipes",
            ordinal=2,
            filename="recipes.docx",
        ),
    ]


@pytest.fixture
def chunk_store(sample_chunks):
    """Chunk store pre-populated with the sample chunks."""
    store = ChunkStore()
    store.add_chunks(sample_chunks)
    return store


@pytest.fixture
def temp_repository(tmp_path) -> KnowledgeBaseRepository:
    """Create a temporary SQLite-backed knowledge-base repository."""
    return KnowledgeBaseRepository(tmp_path / "test_kb.db")


@pytest.fixture
def pipeline_factory(tmp_path):
    """Factory for creating KnowledgeBasePipeline instances on temp storage."""

    def _create_pipeline(
        db_name: str = "test_kb.db",
        chunk_size: int = 200,
        overlap: int = 50,
        chunk_store: ChunkStore | None = None,
    ) -> KnowledgeBasePipeline:
        return KnowledgeBasePipeline(
            chunk_store=chunk_store,
            repository=KnowledgeBaseRepository(tmp_path / db_name),
            chunk_size=chunk_size,
            overlap=overlap,
            retriever=KeywordRetriever(fallback_count=3),
        )

    return _create_pipeline


@pytest.fixture
def pipeline(pipeline_factory):
    """Default pipeline with small chunks for most tests."""
    return pipeline_factory()


@pytest.fixture
def completion_service():
    """CompletionService configured with test credentials."""
    return CompletionService(
        api_key=TestConstants.TEST_API_KEY,
        base_url=TestConstants.TEST_BASE_URL,
        model=TestConstants.TEST_CHAT_MODEL,
    )


@pytest.fixture
def chat_mock_factory():
    """Factory mock fixture for a CompletionService's chat.completions.create."""

    @contextmanager
    def _mock_chat(  # noqa: ANN202
        service: CompletionService,
        content: str | None = "Test response",
        side_effect=None,
    ):
        with patch.object(service.client.chat.completions, "create") as mock_create:
            if side_effect is not None:
                mock_create.side_effect = side_effect
                mock_create.return_value = None
            else:
                mock_create.side_effect = None
                mock_create.return_value = create_mock_chat_response(content)
            yield mock_create

    return _mock_chat


@pytest.fixture
def mock_pipeline_empty_return():
    mock_pipeline = create_autospec(KnowledgeBasePipeline, instance=True)
    mock_pipeline.query.return_value = []
    return mock_pipeline


@pytest.fixture
def conversation_manager_factory(completion_service):
    """Factory fixture for creating ConversationManager instances."""

    def _create_conversation_manager(
        pipeline, max_turns: int = TestConstants.HISTORY_MAX_TURNS
    ) -> ConversationManager:
        return ConversationManager(
            pipeline,
            completion_service=completion_service,
            windows=ConversationWindowStore(max_turns=max_turns),
        )

    return _create_conversation_manager


@pytest.fixture
def conversation_manager(conversation_manager_factory, mock_pipeline_empty_return):
    """Pre-configured ConversationManager with a mock pipeline."""
    return conversation_manager_factory(mock_pipeline_empty_return)
