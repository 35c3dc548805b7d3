"""Knowledge-base pipeline orchestrating ingestion, removal and retrieval."""

from pathlib import Path, PurePath
from uuid import uuid4

from .chunk_store import ChunkStore
from .config import config
from .document_processing import DocumentLoader, TextChunker, file_type_of
from .knowledge_base import KnowledgeBaseRepository
from .models import DocumentChunk, KnowledgeBaseDocument
from .retrieval import KeywordRetriever

logger = config.get_logger(__name__)


class KnowledgeBasePipeline:
    """Main pipeline orchestrating Load -> Split -> Store -> Search."""

    def __init__(
        self,
        chunk_store: ChunkStore | None = None,
        repository: KnowledgeBaseRepository | None = None,
        chunk_size: int | None = None,
        overlap: int | None = None,
        retriever: KeywordRetriever | None = None,
    ) -> None:
        """Initialize the pipeline with its stores.

        Args:
            chunk_store: Chunk store shared by ingestion and search. A new one is
                created if None.
            repository: Document metadata repository. If None, one is opened at
                config.KNOWLEDGE_BASE_DB_PATH.
            chunk_size: Size of text chunks. If None, uses config.CHUNK_SIZE.
            overlap: Overlap between chunks. If None, uses config.CHUNK_OVERLAP.
            retriever: Keyword retriever. A default one is created if None.
        """
        if chunk_size is None:
            chunk_size = config.CHUNK_SIZE
        if overlap is None:
            overlap = config.CHUNK_OVERLAP

        self.chunk_store = chunk_store if chunk_store is not None else ChunkStore()
        self.repository = (
            repository if repository is not None else KnowledgeBaseRepository()
        )
        self.chunker = TextChunker(chunk_size=chunk_size, overlap=overlap)
        self.retriever = retriever if retriever is not None else KeywordRetriever()

    def ingest_document(  # noqa: PLR0913
        self,
        content: bytes,
        filename: str,
        *,
        title: str | None = None,
        description: str = "",
        user_id: str | None = None,
        file_path: str | None = None,
    ) -> KnowledgeBaseDocument:
        """Process an uploaded document into searchable chunks.

        Args:
            content: Raw file bytes.
            filename: Original file name.
            title: Display title. Defaults to the file name without extension.
            description: Free-form description.
            user_id: Owner of the document. If None, uses config.DEFAULT_USER_ID.
            file_path: Location of the stored upload, removed with the document.

        Returns:
            The metadata record of the ingested document.
        """
        logger.info("Processing file: %s", filename)

        file_type = file_type_of(filename)
        source_id = uuid4().hex
        text = DocumentLoader.extract_text(content, filename)
        chunks = self.chunker.chunk_document(
            text, source_id=source_id, filename=filename, file_type=file_type
        )
        self.chunk_store.add_chunks(chunks)

        document = KnowledgeBaseDocument(
            document_id=source_id,
            title=title or PurePath(filename).stem,
            description=description,
            filename=filename,
            file_type=file_type,
            file_size=len(content),
            user_id=user_id or config.DEFAULT_USER_ID,
            chunk_count=len(chunks),
            file_path=file_path,
        )
        self.repository.add(document)

        logger.info(
            "Document %s processed into %d chunks", document.document_id, len(chunks)
        )
        return document

    def ingest_file(self, file_path: Path, **kwargs: object) -> KnowledgeBaseDocument:
        """Read a document from disk and ingest it.

        Returns:
            The metadata record of the ingested document.
        """
        path = Path(file_path)
        return self.ingest_document(
            path.read_bytes(),
            path.name,
            **kwargs,  # type: ignore[arg-type]
        )

    def remove_document(self, document_id: str, user_id: str | None = None) -> int:
        """Delete a document, its stored file and all of its chunks.

        Returns:
            Number of chunks removed.

        Raises:
            DocumentNotFoundError: If the document is unknown or owned by
                another user.
        """
        document = self.repository.remove(
            document_id, user_id or config.DEFAULT_USER_ID
        )

        if document.file_path:
            try:
                Path(document.file_path).unlink()
            except OSError:
                logger.exception("Error deleting file %s", document.file_path)

        return self.chunk_store.remove_source(document_id)

    def list_documents(self, user_id: str | None = None) -> list[KnowledgeBaseDocument]:
        """Return the documents owned by a user, newest first."""  # noqa: DOC201
        return self.repository.list_for_user(user_id or config.DEFAULT_USER_ID)

    def get_document(self, document_id: str) -> KnowledgeBaseDocument | None:
        """Return one document's metadata, or None."""  # noqa: DOC201
        return self.repository.get(document_id)

    def stats(self) -> dict[str, int]:
        """Return counts of indexed documents and chunks."""  # noqa: DOC201
        return {
            "documents": len(self.chunk_store.source_ids()),
            "chunks": len(self.chunk_store),
        }

    def clear(self) -> None:
        """Remove every chunk from the search index."""
        self.chunk_store.clear()

    def query(self, question: str, top_k: int | None = None) -> list[DocumentChunk]:
        """Search the knowledge base.

        Retrieval errors are logged and reported as no matches.

        Args:
            question: The input question to search for.
            top_k: Maximum number of chunks. If None, uses config.SEARCH_TOP_K.

        Returns:
            Matching chunks, best first.
        """
        if top_k is None:
            top_k = config.SEARCH_TOP_K
        logger.info("Processing query: %s", question)

        try:
            return self.retriever.search(self.chunk_store.snapshot(), question, top_k)
        except Exception:
            logger.exception("Error searching documents")
            return []
