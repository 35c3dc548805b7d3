"""Document text extraction and paragraph-aware chunking."""

import io
import re
from pathlib import PurePath

import docx
import pypdf

from .config import config
from .models import DocumentChunk

logger = config.get_logger(__name__)

EMPTY_DOCUMENT_MARKER = "[Empty document]"
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


class DocumentLoader:
    """Extracts plain text from uploaded PDF, DOCX and text documents."""

    @staticmethod
    def load_pdf(content: bytes) -> str:
        """Load text content from PDF bytes.

        Returns:
            The extracted text content from the PDF as a string.
        """
        pdf_reader = pypdf.PdfReader(io.BytesIO(content))
        text = ""
        for page_num, page in enumerate(pdf_reader.pages):
            page_text = page.extract_text() or ""
            text += f"\n--- Page {page_num + 1} ---\n{page_text}\n"
        return text

    @staticmethod
    def load_docx(content: bytes) -> str:
        """Load paragraph text from DOCX bytes.

        Returns:
            Paragraphs of the document separated by blank lines.
        """
        document = docx.Document(io.BytesIO(content))
        paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
        return "\n\n".join(paragraphs)

    @staticmethod
    def load_txt(content: bytes) -> str:
        """Decode text bytes as UTF-8, replacing undecodable sequences.

        Returns:
            The decoded text.
        """
        return content.decode("utf-8", errors="replace")

    @staticmethod
    def fallback_text(filename: str, file_type: str, size: int) -> str:
        """Describe a document whose content could not be extracted."""  # noqa: DOC201
        return f"Document: {filename}\nType: {file_type}\nSize: {size} bytes"

    @classmethod
    def extract_text(cls, content: bytes, filename: str) -> str:
        """Extract text based on the file extension.

        Parse failures do not propagate: the document degrades to a short
        placeholder naming the file, its type and size.

        Args:
            content: Raw file bytes.
            filename: Original file name, used to pick the parser.

        Returns:
            The extracted text, or the placeholder when nothing usable was found.
        """
        file_type = file_type_of(filename)
        try:
            if file_type == "pdf":
                text = cls.load_pdf(content)
            elif file_type == "docx":
                text = cls.load_docx(content)
            else:
                text = cls.load_txt(content)
        except Exception:
            logger.exception("Error extracting text from %s", filename)
            text = ""

        if not text.strip():
            logger.info("Using fallback content for empty document %s", filename)
            return cls.fallback_text(filename, file_type, len(content))

        logger.info("Extracted %d characters from %s", len(text), filename)
        return text


def file_type_of(filename: str) -> str:
    """Get the file type of a filename.

    Returns:
        The lower-cased extension of ``filename`` without the dot.
    """
    return PurePath(filename).suffix.lower().lstrip(".")


class TextChunker:
    """Splits text into overlapping chunks along paragraph boundaries."""

    def __init__(self, chunk_size: int = 1000, overlap: int = 100) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: Target maximum number of characters per chunk.
            overlap: Characters carried from the end of one paragraph-level
                chunk into the next.

        Raises:
            ValueError: If ``chunk_size`` is not positive or ``overlap`` is negative.
        """
        if chunk_size <= 0:
            msg = f"chunk_size must be positive, got {chunk_size}"
            raise ValueError(msg)
        if overlap < 0:
            msg = f"overlap must not be negative, got {overlap}"
            raise ValueError(msg)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def _tail(self, chunk: str) -> str:
        return chunk[-self.overlap :] if self.overlap else ""

    def split(self, text: str) -> list[str]:
        """Split text into chunks of roughly ``chunk_size`` characters.

        Returns:
            Chunks in document order; a single marker chunk for blank input.
        """
        if not text or not text.strip():
            return [EMPTY_DOCUMENT_MARKER]
        if len(text) <= self.chunk_size:
            return [text]

        chunks: list[str] = []
        current = ""

        for paragraph in PARAGRAPH_BREAK.split(text):
            if not paragraph.strip():
                continue

            if len(current) + len(paragraph) <= self.chunk_size:
                current += ("\n\n" if current else "") + paragraph
                continue

            if current:
                chunks.append(current)
                current = self._tail(current)

            if len(paragraph) <= self.chunk_size:
                current += ("\n\n" if current else "") + paragraph
                continue

            # Oversized paragraph: fall back to word boundaries
            for word in paragraph.split():
                if current and len(current) + len(word) + 1 > self.chunk_size:
                    chunks.append(current)
                    current = ""
                current += (" " if current else "") + word

        if current:
            chunks.append(current)

        logger.info("Text split into %d chunks", len(chunks))
        return chunks or [EMPTY_DOCUMENT_MARKER]

    def chunk_document(
        self,
        text: str,
        *,
        source_id: str,
        filename: str,
        file_type: str = "",
    ) -> list[DocumentChunk]:
        """Split text and tag each piece with its source document.

        Returns:
            DocumentChunk objects numbered from 1 in document order.
        """
        pieces = self.split(text)
        return [
            DocumentChunk(
                text=piece,
                source_id=source_id,
                ordinal=ordinal,
                filename=filename,
                file_type=file_type,
                chunk_count=len(pieces),
            )
            for ordinal, piece in enumerate(pieces, start=1)
        ]
