"""KBQA - conversational question answering over a keyword-searched knowledge base."""

from .chunk_store import ChunkStore
from .completion import CompletionService
from .conversation import ConversationManager, ConversationWindowStore
from .document_processing import DocumentLoader, TextChunker
from .exceptions import CompletionError, DocumentNotFoundError, EmptyQuestionError
from .knowledge_base import KnowledgeBaseRepository
from .models import AnswerResult, ConversationTurn, DocumentChunk, KnowledgeBaseDocument
from .pipeline import KnowledgeBasePipeline
from .prompts import PromptAssembler
from .retrieval import KeywordRetriever

__all__ = [
    "AnswerResult",
    "ChunkStore",
    "CompletionError",
    "CompletionService",
    "ConversationManager",
    "ConversationTurn",
    "ConversationWindowStore",
    "DocumentChunk",
    "DocumentLoader",
    "DocumentNotFoundError",
    "EmptyQuestionError",
    "KeywordRetriever",
    "KnowledgeBaseDocument",
    "KnowledgeBasePipeline",
    "KnowledgeBaseRepository",
    "PromptAssembler",
    "TextChunker",
]
