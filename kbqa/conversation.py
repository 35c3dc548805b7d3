"""Conversation windows and question answering with knowledge-base context."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from .completion import CompletionService
from .config import config
from .exceptions import EmptyQuestionError
from .models import AnswerResult, ConversationTurn
from .prompts import PromptAssembler

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import DocumentChunk
    from .pipeline import KnowledgeBasePipeline

logger = config.get_logger(__name__)


class ConversationWindowStore:
    """Bounded per-conversation message history kept in memory.

    Each window holds at most ``max_turns`` turns; the oldest are dropped
    first. Windows live for the lifetime of the process.
    """

    def __init__(self, max_turns: int | None = None) -> None:
        """Initialize the store.

        Args:
            max_turns: Window size. If None, uses config.HISTORY_MAX_TURNS.
        """
        if max_turns is None:
            max_turns = config.HISTORY_MAX_TURNS
        self.max_turns = max_turns
        self._windows: dict[str, list[ConversationTurn]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _truncate(self, turns: list[ConversationTurn]) -> list[ConversationTurn]:
        return turns[-self.max_turns :] if self.max_turns > 0 else []

    def lock(self, conversation_id: str) -> threading.Lock:
        """Return the lock serializing answers for one conversation."""  # noqa: DOC201
        with self._guard:
            return self._locks.setdefault(conversation_id, threading.Lock())

    def has(self, conversation_id: str) -> bool:
        """Check whether a window exists for ``conversation_id``."""  # noqa: DOC201
        with self._guard:
            return conversation_id in self._windows

    def get(self, conversation_id: str) -> list[ConversationTurn]:
        """Return a copy of the window, empty when the id is unknown."""  # noqa: DOC201
        with self._guard:
            return list(self._windows.get(conversation_id, ()))

    def ensure(self, conversation_id: str) -> list[ConversationTurn]:
        """Return the window, creating an empty one if needed."""  # noqa: DOC201
        with self._guard:
            return list(self._windows.setdefault(conversation_id, []))

    def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        """Add a turn to the end of a window, evicting the oldest overflow."""
        with self._guard:
            window = self._windows.get(conversation_id, [])
            self._windows[conversation_id] = self._truncate([*window, turn])

    def replace(self, conversation_id: str, turns: Iterable[ConversationTurn]) -> None:
        """Replace a window with the most recent of ``turns``."""
        with self._guard:
            self._windows[conversation_id] = self._truncate(list(turns))

    def clear(self, conversation_id: str) -> None:
        """Remove a window and its lock, unless an answer currently holds the lock."""
        with self._guard:
            self._windows.pop(conversation_id, None)
            lock = self._locks.get(conversation_id)
            if lock is not None and not lock.locked():
                del self._locks[conversation_id]

    def conversation_ids(self) -> list[str]:
        """Return the ids of all known conversations."""  # noqa: DOC201
        with self._guard:
            return list(self._windows)


class ConversationManager:
    """Answers questions with knowledge-base context and conversation memory."""

    def __init__(
        self,
        pipeline: KnowledgeBasePipeline,
        completion_service: CompletionService | None = None,
        windows: ConversationWindowStore | None = None,
        prompt_assembler: PromptAssembler | None = None,
    ) -> None:
        """Initialize ConversationManager.

        Args:
            pipeline: Knowledge-base pipeline used for retrieval.
            completion_service: Chat completion client. A default one is created
                if None.
            windows: Conversation window store. A new one is created if None.
            prompt_assembler: Prompt assembler. A default one is created if None.
        """
        self.pipeline = pipeline
        self.completion_service = completion_service or CompletionService()
        self.windows = windows if windows is not None else ConversationWindowStore()
        self.prompt_assembler = prompt_assembler or PromptAssembler()

    @staticmethod
    def _coerce_history(
        history: Sequence[ConversationTurn | dict[str, Any]],
    ) -> list[ConversationTurn]:
        return [
            turn
            if isinstance(turn, ConversationTurn)
            else ConversationTurn.from_message(turn)
            for turn in history
        ]

    def answer_question(
        self,
        question: str,
        *,
        conversation_id: str | None = None,
        history: Sequence[ConversationTurn | dict[str, Any]] | None = None,
        top_k: int | None = None,
    ) -> AnswerResult:
        """Answer a question using the knowledge base and prior turns.

        A non-empty ``history`` is taken to already end with the question. An
        empty one starts from scratch. Without ``history`` the stored window for
        ``conversation_id`` is used. In both of the latter cases the question is
        appended as the newest user turn.

        Args:
            question: The user's question.
            conversation_id: Caller-generated id of the conversation to update.
            history: Explicit prior turns supplied by the caller.
            top_k: Maximum number of knowledge-base chunks to include.

        Returns:
            AnswerResult with the generated answer and knowledge-base usage.

        Raises:
            EmptyQuestionError: If the question is blank.
        """
        if not question or not question.strip():
            msg = "Question is required"
            raise EmptyQuestionError(msg)

        explicit_history = None
        if history is not None:
            explicit_history = self._coerce_history(history)
        retrieved_chunks = self.pipeline.query(question, top_k=top_k)
        logger.info(
            "Processing question for conversation %s with %d relevant chunks",
            conversation_id,
            len(retrieved_chunks),
        )

        if conversation_id is None:
            answer = self._complete(explicit_history, retrieved_chunks, question)
        else:
            with self.windows.lock(conversation_id):
                answer = self._complete(
                    explicit_history,
                    retrieved_chunks,
                    question,
                    conversation_id=conversation_id,
                )

        return AnswerResult(
            answer=answer,
            used_knowledge_base=bool(retrieved_chunks),
            relevant_docs_found=len(retrieved_chunks),
        )

    def _complete(
        self,
        explicit_history: list[ConversationTurn] | None,
        retrieved_chunks: Sequence[DocumentChunk],
        question: str,
        *,
        conversation_id: str | None = None,
    ) -> str:
        if explicit_history is not None:
            base_history = explicit_history
        elif conversation_id is not None:
            base_history = self.windows.ensure(conversation_id)
        else:
            base_history = []

        messages = self.prompt_assembler.assemble(
            base_history,
            retrieved_chunks,
            question,
            append_question=not explicit_history,
        )
        logger.info("Message count: %d", len(messages))

        answer = self.completion_service.complete(messages)

        if conversation_id is not None:
            self.windows.replace(
                conversation_id,
                [
                    *(turn for turn in messages if turn.role != "system"),
                    ConversationTurn(role="assistant", content=answer),
                ],
            )
        return answer

    def get_history(self, conversation_id: str) -> list[ConversationTurn]:
        """Return the stored turns of a conversation."""  # noqa: DOC201
        return self.windows.get(conversation_id)

    def clear_history(self, conversation_id: str) -> None:
        """Clear the stored turns of a conversation."""
        self.windows.clear(conversation_id)
        logger.info("Conversation %s history cleared.", conversation_id)
