"""Prompt assembly for chat completion requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import ConversationTurn

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import DocumentChunk

CHUNK_SEPARATOR = "\n\n---\n\n"

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Maintain conversation context and provide "
    "relevant, concise answers."
)

KNOWLEDGE_BASE_SYSTEM_PROMPT = (
    "You are a helpful assistant with access to the user's knowledge base. "
    "Maintain conversation context and provide relevant, concise answers.\n\n"
    "Use the following excerpts from uploaded documents when they are relevant "
    "to the question. If they do not contain the answer, say so briefly and "
    "answer from your general knowledge instead.\n\n"
    "=== Knowledge Base Excerpts ===\n\n"
    "{context}"
)


class PromptAssembler:
    """Builds the ordered message list sent to the completion service."""

    @staticmethod
    def format_context(chunks: Sequence[DocumentChunk]) -> str:
        """Render retrieved chunks as labelled excerpts."""  # noqa: DOC201
        return CHUNK_SEPARATOR.join(
            f"[Source: {chunk.filename}]\n{chunk.text}" for chunk in chunks
        )

    def system_turn(self, chunks: Sequence[DocumentChunk]) -> ConversationTurn:
        """Return the single system instruction for a request."""  # noqa: DOC201
        if not chunks:
            return ConversationTurn(role="system", content=DEFAULT_SYSTEM_PROMPT)
        return ConversationTurn(
            role="system",
            content=KNOWLEDGE_BASE_SYSTEM_PROMPT.format(
                context=self.format_context(chunks)
            ),
        )

    def assemble(
        self,
        history: Sequence[ConversationTurn],
        retrieved_chunks: Sequence[DocumentChunk],
        question: str,
        *,
        append_question: bool,
    ) -> list[ConversationTurn]:
        """Combine instructions, context, history and the question.

        Args:
            history: Prior turns. System turns are dropped so the assembled
                instruction is the only one.
            retrieved_chunks: Knowledge-base excerpts for the question.
            question: The current question.
            append_question: Whether to add the question as the final user turn.
                Callers that pass history already ending with the question set
                this to False.

        Returns:
            Turns starting with exactly one system turn.
        """
        messages = [self.system_turn(retrieved_chunks)]
        messages.extend(turn for turn in history if turn.role != "system")
        if append_question:
            messages.append(ConversationTurn(role="user", content=question))
        return messages
