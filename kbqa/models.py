"""Data models for the knowledge-base assistant."""

from __future__ import annotations

import datetime
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, get_args

Role = Literal["system", "user", "assistant"]
VALID_ROLES: frozenset[str] = frozenset(get_args(Role))


@dataclass(frozen=True)
class DocumentChunk:
    """Represents a chunk of text from an uploaded document."""

    text: str
    source_id: str
    ordinal: int
    filename: str
    file_type: str = ""
    chunk_count: int = 1


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single role-tagged message in a conversation."""

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            msg = f"Unsupported conversation role: {self.role!r}"
            raise ValueError(msg)

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> ConversationTurn:
        """Build a turn from a ``{"role": ..., "content": ...}`` mapping.

        Returns:
            ConversationTurn carrying the message role and content.
        """
        return cls(role=message["role"], content=str(message.get("content") or ""))

    def to_message(self) -> dict[str, str]:
        """Return the wire form used by chat completion APIs."""  # noqa: DOC201
        return {"role": self.role, "content": self.content}


@dataclass
class KnowledgeBaseDocument:
    """Metadata stored for an uploaded knowledge-base document."""

    document_id: str
    title: str
    filename: str
    file_type: str
    file_size: int
    user_id: str
    description: str = ""
    chunk_count: int = 0
    file_path: str | None = None
    upload_date: str = field(
        default_factory=lambda: datetime.datetime.now(tz=datetime.UTC).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the record as a plain dictionary."""  # noqa: DOC201
        return asdict(self)


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of answering one question."""

    answer: str
    used_knowledge_base: bool
    relevant_docs_found: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to the external response payload.

        Returns:
            Dictionary with camelCase keys.
        """
        return {
            "answer": self.answer,
            "usedKnowledgeBase": self.used_knowledge_base,
            "relevantDocsFound": self.relevant_docs_found,
        }
