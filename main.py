"""Command-line entry point for asking questions against the knowledge base."""

from __future__ import annotations

import argparse
import sys
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from kbqa import (
    CompletionError,
    ConversationManager,
    EmptyQuestionError,
    KnowledgeBasePipeline,
)
from kbqa.config import config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import Logger

EXIT_COMMANDS = frozenset({"exit", "quit"})


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="Ask questions answered with your uploaded documents as context.",
    )
    parser.add_argument(
        "--ingest",
        type=Path,
        action="append",
        default=[],
        metavar="PATH",
        help="Document to add to the knowledge base before asking (repeatable).",
    )
    parser.add_argument(
        "--conversation-id",
        default=None,
        help="Conversation id used to keep context (default: a new random id).",
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=config.SEARCH_TOP_K,
        help=f"Knowledge-base chunks per question (default: {config.SEARCH_TOP_K}).",
    )
    parser.add_argument(
        "--user-id",
        default=config.DEFAULT_USER_ID,
        help=f"Owner of ingested documents (default: {config.DEFAULT_USER_ID}).",
    )
    return parser.parse_args(argv)


def ingest_documents(
    pipeline: KnowledgeBasePipeline,
    paths: Sequence[Path],
    user_id: str,
    logger: Logger,
) -> int:
    """Ingest documents from disk and return the number of failures."""  # noqa: DOC201
    failures = 0
    for path in paths:
        try:
            document = pipeline.ingest_file(path, user_id=user_id)
        except OSError:
            logger.exception("Unable to read document %s", path)
            failures += 1
            continue
        logger.info(
            "Added '%s' with %d chunks (id %s)",
            document.title,
            document.chunk_count,
            document.document_id,
        )
    return failures


def run_repl(  # noqa: PLR0913,PLR0917
    manager: ConversationManager,
    conversation_id: str,
    top_k: int,
    logger: Logger,
    stdin: TextIO = sys.stdin,
    stdout: TextIO = sys.stdout,
) -> int:
    """Read questions until EOF or an exit command and print the answers.

    Returns:
        Exit code, always 0.
    """
    stdout.write("Ask anything you'd like to know. Type 'exit' to quit.\n")
    while True:
        stdout.write("\nQuestion: ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        question = line.strip()
        if question.lower() in EXIT_COMMANDS:
            break

        try:
            result = manager.answer_question(
                question, conversation_id=conversation_id, top_k=top_k
            )
        except EmptyQuestionError:
            continue
        except CompletionError:
            logger.exception("Failed to get answer")
            stdout.write("\nSorry, I couldn't get an answer right now.\n")
            continue

        source_note = (
            f" [{result.relevant_docs_found} knowledge-base excerpts]"
            if result.used_knowledge_base
            else ""
        )
        stdout.write(f"\nAnswer{source_note}: {result.answer}\n")

    stdout.write("Goodbye!\n")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration, ingest documents and start the question loop.

    Returns:
        Exit code: 0 on success, 1 on configuration or ingestion failure.
    """
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    pipeline = KnowledgeBasePipeline()
    if ingest_documents(pipeline, args.ingest, args.user_id, logger):
        return 1

    manager = ConversationManager(pipeline)
    conversation_id = args.conversation_id or uuid.uuid4().hex
    logger.info("Starting conversation %s", conversation_id)
    return run_repl(manager, conversation_id, args.top_k, logger)


if __name__ == "__main__":
    sys.exit(main())
