"""OpenAI-compatible chat completion client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import openai
from openai import OpenAI

from .config import config
from .exceptions import CompletionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import ConversationTurn

logger = config.get_logger(__name__)

NO_CONTENT_ANSWER = "I apologize, but I couldn't generate a response."


class CompletionService:
    """Sends assembled conversations to the chat completion endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
    ) -> None:
        """Initialize the CompletionService.

        Args:
            api_key: API key. If None, reads OPENAI_API_KEY or GITHUB_TOKEN.
            base_url: Endpoint URL. If None, uses config.OPENAI_BASE_URL.
            model: Chat model name. If None, uses config.CHAT_MODEL.
        """
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=base_url or config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.CHAT_MODEL

    def default_options(self) -> dict[str, Any]:
        """Sampling parameters applied to every request."""  # noqa: DOC201
        options: dict[str, Any] = {
            "model": self.model,
            "temperature": config.CHAT_TEMPERATURE,
            "top_p": config.CHAT_TOP_P,
        }
        if config.CHAT_MAX_TOKENS is not None:
            options["max_tokens"] = config.CHAT_MAX_TOKENS
        return options

    def complete(
        self,
        messages: Sequence[ConversationTurn],
        **options: Any,  # noqa: ANN401
    ) -> str:
        """Generate the assistant reply for a conversation.

        Args:
            messages: Ordered turns to send.
            **options: Overrides for the default sampling parameters.

        Returns:
            The generated text.

        Raises:
            CompletionError: If the completion request fails.
        """
        request = {**self.default_options(), **options}
        logger.info(
            "Requesting completion from %s with %d messages",
            request["model"],
            len(messages),
        )

        try:
            response = self.client.chat.completions.create(
                messages=[turn.to_message() for turn in messages],
                **request,
            )
        except openai.OpenAIError as e:
            logger.exception("Completion request failed")
            msg = "Failed to get answer"
            raise CompletionError(msg) from e

        if not response.choices:
            logger.warning("Completion response contained no choices")
            return NO_CONTENT_ANSWER

        answer = response.choices[0].message.content
        return answer.strip() if answer else NO_CONTENT_ANSWER
