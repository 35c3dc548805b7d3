"""Configuration management for the KBQA backend."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)


class Config:
    """Application configuration loaded from environment variables."""

    # Completion API Configuration
    @classmethod
    def get_openai_api_key(cls) -> str:
        """Get the completion API key from environment variables.

        ``OPENAI_API_KEY`` wins; ``GITHUB_TOKEN`` is accepted for the GitHub
        Models inference endpoint.

        Returns:
            API key from environment or empty string if not set.
        """
        return os.getenv("OPENAI_API_KEY") or os.getenv("GITHUB_TOKEN", "")

    OPENAI_BASE_URL: str | None = os.getenv(
        "OPENAI_BASE_URL", "https://models.github.ai/inference"
    )

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()

    # Application Settings
    DEFAULT_USER_ID: str = os.getenv("DEFAULT_USER_ID", "default-user")

    # Chunking Configuration
    CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "1000"))
    CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "100"))

    # Retrieval Configuration
    SEARCH_TOP_K: int = int(os.getenv("SEARCH_TOP_K", "5"))
    ZERO_SCORE_FALLBACK_COUNT: int = int(os.getenv("ZERO_SCORE_FALLBACK_COUNT", "3"))

    # Conversation Configuration
    HISTORY_MAX_TURNS: int = int(os.getenv("HISTORY_MAX_TURNS", "20"))

    # Chat Model Configuration
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "openai/gpt-4.1")
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "1.0"))
    CHAT_TOP_P: float = float(os.getenv("CHAT_TOP_P", "1.0"))
    CHAT_MAX_TOKENS: int | None = (
        int(os.environ["CHAT_MAX_TOKENS"]) if os.getenv("CHAT_MAX_TOKENS") else None
    )

    # Knowledge Base Storage
    KNOWLEDGE_BASE_DB_PATH: Path = Path(
        os.getenv("KNOWLEDGE_BASE_DB_PATH", "data/knowledge_base.db")
    )

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "KBQA/1.0")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration values.

        Raises:
            ValueError: If no completion API key is set.
        """
        if not cls.get_openai_api_key():
            msg = (
                "OPENAI_API_KEY (or GITHUB_TOKEN) is required. "
                "Please set it in .env file or environment."
            )
            raise ValueError(msg)

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Configure logging once at application startup with:
        - Console output for all levels
        - Simple, readable format
        - Configurable level via environment variable
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        third_party_level = getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        for name in ("openai", "httpx"):
            logging.getLogger(name).setLevel(third_party_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound API calls.

        Returns:
            Mapping of header names to values used on outbound HTTP requests.
        """
        headers: dict[str, str] = {}

        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT

        return headers


config = Config()
