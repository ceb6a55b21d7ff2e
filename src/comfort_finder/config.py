"""Configuration management for the comfort finder service."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from rich.logging import RichHandler

# Load .env: check current working directory, then project root
load_dotenv(Path.cwd() / ".env", override=True)
load_dotenv(Path(__file__).parent.parent.parent / ".env", override=True)


class Config(BaseModel):
    """Service configuration, loaded from env vars."""

    anthropic_api_key: str = Field(default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""))
    model: str = Field(default_factory=lambda: os.getenv("MODEL", "claude-3-haiku-20240307"))
    notion_api_key: str = Field(default_factory=lambda: os.getenv("NOTION_API_KEY", ""))
    notion_outings_database_id: str = Field(default_factory=lambda: os.getenv("NOTION_OUTINGS_DATABASE_ID", ""))
    outings_path: str = Field(default_factory=lambda: os.getenv("OUTINGS_PATH", "outings.json"))
    api_secret: str = Field(default_factory=lambda: os.getenv("API_SECRET", ""))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    max_review_chars: int = 3000  # review text sent to the LLM per venue

    def validate_keys(self) -> list[str]:
        """Return list of missing optional keys (features degrade without them)."""
        missing = []
        if not self.anthropic_api_key:
            missing.append("ANTHROPIC_API_KEY")
        if not self.notion_api_key:
            missing.append("NOTION_API_KEY")
        if not self.notion_outings_database_id:
            missing.append("NOTION_OUTINGS_DATABASE_ID")
        return missing

    @property
    def notion_enabled(self) -> bool:
        return bool(self.notion_api_key and self.notion_outings_database_id)


def load_config() -> Config:
    return Config()


def configure_logging(level: str = "INFO") -> None:
    """Route library logging through rich, once per process."""
    root = logging.getLogger()
    if any(isinstance(h, RichHandler) for h in root.handlers):
        root.setLevel(level.upper())
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
