"""
Runtime configuration.

Read once at server start-up from the environment (and a local .env file).
The analysis core never reads the environment itself; values are passed in.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

VALID_TRANSPORTS = ("stdio", "sse", "http")


@dataclass(frozen=True)
class Settings:
    """Server settings."""

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_timeout_s: float = 30.0
    log_level: str = "INFO"
    log_format: str = "console"
    mcp_transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 8787

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> Settings:
        """Build settings from environment variables.

        Args:
            env_file: Optional .env path; values already set in the
                environment win

        Raises:
            ValueError: On an unknown MCP_TRANSPORT or a non-numeric PORT
        """
        load_dotenv(env_file)

        transport = os.getenv("MCP_TRANSPORT", "stdio").lower()
        if transport not in VALID_TRANSPORTS:
            raise ValueError(
                f"MCP_TRANSPORT must be one of {', '.join(VALID_TRANSPORTS)}: {transport}"
            )

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_VISION_MODEL", "gpt-4o"),
            openai_timeout_s=float(os.getenv("OPENAI_TIMEOUT_S", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
            mcp_transport=transport,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8787")),
        )
