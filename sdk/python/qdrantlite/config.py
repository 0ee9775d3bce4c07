"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ADDRESS = "127.0.0.1:6334"
DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_MESSAGE_SIZE = 64 * 1024 * 1024


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for :class:`qdrantlite.QdrantLiteClient`."""

    address: str = DEFAULT_ADDRESS
    timeout: float | None = DEFAULT_TIMEOUT
    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Reads QDRANTLITE_ADDRESS, QDRANTLITE_TIMEOUT and
        QDRANTLITE_MAX_MESSAGE_SIZE, falling back to the defaults.

        An empty or "none" QDRANTLITE_TIMEOUT disables the default deadline.
        """
        address = os.environ.get("QDRANTLITE_ADDRESS", DEFAULT_ADDRESS).strip()
        raw_timeout = os.environ.get("QDRANTLITE_TIMEOUT", str(DEFAULT_TIMEOUT))
        raw_size = os.environ.get(
            "QDRANTLITE_MAX_MESSAGE_SIZE", str(DEFAULT_MAX_MESSAGE_SIZE)
        )
        try:
            timeout = (
                None
                if raw_timeout.strip().lower() in ("", "none")
                else float(raw_timeout)
            )
            max_message_size = int(raw_size)
        except ValueError as exc:
            raise ValueError(f"invalid client configuration in environment: {exc}") from exc
        if timeout is not None and timeout <= 0:
            raise ValueError("QDRANTLITE_TIMEOUT must be > 0")
        if max_message_size <= 0:
            raise ValueError("QDRANTLITE_MAX_MESSAGE_SIZE must be > 0")
        return cls(
            address=address or DEFAULT_ADDRESS,
            timeout=timeout,
            max_message_size=max_message_size,
        )
