"""Credential cache — vendor and LLM keys with a time-boxed lazy refresh.

Credentials are re-read from the environment at most once per TTL window, so a
rotated key is picked up without a restart. One process-wide cache backs the
HTTP handlers; tests build their own with a fake loader and clock.
"""

import os
import time
from typing import Callable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from config.settings import GONG_API_BASE_URL, SECRETS_TTL_SECONDS


class MissingCredentialsError(RuntimeError):
    """Raised when the vendor access key, secret key or base URL is not configured."""


class Credentials(BaseModel):
    """Vendor keys and base URL plus the optional OpenAI key."""

    model_config = ConfigDict(frozen=True)

    access_key: str
    secret_key: str
    base_url: str
    openai_key: Optional[str] = None


def load_env_credentials() -> Credentials:
    """Read credentials from the environment; the OpenAI key is optional."""
    access_key = os.getenv("GONG_ACCESS_KEY", "")
    secret_key = os.getenv("GONG_SECRET_KEY", "")
    base_url = os.getenv("GONG_API_BASE_URL", GONG_API_BASE_URL)

    missing = [
        name for name, value in (
            ("GONG_ACCESS_KEY", access_key),
            ("GONG_SECRET_KEY", secret_key),
            ("GONG_API_BASE_URL", base_url),
        ) if not value
    ]
    if missing:
        raise MissingCredentialsError(f"Missing vendor credentials: {', '.join(missing)}")

    openai_key = os.getenv("OPENAI_API_KEY") or None
    if openai_key is None:
        logger.warning("OPENAI_API_KEY not set — AI analysis features will be limited")

    return Credentials(
        access_key=access_key,
        secret_key=secret_key,
        base_url=base_url,
        openai_key=openai_key,
    )


class SecretCache:
    """Caches the result of ``loader`` for ``ttl_seconds``."""

    def __init__(
        self,
        loader: Callable[[], Credentials] = load_env_credentials,
        ttl_seconds: float = SECRETS_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.loader = loader
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._value: Optional[Credentials] = None
        self._loaded_at = 0.0

    def get(self) -> Credentials:
        now = self.clock()
        if self._value is not None and now - self._loaded_at < self.ttl_seconds:
            return self._value

        self._value = self.loader()
        self._loaded_at = now
        logger.info("Credentials refreshed")
        return self._value

    def invalidate(self) -> None:
        """Drop the cached value so the next ``get`` reloads."""
        self._value = None
        self._loaded_at = 0.0


_cache = SecretCache()


def get_credentials() -> Credentials:
    """Process-wide cached credentials."""
    return _cache.get()
