"""Environment-variable configuration for the delivery router.

Every value has a default suitable for local development, so
`RouterSettings.from_env()` works on an empty environment. Variables that are
only needed by one adapter (gateway URL, Kafka servers) are read by that
adapter's `*_from_env` factory instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 8.0

    def backoff_for(self, attempt: int) -> float:
        """Delay before retrying after failed attempt number `attempt` (1-based)."""
        delay = self.backoff_base_seconds * (2 ** (attempt - 1))
        return min(delay, self.backoff_max_seconds)


@dataclass(frozen=True)
class RouterSettings:
    meta_graph_base_url: str = "https://graph.facebook.com"
    meta_graph_api_version: str = "v18.0"
    sms_bridge_base_url: str = "https://api.twilio.com"
    sms_bridge_default_from: str = "whatsapp:+14155238886"
    http_timeout_seconds: float = 10.0
    broadcast_max_workers: int = 4
    broadcast_retry: RetryPolicy = RetryPolicy(max_attempts=3)

    @classmethod
    def from_env(cls) -> "RouterSettings":
        max_workers = _env_int("BROADCAST_MAX_WORKERS", 4)
        if max_workers <= 0:
            raise RuntimeError("BROADCAST_MAX_WORKERS must be > 0")
        max_attempts = _env_int("BROADCAST_MAX_ATTEMPTS", 3)
        if max_attempts <= 0:
            raise RuntimeError("BROADCAST_MAX_ATTEMPTS must be > 0")

        return cls(
            meta_graph_base_url=os.getenv(
                "META_GRAPH_API_BASE_URL", "https://graph.facebook.com"
            ).rstrip("/"),
            meta_graph_api_version=os.getenv("META_GRAPH_API_VERSION", "v18.0"),
            sms_bridge_base_url=os.getenv(
                "SMS_BRIDGE_API_BASE_URL", "https://api.twilio.com"
            ).rstrip("/"),
            sms_bridge_default_from=os.getenv(
                "SMS_BRIDGE_DEFAULT_FROM", "whatsapp:+14155238886"
            ),
            http_timeout_seconds=_env_float("DELIVERY_HTTP_TIMEOUT_SECONDS", 10.0),
            broadcast_max_workers=max_workers,
            broadcast_retry=RetryPolicy(
                max_attempts=max_attempts,
                backoff_base_seconds=_env_float("BROADCAST_BACKOFF_BASE_SECONDS", 0.5),
                backoff_max_seconds=_env_float("BROADCAST_BACKOFF_MAX_SECONDS", 8.0),
            ),
        )


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value.strip()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid number for {name}: {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer for {name}: {raw!r}") from exc
