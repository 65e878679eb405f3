"""Best-effort delivery logging.

Mental model refresher:
- One log entry per send attempt, append-only.
- Logging must never change what the caller gets back: any store failure is
  reported to operators through `logging` and then dropped.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable

from ..adapters.log_stores import DeliveryLogStore
from ..domain.errors import LoggingFailure
from ..domain.metadata import prune_unset
from ..domain.models import DeliveryLogEntry, DeliveryRequest, DeliveryResult

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def build_log_entry(
    recipient: str,
    body: str,
    result: DeliveryResult,
    request: DeliveryRequest,
    *,
    created_at: datetime,
) -> DeliveryLogEntry:
    return DeliveryLogEntry(
        to=recipient,
        message=body,
        status="sent" if result.success else "failed",
        method=result.method or "unknown",
        message_id=result.provider_message_id,
        order_id=request.order_id,
        message_type=request.message_type or "general",
        metadata=prune_unset(request.metadata),
        created_at=created_at,
    )


class DeliveryLogger:
    def __init__(self, store: DeliveryLogStore | None, *, clock: Clock = utc_now) -> None:
        self.store = store
        self.clock = clock

    def log(
        self,
        tenant_id: str,
        recipient: str,
        body: str,
        result: DeliveryResult,
        request: DeliveryRequest,
    ) -> None:
        """Persist one entry. Never raises."""
        if self.store is None:
            return
        try:
            entry = build_log_entry(recipient, body, result, request, created_at=self.clock())
            self.store.append(tenant_id, entry.to_record())
        except Exception as exc:
            failure = LoggingFailure(f"Delivery log write failed: {exc}")
            logger.warning(
                "Could not log delivery (non-critical) tenant=%s to=%s method=%s: %s",
                tenant_id,
                recipient,
                result.method,
                failure,
            )
