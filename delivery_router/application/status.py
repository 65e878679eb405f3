"""Delivery status lookup for messages sent through the Meta backend.

Only results with `can_track_status=True` carry an id this module can look
up. Lookups never raise: every failure comes back as an unsuccessful
`MessageStatus` with the error text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..adapters.config_store import resolve_config
from ..adapters.meta_graph import MetaGraphAdapter
from ..domain.models import Provider
from .router import DeliveryRouter

logger = logging.getLogger(__name__)

META_NOT_CONFIGURED = "Meta API not configured"


@dataclass(frozen=True)
class MessageStatus:
    success: bool
    status: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {"success": True, "status": self.status, "data": self.data}


def get_message_status(router: DeliveryRouter, tenant_id: str, message_id: str) -> MessageStatus:
    if not message_id:
        return MessageStatus(success=False, error="Message id required")

    resolution = resolve_config(router.config_store, tenant_id)
    config = resolution.config
    if config is None:
        return MessageStatus(success=False, error=resolution.error or META_NOT_CONFIGURED)
    if config.provider is not Provider.META:
        return MessageStatus(success=False, error=META_NOT_CONFIGURED)

    adapter = router.registry.get(Provider.META)
    if not isinstance(adapter, MetaGraphAdapter):
        return MessageStatus(success=False, error=META_NOT_CONFIGURED)

    try:
        body = adapter.fetch_status(
            config, message_id, timeout=router.settings.http_timeout_seconds
        )
    except Exception as exc:
        logger.warning(
            "Status lookup failed tenant=%s message_id=%s: %s", tenant_id, message_id, exc
        )
        return MessageStatus(success=False, error=str(exc) or exc.__class__.__name__)

    status = body.get("status")
    return MessageStatus(
        success=True,
        status=str(status) if status is not None else None,
        data=dict(body),
    )
