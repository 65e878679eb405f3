"""Broadcast aggregator: one message fanned out to many recipients.

Mental model refresher:
- Each recipient is an independent send through `DeliveryRouter.send`.
- Sends run on a bounded thread pool; transient provider errors are retried
  with exponential backoff inside each send.
- Results are stored by input index, so `results[i]` always belongs to
  `recipients[i]` regardless of completion order, and one recipient's
  failure never drops another's result.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Mapping, Sequence

from ..domain.direct_link import build_direct_link
from ..domain.errors import classify_error
from ..domain.models import (
    METHOD_DIRECT_FALLBACK,
    BroadcastOutcome,
    DeliveryRequest,
    DeliveryResult,
)
from ..domain.phone import normalize_recipient
from ..settings import RetryPolicy
from .router import DeliveryRouter

logger = logging.getLogger(__name__)


def broadcast(
    router: DeliveryRouter,
    tenant_id: str,
    recipients: Sequence[str],
    body: str,
    *,
    request_template: DeliveryRequest | None = None,
    max_workers: int | None = None,
    retry: RetryPolicy | None = None,
) -> BroadcastOutcome:
    """Send `body` to every recipient and tally the outcomes.

    `request_template` carries the shared rich media, template, metadata and
    correlation tags; its `recipient` and `body` are replaced per send.
    """
    recipients = list(recipients)
    if not recipients:
        return BroadcastOutcome.from_results([])

    template = request_template or DeliveryRequest(recipient="", body=body)
    workers = max(1, min(max_workers or router.settings.broadcast_max_workers, len(recipients)))
    policy = retry or router.settings.broadcast_retry

    results: list[DeliveryResult | None] = [None] * len(recipients)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="broadcast") as executor:
        futures = {
            executor.submit(
                router.send,
                tenant_id,
                replace(template, recipient=recipient, body=body),
                retry=policy,
            ): index
            for index, recipient in enumerate(recipients)
        }
        for future, index in futures.items():
            try:
                results[index] = future.result()
            except Exception as exc:
                logger.error(
                    "Broadcast send crashed tenant=%s index=%d: %s", tenant_id, index, exc
                )
                results[index] = _crashed_result(recipients[index], body, exc)

    outcome = BroadcastOutcome.from_results([item for item in results if item is not None])
    logger.info(
        "Broadcast finished tenant=%s total=%d successful=%d confirmed=%d",
        tenant_id,
        outcome.total,
        outcome.successful,
        outcome.confirmed,
    )
    return outcome


def send_promotional_offer(
    router: DeliveryRouter,
    tenant_id: str,
    phone_numbers: Sequence[str],
    offer: Mapping[str, Any],
) -> BroadcastOutcome:
    """Broadcast a promotional offer with the standard offer layout."""
    message = (
        f"🎉 *Special Offer!*\n\n{offer.get('title') or 'Exciting Offer'}\n\n"
        f"{offer.get('description') or ''}\n\n"
        f"💰 Discount: {offer.get('discount') or 'N/A'}\n"
        f"📅 Valid Until: {offer.get('validUntil') or 'N/A'}\n\n"
        f"{offer.get('terms') or ''}"
    )
    template = DeliveryRequest(
        recipient="",
        body=message,
        message_type="promotional",
        metadata={"offerId": offer.get("id"), "offerTitle": offer.get("title")},
    )
    return broadcast(router, tenant_id, phone_numbers, message, request_template=template)


def _crashed_result(raw: str, body: str, exc: Exception) -> DeliveryResult:
    error_code, message = classify_error(exc)
    recipient = normalize_recipient(raw)
    return DeliveryResult(
        success=False,
        method=METHOD_DIRECT_FALLBACK,
        artifact_produced=True,
        confirmed_sent=False,
        recipient=recipient,
        error_code=error_code,
        error=message,
        fallback_link=build_direct_link(recipient or raw, body),
    )
