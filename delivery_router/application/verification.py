"""Connectivity verification for a tenant's delivery settings.

State machine:

    UNCONFIGURED -> DIRECT_LINK_OK                        (direct provider)
    UNCONFIGURED -> PROVIDER_UNTESTED -> VERIFIED
                                      -> PERMISSION_DENIED
                                      -> RECIPIENT_NOT_ALLOWED
                                      -> GENERIC_FAILURE

API-backed providers are tested by sending a real message to the tenant's
own on-file number. Only a confirmed send persists `whatsappVerified=True`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..adapters.config_store import resolve_config
from ..domain.errors import ErrorCode
from ..domain.models import DeliveryRequest, Provider
from .router import SINGLE_ATTEMPT, DeliveryRouter

logger = logging.getLogger(__name__)

SELF_TEST_MESSAGE = (
    "✅ WhatsApp Business API connection verified successfully! "
    "This is a test message."
)


class VerificationState(str, Enum):
    UNCONFIGURED = "unconfigured"
    DIRECT_LINK_OK = "direct_link_ok"
    PROVIDER_UNTESTED = "provider_untested"
    VERIFIED = "verified"
    PERMISSION_DENIED = "permission_denied"
    RECIPIENT_NOT_ALLOWED = "recipient_not_allowed"
    GENERIC_FAILURE = "generic_failure"


@dataclass(frozen=True)
class VerificationOutcome:
    state: VerificationState
    method: str | None = None
    error: str | None = None
    error_code: ErrorCode | None = None
    credentials_valid: bool = False
    instructions: str | None = None

    @property
    def verified(self) -> bool:
        return self.state in (VerificationState.VERIFIED, VerificationState.DIRECT_LINK_OK)


def verify_connection(router: DeliveryRouter, tenant_id: str) -> VerificationOutcome:
    resolution = resolve_config(router.config_store, tenant_id)
    config = resolution.config
    if config is None:
        error = (
            f"Could not read delivery settings: {resolution.error}"
            if resolution.error
            else "WhatsApp not enabled. Please enable it first."
        )
        return VerificationOutcome(VerificationState.UNCONFIGURED, error=error)
    if not config.enabled:
        return VerificationOutcome(
            VerificationState.UNCONFIGURED,
            error="WhatsApp not enabled. Please enable it first.",
        )

    if config.provider is Provider.DIRECT:
        return VerificationOutcome(VerificationState.DIRECT_LINK_OK, method="direct")

    if not config.owner_phone:
        return VerificationOutcome(
            VerificationState.PROVIDER_UNTESTED,
            error="No phone number found in your profile. Please add a phone number first.",
        )

    result = router.send(
        tenant_id,
        DeliveryRequest(
            recipient=config.owner_phone,
            body=SELF_TEST_MESSAGE,
            message_type="verification",
            log_message=False,
        ),
        retry=SINGLE_ATTEMPT,
    )

    if result.confirmed_sent:
        _persist_verified(router, tenant_id)
        return VerificationOutcome(
            VerificationState.VERIFIED, method=result.method, credentials_valid=True
        )

    if result.error_code is ErrorCode.PERMISSION_DENIED:
        return VerificationOutcome(
            VerificationState.PERMISSION_DENIED,
            method=result.method,
            error=(
                "Application does not have permission. "
                "Request Production Access in Meta Business Suite."
            ),
            error_code=ErrorCode.PERMISSION_DENIED,
            credentials_valid=True,
            instructions=(
                "Go to Meta Business Suite → WhatsApp → API Setup → Request Production Access"
            ),
        )

    if result.error_code is ErrorCode.RECIPIENT_NOT_ALLOWED:
        return VerificationOutcome(
            VerificationState.RECIPIENT_NOT_ALLOWED,
            method=result.method,
            error=(
                "Recipient phone number not in allowed list. "
                "Add recipient numbers in Meta Business Suite."
            ),
            error_code=ErrorCode.RECIPIENT_NOT_ALLOWED,
            credentials_valid=True,
            instructions=(
                "Go to Meta Business Suite → WhatsApp → API Setup → Add recipient phone numbers"
            ),
        )

    return VerificationOutcome(
        VerificationState.GENERIC_FAILURE,
        method=result.method,
        error=result.error or "Verification failed",
        error_code=result.error_code,
    )


def _persist_verified(router: DeliveryRouter, tenant_id: str) -> None:
    try:
        router.config_store.update(
            tenant_id,
            {
                "whatsappVerified": True,
                "whatsappLastVerifiedAt": router.delivery_logger.clock(),
            },
        )
    except Exception as exc:
        logger.warning(
            "Could not update verification status (non-critical) tenant=%s: %s",
            tenant_id,
            exc,
        )
