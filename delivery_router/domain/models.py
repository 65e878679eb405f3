"""Data model shared by the domain, adapter and application layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import ErrorCode


class Provider(str, Enum):
    """Messaging backends. Values are the strings stored on tenant records."""

    META = "meta"
    META_TECH_PROVIDER = "meta_tech_provider"
    TWILIO = "twilio"
    DIRECT = "direct"

    @classmethod
    def parse(cls, value: Any) -> "Provider":
        """Map a stored provider string to a member, defaulting to DIRECT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DIRECT


METHOD_DIRECT = "direct"
METHOD_DIRECT_FALLBACK = "direct_fallback"


@dataclass(frozen=True)
class DeliveryConfig:
    enabled: bool = False
    provider: Provider = Provider.DIRECT
    phone_number_id: str = ""
    business_account_id: str = ""
    access_token: str = ""
    api_key: str = ""
    api_secret: str = ""
    bridge_account_sid: str = ""
    bridge_auth_token: str = ""
    bridge_from: str = ""
    verified: bool = False
    last_verified_at: datetime | None = None
    owner_phone: str | None = None
    created_via: str | None = None
    webhook_configured: bool = False


@dataclass(frozen=True)
class RichMedia:
    image_url: str | None = None
    document_url: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class Template:
    name: str
    language: str = "en"
    components: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class DeliveryRequest:
    recipient: str
    body: str
    rich_media: RichMedia = field(default_factory=RichMedia)
    template: Template | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    order_id: str | None = None
    message_type: str = "general"
    log_message: bool = True


@dataclass(frozen=True)
class ProviderResult:
    """What an adapter returns when the backend accepted the message."""

    message_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    can_track_status: bool = False
    link: str | None = None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send.

    `success` keeps the historical meaning "the caller has something
    deliverable": a direct link counts. `artifact_produced` and
    `confirmed_sent` split that into "a link or provider message exists" and
    "a backend accepted the message". Delivery-rate reporting should read
    `confirmed_sent`.
    """

    success: bool
    method: str
    artifact_produced: bool
    confirmed_sent: bool
    recipient: str | None = None
    provider_message_id: str | None = None
    error_code: ErrorCode | None = None
    error: str | None = None
    fallback_link: str | None = None
    can_track_status: bool = False
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "method": self.method,
            "artifactProduced": self.artifact_produced,
            "confirmedSent": self.confirmed_sent,
            "to": self.recipient,
            "messageId": self.provider_message_id,
            "errorCode": self.error_code.value if self.error_code else None,
            "error": self.error,
            "link": self.fallback_link,
            "canTrackStatus": self.can_track_status,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class DeliveryLogEntry:
    to: str
    message: str
    status: str
    method: str
    created_at: datetime
    message_id: str | None = None
    order_id: str | None = None
    message_type: str = "general"
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        """Serialize with the wire keys of the delivery log schema."""
        return {
            "to": self.to,
            "message": self.message,
            "status": self.status,
            "method": self.method,
            "messageId": self.message_id,
            "orderId": self.order_id,
            "messageType": self.message_type,
            "metadata": self.metadata,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class BroadcastOutcome:
    results: list[DeliveryResult]
    total: int
    successful: int
    confirmed: int

    @classmethod
    def from_results(cls, results: list[DeliveryResult]) -> "BroadcastOutcome":
        return cls(
            results=results,
            total=len(results),
            successful=sum(1 for item in results if item.success),
            confirmed=sum(1 for item in results if item.confirmed_sent),
        )
