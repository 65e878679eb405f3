"""Tenant configuration stores and the configuration resolver.

Mental model refresher:
- The tenant record is owned by the tenant's settings UI; this package only
  reads it (and writes the verification flags).
- Resolution is uncached: every send reads a fresh snapshot.
- "No record" and "store is down" are different outcomes and are reported
  as such.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Protocol

from ..domain.models import DeliveryConfig, Provider

logger = logging.getLogger(__name__)

# Stored field name -> DeliveryConfig attribute.
_STRING_FIELDS = {
    "whatsappPhoneNumberId": "phone_number_id",
    "whatsappBusinessAccountId": "business_account_id",
    "whatsappAccessToken": "access_token",
    "whatsappApiKey": "api_key",
    "whatsappApiSecret": "api_secret",
    "twilioAccountSid": "bridge_account_sid",
    "twilioAuthToken": "bridge_auth_token",
    "twilioWhatsAppFrom": "bridge_from",
}


class TenantConfigStore(Protocol):
    def get(self, tenant_id: str) -> Mapping[str, Any] | None:
        ...

    def update(self, tenant_id: str, partial: Mapping[str, Any]) -> None:
        ...


class InMemoryTenantConfigStore:
    """Dict-backed store for tests and local demos."""

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._records: dict[str, dict[str, Any]] = {
            tenant_id: dict(record) for tenant_id, record in (records or {}).items()
        }
        self._lock = threading.Lock()

    def get(self, tenant_id: str) -> Mapping[str, Any] | None:
        with self._lock:
            record = self._records.get(tenant_id)
            return dict(record) if record is not None else None

    def update(self, tenant_id: str, partial: Mapping[str, Any]) -> None:
        with self._lock:
            self._records.setdefault(tenant_id, {}).update(partial)


class ResolutionStatus(str, Enum):
    FOUND = "found"
    NOT_CONFIGURED = "not_configured"
    TRANSIENT_READ_ERROR = "transient_read_error"


@dataclass(frozen=True)
class ConfigResolution:
    status: ResolutionStatus
    config: DeliveryConfig | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND


def resolve_config(store: TenantConfigStore, tenant_id: str) -> ConfigResolution:
    try:
        record = store.get(tenant_id)
    except Exception as exc:
        logger.warning("Tenant config read failed tenant=%s error=%s", tenant_id, exc)
        return ConfigResolution(ResolutionStatus.TRANSIENT_READ_ERROR, error=str(exc))

    if record is None:
        return ConfigResolution(ResolutionStatus.NOT_CONFIGURED)
    return ConfigResolution(ResolutionStatus.FOUND, config=config_from_record(record))


def config_from_record(record: Mapping[str, Any]) -> DeliveryConfig:
    """Map a stored tenant record onto `DeliveryConfig`, defaulting gaps."""
    strings = {
        attribute: str(record.get(field_name) or "")
        for field_name, attribute in _STRING_FIELDS.items()
    }
    owner_phone = record.get("phone")
    created_via = record.get("whatsappCreatedVia")
    return DeliveryConfig(
        enabled=bool(record.get("whatsappEnabled", False)),
        provider=Provider.parse(record.get("whatsappProvider") or Provider.DIRECT),
        verified=bool(record.get("whatsappVerified", False)),
        last_verified_at=_as_datetime(record.get("whatsappLastVerifiedAt")),
        owner_phone=str(owner_phone) if owner_phone else None,
        created_via=str(created_via) if created_via else None,
        webhook_configured=bool(record.get("whatsappWebhookConfigured", False)),
        **strings,
    )


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None
