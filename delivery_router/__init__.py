"""Outbound WhatsApp delivery router with direct-link fallback.

Module layout by abstraction layer:
- domain: recipient normalization, direct links, error taxonomy, data model
- adapters: backend adapters, tenant config and delivery log stores
- application: router/fallback controller, broadcast, verification,
  status lookup
"""

from .adapters import (
    AdapterRegistry,
    ConsoleDeliveryLogStore,
    InMemoryDeliveryLogStore,
    InMemoryTenantConfigStore,
    KafkaDeliveryLogStore,
    default_registry,
    http_gateway_from_env,
    kafka_log_store_from_env,
)
from .application import (
    DeliveryRouter,
    MessageStatus,
    VerificationState,
    broadcast,
    get_message_status,
    send_order_status_update,
    send_promotional_offer,
    send_stock_refill_reminder,
    verify_connection,
)
from .domain import (
    UNSET,
    BroadcastOutcome,
    DeliveryRequest,
    DeliveryResult,
    ErrorCode,
    Provider,
    RichMedia,
    Template,
    build_direct_link,
    normalize_recipient,
)
from .settings import RetryPolicy, RouterSettings

__all__ = [
    "UNSET",
    "AdapterRegistry",
    "BroadcastOutcome",
    "ConsoleDeliveryLogStore",
    "DeliveryRequest",
    "DeliveryResult",
    "DeliveryRouter",
    "ErrorCode",
    "InMemoryDeliveryLogStore",
    "InMemoryTenantConfigStore",
    "KafkaDeliveryLogStore",
    "MessageStatus",
    "Provider",
    "RetryPolicy",
    "RichMedia",
    "RouterSettings",
    "Template",
    "VerificationState",
    "broadcast",
    "build_direct_link",
    "default_registry",
    "get_message_status",
    "http_gateway_from_env",
    "kafka_log_store_from_env",
    "normalize_recipient",
    "send_order_status_update",
    "send_promotional_offer",
    "send_stock_refill_reminder",
    "verify_connection",
]
