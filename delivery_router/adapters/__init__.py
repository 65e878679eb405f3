"""Adapter layer: backend adapters, stores and payload mapping."""

from .config_store import (
    ConfigResolution,
    InMemoryTenantConfigStore,
    ResolutionStatus,
    TenantConfigStore,
    config_from_record,
    resolve_config,
)
from .direct_link import DirectLinkAdapter
from .kafka_log import KafkaDeliveryLogStore, kafka_log_store_from_env
from .log_stores import ConsoleDeliveryLogStore, DeliveryLogStore, InMemoryDeliveryLogStore
from .meta_graph import MetaGraphAdapter, build_meta_payload
from .payload import build_delivery_request
from .registry import AdapterRegistry, default_registry
from .sms_bridge import SmsBridgeAdapter
from .tech_provider import TechProviderGatewayAdapter, http_gateway_from_env

__all__ = [
    "AdapterRegistry",
    "ConfigResolution",
    "ConsoleDeliveryLogStore",
    "DeliveryLogStore",
    "DirectLinkAdapter",
    "InMemoryDeliveryLogStore",
    "InMemoryTenantConfigStore",
    "KafkaDeliveryLogStore",
    "MetaGraphAdapter",
    "ResolutionStatus",
    "SmsBridgeAdapter",
    "TechProviderGatewayAdapter",
    "TenantConfigStore",
    "build_delivery_request",
    "build_meta_payload",
    "config_from_record",
    "default_registry",
    "http_gateway_from_env",
    "kafka_log_store_from_env",
    "resolve_config",
]
