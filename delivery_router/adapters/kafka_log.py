"""Kafka-backed delivery log store.

Mental model refresher:
- This module is transport glue to Kafka itself.
- Each delivery log record is published as one JSON message, keyed by
  tenant, to an append-only topic. Consumers downstream own persistence.
- A publish failure raises; `DeliveryLogger` decides it is non-fatal.
"""

from __future__ import annotations

import json
import os
from typing import Any, Mapping

from ..settings import _required_env

DEFAULT_TOPIC = "messaging.delivery_log"


class KafkaDeliveryLogStore:
    def __init__(
        self,
        producer: Any,
        *,
        topic: str = DEFAULT_TOPIC,
        send_timeout_seconds: float = 10.0,
    ) -> None:
        self.producer = producer
        self.topic = topic
        self.send_timeout_seconds = send_timeout_seconds

    def append(self, tenant_id: str, record: Mapping[str, Any]) -> None:
        value = _to_json_compatible({"tenantId": tenant_id, **dict(record)})
        future = self.producer.send(self.topic, key=tenant_id, value=value)
        future.get(timeout=self.send_timeout_seconds)

    def close(self) -> None:
        try:
            self.producer.flush(timeout=self.send_timeout_seconds)
        finally:
            self.producer.close()


def kafka_log_store_from_env() -> KafkaDeliveryLogStore:
    """Build a store from `KAFKA_*` / `DELIVERY_LOG_KAFKA_TOPIC` variables."""
    KafkaProducer = _import_kafka_producer()
    producer = KafkaProducer(
        bootstrap_servers=_bootstrap_servers_from_env(),
        key_serializer=_serialize_key,
        value_serializer=_serialize_json_object,
        acks=os.getenv("KAFKA_PRODUCER_ACKS", "all"),
    )
    return KafkaDeliveryLogStore(
        producer,
        topic=os.getenv("DELIVERY_LOG_KAFKA_TOPIC", DEFAULT_TOPIC),
        send_timeout_seconds=float(os.getenv("KAFKA_SEND_TIMEOUT_SECONDS", "10")),
    )


def _import_kafka_producer() -> Any:
    try:
        from kafka import KafkaProducer
    except Exception as exc:
        raise RuntimeError(
            "Kafka support requires `kafka-python`. Install with: pip install kafka-python"
        ) from exc
    return KafkaProducer


def _bootstrap_servers_from_env() -> list[str]:
    raw = _required_env("KAFKA_BOOTSTRAP_SERVERS")
    servers = [item.strip() for item in raw.split(",") if item.strip()]
    if not servers:
        raise RuntimeError("KAFKA_BOOTSTRAP_SERVERS must include at least one host:port")
    return servers


def _serialize_key(key: str | None) -> bytes | None:
    return key.encode("utf-8") if key is not None else None


def _serialize_json_object(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _to_json_compatible(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _to_json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_json_compatible(item) for item in value]
    return repr(value)
