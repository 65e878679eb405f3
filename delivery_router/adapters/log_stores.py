"""Append-only delivery log stores.

A store only needs `append(tenant_id, record)`. Records arrive already
serialized with the delivery-log wire keys (`to`, `message`, `status`, ...).
Stores may raise; `DeliveryLogger` absorbs the failure.
"""

from __future__ import annotations

import threading
from typing import Any, Mapping, Protocol


class DeliveryLogStore(Protocol):
    def append(self, tenant_id: str, record: Mapping[str, Any]) -> None:
        ...


class InMemoryDeliveryLogStore:
    def __init__(self) -> None:
        self._records: dict[str, list[dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def append(self, tenant_id: str, record: Mapping[str, Any]) -> None:
        with self._lock:
            self._records.setdefault(tenant_id, []).append(dict(record))

    def records(self, tenant_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(item) for item in self._records.get(tenant_id, [])]


class ConsoleDeliveryLogStore:
    """Print log records; used by the local demo scripts."""

    def append(self, tenant_id: str, record: Mapping[str, Any]) -> None:
        print("[DELIVERY LOG]")
        print(f"tenant={tenant_id}")
        print(f"to={record.get('to')} status={record.get('status')} method={record.get('method')}")
        print(f"message_type={record.get('messageType')} message_id={record.get('messageId')}")
