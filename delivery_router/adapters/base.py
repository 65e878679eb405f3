"""Backend adapter protocol.

Every backend exposes the same call:

    send(config, recipient, request, *, timeout) -> ProviderResult

`recipient` is already canonical (`+91XXXXXXXXXX`). Adapters raise a
`ProviderError` subclass on failure and never build fallback artifacts
themselves; the router owns that decision.
"""

from __future__ import annotations

from typing import Protocol

from ..domain.models import DeliveryConfig, DeliveryRequest, ProviderResult


class BackendAdapter(Protocol):
    def send(
        self,
        config: DeliveryConfig,
        recipient: str,
        request: DeliveryRequest,
        *,
        timeout: float,
    ) -> ProviderResult:
        ...
