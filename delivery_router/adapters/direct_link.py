"""Direct-link adapter: the universal, credential-free fallback."""

from __future__ import annotations

from ..domain.direct_link import build_direct_link
from ..domain.models import DeliveryConfig, DeliveryRequest, ProviderResult


class DirectLinkAdapter:
    """Never fails and never touches the network."""

    def send(
        self,
        config: DeliveryConfig,
        recipient: str,
        request: DeliveryRequest,
        *,
        timeout: float = 0.0,
    ) -> ProviderResult:
        _ = (config, timeout)
        return ProviderResult(link=build_direct_link(recipient, request.body))
