"""Provider -> adapter lookup used by the router."""

from __future__ import annotations

from typing import Iterator

from ..domain.models import Provider
from ..settings import RouterSettings
from .base import BackendAdapter
from .direct_link import DirectLinkAdapter
from .meta_graph import MetaGraphAdapter
from .sms_bridge import SmsBridgeAdapter
from .tech_provider import GatewayFn, TechProviderGatewayAdapter


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: dict[Provider, BackendAdapter] = {}

    def register(self, provider: Provider, adapter: BackendAdapter) -> None:
        self._adapters[Provider.parse(provider)] = adapter

    def get(self, provider: Provider) -> BackendAdapter | None:
        return self._adapters.get(Provider.parse(provider))

    def __contains__(self, provider: object) -> bool:
        return Provider.parse(provider) in self._adapters

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._adapters)


def default_registry(
    settings: RouterSettings | None = None,
    *,
    tech_provider_gateway: GatewayFn | None = None,
) -> AdapterRegistry:
    """Registry with every built-in backend.

    The Tech-Provider adapter is only registered when a gateway callable is
    supplied; sends for tenants configured with it degrade to a
    `direct_fallback` result.
    """
    settings = settings or RouterSettings()
    registry = AdapterRegistry()
    registry.register(
        Provider.META,
        MetaGraphAdapter(
            base_url=settings.meta_graph_base_url,
            api_version=settings.meta_graph_api_version,
        ),
    )
    registry.register(
        Provider.TWILIO,
        SmsBridgeAdapter(
            base_url=settings.sms_bridge_base_url,
            default_from=settings.sms_bridge_default_from,
        ),
    )
    registry.register(Provider.DIRECT, DirectLinkAdapter())
    if tech_provider_gateway is not None:
        registry.register(
            Provider.META_TECH_PROVIDER, TechProviderGatewayAdapter(tech_provider_gateway)
        )
    return registry
