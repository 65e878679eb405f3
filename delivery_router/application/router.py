"""Provider router with the failure/fallback controller.

Mental model refresher:
- Application layer: coordinates normalizer, config resolver, adapter
  registry and delivery logger for one send.
- Flow:
    normalize -> resolve config -> adapter (with retry on transient
    errors) -> on error: classify + direct-link fallback -> log
- Invariant: `send` always returns exactly one `DeliveryResult`. Nothing
  raised by a store or an adapter crosses this boundary.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping

from ..adapters.config_store import ResolutionStatus, TenantConfigStore, resolve_config
from ..adapters.log_stores import DeliveryLogStore
from ..adapters.payload import build_delivery_request
from ..adapters.registry import AdapterRegistry, default_registry
from ..domain.direct_link import build_direct_link
from ..domain.errors import (
    ConfigurationMissing,
    ConfigurationUnavailable,
    InvalidRecipient,
    ProviderGenericFailure,
    classify_error,
    is_transient,
)
from ..domain.models import (
    METHOD_DIRECT,
    METHOD_DIRECT_FALLBACK,
    DeliveryConfig,
    DeliveryRequest,
    DeliveryResult,
    Provider,
    ProviderResult,
)
from ..domain.phone import normalize_recipient
from ..settings import RetryPolicy, RouterSettings
from .delivery_log import Clock, DeliveryLogger, utc_now

logger = logging.getLogger(__name__)

SINGLE_ATTEMPT = RetryPolicy(max_attempts=1)


class DeliveryRouter:
    def __init__(
        self,
        config_store: TenantConfigStore,
        *,
        registry: AdapterRegistry | None = None,
        log_store: DeliveryLogStore | None = None,
        settings: RouterSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Clock = utc_now,
    ) -> None:
        self.config_store = config_store
        self.settings = settings or RouterSettings()
        self.registry = registry or default_registry(self.settings)
        self.delivery_logger = DeliveryLogger(log_store, clock=clock)
        self.sleep = sleep

    def send_message(
        self,
        tenant_id: str,
        to: str,
        message: str,
        options: Mapping[str, Any] | None = None,
    ) -> DeliveryResult:
        """Convenience entrypoint taking the caller-style options dictionary."""
        return self.send(tenant_id, build_delivery_request(to, message, options))

    def send(
        self,
        tenant_id: str,
        request: DeliveryRequest,
        *,
        retry: RetryPolicy = SINGLE_ATTEMPT,
    ) -> DeliveryResult:
        result = self._route(tenant_id, request, retry)
        if request.log_message:
            self.delivery_logger.log(
                tenant_id,
                result.recipient or request.recipient,
                request.body,
                result,
                request,
            )
        return result

    def _route(
        self, tenant_id: str, request: DeliveryRequest, retry: RetryPolicy
    ) -> DeliveryResult:
        try:
            recipient = self._normalize(request.recipient)
            config = self._load_config(tenant_id)
        except InvalidRecipient as exc:
            logger.info("Rejected recipient tenant=%s: %s", tenant_id, exc)
            return _direct_result(None, request, link_target=request.recipient, error=exc)
        except ConfigurationMissing:
            return _direct_result(recipient, request)
        except ConfigurationUnavailable as exc:
            return _fallback_result(recipient, request, exc, attempts=0)

        adapter = self.registry.get(config.provider)
        if adapter is None:
            exc = ProviderGenericFailure(
                f"No adapter registered for provider {config.provider.value!r}",
                provider=config.provider.value,
            )
            return _fallback_result(recipient, request, exc, attempts=0)

        attempt = 0
        while True:
            attempt += 1
            try:
                provider_result = adapter.send(
                    config,
                    recipient,
                    request,
                    timeout=self.settings.http_timeout_seconds,
                )
                break
            except Exception as exc:
                if attempt < retry.max_attempts and is_transient(exc):
                    delay = retry.backoff_for(attempt)
                    logger.info(
                        "Retry %d/%d tenant=%s provider=%s in %.2fs: %s",
                        attempt,
                        retry.max_attempts - 1,
                        tenant_id,
                        config.provider.value,
                        delay,
                        exc,
                    )
                    self.sleep(delay)
                    continue
                logger.warning(
                    "Send failed tenant=%s provider=%s attempts=%d: %s",
                    tenant_id,
                    config.provider.value,
                    attempt,
                    exc,
                )
                return _fallback_result(recipient, request, exc, attempts=attempt)

        return _provider_result(config, recipient, request, provider_result, attempts=attempt)

    def _normalize(self, raw: str) -> str:
        recipient = normalize_recipient(raw)
        if recipient is None:
            raise InvalidRecipient(raw)
        return recipient

    def _load_config(self, tenant_id: str) -> DeliveryConfig:
        resolution = resolve_config(self.config_store, tenant_id)
        if resolution.status is ResolutionStatus.TRANSIENT_READ_ERROR:
            raise ConfigurationUnavailable(
                f"Tenant configuration unavailable: {resolution.error}"
            )
        config = resolution.config
        if config is None or not config.enabled:
            raise ConfigurationMissing(f"Delivery not configured for tenant {tenant_id}")
        return config


def _direct_result(
    recipient: str | None,
    request: DeliveryRequest,
    *,
    link_target: str | None = None,
    error: Exception | None = None,
) -> DeliveryResult:
    """Soft success: a link exists, nothing has been sent."""
    error_code, message = classify_error(error) if error is not None else (None, None)
    return DeliveryResult(
        success=True,
        method=METHOD_DIRECT,
        artifact_produced=True,
        confirmed_sent=False,
        recipient=recipient,
        error_code=error_code,
        error=message,
        fallback_link=build_direct_link(recipient or link_target, request.body),
    )


def _fallback_result(
    recipient: str,
    request: DeliveryRequest,
    exc: Exception,
    *,
    attempts: int,
) -> DeliveryResult:
    error_code, message = classify_error(exc)
    return DeliveryResult(
        success=False,
        method=METHOD_DIRECT_FALLBACK,
        artifact_produced=True,
        confirmed_sent=False,
        recipient=recipient,
        error_code=error_code,
        error=message,
        fallback_link=build_direct_link(recipient, request.body),
        attempts=attempts,
    )


def _provider_result(
    config: DeliveryConfig,
    recipient: str,
    request: DeliveryRequest,
    provider_result: ProviderResult,
    *,
    attempts: int,
) -> DeliveryResult:
    if config.provider is Provider.DIRECT:
        return DeliveryResult(
            success=True,
            method=METHOD_DIRECT,
            artifact_produced=True,
            confirmed_sent=False,
            recipient=recipient,
            fallback_link=provider_result.link or build_direct_link(recipient, request.body),
            attempts=attempts,
        )
    return DeliveryResult(
        success=True,
        method=config.provider.value,
        artifact_produced=True,
        confirmed_sent=True,
        recipient=recipient,
        provider_message_id=provider_result.message_id,
        can_track_status=provider_result.can_track_status,
        attempts=attempts,
    )
