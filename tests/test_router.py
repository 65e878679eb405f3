from __future__ import annotations

import io
import json
import unittest
import urllib.error
from datetime import UTC, datetime
from typing import Any, Mapping
from unittest import mock

from delivery_router.adapters.config_store import InMemoryTenantConfigStore
from delivery_router.adapters.log_stores import InMemoryDeliveryLogStore
from delivery_router.adapters.registry import AdapterRegistry
from delivery_router.application.router import DeliveryRouter
from delivery_router.domain.errors import ErrorCode, ProviderGenericFailure
from delivery_router.domain.models import (
    DeliveryConfig,
    DeliveryRequest,
    Provider,
    ProviderResult,
)
from delivery_router.settings import RetryPolicy

TENANT = "tenant-1"
FIXED_NOW = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)

META_RECORD = {
    "whatsappEnabled": True,
    "whatsappProvider": "meta",
    "whatsappPhoneNumberId": "PNID-1",
    "whatsappAccessToken": "token",
    "phone": "9876543210",
}


class ScriptedAdapter:
    """Adapter double that replays a list of outcomes (results or exceptions)."""

    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[DeliveryConfig, str, DeliveryRequest, float]] = []

    def send(
        self,
        config: DeliveryConfig,
        recipient: str,
        request: DeliveryRequest,
        *,
        timeout: float,
    ) -> ProviderResult:
        self.calls.append((config, recipient, request, timeout))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        assert isinstance(outcome, ProviderResult)
        return outcome


class FailingLogStore:
    def append(self, tenant_id: str, record: Mapping[str, Any]) -> None:
        raise RuntimeError("log database down")


class FailingConfigStore:
    def get(self, tenant_id: str) -> Mapping[str, Any] | None:
        raise ConnectionError("config store timeout")

    def update(self, tenant_id: str, partial: Mapping[str, Any]) -> None:
        raise ConnectionError("config store timeout")


def make_router(
    record: Mapping[str, Any] | None,
    *,
    adapter: ScriptedAdapter | None = None,
    provider: Provider = Provider.META,
    log_store: Any = None,
    sleep: Any = None,
) -> DeliveryRouter:
    records = {TENANT: record} if record is not None else {}
    registry = None
    if adapter is not None:
        registry = AdapterRegistry()
        registry.register(provider, adapter)
    return DeliveryRouter(
        InMemoryTenantConfigStore(records),
        registry=registry,
        log_store=log_store,
        sleep=sleep or (lambda seconds: None),
        clock=lambda: FIXED_NOW,
    )


def http_error(code: int, body: dict[str, object]) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        url="https://graph.facebook.com/v18.0/PNID-1/messages",
        code=code,
        msg="Error",
        hdrs=None,
        fp=io.BytesIO(json.dumps(body).encode("utf-8")),
    )


class DirectPathTests(unittest.TestCase):
    def test_disabled_tenant_gets_direct_link(self) -> None:
        router = make_router({"whatsappEnabled": False})

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertTrue(result.success)
        self.assertEqual(result.method, "direct")
        self.assertEqual(result.fallback_link, "https://wa.me/919876543210?text=Hi")
        self.assertTrue(result.artifact_produced)
        self.assertFalse(result.confirmed_sent)
        self.assertIsNone(result.error_code)

    def test_missing_record_gets_direct_link(self) -> None:
        router = make_router(None)

        result = router.send(TENANT, DeliveryRequest(recipient="09876543210", body="Hi"))

        self.assertEqual(result.method, "direct")
        self.assertEqual(result.recipient, "+919876543210")

    def test_direct_provider_never_confirms(self) -> None:
        router = make_router({"whatsappEnabled": True, "whatsappProvider": "direct"})

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hello there"))

        self.assertTrue(result.success)
        self.assertEqual(result.method, "direct")
        self.assertFalse(result.confirmed_sent)
        self.assertEqual(result.fallback_link, "https://wa.me/919876543210?text=Hello%20there")

    def test_invalid_recipient_skips_backend(self) -> None:
        adapter = ScriptedAdapter(ProviderResult(message_id="never"))
        router = make_router(META_RECORD, adapter=adapter)

        result = router.send(TENANT, DeliveryRequest(recipient="12345", body="Hi"))

        self.assertEqual(adapter.calls, [])
        self.assertEqual(result.method, "direct")
        self.assertEqual(result.error_code, ErrorCode.INVALID_RECIPIENT)
        self.assertIsNone(result.recipient)
        self.assertEqual(result.fallback_link, "https://wa.me/12345?text=Hi")


class ProviderPathTests(unittest.TestCase):
    def test_confirmed_provider_send(self) -> None:
        adapter = ScriptedAdapter(ProviderResult(message_id="wamid.1", can_track_status=True))
        router = make_router(META_RECORD, adapter=adapter)

        result = router.send(TENANT, DeliveryRequest(recipient="+91 98765-43210", body="Hi"))

        self.assertTrue(result.success)
        self.assertTrue(result.confirmed_sent)
        self.assertEqual(result.method, "meta")
        self.assertEqual(result.provider_message_id, "wamid.1")
        self.assertTrue(result.can_track_status)
        self.assertIsNone(result.fallback_link)
        config, recipient, _, timeout = adapter.calls[0]
        self.assertEqual(config.phone_number_id, "PNID-1")
        self.assertEqual(recipient, "+919876543210")
        self.assertEqual(timeout, router.settings.http_timeout_seconds)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_meta_permission_error_falls_back(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = http_error(
            403,
            {"error": {"message": "(#10) Application does not have permission", "code": 10}},
        )
        router = make_router(META_RECORD)

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertFalse(result.success)
        self.assertEqual(result.method, "direct_fallback")
        self.assertEqual(result.error_code, ErrorCode.PERMISSION_DENIED)
        self.assertTrue(result.fallback_link)
        self.assertTrue(result.artifact_produced)
        self.assertFalse(result.confirmed_sent)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_meta_recipient_error_falls_back(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = http_error(
            400,
            {
                "error": {
                    "message": "(#131030) Recipient phone number not in allowed list",
                    "code": 131030,
                }
            },
        )
        router = make_router(META_RECORD)

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertEqual(result.method, "direct_fallback")
        self.assertEqual(result.error_code, ErrorCode.RECIPIENT_NOT_ALLOWED)
        self.assertEqual(result.fallback_link, "https://wa.me/919876543210?text=Hi")

    def test_unexpected_adapter_exception_is_contained(self) -> None:
        adapter = ScriptedAdapter(KeyError("boom"))
        router = make_router(META_RECORD, adapter=adapter)

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertEqual(result.method, "direct_fallback")
        self.assertIsNone(result.error_code)
        self.assertEqual(result.attempts, 1)

    def test_unregistered_provider_falls_back(self) -> None:
        router = make_router(
            {"whatsappEnabled": True, "whatsappProvider": "meta_tech_provider"},
        )

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertFalse(result.success)
        self.assertEqual(result.method, "direct_fallback")
        self.assertEqual(result.attempts, 0)

    def test_config_read_error_reports_unavailable(self) -> None:
        router = DeliveryRouter(FailingConfigStore(), sleep=lambda seconds: None)

        result = router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertFalse(result.success)
        self.assertEqual(result.method, "direct_fallback")
        self.assertEqual(result.error_code, ErrorCode.CONFIG_UNAVAILABLE)
        self.assertEqual(result.fallback_link, "https://wa.me/919876543210?text=Hi")


class RetryTests(unittest.TestCase):
    def test_transient_errors_are_retried_with_backoff(self) -> None:
        delays: list[float] = []
        adapter = ScriptedAdapter(
            ProviderGenericFailure("HTTP 503", transient=True),
            ProviderGenericFailure("HTTP 429", transient=True),
            ProviderResult(message_id="wamid.3"),
        )
        router = make_router(META_RECORD, adapter=adapter, sleep=delays.append)

        result = router.send(
            TENANT,
            DeliveryRequest(recipient="9876543210", body="Hi"),
            retry=RetryPolicy(max_attempts=3, backoff_base_seconds=0.5, backoff_max_seconds=8),
        )

        self.assertTrue(result.confirmed_sent)
        self.assertEqual(result.attempts, 3)
        self.assertEqual(delays, [0.5, 1.0])

    def test_permanent_errors_are_not_retried(self) -> None:
        delays: list[float] = []
        adapter = ScriptedAdapter(ProviderGenericFailure("HTTP 400", transient=False))
        router = make_router(META_RECORD, adapter=adapter, sleep=delays.append)

        result = router.send(
            TENANT,
            DeliveryRequest(recipient="9876543210", body="Hi"),
            retry=RetryPolicy(max_attempts=3),
        )

        self.assertEqual(result.method, "direct_fallback")
        self.assertEqual(len(adapter.calls), 1)
        self.assertEqual(delays, [])

    def test_retries_stop_at_max_attempts(self) -> None:
        adapter = ScriptedAdapter(ProviderGenericFailure("HTTP 503", transient=True))
        router = make_router(META_RECORD, adapter=adapter)

        result = router.send(
            TENANT,
            DeliveryRequest(recipient="9876543210", body="Hi"),
            retry=RetryPolicy(max_attempts=2),
        )

        self.assertEqual(result.method, "direct_fallback")
        self.assertEqual(result.attempts, 2)
        self.assertEqual(len(adapter.calls), 2)

    def test_single_send_defaults_to_one_attempt(self) -> None:
        adapter = ScriptedAdapter(ProviderGenericFailure("HTTP 503", transient=True))
        router = make_router(META_RECORD, adapter=adapter)

        router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        self.assertEqual(len(adapter.calls), 1)


class LoggingTests(unittest.TestCase):
    def test_successful_send_is_logged(self) -> None:
        log_store = InMemoryDeliveryLogStore()
        adapter = ScriptedAdapter(ProviderResult(message_id="wamid.9"))
        router = make_router(META_RECORD, adapter=adapter, log_store=log_store)

        router.send(
            TENANT,
            DeliveryRequest(
                recipient="9876543210",
                body="Order packed",
                order_id="o-42",
                message_type="order_status_update",
                metadata={"status": "PACKED"},
            ),
        )

        self.assertEqual(
            log_store.records(TENANT),
            [
                {
                    "to": "+919876543210",
                    "message": "Order packed",
                    "status": "sent",
                    "method": "meta",
                    "messageId": "wamid.9",
                    "orderId": "o-42",
                    "messageType": "order_status_update",
                    "metadata": {"status": "PACKED"},
                    "createdAt": "2024-05-01T12:30:00+00:00",
                }
            ],
        )

    def test_fallback_is_logged_as_failed(self) -> None:
        log_store = InMemoryDeliveryLogStore()
        adapter = ScriptedAdapter(ProviderGenericFailure("HTTP 400"))
        router = make_router(META_RECORD, adapter=adapter, log_store=log_store)

        router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi"))

        [record] = log_store.records(TENANT)
        self.assertEqual(record["status"], "failed")
        self.assertEqual(record["method"], "direct_fallback")

    def test_log_message_false_skips_logging(self) -> None:
        log_store = InMemoryDeliveryLogStore()
        router = make_router({"whatsappEnabled": False}, log_store=log_store)

        router.send(TENANT, DeliveryRequest(recipient="9876543210", body="Hi", log_message=False))

        self.assertEqual(log_store.records(TENANT), [])

    def test_log_failure_does_not_change_result(self) -> None:
        adapter = ScriptedAdapter(ProviderResult(message_id="wamid.5"))
        quiet = make_router(META_RECORD, adapter=adapter)
        noisy = make_router(META_RECORD, adapter=adapter, log_store=FailingLogStore())
        request = DeliveryRequest(recipient="9876543210", body="Hi")

        with self.assertLogs("delivery_router.application.delivery_log", level="WARNING"):
            noisy_result = noisy.send(TENANT, request)

        self.assertEqual(noisy_result, quiet.send(TENANT, request))


class SendMessageTests(unittest.TestCase):
    def test_options_are_translated(self) -> None:
        adapter = ScriptedAdapter(ProviderResult(message_id="wamid.7"))
        router = make_router(META_RECORD, adapter=adapter)

        router.send_message(
            TENANT,
            "9876543210",
            "Invoice attached",
            {
                "metadata": {"documentUrl": "https://cdn.example.com/i.pdf", "filename": "i.pdf"},
                "orderId": "o-7",
                "messageType": "invoice",
            },
        )

        _, _, request, _ = adapter.calls[0]
        self.assertEqual(request.rich_media.document_url, "https://cdn.example.com/i.pdf")
        self.assertEqual(request.rich_media.filename, "i.pdf")
        self.assertEqual(request.order_id, "o-7")
        self.assertEqual(request.message_type, "invoice")

    def test_result_dict_uses_wire_keys(self) -> None:
        router = make_router({"whatsappEnabled": False})

        payload = router.send_message(TENANT, "9876543210", "Hi").to_dict()

        self.assertTrue(payload["success"])
        self.assertEqual(payload["method"], "direct")
        self.assertEqual(payload["link"], "https://wa.me/919876543210?text=Hi")


if __name__ == "__main__":
    unittest.main()
