from __future__ import annotations

import io
import json
import unittest
import urllib.error
from unittest import mock

from delivery_router.adapters.meta_graph import MetaGraphAdapter, build_meta_payload
from delivery_router.domain.errors import (
    ProviderGenericFailure,
    ProviderPermissionDenied,
    ProviderRecipientNotAllowed,
)
from delivery_router.domain.models import (
    DeliveryConfig,
    DeliveryRequest,
    Provider,
    RichMedia,
    Template,
)

RECIPIENT = "+919876543210"


def make_config(**overrides: object) -> DeliveryConfig:
    base: dict[str, object] = {
        "enabled": True,
        "provider": Provider.META,
        "phone_number_id": "PNID-1",
        "access_token": "token-abc",
    }
    return DeliveryConfig(**(base | overrides))  # type: ignore[arg-type]


def http_error(code: int, body: dict[str, object]) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        url="https://graph.facebook.com/v18.0/PNID-1/messages",
        code=code,
        msg="Error",
        hdrs=None,
        fp=io.BytesIO(json.dumps(body).encode("utf-8")),
    )


class MetaPayloadTests(unittest.TestCase):
    def test_plain_text(self) -> None:
        payload = build_meta_payload(RECIPIENT, DeliveryRequest(recipient=RECIPIENT, body="Hi"))
        self.assertEqual(
            payload,
            {
                "messaging_product": "whatsapp",
                "to": "919876543210",
                "type": "text",
                "text": {"body": "Hi"},
            },
        )

    def test_image_wins_over_document_and_template(self) -> None:
        request = DeliveryRequest(
            recipient=RECIPIENT,
            body="New stock",
            rich_media=RichMedia(
                image_url="https://cdn.example.com/a.jpg",
                document_url="https://cdn.example.com/a.pdf",
            ),
            template=Template(name="promo"),
        )
        payload = build_meta_payload(RECIPIENT, request)
        self.assertEqual(payload["type"], "image")
        self.assertEqual(
            payload["image"], {"link": "https://cdn.example.com/a.jpg", "caption": "New stock"}
        )
        self.assertNotIn("document", payload)
        self.assertNotIn("template", payload)

    def test_document_wins_over_template(self) -> None:
        request = DeliveryRequest(
            recipient=RECIPIENT,
            body="Invoice",
            rich_media=RichMedia(document_url="https://cdn.example.com/inv.pdf"),
            template=Template(name="invoice"),
        )
        payload = build_meta_payload(RECIPIENT, request)
        self.assertEqual(payload["type"], "document")
        self.assertEqual(
            payload["document"],
            {"link": "https://cdn.example.com/inv.pdf", "filename": "document", "caption": "Invoice"},
        )

    def test_template_wins_over_text(self) -> None:
        components = [{"type": "body", "parameters": [{"type": "text", "text": "42"}]}]
        request = DeliveryRequest(
            recipient=RECIPIENT,
            body="ignored",
            template=Template(name="order_update", language="hi", components=components),
        )
        payload = build_meta_payload(RECIPIENT, request)
        self.assertEqual(payload["type"], "template")
        self.assertEqual(
            payload["template"],
            {"name": "order_update", "language": {"code": "hi"}, "components": components},
        )


class MetaGraphAdapterTests(unittest.TestCase):
    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_send_posts_json_with_bearer_token(self, urlopen_mock: mock.Mock) -> None:
        response = urlopen_mock.return_value.__enter__.return_value
        response.getcode.return_value = 200
        response.read.return_value = b'{"messages":[{"id":"wamid.ABC"}]}'

        result = MetaGraphAdapter().send(
            make_config(),
            RECIPIENT,
            DeliveryRequest(recipient=RECIPIENT, body="Hi"),
            timeout=5,
        )

        self.assertEqual(result.message_id, "wamid.ABC")
        self.assertTrue(result.can_track_status)
        request_obj = urlopen_mock.call_args.args[0]
        self.assertEqual(request_obj.full_url, "https://graph.facebook.com/v18.0/PNID-1/messages")
        self.assertEqual(request_obj.get_header("Authorization"), "Bearer token-abc")
        self.assertEqual(json.loads(request_obj.data)["to"], "919876543210")
        self.assertEqual(urlopen_mock.call_args.kwargs["timeout"], 5)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_error_code_10_raises_permission_denied(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = http_error(
            403,
            {"error": {"message": "(#10) Application does not have permission", "code": 10}},
        )

        with self.assertRaises(ProviderPermissionDenied) as ctx:
            MetaGraphAdapter().send(
                make_config(), RECIPIENT, DeliveryRequest(recipient=RECIPIENT, body="Hi"), timeout=5
            )

        error = ctx.exception
        self.assertTrue(error.permission_error)
        self.assertEqual(error.code, 10)
        self.assertEqual(error.status_code, 403)
        self.assertEqual(error.provider_error["code"], 10)
        self.assertFalse(error.transient)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_error_code_131030_raises_recipient_not_allowed(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = http_error(
            400,
            {
                "error": {
                    "message": "(#131030) Recipient phone number not in allowed list",
                    "code": 131030,
                    "error_subcode": 2494010,
                }
            },
        )

        with self.assertRaises(ProviderRecipientNotAllowed) as ctx:
            MetaGraphAdapter().send(
                make_config(), RECIPIENT, DeliveryRequest(recipient=RECIPIENT, body="Hi"), timeout=5
            )

        self.assertTrue(ctx.exception.recipient_error)
        self.assertEqual(ctx.exception.subcode, 2494010)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_server_error_is_transient(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = http_error(503, {"error": {"message": "Service unavailable"}})

        with self.assertRaises(ProviderGenericFailure) as ctx:
            MetaGraphAdapter().send(
                make_config(), RECIPIENT, DeliveryRequest(recipient=RECIPIENT, body="Hi"), timeout=5
            )

        self.assertTrue(ctx.exception.transient)
        self.assertIn("Service unavailable", str(ctx.exception))

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_network_error_is_transient(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = urllib.error.URLError("connection refused")

        with self.assertRaises(ProviderGenericFailure) as ctx:
            MetaGraphAdapter().send(
                make_config(), RECIPIENT, DeliveryRequest(recipient=RECIPIENT, body="Hi"), timeout=5
            )

        self.assertTrue(ctx.exception.transient)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_missing_credentials_fail_without_network(self, urlopen_mock: mock.Mock) -> None:
        with self.assertRaises(ProviderGenericFailure):
            MetaGraphAdapter().send(
                make_config(access_token=""),
                RECIPIENT,
                DeliveryRequest(recipient=RECIPIENT, body="Hi"),
                timeout=5,
            )
        urlopen_mock.assert_not_called()

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_accepted_send_with_unexpected_messages_shape(self, urlopen_mock: mock.Mock) -> None:
        response = urlopen_mock.return_value.__enter__.return_value
        response.getcode.return_value = 200
        response.read.return_value = b'{"messages":{"id":"wamid.odd"}}'

        result = MetaGraphAdapter().send(
            make_config(), RECIPIENT, DeliveryRequest(recipient=RECIPIENT, body="Hi"), timeout=5
        )

        self.assertIsNone(result.message_id)
        self.assertEqual(result.data, {"messages": {"id": "wamid.odd"}})


class MetaMessageStatusTests(unittest.TestCase):
    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_fetch_status_gets_message_with_bearer_token(self, urlopen_mock: mock.Mock) -> None:
        response = urlopen_mock.return_value.__enter__.return_value
        response.getcode.return_value = 200
        response.read.return_value = b'{"id":"wamid.1","status":"delivered"}'

        body = MetaGraphAdapter().fetch_status(make_config(), "wamid.1", timeout=5)

        self.assertEqual(body, {"id": "wamid.1", "status": "delivered"})
        request_obj = urlopen_mock.call_args.args[0]
        self.assertEqual(request_obj.get_method(), "GET")
        self.assertEqual(
            request_obj.full_url,
            "https://graph.facebook.com/v18.0/PNID-1/messages/wamid.1",
        )
        self.assertEqual(request_obj.get_header("Authorization"), "Bearer token-abc")
        self.assertIsNone(request_obj.data)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_fetch_status_error_uses_graph_message(self, urlopen_mock: mock.Mock) -> None:
        urlopen_mock.side_effect = http_error(
            400, {"error": {"message": "Unsupported get request", "code": 100}}
        )

        with self.assertRaises(ProviderGenericFailure) as ctx:
            MetaGraphAdapter().fetch_status(make_config(), "wamid.missing", timeout=5)

        self.assertEqual(str(ctx.exception), "Unsupported get request")
        self.assertEqual(ctx.exception.status_code, 400)

    @mock.patch("delivery_router.adapters.http.urllib.request.urlopen")
    def test_fetch_status_requires_credentials(self, urlopen_mock: mock.Mock) -> None:
        with self.assertRaises(ProviderGenericFailure):
            MetaGraphAdapter().fetch_status(make_config(phone_number_id=""), "wamid.1", timeout=5)
        urlopen_mock.assert_not_called()


if __name__ == "__main__":
    unittest.main()
