"""Meta Graph (WhatsApp Cloud API) adapter.

Payload selection is first-match in this order:

    image > document > template > text

so a request carrying both an image and a template is sent as an image.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any

from ..domain.errors import (
    ProviderError,
    ProviderGenericFailure,
    as_error_code,
    provider_error_for,
)
from ..domain.models import DeliveryConfig, DeliveryRequest, ProviderResult
from .http import HttpResponse, get, json_body, post

logger = logging.getLogger(__name__)

PROVIDER_NAME = "meta"


def build_meta_payload(recipient: str, request: DeliveryRequest) -> dict[str, Any]:
    """Build the `/messages` JSON body for one request."""
    base: dict[str, Any] = {
        "messaging_product": "whatsapp",
        "to": recipient.replace("+", ""),
    }
    media = request.rich_media
    caption = request.body or ""

    if media.image_url:
        return base | {
            "type": "image",
            "image": {"link": media.image_url, "caption": caption},
        }

    if media.document_url:
        return base | {
            "type": "document",
            "document": {
                "link": media.document_url,
                "filename": media.filename or "document",
                "caption": caption,
            },
        }

    if request.template is not None:
        return base | {
            "type": "template",
            "template": {
                "name": request.template.name,
                "language": {"code": request.template.language or "en"},
                "components": list(request.template.components or []),
            },
        }

    return base | {"type": "text", "text": {"body": request.body}}


class MetaGraphAdapter:
    def __init__(
        self,
        *,
        base_url: str = "https://graph.facebook.com",
        api_version: str = "v18.0",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version

    def send(
        self,
        config: DeliveryConfig,
        recipient: str,
        request: DeliveryRequest,
        *,
        timeout: float,
    ) -> ProviderResult:
        _require_credentials(config)

        payload = build_meta_payload(recipient, request)
        response = post(
            self._messages_url(config),
            data=json_body(payload),
            headers={
                "Authorization": f"Bearer {config.access_token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            provider=PROVIDER_NAME,
        )

        if not response.ok:
            raise _rejected(
                response,
                fallback_message=f"Failed to send WhatsApp message (HTTP {response.status})",
                context=f"send type={payload['type']}",
            )

        messages = response.body.get("messages")
        first = messages[0] if isinstance(messages, list) and messages else None
        message_id = first.get("id") if isinstance(first, dict) else None
        return ProviderResult(
            message_id=message_id,
            data=response.body,
            can_track_status=True,
        )

    def fetch_status(
        self,
        config: DeliveryConfig,
        message_id: str,
        *,
        timeout: float,
    ) -> dict[str, Any]:
        """Return the Graph API body for one previously sent message."""
        _require_credentials(config)

        encoded_id = urllib.parse.quote(message_id, safe="")
        response = get(
            f"{self._messages_url(config)}/{encoded_id}",
            headers={"Authorization": f"Bearer {config.access_token}"},
            timeout=timeout,
            provider=PROVIDER_NAME,
        )
        if not response.ok:
            raise _rejected(
                response,
                fallback_message="Failed to get message status",
                context="status",
            )
        return response.body

    def _messages_url(self, config: DeliveryConfig) -> str:
        return f"{self.base_url}/{self.api_version}/{config.phone_number_id}/messages"


def _require_credentials(config: DeliveryConfig) -> None:
    if not config.phone_number_id or not config.access_token:
        raise ProviderGenericFailure(
            "Meta WhatsApp API credentials not configured",
            provider=PROVIDER_NAME,
        )


def _rejected(response: HttpResponse, *, fallback_message: str, context: str) -> ProviderError:
    raw_error = response.body.get("error")
    error = raw_error if isinstance(raw_error, dict) else {}
    subcode = as_error_code(error.get("error_subcode"))
    code = as_error_code(error.get("code")) or subcode
    message = error.get("message") or fallback_message
    logger.warning(
        "Meta %s rejected status=%s code=%s subcode=%s",
        context,
        response.status,
        code,
        subcode,
    )
    return provider_error_for(
        str(message),
        code=code,
        subcode=subcode,
        provider=PROVIDER_NAME,
        status_code=response.status,
        provider_error=error,
        transient=response.transient,
    )
