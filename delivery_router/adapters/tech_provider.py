"""Tech-Provider gateway adapter.

The gateway is an externally hosted service that talks to Meta on the
tenant's behalf. This module only knows its contract:

    request:  {to, message, template, options: {imageUrl, documentUrl,
               filename, metadata}}
    response: {success, messageId?, data?}

The gateway itself is injected as a callable so tests and other transports
(cloud-function SDKs, queues) can plug in without touching the router.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Mapping

from ..domain.errors import ProviderGenericFailure, provider_error_for
from ..domain.metadata import prune_unset
from ..domain.models import DeliveryConfig, DeliveryRequest, ProviderResult
from ..settings import _required_env
from .http import json_body, post

PROVIDER_NAME = "meta_tech_provider"

GatewayFn = Callable[[Mapping[str, Any], float], Mapping[str, Any]]


def build_gateway_request(recipient: str, request: DeliveryRequest) -> dict[str, Any]:
    template = None
    if request.template is not None:
        template = {
            "name": request.template.name,
            "language": request.template.language or "en",
            "components": list(request.template.components or []),
        }
    media = request.rich_media
    return {
        "to": recipient,
        "message": request.body,
        "template": template,
        "options": {
            "imageUrl": media.image_url,
            "documentUrl": media.document_url,
            "filename": media.filename,
            "metadata": prune_unset(request.metadata),
        },
    }


class TechProviderGatewayAdapter:
    def __init__(self, gateway: GatewayFn) -> None:
        self.gateway = gateway

    def send(
        self,
        config: DeliveryConfig,
        recipient: str,
        request: DeliveryRequest,
        *,
        timeout: float,
    ) -> ProviderResult:
        _ = config
        reply = self.gateway(build_gateway_request(recipient, request), timeout)
        if not reply or not reply.get("success"):
            error = reply.get("error") if reply else None
            error_fields = error if isinstance(error, Mapping) else {}
            message = (
                error_fields.get("message")
                or (error if isinstance(error, str) else None)
                or "Tech Provider gateway did not confirm the send"
            )
            raise provider_error_for(
                str(message),
                code=error_fields.get("code"),
                subcode=error_fields.get("error_subcode"),
                provider=PROVIDER_NAME,
                provider_error=error_fields or None,
            )

        data = reply.get("data")
        return ProviderResult(
            message_id=reply.get("messageId"),
            data=dict(data) if isinstance(data, Mapping) else {},
            can_track_status=True,
        )


def http_gateway_from_env() -> GatewayFn:
    """Gateway callable that POSTs the contract JSON to `TECH_PROVIDER_GATEWAY_URL`."""
    url = _required_env("TECH_PROVIDER_GATEWAY_URL")
    token = os.getenv("TECH_PROVIDER_GATEWAY_TOKEN", "").strip()

    def call_gateway(payload: Mapping[str, Any], timeout: float) -> Mapping[str, Any]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = post(
            url,
            data=json_body(payload),
            headers=headers,
            timeout=timeout,
            provider=PROVIDER_NAME,
        )
        if not response.ok:
            raise ProviderGenericFailure(
                f"Tech Provider gateway failed HTTP {response.status}: {response.text[:300]}",
                provider=PROVIDER_NAME,
                status_code=response.status,
                transient=response.transient,
            )
        return response.body

    return call_gateway
