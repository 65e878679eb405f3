"""SMS-bridge (Twilio-style) adapter for WhatsApp delivery.

Mental model refresher:
- This is an outbound adapter over a generic HTTP bridge.
- Credentials come from the tenant record (account SID + auth token), sent
  as HTTP basic auth; the body is form-encoded `From`, `To`, `Body`.
- Any non-2xx response is a failure.
"""

from __future__ import annotations

import urllib.parse

from ..domain.errors import ProviderGenericFailure
from ..domain.models import DeliveryConfig, DeliveryRequest, ProviderResult
from .http import basic_auth_header, post

PROVIDER_NAME = "twilio"


class SmsBridgeAdapter:
    def __init__(
        self,
        *,
        base_url: str = "https://api.twilio.com",
        default_from: str = "whatsapp:+14155238886",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_from = default_from

    def send(
        self,
        config: DeliveryConfig,
        recipient: str,
        request: DeliveryRequest,
        *,
        timeout: float,
    ) -> ProviderResult:
        account_sid = config.bridge_account_sid
        auth_token = config.bridge_auth_token
        if not account_sid or not auth_token:
            raise ProviderGenericFailure(
                "Twilio credentials not configured", provider=PROVIDER_NAME
            )

        encoded_sid = urllib.parse.quote(account_sid, safe="")
        endpoint = f"{self.base_url}/2010-04-01/Accounts/{encoded_sid}/Messages.json"
        payload = urllib.parse.urlencode(
            {
                "From": config.bridge_from or self.default_from,
                "To": f"whatsapp:{recipient}",
                "Body": request.body,
            }
        ).encode("utf-8")

        response = post(
            endpoint,
            data=payload,
            headers={
                "Authorization": basic_auth_header(account_sid, auth_token),
                "Content-Type": "application/x-www-form-urlencoded",
            },
            timeout=timeout,
            provider=PROVIDER_NAME,
        )
        if not response.ok:
            details = response.body.get("message") or response.text[:300]
            raise ProviderGenericFailure(
                f"Twilio WhatsApp send failed HTTP {response.status}: {details}",
                provider=PROVIDER_NAME,
                status_code=response.status,
                provider_error=response.body or None,
                transient=response.transient,
            )

        return ProviderResult(message_id=response.body.get("sid"), data=response.body)
