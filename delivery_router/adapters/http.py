"""Minimal JSON-over-HTTP helper shared by the backend adapters.

Mental model refresher:
- This is outbound adapter plumbing over `urllib.request`, the same flow
  as a plain Mailgun or Twilio REST call.
- It returns the status and decoded body for 2xx and non-2xx responses
  alike; each adapter decides what a failure means for its backend.
- Network-level failures (DNS, refused connection, timeout) are raised as
  transient `ProviderGenericFailure`.
"""

from __future__ import annotations

import base64
import json
import socket
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping

from ..domain.errors import ProviderGenericFailure


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: dict[str, Any]
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def transient(self) -> bool:
        return self.status == 429 or self.status >= 500


def post(
    url: str,
    *,
    data: bytes,
    headers: Mapping[str, str],
    timeout: float,
    provider: str,
) -> HttpResponse:
    request = urllib.request.Request(url, data=data, method="POST")
    for name, value in headers.items():
        request.add_header(name, value)
    return _send(request, timeout=timeout, provider=provider)


def get(
    url: str,
    *,
    headers: Mapping[str, str],
    timeout: float,
    provider: str,
) -> HttpResponse:
    request = urllib.request.Request(url, method="GET")
    for name, value in headers.items():
        request.add_header(name, value)
    return _send(request, timeout=timeout, provider=provider)


def _send(request: urllib.request.Request, *, timeout: float, provider: str) -> HttpResponse:
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            status = int(response.getcode())
            text = _decode(response.read())
    except urllib.error.HTTPError as exc:
        status = int(exc.code)
        text = _decode(exc.read())
    except urllib.error.URLError as exc:
        raise ProviderGenericFailure(
            f"{provider} request failed: {exc.reason}",
            provider=provider,
            transient=True,
        ) from exc
    except (socket.timeout, TimeoutError) as exc:
        raise ProviderGenericFailure(
            f"{provider} request timed out after {timeout}s",
            provider=provider,
            transient=True,
        ) from exc

    return HttpResponse(status=status, body=_parse_json_object(text), text=text)


def json_body(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def basic_auth_header(username: str, password: str) -> str:
    token = f"{username}:{password}".encode("utf-8")
    encoded = base64.b64encode(token).decode("ascii")
    return f"Basic {encoded}"


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def _parse_json_object(text: str) -> dict[str, Any]:
    if not text.strip():
        return {}
    try:
        parsed = json.loads(text)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
