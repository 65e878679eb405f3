"""Caller-options adapter.

Mental model refresher:
- This is an adapter/edge module.
- It translates the loosely shaped options dictionary that UI/automation
  callers pass (`template`, `metadata`, `orderId`, `messageType`,
  `logMessage`) into the typed `DeliveryRequest` used by the router.
- Rich media may be given under `richMedia` or, as older callers do, inside
  `metadata` (`imageUrl`, `documentUrl`, `filename`). `richMedia` wins.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..domain.metadata import UNSET
from ..domain.models import DeliveryRequest, RichMedia, Template


def build_delivery_request(
    to: str,
    message: str,
    options: Mapping[str, Any] | None = None,
) -> DeliveryRequest:
    options = options or {}
    metadata_raw = options.get("metadata") or {}
    if not isinstance(metadata_raw, Mapping):
        raise ValueError("options.metadata must be a mapping")
    metadata = dict(metadata_raw)

    return DeliveryRequest(
        recipient=str(to or ""),
        body=str(message or ""),
        rich_media=_parse_rich_media(options.get("richMedia") or {}, metadata),
        template=_parse_template(options.get("template")),
        metadata=metadata,
        order_id=_as_optional_str(options.get("orderId")),
        message_type=_as_optional_str(options.get("messageType")) or "general",
        log_message=options.get("logMessage") is not False,
    )


def _parse_rich_media(raw: Mapping[str, Any], metadata: Mapping[str, Any]) -> RichMedia:
    def pick(key: str) -> str | None:
        return _as_optional_str(raw.get(key)) or _as_optional_str(metadata.get(key))

    return RichMedia(
        image_url=pick("imageUrl"),
        document_url=pick("documentUrl"),
        filename=pick("filename"),
    )


def _parse_template(raw: Any) -> Template | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise ValueError("options.template must be a mapping")

    name = _as_optional_str(raw.get("name"))
    if name is None:
        raise ValueError("Missing required field: template.name")

    language = raw.get("language")
    if isinstance(language, Mapping):
        language = language.get("code")
    components = raw.get("components") or []
    if not isinstance(components, list):
        raise ValueError("template.components must be a list")

    return Template(
        name=name,
        language=_as_optional_str(language) or "en",
        components=list(components),
    )


def _as_optional_str(value: Any) -> str | None:
    if value is None or value is UNSET:
        return None
    text = str(value).strip()
    return text or None
