"""Delivery error taxonomy and classification.

Adapters raise these errors; the router catches them at the adapter boundary
and converts them into a `DeliveryResult`. None of them is meant to reach the
caller of `DeliveryRouter.send`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

PERMISSION_DENIED_CODE = 10
RECIPIENT_NOT_ALLOWED_CODE = 131030

_PERMISSION_MARKERS = ("#10", "does not have permission")
_RECIPIENT_MARKERS = ("#131030", "not in allowed list")


class ErrorCode(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RECIPIENT_NOT_ALLOWED = "RECIPIENT_NOT_ALLOWED"
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    CONFIG_UNAVAILABLE = "CONFIG_UNAVAILABLE"


class DeliveryError(Exception):
    """Base class for every error raised inside the delivery pipeline."""

    error_code: ErrorCode | None = None


class ConfigurationMissing(DeliveryError):
    """Tenant has no delivery settings, or delivery is disabled."""


class ConfigurationUnavailable(DeliveryError):
    """Tenant settings could not be read (store unavailable)."""

    error_code = ErrorCode.CONFIG_UNAVAILABLE


class InvalidRecipient(DeliveryError):
    error_code = ErrorCode.INVALID_RECIPIENT

    def __init__(self, raw: str | None) -> None:
        super().__init__(f"Invalid phone number format: {raw!r}")
        self.raw = raw


class ProviderError(DeliveryError):
    """A backend rejected the request or could not be reached.

    `provider_error` keeps the raw error object returned by the backend (for
    Meta, the `error` member of the response body). `transient` marks
    failures worth retrying: throttling, 5xx responses and network errors.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        code: int | None = None,
        subcode: int | None = None,
        status_code: int | None = None,
        provider_error: Mapping[str, Any] | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.code = code
        self.subcode = subcode
        self.status_code = status_code
        self.provider_error = dict(provider_error) if provider_error else None
        self.transient = transient

    @property
    def permission_error(self) -> bool:
        return PERMISSION_DENIED_CODE in (self.code, self.subcode)

    @property
    def recipient_error(self) -> bool:
        return RECIPIENT_NOT_ALLOWED_CODE in (self.code, self.subcode)


class ProviderPermissionDenied(ProviderError):
    error_code = ErrorCode.PERMISSION_DENIED


class ProviderRecipientNotAllowed(ProviderError):
    error_code = ErrorCode.RECIPIENT_NOT_ALLOWED


class ProviderGenericFailure(ProviderError):
    pass


class LoggingFailure(DeliveryError):
    """A delivery log write failed. Never propagated to callers."""


def provider_error_for(
    message: str,
    *,
    code: Any = None,
    subcode: Any = None,
    **kwargs: Any,
) -> ProviderError:
    """Pick the provider error subclass matching a backend error code."""
    code = as_error_code(code)
    subcode = as_error_code(subcode)
    if PERMISSION_DENIED_CODE in (code, subcode):
        error_type: type[ProviderError] = ProviderPermissionDenied
    elif RECIPIENT_NOT_ALLOWED_CODE in (code, subcode):
        error_type = ProviderRecipientNotAllowed
    else:
        error_type = ProviderGenericFailure
    return error_type(message, code=code, subcode=subcode, **kwargs)


def classify_error(exc: BaseException) -> tuple[ErrorCode | None, str]:
    """Map any exception to a stable error code (or None) and a message."""
    message = str(exc) or exc.__class__.__name__

    code = getattr(exc, "error_code", None)
    if isinstance(code, ErrorCode):
        return code, message

    codes = (
        as_error_code(getattr(exc, "code", None)),
        as_error_code(getattr(exc, "subcode", None)),
    )
    if (
        PERMISSION_DENIED_CODE in codes
        or getattr(exc, "permission_error", False)
        or _has_marker(message, _PERMISSION_MARKERS)
    ):
        return ErrorCode.PERMISSION_DENIED, message
    if (
        RECIPIENT_NOT_ALLOWED_CODE in codes
        or getattr(exc, "recipient_error", False)
        or _has_marker(message, _RECIPIENT_MARKERS)
    ):
        return ErrorCode.RECIPIENT_NOT_ALLOWED, message

    return None, message


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.transient


def as_error_code(value: Any) -> int | None:
    """Coerce a backend error code (int or numeric string) to int."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _has_marker(message: str, markers: tuple[str, ...]) -> bool:
    lowered = message.lower()
    return any(marker.lower() in lowered for marker in markers)
