"""Domain layer: pure delivery rules and data model."""

from .direct_link import build_direct_link
from .errors import (
    ConfigurationMissing,
    ConfigurationUnavailable,
    DeliveryError,
    ErrorCode,
    InvalidRecipient,
    LoggingFailure,
    ProviderError,
    ProviderGenericFailure,
    ProviderPermissionDenied,
    ProviderRecipientNotAllowed,
    classify_error,
)
from .metadata import UNSET, prune_unset
from .models import (
    BroadcastOutcome,
    DeliveryConfig,
    DeliveryLogEntry,
    DeliveryRequest,
    DeliveryResult,
    Provider,
    ProviderResult,
    RichMedia,
    Template,
)
from .phone import normalize_recipient

__all__ = [
    "UNSET",
    "BroadcastOutcome",
    "ConfigurationMissing",
    "ConfigurationUnavailable",
    "DeliveryConfig",
    "DeliveryError",
    "DeliveryLogEntry",
    "DeliveryRequest",
    "DeliveryResult",
    "ErrorCode",
    "InvalidRecipient",
    "LoggingFailure",
    "Provider",
    "ProviderError",
    "ProviderGenericFailure",
    "ProviderPermissionDenied",
    "ProviderRecipientNotAllowed",
    "ProviderResult",
    "RichMedia",
    "Template",
    "build_direct_link",
    "classify_error",
    "normalize_recipient",
    "prune_unset",
]
