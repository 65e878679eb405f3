"""Application layer: routing, fallback, logging, broadcast, verification, status."""

from .broadcast import broadcast, send_promotional_offer
from .delivery_log import DeliveryLogger, build_log_entry
from .messages import send_order_status_update, send_stock_refill_reminder
from .router import DeliveryRouter
from .status import MessageStatus, get_message_status
from .verification import VerificationOutcome, VerificationState, verify_connection

__all__ = [
    "DeliveryLogger",
    "DeliveryRouter",
    "MessageStatus",
    "VerificationOutcome",
    "VerificationState",
    "broadcast",
    "build_log_entry",
    "get_message_status",
    "send_order_status_update",
    "send_promotional_offer",
    "send_stock_refill_reminder",
    "verify_connection",
]
