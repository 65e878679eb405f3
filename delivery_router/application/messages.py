"""Thin send helpers used by order and inventory flows.

They only compose a plain body plus correlation tags (`orderId`,
`messageType`, metadata) and hand off to the router.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..domain.models import DeliveryRequest, DeliveryResult
from .router import DeliveryRouter

MAX_LISTED_ITEMS = 5

ORDER_STATUS_HEADLINES = {
    "QUOTED": ("📋 *Proforma Invoice Sent*", "has been quoted. Please review and accept the proforma invoice."),
    "ACCEPTED": ("✅ *Order Accepted*", "has been accepted and is being processed."),
    "PACKED": ("📦 *Order Packed*", "has been packed and is ready for dispatch."),
    "SHIPPED": ("🚚 *Order Shipped*", "has been shipped. Tracking details will be shared soon."),
    "OUT_FOR_DELIVERY": ("🚛 *Out for Delivery*", "is out for delivery and will reach you soon!"),
    "DELIVERED": ("✅ *Order Delivered*", "has been delivered successfully. Thank you for your business!"),
    "REJECTED": ("❌ *Order Rejected*", "could not be processed. Please contact us for assistance."),
}


def send_order_status_update(
    router: DeliveryRouter,
    tenant_id: str,
    order: Mapping[str, Any],
    new_status: str,
) -> DeliveryResult:
    phone = order.get("retailerPhone") or order.get("phone")
    if not phone:
        raise ValueError("Retailer phone number not found")

    order_id = order.get("id")
    order_ref = order_id or "N/A"
    headline, detail = ORDER_STATUS_HEADLINES.get(
        new_status, ("📦 *Order Update*", f"status has been updated to: {new_status}")
    )
    lines = [f"{headline}\n\nYour order #{order_ref} {detail}"]

    total_amount = order.get("totalAmount")
    if total_amount:
        lines.append(f"💰 Total Amount: ₹{float(total_amount):.2f}")

    items = order.get("items") or []
    if items:
        listed = "\n".join(
            f"• {item.get('name') or item.get('productName')} ({item.get('quantity') or 1})"
            for item in items[:MAX_LISTED_ITEMS]
        )
        item_block = f"📋 Items:\n{listed}"
        if len(items) > MAX_LISTED_ITEMS:
            item_block += f"\n...and {len(items) - MAX_LISTED_ITEMS} more items"
        lines.append(item_block)

    return router.send(
        tenant_id,
        DeliveryRequest(
            recipient=str(phone),
            body="\n\n".join(lines),
            order_id=str(order_id) if order_id is not None else None,
            message_type="order_status_update",
            metadata={"status": new_status, "orderId": order_id},
        ),
    )


def send_stock_refill_reminder(
    router: DeliveryRouter,
    tenant_id: str,
    products: Sequence[Mapping[str, Any]],
    retailer_phone: str,
    retailer_name: str = "",
) -> DeliveryResult:
    if not retailer_phone:
        raise ValueError("Retailer phone number required")
    if not products:
        raise ValueError("At least one product required")

    greeting = f"Hello *{retailer_name}*," if retailer_name else "Hello!"
    if len(products) == 1:
        product = products[0]
        stock_block = (
            f"Your product *{product.get('name') or 'N/A'}* is running low on stock.\n\n"
            f"📊 *Current Stock:* {_stock(product)}"
        )
    else:
        listed = "\n\n".join(
            f"{index}. *{product.get('name') or 'Unnamed Product'}*\n   📊 Stock: {_stock(product)}"
            for index, product in enumerate(products, start=1)
        )
        stock_block = f"You have *{len(products)} products* running low on stock:\n\n{listed}"

    body = (
        f"📦 *Stock Refill Reminder*\n\n{greeting}\n\n{stock_block}\n\n"
        "💡 We recommend placing an order soon to avoid stockout.\n\n"
        "Reply to this message to place your order!"
    )
    return router.send(
        tenant_id,
        DeliveryRequest(
            recipient=retailer_phone,
            body=body,
            message_type="bulk_stock_reminder" if len(products) > 1 else "stock_reminder",
            metadata={
                "productIds": [product.get("id") for product in products],
                "productNames": [product.get("name") for product in products],
                "productCount": len(products),
            },
        ),
    )


def _stock(product: Mapping[str, Any]) -> str:
    return f"{product.get('quantity') or 0} {product.get('unit') or 'units'}"
