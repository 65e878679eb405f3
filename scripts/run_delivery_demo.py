#!/usr/bin/env python3
"""Route one message and one broadcast locally.

The tenant record comes from a JSON file (or a built-in sample with delivery
disabled, which always resolves to direct links and needs no credentials).
Log records are printed unless `--kafka-log` is given, in which case they are
published to `DELIVERY_LOG_KAFKA_TOPIC`.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from delivery_router import (  # noqa: E402
    ConsoleDeliveryLogStore,
    DeliveryRouter,
    InMemoryTenantConfigStore,
    RouterSettings,
    broadcast,
    default_registry,
    http_gateway_from_env,
    kafka_log_store_from_env,
)

DEMO_TENANT = "tenant-demo-1"


def main() -> int:
    args = parse_args()
    _load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = RouterSettings.from_env()
    gateway = http_gateway_from_env() if os.getenv("TECH_PROVIDER_GATEWAY_URL") else None
    log_store: Any = kafka_log_store_from_env() if args.kafka_log else ConsoleDeliveryLogStore()
    router = DeliveryRouter(
        InMemoryTenantConfigStore({DEMO_TENANT: load_tenant_record(args.tenant_file)}),
        registry=default_registry(settings, tech_provider_gateway=gateway),
        log_store=log_store,
        settings=settings,
    )

    try:
        result = router.send_message(DEMO_TENANT, args.to, args.message)
        outcome = broadcast(router, DEMO_TENANT, args.broadcast or [args.to], args.message)
    finally:
        close = getattr(log_store, "close", None)
        if close is not None:
            close()

    print("")
    print("[SEND]")
    print(json.dumps(result.to_dict(), indent=2))
    print("")
    print("[SUMMARY]")
    print(f"total={outcome.total} successful={outcome.successful} confirmed={outcome.confirmed}")
    for item in outcome.results:
        print(
            f"to={item.recipient} method={item.method} confirmed={item.confirmed_sent} "
            f"error_code={item.error_code.value if item.error_code else None}"
        )
    return 0 if result.success else 1


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send a message and a broadcast through the delivery router."
    )
    parser.add_argument("--to", default="9876543210", help="Recipient phone number.")
    parser.add_argument("--message", default="Hello from the delivery router demo!")
    parser.add_argument(
        "--broadcast",
        nargs="*",
        default=None,
        help="Recipients for the broadcast step (defaults to --to).",
    )
    parser.add_argument(
        "--tenant-file",
        type=Path,
        default=None,
        help="Optional JSON file with the stored tenant record (whatsappEnabled, ...).",
    )
    parser.add_argument(
        "--kafka-log",
        action="store_true",
        help="Publish delivery log records to Kafka instead of printing them.",
    )
    return parser.parse_args()


def load_tenant_record(tenant_file: Path | None) -> dict[str, Any]:
    if tenant_file is None:
        return sample_tenant_record()
    with tenant_file.open("r", encoding="utf-8") as file_handle:
        return json.load(file_handle)


def sample_tenant_record() -> dict[str, Any]:
    return {
        "whatsappEnabled": False,
        "whatsappProvider": "direct",
        "phone": "9876543210",
    }


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


if __name__ == "__main__":
    sys.exit(main())
