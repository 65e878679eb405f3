#!/usr/bin/env python3
"""Run the connectivity check for a tenant record.

API-backed providers send a real self-test message to the record's `phone`,
so point `--tenant-file` at sandbox credentials.
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
    DeliveryRouter,
    InMemoryTenantConfigStore,
    RouterSettings,
    default_registry,
    http_gateway_from_env,
    verify_connection,
)

DEMO_TENANT = "tenant-demo-1"


def main() -> int:
    args = parse_args()
    _load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = RouterSettings.from_env()
    gateway = http_gateway_from_env() if os.getenv("TECH_PROVIDER_GATEWAY_URL") else None
    store = InMemoryTenantConfigStore({DEMO_TENANT: load_tenant_record(args.tenant_file)})
    router = DeliveryRouter(
        store,
        registry=default_registry(settings, tech_provider_gateway=gateway),
        settings=settings,
    )

    outcome = verify_connection(router, DEMO_TENANT)

    print("")
    print("[SUMMARY]")
    print(f"state={outcome.state.value} verified={outcome.verified}")
    print(f"method={outcome.method} credentials_valid={outcome.credentials_valid}")
    if outcome.error:
        print(f"error={outcome.error}")
    if outcome.instructions:
        print(f"instructions={outcome.instructions}")
    print(f"stored_verified={(store.get(DEMO_TENANT) or {}).get('whatsappVerified', False)}")
    return 0 if outcome.verified else 1


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify a tenant's delivery settings.")
    parser.add_argument(
        "--tenant-file",
        type=Path,
        default=None,
        help="JSON file with the stored tenant record. Defaults to a direct-link tenant.",
    )
    return parser.parse_args()


def load_tenant_record(tenant_file: Path | None) -> dict[str, Any]:
    if tenant_file is None:
        return {"whatsappEnabled": True, "whatsappProvider": "direct"}
    with tenant_file.open("r", encoding="utf-8") as file_handle:
        return json.load(file_handle)


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
