"""Fire concurrent deliveries that share one external_id.

Afterwards exactly one delivery should report `created` and every other one
`updated`; anything else means the unique constraint on `external_id` is
missing from the database.
"""

import argparse
import asyncio
from collections import Counter
from uuid import uuid4

import httpx


async def send_one(client: httpx.AsyncClient, base_url: str, payload: dict) -> str:
    """Send one delivery and return its action, or the HTTP status on failure."""

    try:
        resp = await client.post(f"{base_url}/webhooks/transactions", json=payload)
    except Exception as exc:
        return f"error:{type(exc).__name__}"
    if resp.status_code >= 400:
        return f"http_{resp.status_code}"
    return resp.json()["action"]


async def run(total: int, base_url: str, external_id: str) -> None:
    payload = {"type": "pix", "amount": "150,00", "external_id": external_id, "event": "payment.created"}
    async with httpx.AsyncClient(timeout=10.0) as client:
        results = await asyncio.gather(*(send_one(client, base_url, payload) for _ in range(total)))

    counts = Counter(results)
    print(f"external_id={external_id}")
    for action, count in sorted(counts.items()):
        print(f"{action}={count}")
    if counts.get("created", 0) != 1:
        raise SystemExit("expected exactly one created delivery")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--total", type=int, default=20)
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--external-id", default=None)
    args = parser.parse_args()
    asyncio.run(run(args.total, args.base_url, args.external_id or f"burst-{uuid4()}"))
