"""Post one raw JSON transaction webhook to the receiver.

Useful for manual status-transition and duplicate-delivery testing.
"""

import argparse
import json
from pathlib import Path

import httpx


def main() -> None:
    """Parse CLI args and post one JSON payload."""

    parser = argparse.ArgumentParser(description="Send a transaction webhook to the receiver.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--json", dest="json_inline", default=None, help="Inline JSON payload")
    parser.add_argument("--file", dest="json_file", default=None, help="Path to JSON file")
    parser.add_argument("--secret", default=None, help="Value for x-webhook-secret")
    args = parser.parse_args()

    if bool(args.json_inline) == bool(args.json_file):
        raise SystemExit("Provide exactly one of --json or --file")

    if args.json_inline:
        payload = json.loads(args.json_inline)
    else:
        payload = json.loads(Path(args.json_file).read_text())

    headers = {"user-agent": "payhook-send-webhook"}
    if args.secret:
        headers["x-webhook-secret"] = args.secret
    resp = httpx.post(f"{args.base_url}/webhooks/transactions", json=payload, headers=headers, timeout=10.0)
    print(f"status={resp.status_code}")
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
