from __future__ import annotations

import argparse
import base64
import json
import time


def _segment(obj: dict) -> str:
    raw = json.dumps(obj, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Mint an unsigned bearer token for local runs against the mock backend"
    )
    parser.add_argument("--actor-id", default="agent-1")
    parser.add_argument("--role", default="seller")
    parser.add_argument("--ttl-s", type=int, default=8 * 3600)
    args = parser.parse_args()

    claims = {"id": args.actor_id, "role": args.role, "exp": int(time.time()) + args.ttl_s}
    token = ".".join([_segment({"alg": "none", "typ": "JWT"}), _segment(claims), "dev"])
    print(token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
