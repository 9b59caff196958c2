from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _parse_env(pairs: list[str]) -> list[dict[str, str]]:
    env = []
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"--env expects NAME=VALUE, got {pair!r}")
        env.append({"name": name, "value": value})
    return env


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="lrpbridge CLI")
    p.add_argument("--api", default="http://localhost:8085", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="List desired apps")

    s_get = sub.add_parser("get", help="Show one desired app")
    s_get.add_argument("--guid", required=True)

    s_des = sub.add_parser("desire", help="Desire an app")
    s_des.add_argument("--guid", required=True)
    s_des.add_argument("--image", default="")
    s_des.add_argument("--droplet-hash", default="")
    s_des.add_argument("--start-command", default="")
    s_des.add_argument("--env", action="append", default=[], help="NAME=VALUE, repeatable")
    s_des.add_argument("--instances", type=int, default=1)
    s_des.add_argument("--last-updated", default="")

    s_upd = sub.add_parser("scale", help="Change the instance count of an app")
    s_upd.add_argument("--guid", required=True)
    s_upd.add_argument("--instances", type=int, required=True)

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "list":
        _print(requests.get(f"{base}/apps", timeout=10).json())
        return 0

    if args.cmd == "get":
        r = requests.get(f"{base}/apps/{args.guid}", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "desire":
        payload = {
            "process_guid": args.guid,
            "docker_image": args.image,
            "droplet_hash": args.droplet_hash,
            "start_command": args.start_command,
            "environment": _parse_env(args.env),
            "num_instances": args.instances,
            "last_updated": args.last_updated,
        }
        r = requests.put(f"{base}/apps/{args.guid}", json=payload, timeout=30)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "scale":
        payload = {"process_guid": args.guid, "update": {"instances": args.instances}}
        r = requests.post(f"{base}/apps/{args.guid}", json=payload, timeout=30)
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
