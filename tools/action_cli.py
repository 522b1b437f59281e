from __future__ import annotations

"""
Command-line access to the action dispatch API.

Usage:
  python -m tools.action_cli list --app github
  python -m tools.action_cli execute GITHUB_CREATE_AN_ISSUE --params '{"owner": "composiohq", "repo": "agi", "title": "New Issue"}'
  python -m tools.action_cli connect github --credentials '{"access_token": "..."}' --entity-id alice
  python -m tools.action_cli connections --entity-id alice
"""

import argparse
import json
import logging
import sys
from typing import Any

from integrations.action_client import ActionClient, ActionClientError


logger = logging.getLogger(__name__)


def _json_arg(value: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Execute actions against connected applications")
    ap.add_argument("--url", default=None, help="Service base URL (defaults to SERVICE_URL)")
    ap.add_argument("--api-key", default=None, help="API key (defaults to API_KEY)")
    sub = ap.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List available actions")
    ls.add_argument("--app", default=None)

    ex = sub.add_parser("execute", help="Execute one action")
    ex.add_argument("action")
    ex.add_argument("--params", type=_json_arg, default={})
    ex.add_argument("--entity-id", default=None)
    ex.add_argument("--connected-account-id", default=None)

    co = sub.add_parser("connect", help="Store a connected account")
    co.add_argument("app")
    co.add_argument("--credentials", type=_json_arg, required=True)
    co.add_argument("--entity-id", default="default")
    co.add_argument("--auth-scheme", default="OAUTH2")

    cs = sub.add_parser("connections", help="List connected accounts")
    cs.add_argument("--entity-id", default=None)
    cs.add_argument("--app", default=None)
    return ap


def run(args: argparse.Namespace, client: ActionClient) -> int:
    if args.command == "list":
        for action in client.list_actions(app=args.app):
            print(f"{action['name']:<55} {action['description']}")
        return 0

    if args.command == "execute":
        result = client.execute_action(
            args.action,
            params=args.params,
            entity_id=args.entity_id,
            connected_account_id=args.connected_account_id,
        )
        print(json.dumps(result.model_dump(), indent=2, default=str))
        return 0 if result.successful else 1

    if args.command == "connect":
        account = client.create_connection(
            args.app, args.credentials, entity_id=args.entity_id, auth_scheme=args.auth_scheme
        )
        print(json.dumps(account, indent=2))
        return 0

    for conn in client.list_connections(entity_id=args.entity_id, app=args.app):
        print(f"{conn['id']}  {conn['entity_id']:<16} {conn['app']:<12} {conn['status']:<10} {conn['created_at']}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    with ActionClient(base_url=args.url, api_key=args.api_key) as client:
        try:
            return run(args, client)
        except ActionClientError as e:
            logger.error("Request failed: %s", e)
            print(f"error: {e}", file=sys.stderr)
            return 2


if __name__ == "__main__":
    sys.exit(main())
