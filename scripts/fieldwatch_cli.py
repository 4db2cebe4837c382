#!/usr/bin/env python3
"""Command-line access to the FieldWatch monitoring API."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import sys
from pathlib import Path

import httpx
from pydantic import ValidationError

# Ensure the project source is importable when running the script directly.
_project_root = Path(__file__).resolve().parent.parent
_src = _project_root / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from fieldwatch.api.client import FieldWatchClient  # noqa: E402
from fieldwatch.auth.session import SessionContext  # noqa: E402
from fieldwatch.auth.store import create_token_store  # noqa: E402
from fieldwatch.core.config import Settings  # noqa: E402
from fieldwatch.core.errors import FieldWatchError  # noqa: E402
from fieldwatch.core.log import configure_logging  # noqa: E402
from fieldwatch.dashboard.map_view import build_map_view  # noqa: E402
from fieldwatch.dashboard.projects import build_project_cards  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Query projects, sensor nodes and parcel maps from the monitoring API."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and store the session tokens.")
    login.add_argument("username")
    login.add_argument("--password", default=None, help="Prompted for when omitted.")

    sub.add_parser("projects", help="List projects with their nodes and FWI alerts.")

    map_cmd = sub.add_parser("map", help="Decode a project's parcels into map data.")
    map_cmd.add_argument("project_id", type=int)

    sub.add_parser("logout", help="End the session and forget the stored tokens.")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> object:
    session = SessionContext(create_token_store(settings.session))
    async with FieldWatchClient(settings.api, session) as client:
        if args.command == "login":
            password = args.password if args.password is not None else getpass.getpass()
            result = await client.login(args.username, password)
            return {"pseudo": result.pseudo, "state": session.state.value}

        if args.command == "projects":
            payload = await client.fetch_projects()
            cards = build_project_cards(
                payload.projects,
                payload.nodes,
                threshold=settings.alert.fwi_threshold,
                attachment_url=client.attachment_url,
            )
            return [
                {**card.model_dump(mode="json"), "alerts": [a.message for a in card.alerts]}
                for card in cards
            ]

        if args.command == "map":
            payload = await client.fetch_parcels(args.project_id)
            nodes = []
            if session.is_authenticated:
                listing = await client.fetch_projects()
                nodes = [n for n in listing.nodes if n.parcelle == args.project_id]
            view = build_map_view(
                payload.parcelles,
                nodes,
                city_center=payload.city_data,
                config=settings.map,
                threshold=settings.alert.fwi_threshold,
            )
            return view.model_dump(mode="json")

        await client.logout()
        return {"state": session.state.value}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = Settings()
    configure_logging(settings)
    try:
        result = asyncio.run(run(args, settings))
    except (FieldWatchError, httpx.HTTPError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Error: unexpected response from the API: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
