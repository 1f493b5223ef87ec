"""
TrainerHub CLI entrypoint.

This CLI is intended for local setup and debugging without the HTTP API.
It delegates to the same modules the API uses.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from trainerhub.config.settings import get_settings
from trainerhub.core.geo import distance_km
from trainerhub.core.logging import configure_logging
from trainerhub.domain.errors import TrainerHubError
from trainerhub.domain.models import LocationType
from trainerhub.matching.search import resolve_location, search_trainers
from trainerhub.storage.database import init_db, session_scope


def _cmd_init_db(_: argparse.Namespace) -> int:
    init_db()
    print(f"Database ready: {get_settings().database.url}")
    return 0


def _cmd_distance(args: argparse.Namespace) -> int:
    print(f"{distance_km(args.from_lat, args.from_lon, args.to_lat, args.to_lon):.1f} km")
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    """Handle the `search` subcommand."""
    settings = get_settings()
    try:
        with session_scope() as db:
            location = resolve_location(
                db,
                location_id=args.location_id,
                training_id=args.training_id,
                location_type=LocationType(args.location_type) if args.location_type else None,
                lat=args.lat,
                lon=args.lon,
            )
            result = search_trainers(
                db,
                settings=settings,
                topic=args.topic,
                country=args.country,
                min_price=args.min_price,
                max_price=args.max_price,
                location=location,
                page=args.page,
                limit=args.limit,
            )
    except TrainerHubError as e:
        print(f"error: {e.message}")
        return 2

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"{result.pagination.total_count} trainer(s), page {result.pagination.page}/{result.pagination.total_pages}")
    for t in result.trainers:
        flag = "" if t.is_match is None else (" [match]" if t.is_match else " [near miss]")
        extra = ""
        if t.distance_info and t.distance_info.distance is not None:
            extra = f" {t.distance_info.distance:.1f} km"
        print(f"  #{t.id} {t.first_name} {t.last_name}{flag}{extra}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("trainerhub.api.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the TrainerHub CLI."""
    parser = argparse.ArgumentParser(prog="trainerhub")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Create database tables (safe to run repeatedly).")
    init.set_defaults(func=_cmd_init_db)

    dist = sub.add_parser("distance", help="Great-circle distance between two points in km.")
    dist.add_argument("--from-lat", required=True, type=float)
    dist.add_argument("--from-lon", required=True, type=float)
    dist.add_argument("--to-lat", required=True, type=float)
    dist.add_argument("--to-lon", required=True, type=float)
    dist.set_defaults(func=_cmd_distance)

    s = sub.add_parser("search", help="Search trainers, optionally matched against a location.")
    s.add_argument("--topic", type=str, default=None)
    s.add_argument("--country", type=str, default=None, help="ISO country code, e.g. DE")
    s.add_argument("--min-price", type=float, default=None)
    s.add_argument("--max-price", type=float, default=None)
    s.add_argument("--location-id", type=int, default=None)
    s.add_argument("--training-id", type=int, default=None)
    s.add_argument("--location-type", choices=[t.value for t in LocationType], default=None)
    s.add_argument("--lat", type=float, default=None)
    s.add_argument("--lon", type=float, default=None)
    s.add_argument("--page", type=int, default=1)
    s.add_argument("--limit", type=int, default=None)
    s.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    s.set_defaults(func=_cmd_search)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m trainerhub.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
