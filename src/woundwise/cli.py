"""
WoundWise CLI entrypoint.

This CLI is intended for quick local demos and debugging without a mobile client.
It delegates to the same session and staging helpers the API uses.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from woundwise.care.directions import directions_url
from woundwise.care.location import FixedLocationProvider
from woundwise.care.session import CareSearchSession
from woundwise.config.settings import get_settings
from woundwise.core.geo import GeoPoint
from woundwise.core.logging import configure_logging
from woundwise.ingestion.nominatim_client import NominatimClient
from woundwise.ingestion.overpass_client import OverpassClient
from woundwise.staging.prototype import StagingTable, build_staging_summary


def build_session() -> CareSearchSession:
    settings = get_settings()
    return CareSearchSession(
        settings,
        geocoder=NominatimClient(settings),
        facilities=OverpassClient(settings),
    )


def _cmd_staging(args: argparse.Namespace) -> int:
    """Handle the `staging` subcommand."""
    table = StagingTable.from_settings(get_settings())
    summary = build_staging_summary(table, selected=args.selected)

    if args.json:
        print(json.dumps(summary.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"{summary.confidence.label}: {summary.top_stage} ({summary.top_percent}%)")
    print(f"Viewing: {summary.selected_stage} ({summary.selected_percent}%)")
    print("Stage likelihoods:")
    for row in summary.stages:
        print(f"  - {row.stage}: {row.percent}% ({row.likelihood})")
    print(f"What to do (based on {summary.top_stage}): {summary.guidance.title}")
    for bullet in summary.guidance.bullets:
        print(f"  * {bullet}")
    return 0


def _cmd_care(args: argparse.Namespace) -> int:
    """Handle the `care` subcommand."""
    session = build_session()
    if args.query is not None:
        outcome = session.search_from_query(args.query)
    else:
        point = GeoPoint(lat=float(args.lat), lon=float(args.lon)) if args.lat is not None else None
        outcome = session.search_from_device(
            FixedLocationProvider(point=point, permission_granted=not args.deny_location)
        )

    if args.json:
        print(json.dumps(outcome.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0 if outcome.kind in ("results", "no_results") else 1

    if outcome.origin_label:
        print(f"Near: {outcome.origin_label}")
    if outcome.kind != "results":
        print(outcome.message)
        return 0 if outcome.kind == "no_results" else 1

    for i, r in enumerate(outcome.results, start=1):
        distance = f"{r.distance_miles:.1f} mi (approx)" if r.distance_miles is not None else "Distance unknown"
        print(f"{i:>2}. {r.name}  {distance}")
        if r.address:
            print(f"    {r.address}")
    return 0


def _cmd_directions(args: argparse.Namespace) -> int:
    print(directions_url(GeoPoint(lat=args.lat, lon=args.lon), label=args.label, platform=args.platform))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the WoundWise CLI."""
    parser = argparse.ArgumentParser(prog="woundwise")
    sub = parser.add_subparsers(dest="command", required=True)

    st = sub.add_parser("staging", help="Show the prototype stage likelihoods and guidance.")
    st.add_argument("--selected", type=str, default=None, help="Stage to view (defaults to the most likely)")
    st.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    st.set_defaults(func=_cmd_staging)

    care = sub.add_parser("care", help="Find hospitals/clinics near a location.")
    where = care.add_mutually_exclusive_group(required=True)
    where.add_argument("--query", type=str, help="ZIP code, address or place name")
    where.add_argument("--lat", type=float, help="Current latitude (use with --lon)")
    where.add_argument(
        "--deny-location", action="store_true", help="Simulate a refused location permission"
    )
    care.add_argument("--lon", type=float, default=None, help="Current longitude (use with --lat)")
    care.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    care.set_defaults(func=_cmd_care)

    dr = sub.add_parser("directions", help="Print a maps URL with directions to a point.")
    dr.add_argument("--lat", required=True, type=float)
    dr.add_argument("--lon", required=True, type=float)
    dr.add_argument("--label", type=str, default=None)
    dr.add_argument("--platform", choices=["ios", "android", "web"], default="android")
    dr.set_defaults(func=_cmd_directions)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m woundwise.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "lat", None) is not None and args.command == "care" and args.lon is None:
        parser.error("--lat requires --lon")
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
