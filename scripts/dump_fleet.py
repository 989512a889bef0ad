#!/usr/bin/env python3
"""Dump every vehicle and its maintenance history.

Talks to the API at ``FLEET_BASE_URL`` (default: a local server) through
:class:`pyfleet.FleetClient`, so results go through the same cache and
validation as any other consumer.

Usage
-----
::

    export FLEET_BASE_URL="http://localhost:5001/api"
    python scripts/dump_fleet.py

Options::

    --search TEXT        Only show vehicles whose model, type or status match
    --sort COLUMN        Sort by model, type or status
    --desc               Sort descending
    --json               Output as machine-readable JSON
    --skip-maintenance   Do not fetch maintenance history
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfleet import FleetClient, FleetConfig, FleetError, derive_vehicle_list  # noqa: E402
from pyfleet.state import FilterState, SortColumn, SortDirection  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump fleet vehicles and maintenance history")
    parser.add_argument("--search", default="", help="Filter on model, type or status")
    parser.add_argument("--sort", choices=[c.value for c in SortColumn], help="Sort column")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--skip-maintenance", action="store_true", help="Skip maintenance history")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = FleetConfig.from_env(persist_ui_state=False)
    filters = FilterState(
        search_query=args.search,
        sort_by=SortColumn(args.sort) if args.sort else None,
        sort_direction=SortDirection.DESC if args.desc else SortDirection.ASC,
    )

    result: dict[str, Any] = {"base_url": config.base_url, "vehicles": []}

    async with FleetClient(config) as client:
        try:
            vehicles = await client.get_vehicles()
        except FleetError as exc:
            print(f"Could not fetch vehicles: {exc}", file=sys.stderr)
            sys.exit(1)

        listing = derive_vehicle_list(vehicles, filters)
        for vehicle in listing.vehicles:
            entry: dict[str, Any] = {"vehicle": vehicle.to_wire()}
            if not args.skip_maintenance:
                try:
                    records = await client.get_maintenance_history(vehicle.id)
                except FleetError as exc:
                    entry["maintenance_error"] = str(exc)
                else:
                    entry["maintenance"] = [record.to_wire() for record in records]
            result["vehicles"].append(entry)

    if args.json_mode:
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return

    print(_section(f"VEHICLES ({len(listing.vehicles)} of {listing.total_count})"))
    if not listing.vehicles:
        print(f"  ({listing.empty_state.value})")
    for entry in result["vehicles"]:
        v = entry["vehicle"]
        print(f"\n  #{v['id']} {v['model']} [{v['type']}] {v['registrationNumber']}")
        print(f"    status          : {v['status']}")
        print(f"    location        : {v['location']}")
        print(f"    last maintenance: {v['lastMaintenance']}")
        if "maintenance_error" in entry:
            print(f"    maintenance     : error: {entry['maintenance_error']}")
        for record in entry.get("maintenance", []):
            cost = "-" if record["cost"] is None else f"{record['cost']:.2f}"
            print(f"    - {record['performedAt']}  {record['description']}  (cost {cost})")


if __name__ == "__main__":
    asyncio.run(main())
