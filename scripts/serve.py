#!/usr/bin/env python3
"""Run the reference fleet API server.

Data lives in memory and is lost on exit.

Usage
-----
::

    python scripts/serve.py --port 5001
    python scripts/serve.py --seed     # start with a few sample vehicles
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from aiohttp import web

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfleet.models import CreateVehicleRequest  # noqa: E402
from pyfleet.server import FleetRepository, create_app  # noqa: E402

_SAMPLE_VEHICLES = (
    {"model": "Ford Transit", "type": "Van", "registrationNumber": "FL-1001", "location": "Depot North"},
    {"model": "Toyota Camry", "type": "Sedan", "registrationNumber": "FL-1002", "location": "Head Office"},
    {"model": "Volvo FH16", "type": "Truck", "registrationNumber": "FL-1003", "location": "Depot South"},
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the fleet REST API from memory")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=5001, help="Port to listen on (default: 5001)")
    parser.add_argument("--seed", action="store_true", help="Start with sample vehicles")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO)

    repository = FleetRepository()
    if args.seed:
        for sample in _SAMPLE_VEHICLES:
            repository.create_vehicle(CreateVehicleRequest.model_validate(sample))

    web.run_app(create_app(repository), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
