"""Reference implementation of the fleet REST API, for local use and tests."""

from pyfleet.server.app import create_app
from pyfleet.server.repository import FleetRepository

__all__ = ["FleetRepository", "create_app"]
