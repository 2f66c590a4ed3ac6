"""Command line interface for the shipment client."""

from shipment_client.cli.main import app

__all__ = ["app"]
