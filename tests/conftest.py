"""Shared test fixtures for the shipment client."""

import pytest

from shipment_client.settings import Settings
from tests.helpers.shipment_server import ENDPOINT, FakeShipmentServer, to_upper


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment="testing",
        shipment_endpoint=ENDPOINT,
        shipment_timeout=5.0,
    )


@pytest.fixture
def mock_settings(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Make every get_settings() call return the test settings."""
    for target in (
        "shipment_client.settings.get_settings",
        "shipment_client.client.get_settings",
        "shipment_client.logging_config.get_settings",
        "shipment_client.cli.main.get_settings",
    ):
        monkeypatch.setattr(target, lambda: test_settings)
    return test_settings


@pytest.fixture
def server() -> FakeShipmentServer:
    """Fake server exposing the ``to-upper`` demo action."""
    fake = FakeShipmentServer()
    fake.script("to-upper", to_upper, description="Upper-case a message")
    return fake
