"""Client for shipment servers.

Invokes remote actions over HTTP and splits their streamed output into a
lifecycle channel (start / success / error / end) and a data channel
(structured records, log lines and the captured result).
"""

__version__ = "0.3.0"

from shipment_client.actions import Action, ActionTable
from shipment_client.client import ShipmentClient, ShipmentClientConfig
from shipment_client.exceptions import (
    AppNameMismatchError,
    ConfigurationError,
    IncompleteRunError,
    ProtocolDecodeError,
    ProtocolError,
    RemoteError,
    RemoteStatusError,
    ShipmentError,
    StreamClosedError,
    TransportError,
    UnknownActionError,
)
from shipment_client.protocol import (
    EndSignal,
    ErrorSignal,
    LifecycleSignal,
    StartSignal,
    SuccessSignal,
)
from shipment_client.tracker import Tracker

__all__ = [
    # Client
    "Action",
    "ActionTable",
    "ShipmentClient",
    "ShipmentClientConfig",
    "Tracker",
    # Lifecycle signals
    "EndSignal",
    "ErrorSignal",
    "LifecycleSignal",
    "StartSignal",
    "SuccessSignal",
    # Errors
    "AppNameMismatchError",
    "ConfigurationError",
    "IncompleteRunError",
    "ProtocolDecodeError",
    "ProtocolError",
    "RemoteError",
    "RemoteStatusError",
    "ShipmentError",
    "StreamClosedError",
    "TransportError",
    "UnknownActionError",
    "__version__",
]
