"""Line protocol: lifecycle signals and data/log classification."""

from shipment_client.protocol.lifecycle import (
    PREFIX,
    SENTINEL,
    EndSignal,
    ErrorSignal,
    LifecycleSignal,
    StartSignal,
    SuccessSignal,
    is_lifecycle_line,
    parse_lifecycle_line,
)
from shipment_client.protocol.records import (
    CONTEXT_FIELD,
    RESULT_FIELD,
    ROOT_CONTEXT,
    DataRecord,
    LogLine,
    classify_record,
    loads_strict,
)

__all__ = [
    "CONTEXT_FIELD",
    "PREFIX",
    "RESULT_FIELD",
    "ROOT_CONTEXT",
    "SENTINEL",
    "DataRecord",
    "EndSignal",
    "ErrorSignal",
    "LifecycleSignal",
    "LogLine",
    "StartSignal",
    "SuccessSignal",
    "classify_record",
    "is_lifecycle_line",
    "loads_strict",
    "parse_lifecycle_line",
]
