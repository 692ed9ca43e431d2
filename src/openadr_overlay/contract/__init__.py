"""OpenADR contract state: schema, codec, and payload variants."""

from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.contract.models import EventFields, EventType
from openadr_overlay.contract.payload import (
    EventPayload,
    PricePayload,
    ReportEntry,
    SimplePayload,
    UnknownPayload,
    append_report,
    decode_payload,
    encode_payload,
    report_log,
)
from openadr_overlay.contract.schema import ContractSchema

__all__ = [
    "ContractCodec",
    "ContractSchema",
    "EventFields",
    "EventType",
    "EventPayload",
    "SimplePayload",
    "PricePayload",
    "UnknownPayload",
    "ReportEntry",
    "decode_payload",
    "encode_payload",
    "append_report",
    "report_log",
]
