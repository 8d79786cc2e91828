"""Data-source boundary: record types, the DatabaseClient interface and an in-memory client."""

from .records import (
    ItemRecord,
    VendorRecord,
    SlipLineRecord,
    SlipRecord,
    ShipmentLine,
    flatten_shipment_lines,
)
from .client import DatabaseClient, build_slip_number
from .memory_client import MemoryClient

__all__ = [
    "ItemRecord",
    "VendorRecord",
    "SlipLineRecord",
    "SlipRecord",
    "ShipmentLine",
    "flatten_shipment_lines",
    "DatabaseClient",
    "build_slip_number",
    "MemoryClient",
]
