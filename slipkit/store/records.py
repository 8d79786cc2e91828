"""
Record types exchanged with the data source.

These mirror the application's tables (items, vendors, packing slips, slip
lines and slip revisions) as plain dataclasses. Reports never talk to storage
directly; they receive these records from a DatabaseClient.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional


@dataclass
class ItemRecord:
    """A catalog item."""
    id: int
    sku: str
    name: str
    unit: str = "pcs"
    notes: Optional[str] = None
    is_active: bool = True


@dataclass
class VendorRecord:
    """A customer/vendor the company ships to."""
    id: int
    name: str
    address: str = ""
    gst_number: Optional[str] = None
    email: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None


@dataclass
class SlipLineRecord:
    """A line of a packing slip, with the item fields it is shown with."""
    item_id: Optional[int]
    qty: float
    item_name: str = ""
    sku: str = ""
    unit: str = ""
    notes: Optional[str] = None
    box_name: Optional[str] = None
    box_number: Optional[str] = None
    id: Optional[int] = None


@dataclass
class SlipRecord:
    """
    A packing slip header with its lines.

    id and slip_no are assigned by the data source when the slip is first
    saved.
    """
    customer_name: str
    ship_to: str
    slip_date: datetime
    lines: List[SlipLineRecord] = field(default_factory=list)
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    po_number: Optional[str] = None
    box_number: Optional[str] = None
    tracking_number: Optional[str] = None
    slip_no: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class ShipmentLine:
    """
    One slip line joined with its slip header.

    This is the row shape the quantity and ranking reports aggregate over.
    """
    slip_id: int
    slip_no: str
    slip_date: datetime
    customer_name: str
    vendor_id: Optional[int]
    vendor_name: Optional[str]
    item_id: Optional[int]
    sku: str
    item_name: str
    unit: str
    qty: float
    line_id: Optional[int] = None


def flatten_shipment_lines(slips: Iterable[SlipRecord]) -> List[ShipmentLine]:
    """
    Join every line with its slip header.

    Slips without lines contribute no rows.
    """
    rows = []
    for slip in slips:
        for line in slip.lines:
            rows.append(ShipmentLine(
                slip_id=slip.id,
                slip_no=slip.slip_no,
                slip_date=slip.slip_date,
                customer_name=slip.customer_name,
                vendor_id=slip.vendor_id,
                vendor_name=slip.vendor_name,
                item_id=line.item_id,
                sku=line.sku,
                item_name=line.item_name,
                unit=line.unit,
                qty=line.qty,
                line_id=line.id,
            ))
    return rows
