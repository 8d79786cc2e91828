"""
Packing slip snapshot model.

A snapshot is the denormalized state of a packing slip captured at the moment
it was saved. Snapshots are stored as opaque JSON blobs, one per revision, and
are only ever appended - never rewritten.

Reading a snapshot back goes through `parse_snapshot`, which validates the
shape of the blob. Structural problems (not JSON, not an object, `lines` not a
list, a line that is not an object) raise `SnapshotParseError`. Field-level
problems are tolerated: missing or non-string text becomes "", unusable
quantities become 0, unusable item ids become None.
"""

import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union


class SnapshotParseError(ValueError):
    """Raised when a stored snapshot blob does not have the expected shape."""


class LineKey(NamedTuple):
    """
    Identity of a snapshot line for diffing.

    item_ref is "id:<n>" when the line references a catalog item, otherwise
    "name:<item name>" lowercased. Two different items that share a name and
    have no id collapse into one key.
    """
    item_ref: str
    box_name: str
    box_number: str


def _text(value: Any) -> str:
    """Trimmed string value, or "" for anything that is not a string."""
    return value.strip() if isinstance(value, str) else ""


def _finite_number(value: Any) -> float:
    """Coerce a quantity to a finite float, falling back to 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        raw = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return 0.0
    else:
        return 0.0
    try:
        number = float(raw)
    except (OverflowError, ValueError):
        # Unparseable text, or integers beyond the float range
        return 0.0
    return number if math.isfinite(number) else 0.0


def _item_id(value: Any) -> Optional[int]:
    """Positive integral item id, or None."""
    if isinstance(value, bool) or value is None:
        return None
    number = _finite_number(value)
    if number > 0 and number.is_integer():
        return int(number)
    return None


def line_key(
    item_id: Optional[int],
    name: str,
    box_name: str,
    box_number: str
) -> LineKey:
    """
    Build the identity key for a line.

    Args:
        item_id: Catalog item id, if known
        name: Item name (used only when item_id is missing)
        box_name: Box name the line is packed in
        box_number: Box number the line is packed in

    Returns:
        LineKey with all string parts trimmed and lowercased
    """
    if item_id is not None:
        item_ref = f"id:{item_id}"
    else:
        item_ref = f"name:{_text(name).lower()}"
    return LineKey(item_ref, _text(box_name).lower(), _text(box_number).lower())


@dataclass(frozen=True)
class SnapshotLine:
    """One line item of a snapshot."""
    item_id: Optional[int]
    name: str
    unit: str
    notes: str
    qty: float
    box_name: str
    box_number: str

    @property
    def key(self) -> LineKey:
        return line_key(self.item_id, self.name, self.box_name, self.box_number)


@dataclass(frozen=True)
class Snapshot:
    """Immutable, point-in-time copy of a packing slip."""
    slip_no: str
    slip_date: str
    customer_name: str
    ship_to: str
    po_number: str
    box_number: str
    tracking_number: str
    lines: Tuple[SnapshotLine, ...] = ()


def _parse_line(raw_line: Any, index: int) -> SnapshotLine:
    if not isinstance(raw_line, dict):
        raise SnapshotParseError(
            f"Snapshot line {index} is {type(raw_line).__name__}, expected an object"
        )
    return SnapshotLine(
        item_id=_item_id(raw_line.get("itemId")),
        name=_text(raw_line.get("name")),
        unit=_text(raw_line.get("unit")),
        notes=_text(raw_line.get("notes")),
        qty=_finite_number(raw_line.get("qty")),
        box_name=_text(raw_line.get("boxName")),
        box_number=_text(raw_line.get("boxNumber")),
    )


def parse_snapshot(raw: Union[str, bytes, Dict[str, Any]]) -> Snapshot:
    """
    Deserialize and validate a stored snapshot.

    Args:
        raw: JSON blob as stored with the revision, or an already-decoded dict

    Returns:
        Snapshot instance

    Raises:
        SnapshotParseError: If the blob is not JSON or does not have the
            snapshot structure
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            raise SnapshotParseError(f"Snapshot is not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise SnapshotParseError(
            f"Snapshot is {type(data).__name__}, expected an object"
        )

    raw_lines = data.get("lines")
    if raw_lines is None:
        raw_lines = []
    elif not isinstance(raw_lines, list):
        raise SnapshotParseError(
            f"Snapshot lines is {type(raw_lines).__name__}, expected a list"
        )

    return Snapshot(
        slip_no=_text(data.get("slipNo")),
        slip_date=_text(data.get("slipDate")),
        customer_name=_text(data.get("customerName")),
        ship_to=_text(data.get("shipTo")),
        po_number=_text(data.get("poNumber")),
        box_number=_text(data.get("boxNumber")),
        tracking_number=_text(data.get("trackingNumber")),
        lines=tuple(_parse_line(line, i) for i, line in enumerate(raw_lines)),
    )


def try_parse_snapshot(raw: Union[str, bytes, Dict[str, Any]]) -> Optional[Snapshot]:
    """Like parse_snapshot, but returns None for unparseable snapshots."""
    try:
        return parse_snapshot(raw)
    except SnapshotParseError:
        return None


def isoformat_utc(value: Any) -> str:
    """ISO-8601 UTC string ("...Z") for a datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return _text(value)


def _optional(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def snapshot_from_slip(slip) -> Dict[str, Any]:
    """
    Build the snapshot mapping stored with a new revision of `slip`.

    Args:
        slip: A SlipRecord (or any object with the same attributes)

    Returns:
        JSON-ready dictionary using the stored snapshot field names
    """
    return {
        "slipNo": slip.slip_no,
        "slipDate": isoformat_utc(slip.slip_date),
        "customerName": slip.customer_name,
        "shipTo": slip.ship_to,
        "poNumber": _optional(slip.po_number),
        "boxNumber": _optional(slip.box_number),
        "trackingNumber": _optional(slip.tracking_number),
        "lines": [
            {
                "itemId": line.item_id,
                "name": line.item_name,
                "unit": line.unit,
                "notes": _optional(line.notes),
                "qty": line.qty,
                "boxName": _optional(line.box_name),
                "boxNumber": _optional(line.box_number),
            }
            for line in slip.lines
        ],
    }


def dump_snapshot(snapshot: Dict[str, Any]) -> str:
    """Serialize a snapshot mapping to the stored JSON blob."""
    return json.dumps(snapshot, ensure_ascii=False)
