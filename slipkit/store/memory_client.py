"""
In-process DatabaseClient implementation.

Keeps items, vendors, slips and revisions in dictionaries guarded by a lock.
It can be seeded from a JSON dump of the application's tables, which is how
the example scripts and tests use it.

Dump format (all keys optional):
    {
      "settings":  {"slipNumberFormat": "PS-{SEQ}"},
      "items":     [{"id": 1, "sku": "...", "name": "...", "unit": "pcs"}],
      "vendors":   [{"id": 1, "name": "...", "address": "..."}],
      "slips":     [{"id": 1, "slipNo": "...", "slipDate": "2024-01-01T00:00:00Z",
                     "customerName": "...", "shipTo": "...", "vendorId": 1,
                     "lines": [{"itemId": 1, "qty": 2, "boxName": "A"}]}],
      "revisions": [{"id": 1, "slipId": 1, "version": 1,
                     "createdAt": "...", "snapshot": "<json blob>"}]
    }
"""

import copy
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..diff.timeline import RevisionRecord
from ..snapshot.model import dump_snapshot, snapshot_from_slip
from .client import DatabaseClient, build_slip_number
from .records import ItemRecord, SlipLineRecord, SlipRecord, VendorRecord

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from a dump; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class MemoryClient(DatabaseClient):
    """
    DatabaseClient backed by in-memory dictionaries.

    Safe to share between threads; every operation holds the client's lock.
    """

    def __init__(
        self,
        slip_number_format: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        """
        Initialize an empty store.

        Args:
            slip_number_format: Format used for new slip numbers
                (see build_slip_number)
            clock: Returns the current time; used for created_at stamps
        """
        self.slip_number_format = slip_number_format
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[int, ItemRecord] = {}
        self._vendors: Dict[int, VendorRecord] = {}
        self._slips: Dict[int, SlipRecord] = {}
        self._revisions: Dict[int, List[RevisionRecord]] = {}
        self._next_slip_id = 1
        self._next_line_id = 1
        self._next_revision_id = 1

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs) -> "MemoryClient":
        """Build a client from a decoded dump (see module docstring)."""
        settings = data.get("settings") or {}
        kwargs.setdefault("slip_number_format", settings.get("slipNumberFormat"))
        client = cls(**kwargs)

        for item in data.get("items") or []:
            client.add_item(ItemRecord(
                id=int(item["id"]),
                sku=item.get("sku") or "",
                name=item.get("name") or "",
                unit=item.get("unit") or "pcs",
                notes=item.get("notes"),
                is_active=bool(item.get("isActive", True)),
            ))

        for vendor in data.get("vendors") or []:
            client.add_vendor(VendorRecord(
                id=int(vendor["id"]),
                name=vendor.get("name") or "",
                address=vendor.get("address") or "",
                gst_number=vendor.get("gstNumber"),
                email=vendor.get("email"),
                contact_name=vendor.get("contactName"),
                contact_phone=vendor.get("contactPhone"),
            ))

        for slip in data.get("slips") or []:
            client._load_slip(slip)

        for revision in data.get("revisions") or []:
            client._load_revision(revision)

        return client

    @classmethod
    def from_json_file(cls, path: Union[str, Path], **kwargs) -> "MemoryClient":
        """Build a client from a JSON dump file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data, **kwargs)

    def add_item(self, item: ItemRecord) -> None:
        with self._lock:
            self._items[item.id] = copy.deepcopy(item)

    def add_vendor(self, vendor: VendorRecord) -> None:
        with self._lock:
            self._vendors[vendor.id] = copy.deepcopy(vendor)

    def _load_slip(self, raw: Dict[str, Any]) -> None:
        slip_id = int(raw["id"])
        vendor_id = raw.get("vendorId")
        vendor = self._vendors.get(vendor_id) if vendor_id is not None else None

        lines = []
        for raw_line in raw.get("lines") or []:
            item_id = raw_line.get("itemId")
            item = self._items.get(item_id) if item_id is not None else None
            line_id = raw_line.get("id")
            if line_id is None:
                line_id = self._next_line_id
            self._next_line_id = max(self._next_line_id, int(line_id) + 1)
            lines.append(SlipLineRecord(
                id=int(line_id),
                item_id=item_id,
                qty=float(raw_line.get("qty") or 0),
                item_name=item.name if item else "",
                sku=item.sku if item else "",
                unit=item.unit if item else "",
                notes=item.notes if item else None,
                box_name=raw_line.get("boxName"),
                box_number=raw_line.get("boxNumber"),
            ))

        slip_date = _parse_datetime(raw.get("slipDate")) or self._clock()
        self._slips[slip_id] = SlipRecord(
            id=slip_id,
            slip_no=raw.get("slipNo") or build_slip_number(self.slip_number_format, slip_id),
            customer_name=raw.get("customerName") or "",
            ship_to=raw.get("shipTo") or "",
            slip_date=slip_date,
            vendor_id=vendor_id,
            vendor_name=vendor.name if vendor else None,
            po_number=raw.get("poNumber"),
            box_number=raw.get("boxNumber"),
            tracking_number=raw.get("trackingNumber"),
            created_at=_parse_datetime(raw.get("createdAt")) or slip_date,
            lines=lines,
        )
        self._next_slip_id = max(self._next_slip_id, slip_id + 1)

    def _load_revision(self, raw: Dict[str, Any]) -> None:
        revision_id = int(raw["id"])
        slip_id = int(raw["slipId"])
        snapshot = raw.get("snapshot")
        if isinstance(snapshot, (dict, list)):
            snapshot = json.dumps(snapshot)
        self._revisions.setdefault(slip_id, []).append(RevisionRecord(
            revision_id=revision_id,
            version=int(raw["version"]),
            created_at=_parse_datetime(raw.get("createdAt")) or self._clock(),
            snapshot=snapshot if snapshot is not None else "",
            slip_id=slip_id,
        ))
        self._next_revision_id = max(self._next_revision_id, revision_id + 1)

    # ------------------------------------------------------------------
    # DatabaseClient
    # ------------------------------------------------------------------

    def list_slips(self) -> List[SlipRecord]:
        with self._lock:
            return [copy.deepcopy(slip) for _, slip in sorted(self._slips.items())]

    def get_slip(self, slip_id: int) -> Optional[SlipRecord]:
        with self._lock:
            slip = self._slips.get(slip_id)
            return copy.deepcopy(slip) if slip else None

    def list_revisions(self) -> List[RevisionRecord]:
        with self._lock:
            revisions = [r for slip_revisions in self._revisions.values() for r in slip_revisions]
            revisions.sort(key=lambda r: r.revision_id)
            return copy.deepcopy(revisions)

    def get_revisions(self, slip_id: int) -> List[RevisionRecord]:
        with self._lock:
            revisions = sorted(self._revisions.get(slip_id, []), key=lambda r: r.version)
            return copy.deepcopy(revisions)

    def get_settings(self) -> Dict[str, Any]:
        return {
            "slipNumberFormat": (self.slip_number_format or "").strip() or "PS-{SEQ}",
        }

    def save_slip(self, slip: SlipRecord) -> SlipRecord:
        with self._lock:
            stored = self._validate(slip)

            if stored.id is None:
                stored.id = self._next_slip_id
                self._next_slip_id += 1
                stored.slip_no = build_slip_number(self.slip_number_format, stored.id)
                stored.created_at = self._clock()
            else:
                existing = self._slips[stored.id]
                stored.slip_no = existing.slip_no
                stored.created_at = existing.created_at

            for line in stored.lines:
                line.id = self._next_line_id
                self._next_line_id += 1

            self._slips[stored.id] = stored
            revision = self._append_revision(stored)
            logger.debug(
                "Saved slip %s (%s) as revision version %s",
                stored.id, stored.slip_no, revision.version
            )
            return copy.deepcopy(stored)

    # ------------------------------------------------------------------
    # Internals (lock must be held)
    # ------------------------------------------------------------------

    def _validate(self, slip: SlipRecord) -> SlipRecord:
        """Normalize a slip for storage, resolving vendor and item fields."""
        customer_name = (slip.customer_name or "").strip()
        ship_to = (slip.ship_to or "").strip()
        po_number = _clean(slip.po_number)

        if not customer_name or not ship_to:
            raise ValueError("Customer name and Ship To are required.")
        if not po_number:
            raise ValueError("Bill No is required.")
        if slip.id is not None and slip.id not in self._slips:
            raise ValueError(f"Packing slip {slip.id} not found.")

        for other in self._slips.values():
            if other.id != slip.id and other.po_number == po_number:
                raise ValueError(
                    f"Bill No already exists on packing slip {other.slip_no}."
                )

        vendor = None
        if slip.vendor_id is not None:
            vendor = self._vendors.get(slip.vendor_id)
            if vendor is None:
                raise ValueError("Vendor not found.")

        lines = []
        for line in slip.lines:
            if not isinstance(line.item_id, int) or line.item_id <= 0 or not line.qty > 0:
                continue
            item = self._items.get(line.item_id)
            if item is None:
                raise ValueError(f"Item {line.item_id} not found.")
            lines.append(SlipLineRecord(
                item_id=item.id,
                qty=float(line.qty),
                item_name=item.name,
                sku=item.sku,
                unit=item.unit,
                notes=item.notes,
                box_name=_clean(line.box_name),
                box_number=_clean(line.box_number),
            ))
        if not lines:
            raise ValueError("Each line requires item and qty.")

        return SlipRecord(
            id=slip.id,
            customer_name=customer_name,
            ship_to=ship_to,
            slip_date=slip.slip_date or self._clock(),
            vendor_id=vendor.id if vendor else None,
            vendor_name=vendor.name if vendor else None,
            po_number=po_number,
            box_number=_clean(slip.box_number),
            tracking_number=_clean(slip.tracking_number),
            lines=lines,
        )

    def _append_revision(self, slip: SlipRecord) -> RevisionRecord:
        revisions = self._revisions.setdefault(slip.id, [])
        version = max((r.version for r in revisions), default=0) + 1
        revision = RevisionRecord(
            revision_id=self._next_revision_id,
            version=version,
            created_at=self._clock(),
            snapshot=dump_snapshot(snapshot_from_slip(slip)),
            slip_id=slip.id,
        )
        self._next_revision_id += 1
        revisions.append(revision)
        return revision
