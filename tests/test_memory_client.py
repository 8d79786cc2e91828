"""
Unit tests for the in-memory data source.

These tests verify that:
1. Every save appends exactly one revision with the next version
2. Slip numbers follow the configured format
3. Invalid slips are rejected with the application's messages
4. Dumps load items, vendors, slips and revisions
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from slipkit.snapshot import parse_snapshot
from slipkit.store import (
    DatabaseClient,
    ItemRecord,
    MemoryClient,
    SlipLineRecord,
    SlipRecord,
    VendorRecord,
    build_slip_number,
)


# =============================================================================
# FIXTURES
# =============================================================================

class StepClock:
    """Clock that advances one minute per call."""

    def __init__(self):
        self.now = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def client():
    """Client with two items and one vendor."""
    db = MemoryClient(clock=StepClock())
    db.add_item(ItemRecord(id=1, sku="BLT-1", name="Bolt"))
    db.add_item(ItemRecord(id=2, sku="NUT-1", name="Nut", unit="box"))
    db.add_vendor(VendorRecord(id=1, name="Nuts Co"))
    return db


def make_slip(**overrides) -> SlipRecord:
    """Helper to create an unsaved slip."""
    fields = dict(
        customer_name="Acme Traders",
        ship_to="12 Harbour Road",
        slip_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
        po_number="B-100",
        vendor_id=1,
        lines=[SlipLineRecord(item_id=1, qty=10, box_name="A", box_number="1")],
    )
    fields.update(overrides)
    return SlipRecord(**fields)


# =============================================================================
# SLIP NUMBER TESTS
# =============================================================================

class TestBuildSlipNumber:
    """Tests for slip number formats."""

    @pytest.mark.parametrize("fmt,expected", [
        (None, "PS-000042"),
        ("", "PS-000042"),
        ("   ", "PS-000042"),
        ("PS-{SEQ}", "PS-000042"),
        ("{SEQ}/2024", "000042/2024"),
        ("INV-0000", "INV-0042"),
        ("INV-00", "INV-42"),
        ("SLIP", "SLIP000042"),
    ])
    def test_formats(self, fmt, expected):
        assert build_slip_number(fmt, 42) == expected

    def test_wider_id_is_not_truncated(self):
        assert build_slip_number("INV-00", 1234) == "INV-1234"


class TestDatabaseClient:
    """Tests for the abstract interface."""

    @pytest.mark.parametrize("call", [
        lambda db: db.list_slips(),
        lambda db: db.get_slip(1),
        lambda db: db.list_revisions(),
        lambda db: db.get_revisions(1),
        lambda db: db.get_settings(),
    ])
    def test_methods_are_abstract(self, call):
        with pytest.raises(NotImplementedError):
            call(DatabaseClient())


# =============================================================================
# SAVE TESTS
# =============================================================================

class TestSaveSlip:
    """Tests for MemoryClient.save_slip."""

    def test_create_assigns_id_number_and_first_revision(self, client):
        saved = client.save_slip(make_slip())

        assert saved.id == 1
        assert saved.slip_no == "PS-000001"
        assert saved.vendor_name == "Nuts Co"
        assert saved.lines[0].item_name == "Bolt"
        assert saved.lines[0].id is not None

        revisions = client.get_revisions(saved.id)
        assert [r.version for r in revisions] == [1]
        snapshot = parse_snapshot(revisions[0].snapshot)
        assert snapshot.slip_no == "PS-000001"
        assert snapshot.lines[0].item_id == 1
        assert snapshot.lines[0].qty == 10

    def test_update_appends_next_version(self, client):
        saved = client.save_slip(make_slip())
        saved.lines[0].qty = 12
        saved.tracking_number = "TRK1"

        updated = client.save_slip(saved)

        assert updated.id == saved.id
        assert updated.slip_no == saved.slip_no
        assert updated.created_at == saved.created_at
        assert [r.version for r in client.get_revisions(saved.id)] == [1, 2]
        latest = parse_snapshot(client.get_revisions(saved.id)[-1].snapshot)
        assert latest.tracking_number == "TRK1"
        assert latest.lines[0].qty == 12

    def test_revisions_are_per_slip(self, client):
        first = client.save_slip(make_slip())
        second = client.save_slip(make_slip(po_number="B-200"))
        client.save_slip(first)

        assert [r.version for r in client.get_revisions(first.id)] == [1, 2]
        assert [r.version for r in client.get_revisions(second.id)] == [1]
        assert len(client.list_revisions()) == 3
        assert {r.slip_id for r in client.list_revisions()} == {first.id, second.id}

    def test_configured_number_format(self):
        db = MemoryClient(slip_number_format="INV-0000")
        db.add_item(ItemRecord(id=1, sku="BLT-1", name="Bolt"))

        saved = db.save_slip(make_slip(vendor_id=None))

        assert saved.slip_no == "INV-0001"

    def test_unusable_lines_are_dropped(self, client):
        saved = client.save_slip(make_slip(lines=[
            SlipLineRecord(item_id=1, qty=5),
            SlipLineRecord(item_id=None, qty=5),
            SlipLineRecord(item_id=2, qty=0),
        ]))

        assert [line.item_id for line in saved.lines] == [1]

    def test_reads_return_copies(self, client):
        saved = client.save_slip(make_slip())
        fetched = client.get_slip(saved.id)
        fetched.customer_name = "Changed"

        assert client.get_slip(saved.id).customer_name == "Acme Traders"
        assert client.get_slip(999) is None

    @pytest.mark.parametrize("overrides,message", [
        ({"customer_name": "  "}, "Customer name and Ship To are required."),
        ({"ship_to": ""}, "Customer name and Ship To are required."),
        ({"po_number": None}, "Bill No is required."),
        ({"vendor_id": 99}, "Vendor not found."),
        ({"lines": [SlipLineRecord(item_id=5, qty=1)]}, "Item 5 not found."),
        ({"lines": [SlipLineRecord(item_id=1, qty=0)]}, "Each line requires item and qty."),
        ({"id": 42}, "Packing slip 42 not found."),
    ])
    def test_validation(self, client, overrides, message):
        with pytest.raises(ValueError) as excinfo:
            client.save_slip(make_slip(**overrides))

        assert str(excinfo.value) == message
        assert client.list_revisions() == []

    def test_duplicate_bill_number(self, client):
        client.save_slip(make_slip(po_number="B-1"))

        with pytest.raises(ValueError, match="Bill No already exists on packing slip PS-000001"):
            client.save_slip(make_slip(po_number="B-1"))


# =============================================================================
# DUMP LOADING TESTS
# =============================================================================

class TestFromDict:
    """Tests for seeding a client from a dump."""

    @pytest.fixture
    def dump(self):
        return {
            "settings": {"slipNumberFormat": "DN-{SEQ}"},
            "items": [{"id": 1, "sku": "BLT-1", "name": "Bolt"}],
            "vendors": [{"id": 3, "name": "Nuts Co"}],
            "slips": [{
                "id": 7,
                "slipDate": "2024-03-05T10:00:00Z",
                "customerName": "Acme",
                "shipTo": "Dock 1",
                "vendorId": 3,
                "poNumber": "B-7",
                "lines": [{"itemId": 1, "qty": 4, "boxName": "A"}],
            }],
            "revisions": [
                {"id": 1, "slipId": 7, "version": 1, "createdAt": "2024-03-05T10:00:00Z",
                 "snapshot": {"customerName": "Acme", "lines": []}},
                {"id": 2, "slipId": 7, "version": 2, "createdAt": "2024-03-06T10:00:00",
                 "snapshot": "not json"},
            ],
        }

    def test_loads_records(self, dump):
        db = MemoryClient.from_dict(dump)

        slip = db.get_slip(7)
        assert slip.slip_no == "DN-000007"
        assert slip.vendor_name == "Nuts Co"
        assert slip.slip_date == datetime(2024, 3, 5, 10, tzinfo=timezone.utc)
        assert slip.lines[0].item_name == "Bolt"
        assert slip.lines[0].qty == 4.0

    def test_loads_revisions(self, dump):
        db = MemoryClient.from_dict(dump)

        revisions = db.get_revisions(7)
        assert [r.version for r in revisions] == [1, 2]
        assert json.loads(revisions[0].snapshot)["customerName"] == "Acme"
        assert revisions[1].snapshot == "not json"
        assert revisions[1].created_at.tzinfo is not None

    def test_new_slips_continue_sequence(self, dump):
        db = MemoryClient.from_dict(dump)

        saved = db.save_slip(make_slip(vendor_id=3, po_number="B-8"))

        assert saved.id == 8
        assert saved.slip_no == "DN-000008"
        assert [r.version for r in db.get_revisions(8)] == [1]

    def test_settings(self, dump):
        assert MemoryClient.from_dict(dump).get_settings() == {"slipNumberFormat": "DN-{SEQ}"}
        assert MemoryClient().get_settings() == {"slipNumberFormat": "PS-{SEQ}"}

    def test_from_json_file(self, dump, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text(json.dumps(dump), encoding="utf-8")

        db = MemoryClient.from_json_file(path)

        assert len(db.list_slips()) == 1
