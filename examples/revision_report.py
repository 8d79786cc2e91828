#!/usr/bin/env python3
"""Example: revision insights and shipment reports for a data dump.

Loads a JSON dump of items, vendors, slips and revisions into the in-memory
client, prints the revision timeline of the most edited slip and a few Top-N
reports, and optionally exports the top customers report.

Usage:
    python examples/revision_report.py [dump.json] [--from YYYY-MM-DD] [--to YYYY-MM-DD]
                                       [--export customers.xlsx]
"""

import argparse
import logging
from pathlib import Path

from slipkit import ReportExporter, ReportService, load_settings, parse_report_filters
from slipkit.store import MemoryClient

SAMPLE_DATA = Path(__file__).parent / "sample_data.json"


def print_timeline(selected: dict):
    """Pretty print the revision timeline of one slip."""
    print("=" * 60)
    print(f"Revision timeline: {selected['slipNo']} ({selected['customerName']})")
    print("=" * 60)
    print(f"Revisions: {selected['totalRevisions']}  Invalid snapshots: {selected['invalidSnapshots']}")
    print()

    for entry in selected["timeline"]:
        header = f"v{entry['version']}  {entry['createdAt']}"
        if entry["invalidSnapshot"]:
            print(f"{header}  [invalid snapshot]")
            continue

        diff = entry["diffSummary"]
        if diff is None:
            print(f"{header}  baseline, {entry['lineCount']} lines")
            continue

        changes = []
        if diff["linesAdded"]:
            changes.append(f"+{diff['linesAdded']} lines")
        if diff["linesRemoved"]:
            changes.append(f"-{diff['linesRemoved']} lines")
        if diff["qtyChanged"]:
            changes.append(f"{diff['qtyChanged']} qty changes")
        for flag, label in (("customerChanged", "customer"),
                            ("trackingChanged", "tracking"),
                            ("boxChanged", "box")):
            if diff[flag]:
                changes.append(f"{label} changed")
        print(f"{header}  {', '.join(changes) or 'no changes'}")

    summary = selected["summary"]
    print()
    print(f"Totals: +{summary['linesAdded']} / -{summary['linesRemoved']} lines, "
          f"{summary['qtyChanged']} qty changes")


def print_ranking(title: str, rows: list, label_key: str, value_keys: list):
    print()
    print(title)
    print("-" * len(title))
    for i, row in enumerate(rows, start=1):
        values = "  ".join(f"{key}={row[key]}" for key in value_keys)
        print(f"{i:>2}. {row[label_key]:<28} {values}")


def main():
    parser = argparse.ArgumentParser(description="Packing slip revision and shipment reports")
    parser.add_argument("dump", nargs="?", default=str(SAMPLE_DATA), help="JSON data dump")
    parser.add_argument("--from", dest="from_date", default="2024-03-01")
    parser.add_argument("--to", dest="to_date", default="2024-03-31")
    parser.add_argument("--export", help="Write the top customers report to this file")
    args = parser.parse_args()

    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = MemoryClient.from_json_file(args.dump)
    service = ReportService(db, settings=settings)
    filters = parse_report_filters(
        {"from": args.from_date, "to": args.to_date},
        settings=settings,
    )

    insights = service.revision_insights(filters)
    if insights["selectedSlip"]:
        print_timeline(insights["selectedSlip"])
    else:
        print("No revised slips in the selected range.")

    kpis = service.overview(filters)["kpis"]
    print()
    print(f"📊 {kpis['totalSlips']} slips, {kpis['totalLines']} lines, "
          f"{kpis['trackingPercent']}% with tracking")

    customers = service.top_customers(filters)["customers"]
    print_ranking("Top customers", customers, "customerName", ["slipCount", "totalQty"])
    print_ranking("Top items", service.top_items(filters)["items"], "name", ["totalQty", "lineCount"])
    print_ranking("Top vendors", service.top_vendors(filters)["vendors"], "vendorName", ["slipCount"])

    if args.export and customers:
        output = ReportExporter(sheet_title="Top customers").export(customers, args.export)
        print()
        print(f"✅ Exported top customers to {output}")


if __name__ == "__main__":
    main()
