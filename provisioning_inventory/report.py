"""Assembles report rows and writes them as CSV or JSON.

Two output formats are supported:

- **CSV** (default): header with the twelve report columns, one line per
  application.  Booleans are written as ``True`` / ``False``, list-valued
  columns joined with ``"; "``.
- **JSON**: ``generated``, ``version``, ``summary`` and ``applications`` keys,
  suitable for downstream processing.

The terminal summary (total rows, rows with provisioning enabled) is printed
after the file is written.
"""

import csv
import datetime
import json
import os
from typing import Any, Dict, List, Optional

from . import console
from .models import COLUMNS, Application, AttributeSet, ProvisioningConfig, ReportRow

FILENAME_PREFIX = "okta_app_provisioning"
FORMATS = ("csv", "json")


def build_row(
    app: Application,
    provisioning_enabled: bool,
    config: Optional[ProvisioningConfig] = None,
    attributes: Optional[AttributeSet] = None,
) -> ReportRow:
    """Combine an app with its resolved details.  Absent details become defaults."""
    attributes = attributes or AttributeSet()
    return ReportRow(
        app_id=app.id,
        app_name=app.name,
        app_label=app.label,
        status=app.status,
        provisioning_enabled=provisioning_enabled,
        create=bool(config and config.create),
        update=bool(config and config.update),
        deactivate=bool(config and config.deactivate),
        sync_fields=attributes.names,
        attribute_sources=attributes.sources,
    )


class InventoryReport:
    """Rows accumulated in arrival order, plus run metadata."""

    def __init__(self, version: str = "", generated: Optional[datetime.datetime] = None):
        self.rows: List[ReportRow] = []
        self.version = version
        self.generated = generated or datetime.datetime.now()

    def add(self, row: ReportRow):
        self.rows.append(row)

    def __len__(self):
        return len(self.rows)

    @property
    def provisioning_enabled_count(self) -> int:
        return sum(1 for r in self.rows if r.provisioning_enabled)

    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.rows),
            "provisioning_enabled": self.provisioning_enabled_count,
            "active": sum(1 for r in self.rows if r.is_active),
            "with_sync_fields": sum(1 for r in self.rows if r.field_count),
        }

    def filename(self, fmt: str = "csv") -> str:
        return report_filename(self.generated, fmt)

    def write(self, path: str, fmt: str = "csv"):
        if fmt == "json":
            write_json(self.rows, path, meta={
                "generated": self.generated.isoformat(timespec="seconds"),
                "version": self.version,
                "summary": self.summary(),
            })
        else:
            write_csv(self.rows, path)


def report_filename(generated: datetime.datetime, fmt: str = "csv") -> str:
    """``okta_app_provisioning_20260101_093000.csv``"""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown report format {fmt!r}")
    return f"{FILENAME_PREFIX}_{generated.strftime('%Y%m%d_%H%M%S')}.{fmt}"


def _csv_value(value: Any) -> Any:
    # str(True) -> "True"; ints and strings are written as-is
    return str(value) if isinstance(value, bool) else value


def write_csv(rows: List[ReportRow], path: str):
    """Write rows with the report header.  An empty row list still gets a header."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: _csv_value(v) for k, v in row.to_dict().items()})


def write_json(rows: List[ReportRow], path: str, meta: Optional[Dict[str, Any]] = None):
    """Write rows as a JSON document with optional metadata keys ahead of ``applications``."""
    output: Dict[str, Any] = dict(meta or {})
    output["applications"] = [r.to_dict() for r in rows]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(output, f, indent=2)
        f.write("\n")


def print_summary(report: InventoryReport, path: Optional[str] = None):
    """Print the end-of-run summary block."""
    console.info("")
    console.heading("Okta Application Provisioning Inventory")
    console.info("=" * 50)
    console.info(f"  Applications:            {len(report)}")
    console.info(f"  Provisioning enabled:    {report.provisioning_enabled_count}")
    if path:
        console.success(f"  Report written to {os.path.abspath(path)}")
    console.info("")
