from __future__ import annotations

import csv
import io
import json
import re
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import InventoryAnchor, InventorySnapshot, PlanningEntry, ProductSpec, YardInventory

ENTRY_TYPES = ("demand_plan", "inbound_trucks", "production_actual")
SNAPSHOT_LOCATIONS = ("floor", "yard")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _rows(data: bytes | None) -> List[Dict[str, Any]]:
    """JSON array or CSV with a header row."""
    if not data:
        return []
    text = data.decode("utf-8-sig")
    if text.strip().startswith("["):
        return json.loads(text)
    reader = csv.DictReader(io.StringIO(text))
    return [{k.strip(): v for k, v in row.items() if k} for row in reader]


def _check_date(value: Any, row: Dict[str, Any]) -> str:
    text = str(value or "").strip()
    if not _ISO_DATE.match(text):
        raise ValueError(f"Date must be YYYY-MM-DD, got {text!r} in {row}")
    return text


def _optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def load_products(data: bytes | None) -> List[ProductSpec]:
    out = []
    for item in _rows(data):
        spec = ProductSpec(
            sku=str(item["sku"]),
            bottles_per_case=int(item.get("bottles_per_case", 0) or 0),
            bottles_per_truck=int(item.get("bottles_per_truck", 0) or 0),
            cases_per_pallet=int(item.get("cases_per_pallet", 0) or 0),
            scrap_percentage=float(item.get("scrap_percentage", 0) or 0),
            production_rate=float(item.get("production_rate", 0) or 0),
            rate_unit=str(item.get("rate_unit") or "cases"),
        )
        for name in ("bottles_per_case", "bottles_per_truck", "cases_per_pallet"):
            if getattr(spec, name) < 1:
                raise ValueError(f"{spec.sku}: {name} must be at least 1")
        if spec.scrap_percentage < 0:
            raise ValueError(f"{spec.sku}: scrap_percentage cannot be negative")
        if spec.rate_unit not in ("cases", "bottles"):
            raise ValueError(f"{spec.sku}: rate_unit must be 'cases' or 'bottles'")
        out.append(spec)
    return out


def load_planning_entries(data: bytes | None) -> List[PlanningEntry]:
    out = []
    for row in _rows(data):
        entry_type = str(row.get("entry_type", "")).strip()
        if entry_type not in ENTRY_TYPES:
            raise ValueError(f"Unknown entry_type {entry_type!r} in {row}")
        out.append(
            PlanningEntry(
                sku=str(row["sku"]),
                date=_check_date(row.get("date"), row),
                entry_type=entry_type,
                value=_optional_number(row.get("value")),
            )
        )
    return out


def entries_to_maps(
    entries: Iterable[PlanningEntry], sku: str
) -> Tuple[Dict[str, float], Dict[str, float], Dict[str, float]]:
    """Split entries for one SKU into (demand, actuals, inbound) maps.

    Later rows win for the same date. A blank value clears the date.
    """
    maps: Dict[str, Dict[str, float]] = {t: {} for t in ENTRY_TYPES}
    for entry in entries:
        if entry.sku != sku:
            continue
        target = maps[entry.entry_type]
        if entry.value is None:
            target.pop(entry.date, None)
        else:
            target[entry.date] = entry.value
    return maps["demand_plan"], maps["production_actual"], maps["inbound_trucks"]


def load_po_manifest(data: bytes | None, sku: Optional[str] = None) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    manifest: Dict[str, Dict[str, List[Dict[str, Any]]]] = defaultdict(lambda: {"items": []})
    for row in _rows(data):
        if sku is not None and str(row.get("sku") or "").strip() != sku:
            continue
        day = _check_date(row.get("date"), row)
        manifest[day]["items"].append(
            {
                "po": str(row.get("po", "")),
                "sku": row.get("sku"),
                "carrier": row.get("carrier"),
            }
        )
    return dict(manifest)


def load_inventory_snapshots(data: bytes | None) -> List[InventorySnapshot]:
    out = []
    for row in _rows(data):
        location = str(row.get("location", "floor")).strip()
        if location not in SNAPSHOT_LOCATIONS:
            raise ValueError(f"location must be floor or yard, got {location!r}")
        count = float(row.get("count", 0) or 0)
        if count < 0:
            raise ValueError(f"Inventory count cannot be negative in {row}")
        out.append(
            InventorySnapshot(
                sku=str(row["sku"]),
                date=_check_date(row.get("date"), row),
                count=count,
                location=location,
            )
        )
    return out


def latest_snapshot(
    snapshots: Iterable[InventorySnapshot], sku: str
) -> Tuple[Optional[InventoryAnchor], Optional[YardInventory]]:
    anchor: Optional[InventoryAnchor] = None
    yard: Optional[YardInventory] = None
    for snap in sorted(snapshots, key=lambda s: s.date):
        if snap.sku != sku:
            continue
        if snap.location == "floor":
            anchor = InventoryAnchor(date=snap.date, count=snap.count)
        else:
            yard = YardInventory(count=snap.count, date=snap.date)
    return anchor, yard
