from __future__ import annotations

from typing import Dict, List

from .dates import add_days, today_iso
from .models import InventoryAnchor, PlanningState, ProductSpec, YardInventory


def sample_products() -> List[ProductSpec]:
    return [
        ProductSpec(
            sku="20oz",
            bottles_per_case=24,
            bottles_per_truck=26880,
            cases_per_pallet=70,
            scrap_percentage=1.5,
            production_rate=900,
            rate_unit="cases",
        ),
        ProductSpec(
            sku="1L",
            bottles_per_case=15,
            bottles_per_truck=18900,
            cases_per_pallet=60,
            scrap_percentage=1.0,
            production_rate=8400,
            rate_unit="bottles",
        ),
        ProductSpec(
            sku="2L",
            bottles_per_case=8,
            bottles_per_truck=9600,
            cases_per_pallet=50,
            scrap_percentage=2.0,
            production_rate=600,
            rate_unit="cases",
        ),
    ]


def sample_specs_by_sku() -> Dict[str, ProductSpec]:
    return {spec.sku: spec for spec in sample_products()}


def sample_state(sku: str = "20oz", today: str | None = None) -> PlanningState:
    # weekday runs only, morning count two days ago
    today = today or today_iso()
    demand: Dict[str, float] = {}
    for i in range(-2, 45):
        day = add_days(today, i)
        if i % 7 not in (5, 6):
            demand[day] = 2400
    inbound = {add_days(today, i): 2 for i in range(0, 10)}
    manifest = {
        add_days(today, 1): {
            "items": [
                {"po": "4500012001", "sku": sku, "carrier": "Ridge Freight"},
                {"po": "4500012002", "sku": sku, "carrier": "Ridge Freight"},
                {"po": "4500012003", "sku": sku, "carrier": "Lakeside"},
            ]
        }
    }
    return PlanningState(
        selected_sku=sku,
        today=today,
        monthly_demand=demand,
        monthly_production_actuals={add_days(today, -2): 2310, add_days(today, -1): 2455},
        monthly_inbound=inbound,
        po_manifest=manifest,
        inventory_anchor=InventoryAnchor(date=add_days(today, -2), count=38),
        yard_inventory=YardInventory(count=1, date=today),
        incoming_trucks=0,
        downtime_hours=0,
    )
