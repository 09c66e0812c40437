"""
Shared fixtures for the planner tests.
"""
import pytest

from inbound_planner.models import (
    InventoryAnchor,
    PlanningState,
    ProductSpec,
    SchedulerSettings,
    YardInventory,
)

TODAY = "2025-01-01"


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def spec():
    """10 bottles/case, 10 cases/pallet, 1000 bottles/truck: one truck is 10 pallets."""
    return ProductSpec(
        sku="TEST_SKU",
        bottles_per_case=10,
        bottles_per_truck=1000,
        cases_per_pallet=10,
        scrap_percentage=0,
        production_rate=100,
    )


@pytest.fixture
def specs_by_sku(spec):
    return {spec.sku: spec}


@pytest.fixture
def base_params(spec):
    """Keyword arguments for calculate_mrp; 10 pallets on the floor = 1000 bottles."""
    return {
        "today_str": TODAY,
        "production_rate": 100,
        "downtime_hours": 0,
        "bottle_specs": spec,
        "inventory_anchor": InventoryAnchor(date=TODAY, count=10),
        "yard_inventory": YardInventory(count=0, date=TODAY),
        "incoming_trucks": 0,
        "monthly_demand": {},
        "monthly_production_actuals": {},
        "monthly_inbound": {},
        "po_manifest": {},
        "safety_stock_loads": 1,
    }


@pytest.fixture
def scheduler():
    return SchedulerSettings(lead_time_days=2)


@pytest.fixture
def make_state(spec):
    def _make(**overrides):
        values = {
            "selected_sku": spec.sku,
            "today": TODAY,
            "inventory_anchor": InventoryAnchor(date=TODAY, count=10),
            "yard_inventory": YardInventory(count=0, date=TODAY),
        }
        values.update(overrides)
        return PlanningState(**values)

    return _make
