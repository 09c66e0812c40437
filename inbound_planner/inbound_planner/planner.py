from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .dates import date_range, days_between
from .models import (
    InventoryAnchor,
    LedgerEntry,
    MRPResult,
    PlannedOrder,
    ProductSpec,
    YardInventory,
)
from .units import UnitFactors

logger = logging.getLogger(__name__)

LEDGER_DAYS = 30
MAX_REPLAY_DAYS = 365


def as_number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def has_po(date_str: str, po_manifest: Optional[Mapping[str, Any]]) -> bool:
    entry = (po_manifest or {}).get(date_str) or {}
    return len(entry.get("items") or []) > 0


def effective_trucks(
    date_str: str,
    monthly_inbound: Mapping[str, Any],
    po_manifest: Optional[Mapping[str, Any]],
) -> float:
    # confirmed POs replace the manual plan for the whole day
    if has_po(date_str, po_manifest):
        return len(po_manifest[date_str]["items"])
    return as_number(monthly_inbound.get(date_str))


def effective_demand_cases(
    date_str: str,
    today_str: str,
    monthly_demand: Mapping[str, Any],
    monthly_production_actuals: Mapping[str, Any],
) -> float:
    """Cases consumed on a date: the recorded actual, else the plan.

    A zero actual on a future date means "not entered yet" and falls back
    to the plan; a zero actual today or earlier is a real zero.
    """
    actual = monthly_production_actuals.get(date_str)
    if actual == "":
        actual = None
    is_future = date_str > today_str
    use_actual = actual is not None and (not is_future or as_number(actual) != 0)
    if use_actual:
        return as_number(actual)
    return as_number(monthly_demand.get(date_str))


def _replay_anchor(
    anchor: InventoryAnchor,
    today_str: str,
    units: UnitFactors,
    demand_cases: Callable[[str], float],
    trucks: Callable[[str], float],
) -> Tuple[float, bool]:
    pallets = as_number(anchor.count)
    if not anchor.date:
        return pallets, False
    diff_days = days_between(anchor.date, today_str)
    if diff_days <= 0:
        return pallets, False
    if diff_days >= MAX_REPLAY_DAYS:
        logger.warning(
            "Inventory anchor from %s is %d days old; using the raw count of %s pallets",
            anchor.date,
            diff_days,
            anchor.count,
        )
        return pallets, True
    for ds in date_range(anchor.date, diff_days):
        pallets = pallets + units.trucks_to_pallets(trucks(ds)) - units.cases_to_pallets(demand_cases(ds))
    return pallets, False


def _recommend_trucks(
    today_str: str,
    lead_time_days: int,
    on_hand_bottles: float,
    incoming_trucks: float,
    total_incoming_trucks: float,
    safety_target: float,
    units: UnitFactors,
    monthly_demand: Mapping[str, Any],
    trucks: Callable[[str], float],
) -> Tuple[int, float]:
    window = list(date_range(today_str, lead_time_days + 1))

    inbound_within_lead_time = incoming_trucks
    for ds in window:
        inbound_within_lead_time += trucks(ds)
    available = on_hand_bottles + units.trucks_to_bottles(inbound_within_lead_time)

    # planned demand only, actuals are not consulted here
    demand_within_lead_time = 0.0
    for ds in window:
        demand_within_lead_time += units.demand_bottles(as_number(monthly_demand.get(ds)))

    bottles_per_truck = units.bottles_per_truck
    total_need = demand_within_lead_time + safety_target

    if available < total_need:
        return math.ceil((total_need - available) / bottles_per_truck), 0
    if available > safety_target + demand_within_lead_time + bottles_per_truck:
        excess = available - (safety_target + demand_within_lead_time)
        if excess > bottles_per_truck:
            return 0, min(math.floor(excess / bottles_per_truck), total_incoming_trucks)
    return 0, 0


def _days_of_supply(ledger: List[LedgerEntry], start_balance: float) -> float:
    for index, day in enumerate(ledger):
        if day.balance < 0:
            prev_balance = ledger[index - 1].balance if index > 0 else start_balance
            partial = 0.0
            if day.demand > 0 and prev_balance > 0:
                partial = prev_balance / day.demand
            return index + partial
    return float(LEDGER_DAYS)


def _planned_orders(
    monthly_inbound: Mapping[str, Any],
    po_manifest: Mapping[str, Any],
) -> Dict[str, PlannedOrder]:
    orders: Dict[str, PlannedOrder] = {}
    for need_date, trucks in monthly_inbound.items():
        count = as_number(trucks)
        if count <= 0 or has_po(need_date, po_manifest):
            continue
        order = orders.setdefault(need_date, PlannedOrder())
        order.count += count
        order.items.append({"need_date": need_date, "trucks": count})
    return orders


def calculate_mrp(
    today_str: str,
    production_rate: float,
    downtime_hours: float,
    bottle_specs: Optional[ProductSpec],
    inventory_anchor: Optional[InventoryAnchor],
    yard_inventory: Optional[YardInventory],
    incoming_trucks: float,
    monthly_demand: Mapping[str, Any],
    monthly_production_actuals: Mapping[str, Any],
    monthly_inbound: Mapping[str, Any],
    po_manifest: Optional[Mapping[str, Any]],
    safety_stock_loads: float,
    lead_time_days: int = 2,
) -> Optional[MRPResult]:
    """Project floor inventory forward from the last physical count.

    Returns None when no product spec is available for the SKU.
    """
    if not bottle_specs:
        return None

    units = UnitFactors.from_spec(bottle_specs)
    demand = monthly_demand or {}
    actuals = monthly_production_actuals or {}
    inbound = monthly_inbound or {}
    manifest = po_manifest or {}
    anchor = inventory_anchor or InventoryAnchor(date=None, count=0)
    yard = yard_inventory or YardInventory(count=0)
    incoming = as_number(incoming_trucks)

    def demand_cases(ds: str) -> float:
        return effective_demand_cases(ds, today_str, demand, actuals)

    def trucks(ds: str) -> float:
        return effective_trucks(ds, inbound, manifest)

    total_scheduled_cases = 0.0
    for ds in sorted(set(demand) | set(actuals)):
        if ds >= today_str:
            total_scheduled_cases += demand_cases(ds)
    lost_production_cases = as_number(downtime_hours) * as_number(production_rate)
    effective_scheduled_cases = max(0.0, total_scheduled_cases - lost_production_cases)

    total_scheduled_inbound = 0.0
    for ds in sorted(set(inbound) | set(manifest)):
        if ds >= today_str:
            total_scheduled_inbound += trucks(ds)
    total_incoming_trucks = incoming + total_scheduled_inbound
    incoming_bottles = units.trucks_to_bottles(total_incoming_trucks)

    yard_loads = as_number(yard.count)
    yard_bottles = units.trucks_to_bottles(yard_loads)

    derived_pallets, stale_anchor = _replay_anchor(anchor, today_str, units, demand_cases, trucks)
    floor_bottles = units.pallets_to_bottles(derived_pallets)

    scheduled_demand_bottles = units.demand_bottles(effective_scheduled_cases)
    net_inventory = (floor_bottles + incoming_bottles + yard_bottles) - scheduled_demand_bottles

    safety_target = as_number(safety_stock_loads) * units.bottles_per_truck
    overflow_level = safety_target + units.bottles_per_truck * 2

    start_balance = floor_bottles + yard_bottles
    balance = start_balance
    ledger: List[LedgerEntry] = []
    first_stockout_date: Optional[str] = None
    first_overflow_date: Optional[str] = None

    for ds in date_range(today_str, LEDGER_DAYS):
        day_demand = units.demand_bottles(demand_cases(ds))
        day_supply = units.trucks_to_bottles(trucks(ds))
        balance = balance + day_supply - day_demand
        ledger.append(
            LedgerEntry(
                date=ds,
                balance=balance,
                demand=day_demand,
                supply=day_supply,
                projected_pallets=units.bottles_to_pallets(balance),
            )
        )
        if balance < safety_target and first_stockout_date is None:
            first_stockout_date = ds
        if balance > overflow_level and first_overflow_date is None:
            first_overflow_date = ds

    trucks_to_order, trucks_to_cancel = _recommend_trucks(
        today_str=today_str,
        lead_time_days=int(lead_time_days),
        on_hand_bottles=start_balance,
        incoming_trucks=incoming,
        total_incoming_trucks=total_incoming_trucks,
        safety_target=safety_target,
        units=units,
        monthly_demand=demand,
        trucks=trucks,
    )

    return MRPResult(
        today=today_str,
        net_inventory=net_inventory,
        safety_target=safety_target,
        trucks_to_order=trucks_to_order,
        trucks_to_cancel=trucks_to_cancel,
        lost_production_cases=lost_production_cases,
        total_scheduled_cases=total_scheduled_cases,
        effective_scheduled_cases=effective_scheduled_cases,
        specs=bottle_specs,
        yard_inventory={
            "count": yard.count,
            "date": yard.date,
            "effective_count": yard_loads,
            "is_overridden": False,
        },
        daily_ledger=ledger,
        first_stockout_date=first_stockout_date,
        first_overflow_date=first_overflow_date,
        total_incoming_trucks=total_incoming_trucks,
        initial_inventory=start_balance,
        calculated_pallets=derived_pallets,
        days_of_supply=_days_of_supply(ledger, start_balance),
        inventory_anchor=anchor,
        planned_orders=_planned_orders(inbound, manifest),
        stale_anchor=stale_anchor,
    )
