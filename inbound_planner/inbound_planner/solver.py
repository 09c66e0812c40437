from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from .dates import add_days, today_iso
from .models import (
    MRPResult,
    PlanChange,
    PlanningState,
    ProductSpec,
    SchedulerSettings,
    SolveResult,
)
from .planner import as_number, has_po

logger = logging.getLogger(__name__)

DEFAULT_LEAD_TIME_DAYS = 2


def _tidy(value: float) -> float:
    return int(value) if float(value).is_integer() else value


def frozen_until(today_str: str, lead_time_days: int) -> str:
    """Last date whose truck plan can no longer change."""
    return add_days(today_str, max(0, int(lead_time_days) - 1))


def solve(
    current_results: Optional[MRPResult],
    safety_stock_loads: float,
    specs_by_sku: Mapping[str, ProductSpec],
    selected_sku: str,
    scheduler_settings: Optional[SchedulerSettings],
    state: PlanningState,
    effective_lead_time: Optional[int] = None,
) -> Optional[SolveResult]:
    """Draft a truck plan that keeps every unfrozen day inside the safety band.

    Walks the projected days once, in date order. Trucks added or removed on
    a day are carried forward in ``cumulative_added_bottles`` so later days
    are judged against the patched plan rather than the incoming projection.

    Returns None, leaving the caller's plan alone, when the results or the
    product spec are missing.
    """
    daily_results = getattr(current_results, "daily_results", None) if current_results is not None else None
    specs = (specs_by_sku or {}).get(selected_sku) if selected_sku else None
    if current_results is None or not daily_results or not selected_sku or specs is None:
        logger.warning(
            "Solver: missing data (sku=%r, has_results=%s, has_spec=%s)",
            selected_sku,
            bool(daily_results),
            specs is not None,
        )
        return None

    bottles_per_truck = specs.bottles_per_truck or 1
    default_target = as_number(safety_stock_loads) * bottles_per_truck

    today_str = getattr(current_results, "today", None) or state.today or today_iso()
    lead_time = effective_lead_time
    if lead_time is None:
        lead_time = getattr(scheduler_settings, "lead_time_days", None)
    if lead_time is None:
        lead_time = DEFAULT_LEAD_TIME_DAYS
    frozen = frozen_until(today_str, lead_time)

    actuals = state.monthly_production_actuals or {}
    manifest = state.po_manifest or {}
    planned_inbound: Dict[str, Any] = dict(state.monthly_inbound or {})
    changes: List[PlanChange] = []
    cumulative_added_bottles = 0.0

    for day in sorted(daily_results, key=lambda d: d.date_str):
        ds = day.date_str
        adjusted_inventory = day.projected_end_inventory + cumulative_added_bottles

        if ds <= frozen:
            continue
        # recorded production is history
        if actuals.get(ds):
            continue
        # confirmed POs decide the truck count, the manual plan is ignored there
        if has_po(ds, manifest):
            continue

        safety_target = day.safety_stock_target or default_target
        current_plan = as_number(planned_inbound.get(ds))

        if adjusted_inventory < safety_target:
            trucks_needed = math.ceil((safety_target - adjusted_inventory) / bottles_per_truck)
            if trucks_needed > 0:
                new_plan = _tidy(current_plan + trucks_needed)
                planned_inbound[ds] = new_plan
                changes.append(PlanChange(date=ds, before=_tidy(current_plan), after=new_plan))
                cumulative_added_bottles += trucks_needed * bottles_per_truck
                logger.debug("Solver: %s short by %.0f bottles, +%d trucks", ds, safety_target - adjusted_inventory, trucks_needed)
        elif adjusted_inventory > safety_target + bottles_per_truck and current_plan > 0:
            max_removable = math.floor((adjusted_inventory - safety_target) / bottles_per_truck)
            to_remove = min(max_removable, current_plan)
            if to_remove > 0:
                new_plan = _tidy(current_plan - to_remove)
                planned_inbound[ds] = new_plan
                changes.append(PlanChange(date=ds, before=_tidy(current_plan), after=new_plan))
                cumulative_added_bottles -= to_remove * bottles_per_truck
                logger.debug("Solver: %s over target, -%s trucks", ds, to_remove)

    if changes:
        logger.info("Solver: %d day(s) replanned for %s", len(changes), selected_sku)
    return SolveResult(new_inbound=planned_inbound, updates_count=len(changes), changes=changes)
