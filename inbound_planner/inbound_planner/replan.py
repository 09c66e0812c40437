from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional

from .config import Settings
from .dates import today_iso
from .models import (
    MRPResult,
    PlanChange,
    PlanningState,
    ProductSpec,
    ReplanOutcome,
    SolveResult,
)
from .planner import as_number, calculate_mrp
from .solver import solve

logger = logging.getLogger(__name__)


def project(
    state: PlanningState,
    specs_by_sku: Mapping[str, ProductSpec],
    settings: Settings,
) -> Optional[MRPResult]:
    spec = specs_by_sku.get(state.selected_sku)
    if spec is None:
        logger.warning("No product spec for %r; cannot project inventory", state.selected_sku)
        return None
    return calculate_mrp(
        today_str=state.today or today_iso(),
        production_rate=spec.production_rate,
        downtime_hours=state.downtime_hours,
        bottle_specs=spec,
        inventory_anchor=state.inventory_anchor,
        yard_inventory=state.yard_inventory,
        incoming_trucks=state.incoming_trucks,
        monthly_demand=state.monthly_demand,
        monthly_production_actuals=state.monthly_production_actuals,
        monthly_inbound=state.monthly_inbound,
        po_manifest=state.po_manifest,
        safety_stock_loads=settings.safety_stock_loads,
        lead_time_days=settings.lead_time_days,
    )


def diff_plans(before: Mapping[str, Any], after: Mapping[str, Any]) -> List[PlanChange]:
    changes = []
    for ds in sorted(set(before) | set(after)):
        old = as_number(before.get(ds))
        new = as_number(after.get(ds))
        if old != new:
            changes.append(PlanChange(date=ds, before=old, after=new))
    return changes


def apply_proposal(state: PlanningState, proposal: SolveResult) -> PlanningState:
    # days planned down to zero trucks are dropped from the plan
    inbound = {ds: trucks for ds, trucks in proposal.new_inbound.items() if as_number(trucks) != 0}
    return replace(state, monthly_inbound=inbound)


def replan(
    state: PlanningState,
    specs_by_sku: Mapping[str, ProductSpec],
    settings: Settings,
    max_iterations: Optional[int] = None,
) -> ReplanOutcome:
    """Project, solve and apply until the solver has nothing left to change."""
    limit = max_iterations if max_iterations is not None else settings.max_replan_iterations
    state = replace(state, today=state.today or today_iso())
    changes: List[PlanChange] = []
    result = project(state, specs_by_sku, settings)

    for iteration in range(1, limit + 1):
        if result is None:
            return ReplanOutcome(state=state, result=None, iterations=iteration - 1, changes=changes, converged=False)
        proposal = solve(
            result,
            settings.safety_stock_loads,
            specs_by_sku,
            state.selected_sku,
            settings.scheduler,
            state,
            effective_lead_time=settings.lead_time_days,
        )
        if proposal is None:
            return ReplanOutcome(state=state, result=result, iterations=iteration - 1, changes=changes, converged=False)
        if proposal.updates_count == 0:
            return ReplanOutcome(state=state, result=result, iterations=iteration, changes=changes, converged=True)

        before = state.monthly_inbound
        state = apply_proposal(state, proposal)
        changes.extend(diff_plans(before, state.monthly_inbound))
        result = project(state, specs_by_sku, settings)
        logger.info("Re-plan %s pass %d: %d update(s)", state.selected_sku, iteration, proposal.updates_count)

    logger.warning("Re-plan for %s stopped after %d passes without settling", state.selected_sku, limit)
    return ReplanOutcome(state=state, result=result, iterations=limit, changes=changes, converged=False)


def refresh(
    state: PlanningState,
    specs_by_sku: Mapping[str, ProductSpec],
    settings: Settings,
) -> ReplanOutcome:
    """Re-project after new data arrives; auto-replenish states are re-planned too."""
    if state.is_auto_replenish:
        return replan(state, specs_by_sku, settings)
    result = project(state, specs_by_sku, settings)
    return ReplanOutcome(state=state, result=result, iterations=0, changes=[], converged=False)
