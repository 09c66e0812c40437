from __future__ import annotations

import json
import logging
from dataclasses import asdict, replace
from typing import Dict, List, Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fpdf import FPDF
from pydantic import BaseModel, Field

from . import data, loader
from .config import Settings
from .dates import today_iso
from .delivery import delivery_times_for_day
from .models import MRPResult, PlanningState, ProductSpec, ReplanOutcome, SolveResult
from .planner import effective_trucks
from .replan import apply_proposal, project, refresh, replan
from .solver import solve

settings = Settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Inbound Truck Planner", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class SolveRequest(BaseModel):
    lead_time_days: Optional[int] = Field(default=None, ge=0, description="Overrides the configured lead time")
    apply: bool = Field(default=False, description="Apply the proposal and re-plan until it settles")


def result_to_dict(result: MRPResult) -> dict:
    return asdict(result)


def _solve_to_dict(proposal: SolveResult) -> dict:
    return {
        "new_inbound": proposal.new_inbound,
        "updates_count": proposal.updates_count,
        "changes": [vars(c) for c in proposal.changes],
    }


def _outcome_to_dict(outcome: ReplanOutcome) -> dict:
    return {
        "iterations": outcome.iterations,
        "converged": outcome.converged,
        "changes": [vars(c) for c in outcome.changes],
        "monthly_inbound": outcome.state.monthly_inbound,
        "result": result_to_dict(outcome.result) if outcome.result else None,
    }


def _read_bytes(file: Optional[UploadFile]) -> Optional[bytes]:
    if file is None:
        return None
    return file.file.read()


def _not_configured(sku: str) -> JSONResponse:
    return JSONResponse({"error": f"No product spec for {sku}; complete setup before planning"}, status_code=404)


# In-memory planning state, replaced wholesale on every write
current_data: Dict[str, Dict] = {
    "specs": data.sample_specs_by_sku(),
    "states": {},
}


def _state_for(sku: str) -> Optional[PlanningState]:
    if sku not in current_data["specs"]:
        return None
    states = current_data["states"]
    if sku not in states:
        states[sku] = data.sample_state(sku)
    return states[sku]


def _set_state(specs: Dict[str, ProductSpec], states: Dict[str, PlanningState]):
    global current_data
    current_data = {"specs": specs, "states": states}


def _build_states(
    specs: Dict[str, ProductSpec],
    entries_raw: Optional[bytes],
    manifest_raw: Optional[bytes],
    snapshots_raw: Optional[bytes],
    today: str,
    auto_replenish: bool = False,
) -> Dict[str, PlanningState]:
    entries = loader.load_planning_entries(entries_raw)
    snapshots = loader.load_inventory_snapshots(snapshots_raw)
    states: Dict[str, PlanningState] = {}
    for sku in specs:
        if not entries and not snapshots and not manifest_raw:
            states[sku] = replace(data.sample_state(sku, today=today), is_auto_replenish=auto_replenish)
            continue
        demand, actuals, inbound = loader.entries_to_maps(entries, sku)
        anchor, yard = loader.latest_snapshot(snapshots, sku)
        kwargs = {}
        if anchor is not None:
            kwargs["inventory_anchor"] = anchor
        if yard is not None:
            kwargs["yard_inventory"] = yard
        states[sku] = PlanningState(
            selected_sku=sku,
            today=today,
            monthly_demand=demand,
            monthly_production_actuals=actuals,
            monthly_inbound=inbound,
            po_manifest=loader.load_po_manifest(manifest_raw, sku=sku),
            is_auto_replenish=auto_replenish,
            **kwargs,
        )
    return states


def _ledger_pdf_bytes(spec: ProductSpec, result: MRPResult) -> bytes:
    pdf = FPDF(orientation="P", unit="mm", format="A4")
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, f"Inbound Plan - {spec.sku}", ln=1)
    pdf.set_font("Helvetica", "", 11)
    pdf.cell(0, 7, f"Projection date: {result.today}", ln=1)
    pdf.cell(0, 7, f"Floor pallets (reconstructed): {result.calculated_pallets:,.1f}", ln=1)
    pdf.cell(0, 7, f"Safety target (bottles): {result.safety_target:,.0f}", ln=1)
    pdf.cell(0, 7, f"Days of supply: {result.days_of_supply:.1f}", ln=1)
    pdf.cell(0, 7, f"Order: {result.trucks_to_order}   Cancel: {result.trucks_to_cancel}", ln=1)
    if result.first_stockout_date:
        pdf.cell(0, 7, f"First day below safety stock: {result.first_stockout_date}", ln=1)
    if result.stale_anchor:
        pdf.cell(0, 7, "Warning: inventory count is over a year old", ln=1)
    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 10)
    pdf.cell(30, 8, "Date", border=1)
    pdf.cell(35, 8, "Demand", border=1)
    pdf.cell(35, 8, "Supply", border=1)
    pdf.cell(40, 8, "Balance", border=1)
    pdf.cell(40, 8, "Pallets", border=1, ln=1)
    pdf.set_font("Helvetica", "", 10)
    for entry in result.daily_ledger:
        pdf.cell(30, 7, entry.date, border=1)
        pdf.cell(35, 7, f"{entry.demand:,.0f}", border=1)
        pdf.cell(35, 7, f"{entry.supply:,.0f}", border=1)
        pdf.cell(40, 7, f"{entry.balance:,.0f}", border=1)
        pdf.cell(40, 7, f"{entry.projected_pallets:,.1f}", border=1, ln=1)
    if result.planned_orders:
        pdf.ln(4)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 8, "Planned trucks without a PO", ln=1)
        pdf.set_font("Helvetica", "", 10)
        for need_date, order in sorted(result.planned_orders.items()):
            pdf.cell(40, 7, need_date, border=1)
            pdf.cell(30, 7, f"{order.count:g}", border=1, ln=1)
    out = pdf.output()
    if isinstance(out, (bytes, bytearray)):
        return bytes(out)
    return str(out).encode("latin1")


@app.post("/api/run")
async def run_plan(
    products: UploadFile | None = File(default=None),
    entries: UploadFile | None = File(default=None),
    manifest: UploadFile | None = File(default=None),
    snapshots: UploadFile | None = File(default=None),
    sku: Optional[str] = Form(default=None),
    today: Optional[str] = Form(default=None),
    auto_replenish: bool = Form(default=False),
):
    today = today or today_iso()
    try:
        spec_list = loader.load_products(_read_bytes(products)) or data.sample_products()
        specs = {s.sku: s for s in spec_list}
        states = _build_states(
            specs,
            _read_bytes(entries),
            _read_bytes(manifest),
            _read_bytes(snapshots),
            today,
            auto_replenish,
        )
    except (ValueError, KeyError) as exc:
        logger.warning("Rejected planning upload: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=422)

    _set_state(specs, states)
    selected = sku or next(iter(specs))
    if selected not in specs:
        return _not_configured(selected)
    outcome = refresh(states[selected], specs, settings)
    current_data["states"][selected] = outcome.state
    plan_dict = {"sku": selected, "result": result_to_dict(outcome.result)}
    if outcome.state.is_auto_replenish:
        plan_dict["replan"] = _outcome_to_dict(outcome)

    # Also drop a file to output/ for reference
    settings.output_dir.mkdir(exist_ok=True, parents=True)
    (settings.output_dir / "inbound_plan.json").write_text(json.dumps(plan_dict, indent=2))

    return JSONResponse(plan_dict)


@app.get("/api/state")
async def api_state():
    return {
        "skus": [vars(s) for s in current_data["specs"].values()],
        "settings": {
            "safety_stock_loads": settings.safety_stock_loads,
            "lead_time_days": settings.lead_time_days,
            "shift_start_time": settings.shift_start_time,
        },
    }


@app.get("/api/sku/{sku}/ledger")
async def sku_ledger(sku: str):
    state = _state_for(sku)
    if state is None:
        return _not_configured(sku)
    result = project(state, current_data["specs"], settings)
    return result_to_dict(result)


@app.post("/api/sku/{sku}/solve")
async def sku_solve(sku: str, body: SolveRequest):
    state = _state_for(sku)
    if state is None:
        return _not_configured(sku)
    specs = current_data["specs"]

    run_settings = settings
    if body.lead_time_days is not None:
        run_settings = replace(settings, lead_time_days=body.lead_time_days)

    if body.apply:
        outcome = replan(state, specs, run_settings)
        current_data["states"][sku] = outcome.state
        return _outcome_to_dict(outcome)

    result = project(state, specs, run_settings)
    proposal = solve(
        result,
        run_settings.safety_stock_loads,
        specs,
        sku,
        run_settings.scheduler,
        state,
        effective_lead_time=run_settings.lead_time_days,
    )
    if proposal is None:
        return _not_configured(sku)
    preview = project(apply_proposal(state, proposal), specs, run_settings)
    return {**_solve_to_dict(proposal), "preview": result_to_dict(preview)}


@app.get("/api/sku/{sku}/ledger.pdf")
async def sku_ledger_pdf(sku: str):
    state = _state_for(sku)
    if state is None:
        return _not_configured(sku)
    spec = current_data["specs"][sku]
    result = project(state, current_data["specs"], settings)
    return Response(
        content=_ledger_pdf_bytes(spec, result),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="inbound_{sku}.pdf"'},
    )


@app.get("/api/sku/{sku}/deliveries")
async def sku_deliveries(sku: str, date: Optional[str] = None):
    state = _state_for(sku)
    if state is None:
        return _not_configured(sku)
    spec = current_data["specs"][sku]
    day = date or state.today or today_iso()
    trucks = int(effective_trucks(day, state.monthly_inbound, state.po_manifest))
    times: List[str] = delivery_times_for_day(trucks, settings.shift_start_time, spec)
    return {"sku": sku, "date": day, "trucks": trucks, "times": times}
