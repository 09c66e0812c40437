from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ProductSpec:
    sku: str
    bottles_per_case: int
    bottles_per_truck: int
    cases_per_pallet: int
    scrap_percentage: float = 0.0
    production_rate: float = 0.0
    rate_unit: str = "cases"  # cases or bottles per hour

    @property
    def scrap_factor(self) -> float:
        return 1 + ((self.scrap_percentage or 0) / 100)


@dataclass(frozen=True)
class InventoryAnchor:
    date: Optional[str]
    count: float  # pallets


@dataclass(frozen=True)
class YardInventory:
    count: float  # loads
    date: Optional[str] = None


@dataclass
class LedgerEntry:
    date: str
    balance: float
    demand: float
    supply: float
    projected_pallets: float
    days_of_supply: float = 0


@dataclass
class SolverDay:
    date_str: str
    projected_end_inventory: float
    safety_stock_target: Optional[float] = None


@dataclass
class PlannedOrder:
    count: float = 0
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class MRPResult:
    today: str
    net_inventory: float
    safety_target: float
    trucks_to_order: int
    trucks_to_cancel: float
    lost_production_cases: float
    total_scheduled_cases: float
    effective_scheduled_cases: float
    specs: ProductSpec
    yard_inventory: Dict[str, Any]
    daily_ledger: List[LedgerEntry]
    first_stockout_date: Optional[str]
    first_overflow_date: Optional[str]
    total_incoming_trucks: float
    initial_inventory: float
    calculated_pallets: float
    days_of_supply: float
    inventory_anchor: InventoryAnchor
    planned_orders: Dict[str, PlannedOrder]
    stale_anchor: bool = False

    @property
    def daily_results(self) -> List[SolverDay]:
        """Ledger rows in the shape the solver walks."""
        return [
            SolverDay(date_str=entry.date, projected_end_inventory=entry.balance)
            for entry in self.daily_ledger
        ]


@dataclass
class PlanChange:
    date: str
    before: float
    after: float


@dataclass
class SolveResult:
    new_inbound: Dict[str, float]
    updates_count: int
    changes: List[PlanChange] = field(default_factory=list)


@dataclass(frozen=True)
class SchedulerSettings:
    lead_time_days: int = 2
    shift_start_time: str = "06:00"


@dataclass(frozen=True)
class PlanningState:
    selected_sku: str
    today: Optional[str] = None
    monthly_demand: Dict[str, float] = field(default_factory=dict)
    monthly_production_actuals: Dict[str, float] = field(default_factory=dict)
    monthly_inbound: Dict[str, float] = field(default_factory=dict)
    po_manifest: Dict[str, Dict[str, List[Any]]] = field(default_factory=dict)
    inventory_anchor: InventoryAnchor = InventoryAnchor(date=None, count=0)
    yard_inventory: YardInventory = YardInventory(count=0)
    incoming_trucks: float = 0
    downtime_hours: float = 0
    is_auto_replenish: bool = False


@dataclass
class ReplanOutcome:
    state: PlanningState
    result: Optional[MRPResult]
    iterations: int
    changes: List[PlanChange]
    converged: bool


@dataclass
class PlanningEntry:
    sku: str
    date: str
    entry_type: str  # demand_plan, inbound_trucks, production_actual
    value: Optional[float]


@dataclass
class InventorySnapshot:
    sku: str
    date: str
    count: float
    location: str  # floor or yard
