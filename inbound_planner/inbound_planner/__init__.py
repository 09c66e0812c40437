"""
Inbound truck planning for bottling lines.

Projects a daily inventory ledger from the last physical count and proposes
truck additions/cancellations that keep stock inside the safety band.
"""
from .models import (
    InventoryAnchor,
    LedgerEntry,
    MRPResult,
    PlanningState,
    ProductSpec,
    SchedulerSettings,
    SolveResult,
    YardInventory,
)
from .planner import calculate_mrp, effective_trucks
from .replan import replan
from .solver import solve

__all__ = [
    "InventoryAnchor",
    "LedgerEntry",
    "MRPResult",
    "PlanningState",
    "ProductSpec",
    "SchedulerSettings",
    "SolveResult",
    "YardInventory",
    "calculate_mrp",
    "effective_trucks",
    "replan",
    "solve",
]
