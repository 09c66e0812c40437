from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import SchedulerSettings

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


@dataclass
class Settings:
    """
    Planner settings.
    - anything left as None is read from PLANNER_* environment variables (.env is loaded)
    """
    safety_stock_loads: Optional[float] = None
    lead_time_days: Optional[int] = None
    shift_start_time: Optional[str] = None
    max_replan_iterations: Optional[int] = None
    output_dir: Optional[Path] = None
    log_level: Optional[str] = None

    def __post_init__(self):
        if self.safety_stock_loads is None:
            self.safety_stock_loads = _env_float("PLANNER_SAFETY_STOCK_LOADS", 2.0)
        if self.lead_time_days is None:
            self.lead_time_days = _env_int("PLANNER_LEAD_TIME_DAYS", 2)
        if self.shift_start_time is None:
            self.shift_start_time = os.getenv("PLANNER_SHIFT_START", "06:00")
        if self.max_replan_iterations is None:
            self.max_replan_iterations = _env_int("PLANNER_MAX_REPLAN_ITERATIONS", 5)
        if self.output_dir is None:
            env_dir = os.getenv("PLANNER_OUTPUT_DIR")
            self.output_dir = Path(env_dir) if env_dir else Path(__file__).resolve().parent.parent / "output"
        if self.log_level is None:
            self.log_level = os.getenv("PLANNER_LOG_LEVEL", "INFO")

    @property
    def scheduler(self) -> SchedulerSettings:
        return SchedulerSettings(lead_time_days=self.lead_time_days, shift_start_time=self.shift_start_time)
