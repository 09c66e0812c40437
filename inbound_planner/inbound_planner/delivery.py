from __future__ import annotations

import math
import re
from collections import defaultdict
from datetime import datetime, timedelta
from functools import cmp_to_key
from typing import Any, Dict, List, Mapping

from .models import ProductSpec
from .units import rate_in_bottles_per_hour

# trucks that cannot be spaced at run rate are squeezed into this window
AVAILABLE_HOURS = 23.5
DEFAULT_BOTTLES_PER_TRUCK = 20000
DEFAULT_BOTTLES_PER_HOUR = 1000


def _parse_clock(value: str) -> tuple[int, int]:
    parts = (value or "00:00").split(":")
    hours = int(parts[0]) if parts[0] else 0
    minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    return hours, minutes


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_delivery_time(
    index: int,
    shift_start_time: str,
    spec: ProductSpec,
    total_trucks_for_day: int = 0,
) -> str:
    """Arrival time ("HH:MM") of the index-th truck of the day.

    Trucks are spaced by how long one load lasts on the line. When the
    day's trucks would not fit that way, they are spread evenly over
    AVAILABLE_HOURS instead.
    """
    rate = rate_in_bottles_per_hour(spec)
    if rate <= 0:
        return ""

    hours_per_truck = (spec.bottles_per_truck or 1) / rate
    if total_trucks_for_day > 0 and total_trucks_for_day * hours_per_truck > AVAILABLE_HOURS:
        hours_per_truck = AVAILABLE_HOURS / total_trucks_for_day

    start_h, start_m = _parse_clock(shift_start_time)
    arrival = (start_h + start_m / 60 + index * hours_per_truck) % 24

    h = math.floor(arrival)
    m = _round_half_up((arrival - h) * 60)
    final_h = (h + m // 60) % 24
    final_m = m % 60
    return f"{final_h:02d}:{final_m:02d}"


def delivery_times_for_day(trucks: int, shift_start_time: str, spec: ProductSpec) -> List[str]:
    return [calculate_delivery_time(i, shift_start_time, spec, trucks) for i in range(trucks)]


def _po_digits(order: Mapping[str, Any]) -> str:
    return re.sub(r"\D", "", str(order.get("po") or ""))


def _compare_po(a: Mapping[str, Any], b: Mapping[str, Any]) -> int:
    da, db = _po_digits(a), _po_digits(b)
    if da and db:
        return int(da) - int(db)
    pa, pb = str(a.get("po") or ""), str(b.get("po") or "")
    return (pa > pb) - (pa < pb)


def calculate_jit_schedule(
    orders: List[Dict[str, Any]],
    specs_by_sku: Mapping[str, ProductSpec],
    shift_start_time: str = "06:00",
) -> List[Dict[str, Any]]:
    """Book appointment times so each load arrives as the previous one runs out.

    Orders are taken per date in PO-number order. Each appointment is the
    running clock rounded to the nearest hour; the clock then advances by
    the time the line needs to burn through the load.
    """
    by_date: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for order in orders:
        by_date[order["date"]].append(order)

    start_h, start_m = _parse_clock(shift_start_time)
    fallback_sku = next(iter(specs_by_sku), None)
    scheduled: List[Dict[str, Any]] = []

    for day, day_orders in by_date.items():
        day_orders = sorted(day_orders, key=cmp_to_key(_compare_po))
        clock = datetime.fromisoformat(day).replace(hour=start_h, minute=start_m)

        for order in day_orders:
            booking = clock.replace(second=0, microsecond=0)
            if booking.minute >= 30:
                booking += timedelta(hours=1)
            booking = booking.replace(minute=0)
            scheduled.append({**order, "time": booking.strftime("%H:%M")})

            spec = specs_by_sku.get(order.get("sku") or fallback_sku)
            if spec is None:
                continue
            bottles = (order.get("qty") or 1) * (spec.bottles_per_truck or DEFAULT_BOTTLES_PER_TRUCK)
            rate = rate_in_bottles_per_hour(spec) or DEFAULT_BOTTLES_PER_HOUR
            clock += timedelta(hours=bottles / rate)

    return scheduled
