from __future__ import annotations

from dataclasses import dataclass

from .models import ProductSpec


@dataclass(frozen=True)
class UnitFactors:
    """Conversion factors with the zero guards the ledger relies on."""

    bottles_per_case: float
    bottles_per_truck: float
    cases_per_pallet: float
    scrap_factor: float

    @classmethod
    def from_spec(cls, spec: ProductSpec) -> "UnitFactors":
        return cls(
            bottles_per_case=spec.bottles_per_case or 12,
            bottles_per_truck=spec.bottles_per_truck or 1,
            cases_per_pallet=spec.cases_per_pallet or 1,
            scrap_factor=spec.scrap_factor,
        )

    @property
    def bottles_per_pallet(self) -> float:
        return self.bottles_per_case * self.cases_per_pallet

    @property
    def pallets_per_truck(self) -> float:
        return (self.bottles_per_truck / self.bottles_per_case) / self.cases_per_pallet

    def trucks_to_bottles(self, trucks: float) -> float:
        return trucks * self.bottles_per_truck

    def trucks_to_pallets(self, trucks: float) -> float:
        return trucks * self.pallets_per_truck

    def pallets_to_bottles(self, pallets: float) -> float:
        return pallets * self.cases_per_pallet * self.bottles_per_case

    def bottles_to_pallets(self, bottles: float) -> float:
        return bottles / (self.bottles_per_pallet or 1)

    def cases_to_pallets(self, cases: float) -> float:
        return cases / self.cases_per_pallet

    def demand_bottles(self, cases: float) -> float:
        # production consumes extra bottles for scrap
        return cases * self.bottles_per_case * self.scrap_factor


def rate_in_bottles_per_hour(spec: ProductSpec) -> float:
    rate = spec.production_rate or 0
    if spec.rate_unit == "bottles":
        return rate
    if spec.rate_unit == "cases":
        return rate * (spec.bottles_per_case or 1)
    raise ValueError(f"Unknown rate unit {spec.rate_unit!r} for {spec.sku}")
