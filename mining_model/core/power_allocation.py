# mining_model/core/power_allocation.py
"""
Greedy allocation of active miners to site power tranches.

For one month:

- Tranches are live once their start date has passed; available power
  ramps up linearly over ramp_up_months.
- Live tranches are served in order of start date (earliest first), so
  older power commitments get first claim on hardware.
- Within a tranche, the site's fleets are drawn in ascending priority.
- A miner allocated to one tranche is unavailable to every other tranche
  in the same month. The per-fleet counter lives only for one month.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping

from mining_model.config import settings
from mining_model.core.dates import whole_months_between
from mining_model.core.fleet_aging import FleetStatus
from mining_model.core.models import AsicModel, Fleet, FleetAssignment, Site, Tranche


@dataclass(frozen=True)
class LiveTranche:
    site_id: str
    tranche: Tranche
    available_power_mw: float


@dataclass(frozen=True)
class TrancheAllocation:
    site_id: str
    tranche: Tranche
    available_power_mw: float
    allocated_units: int = 0
    power_used_mw: float = 0.0
    hashrate_ths: float = 0.0  # uptime-derated
    units_by_fleet: Dict[str, int] = field(default_factory=dict)

    @property
    def tranche_id(self) -> str:
        return self.tranche.id


@dataclass(frozen=True)
class AllocationResult:
    tranches: List[TrancheAllocation]
    allocated_by_fleet: Dict[str, int]

    @property
    def total_allocated_units(self) -> int:
        return sum(t.allocated_units for t in self.tranches)

    @property
    def total_hashrate_ths(self) -> float:
        return sum(t.hashrate_ths for t in self.tranches)

    def for_site(self, site_id: str) -> List[TrancheAllocation]:
        return [t for t in self.tranches if t.site_id == site_id]


def ramp_up_fraction(months_since_start: int, ramp_up_months: int) -> float:
    """
    Share of nameplate power available `months_since_start` months after
    activation: 1/n, 2/n, ... 1.0 for an n-month ramp.
    """
    if months_since_start < 0:
        return 0.0
    if ramp_up_months <= 0:
        return 1.0
    return min(1.0, (months_since_start + 1) / ramp_up_months)


def available_power_mw(tranche: Tranche, month: date) -> float:
    """Ramp-adjusted power of a tranche for the month (0 before activation)."""
    if month < tranche.start_date:
        return 0.0
    months_since_start = whole_months_between(tranche.start_date, month)
    return tranche.power_mw * ramp_up_fraction(
        months_since_start, tranche.ramp_up_months
    )


def build_live_tranches(sites: Iterable[Site], month: date) -> List[LiveTranche]:
    """
    Tranches live this month, sorted by start date.

    The sort is stable, so ties keep site order then tranche order.
    """
    live: List[LiveTranche] = []
    for site in sites:
        for tranche in site.tranches:
            if month < tranche.start_date:
                continue
            live.append(
                LiveTranche(
                    site_id=site.id,
                    tranche=tranche,
                    available_power_mw=available_power_mw(tranche, month),
                )
            )
    live.sort(key=lambda lt: lt.tranche.start_date)
    return live


def _fill_tranche(
    live: LiveTranche,
    assignments: Iterable[FleetAssignment],
    statuses: Mapping[str, FleetStatus],
    fleets_by_id: Mapping[str, Fleet],
    models_by_id: Mapping[str, AsicModel],
    allocated_by_fleet: Dict[str, int],
) -> TrancheAllocation:
    allocated_units = 0
    power_used_mw = 0.0
    hashrate_ths = 0.0
    units_by_fleet: Dict[str, int] = {}

    for assignment in assignments:
        status = statuses.get(assignment.fleet_id)
        fleet = fleets_by_id.get(assignment.fleet_id)
        if status is None or fleet is None or status.active_units == 0:
            continue
        model = models_by_id.get(fleet.model_id)
        if model is None or model.power_w <= 0:
            continue

        already = allocated_by_fleet.get(fleet.id, 0)
        remaining_units = status.active_units - already
        if remaining_units <= 0:
            continue

        remaining_mw = live.available_power_mw - power_used_mw
        if remaining_mw <= 0:
            break
        units_that_fit = math.floor(remaining_mw * settings.WATTS_PER_MW / model.power_w)

        units = min(remaining_units, units_that_fit)
        if units <= 0:
            continue

        allocated_units += units
        power_used_mw += units * model.power_w / settings.WATTS_PER_MW
        hashrate_ths += units * model.hashrate_ths * live.tranche.uptime
        units_by_fleet[fleet.id] = units_by_fleet.get(fleet.id, 0) + units
        allocated_by_fleet[fleet.id] = already + units

    return TrancheAllocation(
        site_id=live.site_id,
        tranche=live.tranche,
        available_power_mw=live.available_power_mw,
        allocated_units=allocated_units,
        power_used_mw=power_used_mw,
        hashrate_ths=hashrate_ths,
        units_by_fleet=units_by_fleet,
    )


def allocate_fleets_to_tranches(
    month: date,
    sites: Iterable[Site],
    assignments_by_site: Mapping[str, List[FleetAssignment]],
    statuses: Mapping[str, FleetStatus],
    fleets_by_id: Mapping[str, Fleet],
    models_by_id: Mapping[str, AsicModel],
) -> AllocationResult:
    """
    Allocate this month's active units across live tranches.

    assignments_by_site must already be sorted by ascending priority.
    Returns the per-tranche allocations and the per-fleet totals.
    """
    allocated_by_fleet: Dict[str, int] = {}
    tranches: List[TrancheAllocation] = []

    for live in build_live_tranches(sites, month):
        tranches.append(
            _fill_tranche(
                live,
                assignments_by_site.get(live.site_id, []),
                statuses,
                fleets_by_id,
                models_by_id,
                allocated_by_fleet,
            )
        )

    return AllocationResult(tranches=tranches, allocated_by_fleet=allocated_by_fleet)
