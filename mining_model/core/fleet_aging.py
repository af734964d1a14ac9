# mining_model/core/fleet_aging.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from mining_model.config import settings
from mining_model.core.dates import whole_months_between
from mining_model.core.failure_model import cumulative_failure_fraction
from mining_model.core.models import AsicModel, Fleet


@dataclass(frozen=True)
class FleetStatus:
    """
    Unit counts for one fleet in one month.

    Before origination the fleet is not deployed: total_units is known but
    nothing is active or failed yet.
    """

    fleet_id: str
    total_units: int
    failed_units: int
    active_units: int
    deployed: bool = True


def fleet_total_units(fleet: Fleet, model: Optional[AsicModel]) -> int:
    """Fixed unit count of a fleet from its sizing mode."""
    if fleet.quantity_mode == "mw":
        if model is None or model.power_w <= 0:
            return 0
        return max(
            0, math.floor((fleet.quantity_mw or 0.0) * settings.WATTS_PER_MW / model.power_w)
        )
    return max(0, int(fleet.quantity_miners or 0))


def fleet_lifespan_months(fleet: Fleet) -> float:
    return fleet.lifespan_years * 12


def age_fleet(fleet: Fleet, model: Optional[AsicModel], as_of: date) -> FleetStatus:
    """
    Age a fleet to `as_of` and split it into failed and active units.

    A fleet whose model is unknown contributes nothing.
    """
    if model is None:
        return FleetStatus(fleet.id, 0, 0, 0, deployed=False)

    total = fleet_total_units(fleet, model)
    if as_of < fleet.origination_date:
        return FleetStatus(fleet.id, total, 0, 0, deployed=False)

    age_months = whole_months_between(fleet.origination_date, as_of)
    lifespan_months = fleet_lifespan_months(fleet)

    if age_months >= lifespan_months:
        # Past end of life only the small tail of survivors keeps running
        failed = math.floor(total * settings.FAILURE_CAP)
    else:
        fraction = cumulative_failure_fraction(age_months, lifespan_months)
        failed = min(math.floor(total * fraction), total)

    return FleetStatus(
        fleet_id=fleet.id,
        total_units=total,
        failed_units=failed,
        active_units=total - failed,
    )


def age_fleets(
    fleets: Iterable[Fleet],
    models_by_id: Dict[str, AsicModel],
    as_of: date,
) -> List[FleetStatus]:
    """Age every fleet for one month, preserving input order."""
    return [
        age_fleet(fleet, models_by_id.get(fleet.model_id), as_of) for fleet in fleets
    ]
