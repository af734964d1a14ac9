# mining_model/core/costs.py
"""
Monthly cost aggregation per site and company-wide.

EBITDA excludes both depreciation lines (site CapEx and miner hardware);
cost per BTC includes them.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional

from mining_model.config import settings
from mining_model.core.dates import whole_months_between
from mining_model.core.fleet_aging import fleet_lifespan_months, fleet_total_units
from mining_model.core.models import (
    AsicModel,
    CompanyScope,
    Fleet,
    FleetAssignment,
    Site,
    SiteScope,
    TeamMember,
    TeamProfile,
    Tranche,
    TrancheScope,
)
from mining_model.core.power_allocation import TrancheAllocation


def electricity_cost(allocations: Iterable[TrancheAllocation]) -> float:
    """Energy bill for the power actually drawn (MW -> kWh over 730 h)."""
    return sum(
        a.power_used_mw
        * settings.KW_PER_MW
        * settings.HOURS_PER_MONTH
        * a.tranche.electricity_price_per_kwh
        for a in allocations
    )


def opex_cost(allocations: Iterable[TrancheAllocation]) -> float:
    return sum(a.tranche.opex.monthly for a in allocations)


def tranche_capex_depreciation(tranche: Tranche, month: date) -> float:
    """
    Straight-line monthly CapEx charge for a tranche.

    Runs for SITE_CAPEX_DEPRECIATION_MONTHS from the tranche start
    regardless of ramp-up or uptime; it is not truncated at project end.
    """
    if month < tranche.start_date:
        return 0.0
    age = whole_months_between(tranche.start_date, month)
    if age >= settings.SITE_CAPEX_DEPRECIATION_MONTHS:
        return 0.0
    return tranche.capex.total / settings.SITE_CAPEX_DEPRECIATION_MONTHS


def capex_depreciation(allocations: Iterable[TrancheAllocation], month: date) -> float:
    return sum(tranche_capex_depreciation(a.tranche, month) for a in allocations)


def fleet_monthly_depreciation(
    fleet: Fleet, model: Optional[AsicModel], month: date
) -> float:
    """
    Straight-line hardware depreciation for one fleet.

    Based on the fleet's total (not surviving) hashrate: failures do not
    reduce the charge. Stops once the fleet reaches its lifespan.
    """
    if model is None or month < fleet.origination_date:
        return 0.0
    lifespan_months = fleet_lifespan_months(fleet)
    if lifespan_months <= 0:
        return 0.0
    if whole_months_between(fleet.origination_date, month) >= lifespan_months:
        return 0.0

    total_hashrate_ths = fleet_total_units(fleet, model) * model.hashrate_ths
    return total_hashrate_ths * model.price_per_th / lifespan_months


def hardware_depreciation(
    assignments: Iterable[FleetAssignment],
    fleets_by_id: Mapping[str, Fleet],
    models_by_id: Mapping[str, AsicModel],
    month: date,
) -> float:
    """Depreciation of every fleet assigned to a site."""
    total = 0.0
    for assignment in assignments:
        fleet = fleets_by_id.get(assignment.fleet_id)
        if fleet is None:
            continue
        total += fleet_monthly_depreciation(
            fleet, models_by_id.get(fleet.model_id), month
        )
    return total


def member_monthly_cost(
    member: TeamMember,
    profiles_by_id: Mapping[str, TeamProfile],
    month: date,
) -> float:
    if month < member.start_date:
        return 0.0
    profile = profiles_by_id.get(member.profile_id)
    if profile is None:
        return 0.0
    return profile.annual_salary * member.employment_rate / 12


def company_team_cost(
    members: Iterable[TeamMember],
    profiles_by_id: Mapping[str, TeamProfile],
    month: date,
) -> float:
    return sum(
        member_monthly_cost(m, profiles_by_id, month)
        for m in members
        if isinstance(m.scope, CompanyScope)
    )


def site_team_cost(
    members: Iterable[TeamMember],
    profiles_by_id: Mapping[str, TeamProfile],
    site: Site,
    month: date,
) -> float:
    """Staff scoped to the site itself or to any of its tranches."""
    tranche_ids = {t.id for t in site.tranches}
    total = 0.0
    for member in members:
        scope = member.scope
        if isinstance(scope, SiteScope) and scope.site_id == site.id:
            total += member_monthly_cost(member, profiles_by_id, month)
        elif isinstance(scope, TrancheScope) and scope.tranche_id in tranche_ids:
            total += member_monthly_cost(member, profiles_by_id, month)
    return total


def compute_ebitda(
    revenue: float, electricity: float, opex: float, team: float
) -> float:
    return revenue - (electricity + opex + team)


def compute_cost_per_btc(total_expenses: float, total_btc: float) -> float:
    return total_expenses / total_btc if total_btc > 0 else 0.0
