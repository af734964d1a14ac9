# mining_model/core/projection_engine.py
"""
Monthly projection engine.

For every month in the project range (inclusive):

1. age each fleet (failures since origination),
2. allocate surviving miners to live site tranches,
3. turn owned hashrate into BTC and USD with the halving-aware reward,
4. aggregate electricity, OpEx, depreciation and team costs per site and
   company-wide.

Months are independent: nothing computed for one month is carried into
the next, so a run is a pure function of its CalculationContext.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, List

from mining_model.config import settings
from mining_model.core.block_reward import block_reward
from mining_model.core.costs import (
    capex_depreciation,
    company_team_cost,
    compute_cost_per_btc,
    compute_ebitda,
    electricity_cost,
    hardware_depreciation,
    opex_cost,
    site_team_cost,
)
from mining_model.core.dates import month_range
from mining_model.core.errors import ProjectionInputError
from mining_model.core.fleet_aging import age_fleets
from mining_model.core.models import (
    AsicModel,
    CalculationContext,
    Fleet,
    FleetAssignment,
    Scenario,
    ScenarioMonthlyData,
    SiteScope,
    TeamMember,
    TeamProfile,
    TrancheScope,
)
from mining_model.core.power_allocation import allocate_fleets_to_tranches
from mining_model.core.results import (
    FleetMonthlyMetrics,
    MonthlyFinancialMetrics,
    ScenarioResults,
    SiteMonthlyMetrics,
)
from mining_model.core.revenue import apportion_site_revenue, compute_network_revenue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextIndex:
    """id -> entity lookups built once per run."""

    models_by_id: Dict[str, AsicModel]
    fleets_by_id: Dict[str, Fleet]
    profiles_by_id: Dict[str, TeamProfile]
    assignments_by_site: Dict[str, List[FleetAssignment]]
    economics_by_month: Dict[date, ScenarioMonthlyData]
    site_id_by_tranche: Dict[str, str]
    members_by_site: Dict[str, List[TeamMember]]


def build_context_index(context: CalculationContext) -> ContextIndex:
    models_by_id = {m.id: m for m in context.asic_models}
    fleets_by_id = {f.id: f for f in context.fleets}
    profiles_by_id = {p.id: p for p in context.team_profiles}

    assignments_by_site: Dict[str, List[FleetAssignment]] = {}
    for assignment in context.fleet_assignments:
        assignments_by_site.setdefault(assignment.site_id, []).append(assignment)
    for site_id in assignments_by_site:
        # stable: equal priorities keep input order
        assignments_by_site[site_id].sort(key=lambda a: a.priority)

    economics_by_month: Dict[date, ScenarioMonthlyData] = {}
    for row in context.scenario.monthly_data:
        economics_by_month.setdefault(row.month, row)

    site_id_by_tranche = {
        tranche.id: site.id for site in context.sites for tranche in site.tranches
    }
    site_ids = {site.id for site in context.sites}

    # company-scoped staff are costed separately and never attributed to a site
    members_by_site: Dict[str, List[TeamMember]] = {}
    for member in context.team_members:
        scope = member.scope
        if isinstance(scope, SiteScope):
            site_id = scope.site_id if scope.site_id in site_ids else None
        elif isinstance(scope, TrancheScope):
            site_id = site_id_by_tranche.get(scope.tranche_id)
        else:
            continue
        if site_id is None:
            logger.warning(
                "Team member %s is scoped to unknown target %s; no site cost applied",
                member.id,
                scope,
            )
            continue
        members_by_site.setdefault(site_id, []).append(member)

    for fleet in context.fleets:
        if fleet.model_id not in models_by_id:
            logger.warning(
                "Fleet %s references unknown model %s; it will be skipped",
                fleet.id,
                fleet.model_id,
            )
    for assignment in context.fleet_assignments:
        if assignment.fleet_id not in fleets_by_id:
            logger.warning(
                "Assignment to site %s references unknown fleet %s; it will be skipped",
                assignment.site_id,
                assignment.fleet_id,
            )
    for member in context.team_members:
        if member.profile_id not in profiles_by_id:
            logger.warning(
                "Team member %s references unknown profile %s; no cost applied",
                member.id,
                member.profile_id,
            )

    return ContextIndex(
        models_by_id=models_by_id,
        fleets_by_id=fleets_by_id,
        profiles_by_id=profiles_by_id,
        assignments_by_site=assignments_by_site,
        economics_by_month=economics_by_month,
        site_id_by_tranche=site_id_by_tranche,
        members_by_site=members_by_site,
    )


def _economics_for_month(index: ContextIndex, month: date) -> ScenarioMonthlyData:
    row = index.economics_by_month.get(month)
    if row is not None:
        return row
    logger.debug("No scenario data for %s; using default economics", month)
    return ScenarioMonthlyData(
        month=month,
        btc_price_usd=settings.DEFAULT_BTC_PRICE_USD,
        global_hashrate_eh=settings.DEFAULT_GLOBAL_HASHRATE_EH,
        tx_fees_per_block=settings.DEFAULT_TX_FEES_PER_BLOCK,
    )


def compute_month_metrics(
    month: date,
    context: CalculationContext,
    index: ContextIndex,
) -> MonthlyFinancialMetrics:
    """Run aging, allocation, revenue and costs for a single month."""
    economics = _economics_for_month(index, month)
    btc_price_usd = economics.btc_price_usd

    statuses = age_fleets(context.fleets, index.models_by_id, month)
    statuses_by_id = {s.fleet_id: s for s in statuses}

    allocation = allocate_fleets_to_tranches(
        month,
        context.sites,
        index.assignments_by_site,
        statuses_by_id,
        index.fleets_by_id,
        index.models_by_id,
    )

    total_allocated = allocation.total_allocated_units
    total_active = sum(s.active_units for s in statuses)
    total_failed = sum(s.failed_units for s in statuses)
    total_hashrate_ths = allocation.total_hashrate_ths

    reward = block_reward(month)
    network = compute_network_revenue(
        owned_ths=total_hashrate_ths,
        global_hashrate_eh=economics.global_hashrate_eh,
        block_reward_btc=reward,
        tx_fees_per_block=economics.tx_fees_per_block,
    )

    site_metrics: List[SiteMonthlyMetrics] = []
    for site in context.sites:
        site_allocs = allocation.for_site(site.id)
        if not site_allocs:
            # no live tranche yet
            continue

        site_revenue = apportion_site_revenue(network, total_hashrate_ths, site_allocs)

        site_electricity = electricity_cost(site_allocs)
        site_opex = opex_cost(site_allocs)
        site_capex = capex_depreciation(site_allocs, month)
        site_miner_dep = hardware_depreciation(
            index.assignments_by_site.get(site.id, []),
            index.fleets_by_id,
            index.models_by_id,
            month,
        )
        site_team = site_team_cost(
            index.members_by_site.get(site.id, []), index.profiles_by_id, site, month
        )

        revenue = site_revenue.btc_after_fee * btc_price_usd
        site_metrics.append(
            SiteMonthlyMetrics(
                site_id=site.id,
                site_name=site.name,
                active_miners=sum(a.allocated_units for a in site_allocs),
                power_used_mw=sum(a.power_used_mw for a in site_allocs),
                available_power_mw=sum(a.available_power_mw for a in site_allocs),
                hashrate_ths=site_revenue.hashrate_ths,
                btc_mined=site_revenue.btc_after_fee,
                revenue=revenue,
                electricity_cost=site_electricity,
                opex_cost=site_opex,
                capex_depreciation=site_capex,
                miner_depreciation=site_miner_dep,
                team_cost=site_team,
                total_expenses=(
                    site_electricity + site_opex + site_capex + site_miner_dep + site_team
                ),
                ebitda=compute_ebitda(revenue, site_electricity, site_opex, site_team),
            )
        )

    total_btc = sum(s.btc_mined for s in site_metrics)
    revenue_usd = total_btc * btc_price_usd

    electricity = sum(s.electricity_cost for s in site_metrics)
    opex = sum(s.opex_cost for s in site_metrics)
    capex_dep = sum(s.capex_depreciation for s in site_metrics)
    miner_dep = sum(s.miner_depreciation for s in site_metrics)
    team = sum(s.team_cost for s in site_metrics) + company_team_cost(
        context.team_members, index.profiles_by_id, month
    )
    total_expenses = electricity + opex + capex_dep + miner_dep + team

    fleet_metrics = [
        FleetMonthlyMetrics(
            fleet_id=fleet.id,
            model_id=fleet.model_id,
            total_miners=status.total_units,
            active_miners=status.active_units,
            failed_miners=status.failed_units,
            allocated_miners=allocation.allocated_by_fleet.get(fleet.id, 0),
        )
        for fleet, status in zip(context.fleets, statuses)
    ]

    return MonthlyFinancialMetrics(
        month=month,
        active_miners=total_allocated,
        failed_miners=total_failed,
        spare_miners=total_active - total_allocated,
        total_hashrate_ths=total_hashrate_ths,
        btc_mined=network.btc_mined_gross,
        btc_after_pool_fee=total_btc,
        tx_fee_revenue_btc=network.tx_fee_btc,
        total_btc=total_btc,
        revenue_usd=revenue_usd,
        electricity_cost=electricity,
        opex_cost=opex,
        capex_depreciation=capex_dep,
        miner_depreciation=miner_dep,
        team_cost=team,
        total_expenses=total_expenses,
        ebitda=compute_ebitda(revenue_usd, electricity, opex, team),
        cost_per_btc=compute_cost_per_btc(total_expenses, total_btc),
        block_reward=reward,
        btc_price_usd=btc_price_usd,
        site_metrics=site_metrics,
        fleet_metrics=fleet_metrics,
    )


def compute_scenario_metrics(context: CalculationContext) -> ScenarioResults:
    """
    Project every month of the context's project for its scenario.

    Raises ProjectionInputError when the project range is inverted.
    """
    project = context.project
    if project.end_date < project.start_date:
        raise ProjectionInputError(
            f"Project {project.id} ends ({project.end_date}) before it starts "
            f"({project.start_date})"
        )

    months = month_range(project.start_date, project.end_date)
    logger.info(
        "Projecting scenario %s (%s) over %d months",
        context.scenario.id,
        context.scenario.name,
        len(months),
    )

    index = build_context_index(context)
    monthly_metrics = [compute_month_metrics(m, context, index) for m in months]
    logger.info(
        "Scenario %s done: %.4f BTC over %d months",
        context.scenario.id,
        sum(m.total_btc for m in monthly_metrics),
        len(monthly_metrics),
    )

    return ScenarioResults(
        scenario_id=context.scenario.id,
        scenario_name=context.scenario.name,
        monthly_metrics=monthly_metrics,
    )


def compute_all_scenarios(
    context: CalculationContext,
    scenarios: Iterable[Scenario],
) -> Dict[str, ScenarioResults]:
    """
    Run the engine once per scenario against the same project inputs.

    Each run builds its own index and accumulators; nothing is shared.
    """
    return {
        scenario.id: compute_scenario_metrics(replace(context, scenario=scenario))
        for scenario in scenarios
    }
