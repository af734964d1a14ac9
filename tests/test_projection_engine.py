from dataclasses import replace
from datetime import date

import pytest

from mining_model.config import settings
from mining_model.core.dates import month_range
from mining_model.core.errors import ProjectionInputError
from mining_model.core.models import (
    AsicModel,
    CalculationContext,
    CapexBreakdown,
    CompanyScope,
    Fleet,
    FleetAssignment,
    OpexBreakdown,
    Project,
    Scenario,
    ScenarioMonthlyData,
    Site,
    SiteScope,
    TeamMember,
    TeamProfile,
    Tranche,
    TrancheScope,
)
from mining_model.core.projection_engine import (
    compute_all_scenarios,
    compute_scenario_metrics,
)


def _flat_scenario(start, end, price=50_000.0, hashrate_eh=500.0, fee=0.0, scenario_id="base"):
    return Scenario(
        id=scenario_id,
        name=scenario_id.title(),
        monthly_data=[
            ScenarioMonthlyData(
                month=m, btc_price_usd=price, global_hashrate_eh=hashrate_eh, tx_fees_per_block=fee
            )
            for m in month_range(start, end)
        ],
    )


def _single_site_context() -> CalculationContext:
    """10 MW tranche, 1000 x 100 TH/s @ 3000 W, no fees, 500 EH/s network."""
    start, end = date(2025, 1, 1), date(2025, 12, 1)
    return CalculationContext(
        project=Project(id="p", name="Single", start_date=start, end_date=end),
        scenario=_flat_scenario(start, end),
        sites=[
            Site(
                id="s1",
                name="Site 1",
                tranches=[
                    Tranche(
                        id="t1",
                        name="T1",
                        power_mw=10.0,
                        start_date=date(2024, 1, 1),
                        uptime=1.0,
                        electricity_price_per_kwh=0.05,
                        pool_fee=0.0,
                    )
                ],
            )
        ],
        fleets=[
            Fleet(
                id="f1",
                model_id="m1",
                origination_date=date(2024, 1, 1),
                lifespan_years=10,
                quantity_miners=1000,
            )
        ],
        fleet_assignments=[FleetAssignment(fleet_id="f1", site_id="s1", priority=0)],
        asic_models=[
            AsicModel(id="m1", name="TestMiner", power_w=3000, hashrate_ths=100.0, price_per_th=20.0)
        ],
    )


def _multi_site_context() -> CalculationContext:
    start, end = date(2025, 1, 1), date(2027, 12, 1)
    scenario = _flat_scenario(start, end, price=80_000.0, hashrate_eh=700.0, fee=0.04)
    # drop one month to exercise the fallback
    scenario.monthly_data = [r for r in scenario.monthly_data if r.month != date(2026, 2, 1)]

    site_a = Site(
        id="a",
        name="Alpha",
        tranches=[
            Tranche(
                id="a1",
                name="A1",
                power_mw=5.0,
                start_date=date(2025, 1, 1),
                ramp_up_months=3,
                uptime=0.95,
                electricity_price_per_kwh=0.04,
                pool_fee=0.02,
                capex=CapexBreakdown(electrical=1_000_000, civil=200_000),
                opex=OpexBreakdown(insurance=50_000, maintenance=70_000),
            ),
            Tranche(
                id="a2",
                name="A2",
                power_mw=8.0,
                start_date=date(2025, 7, 15),
                ramp_up_months=4,
                uptime=0.9,
                electricity_price_per_kwh=0.05,
                pool_fee=0.03,
                capex=CapexBreakdown(electrical=1_500_000, containers=400_000),
                opex=OpexBreakdown(security=40_000, monitoring=20_000),
            ),
        ],
    )
    site_b = Site(
        id="b",
        name="Beta",
        tranches=[
            Tranche(
                id="b1",
                name="B1",
                power_mw=6.0,
                start_date=date(2026, 1, 1),
                ramp_up_months=2,
                uptime=0.97,
                electricity_price_per_kwh=0.035,
                pool_fee=0.01,
                capex=CapexBreakdown(warehouse=900_000, office=100_000),
                opex=OpexBreakdown(insurance=30_000),
            )
        ],
    )
    return CalculationContext(
        project=Project(id="p", name="Multi", start_date=start, end_date=end),
        scenario=scenario,
        sites=[site_a, site_b],
        fleets=[
            Fleet(
                id="old",
                model_id="m1",
                origination_date=date(2024, 6, 1),
                lifespan_years=2,
                quantity_miners=2500,
            ),
            Fleet(
                id="new",
                model_id="m2",
                origination_date=date(2025, 5, 1),
                lifespan_years=4,
                quantity_mode="mw",
                quantity_mw=12.0,
            ),
            Fleet(
                id="ghost",
                model_id="missing",
                origination_date=date(2025, 1, 1),
                lifespan_years=4,
                quantity_miners=100,
            ),
        ],
        fleet_assignments=[
            FleetAssignment(fleet_id="old", site_id="a", priority=0),
            FleetAssignment(fleet_id="new", site_id="a", priority=1),
            FleetAssignment(fleet_id="ghost", site_id="a", priority=2),
            FleetAssignment(fleet_id="new", site_id="b", priority=0),
        ],
        team_members=[
            TeamMember(id="ceo", profile_id="exec", scope=CompanyScope(), start_date=date(2025, 1, 1)),
            TeamMember(id="sa", profile_id="tech", scope=SiteScope("a"), start_date=date(2025, 1, 1)),
            TeamMember(
                id="tb", profile_id="tech", scope=TrancheScope("b1"),
                start_date=date(2026, 1, 1), employment_rate=0.5,
            ),
        ],
        asic_models=[
            AsicModel(id="m1", name="Old", power_w=3250, hashrate_ths=110.0, price_per_th=15.0),
            AsicModel(id="m2", name="New", power_w=5510, hashrate_ths=580.0, price_per_th=25.0),
        ],
        team_profiles=[
            TeamProfile(id="exec", name="Executive", annual_salary=240_000),
            TeamProfile(id="tech", name="Technician", annual_salary=72_000),
        ],
    )


def test_single_site_scenario_matches_hand_calculation():
    results = compute_scenario_metrics(_single_site_context())
    assert results.scenario_id == "base"
    assert len(results.monthly_metrics) == 12

    m = results.monthly_metrics[0]
    assert m.month == date(2025, 1, 1)
    assert m.active_miners == 1000
    assert m.failed_miners == 0
    assert m.spare_miners == 0
    assert m.total_hashrate_ths == pytest.approx(100_000.0)

    # 100,000 / 500e6 TH/s * 3.125 BTC * 4320 blocks
    expected_btc = (100_000.0 / 500e6) * 3.125 * 4320
    assert expected_btc == pytest.approx(2.7)
    assert m.btc_mined == pytest.approx(expected_btc)
    assert m.total_btc == pytest.approx(expected_btc)
    assert m.revenue_usd == pytest.approx(expected_btc * 50_000.0)

    assert m.electricity_cost == pytest.approx(3.0 * 1000 * 730 * 0.05)
    assert m.miner_depreciation == pytest.approx(1000 * 100.0 * 20.0 / 120)
    assert m.capex_depreciation == 0.0
    assert m.ebitda == pytest.approx(135_000.0 - 109_500.0)
    assert m.cost_per_btc == pytest.approx(m.total_expenses / expected_btc)


def test_power_limit_caps_allocation_and_reports_spares():
    ctx = _single_site_context()
    ctx = replace(ctx, fleets=[replace(ctx.fleets[0], quantity_miners=5000)])
    m = compute_scenario_metrics(ctx).monthly_metrics[0]
    # 10 MW / 3000 W = 3333 units
    assert m.active_miners == 3333
    assert m.spare_miners == 5000 - 3333
    assert m.site_metrics[0].power_used_mw <= 10.0 + 1e-9


def test_month_count_is_inclusive():
    results = compute_scenario_metrics(_multi_site_context())
    months = [m.month for m in results.monthly_metrics]
    assert months[0] == date(2025, 1, 1)
    assert months[-1] == date(2027, 12, 1)
    assert len(months) == 36


def test_revenue_and_ebitda_identities_hold_every_month():
    for m in compute_scenario_metrics(_multi_site_context()).monthly_metrics:
        assert m.total_btc == pytest.approx(sum(s.btc_mined for s in m.site_metrics))
        assert m.revenue_usd == pytest.approx(sum(s.revenue for s in m.site_metrics))
        assert m.ebitda == pytest.approx(
            m.revenue_usd - (m.electricity_cost + m.opex_cost + m.team_cost)
        )
        assert m.total_expenses == pytest.approx(
            m.electricity_cost
            + m.opex_cost
            + m.capex_depreciation
            + m.miner_depreciation
            + m.team_cost
        )


def test_allocation_conservation_every_month():
    for m in compute_scenario_metrics(_multi_site_context()).monthly_metrics:
        for f in m.fleet_metrics:
            assert 0 <= f.allocated_miners <= f.active_miners
            if f.total_miners and f.active_miners:
                assert f.active_miners + f.failed_miners == f.total_miners
        for s in m.site_metrics:
            assert s.power_used_mw <= s.available_power_mw + 1e-9
        assert m.active_miners == sum(f.allocated_miners for f in m.fleet_metrics)
        assert m.spare_miners >= 0


def test_engine_is_idempotent():
    ctx = _multi_site_context()
    assert compute_scenario_metrics(ctx) == compute_scenario_metrics(ctx)


def test_missing_month_uses_default_economics():
    results = compute_scenario_metrics(_multi_site_context())
    by_month = {m.month: m for m in results.monthly_metrics}
    assert by_month[date(2026, 2, 1)].btc_price_usd == settings.DEFAULT_BTC_PRICE_USD
    assert by_month[date(2026, 3, 1)].btc_price_usd == 80_000.0


def test_sites_appear_once_a_tranche_is_live():
    results = compute_scenario_metrics(_multi_site_context())
    by_month = {m.month: m for m in results.monthly_metrics}
    assert [s.site_id for s in by_month[date(2025, 12, 1)].site_metrics] == ["a"]
    assert [s.site_id for s in by_month[date(2026, 1, 1)].site_metrics] == ["a", "b"]


def test_company_staff_only_in_company_totals():
    results = compute_scenario_metrics(_multi_site_context())
    m = next(r for r in results.monthly_metrics if r.month == date(2026, 6, 1))
    site_team = sum(s.team_cost for s in m.site_metrics)
    assert site_team == pytest.approx(72_000 / 12 + 72_000 * 0.5 / 12)
    assert m.team_cost == pytest.approx(site_team + 240_000 / 12)


def test_unknown_model_does_not_abort_run():
    results = compute_scenario_metrics(_multi_site_context())
    ghost = [
        f for m in results.monthly_metrics for f in m.fleet_metrics if f.fleet_id == "ghost"
    ]
    assert ghost and all(f.total_miners == 0 and f.allocated_miners == 0 for f in ghost)


def test_fleet_past_lifespan_keeps_only_survivors():
    results = compute_scenario_metrics(_multi_site_context())
    # "old" fleet originated 2024-06 with a 2 year life
    late = next(r for r in results.monthly_metrics if r.month == date(2026, 9, 1))
    old = next(f for f in late.fleet_metrics if f.fleet_id == "old")
    assert old.failed_miners == int(2500 * 0.95)
    assert old.active_miners == 2500 - old.failed_miners


def test_halving_reduces_block_reward_mid_run():
    start, end = date(2028, 2, 1), date(2028, 5, 1)
    ctx = _single_site_context()
    ctx = replace(
        ctx,
        project=Project(id="p", name="Halving", start_date=start, end_date=end),
        scenario=_flat_scenario(start, end),
    )
    rewards = [m.block_reward for m in compute_scenario_metrics(ctx).monthly_metrics]
    assert rewards == [3.125, 3.125, 1.5625, 1.5625]


def test_inverted_project_range_raises():
    ctx = _single_site_context()
    ctx = replace(
        ctx,
        project=Project(id="p", name="Bad", start_date=date(2026, 1, 1), end_date=date(2025, 1, 1)),
    )
    with pytest.raises(ProjectionInputError):
        compute_scenario_metrics(ctx)


def test_compute_all_scenarios_runs_each_independently():
    ctx = _single_site_context()
    start, end = ctx.project.start_date, ctx.project.end_date
    bull = _flat_scenario(start, end, price=100_000.0, scenario_id="bull")
    results = compute_all_scenarios(ctx, [ctx.scenario, bull])
    assert set(results) == {"base", "bull"}
    base_rev = results["base"].monthly_metrics[0].revenue_usd
    bull_rev = results["bull"].monthly_metrics[0].revenue_usd
    assert bull_rev == pytest.approx(base_rev * 2)
    assert results["bull"].scenario_name == "Bull"


def test_scenario_economics_lookup_is_exact_month():
    scenario = _multi_site_context().scenario
    assert scenario.economics_for(date(2025, 3, 1)).btc_price_usd == 80_000.0
    assert scenario.economics_for(date(2026, 2, 1)) is None


def test_tranche_staff_for_unknown_tranche_is_ignored():
    ctx = _multi_site_context()
    stray = TeamMember(
        id="stray", profile_id="tech", scope=TrancheScope("nowhere"), start_date=date(2025, 1, 1)
    )
    ctx = replace(ctx, team_members=ctx.team_members + [stray])
    baseline = compute_scenario_metrics(_multi_site_context()).monthly_metrics
    with_stray = compute_scenario_metrics(ctx).monthly_metrics
    assert [m.team_cost for m in with_stray] == pytest.approx([m.team_cost for m in baseline])
