# scripts/run_sample_projection.py
from __future__ import annotations

import logging
from datetime import date

from mining_model.config.logging_config import configure_logging
from mining_model.core.dates import add_months, month_range
from mining_model.core.models import (
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
)
from mining_model.core.projection_engine import compute_scenario_metrics
from mining_model.core.reporting import metrics_to_dataframe, summarize_results
from mining_model.data.asic_models import PREDEFINED_ASIC_MODELS

logger = logging.getLogger(__name__)


def build_sample_context(start: date, years: int) -> CalculationContext:
    """
    Small two-tranche site with two fleets, a flat 5%/year BTC price
    drift and 2%/month network growth. Handy for eyeballing output
    against a spreadsheet.
    """
    end = add_months(start, years * 12 - 1)
    monthly = [
        ScenarioMonthlyData(
            month=m,
            btc_price_usd=90_000.0 * (1.05 ** (idx / 12.0)),
            global_hashrate_eh=800.0 * (1.02**idx),
            tx_fees_per_block=0.03,
        )
        for idx, m in enumerate(month_range(start, end))
    ]

    site = Site(
        id="site-1",
        name="Hydro Site",
        tranches=[
            Tranche(
                id="t1",
                name="Phase 1",
                power_mw=20.0,
                start_date=start,
                ramp_up_months=3,
                uptime=0.97,
                electricity_price_per_kwh=0.045,
                pool_fee=0.02,
                capex=CapexBreakdown(electrical=3_000_000, civil=800_000, containers=1_200_000),
                opex=OpexBreakdown(insurance=120_000, maintenance=250_000, security=90_000),
            ),
            Tranche(
                id="t2",
                name="Phase 2",
                power_mw=30.0,
                start_date=add_months(start, 12),
                ramp_up_months=6,
                uptime=0.97,
                electricity_price_per_kwh=0.04,
                pool_fee=0.015,
                capex=CapexBreakdown(electrical=4_500_000, civil=1_000_000, containers=1_800_000),
                opex=OpexBreakdown(insurance=150_000, maintenance=350_000, monitoring=60_000),
            ),
        ],
    )

    fleets = [
        Fleet(
            id="fleet-s21e",
            model_id="antminer-s21e-hydro",
            origination_date=start,
            lifespan_years=4,
            quantity_mode="mw",
            quantity_mw=20.0,
        ),
        Fleet(
            id="fleet-s23",
            model_id="antminer-s23-hydro",
            origination_date=add_months(start, 12),
            lifespan_years=5,
            quantity_miners=5000,
        ),
    ]

    return CalculationContext(
        project=Project(id="sample", name="Sample", start_date=start, end_date=end),
        scenario=Scenario(id="base", name="Base case", monthly_data=monthly),
        sites=[site],
        fleets=fleets,
        fleet_assignments=[
            FleetAssignment(fleet_id="fleet-s21e", site_id="site-1", priority=0),
            FleetAssignment(fleet_id="fleet-s23", site_id="site-1", priority=1),
        ],
        team_members=[
            TeamMember(id="ceo", profile_id="exec", scope=CompanyScope(), start_date=start),
            TeamMember(
                id="ops",
                profile_id="tech",
                scope=SiteScope(site_id="site-1"),
                start_date=start,
                employment_rate=0.5,
            ),
        ],
        asic_models=list(PREDEFINED_ASIC_MODELS.values()),
        team_profiles=[
            TeamProfile(id="exec", name="Executive", annual_salary=240_000),
            TeamProfile(id="tech", name="Site technician", annual_salary=70_000),
        ],
    )


def main() -> None:
    configure_logging()
    context = build_sample_context(date(2025, 1, 1), years=5)
    results = compute_scenario_metrics(context)

    df = metrics_to_dataframe(results)
    print(df.to_string(index=False))

    summary = summarize_results(results)
    logger.info(
        "Total BTC %.2f, revenue $%.1fM, EBITDA $%.1fM, cash cost/BTC $%.0f",
        summary.total_btc,
        summary.total_revenue_usd / 1e6,
        summary.total_ebitda / 1e6,
        summary.avg_operating_cost_per_btc,
    )


if __name__ == "__main__":
    main()
