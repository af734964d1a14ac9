# mining_model/core/reporting.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from mining_model.config import settings
from mining_model.core.results import ScenarioResults


@dataclass
class ScenarioSummary:
    """Totals over the whole projection horizon."""

    months: int
    total_btc: float
    total_revenue_usd: float
    total_operating_expenses: float  # excludes depreciation
    total_electricity: float
    total_opex: float
    total_capex_depreciation: float
    total_miner_depreciation: float
    total_team_cost: float
    total_ebitda: float
    avg_operating_cost_per_btc: float

    @property
    def total_depreciation(self) -> float:
        return self.total_capex_depreciation + self.total_miner_depreciation


def metrics_to_dataframe(results: ScenarioResults) -> pd.DataFrame:
    """
    One row per month with the export columns in their fixed order.
    Values are unrounded; see results_to_csv for the formatted export.
    """
    if not results.monthly_metrics:
        return pd.DataFrame(columns=settings.RESULTS_CSV_COLUMNS)

    df = pd.DataFrame(
        [
            {
                "Month": m.month,
                "Active Miners": m.active_miners,
                "Hashrate (TH/s)": m.total_hashrate_ths,
                "BTC Mined": m.total_btc,
                "Revenue (USD)": m.revenue_usd,
                "Electricity Cost": m.electricity_cost,
                "OPEX": m.opex_cost,
                "Team Cost": m.team_cost,
                "Operating Expenses": m.operating_expenses,
                "Site Depreciation": m.capex_depreciation,
                "Miner Depreciation": m.miner_depreciation,
                "Total Depreciation": m.total_depreciation,
                "EBITDA": m.ebitda,
            }
            for m in results.monthly_metrics
        ]
    )

    btc = df["BTC Mined"].to_numpy(dtype=float)
    operating = df["Operating Expenses"].to_numpy(dtype=float)
    df["Operating Cost per BTC"] = np.divide(
        operating, btc, out=np.zeros_like(operating), where=btc > 0
    )
    return df[settings.RESULTS_CSV_COLUMNS]


def results_to_csv(results: ScenarioResults) -> str:
    """CSV export: "Jan 2025" month labels, BTC to 4 dp, money to 2 dp."""
    df = metrics_to_dataframe(results).copy()
    if df.empty:
        return df.to_csv(index=False)

    df["Month"] = pd.to_datetime(df["Month"]).dt.strftime(settings.MONTH_LABEL_FMT)
    df["Active Miners"] = df["Active Miners"].astype(int)
    df["BTC Mined"] = df["BTC Mined"].round(settings.CSV_BTC_DECIMALS)
    money_cols = [
        c
        for c in settings.RESULTS_CSV_COLUMNS
        if c not in ("Month", "Active Miners", "BTC Mined")
    ]
    df[money_cols] = df[money_cols].round(settings.CSV_DECIMALS)
    return df.to_csv(index=False)


def site_metrics_to_dataframe(results: ScenarioResults) -> pd.DataFrame:
    """Long format: one row per (month, site)."""
    records = []
    for m in results.monthly_metrics:
        for s in m.site_metrics:
            records.append(
                {
                    "Month": m.month,
                    "Site": s.site_name,
                    "Site ID": s.site_id,
                    "Active Miners": s.active_miners,
                    "Power Used (MW)": s.power_used_mw,
                    "Available Power (MW)": s.available_power_mw,
                    "Hashrate (TH/s)": s.hashrate_ths,
                    "BTC Mined": s.btc_mined,
                    "Revenue (USD)": s.revenue,
                    "Electricity Cost": s.electricity_cost,
                    "OPEX": s.opex_cost,
                    "Site Depreciation": s.capex_depreciation,
                    "Miner Depreciation": s.miner_depreciation,
                    "Team Cost": s.team_cost,
                    "Total Expenses": s.total_expenses,
                    "EBITDA": s.ebitda,
                }
            )
    return pd.DataFrame.from_records(records)


def fleet_metrics_to_dataframe(results: ScenarioResults) -> pd.DataFrame:
    """Long format: one row per (month, fleet) for deployment charts."""
    records = []
    for m in results.monthly_metrics:
        for f in m.fleet_metrics:
            records.append(
                {
                    "Month": m.month,
                    "Fleet ID": f.fleet_id,
                    "Model ID": f.model_id,
                    "Total Miners": f.total_miners,
                    "Active Miners": f.active_miners,
                    "Failed Miners": f.failed_miners,
                    "Allocated Miners": f.allocated_miners,
                }
            )
    return pd.DataFrame.from_records(records)


def summarize_results(results: ScenarioResults) -> ScenarioSummary:
    rows = results.monthly_metrics
    total_btc = sum(m.total_btc for m in rows)
    total_operating = sum(m.operating_expenses for m in rows)

    return ScenarioSummary(
        months=len(rows),
        total_btc=total_btc,
        total_revenue_usd=sum(m.revenue_usd for m in rows),
        total_operating_expenses=total_operating,
        total_electricity=sum(m.electricity_cost for m in rows),
        total_opex=sum(m.opex_cost for m in rows),
        total_capex_depreciation=sum(m.capex_depreciation for m in rows),
        total_miner_depreciation=sum(m.miner_depreciation for m in rows),
        total_team_cost=sum(m.team_cost for m in rows),
        total_ebitda=sum(m.ebitda for m in rows),
        avg_operating_cost_per_btc=(
            total_operating / total_btc if total_btc > 0 else 0.0
        ),
    )
