# mining_model/core/results.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List


@dataclass
class FleetMonthlyMetrics:
    fleet_id: str
    model_id: str
    total_miners: int
    active_miners: int
    failed_miners: int
    allocated_miners: int


@dataclass
class SiteMonthlyMetrics:
    """
    Per-site economics for one month. btc_mined is after pool fee.
    """

    site_id: str
    site_name: str
    active_miners: int
    power_used_mw: float
    available_power_mw: float
    hashrate_ths: float
    btc_mined: float
    revenue: float
    electricity_cost: float
    opex_cost: float
    capex_depreciation: float
    miner_depreciation: float
    team_cost: float
    total_expenses: float
    ebitda: float


@dataclass
class MonthlyFinancialMetrics:
    """
    Company-wide economics for one month.

    btc_mined is the gross subsidy share before pool fees; total_btc is
    what the company keeps (subsidy + fees, after pool fee) and is the
    figure revenue is based on.
    """

    month: date

    # Mining
    active_miners: int
    failed_miners: int
    spare_miners: int
    total_hashrate_ths: float

    # Revenue
    btc_mined: float
    btc_after_pool_fee: float
    tx_fee_revenue_btc: float
    total_btc: float
    revenue_usd: float

    # Expenses
    electricity_cost: float
    opex_cost: float
    capex_depreciation: float
    miner_depreciation: float
    team_cost: float
    total_expenses: float

    # Metrics
    ebitda: float
    cost_per_btc: float

    # Inputs used for the month
    block_reward: float = 0.0
    btc_price_usd: float = 0.0

    site_metrics: List[SiteMonthlyMetrics] = field(default_factory=list)
    fleet_metrics: List[FleetMonthlyMetrics] = field(default_factory=list)

    @property
    def operating_expenses(self) -> float:
        return self.electricity_cost + self.opex_cost + self.team_cost

    @property
    def total_depreciation(self) -> float:
        return self.capex_depreciation + self.miner_depreciation

    @property
    def operating_cost_per_btc(self) -> float:
        """Cash cost per BTC, excluding depreciation."""
        return self.operating_expenses / self.total_btc if self.total_btc > 0 else 0.0


@dataclass
class ScenarioResults:
    scenario_id: str
    scenario_name: str
    monthly_metrics: List[MonthlyFinancialMetrics] = field(default_factory=list)
