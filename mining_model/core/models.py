# mining_model/core/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Literal, Optional, Union

QuantityMode = Literal["miners", "mw"]


@dataclass(frozen=True)
class Project:
    """Project time range; both ends are month granular and inclusive."""

    id: str
    name: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class CapexBreakdown:
    """
    Site infrastructure CapEx for one tranche (USD).

    Depreciated straight-line over SITE_CAPEX_DEPRECIATION_YEARS.
    """

    electrical: float = 0.0
    civil: float = 0.0
    warehouse: float = 0.0
    containers: float = 0.0
    office: float = 0.0
    it_networking: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.electrical
            + self.civil
            + self.warehouse
            + self.containers
            + self.office
            + self.it_networking
        )


@dataclass(frozen=True)
class OpexBreakdown:
    """Annual operating costs for one tranche (USD/year)."""

    insurance: float = 0.0
    maintenance: float = 0.0
    security: float = 0.0
    monitoring: float = 0.0

    @property
    def total_annual(self) -> float:
        return self.insurance + self.maintenance + self.security + self.monitoring

    @property
    def monthly(self) -> float:
        return self.total_annual / 12


@dataclass(frozen=True)
class Tranche:
    """
    Independently scheduled block of power capacity at a site.

    uptime and pool_fee are fractions in [0, 1].
    """

    id: str
    name: str
    power_mw: float
    start_date: date
    ramp_up_months: int = 0
    uptime: float = 1.0
    electricity_price_per_kwh: float = 0.0
    pool_fee: float = 0.0
    capex: CapexBreakdown = field(default_factory=CapexBreakdown)
    opex: OpexBreakdown = field(default_factory=OpexBreakdown)


@dataclass(frozen=True)
class Site:
    id: str
    name: str
    tranches: List[Tranche] = field(default_factory=list)
    project_id: Optional[str] = None
    start_date: Optional[date] = None


@dataclass(frozen=True)
class AsicModel:
    """
    Hardware datasheet entry, shared by fleets and the reference catalogue.
    """

    id: str
    name: str
    power_w: float  # watts
    hashrate_ths: float  # terahash per second
    price_per_th: float  # USD per TH/s


@dataclass(frozen=True)
class Fleet:
    """
    A batch of identical miners delivered on origination_date.

    Sized either by unit count (quantity_mode="miners") or by target
    power (quantity_mode="mw"); the unit count never changes afterwards.
    """

    id: str
    model_id: str
    origination_date: date
    lifespan_years: float
    quantity_mode: QuantityMode = "miners"
    quantity_miners: Optional[int] = None
    quantity_mw: Optional[float] = None
    project_id: Optional[str] = None


@dataclass(frozen=True)
class FleetAssignment:
    """Link between a fleet and a site; lower priority is deployed first."""

    fleet_id: str
    site_id: str
    priority: int = 0
    id: Optional[str] = None


@dataclass(frozen=True)
class TeamProfile:
    id: str
    name: str
    annual_salary: float


@dataclass(frozen=True)
class CompanyScope:
    """Company-wide cost, not attributed to any site."""


@dataclass(frozen=True)
class SiteScope:
    site_id: str


@dataclass(frozen=True)
class TrancheScope:
    tranche_id: str


TeamScope = Union[CompanyScope, SiteScope, TrancheScope]


@dataclass(frozen=True)
class TeamMember:
    id: str
    profile_id: str
    scope: TeamScope
    start_date: date
    employment_rate: float = 1.0  # 0–1


@dataclass(frozen=True)
class ScenarioMonthlyData:
    month: date  # first day of month
    btc_price_usd: float
    global_hashrate_eh: float
    tx_fees_per_block: float  # BTC per block


@dataclass
class Scenario:
    id: str
    name: str
    monthly_data: List[ScenarioMonthlyData] = field(default_factory=list)
    is_generated: bool = False

    def economics_for(self, month: date) -> Optional[ScenarioMonthlyData]:
        """Exact-month lookup; returns None when the month is not covered."""
        for row in self.monthly_data:
            if row.month == month:
                return row
        return None


@dataclass
class CalculationContext:
    """
    Fully resolved inputs for one engine run.

    Collections are supplied by the caller; the engine never loads
    anything lazily and never mutates them.
    """

    project: Project
    scenario: Scenario
    sites: List[Site] = field(default_factory=list)
    fleets: List[Fleet] = field(default_factory=list)
    fleet_assignments: List[FleetAssignment] = field(default_factory=list)
    team_members: List[TeamMember] = field(default_factory=list)
    asic_models: List[AsicModel] = field(default_factory=list)
    team_profiles: List[TeamProfile] = field(default_factory=list)
