# mining_model/core/context_loader.py
"""
Build a CalculationContext from the camelCase mapping used by the
persistence layer (the same shape the export files use).

Expected keys: project, scenario, sites, fleets, fleetAssignments,
teamMembers, asicModels, teamProfiles. Only `project` and `scenario` are
required; missing collections default to empty.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from mining_model.core.dates import month_start, to_date
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
    TeamScope,
    Tranche,
    TrancheScope,
)


def _capex(raw: Mapping[str, Any] | None) -> CapexBreakdown:
    raw = raw or {}
    return CapexBreakdown(
        electrical=float(raw.get("electrical", 0.0)),
        civil=float(raw.get("civil", 0.0)),
        warehouse=float(raw.get("warehouse", 0.0)),
        containers=float(raw.get("containers", 0.0)),
        office=float(raw.get("office", 0.0)),
        it_networking=float(raw.get("itNetworking", 0.0)),
    )


def _opex(raw: Mapping[str, Any] | None) -> OpexBreakdown:
    raw = raw or {}
    return OpexBreakdown(
        insurance=float(raw.get("insurance", 0.0)),
        maintenance=float(raw.get("maintenance", 0.0)),
        security=float(raw.get("security", 0.0)),
        monitoring=float(raw.get("monitoring", 0.0)),
    )


def _tranche(raw: Mapping[str, Any]) -> Tranche:
    return Tranche(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        power_mw=float(raw["powerMW"]),
        start_date=to_date(raw["startDate"]),
        ramp_up_months=int(raw.get("rampUpMonths", 0)),
        uptime=float(raw.get("uptime", 1.0)),
        electricity_price_per_kwh=float(raw.get("electricityPricePerKWh", 0.0)),
        pool_fee=float(raw.get("poolFee", 0.0)),
        capex=_capex(raw.get("capex")),
        opex=_opex(raw.get("opex")),
    )


def _site(raw: Mapping[str, Any]) -> Site:
    return Site(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        tranches=[_tranche(t) for t in raw.get("tranches", [])],
        project_id=raw.get("projectId"),
        start_date=to_date(raw["startDate"]) if raw.get("startDate") else None,
    )


def _fleet(raw: Mapping[str, Any]) -> Fleet:
    mode = raw.get("quantityMode", "miners")
    if mode not in ("miners", "mw"):
        raise ProjectionInputError(
            f"Fleet {raw.get('id')} has unknown quantityMode {mode!r}"
        )
    quantity_miners = raw.get("quantityMiners")
    quantity_mw = raw.get("quantityMW")
    return Fleet(
        id=str(raw["id"]),
        model_id=str(raw["modelId"]),
        origination_date=to_date(raw["originationDate"]),
        lifespan_years=float(raw["lifespanYears"]),
        quantity_mode=mode,
        quantity_miners=int(quantity_miners) if quantity_miners is not None else None,
        quantity_mw=float(quantity_mw) if quantity_mw is not None else None,
        project_id=raw.get("projectId"),
    )


def _assignment(raw: Mapping[str, Any]) -> FleetAssignment:
    return FleetAssignment(
        fleet_id=str(raw["fleetId"]),
        site_id=str(raw["siteId"]),
        priority=int(raw.get("priority", 0)),
        id=raw.get("id"),
    )


def parse_scope(raw: Mapping[str, Any] | None) -> TeamScope:
    """Turn {"type": ..., "targetId": ...} into a typed scope."""
    raw = raw or {"type": "company"}
    scope_type = raw.get("type")
    target_id = raw.get("targetId")

    if scope_type == "company":
        return CompanyScope()
    if scope_type not in ("site", "tranche"):
        raise ProjectionInputError(f"Unknown team scope type {scope_type!r}")
    if not target_id:
        raise ProjectionInputError(f"Team scope {scope_type!r} requires a targetId")
    if scope_type == "site":
        return SiteScope(site_id=str(target_id))
    return TrancheScope(tranche_id=str(target_id))


def _member(raw: Mapping[str, Any], position: int) -> TeamMember:
    return TeamMember(
        id=str(raw.get("id", f"member-{position}")),
        profile_id=str(raw["profileId"]),
        scope=parse_scope(raw.get("scope")),
        start_date=to_date(raw["startDate"]),
        employment_rate=float(raw.get("employmentRate", 1.0)),
    )


def _model(raw: Mapping[str, Any]) -> AsicModel:
    return AsicModel(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        power_w=float(raw["powerW"]),
        hashrate_ths=float(raw["hashrateThS"]),
        price_per_th=float(raw.get("pricePerTh", 0.0)),
    )


def _profile(raw: Mapping[str, Any]) -> TeamProfile:
    return TeamProfile(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        annual_salary=float(raw["annualSalary"]),
    )


def _scenario(raw: Mapping[str, Any]) -> Scenario:
    monthly: List[ScenarioMonthlyData] = [
        ScenarioMonthlyData(
            month=month_start(row["month"]),
            btc_price_usd=float(row["btcPriceUSD"]),
            global_hashrate_eh=float(row["globalHashrateEH"]),
            tx_fees_per_block=float(row["txFeesPerBlock"]),
        )
        for row in raw.get("monthlyData", [])
    ]
    return Scenario(
        id=str(raw.get("id", "scenario")),
        name=str(raw.get("name", raw.get("id", "scenario"))),
        monthly_data=monthly,
        is_generated=bool(raw.get("isGenerated", False)),
    )


def load_context(payload: Mapping[str, Any]) -> CalculationContext:
    """
    Validate and convert a raw payload into a CalculationContext.

    Raises ProjectionInputError for a missing project or scenario, a
    missing required field, or a value that cannot be parsed.
    """
    if not payload or not payload.get("project"):
        raise ProjectionInputError("Project not found in calculation payload")
    if not payload.get("scenario"):
        raise ProjectionInputError("Scenario not found in calculation payload")

    try:
        raw_project = payload["project"]
        project = Project(
            id=str(raw_project.get("id", "project")),
            name=str(raw_project.get("name", raw_project.get("id", "project"))),
            start_date=month_start(raw_project["startDate"]),
            end_date=month_start(raw_project["endDate"]),
        )
        if project.end_date < project.start_date:
            raise ProjectionInputError(
                f"Project {project.id} ends before it starts "
                f"({project.end_date} < {project.start_date})"
            )

        return CalculationContext(
            project=project,
            scenario=_scenario(payload["scenario"]),
            sites=[_site(s) for s in payload.get("sites", [])],
            fleets=[_fleet(f) for f in payload.get("fleets", [])],
            fleet_assignments=[
                _assignment(a) for a in payload.get("fleetAssignments", [])
            ],
            team_members=[
                _member(m, i) for i, m in enumerate(payload.get("teamMembers", []))
            ],
            asic_models=[_model(m) for m in payload.get("asicModels", [])],
            team_profiles=[_profile(p) for p in payload.get("teamProfiles", [])],
        )
    except ProjectionInputError:
        raise
    except KeyError as exc:
        raise ProjectionInputError(f"Missing required field: {exc}") from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise ProjectionInputError(f"Invalid calculation payload: {exc}") from exc
