from __future__ import annotations

import math
import os
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from services.components import Battery, DispatchableGenerator, Microgrid, OperationStats, Project
from services.microgrid_economics import economics
from utils.economics import CostFactors, MicrogridCosts, UnsupportedConfigurationError, component_costs
from utils.io import costs_to_frame, nondispatchable_from_dict, project_from_dict

# LCOE is currency per kWh, so it keeps more decimals than currency totals when rounded.
LCOE_EXTRA_DIGITS = 4


class ProjectPayload(BaseModel):
    lifetime: int = 25
    discount_rate: float = 0.05
    timestep: float = 1.0
    currency: str = "$"
    salvage_type: str = "linear"

    def build(self) -> Project:
        if self.lifetime <= 0:
            raise HTTPException(status_code=400, detail="project lifetime must be a positive number of years.")
        if not self.discount_rate >= 0:
            raise HTTPException(status_code=400, detail="project discount_rate must be non-negative.")
        try:
            return project_from_dict(self.dict())
        except UnsupportedConfigurationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc


class GeneratorPayload(BaseModel):
    """Pydantic mirror of :class:`DispatchableGenerator` for FastAPI requests."""

    power_rated: float
    fuel_intercept: float = 0.0
    fuel_slope: float = 0.0
    fuel_price: float
    investment_price: float
    om_price_hours: float
    lifetime_hours: float
    load_ratio_min: float = 0.0
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0
    fuel_unit: str = "L"

    def build(self) -> DispatchableGenerator:
        return DispatchableGenerator(**self.dict())


class BatteryPayload(BaseModel):
    """Pydantic mirror of :class:`Battery` for FastAPI requests."""

    energy_rated: float
    investment_price: float
    om_price: float
    lifetime_calendar: float
    lifetime_cycles: float
    charge_rate: float = 1.0
    discharge_rate: float = 1.0
    loss_factor: float = 0.05
    soc_min: float = 0.0
    soc_ini: float = 0.0
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0

    def build(self) -> Battery:
        return Battery(**self.dict())


class NonDispatchablePayload(BaseModel):
    """Renewable source tagged by ``kind``; only the fields of that kind are set."""

    kind: Literal["generic", "photovoltaic", "wind", "pv_inverter"]
    power_rated: float
    investment_price: Optional[float] = None
    om_price: Optional[float] = None
    lifetime: Optional[float] = None
    irradiance: Optional[List[float]] = None
    derating_factor: Optional[float] = None
    irradiance_std: Optional[float] = None
    wind_speed: Optional[List[float]] = None
    hub_height: Optional[float] = None
    anemometer_height: Optional[float] = None
    roughness_length: Optional[float] = None
    cut_in_speed: Optional[float] = None
    rated_speed: Optional[float] = None
    cut_out_speed: Optional[float] = None
    ilr: Optional[float] = None
    investment_price_ac: Optional[float] = None
    investment_price_dc: Optional[float] = None
    om_price_ac: Optional[float] = None
    om_price_dc: Optional[float] = None
    lifetime_ac: Optional[float] = None
    lifetime_dc: Optional[float] = None
    replacement_price_ratio: Optional[float] = None
    salvage_price_ratio: Optional[float] = None

    def build(self) -> Any:
        fields = self.dict(exclude_none=True)
        if fields["kind"] == "pv_inverter":
            fields.setdefault("irradiance", [])
        try:
            return nondispatchable_from_dict(fields)
        except TypeError as exc:
            raise HTTPException(
                status_code=400, detail=f"Invalid '{self.kind}' nondispatchable source: {exc}"
            ) from exc


class OperationStatsPayload(BaseModel):
    served_energy: float
    gen_hours: float
    gen_fuel: float
    storage_cycles: float

    def build(self) -> OperationStats:
        return OperationStats(**self.dict())


class EconomicsRequest(BaseModel):
    project: ProjectPayload = Field(default_factory=ProjectPayload)
    generator: GeneratorPayload
    storage: BatteryPayload
    nondispatchables: List[NonDispatchablePayload] = Field(default_factory=list)
    operation_stats: OperationStatsPayload
    round_digits: Optional[int] = None


class ComponentCostsRequest(BaseModel):
    project: ProjectPayload = Field(default_factory=ProjectPayload)
    lifetime: Optional[float] = None  # None means infinite (unused component)
    investment: float
    replacement: float
    salvage: float
    om_annual: float = 0.0
    fuel_annual: float = 0.0


def _finite_or_none(value: float) -> Optional[float]:
    # JSON has no representation for inf/nan.
    return value if math.isfinite(value) else None


def _serialize_cost_factors(costs: CostFactors) -> Dict[str, Optional[float]]:
    return {key: _finite_or_none(value) for key, value in costs.to_dict().items()}


def _serialize_costs(costs: MicrogridCosts) -> Dict[str, Any]:
    return {
        "lcoe": _finite_or_none(float(costs.lcoe)),
        "npc": _finite_or_none(float(costs.npc)),
        "system": _serialize_cost_factors(costs.system),
        "generator": _serialize_cost_factors(costs.generator),
        "storage": _serialize_cost_factors(costs.storage),
        "nondispatchables": [_serialize_cost_factors(c) for c in costs.nondispatchables],
    }


def _round_costs(costs: MicrogridCosts, digits: int) -> MicrogridCosts:
    return MicrogridCosts(
        lcoe=round(costs.lcoe, digits + LCOE_EXTRA_DIGITS),
        npc=round(costs.npc, digits),
        system=costs.system.round(digits=digits),
        generator=costs.generator.round(digits=digits),
        storage=costs.storage.round(digits=digits),
        nondispatchables=tuple(c.round(digits=digits) for c in costs.nondispatchables),
    )


app = FastAPI(
    title="MicrogridLab API",
    description="Lightweight REST API for evaluating microgrid lifecycle economics.",
    version="0.1.0",
)


_default_cors_origins = [
    # Vite dev/preview servers
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:4173",
    "http://127.0.0.1:4173",
]
_allowed_origins_env = os.getenv("MICROGRIDLAB_CORS_ORIGINS", "")
_allowed_origins = [
    origin.strip()
    for origin in _allowed_origins_env.split(",")
    if origin.strip()
] or _default_cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, str]:
    """Simple liveness probe for container orchestrators."""
    return {"status": "ok"}


@app.post("/economics")
def evaluate_economics(request: EconomicsRequest) -> Dict[str, Any]:
    """Evaluate NPC, LCOE and per-component cost factors of a microgrid."""

    mg = Microgrid(
        project=request.project.build(),
        generator=request.generator.build(),
        storage=request.storage.build(),
        nondispatchables=tuple(nd.build() for nd in request.nondispatchables),
    )
    costs = economics(mg, request.operation_stats.build())
    if request.round_digits is not None:
        costs = _round_costs(costs, request.round_digits)

    table = costs_to_frame(costs).reset_index()
    return {
        "costs": _serialize_costs(costs),
        "table": [
            {key: (_finite_or_none(value) if isinstance(value, float) else value) for key, value in row.items()}
            for row in table.to_dict(orient="records")
        ],
    }


@app.post("/component-costs")
def evaluate_component_costs(request: ComponentCostsRequest) -> Dict[str, Any]:
    """Run the generic lifecycle cost formula on nominal cost inputs."""

    project = request.project.build()
    if request.lifetime is not None and not request.lifetime > 0:
        raise HTTPException(status_code=400, detail="lifetime must be positive; omit it for an unused component.")
    lifetime = math.inf if request.lifetime is None else request.lifetime
    costs = component_costs(
        project,
        lifetime,
        request.investment,
        request.replacement,
        request.salvage,
        request.om_annual,
        request.fuel_annual,
        project.salvage_type,
    )
    return {"costs": _serialize_cost_factors(costs)}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=False)
