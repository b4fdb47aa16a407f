"""Microgrid project and component descriptions.

Every record here is a frozen dataclass holding nominal prices, ratings and
lifetimes. Prices are expressed per unit of rating (e.g. $/kW for power
components, $/kWh for storage) so the economics can scale them by size.
No unit validation is performed; callers are trusted for domain sanity.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Tuple, Union


class SalvageType(Enum):
    """Formula used to value a component that is still alive at project end.

    * ``LINEAR``: salvage value proportional to the remaining lifetime.
    * ``CONSISTENT``: salvage value depreciated at the project discount rate,
      which keeps the net present cost independent of when the project ends
      within a component's life.
    """

    LINEAR = "linear"
    CONSISTENT = "consistent"


# Aliases matching the names commonly used in microgrid sizing literature.
LinearSalvage = SalvageType.LINEAR
ConsistentSalvage = SalvageType.CONSISTENT


@dataclass(frozen=True)
class Project:
    """Microgrid project information.

    Units:
    - ``lifetime``: project horizon in years.
    - ``discount_rate``: per year, e.g. 0.05 for 5 %.
    - ``timestep``: operation simulation step in hours.
    """

    lifetime: int
    discount_rate: float
    timestep: float = 1.0
    currency: str = "$"
    salvage_type: SalvageType = SalvageType.LINEAR


@dataclass(frozen=True)
class DispatchableGenerator:
    """Dispatchable power source (e.g. diesel generator, gas turbine).

    Units:
    - ``power_rated``: kW.
    - ``fuel_intercept``, ``fuel_slope``: fuel curve coefficients (L/h/kW).
    - ``fuel_price``: currency per fuel unit.
    - ``investment_price``: currency/kW.
    - ``om_price_hours``: currency/kW per operating hour.
    - ``lifetime_hours``: operating hours before replacement.
    """

    power_rated: float
    fuel_intercept: float
    fuel_slope: float
    fuel_price: float
    investment_price: float
    om_price_hours: float
    lifetime_hours: float
    load_ratio_min: float = 0.0
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0
    fuel_unit: str = "L"


@dataclass(frozen=True)
class Battery:
    """Battery energy storage (including AC/DC converter).

    Units:
    - ``energy_rated``: kWh.
    - ``investment_price``: currency/kWh.
    - ``om_price``: currency/kWh per year.
    - ``lifetime_calendar``: years; ``lifetime_cycles``: full cycles.
    """

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


@dataclass(frozen=True)
class NonDispatchableSource:
    """Generic renewable source described by its economics only."""

    power_rated: float
    investment_price: float
    om_price: float
    lifetime: float
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0


@dataclass(frozen=True)
class Photovoltaic:
    """Photovoltaic generator whose power follows the irradiance profile.

    ``irradiance`` is the plane-of-array irradiance time series and
    ``irradiance_std`` the standard test irradiance it is normalized by
    (1.0 when the series is already in kW/m² relative units).
    """

    power_rated: float
    irradiance: Sequence[float]
    investment_price: float
    om_price: float
    lifetime: float
    derating_factor: float = 1.0
    irradiance_std: float = 1.0
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0


@dataclass(frozen=True)
class WindPower:
    """Wind turbine with a quadratic power curve.

    Units:
    - ``wind_speed``: anemometer wind speed time series, m/s.
    - heights (hub, anemometer, roughness length): m.
    - cut-in, rated and cut-out speeds: m/s.
    """

    power_rated: float
    wind_speed: Sequence[float]
    investment_price: float
    om_price: float
    lifetime: float
    hub_height: float
    anemometer_height: float
    roughness_length: float
    cut_in_speed: float
    rated_speed: float
    cut_out_speed: float
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0


@dataclass(frozen=True)
class PVInverter:
    """Photovoltaic panels behind an inverter, costed as two parts.

    ``power_rated`` is the AC (inverter) rating, ``ilr`` the inverter
    loading ratio so the DC (panels) rating is ``power_rated * ilr``.
    """

    power_rated: float
    ilr: float
    irradiance: Sequence[float]
    investment_price_ac: float
    investment_price_dc: float
    om_price_ac: float
    om_price_dc: float
    lifetime_ac: float
    lifetime_dc: float
    derating_factor: float = 1.0
    replacement_price_ratio: float = 1.0
    salvage_price_ratio: float = 1.0


NonDispatchable = Union[NonDispatchableSource, Photovoltaic, WindPower, PVInverter]
Component = Union[DispatchableGenerator, Battery, NonDispatchable]


@dataclass(frozen=True)
class Microgrid:
    """Microgrid system description: project plus its components."""

    project: Project
    generator: DispatchableGenerator
    storage: Battery
    nondispatchables: Tuple[NonDispatchable, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Freeze a list passed by callers so the record stays immutable.
        object.__setattr__(self, "nondispatchables", tuple(self.nondispatchables))


@dataclass(frozen=True)
class OperationStats:
    """Aggregated statistics over a simulated year of operation.

    Only ``served_energy``, ``gen_hours``, ``gen_fuel`` and
    ``storage_cycles`` drive the economics; the other fields are carried for
    reporting.
    """

    served_energy: float
    gen_hours: float
    gen_fuel: float
    storage_cycles: float
    shed_energy: float = 0.0
    shed_max: float = 0.0
    shed_hours: float = 0.0
    shed_duration: float = 0.0
    shed_rate: float = 0.0
    gen_energy: float = 0.0
    storage_char_energy: float = 0.0
    storage_dis_energy: float = 0.0
    storage_loss_energy: float = 0.0
    spilled_energy: float = 0.0
    spilled_max: float = 0.0
    spilled_rate: float = 0.0
    renew_potential_energy: float = 0.0
    renew_energy: float = 0.0
    renew_rate: float = 0.0


__all__ = [
    "SalvageType",
    "LinearSalvage",
    "ConsistentSalvage",
    "Project",
    "DispatchableGenerator",
    "Battery",
    "NonDispatchableSource",
    "Photovoltaic",
    "WindPower",
    "PVInverter",
    "NonDispatchable",
    "Component",
    "Microgrid",
    "OperationStats",
]
