"""Economic evaluation of a microgrid project.

Each component kind gets an adapter deriving nominal costs (investment,
replacement, salvage, yearly O&M and fuel) and an effective lifetime from its
description and the operation statistics. The adapters delegate the
discounting to :func:`utils.economics.component_costs`; :func:`economics`
then sums all components into the system NPC and LCOE.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from services.components import (
    Battery,
    Component,
    DispatchableGenerator,
    Microgrid,
    NonDispatchableSource,
    OperationStats,
    Photovoltaic,
    Project,
    PVInverter,
    SalvageType,
    WindPower,
)
from utils.economics import CostFactors, MicrogridCosts, capital_recovery_factor, component_costs


def generator_costs(
    gen: DispatchableGenerator,
    project: Project,
    oper_stats: OperationStats,
    salvage_type: SalvageType = SalvageType.LINEAR,
) -> CostFactors:
    """Compute net present cost factors for a :class:`DispatchableGenerator`.

    The effective lifetime (years) is the rated operating hours divided by
    the yearly operating hours. A generator that never runs is never worn,
    so its lifetime is infinite.
    """

    rating = gen.power_rated
    investment = gen.investment_price * rating
    replacement = investment * gen.replacement_price_ratio
    salvage = investment * gen.salvage_price_ratio
    om_annual = gen.om_price_hours * oper_stats.gen_hours * rating
    fuel_annual = gen.fuel_price * oper_stats.gen_fuel

    if oper_stats.gen_hours == 0:
        lifetime = math.inf
    else:
        lifetime = gen.lifetime_hours / oper_stats.gen_hours

    return component_costs(
        project, lifetime, investment, replacement, salvage, om_annual, fuel_annual, salvage_type
    )


def storage_costs(
    battery: Battery,
    project: Project,
    oper_stats: OperationStats,
    salvage_type: SalvageType = SalvageType.LINEAR,
) -> CostFactors:
    """Compute net present cost factors for a :class:`Battery`.

    The effective lifetime is the shorter of the cycling lifetime and the
    calendar lifetime; without cycling only the calendar lifetime applies.
    """

    rating = battery.energy_rated
    investment = battery.investment_price * rating
    replacement = investment * battery.replacement_price_ratio
    salvage = investment * battery.salvage_price_ratio
    om_annual = battery.om_price * rating
    fuel_annual = 0.0

    if oper_stats.storage_cycles > 0.0:
        lifetime = min(
            battery.lifetime_cycles / oper_stats.storage_cycles,
            battery.lifetime_calendar,
        )
    else:
        lifetime = battery.lifetime_calendar

    return component_costs(
        project, lifetime, investment, replacement, salvage, om_annual, fuel_annual, salvage_type
    )


def nondispatchable_costs(
    source: NonDispatchableSource | Photovoltaic | WindPower,
    project: Project,
    salvage_type: SalvageType = SalvageType.LINEAR,
) -> CostFactors:
    """Compute net present cost factors for a generic renewable source (PV, wind...)."""

    rating = source.power_rated
    investment = source.investment_price * rating
    replacement = investment * source.replacement_price_ratio
    salvage = investment * source.salvage_price_ratio
    om_annual = source.om_price * rating

    return component_costs(
        project, source.lifetime, investment, replacement, salvage, om_annual, 0.0, salvage_type
    )


def pv_inverter_costs(
    pv: PVInverter,
    project: Project,
    salvage_type: SalvageType = SalvageType.LINEAR,
) -> CostFactors:
    """Compute net present cost factors for a :class:`PVInverter`.

    The AC part (inverter, rated ``power_rated``) and the DC part (panels,
    rated ``power_rated * ilr``) have their own prices and lifetimes.
    """

    rating_ac = pv.power_rated
    investment_ac = pv.investment_price_ac * rating_ac
    c_ac = component_costs(
        project,
        pv.lifetime_ac,
        investment_ac,
        investment_ac * pv.replacement_price_ratio,
        investment_ac * pv.salvage_price_ratio,
        pv.om_price_ac * rating_ac,
        0.0,
        salvage_type,
    )

    rating_dc = pv.power_rated * pv.ilr
    investment_dc = pv.investment_price_dc * rating_dc
    c_dc = component_costs(
        project,
        pv.lifetime_dc,
        investment_dc,
        investment_dc * pv.replacement_price_ratio,
        investment_dc * pv.salvage_price_ratio,
        pv.om_price_dc * rating_dc,
        0.0,
        salvage_type,
    )

    return c_ac + c_dc


def compute_cost(
    component: Component,
    project: Project,
    oper_stats: Optional[OperationStats],
    salvage_type: SalvageType = SalvageType.LINEAR,
) -> CostFactors:
    """Dispatch ``component`` to the cost adapter of its kind.

    ``oper_stats`` is required for the generator and the battery, whose
    effective lifetime depends on usage; renewables ignore it.
    """

    if isinstance(component, DispatchableGenerator):
        if oper_stats is None:
            raise ValueError("oper_stats is required to cost a DispatchableGenerator")
        return generator_costs(component, project, oper_stats, salvage_type)
    elif isinstance(component, Battery):
        if oper_stats is None:
            raise ValueError("oper_stats is required to cost a Battery")
        return storage_costs(component, project, oper_stats, salvage_type)
    elif isinstance(component, PVInverter):
        return pv_inverter_costs(component, project, salvage_type)
    elif isinstance(component, (NonDispatchableSource, Photovoltaic, WindPower)):
        return nondispatchable_costs(component, project, salvage_type)
    else:
        raise TypeError(f"Unsupported component kind: {type(component).__name__}")


def economics(mg: Microgrid, oper_stats: OperationStats) -> MicrogridCosts:
    """Return the economics results for ``mg`` given aggregated operation statistics.

    A zero ``served_energy`` gives a non-finite LCOE rather than an error.
    """

    project = mg.project
    salvage_type = project.salvage_type

    gen_costs = compute_cost(mg.generator, project, oper_stats, salvage_type)
    sto_costs = compute_cost(mg.storage, project, oper_stats, salvage_type)
    nd_costs = tuple(compute_cost(nd, project, oper_stats, salvage_type) for nd in mg.nondispatchables)

    crf = capital_recovery_factor(project)

    system_costs = gen_costs + sto_costs
    for costs in nd_costs:
        system_costs = system_costs + costs
    npc = system_costs.total

    annualized_cost = npc * crf  # currency/y
    if oper_stats.served_energy == 0:
        logging.getLogger(__name__).warning(
            "Served energy is zero; LCOE is not finite (annualized cost %.2f).", annualized_cost
        )
    with np.errstate(divide="ignore", invalid="ignore"):
        lcoe = float(np.divide(np.float64(annualized_cost), oper_stats.served_energy))

    logging.getLogger(__name__).debug(
        "Microgrid economics: npc=%.2f, lcoe=%.4f over %d nondispatchable source(s).",
        npc,
        lcoe,
        len(nd_costs),
    )

    return MicrogridCosts(
        lcoe=lcoe,
        npc=npc,
        system=system_costs,
        generator=gen_costs,
        storage=sto_costs,
        nondispatchables=nd_costs,
    )


__all__ = [
    "generator_costs",
    "storage_costs",
    "nondispatchable_costs",
    "pv_inverter_costs",
    "compute_cost",
    "economics",
]
