"""Net present cost factors and the lifecycle cost formula.

Cost factors are expressed as Net Present Values: they are cumulated and
discounted sums over the lifetime of the microgrid project. They can describe
a single component or a set of components like the entire system.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from services.components import Project, SalvageType


class UnsupportedConfigurationError(ValueError):
    """Raised when a cost formula option is not implemented."""


@dataclass(frozen=True)
class CostFactors:
    """Net present cost factors of some part of a microgrid project.

    ``total`` is computed once by :func:`component_costs` as the sum of the
    other fields. Field-wise transforms (rounding in particular) are applied
    to ``total`` independently, so afterwards it may differ slightly from the
    sum of the other fields.
    """

    total: float  # initial + replacement + O&M + fuel + salvage
    investment: float
    replacement: float
    om: float  # operation & maintenance
    fuel: float
    salvage: float  # negative: value recovered at project end

    def __add__(self, other: object) -> "CostFactors":
        if not isinstance(other, CostFactors):
            return NotImplemented
        return CostFactors(
            total=self.total + other.total,
            investment=self.investment + other.investment,
            replacement=self.replacement + other.replacement,
            om=self.om + other.om,
            fuel=self.fuel + other.fuel,
            salvage=self.salvage + other.salvage,
        )

    def __radd__(self, other: object) -> "CostFactors":
        # Lets builtin sum() start from its integer 0.
        if other == 0:
            return self
        return NotImplemented

    def __mul__(self, factor: float) -> "CostFactors":
        if isinstance(factor, CostFactors):
            return NotImplemented
        return CostFactors(
            total=self.total * factor,
            investment=self.investment * factor,
            replacement=self.replacement * factor,
            om=self.om * factor,
            fuel=self.fuel * factor,
            salvage=self.salvage * factor,
        )

    __rmul__ = __mul__

    def __truediv__(self, factor: float) -> "CostFactors":
        # Float semantics: dividing by zero yields inf/nan fields, not an exception.
        with np.errstate(divide="ignore", invalid="ignore"):
            inverse = np.divide(1.0, np.float64(factor))
        return self * inverse

    def round(self, digits: Optional[int] = None, sigdigits: Optional[int] = None) -> "CostFactors":
        """Round each field, either to ``digits`` decimals or ``sigdigits`` significant digits.

        Ties round to the nearest even value. Without arguments, fields are
        rounded to integers. ``total`` is rounded on its own and not
        recomputed from the rounded fields.
        """

        if digits is not None and sigdigits is not None:
            raise ValueError("round cannot use both `digits` and `sigdigits` arguments.")

        ndigits = 0 if digits is None else digits

        def rounder(value: float) -> float:
            if sigdigits is None:
                return round(value, ndigits)
            return _round_significant(value, sigdigits)

        return CostFactors(
            total=rounder(self.total),
            investment=rounder(self.investment),
            replacement=rounder(self.replacement),
            om=rounder(self.om),
            fuel=rounder(self.fuel),
            salvage=rounder(self.salvage),
        )

    def __round__(self, ndigits: Optional[int] = None) -> "CostFactors":
        return self.round(digits=ndigits)

    def to_dict(self) -> Dict[str, float]:
        return {key: float(value) for key, value in asdict(self).items()}


@dataclass(frozen=True)
class MicrogridCosts:
    """Cost factors of each component of a microgrid.

    Units:
    - ``lcoe``: levelized cost of electricity (currency/kWh).
    - ``npc``: net present cost of the microgrid (currency), equal to
      ``system.total``.

    ``lcoe`` is the annualized ``npc`` divided by the yearly served energy,
    assuming the served energy is constant over the project lifetime.
    """

    lcoe: float
    npc: float
    system: CostFactors
    generator: CostFactors
    storage: CostFactors
    nondispatchables: Tuple[CostFactors, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "lcoe": float(self.lcoe),
            "npc": float(self.npc),
            "system": self.system.to_dict(),
            "generator": self.generator.to_dict(),
            "storage": self.storage.to_dict(),
            "nondispatchables": [c.to_dict() for c in self.nondispatchables],
        }


def _round_significant(value: float, sigdigits: int) -> float:
    """Round ``value`` to ``sigdigits`` significant digits (0, inf and nan pass through)."""

    if value == 0 or not math.isfinite(value):
        return value
    magnitude = int(math.floor(math.log10(abs(value))))
    return round(value, sigdigits - 1 - magnitude)


def _discount_factor(discount_rate: float, year_index: float) -> float:
    """Return the discount factor for a given year index (1-indexed)."""

    return 1.0 / ((1.0 + discount_rate) ** year_index)


def discount_factors(project: Project) -> List[float]:
    """Return the discount factor of each project year, 1 to ``project.lifetime``."""

    return [_discount_factor(project.discount_rate, year) for year in range(1, project.lifetime + 1)]


def capital_recovery_factor(project: Project) -> float:
    """Return the CRF: the reciprocal of the sum of yearly discount factors."""

    return 1.0 / sum(discount_factors(project))


def _resolve_salvage_type(salvage_type: object) -> SalvageType:
    try:
        return SalvageType(salvage_type)
    except ValueError:
        raise UnsupportedConfigurationError(
            f"salvage_type={salvage_type!r} not implemented. "
            "Use SalvageType.LINEAR or SalvageType.CONSISTENT instead."
        ) from None


def component_costs(
    project: Project,
    lifetime: float,
    investment: float,
    replacement: float,
    salvage: float,
    om_annual: float,
    fuel_annual: float,
    salvage_type: SalvageType = SalvageType.LINEAR,
) -> CostFactors:
    """Compute net present cost factors of a component over the project lifetime.

    Parameters
    ----------
    project
        Microgrid project description (discount rate and lifetime).
    lifetime
        Effective lifetime of the component in years. ``math.inf`` stands for
        a component with zero usage, which is never replaced and is sold
        "as new" at project end.
    investment
        Initial investment cost.
    replacement
        Nominal cost of each replacement.
    salvage
        Nominal salvage value if the component were sold at zero aging.
    om_annual, fuel_annual
        Nominal operation & maintenance and fuel costs per year.
    salvage_type
        Salvage value formula, see :class:`SalvageType`. At a zero discount
        rate both formulas coincide and the linear one is used.

    Raises
    ------
    UnsupportedConfigurationError
        If ``salvage_type`` is not a :class:`SalvageType` member (or value).
    ZeroDivisionError
        If ``lifetime`` is zero: the replacement count is undefined. Zero
        usage must be passed as ``math.inf`` instead.
    """

    salvage_type = _resolve_salvage_type(salvage_type)

    mg_lifetime = project.lifetime
    discount_rate = project.discount_rate
    factors = discount_factors(project)
    sum_discounts = sum(factors)

    om_cost = om_annual * sum_discounts
    fuel_cost = fuel_annual * sum_discounts

    if lifetime < math.inf:
        replacements_number = math.ceil(mg_lifetime / lifetime) - 1

        if replacements_number == 0:
            replacement_cost = 0.0
        else:
            replacement_years = [k * lifetime for k in range(1, replacements_number + 1)]
            replacement_cost = replacement * sum(
                _discount_factor(discount_rate, year) for year in replacement_years
            )

        # Nominal effective salvage value, reduced by the usage of the last unit
        if salvage_type is SalvageType.LINEAR or discount_rate == 0.0:
            remaining_life = lifetime * (1 + replacements_number) - mg_lifetime
            salvage_effective = salvage * remaining_life / lifetime
        elif salvage_type is SalvageType.CONSISTENT:
            dp1 = 1.0 + discount_rate
            usage_duration = mg_lifetime - lifetime * replacements_number
            salvage_effective = salvage * (dp1**lifetime - dp1**usage_duration) / (dp1**lifetime - 1.0)
        else:
            raise UnsupportedConfigurationError(f"salvage_type={salvage_type!r} not implemented.")
    else:
        replacement_cost = 0.0
        salvage_effective = salvage

    salvage_cost = -salvage_effective * factors[mg_lifetime - 1]

    total_cost = investment + replacement_cost + om_cost + fuel_cost + salvage_cost

    return CostFactors(
        total=total_cost,
        investment=investment,
        replacement=replacement_cost,
        om=om_cost,
        fuel=fuel_cost,
        salvage=salvage_cost,
    )


__all__ = [
    "UnsupportedConfigurationError",
    "CostFactors",
    "MicrogridCosts",
    "discount_factors",
    "capital_recovery_factor",
    "component_costs",
]
