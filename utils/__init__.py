"""Utility helpers shared across the economics services and the API."""

from utils.economics import (
    CostFactors,
    MicrogridCosts,
    UnsupportedConfigurationError,
    capital_recovery_factor,
    component_costs,
    discount_factors,
)
from utils.io import costs_to_frame, microgrid_from_dict, read_microgrid_config

__all__ = [
    "CostFactors",
    "MicrogridCosts",
    "UnsupportedConfigurationError",
    "capital_recovery_factor",
    "component_costs",
    "discount_factors",
    "costs_to_frame",
    "microgrid_from_dict",
    "read_microgrid_config",
]
