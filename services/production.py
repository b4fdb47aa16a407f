"""Power output models of the non-dispatchable sources."""
from __future__ import annotations

import numpy as np

from services.components import NonDispatchable, Photovoltaic, PVInverter, WindPower


def _photovoltaic_production(pv: Photovoltaic) -> np.ndarray:
    irradiance = np.asarray(pv.irradiance, dtype=float)
    return pv.derating_factor * pv.power_rated * (irradiance / pv.irradiance_std)


def _pv_inverter_production(pv: PVInverter) -> np.ndarray:
    """DC output of the panels, clipped at the inverter AC rating."""

    irradiance = np.asarray(pv.irradiance, dtype=float)
    power_dc_rated = pv.ilr * pv.power_rated
    power_dc = irradiance * power_dc_rated * pv.derating_factor
    return np.minimum(power_dc, pv.power_rated)


def hub_wind_speed(wind: WindPower) -> np.ndarray:
    """Extrapolate the anemometer wind speed to hub height (logarithmic profile)."""

    wind_speed = np.asarray(wind.wind_speed, dtype=float)
    z0 = wind.roughness_length
    return wind_speed * np.log(wind.hub_height / z0) / np.log(wind.anemometer_height / z0)


def _wind_production(wind: WindPower) -> np.ndarray:
    speed = hub_wind_speed(wind)
    ramp = (speed - wind.cut_in_speed) / (wind.rated_speed - wind.cut_in_speed)
    # Quadratic power curve between cut-in and rated speed, flat up to cut-out.
    return np.select(
        [
            (wind.cut_in_speed < speed) & (speed < wind.rated_speed),
            (wind.rated_speed <= speed) & (speed <= wind.cut_out_speed),
        ],
        [wind.power_rated * ramp**2, np.full_like(speed, wind.power_rated)],
        default=0.0,
    )


def production(source: NonDispatchable) -> np.ndarray:
    """Return the power output time series of a non-dispatchable ``source`` (kW)."""

    if isinstance(source, Photovoltaic):
        return _photovoltaic_production(source)
    elif isinstance(source, PVInverter):
        return _pv_inverter_production(source)
    elif isinstance(source, WindPower):
        return _wind_production(source)
    raise TypeError(f"No production model for {type(source).__name__}")


__all__ = ["hub_wind_speed", "production"]
