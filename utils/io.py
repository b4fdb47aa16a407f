"""Microgrid configuration parsing and cost table export."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from services.components import (
    Battery,
    DispatchableGenerator,
    Microgrid,
    NonDispatchable,
    NonDispatchableSource,
    OperationStats,
    Photovoltaic,
    Project,
    PVInverter,
    SalvageType,
    WindPower,
)
from utils.economics import MicrogridCosts, UnsupportedConfigurationError

NONDISPATCHABLE_KINDS = {
    "generic": NonDispatchableSource,
    "photovoltaic": Photovoltaic,
    "wind": WindPower,
    "pv_inverter": PVInverter,
}

COST_COLUMNS = ["total", "investment", "replacement", "om", "fuel", "salvage"]


def _section(data: Mapping[str, Any], name: str) -> Dict[str, Any]:
    if name not in data:
        raise ValueError(f"Microgrid configuration must contain a '{name}' section")
    section = data[name]
    if not isinstance(section, Mapping):
        raise ValueError(f"'{name}' must be a mapping of field names to values")
    return dict(section)


def project_from_dict(data: Mapping[str, Any]) -> Project:
    """Build a :class:`Project`, accepting the salvage type by its value (e.g. 'consistent')."""

    fields = dict(data)
    if "salvage_type" in fields:
        try:
            fields["salvage_type"] = SalvageType(fields["salvage_type"])
        except ValueError:
            raise UnsupportedConfigurationError(
                f"salvage_type={fields['salvage_type']!r} not implemented. "
                f"Use one of {[s.value for s in SalvageType]}."
            ) from None
    return Project(**fields)


def nondispatchable_from_dict(data: Mapping[str, Any]) -> NonDispatchable:
    """Build a renewable source record from a mapping tagged with its ``kind``."""

    fields = dict(data)
    kind = fields.pop("kind", "generic")
    if kind not in NONDISPATCHABLE_KINDS:
        raise ValueError(
            f"Unknown nondispatchable kind '{kind}'. Use one of {sorted(NONDISPATCHABLE_KINDS)}."
        )
    for series_field in ("irradiance", "wind_speed"):
        if series_field in fields:
            fields[series_field] = tuple(float(v) for v in fields[series_field])
    return NONDISPATCHABLE_KINDS[kind](**fields)


def microgrid_from_dict(data: Mapping[str, Any]) -> Microgrid:
    """Build a :class:`Microgrid` from a configuration mapping.

    Expected sections: ``project``, ``generator``, ``storage`` and an optional
    ``nondispatchables`` list whose order is kept.
    """

    nondispatchables = data.get("nondispatchables", [])
    if not isinstance(nondispatchables, list):
        raise ValueError("'nondispatchables' must be a list")

    return Microgrid(
        project=project_from_dict(_section(data, "project")),
        generator=DispatchableGenerator(**_section(data, "generator")),
        storage=Battery(**_section(data, "storage")),
        nondispatchables=tuple(nondispatchable_from_dict(nd) for nd in nondispatchables),
    )


def operation_stats_from_dict(data: Mapping[str, Any]) -> OperationStats:
    return OperationStats(**{key: float(value) for key, value in data.items()})


def read_microgrid_config(path_candidates: List[Any]) -> Tuple[Microgrid, Optional[OperationStats]]:
    """Read a JSON microgrid configuration from the first candidate that loads.

    Candidates may be paths or text buffers. The optional ``operation_stats``
    section is returned alongside the microgrid, ``None`` when absent.
    """

    last_err = None
    for candidate in path_candidates:
        try:
            if hasattr(candidate, "read"):
                data = json.load(candidate)
            else:
                with open(candidate, encoding="utf-8") as handle:
                    data = json.load(handle)
            mg = microgrid_from_dict(data)
            stats = None
            if data.get("operation_stats") is not None:
                stats = operation_stats_from_dict(_section(data, "operation_stats"))
            return mg, stats
        except Exception as e:  # pragma: no cover - errors handled via last_err
            last_err = e
    raise RuntimeError(
        "Failed to read microgrid configuration. "
        f"Looked for: {path_candidates}. Last error: {last_err}"
    )


def costs_to_frame(costs: MicrogridCosts) -> pd.DataFrame:
    """Return one row of cost factors per component plus a final ``system`` row."""

    rows = [("generator", costs.generator), ("storage", costs.storage)]
    rows += [
        (f"nondispatchable_{idx}", nd_costs)
        for idx, nd_costs in enumerate(costs.nondispatchables, start=1)
    ]
    rows.append(("system", costs.system))

    df = pd.DataFrame(
        [c.to_dict() for _, c in rows],
        index=pd.Index([name for name, _ in rows], name="component"),
        columns=COST_COLUMNS,
    )
    return df
