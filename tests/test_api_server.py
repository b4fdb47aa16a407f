from __future__ import annotations

import pytest
from fastapi import HTTPException

from api import server
from api.server import (
    BatteryPayload,
    ComponentCostsRequest,
    EconomicsRequest,
    GeneratorPayload,
    NonDispatchablePayload,
    OperationStatsPayload,
    ProjectPayload,
    evaluate_component_costs,
    evaluate_economics,
)
from services.components import Battery, DispatchableGenerator, Microgrid, NonDispatchableSource, OperationStats, Project
from services.microgrid_economics import economics


def _request(**overrides) -> EconomicsRequest:
    values = dict(
        project=ProjectPayload(lifetime=20, discount_rate=0.05),
        generator=GeneratorPayload(
            power_rated=500.0,
            fuel_price=1.2,
            investment_price=400.0,
            om_price_hours=0.02,
            lifetime_hours=15000.0,
        ),
        storage=BatteryPayload(
            energy_rated=1000.0,
            investment_price=350.0,
            om_price=10.0,
            lifetime_calendar=15.0,
            lifetime_cycles=3000.0,
        ),
        nondispatchables=[
            NonDispatchablePayload(
                kind="generic", power_rated=800.0, investment_price=1200.0, om_price=20.0, lifetime=25.0
            ),
        ],
        operation_stats=OperationStatsPayload(
            served_energy=1_500_000.0, gen_hours=800.0, gen_fuel=60_000.0, storage_cycles=250.0
        ),
    )
    values.update(overrides)
    return EconomicsRequest(**values)


def test_health() -> None:
    assert server.health() == {"status": "ok"}


def test_economics_matches_direct_evaluation() -> None:
    response = evaluate_economics(_request())

    mg = Microgrid(
        project=Project(lifetime=20, discount_rate=0.05),
        generator=DispatchableGenerator(
            power_rated=500.0,
            fuel_intercept=0.0,
            fuel_slope=0.0,
            fuel_price=1.2,
            investment_price=400.0,
            om_price_hours=0.02,
            lifetime_hours=15000.0,
        ),
        storage=Battery(
            energy_rated=1000.0,
            investment_price=350.0,
            om_price=10.0,
            lifetime_calendar=15.0,
            lifetime_cycles=3000.0,
        ),
        nondispatchables=(
            NonDispatchableSource(power_rated=800.0, investment_price=1200.0, om_price=20.0, lifetime=25.0),
        ),
    )
    expected = economics(mg, OperationStats(1_500_000.0, 800.0, 60_000.0, 250.0))

    assert response["costs"]["npc"] == pytest.approx(expected.npc)
    assert response["costs"]["lcoe"] == pytest.approx(expected.lcoe)
    assert len(response["costs"]["nondispatchables"]) == 1
    assert [row["component"] for row in response["table"]] == [
        "generator",
        "storage",
        "nondispatchable_1",
        "system",
    ]


def test_economics_rounding() -> None:
    response = evaluate_economics(_request(round_digits=0))

    for name, value in response["costs"]["system"].items():
        assert value == round(value), name


def test_economics_with_pv_inverter() -> None:
    pv = NonDispatchablePayload(
        kind="pv_inverter",
        power_rated=1000.0,
        ilr=1.3,
        investment_price_ac=150.0,
        investment_price_dc=600.0,
        om_price_ac=5.0,
        om_price_dc=15.0,
        lifetime_ac=15.0,
        lifetime_dc=30.0,
    )

    response = evaluate_economics(_request(nondispatchables=[pv]))

    assert response["costs"]["nondispatchables"][0]["investment"] == pytest.approx(150_000.0 + 780_000.0)


def test_incomplete_nondispatchable_is_rejected() -> None:
    pv = NonDispatchablePayload(kind="pv_inverter", power_rated=1000.0, ilr=1.3)

    with pytest.raises(HTTPException) as excinfo:
        evaluate_economics(_request(nondispatchables=[pv]))

    assert excinfo.value.status_code == 400


def test_unsupported_salvage_type_is_rejected() -> None:
    request = _request(project=ProjectPayload(lifetime=20, discount_rate=0.05, salvage_type="declining"))

    with pytest.raises(HTTPException) as excinfo:
        evaluate_economics(request)

    assert excinfo.value.status_code == 400
    assert "declining" in excinfo.value.detail


@pytest.mark.parametrize("lifetime, discount_rate", [(0, 0.05), (-5, 0.05), (20, -1.0), (20, -0.01)])
def test_invalid_project_is_rejected(lifetime: int, discount_rate: float) -> None:
    request = _request(project=ProjectPayload(lifetime=lifetime, discount_rate=discount_rate))

    with pytest.raises(HTTPException) as excinfo:
        evaluate_economics(request)

    assert excinfo.value.status_code == 400


def test_zero_discount_rate_is_accepted() -> None:
    response = evaluate_economics(_request(project=ProjectPayload(lifetime=20, discount_rate=0.0)))

    assert response["costs"]["npc"] > 0.0


def test_economics_rounding_keeps_extra_lcoe_digits() -> None:
    unrounded = evaluate_economics(_request())["costs"]["lcoe"]

    response = evaluate_economics(_request(round_digits=2))

    assert response["costs"]["lcoe"] == round(unrounded, 2 + server.LCOE_EXTRA_DIGITS)
    assert response["costs"]["lcoe"] != round(unrounded, 2)


def test_zero_served_energy_serializes_lcoe_as_null() -> None:
    stats = OperationStatsPayload(served_energy=0.0, gen_hours=0.0, gen_fuel=0.0, storage_cycles=0.0)

    response = evaluate_economics(_request(operation_stats=stats))

    assert response["costs"]["lcoe"] is None
    assert response["costs"]["npc"] > 0.0
    assert response["costs"]["generator"]["replacement"] == 0.0


def test_component_costs_endpoint() -> None:
    request = ComponentCostsRequest(
        project=ProjectPayload(lifetime=20, discount_rate=0.05),
        lifetime=10.0,
        investment=1000.0,
        replacement=800.0,
        salvage=200.0,
    )

    costs = evaluate_component_costs(request)["costs"]

    assert costs["replacement"] == pytest.approx(800.0 / 1.05**10)
    assert costs["salvage"] == 0.0
    assert costs["total"] == pytest.approx(1000.0 + 800.0 / 1.05**10)


def test_component_costs_endpoint_infinite_lifetime() -> None:
    request = ComponentCostsRequest(investment=1000.0, replacement=800.0, salvage=200.0)

    costs = evaluate_component_costs(request)["costs"]

    assert costs["replacement"] == 0.0
    assert costs["salvage"] == pytest.approx(-200.0 / 1.05**25)


@pytest.mark.parametrize("lifetime", [0.0, -10.0])
def test_component_costs_endpoint_rejects_non_positive_lifetime(lifetime: float) -> None:
    request = ComponentCostsRequest(lifetime=lifetime, investment=1000.0, replacement=800.0, salvage=200.0)

    with pytest.raises(HTTPException) as excinfo:
        evaluate_component_costs(request)

    assert excinfo.value.status_code == 400


def test_component_costs_endpoint_rejects_invalid_project() -> None:
    request = ComponentCostsRequest(
        project=ProjectPayload(lifetime=20, discount_rate=-1.0),
        lifetime=10.0,
        investment=1000.0,
        replacement=800.0,
        salvage=200.0,
    )

    with pytest.raises(HTTPException) as excinfo:
        evaluate_component_costs(request)

    assert excinfo.value.status_code == 400
