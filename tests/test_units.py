"""Tests for units and consumable validity."""

from datetime import UTC, datetime

import pytest

from intake_engine.domain.consumables import Consumable, EdgeKind, WeightedEdge
from intake_engine.domain.consumptions import ConsumptionRoute
from intake_engine.domain.errors import IncompatibleUnitSum
from intake_engine.domain.units import FLUID_UNIT, Unit, can_sum, require_summable


def test_unit_postfix_and_display() -> None:
    assert Unit.MILLILITRES.display(250) == "250 ml"
    assert Unit.INTERNATIONAL_UNITS.display(1000) == "1000 IU"
    assert Unit.NUMBER.display(2) == "2"
    assert FLUID_UNIT == Unit.MILLILITRES


def test_units_sum_only_with_themselves() -> None:
    assert can_sum(Unit.GRAMS, Unit.GRAMS)
    assert not can_sum(Unit.GRAMS, Unit.MILLILITRES)
    with pytest.raises(IncompatibleUnitSum):
        require_summable(Unit.NUMBER, Unit.GRAMS)


def test_consumable_validity_window() -> None:
    consumable = Consumable(
        id=1,
        name="Seasonal jam",
        unit=Unit.GRAMS,
        created=datetime(2024, 1, 1, tzinfo=UTC),
        destroyed=datetime(2025, 1, 1, tzinfo=UTC),
    )

    assert not consumable.is_valid_at(datetime(2023, 12, 31, tzinfo=UTC))
    assert consumable.is_valid_at(datetime(2024, 6, 1, tzinfo=UTC))
    assert not consumable.is_valid_at(datetime(2025, 1, 1, tzinfo=UTC))
    assert consumable.is_retired


def test_edge_constructors() -> None:
    composition = WeightedEdge.composition(3, 1, quantity=2)
    link = WeightedEdge.link(10, 3, quantity=1, fluid_volume=50)

    assert composition.kind == EdgeKind.COMPOSITION
    assert composition.key == (3, 1)
    assert link.kind == EdgeKind.CONSUMPTION
    assert link.key == (10, 3)


def test_route_title() -> None:
    assert ConsumptionRoute.INHALE_NOSE.title == "Inhale nose"
