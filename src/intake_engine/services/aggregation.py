"""Reduction of resolved contributions into summary metrics."""

import math
from collections.abc import Iterable

from intake_engine.domain.resolution import (
    EventAggregate,
    ResolvedContribution,
    ResolvedLeaves,
)
from intake_engine.domain.units import Unit, require_summable

EMPTY_AGGREGATE = EventAggregate()


def aggregate_event(
    leaves: ResolvedLeaves | Iterable[ResolvedContribution],
) -> EventAggregate:
    """Sum fluid and group quantities by (consumable, unit).

    Sums are computed with ``math.fsum`` so the result does not depend on the
    order of the contributions.
    """
    contributions = (
        leaves.contributions if isinstance(leaves, ResolvedLeaves) else leaves
    )
    fluid: list[float] = []
    quantities: dict[tuple[int, Unit], list[float]] = {}
    units: dict[int, Unit] = {}
    for contribution in contributions:
        _check_unit(units, contribution.consumable_id, contribution.unit)
        fluid.append(contribution.fluid_volume)
        if contribution.quantity is None:
            continue
        key = (contribution.consumable_id, contribution.unit)
        quantities.setdefault(key, []).append(contribution.quantity)
    return _build(fluid, quantities)


def merge_aggregates(aggregates: Iterable[EventAggregate]) -> EventAggregate:
    """Union aggregates, summing values that share a (consumable, unit) key."""
    fluid: list[float] = []
    quantities: dict[tuple[int, Unit], list[float]] = {}
    units: dict[int, Unit] = {}
    for aggregate in aggregates:
        fluid.append(aggregate.total_fluid_volume)
        for key, value in aggregate.quantities_by_consumable_unit.items():
            _check_unit(units, key[0], key[1])
            quantities.setdefault(key, []).append(value)
    return _build(fluid, quantities)


def scale_aggregate(aggregate: EventAggregate, factor: float) -> EventAggregate:
    """Scale every metric of an aggregate by a factor."""
    if factor == 1:
        return aggregate
    return EventAggregate(
        total_fluid_volume=aggregate.total_fluid_volume * factor,
        quantities_by_consumable_unit={
            key: value * factor
            for key, value in aggregate.quantities_by_consumable_unit.items()
        },
    )


def with_direct_fluid(
    aggregate: EventAggregate, volume: float | None
) -> EventAggregate:
    """Add an event's own fluid volume on top of its resolved links."""
    if not volume:
        return aggregate
    return EventAggregate(
        total_fluid_volume=math.fsum([aggregate.total_fluid_volume, volume]),
        quantities_by_consumable_unit=dict(aggregate.quantities_by_consumable_unit),
    )


def totals_by_unit(aggregate: EventAggregate) -> dict[Unit, float]:
    """Break quantities down per unit across consumables."""
    grouped: dict[Unit, list[float]] = {}
    for (_, unit), value in aggregate.quantities_by_consumable_unit.items():
        grouped.setdefault(unit, []).append(value)
    return {unit: math.fsum(values) for unit, values in sorted(grouped.items())}


def _check_unit(units: dict[int, Unit], consumable_id: int, unit: Unit) -> None:
    known = units.setdefault(consumable_id, unit)
    require_summable(known, unit)


def _build(
    fluid: list[float], quantities: dict[tuple[int, Unit], list[float]]
) -> EventAggregate:
    return EventAggregate(
        total_fluid_volume=math.fsum(fluid),
        quantities_by_consumable_unit={
            key: math.fsum(values) for key, values in sorted(quantities.items())
        },
    )
