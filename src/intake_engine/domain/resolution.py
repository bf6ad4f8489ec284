"""Results of graph resolution and aggregation."""

from dataclasses import dataclass, field

from intake_engine.domain.units import Unit


@dataclass(frozen=True)
class ResolvedContribution:
    """A consumable with its fully scaled quantity and fluid volume.

    ``quantity`` is ``None`` when no amount was recorded, and for the fluid
    directly attributed to a composite.
    """

    consumable_id: int
    unit: Unit
    quantity: float | None
    fluid_volume: float = 0.0

    def scaled(self, factor: float) -> "ResolvedContribution":
        return ResolvedContribution(
            consumable_id=self.consumable_id,
            unit=self.unit,
            quantity=None if self.quantity is None else self.quantity * factor,
            fluid_volume=self.fluid_volume * factor,
        )


@dataclass(frozen=True)
class ResolvedLeaves:
    """Flat resolution output for a set of root links or edges."""

    contributions: tuple[ResolvedContribution, ...]
    retired: frozenset[int] = frozenset()

    @property
    def references_retired_data(self) -> bool:
        return bool(self.retired)

    def quantities(self) -> dict[int, float]:
        """Sum recorded quantities per consumable."""
        totals: dict[int, float] = {}
        for contribution in self.contributions:
            if contribution.quantity is None:
                continue
            totals[contribution.consumable_id] = (
                totals.get(contribution.consumable_id, 0.0) + contribution.quantity
            )
        return totals


@dataclass(frozen=True)
class EventAggregate:
    """Summary metrics for one event, or for a bucket of events."""

    total_fluid_volume: float = 0.0
    quantities_by_consumable_unit: dict[tuple[int, Unit], float] = field(
        default_factory=dict
    )

    @property
    def is_empty(self) -> bool:
        return self.total_fluid_volume == 0 and not self.quantities_by_consumable_unit
