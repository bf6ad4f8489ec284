"""Domain models for consumables and the weighted edges between them."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from intake_engine.domain.units import Unit


@dataclass(frozen=True)
class Consumable:
    """A food, drink or medication that can be consumed or composed."""

    id: int
    name: str
    unit: Unit
    brand: str | None = None
    barcode: str | None = None
    is_organic: bool = False
    comments: str | None = None
    created: datetime | None = None
    destroyed: datetime | None = None

    def is_valid_at(self, at: datetime) -> bool:
        """Return whether the consumable existed at the given instant."""
        if self.created is not None and self.created > at:
            return False
        return self.destroyed is None or self.destroyed > at

    @property
    def is_retired(self) -> bool:
        return self.destroyed is not None


class EdgeKind(StrEnum):
    """What the parent end of a weighted edge points at."""

    COMPOSITION = "composition"
    CONSUMPTION = "consumption"


@dataclass(frozen=True)
class WeightedEdge:
    """A weighted "parent contains consumable" relation.

    Composition edges hang off a composite consumable; consumption links hang
    off a logged consumption event. ``quantity`` is in the child's unit and
    ``fluid_volume`` is a millilitre amount independent of that unit.
    """

    kind: EdgeKind
    parent_id: int | None
    consumable_id: int
    quantity: float | None = None
    fluid_volume: float | None = None
    comments: str | None = None

    @classmethod
    def composition(
        cls,
        parent_id: int,
        consumable_id: int,
        quantity: float | None = None,
        fluid_volume: float | None = None,
        comments: str | None = None,
    ) -> "WeightedEdge":
        """Build an edge from a composite consumable to an ingredient."""
        return cls(
            kind=EdgeKind.COMPOSITION,
            parent_id=parent_id,
            consumable_id=consumable_id,
            quantity=quantity,
            fluid_volume=fluid_volume,
            comments=comments,
        )

    @classmethod
    def link(
        cls,
        consumption_id: int | None,
        consumable_id: int,
        quantity: float | None = None,
        fluid_volume: float | None = None,
        comments: str | None = None,
    ) -> "WeightedEdge":
        """Build a link from a consumption event to a consumable."""
        return cls(
            kind=EdgeKind.CONSUMPTION,
            parent_id=consumption_id,
            consumable_id=consumable_id,
            quantity=quantity,
            fluid_volume=fluid_volume,
            comments=comments,
        )

    @property
    def key(self) -> tuple[int | None, int]:
        return (self.parent_id, self.consumable_id)
