"""Write-time checks for composition edges, consumption links and units."""

import math
from dataclasses import dataclass, field

from intake_engine.domain.consumables import Consumable, EdgeKind, WeightedEdge
from intake_engine.domain.errors import CycleDetected, InvalidQuantity, UnitLocked
from intake_engine.domain.graph import CompositionGraph
from intake_engine.domain.units import Unit
from intake_engine.services.resolver import GraphResolver


def check_amount(value: float | None, field_name: str = "quantity") -> None:
    """Reject negative or non-finite amounts; ``None`` means not recorded."""
    if value is None:
        return
    if not math.isfinite(value) or value < 0:
        raise InvalidQuantity(value, field_name)


@dataclass
class EdgeValidator:
    """Rejects edges and unit changes that would corrupt aggregates."""

    resolver: GraphResolver = field(default_factory=GraphResolver)

    def validate_edge(self, edge: WeightedEdge, graph: CompositionGraph) -> None:
        """Raise a structured error if the edge must not be persisted."""
        check_amount(edge.quantity, "quantity")
        check_amount(edge.fluid_volume, "fluid_volume")
        if edge.quantity == 0:
            raise InvalidQuantity(edge.quantity, "quantity")
        graph.require(edge.consumable_id)
        if edge.kind == EdgeKind.CONSUMPTION:
            return
        if edge.parent_id is None:
            raise ValueError("Composition edges need a parent consumable")
        if edge.parent_id == edge.consumable_id:
            raise CycleDetected(edge.parent_id, [edge.parent_id, edge.parent_id])
        hypothetical = graph.with_edge(edge)
        self.resolver.check_acyclic(hypothetical, edge.parent_id)
        # Recipes containing the parent get deeper too.
        for ancestor in hypothetical.ancestors(edge.parent_id):
            self.resolver.check_acyclic(hypothetical, ancestor)

    def validate_unit_change(
        self,
        consumable: Consumable,
        new_unit: Unit,
        graph: CompositionGraph,
        link_count: int,
    ) -> None:
        """Reject a unit change once the consumable is referenced anywhere."""
        if consumable.unit == new_unit:
            return
        if link_count > 0 or graph.is_referenced(consumable.id):
            raise UnitLocked(consumable.id)
