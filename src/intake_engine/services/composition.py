"""Recipe editing for composite consumables."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from intake_engine.domain.consumables import Consumable, WeightedEdge
from intake_engine.domain.errors import EngineError
from intake_engine.domain.graph import CompositionGraph
from intake_engine.domain.resolution import ResolvedLeaves
from intake_engine.domain.units import Unit
from intake_engine.services.resolver import GraphResolver
from intake_engine.services.validation import EdgeValidator

_logger = logging.getLogger(__name__)


class ConsumableRepository(Protocol):
    """Persistence interface for consumables and composition edges."""

    def get_consumable(self, consumable_id: int) -> Consumable | None:
        """Return a consumable by id, if present."""

    def list_consumables(self) -> list[Consumable]:
        """Return every consumable, retired ones included."""

    def search_consumables(
        self, query: str, limit: int, valid_at: datetime | None = None
    ) -> list[Consumable]:
        """Search consumables by name, optionally only those valid at an instant."""

    def update_consumable(
        self, consumable_id: int, payload: dict[str, object]
    ) -> Consumable:
        """Update consumable columns and return the row."""

    def list_composition_edges(self) -> list[WeightedEdge]:
        """Return every composition edge."""

    def upsert_composition_edge(self, edge: WeightedEdge) -> WeightedEdge:
        """Create or replace a composition edge."""

    def delete_composition_edge(self, parent_id: int, consumable_id: int) -> None:
        """Delete a composition edge."""

    def count_consumption_links(self, consumable_id: int) -> int:
        """Return how many consumption links reference a consumable."""


def load_snapshot(repository: ConsumableRepository) -> CompositionGraph:
    """Read one consistent snapshot of the composition graph."""
    return CompositionGraph.build(
        repository.list_consumables(), repository.list_composition_edges()
    )


@dataclass
class CompositionService:
    """Application service for editing and expanding recipes."""

    repository: ConsumableRepository
    resolver: GraphResolver = field(default_factory=GraphResolver)
    validator: EdgeValidator | None = None

    def __post_init__(self) -> None:
        if self.validator is None:
            self.validator = EdgeValidator(self.resolver)

    def add_ingredient(  # noqa: PLR0913
        self,
        parent_id: int,
        consumable_id: int,
        quantity: float | None,
        fluid_volume: float | None = None,
        comments: str | None = None,
    ) -> WeightedEdge:
        """Validate and persist a new ingredient of a composite."""
        edge = WeightedEdge.composition(
            parent_id, consumable_id, quantity, fluid_volume, comments
        )
        graph = load_snapshot(self.repository)
        self._validate(edge, graph)
        _logger.info(
            "Ingredient added: parent=%s consumable=%s quantity=%s",
            parent_id,
            consumable_id,
            quantity,
        )
        return self.repository.upsert_composition_edge(edge)

    def update_ingredient(  # noqa: PLR0913
        self,
        parent_id: int,
        consumable_id: int,
        quantity: float | None,
        fluid_volume: float | None = None,
        comments: str | None = None,
    ) -> WeightedEdge:
        """Validate and persist changed amounts for an existing ingredient."""
        edge = WeightedEdge.composition(
            parent_id, consumable_id, quantity, fluid_volume, comments
        )
        graph = load_snapshot(self.repository).without_edge(parent_id, consumable_id)
        self._validate(edge, graph)
        return self.repository.upsert_composition_edge(edge)

    def remove_ingredient(self, parent_id: int, consumable_id: int) -> None:
        """Remove an ingredient from a composite."""
        self.repository.delete_composition_edge(parent_id, consumable_id)

    def change_unit(self, consumable_id: int, unit: Unit) -> Consumable:
        """Change a consumable's unit while nothing references it."""
        graph = load_snapshot(self.repository)
        consumable = graph.require(consumable_id)
        link_count = self.repository.count_consumption_links(consumable_id)
        try:
            self.validator.validate_unit_change(consumable, unit, graph, link_count)
        except EngineError:
            _logger.warning(
                "Unit change rejected: consumable=%s unit=%s", consumable_id, unit
            )
            raise
        if consumable.unit == unit:
            return consumable
        return self.repository.update_consumable(consumable_id, {"unit": unit.value})

    def retire_consumable(
        self, consumable_id: int, destroyed_at: datetime | None = None
    ) -> Consumable:
        """Mark a consumable as no longer existing; history keeps resolving."""
        when = destroyed_at or datetime.now(tz=UTC)
        return self.repository.update_consumable(
            consumable_id, {"destroyed": when.isoformat()}
        )

    def expand_recipe(
        self,
        consumable_id: int,
        quantity: float = 1.0,
        at: datetime | None = None,
    ) -> ResolvedLeaves:
        """Return the leaf ingredients of an amount of a consumable."""
        graph = load_snapshot(self.repository)
        return self.resolver.expand(consumable_id, graph, quantity=quantity, at=at)

    def suggest(
        self, query: str, at: datetime | None = None, limit: int = 10
    ) -> list[Consumable]:
        """Search consumables, leaving out ones not valid at ``at``."""
        when = at or datetime.now(tz=UTC)
        return self.repository.search_consumables(query, limit, valid_at=when)

    def _validate(self, edge: WeightedEdge, graph: CompositionGraph) -> None:
        try:
            self.validator.validate_edge(edge, graph)
        except EngineError as exc:
            _logger.warning(
                "Ingredient rejected: parent=%s consumable=%s reason=%s",
                edge.parent_id,
                edge.consumable_id,
                exc.kind,
            )
            raise
