"""Immutable snapshot of consumables and their composition edges."""

from collections.abc import Iterable
from dataclasses import dataclass

from intake_engine.domain.consumables import Consumable, EdgeKind, WeightedEdge
from intake_engine.domain.errors import UnknownConsumable


@dataclass(frozen=True)
class CompositionGraph:
    """Read-only view of composition edges keyed by parent consumable id.

    Children are kept sorted by child id so traversal order, and therefore
    resolution output, only depends on the snapshot contents.
    """

    consumables: dict[int, Consumable]
    edges_by_parent: dict[int, tuple[WeightedEdge, ...]]

    @classmethod
    def build(
        cls, consumables: Iterable[Consumable], edges: Iterable[WeightedEdge]
    ) -> "CompositionGraph":
        """Create a snapshot from consumable rows and composition edges."""
        by_id = {consumable.id: consumable for consumable in consumables}
        grouped: dict[int, dict[int, WeightedEdge]] = {}
        for edge in edges:
            if edge.kind != EdgeKind.COMPOSITION or edge.parent_id is None:
                raise ValueError(f"Not a composition edge: {edge!r}")
            grouped.setdefault(edge.parent_id, {})[edge.consumable_id] = edge
        return cls(
            consumables=by_id,
            edges_by_parent={
                parent_id: tuple(children[key] for key in sorted(children))
                for parent_id, children in grouped.items()
            },
        )

    @classmethod
    def empty(cls) -> "CompositionGraph":
        return cls(consumables={}, edges_by_parent={})

    def consumable(self, consumable_id: int) -> Consumable | None:
        """Return a consumable by id, if present in the snapshot."""
        return self.consumables.get(consumable_id)

    def require(self, consumable_id: int) -> Consumable:
        """Return a consumable by id or raise ``UnknownConsumable``."""
        consumable = self.consumables.get(consumable_id)
        if consumable is None:
            raise UnknownConsumable(consumable_id)
        return consumable

    def children(self, consumable_id: int) -> tuple[WeightedEdge, ...]:
        """Return the outgoing composition edges of a consumable."""
        return self.edges_by_parent.get(consumable_id, ())

    def parents(self, consumable_id: int) -> list[WeightedEdge]:
        """Return composition edges that contain the consumable."""
        return [
            edge
            for parent_id in sorted(self.edges_by_parent)
            for edge in self.edges_by_parent[parent_id]
            if edge.consumable_id == consumable_id
        ]

    def ancestors(self, consumable_id: int) -> list[int]:
        """Return ids of composites containing the consumable at any level."""
        seen: set[int] = set()
        pending = [consumable_id]
        while pending:
            current = pending.pop()
            for edge in self.parents(current):
                if edge.parent_id not in seen:
                    seen.add(edge.parent_id)
                    pending.append(edge.parent_id)
        return sorted(seen)

    def is_composite(self, consumable_id: int) -> bool:
        return bool(self.edges_by_parent.get(consumable_id))

    def is_referenced(self, consumable_id: int) -> bool:
        """Return whether any composition edge touches the consumable."""
        return self.is_composite(consumable_id) or bool(self.parents(consumable_id))

    def edges(self) -> list[WeightedEdge]:
        return [edge for children in self.edges_by_parent.values() for edge in children]

    def with_edge(self, edge: WeightedEdge) -> "CompositionGraph":
        """Return a new snapshot with the edge added or replaced."""
        if edge.parent_id is None:
            raise ValueError("Composition edges need a parent consumable")
        self.require(edge.parent_id)
        self.require(edge.consumable_id)
        remaining = [
            existing for existing in self.edges() if existing.key != edge.key
        ]
        return CompositionGraph.build(self.consumables.values(), [*remaining, edge])

    def without_edge(self, parent_id: int, consumable_id: int) -> "CompositionGraph":
        """Return a new snapshot without the given edge."""
        remaining = [
            edge
            for edge in self.edges()
            if edge.key != (parent_id, consumable_id)
        ]
        return CompositionGraph.build(self.consumables.values(), remaining)

    def with_consumable(self, consumable: Consumable) -> "CompositionGraph":
        """Return a new snapshot with the consumable added or replaced."""
        consumables = {**self.consumables, consumable.id: consumable}
        return CompositionGraph(
            consumables=consumables, edges_by_parent=dict(self.edges_by_parent)
        )
