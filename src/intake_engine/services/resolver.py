"""Recursive expansion of composite consumables into leaf contributions."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from intake_engine.domain.consumables import Consumable, WeightedEdge
from intake_engine.domain.errors import CycleDetected, DepthExceeded
from intake_engine.domain.graph import CompositionGraph
from intake_engine.domain.resolution import ResolvedContribution, ResolvedLeaves

DEFAULT_MAX_DEPTH = 32


@dataclass
class _Resolution:
    """State for a single ``resolve`` call."""

    graph: CompositionGraph
    at: datetime | None
    max_depth: int
    path: list[int]
    memo: dict[int, tuple[tuple[ResolvedContribution, ...], int]]
    retired: set[int]


@dataclass
class GraphResolver:
    """Expands weighted edges through the composition graph.

    Resolution is a pure function of the snapshot and the roots: each call
    keeps its own memo table, so results can be cached by callers.
    """

    max_depth: int = DEFAULT_MAX_DEPTH

    def resolve(
        self,
        roots: Iterable[WeightedEdge],
        graph: CompositionGraph,
        at: datetime | None = None,
    ) -> ResolvedLeaves:
        """Resolve root links or edges into a flat list of contributions.

        Raises ``CycleDetected`` or ``DepthExceeded`` instead of returning a
        partial result, and ``UnknownConsumable`` for dangling references.
        """
        state = self._state(graph, at)
        contributions: list[ResolvedContribution] = []
        for root in roots:
            contributions.extend(_expand_edge(state, root, multiplier=1.0))
        return ResolvedLeaves(
            contributions=tuple(contributions), retired=frozenset(state.retired)
        )

    def expand(
        self,
        consumable_id: int,
        graph: CompositionGraph,
        quantity: float = 1.0,
        at: datetime | None = None,
    ) -> ResolvedLeaves:
        """Resolve a given amount of one consumable."""
        return self.resolve(
            [WeightedEdge.link(None, consumable_id, quantity=quantity)], graph, at
        )

    def check_acyclic(self, graph: CompositionGraph, consumable_id: int) -> None:
        """Raise if the consumable's recipe contains a cycle or is too deep."""
        state = self._state(graph, None)
        state.graph.require(consumable_id)
        if graph.is_composite(consumable_id):
            _subtree(state, consumable_id)

    def _state(self, graph: CompositionGraph, at: datetime | None) -> _Resolution:
        return _Resolution(
            graph=graph,
            at=at,
            max_depth=self.max_depth,
            path=[],
            memo={},
            retired=set(),
        )


def _expand_edge(
    state: _Resolution, edge: WeightedEdge, multiplier: float
) -> list[ResolvedContribution]:
    consumable = state.graph.require(edge.consumable_id)
    if _is_retired(consumable, state.at):
        state.retired.add(consumable.id)
    fluid = (edge.fluid_volume or 0.0) * multiplier

    if not state.graph.is_composite(consumable.id):
        quantity = None if edge.quantity is None else edge.quantity * multiplier
        return [
            ResolvedContribution(
                consumable_id=consumable.id,
                unit=consumable.unit,
                quantity=quantity,
                fluid_volume=fluid,
            )
        ]

    expanded: list[ResolvedContribution] = []
    if fluid:
        # Fluid observed on the composite itself stays with the composite.
        expanded.append(
            ResolvedContribution(
                consumable_id=consumable.id,
                unit=consumable.unit,
                quantity=None,
                fluid_volume=fluid,
            )
        )
    factor = multiplier * (1.0 if edge.quantity is None else edge.quantity)
    expanded.extend(
        contribution.scaled(factor) for contribution in _subtree(state, consumable.id)
    )
    return expanded


def _subtree(
    state: _Resolution, consumable_id: int
) -> tuple[ResolvedContribution, ...]:
    """Contributions of one unit of a composite, memoised per call.

    The memo also records the subtree height, the number of composites on its
    longest path, so reusing it deeper in the traversal still honours the
    depth bound.
    """
    if consumable_id in state.path:
        raise CycleDetected(consumable_id, [*state.path, consumable_id])
    cached = state.memo.get(consumable_id)
    if cached is not None:
        contributions, height = cached
        if len(state.path) + height > state.max_depth:
            raise DepthExceeded(state.max_depth)
        return contributions
    if len(state.path) >= state.max_depth:
        raise DepthExceeded(state.max_depth)

    state.path.append(consumable_id)
    merged: dict[int, ResolvedContribution] = {}
    child_height = 0
    for child in state.graph.children(consumable_id):
        for contribution in _expand_edge(state, child, multiplier=1.0):
            merged[contribution.consumable_id] = _merge(
                merged.get(contribution.consumable_id), contribution
            )
        if child.consumable_id in state.memo:
            child_height = max(child_height, state.memo[child.consumable_id][1])
    state.path.pop()

    result = tuple(merged.values())
    state.memo[consumable_id] = (result, child_height + 1)
    return result


def _merge(
    current: ResolvedContribution | None, other: ResolvedContribution
) -> ResolvedContribution:
    if current is None:
        return other
    if current.quantity is None:
        quantity = other.quantity
    elif other.quantity is None:
        quantity = current.quantity
    else:
        quantity = current.quantity + other.quantity
    return ResolvedContribution(
        consumable_id=current.consumable_id,
        unit=current.unit,
        quantity=quantity,
        fluid_volume=current.fluid_volume + other.fluid_volume,
    )


def _is_retired(consumable: Consumable, at: datetime | None) -> bool:
    if at is None:
        return consumable.is_retired
    return not consumable.is_valid_at(at)
