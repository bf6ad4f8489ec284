"""Intake logging, windowed intake reports and fluid balance."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from intake_engine.domain.consumables import WeightedEdge
from intake_engine.domain.consumptions import (
    Consumption,
    ConsumptionWithLinks,
    ExcretionEvent,
)
from intake_engine.domain.errors import CycleDetected, DepthExceeded, EngineError
from intake_engine.domain.resolution import EventAggregate, ResolvedLeaves
from intake_engine.services.aggregation import aggregate_event, with_direct_fluid
from intake_engine.services.composition import ConsumableRepository, load_snapshot
from intake_engine.services.resolver import GraphResolver
from intake_engine.services.validation import EdgeValidator
from intake_engine.services.windowing import (
    DAY,
    Bucket,
    OverlapPolicy,
    TimeRange,
    aggregate_window,
    bucket_excretions,
    local_day_buckets,
)

_logger = logging.getLogger(__name__)


class ConsumptionRepository(Protocol):
    """Persistence interface for consumption events and their links."""

    def get_consumption(self, consumption_id: int) -> Consumption | None:
        """Return a consumption by id, if present."""

    def list_consumptions(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[Consumption]:
        """Return consumptions starting within ``[start, end)``."""

    def list_links(self, consumption_ids: list[int]) -> dict[int, list[WeightedEdge]]:
        """Return consumption links keyed by consumption id."""

    def upsert_link(self, edge: WeightedEdge) -> WeightedEdge:
        """Create or replace a consumption link."""

    def delete_link(self, consumption_id: int, consumable_id: int) -> None:
        """Delete a consumption link."""


class ExcretionRepository(Protocol):
    """Persistence interface for excretion events."""

    def list_excretions(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[ExcretionEvent]:
        """Return excretion events starting within ``[start, end)``."""


@dataclass(frozen=True)
class ConsumptionSummary:
    """A consumption with its resolved leaves and aggregate."""

    consumption: Consumption
    leaves: ResolvedLeaves
    aggregate: EventAggregate

    @property
    def references_retired_data(self) -> bool:
        return self.leaves.references_retired_data


@dataclass(frozen=True)
class FluidBalanceDay:
    """Fluid taken in versus urine passed on one local day."""

    day: date
    intake_ml: float
    output_ml: float

    @property
    def net_ml(self) -> float:
        return self.intake_ml - self.output_ml


@dataclass
class IntakeService:
    """Application service for logged intake.

    Window queries also load events that started up to ``lookback`` before the
    range, so it has to cover the longest event duration.
    """

    consumable_repository: ConsumableRepository
    consumption_repository: ConsumptionRepository
    excretion_repository: ExcretionRepository
    resolver: GraphResolver = field(default_factory=GraphResolver)
    validator: EdgeValidator | None = None
    overlap_policy: OverlapPolicy = OverlapPolicy.START
    lookback: timedelta = timedelta(hours=24)

    def __post_init__(self) -> None:
        if self.validator is None:
            self.validator = EdgeValidator(self.resolver)

    def add_link(  # noqa: PLR0913
        self,
        consumption_id: int,
        consumable_id: int,
        quantity: float | None,
        fluid_volume: float | None = None,
        comments: str | None = None,
    ) -> WeightedEdge:
        """Validate and persist a consumable link on a consumption."""
        edge = WeightedEdge.link(
            consumption_id, consumable_id, quantity, fluid_volume, comments
        )
        graph = load_snapshot(self.consumable_repository)
        try:
            self.validator.validate_edge(edge, graph)
        except EngineError as exc:
            _logger.warning(
                "Consumption link rejected: consumption=%s consumable=%s reason=%s",
                consumption_id,
                consumable_id,
                exc.kind,
            )
            raise
        return self.consumption_repository.upsert_link(edge)

    def update_link(  # noqa: PLR0913
        self,
        consumption_id: int,
        consumable_id: int,
        quantity: float | None,
        fluid_volume: float | None = None,
        comments: str | None = None,
    ) -> WeightedEdge:
        """Validate and persist changed amounts on a consumption link."""
        return self.add_link(
            consumption_id, consumable_id, quantity, fluid_volume, comments
        )

    def remove_link(self, consumption_id: int, consumable_id: int) -> None:
        """Remove a consumable from a consumption."""
        self.consumption_repository.delete_link(consumption_id, consumable_id)

    def summarize_consumption(self, consumption_id: int) -> ConsumptionSummary | None:
        """Resolve one consumption against the current graph snapshot."""
        consumption = self.consumption_repository.get_consumption(consumption_id)
        if consumption is None:
            return None
        links = self.consumption_repository.list_links([consumption_id])
        graph = load_snapshot(self.consumable_repository)
        try:
            leaves = self.resolver.resolve(
                links.get(consumption_id, []), graph, at=consumption.time
            )
        except (CycleDetected, DepthExceeded) as exc:
            _logger.warning(
                "Consumption could not be resolved: id=%s reason=%s",
                consumption_id,
                exc.kind,
            )
            raise
        if leaves.references_retired_data:
            _logger.info(
                "Consumption references retired consumables: id=%s retired=%s",
                consumption_id,
                sorted(leaves.retired),
            )
        aggregate = with_direct_fluid(aggregate_event(leaves), consumption.fluid_volume)
        return ConsumptionSummary(
            consumption=consumption, leaves=leaves, aggregate=aggregate
        )

    def intake_window(  # noqa: PLR0913
        self,
        user_id: int,
        time_range: TimeRange,
        bucket_size: timedelta,
        overlap_policy: OverlapPolicy | None = None,
        step: timedelta | None = None,
        buckets: list[Bucket] | None = None,
    ) -> list[tuple[Bucket, EventAggregate]]:
        """Aggregate a user's intake per bucket over a time range."""
        events = self._load_events(user_id, time_range)
        graph = load_snapshot(self.consumable_repository)
        try:
            return aggregate_window(
                user_id,
                time_range,
                bucket_size,
                events,
                graph,
                overlap_policy or self.overlap_policy,
                step=step,
                resolver=self.resolver,
                buckets=buckets,
            )
        except EngineError as exc:
            _logger.warning(
                "Intake window failed: user=%s start=%s end=%s reason=%s",
                user_id,
                time_range.start.isoformat(),
                time_range.end.isoformat(),
                exc.kind,
            )
            raise

    def daily_intake(
        self,
        user_id: int,
        timezone_name: str,
        days: int = 7,
        end_day: date | None = None,
    ) -> list[tuple[Bucket, EventAggregate]]:
        """Return intake per local calendar day, ending with ``end_day``."""
        buckets = _day_buckets(timezone_name, days, end_day)
        time_range = TimeRange(start=buckets[0].start, end=buckets[-1].end)
        return self.intake_window(user_id, time_range, DAY, buckets=buckets)

    def fluid_balance(
        self,
        user_id: int,
        timezone_name: str,
        days: int = 7,
        end_day: date | None = None,
    ) -> list[FluidBalanceDay]:
        """Compare fluid intake with measured urine output per local day."""
        buckets = _day_buckets(timezone_name, days, end_day)
        time_range = TimeRange(start=buckets[0].start, end=buckets[-1].end)
        intake = self.intake_window(user_id, time_range, DAY, buckets=buckets)
        excretions = self.excretion_repository.list_excretions(
            user_id, time_range.start - self.lookback, time_range.end
        )
        output = bucket_excretions(
            user_id,
            time_range,
            DAY,
            excretions,
            self.overlap_policy,
            buckets=buckets,
        )
        tz = ZoneInfo(timezone_name)
        return [
            FluidBalanceDay(
                day=bucket.start.astimezone(tz).date(),
                intake_ml=aggregate.total_fluid_volume,
                output_ml=volume,
            )
            for (bucket, aggregate), (_, volume) in zip(intake, output, strict=True)
        ]

    def _load_events(
        self, user_id: int, time_range: TimeRange
    ) -> list[ConsumptionWithLinks]:
        consumptions = self.consumption_repository.list_consumptions(
            user_id, time_range.start - self.lookback, time_range.end
        )
        links = self.consumption_repository.list_links(
            [consumption.id for consumption in consumptions]
        )
        return [
            ConsumptionWithLinks(
                consumption=consumption, links=links.get(consumption.id, [])
            )
            for consumption in consumptions
        ]


def _day_buckets(timezone_name: str, days: int, end_day: date | None) -> list[Bucket]:
    if days < 1:
        raise ValueError("At least one day is required")
    last = end_day or datetime.now(tz=ZoneInfo(timezone_name)).date()
    return local_day_buckets(last - timedelta(days=days - 1), days, timezone_name)
