"""Time bucketing of consumption and excretion events."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from enum import StrEnum
from zoneinfo import ZoneInfo

from intake_engine.domain.consumptions import ConsumptionWithLinks, ExcretionEvent
from intake_engine.domain.graph import CompositionGraph
from intake_engine.domain.resolution import EventAggregate
from intake_engine.services.aggregation import (
    aggregate_event,
    merge_aggregates,
    scale_aggregate,
    with_direct_fluid,
)
from intake_engine.services.resolver import GraphResolver

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


class OverlapPolicy(StrEnum):
    """How an event spanning several buckets is attributed to them."""

    START = "start"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class TimeRange:
    """Half-open ``[start, end)`` interval."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("Time range end must be after its start")


@dataclass(frozen=True)
class Bucket:
    """A half-open time interval used to group events."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def overlap(self, start: datetime, end: datetime) -> timedelta:
        """Return how much of ``[start, end)`` falls inside the bucket."""
        latest_start = max(self.start, start)
        earliest_end = min(self.end, end)
        return max(earliest_end - latest_start, timedelta(0))


def make_buckets(
    time_range: TimeRange, bucket_size: timedelta, step: timedelta | None = None
) -> list[Bucket]:
    """Split a range into fixed buckets, or sliding windows when ``step`` is set."""
    if bucket_size <= timedelta(0):
        raise ValueError("Bucket size must be positive")
    stride = step or bucket_size
    if stride <= timedelta(0):
        raise ValueError("Bucket step must be positive")
    buckets = []
    start = time_range.start
    while start < time_range.end:
        end = min(start + bucket_size, time_range.end)
        buckets.append(Bucket(start=start, end=end))
        start += stride
    return buckets


def local_day_buckets(day: date, days: int, timezone_name: str) -> list[Bucket]:
    """Return calendar-day buckets in a timezone, starting at ``day``."""
    tz = ZoneInfo(timezone_name)
    # Bounds are the UTC instants of local midnights.
    midnights = [
        datetime.combine(day + timedelta(days=offset), time.min, tzinfo=tz)
        for offset in range(days + 1)
    ]
    midnights = [midnight.astimezone(UTC) for midnight in midnights]
    return [
        Bucket(start=midnights[index], end=midnights[index + 1])
        for index in range(days)
    ]


def local_day_range(day: date, days: int, timezone_name: str) -> TimeRange:
    """Return the range covering ``days`` calendar days in a timezone."""
    buckets = local_day_buckets(day, days, timezone_name)
    return TimeRange(start=buckets[0].start, end=buckets[-1].end)


def attribution(
    bucket: Bucket, start: datetime, duration: timedelta, policy: OverlapPolicy
) -> float:
    """Return the fraction of an event attributed to a bucket."""
    if policy == OverlapPolicy.START or duration <= timedelta(0):
        return 1.0 if bucket.contains(start) else 0.0
    return bucket.overlap(start, start + duration) / duration


def aggregate_window(  # noqa: PLR0913
    user_id: int,
    time_range: TimeRange,
    bucket_size: timedelta,
    events: Iterable[ConsumptionWithLinks],
    graph: CompositionGraph,
    overlap_policy: OverlapPolicy = OverlapPolicy.START,
    *,
    step: timedelta | None = None,
    resolver: GraphResolver | None = None,
    buckets: list[Bucket] | None = None,
) -> list[tuple[Bucket, EventAggregate]]:
    """Aggregate a user's consumption events per time bucket.

    Each event is resolved once against the snapshot, then attributed to the
    buckets it overlaps according to ``overlap_policy``. Events attributed to
    no bucket are skipped without being resolved. Every bucket of the range is
    returned in order, including empty ones.
    """
    active_resolver = resolver or GraphResolver()
    windows = buckets or make_buckets(time_range, bucket_size, step)
    per_event = []
    for item in events:
        consumption = item.consumption
        if consumption.user_id != user_id:
            continue
        weights = [
            attribution(bucket, consumption.time, consumption.duration, overlap_policy)
            for bucket in windows
        ]
        if not any(weights):
            continue
        per_event.append((weights, event_aggregate(item, graph, active_resolver)))
    results = []
    for index, bucket in enumerate(windows):
        parts = [
            scale_aggregate(aggregate, weights[index])
            for weights, aggregate in per_event
            if weights[index] > 0
        ]
        results.append((bucket, merge_aggregates(parts)))
    return results


def event_aggregate(
    item: ConsumptionWithLinks, graph: CompositionGraph, resolver: GraphResolver
) -> EventAggregate:
    """Resolve and aggregate one event, including its own direct fluid."""
    leaves = resolver.resolve(item.links, graph, at=item.consumption.time)
    return with_direct_fluid(aggregate_event(leaves), item.consumption.fluid_volume)


def bucket_excretions(  # noqa: PLR0913
    user_id: int,
    time_range: TimeRange,
    bucket_size: timedelta,
    events: Iterable[ExcretionEvent],
    overlap_policy: OverlapPolicy = OverlapPolicy.START,
    *,
    step: timedelta | None = None,
    buckets: list[Bucket] | None = None,
) -> list[tuple[Bucket, float]]:
    """Sum measured excretion volumes per time bucket."""
    windows = buckets or make_buckets(time_range, bucket_size, step)
    measured = [
        event
        for event in events
        if event.user_id == user_id and event.volume is not None
    ]
    results = []
    for bucket in windows:
        volumes = [
            event.volume
            * attribution(bucket, event.time, event.duration, overlap_policy)
            for event in measured
        ]
        results.append((bucket, math.fsum(volumes)))
    return results
