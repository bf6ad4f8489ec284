"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from intake_engine.adapters.supabase_consumable_repository import (
    SupabaseConsumableRepository,
)
from intake_engine.adapters.supabase_consumption_repository import (
    SupabaseConsumptionRepository,
)
from intake_engine.adapters.supabase_excretion_repository import (
    SupabaseExcretionRepository,
)
from intake_engine.adapters.supabase_rows import parse_interval
from intake_engine.domain.consumables import EdgeKind, WeightedEdge
from intake_engine.domain.consumptions import ConsumptionRoute, ExcretionKind
from intake_engine.domain.units import Unit


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "upsert": [], "update": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(  # type: ignore[no-untyped-def]
        self, payload, on_conflict: str = ""
    ) -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.on_conflict = on_conflict
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def ilike(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def or_(self, filters: str) -> "FakeTable":
        self.last_filters.append(("or", filters))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        self.executed.append(action)
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _consumable_row(consumable_id: int, name: str, unit: str) -> dict[str, object]:
    return {
        "id": consumable_id,
        "name": name,
        "brand": None,
        "barcode": None,
        "is_organic": False,
        "unit": unit,
        "comments": None,
        "created": "2024-01-01T00:00:00+00:00",
        "destroyed": None,
    }


def test_consumable_repository_reads_rows() -> None:
    client = FakeSupabaseClient()
    consumables = client.table("consumables")
    consumables.queue(
        "select",
        [
            _consumable_row(1, "Bread", "number"),
            {
                **_consumable_row(2, "Milk", "millilitres"),
                "destroyed": "2025-01-01T00:00:00+00:00",
            },
        ],
    )
    consumables.queue("select", [_consumable_row(1, "Bread", "number")])

    repository = SupabaseConsumableRepository(client)
    listed = repository.list_consumables()
    fetched = repository.get_consumable(1)

    assert [item.unit for item in listed] == [Unit.NUMBER, Unit.MILLILITRES]
    assert listed[1].is_retired
    assert fetched is not None
    assert fetched.created == datetime(2024, 1, 1, tzinfo=UTC)
    assert repository.get_consumable(3) is None


def test_consumable_repository_searches_by_name() -> None:
    client = FakeSupabaseClient()
    consumables = client.table("consumables")
    consumables.queue("select", [_consumable_row(8, "Tea", "millilitres")])

    matches = SupabaseConsumableRepository(client).search_consumables("te", 5)

    assert [item.name for item in matches] == ["Tea"]
    assert ("name", "%te%") in consumables.last_filters


def test_consumable_search_filters_validity_in_query() -> None:
    client = FakeSupabaseClient()
    consumables = client.table("consumables")
    consumables.queue("select", [_consumable_row(8, "Tea", "millilitres")])

    SupabaseConsumableRepository(client).search_consumables(
        "te", 5, valid_at=datetime(2025, 6, 1, tzinfo=UTC)
    )

    assert consumables.last_filters[-2:] == [
        ("or", 'created.is.null,created.lte."2025-06-01T00:00:00+00:00"'),
        ("or", 'destroyed.is.null,destroyed.gt."2025-06-01T00:00:00+00:00"'),
    ]


def test_consumable_repository_edges() -> None:
    client = FakeSupabaseClient()
    nested = client.table("nested_consumables")
    nested.queue(
        "select",
        [
            {
                "parent_id": 8,
                "consumable_id": 6,
                "quantity": 250,
                "liquid_mls": 250,
                "comments": None,
            }
        ],
    )
    nested.queue(
        "upsert",
        [{"parent_id": 3, "consumable_id": 1, "quantity": 2, "liquid_mls": None}],
    )

    repository = SupabaseConsumableRepository(client)
    edges = repository.list_composition_edges()
    saved = repository.upsert_composition_edge(
        WeightedEdge.composition(3, 1, quantity=2)
    )
    repository.delete_composition_edge(3, 1)

    assert edges == [WeightedEdge.composition(8, 6, 250, 250)]
    assert saved.kind == EdgeKind.COMPOSITION
    assert nested.last_payload == {
        "parent_id": 3,
        "consumable_id": 1,
        "quantity": 2,
        "liquid_mls": None,
        "comments": None,
    }
    assert nested.on_conflict == "parent_id,consumable_id"
    assert nested.last_filters[-2:] == [("parent_id", 3), ("consumable_id", 1)]


def test_consumable_repository_raises_on_failed_write() -> None:
    repository = SupabaseConsumableRepository(FakeSupabaseClient())

    with pytest.raises(RuntimeError):
        repository.upsert_composition_edge(WeightedEdge.composition(3, 1, 2))
    with pytest.raises(RuntimeError):
        repository.update_consumable(1, {"unit": "grams"})


def test_consumable_repository_updates_and_counts() -> None:
    client = FakeSupabaseClient()
    client.table("consumables").queue("update", [_consumable_row(1, "Bread", "grams")])
    client.table("consumption_consumables").queue(
        "select", [{"parent_id": 10}, {"parent_id": 11}]
    )

    repository = SupabaseConsumableRepository(client)
    updated = repository.update_consumable(1, {"unit": "grams"})

    assert updated.unit == Unit.GRAMS
    assert repository.count_consumption_links(1) == 2


def test_consumption_repository_parses_rows() -> None:
    client = FakeSupabaseClient()
    client.table("consumptions").queue(
        "select",
        [
            {
                "id": 10,
                "user_id": 1,
                "time": "2025-03-10T22:00:00+00:00",
                "duration": "01:30:00",
                "consumption_type": "inhale_mouth",
                "liquid_mls": 150,
                "comments": None,
            }
        ],
    )

    consumptions = SupabaseConsumptionRepository(client).list_consumptions(
        1,
        datetime(2025, 3, 10, tzinfo=UTC),
        datetime(2025, 3, 11, tzinfo=UTC),
    )

    assert len(consumptions) == 1
    assert consumptions[0].duration == timedelta(hours=1, minutes=30)
    assert consumptions[0].route == ConsumptionRoute.INHALE_MOUTH
    assert consumptions[0].fluid_volume == 150


def test_consumption_repository_groups_links() -> None:
    client = FakeSupabaseClient()
    links_table = client.table("consumption_consumables")
    links_table.queue(
        "select",
        [
            {"parent_id": 10, "consumable_id": 3, "quantity": 1, "liquid_mls": None},
            {"parent_id": 11, "consumable_id": 5, "quantity": 1, "liquid_mls": 250},
            {"parent_id": 10, "consumable_id": 6, "quantity": None, "liquid_mls": 90},
        ],
    )

    repository = SupabaseConsumptionRepository(client)
    links = repository.list_links([10, 11])

    assert sorted(links) == [10, 11]
    assert [link.consumable_id for link in links[10]] == [3, 6]
    assert links[11][0] == WeightedEdge.link(11, 5, 1, 250)
    assert repository.list_links([]) == {}
    assert links_table.executed == ["select"]


def test_consumption_repository_writes_links() -> None:
    client = FakeSupabaseClient()
    links_table = client.table("consumption_consumables")
    links_table.queue(
        "upsert",
        [{"parent_id": 10, "consumable_id": 3, "quantity": 2, "liquid_mls": None}],
    )

    repository = SupabaseConsumptionRepository(client)
    saved = repository.upsert_link(WeightedEdge.link(10, 3, quantity=2))
    repository.delete_link(10, 3)

    assert saved == WeightedEdge.link(10, 3, quantity=2)
    assert links_table.executed == ["upsert", "delete"]
    with pytest.raises(RuntimeError):
        repository.upsert_link(WeightedEdge.link(10, 3, quantity=2))


def test_excretion_repository_merges_tables() -> None:
    client = FakeSupabaseClient()
    client.table("wees").queue(
        "select",
        [
            {
                "id": 1,
                "user_id": 1,
                "time": "2025-03-10T12:00:00+00:00",
                "duration": "00:00:45",
                "mls": 300,
            }
        ],
    )
    client.table("poos").queue(
        "select",
        [
            {
                "id": 2,
                "user_id": 1,
                "time": "2025-03-10T08:00:00+00:00",
                "duration": "00:05:00",
            }
        ],
    )

    events = SupabaseExcretionRepository(client).list_excretions(
        1,
        datetime(2025, 3, 10, tzinfo=UTC),
        datetime(2025, 3, 11, tzinfo=UTC),
    )

    assert [event.kind for event in events] == [
        ExcretionKind.DEFECATION,
        ExcretionKind.URINATION,
    ]
    assert events[1].volume == 300
    assert events[1].duration == timedelta(seconds=45)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("00:05:00", timedelta(minutes=5)),
        ("1 day 02:00:00", timedelta(days=1, hours=2)),
        ("3 days", timedelta(days=3)),
        ("-1 days +02:00:00", timedelta(days=-1, hours=2)),
        ("00:00:30.5", timedelta(seconds=30.5)),
    ],
)
def test_parse_interval(raw: str, expected: timedelta) -> None:
    assert parse_interval(raw) == expected


def test_parse_interval_passes_other_values_through() -> None:
    assert parse_interval(timedelta(hours=1)) == timedelta(hours=1)
    assert parse_interval("PT1H") == "PT1H"
