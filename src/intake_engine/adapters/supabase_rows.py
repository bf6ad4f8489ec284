"""Pydantic models for rows returned by Supabase."""

import re
from datetime import datetime, timedelta

from pydantic import BaseModel, Field, field_validator

from intake_engine.domain.consumables import Consumable, WeightedEdge
from intake_engine.domain.consumptions import (
    Consumption,
    ConsumptionRoute,
    ExcretionEvent,
    ExcretionKind,
)
from intake_engine.domain.units import Unit

_INTERVAL = re.compile(
    r"^(?:(?P<days>-?\d+) days? ?)?(?:(?P<sign>[-+])?(?P<hours>\d+):(?P<minutes>\d{2})"
    r":(?P<seconds>\d{2}(?:\.\d+)?))?$"
)


def parse_interval(value: object) -> object:
    """Parse a Postgres ``interval`` rendering such as ``1 day 02:00:00``."""
    if not isinstance(value, str):
        return value
    match = _INTERVAL.match(value.strip())
    if match is None or not value.strip():
        return value
    days = int(match.group("days") or 0)
    clock = timedelta(
        hours=int(match.group("hours") or 0),
        minutes=int(match.group("minutes") or 0),
        seconds=float(match.group("seconds") or 0),
    )
    if match.group("sign") == "-":
        clock = -clock
    return timedelta(days=days) + clock


class ConsumableRow(BaseModel):
    """Row of the ``consumables`` table."""

    id: int
    name: str
    brand: str | None = None
    barcode: str | None = None
    is_organic: bool = False
    unit: Unit
    comments: str | None = None
    created: datetime | None = None
    destroyed: datetime | None = None

    def to_domain(self) -> Consumable:
        return Consumable(
            id=self.id,
            name=self.name,
            unit=self.unit,
            brand=self.brand,
            barcode=self.barcode,
            is_organic=self.is_organic,
            comments=self.comments,
            created=self.created,
            destroyed=self.destroyed,
        )


class EdgeRow(BaseModel):
    """Row of ``nested_consumables`` or ``consumption_consumables``."""

    parent_id: int
    consumable_id: int
    quantity: float | None = None
    fluid_volume: float | None = Field(default=None, alias="liquid_mls")
    comments: str | None = None

    def to_composition(self) -> WeightedEdge:
        return WeightedEdge.composition(
            self.parent_id,
            self.consumable_id,
            self.quantity,
            self.fluid_volume,
            self.comments,
        )

    def to_link(self) -> WeightedEdge:
        return WeightedEdge.link(
            self.parent_id,
            self.consumable_id,
            self.quantity,
            self.fluid_volume,
            self.comments,
        )


class ConsumptionRow(BaseModel):
    """Row of the ``consumptions`` table."""

    id: int
    user_id: int
    time: datetime
    duration: timedelta = timedelta(0)
    consumption_type: ConsumptionRoute = ConsumptionRoute.DIGEST
    fluid_volume: float | None = Field(default=None, alias="liquid_mls")
    comments: str | None = None

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration(cls, value: object) -> object:
        return parse_interval(value)

    def to_domain(self) -> Consumption:
        return Consumption(
            id=self.id,
            user_id=self.user_id,
            time=self.time,
            duration=self.duration,
            route=self.consumption_type,
            fluid_volume=self.fluid_volume,
            comments=self.comments,
        )


class WeeRow(BaseModel):
    """Row of the ``wees`` table."""

    id: int
    user_id: int
    time: datetime
    duration: timedelta = timedelta(0)
    mls: float

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration(cls, value: object) -> object:
        return parse_interval(value)

    def to_domain(self) -> ExcretionEvent:
        return ExcretionEvent(
            id=self.id,
            user_id=self.user_id,
            kind=ExcretionKind.URINATION,
            time=self.time,
            duration=self.duration,
            volume=self.mls,
        )


class PooRow(BaseModel):
    """Row of the ``poos`` table; stools carry no fluid measurement."""

    id: int
    user_id: int
    time: datetime
    duration: timedelta = timedelta(0)

    @field_validator("duration", mode="before")
    @classmethod
    def parse_duration(cls, value: object) -> object:
        return parse_interval(value)

    def to_domain(self) -> ExcretionEvent:
        return ExcretionEvent(
            id=self.id,
            user_id=self.user_id,
            kind=ExcretionKind.DEFECATION,
            time=self.time,
            duration=self.duration,
        )
