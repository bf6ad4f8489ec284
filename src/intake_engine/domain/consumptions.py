"""Domain models for logged intake and excretion events."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from intake_engine.domain.consumables import WeightedEdge


class ConsumptionRoute(StrEnum):
    """How a consumable entered the body."""

    DIGEST = "digest"
    INHALE_NOSE = "inhale_nose"
    INHALE_MOUTH = "inhale_mouth"
    SPIT_OUT = "spit_out"
    INJECT = "inject"
    APPLY_SKIN = "apply_skin"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass(frozen=True)
class Consumption:
    """A logged intake event for one user."""

    id: int
    user_id: int
    time: datetime
    duration: timedelta = timedelta(0)
    route: ConsumptionRoute = ConsumptionRoute.DIGEST
    fluid_volume: float | None = None
    comments: str | None = None

    @property
    def end(self) -> datetime:
        return self.time + self.duration


@dataclass(frozen=True)
class ConsumptionWithLinks:
    """A consumption event together with its consumable links."""

    consumption: Consumption
    links: list[WeightedEdge] = field(default_factory=list)


class ExcretionKind(StrEnum):
    """Kinds of excretion events correlated with intake."""

    URINATION = "urination"
    DEFECATION = "defecation"


@dataclass(frozen=True)
class ExcretionEvent:
    """A logged excretion event; ``volume`` is in millilitres when measured."""

    id: int
    user_id: int
    kind: ExcretionKind
    time: datetime
    duration: timedelta = timedelta(0)
    volume: float | None = None
