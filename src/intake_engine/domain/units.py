"""Measurement units for consumables."""

from enum import StrEnum

from intake_engine.domain.errors import IncompatibleUnitSum


class Unit(StrEnum):
    """Closed set of units a consumable can be measured in."""

    MILLILITRES = "millilitres"
    GRAMS = "grams"
    INTERNATIONAL_UNITS = "international_units"
    NUMBER = "number"

    @property
    def postfix(self) -> str:
        """Short suffix used when displaying quantities."""
        return _POSTFIXES[self]

    def display(self, value: float) -> str:
        """Render a quantity with its unit suffix."""
        postfix = self.postfix
        if not postfix:
            return f"{value:g}"
        return f"{value:g} {postfix}"


_POSTFIXES: dict[Unit, str] = {
    Unit.MILLILITRES: "ml",
    Unit.GRAMS: "g",
    Unit.INTERNATIONAL_UNITS: "IU",
    Unit.NUMBER: "",
}

# Direct fluid volumes are always recorded in this unit, independent of the
# primary unit of the consumable they are attached to.
FLUID_UNIT = Unit.MILLILITRES


def can_sum(unit_a: Unit, unit_b: Unit) -> bool:
    """Return whether two quantities can be added directly."""
    return unit_a == unit_b


def require_summable(unit_a: Unit, unit_b: Unit) -> None:
    """Raise if two units cannot be summed."""
    if not can_sum(unit_a, unit_b):
        raise IncompatibleUnitSum(unit_a=unit_a, unit_b=unit_b)
