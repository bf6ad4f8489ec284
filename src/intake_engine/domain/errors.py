"""Error kinds raised by graph resolution, aggregation and validation."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from intake_engine.domain.units import Unit


class EngineError(ValueError):
    """Base class for recoverable engine errors."""

    kind = "engine_error"

    def to_dict(self) -> dict[str, object]:
        """Return a structured payload describing the rejection."""
        return {"kind": self.kind, "message": str(self)}


class CycleDetected(EngineError):
    """A consumable was reached again while it was still being expanded."""

    kind = "cycle_detected"

    def __init__(self, consumable_id: int, path: list[int]) -> None:
        self.consumable_id = consumable_id
        self.path = list(path)
        rendered = " -> ".join(str(node) for node in self.path)
        super().__init__(f"Composition cycle at consumable {consumable_id}: {rendered}")

    def to_dict(self) -> dict[str, object]:
        return {
            **super().to_dict(),
            "consumable_id": self.consumable_id,
            "path": self.path,
        }


class DepthExceeded(EngineError):
    """Composition nesting went deeper than the configured bound."""

    kind = "depth_exceeded"

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        super().__init__(f"Composition nesting exceeds {max_depth} levels")

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "max_depth": self.max_depth}


class InvalidQuantity(EngineError):
    """A quantity or fluid volume is negative, zero where forbidden, or not finite."""

    kind = "invalid_quantity"

    def __init__(self, value: float, field: str = "quantity") -> None:
        self.value = value
        self.field = field
        super().__init__(f"Invalid {field}: {value!r}")

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "value": self.value, "field": self.field}


class IncompatibleUnitSum(EngineError):
    """Two quantities in different units were about to be summed."""

    kind = "incompatible_unit_sum"

    def __init__(self, unit_a: "Unit", unit_b: "Unit") -> None:
        self.unit_a = unit_a
        self.unit_b = unit_b
        super().__init__(f"Cannot sum {unit_a} with {unit_b}")

    def to_dict(self) -> dict[str, object]:
        return {
            **super().to_dict(),
            "unit_a": str(self.unit_a),
            "unit_b": str(self.unit_b),
        }


class UnknownConsumable(EngineError):
    """An edge or link references a consumable missing from the snapshot."""

    kind = "unknown_consumable"

    def __init__(self, consumable_id: int) -> None:
        self.consumable_id = consumable_id
        super().__init__(f"Unknown consumable {consumable_id}")

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "consumable_id": self.consumable_id}


class UnitLocked(EngineError):
    """The unit of a referenced consumable cannot change."""

    kind = "unit_locked"

    def __init__(self, consumable_id: int) -> None:
        self.consumable_id = consumable_id
        super().__init__(
            f"Consumable {consumable_id} is referenced; its unit cannot change"
        )

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "consumable_id": self.consumable_id}
