"""Supabase repository for consumables and composition edges."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from intake_engine.adapters.supabase_rows import ConsumableRow, EdgeRow
from intake_engine.domain.consumables import Consumable, WeightedEdge
from intake_engine.services.composition import ConsumableRepository

_CONSUMABLE_COLUMNS = (
    "id, name, brand, barcode, is_organic, unit, comments, created, destroyed"
)
_EDGE_COLUMNS = "parent_id, consumable_id, quantity, liquid_mls, comments"


@dataclass
class SupabaseConsumableRepository(ConsumableRepository):
    """Supabase implementation for consumables and nested consumables."""

    client: Client

    def get_consumable(self, consumable_id: int) -> Consumable | None:
        """Return a consumable by id."""
        response = (
            self.client.table("consumables")
            .select(_CONSUMABLE_COLUMNS)
            .eq("id", consumable_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return ConsumableRow.model_validate(response.data[0]).to_domain()

    def list_consumables(self) -> list[Consumable]:
        """Return all consumables."""
        response = (
            self.client.table("consumables")
            .select(_CONSUMABLE_COLUMNS)
            .order("id", desc=False)
            .execute()
        )
        return [
            ConsumableRow.model_validate(row).to_domain() for row in response.data or []
        ]

    def search_consumables(
        self, query: str, limit: int, valid_at: datetime | None = None
    ) -> list[Consumable]:
        """Search consumables by name, optionally only those valid at an instant."""
        request = (
            self.client.table("consumables")
            .select(_CONSUMABLE_COLUMNS)
            .ilike("name", f"%{query}%")
        )
        if valid_at is not None:
            instant = f'"{valid_at.isoformat()}"'
            request = request.or_(f"created.is.null,created.lte.{instant}").or_(
                f"destroyed.is.null,destroyed.gt.{instant}"
            )
        response = request.order("name", desc=False).limit(limit).execute()
        return [
            ConsumableRow.model_validate(row).to_domain() for row in response.data or []
        ]

    def update_consumable(
        self, consumable_id: int, payload: dict[str, object]
    ) -> Consumable:
        """Update consumable columns and return the row."""
        response = (
            self.client.table("consumables")
            .update(payload)
            .eq("id", consumable_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update consumable")
        return ConsumableRow.model_validate(response.data[0]).to_domain()

    def list_composition_edges(self) -> list[WeightedEdge]:
        """Return all nested consumable rows."""
        response = (
            self.client.table("nested_consumables")
            .select(_EDGE_COLUMNS)
            .order("parent_id", desc=False)
            .execute()
        )
        return [
            EdgeRow.model_validate(row).to_composition() for row in response.data or []
        ]

    def upsert_composition_edge(self, edge: WeightedEdge) -> WeightedEdge:
        """Create or replace a nested consumable row."""
        response = (
            self.client.table("nested_consumables")
            .upsert(_edge_payload(edge), on_conflict="parent_id,consumable_id")
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save nested consumable")
        return EdgeRow.model_validate(response.data[0]).to_composition()

    def delete_composition_edge(self, parent_id: int, consumable_id: int) -> None:
        """Delete a nested consumable row."""
        self.client.table("nested_consumables").delete().eq("parent_id", parent_id).eq(
            "consumable_id", consumable_id
        ).execute()

    def count_consumption_links(self, consumable_id: int) -> int:
        """Count consumption links that reference the consumable."""
        response = (
            self.client.table("consumption_consumables")
            .select("parent_id")
            .eq("consumable_id", consumable_id)
            .execute()
        )
        return len(response.data or [])


def _edge_payload(edge: WeightedEdge) -> dict[str, object]:
    return {
        "parent_id": edge.parent_id,
        "consumable_id": edge.consumable_id,
        "quantity": edge.quantity,
        "liquid_mls": edge.fluid_volume,
        "comments": edge.comments,
    }
