"""Supabase repository for consumptions and their consumable links."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from intake_engine.adapters.supabase_rows import ConsumptionRow, EdgeRow
from intake_engine.domain.consumables import WeightedEdge
from intake_engine.domain.consumptions import Consumption
from intake_engine.services.intake import ConsumptionRepository

_CONSUMPTION_COLUMNS = (
    "id, user_id, time, duration, consumption_type, liquid_mls, comments"
)
_LINK_COLUMNS = "parent_id, consumable_id, quantity, liquid_mls, comments"


@dataclass
class SupabaseConsumptionRepository(ConsumptionRepository):
    """Supabase implementation for consumption events."""

    client: Client

    def get_consumption(self, consumption_id: int) -> Consumption | None:
        """Return a consumption by id."""
        response = (
            self.client.table("consumptions")
            .select(_CONSUMPTION_COLUMNS)
            .eq("id", consumption_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return ConsumptionRow.model_validate(response.data[0]).to_domain()

    def list_consumptions(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[Consumption]:
        """Return a user's consumptions starting in the time range."""
        response = (
            self.client.table("consumptions")
            .select(_CONSUMPTION_COLUMNS)
            .eq("user_id", user_id)
            .gte("time", start.isoformat())
            .lt("time", end.isoformat())
            .order("time", desc=False)
            .execute()
        )
        return [
            ConsumptionRow.model_validate(row).to_domain()
            for row in response.data or []
        ]

    def list_links(self, consumption_ids: list[int]) -> dict[int, list[WeightedEdge]]:
        """Return consumption links keyed by consumption id."""
        if not consumption_ids:
            return {}
        response = (
            self.client.table("consumption_consumables")
            .select(_LINK_COLUMNS)
            .in_("parent_id", consumption_ids)
            .order("consumable_id", desc=False)
            .execute()
        )
        links: dict[int, list[WeightedEdge]] = {}
        for row in response.data or []:
            link = EdgeRow.model_validate(row).to_link()
            links.setdefault(link.parent_id, []).append(link)
        return links

    def upsert_link(self, edge: WeightedEdge) -> WeightedEdge:
        """Create or replace a consumption link."""
        response = (
            self.client.table("consumption_consumables")
            .upsert(
                {
                    "parent_id": edge.parent_id,
                    "consumable_id": edge.consumable_id,
                    "quantity": edge.quantity,
                    "liquid_mls": edge.fluid_volume,
                    "comments": edge.comments,
                },
                on_conflict="parent_id,consumable_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save consumption link")
        return EdgeRow.model_validate(response.data[0]).to_link()

    def delete_link(self, consumption_id: int, consumable_id: int) -> None:
        """Delete a consumption link."""
        self.client.table("consumption_consumables").delete().eq(
            "parent_id", consumption_id
        ).eq("consumable_id", consumable_id).execute()
