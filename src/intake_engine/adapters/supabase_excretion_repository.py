"""Supabase repository for excretion events."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from intake_engine.adapters.supabase_rows import PooRow, WeeRow
from intake_engine.domain.consumptions import ExcretionEvent
from intake_engine.services.intake import ExcretionRepository


@dataclass
class SupabaseExcretionRepository(ExcretionRepository):
    """Supabase implementation reading the ``wees`` and ``poos`` tables."""

    client: Client

    def list_excretions(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[ExcretionEvent]:
        """Return a user's excretion events starting in the time range."""
        wees = self._select(
            "wees", "id, user_id, time, duration, mls", user_id, start, end
        )
        poos = self._select("poos", "id, user_id, time, duration", user_id, start, end)
        events = [WeeRow.model_validate(row).to_domain() for row in wees]
        events.extend(PooRow.model_validate(row).to_domain() for row in poos)
        return sorted(events, key=lambda event: event.time)

    def _select(  # noqa: PLR0913
        self,
        table: str,
        columns: str,
        user_id: int,
        start: datetime,
        end: datetime,
    ) -> list[dict[str, object]]:
        response = (
            self.client.table(table)
            .select(columns)
            .eq("user_id", user_id)
            .gte("time", start.isoformat())
            .lt("time", end.isoformat())
            .order("time", desc=False)
            .execute()
        )
        return response.data or []
