"""Dependency container wiring for the engine."""

from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from intake_engine.adapters.supabase_consumable_repository import (
    SupabaseConsumableRepository,
)
from intake_engine.adapters.supabase_consumption_repository import (
    SupabaseConsumptionRepository,
)
from intake_engine.adapters.supabase_excretion_repository import (
    SupabaseExcretionRepository,
)
from intake_engine.app_logging import configure_logging
from intake_engine.config import Settings
from intake_engine.services.composition import CompositionService
from intake_engine.services.intake import IntakeService
from intake_engine.services.resolver import GraphResolver
from intake_engine.services.validation import EdgeValidator
from intake_engine.services.windowing import OverlapPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    resolver: GraphResolver
    composition_service: CompositionService
    intake_service: IntakeService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    configure_logging()
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    consumable_repository = SupabaseConsumableRepository(supabase_client)
    consumption_repository = SupabaseConsumptionRepository(supabase_client)
    excretion_repository = SupabaseExcretionRepository(supabase_client)
    resolver = GraphResolver(max_depth=resolved_settings.max_resolution_depth)
    validator = EdgeValidator(resolver)
    composition_service = CompositionService(
        repository=consumable_repository,
        resolver=resolver,
        validator=validator,
    )
    intake_service = IntakeService(
        consumable_repository=consumable_repository,
        consumption_repository=consumption_repository,
        excretion_repository=excretion_repository,
        resolver=resolver,
        validator=validator,
        overlap_policy=OverlapPolicy(resolved_settings.overlap_policy),
        lookback=timedelta(hours=resolved_settings.event_lookback_hours),
    )
    return AppContainer(
        settings=resolved_settings,
        resolver=resolver,
        composition_service=composition_service,
        intake_service=intake_service,
    )
