"""Service catalog lookups over the catalog snapshot supplied by the caller."""

import logging
from typing import Iterable, Optional

from salon_scheduler.config import settings
from salon_scheduler.schemas.service_schema import ServiceDefinition
from salon_scheduler.utils import normalize_identifier

logger = logging.getLogger(__name__)


def resolve_duration(service: ServiceDefinition) -> int:
    """Slot-fitting duration of a service, falling back to the configured default."""
    if service.duration_minutes is None:
        return settings.scheduling.default_service_duration_minutes
    return service.duration_minutes


def get_all_services(catalog: Iterable[ServiceDefinition]) -> list[dict]:
    """Return all services with basic info."""
    return [
        {
            "id": s.id,
            "name": s.name,
            "duration_minutes": resolve_duration(s),
            "has_follow_up": s.active_follow_up is not None,
        }
        for s in catalog
    ]


def get_service(catalog: Iterable[ServiceDefinition], service_id: str) -> Optional[ServiceDefinition]:
    """Find a service by id, then by exact (case-insensitive) name."""
    wanted = normalize_identifier(service_id)
    if not wanted:
        return None
    catalog = list(catalog)
    for service in catalog:
        if normalize_identifier(service.id) == wanted:
            return service
    lowered = wanted.lower()
    for service in catalog:
        if service.name.strip().lower() == lowered:
            return service
    return None


def match_service(catalog: Iterable[ServiceDefinition], query: str) -> Optional[str]:
    """Match free text to a service ID. Returns None if no match."""
    normalized = query.lower().strip()
    if not normalized:
        return None
    catalog = list(catalog)
    exact = get_service(catalog, normalized)
    if exact is not None:
        return exact.id
    for service in catalog:
        name = service.name.lower().strip()
        if name and (name in normalized or normalized in name):
            return service.id
    logger.debug("No service matched query %r", query)
    return None
