"""Worker-service compatibility: can this worker perform this service?"""

from typing import Iterable

from salon_scheduler.schemas.worker_schema import WorkerSchedule
from salon_scheduler.utils import normalize_identifier


def can_worker_perform_service(worker: WorkerSchedule, service_id: str) -> bool:
    """
    - Inactive workers perform nothing.
    - A blank service id matches nobody.
    - No services list, or an empty one, means every service.
    - Otherwise the list must contain the service id.
    """
    if not worker.active:
        return False
    service_id = normalize_identifier(service_id)
    if not service_id:
        return False
    if not worker.services:
        return True
    return service_id in {normalize_identifier(s) for s in worker.services}


def workers_who_can_perform_service(
    workers: Iterable[WorkerSchedule], service_id: str
) -> list[WorkerSchedule]:
    return [w for w in workers if can_worker_perform_service(w, service_id)]
