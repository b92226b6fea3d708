"""
Bulk appointment updates ("Drager" workflow)

Query appointments in a window, keep those whose ``task.job.jobNo`` starts with
a prefix, then update each match one at a time. A failed item is recorded and
the loop moves on; only a failed query aborts the run.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Optional

from ...errors import UpstreamError
from .client import SchedulerClient
from .schemas import (
    AppointmentCategoryUpdate,
    AppointmentQuery,
    AppointmentTimeMarkerUpdate,
    BulkUpdateReport,
    SchedulerResponse,
    UpdateResultItem,
)

logger = logging.getLogger(__name__)

# The Scheduler API is inconsistent about identifier casing; first non-null wins
APPOINTMENT_ID_KEYS = ("id", "appointmentId", "Id")
APPOINTMENT_NO_KEYS = ("appointmentNo", "AppointmentNo")
APPOINTMENT_GUID_KEYS = ("appointmentGuid", "AppointmentGuid")

AppointmentUpdate = Callable[[dict], Awaitable[SchedulerResponse]]


def _first_present(record: dict, keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def resolve_appointment_id(appointment: dict) -> Any:
    return _first_present(appointment, APPOINTMENT_ID_KEYS)


def resolve_appointment_no(appointment: dict) -> Any:
    return _first_present(appointment, APPOINTMENT_NO_KEYS)


def resolve_appointment_guid(appointment: dict) -> Any:
    return _first_present(appointment, APPOINTMENT_GUID_KEYS)


def job_number_of(appointment: Any) -> Optional[str]:
    """``appointment.task.job.jobNo``, or None when any level is missing"""
    task = appointment.get("task") if isinstance(appointment, dict) else None
    job = task.get("job") if isinstance(task, dict) else None
    job_no = job.get("jobNo") if isinstance(job, dict) else None
    return job_no if isinstance(job_no, str) else None


def filter_by_job_prefix(appointments: list, job_prefix: str) -> list[dict]:
    matching = []
    for appointment in appointments:
        job_no = job_number_of(appointment)
        if job_no is not None and job_no.startswith(job_prefix):
            matching.append(appointment)
    return matching


async def run_bulk_update(
    client: SchedulerClient,
    query: AppointmentQuery,
    job_prefix: str,
    update: AppointmentUpdate,
) -> BulkUpdateReport:
    """
    Run the query, filter and update phases.

    Args:
        client: Scheduler API client used for the query
        query: Date window and optional resources
        job_prefix: Job number prefix an appointment must carry to be updated
        update: Coroutine issuing the update call for one appointment

    Raises:
        UpstreamError: If the appointment query fails
    """
    query_result = await client.query_appointments(query)
    if not query_result.success:
        raise UpstreamError("Failed to query appointments", error=query_result.error)

    appointments = query_result.data if isinstance(query_result.data, list) else []
    matching = filter_by_job_prefix(appointments, job_prefix)
    logger.info(
        f"🔎 Found {len(matching)} matching appointments (prefix {job_prefix!r}) "
        f"out of {len(appointments)} total"
    )

    report = BulkUpdateReport(
        totalAppointments=len(appointments), matchingAppointments=len(matching)
    )

    # Each update is awaited before the next one starts
    for appointment in matching:
        appointment_id = resolve_appointment_id(appointment)
        appointment_no = resolve_appointment_no(appointment)
        try:
            result = await update(appointment)
        except Exception as e:
            logger.error(f"❌ Update of appointment {appointment_no or appointment_id} raised: {e}")
            report.failureCount += 1
            report.results.append(
                UpdateResultItem(
                    appointmentId=appointment_id,
                    appointmentNo=appointment_no,
                    status="failed",
                    error=str(e),
                )
            )
            continue

        if result.success:
            report.successCount += 1
            report.results.append(
                UpdateResultItem(
                    appointmentId=appointment_id, appointmentNo=appointment_no, status="success"
                )
            )
        else:
            logger.warning(f"⚠️ Update of appointment {appointment_no or appointment_id} failed: {result.error}")
            report.failureCount += 1
            report.results.append(
                UpdateResultItem(
                    appointmentId=appointment_id,
                    appointmentNo=appointment_no,
                    status="failed",
                    error=result.error,
                )
            )

    return report


async def set_category_for_matching(
    client: SchedulerClient, query: AppointmentQuery, job_prefix: str, category: str
) -> BulkUpdateReport:
    async def update(appointment: dict) -> SchedulerResponse:
        appointment_id = resolve_appointment_id(appointment)
        appointment_no = resolve_appointment_no(appointment)
        logger.info(f"Updating appointment {appointment_no or appointment_id} to category {category}")
        return await client.set_appointment_category(
            AppointmentCategoryUpdate(
                appointmentId=appointment_id,
                appointmentNo=appointment_no,
                appointmentGuid=resolve_appointment_guid(appointment),
                category=category,
                sentFromBackOffice=True,
            )
        )

    return await run_bulk_update(client, query, job_prefix, update)


async def set_time_marker_for_matching(
    client: SchedulerClient, query: AppointmentQuery, job_prefix: str, time_marker: str
) -> BulkUpdateReport:
    async def update(appointment: dict) -> SchedulerResponse:
        appointment_id = resolve_appointment_id(appointment)
        if appointment_id is None:
            raise ValueError("Appointment ID not found in appointment object")
        logger.info(f"Updating appointment {appointment_id} to time marker {time_marker}")
        return await client.set_appointment_time_marker(
            AppointmentTimeMarkerUpdate(appointmentId=appointment_id, timeMarker=time_marker)
        )

    report = await run_bulk_update(client, query, job_prefix, update)
    report.timeMarker = time_marker
    return report
