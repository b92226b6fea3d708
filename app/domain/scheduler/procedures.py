"""
Dime.Scheduler procedure builders

Pure functions mapping typed domain requests onto stored procedure envelopes
(or direct REST bodies). Parameter names are fixed per procedure and values are
read in the same order, with the documented defaults applied.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from typing import Optional

from .schemas import (
    AppointmentCategoryUpdate,
    AppointmentQuery,
    AppointmentTimeMarkerUpdate,
    AppointmentUpsert,
    JobCreate,
    ProcedureEnvelope,
    TaskCreate,
    TaskForJob,
)

logger = logging.getLogger(__name__)

UPSERT_JOB = "mboc_upsertJob"
UPSERT_TASK = "mboc_upsertTask"
UPSERT_APPOINTMENT = "mboc_upsertAppointment"
UPDATE_APPOINTMENT_TIME_MARKER = "mboc_updateAppointmentTimeMarker"

JOB_PARAMETERS = ["SourceApp", "SourceType", "JobNo", "ShortDescription", "FreeDecimal4"]
TASK_PARAMETERS = [
    "SourceApp",
    "SourceType",
    "JobNo",
    "TaskNo",
    "ShortDescription",
    "Description",
    "UseFixPlanningQty",
]
APPOINTMENT_PARAMETERS = [
    "SourceApp",
    "SourceType",
    "JobNo",
    "TaskNo",
    "Subject",
    "Start",
    "End",
    "ResourceNo",
    "Category",
]
TIME_MARKER_PARAMETERS = ["AppointmentId", "TimeMarker"]

SCHEDULER_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class InvalidProcedureError(ValueError):
    """Raised when a batch cannot be sent to the Scheduler API as-is"""

    pass


def format_date_for_scheduler(value: Optional[str], target_zone: Optional[tzinfo] = None) -> Optional[str]:
    """
    Convert an ISO 8601 string to the ``YYYY-MM-DD HH:MM:SS`` form Dime.Scheduler expects.

    The wall-clock fields of the parsed value are used as-is. Only when a
    ``target_zone`` is given and the input carries an offset is the instant
    converted to that zone first.

    Returns:
        The formatted date, or None when the input is empty or unparseable
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        logger.warning(f"⚠️ Failed to format date {value!r}: {e}")
        return None

    if target_zone is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone(target_zone)

    return parsed.strftime(SCHEDULER_DATE_FORMAT)


def validate_batch(procedures: Sequence[ProcedureEnvelope]) -> list[ProcedureEnvelope]:
    """Reject empty batches and envelopes whose parameter arrays are misaligned"""
    if not procedures:
        raise InvalidProcedureError("Procedures array is required and must not be empty")

    for procedure in procedures:
        if not procedure.StoredProcedureName:
            raise InvalidProcedureError("StoredProcedureName is required")
        if len(procedure.ParameterNames) != len(procedure.ParameterValues):
            raise InvalidProcedureError(
                f"{procedure.StoredProcedureName}: ParameterNames and ParameterValues arrays must have the same length"
            )
    return list(procedures)


def build_job_procedure(job: JobCreate) -> ProcedureEnvelope:
    return ProcedureEnvelope(
        StoredProcedureName=UPSERT_JOB,
        ParameterNames=list(JOB_PARAMETERS),
        ParameterValues=[
            job.sourceApp,
            job.sourceType,
            job.jobNo,
            job.shortDescription,
            job.freeDecimal4 or "",
        ],
    )


def build_task_procedure(task: TaskCreate) -> ProcedureEnvelope:
    return ProcedureEnvelope(
        StoredProcedureName=UPSERT_TASK,
        ParameterNames=list(TASK_PARAMETERS),
        ParameterValues=[
            task.sourceApp,
            task.sourceType,
            task.jobNo,
            task.taskNo,
            task.shortDescription,
            task.description,
            True if task.useFixPlanningQty is None else task.useFixPlanningQty,
        ],
    )


def build_job_with_task_procedures(job: JobCreate, task: TaskForJob) -> list[ProcedureEnvelope]:
    """Job first, so the task upsert can reference it within the same batch"""
    task_request = TaskCreate(
        sourceApp=job.sourceApp,
        sourceType=job.sourceType,
        jobNo=job.jobNo,
        taskNo=task.taskNo,
        shortDescription=task.taskShortDescription,
        description=task.taskDescription,
        useFixPlanningQty=task.useFixPlanningQty,
    )
    return [build_job_procedure(job), build_task_procedure(task_request)]


def build_appointment_procedure(
    appointment: AppointmentUpsert, target_zone: Optional[tzinfo] = None
) -> ProcedureEnvelope:
    return ProcedureEnvelope(
        StoredProcedureName=UPSERT_APPOINTMENT,
        ParameterNames=list(APPOINTMENT_PARAMETERS),
        ParameterValues=[
            appointment.sourceApp,
            appointment.sourceType,
            appointment.jobNo,
            appointment.taskNo,
            appointment.subject or "",
            format_date_for_scheduler(appointment.start, target_zone) or "",
            format_date_for_scheduler(appointment.end, target_zone) or "",
            appointment.resourceNo or "",
            appointment.category or "",
        ],
    )


def build_time_marker_procedure(update: AppointmentTimeMarkerUpdate) -> ProcedureEnvelope:
    return ProcedureEnvelope(
        StoredProcedureName=UPDATE_APPOINTMENT_TIME_MARKER,
        ParameterNames=list(TIME_MARKER_PARAMETERS),
        ParameterValues=[str(update.appointmentId), update.timeMarker],
    )


def build_category_body(update: AppointmentCategoryUpdate) -> dict:
    """Body for ``POST {baseUrl}/appointmentCategory``; absent identifiers are sent as null"""
    return {
        "SourceApp": update.sourceApp or None,
        "SourceType": update.sourceType or None,
        "AppointmentNo": update.appointmentNo or None,
        "AppointmentId": update.appointmentId or None,
        "Category": update.category,
        "AppointmentGuid": update.appointmentGuid or None,
        "SentFromBackOffice": True if update.sentFromBackOffice is None else update.sentFromBackOffice,
    }


def build_query_params(query: AppointmentQuery) -> list[tuple[str, str]]:
    """Query string for ``GET {baseUrl}/appointment``; ``resources`` repeats once per value"""
    params = [("startDate", query.startDate), ("endDate", query.endDate)]
    for resource in query.resources or []:
        params.append(("resources", resource))
    return params
