"""Scheduler router - FastAPI endpoints proxying to the Dime.Scheduler API

Every route is served under both ``/dime`` and ``/dimescheduler``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ... import config
from ...errors import BadRequestError, NotInitializedError
from ...shared.validators import json_body, missing_fields, normalize_list_param, parse_model
from .client import SchedulerClient
from .procedures import InvalidProcedureError
from .schemas import (
    AppointmentCategoryUpdate,
    AppointmentQuery,
    AppointmentTimeMarkerUpdate,
    AppointmentUpsert,
    BulkUpdateReport,
    JobCreate,
    ProcedureBatch,
    ProcedureEnvelope,
    SchedulerResponse,
    TaskCreate,
    TaskForJob,
)
from .workflow import set_category_for_matching, set_time_marker_for_matching

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dime.Scheduler"])

APPOINTMENT_REQUIRED_FIELDS = ["sourceApp", "sourceType", "jobNo", "taskNo"]


def get_optional_scheduler_client(request: Request) -> Optional[SchedulerClient]:
    """The configured client, or None when Dime.Scheduler is disabled"""
    return getattr(request.app.state, "scheduler_client", None)


def get_scheduler_client(
    client: Optional[SchedulerClient] = Depends(get_optional_scheduler_client),
) -> SchedulerClient:
    """Dependency injection for SchedulerClient; 503 when it is not configured"""
    if client is None:
        raise NotInitializedError(
            "Dime.Scheduler client not initialized. Please set DIMESCHEDULER_BASE_URL "
            "and DIMESCHEDULER_API_KEY environment variables."
        )
    return client


def relay(outcome: SchedulerResponse) -> JSONResponse:
    """Send a Scheduler API outcome back to the caller: 200 on success, 500 otherwise"""
    return JSONResponse(status_code=200 if outcome.success else 500, content=outcome.to_payload())


def report_response(report: BulkUpdateReport) -> dict:
    return {"success": True, "message": report.message, "data": report.to_data()}


def parse_procedures(body: dict) -> list[ProcedureEnvelope]:
    procedures = body.get("procedures")
    if not isinstance(procedures, list) or not procedures:
        raise BadRequestError("Procedures array is required and must not be empty")

    for procedure in procedures:
        if (
            not isinstance(procedure, dict)
            or not procedure.get("StoredProcedureName")
            or procedure.get("ParameterNames") is None
            or procedure.get("ParameterValues") is None
        ):
            raise BadRequestError(
                "Each procedure must have StoredProcedureName, ParameterNames, and ParameterValues"
            )
        names, values = procedure["ParameterNames"], procedure["ParameterValues"]
        if isinstance(names, list) and isinstance(values, list) and len(names) != len(values):
            raise BadRequestError("ParameterNames and ParameterValues arrays must have the same length")

    batch = parse_model(
        ProcedureBatch,
        body,
        "ParameterNames must be strings and ParameterValues must be strings, numbers or booleans",
    )
    return batch.procedures


def appointment_query(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    resources: Optional[list[str]] = Query(None),
) -> AppointmentQuery:
    """Query parameters shared by the appointment query and bulk update routes"""
    if not startDate or not endDate:
        raise BadRequestError("startDate and endDate query parameters are required")
    return AppointmentQuery(
        startDate=startDate, endDate=endDate, resources=normalize_list_param(resources)
    )


def time_marker_param(timeMarker: Optional[str] = Query(None)) -> str:
    if not timeMarker:
        raise BadRequestError("timeMarker query parameter is required")
    return timeMarker


# ============================================================================
# PROCEDURES, JOBS AND TASKS
# ============================================================================


@router.post("/dime/import")
@router.post("/dimescheduler/import")
async def execute_procedures(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    """Execute an arbitrary batch of stored procedures"""
    procedures = parse_procedures(body)
    try:
        outcome = await client.execute_procedures(procedures)
    except InvalidProcedureError as e:
        raise BadRequestError(str(e)) from e
    return relay(outcome)


@router.post("/dime/job")
@router.post("/dimescheduler/job")
async def create_job(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    job = parse_model(JobCreate, body, "sourceApp, sourceType, jobNo, and shortDescription are required")
    return relay(await client.upsert_job(job))


@router.post("/dime/task")
@router.post("/dimescheduler/task")
async def create_task(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    task = parse_model(
        TaskCreate,
        body,
        "sourceApp, sourceType, jobNo, taskNo, shortDescription, and description are required",
    )
    return relay(await client.upsert_task(task))


@router.post("/dime/job-with-task")
@router.post("/dimescheduler/job-with-task")
async def create_job_with_task(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    """Upsert a job and one of its tasks in a single batch, job first"""
    job = parse_model(
        JobCreate,
        body.get("jobData"),
        "jobData must include sourceApp, sourceType, jobNo, and shortDescription",
    )
    task = parse_model(
        TaskForJob,
        body.get("taskData"),
        "taskData must include taskNo, taskShortDescription, and taskDescription",
    )
    return relay(await client.upsert_job_with_task(job, task))


@router.get("/dime/test")
@router.get("/dimescheduler/test")
async def test_connection(client: SchedulerClient = Depends(get_scheduler_client)):
    return relay(await client.test_connection())


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.post("/dime/upsert-appointment")
@router.post("/dimescheduler/upsert-appointment")
async def upsert_appointment(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    missing = missing_fields(body, APPOINTMENT_REQUIRED_FIELDS)
    if missing:
        logger.warning(f"⚠️ Missing required fields for upsert appointment: {missing}")
        raise BadRequestError(f"Missing required fields: {', '.join(missing)}", error=missing)

    appointment = parse_model(AppointmentUpsert, body, "Invalid appointment data")
    return relay(await client.upsert_appointment(appointment))


@router.post("/dime/appointment-category")
@router.post("/dimescheduler/appointment-category")
async def set_appointment_category(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    if not body.get("category"):
        raise BadRequestError("category is required")

    update = parse_model(
        AppointmentCategoryUpdate,
        body,
        "At least one appointment identifier (appointmentId, appointmentNo, or appointmentGuid) is required",
    )
    return relay(await client.set_appointment_category(update))


@router.post("/dime/appointment-timemarker")
@router.post("/dimescheduler/appointment-timemarker")
async def set_appointment_time_marker(
    body: dict = Depends(json_body),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    update = parse_model(AppointmentTimeMarkerUpdate, body, "appointmentId and timeMarker are required")
    return relay(await client.set_appointment_time_marker(update))


@router.get("/dime/appointments")
@router.get("/dimescheduler/appointments")
async def get_appointments(
    query: AppointmentQuery = Depends(appointment_query),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    return relay(await client.query_appointments(query))


@router.post("/dime/set-category-for-drager-appointments")
@router.post("/dimescheduler/set-category-for-drager-appointments")
async def set_category_for_drager_appointments(
    query: AppointmentQuery = Depends(appointment_query),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    """Set the configured category on every appointment whose job number carries the Drager prefix"""
    report = await set_category_for_matching(
        client, query, config.DRAGER_JOB_PREFIX, config.DRAGER_CATEGORY
    )
    return report_response(report)


@router.post("/dime/set-timemarker-for-drager-appointments")
@router.post("/dimescheduler/set-timemarker-for-drager-appointments")
async def set_time_marker_for_drager_appointments(
    query: AppointmentQuery = Depends(appointment_query),
    time_marker: str = Depends(time_marker_param),
    client: SchedulerClient = Depends(get_scheduler_client),
):
    """Set ``timeMarker`` on every appointment whose job number carries the Drager prefix"""
    report = await set_time_marker_for_matching(client, query, config.DRAGER_JOB_PREFIX, time_marker)
    return report_response(report)
