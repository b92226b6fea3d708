"""
Dime.Scheduler API client

Wraps the stored procedure import endpoint and the handful of REST endpoints
used by this service. Every call returns a ``SchedulerResponse``; transport
failures are converted, never raised.
"""

import json
import logging
from collections.abc import Callable, Sequence
from datetime import tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from ... import config
from .procedures import (
    build_appointment_procedure,
    build_category_body,
    build_job_procedure,
    build_job_with_task_procedures,
    build_query_params,
    build_task_procedure,
    build_time_marker_procedure,
    validate_batch,
)
from .schemas import (
    AppointmentCategoryUpdate,
    AppointmentQuery,
    AppointmentTimeMarkerUpdate,
    AppointmentUpsert,
    FailureKind,
    JobCreate,
    ProcedureEnvelope,
    SchedulerResponse,
    TaskCreate,
    TaskForJob,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000

# Substrings that mark a plain-text import response as failed
TEXT_ERROR_MARKERS = ("error", "exception", "failed")


def _is_set(value: Any) -> bool:
    """Only null, false, zero and the empty string leave a marker unset"""
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


def find_embedded_error(body: str) -> Any:
    """
    Return the error marker in an import response body, or None.

    Dime.Scheduler can answer 200 with a failure described in the body. JSON
    bodies fail on an ``error``/``errors`` field that is set (empty lists and objects
    count) or a ``message`` mentioning "error"; plain-text bodies fail when they
    mention error, exception or failed.
    """
    try:
        parsed = json.loads(body)
    except ValueError:
        lowered = body.lower()
        if any(marker in lowered for marker in TEXT_ERROR_MARKERS):
            return body
        return None

    if not isinstance(parsed, dict):
        return None

    for key in ("error", "errors"):
        if _is_set(parsed.get(key)):
            return parsed[key]

    message = parsed.get("message")
    if isinstance(message, str) and "error" in message.lower():
        return message
    return None


def looks_like_embedded_error(body: str) -> bool:
    return find_embedded_error(body) is not None


def _parse_json_or_text(body: str) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return body


class SchedulerClient:
    """Client for the Dime.Scheduler API"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        default_headers: Optional[dict[str, str]] = None,
        target_zone: Optional[tzinfo] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout_ms / 1000
        self.target_zone = target_zone
        self._transport = transport
        self.default_headers = {
            "content-type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
            "x-api-key": api_key,
            **(default_headers or {}),
        }

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _call(
        self,
        method: str,
        path: str,
        on_success: Callable[[httpx.Response], SchedulerResponse],
        headers: Optional[dict[str, str]] = None,
        **kwargs,
    ) -> SchedulerResponse:
        url = f"{self.base_url}{path}"
        try:
            # One client per call; leaving the block releases the connection and timeout
            async with httpx.AsyncClient(
                headers=headers if headers is not None else self.default_headers,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"❌ Dime.Scheduler request to {url} timed out after {self.timeout}s: {e!r}")
            return SchedulerResponse(
                success=False,
                message="Request timeout",
                error="Request exceeded timeout limit",
                failure=FailureKind.TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Dime.Scheduler request to {url} failed: {e!r}")
            return SchedulerResponse(
                success=False,
                message="Request failed",
                error=str(e) or "Unknown error occurred",
                failure=FailureKind.TRANSPORT_ERROR,
            )

        if not response.is_success:
            error_text = response.text
            logger.error(
                f"❌ Dime.Scheduler API error: {response.status_code} {response.reason_phrase} "
                f"from {url}: {error_text}"
            )
            return SchedulerResponse(
                success=False,
                message=f"API request failed with status {response.status_code}: "
                f"{error_text or response.reason_phrase}",
                error=error_text,
                status=response.status_code,
                statusText=response.reason_phrase,
                failure=FailureKind.HTTP_ERROR,
            )

        logger.debug(f"Dime.Scheduler API response from {url}: {response.text}")
        return on_success(response)

    async def execute_procedures(self, procedures: Sequence[ProcedureEnvelope]) -> SchedulerResponse:
        """
        Execute stored procedures in one ``POST {baseUrl}/import`` call.

        Raises:
            InvalidProcedureError: If the batch is empty or an envelope is misaligned.
                Nothing is sent in that case.
        """
        batch = validate_batch(procedures)
        logger.info(
            f"📤 Dime.Scheduler import: {len(batch)} procedure(s) "
            f"{[p.StoredProcedureName for p in batch]}"
        )

        def on_success(response: httpx.Response) -> SchedulerResponse:
            result = response.text
            error = find_embedded_error(result)
            if error is not None:
                logger.error(f"❌ Dime.Scheduler returned an error in the response body: {error}")
                return SchedulerResponse(
                    success=False,
                    message="Procedure execution failed",
                    data=result,
                    error=error,
                    failure=FailureKind.BODY_ERROR,
                )
            return SchedulerResponse(
                success=True, message="Procedures executed successfully", data=result
            )

        return await self._call(
            "POST", "/import", on_success, json=[p.model_dump() for p in batch]
        )

    async def get(
        self,
        path: str,
        params: Optional[list[tuple[str, str]]] = None,
        success_message: str = "Request successful",
    ) -> SchedulerResponse:
        """GET a REST endpoint; the body is returned parsed when it is JSON"""
        logger.info(f"📥 Dime.Scheduler GET {path} {params or ''}")
        return await self._call(
            "GET", path, self._direct_success(success_message), params=params
        )

    async def post(
        self, path: str, body: dict, success_message: str = "Request successful"
    ) -> SchedulerResponse:
        """POST a JSON body to a REST endpoint; no body error sniffing is applied"""
        logger.info(f"📤 Dime.Scheduler POST {path}")
        return await self._call("POST", path, self._direct_success(success_message), json=body)

    @staticmethod
    def _direct_success(message: str) -> Callable[[httpx.Response], SchedulerResponse]:
        def on_success(response: httpx.Response) -> SchedulerResponse:
            return SchedulerResponse(
                success=True, message=message, data=_parse_json_or_text(response.text)
            )

        return on_success

    async def test_connection(self) -> SchedulerResponse:
        """Probe ``GET {baseUrl}/health`` with only the API key header"""

        def on_success(response: httpx.Response) -> SchedulerResponse:
            return SchedulerResponse(success=True, message="Connection successful", data=response.text)

        return await self._call("GET", "/health", on_success, headers={"x-api-key": self.api_key})

    # ------------------------------------------------------------------
    # Jobs and tasks
    # ------------------------------------------------------------------

    async def upsert_job(self, job: JobCreate) -> SchedulerResponse:
        return await self.execute_procedures([build_job_procedure(job)])

    async def upsert_task(self, task: TaskCreate) -> SchedulerResponse:
        return await self.execute_procedures([build_task_procedure(task)])

    async def upsert_job_with_task(self, job: JobCreate, task: TaskForJob) -> SchedulerResponse:
        return await self.execute_procedures(build_job_with_task_procedures(job, task))

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    async def upsert_appointment(self, appointment: AppointmentUpsert) -> SchedulerResponse:
        procedure = build_appointment_procedure(appointment, self.target_zone)
        logger.info(
            f"🗓️ Upserting appointment for job {appointment.jobNo} task {appointment.taskNo}: "
            f"{procedure.ParameterValues}"
        )
        return await self.execute_procedures([procedure])

    async def set_appointment_time_marker(self, update: AppointmentTimeMarkerUpdate) -> SchedulerResponse:
        logger.info(f"🏷️ Setting time marker {update.timeMarker} on appointment {update.appointmentId}")
        return await self.execute_procedures([build_time_marker_procedure(update)])

    async def set_appointment_category(self, update: AppointmentCategoryUpdate) -> SchedulerResponse:
        body = build_category_body(update)
        logger.info(f"🏷️ Setting appointment category: {body}")
        return await self.post(
            "/appointmentCategory", body, success_message="Appointment category updated successfully"
        )

    async def query_appointments(self, query: AppointmentQuery) -> SchedulerResponse:
        return await self.get("/appointment", params=build_query_params(query))


def resolve_target_zone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.error(f"❌ Unknown DIMESCHEDULER_TIMEZONE {name!r}, dates are sent unconverted")
        return None


def build_scheduler_client() -> Optional[SchedulerClient]:
    """Build the client from configuration, or None when credentials are missing"""
    if not (config.DIMESCHEDULER_BASE_URL and config.DIMESCHEDULER_API_KEY):
        logger.warning(
            "⚠️ DIMESCHEDULER_BASE_URL or DIMESCHEDULER_API_KEY not found. "
            "Dime.Scheduler functionality will be disabled."
        )
        return None

    client = SchedulerClient(
        base_url=config.DIMESCHEDULER_BASE_URL,
        api_key=config.DIMESCHEDULER_API_KEY,
        timeout_ms=config.DIMESCHEDULER_TIMEOUT_MS,
        target_zone=resolve_target_zone(config.DIMESCHEDULER_TIMEZONE),
    )
    logger.info(f"✅ Dime.Scheduler client initialized for {client.base_url}")
    return client
