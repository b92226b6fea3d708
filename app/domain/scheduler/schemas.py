"""Scheduler domain schemas - Pydantic models for Dime.Scheduler requests and outcomes"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

RequiredStr = Annotated[str, Field(min_length=1)]
ParameterValue = Union[bool, int, float, str]
AppointmentId = Union[int, str]


# ============================================================================
# WIRE FORMAT
# ============================================================================


class ProcedureEnvelope(BaseModel):
    """One stored procedure invocation as accepted by ``POST {baseUrl}/import``"""

    StoredProcedureName: RequiredStr
    ParameterNames: list[str]
    ParameterValues: list[ParameterValue]

    @model_validator(mode="after")
    def check_parameter_alignment(self):
        if len(self.ParameterNames) != len(self.ParameterValues):
            raise ValueError("ParameterNames and ParameterValues arrays must have the same length")
        return self


class ProcedureBatch(BaseModel):
    """Body of ``POST /dime/import``"""

    procedures: list[ProcedureEnvelope] = Field(min_length=1)


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    HTTP_ERROR = "http_error"
    BODY_ERROR = "body_error"


class SchedulerResponse(BaseModel):
    """Outcome of a single outbound call to the Scheduler API"""

    success: bool
    message: str
    data: Any = None
    error: Any = None
    status: Optional[int] = None
    statusText: Optional[str] = None
    failure: Optional[FailureKind] = Field(default=None, exclude=True)

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


# ============================================================================
# DOMAIN REQUESTS
# ============================================================================


class JobCreate(BaseModel):
    sourceApp: RequiredStr
    sourceType: RequiredStr
    jobNo: RequiredStr
    shortDescription: RequiredStr
    freeDecimal4: Optional[Union[str, int, float]] = None


class TaskCreate(BaseModel):
    sourceApp: RequiredStr
    sourceType: RequiredStr
    jobNo: RequiredStr
    taskNo: RequiredStr
    shortDescription: RequiredStr
    description: RequiredStr
    useFixPlanningQty: Optional[bool] = None


class TaskForJob(BaseModel):
    """Task half of ``POST /dime/job-with-task``; job fields come from ``jobData``"""

    taskNo: RequiredStr
    taskShortDescription: RequiredStr
    taskDescription: RequiredStr
    useFixPlanningQty: Optional[bool] = None


class AppointmentUpsert(BaseModel):
    """
    Appointment upsert request.

    The full Dime.Scheduler field set is accepted, but only the fields mapped in
    ``build_appointment_procedure`` are sent to ``mboc_upsertAppointment``.
    """

    sourceApp: RequiredStr
    sourceType: RequiredStr
    jobNo: RequiredStr
    taskNo: RequiredStr
    appointmentNo: Optional[str] = None
    appointmentId: Optional[AppointmentId] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    category: Optional[str] = None
    timeMarker: Optional[str] = None
    importance: Optional[int] = None
    locked: Optional[bool] = None
    resourceNo: Optional[str] = None
    appointmentGuid: Optional[str] = None
    replaceResource: Optional[bool] = None
    sentFromBackOffice: Optional[bool] = None
    backofficeID: Optional[str] = None
    backofficeParentID: Optional[str] = None
    planningUOM: Optional[str] = None
    planningUOMConversion: Optional[float] = None
    planningQty: Optional[float] = None
    useFixPlanningQty: Optional[bool] = None
    roundToUOM: Optional[bool] = None
    isManualAppointment: Optional[bool] = None


class AppointmentCategoryUpdate(BaseModel):
    category: RequiredStr
    sourceApp: Optional[str] = None
    sourceType: Optional[str] = None
    appointmentId: Optional[AppointmentId] = None
    appointmentNo: Optional[AppointmentId] = None
    appointmentGuid: Optional[str] = None
    sentFromBackOffice: Optional[bool] = None

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.appointmentId or self.appointmentNo or self.appointmentGuid):
            raise ValueError(
                "At least one appointment identifier (appointmentId, appointmentNo, or appointmentGuid) is required"
            )
        return self


class AppointmentTimeMarkerUpdate(BaseModel):
    appointmentId: AppointmentId
    timeMarker: RequiredStr


class AppointmentQuery(BaseModel):
    startDate: RequiredStr
    endDate: RequiredStr
    resources: Optional[list[str]] = None


# ============================================================================
# BULK UPDATE REPORT
# ============================================================================


class UpdateResultItem(BaseModel):
    appointmentId: Any = None
    appointmentNo: Any = None
    status: Literal["success", "failed"]
    error: Any = None


class BulkUpdateReport(BaseModel):
    totalAppointments: int
    matchingAppointments: int
    successCount: int = 0
    failureCount: int = 0
    timeMarker: Optional[str] = None
    results: list[UpdateResultItem] = Field(default_factory=list)

    @property
    def message(self) -> str:
        if self.matchingAppointments == 0:
            return "No matching appointments found"
        summary = f"Updated {self.successCount} of {self.matchingAppointments} matching appointments"
        if self.timeMarker:
            return f"{summary} to time marker {self.timeMarker}"
        return summary

    def to_data(self) -> dict:
        if self.matchingAppointments == 0:
            return {
                "totalAppointments": self.totalAppointments,
                "matchingAppointments": 0,
                "updated": 0,
            }
        return self.model_dump(exclude_none=True)
