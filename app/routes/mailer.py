"""
Mailer Routes - Generic email sending and Dime.Scheduler appointment notifications
"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .. import config
from ..email_service import EmailService, get_email_service, render_email
from ..errors import BadRequestError
from ..schemas import EmailRequest, EmailResult, MailerRequest, TemplateData
from ..shared.validators import json_body, parse_model

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Mailer"])

DUTCH_WEEKDAYS = ["maandag", "dinsdag", "woensdag", "donderdag", "vrijdag", "zaterdag", "zondag"]
DUTCH_MONTHS = [
    "januari",
    "februari",
    "maart",
    "april",
    "mei",
    "juni",
    "juli",
    "augustus",
    "september",
    "oktober",
    "november",
    "december",
]


def is_scheduler_appointment(body: dict) -> bool:
    """Dime.Scheduler posts appointments with PascalCase fields and a numeric Id"""
    appointment_id = body.get("Id")
    return (
        isinstance(appointment_id, (int, float))
        and not isinstance(appointment_id, bool)
        and isinstance(body.get("AppointmentNo"), str)
        and isinstance(body.get("StartDate"), str)
        and isinstance(body.get("EndDate"), str)
        and isinstance(body.get("Subject"), str)
        and "Task" in body
    )


def format_dutch_date(value: Optional[str]) -> str:
    """Render an ISO date as e.g. ``maandag 1 september 2025 om 10:30``"""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"⚠️ Could not parse appointment date {value!r}")
        return value
    return (
        f"{DUTCH_WEEKDAYS[parsed.weekday()]} {parsed.day} {DUTCH_MONTHS[parsed.month - 1]} "
        f"{parsed.year} om {parsed:%H:%M}"
    )


def determine_priority(importance: Any) -> str:
    try:
        level = float(importance or 0)
    except (TypeError, ValueError):
        level = 0
    if level >= 8:
        return "Hoog"
    if level >= 4:
        return "Gemiddeld"
    return "Laag"


def _nested(record: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(record, dict):
            return None
        record = record.get(key)
    return record


def _contact_field(appointment: dict, field: str) -> Optional[str]:
    """Appointment first, then its task, then the task's job"""
    return (
        appointment.get(field)
        or _nested(appointment, "Task", field)
        or _nested(appointment, "Task", "Job", field)
    )


def appointment_template_data(appointment: dict) -> TemplateData:
    return TemplateData(
        subject=appointment.get("Subject"),
        message="U heeft een nieuwe afspraak in Dime.Scheduler. Bekijk de details hieronder.",
        companyName="Dime.Scheduler",
        logoUrl=config.LOGO_URL,
        primaryColor="#0080a6",
        jobDescription=_nested(appointment, "Task", "Job", "Description"),
        taskDescription=_nested(appointment, "Task", "Description"),
        body=appointment.get("Body"),
        taskTitle=appointment.get("Subject"),
        startDate=format_dutch_date(appointment.get("StartDate")),
        endDate=format_dutch_date(appointment.get("EndDate")),
        priority=determine_priority(appointment.get("Importance")),
        assignedBy=appointment.get("CreatedUser") or "Systeem",
        taskId=appointment.get("AppointmentNo"),
        projectName=_nested(appointment, "Task", "Job", "JobNo"),
        contactAddress=_contact_field(appointment, "ContactAddress"),
        contactTelephone=_contact_field(appointment, "ContactTelephone"),
        contactEmail=_contact_field(appointment, "ContactEmail"),
    )


def _failure(message: str, result: EmailResult) -> JSONResponse:
    return JSONResponse(
        status_code=500, content={"success": False, "message": message, "error": result.error}
    )


async def send_appointment_notification(appointment: dict, email_service: EmailService):
    logger.info(
        f"📅 Processing Dime.Scheduler appointment {appointment.get('AppointmentNo')} "
        f"(ID: {appointment.get('Id')}, category: {_nested(appointment, 'Category', 'Name')})"
    )

    recipient = config.APPOINTMENT_RECIPIENT_EMAIL
    if not recipient:
        raise BadRequestError(
            "No recipient email configured. Set APPOINTMENT_RECIPIENT_EMAIL or "
            "DEFAULT_RECIPIENT_EMAIL environment variable."
        )

    html, text = render_email(appointment_template_data(appointment))
    result = await email_service.send_email(
        EmailRequest(to=recipient, subject=appointment["Subject"], html=html, text=text)
    )
    if not result.success:
        return _failure("Failed to send appointment notification", result)

    return {
        "success": True,
        "message": "Appointment notification sent successfully",
        "messageId": result.messageId,
        "appointment": {
            "id": appointment.get("Id"),
            "appointmentNo": appointment.get("AppointmentNo"),
            "subject": appointment.get("Subject"),
        },
    }


@router.post("/mailer")
async def send_email(
    body: dict = Depends(json_body),
    email_service: EmailService = Depends(get_email_service),
):
    """Send an email, or an appointment notification when Dime.Scheduler posts an appointment"""
    if is_scheduler_appointment(body):
        logger.info("Detected Dime.Scheduler appointment notification")
        return await send_appointment_notification(body, email_service)

    request = parse_model(MailerRequest, body, "Invalid email request")
    if not request.to:
        raise BadRequestError("Recipient email address (to) is required")
    if not request.subject:
        raise BadRequestError("Email subject is required")

    html, text = request.html, request.text
    if request.useTemplate or (not text and not html):
        template_fields = request.model_dump(
            include=set(TemplateData.model_fields) - {"message", "companyName"}
        )
        html, text = render_email(
            TemplateData(
                **template_fields,
                message=request.text or request.message,
                companyName=request.companyName or "Dime.Scheduler",
            )
        )

    logger.info(f"📧 Email request received: to={request.to} subject={request.subject!r}")
    result = await email_service.send_email(
        EmailRequest(
            to=request.to,
            subject=request.subject,
            from_address=request.from_address or email_service.default_sender,
            text=text,
            html=html,
            cc=request.cc,
            bcc=request.bcc,
            replyTo=request.replyTo,
        )
    )
    if not result.success:
        return _failure(result.message, result)

    return {"success": True, "message": result.message, "messageId": result.messageId}
