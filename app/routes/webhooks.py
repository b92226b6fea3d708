"""
Webhook Routes
Receives webhook notifications, records them in the in-memory store and,
for absences, creates the matching appointment in Dime.Scheduler.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..domain.scheduler.client import SchedulerClient
from ..domain.scheduler.router import get_optional_scheduler_client
from ..domain.scheduler.schemas import AppointmentUpsert
from ..errors import BadRequestError
from ..shared.validators import json_body, missing_fields, optional_json_body
from ..store import WebhookStore, get_webhook_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["Webhooks"])

ABSENCE_REQUIRED_FIELDS = ["resourceNo", "jobNo", "taskNo", "startDate", "endDate", "subject"]


def record(store: WebhookStore, webhook_type: str, body: dict, message: str) -> dict:
    logger.info(f"📥 {webhook_type} webhook received: {body}")
    store.add(webhook_type, body)
    return {"success": True, "message": message, "data": body}


@router.post("")
async def receive_webhook(
    body: dict = Depends(optional_json_body),
    store: WebhookStore = Depends(get_webhook_store),
):
    """Generic webhook ingestion; an empty body is recorded as {}"""
    return record(store, "webhook", body, "Webhook data received successfully")


@router.get("")
async def list_webhooks(store: WebhookStore = Depends(get_webhook_store)):
    entries = store.entries()
    return {
        "success": True,
        "message": f"Retrieved {len(entries)} webhook entries",
        "data": entries,
    }


@router.post("/addWarningToAppointment")
async def add_warning_to_appointment(
    body: dict = Depends(json_body),
    store: WebhookStore = Depends(get_webhook_store),
):
    return record(
        store, "addWarningToAppointment", body, "Warning added to appointment successfully"
    )


@router.post("/updateCategoryOfAppointment")
async def update_category_of_appointment(
    body: dict = Depends(json_body),
    store: WebhookStore = Depends(get_webhook_store),
):
    return record(
        store, "updateCategoryOfAppointment", body, "Appointment category updated successfully"
    )


def absence_appointment(body: dict) -> AppointmentUpsert:
    """Map an absence notification onto an appointment upsert"""
    return AppointmentUpsert(
        sourceApp=body.get("sourceApp") or "DEFAULT_APP",
        sourceType=body.get("sourceType") or "ABSENCE",
        jobNo=str(body["jobNo"]),
        taskNo=str(body["taskNo"]),
        resourceNo=str(body["resourceNo"]),
        start=body["startDate"],
        end=body["endDate"],
        subject=body["subject"],
        body=body.get("description") or body["subject"],
        category=body.get("category") or "ABSENCE",
        isManualAppointment=True,
        sentFromBackOffice=True,
    )


@router.post("/createAbsence")
async def create_absence(
    body: dict = Depends(json_body),
    store: WebhookStore = Depends(get_webhook_store),
    client: Optional[SchedulerClient] = Depends(get_optional_scheduler_client),
):
    """
    Record an absence and add it to Dime.Scheduler as an appointment.

    The request succeeds once the absence is recorded; the scheduler outcome is
    reported separately under ``dimescheduler``.
    """
    if missing_fields(body, ABSENCE_REQUIRED_FIELDS):
        raise BadRequestError(
            "resourceNo, jobNo, taskNo, startDate, endDate, and subject are required"
        )

    logger.info(f"📥 createAbsence webhook received: {body}")
    store.add("createAbsence", body)

    scheduler_success = False
    scheduler_error = None
    if client is None:
        logger.warning("⚠️ Dime.Scheduler client not initialized, skipping appointment creation")
        scheduler_error = "Dime.Scheduler client not initialized"
    else:
        try:
            outcome = await client.upsert_appointment(absence_appointment(body))
            scheduler_success = outcome.success
            if not outcome.success:
                scheduler_error = outcome.error or outcome.message
        except Exception as e:
            logger.exception("❌ Error calling Dime.Scheduler upsert appointment")
            scheduler_error = str(e)

    if scheduler_success:
        logger.info("✅ Absence appointment created in Dime.Scheduler")
        message = "Absence created successfully and appointment added to Dime.Scheduler"
    else:
        logger.error(f"❌ Failed to create absence appointment in Dime.Scheduler: {scheduler_error}")
        message = "Absence data stored successfully, but Dime.Scheduler call failed"

    return {
        "success": True,
        "message": message,
        "data": body,
        "dimescheduler": {"success": scheduler_success, "error": scheduler_error},
    }
