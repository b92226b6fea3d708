from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from ..domain.scheduler.client import SchedulerClient
from ..domain.scheduler.router import get_optional_scheduler_client
from ..email_service import EmailService, get_email_service

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(
    email_service: EmailService = Depends(get_email_service),
    scheduler_client: Optional[SchedulerClient] = Depends(get_optional_scheduler_client),
):
    """Liveness probe; reports which outbound integrations are configured"""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "emailService": "initialized" if email_service.configured else "disabled",
        "dimeScheduler": "initialized" if scheduler_client is not None else "disabled",
    }
