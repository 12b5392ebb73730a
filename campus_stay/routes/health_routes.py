from fastapi import APIRouter

from campus_stay.core.response import success_response
from campus_stay.email_notify.email_service import EmailService

router = APIRouter(tags=["System"])


@router.get("/health")
async def health_check():
    return success_response({"status": "ok"})


@router.get("/health/email")
async def email_health_check():
    return success_response(await EmailService().check_connection())
