from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends

from ..checkin import CheckInReconciler
from ..deps import get_services
from ..errors import DependencyError, InvalidRequestError
from ..schemas import CheckinRequest, MessageResponse
from ..services import Services


logger = logging.getLogger(__name__)

router = APIRouter(tags=["checkin"])


def today_in(timezone: str) -> date:
    return datetime.now(ZoneInfo(timezone)).date()


@router.post("/checkin", response_model=MessageResponse)
def checkin(payload: Optional[CheckinRequest] = None, services: Services = Depends(get_services)):
    email = (payload.email or "").strip() if payload else ""
    token = payload.token if payload else None
    if not email or not token:
        raise InvalidRequestError()

    settings = services.settings
    try:
        store = services.attendance_store(token)
        reconciler = CheckInReconciler(store, lock=services.checkin_lock(), marker=settings.checkin_marker)
        result = reconciler.check_in(email, today_in(settings.timezone))
    except DependencyError as exc:
        raise DependencyError() from exc
    return {"message": result.name}
