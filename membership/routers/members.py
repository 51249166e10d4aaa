from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..deps import get_db, get_services
from ..email_templates import first_name, render_welcome_email
from ..errors import DependencyError
from ..models import Member
from ..qr import make_qr_png, qr_object_key
from ..schemas import MemberCreate, MemberOut
from ..services import Services


logger = logging.getLogger(__name__)

router = APIRouter(tags=["members"])


class QRUploadFailed(DependencyError):
    payload_key = "error"
    default_message = "Failed to upload QR code"


class EmailSendFailed(DependencyError):
    default_message = "Could not send email"


class MemberSaveFailed(DependencyError):
    default_message = "Could not save new member"


@router.post("/members", response_model=MemberOut, status_code=201)
def members_create(
    payload: MemberCreate,
    services: Services = Depends(get_services),
    db: Session = Depends(get_db),
):
    settings = services.settings
    email = payload.email.strip()

    image = make_qr_png(email)
    key = qr_object_key(email)
    try:
        qr_url = services.qr_storage.upload(key, image)
    except DependencyError as exc:
        raise QRUploadFailed() from exc
    logger.info("Email: %s", email)
    logger.info("QR: %s", qr_url)

    html = render_welcome_email(first_name(payload.name), qr_url, subject=settings.email_subject)
    try:
        services.mailer.send(to=email, subject=settings.email_subject, html=html)
    except DependencyError as exc:
        raise EmailSendFailed() from exc

    member = Member(id=str(uuid.uuid4()), email=email, qr_url=qr_url, email_sent=True)
    try:
        db.add(member)
        db.commit()
        db.refresh(member)
    except SQLAlchemyError as exc:
        db.rollback()
        raise MemberSaveFailed() from exc

    try:
        services.mailer.add_list_member(settings.mailing_list, member.email)
    except DependencyError as exc:
        logger.warning("Failed to add %s to mailing list: %s", member.email, exc)

    return member
