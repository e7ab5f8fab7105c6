from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from certsvc.api.dependencies import get_services, require_user
from certsvc.core.errors import NotFound
from certsvc.models.certificate import Certificate
from certsvc.models.principal import Principal
from certsvc.services.container import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class CertificateOut(BaseModel):
    id: str
    user_id: str
    category: str
    issued_at: int
    updated_at: int | None
    is_outdated: bool
    completed_course_ids: list[str]


def _to_out(cert: Certificate) -> CertificateOut:
    return CertificateOut(
        id=cert.id,
        user_id=cert.user_id,
        category=cert.category,
        issued_at=cert.issued_at,
        updated_at=cert.updated_at,
        is_outdated=cert.is_outdated,
        completed_course_ids=sorted(cert.completed_course_ids),
    )


@router.get("", response_model=list[CertificateOut])
async def list_certificates(
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> list[CertificateOut]:
    certs = await services.certificates.list_certificates(principal.user_id)
    return [_to_out(c) for c in certs]


@router.get("/{category}", response_model=CertificateOut)
async def get_certificate(
    category: str,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> CertificateOut:
    cert = await services.certificates.get_certificate(principal.user_id, category)
    if cert is None:
        raise NotFound(f"no {category} certificate for this user")
    return _to_out(cert)


@router.post("/{category}", response_model=CertificateOut)
async def issue_or_refresh(
    category: str,
    principal: Annotated[Principal, Depends(require_user)],
    services: Annotated[Services, Depends(get_services)],
) -> CertificateOut:
    """Issue the category certificate, or refresh it against the current course set.

    409 while any course or writing in the category is unfinished.
    """
    cert = await services.certificates.issue_or_refresh(principal.user_id, category)
    return _to_out(cert)
