"""Application endpoints: the backend contract client controllers speak.

  GET   /applications                 list, most recent first
  GET   /applications/{id}/public     answers and status
  PATCH /applications/{id}/public     replace the answer set (409 once submitted)
  POST  /applications/{id}/files      link an uploaded file to a file field
  POST  /applications/{id}/submit     final submission (409 on repeat)
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from formflow_db.models.enums import ApplicationStatus

from formflow_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from formflow_server.dependencies import get_db, get_service
from formflow_server.service import (
    ApplicationPublic,
    ApplicationService,
    ApplicationSummary,
)

router = APIRouter(tags=["applications"])


class LinkFileRequest(BaseModel):
    """Body for POST /applications/{id}/files."""
    file_id: str
    field_id: str
    filename: str = ""


@router.get("/applications")
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> list[ApplicationSummary]:
    return await service.list_applications(db, status=status, limit=limit, offset=offset)


@router.get("/applications/{application_id}/public")
async def get_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> ApplicationPublic:
    return await service.get_public(db, application_id)


@router.patch("/applications/{application_id}/public")
async def save_application(
    application_id: str,
    answers: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> ApplicationPublic:
    """Replace the stored answers with the request body."""
    return await service.replace_answers(db, application_id, answers)


@router.post("/applications/{application_id}/files", status_code=201)
async def link_file(
    application_id: str,
    body: LinkFileRequest,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> ApplicationPublic:
    return await service.link_file(
        db,
        application_id,
        file_id=body.file_id,
        field_id=body.field_id,
        filename=body.filename or body.file_id,
    )


@router.post("/applications/{application_id}/submit")
async def submit_application(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> ApplicationPublic:
    return await service.submit(db, application_id)
