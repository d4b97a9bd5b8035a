"""Session creation: opens a new application for a chat client."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from formflow_server.dependencies import get_db, get_service
from formflow_server.service import ApplicationService, SessionCreated

router = APIRouter(tags=["sessions"])


class CreateSessionRequest(BaseModel):
    """Body for POST /sessions."""
    platform: str = "web"


@router.post("/sessions", status_code=201)
async def create_session(
    body: CreateSessionRequest,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> SessionCreated:
    """Create a draft application.  Unknown platforms give 400."""
    return await service.create_session(db, platform=body.platform)
