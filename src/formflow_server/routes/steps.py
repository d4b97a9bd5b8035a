"""Step endpoints: the server walks the form on the client's behalf.

Each call rebuilds a ``FormSession`` from the application row, applies one
transition and stores the new position.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from formflow.models.presentation import StepView

from formflow_server.dependencies import get_db, get_service
from formflow_server.service import ApplicationService, StepResponse

router = APIRouter(tags=["steps"])


class SubmitStepRequest(BaseModel):
    """Body for POST /applications/{id}/step."""
    answers: dict[str, Any] = {}


@router.get("/applications/{application_id}/step")
async def get_current_step(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> StepView:
    return await service.get_step(db, application_id)


@router.post("/applications/{application_id}/step")
async def submit_step(
    application_id: str,
    body: SubmitStepRequest,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> StepResponse:
    """Apply answers to the current step.

    ``outcome.type`` is ``advanced`` or ``blocked``; malformed answers give
    422 with per-field messages.
    """
    return await service.submit_step(db, application_id, body.answers)


@router.post("/applications/{application_id}/back")
async def step_back(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> StepResponse:
    return await service.step_back(db, application_id)


@router.post("/applications/{application_id}/restart")
async def restart(
    application_id: str,
    db: AsyncSession = Depends(get_db),
    service: ApplicationService = Depends(get_service),
) -> StepView:
    return await service.restart(db, application_id)
