"""Schema endpoints: serve form definitions in the wire format."""

from typing import Any

from fastapi import APIRouter, Depends

from formflow.store import SchemaStore

from formflow_server.dependencies import get_service, get_store
from formflow_server.service import ApplicationService

router = APIRouter(tags=["forms"])


@router.get("/forms/schema/active")
async def get_active_schema(
    service: ApplicationService = Depends(get_service),
) -> dict[str, Any]:
    """The schema new applications are created for."""
    return service.active_schema().to_wire()


@router.get("/forms")
async def list_schemas(store: SchemaStore = Depends(get_store)) -> list[dict[str, str]]:
    return [
        {"name": s.name, "version": s.version}
        for s in sorted(store.schemas.values(), key=lambda s: s.name)
    ]


@router.get("/forms/{name}")
async def get_schema(name: str, store: SchemaStore = Depends(get_store)) -> dict[str, Any]:
    """Raises 404 (via KeyError) for unknown schema names."""
    return store.get(name).to_wire()
