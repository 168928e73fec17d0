from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from app import crud
from app.database import get_db
from app.errors import NotFoundError
from app.notifications import publish_event
from app.schemas import Identity, VehicleCreate, VehicleRead, VehicleUpdate
from app.security import ADMIN_ROLES, STAFF_ROLES, require_roles

router = APIRouter()


@router.post("", response_model=VehicleRead, status_code=HTTP_201_CREATED)
async def create_vehicle(
    data: VehicleCreate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_vehicle(db, data.model_dump())


@router.get("", response_model=List[VehicleRead])
async def list_vehicles(
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_vehicles(db)


@router.get("/search", response_model=List[VehicleRead])
async def search_vehicles(
    term: str = Query(min_length=1),
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Find vehicles whose plate or model contains ``term``."""
    vehicles = await crud.search_vehicles(db, term)
    if not vehicles:
        publish_event("vehicles/search", {"term": term, "error": "Vehicle not found"})
        raise NotFoundError(f"No vehicle matches '{term}'")

    results = [VehicleRead.model_validate(v) for v in vehicles]
    publish_event("vehicles/search", [r.model_dump(mode="json") for r in results])
    return results


@router.get("/{vehicle_id}", response_model=VehicleRead)
async def get_vehicle(
    vehicle_id: int,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_vehicle(db, vehicle_id)


@router.put("/{vehicle_id}", response_model=VehicleRead)
async def update_vehicle(
    vehicle_id: int,
    data: VehicleUpdate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.update_vehicle(db, vehicle_id, data.model_dump(exclude_unset=True))


@router.delete("/{vehicle_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_vehicle(db, vehicle_id)
