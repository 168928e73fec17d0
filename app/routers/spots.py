from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from app import crud
from app.database import get_db
from app.models import SpotType
from app.schemas import Identity, SpotCreate, SpotRead, SpotUpdate
from app.security import ADMIN_ROLES, STAFF_ROLES, require_roles

router = APIRouter()


@router.post("", response_model=SpotRead, status_code=HTTP_201_CREATED)
async def create_spot(
    data: SpotCreate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_spot(db, data.model_dump())


@router.get("", response_model=List[SpotRead])
async def list_spots(
    type: Optional[SpotType] = None,
    occupied: Optional[bool] = None,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_spots(db, spot_type=type, occupied=occupied)


@router.get("/available", response_model=List[SpotRead])
async def list_available_spots(
    type: Optional[SpotType] = None,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_available_spots(db, spot_type=type)


@router.get("/{spot_id}", response_model=SpotRead)
async def get_spot(
    spot_id: int,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_spot(db, spot_id)


@router.put("/{spot_id}", response_model=SpotRead)
async def update_spot(
    spot_id: int,
    data: SpotUpdate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.update_spot(db, spot_id, data.model_dump(exclude_unset=True))


@router.delete("/{spot_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_spot(
    spot_id: int,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_spot(db, spot_id)
