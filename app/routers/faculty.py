from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from app import crud
from app.database import get_db
from app.schemas import FacultyCreate, FacultyRead, FacultyUpdate, Identity
from app.security import ADMIN_ROLES, STAFF_ROLES, require_roles

router = APIRouter()


@router.post("", response_model=FacultyRead, status_code=HTTP_201_CREATED)
async def create_faculty(
    data: FacultyCreate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_faculty(db, data.model_dump())


@router.get("", response_model=List[FacultyRead])
async def list_faculty(
    active: Optional[bool] = None,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_faculty(db, active=active)


@router.get("/{faculty_id}", response_model=FacultyRead)
async def get_faculty(
    faculty_id: int,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_faculty(db, faculty_id)


@router.put("/{faculty_id}", response_model=FacultyRead)
async def update_faculty(
    faculty_id: int,
    data: FacultyUpdate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.update_faculty(db, faculty_id, data.model_dump(exclude_unset=True))


@router.delete("/{faculty_id}", response_model=FacultyRead)
async def delete_faculty(
    faculty_id: int,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.deactivate_faculty(db, faculty_id)
