from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from app import crud
from app.database import get_db
from app.schemas import Identity, StudentCreate, StudentRead, StudentUpdate
from app.security import ADMIN_ROLES, STAFF_ROLES, require_roles

router = APIRouter()


@router.post("", response_model=StudentRead, status_code=HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_student(db, data.model_dump())


@router.get("", response_model=List[StudentRead])
async def list_students(
    active: Optional[bool] = None,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_students(db, active=active)


@router.get("/{student_id}", response_model=StudentRead)
async def get_student(
    student_id: int,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_student(db, student_id)


@router.put("/{student_id}", response_model=StudentRead)
async def update_student(
    student_id: int,
    data: StudentUpdate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.update_student(db, student_id, data.model_dump(exclude_unset=True))


@router.delete("/{student_id}", response_model=StudentRead)
async def delete_student(
    student_id: int,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.deactivate_student(db, student_id)
