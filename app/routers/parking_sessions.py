from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from app import parking
from app.database import get_db
from app.notifications import publish_event
from app.schemas import EntryCreate, ExitUpdate, Identity, ParkingSessionDetail, ParkingSessionRead
from app.security import STAFF_ROLES, require_roles

router = APIRouter()


@router.post("", response_model=ParkingSessionRead, status_code=HTTP_201_CREATED)
async def register_entry(
    entry: EntryCreate,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    parking_session = await parking.register_entry(db, entry.vehicle_id, entry.spot_id)
    result = ParkingSessionRead.model_validate(parking_session)

    publish_event("sessions/entry", result.model_dump(mode="json"))
    return result


@router.patch("/{session_id}/exit", response_model=ParkingSessionRead)
async def register_exit(
    session_id: int,
    data: Optional[ExitUpdate] = None,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    amount_paid = data.amount_paid if data is not None else None
    parking_session = await parking.register_exit(db, session_id, amount_paid)
    result = ParkingSessionRead.model_validate(parking_session)

    publish_event("sessions/exit", result.model_dump(mode="json"))
    return result


@router.get("", response_model=List[ParkingSessionRead])
async def list_sessions(
    vehicle_id: Optional[int] = Query(default=None, gt=0),
    spot_id: Optional[int] = Query(default=None, gt=0),
    entry_from: Optional[datetime] = None,
    entry_to: Optional[datetime] = None,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    filters = parking.SessionFilter(
        vehicle_id=vehicle_id,
        spot_id=spot_id,
        entry_from=entry_from,
        entry_to=entry_to,
    )
    return await parking.find_all(db, filters)


@router.get("/active", response_model=List[ParkingSessionRead])
async def list_active_sessions(
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await parking.find_active(db)


@router.get("/{session_id}", response_model=ParkingSessionDetail)
async def get_session(
    session_id: int,
    identity: Identity = Depends(require_roles(*STAFF_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await parking.find_by_id(db, session_id)
