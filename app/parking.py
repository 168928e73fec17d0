"""Parking session lifecycle: vehicle entry and exit.

This module is the only writer of ``Spot.occupied``. Entry and exit each run
their precondition checks and both writes (the session row and the spot flag)
in a single transaction, so either both changes commit or neither does.

The partial unique indexes on ``parking_sessions`` (one active session per
spot, one per vehicle) back the checks below: when two entries race, the
loser's flush fails and is reported as a conflict.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.errors import ConflictError, NotFoundError
from app.models import ParkingSession, Spot, Vehicle, utcnow


def _as_utc(value: datetime) -> datetime:
    # entry timestamps are stored as naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass
class SessionFilter:
    vehicle_id: Optional[int] = None
    spot_id: Optional[int] = None
    entry_from: Optional[datetime] = None
    entry_to: Optional[datetime] = None

    def criteria(self):
        clauses = []
        if self.vehicle_id is not None:
            clauses.append(ParkingSession.vehicle_id == self.vehicle_id)
        if self.spot_id is not None:
            clauses.append(ParkingSession.spot_id == self.spot_id)
        if self.entry_from is not None:
            clauses.append(ParkingSession.entry_timestamp >= _as_utc(self.entry_from))
        if self.entry_to is not None:
            clauses.append(ParkingSession.entry_timestamp <= _as_utc(self.entry_to))
        return clauses


def _with_details():
    return select(ParkingSession).options(
        selectinload(ParkingSession.vehicle).selectinload(Vehicle.student),
        selectinload(ParkingSession.vehicle).selectinload(Vehicle.faculty),
        selectinload(ParkingSession.spot),
    )


async def _load(db: AsyncSession, session_id: int):
    result = await db.execute(
        _with_details()
        .where(ParkingSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _active_session_for_vehicle(db: AsyncSession, vehicle_id: int):
    result = await db.execute(
        select(ParkingSession)
        .where(ParkingSession.vehicle_id == vehicle_id, ParkingSession.exit_timestamp.is_(None))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def register_entry(db: AsyncSession, vehicle_id: int, spot_id: int) -> ParkingSession:
    try:
        vehicle = await db.get(Vehicle, vehicle_id)
        if not vehicle:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

        spot = await db.get(Spot, spot_id, with_for_update=True)
        if not spot:
            raise NotFoundError(f"Spot {spot_id} not found")
        if spot.occupied:
            raise ConflictError(f"Spot {spot.number} (id {spot_id}) is already occupied")

        active = await _active_session_for_vehicle(db, vehicle_id)
        if active:
            raise ConflictError(
                f"Vehicle {vehicle.plate} (id {vehicle_id}) already has an active session "
                f"on spot id {active.spot_id}"
            )

        parking_session = ParkingSession(vehicle_id=vehicle_id, spot_id=spot_id, entry_timestamp=utcnow())
        db.add(parking_session)
        spot.occupied = True

        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError(
                f"Spot {spot_id} or vehicle {vehicle_id} was taken by a concurrent entry"
            )

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logging.info(f"Entry registered: vehicle {vehicle_id} on spot {spot_id} (session {parking_session.id})")
    return await _load(db, parking_session.id)


async def register_exit(db: AsyncSession, session_id: int, amount_paid: Optional[float] = None) -> ParkingSession:
    try:
        result = await db.execute(
            select(ParkingSession)
            .where(ParkingSession.id == session_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        parking_session = result.scalars().first()
        if not parking_session:
            raise NotFoundError(f"Parking session {session_id} not found")
        if parking_session.exit_timestamp is not None:
            raise ConflictError(
                f"Exit for parking session {session_id} was already registered at "
                f"{parking_session.exit_timestamp.isoformat()}"
            )

        spot = await db.get(Spot, parking_session.spot_id, with_for_update=True)

        parking_session.exit_timestamp = utcnow()
        if amount_paid is not None:
            parking_session.amount_paid = amount_paid
        spot.occupied = False

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logging.info(f"Exit registered: session {session_id}, spot {parking_session.spot_id} released")
    return await _load(db, session_id)


async def find_active(db: AsyncSession) -> List[ParkingSession]:
    result = await db.execute(
        _with_details()
        .where(ParkingSession.exit_timestamp.is_(None))
        .order_by(ParkingSession.entry_timestamp.asc(), ParkingSession.id.asc())
    )
    return result.scalars().all()


async def find_all(db: AsyncSession, filters: Optional[SessionFilter] = None) -> List[ParkingSession]:
    query = _with_details()
    criteria = filters.criteria() if filters is not None else []
    if criteria:
        query = query.where(*criteria)
    result = await db.execute(
        query.order_by(ParkingSession.entry_timestamp.desc(), ParkingSession.id.desc())
    )
    return result.scalars().all()


async def find_by_id(db: AsyncSession, session_id: int) -> ParkingSession:
    parking_session = await _load(db, session_id)
    if not parking_session:
        raise NotFoundError(f"Parking session {session_id} not found")
    return parking_session
