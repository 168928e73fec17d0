import logging

from sqlalchemy import exists, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from werkzeug.security import generate_password_hash

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import Account, Faculty, ParkingSession, Spot, Student, Vehicle


async def _commit(db: AsyncSession, conflict_message: str):
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logging.info(f"Integrity error: {e.orig}")
        raise ConflictError(conflict_message)


# --- students ---

async def create_student(db: AsyncSession, data: dict):
    student = Student(**data)
    db.add(student)
    await _commit(db, f"Enrollment '{data['enrollment']}' already exists")
    return student


async def list_students(db: AsyncSession, active=None):
    query = select(Student).order_by(Student.name)
    if active is not None:
        query = query.where(Student.is_active == active)
    result = await db.execute(query)
    return result.scalars().all()


async def get_student(db: AsyncSession, student_id: int):
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError(f"Student {student_id} not found")
    return student


async def update_student(db: AsyncSession, student_id: int, data: dict):
    student = await get_student(db, student_id)
    for field, value in data.items():
        setattr(student, field, value)
    await _commit(db, "A student with the given enrollment already exists")
    return student


async def deactivate_student(db: AsyncSession, student_id: int):
    student = await get_student(db, student_id)
    student.is_active = False
    await db.commit()
    return student


# --- faculty ---

async def create_faculty(db: AsyncSession, data: dict):
    member = Faculty(**data)
    db.add(member)
    await _commit(db, f"Enrollment '{data['enrollment']}' already exists")
    return member


async def list_faculty(db: AsyncSession, active=None):
    query = select(Faculty).order_by(Faculty.name)
    if active is not None:
        query = query.where(Faculty.is_active == active)
    result = await db.execute(query)
    return result.scalars().all()


async def get_faculty(db: AsyncSession, faculty_id: int):
    member = await db.get(Faculty, faculty_id)
    if not member:
        raise NotFoundError(f"Faculty member {faculty_id} not found")
    return member


async def update_faculty(db: AsyncSession, faculty_id: int, data: dict):
    member = await get_faculty(db, faculty_id)
    for field, value in data.items():
        setattr(member, field, value)
    await _commit(db, "A faculty member with the given enrollment already exists")
    return member


async def deactivate_faculty(db: AsyncSession, faculty_id: int):
    member = await get_faculty(db, faculty_id)
    member.is_active = False
    await db.commit()
    return member


# --- vehicles ---

def _vehicle_query():
    return select(Vehicle).options(selectinload(Vehicle.student), selectinload(Vehicle.faculty))


def check_single_owner(student_id, faculty_id):
    """A vehicle belongs to exactly one student or one faculty member."""
    if (student_id is None) == (faculty_id is None):
        raise ValidationError(
            "A vehicle must belong to either a student or a faculty member, not both or neither"
        )


async def _require_active_owner(db: AsyncSession, model, owner_id: int, label: str):
    result = await db.execute(select(model).where(model.id == owner_id, model.is_active == True))
    if not result.scalars().first():
        raise ValidationError(f"{label} {owner_id} not found or inactive")


async def create_vehicle(db: AsyncSession, data: dict):
    check_single_owner(data.get("student_id"), data.get("faculty_id"))
    if data.get("student_id") is not None:
        await _require_active_owner(db, Student, data["student_id"], "Student")
    if data.get("faculty_id") is not None:
        await _require_active_owner(db, Faculty, data["faculty_id"], "Faculty member")

    vehicle = Vehicle(**data)
    db.add(vehicle)
    await _commit(db, f"Plate '{data['plate']}' already exists")
    return await get_vehicle(db, vehicle.id)


async def list_vehicles(db: AsyncSession):
    result = await db.execute(_vehicle_query().order_by(Vehicle.plate))
    return result.scalars().all()


async def get_vehicle(db: AsyncSession, vehicle_id: int):
    result = await db.execute(
        _vehicle_query().where(Vehicle.id == vehicle_id).execution_options(populate_existing=True)
    )
    vehicle = result.scalars().first()
    if not vehicle:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    return vehicle


async def search_vehicles(db: AsyncSession, term: str):
    pattern = f"%{term.lower()}%"
    result = await db.execute(
        _vehicle_query()
        .where(or_(func.lower(Vehicle.plate).like(pattern), func.lower(Vehicle.model).like(pattern)))
        .order_by(Vehicle.plate)
    )
    return result.scalars().all()


async def update_vehicle(db: AsyncSession, vehicle_id: int, data: dict):
    vehicle = await get_vehicle(db, vehicle_id)

    student_id = data["student_id"] if "student_id" in data else vehicle.student_id
    faculty_id = data["faculty_id"] if "faculty_id" in data else vehicle.faculty_id
    check_single_owner(student_id, faculty_id)

    if student_id is not None and student_id != vehicle.student_id:
        await _require_active_owner(db, Student, student_id, "Student")
    if faculty_id is not None and faculty_id != vehicle.faculty_id:
        await _require_active_owner(db, Faculty, faculty_id, "Faculty member")

    for field, value in data.items():
        setattr(vehicle, field, value)
    await _commit(db, f"Plate '{data.get('plate', vehicle.plate)}' already exists")
    return await get_vehicle(db, vehicle_id)


async def _has_sessions(db: AsyncSession, *criteria):
    result = await db.execute(select(exists().where(*criteria)))
    return result.scalar()


async def delete_vehicle(db: AsyncSession, vehicle_id: int):
    vehicle = await get_vehicle(db, vehicle_id)
    if await _has_sessions(db, ParkingSession.vehicle_id == vehicle_id):
        raise ConflictError(f"Vehicle {vehicle_id} has parking history and cannot be deleted")
    await db.delete(vehicle)
    await _commit(db, f"Vehicle {vehicle_id} is referenced and cannot be deleted")


# --- spots ---

async def create_spot(db: AsyncSession, data: dict):
    spot = Spot(**data)
    db.add(spot)
    await _commit(db, f"Spot number '{data['number']}' already exists")
    return spot


async def list_spots(db: AsyncSession, spot_type=None, occupied=None):
    query = select(Spot).order_by(Spot.number)
    if spot_type is not None:
        query = query.where(Spot.type == spot_type)
    if occupied is not None:
        query = query.where(Spot.occupied == occupied)
    result = await db.execute(query)
    return result.scalars().all()


async def list_available_spots(db: AsyncSession, spot_type=None):
    query = select(Spot).where(Spot.occupied == False, Spot.is_active == True).order_by(Spot.number)
    if spot_type is not None:
        query = query.where(Spot.type == spot_type)
    result = await db.execute(query)
    return result.scalars().all()


async def get_spot(db: AsyncSession, spot_id: int):
    spot = await db.get(Spot, spot_id)
    if not spot:
        raise NotFoundError(f"Spot {spot_id} not found")
    return spot


async def update_spot(db: AsyncSession, spot_id: int, data: dict):
    if "occupied" in data:
        raise ValidationError("Spot occupancy is managed by parking sessions and cannot be edited")
    spot = await get_spot(db, spot_id)
    if data.get("is_active") is False and spot.occupied:
        raise ConflictError(f"Spot {spot.number} is occupied and cannot be deactivated")
    for field, value in data.items():
        setattr(spot, field, value)
    await _commit(db, f"Spot number '{data.get('number', spot.number)}' already exists")
    return spot


async def delete_spot(db: AsyncSession, spot_id: int):
    spot = await get_spot(db, spot_id)
    if spot.occupied:
        raise ConflictError(f"Spot {spot.number} is occupied and cannot be deleted")
    if await _has_sessions(db, ParkingSession.spot_id == spot_id):
        raise ConflictError(f"Spot {spot.number} has parking history and cannot be deleted")
    await db.delete(spot)
    await _commit(db, f"Spot {spot_id} is referenced and cannot be deleted")


# --- accounts ---

async def create_account(db: AsyncSession, name: str, email: str, password: str, role):
    account = Account(
        name=name,
        email=email.lower(),
        password_hash=generate_password_hash(password),
        role=role,
    )
    db.add(account)
    await _commit(db, f"Email '{email}' is already registered")
    return account


async def list_accounts(db: AsyncSession):
    result = await db.execute(select(Account).order_by(Account.name))
    return result.scalars().all()


async def get_active_account_by_email(db: AsyncSession, email: str):
    result = await db.execute(
        select(Account).where(Account.email == email.lower(), Account.is_active == True)
    )
    return result.scalars().first()


async def get_account(db: AsyncSession, account_id: int):
    account = await db.get(Account, account_id)
    if not account:
        raise NotFoundError(f"Account {account_id} not found")
    return account


async def count_accounts(db: AsyncSession):
    result = await db.execute(select(func.count(Account.id)))
    return result.scalar_one()
