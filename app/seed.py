"""Demo data for a fresh database.

Run with ``python -m app.seed``. Records go through the same store and
entry/exit functions as the API, so ownership and occupancy rules hold for
seeded data too. A database that already has spots is left untouched.
"""
import asyncio
import logging
import random

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app import config, crud, parking
from app.database import SessionLocal, init_db
from app.models import Role, Spot, SpotType

FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elisa", "Felipe", "Gabriela", "Hugo", "Iara", "Joao"]
LAST_NAMES = ["Souza", "Lima", "Costa", "Pereira", "Almeida", "Rocha", "Barros", "Teixeira"]
COURSES = ["Software Engineering", "Computer Science", "Information Systems", "Computer Networks"]
DEPARTMENTS = ["Computing", "Mathematics", "Physics", "Languages"]
MODELS = ["Gol", "Onix", "HB20", "Corolla", "Civic", "Kwid", "Argo", "Polo"]
COLORS = ["White", "Black", "Silver", "Red", "Blue"]
LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _name(rng: random.Random) -> str:
    return f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"


def _plate(rng: random.Random, taken: set) -> str:
    # LLLNLNN
    while True:
        plate = (
            "".join(rng.choice(LETTERS) for _ in range(3))
            + str(rng.randint(0, 9))
            + rng.choice(LETTERS)
            + f"{rng.randint(0, 99):02d}"
        )
        if plate not in taken:
            taken.add(plate)
            return plate


async def seed(db: AsyncSession, spots=20, students=15, faculty=5, parked=6, seed_value=42) -> bool:
    """Fill an empty database with demo records. Returns False if spots already exist."""
    existing = (await db.execute(select(func.count(Spot.id)))).scalar_one()
    if existing:
        logging.info(f"Database already has {existing} spots, skipping seed")
        return False

    rng = random.Random(seed_value)

    spot_ids = []
    for i in range(1, spots + 1):
        spot_type = rng.choice(list(SpotType))
        spot = await crud.create_spot(
            db, {"number": f"{'ABCDE'[(i - 1) // 10 % 5]}{i:02d}", "location": "Main lot", "type": spot_type}
        )
        spot_ids.append(spot.id)

    owners = []
    for i in range(1, students + 1):
        student = await crud.create_student(
            db,
            {"enrollment": f"S2024{i:04d}", "name": _name(rng), "course": rng.choice(COURSES)},
        )
        owners.append({"student_id": student.id})
    for i in range(1, faculty + 1):
        member = await crud.create_faculty(
            db,
            {"enrollment": f"F2020{i:04d}", "name": _name(rng), "department": rng.choice(DEPARTMENTS)},
        )
        owners.append({"faculty_id": member.id})

    plates = set()
    vehicle_ids = []
    for owner in owners:
        vehicle = await crud.create_vehicle(
            db,
            {
                "plate": _plate(rng, plates),
                "model": rng.choice(MODELS),
                "color": rng.choice(COLORS),
                "year": rng.randint(2008, 2024),
                **owner,
            },
        )
        vehicle_ids.append(vehicle.id)

    # a few finished visits, then the vehicles still parked
    for vehicle_id, spot_id in zip(vehicle_ids[parked:parked * 2], spot_ids[parked:parked * 2]):
        visit = await parking.register_entry(db, vehicle_id, spot_id)
        await parking.register_exit(db, visit.id, round(rng.uniform(5, 30), 2))
    for vehicle_id, spot_id in zip(vehicle_ids[:parked], spot_ids[:parked]):
        await parking.register_entry(db, vehicle_id, spot_id)

    if await crud.count_accounts(db) == 0:
        await crud.create_account(db, config.ADMIN_NAME, config.ADMIN_EMAIL, config.ADMIN_PASSWORD, Role.admin)
        await crud.create_account(db, "Gatekeeper", "gatekeeper@campus.local", "gatekeeper", Role.gatekeeper)

    logging.info(
        f"Seeded {spots} spots, {students} students, {faculty} faculty, "
        f"{len(vehicle_ids)} vehicles, {min(parked, len(vehicle_ids))} active sessions"
    )
    return True


async def main():
    await init_db()
    async with SessionLocal() as db:
        await seed(db)


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL)
    asyncio.run(main())
