"""Pytest configuration and fixtures for the parking API tests."""
import httpx
import pytest

from app import crud
from app.database import get_db, init_db, make_engine, make_sessionmaker
from app.main import app
from app.models import Role, SpotType
from app.security import create_access_token


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'parking.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return make_sessionmaker(engine)


@pytest.fixture
async def db(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
async def client(sessionmaker):
    """HTTP client bound to the app, using the test database."""

    async def override_get_db():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _account(db, role):
    return await crud.create_account(db, f"{role.value} user", f"{role.value}@campus.test", "secret", role)


@pytest.fixture
async def admin_headers(db):
    account = await _account(db, Role.admin)
    return {"Authorization": f"Bearer {create_access_token(account)}"}


@pytest.fixture
async def gatekeeper_headers(db):
    account = await _account(db, Role.gatekeeper)
    return {"Authorization": f"Bearer {create_access_token(account)}"}


@pytest.fixture
async def student_id(db):
    student = await crud.create_student(db, {"enrollment": "S20240001", "name": "Ana Souza", "course": "Physics"})
    return student.id


@pytest.fixture
async def faculty_id(db):
    member = await crud.create_faculty(db, {"enrollment": "F20200001", "name": "Carlos Lima", "department": "Math"})
    return member.id


@pytest.fixture
async def vehicle_ids(db, student_id, faculty_id):
    """Ids of two vehicles: the first owned by the student, the second by the faculty member."""
    first = await crud.create_vehicle(db, {"plate": "ABC1D23", "model": "Gol", "student_id": student_id})
    second = await crud.create_vehicle(db, {"plate": "XYZ9K87", "model": "Onix", "faculty_id": faculty_id})
    return first.id, second.id


@pytest.fixture
async def spot_ids(db):
    """Ids of six spots numbered A01..A06; the last one is a faculty spot."""
    ids = []
    for i in range(1, 7):
        spot_type = SpotType.faculty if i == 6 else SpotType.common
        spot = await crud.create_spot(db, {"number": f"A{i:02d}", "location": "Block A", "type": spot_type})
        ids.append(spot.id)
    return ids
