import enum
from datetime import date, datetime, timezone

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import relationship

from app.database import Base


def utcnow():
    """Naive UTC timestamp, the form stored in TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SpotType(str, enum.Enum):
    common = "Common"
    priority = "Priority"
    faculty = "Faculty"


class Role(str, enum.Enum):
    gatekeeper = "gatekeeper"
    admin = "admin"
    master = "master"


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    course = Column(String(50), nullable=True)
    phone = Column(String(15), nullable=True)
    email = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    registered_on = Column(Date, nullable=False, default=date.today)

    vehicles = relationship("Vehicle", back_populates="student")


class Faculty(Base):
    __tablename__ = "faculty"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    department = Column(String(50), nullable=True)
    phone = Column(String(15), nullable=True)
    email = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    registered_on = Column(Date, nullable=False, default=date.today)

    vehicles = relationship("Vehicle", back_populates="faculty")


class Vehicle(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        CheckConstraint(
            "(student_id IS NULL) <> (faculty_id IS NULL)",
            name="ck_vehicles_single_owner",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(10), unique=True, nullable=False)
    model = Column(String(50), nullable=False)
    color = Column(String(20), nullable=True)
    year = Column(Integer, nullable=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True)
    faculty_id = Column(Integer, ForeignKey("faculty.id"), nullable=True)

    student = relationship("Student", back_populates="vehicles")
    faculty = relationship("Faculty", back_populates="vehicles")

    @property
    def owner(self):
        return self.student if self.student_id is not None else self.faculty

    @property
    def owner_type(self):
        if self.student_id is not None:
            return "student"
        if self.faculty_id is not None:
            return "faculty"
        return None

    @property
    def owner_name(self):
        owner = self.owner
        return owner.name if owner is not None else None


class Spot(Base):
    __tablename__ = "spots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String(10), unique=True, nullable=False)
    location = Column(String(100), nullable=True)
    type = Column(
        Enum(SpotType, values_callable=lambda e: [m.value for m in e], name="spot_type"),
        nullable=False,
        default=SpotType.common,
    )
    # written only by app.parking on entry/exit
    occupied = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)


class ParkingSession(Base):
    __tablename__ = "parking_sessions"
    __table_args__ = (
        Index(
            "uq_parking_sessions_active_spot",
            "spot_id",
            unique=True,
            sqlite_where=text("exit_timestamp IS NULL"),
            postgresql_where=text("exit_timestamp IS NULL"),
        ),
        Index(
            "uq_parking_sessions_active_vehicle",
            "vehicle_id",
            unique=True,
            sqlite_where=text("exit_timestamp IS NULL"),
            postgresql_where=text("exit_timestamp IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False)
    spot_id = Column(Integer, ForeignKey("spots.id", ondelete="RESTRICT"), nullable=False)
    entry_timestamp = Column(TIMESTAMP, nullable=False, default=utcnow)
    exit_timestamp = Column(TIMESTAMP, nullable=True)
    amount_paid = Column(Numeric(10, 2, asdecimal=False), nullable=True)

    vehicle = relationship("Vehicle")
    spot = relationship("Spot")

    @property
    def is_active(self):
        return self.exit_timestamp is None


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(Role, values_callable=lambda e: [m.value for m in e], name="account_role"),
        nullable=False,
        default=Role.gatekeeper,
    )
    is_active = Column(Boolean, nullable=False, default=True)
