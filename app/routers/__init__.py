from .auth import router as auth_router
from .faculty import router as faculty_router
from .parking_sessions import router as parking_sessions_router
from .spots import router as spots_router
from .students import router as students_router
from .vehicles import router as vehicles_router


def register_routers(app):
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(students_router, prefix="/students", tags=["students"])
    app.include_router(faculty_router, prefix="/faculty", tags=["faculty"])
    app.include_router(vehicles_router, prefix="/vehicles", tags=["vehicles"])
    app.include_router(spots_router, prefix="/spots", tags=["spots"])
    app.include_router(parking_sessions_router, prefix="/parking-sessions", tags=["parking-sessions"])
