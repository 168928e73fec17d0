import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from app import config, crud, notifications
from app.database import SessionLocal, init_db
from app.errors import ParkingError
from app.models import Role
from app.routers import register_routers

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(
    title="Campus Parking Service",
    version="1.0.0",
)

register_routers(app)


async def ensure_admin_account():
    async with SessionLocal() as db:
        if await crud.count_accounts(db) == 0:
            await crud.create_account(
                db, config.ADMIN_NAME, config.ADMIN_EMAIL, config.ADMIN_PASSWORD, Role.admin
            )
            logging.info(f"Created bootstrap admin account {config.ADMIN_EMAIL}")


@app.on_event("startup")
async def on_startup():
    await init_db()
    await ensure_admin_account()


@app.on_event("shutdown")
async def on_shutdown():
    await notifications.drain()


@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _describe(error) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {error.get('msg')}" if location else error.get("msg", "invalid input")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    detail = "; ".join(_describe(e) for e in exc.errors())
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"detail": detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logging.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/")
async def health_check():
    return {"status": "ok", "message": "Parking API is running"}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
