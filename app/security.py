import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN
from werkzeug.security import check_password_hash

from app import config
from app.models import Role
from app.schemas import Identity

STAFF_ROLES = (Role.gatekeeper, Role.admin, Role.master)
ADMIN_ROLES = (Role.admin, Role.master)

bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(account, password: str) -> bool:
    return check_password_hash(account.password_hash, password)


def create_access_token(account) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(account.id),
        "name": account.name,
        "email": account.email,
        "role": Role(account.role).value,
        "iat": now,
        "exp": now + timedelta(minutes=config.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logging.info(f"Rejected token: {e}")
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        return Identity(id=int(payload["sub"]), role=payload["role"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token")


async def get_identity(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail="Authentication token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(credentials.credentials)


def require_roles(*roles: Role):
    allowed = set(roles)

    async def check_role(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return identity

    return check_role
