import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_401_UNAUTHORIZED

from app import crud
from app.database import get_db
from app.schemas import AccountCreate, AccountRead, Identity, LoginRequest, TokenResponse
from app.security import ADMIN_ROLES, create_access_token, get_identity, require_roles, verify_password

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    account = await crud.get_active_account_by_email(db, credentials.email)
    if not account or not verify_password(account, credentials.password):
        logging.info(f"Login failed for {credentials.email}")
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logging.info(f"Login succeeded for {credentials.email}")
    return TokenResponse(access_token=create_access_token(account), account=AccountRead.model_validate(account))


@router.post("/register", response_model=AccountRead, status_code=HTTP_201_CREATED)
async def register(
    data: AccountCreate,
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    account = await crud.create_account(db, data.name, data.email, data.password, data.role)
    logging.info(f"Account {account.id} ({account.role.value}) created by account {identity.id}")
    return account


@router.get("/accounts", response_model=List[AccountRead])
async def list_accounts(
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_accounts(db)


@router.get("/me", response_model=AccountRead)
async def me(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_db)):
    return await crud.get_account(db, identity.id)
