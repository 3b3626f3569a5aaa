import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from gymbuddy.core.exceptions import AlreadyExistsError, InvalidCredentialsError
from gymbuddy.core.security import create_access_token, decode_access_token
from gymbuddy.database import get_db
from gymbuddy.schemas.account import AccountCreate, AccountResponse, Token
from gymbuddy.services import account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AccountResponse:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    account = await account_service.get_account_by_id(db, payload.sub)
    if account is None:
        raise credentials_exception

    return AccountResponse.model_validate(account)


@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register(
    account_data: AccountCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AccountResponse:
    existing = await account_service.get_account_by_email(db, account_data.email)
    if existing:
        raise AlreadyExistsError("Email already registered", field="email")

    account = await account_service.create_account(db, account_data)
    logger.info("Account %s registered", account.id)
    return AccountResponse.model_validate(account)


@router.post("/login", response_model=Token)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Token:
    account = await account_service.authenticate(db, form_data.username, form_data.password)
    if account is None:
        raise InvalidCredentialsError()

    return Token(access_token=create_access_token(account.id))


@router.get("/me", response_model=AccountResponse)
async def get_me(
    current_user: Annotated[AccountResponse, Depends(get_current_user)],
) -> AccountResponse:
    return current_user
