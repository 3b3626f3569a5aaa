from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymbuddy.core.security import hash_password, verify_password
from gymbuddy.models.account import Account
from gymbuddy.schemas.account import AccountCreate


async def get_account_by_id(db: AsyncSession, account_id: str) -> Account | None:
    result = await db.execute(select(Account).where(Account.id == account_id))
    return result.scalar_one_or_none()


async def get_account_by_email(db: AsyncSession, email: str) -> Account | None:
    result = await db.execute(select(Account).where(Account.email == email.lower()))
    return result.scalar_one_or_none()


async def create_account(db: AsyncSession, data: AccountCreate) -> Account:
    account = Account(
        email=data.email.lower(),
        password_hash=hash_password(data.password),
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


async def authenticate(db: AsyncSession, email: str, password: str) -> Account | None:
    """Return the account when the email/password pair is valid."""
    account = await get_account_by_email(db, email.strip())
    if account is None or not verify_password(password, account.password_hash):
        return None
    return account
