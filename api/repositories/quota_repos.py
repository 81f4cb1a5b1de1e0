"""Storage quota ledger repository.

Each counter change is a single conditional UPDATE evaluated by the
database, so concurrent callers never read-modify-write in Python.
"""

from datetime import UTC, datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.auth_models import QuotaExtensionModel, UserModel


def _floored_sub(column, amount: int):
    """SQL expression for ``max(column - amount, 0)``."""
    return case((column > amount, column - amount), else_=0)


class QuotaLedgerRepository:
    """Repository for per-user storage counters."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _active_extensions_subquery(self, user_id: str):
        return (
            select(func.coalesce(func.sum(QuotaExtensionModel.additional_space), 0))
            .where(
                QuotaExtensionModel.user_id == user_id,
                QuotaExtensionModel.expires_at > datetime.now(UTC),
            )
            .scalar_subquery()
        )

    async def get_user(self, user_id: str) -> UserModel | None:
        """Get user counters."""
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalars().first()

    async def get_active_extension_bytes(self, user_id: str) -> int:
        """Sum of bytes granted by non-expired quota extensions."""
        value = await self.session.scalar(select(self._active_extensions_subquery(user_id)))
        return int(value or 0)

    async def reserve(self, user_id: str, size: int) -> bool:
        """Add ``size`` to reserved bytes if it fits the effective quota."""
        stmt = (
            update(UserModel)
            .where(
                UserModel.id == user_id,
                UserModel.storage_used + UserModel.storage_reserved + size
                <= UserModel.storage_quota + self._active_extensions_subquery(user_id),
            )
            .values(
                storage_reserved=UserModel.storage_reserved + size,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def confirm(self, user_id: str, size: int) -> bool:
        """Move ``size`` bytes from reserved to used."""
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                storage_used=UserModel.storage_used + size,
                storage_reserved=_floored_sub(UserModel.storage_reserved, size),
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def cancel_reservation(self, user_id: str, size: int) -> bool:
        """Drop ``size`` bytes of an outstanding reservation."""
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                storage_reserved=_floored_sub(UserModel.storage_reserved, size),
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release(self, user_id: str, size: int) -> bool:
        """Subtract ``size`` bytes from used storage (never below zero)."""
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                storage_used=_floored_sub(UserModel.storage_used, size),
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def set_quota(self, user_id: str, new_quota: int) -> bool:
        """Replace the base quota of a user."""
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(storage_quota=new_quota, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
