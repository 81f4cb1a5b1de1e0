"""Storage quota ledger service."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.repositories.quota_repos import QuotaLedgerRepository
from api.schemas.quota import QuotaStatusResponse
from api.shared.exceptions import BadRequestError, NotFoundError
from config.settings import get_settings
from logger import format_details, get_logger, short_user_id

logger = get_logger()


class QuotaService:
    """Two-phase storage accounting: reserve, then confirm or cancel.

    Every call runs in its own session and commits immediately, so a ledger
    change never rides along with (or gets rolled back by) the caller's
    catalog transaction. Counters live in ``users.storage_used`` and
    ``users.storage_reserved``; the effective limit is the base quota plus
    active ``quota_extensions``.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    # ========================================
    # RESERVATION LIFECYCLE
    # ========================================

    async def reserve(self, user_id: str, size: int) -> bool:
        """Hold ``size`` bytes for a pending write. Returns False if it doesn't fit."""
        if size == 0:
            return True

        async with self.session_maker() as session:
            repo = QuotaLedgerRepository(session)
            reserved = await repo.reserve(user_id, size)
            if not reserved and await repo.get_user(user_id) is None:
                raise NotFoundError("User", user_id)
            await session.commit()

        if reserved:
            logger.debug(f"Quota reserved | {format_details(user=short_user_id(user_id), bytes=size)}")
        else:
            logger.info(f"Quota reservation refused | {format_details(user=short_user_id(user_id), bytes=size)}")
        return reserved

    async def confirm(self, user_id: str, size: int) -> None:
        """Turn a reservation into used storage."""
        if size == 0:
            return

        async with self.session_maker() as session:
            if not await QuotaLedgerRepository(session).confirm(user_id, size):
                raise NotFoundError("User", user_id)
            await session.commit()

        logger.debug(f"Quota confirmed | {format_details(user=short_user_id(user_id), bytes=size)}")

    async def cancel_reservation(self, user_id: str, size: int) -> None:
        """Give back a reservation that will not be confirmed."""
        if size == 0:
            return

        async with self.session_maker() as session:
            if not await QuotaLedgerRepository(session).cancel_reservation(user_id, size):
                raise NotFoundError("User", user_id)
            await session.commit()

        logger.debug(f"Quota reservation cancelled | {format_details(user=short_user_id(user_id), bytes=size)}")

    async def release(self, user_id: str, size: int) -> None:
        """Return confirmed bytes whose blob is being deleted."""
        if size == 0:
            return

        async with self.session_maker() as session:
            if not await QuotaLedgerRepository(session).release(user_id, size):
                raise NotFoundError("User", user_id)
            await session.commit()

        logger.debug(f"Quota released | {format_details(user=short_user_id(user_id), bytes=size)}")

    # ========================================
    # QUOTA STATUS & ADMINISTRATION
    # ========================================

    async def get_storage_usage(self, user_id: str) -> QuotaStatusResponse:
        """Build a storage usage report for the user."""
        async with self.session_maker() as session:
            repo = QuotaLedgerRepository(session)
            user = await repo.get_user(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            extension_bytes = await repo.get_active_extension_bytes(user_id)

        total_quota = user.storage_quota + extension_bytes
        usage_percentage = round(user.storage_used / total_quota * 100, 2) if total_quota else 0.0

        return QuotaStatusResponse(
            user_id=user.id,
            base_quota=user.storage_quota,
            extension_bytes=extension_bytes,
            total_quota=total_quota,
            used_storage=user.storage_used,
            reserved_storage=user.storage_reserved,
            available_storage=max(total_quota - user.storage_used - user.storage_reserved, 0),
            usage_percentage=usage_percentage,
        )

    async def update_quota(self, user_id: str, new_quota: int) -> QuotaStatusResponse:
        """Set a new base quota for the user."""
        min_quota = get_settings().quota.min_storage_quota_bytes
        if new_quota < min_quota:
            raise BadRequestError(f"Quota cannot be less than {min_quota / 1024**3:g}GB")

        async with self.session_maker() as session:
            if not await QuotaLedgerRepository(session).set_quota(user_id, new_quota):
                raise NotFoundError("User", user_id)
            await session.commit()

        logger.info(f"Quota updated | {format_details(user=short_user_id(user_id), quota=new_quota)}")
        return await self.get_storage_usage(user_id)
