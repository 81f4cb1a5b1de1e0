"""Quota ledger repository tests against a real SQLite database."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

USER_ID = "user_123"


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    """Session factory bound to a fresh SQLite database with all tables created."""
    from database.auth_models import QuotaExtensionModel, UserModel  # noqa: F401
    from database.models import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def add_user(session_maker, quota: int, used: int = 0, reserved: int = 0, extensions=()):
    from database.auth_models import QuotaExtensionModel, UserModel

    async with session_maker() as session:
        session.add(
            UserModel(
                id=USER_ID,
                email="test@example.com",
                storage_quota=quota,
                storage_used=used,
                storage_reserved=reserved,
            )
        )
        for additional_space, expires_at in extensions:
            session.add(
                QuotaExtensionModel(user_id=USER_ID, additional_space=additional_space, expires_at=expires_at)
            )
        await session.commit()


async def counters(session_maker) -> tuple[int, int]:
    from database.auth_models import UserModel

    async with session_maker() as session:
        row = (
            await session.execute(
                select(UserModel.storage_used, UserModel.storage_reserved).where(UserModel.id == USER_ID)
            )
        ).one()
    return row.storage_used, row.storage_reserved


async def run(session_maker, method: str, *args):
    from api.repositories.quota_repos import QuotaLedgerRepository

    async with session_maker() as session:
        result = await getattr(QuotaLedgerRepository(session), method)(*args)
        await session.commit()
    return result


@pytest.mark.unit
class TestQuotaLedgerReserve:
    """Conditional reservation against the effective quota."""

    @pytest.mark.asyncio
    async def test_reserve_refused_past_quota_boundary(self, session_maker):
        """95 of 100 used: 10 more is refused, 5 more fills the quota exactly."""
        await add_user(session_maker, quota=100, used=95)

        assert await run(session_maker, "reserve", USER_ID, 10) is False
        assert await counters(session_maker) == (95, 0)

        assert await run(session_maker, "reserve", USER_ID, 5) is True
        assert await counters(session_maker) == (95, 5)

        assert await run(session_maker, "reserve", USER_ID, 1) is False

    @pytest.mark.asyncio
    async def test_outstanding_reservations_count_against_quota(self, session_maker):
        """Reserved bytes are held back from later reservations."""
        await add_user(session_maker, quota=100, used=50, reserved=40)

        assert await run(session_maker, "reserve", USER_ID, 11) is False
        assert await run(session_maker, "reserve", USER_ID, 10) is True
        assert await counters(session_maker) == (50, 50)

    @pytest.mark.asyncio
    async def test_active_extension_raises_the_limit(self, session_maker):
        """Non-expired extension bytes are added to the base quota."""
        tomorrow = datetime.now(UTC) + timedelta(days=1)
        await add_user(session_maker, quota=100, used=95, extensions=[(50, tomorrow)])

        assert await run(session_maker, "get_active_extension_bytes", USER_ID) == 50
        assert await run(session_maker, "reserve", USER_ID, 10) is True
        assert await counters(session_maker) == (95, 10)

    @pytest.mark.asyncio
    async def test_expired_extension_is_ignored(self, session_maker):
        """Extensions stop counting once expires_at has passed."""
        now = datetime.now(UTC)
        await add_user(
            session_maker,
            quota=100,
            used=95,
            extensions=[(50, now - timedelta(hours=1)), (3, now + timedelta(hours=1))],
        )

        assert await run(session_maker, "get_active_extension_bytes", USER_ID) == 3
        assert await run(session_maker, "reserve", USER_ID, 10) is False
        assert await run(session_maker, "reserve", USER_ID, 8) is True
        assert await counters(session_maker) == (95, 8)

    @pytest.mark.asyncio
    async def test_unknown_user_is_not_reserved(self, session_maker):
        """No row matches, so nothing is reserved."""
        assert await run(session_maker, "reserve", "missing_user", 1) is False
        assert await run(session_maker, "get_user", "missing_user") is None


@pytest.mark.unit
class TestQuotaLedgerSettlement:
    """Confirm, cancel and release never drive a counter below zero."""

    @pytest.mark.asyncio
    async def test_confirm_moves_reserved_to_used(self, session_maker):
        """Confirmed bytes leave reserved and land in used."""
        await add_user(session_maker, quota=100, used=10, reserved=5)

        assert await run(session_maker, "confirm", USER_ID, 5) is True
        assert await counters(session_maker) == (15, 0)

    @pytest.mark.asyncio
    async def test_confirm_floors_reserved_at_zero(self, session_maker):
        """Confirming more than was reserved still adds the full size to used."""
        await add_user(session_maker, quota=100, used=10, reserved=2)

        assert await run(session_maker, "confirm", USER_ID, 5) is True
        assert await counters(session_maker) == (15, 0)

    @pytest.mark.asyncio
    async def test_cancel_reservation_floors_at_zero(self, session_maker):
        """Cancelling more than is reserved leaves reserved at zero."""
        await add_user(session_maker, quota=100, used=10, reserved=3)

        assert await run(session_maker, "cancel_reservation", USER_ID, 10) is True
        assert await counters(session_maker) == (10, 0)

    @pytest.mark.asyncio
    async def test_release_floors_at_zero(self, session_maker):
        """Releasing more than is used leaves used at zero."""
        await add_user(session_maker, quota=100, used=4)

        assert await run(session_maker, "release", USER_ID, 10) is True
        assert await counters(session_maker) == (0, 0)

    @pytest.mark.asyncio
    async def test_release_partial(self, session_maker):
        """Ordinary release subtracts exactly the given size."""
        await add_user(session_maker, quota=100, used=40, reserved=7)

        assert await run(session_maker, "release", USER_ID, 15) is True
        assert await counters(session_maker) == (25, 7)

    @pytest.mark.asyncio
    async def test_settlement_on_unknown_user(self, session_maker):
        """Settlement calls report a missing row instead of failing."""
        assert await run(session_maker, "confirm", "missing_user", 1) is False
        assert await run(session_maker, "cancel_reservation", "missing_user", 1) is False
        assert await run(session_maker, "release", "missing_user", 1) is False


@pytest.mark.unit
class TestQuotaServiceWithDatabase:
    """QuotaService committing through a real session factory."""

    @pytest.mark.asyncio
    async def test_reservation_lifecycle(self, session_maker):
        """Reserve, refuse, confirm and cancel as separate committed transactions."""
        from api.services.quota_service import QuotaService

        await add_user(session_maker, quota=100, used=80)
        service = QuotaService(session_maker)

        assert await service.reserve(USER_ID, 15) is True
        assert await service.reserve(USER_ID, 10) is False
        await service.confirm(USER_ID, 10)
        await service.cancel_reservation(USER_ID, 5)

        assert await counters(session_maker) == (90, 0)

    @pytest.mark.asyncio
    async def test_reserve_for_unknown_user_raises(self, session_maker):
        """Refusal caused by a missing user is reported as NotFoundError."""
        from api.services.quota_service import QuotaService
        from api.shared.exceptions import NotFoundError

        with pytest.raises(NotFoundError):
            await QuotaService(session_maker).reserve("missing_user", 1)
