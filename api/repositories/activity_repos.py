"""Activity repository"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from database.models import ActivityModel


class ActivityRepository:
    """Repository for the append-only activity log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: str,
        activity_type: str,
        item_type: str | None,
        item_id: int | None,
        description: str | None,
    ) -> ActivityModel:
        """Append an activity record and commit."""
        activity = ActivityModel(
            user_id=user_id,
            activity_type=activity_type,
            item_type=item_type,
            item_id=item_id,
            description=description[:255] if description else None,
            created_at=datetime.now(UTC),
        )
        self.session.add(activity)
        await self.session.commit()
        return activity
