"""Activity recording service."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.repositories.activity_repos import ActivityRepository
from api.shared.enums import ActivityType, ItemType
from logger import get_logger, short_user_id

logger = get_logger()


class ActivityService:
    """Fire-and-forget activity log.

    Records are written in a separate session. A failure to record is logged
    as a warning and never propagates to the operation that triggered it.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def record(
        self,
        user_id: str,
        activity_type: ActivityType,
        item_id: int | None,
        description: str,
        item_type: ItemType = ItemType.FILE,
    ) -> None:
        try:
            async with self.session_maker() as session:
                await ActivityRepository(session).create(
                    user_id=user_id,
                    activity_type=str(activity_type),
                    item_type=str(item_type),
                    item_id=item_id,
                    description=description,
                )
        except Exception as e:
            logger.warning(
                f"Failed to record activity: type={activity_type} | item={item_type}:{item_id} | "
                f"user={short_user_id(user_id)} | error={e}"
            )
