import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select

from market_chat.app.common.exceptions import NotFoundError
from market_chat.app.v1.user.entity.user import User
from market_chat.config.database.postgresql import PostgreSQL

logger = logging.getLogger(__name__)


class UserRepository:

    def __init__(self, postgresql: PostgreSQL):
        self.postgresql = postgresql

    async def user_exists(self, user_id: str) -> bool:
        async with self.postgresql.session() as session:
            try:
                result = await session.execute(select(User.id).where(User.id == user_id))
                return result.scalar_one_or_none() is not None
            except SQLAlchemyError as e:
                logger.error(f"Database error occurred while fetching user: {e}")
                raise

    async def ensure_user_exists(self, user_id: str) -> None:
        if not await self.user_exists(user_id):
            logger.warning(f"User ID: {user_id}가 존재하지 않습니다.")
            raise NotFoundError("사용자를 찾을 수 없습니다")
