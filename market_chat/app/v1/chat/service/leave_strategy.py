import logging
from abc import ABC, abstractmethod

from market_chat.app.v1.chat.service.room_service import RoomService
from market_chat.config.database.mongo import MongoDB

logger = logging.getLogger(__name__)


class LeaveStrategy(ABC):

    def __init__(self, room_service: RoomService):
        self.room_service = room_service

    @abstractmethod
    async def leave(self, room_id: str, user_id: str) -> bool:
        """대화방 나가기. 대화방이 삭제되었으면 True"""


class AtomicLeaveStrategy(LeaveStrategy):
    """
    나가기 + 대화방/메시지 삭제를 하나의 트랜잭션으로 실행

    replica set / sharded cluster 에서만 사용 가능.
    예외가 발생하면 트랜잭션은 abort 되고, 세션은 항상 종료된다.
    """

    def __init__(self, room_service: RoomService, mongodb: MongoDB):
        super().__init__(room_service)
        self.mongodb = mongodb

    async def leave(self, room_id: str, user_id: str) -> bool:
        async with await self.mongodb.start_session() as session:
            async with session.start_transaction():
                return await self.room_service.leave(room_id, user_id, session=session)


class BestEffortLeaveStrategy(LeaveStrategy):
    """
    트랜잭션 없이 순차 실행 (standalone 서버)

    중간에 실패하면 빈 대화방이나 대화방 없는 메시지가 남을 수 있다.
    자동 복구는 하지 않는다.
    """

    async def leave(self, room_id: str, user_id: str) -> bool:
        return await self.room_service.leave(room_id, user_id)
