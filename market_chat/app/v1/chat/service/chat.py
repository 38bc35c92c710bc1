import asyncio
import logging

from market_chat.app.common.exceptions import translate_store_errors
from market_chat.app.common.utils.consts import MessageType
from market_chat.app.common.utils.pagination import Page, PaginationOptions
from market_chat.app.v1.chat.schema.message_response import Message
from market_chat.app.v1.chat.schema.room_response import ChatRoom, ChatRoomResult
from market_chat.app.v1.chat.service.leave_strategy import (
    AtomicLeaveStrategy,
    BestEffortLeaveStrategy,
    LeaveStrategy,
)
from market_chat.app.v1.chat.service.message_service import MessageService
from market_chat.app.v1.chat.service.room_service import RoomService
from market_chat.config.database.mongo import MongoDB

logger = logging.getLogger(__name__)


class ChatService:
    """
    채팅 기능 진입점

    HTTP 계층은 이 클래스만 호출한다. 드라이버의 접속/타임아웃 오류는
    TransientStoreFailureError 로 바뀌고, 그 외 도메인 오류는 그대로 전달된다.
    """

    def __init__(
        self,
        room_service: RoomService,
        message_service: MessageService,
        mongodb: MongoDB,
        leave_strategy: LeaveStrategy | None = None,
    ):
        self.room_service = room_service
        self.message_service = message_service
        self.mongodb = mongodb
        self._leave_strategy = leave_strategy
        self._strategy_lock = asyncio.Lock()

    async def create_or_get_room(self, sender_id: str, receiver_id: str, product_id: str) -> ChatRoomResult:
        with translate_store_errors("create_or_get_room"):
            return await self.room_service.find_or_create_chat_room(sender_id, receiver_id, product_id)

    async def list_rooms_for_user(self, user_id: str, pagination: PaginationOptions) -> Page[ChatRoom]:
        with translate_store_errors("list_rooms_for_user"):
            return await self.room_service.list_rooms_for_user(user_id, pagination)

    async def ensure_user_can_access_chat_room(self, room_id: str, user_id: str) -> ChatRoom:
        with translate_store_errors("ensure_user_can_access_chat_room"):
            return await self.room_service.ensure_user_can_access_chat_room(room_id, user_id)

    async def send_message(
        self,
        room_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        file_url: str | None = None,
        file_name: str | None = None,
    ) -> Message:
        with translate_store_errors("send_message"):
            return await self.message_service.send_message(
                room_id,
                sender_id,
                receiver_id,
                content,
                message_type,
                file_url,
                file_name,
            )

    async def list_messages(self, room_id: str, pagination: PaginationOptions) -> Page[Message]:
        with translate_store_errors("list_messages"):
            return await self.message_service.list_messages(room_id, pagination)

    async def mark_read(self, room_id: str, user_id: str) -> int:
        with translate_store_errors("mark_read"):
            return await self.message_service.mark_messages_as_read(room_id, user_id)

    async def count_unread(self, room_id: str, user_id: str) -> int:
        with translate_store_errors("count_unread"):
            return await self.message_service.count_unread_messages_by_room(room_id, user_id)

    async def leave_room(self, room_id: str, user_id: str) -> None:
        with translate_store_errors("leave_room"):
            strategy = await self.get_leave_strategy()
            deleted = await strategy.leave(room_id, user_id)

        logger.info(f"대화방 나가기 완료: room_id={room_id}, user_id={user_id}, deleted={deleted}")

    async def get_leave_strategy(self) -> LeaveStrategy:
        # 토폴로지 확인은 처음 한 번만
        if self._leave_strategy is not None:
            return self._leave_strategy

        async with self._strategy_lock:
            if self._leave_strategy is None:
                if await self.mongodb.supports_transactions():
                    self._leave_strategy = AtomicLeaveStrategy(self.room_service, self.mongodb)
                else:
                    self._leave_strategy = BestEffortLeaveStrategy(self.room_service)
                logger.info(f"대화방 나가기 전략 선택: {type(self._leave_strategy).__name__}")

        return self._leave_strategy
