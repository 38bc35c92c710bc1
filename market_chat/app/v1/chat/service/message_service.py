import logging

from market_chat.app.common.utils.consts import MessageType
from market_chat.app.common.utils.pagination import Page, PaginationOptions
from market_chat.app.v1.chat.repository.message_repository import MessageRepository
from market_chat.app.v1.chat.schema.message_response import Message, MessageSentEvent
from market_chat.app.v1.chat.service.collaborators import UserDirectory
from market_chat.app.v1.chat.service.message_events import MessageEventDispatcher
from market_chat.app.v1.chat.service.room_service import RoomService

logger = logging.getLogger(__name__)


class MessageService:

    def __init__(
        self,
        message_repository: MessageRepository,
        room_service: RoomService,
        user_directory: UserDirectory,
        dispatcher: MessageEventDispatcher,
    ):
        self.message_repository = message_repository
        self.room_service = room_service
        self.user_directory = user_directory
        self.dispatcher = dispatcher

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
        # 사용자 존재 유무 확인
        await self.user_directory.ensure_user_exists(sender_id)
        await self.user_directory.ensure_user_exists(receiver_id)

        # 대화방 존재 확인
        await self.room_service.ensure_chat_room_exists(room_id)

        message = await self.message_repository.create(
            room_id,
            sender_id,
            receiver_id,
            content,
            message_type,
            file_url,
            file_name,
        )

        # 대화방 lastMessage 갱신은 별도 쓰기 (메시지 저장과 트랜잭션으로 묶지 않음)
        self.dispatcher.publish(
            MessageSentEvent(
                room_id=room_id,
                message_id=message.id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                message_type=message_type,
            )
        )
        return message

    async def list_messages(self, room_id: str, pagination: PaginationOptions) -> Page[Message]:
        await self.room_service.ensure_chat_room_exists(room_id)
        return await self.message_repository.find_by_room(room_id, pagination)

    async def mark_messages_as_read(self, room_id: str, user_id: str) -> int:
        return await self.message_repository.mark_all_read_for_receiver(room_id, user_id)

    async def count_unread_messages_by_room(self, room_id: str, user_id: str) -> int:
        return await self.message_repository.count_unread_for_receiver(room_id, user_id)
