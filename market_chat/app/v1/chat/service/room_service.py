import logging

from motor.motor_asyncio import AsyncIOMotorClientSession

from market_chat.app.common.exceptions import ForbiddenError, NotFoundError
from market_chat.app.common.utils.pagination import Page, PaginationOptions
from market_chat.app.v1.chat.repository.message_repository import MessageRepository
from market_chat.app.v1.chat.repository.room_repository import RoomRepository
from market_chat.app.v1.chat.schema.room_response import ChatRoom, ChatRoomResult
from market_chat.app.v1.chat.service.collaborators import ProductCatalog, UserDirectory

logger = logging.getLogger(__name__)


class RoomService:

    def __init__(
        self,
        room_repository: RoomRepository,
        message_repository: MessageRepository,
        user_directory: UserDirectory,
        product_catalog: ProductCatalog,
    ):
        self.room_repository = room_repository
        self.message_repository = message_repository
        self.user_directory = user_directory
        self.product_catalog = product_catalog

    async def find_or_create_chat_room(self, sender_id: str, receiver_id: str, product_id: str) -> ChatRoomResult:
        """
        대화창 조회 및 생성

        Args:
            sender_id: 발신인 아이디
            receiver_id: 수신인 아이디
            product_id: 상품 아이디
        """
        # 사용자 존재 유무 확인
        await self.user_directory.ensure_user_exists(sender_id)
        await self.user_directory.ensure_user_exists(receiver_id)

        # 상품 존재 유무 확인
        await self.product_catalog.ensure_product_exists(product_id)

        chat_room, created = await self.room_repository.find_or_create(sender_id, receiver_id, product_id)
        return ChatRoomResult(chat_room=chat_room, created=created)

    async def ensure_chat_room_exists(self, room_id: str, session: AsyncIOMotorClientSession | None = None) -> ChatRoom:
        chat_room = await self.room_repository.find_by_id(room_id, session=session)
        if chat_room is None:
            raise NotFoundError("대화방을 찾을 수 없습니다")
        return chat_room

    async def ensure_user_can_access_chat_room(
        self,
        room_id: str,
        user_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> ChatRoom:
        chat_room = await self.ensure_chat_room_exists(room_id, session=session)
        if not chat_room.is_active_participant(user_id):
            logger.warning(f"대화방 접근 거부: room_id={room_id}, user_id={user_id}")
            raise ForbiddenError("대화방에 참여 중인 사용자가 아닙니다")
        return chat_room

    async def list_rooms_for_user(self, user_id: str, pagination: PaginationOptions) -> Page[ChatRoom]:
        return await self.room_repository.find_by_user(user_id, pagination)

    async def leave(self, room_id: str, user_id: str, session: AsyncIOMotorClientSession | None = None) -> bool:
        """
        대화방 나가기

        1. 대화방 존재 확인
        2. leftAt 기록 + participantsCount 감소
           (이미 나갔거나 참여자가 아니면 InvariantViolationError)
        3. 남은 참여자가 없으면 대화방 삭제 후 메시지 삭제

        session 이 주어지면 모든 읽기/쓰기를 같은 세션(트랜잭션)에서 실행한다.

        Returns:
            대화방이 삭제되었으면 True
        """
        await self.ensure_chat_room_exists(room_id, session=session)
        await self.room_repository.mark_participant_left(room_id, user_id, session=session)

        chat_room = await self.room_repository.find_by_id(room_id, session=session)
        if chat_room is not None and chat_room.participants_count > 0:
            return False

        await self.room_repository.delete(room_id, session=session)
        await self.message_repository.delete_by_room(room_id, session=session)
        logger.info(f"모든 참여자가 나가 대화방을 삭제했습니다: room_id={room_id}")
        return True

    async def update_last_message(self, room_id: str, text: str, message_id: str) -> bool:
        return await self.room_repository.update_last_message(room_id, text, message_id)
