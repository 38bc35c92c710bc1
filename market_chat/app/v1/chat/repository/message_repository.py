import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClientSession
from odmantic import query

from market_chat.app.common.utils.consts import MessageType
from market_chat.app.common.utils.date import utc_now
from market_chat.app.common.utils.pagination import Page, PaginationOptions, paginate
from market_chat.app.v1.chat.entity.message import MessageDocument
from market_chat.app.v1.chat.mapper.message_mapper import to_message, to_messages
from market_chat.app.v1.chat.schema.message_response import Message
from market_chat.config.database.mongo import MongoDB

logger = logging.getLogger(__name__)


class MessageRepository:
    SORTABLE_FIELDS = {
        "createdAt": MessageDocument.created_at,
        "updatedAt": MessageDocument.updated_at,
        "readAt": MessageDocument.read_at,
    }

    def __init__(self, mongodb: MongoDB):
        self.mongodb = mongodb

    @property
    def engine(self):
        return self.mongodb.engine

    @property
    def collection(self):
        return self.engine.get_collection(MessageDocument)

    async def create(
        self,
        room_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        file_url: str | None = None,
        file_name: str | None = None,
    ) -> Message:
        """메시지 저장 (readAt = None)"""
        now = utc_now()
        message = MessageDocument(
            conversation_id=room_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            message_type=message_type,
            read_at=None,
            file_url=file_url,
            file_name=file_name,
            created_at=now,
            updated_at=now,
        )
        saved = await self.engine.save(message)
        return to_message(saved)

    async def find_by_room(self, room_id: str, pagination: PaginationOptions) -> Page[Message]:
        """대화방 메시지 히스토리 조회 (페이지네이션)"""
        try:
            sort_field = self.SORTABLE_FIELDS[pagination.sort_by]
        except KeyError:
            raise ValueError(f"정렬할 수 없는 필드입니다: {pagination.sort_by}") from None

        # 같은 시각의 메시지가 페이지 사이에서 겹치거나 빠지지 않도록 _id 를 보조 정렬로 사용
        direction = query.asc if pagination.ascending else query.desc
        condition = MessageDocument.conversation_id == room_id

        docs, total = await asyncio.gather(
            self.engine.find(
                MessageDocument,
                condition,
                sort=(direction(sort_field), direction(MessageDocument.id)),
                skip=pagination.skip,
                limit=pagination.limit,
            ),
            self.engine.count(MessageDocument, condition),
        )
        return paginate(to_messages(docs), total, pagination)

    async def mark_all_read_for_receiver(self, room_id: str, receiver_id: str) -> int:
        """읽음 처리, 이미 읽은 메시지는 조건에서 빠지므로 다시 세지 않는다"""
        now = utc_now()
        result = await self.collection.update_many(
            {"conversationId": room_id, "receiverId": receiver_id, "readAt": None},
            {"$set": {"readAt": now, "updatedAt": now}},
        )
        return result.modified_count

    async def count_unread_for_receiver(self, room_id: str, user_id: str) -> int:
        """안읽은 메시지 수 조회"""
        return await self.engine.count(
            MessageDocument,
            {"conversationId": room_id, "receiverId": user_id, "readAt": None},
        )

    async def delete_by_room(self, room_id: str, session: AsyncIOMotorClientSession | None = None) -> int:
        result = await self.collection.delete_many({"conversationId": room_id}, session=session)
        logger.info(f"대화방 메시지 삭제: room_id={room_id}, count={result.deleted_count}")
        return result.deleted_count
