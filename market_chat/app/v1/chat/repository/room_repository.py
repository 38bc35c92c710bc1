import asyncio
import logging

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClientSession
from odmantic import query

from market_chat.app.common.exceptions import InvariantViolationError
from market_chat.app.common.utils.consts import CHAT_ROOM_PARTICIPANTS
from market_chat.app.common.utils.date import utc_now
from market_chat.app.common.utils.pagination import Page, PaginationOptions, paginate
from market_chat.app.v1.chat.entity.participant import ParticipantDocument
from market_chat.app.v1.chat.entity.room import ChatRoomDocument
from market_chat.app.v1.chat.mapper.room_mapper import (
    to_chat_room,
    to_chat_room_or_none,
    to_chat_rooms,
)
from market_chat.app.v1.chat.schema.room_response import ChatRoom
from market_chat.config.database.mongo import MongoDB

logger = logging.getLogger(__name__)


def to_object_id(value: str) -> ObjectId | None:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class RoomRepository:
    # 외부에서 받는 sortBy(저장 필드명) -> 도큐먼트 필드
    SORTABLE_FIELDS = {
        "createdAt": ChatRoomDocument.created_at,
        "updatedAt": ChatRoomDocument.updated_at,
        "lastMessageAt": ChatRoomDocument.last_message_at,
    }

    def __init__(self, mongodb: MongoDB):
        self.mongodb = mongodb

    @property
    def engine(self):
        return self.mongodb.engine

    @property
    def collection(self):
        return self.engine.get_collection(ChatRoomDocument)

    async def find_or_create(self, sender_id: str, receiver_id: str, product_id: str) -> tuple[ChatRoom, bool]:
        """
        대화방 생성 또는 조회
        - 같은 상품, 같은 두 참여자(둘 다 참여 중)의 대화방이 있으면 기존 대화방 반환

        NOTE: 동시성 제어 미적용
        조회 후 생성이라 동시에 같은 요청이 오면 대화방이 2개 만들어질 수 있다.
        중복 생성 건수는 모니터링으로 추적하고, 락은 걸지 않는다.

        Returns:
            (대화방, 새로 생성했는지 여부)
        """
        existing = await self.engine.find_one(
            ChatRoomDocument,
            {
                "productId": product_id,
                # 두 사용자 모두 참여 중이고, 참여 중 인원이 정확히 2명
                "$and": [
                    {"participants": {"$elemMatch": {"userId": sender_id, "leftAt": None}}},
                    {"participants": {"$elemMatch": {"userId": receiver_id, "leftAt": None}}},
                ],
                "participantsCount": CHAT_ROOM_PARTICIPANTS,
            },
        )
        if existing is not None:
            return to_chat_room(existing), False

        now = utc_now()
        new_room = ChatRoomDocument(
            product_id=product_id,
            participants=[
                ParticipantDocument(user_id=sender_id, joined_at=now),
                ParticipantDocument(user_id=receiver_id, joined_at=now),
            ],
            participants_count=CHAT_ROOM_PARTICIPANTS,
            created_at=now,
            updated_at=now,
        )
        saved = await self.engine.save(new_room)
        logger.info(f"대화방 생성: room_id={saved.id}, product_id={product_id}")
        return to_chat_room(saved), True

    async def find_by_id(self, room_id: str, session: AsyncIOMotorClientSession | None = None) -> ChatRoom | None:
        object_id = to_object_id(room_id)
        if object_id is None:
            logger.warning(f"잘못된 대화방 ID 형식: {room_id}")
            return None

        doc = await self.engine.find_one(ChatRoomDocument, ChatRoomDocument.id == object_id, session=session)
        return to_chat_room_or_none(doc)

    async def find_by_user(self, user_id: str, pagination: PaginationOptions) -> Page[ChatRoom]:
        """대화방 목록 조회 (사용자 별, 나간 대화방 포함)"""
        sort_field = self._sort_field(pagination.sort_by)
        direction = query.asc if pagination.ascending else query.desc
        condition = {"participants.userId": user_id}

        docs, total = await asyncio.gather(
            self.engine.find(
                ChatRoomDocument,
                condition,
                sort=(direction(sort_field), direction(ChatRoomDocument.id)),
                skip=pagination.skip,
                limit=pagination.limit,
            ),
            self.engine.count(ChatRoomDocument, condition),
        )
        return paginate(to_chat_rooms(docs), total, pagination)

    async def mark_participant_left(
        self,
        room_id: str,
        user_id: str,
        session: AsyncIOMotorClientSession | None = None,
    ) -> None:
        """
        참여 중인 사용자의 leftAt 기록 + participantsCount 감소를 한 번의 업데이트로 처리
        - 이미 나간 사용자는 조건에 걸리지 않으므로 중복 감소가 일어나지 않는다
        """
        object_id = to_object_id(room_id)
        if object_id is None:
            raise InvariantViolationError(f"대화방을 찾을 수 없습니다: {room_id}")

        now = utc_now()
        result = await self.collection.update_one(
            {
                "_id": object_id,
                "participants": {"$elemMatch": {"userId": user_id, "leftAt": None}},
            },
            {
                "$set": {"participants.$.leftAt": now, "updatedAt": now},
                "$inc": {"participantsCount": -1},
            },
            session=session,
        )

        if result.matched_count == 0:
            raise InvariantViolationError(f"대화방 또는 참여 중인 사용자를 찾을 수 없습니다: room_id={room_id}, user_id={user_id}")
        if result.modified_count == 0:
            raise InvariantViolationError(f"이미 나간 사용자입니다: room_id={room_id}, user_id={user_id}")

        logger.info(f"대화방 나가기 처리: room_id={room_id}, user_id={user_id}")

    async def update_last_message(self, room_id: str, text: str, message_id: str) -> bool:
        """
        마지막 메시지 갱신
        - 새 메시지 전송 시 대화방 목록 정렬을 위해 사용
        """
        object_id = to_object_id(room_id)
        if object_id is None:
            logger.warning(f"잘못된 대화방 ID 형식: {room_id}")
            return False

        now = utc_now()
        result = await self.collection.update_one(
            {"_id": object_id},
            {
                "$set": {
                    "lastMessage": text,
                    "lastMessageId": ObjectId(message_id),
                    "lastMessageAt": now,
                    "updatedAt": now,
                }
            },
        )
        if result.matched_count == 0:
            logger.warning(f"마지막 메시지 갱신 대상 대화방이 없습니다: room_id={room_id}")
            return False
        return True

    async def delete(self, room_id: str, session: AsyncIOMotorClientSession | None = None) -> bool:
        object_id = to_object_id(room_id)
        if object_id is None:
            return False

        result = await self.collection.delete_one({"_id": object_id}, session=session)
        return result.deleted_count > 0

    def _sort_field(self, sort_by: str):
        try:
            return self.SORTABLE_FIELDS[sort_by]
        except KeyError:
            raise ValueError(f"정렬할 수 없는 필드입니다: {sort_by}") from None
