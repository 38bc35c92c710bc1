from typing import Iterable

from market_chat.app.v1.chat.entity.participant import ParticipantDocument
from market_chat.app.v1.chat.entity.room import ChatRoomDocument
from market_chat.app.v1.chat.schema.room_response import ChatRoom, Participant


def to_participant(doc: ParticipantDocument) -> Participant:
    return Participant(
        user_id=doc.user_id,
        joined_at=doc.joined_at,
        left_at=doc.left_at,  # None == 참여 중
    )


def to_chat_room(doc: ChatRoomDocument) -> ChatRoom:
    """
    chatrooms 도큐먼트 -> ChatRoom 엔티티

    - id, lastMessageId: ObjectId -> str (lastMessageId 없으면 None)
    - lastMessage, lastMessageAt, relatedOrderId: 값이 없으면 None 유지 (빈 문자열로 바꾸지 않음)
    - participantsCount: 저장된 값을 그대로 사용 (저장소가 유지하는 불변식)
    """
    return ChatRoom(
        id=str(doc.id),
        product_id=doc.product_id,
        participants=[to_participant(p) for p in doc.participants],
        participants_count=doc.participants_count,
        last_message=doc.last_message,
        last_message_id=str(doc.last_message_id) if doc.last_message_id is not None else None,
        last_message_at=doc.last_message_at,
        related_order_id=doc.related_order_id,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def to_chat_room_or_none(doc: ChatRoomDocument | None) -> ChatRoom | None:
    if doc is None:
        return None
    return to_chat_room(doc)


def to_chat_rooms(docs: Iterable[ChatRoomDocument]) -> list[ChatRoom]:
    return [to_chat_room(doc) for doc in docs]
