from datetime import datetime
from typing import Optional

from bson import ObjectId
from odmantic import Field, Model
from pymongo import ASCENDING, DESCENDING, IndexModel

from market_chat.app.common.utils.date import utc_now
from market_chat.app.v1.chat.entity.participant import ParticipantDocument


# MongoDB Collection
class ChatRoomDocument(Model):
    id: ObjectId = Field(default_factory=ObjectId, primary_field=True)
    product_id: str = Field(key_name="productId")
    participants: list[ParticipantDocument] = Field(default_factory=list)
    # 참여 중(leftAt == null)인 참가자 수, 대화방 조회 시 정확한 매칭에도 사용
    participants_count: int = Field(key_name="participantsCount")
    last_message: Optional[str] = Field(default=None, key_name="lastMessage")
    last_message_id: Optional[ObjectId] = Field(default=None, key_name="lastMessageId")
    # 대화방 목록 정렬용
    last_message_at: Optional[datetime] = Field(default=None, key_name="lastMessageAt")
    related_order_id: Optional[str] = Field(default=None, key_name="relatedOrderId")
    created_at: datetime = Field(default_factory=utc_now, key_name="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, key_name="updatedAt")

    model_config = {
        "collection": "chatrooms",
        "indexes": lambda: [
            IndexModel([("productId", ASCENDING), ("participants.userId", ASCENDING)]),
            IndexModel([("participants.userId", ASCENDING)]),
            IndexModel([("lastMessageAt", DESCENDING)]),
        ],
    }
