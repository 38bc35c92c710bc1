from datetime import datetime
from typing import Optional

from bson import ObjectId
from odmantic import Field, Model
from pymongo import ASCENDING, DESCENDING, IndexModel

from market_chat.app.common.utils.consts import MessageType
from market_chat.app.common.utils.date import utc_now


# MongoDB Collection
class MessageDocument(Model):
    id: ObjectId = Field(default_factory=ObjectId, primary_field=True)
    # 대화방 ID 문자열 (약한 참조, 저장소 FK 아님)
    conversation_id: str = Field(key_name="conversationId")
    sender_id: str = Field(key_name="senderId")
    receiver_id: str = Field(key_name="receiverId")
    content: str = Field(key_name="message")
    message_type: MessageType = Field(default=MessageType.TEXT, key_name="messageType")
    read_at: Optional[datetime] = Field(default=None, key_name="readAt")
    # IMAGE 타입에서만 의미 있음
    file_url: Optional[str] = Field(default=None, key_name="fileUrl")
    file_name: Optional[str] = Field(default=None, key_name="fileName")
    created_at: datetime = Field(default_factory=utc_now, key_name="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, key_name="updatedAt")

    model_config = {
        "collection": "messages",
        "indexes": lambda: [
            IndexModel([("conversationId", ASCENDING), ("createdAt", DESCENDING)]),
            IndexModel([("senderId", ASCENDING)]),
            IndexModel([("receiverId", ASCENDING)]),
            IndexModel([("readAt", ASCENDING)]),
        ],
    }
