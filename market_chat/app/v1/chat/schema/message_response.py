from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from market_chat.app.common.utils.consts import MessageType


class Message(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    message_type: MessageType
    read_at: datetime | None = None
    file_url: str | None = None
    file_name: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


class MessageSentEvent(BaseModel):
    room_id: str
    message_id: str
    sender_id: str
    receiver_id: str
    content: str
    message_type: MessageType
