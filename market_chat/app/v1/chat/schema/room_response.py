from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Participant(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    joined_at: datetime
    left_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.left_at is None


class ChatRoom(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    product_id: str
    participants: list[Participant]
    participants_count: int
    last_message: str | None = None
    last_message_id: str | None = None
    last_message_at: datetime | None = None
    related_order_id: str | None = None
    created_at: datetime
    updated_at: datetime

    def active_participant_ids(self) -> set[str]:
        return {p.user_id for p in self.participants if p.is_active}

    def is_active_participant(self, user_id: str) -> bool:
        return user_id in self.active_participant_ids()


class ChatRoomResult(BaseModel):
    """대화방 생성 또는 조회 결과 (created: 새로 만들었으면 True)"""

    chat_room: ChatRoom
    created: bool
