from datetime import datetime
from typing import Optional

from odmantic import EmbeddedModel, Field

from market_chat.app.common.utils.date import utc_now


# chatrooms.participants 서브 도큐먼트 (_id 없음)
class ParticipantDocument(EmbeddedModel):
    user_id: str = Field(key_name="userId")
    joined_at: datetime = Field(default_factory=utc_now, key_name="joinedAt")
    # None 이면 참여 중
    left_at: Optional[datetime] = Field(default=None, key_name="leftAt")
