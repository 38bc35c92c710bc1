from typing import Iterable

from market_chat.app.v1.chat.entity.message import MessageDocument
from market_chat.app.v1.chat.schema.message_response import Message


def to_message(doc: MessageDocument) -> Message:
    # content <- 저장 필드 "message", readAt/fileUrl/fileName 은 없으면 None
    return Message(
        id=str(doc.id),
        conversation_id=doc.conversation_id,
        sender_id=doc.sender_id,
        receiver_id=doc.receiver_id,
        content=doc.content,
        message_type=doc.message_type,
        read_at=doc.read_at,
        file_url=doc.file_url,
        file_name=doc.file_name,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def to_messages(docs: Iterable[MessageDocument]) -> list[Message]:
    return [to_message(doc) for doc in docs]
