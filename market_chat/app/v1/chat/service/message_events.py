import asyncio
import logging
from typing import Awaitable, Callable

from market_chat.app.v1.chat.schema.message_response import MessageSentEvent
from market_chat.app.v1.chat.service.room_service import RoomService

logger = logging.getLogger(__name__)

MessageSentHandler = Callable[[MessageSentEvent], Awaitable[None]]


class MessageEventDispatcher:
    """
    메시지 전송 후처리 (프로세스 내부 이벤트)

    핸들러는 백그라운드 태스크로 실행된다. 메시지 저장과는 별개의 쓰기이므로
    핸들러가 실패해도 발신자에게 오류를 돌려주지 않고 로그만 남긴다.
    """

    def __init__(self):
        self._handlers: list[tuple[str, MessageSentHandler]] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, name: str, handler: MessageSentHandler):
        self._handlers.append((name, handler))

    def publish(self, event: MessageSentEvent):
        for name, handler in self._handlers:
            task = asyncio.create_task(self._run(name, handler, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self):
        """실행 중인 핸들러가 모두 끝날 때까지 대기 (종료 시, 테스트에서 사용)"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _run(self, name: str, handler: MessageSentHandler, event: MessageSentEvent):
        try:
            await handler(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"{name} 처리 실패: room_id={event.room_id}, message_id={event.message_id}, error={e}")


class UpdateLastMessageHandler:
    """채팅방의 마지막 메시지 정보 업데이트"""

    name = "UpdateLastMessageHandler"

    def __init__(self, room_service: RoomService):
        self.room_service = room_service

    async def __call__(self, event: MessageSentEvent):
        await self.room_service.update_last_message(event.room_id, event.content, event.message_id)
        logger.info(f"채팅방 마지막 메시지 업데이트 완료: {event.room_id}")
