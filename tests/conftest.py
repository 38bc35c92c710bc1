from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId

from market_chat.app.common.exceptions import InvariantViolationError, NotFoundError
from market_chat.app.common.utils.consts import CHAT_ROOM_PARTICIPANTS, MessageType
from market_chat.app.common.utils.date import utc_now
from market_chat.app.common.utils.pagination import PaginationOptions, paginate
from market_chat.app.v1.chat.schema.message_response import Message
from market_chat.app.v1.chat.schema.room_response import ChatRoom, Participant
from market_chat.app.v1.chat.service.chat import ChatService
from market_chat.app.v1.chat.service.leave_strategy import BestEffortLeaveStrategy
from market_chat.app.v1.chat.service.message_events import MessageEventDispatcher, UpdateLastMessageHandler
from market_chat.app.v1.chat.service.message_service import MessageService
from market_chat.app.v1.chat.service.room_service import RoomService

SELLER_ID = "seller-1"
BUYER_ID = "buyer-1"
OTHER_USER_ID = "user-9"
PRODUCT_ID = "product-1"


class FakeUserDirectory:
    def __init__(self, user_ids):
        self.user_ids = set(user_ids)

    async def ensure_user_exists(self, user_id: str) -> None:
        if user_id not in self.user_ids:
            raise NotFoundError("사용자를 찾을 수 없습니다")


class FakeProductCatalog:
    def __init__(self, product_ids):
        self.product_ids = set(product_ids)

    async def ensure_product_exists(self, product_id: str) -> None:
        if product_id not in self.product_ids:
            raise NotFoundError("상품을 찾을 수 없습니다")


def _sorted_page(items, pagination: PaginationOptions):
    # 정렬 필드 + id 보조 정렬, None 은 가장 앞
    def key(item):
        value = getattr(item, _camel_to_snake(pagination.sort_by))
        return (value is not None, value if value is not None else 0, item.id)

    ordered = sorted(items, key=key, reverse=not pagination.ascending)
    return ordered[pagination.skip : pagination.skip + pagination.limit]


def _camel_to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


class InMemoryRoomRepository:
    """RoomRepository 와 같은 메서드를 가진 메모리 저장소 (시나리오 테스트용)"""

    SORTABLE_FIELDS = {"createdAt", "updatedAt", "lastMessageAt"}

    def __init__(self):
        self.rooms: dict[str, ChatRoom] = {}

    async def find_or_create(self, sender_id, receiver_id, product_id):
        for room in self.rooms.values():
            if (
                room.product_id == product_id
                and room.participants_count == CHAT_ROOM_PARTICIPANTS
                and {sender_id, receiver_id} <= room.active_participant_ids()
            ):
                return room.model_copy(deep=True), False

        now = utc_now()
        room = ChatRoom(
            id=str(ObjectId()),
            product_id=product_id,
            participants=[
                Participant(user_id=sender_id, joined_at=now),
                Participant(user_id=receiver_id, joined_at=now),
            ],
            participants_count=CHAT_ROOM_PARTICIPANTS,
            created_at=now,
            updated_at=now,
        )
        self.rooms[room.id] = room
        return room.model_copy(deep=True), True

    async def find_by_id(self, room_id, session=None):
        room = self.rooms.get(room_id)
        return room.model_copy(deep=True) if room else None

    async def find_by_user(self, user_id, pagination):
        if pagination.sort_by not in self.SORTABLE_FIELDS:
            raise ValueError(f"정렬할 수 없는 필드입니다: {pagination.sort_by}")
        rooms = [r for r in self.rooms.values() if any(p.user_id == user_id for p in r.participants)]
        items = [r.model_copy(deep=True) for r in _sorted_page(rooms, pagination)]
        return paginate(items, len(rooms), pagination)

    async def mark_participant_left(self, room_id, user_id, session=None):
        room = self.rooms.get(room_id)
        participant = None
        if room is not None:
            participant = next((p for p in room.participants if p.user_id == user_id and p.is_active), None)
        if participant is None:
            raise InvariantViolationError(f"대화방 또는 참여 중인 사용자를 찾을 수 없습니다: room_id={room_id}")

        now = utc_now()
        participant.left_at = now
        room.participants_count -= 1
        room.updated_at = now

    async def update_last_message(self, room_id, text, message_id):
        room = self.rooms.get(room_id)
        if room is None:
            return False
        now = utc_now()
        room.last_message = text
        room.last_message_id = message_id
        room.last_message_at = now
        room.updated_at = now
        return True

    async def delete(self, room_id, session=None):
        return self.rooms.pop(room_id, None) is not None


class InMemoryMessageRepository:
    """MessageRepository 와 같은 메서드를 가진 메모리 저장소 (시나리오 테스트용)"""

    SORTABLE_FIELDS = {"createdAt", "updatedAt", "readAt"}

    def __init__(self):
        self.messages: dict[str, Message] = {}

    async def create(
        self,
        room_id,
        sender_id,
        receiver_id,
        content,
        message_type=MessageType.TEXT,
        file_url=None,
        file_name=None,
    ):
        now = utc_now()
        message = Message(
            id=str(ObjectId()),
            conversation_id=room_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            message_type=message_type,
            file_url=file_url,
            file_name=file_name,
            created_at=now,
            updated_at=now,
        )
        self.messages[message.id] = message
        return message.model_copy()

    async def find_by_room(self, room_id, pagination):
        if pagination.sort_by not in self.SORTABLE_FIELDS:
            raise ValueError(f"정렬할 수 없는 필드입니다: {pagination.sort_by}")
        messages = self.in_room(room_id)
        items = [m.model_copy() for m in _sorted_page(messages, pagination)]
        return paginate(items, len(messages), pagination)

    async def mark_all_read_for_receiver(self, room_id, receiver_id):
        now = utc_now()
        modified = 0
        for message in self.in_room(room_id):
            if message.receiver_id == receiver_id and message.read_at is None:
                message.read_at = now
                message.updated_at = now
                modified += 1
        return modified

    async def count_unread_for_receiver(self, room_id, user_id):
        return sum(1 for m in self.in_room(room_id) if m.receiver_id == user_id and m.read_at is None)

    async def delete_by_room(self, room_id, session=None):
        ids = [m.id for m in self.in_room(room_id)]
        for message_id in ids:
            del self.messages[message_id]
        return len(ids)

    def in_room(self, room_id):
        return [m for m in self.messages.values() if m.conversation_id == room_id]



class FakeTransaction:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        self.session.events.append("start_transaction")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.session.events.append("abort_transaction" if exc_type else "commit_transaction")
        return False


class FakeSession:
    """motor AsyncIOMotorClientSession 대역 (start_transaction 은 동기 호출)"""

    def __init__(self):
        self.events = []

    def start_transaction(self):
        return FakeTransaction(self)

    async def __aenter__(self):
        self.events.append("start_session")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.events.append("end_session")
        return False


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def user_directory():
    return FakeUserDirectory({SELLER_ID, BUYER_ID, OTHER_USER_ID})


@pytest.fixture
def product_catalog():
    return FakeProductCatalog({PRODUCT_ID})


@pytest.fixture
def room_store():
    return InMemoryRoomRepository()


@pytest.fixture
def message_store():
    return InMemoryMessageRepository()


@pytest_asyncio.fixture
async def chat(room_store, message_store, user_directory, product_catalog):
    """메모리 저장소 위에 실제 서비스를 조립한 ChatService (best-effort 나가기)"""
    dispatcher = MessageEventDispatcher()
    room_service = RoomService(room_store, message_store, user_directory, product_catalog)
    message_service = MessageService(message_store, room_service, user_directory, dispatcher)

    handler = UpdateLastMessageHandler(room_service)
    dispatcher.subscribe(handler.name, handler)

    mongodb = MagicMock()
    mongodb.supports_transactions = AsyncMock(return_value=False)

    chat_service = ChatService(
        room_service,
        message_service,
        mongodb,
        leave_strategy=BestEffortLeaveStrategy(room_service),
    )
    yield chat_service
    await dispatcher.drain()


@pytest.fixture
def mock_engine():
    """odmantic AIOEngine 대역 (find/count/save 는 AsyncMock, get_collection 은 collection 반환)"""
    engine = MagicMock()
    engine.find_one = AsyncMock(return_value=None)
    engine.find = AsyncMock(return_value=[])
    engine.count = AsyncMock(return_value=0)
    engine.save = AsyncMock(side_effect=lambda doc: doc)

    collection = MagicMock()
    collection.update_one = AsyncMock()
    collection.update_many = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.delete_many = AsyncMock()
    engine.get_collection.return_value = collection
    return engine


@pytest.fixture
def mock_mongodb(mock_engine):
    mongodb = MagicMock()
    mongodb.engine = mock_engine
    return mongodb
