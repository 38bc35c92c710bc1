from market_chat.app.v1.chat.repository.message_repository import MessageRepository
from market_chat.app.v1.chat.repository.room_repository import RoomRepository
from market_chat.app.v1.chat.service.chat import ChatService
from market_chat.app.v1.chat.service.collaborators import ProductCatalog, UserDirectory
from market_chat.app.v1.chat.service.leave_strategy import LeaveStrategy
from market_chat.app.v1.chat.service.message_events import MessageEventDispatcher, UpdateLastMessageHandler
from market_chat.app.v1.chat.service.message_service import MessageService
from market_chat.app.v1.chat.service.room_service import RoomService
from market_chat.app.v1.product.repository.product_repository import ProductRepository
from market_chat.app.v1.user.repository.user_repository import UserRepository
from market_chat.config.database.mongo import MongoDB
from market_chat.config.database.postgresql import PostgreSQL


def get_user_directory(postgresql: PostgreSQL) -> UserDirectory:
    return UserRepository(postgresql)


def get_product_catalog(postgresql: PostgreSQL) -> ProductCatalog:
    return ProductRepository(postgresql)


def get_room_service(
    mongodb: MongoDB,
    user_directory: UserDirectory,
    product_catalog: ProductCatalog,
) -> RoomService:
    return RoomService(
        RoomRepository(mongodb),
        MessageRepository(mongodb),
        user_directory,
        product_catalog,
    )


def get_message_service(
    mongodb: MongoDB,
    room_service: RoomService,
    user_directory: UserDirectory,
    dispatcher: MessageEventDispatcher,
) -> MessageService:
    return MessageService(MessageRepository(mongodb), room_service, user_directory, dispatcher)


def get_chat_service(
    mongodb: MongoDB,
    user_directory: UserDirectory,
    product_catalog: ProductCatalog,
    dispatcher: MessageEventDispatcher | None = None,
    leave_strategy: LeaveStrategy | None = None,
) -> ChatService:
    dispatcher = dispatcher or MessageEventDispatcher()

    room_service = get_room_service(mongodb, user_directory, product_catalog)
    message_service = get_message_service(mongodb, room_service, user_directory, dispatcher)

    handler = UpdateLastMessageHandler(room_service)
    dispatcher.subscribe(handler.name, handler)

    return ChatService(room_service, message_service, mongodb, leave_strategy)
