import logging
from contextlib import asynccontextmanager

from market_chat.app.common.factory import get_chat_service, get_product_catalog, get_user_directory
from market_chat.app.v1.chat.service.message_events import MessageEventDispatcher
from market_chat.config.database import MongoDB, PostgreSQL

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def chat_lifespan(mongodb: MongoDB | None = None, postgresql: PostgreSQL | None = None):
    """
    DB 연결 -> 인덱스 생성 -> ChatService 생성

    종료 시 남아 있는 백그라운드 작업을 기다린 뒤 연결을 닫는다.
    """
    mongodb = mongodb or MongoDB()
    postgresql = postgresql or PostgreSQL()
    dispatcher = MessageEventDispatcher()

    try:
        await mongodb.connect()
        await mongodb.configure_database()
        await postgresql.connect()

        chat_service = get_chat_service(
            mongodb,
            get_user_directory(postgresql),
            get_product_catalog(postgresql),
            dispatcher=dispatcher,
        )
        logger.info("채팅 서비스 시작")
        yield chat_service
    finally:
        await dispatcher.drain()
        await postgresql.close()
        await mongodb.close()
        logger.info("채팅 서비스 종료")
