import logging
import os
from typing import Any

from dotenv import load_dotenv
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from odmantic import AIOEngine
from pymongo.errors import PyMongoError

from market_chat.app.v1.chat.entity.message import MessageDocument
from market_chat.app.v1.chat.entity.room import ChatRoomDocument

logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [ChatRoomDocument, MessageDocument]


class MongoDB:
    def __init__(
        self,
        mongo_url: str | None = None,
        mongo_db_name: str | None = None,
        client: Any | None = None,
    ):
        # .env 파일에서 환경 변수 로드
        load_dotenv()

        # 인자로 받은 값이 우선, 없으면 환경 변수
        self.mongo_url = mongo_url or os.getenv("MONGO_URL", "mongodb://localhost:27017")
        self.mongo_db_name = mongo_db_name or os.getenv("MONGO_DB_NAME", "market")
        self.mongo_max_connections = int(os.getenv("MONGO_MAX_CONNECTIONS", 10))
        self.mongo_min_connections = int(os.getenv("MONGO_MIN_CONNECTIONS", 1))

        # 미리 만든 클라이언트를 주입할 수 있다 (테스트, 공유 커넥션 풀)
        self.__client: AsyncIOMotorClient | None = client
        self.__engine: AIOEngine | None = None

    @property
    def client(self) -> AsyncIOMotorClient:
        if self.__client is None or self.__engine is None:
            raise RuntimeError("MongoDB is not connected. Call connect() first")
        return self.__client

    @property
    def engine(self) -> AIOEngine:
        if self.__engine is None:
            raise RuntimeError("MongoDB is not connected. Call connect() first")
        return self.__engine

    @property
    def is_connected(self) -> bool:
        return self.__engine is not None

    async def connect(self):
        """MongoDB에 연결합니다."""
        if self.__engine:
            return
        if not self.__client:
            self.__client = AsyncIOMotorClient(
                self.mongo_url,
                maxPoolSize=self.mongo_max_connections,
                minPoolSize=self.mongo_min_connections,
            )
        self.__engine = AIOEngine(client=self.__client, database=self.mongo_db_name)
        logger.info(f"MongoDB 연결 완료: db={self.mongo_db_name}")

    async def close(self):
        """
        Close MongoDB Connection
        """
        if self.__client:
            self.__client.close()
            logger.info("MongoDB 연결 종료")
        self.__client = None
        self.__engine = None

    async def configure_database(self):
        """도큐먼트 모델에 선언된 인덱스를 생성합니다."""
        await self.engine.configure_database(DOCUMENT_MODELS)

    async def start_session(self) -> AsyncIOMotorClientSession:
        return await self.client.start_session()

    async def supports_transactions(self) -> bool:
        """
        현재 배포 형태가 멀티 도큐먼트 트랜잭션을 지원하는지 확인합니다.

        Replica Set 멤버(setName 존재) 또는 mongos 라우터(msg == "isdbgrid")만
        트랜잭션을 지원합니다. Standalone 이거나 확인에 실패하면 False.
        """
        try:
            hello = await self.client.admin.command("hello")
        except PyMongoError as e:
            logger.warning(f"MongoDB 토폴로지 확인 실패, 트랜잭션 미지원으로 처리합니다: {e}")
            return False

        return "setName" in hello or hello.get("msg") == "isdbgrid"
