import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

# users / products 테이블은 마켓 본 서비스 소유, 여기서는 조회만 한다
Base = declarative_base()


class PostgreSQL:
    def __init__(self, database_url: str | None = None, echo: bool | None = None):
        load_dotenv()

        self.database_url = database_url or os.environ.get("PG_DATABASE_URL")
        if echo is None:
            echo = os.environ.get("PG_ECHO", "false").lower() == "true"
        self.echo = echo

        self.__engine: AsyncEngine | None = None
        self.__session_factory: async_sessionmaker[AsyncSession] | None = None

    async def connect(self):
        if self.__engine:
            return
        # DATABASE_URL이 None인 경우 처리
        if self.database_url is None:
            raise ValueError("PG_DATABASE_URL environment variable is not set")

        self.__engine = create_async_engine(self.database_url, echo=self.echo)
        self.__session_factory = async_sessionmaker(
            bind=self.__engine,
            class_=AsyncSession,
            expire_on_commit=False,  # 트랜잭션 커밋 후에도 객체가 만료되지 않는 설정 값
            autoflush=False,
        )
        logger.info("PostgreSQL 엔진 생성 완료")

    async def close(self):
        if self.__engine:
            await self.__engine.dispose()
            logger.info("PostgreSQL 엔진 종료")
        self.__engine = None
        self.__session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self.__session_factory is None:
            raise RuntimeError("PostgreSQL is not connected. Call connect() first")
        async with self.__session_factory() as session:
            yield session
