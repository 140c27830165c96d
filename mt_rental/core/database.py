"""
Central DB 연결 및 세션 관리

테넌트 레지스트리(메인 DB) 연결을 관리합니다.
테넌트 DB 연결은 cache.TenantConnectionCache가 담당합니다.
"""

import logging
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager
from sqlalchemy.engine import make_url, URL
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker

from ..config import DatabaseConfig, get_config, mask_url
from .models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Central DB 매니저

    엔진은 init_central_db()에서 생성되고 close()에서 해제됩니다.
    """

    def __init__(self, central_db_url: Optional[str] = None, config: Optional[DatabaseConfig] = None):
        self.config = config or get_config().database
        self.central_db_url = central_db_url or self.config.url

        self._central_engine: Optional[AsyncEngine] = None
        self._central_session_factory: Optional[async_sessionmaker] = None

    @property
    def central_url(self) -> URL:
        return make_url(self.central_db_url)

    @property
    def central_database_name(self) -> Optional[str]:
        return self.central_url.database

    async def init_central_db(self) -> None:
        """Central DB 엔진 생성"""
        if self._central_engine is not None:
            return

        self._central_engine = create_async_engine(
            self.central_db_url,
            echo=self.config.echo,
            pool_pre_ping=True,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_recycle=self.config.pool_recycle,
        )

        self._central_session_factory = async_sessionmaker(
            self._central_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(f"Central DB engine created: {mask_url(self.central_db_url)}")

    async def create_central_tables(self) -> None:
        """Central DB 테이블 생성"""
        await self.init_central_db()
        async with self._central_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def get_central_session(self):
        """Central DB 세션 획득"""
        if not self._central_session_factory:
            await self.init_central_db()

        async with self._central_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def admin_connect_params(self) -> Dict[str, Any]:
        """
        CREATE/DROP DATABASE용 asyncpg 접속 파라미터

        Central DB와 같은 서버에 접속합니다.
        """
        url = self.central_url
        return {
            "host": url.host or "localhost",
            "port": url.port or 5432,
            "user": url.username,
            "password": url.password,
            "database": url.database,
        }

    def tenant_db_url(self, database_name: str) -> str:
        """같은 서버의 다른 DB를 가리키는 연결 URL 생성"""
        return self.central_url.set(database=database_name).render_as_string(hide_password=False)

    async def check_connection(self) -> bool:
        """Central DB 연결 확인 (SELECT 1)"""
        from sqlalchemy import text

        await self.init_central_db()
        async with self._central_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def close(self) -> None:
        """Central DB 연결 종료"""
        if self._central_engine:
            await self._central_engine.dispose()
            self._central_engine = None
            self._central_session_factory = None
            logger.info("Central DB engine disposed")
