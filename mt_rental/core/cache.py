"""
테넌트 연결 캐시

테넌트 키 → 테넌트 전용 DB 연결 핸들 매핑을 프로세스 안에서 관리합니다.

- 최초 접근 시 생성, 이후 같은 핸들을 재사용
- 같은 키의 동시 최초 접근은 키별 Lock으로 하나만 생성
- LRU(max_size) + 선택적 TTL, invalidate()로 명시적 무효화
"""

import asyncio
import logging
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional, Dict, Any, Callable, List

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker

from ..config import to_async_url, mask_url
from .exceptions import TenantIsolationError
from .registry import TenantRegistry
from .schemas import TenantRecord

logger = logging.getLogger(__name__)


class TenantConnection:
    """
    테넌트 DB 연결 핸들

    하나의 테넌트 DB에만 바인딩된 엔진과 세션 팩토리를 묶습니다.
    """

    def __init__(self, tenant_key: str, database_url: str, engine: AsyncEngine):
        self.tenant_key = tenant_key
        self.database_url = database_url
        self.engine = engine
        self.created_at = datetime.utcnow()
        self._created_monotonic = time.monotonic()
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def __repr__(self):
        return f"<TenantConnection(tenant={self.tenant_key}, url={mask_url(self.database_url)})>"

    @asynccontextmanager
    async def session(self):
        """테넌트 DB 세션 획득 (성공 시 commit, 예외 시 rollback)"""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        """
        엔진 해제

        풀에 반납된 연결은 즉시 닫히고, 사용 중인 연결은 요청이 끝나
        반납될 때 닫힙니다.
        """
        await self.engine.dispose()


class TenantConnectionCache:
    """
    테넌트 연결 캐시

    앱 시작 시 생성해 주입하고, 종료 시 close()로 모든 엔진을 해제합니다.

    Example:
        cache = TenantConnectionCache(registry, central_database="rentalshop_main")

        conn = await cache.acquire("acme")
        async with conn.session() as session:
            ...

        await cache.invalidate("acme")  # 상태/연결 정보 변경 시
    """

    def __init__(
        self,
        registry: TenantRegistry,
        central_database: Optional[str] = None,
        max_size: int = 100,
        ttl_seconds: float = 0,
        engine_options: Optional[Dict[str, Any]] = None,
        engine_factory: Callable[..., AsyncEngine] = create_async_engine,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")

        self._registry = registry
        self._central_database = central_database
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._engine_options = engine_options if engine_options is not None else {"pool_pre_ping": True}
        self._engine_factory = engine_factory
        self._clock = clock

        self._entries: "OrderedDict[str, TenantConnection]" = OrderedDict()
        self._expires: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def __contains__(self, tenant_key: str) -> bool:
        return tenant_key.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def cached_keys(self) -> List[str]:
        """캐시된 테넌트 키 목록 (오래된 순)"""
        return list(self._entries.keys())

    def _is_expired(self, key: str) -> bool:
        expires_at = self._expires.get(key)
        return expires_at is not None and self._clock() >= expires_at

    def _pop(self, key: str) -> Optional[TenantConnection]:
        self._expires.pop(key, None)
        return self._entries.pop(key, None)

    async def _lookup(self, key: str) -> Optional[TenantConnection]:
        conn = self._entries.get(key)
        if conn is None:
            return None

        if self._is_expired(key):
            self._pop(key)
            logger.debug(f"Tenant connection expired: {key}")
            await conn.dispose()
            return None

        self._entries.move_to_end(key)
        return conn

    def _open(self, key: str, database_url: str) -> TenantConnection:
        url = to_async_url(database_url)
        if self._central_database and make_url(url).database == self._central_database:
            raise TenantIsolationError(
                f"Tenant {key} database URL points at the central registry database"
            )

        engine = self._engine_factory(url, **self._engine_options)
        logger.info(f"Tenant connection opened: {key} -> {mask_url(url)}")
        return TenantConnection(key, url, engine)

    async def acquire(self, tenant_key: str, tenant: Optional[TenantRecord] = None) -> TenantConnection:
        """
        테넌트 연결 핸들 반환

        캐시에 있으면 그대로 반환하고 상태를 다시 검증하지 않습니다.
        없으면 tenant 레코드(주어진 경우) 또는 레지스트리 조회 결과의
        database_url로 새 연결을 만들어 캐시에 넣습니다.

        Raises:
            TenantNotFoundError, TenantInactiveError, TenantSubscriptionError:
                레지스트리 조회 실패 (캐시에 아무것도 추가되지 않음)
            TenantIsolationError: database_url이 Central DB를 가리킴
        """
        key = tenant_key.lower()

        conn = await self._lookup(key)
        if conn is not None:
            logger.debug(f"Tenant connection cache hit: {key}")
            return conn

        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1

        evicted = []
        try:
            async with lock:
                # 대기 중 다른 요청이 이미 생성했을 수 있음
                conn = await self._lookup(key)
                if conn is not None:
                    return conn

                logger.debug(f"Tenant connection cache miss: {key}")
                record = tenant if tenant is not None else await self._registry.resolve(tenant_key=key)

                conn = self._open(key, record.database_url)
                self._entries[key] = conn
                if self.ttl_seconds > 0:
                    self._expires[key] = self._clock() + self.ttl_seconds

                while len(self._entries) > self.max_size:
                    old_key, old_conn = self._entries.popitem(last=False)
                    self._expires.pop(old_key, None)
                    evicted.append((old_key, old_conn))
        finally:
            self._release_lock(key)

        for old_key, old_conn in evicted:
            logger.info(f"Tenant connection evicted (LRU): {old_key}")
            await old_conn.dispose()

        return conn

    def _release_lock(self, key: str) -> None:
        # 기다리는 요청이 없으면 락도 제거 (없는 테넌트 키로 락이 쌓이지 않도록)
        users = self._lock_users.get(key, 0) - 1
        if users > 0:
            self._lock_users[key] = users
        else:
            self._lock_users.pop(key, None)
            self._locks.pop(key, None)

    def peek(self, tenant_key: str) -> Optional[TenantConnection]:
        """생성 없이 캐시된 핸들만 조회"""
        return self._entries.get(tenant_key.lower())

    async def invalidate(self, tenant_key: str) -> bool:
        """
        캐시 항목 무효화

        테넌트 상태나 연결 정보가 바뀌었을 때 호출합니다.
        다음 acquire()는 레지스트리를 다시 조회합니다.
        """
        key = tenant_key.lower()
        conn = self._pop(key)
        if conn is None:
            return False

        logger.info(f"Tenant connection invalidated: {key}")
        await conn.dispose()
        return True

    async def clear(self) -> None:
        """모든 연결 해제 (종료/테스트 정리용)"""
        entries = list(self._entries.items())
        self._entries.clear()
        self._expires.clear()

        for key, conn in entries:
            try:
                await conn.dispose()
            except Exception:
                logger.exception(f"Failed to dispose tenant connection: {key}")

        if entries:
            logger.info(f"Tenant connection cache cleared ({len(entries)} connections)")

    async def close(self) -> None:
        await self.clear()
