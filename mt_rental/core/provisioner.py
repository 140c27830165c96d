"""
테넌트 DB 프로비저닝

새 가맹점 등록 시 격리된 테넌트 DB를 만들고 스키마를 적용합니다.
"""

import logging
from typing import Optional

import asyncpg
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import create_async_engine

from ..config import to_async_url, mask_url
from .database import DatabaseManager
from .exceptions import ProvisioningError, TenantDatabaseExistsError
from .subdomain import database_name_for
from .tenant_schema import TenantBase

logger = logging.getLogger(__name__)


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class TenantProvisioner:
    """
    테넌트 DB 프로비저너

    drop_existing=True(기본)이면 같은 이름의 DB가 있을 때 삭제 후 다시 만듭니다.
    같은 서브도메인을 두 번 프로비저닝해도 최종 스키마는 같지만 기존 데이터는
    사라지므로, 호출 전에 레지스트리에서 서브도메인 중복을 확인해야 합니다.

    Example:
        provisioner = TenantProvisioner(db_manager)
        database_url = await provisioner.provision("acme", merchant_id=42)
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        drop_existing: bool = True,
        metadata: Optional[MetaData] = None,
    ):
        self.db = db_manager
        self.drop_existing = drop_existing
        self.metadata = metadata if metadata is not None else TenantBase.metadata

    async def _connect_admin(self) -> asyncpg.Connection:
        return await asyncpg.connect(**self.db.admin_connect_params())

    async def _recreate_database(self, db_name: str) -> None:
        conn = await self._connect_admin()
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1",
                db_name
            )

            if exists:
                if not self.drop_existing:
                    raise TenantDatabaseExistsError(db_name)
                logger.warning(f"Dropping existing tenant database: {db_name}")
                await conn.execute(f"DROP DATABASE IF EXISTS {_quote_ident(db_name)}")

            await conn.execute(f"CREATE DATABASE {_quote_ident(db_name)}")
            logger.info(f"Created database: {db_name}")
        finally:
            await conn.close()

    async def _apply_schema(self, database_url: str) -> None:
        engine = create_async_engine(database_url, pool_pre_ping=True)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(self.metadata.create_all)
        finally:
            await engine.dispose()

    async def provision(self, subdomain: str, merchant_id: Optional[int] = None) -> str:
        """
        테넌트 DB 생성 및 스키마 적용

        Args:
            subdomain: 테넌트 서브도메인
            merchant_id: 소유 가맹점 ID (로그용)

        Returns:
            테넌트 DB 연결 URL

        Raises:
            TenantDatabaseExistsError: drop_existing=False인데 DB가 이미 존재
            ProvisioningError: DB 생성 또는 스키마 적용 실패
        """
        db_name = database_name_for(subdomain)
        logger.info(f"Provisioning tenant database: {db_name} (merchant={merchant_id})")

        try:
            await self._recreate_database(db_name)

            database_url = to_async_url(self.db.tenant_db_url(db_name))
            await self._apply_schema(database_url)
        except ProvisioningError:
            raise
        except Exception as e:
            logger.error(f"Provisioning failed for {db_name}: {e}")
            raise ProvisioningError(db_name, str(e)) from e

        logger.info(f"Migrated database: {db_name} -> {mask_url(database_url)}")
        return database_url
