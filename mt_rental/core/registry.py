"""
테넌트 레지스트리 클라이언트

Central DB에서 테넌트 메타정보를 조회합니다. 읽기 전용입니다.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple
from sqlalchemy import select

from .database import DatabaseManager
from .exceptions import (
    TenantIdentifierMissing,
    TenantInactiveError,
    TenantNotFoundError,
    TenantSubscriptionError,
)
from .models import Tenant, TenantStatus
from .schemas import TenantRecord
from .subscription import SubscriptionAccess, check_subscription_access

logger = logging.getLogger(__name__)


class TenantRegistry:
    """
    테넌트 레지스트리

    Example:
        registry = TenantRegistry(db_manager)

        tenant = await registry.resolve(tenant_key="acme")
        print(tenant.database_url)
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    async def get_by_key(self, tenant_key: str) -> Optional[TenantRecord]:
        """테넌트 키(서브도메인)로 조회"""
        async with self.db.get_central_session() as session:
            result = await session.execute(
                select(Tenant).where(Tenant.subdomain == tenant_key.lower())
            )
            tenant = result.scalar_one_or_none()
            return TenantRecord.model_validate(tenant) if tenant else None

    async def get_by_id(self, tenant_id: str) -> Optional[TenantRecord]:
        """테넌트 ID로 조회"""
        async with self.db.get_central_session() as session:
            tenant = await session.get(Tenant, tenant_id)
            return TenantRecord.model_validate(tenant) if tenant else None

    async def resolve(
        self,
        tenant_key: Optional[str] = None,
        tenant_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TenantRecord:
        """
        테넌트 조회 및 접근 가능 여부 검증

        tenant_key가 우선이고, 없으면 tenant_id로 조회합니다.
        접근 수준까지 필요하면 resolve_access()를 사용합니다.
        """
        tenant, _ = await self.resolve_access(tenant_key=tenant_key, tenant_id=tenant_id, now=now)
        return tenant

    async def resolve_access(
        self,
        tenant_key: Optional[str] = None,
        tenant_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[TenantRecord, SubscriptionAccess]:
        """
        테넌트 조회, 검증 및 구독 접근 수준 판정

        Raises:
            TenantIdentifierMissing: 키와 ID가 모두 없음
            TenantNotFoundError: 레지스트리에 없음
            TenantInactiveError: status가 active가 아님
            TenantSubscriptionError: 구독 상태로 접근 차단
        """
        if tenant_key:
            ref = tenant_key
            tenant = await self.get_by_key(tenant_key)
        elif tenant_id:
            ref = tenant_id
            tenant = await self.get_by_id(tenant_id)
        else:
            raise TenantIdentifierMissing()

        if tenant is None:
            raise TenantNotFoundError(ref)

        if tenant.status != TenantStatus.ACTIVE:
            raise TenantInactiveError(ref, tenant.status.value)

        access = check_subscription_access(tenant, now)
        if not access.has_access:
            raise TenantSubscriptionError(
                ref,
                access.reason or "subscription inactive",
                tenant.subscription_status.value if tenant.subscription_status else None,
            )

        return tenant, access

    async def subdomain_exists(self, subdomain: str) -> bool:
        """서브도메인 사용 여부"""
        async with self.db.get_central_session() as session:
            result = await session.execute(
                select(Tenant.id).where(Tenant.subdomain == subdomain.lower()).limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def email_exists(self, email: str) -> bool:
        """가맹점 이메일 사용 여부"""
        async with self.db.get_central_session() as session:
            result = await session.execute(
                select(Tenant.id).where(Tenant.email == email).limit(1)
            )
            return result.scalar_one_or_none() is not None
