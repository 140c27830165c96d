"""
Core 모듈 - 멀티테넌트 DB 라우팅 핵심 기능

- extract_subdomain: Host → 테넌트 키
- TenantRegistry: Central DB 테넌트 조회/검증
- TenantConnectionCache: 테넌트 DB 연결 캐시
- TenantProvisioner: 테넌트 DB 생성 및 스키마 적용
- TenantLifecycle: 등록/일시중지/비활성화/재활성화
"""
from .database import DatabaseManager
from .models import Tenant, TenantStatus, SubscriptionStatus
from .schemas import TenantRecord, TenantRegister, TenantResponse
from .subdomain import (
    extract_subdomain,
    sanitize_subdomain,
    validate_subdomain,
    generate_subdomain,
    database_name_for,
    build_tenant_url,
    RESERVED_SUBDOMAINS,
)
from .subscription import AccessLevel, SubscriptionAccess, check_subscription_access
from .registry import TenantRegistry
from .cache import TenantConnection, TenantConnectionCache
from .provisioner import TenantProvisioner
from .lifecycle import TenantLifecycle, LifecycleEvent
from .exceptions import (
    TenantError,
    TenantIdentifierMissing,
    TenantNotFoundError,
    TenantInactiveError,
    TenantSubscriptionError,
    TenantExistsError,
    InvalidSubdomainError,
    TenantIsolationError,
    TenantResolutionError,
    ProvisioningError,
    TenantDatabaseExistsError,
)

__all__ = [
    # Managers
    "DatabaseManager",
    "TenantRegistry",
    "TenantConnection",
    "TenantConnectionCache",
    "TenantProvisioner",
    "TenantLifecycle",
    "LifecycleEvent",
    # Models
    "Tenant",
    "TenantStatus",
    "SubscriptionStatus",
    # Schemas
    "TenantRecord",
    "TenantRegister",
    "TenantResponse",
    # Subdomain
    "extract_subdomain",
    "sanitize_subdomain",
    "validate_subdomain",
    "generate_subdomain",
    "database_name_for",
    "build_tenant_url",
    "RESERVED_SUBDOMAINS",
    # Subscription
    "AccessLevel",
    "SubscriptionAccess",
    "check_subscription_access",
    # Errors
    "TenantError",
    "TenantIdentifierMissing",
    "TenantNotFoundError",
    "TenantInactiveError",
    "TenantSubscriptionError",
    "TenantExistsError",
    "InvalidSubdomainError",
    "TenantIsolationError",
    "TenantResolutionError",
    "ProvisioningError",
    "TenantDatabaseExistsError",
]
