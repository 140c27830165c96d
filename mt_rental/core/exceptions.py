"""
테넌트 라우팅 예외 정의

코어 컴포넌트는 아래 예외만 발생시키고, HTTP 응답으로의 변환은
middleware.tenant.error_response 한 곳에서 처리합니다.
"""

from typing import Optional


class TenantError(Exception):
    """테넌트 관련 예외의 기본 클래스"""
    code = "TENANT_ERROR"


class TenantIdentifierMissing(TenantError):
    """요청에서 테넌트 식별자를 찾을 수 없을 때 발생"""
    code = "TENANT_ID_MISSING"

    def __init__(self, message: str = "Tenant identifier is required"):
        super().__init__(message)


class TenantNotFoundError(TenantError):
    """테넌트를 찾을 수 없을 때 발생"""
    code = "TENANT_NOT_FOUND"

    def __init__(self, tenant_ref: str):
        self.tenant_ref = tenant_ref
        super().__init__(f"Tenant {tenant_ref} not found")


class TenantInactiveError(TenantError):
    """테넌트가 존재하지만 활성 상태가 아닐 때 발생"""
    code = "TENANT_INACTIVE"

    def __init__(self, tenant_ref: str, status: Optional[str] = None):
        self.tenant_ref = tenant_ref
        self.status = status
        super().__init__(f"Tenant {tenant_ref} is not active (status={status})")


class TenantSubscriptionError(TenantError):
    """구독 상태 때문에 접근이 차단될 때 발생"""
    code = "TENANT_SUBSCRIPTION_REQUIRED"

    def __init__(
        self,
        tenant_ref: str,
        reason: str,
        subscription_status: Optional[str] = None,
    ):
        self.tenant_ref = tenant_ref
        self.reason = reason
        self.subscription_status = subscription_status
        super().__init__(f"Tenant {tenant_ref} subscription blocks access: {reason}")


class TenantExistsError(TenantError):
    """이미 등록된 서브도메인/이메일로 테넌트를 만들려 할 때 발생"""
    code = "TENANT_EXISTS"

    def __init__(self, tenant_ref: str):
        self.tenant_ref = tenant_ref
        super().__init__(f"Tenant {tenant_ref} already exists")


class InvalidSubdomainError(TenantError):
    """서브도메인 형식이 잘못되었거나 예약어일 때 발생"""
    code = "INVALID_SUBDOMAIN"

    def __init__(self, subdomain: str):
        self.subdomain = subdomain
        super().__init__(f"Invalid subdomain: {subdomain!r}")


class TenantIsolationError(TenantError):
    """테넌트 연결이 Central DB를 가리키는 등 격리가 깨질 때 발생"""
    code = "TENANT_ISOLATION_VIOLATION"


class TenantResolutionError(TenantError):
    """레지스트리 장애 등 예상하지 못한 이유로 테넌트 해석에 실패"""
    code = "INTERNAL_ERROR"


class ProvisioningError(TenantError):
    """테넌트 DB 프로비저닝 실패"""
    code = "PROVISIONING_FAILED"

    def __init__(self, database_name: str, message: str):
        self.database_name = database_name
        super().__init__(f"Provisioning {database_name} failed: {message}")


class TenantDatabaseExistsError(ProvisioningError):
    """drop_existing=False인데 대상 DB가 이미 있을 때 발생"""
    code = "TENANT_DATABASE_EXISTS"

    def __init__(self, database_name: str):
        super().__init__(database_name, "database already exists")
