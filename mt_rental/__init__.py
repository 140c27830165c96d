"""
Multi-Tenant Rental (mt_rental)
===============================

렌탈샵 SaaS의 테넌트별 DB 라우팅 계층

사용법:
    from mt_rental import setup_multi_tenant
    from mt_rental.core import TenantRegistry, TenantConnectionCache, TenantProvisioner
    from mt_rental.middleware import TenantMiddleware, get_tenant_context
    from mt_rental.config import MTRentalConfig

Example:
    from fastapi import FastAPI, Depends
    from mt_rental import setup_multi_tenant, get_tenant_context, TenantContext

    app = FastAPI()
    mt = setup_multi_tenant(app)

    @app.on_event("startup")
    async def startup():
        await mt.init()

    @app.get("/products")
    async def products(tenant: TenantContext = Depends(get_tenant_context)):
        async with tenant.db.session() as session:
            ...
"""

from .core.database import DatabaseManager
from .core.registry import TenantRegistry
from .core.cache import TenantConnection, TenantConnectionCache
from .core.provisioner import TenantProvisioner
from .core.lifecycle import TenantLifecycle, LifecycleEvent
from .core.models import Tenant, TenantStatus, SubscriptionStatus
from .core.schemas import TenantRecord, TenantRegister, TenantResponse
from .core.subdomain import extract_subdomain
from .core.exceptions import (
    TenantError,
    TenantIdentifierMissing,
    TenantNotFoundError,
    TenantInactiveError,
    TenantSubscriptionError,
)
from .middleware.tenant import (
    TenantMiddleware,
    TenantResolver,
    TenantContext,
    get_current_tenant,
    get_tenant_context,
    get_tenant_db,
    require_write_access,
    install_tenant_error_handler,
)
from .setup import setup_multi_tenant, create_mt_rental, MTRental, get_mt_rental
from .config import MTRentalConfig, get_config, set_config

__version__ = "0.1.0"
__all__ = [
    # Setup
    "setup_multi_tenant",
    "create_mt_rental",
    "MTRental",
    "get_mt_rental",
    # Config
    "MTRentalConfig",
    "get_config",
    "set_config",
    # Core
    "DatabaseManager",
    "TenantRegistry",
    "TenantConnection",
    "TenantConnectionCache",
    "TenantProvisioner",
    "TenantLifecycle",
    "LifecycleEvent",
    "Tenant",
    "TenantStatus",
    "SubscriptionStatus",
    "TenantRecord",
    "TenantRegister",
    "TenantResponse",
    "extract_subdomain",
    # Errors
    "TenantError",
    "TenantIdentifierMissing",
    "TenantNotFoundError",
    "TenantInactiveError",
    "TenantSubscriptionError",
    # Middleware
    "TenantMiddleware",
    "TenantResolver",
    "TenantContext",
    "get_current_tenant",
    "get_tenant_context",
    "get_tenant_db",
    "require_write_access",
    "install_tenant_error_handler",
]
