"""
FastAPI 앱에 멀티테넌트 DB 라우팅을 한 번에 설정하는 헬퍼 함수
"""
import logging
from typing import Optional, List

from fastapi import FastAPI

from mt_rental.config import MTRentalConfig, get_config
from mt_rental.core.cache import TenantConnectionCache
from mt_rental.core.database import DatabaseManager
from mt_rental.core.lifecycle import TenantLifecycle
from mt_rental.core.provisioner import TenantProvisioner
from mt_rental.core.registry import TenantRegistry
from mt_rental.middleware.tenant import (
    TenantMiddleware,
    TenantResolver,
    DEFAULT_EXCLUDE_PATHS,
    install_tenant_error_handler,
)

logger = logging.getLogger(__name__)


class MTRental:
    """
    MT-Rental 통합 객체

    레지스트리, 연결 캐시, 프로비저너, 생명주기를 한곳에서 생성하고
    수명(init/close)을 관리합니다.

    Example:
        from mt_rental import setup_multi_tenant

        mt = setup_multi_tenant(app)

        tenant = await mt.lifecycle.register(
            TenantRegister(business_name="Acme Rentals", email="owner@acme.example")
        )
    """

    def __init__(self, config: MTRentalConfig, db_manager: DatabaseManager):
        self.config = config
        self.db = db_manager
        self.registry = TenantRegistry(db_manager)
        self.cache = TenantConnectionCache(
            self.registry,
            central_database=db_manager.central_database_name,
            max_size=config.tenancy.cache_max_size,
            ttl_seconds=config.tenancy.cache_ttl_seconds,
            engine_options={
                "echo": config.database.echo,
                "pool_pre_ping": True,
                "pool_recycle": config.database.pool_recycle,
            },
        )
        self.provisioner = TenantProvisioner(
            db_manager,
            drop_existing=config.tenancy.provision_drop_existing,
        )
        self.lifecycle = TenantLifecycle(db_manager, self.registry, self.provisioner, self.cache)
        self.resolver = TenantResolver(
            self.registry,
            self.cache,
            root_domain=config.tenancy.root_domain,
            default_tenant=config.tenancy.default_tenant,
            use_subdomain=config.tenancy.use_subdomain,
        )

    async def init(self) -> None:
        """초기화 (Central DB 연결)"""
        await self.db.init_central_db()
        logger.info("MT-Rental initialized")

    async def close(self) -> None:
        """리소스 정리 (테넌트 연결 → Central DB 순)"""
        await self.cache.close()
        await self.db.close()
        logger.info("MT-Rental closed")


def create_mt_rental(
    config: Optional[MTRentalConfig] = None,
    central_db_url: Optional[str] = None,
) -> MTRental:
    """앱 없이 MTRental 객체 생성 (CLI, 스크립트용)"""
    cfg = config or get_config()
    db_manager = DatabaseManager(central_db_url or cfg.database.url, cfg.database)
    return MTRental(cfg, db_manager)


def setup_multi_tenant(
    app: FastAPI,
    central_db_url: Optional[str] = None,
    config: Optional[MTRentalConfig] = None,
    exclude_paths: Optional[List[str]] = None,
    require_tenant: bool = True,
    include_admin_router: bool = True,
) -> MTRental:
    """
    FastAPI 앱에 멀티테넌트 DB 라우팅을 설정합니다.

    Args:
        app: FastAPI 앱 인스턴스
        central_db_url: Central DB URL (None이면 설정값)
        config: MT-Rental 설정 (None이면 환경변수에서 로드)
        exclude_paths: 테넌트 해석 제외 경로
        require_tenant: True면 테넌트 식별자가 없는 요청을 400으로 거부
        include_admin_router: /mt 관리자 라우터 등록 여부

    Returns:
        MTRental: 통합 객체

    Example:
        ```python
        from fastapi import FastAPI
        from mt_rental import setup_multi_tenant

        app = FastAPI()
        mt = setup_multi_tenant(app)

        @app.on_event("startup")
        async def startup():
            await mt.init()

        @app.on_event("shutdown")
        async def shutdown():
            await mt.close()
        ```
    """
    mt = create_mt_rental(config=config, central_db_url=central_db_url)

    app.add_middleware(
        TenantMiddleware,
        resolver=mt.resolver,
        exclude_paths=exclude_paths if exclude_paths is not None else list(DEFAULT_EXCLUDE_PATHS),
        require_tenant=require_tenant,
    )
    install_tenant_error_handler(app)

    if include_admin_router:
        from mt_rental.api.router import create_admin_router
        app.include_router(create_admin_router(mt))

    app.state.mt_rental = mt
    app.state.tenant_resolver = mt.resolver

    logger.info(f"MT-Rental setup complete (root domain: {mt.config.tenancy.root_domain})")
    return mt


def get_mt_rental(app: FastAPI) -> Optional[MTRental]:
    """FastAPI 앱에서 MT-Rental 객체 가져오기"""
    return getattr(app.state, "mt_rental", None)
