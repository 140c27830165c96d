#!/usr/bin/env python3
"""
MT-Rental CLI

사용법:
    mt-rental init-central
    mt-rental provision acme --merchant-id 42
    mt-rental resolve acme.localhost:3000
    mt-rental verify
"""

import argparse
import asyncio
import json
import logging
import sys

from .config import get_config, mask_url
from .core.exceptions import TenantError
from .core.models import TenantStatus
from .core.subdomain import extract_subdomain, database_name_for
from .setup import create_mt_rental

logger = logging.getLogger(__name__)


async def _init_central(args) -> int:
    mt = create_mt_rental()
    try:
        await mt.db.create_central_tables()
        print(f"[OK] Central tables created: {mask_url(mt.db.central_db_url)}")
        return 0
    finally:
        await mt.close()


async def _provision(args) -> int:
    mt = create_mt_rental()
    if args.drop_existing is not None:
        mt.provisioner.drop_existing = args.drop_existing
    try:
        tenant = await mt.registry.get_by_key(args.subdomain)
        if tenant is not None and tenant.status != TenantStatus.PROVISIONING:
            print(f"[FAIL] Tenant {tenant.key} is {tenant.status.value}; refusing to recreate its database")
            return 1

        if tenant is not None:
            # 등록은 되었지만 프로비저닝이 끝나지 않은 테넌트
            database_url = (await mt.lifecycle.provision(tenant.key)).database_url
        else:
            database_url = await mt.provisioner.provision(args.subdomain, args.merchant_id)
        print(f"[OK] {database_name_for(args.subdomain)} -> {mask_url(database_url)}")
        return 0
    except TenantError as e:
        print(f"[FAIL] {e}")
        return 1
    finally:
        await mt.close()


async def _verify(args) -> int:
    config = get_config()
    report = {
        "environment": config.environment,
        "central_db": mask_url(config.database.url),
        "root_domain": config.tenancy.root_domain,
        "default_tenant": config.tenancy.default_tenant,
        "cache_max_size": config.tenancy.cache_max_size,
        "cache_ttl_seconds": config.tenancy.cache_ttl_seconds,
    }

    mt = create_mt_rental(config)
    try:
        await mt.db.check_connection()
        report["central_db_connection"] = "ok"
        code = 0
    except Exception as e:
        logger.debug("Central DB check failed", exc_info=e)
        report["central_db_connection"] = f"failed: {e}"
        code = 1
    finally:
        await mt.close()

    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        for key, value in report.items():
            print(f"{key:>22}: {value}")
    return code


def cmd_init_central(args):
    """Central DB 테이블 생성"""
    return asyncio.run(_init_central(args))


def cmd_provision(args):
    """테넌트 DB 프로비저닝"""
    return asyncio.run(_provision(args))


def cmd_resolve(args):
    """Host → 테넌트 키 확인"""
    tenant_key = extract_subdomain(args.host, args.root_domain)
    print(tenant_key if tenant_key else "(root)")
    return 0


def cmd_verify(args):
    """설정 및 Central DB 연결 확인"""
    return asyncio.run(_verify(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mt-rental",
        description="Multi-tenant DB routing tools",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="디버그 로그 출력")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("init-central", help="Central DB 테이블 생성")
    p.set_defaults(func=cmd_init_central)

    p = subparsers.add_parser("provision", help="테넌트 DB 생성 및 스키마 적용")
    p.add_argument("subdomain", help="테넌트 서브도메인")
    p.add_argument("--merchant-id", type=int, default=None, help="소유 가맹점 ID")
    drop = p.add_mutually_exclusive_group()
    drop.add_argument(
        "--drop-existing",
        dest="drop_existing",
        action="store_true",
        help="DB가 이미 있으면 삭제 후 재생성",
    )
    drop.add_argument(
        "--keep-existing",
        dest="drop_existing",
        action="store_false",
        help="DB가 이미 있으면 삭제하지 않고 실패",
    )
    # 둘 다 없으면 MT_PROVISION_DROP_EXISTING (production 기본값: 보존)
    p.set_defaults(func=cmd_provision, drop_existing=None)

    p = subparsers.add_parser("resolve", help="Host에서 테넌트 키 추출")
    p.add_argument("host", help="예: acme.localhost:3000")
    p.add_argument("--root-domain", default=None, help="루트 도메인 (기본: ROOT_DOMAIN)")
    p.set_defaults(func=cmd_resolve)

    p = subparsers.add_parser("verify", help="설정 및 Central DB 연결 확인")
    p.add_argument("--json", action="store_true", help="JSON 출력")
    p.set_defaults(func=cmd_verify)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
