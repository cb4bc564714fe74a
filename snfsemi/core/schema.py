"""
스키마 보정 (프로세스당 1회)

- 테이블이 없으면 현재 모델 형태로 생성
- 예전 버전 DB에 없는 컬럼은 ALTER TABLE 로 추가 (동시 실행으로 이미 생긴 컬럼 오류는 무시)
- 싱글톤 row(홈 문구 / offers 비밀번호 / 관리자 계정)가 없으면 기본값으로 생성
- hero_text(구) / hero_title(신) 컬럼 중 비어 있는 쪽을 채운다

데이터를 지우거나 테이블을 비우는 작업은 하지 않는다.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Set, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from snfsemi.core.config import settings
from snfsemi.core.database import Base, engine
from snfsemi.core.exceptions import StoreUnavailable
from snfsemi.core.security import get_password_hash
from snfsemi.models import AdminUser, HomeSettings, OfferAccessSettings
from snfsemi.models.site_settings import DEFAULT_HOME

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


# 예전 스키마에는 없을 수 있는 컬럼: (컬럼명, ADD COLUMN 에 쓸 정의)
OPTIONAL_COLUMNS: Dict[str, List[Tuple[str, str]]] = {
    "posts": [
        ("content", "TEXT NOT NULL DEFAULT ''"),
        ("offer_json", "TEXT"),
        ("offer_note", "TEXT"),
    ],
    "home_settings": [
        ("hero_title", f"TEXT NOT NULL DEFAULT {_quote(DEFAULT_HOME['hero_title'])}"),
        ("hero_subtitle", f"TEXT NOT NULL DEFAULT {_quote(DEFAULT_HOME['hero_subtitle'])}"),
        ("about_title", f"TEXT NOT NULL DEFAULT {_quote(DEFAULT_HOME['about_title'])}"),
        ("about_text", f"TEXT NOT NULL DEFAULT {_quote(DEFAULT_HOME['about_text'])}"),
        ("updated_at", "TIMESTAMP"),
    ],
    "offer_access_settings": [
        ("updated_at", "TIMESTAMP"),
    ],
}

# (구 컬럼, 정규 컬럼) 쌍
LEGACY_HOME_PAIRS: List[Tuple[str, str]] = [
    ("hero_text", "hero_title"),
]


def _column_names(sync_conn, table: str) -> Set[str]:
    return {col["name"] for col in inspect(sync_conn).get_columns(table)}


def _is_duplicate_column_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return "duplicate column" in message or "already exists" in message


class SchemaReconciler:
    """스키마 보정기. 첫 호출만 실제 작업을 하고 이후 호출은 바로 반환한다"""

    def __init__(self, bind: AsyncEngine) -> None:
        self.bind = bind
        self._lock = asyncio.Lock()
        self._done = False

    @property
    def ready(self) -> bool:
        return self._done

    async def ensure(self) -> None:
        if self._done:
            return
        async with self._lock:
            if self._done:
                return
            try:
                await self._reconcile()
            except (SQLAlchemyError, OSError) as e:
                logger.exception(f"스키마 보정 실패: {e}")
                raise StoreUnavailable("schema reconciliation failed") from e
            self._done = True

    async def _reconcile(self) -> None:
        async with self.bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        columns: Dict[str, Set[str]] = {}
        added: Dict[str, Set[str]] = {}
        for table, optional in OPTIONAL_COLUMNS.items():
            async with self.bind.connect() as conn:
                existing = await conn.run_sync(_column_names, table)
            added[table] = set()
            for name, ddl in optional:
                if name in existing:
                    continue
                if await self._add_column(table, name, ddl):
                    added[table].add(name)
                existing.add(name)
            columns[table] = existing

        await self._ensure_singletons()
        await self._backfill_home(columns["home_settings"], added["home_settings"])
        logger.info("📊 스키마 보정 완료")

    async def _add_column(self, table: str, name: str, ddl: str) -> bool:
        try:
            async with self.bind.begin() as conn:
                await conn.exec_driver_sql(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}")
        except SQLAlchemyError as e:
            if _is_duplicate_column_error(e):
                return False
            raise
        logger.info(f"🛠️ {table}.{name} 컬럼 추가")
        return True

    async def _insert_if_absent(self, model, factory: Callable[[], object]) -> None:
        async with AsyncSession(self.bind, expire_on_commit=False) as session:
            if await session.get(model, 1) is not None:
                return
            session.add(factory())
            try:
                await session.commit()
                logger.info(f"🛠️ {model.__tablename__} 기본 row 생성")
            except IntegrityError:
                # 다른 요청이 먼저 만든 경우
                await session.rollback()

    async def _ensure_singletons(self) -> None:
        await self._insert_if_absent(HomeSettings, lambda: HomeSettings(id=1, **DEFAULT_HOME))
        await self._insert_if_absent(
            OfferAccessSettings,
            lambda: OfferAccessSettings(id=1, password_hash=get_password_hash(settings.DEFAULT_OFFER_PASSWORD)),
        )
        await self._insert_if_absent(
            AdminUser,
            lambda: AdminUser(
                id=1,
                username=settings.ADMIN_USERNAME,
                password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            ),
        )

    async def _backfill_home(self, existing: Set[str], added: Set[str]) -> None:
        async with self.bind.begin() as conn:
            for legacy, canonical in LEGACY_HOME_PAIRS:
                if legacy not in existing:
                    continue
                if canonical in added:
                    # 방금 추가된 정규 컬럼은 기본값 대신 구 컬럼 값을 가져온다
                    await conn.execute(text(
                        f"UPDATE home_settings SET {canonical} = {legacy} "
                        f"WHERE {legacy} IS NOT NULL AND {legacy} <> ''"
                    ))
                await conn.execute(text(
                    f"UPDATE home_settings SET {canonical} = {legacy} "
                    f"WHERE ({canonical} IS NULL OR {canonical} = '') "
                    f"AND {legacy} IS NOT NULL AND {legacy} <> ''"
                ))
                await conn.execute(text(
                    f"UPDATE home_settings SET {legacy} = {canonical} "
                    f"WHERE ({legacy} IS NULL OR {legacy} = '') "
                    f"AND {canonical} IS NOT NULL AND {canonical} <> ''"
                ))


reconciler = SchemaReconciler(engine)


async def ensure_schema() -> None:
    """기본 엔진에 대해 스키마 보정 실행"""
    await reconciler.ensure()


async def schema_ready() -> None:
    """준비 게이트 의존성. 시작 시 보정이 끝났으면 아무 일도 하지 않는다"""
    await ensure_schema()
