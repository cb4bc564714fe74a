"""
데이터베이스 설정 및 연결
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.engine import make_url
from sqlalchemy import MetaData
import redis.asyncio as redis
from typing import AsyncGenerator, Optional
from datetime import datetime, timezone
import logging
import os
import ssl
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from snfsemi.core.config import settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """naive UTC 현재 시각 (sqlite/postgres 공통 비교용)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _ensure_sqlite_dir(url: str) -> None:
    """sqlite 파일 경로의 상위 디렉토리 존재 보장"""
    database = make_url(url).database
    if database and database != ":memory:":
        parent = os.path.dirname(os.path.abspath(database))
        os.makedirs(parent, exist_ok=True)


def build_engine(url: str, auth_token: Optional[str] = None) -> AsyncEngine:
    """DATABASE_URL 형태에 맞는 비동기 엔진 생성"""
    if url.startswith("sqlite"):
        _ensure_sqlite_dir(url)
        connect_args = {}
        if auth_token:
            # libsql(Turso) 계열 드라이버는 auth_token을 connect 인자로 받는다
            connect_args["auth_token"] = auth_token
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            future=True,
            connect_args=connect_args,
        )

    # PostgreSQL의 경우 asyncpg 드라이버 사용
    raw_url = url.replace("postgresql://", "postgresql+asyncpg://")
    # asyncpg는 URL의 sslmode 파라미터를 받지 못하므로 connect_args로 옮긴다
    parts = urlsplit(raw_url)
    query_items = parse_qsl(parts.query, keep_blank_values=True)
    sslmode = next((v for (k, v) in query_items if k.lower() == "sslmode"), None)
    query_filtered = [(k, v) for (k, v) in query_items if k.lower() not in ("sslmode", "ssl")]
    engine_url = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query_filtered), parts.fragment))

    connect_args = {}
    if sslmode is not None and sslmode.strip().lower() not in ("disable", "allow"):
        ctx = ssl.create_default_context()
        if sslmode.strip().lower() in ("require", "prefer"):
            # libpq require 의미: 암호화만, 인증서 검증 없음
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ctx

    return create_async_engine(
        engine_url,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
    )


engine = build_engine(settings.DATABASE_URL, settings.DATABASE_AUTH_TOKEN)

# 세션 팩토리 생성
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# Redis 연결 (로그인 시도 제한용, 선택)
redis_client: Optional[redis.Redis] = (
    redis.from_url(settings.REDIS_URL, decode_responses=True) if settings.REDIS_URL else None
)


# Base 클래스 정의
class Base(DeclarativeBase):
    """SQLAlchemy Base 클래스"""
    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


# 데이터베이스 세션 의존성
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """데이터베이스 세션 의존성"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_db_connection(bind: Optional[AsyncEngine] = None) -> bool:
    """데이터베이스 연결 테스트"""
    try:
        async with (bind or engine).connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logger.warning(f"데이터베이스 연결 실패: {e}")
        return False
