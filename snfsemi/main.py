"""
SNF SEMI 사이트 - FastAPI 메인 애플리케이션
"""

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from snfsemi.core.config import settings
from snfsemi.core.database import check_db_connection
from snfsemi.core.exceptions import AuthRedirect, StoreUnavailable
from snfsemi.core.schema import ensure_schema, schema_ready
from snfsemi.core.security import clear_cookie
from snfsemi.core.templates import get_static_dir

from snfsemi.api.public import router as public_router
from snfsemi.api.admin import router as admin_router

# 로깅 설정
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 시작/종료 시 실행되는 이벤트"""
    logger.info(f"🚀 {settings.SITE_NAME} 사이트 시작 ({settings.ENVIRONMENT})")

    # 스키마 보정 (실패해도 부팅은 계속, 첫 요청에서 다시 시도)
    try:
        await ensure_schema()
    except StoreUnavailable:
        logger.error("스키마 보정 실패 - 첫 요청에서 다시 시도합니다")

    yield

    logger.info(f"👋 {settings.SITE_NAME} 사이트 종료")


# FastAPI 앱 생성
app = FastAPI(
    title=f"{settings.SITE_NAME} Site",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
    dependencies=[Depends(schema_ready)],
)
app.mount("/public", StaticFiles(directory=get_static_dir()), name="public")


@app.exception_handler(AuthRedirect)
async def auth_redirect_handler(request: Request, exc: AuthRedirect):
    """게이트 미통과 → 로그인 화면으로 (필요하면 쿠키 삭제)"""
    response = RedirectResponse(exc.location, status_code=303)
    for name in exc.clear_cookies:
        clear_cookie(response, name)
    return response


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"저장소 사용 불가: {request.method} {request.url.path}: {exc}", exc_info=exc)
    return PlainTextResponse("Internal Server Error", status_code=500)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"DB 오류: {request.method} {request.url.path}: {exc}", exc_info=exc)
    return PlainTextResponse("Internal Server Error", status_code=500)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTML 사이트라 오류 본문은 짧은 텍스트로"""
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None))


# 라우터 등록
app.include_router(public_router, tags=["공개"])
app.include_router(admin_router, tags=["관리자"])


@app.get("/health")
async def health_check():
    """헬스 체크 엔드포인트"""
    db_ok = await check_db_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "environment": settings.ENVIRONMENT,
        "database": "connected" if db_ok else "unavailable",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("snfsemi.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
