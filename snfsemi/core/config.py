"""
애플리케이션 설정
"""

from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


"""env 로딩 우선순위
1) OS 환경변수 (Vercel/Render 대시보드 Environment 등)
2) 프로젝트 루트의 .env
"""

_root_env = Path(__file__).resolve().parents[2] / ".env"
if _root_env.exists():
    load_dotenv(dotenv_path=str(_root_env), override=False)


DEFAULT_COOKIE_SECRET = "snf-semi-secret-key"
DEFAULT_ADMIN_PASSWORD = "change-me-admin"


class Settings(BaseSettings):
    """애플리케이션 설정"""
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    SITE_NAME: str = "SNF SEMI"

    # 저장소 (sqlite 파일 또는 postgres/libsql URL)
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/app.db"
    DATABASE_AUTH_TOKEN: Optional[str] = None
    # 로그인 시도 제한용 (없으면 제한 미적용)
    REDIS_URL: Optional[str] = None

    # 서명 쿠키
    COOKIE_SECRET: str = DEFAULT_COOKIE_SECRET
    COOKIE_ALGORITHM: str = "HS256"
    COOKIE_SECURE: bool = False
    OFFER_ACCESS_TTL_MINUTES: int = 30

    # 부트스트랩 계정/비밀번호 (싱글톤 row가 없을 때만 사용)
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = DEFAULT_ADMIN_PASSWORD
    DEFAULT_OFFER_PASSWORD: str = "offer1234"
    ADMIN_PASSWORD_MIN_LENGTH: int = 8
    OFFER_PASSWORD_MIN_LENGTH: int = 4

    OTP_TTL_MINUTES: int = 10
    MAX_ATTACHMENT_BYTES: int = 20 * 1024 * 1024
    LOGIN_RATE_LIMIT: int = 10

    # 이메일/SMTP
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    EMAIL_FROM_ADDRESS: str = "no-reply@snfsemi.local"
    EMAIL_FROM_NAME: str = "SNF SEMI"
    ADMIN_EMAIL: str | None = None  # 바이어 문의 수신
    OPERATOR_EMAIL: str | None = None  # 관리자 계정 변경 인증코드 수신

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'


settings = Settings()


def validate_settings():
    """설정 검증"""
    if settings.ENVIRONMENT == "production":
        if settings.COOKIE_SECRET == DEFAULT_COOKIE_SECRET:
            raise ValueError("프로덕션 환경에서는 COOKIE_SECRET을 변경해야 합니다.")
        if settings.ADMIN_PASSWORD == DEFAULT_ADMIN_PASSWORD:
            raise ValueError("프로덕션 환경에서는 ADMIN_PASSWORD를 변경해야 합니다.")

    return True


validate_settings()
