"""
보안 관련 유틸리티

- 비밀번호/인증코드 해싱 (bcrypt)
- 서명 쿠키: 검증된 클레임 묶음 (python-jose, HS256)
- 접근 게이트: 관리자 게이트 / offers 게이트
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Request, Response

from snfsemi.core.config import settings
from snfsemi.core.database import utcnow
from snfsemi.core.exceptions import AuthRedirect


ADMIN_COOKIE = "admin"
OFFER_COOKIE = "offer"

# 패스워드 해싱 컨텍스트
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """패스워드 검증"""
    try:
        return pwd_context.verify(plain_password or "", hashed_password)
    except ValueError:
        # 저장된 해시가 깨진 경우
        return False


def get_password_hash(password: str) -> str:
    """패스워드 해싱"""
    return pwd_context.hash(password)


def dummy_verify() -> None:
    """존재하지 않는 계정에 대해서도 해시 비교 시간만큼 소비 (응답 시간으로 계정 유무가 드러나지 않게)"""
    pwd_context.dummy_verify()


def to_ms(moment: datetime) -> int:
    """naive UTC 또는 aware datetime → epoch 밀리초"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


# ---------------------------------------------------------------------------
# 서명 클레임 (쿠키 값)
# ---------------------------------------------------------------------------

def issue_claim(name: str, value: Any) -> str:
    """클레임 하나를 서명된 토큰으로 발급"""
    return jwt.encode({name: value}, settings.COOKIE_SECRET, algorithm=settings.COOKIE_ALGORITHM)


def read_claim(token: Optional[str], name: str) -> Optional[Any]:
    """서명이 검증된 경우에만 클레임 값을 돌려준다. 위조/손상/누락이면 None"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.COOKIE_SECRET, algorithms=[settings.COOKIE_ALGORITHM])
    except JWTError:
        return None
    return payload.get(name)


def issue_admin_token() -> str:
    return issue_claim(ADMIN_COOKIE, 1)


def issue_offer_token(issued_at: Optional[datetime] = None) -> str:
    """offers 접근 토큰. 값은 발급 시각(ms)이라 만료를 토큰만으로 계산할 수 있다"""
    return issue_claim(OFFER_COOKIE, to_ms(issued_at or utcnow()))


def is_admin_token(token: Optional[str]) -> bool:
    """관리자 게이트: admin=1 클레임이 검증되면 통과"""
    return read_claim(token, ADMIN_COOKIE) == 1


class OfferGateState(str, Enum):
    ADMIN = "admin"
    NO_TOKEN = "no_token"
    VALID_FRESH = "valid_fresh"
    EXPIRED = "expired"
    MALFORMED = "malformed"


def evaluate_offer_gate(
    admin_token: Optional[str],
    offer_token: Optional[str],
    now: Optional[datetime] = None,
    ttl: Optional[timedelta] = None,
) -> OfferGateState:
    """offers 게이트 판정 (토큰과 현재 시각만으로 결정되는 순수 함수)

    관리자는 offers 비밀번호 없이 통과한다. 발급 후 정확히 TTL 시점까지는 유효(경계 포함).
    """
    if is_admin_token(admin_token):
        return OfferGateState.ADMIN
    if not offer_token:
        return OfferGateState.NO_TOKEN

    issued_at = read_claim(offer_token, OFFER_COOKIE)
    if isinstance(issued_at, bool) or not isinstance(issued_at, int):
        return OfferGateState.MALFORMED

    ttl = ttl or timedelta(minutes=settings.OFFER_ACCESS_TTL_MINUTES)
    age_ms = to_ms(now or utcnow()) - issued_at
    if age_ms < 0:
        return OfferGateState.MALFORMED
    if age_ms > ttl.total_seconds() * 1000:
        return OfferGateState.EXPIRED
    return OfferGateState.VALID_FRESH


# ---------------------------------------------------------------------------
# 쿠키 발급/삭제
# ---------------------------------------------------------------------------

def set_admin_cookie(response: Response) -> None:
    response.set_cookie(
        ADMIN_COOKIE,
        issue_admin_token(),
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


def set_offer_cookie(response: Response, issued_at: Optional[datetime] = None) -> None:
    response.set_cookie(
        OFFER_COOKIE,
        issue_offer_token(issued_at),
        max_age=settings.OFFER_ACCESS_TTL_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


def clear_cookie(response: Response, name: str) -> None:
    response.delete_cookie(name, httponly=True, samesite="lax", secure=settings.COOKIE_SECURE)


# ---------------------------------------------------------------------------
# 라우트 의존성
# ---------------------------------------------------------------------------

def is_admin_request(request: Request) -> bool:
    return is_admin_token(request.cookies.get(ADMIN_COOKIE))


async def require_admin(request: Request) -> None:
    """관리자 게이트. 실패 시 관리자 로그인으로 리다이렉트"""
    if not is_admin_request(request):
        raise AuthRedirect("/admin/login")


async def require_offer_access(request: Request) -> OfferGateState:
    """offers 게이트. 실패(토큰 없음/만료/손상) 시 offer 쿠키를 지우고 offers 로그인으로"""
    state = evaluate_offer_gate(request.cookies.get(ADMIN_COOKIE), request.cookies.get(OFFER_COOKIE))
    if state in (OfferGateState.ADMIN, OfferGateState.VALID_FRESH):
        return state
    raise AuthRedirect("/offers/login", clear_cookies=(OFFER_COOKIE,))
