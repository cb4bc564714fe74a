"""
관리자 계정 변경용 1회용 인증코드(OTP)
"""

from datetime import datetime, timedelta
from typing import Optional
import logging
import secrets

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snfsemi.core.config import settings
from snfsemi.core.database import utcnow
from snfsemi.core.exceptions import (
    CodeAlreadyUsed,
    CodeExpired,
    CodeMismatch,
    CodeMissing,
    CodeNotFound,
    Conflict,
    MailUnavailable,
    NothingToUpdate,
    PasswordTooShort,
)
from snfsemi.core.security import get_password_hash, verify_password
from snfsemi.models import AdminOTP
from snfsemi.services.credential_service import update_admin_account
from snfsemi.services.mail_service import build_otp_email, is_mail_configured, send_mail

logger = logging.getLogger(__name__)

OTP_DIGITS = 6


def generate_code() -> str:
    """균등 분포 6자리 숫자 코드"""
    return f"{secrets.randbelow(10 ** OTP_DIGITS):0{OTP_DIGITS}d}"


def otp_recipient() -> str:
    return settings.OPERATOR_EMAIL or settings.ADMIN_EMAIL or settings.EMAIL_FROM_ADDRESS


async def get_latest_otp(db: AsyncSession) -> Optional[AdminOTP]:
    """가장 마지막에 발급된 코드 (검증 대상은 이것 하나뿐)"""
    result = await db.execute(select(AdminOTP).order_by(AdminOTP.id.desc()).limit(1))
    return result.scalar_one_or_none()


async def request_code(db: AsyncSession, now: Optional[datetime] = None) -> AdminOTP:
    """코드를 발급해 해시만 저장하고, 평문 코드는 운영자 메일로만 보낸다"""
    if not is_mail_configured():
        raise MailUnavailable()

    now = now or utcnow()
    code = generate_code()
    otp = AdminOTP(
        code_hash=get_password_hash(code),
        expires_at=now + timedelta(minutes=settings.OTP_TTL_MINUTES),
        created_at=now,
    )
    db.add(otp)
    await db.commit()
    await db.refresh(otp)

    await send_mail(build_otp_email(otp_recipient(), code, settings.OTP_TTL_MINUTES))
    logger.info(f"관리자 인증코드 발급: otp_id={otp.id}, 만료={otp.expires_at}")
    return otp


async def apply_change(
    db: AsyncSession,
    new_username: Optional[str],
    new_password: Optional[str],
    code: Optional[str],
    now: Optional[datetime] = None,
) -> None:
    """인증코드 확인 후 관리자 계정 변경

    코드는 계정 변경 시도 전에 사용 처리(커밋)된다. 변경이 실패해도(Conflict) 코드는 재사용할 수 없다.
    """
    code = (code or "").strip()
    if not code:
        raise CodeMissing()

    new_username = (new_username or "").strip() or None
    new_password = new_password or None
    if not new_username and not new_password:
        raise NothingToUpdate()
    if new_password and len(new_password) < settings.ADMIN_PASSWORD_MIN_LENGTH:
        raise PasswordTooShort(settings.ADMIN_PASSWORD_MIN_LENGTH)

    otp = await get_latest_otp(db)
    if otp is None:
        raise CodeNotFound()
    if otp.used_at is not None:
        raise CodeAlreadyUsed()
    now = now or utcnow()
    if now > otp.expires_at:
        raise CodeExpired()
    if not verify_password(code, otp.code_hash):
        raise CodeMismatch()

    otp.used_at = now
    await db.commit()

    try:
        await update_admin_account(db, username=new_username, password=new_password)
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"관리자 계정 변경 실패 (코드는 소모됨): {e}")
        raise Conflict() from e
