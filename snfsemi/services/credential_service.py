"""
자격증명 저장소 (관리자 계정 / offers 공용 비밀번호)
"""

from typing import Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snfsemi.core.database import utcnow
from snfsemi.core.security import dummy_verify, get_password_hash, verify_password
from snfsemi.models import AdminUser, OfferAccessSettings

logger = logging.getLogger(__name__)


async def get_admin_user(db: AsyncSession) -> Optional[AdminUser]:
    """관리자 계정 조회 (id=1)"""
    result = await db.execute(select(AdminUser).where(AdminUser.id == 1))
    return result.scalar_one_or_none()


async def authenticate_admin(db: AsyncSession, username: str, password: str) -> bool:
    """아이디 정확히 일치 + bcrypt 비교. 어느 쪽이 틀렸는지 밖으로 드러내지 않는다"""
    admin = await get_admin_user(db)
    if admin is None or not username or username != admin.username:
        dummy_verify()
        return False
    return verify_password(password, admin.password_hash)


async def update_admin_account(
    db: AsyncSession,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> None:
    """관리자 아이디/비밀번호 변경. 아이디 중복 등 제약 위반은 IntegrityError 그대로 전파"""
    update_data = {}
    if username:
        update_data["username"] = username
    if password:
        update_data["password_hash"] = get_password_hash(password)
    if not update_data:
        return

    update_data["updated_at"] = utcnow()
    await db.execute(
        update(AdminUser)
        .where(AdminUser.id == 1)
        .values(**update_data)
    )
    await db.commit()
    logger.info(f"관리자 계정 변경: {', '.join(k for k in update_data if k != 'updated_at')}")


async def get_offer_access(db: AsyncSession) -> Optional[OfferAccessSettings]:
    result = await db.execute(select(OfferAccessSettings).where(OfferAccessSettings.id == 1))
    return result.scalar_one_or_none()


async def verify_offer_password(db: AsyncSession, password: str) -> bool:
    """offers 페이지 공용 비밀번호 확인"""
    row = await get_offer_access(db)
    if row is None:
        dummy_verify()
        return False
    return verify_password(password or "", row.password_hash)


async def set_offer_password(db: AsyncSession, new_password: str) -> None:
    """offers 공용 비밀번호 교체"""
    await db.execute(
        update(OfferAccessSettings)
        .where(OfferAccessSettings.id == 1)
        .values(password_hash=get_password_hash(new_password), updated_at=utcnow())
    )
    await db.commit()
    logger.info("offers 접근 비밀번호 변경")
