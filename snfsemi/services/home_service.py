"""
홈 화면 문구 서비스 (정규 컬럼만 다룬다)
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snfsemi.core.database import utcnow
from snfsemi.models import HomeSettings
from snfsemi.models.site_settings import DEFAULT_HOME


async def get_home_settings(db: AsyncSession) -> Optional[HomeSettings]:
    result = await db.execute(select(HomeSettings).where(HomeSettings.id == 1))
    return result.scalar_one_or_none()


async def update_home_settings(
    db: AsyncSession,
    hero_title: Optional[str],
    hero_subtitle: Optional[str],
    about_title: Optional[str],
    about_text: Optional[str],
) -> None:
    """빈 값은 기본 문구로 채워서 저장"""
    values = {
        "hero_title": hero_title,
        "hero_subtitle": hero_subtitle,
        "about_title": about_title,
        "about_text": about_text,
    }
    values = {key: (value or "").strip() or DEFAULT_HOME[key] for key, value in values.items()}
    await db.execute(
        update(HomeSettings)
        .where(HomeSettings.id == 1)
        .values(**values, updated_at=utcnow())
    )
    await db.commit()
