"""
사이트 싱글톤 설정 모델 (홈 문구 / 오퍼 접근 비밀번호)

두 테이블 모두 id=1 한 줄만 존재한다. row가 없으면 스키마 보정 단계에서 기본값으로 생성한다.
"""

from sqlalchemy import Column, Integer, Text, DateTime, CheckConstraint

from snfsemi.core.database import Base, utcnow


DEFAULT_HOME = {
    "hero_title": "SNF SEMI",
    "hero_subtitle": "Welcome",
    "about_title": "About",
    "about_text": "About SNF SEMI",
}


class HomeSettings(Base):
    """홈 화면 문구

    예전 DB에는 hero_text 컬럼이 남아 있을 수 있다. 모델은 정규 컬럼만 다루고
    hero_text와의 동기화는 스키마 보정(core/schema.py)에서만 처리한다.
    """

    __tablename__ = "home_settings"
    __table_args__ = (CheckConstraint("id = 1", name="singleton"),)

    id = Column(Integer, primary_key=True, default=1)
    hero_title = Column(Text, nullable=False, default=DEFAULT_HOME["hero_title"], server_default=DEFAULT_HOME["hero_title"])
    hero_subtitle = Column(Text, nullable=False, default=DEFAULT_HOME["hero_subtitle"], server_default=DEFAULT_HOME["hero_subtitle"])
    about_title = Column(Text, nullable=False, default=DEFAULT_HOME["about_title"], server_default=DEFAULT_HOME["about_title"])
    about_text = Column(Text, nullable=False, default=DEFAULT_HOME["about_text"], server_default=DEFAULT_HOME["about_text"])
    updated_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<HomeSettings(hero_title={self.hero_title})>"


class OfferAccessSettings(Base):
    """offers 페이지 공용 비밀번호"""

    __tablename__ = "offer_access_settings"
    __table_args__ = (CheckConstraint("id = 1", name="singleton"),)

    id = Column(Integer, primary_key=True, default=1)
    password_hash = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<OfferAccessSettings(updated_at={self.updated_at})>"
