"""
관리자 계정 및 계정 변경 인증코드(OTP) 모델
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, CheckConstraint

from snfsemi.core.database import Base, utcnow


class AdminUser(Base):
    """관리자 계정 (id=1 싱글톤)"""

    __tablename__ = "admin_users"
    __table_args__ = (CheckConstraint("id = 1", name="singleton"),)

    id = Column(Integer, primary_key=True, default=1)
    username = Column(String(64), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<AdminUser(id={self.id}, username={self.username})>"


class AdminOTP(Base):
    """발급된 인증코드 로그 (append-only, 평문 코드는 저장하지 않음)"""

    __tablename__ = "admin_otps"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<AdminOTP(id={self.id}, expires_at={self.expires_at}, used_at={self.used_at})>"
