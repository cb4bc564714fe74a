"""
바이어 문의 스키마
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
import re


def _sanitize_text(value: Optional[str]) -> Optional[str]:
    """메일 본문에 들어갈 입력에서 태그를 제거한다."""
    if value is None:
        return None
    return re.sub(r"<[^>]*>", "", str(value)).strip()


class BuyerInquiry(BaseModel):
    """오퍼 상세 페이지의 바이어 문의 폼"""

    buyer_name: str = Field(..., min_length=1, max_length=200)
    company: str = Field("", max_length=200)
    email: EmailStr
    phone: str = Field("", max_length=50)
    message: str = Field("", max_length=5000)

    @field_validator("buyer_name", "company", "phone", "message", mode="before")
    @classmethod
    def sanitize_fields(cls, v):
        return _sanitize_text(v) or ""
