"""
오퍼시트 페이로드 스키마
"""

from pydantic import BaseModel, Field, ValidationError, field_validator
from typing import Any, List, Optional, Sequence, Union
import json
import logging

logger = logging.getLogger(__name__)


BUYER_FIELDS = (
    "messrs",
    "buyer_address",
    "date",
    "invoice_no",
    "destination",
    "payment",
    "price_terms",
    "shipment",
    "origin",
    "packing",
    "bank_info",
)


class LineItem(BaseModel):
    """오퍼 품목 한 줄 (설명 / 수량 / 단가)"""

    desc: str = ""
    qty: str = ""
    unit: str = ""

    @field_validator("desc", "qty", "unit", mode="before")
    @classmethod
    def stringify(cls, v):
        # 예전 데이터에는 수량이 숫자로 저장된 경우가 있다
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class OfferSheet(BaseModel):
    """오퍼시트 (바이어 정보 + 품목 목록)

    저장 키 이름은 이전 버전에서 저장된 offer_json과 호환되도록 유지한다.
    """

    messrs: str = ""
    buyer_address: str = ""
    date: str = ""
    invoice_no: str = ""
    destination: str = ""
    payment: str = ""
    price_terms: str = ""
    shipment: str = ""
    origin: str = ""
    packing: str = ""
    bank_info: str = ""
    items: List[LineItem] = Field(default_factory=list)

    @field_validator(*BUYER_FIELDS, mode="before")
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: Optional[str]) -> Optional["OfferSheet"]:
        """저장된 offer_json 파싱. 비어 있거나 깨진 값이면 None"""
        if not raw:
            return None
        try:
            return cls.model_validate(json.loads(raw))
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"offer_json 파싱 실패: {e}")
            return None

    @classmethod
    def blank(cls) -> "OfferSheet":
        """새 오퍼 폼용 (빈 품목 한 줄)"""
        return cls(items=[LineItem()])


def as_list(value: Union[None, str, Sequence[Any]]) -> List[Any]:
    """단일 값이면 1개짜리 목록으로, 없으면 빈 목록으로"""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def build_line_items(desc, qty, unit) -> List[LineItem]:
    """세 개의 병렬 목록을 품목 목록으로 묶는다.

    - 각 인자는 단일 값 또는 목록 (행이 하나면 폼이 배열로 감싸지 않는다)
    - 가장 긴 목록 길이에 맞추고, 짧은 쪽의 빈 자리는 "" 로 채운다
    - 공백 제거 후 세 칸이 모두 비어 있는 행은 버린다
    """
    descs, qtys, units = as_list(desc), as_list(qty), as_list(unit)
    length = max(len(descs), len(qtys), len(units))

    items: List[LineItem] = []
    for i in range(length):
        d = _clean(descs[i]) if i < len(descs) else ""
        q = _clean(qtys[i]) if i < len(qtys) else ""
        u = _clean(units[i]) if i < len(units) else ""
        if not d and not q and not u:
            continue
        items.append(LineItem(desc=d, qty=q, unit=u))
    return items


def build_offer_sheet(buyer: dict, desc, qty, unit) -> OfferSheet:
    """바이어 필드 + 품목 목록으로 오퍼시트 생성"""
    values = {field: _clean(buyer.get(field)) for field in BUYER_FIELDS}
    return OfferSheet(**values, items=build_line_items(desc, qty, unit))
