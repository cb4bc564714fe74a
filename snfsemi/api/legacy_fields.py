"""
예전 폼 필드 이름 호환

이전 버전 화면(또는 북마크된 오래된 폼)이 보내는 필드 이름을 정규 이름으로 모은다.
예전 이름을 아는 곳은 이 모듈뿐이다.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from starlette.datastructures import FormData

from snfsemi.schemas.offer import BUYER_FIELDS

# 정규 이름 → 받아들이는 필드 이름 (앞쪽 우선)
ITEM_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "desc": ("item_desc[]", "item_desc"),
    "qty": ("item_qty[]", "item_qty"),
    "unit": ("item_unit[]", "item_price[]", "item_unit", "item_price"),
}

HOME_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "hero_title": ("hero_title", "hero_text"),
    "hero_subtitle": ("hero_subtitle",),
    "about_title": ("about_title",),
    "about_text": ("about_text",),
}


def _first_list(form: FormData, names: Sequence[str]) -> List[str]:
    for name in names:
        values = form.getlist(name)
        if values:
            return [v if isinstance(v, str) else "" for v in values]
    return []


def _first_value(form: FormData, names: Sequence[str]) -> Optional[str]:
    for name in names:
        value = form.get(name)
        if isinstance(value, str) and value.strip():
            return value
    return None


def line_item_fields(form: FormData) -> Tuple[List[str], List[str], List[str]]:
    """(desc 목록, qty 목록, unit 목록)"""
    return (
        _first_list(form, ITEM_FIELD_ALIASES["desc"]),
        _first_list(form, ITEM_FIELD_ALIASES["qty"]),
        _first_list(form, ITEM_FIELD_ALIASES["unit"]),
    )


def buyer_fields(form: FormData) -> Dict[str, str]:
    values = {}
    for field in BUYER_FIELDS:
        value = form.get(field)
        values[field] = value if isinstance(value, str) else ""
    return values


def home_fields(form: FormData) -> Dict[str, Optional[str]]:
    return {key: _first_value(form, names) for key, names in HOME_FIELD_ALIASES.items()}
