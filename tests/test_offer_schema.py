"""
Offer sheet payload and form field parsing tests
"""

import json

import pytest
from starlette.datastructures import FormData

from snfsemi.api.legacy_fields import buyer_fields, home_fields, line_item_fields
from snfsemi.schemas.inquiry import BuyerInquiry
from snfsemi.schemas.offer import BUYER_FIELDS, LineItem, OfferSheet, build_line_items, build_offer_sheet


def _rows(items):
    return [(i.desc, i.qty, i.unit) for i in items]


def test_single_scalar_row():
    assert _rows(build_line_items("A", "1", "2")) == [("A", "1", "2")]


def test_uneven_lists_are_padded_and_blank_rows_dropped():
    items = build_line_items(["A", "", "C"], ["1", "", ""], ["", "", "3"])
    assert _rows(items) == [("A", "1", ""), ("C", "", "3")]


def test_longest_list_wins():
    items = build_line_items(["A"], ["1", "2"], [])
    assert _rows(items) == [("A", "1", ""), ("", "2", "")]


def test_whitespace_is_trimmed():
    assert _rows(build_line_items(["  A "], [" 10 "], ["\t$5\n"])) == [("A", "10", "$5")]


@pytest.mark.parametrize("value", [None, [], ""])
def test_nothing_submitted(value):
    assert build_line_items(value, value, value) == []


def test_all_whitespace_rows_are_dropped():
    assert build_line_items(["  ", ""], [" "], ["\t"]) == []


def test_offer_sheet_json_keys_are_stable():
    sheet = build_offer_sheet({"messrs": " ACME ", "invoice_no": "INV-1"}, ["Wafer"], ["100"], ["$3"])
    payload = json.loads(sheet.to_json())
    assert set(payload) == set(BUYER_FIELDS) | {"items"}
    assert payload["messrs"] == "ACME"
    assert payload["payment"] == ""
    assert payload["items"] == [{"desc": "Wafer", "qty": "100", "unit": "$3"}]


def test_offer_sheet_reads_rows_written_by_earlier_versions():
    raw = json.dumps({"messrs": "Old Buyer", "items": [{"desc": "Die", "qty": 5, "unit": "1.2"}], "extra": "x"})
    sheet = OfferSheet.from_json(raw)
    assert sheet is not None
    assert sheet.messrs == "Old Buyer"
    assert sheet.items[0].desc == "Die"


@pytest.mark.parametrize("raw", [None, "", "{not json", "[1, 2]", '{"items": "nope"}'])
def test_unreadable_offer_json_is_no_offer(raw):
    assert OfferSheet.from_json(raw) is None


def test_blank_sheet_has_one_empty_row():
    assert OfferSheet.blank().items == [LineItem()]


def test_bracketed_item_names():
    form = FormData([
        ("item_desc[]", "A"), ("item_desc[]", "B"),
        ("item_qty[]", "1"), ("item_qty[]", "2"),
        ("item_unit[]", "10"), ("item_unit[]", "20"),
    ])
    assert line_item_fields(form) == (["A", "B"], ["1", "2"], ["10", "20"])


def test_legacy_item_names():
    form = FormData([("item_desc", "A"), ("item_qty", "1"), ("item_price[]", "9.5")])
    assert line_item_fields(form) == (["A"], ["1"], ["9.5"])


def test_buyer_fields_default_to_empty():
    values = buyer_fields(FormData([("messrs", "ACME")]))
    assert values["messrs"] == "ACME"
    assert values["bank_info"] == ""
    assert set(values) == set(BUYER_FIELDS)


def test_home_fields_accept_hero_text():
    values = home_fields(FormData([("hero_text", "Legacy"), ("about_text", "About us")]))
    assert values["hero_title"] == "Legacy"
    assert values["about_text"] == "About us"
    assert values["hero_subtitle"] is None


def test_home_fields_prefer_canonical_name():
    values = home_fields(FormData([("hero_title", "New"), ("hero_text", "Old")]))
    assert values["hero_title"] == "New"


def test_buyer_inquiry_strips_tags():
    inquiry = BuyerInquiry(buyer_name="<b>Kim</b>", email="kim@example.com", message="<script>x</script>hello")
    assert inquiry.buyer_name == "Kim"
    assert inquiry.message == "xhello"


@pytest.mark.parametrize(
    "data",
    [
        {"buyer_name": "", "email": "kim@example.com"},
        {"buyer_name": "Kim", "email": "not-an-email"},
        {"buyer_name": "<i></i>", "email": "kim@example.com"},
    ],
)
def test_buyer_inquiry_rejects_invalid(data):
    with pytest.raises(ValueError):
        BuyerInquiry(**data)
