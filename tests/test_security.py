"""
Access gate tests: signed claims, admin gate and the offers TTL gate
"""

from datetime import datetime, timedelta

import pytest
from jose import jwt

from snfsemi.core.config import settings
from snfsemi.core.security import (
    OfferGateState,
    dummy_verify,
    evaluate_offer_gate,
    get_password_hash,
    is_admin_token,
    issue_admin_token,
    issue_claim,
    issue_offer_token,
    read_claim,
    to_ms,
    verify_password,
)

ISSUED_AT = datetime(2024, 5, 1, 9, 0, 0)


def test_claim_roundtrip():
    token = issue_claim("offer", 123)
    assert read_claim(token, "offer") == 123
    assert read_claim(token, "admin") is None


def test_claim_with_foreign_secret_is_rejected():
    forged = jwt.encode({"admin": 1}, "not-the-secret", algorithm="HS256")
    assert read_claim(forged, "admin") is None
    assert is_admin_token(forged) is False


def test_tampered_token_is_rejected():
    token = issue_admin_token()
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")])
    assert is_admin_token(tampered) is False


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_admin_gate_rejects_missing_or_broken(token):
    assert is_admin_token(token) is False


def test_admin_gate_requires_value_one():
    assert is_admin_token(issue_admin_token()) is True
    assert is_admin_token(issue_claim("admin", 0)) is False
    assert is_admin_token(issue_claim("admin", "1")) is False
    assert is_admin_token(issue_claim("offer", 1)) is False


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(0), OfferGateState.VALID_FRESH),
        (timedelta(minutes=29, seconds=59), OfferGateState.VALID_FRESH),
        (timedelta(minutes=30), OfferGateState.VALID_FRESH),
        (timedelta(minutes=30, seconds=1), OfferGateState.EXPIRED),
        (timedelta(hours=5), OfferGateState.EXPIRED),
    ],
)
def test_offer_gate_ttl_boundary(elapsed, expected):
    token = issue_offer_token(ISSUED_AT)
    assert evaluate_offer_gate(None, token, now=ISSUED_AT + elapsed) == expected


def test_offer_gate_without_token():
    assert evaluate_offer_gate(None, None, now=ISSUED_AT) == OfferGateState.NO_TOKEN
    assert evaluate_offer_gate(None, "", now=ISSUED_AT) == OfferGateState.NO_TOKEN


@pytest.mark.parametrize(
    "token",
    [
        "garbage",
        issue_claim("offer", "yesterday"),
        issue_claim("offer", True),
        issue_claim("offer", None),
        issue_claim("admin", 1),
        jwt.encode({"offer": to_ms(ISSUED_AT)}, "not-the-secret", algorithm="HS256"),
    ],
)
def test_offer_gate_malformed(token):
    assert evaluate_offer_gate(None, token, now=ISSUED_AT) == OfferGateState.MALFORMED


def test_offer_gate_future_timestamp_is_malformed():
    token = issue_offer_token(ISSUED_AT + timedelta(minutes=5))
    assert evaluate_offer_gate(None, token, now=ISSUED_AT) == OfferGateState.MALFORMED


def test_admin_bypasses_offer_gate():
    expired = issue_offer_token(ISSUED_AT - timedelta(days=1))
    assert evaluate_offer_gate(issue_admin_token(), expired, now=ISSUED_AT) == OfferGateState.ADMIN
    assert evaluate_offer_gate(issue_admin_token(), None, now=ISSUED_AT) == OfferGateState.ADMIN


def test_offer_gate_uses_configured_ttl():
    token = issue_offer_token(ISSUED_AT)
    now = ISSUED_AT + timedelta(minutes=settings.OFFER_ACCESS_TTL_MINUTES, seconds=1)
    assert evaluate_offer_gate(None, token, now=now) == OfferGateState.EXPIRED
    assert evaluate_offer_gate(None, token, now=now, ttl=timedelta(hours=1)) == OfferGateState.VALID_FRESH


def test_password_hashing():
    hashed = get_password_hash("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)
    assert not verify_password("hunter22", "not-a-bcrypt-hash")
    dummy_verify()
