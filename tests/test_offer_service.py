"""
Offer repository tests: posts, publish toggle, attachments and upload limits
"""

import io

import pytest
from sqlalchemy import func, select
from starlette.datastructures import Headers, UploadFile

from snfsemi.core.exceptions import AttachmentTooLarge
from snfsemi.models import PostAttachment
from snfsemi.schemas.offer import OfferSheet, build_offer_sheet
from snfsemi.services import offer_service
from snfsemi.services.offer_service import UploadedFile


def _upload(data: bytes, filename: str = "sheet.pdf", content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


async def _attachment_rows(db) -> int:
    result = await db.execute(select(func.count(PostAttachment.id)))
    return result.scalar_one()


async def test_create_and_read_back(db):
    offer = build_offer_sheet({"messrs": "ACME"}, ["Wafer", "Die"], ["10", "20"], ["$1", "$2"])
    post = await offer_service.create_post(db, "Q3 wafers", True, offer, "FOB Busan")

    stored = await offer_service.get_post(db, post.id)
    assert stored.title == "Q3 wafers"
    assert stored.content == ""
    assert stored.offer_note == "FOB Busan"
    assert offer_service.parse_offer(stored) == offer


async def test_published_filter(db):
    shown = await offer_service.create_post(db, "Shown", True, OfferSheet())
    hidden = await offer_service.create_post(db, "Hidden", False, OfferSheet())

    assert [p.id for p in await offer_service.list_posts(db, published_only=True)] == [shown.id]
    assert [p.id for p in await offer_service.list_posts(db, published_only=False)] == [hidden.id, shown.id]
    assert await offer_service.get_post(db, hidden.id, published_only=True) is None
    assert await offer_service.get_post(db, hidden.id) is not None


async def test_toggle_flips_only_the_flag(db):
    post = await offer_service.create_post(db, "Toggle me", True, OfferSheet(), "note")
    before = post.updated_at

    toggled = await offer_service.toggle_published(db, post.id)
    assert toggled.is_published is False
    assert toggled.title == "Toggle me"
    assert toggled.offer_note == "note"
    assert toggled.updated_at >= before

    toggled = await offer_service.toggle_published(db, post.id)
    assert toggled.is_published is True
    assert await offer_service.toggle_published(db, 9999) is None


async def test_update_post(db):
    post = await offer_service.create_post(db, "Draft", False, OfferSheet())
    offer = build_offer_sheet({}, ["Chip"], ["1"], ["$9"])

    updated = await offer_service.update_post(db, post.id, "Final", True, offer, "")
    assert updated.title == "Final"
    assert updated.is_published is True
    assert offer_service.parse_offer(updated).items[0].desc == "Chip"
    assert await offer_service.update_post(db, 9999, "x", True, offer) is None


async def test_delete_post_removes_its_attachments(db):
    post = await offer_service.create_post(db, "With files", True, OfferSheet())
    other = await offer_service.create_post(db, "Other", True, OfferSheet())
    await offer_service.add_attachment(db, post.id, UploadedFile("a.txt", "text/plain", b"aaa"))
    await offer_service.add_attachment(db, post.id, UploadedFile("b.txt", "text/plain", b"bbb"))
    await offer_service.add_attachment(db, other.id, UploadedFile("c.txt", "text/plain", b"ccc"))

    assert await offer_service.delete_post(db, post.id) is True

    assert await offer_service.get_post(db, post.id) is None
    assert await offer_service.count_attachments(db, post.id) == 0
    assert await _attachment_rows(db) == 1
    assert await offer_service.delete_post(db, post.id) is False


async def test_attachment_roundtrip(db):
    post = await offer_service.create_post(db, "Files", True, OfferSheet())
    payload = bytes(range(10))
    attachment = await offer_service.add_attachment(
        db, post.id, UploadedFile("sheet.bin", "application/octet-stream", payload)
    )

    fetched = await offer_service.get_attachment(db, attachment.id)
    assert fetched.data == payload
    assert fetched.size_bytes == 10

    listed = await offer_service.list_attachments(db, post.id)
    assert [(a.id, a.filename, a.size_bytes) for a in listed] == [(attachment.id, "sheet.bin", 10)]


async def test_delete_attachment_returns_owner(db):
    post = await offer_service.create_post(db, "Files", True, OfferSheet())
    attachment = await offer_service.add_attachment(db, post.id, UploadedFile("a.txt", "text/plain", b"a"))

    assert await offer_service.delete_attachment(db, attachment.id) == post.id
    assert await offer_service.delete_attachment(db, attachment.id) is None
    assert await offer_service.count_attachments(db, post.id) == 0


async def test_read_upload_within_limit():
    uploaded = await offer_service.read_upload(_upload(b"0123456789"), limit_bytes=10)
    assert uploaded.filename == "sheet.pdf"
    assert uploaded.mime_type == "application/pdf"
    assert uploaded.size == 10


async def test_read_upload_over_limit():
    with pytest.raises(AttachmentTooLarge) as exc_info:
        await offer_service.read_upload(_upload(b"0123456789A"), limit_bytes=10)
    assert exc_info.value.filename == "sheet.pdf"


async def test_read_upload_skips_empty_field():
    assert await offer_service.read_upload(_upload(b"", filename=""), limit_bytes=10) is None


async def test_read_upload_strips_client_path():
    uploaded = await offer_service.read_upload(_upload(b"x", filename="C:\\Users\\kim\\견적서.pdf"), limit_bytes=10)
    assert uploaded.filename == "견적서.pdf"
