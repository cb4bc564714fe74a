"""
공개 화면

- 홈 / offers 비밀번호 로그인
- offers 목록 / 오퍼 상세 / 첨부 다운로드 (offers 게이트)
- 바이어 문의 메일
"""

from typing import Optional
from urllib.parse import quote
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from snfsemi.core.config import settings
from snfsemi.core.database import get_db
from snfsemi.core.exceptions import MailDeliveryFailed, MailUnavailable
from snfsemi.core.rate_limit import allow_login_attempt
from snfsemi.core.security import (
    OFFER_COOKIE,
    clear_cookie,
    is_admin_request,
    require_offer_access,
    set_offer_cookie,
)
from snfsemi.core.templates import render
from snfsemi.models.site_settings import DEFAULT_HOME
from snfsemi.schemas.inquiry import BuyerInquiry
from snfsemi.services import credential_service, home_service, offer_service
from snfsemi.services.mail_service import build_buyer_inquiry_email, is_mail_configured, send_mail

logger = logging.getLogger(__name__)

router = APIRouter()

OFFER_NOT_FOUND = "Offer not found."


def _inquiry_recipient() -> str:
    return settings.ADMIN_EMAIL or settings.EMAIL_FROM_ADDRESS


@router.get("/")
async def home(request: Request, db: AsyncSession = Depends(get_db)):
    """랜딩 페이지"""
    row = await home_service.get_home_settings(db)
    home_data = dict(DEFAULT_HOME)
    if row is not None:
        for key in DEFAULT_HOME:
            home_data[key] = getattr(row, key) or DEFAULT_HOME[key]
    return render(request, "home", {"home": home_data})


@router.get("/offers/login")
async def offers_login_page(request: Request):
    return render(request, "offers_login", {"error": None})


@router.post("/offers/login")
async def offers_login(
    request: Request,
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    """offers 공용 비밀번호 확인 후 30분짜리 offer 쿠키 발급"""
    if not await allow_login_attempt(request, "offers_login"):
        return render(request, "offers_login", {"error": "Too many attempts. Please try again later."}, status_code=429)

    if not await credential_service.verify_offer_password(db, password):
        return render(request, "offers_login", {"error": "Wrong password."}, status_code=401)

    response = RedirectResponse("/offers", status_code=303)
    set_offer_cookie(response)
    return response


@router.post("/offers/logout")
async def offers_logout():
    response = RedirectResponse("/", status_code=303)
    clear_cookie(response, OFFER_COOKIE)
    return response


@router.get("/offers", dependencies=[Depends(require_offer_access)])
async def offers(request: Request, db: AsyncSession = Depends(get_db)):
    """게시된 오퍼 목록"""
    posts = await offer_service.list_posts(db, published_only=True)
    entries = [{"post": post, "offer": offer_service.parse_offer(post)} for post in posts]
    return render(request, "offers", {"entries": entries})


async def _render_post(
    request: Request,
    db: AsyncSession,
    post_id: int,
    *,
    sent: bool = False,
    error: Optional[str] = None,
    inquiry: Optional[dict] = None,
    status_code: int = 200,
):
    # 관리자는 미게시 오퍼도 미리 볼 수 있다
    post = await offer_service.get_post(db, post_id, published_only=not is_admin_request(request))
    if post is None:
        raise HTTPException(status_code=404, detail=OFFER_NOT_FOUND)

    attachments = await offer_service.list_attachments(db, post.id)
    return render(
        request,
        "post",
        {
            "post": post,
            "offer": offer_service.parse_offer(post),
            "attachments": attachments,
            "sent": sent,
            "error": error,
            "inquiry": inquiry or {},
            "mail_enabled": is_mail_configured(),
        },
        status_code=status_code,
    )


@router.get("/post/{post_id}", dependencies=[Depends(require_offer_access)])
async def post_detail(
    post_id: int,
    request: Request,
    sent: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """오퍼 상세"""
    return await _render_post(request, db, post_id, sent=sent == "1")


@router.post("/post/{post_id}/buyer-submit", dependencies=[Depends(require_offer_access)])
async def buyer_submit(
    post_id: int,
    request: Request,
    buyer_name: str = Form(""),
    company: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    message: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    """오퍼 상세 페이지의 바이어 문의 → 관리자 메일"""
    submitted = {
        "buyer_name": buyer_name,
        "company": company,
        "email": email,
        "phone": phone,
        "message": message,
    }
    post = await offer_service.get_post(db, post_id, published_only=not is_admin_request(request))
    if post is None:
        raise HTTPException(status_code=404, detail=OFFER_NOT_FOUND)

    try:
        inquiry = BuyerInquiry(**submitted)
    except ValidationError:
        return await _render_post(
            request, db, post_id,
            error="Please enter your name and a valid email address.",
            inquiry=submitted,
            status_code=400,
        )

    try:
        await send_mail(build_buyer_inquiry_email(_inquiry_recipient(), post.id, post.title, inquiry))
    except MailUnavailable:
        return await _render_post(
            request, db, post_id,
            error="Mail is not configured. Please contact us directly.",
            inquiry=submitted,
            status_code=503,
        )
    except MailDeliveryFailed:
        return await _render_post(
            request, db, post_id,
            error="Your inquiry could not be sent. Please try again later.",
            inquiry=submitted,
            status_code=502,
        )

    logger.info(f"바이어 문의 접수: post_id={post.id}")
    return RedirectResponse(f"/post/{post.id}?sent=1", status_code=303)


def content_disposition(filename: str) -> str:
    """비 ASCII 파일명도 깨지지 않도록 RFC 5987 형식으로"""
    return f"attachment; filename*=UTF-8''{quote(filename, safe='')}"


@router.get("/attachment/{attachment_id}", dependencies=[Depends(require_offer_access)])
async def download_attachment(
    attachment_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """첨부 다운로드 (저장된 바이트 그대로)"""
    attachment = await offer_service.get_attachment(db, attachment_id)
    if attachment is None:
        raise HTTPException(status_code=404, detail="Attachment not found.")

    if not is_admin_request(request):
        post = await offer_service.get_post(db, attachment.post_id, published_only=True)
        if post is None:
            raise HTTPException(status_code=404, detail="Attachment not found.")

    return Response(
        content=attachment.data or b"",
        media_type=attachment.mime_type or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(attachment.filename or "file")},
    )
