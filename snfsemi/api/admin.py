"""
관리자 화면

- 로그인/로그아웃
- 대시보드 / 홈 문구 / offers 비밀번호
- 계정 변경 (메일 인증코드)
- 오퍼 작성/수정/게시 전환/삭제, 첨부 관리
"""

from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import FormData, UploadFile

from snfsemi.api.legacy_fields import buyer_fields, home_fields, line_item_fields
from snfsemi.core.config import settings
from snfsemi.core.database import get_db
from snfsemi.core.exceptions import AttachmentTooLarge, MailDeliveryFailed, MailUnavailable, OTPError
from snfsemi.core.rate_limit import allow_login_attempt
from snfsemi.core.security import ADMIN_COOKIE, clear_cookie, require_admin, set_admin_cookie
from snfsemi.core.templates import render
from snfsemi.models.site_settings import DEFAULT_HOME
from snfsemi.schemas.offer import LineItem, OfferSheet, build_offer_sheet
from snfsemi.services import credential_service, home_service, offer_service, otp_service
from snfsemi.services.mail_service import is_mail_configured
from snfsemi.services.offer_service import UploadedFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")

ADMIN_ONLY = [Depends(require_admin)]

LOGIN_FAILED = "아이디 또는 비밀번호가 틀렸습니다."
OFFER_NOT_FOUND = "Offer not found"

# /admin/account?error=... / ?success=... 에 대응하는 안내 문구
ACCOUNT_ERRORS: Dict[str, str] = {
    "code_missing": "인증코드를 입력하세요.",
    "code_not_found": "발급된 인증코드가 없습니다. 먼저 코드를 받으세요.",
    "code_already_used": "이미 사용된 인증코드입니다. 새 코드를 받으세요.",
    "code_expired": "인증코드가 만료되었습니다. 새 코드를 받으세요.",
    "code_mismatch": "인증코드가 일치하지 않습니다.",
    "nothing_to_update": "변경할 아이디 또는 비밀번호를 입력하세요.",
    "password_too_short": f"비밀번호는 최소 {settings.ADMIN_PASSWORD_MIN_LENGTH}자 이상이어야 합니다.",
    "conflict": "계정을 변경하지 못했습니다. (이미 사용 중인 아이디일 수 있습니다)",
    "mail_not_configured": "메일 발송이 설정되어 있지 않아 인증코드를 보낼 수 없습니다.",
    "mail_failed": "인증코드 메일 발송에 실패했습니다. 잠시 후 다시 시도하세요.",
    "rate_limited": "시도가 너무 많습니다. 잠시 후 다시 시도하세요.",
}

ACCOUNT_SUCCESS: Dict[str, str] = {
    "code_sent": f"인증코드를 운영자 메일로 보냈습니다. {settings.OTP_TTL_MINUTES}분 안에 입력하세요.",
    "updated": "관리자 계정이 변경되었습니다.",
}


def _redirect(location: str) -> RedirectResponse:
    return RedirectResponse(location, status_code=303)


# ---------------------------------------------------------------------------
# 로그인
# ---------------------------------------------------------------------------

@router.get("/login")
async def login_page(request: Request):
    return render(request, "admin_login", {"error": None, "username": ""})


@router.post("/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    """관리자 로그인. 아이디/비밀번호 중 무엇이 틀렸는지 구분하지 않는다"""
    if not await allow_login_attempt(request, "admin_login"):
        return render(
            request, "admin_login",
            {"error": ACCOUNT_ERRORS["rate_limited"], "username": username},
            status_code=429,
        )

    if not await credential_service.authenticate_admin(db, username, password):
        logger.info("관리자 로그인 실패")
        return render(request, "admin_login", {"error": LOGIN_FAILED, "username": username}, status_code=401)

    response = _redirect("/admin")
    set_admin_cookie(response)
    return response


@router.post("/logout")
async def logout():
    response = _redirect("/")
    clear_cookie(response, ADMIN_COOKIE)
    return response


# ---------------------------------------------------------------------------
# 대시보드 / 홈 문구 / offers 비밀번호
# ---------------------------------------------------------------------------

@router.get("", dependencies=ADMIN_ONLY)
async def dashboard(request: Request, db: AsyncSession = Depends(get_db)):
    posts = await offer_service.list_posts(db, published_only=False)
    return render(request, "admin_dashboard", {"posts": posts})


@router.get("/home", dependencies=ADMIN_ONLY)
async def home_settings_page(
    request: Request,
    saved: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    row = await home_service.get_home_settings(db)
    home = {key: (getattr(row, key) if row is not None else None) or default for key, default in DEFAULT_HOME.items()}
    return render(request, "admin_home", {"home": home, "saved": saved == "1"})


@router.post("/home", dependencies=ADMIN_ONLY)
async def save_home_settings(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    await home_service.update_home_settings(db, **home_fields(form))
    return _redirect("/admin/home?saved=1")


@router.get("/offers-password", dependencies=ADMIN_ONLY)
async def offers_password_page(request: Request):
    return render(request, "admin_offers_password", {"error": None, "success": None})


@router.post("/offers-password", dependencies=ADMIN_ONLY)
async def change_offers_password(
    request: Request,
    new_password: str = Form(""),
    new_password_confirm: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    """offers 공용 비밀번호 교체. 이미 발급된 offer 쿠키는 만료 시까지 유효"""
    min_length = settings.OFFER_PASSWORD_MIN_LENGTH
    if len(new_password) < min_length:
        return render(
            request, "admin_offers_password",
            {"error": f"비밀번호는 최소 {min_length}자 이상", "success": None},
            status_code=400,
        )
    if new_password != new_password_confirm:
        return render(
            request, "admin_offers_password",
            {"error": "비밀번호 확인이 다릅니다.", "success": None},
            status_code=400,
        )

    await credential_service.set_offer_password(db, new_password)
    return render(request, "admin_offers_password", {"error": None, "success": "저장 완료!"})


# ---------------------------------------------------------------------------
# 관리자 계정 (인증코드)
# ---------------------------------------------------------------------------

@router.get("/account", dependencies=ADMIN_ONLY)
async def account_page(
    request: Request,
    error: Optional[str] = None,
    success: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    admin = await credential_service.get_admin_user(db)
    return render(
        request,
        "admin_account",
        {
            "username": admin.username if admin else "",
            "error": ACCOUNT_ERRORS.get(error or "") if error else None,
            "error_code": error,
            "success": ACCOUNT_SUCCESS.get(success or "") if success else None,
            "mail_enabled": is_mail_configured(),
            "otp_ttl_minutes": settings.OTP_TTL_MINUTES,
            "password_min_length": settings.ADMIN_PASSWORD_MIN_LENGTH,
        },
    )


@router.post("/account/send-code", dependencies=ADMIN_ONLY)
async def send_account_code(db: AsyncSession = Depends(get_db)):
    try:
        await otp_service.request_code(db)
    except MailUnavailable:
        return _redirect("/admin/account?error=mail_not_configured")
    except MailDeliveryFailed:
        return _redirect("/admin/account?error=mail_failed")
    return _redirect("/admin/account?success=code_sent")


@router.post("/account/update", dependencies=ADMIN_ONLY)
async def update_account(
    request: Request,
    new_username: str = Form(""),
    new_password: str = Form(""),
    code: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    """인증코드 확인 후 관리자 아이디/비밀번호 변경. 실패 사유는 error 쿼리로 전달"""
    if not await allow_login_attempt(request, "admin_account"):
        return _redirect("/admin/account?error=rate_limited")

    try:
        await otp_service.apply_change(db, new_username, new_password, code)
    except OTPError as e:
        logger.info(f"관리자 계정 변경 거부: {e.code}")
        return _redirect(f"/admin/account?error={e.code}")
    return _redirect("/admin/account?success=updated")


# ---------------------------------------------------------------------------
# 오퍼 작성/수정
# ---------------------------------------------------------------------------

def _is_checked(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() in ("1", "true", "on", "yes")


def _editable_offer(offer: Optional[OfferSheet]) -> OfferSheet:
    """편집 폼에는 최소 한 줄의 품목 입력칸이 있어야 한다"""
    offer = offer or OfferSheet.blank()
    if not offer.items:
        offer.items.append(LineItem())
    return offer


def _form_values(form: FormData) -> Dict[str, Any]:
    """제출된 폼을 편집 화면 값으로 (오류 시 입력값을 그대로 되돌려주기 위해)"""
    title = form.get("title")
    note = form.get("offer_note")
    return {
        "title": title.strip() if isinstance(title, str) else "",
        "is_published": _is_checked(form.get("is_published")),
        "offer_note": note if isinstance(note, str) else "",
        "offer": build_offer_sheet(buyer_fields(form), *line_item_fields(form)),
    }


async def _read_uploads(form: FormData) -> List[UploadedFile]:
    """첨부를 모두 읽는다. 하나라도 용량을 넘으면 아무것도 저장하지 않도록 저장 전에 확인"""
    files: List[UploadedFile] = []
    for item in form.getlist("attachments"):
        if not isinstance(item, UploadFile):
            continue
        uploaded = await offer_service.read_upload(item, settings.MAX_ATTACHMENT_BYTES)
        if uploaded is not None:
            files.append(uploaded)
    return files


async def _render_edit(
    request: Request,
    db: AsyncSession,
    *,
    post_id: Optional[int],
    values: Dict[str, Any],
    error: Optional[str] = None,
    status_code: int = 200,
):
    attachments = await offer_service.list_attachments(db, post_id) if post_id is not None else []
    data = dict(values)
    data["offer"] = _editable_offer(values.get("offer"))
    return render(
        request,
        "admin_edit",
        {
            "mode": "edit" if post_id is not None else "new",
            "post_id": post_id,
            "form": data,
            "attachments": attachments,
            "max_attachment_mb": settings.MAX_ATTACHMENT_BYTES // (1024 * 1024),
            "error": error,
        },
        status_code=status_code,
    )


async def _validate_and_read(form: FormData):
    """(폼 값, 첨부 목록, 오류 문구, 상태 코드)"""
    values = _form_values(form)
    if not values["title"]:
        return values, [], "제목을 입력하세요.", 400
    try:
        files = await _read_uploads(form)
    except AttachmentTooLarge as e:
        logger.info(f"첨부 용량 초과: {e.filename}")
        limit_mb = e.limit_bytes // (1024 * 1024)
        return values, [], f"첨부파일이 너무 큽니다: {e.filename} (최대 {limit_mb}MB)", 413
    return values, files, None, 200


@router.get("/new", dependencies=ADMIN_ONLY)
async def new_post_page(request: Request, db: AsyncSession = Depends(get_db)):
    values = {"title": "", "is_published": True, "offer_note": "", "offer": OfferSheet.blank()}
    return await _render_edit(request, db, post_id=None, values=values)


@router.post("/new", dependencies=ADMIN_ONLY)
async def create_post(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    values, files, error, status_code = await _validate_and_read(form)
    if error:
        return await _render_edit(request, db, post_id=None, values=values, error=error, status_code=status_code)

    post = await offer_service.create_post(
        db,
        title=values["title"],
        is_published=values["is_published"],
        offer=values["offer"],
        offer_note=values["offer_note"],
    )
    for file in files:
        await offer_service.add_attachment(db, post.id, file)
    return _redirect("/admin")


@router.get("/edit/{post_id}", dependencies=ADMIN_ONLY)
async def edit_post_page(post_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    post = await offer_service.get_post(db, post_id)
    if post is None:
        raise HTTPException(status_code=404, detail=OFFER_NOT_FOUND)
    values = {
        "title": post.title,
        "is_published": bool(post.is_published),
        "offer_note": post.offer_note or "",
        "offer": offer_service.parse_offer(post),
    }
    return await _render_edit(request, db, post_id=post.id, values=values)


@router.post("/edit/{post_id}", dependencies=ADMIN_ONLY)
async def edit_post(post_id: int, request: Request, db: AsyncSession = Depends(get_db)):
    if await offer_service.get_post(db, post_id) is None:
        raise HTTPException(status_code=404, detail=OFFER_NOT_FOUND)

    form = await request.form()
    values, files, error, status_code = await _validate_and_read(form)
    if error:
        return await _render_edit(request, db, post_id=post_id, values=values, error=error, status_code=status_code)

    await offer_service.update_post(
        db,
        post_id,
        title=values["title"],
        is_published=values["is_published"],
        offer=values["offer"],
        offer_note=values["offer_note"],
    )
    for file in files:
        await offer_service.add_attachment(db, post_id, file)
    return _redirect("/admin")


# ---------------------------------------------------------------------------
# 게시 전환 / 삭제
# ---------------------------------------------------------------------------

@router.post("/toggle/{post_id}", dependencies=ADMIN_ONLY)
async def toggle_post(post_id: int, db: AsyncSession = Depends(get_db)):
    if await offer_service.toggle_published(db, post_id) is None:
        raise HTTPException(status_code=404, detail=OFFER_NOT_FOUND)
    return _redirect("/admin")


@router.post("/delete/{post_id}", dependencies=ADMIN_ONLY)
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    await offer_service.delete_post(db, post_id)
    return _redirect("/admin")


@router.post("/attachment/delete/{attachment_id}", dependencies=ADMIN_ONLY)
async def delete_attachment(attachment_id: int, db: AsyncSession = Depends(get_db)):
    post_id = await offer_service.delete_attachment(db, attachment_id)
    if post_id is None:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return _redirect(f"/admin/edit/{post_id}")
