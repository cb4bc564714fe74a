"""
이메일 발송 서비스
"""

from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
import smtplib
import ssl
import asyncio
import logging

from snfsemi.core.config import settings
from snfsemi.core.exceptions import MailDeliveryFailed, MailUnavailable
from snfsemi.schemas.inquiry import BuyerInquiry


logger = logging.getLogger(__name__)


@dataclass
class MailEnvelope:
    """발송할 메일 한 통"""
    to_email: str
    subject: str
    text: str
    html: str


def is_mail_configured() -> bool:
    """SMTP 호스트가 없으면 메일 기능 자체를 끈다"""
    return bool(settings.SMTP_HOST)


def _send_email_sync(to_email: str, subject: str, text: str, html: str) -> None:
    """동기 SMTP 전송 (스레드 풀에서 실행)"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
    msg["To"] = to_email

    part1 = MIMEText(text, "plain", "utf-8")
    part2 = MIMEText(html, "html", "utf-8")
    msg.attach(part1)
    msg.attach(part2)

    context = ssl.create_default_context()
    if settings.SMTP_USE_SSL:
        with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, context=context) as server:
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
    else:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            if settings.SMTP_USE_TLS:
                server.starttls(context=context)
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())


async def send_mail(envelope: MailEnvelope) -> None:
    """메일 발송 (비동기). 미설정이면 MailUnavailable, 전송 실패면 MailDeliveryFailed"""
    if not is_mail_configured():
        logger.warning("메일 미발송 (SMTP 미설정) → 제목: %s, 수신자: %s", envelope.subject, envelope.to_email)
        raise MailUnavailable()

    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(
            None,
            _send_email_sync,
            envelope.to_email,
            envelope.subject,
            envelope.text,
            envelope.html,
        )
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"메일 발송 실패: {envelope.subject} → {envelope.to_email}: {e}", exc_info=True)
        raise MailDeliveryFailed() from e
    logger.info("메일 발송 완료: %s → %s", envelope.subject, envelope.to_email)


def build_otp_email(to_email: str, code: str, ttl_minutes: int) -> MailEnvelope:
    """관리자 계정 변경 인증코드 메일"""
    subject = f"[{settings.SITE_NAME}] 관리자 계정 변경 인증코드"
    text = (
        f"관리자 계정 변경 인증코드: {code}\n\n"
        f"이 코드는 {ttl_minutes}분 동안 한 번만 사용할 수 있습니다.\n"
        "본인이 요청하지 않았다면 관리자 비밀번호를 확인하세요."
    )
    html = f"""
    <div style="font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; color:#111;">
      <h2>관리자 계정 변경 인증코드</h2>
      <p style="font-size:28px;font-weight:700;letter-spacing:6px;">{code}</p>
      <p>이 코드는 {ttl_minutes}분 동안 한 번만 사용할 수 있습니다.</p>
      <p style="font-size:12px;color:#6b7280;">본인이 요청하지 않았다면 관리자 비밀번호를 확인하세요.</p>
    </div>
    """
    return MailEnvelope(to_email=to_email, subject=subject, text=text, html=html)


def build_buyer_inquiry_email(to_email: str, post_id: int, post_title: str, inquiry: BuyerInquiry) -> MailEnvelope:
    """오퍼 상세 페이지에서 들어온 바이어 문의 메일"""
    subject = f"[{settings.SITE_NAME} 문의] #{post_id} {post_title}"
    text = f"""
오퍼 문의가 접수되었습니다.

오퍼: #{post_id} {post_title}

문의자 정보:
- 이름: {inquiry.buyer_name}
- 회사: {inquiry.company}
- 이메일: {inquiry.email}
- 전화: {inquiry.phone}

문의 내용:
{inquiry.message}
    """
    html = f"""
    <div style="font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; color:#111;">
        <h2>오퍼 문의가 접수되었습니다</h2>
        <p><strong>오퍼:</strong> #{post_id} {escape(post_title)}</p>
        <hr style="margin:20px 0;border:none;border-top:1px solid #e5e7eb;" />
        <h3>문의자 정보</h3>
        <ul>
            <li><strong>이름:</strong> {escape(inquiry.buyer_name)}</li>
            <li><strong>회사:</strong> {escape(inquiry.company)}</li>
            <li><strong>이메일:</strong> {escape(str(inquiry.email))}</li>
            <li><strong>전화:</strong> {escape(inquiry.phone)}</li>
        </ul>
        <hr style="margin:20px 0;border:none;border-top:1px solid #e5e7eb;" />
        <h3>문의 내용</h3>
        <div style="background:#f9fafb;padding:16px;border-radius:8px;white-space:pre-wrap;">{escape(inquiry.message)}</div>
    </div>
    """
    return MailEnvelope(to_email=to_email, subject=subject, text=text, html=html)
