"""
도메인 예외

API 레이어에서 잡아서 리다이렉트/폼 재렌더/500 응답으로 바꾼다.
클라이언트에는 내부 오류 내용(스택, SQL)을 절대 내보내지 않는다.
"""

from typing import Optional


class DomainException(Exception):
    """도메인 예외 기본 클래스"""

    def __init__(self, message: str = "", code: Optional[str] = None) -> None:
        self.message = message or self.__class__.__name__
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class StoreUnavailable(DomainException):
    """저장소 연결/쿼리 실패 (요청 중단, 500)"""


class AuthRedirect(DomainException):
    """게이트 미통과 시 로그인 페이지로 보내는 제어 흐름"""

    def __init__(self, location: str, clear_cookies: tuple = ()) -> None:
        super().__init__(f"redirect to {location}", code="auth_redirect")
        self.location = location
        self.clear_cookies = tuple(clear_cookies)


class AttachmentTooLarge(DomainException):
    """첨부파일 용량 초과"""

    def __init__(self, filename: str, limit_bytes: int) -> None:
        super().__init__(f"{filename} exceeds {limit_bytes} bytes", code="attachment_too_large")
        self.filename = filename
        self.limit_bytes = limit_bytes


class MailUnavailable(DomainException):
    """SMTP 미설정으로 메일 기능이 꺼져 있음"""

    def __init__(self, message: str = "mail not configured") -> None:
        super().__init__(message, code="mail_not_configured")


class MailDeliveryFailed(DomainException):
    """SMTP 전송 실패"""

    def __init__(self, message: str = "mail delivery failed") -> None:
        super().__init__(message, code="mail_failed")


class OTPError(DomainException):
    """관리자 계정 변경 인증 실패. code가 리다이렉트 쿼리(error=...)로 그대로 쓰인다"""


class CodeMissing(OTPError):
    def __init__(self) -> None:
        super().__init__("인증코드를 입력하세요.", code="code_missing")


class CodeNotFound(OTPError):
    def __init__(self) -> None:
        super().__init__("발급된 인증코드가 없습니다.", code="code_not_found")


class CodeAlreadyUsed(OTPError):
    def __init__(self) -> None:
        super().__init__("이미 사용된 인증코드입니다.", code="code_already_used")


class CodeExpired(OTPError):
    def __init__(self) -> None:
        super().__init__("인증코드가 만료되었습니다.", code="code_expired")


class CodeMismatch(OTPError):
    def __init__(self) -> None:
        super().__init__("인증코드가 일치하지 않습니다.", code="code_mismatch")


class NothingToUpdate(OTPError):
    def __init__(self) -> None:
        super().__init__("변경할 아이디 또는 비밀번호를 입력하세요.", code="nothing_to_update")


class PasswordTooShort(OTPError):
    def __init__(self, min_length: int) -> None:
        super().__init__(f"비밀번호는 최소 {min_length}자 이상", code="password_too_short")
        self.min_length = min_length


class Conflict(OTPError):
    """인증은 통과했지만 계정 변경이 실패함 (예: 아이디 중복). 코드는 이미 소모됨"""

    def __init__(self, message: str = "이미 사용 중인 아이디입니다.") -> None:
        super().__init__(message, code="conflict")
