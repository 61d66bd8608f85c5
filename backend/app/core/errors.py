from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """응답 본문의 `error` 판별자로 쓰이는 `code` 를 갖는 기본 예외."""

    code = "AppError"

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        reason: str | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.reason = reason
        self.details = details


class ValidationError(AppError):
    code = "ValidationError"

    def __init__(self, message: str = "필수 항목을 모두 입력해 주세요.", details: Any | None = None) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, message, details=details)


class AuthError(AppError):
    code = "AuthError"

    def __init__(self, message: str = "인증 정보가 필요합니다.", status_code: int = status.HTTP_401_UNAUTHORIZED) -> None:
        super().__init__(status_code, message)


class NotFoundError(AppError):
    code = "NotFound"

    def __init__(self, message: str = "리소스를 찾을 수 없습니다.") -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, message)


class UpstreamError(AppError):
    code = "UpstreamError"

    def __init__(self, status_code: int, message: str, reason: str, details: Any | None = None) -> None:
        super().__init__(status_code, message, reason=reason, details=details)


class EmptyAIResponse(AppError):
    code = "EmptyAIResponse"

    def __init__(self, message: str = "AI 응답 형식 오류: 텍스트 내용이 없습니다.", details: Any | None = None) -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message, details=details)


class InvalidJSONFormat(AppError):
    code = "InvalidJSONFormat"

    def __init__(
        self,
        parser_message: str,
        raw_text: str,
        message: str = "AI 가 생성한 여행 계획 형식이 올바르지 않습니다. 다시 시도해 주세요.",
    ) -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message, details=parser_message)
        self.parser_message = parser_message
        self.raw_text = raw_text


def error_content(
    message: str,
    *,
    code: str | None = None,
    reason: str | None = None,
    details: Any | None = None,
) -> dict[str, Any]:
    content: dict[str, Any] = {"success": False, "message": message}
    if code:
        content["error"] = code
    if reason:
        content["reason"] = reason
    if details is not None:
        content["details"] = details
    return content
