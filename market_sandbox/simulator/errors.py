"""
Market Sandbox - Errors

샌드박스 코어가 발생시키는 예외와 에러 코드를 정의합니다.
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class ErrorCodes:
    """표준 에러 코드"""
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INVALID_STATE = "INVALID_STATE"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SandboxError(Exception):
    """샌드박스 예외의 기본 클래스"""
    code = ErrorCodes.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """ErrorResponse 형태로 변환"""
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "details": self.details or None,
        }


class NotFoundError(SandboxError):
    """카탈로그 키 또는 레코드 ID를 찾을 수 없을 때 발생"""
    code = ErrorCodes.NOT_FOUND


class InsufficientBalanceError(SandboxError):
    """잔액이 부족해 차감에 실패했을 때 발생"""
    code = ErrorCodes.INSUFFICIENT_BALANCE

    def __init__(self, required: Decimal, available: Decimal, message: Optional[str] = None):
        self.required = required
        self.available = available
        super().__init__(
            message or f"Insufficient balance: need {required:.2f}, have {available:.2f}",
            {"required": str(required), "available": str(available)},
        )


class InvalidStateError(SandboxError):
    """현재 상태에서 허용되지 않는 작업일 때 발생"""
    code = ErrorCodes.INVALID_STATE

    def __init__(self, message: str, status: Optional[str] = None):
        self.status = status
        super().__init__(message, {"status": status} if status else None)


class InvalidArgumentError(SandboxError):
    """잘못된 입력값일 때 발생"""
    code = ErrorCodes.INVALID_ARGUMENT
