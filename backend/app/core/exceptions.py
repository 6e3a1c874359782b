from typing import Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    retryable = False

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict = None,
        headers: Optional[dict] = None,
    ):
        self.error_code = code
        self.error_message = message
        self.error_details = details
        super().__init__(
            status_code=status_code,
            detail={
                "error": {
                    "code": code,
                    "message": message,
                    "details": details,
                    "retryable": self.retryable,
                }
            },
            headers=headers,
        )


class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str = None):
        details = {"entity": entity}
        if entity_id:
            details["id"] = entity_id
        super().__init__(
            code="NOT_FOUND",
            message=f"{entity} غير موجود",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class DuplicateError(AppException):
    def __init__(self, message: str = "هذا العنصر موجود مسبقاً", details: dict = None):
        super().__init__(
            code="DUPLICATE",
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class ForbiddenError(AppException):
    def __init__(self, message: str = "غير مصرح لك بهذا الإجراء"):
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
        )


class UnauthorizedError(AppException):
    def __init__(self, message: str = "يرجى تسجيل الدخول"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ValidationError(AppException):
    def __init__(self, message: str, field: str = None):
        details = {"field": field} if field else None
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )


class InvalidStatusTransition(AppException):
    def __init__(self, current: str, target: str, message: str = None):
        super().__init__(
            code="INVALID_STATUS",
            message=message or f"لا يمكن تغيير الحالة من {current} إلى {target}",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current": current, "target": target},
        )


class DonationExpiredError(InvalidStatusTransition):
    def __init__(self, donation_id: str):
        super().__init__(
            current="expired",
            target="assigned",
            message="انتهت صلاحية هذا التبرع ولا يمكن مطابقته",
        )
        self.error_details["id"] = donation_id


class NoCandidateError(AppException):
    """No eligible volunteer or charity; the caller may call match again later."""

    def __init__(self, reason: str, message: str = "لا يوجد متطوع أو جمعية متاحة حالياً"):
        super().__init__(
            code="NO_CANDIDATE",
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details={"reason": reason},
        )


class ConflictError(AppException):
    """A concurrent mutation won the race. Safe to retry the whole operation."""
    retryable = True

    def __init__(self, message: str = "تم تعديل هذا العنصر بالتزامن. يرجى إعادة المحاولة", details: dict = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class UnavailableError(AppException):
    """An external collaborator timed out or failed. Retry with backoff."""
    retryable = True

    def __init__(self, collaborator: str, retry_after: int = None):
        from app.config import settings

        retry_after = retry_after or settings.UNAVAILABLE_RETRY_AFTER_SECONDS
        super().__init__(
            code="UNAVAILABLE",
            message="الخدمة غير متاحة مؤقتاً. يرجى المحاولة لاحقاً",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"collaborator": collaborator},
            headers={"Retry-After": str(retry_after)},
        )
