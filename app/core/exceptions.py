# app/core/exceptions.py

"""
애플리케이션 공통 예외(에러 분류 체계)를 정의하는 모듈입니다.

모든 예외는 FastAPI의 HTTPException을 상속하므로 crud/service 계층에서
그대로 raise 하면 적절한 상태 코드로 응답됩니다. 응답 본문의 형태는 다음과 같습니다.

    {"detail": {"message": "...", "errors": {"필드명": "사유"}}}

- ValidationError  (400): 잘못된 입력값 (UUID, 날짜 형식, 시간 범위 등)
- BadRequestError  (400): 현재 상태에서 수행할 수 없는 요청 (이미 종료된 배정 등)
- NotFoundError    (404): 참조한 리소스가 존재하지 않음
- ConflictError    (409): 배정 기간 중복, 중복 근무 일정, 시프트 이름 충돌
- CapacityError    (409): 시프트 정원 초과 (ConflictError의 하위 분류)
- ForbiddenError   (403): 역할 권한 부족 또는 타인 데이터 접근
- InternalError    (500): 예상치 못한 영속성 계층 오류
"""

import logging
from typing import Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """구조화된 detail(message + errors)을 갖는 공통 예외의 기반 클래스입니다."""
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(
            status_code=self.status_code,
            detail={"message": self.message, "errors": self.errors},
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class CapacityError(ConflictError):
    default_message = "Shift capacity exceeded"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


# =============================================================================
# FastAPI 예외 핸들러
# =============================================================================
def _field_name(loc) -> str:
    # ('body', 'employee_ids', 0) -> 'employee_ids.0'
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    스키마 검증 실패를 필드→메시지 맵 형태의 400 응답으로 변환합니다.
    도메인 로직 이전에 실행되는 입력 검증 단계입니다.
    """
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = _field_name(error.get("loc", ()))
        errors.setdefault(field, error.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": {"message": "Validation failed", "errors": errors}}),
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """처리되지 않은 DB 오류를 기록하고 InternalError 형태로 응답합니다."""
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    error = InternalError("Unexpected persistence failure")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})
