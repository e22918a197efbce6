# app/core/errors.py
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException


# === 領域錯誤 ===
class AppError(Exception):
    """核心層錯誤的基底：每種錯誤對應固定的 kind 與 HTTP 狀態碼。"""

    kind: str = "error"
    status_code: int = 500
    message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(AppError):
    kind = "validation_error"
    status_code = 422
    message = "The given data was invalid."

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        # errors 以欄位名稱分組，例如 {"guests": ["must be >= 1"]}
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class DuplicateEmail(ValidationError):
    kind = "duplicate_email"
    message = "The email has already been taken."

    def __init__(self):
        super().__init__({"email": [self.message]})


class InvalidCredentials(AppError):
    # 刻意不區分「查無此人」與「密碼錯誤」
    kind = "invalid_credentials"
    status_code = 401
    message = "Invalid credentials"


class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = 401
    message = "Unauthenticated."

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(AppError):
    kind = "forbidden"
    status_code = 403
    message = "This action is unauthorized."


class NotFound(AppError):
    kind = "not_found"
    status_code = 404
    message = "Resource not found."


class TooManyAttempts(AppError):
    kind = "too_many_attempts"
    status_code = 429
    message = "Too many login attempts. Please try again later."

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__()

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after)}


# 路由層（非核心）HTTP 錯誤的 kind
HTTP_ERROR_KINDS: Dict[int, str] = {
    404: "not_found",
    405: "method_not_allowed",
}


def validation_error_from(exc: RequestValidationError) -> ValidationError:
    """把 FastAPI/pydantic 的錯誤清單轉成以欄位分組的 ValidationError。"""
    grouped: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ())]
        # 去掉 body / query / path 這類來源前綴
        if len(loc) > 1 and loc[0] in {"body", "query", "path", "header"}:
            loc = loc[1:]
        field = ".".join(loc) or "body"
        grouped.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return ValidationError(grouped)


def _error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        # 統一輸出格式：框架層錯誤也帶 kind
        return JSONResponse(
            status_code=exc.status_code,
            content={"kind": HTTP_ERROR_KINDS.get(exc.status_code, "http_error"), "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        # 與核心層 ValidationError 共用同一種輸出格式
        return _error_response(validation_error_from(exc))

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        # 小強化：避免洩露伺服器細節
        resp = await call_next(request)
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        return resp
