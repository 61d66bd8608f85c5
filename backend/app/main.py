from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .api import api_router
from .core.config import settings
from .core.errors import AppError, InvalidJSONFormat, error_content
from .core.logging import setup_logging
from .db import init
from .db.mongo import MongoConnectionManager
from .db.redis import RedisConnectionManager

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # DB 연결은 시작 시 한 번만 재시도한다
    if await MongoConnectionManager.connect_with_retry():
        await init.ensure_indexes(MongoConnectionManager.get_database())
    else:
        logger.warning("데이터베이스 연결에 실패했지만 서버를 시작합니다. 일부 기능을 사용할 수 없습니다.")
    RedisConnectionManager.get_client()
    yield
    await RedisConnectionManager.close()
    await MongoConnectionManager.close()


app = FastAPI(title=settings.project_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)


def _diagnostics(details):
    return details if settings.is_development else None


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InvalidJSONFormat):
        logger.error("AI 응답 JSON 파싱 실패: %s | 원본 응답: %s", exc.parser_message, exc.raw_text[:1000])
    elif exc.status_code >= 500:
        logger.error("%s %s 실패: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(exc.message, code=exc.code, reason=exc.reason, details=_diagnostics(exc.details)),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_content(str(exc.detail)), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(item) for item in error.get("loc", []) if item != "body"), "reason": error.get("msg")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_content("필수 항목을 모두 올바르게 입력해 주세요.", code="ValidationError", details=errors),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("처리되지 않은 서버 오류: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content(
            "서버 오류가 발생했습니다.",
            code="InternalError",
            details=_diagnostics(str(exc)) or "잠시 후 다시 시도해 주세요.",
        ),
    )


@app.get("/", include_in_schema=False)
async def index() -> dict:
    return {
        "status": "ok",
        "message": f"{settings.project_name} API",
        "version": settings.version,
        "endpoints": {
            "health": f"{settings.api_prefix}/health",
            "auth": f"{settings.api_prefix}/auth",
            "plans": f"{settings.api_prefix}/plans",
            "ai": f"{settings.api_prefix}/ai",
        },
    }
