"""
抖音去水印解析网关
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from gateway.config import settings
from gateway.exceptions import GatewayError
from gateway.limiter import RateLimiter
from gateway.middleware import CORSMiddleware, RateLimitMiddleware
from gateway.responses import envelope, error_response

logger = logging.getLogger(__name__)


def create_app(parse_service=None, limiter: Optional[RateLimiter] = None) -> FastAPI:
    from gateway.routers import parse
    from gateway.services.parse_service import ParseService

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理: 关闭时释放上游连接"""
        yield
        app.state.parse_service.close()
        logger.info("[Gateway] 已关闭上游连接")

    app = FastAPI(
        title="Douyin Gateway",
        description="抖音分享链接解析网关 — 输入分享链接，输出无水印视频信息",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.parse_service = parse_service or ParseService()
    app.state.limiter = limiter or RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        storage_uri=settings.rate_limit_storage_uri,
    )

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError):
        level = logging.INFO if exc.recoverable else logging.ERROR
        logger.log(level, f"[API] {exc.__class__.__name__}: {exc.message} ({request.url.path})")
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info(f"[API] 请求体不合法: {request.url.path}, errors={exc.errors()}")
        return envelope(400, "invalid request body")

    # 后添加的先执行: CORS 在限流之外
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(CORSMiddleware)

    app.include_router(parse.router, prefix="/api")

    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.info(f"[静态资源] 目录不存在，非 /api 路径将返回 404: {settings.static_dir}")

    return app
