"""
中间件
包含 CORS 预检与响应头、按 IP 限流
"""
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gateway.exceptions import RateLimitedError
from gateway.responses import error_response

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


def is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def client_ip(request: Request) -> str:
    """获取客户端 IP: CF-Connecting-IP → X-Forwarded-For 首项 → 连接地址"""
    ip = request.headers.get("CF-Connecting-IP")
    if ip:
        return ip.strip()

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class CORSMiddleware(BaseHTTPMiddleware):
    """
    CORS 中间件
    /api 下的 OPTIONS 直接返回空响应（在限流之前），其余响应统一加允许跨域头
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS" and is_api_path(request.url.path):
            return Response(status_code=200, headers=CORS_HEADERS)

        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    限流中间件
    每个 /api 请求在路由前计数一次，超限直接返回 429
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not is_api_path(request.url.path):
            return await call_next(request)

        limiter = request.app.state.limiter
        ip = client_ip(request)
        try:
            limiter.check(ip)
        except RateLimitedError as exc:
            logger.info(f"[限流] {request.method} {request.url.path} ip={ip}")
            return error_response(exc)

        return await call_next(request)
