"""
统一的 JSON 响应信封 {code, msg, data}
"""
import math
from typing import Any, Optional

from fastapi.responses import JSONResponse

from gateway.exceptions import GatewayError, RateLimitedError
from gateway.models.video import ParseOutcome


def envelope(
    code: int,
    msg: str,
    data: Any = None,
    status_code: Optional[int] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        {"code": code, "msg": msg, "data": data},
        status_code=status_code or code,
        headers=headers,
    )


def outcome_response(outcome: ParseOutcome) -> JSONResponse:
    """单条解析结果；上游透传的 code 不是合法错误状态码时用 502"""
    if outcome.code == 200 or 400 <= outcome.code <= 599:
        status_code = outcome.code
    else:
        status_code = 502
    return JSONResponse(outcome.to_dict(), status_code=status_code)


def error_response(exc: GatewayError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
    return envelope(exc.code, exc.message, headers=headers)
