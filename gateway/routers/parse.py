"""
解析 API 路由

  1. GET  /api/parse?url=...   — 解析单条分享链接（也接受 GET /api/）
  2. POST /api/batch           — 批量解析，请求体 {"urls": [...]}
  3. 其他 /api 路径            — 固定返回 400
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gateway.exceptions import InvalidInputError
from gateway.models.video import BatchRequest
from gateway.responses import envelope, outcome_response
from gateway.services.parse_service import ParseService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["解析"])


def get_parse_service(request: Request) -> ParseService:
    return request.app.state.parse_service


# ==================== API Endpoints ====================


@router.get("/parse", summary="解析单条分享链接")
@router.get("/", include_in_schema=False)
def parse_video(url: Optional[str] = None, service: ParseService = Depends(get_parse_service)):
    """
    解析一条抖音分享链接

    短链接会先还原为跳转目标，再去掉追踪参数
    """
    if not url or not url.strip():
        raise InvalidInputError("missing url parameter")

    item = service.parse_link(url)
    logger.info(f"[API] 单条解析: url={item.url}, code={item.code}")
    return outcome_response(item.outcome)


@router.post("/batch", summary="批量解析分享链接")
def parse_batch(req: BatchRequest, service: ParseService = Depends(get_parse_service)):
    """
    批量解析（顺序执行，最多 10 条）

    单条失败记录在对应结果的 code/msg 中，不影响整体
    """
    outcome = service.parse_batch(req.urls)
    return JSONResponse(outcome.to_dict(), status_code=outcome.code)


@router.api_route(
    "/{rest:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
def unsupported_endpoint(rest: str):
    return envelope(400, "unsupported endpoint")
