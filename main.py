"""
Douyin Gateway — 抖音分享链接解析网关

启动命令:
    python main.py
    或
    uvicorn main:app --host 0.0.0.0 --port 8787 --reload
"""
import logging

import uvicorn

from gateway import create_app
from gateway.config import settings

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("gateway")

app = create_app()

if __name__ == "__main__":
    logger.info(f"🚀 Douyin Gateway 启动中 http://{settings.host}:{settings.port}")
    logger.info(f"📖 API 文档: http://127.0.0.1:{settings.port}/docs")
    logger.info(f"🔗 上游: {settings.upstream_api_url}")
    logger.info(
        f"🚦 限流: {settings.rate_limit_max_requests} 次 / "
        f"{settings.rate_limit_window_seconds:.0f}s"
    )

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        reload=False,
    )
