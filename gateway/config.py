"""
Gateway 配置模块
从 .env 文件加载所有配置项，提供全局单例 settings
"""
import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


@dataclass
class Settings:
    """全局配置"""

    # 服务
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8787"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # 上游解析 API
    upstream_api_url: str = os.getenv(
        "UPSTREAM_API_URL", "https://api.pearktrue.cn/api/video/douyin/"
    )
    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "15"))
    upstream_max_retries: int = int(os.getenv("UPSTREAM_MAX_RETRIES", "3"))
    upstream_backoff_base: float = float(os.getenv("UPSTREAM_BACKOFF_BASE", "1"))

    # 短链接解析
    short_link_timeout: float = float(os.getenv("SHORT_LINK_TIMEOUT", "5"))

    # 限流 (固定窗口)
    rate_limit_window_seconds: float = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "30"))
    # memory:// 为进程内存储，多实例部署可用 redis://host:6379
    rate_limit_storage_uri: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

    # 批量解析
    batch_max_urls: int = int(os.getenv("BATCH_MAX_URLS", "10"))

    # 前端静态资源目录（不存在时非 /api 路径返回 404）
    static_dir: Path = BASE_DIR / os.getenv("STATIC_DIR", "dist")


settings = Settings()
