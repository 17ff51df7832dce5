"""
基于 httpx 的上游解析 API 请求器
所有非 2xx 响应与网络错误都会触发指数退避重试
"""
import logging
import time
from typing import Callable, Optional

import httpx

from gateway.exceptions import UpstreamError
from gateway.fetchers.base import Fetcher

logger = logging.getLogger(__name__)

# 上游会拒绝没有浏览器 UA 的请求
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class UpstreamFetcher(Fetcher):
    """
    上游请求器

    第 i 次（从 0 开始）失败后等待 backoff_base * 2^i 秒再重试，
    首次请求前与最后一次失败后都不等待
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        timeout: float = 15.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client or httpx.Client(timeout=timeout)
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.sleep = sleep

    def close(self):
        self.client.close()

    def fetch_with_retry(
        self,
        url: str,
        params: Optional[dict] = None,
        max_retries: Optional[int] = None,
    ) -> httpx.Response:
        retries = self.max_retries if max_retries is None else max_retries
        attempts = retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                response = self.client.get(
                    url,
                    params=params,
                    headers={"User-Agent": USER_AGENT},
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    f"[Fetcher] 上游返回 {e.response.status_code}: "
                    f"attempt={attempt + 1}/{attempts}"
                )
            except httpx.RequestError as e:
                last_error = e
                logger.warning(f"[Fetcher] 请求失败: attempt={attempt + 1}/{attempts}, error={e}")

            if attempt < attempts - 1:
                delay = self.backoff_base * (2 ** attempt)
                self.sleep(delay)

        logger.error(f"[Fetcher] 重试耗尽: url={url}, attempts={attempts}")
        raise UpstreamError(f"上游请求失败，已尝试 {attempts} 次: {last_error}") from last_error
