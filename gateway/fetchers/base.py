"""
上游请求器抽象基类
"""
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from gateway.exceptions import UpstreamError


class Fetcher(ABC):
    """上游 HTTP 请求器基类"""

    @abstractmethod
    def fetch_with_retry(
        self,
        url: str,
        params: Optional[dict] = None,
        max_retries: Optional[int] = None,
    ) -> httpx.Response:
        """
        请求上游，失败时按退避策略重试

        :param url: 请求地址
        :param params: 查询参数
        :param max_retries: 最大重试次数，总尝试次数为 max_retries + 1
        :return: 2xx 响应
        """
        ...

    def fetch_json(self, url: str, params: Optional[dict] = None) -> dict:
        """请求上游并解析 JSON，内容不合法时抛出 UpstreamError"""
        response = self.fetch_with_retry(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"上游返回的不是合法 JSON: {e}") from e

    def close(self):
        """释放连接（子类可覆盖）"""
