"""
分享链接解析服务
编排整个流程: 短链接还原 → 规范化 → 校验 → 请求上游 → 结果映射
"""
import logging
from typing import Optional, Sequence

import httpx

from gateway.config import settings
from gateway.fetchers.base import Fetcher
from gateway.fetchers.upstream import UpstreamFetcher
from gateway.models.video import BatchItemResult, BatchOutcome, ParsedVideo, ParseOutcome
from gateway.validators.link import is_supported_link, normalize, resolve_short_link

logger = logging.getLogger(__name__)

MSG_SUCCESS = "success"
MSG_INVALID_LINK = "invalid link"
MSG_INTERNAL_ERROR = "internal error, retry later"
MSG_UPSTREAM_FAILED = "parse failed"
MSG_INVALID_BATCH = "urls must be a non-empty list"


def dedupe_urls(urls: Sequence, limit: int) -> list:
    """去掉空白与重复项，保持首次出现的顺序，最多保留 limit 条"""
    seen = set()
    unique = []
    for raw in urls:
        if not isinstance(raw, str):
            continue
        url = raw.strip()
        if not url or url in seen:
            continue
        seen.add(url)
        unique.append(url)
        if len(unique) >= limit:
            break
    return unique


class ParseService:
    """
    抖音分享链接解析服务

    单条解析永远返回 ParseOutcome，不向调用方抛出异常；
    批量解析逐条顺序执行，单条失败不影响后续链接
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        upstream_url: Optional[str] = None,
        batch_max_urls: Optional[int] = None,
        short_link_client: Optional[httpx.Client] = None,
    ):
        self.fetcher: Fetcher = fetcher or UpstreamFetcher(
            max_retries=settings.upstream_max_retries,
            backoff_base=settings.upstream_backoff_base,
            timeout=settings.upstream_timeout,
        )
        self.upstream_url = upstream_url or settings.upstream_api_url
        self.batch_max_urls = batch_max_urls or settings.batch_max_urls
        self.short_link_client = short_link_client
        logger.info(
            f"[ParseService] 初始化完成: upstream={self.upstream_url}, "
            f"batch_max_urls={self.batch_max_urls}"
        )

    def close(self):
        self.fetcher.close()

    # ==================== 单条解析 ====================

    def parse_single(self, raw_url: str) -> ParseOutcome:
        """
        解析一条已规范化的分享链接

        :param raw_url: 分享链接
        :return: ParseOutcome
        """
        if not is_supported_link(raw_url):
            logger.info(f"[解析] 不支持的链接: {raw_url!r}")
            return ParseOutcome(code=400, msg=MSG_INVALID_LINK)

        try:
            payload = self.fetcher.fetch_json(self.upstream_url, params={"url": raw_url})
            return self._map_upstream(payload)
        except Exception as e:
            logger.error(f"[解析] 失败: url={raw_url}, error={e}", exc_info=True)
            return ParseOutcome(code=500, msg=MSG_INTERNAL_ERROR)

    @staticmethod
    def _map_upstream(payload: dict) -> ParseOutcome:
        """将上游响应映射为 ParseOutcome"""
        if not isinstance(payload, dict):
            raise ValueError(f"上游响应不是对象: {type(payload).__name__}")

        code = payload.get("code")
        if code == 200:
            video = ParsedVideo.from_upstream(payload.get("data"))
            return ParseOutcome(code=200, msg=MSG_SUCCESS, data=video)

        if not isinstance(code, int) or isinstance(code, bool):
            raise ValueError(f"上游 code 字段不合法: {code!r}")

        logger.info(f"[解析] 上游返回失败: code={code}, msg={payload.get('msg')}")
        return ParseOutcome(code=code, msg=payload.get("msg") or MSG_UPSTREAM_FAILED)

    def prepare_link(self, raw_url: str) -> str:
        """短链接还原 + 去追踪参数，不支持的链接原样返回且不发起请求"""
        url = raw_url.strip()
        if not is_supported_link(url):
            return url

        url = resolve_short_link(
            url,
            client=self.short_link_client,
            timeout=settings.short_link_timeout,
        )
        normalized = normalize(url)
        if normalized.diagnostic:
            logger.info(f"[规范化] 原样使用链接: {normalized.diagnostic}")
        return normalized.url

    def parse_link(self, raw_url: str) -> BatchItemResult:
        """处理用户输入的原始链接，返回结果与实际解析的链接"""
        url = self.prepare_link(raw_url)
        return BatchItemResult(url=url, outcome=self.parse_single(url))

    # ==================== 批量解析 ====================

    def parse_batch(self, urls) -> BatchOutcome:
        """
        批量解析

        :param urls: 链接列表，去重、去空白后最多处理 batch_max_urls 条
        :return: BatchOutcome，code 恒为 200（列表不合法时为 400），单条失败记录在各自结果中
        """
        if not isinstance(urls, (list, tuple)) or not urls:
            return BatchOutcome(code=400, msg=MSG_INVALID_BATCH)

        unique = dedupe_urls(urls, self.batch_max_urls)
        logger.info(f"[批量] 收到 {len(urls)} 条，实际处理 {len(unique)} 条")

        results = []
        for index, url in enumerate(unique, start=1):
            try:
                item = self.parse_link(url)
            except Exception as e:
                logger.error(f"[批量] 第 {index} 条处理异常: url={url}, error={e}", exc_info=True)
                item = BatchItemResult(url=url, outcome=ParseOutcome(code=500, msg=MSG_INTERNAL_ERROR))
            logger.info(f"[批量] {index}/{len(unique)} code={item.code}")
            results.append(item)

        return BatchOutcome(code=200, msg=f"processed {len(results)} links", data=results)
