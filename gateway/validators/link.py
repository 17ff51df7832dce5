"""
分享链接校验与规范化
支持 douyin.com / iesdouyin.com / v.douyin.com 三类域名
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import httpx

logger = logging.getLogger(__name__)

SHORT_LINK_HOST = "v.douyin.com"

SUPPORTED_LINK_PATTERN = re.compile(
    r"(https?://)?(www\.)?(douyin\.com|iesdouyin\.com|v\.douyin\.com)/.+"
)

# 分享/统计用的追踪参数，不影响上游解析
TRACKING_PARAMS = frozenset({
    "share_sign",
    "share_token",
    "share_version",
    "share_app_id",
    "share_app_name",
    "share_iid",
    "share_link_id",
    "share_item_id",
    "u_code",
    "timestamp",
    "previous_page",
    "enter_from",
    "from_ssr",
    "tt_from",
    "did",
    "iid",
    "ts",
})


@dataclass(frozen=True)
class NormalizedLink:
    """规范化结果，diagnostic 非空表示原样返回的原因"""
    url: str
    diagnostic: Optional[str] = None


def is_supported_link(url) -> bool:
    """判断是否为支持的抖音分享链接"""
    if not isinstance(url, str):
        return False
    return SUPPORTED_LINK_PATTERN.match(url.strip()) is not None


def _is_tracking_param(name: str) -> bool:
    return name.startswith("utm_") or name in TRACKING_PARAMS


def normalize(url: str) -> NormalizedLink:
    """
    去掉链接中的追踪参数

    解析失败时原样返回，不会抛出异常
    """
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError as e:
        return NormalizedLink(url=url, diagnostic=f"无法解析链接: {e}")

    if not parts.query:
        return NormalizedLink(url=candidate)

    params = parse_qsl(parts.query, keep_blank_values=True)
    kept = [(key, value) for key, value in params if not _is_tracking_param(key)]
    if len(kept) == len(params):
        return NormalizedLink(url=candidate)

    return NormalizedLink(url=urlunsplit(parts._replace(query=urlencode(kept))))


def is_short_link(url: str) -> bool:
    """是否为 v.douyin.com 短链接"""
    try:
        candidate = url.strip()
        if "://" not in candidate:
            candidate = f"https://{candidate}"
        host = urlsplit(candidate).hostname or ""
    except ValueError:
        return False
    return host == SHORT_LINK_HOST


def resolve_short_link(
    url: str,
    client: Optional[httpx.Client] = None,
    timeout: float = 5.0,
) -> str:
    """
    解析短链接的跳转目标

    :param url: 分享链接
    :param client: 可注入的 httpx 客户端
    :param timeout: 未注入客户端时的超时时间（秒）
    :return: 跳转目标；非短链接、无跳转或网络失败时返回原链接
    """
    if not is_short_link(url):
        return url

    target = url.strip()
    if "://" not in target:
        target = f"https://{target}"

    try:
        if client is not None:
            response = client.head(target, follow_redirects=False)
        else:
            with httpx.Client(timeout=timeout) as own_client:
                response = own_client.head(target, follow_redirects=False)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"[短链接] 解析失败，使用原链接: url={url}, error={e}")
        return url

    location = response.headers.get("location")
    if not location:
        return url

    resolved = urljoin(target, location)
    logger.info(f"[短链接] {url} -> {resolved}")
    return resolved
