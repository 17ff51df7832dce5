import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

# Add project root to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from gateway import create_app
from gateway.fetchers.upstream import UpstreamFetcher
from gateway.limiter import RateLimiter
from gateway.services.parse_service import ParseService

UPSTREAM_URL = "https://upstream.test/api/video/douyin/"

VIDEO_DATA = {
    "author": "测试作者",
    "author_id": "author_001",
    "avatar": "https://p3.douyinpic.com/avatar.jpeg",
    "title": "测试视频 #标签",
    "cover": "https://p3.douyinpic.com/cover.jpeg",
    "url": "https://aweme.snssdk.com/aweme/v1/play/?video_id=v0200",
    "music_url": "https://sf3.douyinvod.com/music.mp3",
    "create_time": 1718000000,
    "video_duration": 15300,
    "images": ["https://p3.douyinpic.com/1.jpeg", "https://p3.douyinpic.com/2.jpeg"],
}


def ok_payload(data=None):
    return {"code": 200, "msg": "解析成功", "data": dict(VIDEO_DATA if data is None else data)}


class FakeUpstream:
    """
    假上游解析 API

    script 按顺序消费，每项可以是:
      - dict: 200 + JSON
      - int: 该状态码的空响应
      - "connect_error": 抛出 httpx.ConnectError
      - bytes: 200 + 原始内容
    by_url 按查询参数 url 覆盖返回的 JSON
    """

    def __init__(self, script=None, by_url=None):
        self.script = list(script or [])
        self.by_url = dict(by_url or {})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.script:
            step = self.script.pop(0)
            if step == "connect_error":
                raise httpx.ConnectError("connection refused", request=request)
            if isinstance(step, int):
                return httpx.Response(step)
            if isinstance(step, bytes):
                return httpx.Response(200, content=step)
            return httpx.Response(200, json=step)

        link = request.url.params.get("url")
        if link in self.by_url:
            return httpx.Response(200, json=self.by_url[link])
        return httpx.Response(200, json=ok_payload())


class FakeShortLinks:
    """假 v.douyin.com，按路径返回 302 跳转"""

    def __init__(self, redirects=None, fail=False):
        self.redirects = dict(redirects or {})
        self.fail = fail
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            raise httpx.ConnectTimeout("timed out", request=request)
        target = self.redirects.get(request.url.path)
        if target is None:
            return httpx.Response(200)
        return httpx.Response(302, headers={"Location": target})


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_fetcher(sleeps):
    def _make(upstream, **kwargs):
        client = httpx.Client(transport=httpx.MockTransport(upstream))
        return UpstreamFetcher(client=client, sleep=sleeps.append, **kwargs)

    return _make


@pytest.fixture
def make_service(make_fetcher):
    def _make(upstream, short_links=None, **kwargs):
        short_client = httpx.Client(transport=httpx.MockTransport(short_links or FakeShortLinks()))
        return ParseService(
            fetcher=make_fetcher(upstream),
            upstream_url=UPSTREAM_URL,
            short_link_client=short_client,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_client(make_service):
    def _make(upstream=None, short_links=None, max_requests=30, window_seconds=60):
        service = make_service(upstream or FakeUpstream(), short_links)
        limiter = RateLimiter(max_requests=max_requests, window_seconds=window_seconds)
        return TestClient(create_app(parse_service=service, limiter=limiter))

    return _make
