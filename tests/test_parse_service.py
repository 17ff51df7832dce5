import pytest

from gateway.services.parse_service import dedupe_urls

from conftest import VIDEO_DATA, FakeShortLinks, FakeUpstream, ok_payload


# ==================== 单条解析 ====================


@pytest.mark.parametrize(
    "url",
    ["", "not a link", "https://www.tiktok.com/@u/video/1", "https://example.com/douyin.com/x"],
)
def test_unsupported_link_makes_no_network_call(make_service, url):
    upstream = FakeUpstream()
    outcome = make_service(upstream).parse_single(url)

    assert outcome.to_dict() == {"code": 400, "msg": "invalid link", "data": None}
    assert upstream.requests == []


def test_success_maps_all_fields(make_service):
    upstream = FakeUpstream()
    outcome = make_service(upstream).parse_single("https://www.douyin.com/video/1")

    assert outcome.code == 200
    assert outcome.msg == "success"
    assert outcome.data.to_dict() == VIDEO_DATA
    assert upstream.requests[0].url.params["url"] == "https://www.douyin.com/video/1"


def test_success_without_optional_fields(make_service):
    data = {k: v for k, v in VIDEO_DATA.items() if k not in ("create_time", "video_duration", "images")}
    upstream = FakeUpstream(script=[ok_payload(data)])

    result = make_service(upstream).parse_single("https://www.douyin.com/video/1").to_dict()["data"]

    assert result["images"] == []
    assert "create_time" not in result
    assert "video_duration" not in result


def test_upstream_failure_is_passed_through(make_service):
    upstream = FakeUpstream(script=[{"code": 404, "msg": "视频不存在", "data": None}])

    outcome = make_service(upstream).parse_single("https://www.douyin.com/video/1")

    assert outcome.to_dict() == {"code": 404, "msg": "视频不存在", "data": None}


def test_upstream_failure_without_msg(make_service):
    upstream = FakeUpstream(script=[{"code": 403}])
    outcome = make_service(upstream).parse_single("https://www.douyin.com/video/1")

    assert outcome.code == 403
    assert outcome.msg == "parse failed"


def test_retry_exhaustion_returns_500(make_service, sleeps):
    upstream = FakeUpstream(script=["connect_error"] * 10)

    outcome = make_service(upstream).parse_single("https://www.douyin.com/video/1")

    assert outcome.to_dict() == {"code": 500, "msg": "internal error, retry later", "data": None}
    assert len(upstream.requests) == 4
    assert sleeps == [1, 2, 4]


@pytest.mark.parametrize(
    "step",
    [b"not json", {"code": 200, "msg": "ok", "data": None}, {"msg": "no code"}, ["a", "list"]],
)
def test_malformed_upstream_response_returns_500(make_service, step):
    upstream = FakeUpstream(script=[step])
    outcome = make_service(upstream).parse_single("https://www.douyin.com/video/1")

    assert outcome.code == 500
    assert outcome.data is None


def test_parse_link_resolves_and_normalizes(make_service):
    short_links = FakeShortLinks({"/abc/": "https://www.iesdouyin.com/share/video/42/?utm_source=copy&region=CN"})
    upstream = FakeUpstream()

    item = make_service(upstream, short_links).parse_link(" https://v.douyin.com/abc/ ")

    assert item.url == "https://www.iesdouyin.com/share/video/42/?region=CN"
    assert item.code == 200
    assert upstream.requests[0].url.params["url"] == item.url


def test_short_link_to_unsupported_host_is_invalid(make_service):
    short_links = FakeShortLinks({"/abc": "https://www.example.com/landing"})
    upstream = FakeUpstream()

    item = make_service(upstream, short_links).parse_link("https://v.douyin.com/abc")

    assert item.outcome.to_dict() == {"code": 400, "msg": "invalid link", "data": None}
    assert upstream.requests == []


def test_short_link_failure_falls_back_to_original(make_service):
    upstream = FakeUpstream()
    item = make_service(upstream, FakeShortLinks(fail=True)).parse_link("https://v.douyin.com/abc/")

    assert item.url == "https://v.douyin.com/abc/"
    assert item.code == 200


# ==================== 批量解析 ====================


def test_dedupe_urls_keeps_first_occurrence():
    urls = ["b", " a ", "b", "", "   ", None, "a", "c"]
    assert dedupe_urls(urls, limit=10) == ["b", "a", "c"]
    assert dedupe_urls(urls, limit=2) == ["b", "a"]


def test_batch_dedupes_duplicates_and_blanks(make_service):
    upstream = FakeUpstream()

    outcome = make_service(upstream).parse_batch(["https://douyin.com/a", "https://douyin.com/a", "   "])

    assert outcome.code == 200
    assert [item.url for item in outcome.data] == ["https://douyin.com/a"]
    assert len(upstream.requests) == 1


def test_batch_caps_at_ten_in_input_order(make_service):
    urls = [f"https://www.douyin.com/video/{i}" for i in range(12)]
    upstream = FakeUpstream()

    outcome = make_service(upstream).parse_batch(urls + urls[:3])

    assert [item.url for item in outcome.data] == urls[:10]
    assert outcome.msg == "processed 10 links"
    assert [r.url.params["url"] for r in upstream.requests] == urls[:10]


def test_batch_cap_is_configurable(make_service):
    urls = [f"https://www.douyin.com/video/{i}" for i in range(5)]
    outcome = make_service(FakeUpstream(), batch_max_urls=3).parse_batch(urls)

    assert len(outcome.data) == 3


def test_batch_isolates_item_failures(make_service):
    upstream = FakeUpstream(by_url={"https://www.douyin.com/video/2": {"code": 404, "msg": "视频不存在"}})
    urls = [
        "https://www.douyin.com/video/1",
        "https://example.com/video/1",
        "https://www.douyin.com/video/2",
        "https://www.douyin.com/video/3",
    ]

    outcome = make_service(upstream).parse_batch(urls)

    assert outcome.code == 200
    assert [item.code for item in outcome.data] == [200, 400, 404, 200]
    assert [item.url for item in outcome.data] == urls
    assert outcome.data[0].outcome.data is not None
    assert outcome.data[2].outcome.msg == "视频不存在"


def test_batch_item_network_exhaustion_does_not_stop_batch(make_service):
    upstream = FakeUpstream(script=[500, 500, 500, 500])
    urls = ["https://www.douyin.com/video/1", "https://www.douyin.com/video/2"]

    outcome = make_service(upstream).parse_batch(urls)

    assert [item.code for item in outcome.data] == [500, 200]


@pytest.mark.parametrize("urls", [[], None, "https://douyin.com/a", {"urls": []}])
def test_batch_rejects_invalid_input(make_service, urls):
    upstream = FakeUpstream()
    outcome = make_service(upstream).parse_batch(urls)

    assert outcome.code == 400
    assert outcome.data == []
    assert upstream.requests == []


def test_batch_of_only_blanks_processes_nothing(make_service):
    outcome = make_service(FakeUpstream()).parse_batch(["", "  "])

    assert outcome.code == 200
    assert outcome.data == []
    assert outcome.msg == "processed 0 links"


@pytest.mark.parametrize("url", ["https://v.douyin.com/", "v.douyin.com", "https://v.douyin.com.evil.test/abc"])
def test_invalid_short_link_is_never_resolved(make_service, url):
    short_links = FakeShortLinks()
    upstream = FakeUpstream()

    item = make_service(upstream, short_links).parse_link(url)

    assert item.outcome.to_dict() == {"code": 400, "msg": "invalid link", "data": None}
    assert short_links.requests == []
    assert upstream.requests == []
