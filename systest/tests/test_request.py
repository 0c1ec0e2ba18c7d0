"""
요청 실행기 테스트
"""
import json
import httpx
import pytest

from conftest import TEST_BASE_URL, TEST_OVERRIDES
from core.config import resolve_config
from core.exceptions import ParseError, TransportError
from service.request_service import RequestExecutor


def _mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler), base_url=TEST_BASE_URL)


# ===== 정상 응답 =====

def test_GET_응답_정규화(executor):
    res = executor.execute("get", "/books/9782826012092")
    assert res.method == "GET"
    assert res.status_code == 200
    assert res.url == f"{TEST_BASE_URL}/books/9782826012092"
    assert res.parse_json()["title"] == "Test Book"
    assert res.header("etag") == '"1"'
    assert res.header("Content-Type") == "application/json"
    assert res.elapsed_ms >= 0


def test_404는_예외가_아님(executor):
    res = executor.execute("GET", "/authors/99999")
    assert res.status_code == 404
    assert res.is_not_found
    assert not res.is_success


def test_쿼리_파라미터(executor):
    res = executor.execute("GET", "/books", params={"genre": "Fiction"})
    assert res.status_code == 200
    assert len(res.parse_json()) == 1


def test_POST_dict_본문은_JSON으로_전송(executor):
    payload = {"page": {"number": 1, "limit": 10}, "query": {"title": "Test", "genre": "", "authorName": ""}}
    res = executor.execute("POST", "/books/search", body=payload)
    assert res.status_code == 200
    assert res.parse_json()[0]["isbn"] == "9782826012092"


# ===== 헤더 =====

def test_기본_Content_Type_헤더(config):
    seen = {}

    def handler(request):
        seen["content-type"] = request.headers.get("content-type")
        return httpx.Response(200, json={})

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        executor.execute("GET", "/books/top5")
    assert seen["content-type"] == "application/json"


def test_Content_Type_override(config):
    seen = {}

    def handler(request):
        seen["content-type"] = request.headers.get("content-type")
        seen["body"] = request.content
        return httpx.Response(200, text="ok")

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        executor.execute("POST", "/books/search", body="raw", headers={"Content-Type": "text/plain"})
    assert seen["content-type"] == "text/plain"
    assert seen["body"] == b"raw"


# ===== 전송 계층 실패 =====

def test_연결_실패는_TransportError(config):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        with pytest.raises(TransportError) as exc_info:
            executor.execute("GET", "/books/top5")

    assert not exc_info.value.timed_out
    assert exc_info.value.method == "GET"
    # 재시도 없음
    assert len(calls) == 1


def test_타임아웃은_TransportError(config):
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        with pytest.raises(TransportError) as exc_info:
            executor.execute("GET", "/authors/top5")
    assert exc_info.value.timed_out
    assert "timeout" in str(exc_info.value)


# ===== 응답 본문 =====

def test_JSON이_아닌_본문은_ParseError(config):
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        res = executor.execute("GET", "/books/top5")

    assert res.text == "<html>oops</html>"
    with pytest.raises(ParseError):
        res.parse_json()


def test_빈_본문도_ParseError(config):
    def handler(request):
        return httpx.Response(204)

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        res = executor.execute("GET", "/books/top5")

    assert res.body == b""
    with pytest.raises(ParseError):
        res.parse_json()


def test_본문_바이트_그대로_보관(config):
    raw = json.dumps({"title": "Le Petit Prince"}, ensure_ascii=False).encode()

    def handler(request):
        return httpx.Response(200, content=raw)

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        res = executor.execute("GET", "/books/1")
    assert res.body == raw


# ===== 그 밖의 요청 실패 =====

def test_리다이렉트_루프는_TransportError(config):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(302, headers={"Location": str(request.url)})

    client = httpx.Client(
        transport=httpx.MockTransport(handler), base_url=TEST_BASE_URL, follow_redirects=True
    )
    with RequestExecutor(config, client=client) as executor:
        with pytest.raises(TransportError) as exc_info:
            executor.execute("GET", "/books/top5")

    assert not exc_info.value.timed_out
    assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)
    assert len(calls) > 1


def test_잘못된_gzip_본문은_TransportError(config):
    def handler(request):
        return httpx.Response(
            200,
            headers={"Content-Encoding": "gzip"},
            stream=httpx.ByteStream(b"not gzip"),
        )

    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        with pytest.raises(TransportError) as exc_info:
            executor.execute("GET", "/books/top5")

    assert isinstance(exc_info.value.__cause__, httpx.DecodingError)


# ===== 타임아웃 =====

def test_주입된_클라이언트에도_timeout_적용(clean_settings):
    config = resolve_config({**TEST_OVERRIDES, "timeout_s": 2.5}, clean_settings)
    seen = {}

    def handler(request):
        seen["timeout"] = request.extensions["timeout"]
        return httpx.Response(200, json=[])

    # 클라이언트 기본값(5초)이 아니라 설정값으로 요청
    with RequestExecutor(config, client=_mock_client(handler)) as executor:
        executor.execute("GET", "/books/top5")

    assert seen["timeout"]["read"] == 2.5
    assert seen["timeout"]["connect"] == 2.5
