"""
pytest 공통 설정
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import itertools
import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from starlette.testclient import TestClient

from core.config import RUN_KEYS, Settings, resolve_config
from core.metrics import RunMetrics
from schemas.response import ResponseDescriptor
from service.request_service import RequestExecutor
from service.scenario_service import ScenarioContext

TEST_BASE_URL = "http://testserver/api"

# 테스트에서는 대기 없이 바로 실행
TEST_OVERRIDES = {
    "base_url": TEST_BASE_URL,
    "pacing_delay_s": 0,
    "cache_settle_delay_s": 0,
}

# ===== 가짜 도서관 API 데이터 =====
AUTHORS = {
    "1": {"authorNumber": "1", "name": "Test Author", "bio": "Writes books used in system tests"},
}
BOOKS = {
    "9782826012092": {
        "isbn": "9782826012092",
        "title": "Test Book",
        "genre": "Fiction",
        "authors": ["1"],
    },
}
TOP_AUTHORS = [{"authorName": "Test Author", "lendingCount": 3}]
LENDINGS = {("2025", "1"): {"lendingNumber": "2025/1", "isbn": "9782826012092", "daysUntilReturn": 5}}


def create_library_app(populated: bool = True, volatile_top5: bool = False) -> FastAPI:
    """
    테스트 전용 대상 시스템

    populated=False: DB가 빈 상태 (상세 조회 404, 목록은 빈 배열)
    volatile_top5=True: /books/top5 응답이 호출마다 달라짐 (캐시 일관성 깨짐)
    """
    authors = AUTHORS if populated else {}
    books = BOOKS if populated else {}
    counter = itertools.count(1)
    app = FastAPI()

    # --- authors (top5를 {author_number}보다 먼저 등록) ---

    @app.get("/api/authors/top5")
    async def top_authors():
        if not populated:
            return JSONResponse({"detail": "No lendings found"}, status_code=404)
        return TOP_AUTHORS

    @app.get("/api/authors")
    async def search_authors(name: str = ""):
        return [a for a in authors.values() if name.lower() in a["name"].lower()]

    @app.get("/api/authors/{author_number}")
    async def get_author(author_number: str):
        if author_number not in authors:
            return JSONResponse({"detail": "Author not found"}, status_code=404)
        return authors[author_number]

    @app.get("/api/authors/{author_number}/books")
    async def get_author_books(author_number: str):
        if author_number not in authors:
            return JSONResponse({"detail": "Author not found"}, status_code=404)
        return [b for b in books.values() if author_number in b["authors"]]

    # --- books ---

    @app.get("/api/books/top5")
    async def top_books():
        if volatile_top5:
            return [{"title": "Test Book", "lendingCount": next(counter)}]
        return [{"title": b["title"], "lendingCount": 7} for b in books.values()]

    @app.post("/api/books/search")
    async def search_books_post(payload: dict):
        query = payload.get("query", {})
        title = query.get("title", "")
        genre = query.get("genre", "")
        return [
            b for b in books.values()
            if title.lower() in b["title"].lower() and genre.lower() in b["genre"].lower()
        ]

    @app.get("/api/books")
    async def search_books(title: str = "", genre: str = ""):
        return [
            b for b in books.values()
            if title.lower() in b["title"].lower() and genre.lower() in b["genre"].lower()
        ]

    @app.get("/api/books/{isbn}")
    async def get_book(isbn: str):
        if isbn not in books:
            return JSONResponse({"detail": "Book not found"}, status_code=404)
        return JSONResponse(books[isbn], headers={"ETag": '"1"'})

    @app.get("/api/books/{isbn}/photo")
    async def get_book_photo(isbn: str):
        if isbn not in books:
            return JSONResponse({"detail": "Photo not found"}, status_code=404)
        return Response(content=b"\x89PNG\r\n", media_type="image/png")

    @app.get("/api/books/{isbn}/avgDuration")
    async def get_avg_duration(isbn: str):
        if isbn not in books:
            return JSONResponse({"detail": "Book not found"}, status_code=404)
        return {"isbn": isbn, "avgDuration": 12.5}

    # --- lendings ---

    @app.get("/api/lendings/overdue")
    async def overdue_lendings():
        return JSONResponse({"detail": "Page is required"}, status_code=400)

    @app.get("/api/lendings/average")
    async def average_lendings():
        if not populated:
            return JSONResponse({"detail": "No lendings found"}, status_code=404)
        return {"lendingsAverageDuration": 9.0}

    @app.get("/api/lendings/{year}/{seq}")
    async def get_lending(year: str, seq: str):
        lending = LENDINGS.get((year, seq)) if populated else None
        if lending is None:
            return JSONResponse({"detail": "Lending not found"}, status_code=404)
        return lending

    return app


class ScriptedExecutor:
    """정해진 응답을 순서대로 돌려주는 실행기: 응답 시간을 고정하고 싶을 때"""

    def __init__(self, *responses):
        # responses: (status_code, body, elapsed_ms)
        self._responses = list(responses)
        self.calls = []

    def execute(self, method, url, body=None, headers=None, params=None):
        self.calls.append((method, url))
        status_code, payload, elapsed_ms = self._responses.pop(0)
        return ResponseDescriptor(
            method=method,
            url=f"{TEST_BASE_URL}{url}",
            status_code=status_code,
            body=payload,
            elapsed_ms=elapsed_ms,
        )


@pytest.fixture
def clean_settings(monkeypatch):
    """환경변수/.env 영향 없는 Settings"""
    for key in RUN_KEYS | {"suites", "log_level"}:
        monkeypatch.delenv(key.upper(), raising=False)
        monkeypatch.delenv(key, raising=False)
    return Settings(_env_file=None)


@pytest.fixture
def config(clean_settings):
    return resolve_config(TEST_OVERRIDES, clean_settings)


@pytest.fixture
def populated_client():
    """데이터가 있는 대상 시스템"""
    with TestClient(create_library_app(populated=True), base_url=TEST_BASE_URL) as c:
        yield c


@pytest.fixture
def empty_client():
    """DB가 빈 대상 시스템"""
    with TestClient(create_library_app(populated=False), base_url=TEST_BASE_URL) as c:
        yield c


@pytest.fixture
def metrics():
    return RunMetrics()


@pytest.fixture
def executor(config, populated_client):
    return RequestExecutor(config, client=populated_client)


@pytest.fixture
def ctx(config, executor, metrics):
    return ScenarioContext("test scenario", config, executor, metrics)
