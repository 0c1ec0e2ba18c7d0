"""
도서 관리 시스템 테스트 (opaque-box)

빈 DB에서는 상세 조회 계열이 대부분 404라서 에러율 70%까지 허용
"""
from service.cache_probe_service import probe_cache
from service.check_service import body_contains, has_header, json_is_list, status_is
from service.scenario_service import Suite

# 존재할 수 없는 ISBN
MISSING_ISBN = "9999999999999"

suite = Suite("books", defaults={
    "max_p95_latency_ms": 2000,
    "max_error_rate": 0.7,
})


@suite.scenario("complete book retrieval flow")
def complete_book_retrieval_flow(ctx):
    isbn = ctx.target.isbn
    res = ctx.get(f"/books/{isbn}")
    ctx.check_all(res, {
        "status is 200": status_is(200),
        "response contains ISBN": body_contains(isbn, "isbn"),
        "response contains title": lambda r: ctx.target.book_title in r.text or len(r.body) > 0,
    })


@suite.scenario("book search by title")
def book_search_by_title(ctx):
    res = ctx.get("/books", title=ctx.target.book_title)
    ctx.check_all(res, {
        "status is 200": status_is(200),
        # 빈 배열 "[]"은 결과 없음
        "response contains results": lambda r: ctx.target.book_title in r.text or len(r.body) > 2,
    })


@suite.scenario("book search by genre")
def book_search_by_genre(ctx):
    genre = ctx.target.genre
    res = ctx.get("/books", genre=genre)
    ctx.check_all(res, {
        "status is 200": status_is(200),
        f"response contains {genre}": lambda r: genre in r.text or len(r.body) > 2,
    })


@suite.scenario("top books retrieval")
def top_books_retrieval(ctx):
    res = ctx.get("/books/top5")
    ctx.check_all(res, {
        "status is 200": status_is(200),
        "response is not null": lambda r: r.body is not None,
    })
    # 빈 DB여도 top5는 빈 배열
    if res.is_success:
        ctx.check(res, "response is a JSON list", json_is_list)


@suite.scenario("cache for top 5 books")
def cache_for_top5_books(ctx):
    probe_cache(ctx, "/books/top5", settle_delay_s=ctx.config.cache_settle_delay_s * 4)


@suite.scenario("book not found")
def book_not_found(ctx):
    res = ctx.get(f"/books/{MISSING_ISBN}")
    ctx.check(res, "status is 404", status_is(404))


@suite.scenario("book photo retrieval")
def book_photo_retrieval(ctx):
    res = ctx.get(f"/books/{ctx.target.isbn}/photo")
    ctx.check(res, "status is 200 or 404", status_is(200, 404))


@suite.scenario("average lending duration endpoint")
def average_lending_duration_endpoint(ctx):
    res = ctx.get(f"/books/{ctx.target.isbn}/avgDuration")
    ctx.check(res, "status is 400 or 200 or 404", status_is(400, 200, 404))


@suite.scenario("search books with POST request")
def search_books_with_post(ctx):
    payload = {
        "page": {"number": 1, "limit": 10},
        "query": {"title": "Test", "genre": "", "authorName": ""},
    }
    res = ctx.post("/books/search", payload)
    ctx.check_all(res, {
        "status is 200": status_is(200),
        "response is not empty": lambda r: len(r.body) > 0,
    })


@suite.scenario("multiple sequential requests flow")
def multiple_sequential_requests(ctx):
    # 짧은 간격으로 검색 → 상세 → 인기 순위
    search = ctx.get("/books", genre=ctx.target.genre)
    ctx.check(search, "search status is 200", status_is(200))
    ctx.pause(ctx.config.pacing_delay_s / 2)

    details = ctx.get(f"/books/{ctx.target.isbn}")
    ctx.check(details, "details status is 200", status_is(200))
    ctx.pause(ctx.config.pacing_delay_s / 2)

    top = ctx.get("/books/top5")
    ctx.check(top, "top books status is 200", status_is(200))


@suite.scenario("response headers validation")
def response_headers_validation(ctx):
    res = ctx.get(f"/books/{ctx.target.isbn}")
    ctx.check_all(res, {
        "status is 200": status_is(200),
        "has Content-Type header": has_header("Content-Type"),
        "has ETag header": has_header("ETag"),
    })
