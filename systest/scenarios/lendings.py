"""
대여 관리 시스템 테스트 (opaque-box)

대여 API는 인증이 필요해서 토큰 없이 호출하면 401/403이 정상 응답일 수 있다.
상태코드 집합만 확인한다.
"""
from service.check_service import status_is
from service.scenario_service import Suite

# 존재할 수 없는 대여 번호
MISSING_LENDING_NUMBER = "9999/999"

suite = Suite("lendings", defaults={
    "max_p95_latency_ms": 3000,
    "max_error_rate": 0.7,
})


@suite.scenario("lending retrieval by number")
def lending_retrieval_by_number(ctx):
    res = ctx.get(f"/lendings/{ctx.target.lending_number}")
    ctx.check(res, "status is 200, 401, 403 or 404", status_is(200, 401, 403, 404))


@suite.scenario("lending not found")
def lending_not_found(ctx):
    res = ctx.get(f"/lendings/{MISSING_LENDING_NUMBER}")
    ctx.check_all(res, {
        "status is 404 or 403": status_is(404, 403),
        "status is never 200": lambda r: r.status_code != 200,
    })


@suite.scenario("overdue lendings")
def overdue_lendings(ctx):
    # 페이지 파라미터 없이 호출하면 400
    res = ctx.get("/lendings/overdue")
    ctx.check(res, "status is 200, 400, 401 or 403", status_is(200, 400, 401, 403))


@suite.scenario("average lending duration")
def average_lending_duration(ctx):
    res = ctx.get("/lendings/average")
    ctx.check(res, "status is 200, 401, 403 or 404", status_is(200, 401, 403, 404))
