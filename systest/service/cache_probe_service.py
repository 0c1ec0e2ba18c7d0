"""
캐시 추론 프로브

대상 시스템 내부를 보지 않고, 같은 GET을 3번 보내서
  1. 내용이 바이트 단위로 같은지 (판정 기준)
  2. 2, 3번째 호출이 1번째보다 빨라졌는지 (로그만 남김)
를 확인한다.

공유 테스트 환경에서는 응답 시간이 흔들리기 때문에
시간 비교 결과는 절대 실패로 처리하지 않는다. 내용이 다르면 실패.
"""
from typing import Optional

from core.logger import get_logger
from schemas.result import CacheProbeResult
from service.check_service import body_not_empty, same_body_as, same_status_as, status_is
from service.scenario_service import ScenarioContext

logger = get_logger("cache_probe")

# elapsed(n) / elapsed(1)가 이 값보다 작으면 캐시 효과로 본다
IMPROVEMENT_RATIO = 0.8


def speedup_ratio(first_ms: float, later_ms: float) -> Optional[float]:
    """later/first: 첫 호출이 0ms면 비교 불가 (None)"""
    if first_ms <= 0:
        return None
    return later_ms / first_ms


def is_improvement(ratio: Optional[float], threshold: float = IMPROVEMENT_RATIO) -> bool:
    return ratio is not None and ratio < threshold


def probe_cache(
    ctx: ScenarioContext,
    path: str,
    settle_delay_s: Optional[float] = None,
    improvement_ratio: float = IMPROVEMENT_RATIO,
) -> CacheProbeResult:
    """
    같은 GET 3회로 캐시 동작 추론

    1번째 호출이 404면 캐시할 데이터가 없으므로 inconclusive로 끝낸다 (실패 아님).
    200도 404도 아니면 unexpected_status로 실패 체크 1건을 남긴다.
    """
    delay = ctx.config.cache_settle_delay_s if settle_delay_s is None else settle_delay_s

    first = ctx.get(path)
    logger.info(
        f"first call: {first.status_code} in {first.elapsed_ms:.0f}ms",
        extra={"extra_data": {"path": path, "call": 1, "status": first.status_code}}
    )

    if first.is_not_found:
        logger.info(
            "endpoint returned 404 - no data available for caching test",
            extra={"extra_data": {"path": path, "verdict": "inconclusive"}}
        )
        return _finish(ctx, CacheProbeResult(
            path=path,
            verdict="inconclusive",
            statuses=[first.status_code],
            elapsed_ms=[first.elapsed_ms],
        ))

    if not ctx.check(first, "first call status is 200", status_is(200)).passed:
        return _finish(ctx, CacheProbeResult(
            path=path,
            verdict="unexpected_status",
            statuses=[first.status_code],
            elapsed_ms=[first.elapsed_ms],
        ))

    checks_ok = ctx.check(first, "first call has data", body_not_empty).passed

    # 비동기 캐시 쓰기가 끝날 시간
    ctx.pause(delay)
    second = ctx.get(path)
    logger.info(
        f"second call: {second.status_code} in {second.elapsed_ms:.0f}ms",
        extra={"extra_data": {"path": path, "call": 2, "status": second.status_code}}
    )
    checks_ok &= ctx.check_all(second, {
        "second call status matches first": same_status_as(first),
        "second call returns same data": same_body_as(first),
    })

    ctx.pause(delay)
    third = ctx.get(path)
    logger.info(
        f"third call: {third.status_code} in {third.elapsed_ms:.0f}ms",
        extra={"extra_data": {"path": path, "call": 3, "status": third.status_code}}
    )
    checks_ok &= ctx.check_all(third, {
        "third call status matches first": same_status_as(first),
        "third call returns same data": same_body_as(first),
    })

    ratios = [
        speedup_ratio(first.elapsed_ms, second.elapsed_ms),
        speedup_ratio(first.elapsed_ms, third.elapsed_ms),
    ]
    improved = False
    for call, ratio, response in zip(("second", "third"), ratios, (second, third)):
        if is_improvement(ratio, improvement_ratio):
            improved = True
            logger.info(
                f"cache performance improvement detected: {round((1 - ratio) * 100)}% faster on {call} call",
                extra={"extra_data": {"path": path, "ratio": round(ratio, 3)}}
            )
        else:
            logger.info(
                f"{call} call ({response.elapsed_ms:.0f}ms) not significantly faster than first ({first.elapsed_ms:.0f}ms)",
                extra={"extra_data": {"path": path, "ratio": None if ratio is None else round(ratio, 3)}}
            )

    return _finish(ctx, CacheProbeResult(
        path=path,
        verdict="consistent" if checks_ok else "inconsistent",
        statuses=[first.status_code, second.status_code, third.status_code],
        elapsed_ms=[first.elapsed_ms, second.elapsed_ms, third.elapsed_ms],
        speedup_ratios=ratios,
        improvement_detected=improved,
    ))


def _finish(ctx: ScenarioContext, result: CacheProbeResult) -> CacheProbeResult:
    ctx.probes.append(result)
    logger.info(
        f"cache probe {result.verdict}: {result.path}",
        extra={"extra_data": {"improvement_detected": result.improvement_detected}}
    )
    return result
