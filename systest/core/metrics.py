import math
from collections import defaultdict

from core.logger import get_logger
from schemas.config import Thresholds
from schemas.result import ThresholdVerdict

logger = get_logger("metrics")


class RunMetrics:
    """
    실행 1회분 메트릭: 인메모리 집계

    전역 싱글톤이 아니라 실행마다 새로 만들어서 시나리오 러너에 넘긴다.
    카운터는 증가만 한다 (단일 스레드에서 순서대로 기록되므로 락 불필요).
    """

    def __init__(self):
        self.total_checks = 0
        self.error_count = 0
        self.total_requests = 0
        self.failed_requests = 0               # status >= 400
        self.by_status = defaultdict(int)      # {200: 42, 404: 3}
        self.by_path = defaultdict(int)        # {"GET /books/top5": 4}
        self.durations_ms: list[float] = []
        self.slowest = []                      # [{"duration_ms": ..., "method": ..., "path": ..., "status": ...}, ...]

    def record_check(self, passed: bool):
        self.total_checks += 1
        if not passed:
            self.error_count += 1

    def record_request(self, method: str, path: str, status: int, duration_ms: float):
        self.total_requests += 1
        if status >= 400:
            self.failed_requests += 1
        self.by_status[status] += 1
        self.by_path[f"{method} {path}"] += 1
        self.durations_ms.append(duration_ms)

        # 가장 느린 요청 Top 5 유지
        self.slowest.append({
            "duration_ms": round(duration_ms, 1),
            "method": method,
            "path": path,
            "status": status,
        })
        self.slowest.sort(key=lambda x: x["duration_ms"], reverse=True)
        self.slowest = self.slowest[:5]

    def error_rate(self) -> float:
        return self.error_count / self.total_checks if self.total_checks else 0.0

    def request_failure_rate(self) -> float:
        return self.failed_requests / self.total_requests if self.total_requests else 0.0

    def p95_latency_ms(self) -> float:
        return percentile(self.durations_ms, 95)

    def evaluate(self, thresholds: Thresholds) -> ThresholdVerdict:
        """실행 종료 시 임계값과 비교: 경계값은 통과로 본다 (<=)"""
        error_rate = self.error_rate()
        p95 = self.p95_latency_ms()
        failure_rate = self.request_failure_rate()
        failures = []

        if error_rate > thresholds.max_error_rate:
            failures.append(f"error rate {error_rate:.2%} > {thresholds.max_error_rate:.2%}")
        if p95 > thresholds.max_p95_latency_ms:
            failures.append(f"p95 latency {p95:.0f}ms > {thresholds.max_p95_latency_ms:.0f}ms")
        if thresholds.max_request_failure_rate is not None and failure_rate > thresholds.max_request_failure_rate:
            failures.append(
                f"request failure rate {failure_rate:.2%} > {thresholds.max_request_failure_rate:.2%}"
            )

        verdict = ThresholdVerdict(
            passed=not failures,
            error_rate=error_rate,
            p95_latency_ms=p95,
            request_failure_rate=failure_rate,
            failures=failures,
        )
        logger.info(
            f"thresholds {'passed' if verdict.passed else 'failed'}",
            extra={"extra_data": {
                "error_count": self.error_count,
                "total_checks": self.total_checks,
                "error_rate": round(error_rate, 4),
                "p95_latency_ms": round(p95, 1),
            }}
        )
        return verdict

    def summary(self) -> dict:
        avg = round(sum(self.durations_ms) / self.total_requests, 1) if self.total_requests else 0
        return {
            "total_checks": self.total_checks,
            "error_count": self.error_count,
            "error_rate": round(self.error_rate(), 4),
            "total_requests": self.total_requests,
            "failed_requests": self.failed_requests,
            "avg_response_time_ms": avg,
            "p95_response_time_ms": round(self.p95_latency_ms(), 1),
            "by_status": dict(self.by_status),
            "by_path": dict(self.by_path),
            "slowest_top5": self.slowest,
        }


def percentile(values: list[float], pct: float) -> float:
    """nearest-rank 방식 백분위수 (값이 없으면 0)"""
    if not values:
        return 0.0
    ordered = sorted(values)
    rank = max(1, math.ceil(pct * len(ordered) / 100))
    return ordered[rank - 1]
