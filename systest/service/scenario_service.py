import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from core.logger import get_logger, scenario_var
from core.metrics import RunMetrics
from schemas.config import RunConfig
from schemas.response import ResponseDescriptor
from schemas.result import CacheProbeResult, CheckResult, RunReport, ScenarioOutcome
from service.check_service import Predicate, evaluate
from service.request_service import RequestExecutor

logger = get_logger("scenario")


class ScenarioContext:
    """시나리오 본문에 넘겨지는 실행 컨텍스트: 요청, 체크, 대기"""

    def __init__(self, name: str, config: RunConfig, executor: RequestExecutor, metrics: RunMetrics):
        self.name = name
        self.config = config
        self.target = config.target
        self._executor = executor
        self._metrics = metrics
        self.checks: List[CheckResult] = []
        self.probes: List[CacheProbeResult] = []

    # === 요청 ===

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ResponseDescriptor:
        response = self._executor.execute(method, path, body=body, headers=headers, params=params)
        self._metrics.record_request(response.method, path, response.status_code, response.elapsed_ms)
        return response

    def get(self, path: str, **params) -> ResponseDescriptor:
        return self.request("GET", path, params=params or None)

    def post(self, path: str, body: Any = None) -> ResponseDescriptor:
        return self.request("POST", path, body=body)

    # === 체크 ===

    def record(self, result: CheckResult) -> CheckResult:
        """체크 결과를 시나리오와 실행 메트릭에 동시에 반영"""
        self.checks.append(result)
        self._metrics.record_check(result.passed)
        return result

    def check(self, response: ResponseDescriptor, name: str, predicate: Predicate, *more: Predicate) -> CheckResult:
        """이름 하나에 predicate 여러 개 → AND"""
        return self.record(evaluate(response, name, (predicate, *more)))

    def check_all(self, response: ResponseDescriptor, checks: Mapping[str, Predicate]) -> bool:
        """
        {체크 이름: predicate} 전부 평가해서 각각 기록
        Returns:
            전부 통과했는지 (하나가 실패해도 나머지는 평가됨)
        """
        results = [self.check(response, name, predicate) for name, predicate in checks.items()]
        return all(r.passed for r in results)

    # === 대기 ===

    def pause(self, seconds: Optional[float] = None) -> None:
        """대상 시스템의 비동기 처리(캐시 쓰기 등)를 기다리는 고정 대기"""
        delay = self.config.pacing_delay_s if seconds is None else seconds
        if delay > 0:
            time.sleep(delay)


ScenarioBody = Callable[[ScenarioContext], None]


class Suite:
    """
    시나리오 묶음: 라우터처럼 데코레이터로 등록

        suite = Suite("books", defaults={"max_error_rate": 0.7})

        @suite.scenario("book not found")
        def book_not_found(ctx): ...
    """

    def __init__(self, name: str, defaults: Optional[Mapping[str, Any]] = None):
        self.name = name
        self.defaults: Dict[str, Any] = dict(defaults or {})
        self.scenarios: List[Tuple[str, ScenarioBody]] = []

    def scenario(self, name: str) -> Callable[[ScenarioBody], ScenarioBody]:
        def decorator(func: ScenarioBody) -> ScenarioBody:
            if any(existing == name for existing, _ in self.scenarios):
                raise ValueError(f"시나리오 이름이 중복되었습니다: {name}")
            self.scenarios.append((name, func))
            return func
        return decorator


class ScenarioRunner:
    """시나리오를 하나씩 순서대로 실행하고 결과를 모은다"""

    def __init__(self, config: RunConfig, executor: RequestExecutor, metrics: RunMetrics):
        self.config = config
        self.executor = executor
        self.metrics = metrics

    def run_scenario(self, name: str, body: ScenarioBody) -> ScenarioOutcome:
        """
        시나리오 1개 실행
        - 체크 실패는 기록만 하고 계속 진행
        - TransportError/ParseError 등 예외는 이 시나리오만 중단하고
          "aborted: <예외 이름>" 실패 체크 1건으로 기록 (다음 시나리오는 계속 실행)
        """
        token = scenario_var.set(name)
        try:
            ctx = ScenarioContext(name, self.config, self.executor, self.metrics)
            aborted = False
            error = None
            start = time.perf_counter()

            try:
                body(ctx)
            except Exception as e:
                aborted = True
                error = str(e) or type(e).__name__
                ctx.record(CheckResult(name=f"aborted: {type(e).__name__}", passed=False, detail=error))
                logger.error(
                    f"scenario aborted: {name}",
                    extra={"extra_data": {"error": error, "error_type": type(e).__name__}},
                    exc_info=True,
                )

            outcome = ScenarioOutcome(
                name=name,
                checks=list(ctx.checks),
                probes=list(ctx.probes),
                aborted=aborted,
                error=error,
                duration_ms=(time.perf_counter() - start) * 1000,
            )
            logger.info(
                f"scenario {'passed' if outcome.passed else 'failed'}: {name}",
                extra={"extra_data": {
                    "checks": len(outcome.checks),
                    "failed": len(outcome.failed_checks),
                    "duration_ms": round(outcome.duration_ms, 1),
                }}
            )
            return outcome
        finally:
            scenario_var.reset(token)

    def run(self, suite: Suite) -> List[ScenarioOutcome]:
        outcomes = []
        for name, body in suite.scenarios:
            outcomes.append(self.run_scenario(name, body))
            if self.config.pacing_delay_s > 0:
                time.sleep(self.config.pacing_delay_s)
        return outcomes


def run_suite(suite: Suite, config: RunConfig, client: Optional[httpx.Client] = None) -> RunReport:
    """
    스위트 1회 실행

    메트릭은 실행마다 새로 만든다 (여러 실행을 동시에 돌려도 서로 섞이지 않음).
    끝나면 에러율/p95를 임계값과 비교해서 통과 여부를 결정한다.
    """
    metrics = RunMetrics()
    logger.info(
        f"running suite '{suite.name}' against {config.base_url}",
        extra={"extra_data": {"scenarios": len(suite.scenarios)}}
    )

    with RequestExecutor(config, client=client) as executor:
        outcomes = ScenarioRunner(config, executor, metrics).run(suite)

    verdict = metrics.evaluate(config.thresholds)
    return RunReport(
        suite=suite.name,
        base_url=config.base_url,
        outcomes=outcomes,
        verdict=verdict,
        metrics=metrics.summary(),
    )
