from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class CheckResult(BaseModel):
    """체크 1건의 결과: 기록 후 변경하지 않음"""
    name: str
    passed: bool
    detail: str = ""            # 실패 사유 (predicate 예외 메시지, 상태코드 등)

    model_config = {"frozen": True}


class CacheProbeResult(BaseModel):
    """캐시 추론 프로브 결과: 시간 비교는 참고용이고 판정에 쓰지 않는다"""
    path: str
    verdict: Literal["consistent", "inconsistent", "inconclusive", "unexpected_status"]
    statuses: List[int]
    elapsed_ms: List[float]
    speedup_ratios: List[Optional[float]] = Field(default_factory=list)   # [elapsed2/elapsed1, elapsed3/elapsed1]
    improvement_detected: bool = False

    model_config = {"frozen": True}


class ScenarioOutcome(BaseModel):
    """시나리오 1개의 체크 모음"""
    name: str
    checks: List[CheckResult]
    probes: List[CacheProbeResult] = Field(default_factory=list)
    aborted: bool = False                # TransportError 등으로 중간에 끊겼는지
    error: Optional[str] = None
    duration_ms: float = 0.0

    model_config = {"frozen": True}

    @property
    def passed(self) -> bool:
        # 체크가 하나도 없으면 (예: inconclusive 프로브) 실패로 보지 않음
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> List[CheckResult]:
        return [c for c in self.checks if not c.passed]


class ThresholdVerdict(BaseModel):
    """실행 종료 시 임계값 비교 결과"""
    passed: bool
    error_rate: float
    p95_latency_ms: float
    request_failure_rate: float
    failures: List[str] = Field(default_factory=list)   # 어떤 기준을 넘었는지

    model_config = {"frozen": True}


class RunReport(BaseModel):
    """스위트 1회 실행 결과"""
    suite: str
    base_url: str
    outcomes: List[ScenarioOutcome]
    verdict: ThresholdVerdict
    metrics: dict

    model_config = {"frozen": True}

    @property
    def passed(self) -> bool:
        return self.verdict.passed
