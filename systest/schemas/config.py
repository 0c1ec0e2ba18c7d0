from pydantic import BaseModel, Field, field_validator
from typing import Dict, Optional


class Thresholds(BaseModel):
    """실행 전체 통과 기준: 빈 DB에서도 돌 수 있도록 기본값은 관대하게"""
    max_p95_latency_ms: float = Field(3000.0, gt=0, description="응답 시간 p95 상한 (ms)")
    max_error_rate: float = Field(0.5, ge=0, le=1, description="실패 체크 비율 상한")
    max_request_failure_rate: Optional[float] = Field(None, ge=0, le=1, description="4xx/5xx 응답 비율 상한 (None이면 검사 안 함)")

    model_config = {"frozen": True}


class TargetData(BaseModel):
    """시나리오가 조회할 대상 데이터: 대상 시스템에 없을 수도 있음"""
    author_id: str = "1"
    isbn: str = "9782826012092"
    book_title: str = "Test Book"
    genre: str = "Fiction"
    lending_number: str = "2025/1"      # {year}/{sequence}

    model_config = {"frozen": True}


class RunConfig(BaseModel):
    """실행 1회 동안 변하지 않는 설정"""
    base_url: str
    env: str = "dev"
    headers: Dict[str, str] = Field(default_factory=lambda: {"Content-Type": "application/json"})
    thresholds: Thresholds = Field(default_factory=Thresholds)
    target: TargetData = Field(default_factory=TargetData)
    timeout_s: float = Field(30.0, gt=0)              # 요청 1건당 타임아웃
    pacing_delay_s: float = Field(0.1, ge=0)          # 시나리오 사이 대기
    cache_settle_delay_s: float = Field(0.05, ge=0)   # 캐시 쓰기가 끝날 때까지 대기

    model_config = {"frozen": True}

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url은 http:// 또는 https:// 로 시작해야 합니다.")
        return v.rstrip("/")
