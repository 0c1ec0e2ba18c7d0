from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError
from core.logger import get_logger
from schemas.config import RunConfig, TargetData, Thresholds

logger = get_logger("config")

# 이름으로 고를 수 있는 대상 환경
ENVIRONMENTS = {
    "dev": "http://localhost:8084/api",
    "staging": "http://localhost:8085/api",
    "prod": "http://localhost:8086/api",
}
DEFAULT_ENV = "dev"

THRESHOLD_KEYS = frozenset(Thresholds.model_fields)
TARGET_KEYS = frozenset(TargetData.model_fields)
# override/환경변수로 바꿀 수 있는 키 전체
RUN_KEYS = frozenset(RunConfig.model_fields) - {"thresholds", "target"} | THRESHOLD_KEYS | TARGET_KEYS


class Settings(BaseSettings):
    # 대상 시스템: BASE_URL이 있으면 ENV보다 우선
    base_url: Optional[str] = None
    env: Optional[str] = None

    # 요청
    headers: Optional[Dict[str, str]] = None
    timeout_s: Optional[float] = None
    pacing_delay_s: Optional[float] = None
    cache_settle_delay_s: Optional[float] = None

    # 통과 기준 (지정하지 않으면 스위트 기본값 사용)
    max_p95_latency_ms: Optional[float] = None
    max_error_rate: Optional[float] = None
    max_request_failure_rate: Optional[float] = None

    # 조회 대상 데이터
    author_id: Optional[str] = None
    isbn: Optional[str] = None
    book_title: Optional[str] = None
    genre: Optional[str] = None
    lending_number: Optional[str] = None

    # 실행할 스위트 (쉼표 구분)
    suites: str = "authors,books,lendings"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        # config.py -> core -> systest -> 저장소 루트 아래의 .env 찾기
        env_file=Path(__file__).parent.parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,     # 환경변수 대소문자 무시
        extra="ignore",           # .env에 다른 키가 있어도 무시
    )


@lru_cache
def get_settings() -> Settings:
    """환경변수/.env 읽기: 값이 잘못되면 ConfigurationError"""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"환경변수 설정이 잘못되었습니다: {e}") from e


def _check_keys(source: str, values: Mapping[str, Any]) -> None:
    unknown = set(values) - RUN_KEYS
    if unknown:
        raise ConfigurationError(f"{source}에 알 수 없는 설정 키가 있습니다: {sorted(unknown)}")


def resolve_config(
    overrides: Optional[Mapping[str, Any]] = None,
    env_settings: Optional[Settings] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> RunConfig:
    """
    RunConfig 생성: 입력만으로 결정되는 순수 함수 (네트워크/파일 접근 없음)

    우선순위 (뒤로 갈수록 강함):
      하드코딩 기본값 < 스위트 기본값(defaults) < 환경변수 < overrides

    base_url 결정:
      override/BASE_URL > ENV 이름으로 찾은 URL > dev
      ENV가 모르는 이름이면 에러 없이 dev로 대체
    Raises:
        ConfigurationError: 알 수 없는 키, 타입/범위가 잘못된 값
    """
    overrides = dict(overrides or {})
    defaults = dict(defaults or {})
    _check_keys("overrides", overrides)
    _check_keys("defaults", defaults)

    if env_settings is None:
        env_settings = get_settings()

    merged = {
        **defaults,
        **env_settings.model_dump(include=set(RUN_KEYS), exclude_none=True),
        **{k: v for k, v in overrides.items() if v is not None},
    }

    env = str(merged.pop("env", DEFAULT_ENV)).lower()
    base_url = merged.pop("base_url", None)
    if not base_url:
        if env not in ENVIRONMENTS:
            logger.warning(
                f"unknown environment '{env}', falling back to '{DEFAULT_ENV}'",
                extra={"extra_data": {"env": env}}
            )
            env = DEFAULT_ENV
        base_url = ENVIRONMENTS[env]

    headers = merged.pop("headers", {})
    if not isinstance(headers, Mapping):
        raise ConfigurationError(f"headers는 mapping이어야 합니다: {headers!r}")

    thresholds = {k: merged.pop(k) for k in THRESHOLD_KEYS if k in merged}
    target = {k: merged.pop(k) for k in TARGET_KEYS if k in merged}

    try:
        config = RunConfig(
            base_url=base_url,
            env=env,
            headers={"Content-Type": "application/json", **headers},
            thresholds=Thresholds(**thresholds),
            target=TargetData(**target),
            **merged,
        )
    except ValidationError as e:
        raise ConfigurationError(f"잘못된 설정입니다: {e}") from e

    logger.info(
        f"resolved target {config.base_url}",
        extra={"extra_data": {"env": config.env, "timeout_s": config.timeout_s}}
    )
    return config
