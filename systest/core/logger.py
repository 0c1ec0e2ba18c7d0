import logging
import json
from datetime import datetime, timezone
from contextvars import ContextVar

# 현재 실행 중인 시나리오 이름을 저장하는 Context Variable
# (시나리오 안에서 찍히는 모든 로그에 자동으로 붙는다)
scenario_var: ContextVar[str] = ContextVar("scenario", default="-")

# LOG_LEVEL 환경변수로 바꿀 수 있는 기본 레벨
_level = logging.INFO


class JsonFormatter(logging.Formatter):
    """
    로그를 JSON 형식으로 출력하는 포매터

    Before: WARNING: check failed: status is 200
    After:  {"timestamp": "...", "level": "WARNING", "message": "...", "scenario": "book not found"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "scenario": scenario_var.get("-"),
        }

        # 추가 필드가 있으면 병합 (예: status, duration_ms 등)
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False)


def set_level(level: str | int) -> None:
    """이미 만들어진 로거까지 포함해서 로그 레벨 변경"""
    global _level
    _level = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(_level, int):
        _level = logging.INFO

    for name in list(logging.root.manager.loggerDict):
        if name.startswith("systest."):
            logging.getLogger(name).setLevel(_level)


def get_logger(name: str) -> logging.Logger:
    """구조화된 JSON 로거 생성"""
    logger = logging.getLogger(f"systest.{name}")

    # 중복 핸들러 방지
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level)

    return logger
