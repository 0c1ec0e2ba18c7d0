import sys
from typing import Dict, List, Optional

from core.config import get_settings, resolve_config
from core.exceptions import ConfigurationError
from core.logger import get_logger, set_level
from scenarios import authors, books, lendings
from service.report_service import format_report
from service.scenario_service import Suite, run_suite

logger = get_logger("main")

SUITES: Dict[str, Suite] = {
    "authors": authors.suite,
    "books": books.suite,
    "lendings": lendings.suite,
}

# 종료 코드
EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def select_suites(names: str) -> List[Suite]:
    selected = [n.strip() for n in names.split(",") if n.strip()]
    unknown = [n for n in selected if n not in SUITES]
    if unknown:
        raise ConfigurationError(f"알 수 없는 스위트: {unknown} (사용 가능: {sorted(SUITES)})")
    return [SUITES[n] for n in selected]


def main(overrides: Optional[dict] = None) -> int:
    """
    전체 실행:
    1. 설정 확인 (잘못되면 요청을 하나도 보내지 않고 종료)
    2. 스위트별 실행
    3. 리포트 출력 + 종료 코드
    """
    try:
        env_settings = get_settings()
        set_level(env_settings.log_level)
        plan = [
            (suite, resolve_config(overrides, env_settings, defaults=suite.defaults))
            for suite in select_suites(env_settings.suites)
        ]
    except ConfigurationError as e:
        logger.error(f"configuration error: {e}")
        return EXIT_CONFIG_ERROR

    reports = [run_suite(suite, config) for suite, config in plan]
    for report in reports:
        print(format_report(report))

    passed = all(r.passed for r in reports)
    print(f"\nOVERALL: {'PASS' if passed else 'FAIL'}")
    return EXIT_PASSED if passed else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
