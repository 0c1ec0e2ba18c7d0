"""
체크(assertion) 엔진

응답 1건에 대해 이름 붙은 체크를 평가한다.
  - predicate가 False를 돌려주거나 예외를 던지면 실패로 기록 (예외는 밖으로 나가지 않음)
  - 한 체크에 predicate 여러 개 → 모두 평가해서 AND
  - 실패해도 시나리오는 계속 진행
"""
from typing import Callable, Iterable

from core.exceptions import AssertionFailure
from core.logger import get_logger
from schemas.response import ResponseDescriptor
from schemas.result import CheckResult

logger = get_logger("check")

Predicate = Callable[[ResponseDescriptor], bool]


def evaluate(response: ResponseDescriptor, name: str, predicates: Iterable[Predicate]) -> CheckResult:
    """predicate 전부 평가: 앞의 것이 실패해도 나머지를 건너뛰지 않는다"""
    reasons = []
    for predicate in predicates:
        try:
            if not predicate(response):
                reasons.append(f"predicate returned false (status {response.status_code})")
        except AssertionFailure as e:
            reasons.append(str(e))
        except Exception as e:
            # predicate 버그/파싱 실패도 체크 실패로만 기록
            reasons.append(f"{type(e).__name__}: {e}")

    result = CheckResult(name=name, passed=not reasons, detail="; ".join(reasons))
    if not result.passed:
        logger.warning(
            f"check failed: {name}",
            extra={"extra_data": {
                "check": name,
                "status": response.status_code,
                "path": response.url,
                "detail": result.detail,
            }}
        )
    return result


# ===== 자주 쓰는 predicate =====

def status_is(*codes: int) -> Predicate:
    """상태코드가 codes 중 하나"""
    def predicate(r: ResponseDescriptor) -> bool:
        if r.status_code not in codes:
            expected = " or ".join(str(c) for c in codes)
            raise AssertionFailure(f"expected status {expected}, got {r.status_code}")
        return True
    return predicate


def body_not_empty(r: ResponseDescriptor) -> bool:
    return len(r.body) > 0


def body_longer_than(length: int) -> Predicate:
    return lambda r: len(r.body) > length


def body_contains(*needles: str) -> Predicate:
    """본문에 needles 중 하나라도 포함"""
    return lambda r: any(n in r.text for n in needles)


def has_header(*names: str) -> Predicate:
    """헤더 중 하나라도 존재 (대소문자 무시)"""
    return lambda r: any(r.header(n) is not None for n in names)


def same_status_as(reference: ResponseDescriptor) -> Predicate:
    return lambda r: r.status_code == reference.status_code


def same_body_as(reference: ResponseDescriptor) -> Predicate:
    """바이트 단위로 동일한 본문"""
    def predicate(r: ResponseDescriptor) -> bool:
        if r.body != reference.body:
            raise AssertionFailure(
                f"body differs from first call ({len(r.body)} bytes vs {len(reference.body)} bytes)"
            )
        return True
    return predicate


def json_is_list(r: ResponseDescriptor) -> bool:
    """본문이 JSON 배열 (ParseError는 evaluate에서 실패로 처리)"""
    return isinstance(r.parse_json(), list)
