"""
하네스 예외 분류

  HarnessError
  ├── ConfigurationError   → 실행 전체 중단 (시나리오 시작 전에 발생)
  └── ScenarioError        → 해당 시나리오만 중단, 실패 체크로 기록
      ├── TransportError   → 연결 거부 / 타임아웃 / 리다이렉트 루프 / 본문 디코딩 실패
      ├── ParseError       → 응답 본문이 JSON이 아님
      └── AssertionFailure → predicate가 실패 사유와 함께 던지는 예외
"""


class HarnessError(Exception):
    """하네스에서 발생하는 모든 예외의 부모"""


class ConfigurationError(HarnessError):
    """복구 불가능한 설정 오류: 잘못된 override, 범위 밖 임계값 등"""


class ScenarioError(HarnessError):
    """시나리오 경계에서 잡혀서 기록되는 오류"""


class TransportError(ScenarioError):
    """HTTP 응답 자체를 받지 못한 경우 (4xx/5xx는 여기에 해당하지 않음)"""

    def __init__(self, method: str, url: str, reason: str, timed_out: bool = False):
        self.method = method
        self.url = url
        self.reason = reason
        self.timed_out = timed_out
        kind = "timeout" if timed_out else "transport error"
        super().__init__(f"{method} {url} {kind}: {reason}")


class ParseError(ScenarioError):
    """응답 본문을 구조화된 데이터로 해석할 수 없음"""


class AssertionFailure(ScenarioError):
    """체크 실패: predicate 안에서 사유를 남기고 싶을 때 사용"""
