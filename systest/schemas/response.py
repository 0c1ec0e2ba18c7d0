import json
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

from core.exceptions import ParseError


class ResponseDescriptor(BaseModel):
    """
    HTTP 응답 1건: 생성 이후 읽기 전용

    body는 전송 계층 그대로의 bytes로 보관하고,
    구조화된 접근이 필요한 체크만 parse_json()을 명시적으로 호출한다.
    """
    method: str
    url: str
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = Field(default_factory=dict)   # 키는 소문자로 정규화
    elapsed_ms: float

    model_config = {"frozen": True}

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def header(self, name: str) -> Optional[str]:
        """대소문자 구분 없이 헤더 조회"""
        return self.headers.get(name.lower())

    def parse_json(self) -> Any:
        """
        본문을 JSON으로 해석
        Raises:
            ParseError: 본문이 비어 있거나 올바른 JSON이 아닐 때
        """
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise ParseError(f"{self.method} {self.url} 응답이 JSON이 아닙니다: {e}") from e
