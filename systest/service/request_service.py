import json
import time
from typing import Any, Mapping, Optional

import httpx

from core.exceptions import TransportError
from core.logger import get_logger
from schemas.config import RunConfig
from schemas.response import ResponseDescriptor

logger = get_logger("request")


class RequestExecutor:
    """
    대상 API 호출기

    - 모든 요청에 설정된 헤더(Content-Type: application/json 포함)를 붙인다
    - 호출 전후 시간을 재서 elapsed_ms로 돌려준다
    - 4xx/5xx는 예외가 아니라 정상적인 응답으로 돌려준다
    - 응답을 받지 못한 경우(연결 거부, 타임아웃, 리다이렉트 루프, 본문 디코딩 실패)만 TransportError
    - 주입된 클라이언트에도 요청마다 timeout_s를 적용한다
    - 재시도하지 않는다: 해석은 시나리오가 한다
    """

    def __init__(self, config: RunConfig, client: Optional[httpx.Client] = None):
        self._headers = dict(config.headers)
        self._timeout = config.timeout_s
        self._owns_client = client is None

        # 주입된 클라이언트가 없으면 직접 생성 (테스트에서는 TestClient를 주입)
        self._client = client or httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_s,
            follow_redirects=True,
        )

    def __enter__(self) -> "RequestExecutor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def execute(
        self,
        method: str,
        url: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ResponseDescriptor:
        """
        요청 1회 실행
        Args:
            url: base_url 기준 상대 경로 (예: "/books/top5") 또는 절대 URL
            body: dict/list면 JSON 직렬화, str/bytes면 그대로 전송
            headers: 기본 헤더 위에 덮어쓸 헤더
        Raises:
            TransportError: 응답을 받지 못했을 때
        """
        method = method.upper()
        merged_headers = {**self._headers, **(headers or {})}
        if body is None or isinstance(body, (str, bytes)):
            content = body
        else:
            content = json.dumps(body, ensure_ascii=False)

        start = time.perf_counter()
        try:
            response = self._client.request(
                method, url, content=content, headers=merged_headers, params=params,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(
                f"{method} {url} timed out",
                extra={"extra_data": {"method": method, "path": url, "error": str(e)}}
            )
            raise TransportError(method, url, str(e) or type(e).__name__, timed_out=True) from e
        except httpx.RequestError as e:
            # 연결 실패, 리다이렉트 루프, Content-Encoding 디코딩 실패 등
            logger.error(
                f"{method} {url} transport error",
                extra={"extra_data": {"method": method, "path": url, "error": str(e), "error_type": type(e).__name__}}
            )
            raise TransportError(method, url, str(e) or type(e).__name__) from e
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            f"{method} {url} {response.status_code} {elapsed_ms:.0f}ms",
            extra={"extra_data": {
                "method": method,
                "path": url,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 1),
            }}
        )

        return ResponseDescriptor(
            method=method,
            url=str(response.request.url),
            status_code=response.status_code,
            body=response.content,
            headers={k.lower(): v for k, v in response.headers.items()},
            elapsed_ms=elapsed_ms,
        )
