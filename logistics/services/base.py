"""서비스 레이어 공통 모듈

- log_service_call: 서비스 메서드 호출 로깅 데코레이터
- ServiceError: 서비스 예외 최상위 클래스
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 느린 실행 경고 기준 (ms)
SLOW_CALL_THRESHOLD_MS = 100


def log_service_call(func: Callable[..., T]) -> Callable[..., T]:
    """
    서비스 메서드 호출 로깅 데코레이터

    기능:
    - 호출 시작/종료 DEBUG 로깅 + 실행 시간(ms)
    - 느린 실행 경고 (100ms 이상)
    - 비즈니스 예외(ServiceError) WARNING 로깅, 정합성 오류(fatal)는 ERROR
    - 그 외 예외 ERROR 로깅 (스택 트레이스 포함) 후 그대로 전파

    사용법:
        @staticmethod
        @log_service_call
        def quote(...):
            ...
    """

    # "RateService.quote" 형태
    call_name = func.__qualname__

    @wraps(func)
    def wrapper(*args, **kwargs) -> T:
        start_time = time.perf_counter()

        logger.debug("[%s] 호출 시작 | args=%s, kwargs=%s", call_name, args[:3], kwargs)

        try:
            result = func(*args, **kwargs)
        except ServiceError as e:
            elapsed = (time.perf_counter() - start_time) * 1000
            log = logger.error if e.fatal else logger.warning
            log(
                "[%s] 비즈니스 에러 | code=%s, message=%s, details=%s, elapsed=%.2fms",
                call_name,
                e.code,
                e.message,
                e.details,
                elapsed,
            )
            raise
        except Exception as e:
            elapsed = (time.perf_counter() - start_time) * 1000
            logger.error(
                "[%s] 예외 발생 | error=%s, elapsed=%.2fms",
                call_name,
                str(e),
                elapsed,
                exc_info=True,
            )
            raise

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.debug("[%s] 호출 완료 | elapsed=%.2fms", call_name, elapsed)

        if elapsed > SLOW_CALL_THRESHOLD_MS:
            logger.warning("[%s] 느린 실행 감지 | elapsed=%.2fms", call_name, elapsed)

        return result

    return wrapper


class ServiceError(Exception):
    """
    서비스 레이어 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        code: 에러 코드 (API 응답에 활용)
        details: 추가 상세 정보
        fatal: True면 데이터 정합성 오류 (ERROR 로깅, 500 응답)
    """

    fatal = False

    def __init__(self, message: str, code: str = "SERVICE_ERROR", details: dict | None = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"
