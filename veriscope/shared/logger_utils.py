"""상세 실행 로깅 유틸리티"""

import logging
import json
import functools
import time
from datetime import datetime
from typing import Any, Callable
import inspect

from ..config import Config

logger = logging.getLogger(__name__)


def _json_serializable(obj: Any):
    """JSON 직렬화 보조 함수 (바이너리는 크기만 기록)"""
    if isinstance(obj, (bytes, bytearray)):
        return f"<{len(obj)} bytes>"
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "value"):
        return obj.value
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    return str(obj)


def _log_key(inputs: dict) -> str:
    """로그 파일 이름에 사용할 입력 종류를 추출합니다."""
    payload = inputs.get("payload")
    kind = getattr(payload, "content_kind", None)
    if kind is not None:
        return getattr(kind, "value", str(kind))
    return "unknown"


def log_execution(module_name: str, step_name: str):
    """
    비동기 함수 실행의 입력, 출력, 소요 시간을 JSON 파일로 로깅하는 데코레이터.

    Config.EXECUTION_LOG_ENABLED가 꺼져 있으면 원래 함수만 실행합니다.
    예외는 기록 후 그대로 다시 발생시킵니다.

    Args:
        module_name: 모듈 이름 (submission, analysis 등)
        step_name: 단계 이름 (normalize, analyze 등)
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not Config.EXECUTION_LOG_ENABLED:
                return await func(*args, **kwargs)

            start_time = time.time()
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

            # 인자 캡처 (self 제외)
            bound_args = inspect.signature(func).bind(*args, **kwargs)
            bound_args.apply_defaults()
            inputs = {k: v for k, v in bound_args.arguments.items() if k != 'self'}
            log_key = _log_key(inputs)

            log_entry = {
                "timestamp": timestamp,
                "module": module_name,
                "step": step_name,
                "function": func.__name__,
                "inputs": inputs,
                "status": "started"
            }

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                log_entry.update({
                    "status": "error",
                    "execution_time_ms": (time.time() - start_time) * 1000,
                    "error": str(e)
                })
                _save_log(log_key, log_entry)
                raise

            log_entry.update({
                "status": "success",
                "execution_time_ms": (time.time() - start_time) * 1000,
                "outputs": result
            })
            _save_log(log_key, log_entry)
            return result

        return wrapper
    return decorator


def _save_log(log_key: str, entry: dict):
    """로그를 JSON Lines 파일에 추가 (입력 종류별, 날짜별)"""
    try:
        Config.LOG_DIR.mkdir(parents=True, exist_ok=True)
        date_str = datetime.now().strftime("%Y%m%d")
        filepath = Config.LOG_DIR / f"{log_key}_{date_str}.jsonl"

        line = json.dumps(entry, ensure_ascii=False, default=_json_serializable)
        with open(filepath, 'a', encoding='utf-8') as f:
            f.write(line + "\n")

    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"로그 저장 실패: {e}")
