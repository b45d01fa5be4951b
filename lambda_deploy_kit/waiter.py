"""
waiter
------

update_function_code 이후 함수 업데이트가 반영될 때까지 Lambda 의
function_updated_v2 waiter 로 대기한다.
제한 시간을 넘기면 ConvergenceTimeout. 서버 쪽 업데이트를 되돌리지는 않는다.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from .aws_clients import PlatformClients
from .errors import ConvergenceError, ConvergenceTimeout, TransportError
from .logging_utils import get_logger


logger = get_logger(__name__)

WAITER_NAME = "function_updated_v2"
DEFAULT_TIMEOUT_SECONDS = 300.0

STATUS_FAILED = "Failed"


def _max_attempts(timeout: float, delay: float) -> int:
    return max(1, math.ceil(timeout / delay)) if delay > 0 else 1


def _map_waiter_error(function_name: str, timeout: float, e: WaiterError) -> Exception:
    last: Dict[str, Any] = e.last_response or {}
    conf = last.get("Configuration", {})
    status = conf.get("LastUpdateStatus", "")

    if status == STATUS_FAILED:
        reason = conf.get("LastUpdateStatusReason") or "(사유 없음)"
        return ConvergenceError(f"함수 업데이트 실패: {function_name}: {reason}")
    if "Error" in last:
        return TransportError(f"함수 상태 조회 실패: {function_name}: {last['Error'].get('Message', e)}")
    return ConvergenceTimeout(
        f"함수 업데이트가 {timeout:.0f}초 안에 끝나지 않았습니다: {function_name} "
        f"(마지막 상태: {status or 'unknown'}). 업데이트는 서버에서 계속 진행될 수 있습니다."
    )


def wait_for_function_updated(
    clients: PlatformClients,
    function_name: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    delay: Optional[float] = None,
) -> None:
    """
    delay 를 주지 않으면 waiter 모델의 기본 폴링 간격을 쓴다.
    최대 시도 횟수는 timeout / delay 로 맞춘다.
    """
    try:
        waiter = clients.lambda_.get_waiter(WAITER_NAME)
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"waiter 생성 실패: {WAITER_NAME}: {e}") from e

    delay = delay if delay is not None else waiter.config.delay
    attempts = _max_attempts(timeout, delay)
    logger.info("함수 업데이트 반영 대기: %s (최대 %.0f초, %s초 간격)", function_name, timeout, delay)

    try:
        waiter.wait(
            FunctionName=function_name,
            WaiterConfig={"Delay": delay, "MaxAttempts": attempts},
        )
    except WaiterError as e:
        raise _map_waiter_error(function_name, timeout, e) from e
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"함수 상태 조회 실패: {function_name}: {e}") from e

    logger.info("함수 업데이트 완료: %s", function_name)
