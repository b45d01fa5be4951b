"""
log_tail
--------

CloudWatch Logs Live Tail 세션을 열고, 백그라운드 소비자 스레드가
로그 라인을 받아 터미널에 출력한다.

구성:
- LiveTailTransport: StartLiveTail 이벤트 스트림을 읽어 큐에 넣는 생산자.
  스트림 중 발생한 예외는 err() 로 나중에 꺼낼 수 있다.
- LogTailSession: 큐를 소비하는 단일 스레드 + 호출 스레드의 타이머.
  제한 시간이 지나면 transport 를 닫고, 그 뒤로는 아무것도 출력하지 않는다.
"""

from __future__ import annotations

import enum
import queue
import threading
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

import click
from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import PlatformClients
from .errors import ResolutionError, StreamError, TransportError
from .logging_utils import get_logger
from .models import LogEvent


logger = get_logger(__name__)

DEFAULT_TAIL_SECONDS = 300.0

# Lambda 런타임 생명주기 라인은 출력하지 않는다.
DEFAULT_EXCLUDE_PATTERNS: Sequence[str] = (
    "START RequestId",
    "REPORT RequestId",
    "END RequestId",
    "INIT_START Runtime",
    "EXTENSION",
)

_POLL_INTERVAL = 0.1


class SessionState(enum.Enum):
    STARTING = "starting"
    STREAMING = "streaming"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


def build_filter_pattern(patterns: Iterable[str]) -> str:
    return " ".join(f'-"{p}"' for p in patterns)


def resolve_log_group_arn(clients: PlatformClients, log_group_name: str) -> str:
    """
    로그 그룹 이름으로 ARN 을 찾는다. 끝의 ':*' 는 Live Tail 이 받지 않으므로 제거한다.
    """
    try:
        output = clients.logs.describe_log_groups(logGroupNamePrefix=log_group_name)
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"로그 그룹 조회 실패: {log_group_name}: {e}") from e

    groups = output.get("logGroups", [])
    if not groups:
        raise ResolutionError(f"주어진 prefix 에 해당하는 로그 그룹이 없습니다: {log_group_name}")

    exact = [g for g in groups if g.get("logGroupName") == log_group_name]
    arn = (exact or groups)[0]["arn"]
    if arn.endswith(":*"):
        arn = arn[: -len(":*")]
    return arn


class LiveTailTransport:
    """
    StartLiveTail 응답 스트림 래퍼.

    리더 스레드가 이벤트를 큐로 옮기고, 스트림이 끝나면 None 을 넣는다.
    읽는 도중 난 예외는 삼키지 않고 err() 로 보관한다 (close() 이후의 예외는 제외).
    """

    def __init__(self, event_stream: Any) -> None:
        self._stream = event_stream
        self._frames: queue.Queue[Optional[Dict[str, Any]]] = queue.Queue()
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._reader: Optional[threading.Thread] = None

    def open(self) -> "LiveTailTransport":
        if self._reader is None:
            self._reader = threading.Thread(target=self._read, name="live-tail-reader", daemon=True)
            self._reader.start()
        return self

    def _read(self) -> None:
        try:
            for event in self._stream:
                if self._closed.is_set():
                    break
                self._frames.put(event)
        except Exception as e:  # noqa: BLE001
            if not self._closed.is_set():
                with self._lock:
                    self._error = e
        finally:
            self._frames.put(None)

    def next_frame(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """다음 프레임. timeout 안에 없으면 queue.Empty."""
        return self._frames.get(timeout=timeout)

    def err(self) -> Optional[BaseException]:
        with self._lock:
            return self._error

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._stream.close()
        except Exception as e:  # noqa: BLE001
            logger.debug("Live Tail 스트림 종료 중 예외 (무시): %s", e)


def start_live_tail(
    clients: PlatformClients,
    log_group_name: str,
    exclude_patterns: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
) -> LiveTailTransport:
    arn = resolve_log_group_arn(clients, log_group_name)
    pattern = build_filter_pattern(exclude_patterns)
    logger.debug("Live Tail 시작: %s filter=%s", arn, pattern)
    try:
        response = clients.logs.start_live_tail(
            logGroupIdentifiers=[arn],
            logEventFilterPattern=pattern,
        )
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"Live Tail 시작 실패: {log_group_name}: {e}") from e
    return LiveTailTransport(response["responseStream"]).open()


class LogTailSession:
    """
    transport 하나를 독점하는 로그 tail 세션.

    상태 전이: STARTING → STREAMING (sessionStart 수신) → CLOSING (타임아웃) → CLOSED.
    스트림 오류나 알 수 없는 프레임은 FAILED 로 가며, 재시도하지 않는다.
    """

    def __init__(
        self,
        transport: Any,
        *,
        echo: Callable[[str], None] = click.echo,
        timeout: float = DEFAULT_TAIL_SECONDS,
    ) -> None:
        self._transport = transport
        self._echo = echo
        self._timeout = timeout
        self._state = SessionState.STARTING
        self._error: Optional[StreamError] = None
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._consumer: Optional[threading.Thread] = None

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def error(self) -> Optional[StreamError]:
        with self._lock:
            return self._error

    def _stopping(self) -> bool:
        return self._state in (SessionState.CLOSING, SessionState.CLOSED, SessionState.FAILED)

    def _fail(self, error: StreamError) -> None:
        with self._lock:
            self._state = SessionState.FAILED
            self._error = error
        logger.error("%s", error)

    def _render(self, results: Iterable[Dict[str, Any]]) -> bool:
        for item in results:
            event = LogEvent(
                timestamp=int(item.get("timestamp", 0)),
                message=item.get("message", ""),
                log_stream_name=item.get("logStreamName"),
            )
            # close() 와 출력이 섞이지 않도록 상태 확인과 출력을 같은 락 안에서 한다.
            with self._lock:
                if self._stopping():
                    return False
                self._echo(event.render())
        return True

    def consume(self) -> None:
        """프레임 소비 루프. 정상 종료, 닫힘, 실패 중 하나로 끝난다."""
        try:
            while True:
                try:
                    frame = self._transport.next_frame(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    with self._lock:
                        if self._stopping():
                            return
                    continue

                with self._lock:
                    if self._stopping():
                        return

                if frame is None:
                    err = self._transport.err()
                    if err is not None:
                        self._fail(StreamError(f"로그 스트리밍 중 오류 발생: {err}"))
                    else:
                        logger.info("로그 스트림이 닫혔습니다.")
                    return

                if "sessionStart" in frame:
                    with self._lock:
                        if self._state is SessionState.STARTING:
                            self._state = SessionState.STREAMING
                    logger.info("Logs streaming session started")
                    continue

                if "sessionUpdate" in frame:
                    if not self._render(frame["sessionUpdate"].get("sessionResults", [])):
                        return
                    continue

                err = self._transport.err()
                detail = f": {err}" if err is not None else ""
                self._fail(StreamError(f"알 수 없는 이벤트 타입 {sorted(frame)}{detail}"))
                return
        except Exception as e:  # noqa: BLE001
            self._fail(StreamError(f"로그 소비 중 예외 발생: {e}"))
        finally:
            self._done.set()

    def start(self) -> None:
        if self._consumer is not None:
            return
        self._consumer = threading.Thread(target=self.consume, name="live-tail-consumer", daemon=True)
        self._consumer.start()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """소비자가 끝나면 True, timeout 이 먼저 지나면 False."""
        return self._done.wait(timeout)

    def close(self) -> None:
        with self._lock:
            if self._state is not SessionState.FAILED:
                self._state = SessionState.CLOSING
        self._transport.close()
        if self._consumer is not None:
            self._consumer.join(timeout=1.0)
        # 소비자가 닫히는 사이에 실패했을 수 있으므로 FAILED 는 덮어쓰지 않는다.
        with self._lock:
            if self._state is SessionState.CLOSING:
                self._state = SessionState.CLOSED

    def run(self) -> None:
        """
        소비자를 띄우고 제한 시간 동안 기다린 뒤 transport 를 닫는다.
        소비자가 먼저 끝나면(스트림 종료/오류) 바로 정리한다.
        """
        self.start()
        if not self.wait(self._timeout):
            logger.info("로그 tail 제한 시간(%.0f초)이 지나 세션을 종료합니다.", self._timeout)
        self.close()
        if self.error is not None:
            raise self.error


def tail_logs(
    clients: PlatformClients,
    log_group_name: str,
    *,
    timeout: float = DEFAULT_TAIL_SECONDS,
    exclude_patterns: Iterable[str] = DEFAULT_EXCLUDE_PATTERNS,
    echo: Callable[[str], None] = click.echo,
) -> None:
    transport = start_live_tail(clients, log_group_name, exclude_patterns)
    LogTailSession(transport, echo=echo, timeout=timeout).run()
