from __future__ import annotations

import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from textwrap import shorten
from typing import Mapping, Optional, Sequence

from .errors import CommandError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


def _not_found(cmd: Sequence[str]) -> CommandError:
    return CommandError(
        f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (git/go 가 설치되어 있는지 확인하세요)"
    )


def _timed_out(cmd: Sequence[str], timeout: Optional[float]) -> CommandError:
    return CommandError(f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}")


def _stream(
    cmd: Sequence[str],
    *,
    cwd: Optional[str],
    env: Optional[Mapping[str, str]],
    timeout: Optional[float],
) -> RunResult:
    # go build 는 진행 로그를 stderr 로도 내보내므로 STDOUT 으로 합친다.
    try:
        proc = subprocess.Popen(  # noqa: S603
            list(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
    except FileNotFoundError as e:
        raise _not_found(cmd) from e

    lines: queue.Queue[Optional[str]] = queue.Queue()

    def _reader() -> None:
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                lines.put(line)
        finally:
            lines.put(None)

    reader = threading.Thread(target=_reader, daemon=True)
    reader.start()

    deadline = None if timeout is None else time.monotonic() + float(timeout)
    out: list[str] = []
    try:
        while True:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                proc.kill()
                raise _timed_out(cmd, timeout)
            try:
                item = lines.get(timeout=0.1 if remaining is None else min(0.1, remaining))
            except queue.Empty:
                continue
            if item is None:
                break
            out.append(item)
            sys.stdout.write(item)
            sys.stdout.flush()

        reader.join(timeout=1.0)
        remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
        returncode = proc.wait(timeout=remaining)
    except subprocess.TimeoutExpired as e:
        proc.kill()
        raise _timed_out(cmd, timeout) from e
    finally:
        # kill 이후에도 리더가 EOF 를 보고 끝날 때까지 기다린 뒤 파이프를 닫는다.
        if proc.poll() is None:
            proc.kill()
        proc.wait()
        reader.join(timeout=1.0)
        if proc.stdout is not None:
            proc.stdout.close()

    if returncode != 0:
        combined = "".join(out).strip()
        detail = "\nstdout/stderr:\n" + shorten(combined, width=2000) if combined else ""
        raise CommandError(f"명령 실행 실패: {' '.join(cmd)} (exit={returncode}){detail}")

    return RunResult(returncode=returncode, stdout="".join(out), stderr="")


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = 900.0,
    stream_output: bool = False,
) -> RunResult:
    """
    subprocess 실행 공통 유틸.

    - stream_output=False: stdout/stderr 캡처, 실패 시 일부를 에러 메시지에 포함
    - stream_output=True : 출력을 실시간으로 터미널에 흘린다 (빌드 진행 확인용)

    실패/타임아웃/명령 없음은 모두 CommandError 로 올린다.
    """
    logger.info("명령 실행: %s", " ".join(cmd))

    if stream_output:
        return _stream(cmd, cwd=cwd, env=env, timeout=timeout)

    try:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError as e:
        raise _not_found(cmd) from e
    except subprocess.TimeoutExpired as e:
        raise _timed_out(cmd, timeout) from e
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        stderr = (e.stderr or "").strip()
        detail = ""
        if stderr:
            detail = "\nstderr:\n" + shorten(stderr, width=2000)
        elif stdout:
            detail = "\nstdout:\n" + shorten(stdout, width=2000)
        raise CommandError(
            f"명령 실행 실패: {' '.join(cmd)} (exit={e.returncode}){detail}"
        ) from e

    if result.stderr:
        logger.debug("명령 stderr: %s", shorten(result.stderr.strip(), width=2000))
    return RunResult(returncode=result.returncode, stdout=result.stdout or "", stderr=result.stderr or "")
