"""
builder
-------

Lambda 커스텀 런타임용 bootstrap 바이너리를 빌드하고
배포 가능한 zip 아카이브로 패키징하는 모듈.
"""

from __future__ import annotations

import io
import os
import stat
import zipfile
from typing import Tuple

from .errors import BuildError, CommandError
from .logging_utils import get_logger
from .models import BuildArtifact, DeploymentTarget
from .subprocess_utils import run_command


logger = get_logger(__name__)

BINARY_NAME = "bootstrap"
SHORT_COMMIT_LENGTH = 7


def artifact_filename(function_name: str, commit: str, dirty: bool = False) -> str:
    """
    <function>-<short commit>[-dirty].zip
    S3 키로도 그대로 쓰이므로 커밋이 같으면 항상 같은 이름이 나온다.
    """
    suffix = "-dirty" if dirty else ""
    return f"{function_name}-{commit}{suffix}.zip"


def get_commit_info(cwd: str = ".") -> Tuple[str, bool]:
    """
    현재 커밋의 앞 7자리와, 커밋되지 않은 변경이 있는지 여부를 반환한다.
    """
    try:
        head = run_command(["git", "rev-parse", "HEAD"], cwd=cwd, timeout=60.0)
        status = run_command(["git", "status", "--porcelain"], cwd=cwd, timeout=60.0)
    except CommandError as e:
        raise BuildError(f"git 커밋 정보 조회 실패: {e}") from e

    commit = head.stdout.strip()[:SHORT_COMMIT_LENGTH]
    if not commit:
        raise BuildError("git rev-parse HEAD 결과가 비어 있습니다.")
    dirty = bool(status.stdout.strip())
    if dirty:
        logger.warning("커밋되지 않은 변경이 있습니다. 아티팩트에 -dirty 가 붙습니다.")
    return commit, dirty


def build_binary(target: DeploymentTarget, commit: str, cwd: str = ".") -> str:
    """
    대상 함수의 아키텍처에 맞춰 linux 용 bootstrap 바이너리를 빌드하고 경로를 반환한다.
    """
    ldflags = f"-s -w -X main.Commit={commit} -X microservice.CommitHash={commit}"
    cmd = ["go", "build", "-ldflags", ldflags, "-o", BINARY_NAME, "."]
    env = dict(os.environ)
    env.update({"GOOS": "linux", "GOARCH": target.goarch, "CGO_ENABLED": "0"})

    logger.info("바이너리 빌드: GOARCH=%s commit=%s", target.goarch, commit)
    try:
        run_command(cmd, cwd=cwd, env=env, stream_output=True)
    except CommandError as e:
        raise BuildError(f"빌드 실패: {e}") from e

    path = os.path.join(cwd, BINARY_NAME)
    try:
        os.chmod(path, 0o755)
    except OSError as e:
        raise BuildError(f"바이너리 실행 권한 설정 실패: {path}: {e}") from e
    return path


def package_binary(path: str) -> bytes:
    """바이너리 하나를 bootstrap 엔트리로 담은 zip 아카이브를 메모리에서 만든다."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise BuildError(f"바이너리를 읽을 수 없습니다: {path}: {e}") from e

    info = zipfile.ZipInfo(BINARY_NAME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = (stat.S_IFREG | 0o755) << 16

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(info, data)
    return buf.getvalue()


def build_artifact(target: DeploymentTarget, cwd: str = ".") -> BuildArtifact:
    commit, dirty = get_commit_info(cwd)
    path = build_binary(target, commit, cwd=cwd)
    payload = package_binary(path)
    filename = artifact_filename(target.function_name, commit, dirty)
    logger.info("아티팩트 생성 완료: %s (%d bytes)", filename, len(payload))
    return BuildArtifact(filename=filename, payload=payload, commit=commit, dirty=dirty)
