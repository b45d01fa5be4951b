from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

from .aws_clients import PlatformClients
from .config import DeployConfig
from .logging_utils import get_logger
from .models import BuildArtifact, DeploymentTarget
from . import (
    builder,
    log_tail,
    promoter,
    publisher,
    resolver,
    waiter,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class DeployResult:
    target: DeploymentTarget
    artifact_key: str
    version: str
    alias: str


def deploy(
    cfg: DeployConfig,
    clients: PlatformClients,
    *,
    base_dir: str = ".",
    build: Callable[[DeploymentTarget, str], BuildArtifact] = builder.build_artifact,
    converge_timeout: float = waiter.DEFAULT_TIMEOUT_SECONDS,
) -> DeployResult:
    """
    resolve → build → publish → wait → promote 순서로 실행한다.

    각 단계는 앞 단계가 끝난 뒤에만 시작하며, 어느 단계든 DeployError 가 나면
    그대로 위로 올린다. 이미 적용된 효과는 되돌리지 않는다.
    """
    logger.info("[1/5] 배포 대상 확인")
    target = resolver.resolve_target(clients, cfg)

    logger.info("[2/5] 빌드 및 패키징 (arch=%s)", target.architecture)
    artifact = build(target, base_dir)

    logger.info("[3/5] 업로드 및 함수 코드 업데이트")
    key = publisher.publish_artifact(clients, target, artifact)

    logger.info("[4/5] 업데이트 반영 대기")
    waiter.wait_for_function_updated(clients, target.function_name, timeout=converge_timeout)

    logger.info("[5/5] 버전 발행 및 alias 갱신")
    handle = promoter.promote(clients, target)

    return DeployResult(
        target=target,
        artifact_key=key,
        version=handle.version,
        alias=promoter.CANARY_ALIAS,
    )


def tail(
    clients: PlatformClients,
    result: DeployResult,
    *,
    timeout: float = log_tail.DEFAULT_TAIL_SECONDS,
) -> None:
    """배포가 끝난 함수의 로그 그룹을 제한 시간 동안 tail 한다."""
    logger.info("로그 tail 시작: %s (%.0f초)", result.target.log_group_name, timeout)
    log_tail.tail_logs(clients, result.target.log_group_name, timeout=timeout)


def format_summary(result: DeployResult) -> str:
    lines: List[str] = []
    lines.append("# Deploy summary")
    lines.append(f"- function: {result.target.function_name}")
    lines.append(f"- architecture: {result.target.architecture}")
    lines.append(f"- artifact: s3://{result.target.bucket_name}/{result.artifact_key}")
    lines.append(f"- version: {result.version}")
    lines.append(f"- alias: {result.alias} -> {result.version}")
    return "\n".join(lines)
