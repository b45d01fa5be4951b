"""
resolver
--------

설정된 Lambda 함수, 빌드 버킷, 로그 그룹이 실제 계정에 존재하는지 확인한다.
읽기 전용이며, 이 단계가 통과하기 전에는 어떤 변경 호출도 하지 않는다.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import PlatformClients
from .config import DeployConfig
from .errors import ResolutionError, TransportError
from .logging_utils import get_logger
from .models import DeploymentTarget


logger = get_logger(__name__)


def _drain(
    call: Callable[..., Dict[str, Any]],
    *,
    items_key: str,
    name_key: str,
    token_in: str,
    token_out: str,
    what: str,
    **kwargs: Any,
) -> List[str]:
    """
    페이지네이션된 목록 API 를 끝까지 따라가며 이름을 모은다.
    다음 페이지 토큰이 없거나 빈 문자열인 페이지가 마지막 페이지다.
    """
    names: List[str] = []
    token: Optional[str] = None
    page = 0
    while True:
        params = dict(kwargs)
        if token:
            params[token_in] = token
        try:
            output = call(**params)
        except (ClientError, BotoCoreError) as e:
            raise TransportError(f"{what} 목록 조회 실패: {e}") from e

        page += 1
        names.extend(item[name_key] for item in output.get(items_key, []))

        token = output.get(token_out)
        if not token:
            break

    logger.debug("%s 목록 %d 페이지, %d 개", what, page, len(names))
    return names


def list_function_names(clients: PlatformClients) -> List[str]:
    return _drain(
        clients.lambda_.list_functions,
        items_key="Functions",
        name_key="FunctionName",
        token_in="Marker",
        token_out="NextMarker",
        what="Lambda 함수",
    )


def list_bucket_names(clients: PlatformClients) -> List[str]:
    return _drain(
        clients.s3.list_buckets,
        items_key="Buckets",
        name_key="Name",
        token_in="ContinuationToken",
        token_out="ContinuationToken",
        what="S3 버킷",
    )


def list_log_group_names(clients: PlatformClients, prefix: Optional[str] = None) -> List[str]:
    kwargs: Dict[str, Any] = {}
    if prefix:
        kwargs["logGroupNamePrefix"] = prefix
    return _drain(
        clients.logs.describe_log_groups,
        items_key="logGroups",
        name_key="logGroupName",
        token_in="nextToken",
        token_out="nextToken",
        what="로그 그룹",
        **kwargs,
    )


def ensure_member(kind: str, name: str, available: Iterable[str]) -> None:
    """
    name 이 available 에 없으면 사용 가능한 이름 전체를 담아 ResolutionError 를 던진다.
    """
    available = list(available)
    if name in available:
        return
    listing = ", ".join(available) if available else "(none)"
    raise ResolutionError(
        f"{kind} '{name}' 이(가) 존재하지 않습니다.\n"
        f"사용 가능한 {kind}: {listing}"
    )


def get_function_architecture(clients: PlatformClients, function_name: str) -> str:
    try:
        output = clients.lambda_.get_function_configuration(FunctionName=function_name)
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"함수 설정 조회 실패: {function_name}: {e}") from e

    architectures = output.get("Architectures") or ["x86_64"]
    logger.info("함수 아키텍처: %s", architectures)
    return architectures[0]


def resolve_target(clients: PlatformClients, cfg: DeployConfig) -> DeploymentTarget:
    """
    함수 → 버킷 → 로그 그룹 순으로 존재를 확인하고,
    라이브 함수에서 아키텍처를 읽어 DeploymentTarget 을 만든다.
    """
    function_name = cfg.function_name
    logger.info("배포 대상 확인: function=%s bucket=%s log_group=%s",
                function_name, cfg.builds_bucket, cfg.log_group_name)

    ensure_member("Lambda 함수", function_name, list_function_names(clients))
    ensure_member("S3 버킷", cfg.builds_bucket, list_bucket_names(clients))
    ensure_member("로그 그룹", cfg.log_group_name, list_log_group_names(clients))

    architecture = get_function_architecture(clients, function_name)

    return DeploymentTarget(
        function_name=function_name,
        bucket_name=cfg.builds_bucket,
        log_group_name=cfg.log_group_name,
        architecture=architecture,
    )
