"""
promoter
--------

현재 함수 코드/설정으로 새 버전을 발행하고 canary alias 를 그 버전으로 옮긴다.
"""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import PlatformClients
from .errors import TransportError
from .logging_utils import get_logger
from .models import DeploymentTarget, UpdateHandle


logger = get_logger(__name__)

CANARY_ALIAS = "canary"


def publish_version(clients: PlatformClients, function_name: str) -> UpdateHandle:
    try:
        output = clients.lambda_.publish_version(FunctionName=function_name)
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"새 버전 발행 실패: {function_name}: {e}") from e
    return UpdateHandle(function_name=function_name, version=str(output["Version"]))


def update_alias(clients: PlatformClients, handle: UpdateHandle, alias: str = CANARY_ALIAS) -> None:
    try:
        clients.lambda_.update_alias(
            FunctionName=handle.function_name,
            Name=alias,
            FunctionVersion=handle.version,
        )
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"alias '{alias}' 업데이트 실패: {handle.function_name}: {e}") from e


def promote(clients: PlatformClients, target: DeploymentTarget, alias: str = CANARY_ALIAS) -> UpdateHandle:
    handle = publish_version(clients, target.function_name)
    update_alias(clients, handle, alias)
    logger.info("Published new version %s and updated alias '%s' to point to it", handle.version, alias)
    return handle
