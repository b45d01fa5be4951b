"""
publisher
---------

아티팩트를 빌드 버킷에 업로드하고 Lambda 함수 코드를 그 객체로 교체한다.
실패해도 이미 올라간 객체는 지우지 않는다 (커밋 기반 이름이라 남아 있어도 무해).
"""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import PlatformClients
from .errors import TransportError
from .logging_utils import get_logger
from .models import BuildArtifact, DeploymentTarget


logger = get_logger(__name__)


def upload_artifact(clients: PlatformClients, target: DeploymentTarget, artifact: BuildArtifact) -> str:
    """
    아티팩트를 S3 에 SSE(AES256) 로 업로드하고 객체 키를 반환한다.
    """
    key = artifact.filename
    logger.info("S3 업로드: s3://%s/%s", target.bucket_name, key)
    try:
        clients.s3.put_object(
            Bucket=target.bucket_name,
            Key=key,
            Body=artifact.payload,
            ContentType="application/zip",
            ServerSideEncryption="AES256",
            Metadata={
                "commit": artifact.commit,
                "dirty": "true" if artifact.dirty else "false",
            },
        )
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"S3 업로드 실패: s3://{target.bucket_name}/{key}: {e}") from e

    logger.info("Released %s to %s", key, target.bucket_name)
    return key


def update_function_code(clients: PlatformClients, target: DeploymentTarget, key: str) -> None:
    logger.info("함수 코드 업데이트 요청: %s <- s3://%s/%s", target.function_name, target.bucket_name, key)
    try:
        clients.lambda_.update_function_code(
            FunctionName=target.function_name,
            S3Bucket=target.bucket_name,
            S3Key=key,
        )
    except (ClientError, BotoCoreError) as e:
        raise TransportError(f"함수 코드 업데이트 실패: {target.function_name}: {e}") from e


def publish_artifact(clients: PlatformClients, target: DeploymentTarget, artifact: BuildArtifact) -> str:
    key = upload_artifact(clients, target, artifact)
    update_function_code(clients, target, key)
    return key
