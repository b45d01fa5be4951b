"""
aws_clients
-----------

Lambda / S3 / CloudWatch Logs 클라이언트 묶음.
프로세스 시작 시 한 번 만들어 각 단계에 명시적으로 넘긴다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError

from .errors import TransportError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class PlatformClients:
    lambda_: Any
    s3: Any
    logs: Any

    @classmethod
    def create(cls, region: str) -> "PlatformClients":
        """
        세션/클라이언트 생성 실패(없는 AWS_PROFILE 등)는 TransportError 로 올린다.
        """
        logger.debug("AWS 클라이언트 생성: region=%s", region)
        try:
            session = boto3.session.Session(region_name=region)
            return cls(
                lambda_=session.client("lambda"),
                s3=session.client("s3"),
                logs=session.client("logs"),
            )
        except BotoCoreError as e:
            raise TransportError(f"AWS 클라이언트 생성 실패: {e}") from e
