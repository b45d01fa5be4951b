from typing import Any, Dict, List

import pytest
from botocore.exceptions import ClientError

from lambda_deploy_kit import promoter
from lambda_deploy_kit.aws_clients import PlatformClients
from lambda_deploy_kit.errors import TransportError
from lambda_deploy_kit.models import DeploymentTarget


class _VersionLambda:
    def __init__(self, version: str = "7", fail_alias: bool = False) -> None:
        self.version = version
        self.fail_alias = fail_alias
        self.calls: List[tuple[str, Dict[str, Any]]] = []

    def publish_version(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("publish_version", kwargs))
        return {"Version": self.version}

    def update_alias(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("update_alias", kwargs))
        if self.fail_alias:
            raise ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "no alias"}}, "UpdateAlias")
        return {"Name": kwargs["Name"], "FunctionVersion": kwargs["FunctionVersion"]}


def _target() -> DeploymentTarget:
    return DeploymentTarget(
        function_name="orders-stag",
        bucket_name="e4f-builds",
        log_group_name="/aws/lambda/orders-stag",
        architecture="arm64",
    )


def test_promote_publishes_then_repoints_canary() -> None:
    lam = _VersionLambda("7")

    handle = promoter.promote(PlatformClients(lambda_=lam, s3=None, logs=None), _target())

    assert handle.version == "7"
    assert lam.calls == [
        ("publish_version", {"FunctionName": "orders-stag"}),
        ("update_alias", {"FunctionName": "orders-stag", "Name": "canary", "FunctionVersion": "7"}),
    ]


def test_alias_failure_is_fatal() -> None:
    lam = _VersionLambda("8", fail_alias=True)

    with pytest.raises(TransportError) as excinfo:
        promoter.promote(PlatformClients(lambda_=lam, s3=None, logs=None), _target())

    assert "canary" in str(excinfo.value)
