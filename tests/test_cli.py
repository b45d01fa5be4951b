from typing import Any, Dict, List

import pytest
from click.testing import CliRunner

from lambda_deploy_kit import cli, orchestrator
from lambda_deploy_kit.aws_clients import PlatformClients
from lambda_deploy_kit.errors import BuildError, StreamError
from lambda_deploy_kit.models import DeploymentTarget


def _result() -> orchestrator.DeployResult:
    target = DeploymentTarget(
        function_name="orders-stag",
        bucket_name="e4f-builds",
        log_group_name="/aws/lambda/orders-stag",
        architecture="arm64",
    )
    return orchestrator.DeployResult(target=target, artifact_key="orders-stag-abc1234.zip", version="7", alias="canary")


@pytest.fixture
def project(tmp_path, monkeypatch: pytest.MonkeyPatch):
    for key in ("ENV", "APP_NAME", "BUILDS_BUCKET", "LOG_GROUP_NAME", "AWS_REGION"):
        monkeypatch.delenv(key, raising=False)
    (tmp_path / "deploy.conf").write_text("APP_NAME=orders\n", encoding="utf-8")
    monkeypatch.setattr(
        cli.PlatformClients,
        "create",
        classmethod(lambda cls, region: PlatformClients(lambda_=None, s3=None, logs=None)),
    )
    return tmp_path


def test_deploy_success_prints_summary_and_exits_zero(project, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: Dict[str, Any] = {}
    tailed: List[str] = []

    def fake_deploy(cfg, clients, *, base_dir: str = "."):  # noqa: ANN001
        seen["function"] = cfg.function_name
        return _result()

    monkeypatch.setattr(cli.orchestrator, "deploy", fake_deploy)
    monkeypatch.setattr(cli.orchestrator, "tail", lambda clients, result: tailed.append("yes"))

    runner = CliRunner()
    result = runner.invoke(cli.main, ["-C", str(project)])

    assert result.exit_code == 0, result.output
    assert seen["function"] == "orders-stag"
    assert "- alias: canary -> 7" in result.output
    assert tailed == []


def test_env_flag_and_tail(project, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: Dict[str, Any] = {}
    tailed: List[str] = []

    def fake_deploy(cfg, clients, *, base_dir: str = "."):  # noqa: ANN001
        seen["function"] = cfg.function_name
        return _result()

    monkeypatch.setattr(cli.orchestrator, "deploy", fake_deploy)
    monkeypatch.setattr(cli.orchestrator, "tail", lambda clients, result: tailed.append(result.version))

    result = CliRunner().invoke(cli.main, ["-C", str(project), "-e", "prod-use1", "--tail"])

    assert result.exit_code == 0, result.output
    assert seen["function"] == "orders-prod-use1"
    assert tailed == ["7"]


def test_deploy_error_exits_one(project, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_deploy(cfg, clients, *, base_dir: str = "."):  # noqa: ANN001
        raise BuildError("빌드 실패: exit=2")

    monkeypatch.setattr(cli.orchestrator, "deploy", failing_deploy)

    result = CliRunner().invoke(cli.main, ["-C", str(project)])

    assert result.exit_code == 1
    assert "[ERROR] 빌드 실패" in result.output


def test_stream_error_during_tail_exits_one(project, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_tail(clients, result):  # noqa: ANN001
        raise StreamError("알 수 없는 이벤트 타입")

    monkeypatch.setattr(cli.orchestrator, "deploy", lambda cfg, clients, base_dir=".": _result())
    monkeypatch.setattr(cli.orchestrator, "tail", failing_tail)

    result = CliRunner().invoke(cli.main, ["-C", str(project), "--tail"])

    assert result.exit_code == 1
    assert "# Deploy summary" in result.output


def test_unknown_aws_profile_reports_error_and_exits_one(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("ENV", "APP_NAME", "BUILDS_BUCKET", "LOG_GROUP_NAME", "AWS_REGION"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AWS_PROFILE", "does-not-exist-xyz")
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "aws-config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "aws-credentials"))
    (tmp_path / "deploy.conf").write_text("APP_NAME=orders\n", encoding="utf-8")

    def unexpected_deploy(cfg, clients, *, base_dir: str = "."):  # noqa: ANN001
        raise AssertionError("deploy must not run without clients")

    monkeypatch.setattr(cli.orchestrator, "deploy", unexpected_deploy)

    result = CliRunner().invoke(cli.main, ["-C", str(tmp_path)])

    assert result.exit_code == 1
    assert "[ERROR] AWS 클라이언트 생성 실패" in result.output
    assert "does-not-exist-xyz" in result.output
