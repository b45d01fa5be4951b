import sys
from typing import Optional

import click

from .aws_clients import PlatformClients
from .config import DEFAULT_ENV, DeployConfig
from .errors import DeployError
from .logging_utils import setup_logging, get_logger
from . import orchestrator


logger = get_logger(__name__)


@click.command(name="deploy")
@click.option(
    "-e",
    "--env",
    "env",
    type=str,
    default=None,
    help=f"환경 이름 postfix (예: prod-use1|stag). 지정하지 않으면 deploy.conf 의 ENV, 없으면 {DEFAULT_ENV}",
)
@click.option(
    "--tail",
    "tail",
    is_flag=True,
    default=False,
    help="배포가 끝난 뒤 함수 로그를 300초 동안 tail 합니다.",
)
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (deploy.conf 와 Go 소스가 있는 곳, 기본: 현재 디렉토리)",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (-vv 는 boto 로그까지 출력)",
)
def main(env: Optional[str], tail: bool, chdir: str, verbose: int) -> None:
    """Lambda 함수를 빌드하고 배포한 뒤 canary alias 를 새 버전으로 옮깁니다."""
    setup_logging(verbose)

    try:
        cfg = DeployConfig.load(chdir, env=env)
    except (OSError, ValueError) as e:
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)
    logger.debug("Config loaded: %s", cfg)

    try:
        clients = PlatformClients.create(cfg.aws_region)
        result = orchestrator.deploy(cfg, clients, base_dir=chdir)
        click.echo(orchestrator.format_summary(result))
        if tail:
            orchestrator.tail(clients, result)
    except DeployError as e:
        logger.debug("배포 실패", exc_info=True)
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)
