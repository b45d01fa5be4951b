from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values


CONFIG_FILENAME = "deploy.conf"

DEFAULT_ENV = "stag"
DEFAULT_BUILDS_BUCKET = "e4f-builds"
DEFAULT_AWS_REGION = "us-east-1"


def load_config_file(base_dir: str = ".",
                     filename: str = CONFIG_FILENAME) -> Dict[str, str]:
    """
    deploy.conf (KEY=VALUE 형식)를 읽어 dict 로 반환한다.
    파일이 없으면 빈 dict. 값이 없는 키는 제외한다.
    """
    path = os.path.join(base_dir, filename)
    if not os.path.exists(path):
        return {}
    values = dotenv_values(dotenv_path=path)
    return {k: v for k, v in values.items() if v}


@dataclass(frozen=True)
class DeployConfig:
    env: str
    app_name: str
    builds_bucket: str
    log_group_name: str
    aws_region: str = DEFAULT_AWS_REGION

    @property
    def function_name(self) -> str:
        # 함수 이름은 항상 app_name-env 로 파생되며 따로 설정할 수 없다.
        return f"{self.app_name}-{self.env}"

    @classmethod
    def load(cls, base_dir: str = ".", env: Optional[str] = None) -> "DeployConfig":
        """
        설정 우선순위: CLI 인자(env) > deploy.conf > 환경변수 > 기본값.
        """
        file_values = load_config_file(base_dir)

        def get(name: str) -> Optional[str]:
            return file_values.get(name) or os.getenv(name) or None

        resolved_env = env or get("ENV") or DEFAULT_ENV
        app_name = get("APP_NAME") or os.path.basename(os.path.abspath(base_dir))
        if not app_name:
            raise ValueError("APP_NAME 을 결정할 수 없습니다. deploy.conf 에 APP_NAME 을 지정하세요.")

        return cls(
            env=resolved_env,
            app_name=app_name,
            builds_bucket=get("BUILDS_BUCKET") or DEFAULT_BUILDS_BUCKET,
            log_group_name=get("LOG_GROUP_NAME") or f"/aws/lambda/{app_name}-{resolved_env}",
            aws_region=get("AWS_REGION") or DEFAULT_AWS_REGION,
        )
