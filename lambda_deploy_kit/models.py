from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


# Lambda 아키텍처 이름 -> GOARCH
_GOARCH = {
    "arm64": "arm64",
    "x86_64": "amd64",
}


@dataclass(frozen=True)
class DeploymentTarget:
    function_name: str
    bucket_name: str
    log_group_name: str
    architecture: str

    @property
    def goarch(self) -> str:
        return _GOARCH.get(self.architecture, "amd64")


@dataclass(frozen=True)
class BuildArtifact:
    filename: str
    payload: bytes
    commit: str
    dirty: bool = False

    def __repr__(self) -> str:
        return f"BuildArtifact(filename={self.filename!r}, size={len(self.payload)})"


@dataclass(frozen=True)
class UpdateHandle:
    function_name: str
    version: str


@dataclass(frozen=True)
class LogEvent:
    timestamp: int  # epoch milliseconds
    message: str
    log_stream_name: Optional[str] = None

    def render(self) -> str:
        ts = datetime.fromtimestamp(self.timestamp / 1000).strftime("%Y/%m/%d %H:%M:%S")
        return f"{ts} {self.message.rstrip()}"
