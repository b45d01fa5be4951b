"""배포 파이프라인에서 사용하는 예외 정의."""


class DeployError(Exception):
    """모든 배포 오류의 기반 클래스. CLI 는 이 예외를 exit 1 로 매핑한다."""
    pass


class ResolutionError(DeployError):
    """설정된 함수/버킷/로그 그룹이 계정에 존재하지 않을 때."""
    pass


class CommandError(DeployError):
    """외부 명령(git, go 등) 실행 실패."""
    pass


class BuildError(DeployError):
    """바이너리 빌드 또는 패키징 실패."""
    pass


class TransportError(DeployError):
    """AWS API 호출 실패."""
    pass


class ConvergenceError(DeployError):
    """함수 업데이트가 정상적으로 반영되지 않았을 때."""
    pass


class ConvergenceTimeout(ConvergenceError):
    """제한 시간 안에 함수 업데이트가 끝나지 않았을 때. 서버 쪽 업데이트는 계속 진행될 수 있다."""
    pass


class StreamError(DeployError):
    """라이브 로그 스트림 오류 또는 알 수 없는 프레임 수신."""
    pass
