"""
lambda_deploy_kit
-----------------

AWS Lambda 함수 하나를 위한 릴리즈 자동화 CLI 패키지.
대상 리소스 확인 → 빌드/패키징 → S3 업로드 및 코드 업데이트 → 반영 대기 →
버전 발행 및 canary alias 갱신 → (선택) 라이브 로그 tail 까지 한 번에 수행한다.
"""

__all__ = [
    "config",
    "orchestrator",
]
