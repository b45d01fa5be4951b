import logging
import sys


# -vv 이전에는 boto 계열의 요청 단위 로그를 숨긴다.
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )

    noisy_level = logging.DEBUG if verbosity >= 2 else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
