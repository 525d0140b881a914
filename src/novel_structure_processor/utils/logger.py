"""로깅 설정 모듈

핸들러는 루트가 아닌 패키지 로거(novel_structure_processor)에 붙는다.
모든 모듈은 `get_logger(__name__)` 으로 하위 로거를 얻어 사용한다.

- 파일: <로그 폴더>/novel-structure-YYYY-MM-DD.log (기본 DEBUG)
- 콘솔: stderr (기본 INFO). stdout은 Rich 리포트 / JSON 출력 전용.

로그 폴더는 NSP_LOG_DIR 환경 변수 또는 setup_logging(log_dir=...) 로 변경.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "novel_structure_processor"
DEFAULT_LOG_DIR = Path(os.environ.get("NSP_LOG_DIR", "data/logs"))

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(levelname)-8s | %(message)s"


def resolve_level(name: str) -> int:
    """레벨 이름 (debug, INFO ...) → logging 상수

    Raises:
        ValueError: 알 수 없는 레벨 이름
    """
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def log_file_for(log_dir: Path) -> Path:
    return log_dir / f"novel-structure-{datetime.now():%Y-%m-%d}.log"


def setup_logging(
    level: str = "DEBUG",
    console_level: str = "INFO",
    log_dir: Optional[Union[str, Path]] = None
) -> Path:
    """패키지 로거 핸들러 (재)설정

    config.yml의 logging 섹션 값으로 CLI가 다시 호출한다.

    Args:
        level: 파일 로그 레벨
        console_level: 콘솔 로그 레벨
        log_dir: 로그 폴더 (None이면 DEFAULT_LOG_DIR)

    Returns:
        기록 중인 로그 파일 경로

    Raises:
        ValueError: 알 수 없는 레벨 이름 (기존 핸들러는 유지)
    """
    file_level = resolve_level(level)
    stream_level = resolve_level(console_level)

    log_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_file_for(log_dir)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    package_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(stream_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    package_logger.addHandler(console_handler)

    package_logger.debug(f"Logging ready: file={log_file} ({level}), console={console_level}")
    return log_file


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """로거 인스턴스 반환

    Example:
        >>> from novel_structure_processor.utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Parsing manuscript...")
    """
    return logging.getLogger(name or PACKAGE_LOGGER)


# 임포트 시 기본 설정
setup_logging()
