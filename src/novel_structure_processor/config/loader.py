"""설정 파일 로더 (YAML)

config.yml을 읽어서 Python 객체로 변환.
섹션이 없으면 dataclass 기본값을 사용한다.
"""

import yaml
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yml"


@dataclass
class PathsConfig:
    """경로 설정"""
    output_folder: str = "data/output"


@dataclass
class ParsingConfig:
    """파싱 옵션"""
    scene_break_markers: List[str] = field(
        default_factory=lambda: ["***", "---", "* * *", "- - -", "~~~"]
    )
    auto_detect_encoding: bool = True
    default_encoding: str = "utf-8"


@dataclass
class AnalysisConfig:
    """이슈 분석 임계값 (단어 수)"""
    short_scene_words: int = 50
    long_scene_words: int = 5000
    short_document_words: int = 1000
    long_document_words: int = 200000
    min_scene_count: int = 3
    short_average_words: int = 100
    long_average_words: int = 3000


@dataclass
class AutoFixConfig:
    """일괄 자동 수정 기본 옵션"""
    combine_short_scenes: bool = True
    split_long_scenes: bool = False
    renumber_chapters: bool = True
    renumber_scenes: bool = True
    rename_duplicates: bool = True
    minimum_scene_length: int = 50
    maximum_scene_length: int = 5000


@dataclass
class LoggingConfig:
    """로깅 설정"""
    file_level: str = "DEBUG"
    console_level: str = "INFO"


@dataclass
class UIConfig:
    """UI 설정"""
    max_issue_display: int = 50
    show_scene_details: bool = False


@dataclass
class Config:
    """전체 설정"""
    paths: PathsConfig = field(default_factory=PathsConfig)
    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    auto_fix: AutoFixConfig = field(default_factory=AutoFixConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    ui: UIConfig = field(default_factory=UIConfig)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """config.yml 로드

    Args:
        config_path: 설정 파일 경로

    Returns:
        Config 객체

    Raises:
        FileNotFoundError: 설정 파일이 없을 때
        yaml.YAMLError: YAML 파싱 에러
    """
    path = Path(config_path)
    if not path.exists():
        logger.error(f"Config file not found: {config_path}")
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading config from: {config_path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    config = Config(
        paths=PathsConfig(**data.get("paths", {})),
        parsing=ParsingConfig(**data.get("parsing", {})),
        analysis=AnalysisConfig(**data.get("analysis", {})),
        auto_fix=AutoFixConfig(**data.get("auto_fix", {})),
        logging=LoggingConfig(**data.get("logging", {})),
        ui=UIConfig(**data.get("ui", {}))
    )

    logger.info(f"✅ Config loaded: {len(config.parsing.scene_break_markers)} scene break markers")
    return config


# 전역 설정 인스턴스 (싱글톤)
_config: Optional[Config] = None


def get_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """전역 설정 인스턴스 반환 (싱글톤)

    Returns:
        Config 객체

    Example:
        >>> from novel_structure_processor.config.loader import get_config
        >>> config = get_config()
        >>> print(config.analysis.short_scene_words)
    """
    global _config
    if _config is None:
        _config = load_config(config_path)
    return _config


def reset_config() -> None:
    """싱글톤 초기화 (다른 설정 파일을 다시 읽을 때)"""
    global _config
    _config = None


def save_config(config: Config, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """config.yml 저장

    Args:
        config: Config 객체
        config_path: 설정 파일 경로
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(asdict(config), f, allow_unicode=True, default_flow_style=False, sort_keys=False)

    logger.info(f"✅ Config saved: {config_path}")
