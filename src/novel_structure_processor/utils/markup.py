"""마크업 유틸리티

외부 변환기가 만든 HTML을 블록 단위 조각으로 나누고,
태그 제거 / 단어 수 계산 / 인코딩 감지를 담당
"""

import math
import re
import chardet
from pathlib import Path
from typing import List, Optional
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)

# 블록 단위 조각 시작 태그 (h1-h6, hr, p)
FRAGMENT_SPLIT_RE = re.compile(r'(?=<(?:h[1-6]|hr|p)[\s>/])', re.IGNORECASE)
TAG_RE = re.compile(r'<[^>]*>')

# chardet 샘플 크기 / 신뢰도 하한
ENCODING_SAMPLE_SIZE = 64 * 1024
ENCODING_MIN_CONFIDENCE = 0.7


def split_html_into_fragments(html: str) -> List[str]:
    """HTML을 블록 단위 조각 목록으로 분할

    Args:
        html: 변환기가 만든 HTML 문자열

    Returns:
        공백이 아닌 조각 목록 (원래 순서 유지)

    Examples:
        >>> split_html_into_fragments("<h2>Chapter 1</h2><p>Hello</p><hr/>")
        ['<h2>Chapter 1</h2>', '<p>Hello</p>', '<hr/>']
    """
    return [piece for piece in FRAGMENT_SPLIT_RE.split(html) if piece.strip()]


def extract_text_content(fragment: str) -> str:
    """조각에서 태그를 제거한 순수 텍스트"""
    return TAG_RE.sub('', fragment).strip()


def count_words(markup: str) -> int:
    """마크업의 단어 수

    태그를 공백으로 치환한 뒤 공백 기준 토큰 수를 센다.

    Examples:
        >>> count_words("<p>One two</p><p>three</p>")
        3
    """
    text = TAG_RE.sub(' ', markup or '').strip()
    if not text:
        return 0
    return len(text.split())


def validate_html_content(html: str) -> None:
    """HTML 내용 검증

    Raises:
        ValueError: 내용이 비었거나 읽을 수 있는 텍스트가 없을 때
    """
    if not html or not html.strip():
        raise ValueError("Document appears to be empty or unreadable")

    if not extract_text_content(html):
        raise ValueError("Document contains no readable text content")


def format_word_count(count: int) -> str:
    """단어 수 표시용 문자열

    Examples:
        >>> format_word_count(1)
        '1 word'
        >>> format_word_count(12345)
        '12.3k words'
    """
    if count == 0:
        return "0 words"
    if count == 1:
        return "1 word"
    if count < 1000:
        return f"{count} words"
    if count < 1000000:
        return f"{count / 1000:.1f}k words"
    return f"{count / 1000000:.1f}M words"


def estimate_reading_time(word_count: int, words_per_minute: int = 200) -> int:
    """예상 읽기 시간 (분, 올림)"""
    return math.ceil(word_count / words_per_minute)


def detect_encoding(file_path: Path) -> Optional[str]:
    """파일 인코딩 감지 (chardet)

    Args:
        file_path: 대상 파일

    Returns:
        감지된 인코딩 (신뢰도가 낮으면 None)
    """
    try:
        with open(file_path, "rb") as f:
            sample = f.read(ENCODING_SAMPLE_SIZE)

        result = chardet.detect(sample)
        encoding = result.get("encoding")
        confidence = result.get("confidence", 0)

        if encoding and confidence > ENCODING_MIN_CONFIDENCE:
            logger.debug(f"Encoding detected: {encoding} ({confidence:.2f}) - {file_path.name}")
            return encoding

        logger.debug(f"Low confidence encoding: {encoding} ({confidence:.2f}) - {file_path.name}")
        return None
    except OSError as e:
        logger.warning(f"Encoding detection failed: {file_path} - {e}")
        return None
