"""Boundary Detectors for Manuscript Fragments

Classifies one block-level markup fragment as an Act heading, a Chapter
heading, a scene break, or plain scene content.

Detectors run as an ordered chain (Act > Chapter > Scene break); the first
positive match wins and the rest are skipped for that fragment.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)

# Roman numerals I-X, longest alternatives first so "IV" is not read as "I"
ROMAN_NUMERAL = r'(?:VIII|VII|III|IX|IV|VI|II|X|V|I)'


class BoundaryKind(str, Enum):
    ACT = "act"
    CHAPTER = "chapter"
    SCENE_BREAK = "scene_break"


@dataclass
class Detection:
    """Positive detector match (no match is represented by None)"""
    kind: BoundaryKind
    title: Optional[str] = None


class ActDetector:
    """Level-1 headings that open a new Act"""

    KEYWORD_PATTERN = re.compile(r'^(act|book|part|volume)\s+', re.IGNORECASE)
    NUMERAL_PATTERN = re.compile(rf'^{ROMAN_NUMERAL}[:.\s]', re.IGNORECASE)
    NUMERAL_TITLE_PATTERN = re.compile(rf'^({ROMAN_NUMERAL})[.:\s]*(.*)$', re.IGNORECASE | re.DOTALL)
    HEADING_PATTERN = re.compile(r'^<h1[\s>]', re.IGNORECASE)

    @classmethod
    def detect(cls, fragment: str, text: str) -> Optional[Detection]:
        if not cls.HEADING_PATTERN.match(fragment):
            return None

        if cls.KEYWORD_PATTERN.match(text) or cls.NUMERAL_PATTERN.match(text):
            return Detection(BoundaryKind.ACT, cls.extract_title(text))

        return None

    @classmethod
    def extract_title(cls, text: str) -> str:
        """Keyword titles are kept verbatim, bare numerals become "Act <N>[: subtitle]"
        """
        if cls.KEYWORD_PATTERN.match(text):
            return text

        numeral_match = cls.NUMERAL_TITLE_PATTERN.match(text)
        if numeral_match:
            subtitle = numeral_match.group(2).strip()
            numeral = numeral_match.group(1).upper()
            return f"Act {numeral}: {subtitle}" if subtitle else f"Act {numeral}"

        return text or "Untitled Act"


class ChapterDetector:
    """Chapter headings in three forms

    1. Any level-2 heading with text
    2. "Chapter <n|roman> [subtitle]" in a level 2-4 heading or a paragraph
    3. A bare integer in a short level 2-4 heading (implicit chapter number)
    """

    H2_PATTERN = re.compile(r'^<h2[\s>]', re.IGNORECASE)
    KEYWORD_CONTAINER_PATTERN = re.compile(r'^<(?:h[2-4]|p)[\s>]', re.IGNORECASE)
    NUMBER_CONTAINER_PATTERN = re.compile(r'^<h[2-4][\s>]', re.IGNORECASE)
    CHAPTER_PATTERN = re.compile(r'^chapter\s+(\d+|[ivx]+)[\s\-—:]*(.*)$', re.IGNORECASE | re.DOTALL)
    NUMBER_PATTERN = re.compile(r'^\s*(\d+)\s*\.?\s*$')
    MAX_NUMBER_HEADING_LENGTH = 10

    @classmethod
    def detect(cls, fragment: str, text: str) -> Optional[Detection]:
        if cls.H2_PATTERN.match(fragment) and text.strip():
            return Detection(BoundaryKind.CHAPTER, cls.extract_title(text))

        if cls.KEYWORD_CONTAINER_PATTERN.match(fragment) and cls.CHAPTER_PATTERN.match(text):
            return Detection(BoundaryKind.CHAPTER, cls.extract_title(text))

        if (cls.NUMBER_CONTAINER_PATTERN.match(fragment)
                and len(text) < cls.MAX_NUMBER_HEADING_LENGTH
                and cls.NUMBER_PATTERN.match(text)):
            return Detection(BoundaryKind.CHAPTER, cls.extract_title(text))

        return None

    @classmethod
    def extract_title(cls, text: str) -> str:
        """Normalize to "Chapter <n>[: subtitle]" where possible"""
        chapter_match = cls.CHAPTER_PATTERN.match(text)
        if chapter_match:
            subtitle = chapter_match.group(2).strip()
            number = chapter_match.group(1)
            return f"Chapter {number}: {subtitle}" if subtitle else f"Chapter {number}"

        number_match = cls.NUMBER_PATTERN.match(text)
        if number_match:
            return f"Chapter {number_match.group(1)}"

        return text or "Untitled Chapter"


class SceneBreakDetector:
    """Horizontal rules and verbatim break markers"""

    DEFAULT_MARKERS = ("***", "---", "* * *", "- - -", "~~~")
    HR_PATTERN = re.compile(r'^<hr[\s>/]', re.IGNORECASE)

    def __init__(self, markers: Optional[Iterable[str]] = None):
        self.markers = frozenset(markers if markers is not None else self.DEFAULT_MARKERS)

    def detect(self, fragment: str, text: str) -> Optional[Detection]:
        if self.HR_PATTERN.match(fragment):
            return Detection(BoundaryKind.SCENE_BREAK)

        # exact match only, never a substring
        if text.strip() in self.markers:
            return Detection(BoundaryKind.SCENE_BREAK)

        return None


Matcher = Callable[[str, str], Optional[Detection]]


class BoundaryClassifier:
    """Prioritized chain of matchers; first positive detection wins"""

    def __init__(self, scene_break_markers: Optional[Iterable[str]] = None):
        self.scene_break_detector = SceneBreakDetector(scene_break_markers)
        self.matchers: List[Matcher] = [
            ActDetector.detect,
            ChapterDetector.detect,
            self.scene_break_detector.detect,
        ]

    def classify(self, fragment: str, text: str) -> Optional[Detection]:
        """Classify one fragment

        Args:
            fragment: Raw markup of the fragment (e.g. "<h2>Chapter 1</h2>")
            text: Plain text extracted from the fragment

        Returns:
            The first Detection produced by the chain, or None for scene content
        """
        fragment = fragment.lstrip()
        for matcher in self.matchers:
            detection = matcher(fragment, text)
            if detection is not None:
                return detection
        return None
