"""원고 구조 데이터 클래스

Act > Chapter > Scene 계층, 구조 이슈, 자동 수정 결과 타입
"""

import copy
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    """이슈 심각도 (error: 가져오기 차단, warning/info: 권고)"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class FixActionType(str, Enum):
    """호출자에게 노출되는 자동 수정 종류"""
    RENUMBER_CHAPTERS = "renumber_chapters"
    RENUMBER_SCENES = "renumber_scenes"
    COMBINE_SCENES = "combine_scenes"
    SPLIT_SCENES = "split_scenes"  # 선언만 존재 (엔진 미구현)
    RENAME_DUPLICATE = "rename_duplicate"


class IssueType(str, Enum):
    """분석기가 생성하는 이슈 태그"""
    DUPLICATE_CHAPTER_NUMBERS = "duplicate_chapter_numbers"
    CHAPTER_NUMBERING_GAPS = "chapter_numbering_gaps"
    DUPLICATE_CHAPTER_TITLES = "duplicate_chapter_titles"
    EMPTY_ACT = "empty_act"
    EMPTY_CHAPTER = "empty_chapter"
    SHORT_SCENES = "short_scenes"
    LONG_SCENE = "long_scene"
    EMPTY_SCENE = "empty_scene"
    SHORT_DOCUMENT = "short_document"
    LONG_DOCUMENT = "long_document"
    FEW_SCENES = "few_scenes"
    SHORT_AVERAGE_SCENES = "short_average_scenes"
    LONG_AVERAGE_SCENES = "long_average_scenes"


@dataclass
class Scene:
    """챕터 안의 한 장면

    Attributes:
        content: 장면 마크업 (조각 연결)
        order: 챕터 내 순서
        word_count: content에서 계산한 단어 수
    """
    content: str
    order: int
    word_count: int

    def __repr__(self):
        return f"<Scene {self.order}: {self.word_count} words>"


@dataclass
class Chapter:
    """Act 안의 챕터"""
    title: str
    order: int
    scenes: List[Scene] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return sum(scene.word_count for scene in self.scenes)

    def __repr__(self):
        return f"<Chapter {self.order}: {self.title} ({len(self.scenes)} scenes)>"


@dataclass
class Act:
    """문서 최상위 구획"""
    title: str
    order: int
    chapters: List[Chapter] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return sum(chapter.word_count for chapter in self.chapters)

    def __repr__(self):
        return f"<Act {self.order}: {self.title} ({len(self.chapters)} chapters)>"


@dataclass
class FixAction:
    """이슈에 붙는 자동 수정 동작

    Attributes:
        type: 수정 종류
        description: 사람이 읽는 설명
        target_id: 대상 식별자 (combine_scenes는 챕터 제목)
    """
    type: FixActionType
    description: str
    target_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "target_id": self.target_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FixAction":
        return cls(
            type=FixActionType(data["type"]),
            description=data.get("description", ""),
            target_id=data.get("target_id"),
        )


@dataclass
class Issue:
    """구조 이슈 (심각도 + 선택적 자동 수정)"""
    type: IssueType
    severity: Severity
    message: str
    suggestion: Optional[str] = None
    auto_fixable: bool = False
    fix_action: Optional[FixAction] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "auto_fixable": self.auto_fixable,
            "fix_action": self.fix_action.to_dict() if self.fix_action else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        fix_action = data.get("fix_action")
        return cls(
            type=IssueType(data["type"]),
            severity=Severity(data["severity"]),
            message=data.get("message", ""),
            suggestion=data.get("suggestion"),
            auto_fixable=bool(data.get("auto_fixable", False)),
            fix_action=FixAction.from_dict(fix_action) if fix_action else None,
        )


@dataclass
class DocumentStructure:
    """파싱된 원고 전체

    Attributes:
        acts: Act 목록
        word_count: 전체 단어 수 (모든 Scene의 합)
        issues: 분석 이슈 (분석 전이거나 수정 후에는 None)
        raw_chapter_titles: 파싱 중 수집한 원본 챕터 제목 (정규화 전)
    """
    acts: List[Act] = field(default_factory=list)
    word_count: int = 0
    issues: Optional[List[Issue]] = None
    raw_chapter_titles: Optional[List[str]] = None

    def iter_chapters(self):
        for act in self.acts:
            yield from act.chapters

    def iter_scenes(self):
        for chapter in self.iter_chapters():
            yield from chapter.scenes

    def total_chapters(self) -> int:
        return sum(len(act.chapters) for act in self.acts)

    def total_scenes(self) -> int:
        return sum(len(chapter.scenes) for chapter in self.iter_chapters())

    def calculate_word_count(self) -> int:
        return sum(act.word_count for act in self.acts)

    def recalculate_word_count(self) -> int:
        """Scene 단어 수 합으로 word_count 갱신"""
        self.word_count = self.calculate_word_count()
        return self.word_count

    def clone(self) -> "DocumentStructure":
        """값 복사 (수정 작업은 항상 복사본에서 수행)"""
        return copy.deepcopy(self)

    def summary(self) -> Dict[str, int]:
        return {
            "acts": len(self.acts),
            "chapters": self.total_chapters(),
            "scenes": self.total_scenes(),
            "word_count": self.word_count,
            "issues": len(self.issues) if self.issues else 0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "acts": [
                {
                    "title": act.title,
                    "order": act.order,
                    "word_count": act.word_count,
                    "chapters": [
                        {
                            "title": chapter.title,
                            "order": chapter.order,
                            "word_count": chapter.word_count,
                            "scenes": [asdict(scene) for scene in chapter.scenes],
                        }
                        for chapter in act.chapters
                    ],
                }
                for act in self.acts
            ],
            "word_count": self.word_count,
            "issues": [issue.to_dict() for issue in self.issues] if self.issues is not None else None,
            "raw_chapter_titles": list(self.raw_chapter_titles) if self.raw_chapter_titles is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentStructure":
        """to_dict() 결과 (또는 같은 모양의 JSON)에서 복원

        저장된 word_count는 신뢰하지 않고 Scene 합계로 다시 계산한다.
        """
        acts = [
            Act(
                title=act_data.get("title", ""),
                order=int(act_data.get("order", index + 1)),
                chapters=[
                    Chapter(
                        title=chapter_data.get("title", ""),
                        order=int(chapter_data.get("order", ch_index + 1)),
                        scenes=[
                            Scene(
                                content=scene_data.get("content", ""),
                                order=int(scene_data.get("order", sc_index + 1)),
                                word_count=int(scene_data.get("word_count", 0)),
                            )
                            for sc_index, scene_data in enumerate(chapter_data.get("scenes", []))
                        ],
                    )
                    for ch_index, chapter_data in enumerate(act_data.get("chapters", []))
                ],
            )
            for index, act_data in enumerate(data.get("acts", []))
        ]

        issues = data.get("issues")
        structure = cls(
            acts=acts,
            issues=[Issue.from_dict(item) for item in issues] if issues is not None else None,
            raw_chapter_titles=data.get("raw_chapter_titles"),
        )
        structure.recalculate_word_count()
        return structure


@dataclass
class AutoFixResult:
    """자동 수정 결과"""
    success: bool
    message: str
    fixed_structure: Optional[DocumentStructure] = None
    error: Optional[str] = None


@dataclass
class AutoFixOptions:
    """일괄 자동 수정 옵션 (각 단계 개별 토글)"""
    combine_short_scenes: bool = True
    split_long_scenes: bool = False
    renumber_chapters: bool = True
    renumber_scenes: bool = True
    rename_duplicates: bool = True
    minimum_scene_length: int = 50
    maximum_scene_length: int = 5000


@dataclass
class ValidationResult:
    """가져오기 차단 여부 판정 (권고 이슈와 별개)"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
