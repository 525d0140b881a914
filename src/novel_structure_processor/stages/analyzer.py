"""Structure Analyzer for Parsed Manuscripts

Read-only passes over a DocumentStructure:
- Raw chapter titles (numbering duplicates/gaps, duplicate titles)
- Acts, chapters and scenes (empty containers, short/long/empty scenes)
- Whole document (length, scene count, average scene length)

Issues are advisory. validate_structure() is the separate blocking check
used for go/no-go import decisions.
"""

import math
import re
from typing import Dict, List, Optional
from novel_structure_processor.stages.structure import (
    Act,
    Chapter,
    DocumentStructure,
    FixAction,
    FixActionType,
    Issue,
    IssueType,
    Severity,
    ValidationResult,
)
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)


class StructureAnalyzer:
    """Detects structural defects and suggests fix actions"""

    # Word count thresholds
    SHORT_SCENE_WORDS = 50
    LONG_SCENE_WORDS = 5000
    SHORT_DOCUMENT_WORDS = 1000
    LONG_DOCUMENT_WORDS = 200000
    MIN_SCENE_COUNT = 3
    SHORT_AVERAGE_WORDS = 100
    LONG_AVERAGE_WORDS = 3000

    # Only the literal "chapter <integer>" form takes part in numbering checks
    CHAPTER_NUMBER_PATTERN = re.compile(r'chapter\s+(\d+)', re.IGNORECASE)

    def __init__(self, thresholds=None):
        """
        Args:
            thresholds: Optional AnalysisConfig overriding the class constants
        """
        if thresholds is not None:
            self.SHORT_SCENE_WORDS = thresholds.short_scene_words
            self.LONG_SCENE_WORDS = thresholds.long_scene_words
            self.SHORT_DOCUMENT_WORDS = thresholds.short_document_words
            self.LONG_DOCUMENT_WORDS = thresholds.long_document_words
            self.MIN_SCENE_COUNT = thresholds.min_scene_count
            self.SHORT_AVERAGE_WORDS = thresholds.short_average_words
            self.LONG_AVERAGE_WORDS = thresholds.long_average_words

    def analyze_issues(self, structure: DocumentStructure) -> List[Issue]:
        """Run all three passes

        Args:
            structure: Parsed (or fixed) document

        Returns:
            Issues in pass order (raw titles, structure, document)
        """
        issues: List[Issue] = []

        # Raw titles are stale after title-changing fixes; fall back to current titles
        titles = structure.raw_chapter_titles
        if titles is None:
            titles = [chapter.title for chapter in structure.iter_chapters()]
        self._check_raw_chapter_titles(titles, issues)

        for act in structure.acts:
            self._analyze_act(act, issues)

        self._analyze_document(structure, issues)

        logger.debug(f"🔎 Analysis found {len(issues)} issues: {[issue.type.value for issue in issues]}")
        return issues

    def _check_raw_chapter_titles(self, titles: List[str], issues: List[Issue]) -> None:
        if len(titles) <= 1:
            return

        chapter_numbers = []
        for title in titles:
            match = self.CHAPTER_NUMBER_PATTERN.search(title)
            if match:
                chapter_numbers.append(int(match.group(1)))

        if len(chapter_numbers) > 1:
            seen = set()
            duplicates = []
            for number in chapter_numbers:
                if number in seen and number not in duplicates:
                    duplicates.append(number)
                seen.add(number)

            if duplicates:
                issues.append(Issue(
                    type=IssueType.DUPLICATE_CHAPTER_NUMBERS,
                    severity=Severity.WARNING,
                    message=f"Original document has duplicate chapter numbers: {', '.join(map(str, duplicates))}",
                    suggestion="Renumber chapters sequentially",
                    auto_fixable=True,
                    fix_action=FixAction(
                        type=FixActionType.RENUMBER_CHAPTERS,
                        description="Renumber all chapters sequentially (1, 2, 3...)"
                    )
                ))

            unique_numbers = sorted(seen)
            for previous, current in zip(unique_numbers, unique_numbers[1:]):
                if current - previous > 1:
                    issues.append(Issue(
                        type=IssueType.CHAPTER_NUMBERING_GAPS,
                        severity=Severity.WARNING,
                        message=f"Original document has chapter numbering gaps: {', '.join(map(str, unique_numbers))}",
                        suggestion="Renumber chapters to remove gaps",
                        auto_fixable=True,
                        fix_action=FixAction(
                            type=FixActionType.RENUMBER_CHAPTERS,
                            description="Renumber all chapters to remove gaps"
                        )
                    ))
                    break

        lowered = [title.lower() for title in titles]
        if len(set(lowered)) < len(lowered):
            issues.append(Issue(
                type=IssueType.DUPLICATE_CHAPTER_TITLES,
                severity=Severity.WARNING,
                message="Document has duplicate chapter titles",
                suggestion="Add numbers to duplicate titles",
                auto_fixable=True,
                fix_action=FixAction(
                    type=FixActionType.RENAME_DUPLICATE,
                    description="Rename duplicate chapters with unique suffixes"
                )
            ))

    def _analyze_act(self, act: Act, issues: List[Issue]) -> None:
        if not act.chapters:
            issues.append(Issue(
                type=IssueType.EMPTY_ACT,
                severity=Severity.WARNING,
                message=f'"{act.title}" contains no chapters',
                suggestion="Add content or remove this act",
            ))

        for chapter in act.chapters:
            self._analyze_chapter(chapter, issues)

    def _analyze_chapter(self, chapter: Chapter, issues: List[Issue]) -> None:
        if not chapter.scenes:
            issues.append(Issue(
                type=IssueType.EMPTY_CHAPTER,
                severity=Severity.WARNING,
                message=f'"{chapter.title}" contains no scenes',
                suggestion="Add content or remove this chapter",
            ))
            return

        short_scenes = []
        long_scenes = []

        for scene in chapter.scenes:
            if scene.word_count == 0:
                issues.append(Issue(
                    type=IssueType.EMPTY_SCENE,
                    severity=Severity.WARNING,
                    message=f'Scene {scene.order} in "{chapter.title}" is empty',
                    suggestion="Remove this empty scene or add content",
                ))
            elif scene.word_count < self.SHORT_SCENE_WORDS:
                short_scenes.append(scene)

            if scene.word_count > self.LONG_SCENE_WORDS:
                long_scenes.append(scene)

        if len(short_scenes) > 1:
            orders = ", ".join(str(scene.order) for scene in short_scenes)
            issues.append(Issue(
                type=IssueType.SHORT_SCENES,
                severity=Severity.INFO,
                message=f'Multiple short scenes in "{chapter.title}": {orders} (< {self.SHORT_SCENE_WORDS} words each)',
                suggestion="Consider combining these short scenes",
                auto_fixable=True,
                fix_action=FixAction(
                    type=FixActionType.COMBINE_SCENES,
                    description=f'Combine scenes {orders} in "{chapter.title}"',
                    target_id=chapter.title
                )
            ))

        for scene in long_scenes:
            issues.append(Issue(
                type=IssueType.LONG_SCENE,
                severity=Severity.INFO,
                message=f'Scene {scene.order} in "{chapter.title}" is very long ({scene.word_count} words)',
                suggestion="Consider splitting this scene",
                auto_fixable=True,
                fix_action=FixAction(
                    type=FixActionType.SPLIT_SCENES,
                    description=f'Split scene {scene.order} in "{chapter.title}"',
                    target_id=f"{chapter.title}-scene-{scene.order}"
                )
            ))

    def _analyze_document(self, structure: DocumentStructure, issues: List[Issue]) -> None:
        word_count = structure.word_count

        if word_count < self.SHORT_DOCUMENT_WORDS:
            issues.append(Issue(
                type=IssueType.SHORT_DOCUMENT,
                severity=Severity.INFO,
                message=f"Document is quite short ({word_count} words)",
                suggestion="Verify this is the complete manuscript",
            ))

        if word_count > self.LONG_DOCUMENT_WORDS:
            issues.append(Issue(
                type=IssueType.LONG_DOCUMENT,
                severity=Severity.INFO,
                message=f"Document is very long ({word_count} words)",
                suggestion="Consider splitting into multiple volumes",
            ))

        total_scenes = structure.total_scenes()
        if total_scenes < self.MIN_SCENE_COUNT:
            issues.append(Issue(
                type=IssueType.FEW_SCENES,
                severity=Severity.WARNING,
                message=f"Only {total_scenes} scenes detected",
                suggestion="Add more scene breaks using *** or ---",
            ))

        # round half up; a document without scenes averages 0
        average = math.floor(word_count / total_scenes + 0.5) if total_scenes else 0

        if average < self.SHORT_AVERAGE_WORDS:
            issues.append(Issue(
                type=IssueType.SHORT_AVERAGE_SCENES,
                severity=Severity.INFO,
                message=f"Average scene length is quite short ({average} words)",
                suggestion="Consider combining scenes",
                auto_fixable=True,
                fix_action=FixAction(
                    type=FixActionType.COMBINE_SCENES,
                    description="Auto-combine short scenes with adjacent short scenes"
                )
            ))

        if average > self.LONG_AVERAGE_WORDS:
            issues.append(Issue(
                type=IssueType.LONG_AVERAGE_SCENES,
                severity=Severity.INFO,
                message=f"Average scene length is quite long ({average} words)",
                suggestion="Consider adding more scene breaks",
            ))

    @staticmethod
    def validate_structure(structure: DocumentStructure) -> ValidationResult:
        """Blocking validation for import decisions

        Conditions the analyzer only warns about (acts without chapters,
        chapters without scenes) are hard errors here.
        """
        errors: List[str] = []

        if not structure.acts:
            errors.append("No acts found in document")

        for act_index, act in enumerate(structure.acts, start=1):
            if not act.title.strip():
                errors.append(f"Act {act_index} has no title")

            if not act.chapters:
                errors.append(f'Act "{act.title}" has no chapters')

            for chapter_index, chapter in enumerate(act.chapters, start=1):
                if not chapter.title.strip():
                    errors.append(f'Chapter {chapter_index} in Act "{act.title}" has no title')

                if not chapter.scenes:
                    errors.append(f'Chapter "{chapter.title}" has no scenes')

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=list(structure.issues or [])
        )

    @classmethod
    def has_critical_errors(cls, structure: DocumentStructure) -> bool:
        return not cls.validate_structure(structure).is_valid

    @staticmethod
    def get_issue_summary(issues: Optional[List[Issue]]) -> Dict[str, int]:
        """Issue counts by severity"""
        issues = issues or []
        return {
            "errors": sum(1 for issue in issues if issue.severity == Severity.ERROR),
            "warnings": sum(1 for issue in issues if issue.severity == Severity.WARNING),
            "info": sum(1 for issue in issues if issue.severity == Severity.INFO),
            "total": len(issues),
        }

    @staticmethod
    def filter_issues_by_severity(issues: Optional[List[Issue]], severity: Severity) -> List[Issue]:
        return [issue for issue in (issues or []) if issue.severity == severity]
