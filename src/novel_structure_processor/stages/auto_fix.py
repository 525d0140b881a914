"""Auto-Fix Engine for Manuscript Structures

Deterministic structure -> structure repairs, one per fix action type,
plus a bulk orchestrator and a side-effect-free preview.

Every fix works on a clone of its input and reports failures through
AutoFixResult instead of raising.
"""

import re
from typing import Dict, List, Optional, Set
from novel_structure_processor.stages.structure import (
    AutoFixOptions,
    AutoFixResult,
    DocumentStructure,
    FixAction,
    FixActionType,
    Issue,
    Scene,
)
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)


class AutoFixEngine:
    """Applies repair transforms to a DocumentStructure"""

    # Visible marker placed between merged scenes
    SCENE_SEPARATOR = '\n\n<div class="scene-break">* * *</div>\n\n'

    # "Chapter <n|roman>..." titles get their numeral rewritten on renumbering
    CHAPTER_TITLE_PATTERN = re.compile(r'^(chapter\s+)(\d+|[ivx]+)(.*)$', re.IGNORECASE | re.DOTALL)

    UNSUPPORTED_ERROR = "Unsupported fix type"

    def __init__(self, options: Optional[AutoFixOptions] = None):
        """
        Args:
            options: Defaults for apply_all_auto_fixes and combine_scenes
        """
        self.options = options or AutoFixOptions()

    def apply_auto_fix(self, structure: DocumentStructure, issue: Issue) -> AutoFixResult:
        """Apply the fix attached to a single issue

        Args:
            structure: Input document (never mutated)
            issue: Issue carrying the fix action to apply

        Returns:
            AutoFixResult; unsupported or missing actions return success=False
        """
        fix_type = issue.fix_action.type.value if issue.fix_action else None
        logger.info(f"🔧 Applying auto-fix: {issue.type.value} -> {fix_type}")
        return self.apply_fix_action(structure, issue.fix_action)

    def apply_fix_action(self, structure: DocumentStructure, fix_action: Optional[FixAction]) -> AutoFixResult:
        """Apply a fix action directly (no analyzer issue needed)"""
        fix_type = fix_action.type if fix_action else None

        try:
            if fix_type == FixActionType.RENUMBER_CHAPTERS:
                return self.renumber_chapters(structure)
            if fix_type == FixActionType.RENUMBER_SCENES:
                return self.renumber_scenes(structure)
            if fix_type == FixActionType.COMBINE_SCENES:
                return self.combine_short_scenes(
                    structure,
                    self.options.minimum_scene_length,
                    target_chapter=fix_action.target_id
                )
            if fix_type == FixActionType.RENAME_DUPLICATE:
                return self.rename_duplicates(structure)

            label = fix_type.value if fix_type else "none"
            logger.warning(f"⚠️  Auto-fix type '{label}' is not implemented")
            return AutoFixResult(
                success=False,
                message=f'Auto-fix type "{label}" is not implemented yet',
                error=self.UNSUPPORTED_ERROR
            )
        except Exception as e:
            logger.error(f"❌ Auto-fix failed: {e}")
            return AutoFixResult(
                success=False,
                message="Auto-fix failed due to an unexpected error",
                error=str(e)
            )

    def apply_all_auto_fixes(
        self,
        structure: DocumentStructure,
        options: Optional[AutoFixOptions] = None
    ) -> AutoFixResult:
        """Run the default fix chain in fixed order

        renumber chapters -> renumber scenes -> rename duplicates -> combine scenes.
        Each step gets the previous step's output; a failing step is recorded
        and the chain continues. Issues on the output are discarded, callers
        re-run the analyzer.
        """
        options = options or self.options
        applied: List[str] = []
        errors: List[str] = []

        try:
            current = structure.clone()

            steps = [
                (options.renumber_chapters, "Renumbered chapters sequentially",
                 lambda s: self.renumber_chapters(s)),
                (options.renumber_scenes, "Renumbered scenes sequentially",
                 lambda s: self.renumber_scenes(s)),
                (options.rename_duplicates, "Renamed duplicate titles",
                 lambda s: self.rename_duplicates(s)),
                (options.combine_short_scenes, "Combined short scenes",
                 lambda s: self.combine_short_scenes(s, options.minimum_scene_length)),
            ]

            for enabled, label, fix in steps:
                if not enabled:
                    continue
                result = fix(current)
                if result.success and result.fixed_structure is not None:
                    current = result.fixed_structure
                    applied.append(label)
                elif result.error:
                    errors.append(result.error)

            if options.split_long_scenes:
                errors.append(f"{self.UNSUPPORTED_ERROR}: {FixActionType.SPLIT_SCENES.value}")

            current.recalculate_word_count()
            current.issues = None

            logger.info(f"✅ Bulk auto-fix: {len(applied)} applied, {len(errors)} errors")
            return AutoFixResult(
                success=bool(applied),
                message=(f"Applied {len(applied)} fixes: {', '.join(applied)}"
                         if applied else "No fixes were applied"),
                fixed_structure=current,
                error="; ".join(errors) if errors else None
            )
        except Exception as e:
            logger.error(f"❌ Bulk auto-fix failed: {e}")
            return AutoFixResult(success=False, message="Bulk auto-fix failed", error=str(e))

    def renumber_chapters(self, structure: DocumentStructure) -> AutoFixResult:
        """Set chapter order to its 1-based position within each act

        "Chapter <n>" titles get the new number; other titles keep their text.
        """
        try:
            fixed = structure.clone()
            renamed = 0
            reordered = 0

            for act in fixed.acts:
                for index, chapter in enumerate(act.chapters, start=1):
                    if chapter.order != index:
                        logger.debug(f"   🔄 Chapter order {chapter.order} -> {index} ({chapter.title})")
                        chapter.order = index
                        reordered += 1

                    match = self.CHAPTER_TITLE_PATTERN.match(chapter.title)
                    if match:
                        new_title = f"{match.group(1)}{index}{match.group(3)}"
                        if new_title != chapter.title:
                            logger.debug(f"   📝 Title '{chapter.title}' -> '{new_title}'")
                            chapter.title = new_title
                            renamed += 1

            fixed.raw_chapter_titles = None
            fixed.recalculate_word_count()

            changes = max(renamed, reordered)
            logger.info(f"🔢 Chapter renumbering: {renamed} titles updated, {reordered} orders fixed")
            return AutoFixResult(
                success=True,
                message=(f"Successfully renumbered {changes} chapters "
                         f"({renamed} titles updated, {reordered} orders fixed)"
                         if changes else "No chapters needed renumbering - all were already sequential"),
                fixed_structure=fixed
            )
        except Exception as e:
            logger.error(f"❌ Chapter renumbering failed: {e}")
            return AutoFixResult(success=False, message="Failed to renumber chapters", error=str(e))

    def renumber_scenes(self, structure: DocumentStructure) -> AutoFixResult:
        """Set scene order to its 1-based position within each chapter"""
        try:
            fixed = structure.clone()

            for chapter in fixed.iter_chapters():
                for index, scene in enumerate(chapter.scenes, start=1):
                    scene.order = index

            fixed.recalculate_word_count()
            return AutoFixResult(
                success=True,
                message="Successfully renumbered all scenes sequentially",
                fixed_structure=fixed
            )
        except Exception as e:
            logger.error(f"❌ Scene renumbering failed: {e}")
            return AutoFixResult(success=False, message="Failed to renumber scenes", error=str(e))

    def combine_short_scenes(
        self,
        structure: DocumentStructure,
        minimum_length: Optional[int] = None,
        target_chapter: Optional[str] = None
    ) -> AutoFixResult:
        """Merge runs of adjacent short scenes

        Args:
            structure: Input document
            minimum_length: Scenes below this word count are short (default from options)
            target_chapter: Only combine inside chapters with this title

        Returns:
            AutoFixResult; success is False when nothing was combined
        """
        if minimum_length is None:
            minimum_length = self.options.minimum_scene_length

        try:
            fixed = structure.clone()
            combined = 0

            for chapter in fixed.iter_chapters():
                if target_chapter is not None and chapter.title != target_chapter:
                    continue

                new_scenes: List[Scene] = []
                run: Optional[Scene] = None

                for scene in chapter.scenes:
                    if scene.word_count < minimum_length:
                        if run is None:
                            run = Scene(content=scene.content, order=scene.order, word_count=scene.word_count)
                        else:
                            run.content += self.SCENE_SEPARATOR + scene.content
                            run.word_count += scene.word_count
                            combined += 1
                    else:
                        if run is not None:
                            new_scenes.append(run)
                            run = None
                        new_scenes.append(scene)

                if run is not None:
                    new_scenes.append(run)

                for index, scene in enumerate(new_scenes, start=1):
                    scene.order = index
                chapter.scenes = new_scenes

            fixed.recalculate_word_count()

            if combined:
                logger.info(f"🧩 Combined {combined} short scenes (< {minimum_length} words)")
            return AutoFixResult(
                success=combined > 0,
                message=(f"Successfully combined {combined} short scenes"
                         if combined else "No short scenes found to combine"),
                fixed_structure=fixed
            )
        except Exception as e:
            logger.error(f"❌ Combining scenes failed: {e}")
            return AutoFixResult(success=False, message="Failed to combine short scenes", error=str(e))

    def rename_duplicates(self, structure: DocumentStructure) -> AutoFixResult:
        """Suffix duplicate act and chapter titles with " (2)", " (3)", ...

        Act titles are unique document-wide; chapter titles are checked
        against both the act-local and the document-wide seen sets.
        """
        try:
            fixed = structure.clone()
            renamed = 0

            seen_acts: Set[str] = set()
            seen_chapters: Set[str] = set()

            for act in fixed.acts:
                new_title = self._unique_title(act.title, [seen_acts])
                if new_title != act.title:
                    logger.debug(f"   📝 Act '{act.title}' -> '{new_title}'")
                    act.title = new_title
                    renamed += 1
                seen_acts.add(new_title.lower())

                act_chapters: Set[str] = set()
                for chapter in act.chapters:
                    new_title = self._unique_title(chapter.title, [act_chapters, seen_chapters])
                    if new_title != chapter.title:
                        logger.debug(f"   📝 Chapter '{chapter.title}' -> '{new_title}'")
                        chapter.title = new_title
                        renamed += 1
                    act_chapters.add(new_title.lower())
                    seen_chapters.add(new_title.lower())

            if renamed:
                fixed.raw_chapter_titles = None
            fixed.recalculate_word_count()

            return AutoFixResult(
                success=renamed > 0,
                message=(f"Successfully renamed {renamed} duplicate titles"
                         if renamed else "No duplicate titles found"),
                fixed_structure=fixed
            )
        except Exception as e:
            logger.error(f"❌ Renaming duplicates failed: {e}")
            return AutoFixResult(success=False, message="Failed to rename duplicates", error=str(e))

    @staticmethod
    def _unique_title(title: str, seen_sets: List[Set[str]]) -> str:
        def taken(candidate: str) -> bool:
            return any(candidate.lower() in seen for seen in seen_sets)

        if not taken(title):
            return title

        counter = 2
        candidate = f"{title} ({counter})"
        while taken(candidate):
            counter += 1
            candidate = f"{title} ({counter})"
        return candidate

    def get_auto_fix_preview(self, structure: DocumentStructure, issue: Issue) -> str:
        """Describe what the issue's fix would do, without applying it"""
        return self.preview_fix_action(structure, issue.fix_action)

    def preview_fix_action(self, structure: DocumentStructure, fix_action: Optional[FixAction]) -> str:
        if fix_action is None:
            return "No automatic fix available for this issue"

        if fix_action.type == FixActionType.RENUMBER_CHAPTERS:
            return f"Will renumber {structure.total_chapters()} chapters sequentially within their acts"

        if fix_action.type == FixActionType.RENUMBER_SCENES:
            return f"Will renumber {structure.total_scenes()} scenes sequentially within their chapters"

        if fix_action.type == FixActionType.COMBINE_SCENES:
            minimum_length = self.options.minimum_scene_length
            short_scenes = [
                scene
                for chapter in structure.iter_chapters()
                if fix_action.target_id is None or chapter.title == fix_action.target_id
                for scene in chapter.scenes
                if scene.word_count < minimum_length
            ]
            return f"Will combine {len(short_scenes)} scenes that are under {minimum_length} words"

        if fix_action.type == FixActionType.RENAME_DUPLICATE:
            counts = self._count_duplicate_titles(structure)
            return (f"Will rename {counts['acts'] + counts['chapters']} duplicate titles by adding suffixes "
                    f"({counts['acts']} acts, {counts['chapters']} chapters)")

        if fix_action.type == FixActionType.SPLIT_SCENES:
            return "Splitting long scenes is not supported yet"

        return "Unknown fix type"

    @staticmethod
    def _count_duplicate_titles(structure: DocumentStructure) -> Dict[str, int]:
        """Number of act/chapter titles that repeat an earlier one (case-insensitive)"""
        act_titles = [act.title.lower() for act in structure.acts]
        chapter_titles = [chapter.title.lower() for chapter in structure.iter_chapters()]
        return {
            "acts": len(act_titles) - len(set(act_titles)),
            "chapters": len(chapter_titles) - len(set(chapter_titles)),
        }
