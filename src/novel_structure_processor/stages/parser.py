"""Structural Parser for Manuscript Fragments

Single left-to-right pass over block-level fragments that rebuilds the
Act > Chapter > Scene hierarchy using the boundary detector chain.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from novel_structure_processor.stages.analyzer import StructureAnalyzer
from novel_structure_processor.stages.detectors import BoundaryClassifier, BoundaryKind
from novel_structure_processor.stages.structure import Act, Chapter, DocumentStructure, Scene
from novel_structure_processor.utils.markup import (
    count_words,
    extract_text_content,
    split_html_into_fragments,
    validate_html_content,
)
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)


class ParseError(Exception):
    """Fatal parsing failure (empty/unreadable input or an internal error)"""


@dataclass
class ParseContext:
    """Mutable parser state for one pass"""
    acts: List[Act] = field(default_factory=list)
    current_act: Optional[Act] = None
    current_chapter: Optional[Chapter] = None
    scene_buffer: List[str] = field(default_factory=list)
    act_order: int = 1
    chapter_order: int = 1
    scene_order: int = 1
    raw_chapter_titles: List[str] = field(default_factory=list)


class StructureParser:
    """Rebuilds the manuscript hierarchy from converter output

    Example:
        >>> parser = StructureParser()
        >>> structure = parser.parse_html(html)
        >>> structure.summary()
    """

    def __init__(
        self,
        scene_break_markers: Optional[Iterable[str]] = None,
        analyzer: Optional[StructureAnalyzer] = None
    ):
        """
        Args:
            scene_break_markers: Override for the verbatim scene break markers
            analyzer: StructureAnalyzer used by parse_html (default instance if None)
        """
        self.classifier = BoundaryClassifier(scene_break_markers)
        self.analyzer = analyzer or StructureAnalyzer()

    def parse_html(self, html: str, analyze: bool = True) -> DocumentStructure:
        """Parse converter HTML and attach analyzer issues

        Args:
            html: Full HTML produced by the external converter
            analyze: Run the issue analyzer on the result

        Returns:
            DocumentStructure (issues is None when nothing was found)

        Raises:
            ParseError: Empty/unreadable document or unexpected failure
        """
        logger.info("🔍 Starting structure parsing...")

        try:
            validate_html_content(html)
        except ValueError as e:
            logger.error(f"❌ Parsing aborted: {e}")
            raise ParseError(str(e)) from e

        structure = self.parse_fragments(split_html_into_fragments(html))

        if analyze:
            issues = self.analyzer.analyze_issues(structure)
            structure.issues = issues if issues else None

        summary = structure.summary()
        logger.info(
            f"✅ Parsing completed: {summary['acts']} acts, {summary['chapters']} chapters, "
            f"{summary['scenes']} scenes, {summary['word_count']} words, {summary['issues']} issues"
        )
        return structure

    def parse_fragments(self, fragments: Iterable[str]) -> DocumentStructure:
        """Run the state machine over an ordered fragment sequence

        Args:
            fragments: Block-level markup fragments (heading, paragraph or rule)

        Returns:
            DocumentStructure with raw chapter titles recorded and no issues

        Raises:
            ParseError: No fragments, or an unexpected error during the pass
        """
        fragments = list(fragments)
        if not fragments:
            logger.error("❌ Parsing aborted: no fragments to parse")
            raise ParseError("Document appears to be empty or unreadable")

        logger.debug(f"🔍 Parsing {len(fragments)} fragments")
        context = ParseContext()

        try:
            for fragment in fragments:
                text = extract_text_content(fragment)
                detection = self.classifier.classify(fragment, text)

                if detection is None:
                    # untagged blank fragments carry no scene content
                    if text:
                        self._handle_content(context, fragment)
                elif detection.kind == BoundaryKind.ACT:
                    logger.debug(f"✅ Detected ACT: {text}")
                    self._handle_act(context, detection.title)
                elif detection.kind == BoundaryKind.CHAPTER:
                    logger.debug(f"✅ Detected CHAPTER: {text}")
                    self._handle_chapter(context, text, detection.title)
                else:
                    self._handle_scene_break(context)

            self._flush_scene(context)
        except Exception as e:
            logger.error(f"❌ Structure parsing failed: {e}")
            raise ParseError(f"Structure parsing failed: {e}") from e

        structure = DocumentStructure(
            acts=context.acts,
            raw_chapter_titles=context.raw_chapter_titles,
        )
        structure.recalculate_word_count()

        logger.debug(f"📊 Final structure: {[(act.title, len(act.chapters)) for act in context.acts]}")
        return structure

    def _handle_act(self, context: ParseContext, title: str) -> None:
        self._flush_scene(context)

        context.current_act = Act(title=title, order=context.act_order, chapters=[])
        context.act_order += 1
        context.acts.append(context.current_act)

        context.chapter_order = 1
        context.scene_order = 1
        context.current_chapter = None

    def _handle_chapter(self, context: ParseContext, raw_title: str, title: str) -> None:
        context.raw_chapter_titles.append(raw_title)
        self._flush_scene(context)
        self._ensure_act(context)

        context.current_chapter = Chapter(title=title, order=context.chapter_order, scenes=[])
        context.chapter_order += 1
        context.current_act.chapters.append(context.current_chapter)
        context.scene_order = 1

    def _handle_scene_break(self, context: ParseContext) -> None:
        # consecutive breaks collapse: nothing buffered means nothing to flush
        if context.scene_buffer and context.current_chapter is not None:
            self._flush_scene(context)

    def _handle_content(self, context: ParseContext, fragment: str) -> None:
        self._ensure_act(context)

        if context.current_chapter is None:
            context.current_chapter = Chapter(
                title=f"Chapter {context.chapter_order}",
                order=context.chapter_order,
                scenes=[]
            )
            context.chapter_order += 1
            context.current_act.chapters.append(context.current_chapter)

        context.scene_buffer.append(fragment)

    def _ensure_act(self, context: ParseContext) -> None:
        if context.current_act is None:
            context.current_act = Act(title=f"Act {context.act_order}", order=context.act_order, chapters=[])
            context.act_order += 1
            context.acts.append(context.current_act)

    def _flush_scene(self, context: ParseContext) -> None:
        """Save the buffered fragments as a Scene of the current chapter"""
        if context.current_chapter is None or not context.scene_buffer:
            return

        content = "".join(context.scene_buffer)
        context.current_chapter.scenes.append(Scene(
            content=content,
            order=context.scene_order,
            word_count=count_words(content)
        ))
        context.scene_order += 1
        context.scene_buffer = []
