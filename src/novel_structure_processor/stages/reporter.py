"""구조 / 이슈 리포트 출력 (Rich)"""

from typing import List, Optional
from rich.console import Console
from rich.table import Table
from rich.tree import Tree
from novel_structure_processor.stages.analyzer import StructureAnalyzer
from novel_structure_processor.stages.structure import DocumentStructure, Issue, Severity, ValidationResult
from novel_structure_processor.utils.markup import estimate_reading_time, format_word_count

SEVERITY_STYLES = {
    Severity.ERROR: ("❌", "red"),
    Severity.WARNING: ("⚠️ ", "yellow"),
    Severity.INFO: ("ℹ️ ", "cyan"),
}


def print_structure_tree(
    structure: DocumentStructure,
    console: Optional[Console] = None,
    show_scenes: bool = False
) -> None:
    """Act > Chapter (> Scene) 트리 출력"""
    console = console or Console()

    root = Tree(
        f"[bold cyan]📖 Manuscript[/bold cyan] "
        f"({format_word_count(structure.word_count)}, ~{estimate_reading_time(structure.word_count)} min read)"
    )
    for act in structure.acts:
        act_node = root.add(f"[bold magenta]{act.order}. {act.title}[/bold magenta] ({format_word_count(act.word_count)})")
        for chapter in act.chapters:
            chapter_node = act_node.add(
                f"[green]{chapter.order}. {chapter.title}[/green] "
                f"({len(chapter.scenes)} scenes, {format_word_count(chapter.word_count)})"
            )
            if show_scenes:
                for scene in chapter.scenes:
                    chapter_node.add(f"Scene {scene.order} ({format_word_count(scene.word_count)})")

    console.print(root)


def print_issue_report(
    issues: Optional[List[Issue]],
    console: Optional[Console] = None,
    max_display: int = 50
) -> None:
    """이슈 목록 테이블 출력"""
    console = console or Console()
    issues = issues or []

    if not issues:
        console.print("[bold green]🎉 No structural issues found[/bold green]")
        return

    table = Table(title="구조 이슈", show_header=True, header_style="bold magenta")
    table.add_column("", justify="center", width=3)
    table.add_column("Type", style="cyan")
    table.add_column("Message")
    table.add_column("Fix", style="green")

    for issue in issues[:max_display]:
        icon, color = SEVERITY_STYLES[issue.severity]
        fix = issue.fix_action.type.value if issue.fix_action and issue.auto_fixable else "-"
        table.add_row(icon, issue.type.value, f"[{color}]{issue.message}[/{color}]", fix)

    console.print(table)

    if len(issues) > max_display:
        console.print(f"[dim]... {len(issues) - max_display} more issues not shown[/dim]")

    summary = StructureAnalyzer.get_issue_summary(issues)
    console.print(
        f"[red]errors: {summary['errors']}[/red] / [yellow]warnings: {summary['warnings']}[/yellow] / "
        f"[cyan]info: {summary['info']}[/cyan] (total {summary['total']})"
    )


def print_validation(validation: ValidationResult, console: Optional[Console] = None) -> None:
    """차단 검증 결과 출력"""
    console = console or Console()

    if validation.is_valid:
        console.print("[bold green]✅ Structure is valid for import[/bold green]")
        return

    console.print(f"[bold red]❌ Structure has {len(validation.errors)} blocking errors:[/bold red]")
    for error in validation.errors:
        console.print(f"  • {error}")
