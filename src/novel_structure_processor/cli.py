"""CLI 인터페이스

Typer 기반 명령줄 인터페이스, Rich 기반 출력
"""

import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from novel_structure_processor.config.loader import DEFAULT_CONFIG_PATH, Config, get_config, reset_config
from novel_structure_processor.stages.import_runner import ManuscriptImportRunner
from novel_structure_processor.stages.parser import ParseError
from novel_structure_processor.stages.reporter import print_issue_report, print_structure_tree, print_validation
from novel_structure_processor.stages.structure import AutoFixOptions, FixAction, FixActionType, Severity
from novel_structure_processor.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)
console = Console()
app = typer.Typer(help="Novel Structure Processor - 원고 구조 분석 / 자동 수정 도구")

ConfigOption = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="설정 파일 경로")


def _load_config(config_path: str) -> Config:
    if not Path(config_path).exists():
        if config_path != DEFAULT_CONFIG_PATH:
            console.print(f"[red]❌ Config file not found: {config_path}[/red]")
            raise typer.Exit(code=1)
        logger.debug("Default config file missing, using built-in defaults")
        return Config()

    reset_config()
    config = get_config(config_path)
    setup_logging(config.logging.file_level, config.logging.console_level)
    return config


def _load_structure(runner: ManuscriptImportRunner, file: str):
    try:
        return runner.load_structure(file)
    except (ParseError, FileNotFoundError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)


def _build_fix_action(fix_type: str, target: Optional[str]) -> FixAction:
    try:
        action_type = FixActionType(fix_type)
    except ValueError:
        valid = ", ".join(item.value for item in FixActionType)
        console.print(f"[red]❌ Unknown fix type '{fix_type}' (choose from: {valid})[/red]")
        raise typer.Exit(code=1)

    return FixAction(type=action_type, description=action_type.value, target_id=target)


def _print_summary(title: str, structure) -> None:
    summary = structure.summary()
    table = Table(title=title)
    table.add_column("항목", style="cyan")
    table.add_column("값", style="green")
    table.add_row("Acts", str(summary["acts"]))
    table.add_row("Chapters", str(summary["chapters"]))
    table.add_row("Scenes", str(summary["scenes"]))
    table.add_row("Words", str(summary["word_count"]))
    table.add_row("Issues", str(summary["issues"]))
    console.print(table)


@app.command()
def parse(
    file: str = typer.Argument(..., help="변환기가 만든 HTML 파일"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="구조 JSON 저장 경로"),
    scenes: bool = typer.Option(False, "--scenes", "-s", help="장면까지 트리에 표시"),
    config_path: str = ConfigOption
):
    """HTML → Act/Chapter/Scene 구조 파싱"""
    console.print(Panel.fit("🔍 구조 파싱", style="bold blue"))
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    structure = _load_structure(runner, file)
    print_structure_tree(structure, console, show_scenes=scenes or config.ui.show_scene_details)
    _print_summary("파싱 결과", structure)

    if output:
        runner.save_structure(structure, Path(output))
        console.print(f"\n✅ 구조 저장: [green]{output}[/green]")


@app.command()
def analyze(
    file: str = typer.Argument(..., help="HTML 파일 또는 구조 JSON"),
    severity: Optional[str] = typer.Option(None, "--severity", help="error / warning / info 만 표시"),
    config_path: str = ConfigOption
):
    """구조 이슈 분석"""
    console.print(Panel.fit("🔎 구조 이슈 분석", style="bold blue"))
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    structure = _load_structure(runner, file)
    issues = runner.analyzer.analyze_issues(structure)

    if severity:
        try:
            issues = runner.analyzer.filter_issues_by_severity(issues, Severity(severity))
        except ValueError:
            console.print(f"[red]❌ Unknown severity '{severity}'[/red]")
            raise typer.Exit(code=1)

    print_issue_report(issues, console, max_display=config.ui.max_issue_display)


@app.command()
def validate(
    file: str = typer.Argument(..., help="HTML 파일 또는 구조 JSON"),
    config_path: str = ConfigOption
):
    """가져오기 차단 검증 (오류가 있으면 exit code 1)"""
    console.print(Panel.fit("🛡️  구조 검증", style="bold blue"))
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    structure = _load_structure(runner, file)
    validation = runner.analyzer.validate_structure(structure)
    print_validation(validation, console)

    if not validation.is_valid:
        raise typer.Exit(code=1)


@app.command()
def fix(
    file: str = typer.Argument(..., help="HTML 파일 또는 구조 JSON"),
    fix_type: str = typer.Option(..., "--type", "-t", help="renumber_chapters / renumber_scenes / combine_scenes / rename_duplicate"),
    target: Optional[str] = typer.Option(None, "--target", help="대상 (combine_scenes: 챕터 제목)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="수정된 구조 JSON 저장 경로"),
    config_path: str = ConfigOption
):
    """단일 자동 수정 적용"""
    console.print(Panel.fit("🔧 자동 수정", style="bold blue"))
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    structure = _load_structure(runner, file)
    fix_action = _build_fix_action(fix_type, target)
    result = runner.engine.apply_fix_action(structure, fix_action)

    if not result.success or result.fixed_structure is None:
        console.print(f"[yellow]⚠️  {result.message}[/yellow]")
        if result.error:
            console.print(f"[red]❌ {result.error}[/red]")
        raise typer.Exit(code=1)

    fixed = result.fixed_structure
    issues = runner.analyzer.analyze_issues(fixed)
    fixed.issues = issues or None

    console.print(f"✅ {result.message}")
    _print_summary("수정 결과", fixed)

    if output:
        runner.save_structure(fixed, Path(output))
        console.print(f"\n✅ 구조 저장: [green]{output}[/green]")


@app.command("fix-all")
def fix_all(
    file: str = typer.Argument(..., help="HTML 파일 또는 구조 JSON"),
    renumber_chapters: bool = typer.Option(True, "--renumber-chapters/--no-renumber-chapters"),
    renumber_scenes: bool = typer.Option(True, "--renumber-scenes/--no-renumber-scenes"),
    rename_duplicates: bool = typer.Option(True, "--rename-duplicates/--no-rename-duplicates"),
    combine_scenes: bool = typer.Option(True, "--combine-scenes/--no-combine-scenes"),
    min_length: Optional[int] = typer.Option(None, "--min-length", help="짧은 장면 기준 단어 수"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="수정된 구조 JSON 저장 경로"),
    config_path: str = ConfigOption
):
    """기본 자동 수정 일괄 적용 (챕터 번호 → 장면 번호 → 중복 제목 → 짧은 장면 병합)"""
    console.print(Panel.fit("🛠️  일괄 자동 수정", style="bold blue"))
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    structure = _load_structure(runner, file)
    options = AutoFixOptions(
        combine_short_scenes=combine_scenes,
        split_long_scenes=False,
        renumber_chapters=renumber_chapters,
        renumber_scenes=renumber_scenes,
        rename_duplicates=rename_duplicates,
        minimum_scene_length=(min_length if min_length is not None
                              else runner.fix_options.minimum_scene_length),
        maximum_scene_length=runner.fix_options.maximum_scene_length,
    )
    result = runner.engine.apply_all_auto_fixes(structure, options)

    console.print(f"{'✅' if result.success else '⚠️ '} {result.message}")
    if result.error:
        console.print(f"[red]❌ {result.error}[/red]")

    if result.fixed_structure is None:
        raise typer.Exit(code=1)

    fixed = result.fixed_structure
    issues = runner.analyzer.analyze_issues(fixed)
    fixed.issues = issues or None
    _print_summary("수정 결과", fixed)
    print_issue_report(issues, console, max_display=config.ui.max_issue_display)

    if output:
        runner.save_structure(fixed, Path(output))
        console.print(f"\n✅ 구조 저장: [green]{output}[/green]")


@app.command()
def preview(
    file: str = typer.Argument(..., help="HTML 파일 또는 구조 JSON"),
    fix_type: str = typer.Option(..., "--type", "-t", help="미리볼 자동 수정 종류"),
    target: Optional[str] = typer.Option(None, "--target", help="대상 (combine_scenes: 챕터 제목)"),
    config_path: str = ConfigOption
):
    """자동 수정 미리보기 (구조는 변경하지 않음)"""
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    structure = _load_structure(runner, file)
    fix_action = _build_fix_action(fix_type, target)
    console.print(f"👀 {runner.engine.preview_fix_action(structure, fix_action)}")


@app.command("import")
def import_manuscript(
    file: str = typer.Argument(..., help="변환기가 만든 HTML 파일"),
    auto_fix: bool = typer.Option(False, "--auto-fix", help="일괄 자동 수정 후 저장"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="결과 JSON 경로"),
    config_path: str = ConfigOption
):
    """전체 파이프라인 실행 (파싱 → 분석 → (수정) → 검증 → 저장)"""
    console.print(Panel.fit("🚀 원고 가져오기", style="bold magenta"))
    config = _load_config(config_path)
    runner = ManuscriptImportRunner(config)

    try:
        results = runner.run(file, auto_fix=auto_fix, output_path=output)
    except (ParseError, FileNotFoundError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)

    structure = results["structure"]
    _print_summary("가져오기 결과", structure)
    if results["fix_result"] is not None:
        console.print(f"🔧 {results['fix_result'].message}")
    print_issue_report(structure.issues, console, max_display=config.ui.max_issue_display)
    print_validation(results["validation"], console)

    console.print(f"\n✅ 결과 파일: [green]{results['output_path']}[/green]")


if __name__ == "__main__":
    app()
