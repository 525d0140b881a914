"""CLI 테스트 스크립트"""

import json
from typer.testing import CliRunner
from novel_structure_processor.cli import app
from novel_structure_processor.config.loader import Config, save_config, reset_config

runner = CliRunner()

MANUSCRIPT = (
    "<h2>Chapter 1</h2><p>First scene of the story.</p><p>***</p><p>Second.</p>"
    "<h2>Chapter 1</h2><p>Another chapter with the same title.</p>"
    "<h2>Chapter 3</h2><p>The end.</p>"
)


def setup_workspace(tmp_path):
    """임시 설정 파일 + 원고 파일"""
    config = Config()
    config.paths.output_folder = str(tmp_path / "output")
    config_path = tmp_path / "config.yml"
    save_config(config, str(config_path))

    manuscript = tmp_path / "novel.html"
    manuscript.write_text(MANUSCRIPT, encoding="utf-8")
    return str(config_path), str(manuscript)


def test_help():
    """도움말 테스트"""
    result = runner.invoke(app, ["--help"])
    print(result.stdout)
    assert result.exit_code == 0
    for command in ["parse", "analyze", "validate", "fix", "fix-all", "preview", "import"]:
        assert command in result.stdout


def test_parse(tmp_path):
    """파싱 + JSON 저장 테스트"""
    config_path, manuscript = setup_workspace(tmp_path)
    output = tmp_path / "parsed.json"

    result = runner.invoke(app, ["parse", manuscript, "--output", str(output), "--config", config_path])
    print(result.stdout)
    assert result.exit_code == 0

    data = json.loads(output.read_text(encoding="utf-8"))
    chapters = data["structure"]["acts"][0]["chapters"]
    assert [chapter["title"] for chapter in chapters] == ["Chapter 1", "Chapter 1", "Chapter 3"]


def test_analyze_and_validate(tmp_path):
    """분석 / 검증 테스트"""
    config_path, manuscript = setup_workspace(tmp_path)

    result = runner.invoke(app, ["analyze", manuscript, "--config", config_path])
    assert result.exit_code == 0
    assert "warnings:" in result.stdout

    result = runner.invoke(app, ["analyze", manuscript, "--severity", "bogus", "--config", config_path])
    assert result.exit_code == 1

    result = runner.invoke(app, ["validate", manuscript, "--config", config_path])
    assert result.exit_code == 0

    # 장면 없는 챕터는 차단
    broken = tmp_path / "broken.html"
    broken.write_text("<h2>Chapter 1</h2><p>Text.</p><h2>Chapter 2</h2>", encoding="utf-8")
    result = runner.invoke(app, ["validate", str(broken), "--config", config_path])
    assert result.exit_code == 1


def test_fix_and_preview(tmp_path):
    """단일 수정 / 미리보기 테스트"""
    config_path, manuscript = setup_workspace(tmp_path)
    output = tmp_path / "fixed.json"

    result = runner.invoke(app, ["preview", manuscript, "--type", "renumber_chapters", "--config", config_path])
    assert result.exit_code == 0
    assert "Will renumber 3 chapters" in result.stdout

    result = runner.invoke(app, [
        "fix", manuscript, "--type", "renumber_chapters", "--output", str(output), "--config", config_path
    ])
    print(result.stdout)
    assert result.exit_code == 0

    data = json.loads(output.read_text(encoding="utf-8"))
    chapters = data["structure"]["acts"][0]["chapters"]
    assert [chapter["title"] for chapter in chapters] == ["Chapter 1", "Chapter 2", "Chapter 3"]

    # 수정된 JSON을 다시 입력으로 사용
    result = runner.invoke(app, ["fix", str(output), "--type", "rename_duplicate", "--config", config_path])
    assert result.exit_code == 1

    # 분석기 이슈가 없는 장면 번호 수정도 직접 요청 가능
    result = runner.invoke(app, ["fix", manuscript, "--type", "renumber_scenes", "--config", config_path])
    assert result.exit_code == 0

    # 미구현 / 알 수 없는 수정
    result = runner.invoke(app, ["fix", manuscript, "--type", "split_scenes", "--config", config_path])
    assert result.exit_code == 1
    result = runner.invoke(app, ["fix", manuscript, "--type", "nonsense", "--config", config_path])
    assert result.exit_code == 1


def test_fix_all_and_import(tmp_path):
    """일괄 수정 / 가져오기 테스트"""
    config_path, manuscript = setup_workspace(tmp_path)

    result = runner.invoke(app, ["fix-all", manuscript, "--no-combine-scenes", "--config", config_path])
    print(result.stdout)
    assert result.exit_code == 0
    assert "Applied" in result.stdout

    # --min-length 0 은 설정값(50)으로 바뀌지 않음 → 병합 없음
    output = tmp_path / "all.json"
    result = runner.invoke(app, ["fix-all", manuscript, "--min-length", "0", "--output", str(output), "--config", config_path])
    assert result.exit_code == 0
    first_chapter = json.loads(output.read_text(encoding="utf-8"))["structure"]["acts"][0]["chapters"][0]
    assert len(first_chapter["scenes"]) == 2

    result = runner.invoke(app, ["import", manuscript, "--auto-fix", "--config", config_path])
    print(result.stdout)
    assert result.exit_code == 0
    assert (tmp_path / "output" / "novel.structure.json").exists()


def test_missing_inputs(tmp_path):
    """누락 파일 테스트"""
    config_path, _ = setup_workspace(tmp_path)

    result = runner.invoke(app, ["parse", str(tmp_path / "missing.html"), "--config", config_path])
    assert result.exit_code == 1

    result = runner.invoke(app, ["parse", str(tmp_path / "missing.html"), "--config", str(tmp_path / "nope.yml")])
    assert result.exit_code == 1

    reset_config()


if __name__ == "__main__":
    import tempfile
    from pathlib import Path

    print("Testing CLI...")
    test_help()
    for test in (test_parse, test_analyze_and_validate, test_fix_and_preview, test_fix_all_and_import, test_missing_inputs):
        with tempfile.TemporaryDirectory() as tmp:
            test(Path(tmp))
    print("\n✅ CLI tests passed!")
