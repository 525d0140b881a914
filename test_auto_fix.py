"""자동 수정 엔진 테스트

챕터/장면 번호 재정렬, 짧은 장면 병합, 중복 제목 변경, 일괄 수정 검증
"""

from novel_structure_processor.stages.analyzer import StructureAnalyzer
from novel_structure_processor.stages.auto_fix import AutoFixEngine
from novel_structure_processor.stages.structure import (
    Act,
    AutoFixOptions,
    Chapter,
    DocumentStructure,
    FixAction,
    FixActionType,
    Issue,
    IssueType,
    Scene,
    Severity,
)


def make_scene(order, words):
    return Scene(content="<p>" + " ".join(["word"] * words) + "</p>", order=order, word_count=words)


def make_chapter(title, order, scene_words):
    return Chapter(title=title, order=order, scenes=[make_scene(i, w) for i, w in enumerate(scene_words, start=1)])


def make_structure(acts, raw_chapter_titles=None):
    structure = DocumentStructure(acts=acts, raw_chapter_titles=raw_chapter_titles)
    structure.recalculate_word_count()
    return structure


def make_issue(fix_type, target_id=None):
    return Issue(
        type=IssueType.CHAPTER_NUMBERING_GAPS,
        severity=Severity.WARNING,
        message="test",
        auto_fixable=True,
        fix_action=FixAction(type=fix_type, description="test", target_id=target_id)
    )


def test_renumber_chapters():
    """챕터 번호 재정렬 테스트 (원본 순서 유지)"""
    titles = ["Chapter 1", "Chapter 1", "Chapter 3"]
    structure = make_structure(
        [Act("Act 1", 1, [make_chapter(t, i, [300]) for i, t in enumerate(titles, start=1)])],
        raw_chapter_titles=titles
    )
    analyzer = StructureAnalyzer()
    issue = [i for i in analyzer.analyze_issues(structure) if i.type == IssueType.DUPLICATE_CHAPTER_NUMBERS][0]

    result = AutoFixEngine().apply_auto_fix(structure, issue)
    assert result.success
    fixed = result.fixed_structure
    assert [chapter.title for chapter in fixed.acts[0].chapters] == ["Chapter 1", "Chapter 2", "Chapter 3"]
    assert [chapter.order for chapter in fixed.acts[0].chapters] == [1, 2, 3]
    assert fixed.raw_chapter_titles is None

    # 수정 후 번호 이슈 없음
    types = [i.type for i in analyzer.analyze_issues(fixed)]
    assert IssueType.DUPLICATE_CHAPTER_NUMBERS not in types
    assert IssueType.CHAPTER_NUMBERING_GAPS not in types

    # 원본은 그대로
    assert [chapter.title for chapter in structure.acts[0].chapters] == titles
    assert structure.raw_chapter_titles == titles

    print("✅ Renumber chapters tests passed!")


def test_renumber_chapters_per_act():
    """Act별 챕터 번호 / 부제 유지 테스트"""
    structure = make_structure([
        Act("Act 1", 1, [make_chapter("Chapter 4: Dawn", 4, [300]), make_chapter("Interlude", 9, [300])]),
        Act("Act 2", 2, [make_chapter("Chapter 7", 1, [300])]),
    ])
    fixed = AutoFixEngine().renumber_chapters(structure).fixed_structure

    assert [(c.title, c.order) for c in fixed.acts[0].chapters] == [("Chapter 1: Dawn", 1), ("Interlude", 2)]
    assert [(c.title, c.order) for c in fixed.acts[1].chapters] == [("Chapter 1", 1)]

    # 숫자 뒤 접미사는 유지
    suffixed = make_structure([Act("Act 1", 1, [make_chapter("Chapter 5a", 1, [300])])])
    renamed = AutoFixEngine().renumber_chapters(suffixed).fixed_structure
    assert renamed.acts[0].chapters[0].title == "Chapter 1a"

    # 이미 순서대로면 변경 없음 (성공)
    again = AutoFixEngine().renumber_chapters(fixed)
    assert again.success
    assert again.message == "No chapters needed renumbering - all were already sequential"

    print("✅ Per-act renumber tests passed!")


def test_renumber_scenes():
    """장면 번호 재정렬 테스트"""
    chapter = make_chapter("Chapter 1", 1, [100, 100, 100])
    for scene, order in zip(chapter.scenes, [3, 3, 7]):
        scene.order = order
    structure = make_structure([Act("Act 1", 1, [chapter])])

    result = AutoFixEngine().apply_auto_fix(structure, make_issue(FixActionType.RENUMBER_SCENES))
    assert result.success
    assert [scene.order for scene in result.fixed_structure.acts[0].chapters[0].scenes] == [1, 2, 3]
    assert [scene.order for scene in structure.acts[0].chapters[0].scenes] == [3, 3, 7]

    # 이슈 없이 수정 동작만으로 적용 / 미리보기
    engine = AutoFixEngine()
    action = FixAction(type=FixActionType.RENUMBER_SCENES, description="renumber")
    result = engine.apply_fix_action(structure, action)
    assert [scene.order for scene in result.fixed_structure.acts[0].chapters[0].scenes] == [1, 2, 3]
    assert engine.preview_fix_action(structure, action) == "Will renumber 3 scenes sequentially within their chapters"
    assert engine.apply_fix_action(structure, None).error == AutoFixEngine.UNSUPPORTED_ERROR

    print("✅ Renumber scenes tests passed!")


def test_combine_short_scenes():
    """짧은 장면 병합 테스트 ([10, 20, 400] → [30, 400])"""
    structure = make_structure([Act("Act 1", 1, [make_chapter("Chapter 1", 1, [10, 20, 400])])])
    engine = AutoFixEngine()

    result = engine.combine_short_scenes(structure, 50)
    assert result.success
    assert result.message == "Successfully combined 1 short scenes"

    scenes = result.fixed_structure.acts[0].chapters[0].scenes
    assert [scene.word_count for scene in scenes] == [30, 400]
    assert [scene.order for scene in scenes] == [1, 2]
    assert AutoFixEngine.SCENE_SEPARATOR in scenes[0].content
    assert result.fixed_structure.word_count == 430

    # 장면 개수 기준 병합 없음 → 실패 (오류는 없음)
    result = engine.combine_short_scenes(structure, 5)
    assert not result.success
    assert result.error is None
    assert result.message == "No short scenes found to combine"

    print("✅ Combine short scenes tests passed!")


def test_combine_runs_and_target():
    """짧은 장면 연속 구간 / 대상 챕터 테스트"""
    structure = make_structure([Act("Act 1", 1, [
        make_chapter("Chapter 1", 1, [10, 400, 5, 5, 5]),
        make_chapter("Chapter 2", 2, [10, 10]),
    ])])
    engine = AutoFixEngine()

    fixed = engine.combine_short_scenes(structure).fixed_structure
    assert [s.word_count for s in fixed.acts[0].chapters[0].scenes] == [10, 400, 15]
    assert [s.word_count for s in fixed.acts[0].chapters[1].scenes] == [20]

    # target_id로 지정한 챕터만 병합
    result = engine.apply_auto_fix(structure, make_issue(FixActionType.COMBINE_SCENES, target_id="Chapter 2"))
    assert result.success
    chapters = result.fixed_structure.acts[0].chapters
    assert [s.word_count for s in chapters[0].scenes] == [10, 400, 5, 5, 5]
    assert [s.word_count for s in chapters[1].scenes] == [20]

    print("✅ Combine run / target tests passed!")


def test_rename_duplicates():
    """중복 제목 변경 테스트"""
    structure = make_structure([
        Act("Prologue", 1, [make_chapter("Chapter 1", 1, [300])]),
        Act("Prologue", 2, [make_chapter("Chapter 1", 1, [300]), make_chapter("chapter 1", 2, [300])]),
    ], raw_chapter_titles=["Chapter 1", "Chapter 1", "chapter 1"])

    result = AutoFixEngine().apply_auto_fix(structure, make_issue(FixActionType.RENAME_DUPLICATE))
    assert result.success
    fixed = result.fixed_structure

    assert [act.title for act in fixed.acts] == ["Prologue", "Prologue (2)"]
    chapter_titles = [chapter.title for chapter in fixed.iter_chapters()]
    assert chapter_titles == ["Chapter 1", "Chapter 1 (2)", "chapter 1 (3)"]
    assert len({title.lower() for title in chapter_titles}) == len(chapter_titles)
    assert fixed.raw_chapter_titles is None

    # 중복 없으면 실패 (오류는 없음)
    again = AutoFixEngine().rename_duplicates(fixed)
    assert not again.success
    assert again.error is None

    print("✅ Rename duplicates tests passed!")


def test_unsupported_fix():
    """미구현 수정 (split_scenes) 테스트"""
    structure = make_structure([Act("Act 1", 1, [make_chapter("Chapter 1", 1, [6000])])])
    engine = AutoFixEngine()

    result = engine.apply_auto_fix(structure, make_issue(FixActionType.SPLIT_SCENES))
    assert not result.success
    assert result.fixed_structure is None
    assert result.error == AutoFixEngine.UNSUPPORTED_ERROR

    # 수정 동작이 없는 이슈
    issue = Issue(type=IssueType.FEW_SCENES, severity=Severity.WARNING, message="few")
    assert not engine.apply_auto_fix(structure, issue).success

    print("✅ Unsupported fix tests passed!")


def test_apply_all_auto_fixes():
    """일괄 수정 테스트"""
    titles = ["Chapter 1", "Chapter 1", "Chapter 5"]
    structure = make_structure(
        [Act("Act 1", 1, [
            make_chapter(titles[0], 1, [10, 20, 400]),
            make_chapter(titles[1], 2, [300]),
            make_chapter(titles[2], 3, [300]),
        ])],
        raw_chapter_titles=titles
    )
    structure.issues = StructureAnalyzer().analyze_issues(structure)

    result = AutoFixEngine().apply_all_auto_fixes(structure, AutoFixOptions())
    assert result.success
    assert result.error is None
    assert result.message.startswith("Applied 3 fixes: Renumbered chapters sequentially")

    fixed = result.fixed_structure
    assert [c.title for c in fixed.iter_chapters()] == ["Chapter 1", "Chapter 2", "Chapter 3"]
    assert [s.word_count for s in fixed.acts[0].chapters[0].scenes] == [30, 400]
    assert fixed.word_count == structure.word_count == 1030
    assert fixed.issues is None

    # 원본은 그대로
    assert structure.issues is not None
    assert [s.word_count for s in structure.acts[0].chapters[0].scenes] == [10, 20, 400]

    print("✅ Apply all auto-fix tests passed!")


def test_apply_all_options():
    """일괄 수정 옵션 토글 / split 오류 기록 테스트"""
    structure = make_structure([Act("Act 1", 1, [make_chapter("Chapter 1", 1, [300])])])

    options = AutoFixOptions(
        combine_short_scenes=False,
        split_long_scenes=True,
        renumber_chapters=False,
        renumber_scenes=False,
        rename_duplicates=False,
    )
    result = AutoFixEngine().apply_all_auto_fixes(structure, options)
    assert not result.success
    assert result.message == "No fixes were applied"
    assert result.error == "Unsupported fix type: split_scenes"
    assert result.fixed_structure is not None

    print("✅ Apply all option tests passed!")


def test_idempotence():
    """수정 결과에 같은 수정을 다시 적용해도 동일 테스트"""
    structure = make_structure([
        Act("Prologue", 1, [make_chapter("Chapter 3", 1, [10, 20, 400]), make_chapter("Chapter 3", 2, [5, 300])]),
        Act("Prologue", 2, [make_chapter("Chapter 9", 1, [300])]),
    ])
    engine = AutoFixEngine()

    for fix in (engine.renumber_chapters, engine.renumber_scenes, engine.rename_duplicates, engine.combine_short_scenes):
        once = fix(structure).fixed_structure
        twice = fix(once).fixed_structure
        assert once.to_dict() == twice.to_dict()

    print("✅ Idempotence tests passed!")


def test_preview():
    """수정 미리보기 테스트 (구조 변경 없음)"""
    structure = make_structure([
        Act("Prologue", 1, [make_chapter("Chapter 1", 1, [10, 20, 400])]),
        Act("Prologue", 2, [make_chapter("Chapter 1", 1, [300])]),
    ])
    before = structure.to_dict()
    engine = AutoFixEngine()

    assert engine.get_auto_fix_preview(structure, make_issue(FixActionType.RENUMBER_CHAPTERS)) == \
        "Will renumber 2 chapters sequentially within their acts"
    assert engine.get_auto_fix_preview(structure, make_issue(FixActionType.RENUMBER_SCENES)) == \
        "Will renumber 4 scenes sequentially within their chapters"
    assert engine.get_auto_fix_preview(structure, make_issue(FixActionType.COMBINE_SCENES)) == \
        "Will combine 2 scenes that are under 50 words"
    assert engine.get_auto_fix_preview(structure, make_issue(FixActionType.RENAME_DUPLICATE)) == \
        "Will rename 2 duplicate titles by adding suffixes (1 acts, 1 chapters)"

    issue = Issue(type=IssueType.FEW_SCENES, severity=Severity.WARNING, message="few")
    assert engine.get_auto_fix_preview(structure, issue) == "No automatic fix available for this issue"

    assert structure.to_dict() == before

    print("✅ Preview tests passed!")


def main():
    """테스트 실행"""
    print("=" * 50)
    print("Auto-Fix Engine Tests")
    print("=" * 50)

    test_renumber_chapters()
    test_renumber_chapters_per_act()
    test_renumber_scenes()
    test_combine_short_scenes()
    test_combine_runs_and_target()
    test_rename_duplicates()
    test_unsupported_fix()
    test_apply_all_auto_fixes()
    test_apply_all_options()
    test_idempotence()
    test_preview()

    print("=" * 50)
    print("✅ All tests passed!")
    print("=" * 50)


if __name__ == "__main__":
    main()
