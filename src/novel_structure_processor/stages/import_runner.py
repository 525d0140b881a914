"""원고 가져오기 실행기

HTML 파일 읽기 → 구조 파싱 → 이슈 분석 → 검증 → (선택) 일괄 자동 수정 → JSON 저장
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional
from novel_structure_processor.config.loader import Config
from novel_structure_processor.stages.analyzer import StructureAnalyzer
from novel_structure_processor.stages.auto_fix import AutoFixEngine
from novel_structure_processor.stages.parser import StructureParser
from novel_structure_processor.stages.structure import AutoFixOptions, DocumentStructure
from novel_structure_processor.utils.markup import detect_encoding
from novel_structure_processor.utils.logger import get_logger

logger = get_logger(__name__)


class ManuscriptImportRunner:
    """가져오기 파이프라인 메인 실행기"""

    def __init__(self, config: Optional[Config] = None):
        """
        Args:
            config: Config 인스턴스 (None이면 기본값)
        """
        self.config = config or Config()
        self.analyzer = StructureAnalyzer(self.config.analysis)
        self.parser = StructureParser(
            scene_break_markers=self.config.parsing.scene_break_markers,
            analyzer=self.analyzer
        )
        self.fix_options = AutoFixOptions(**asdict(self.config.auto_fix))
        self.engine = AutoFixEngine(self.fix_options)

        # created on first save
        self.output_dir = Path(self.config.paths.output_folder)

        logger.debug("ManuscriptImportRunner initialized")

    def read_html(self, file_path: str) -> str:
        """HTML 파일 읽기 (설정에 따라 chardet 인코딩 감지)

        Raises:
            FileNotFoundError: 파일이 없을 때
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        encoding = None
        if self.config.parsing.auto_detect_encoding:
            encoding = detect_encoding(path)
        encoding = encoding or self.config.parsing.default_encoding

        with open(path, "r", encoding=encoding, errors="replace") as f:
            return f.read()

    def parse_file(self, file_path: str) -> DocumentStructure:
        """HTML 파일 → 분석 이슈가 붙은 DocumentStructure"""
        logger.info(f"📄 Reading: {file_path}")
        return self.parser.parse_html(self.read_html(file_path))

    def load_structure(self, file_path: str) -> DocumentStructure:
        """.json이면 저장된 트리를, 그 외에는 HTML로 파싱"""
        if file_path.lower().endswith(".json"):
            path = Path(file_path)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {file_path}")
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            # 저장본은 {"structure": ...} 또는 트리 자체
            return DocumentStructure.from_dict(data.get("structure", data))
        return self.parse_file(file_path)

    def save_structure(self, structure: DocumentStructure, output_path: Path, extra: Optional[Dict[str, Any]] = None) -> Path:
        """트리를 JSON으로 저장"""
        payload = {"structure": structure.to_dict()}
        if extra:
            payload.update(extra)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

        logger.info(f"💾 Structure saved: {output_path}")
        return output_path

    def run(self, file_path: str, auto_fix: bool = False, output_path: Optional[str] = None) -> Dict[str, Any]:
        """가져오기 실행

        Args:
            file_path: 변환기가 만든 HTML 파일 (또는 저장된 JSON 트리)
            auto_fix: 일괄 자동 수정 적용 여부
            output_path: 결과 JSON 경로 (None이면 output 폴더에 <이름>.structure.json)

        Returns:
            {"structure", "validation", "fix_result", "output_path"}
        """
        structure = self.load_structure(file_path)
        if structure.issues is None:
            issues = self.analyzer.analyze_issues(structure)
            structure.issues = issues or None

        fix_result = None
        if auto_fix:
            fix_result = self.engine.apply_all_auto_fixes(structure, self.fix_options)
            if fix_result.fixed_structure is not None:
                structure = fix_result.fixed_structure
                # 수정 후 이슈는 버려지므로 다시 분석
                issues = self.analyzer.analyze_issues(structure)
                structure.issues = issues or None
            logger.info(f"🔧 {fix_result.message}")
            if fix_result.error:
                logger.warning(f"⚠️  Auto-fix errors: {fix_result.error}")

        validation = self.analyzer.validate_structure(structure)
        if not validation.is_valid:
            logger.warning(f"⚠️  Validation failed with {len(validation.errors)} errors")

        target = Path(output_path) if output_path else self.output_dir / f"{Path(file_path).stem}.structure.json"
        self.save_structure(structure, target, extra={
            "validation": {
                "is_valid": validation.is_valid,
                "errors": validation.errors,
            },
            "fix": {
                "success": fix_result.success,
                "message": fix_result.message,
                "error": fix_result.error,
            } if fix_result else None,
        })

        return {
            "structure": structure,
            "validation": validation,
            "fix_result": fix_result,
            "output_path": str(target),
        }
