import pytest

from schemas import entities
from schemas.entities import FileReference, PromptTask
from services.prompt_builder import build_prompt, files_for_plan
from utils.exceptions import ValidationError


def _plan(**overrides):
    data = {
        "id": "math",
        "title": "Math helpers",
        "description": "Covers add.",
        "framework": "Jest",
        "testType": "unit",
        "estimatedCount": 4,
        "fileNames": ["index.ts"],
    }
    data.update(overrides)
    return entities.TestPlan(**data)


def test_files_for_plan_matches_name_or_path_fragment(sample_refs):
    assert [ref.path for ref in files_for_plan(_plan(), sample_refs)] == ["src/index.ts"]
    by_path = _plan(fileNames=["utils/format.js"])
    assert [ref.path for ref in files_for_plan(by_path, sample_refs)] == ["src/utils/format.js"]
    assert files_for_plan(_plan(fileNames=[]), sample_refs) == []


def test_summaries_prompt_lists_every_file():
    refs = [
        FileReference(name="index.ts", path="src/index.ts", content="export const add = () => {};"),
        FileReference(name="format.js", path="src/utils/format.js", content=None),
    ]
    prompt = build_prompt(PromptTask.summaries, refs, {"repository": "octo/demo"})

    assert "octo/demo" in prompt
    assert "File: index.ts (src/index.ts)" in prompt
    assert "Content preview:\nexport const add = () => {};" in prompt
    assert "File: format.js (src/utils/format.js)" in prompt
    assert "Content not available" in prompt
    assert "2-4" in prompt
    assert '[{"id": "...",' in prompt


def test_codegen_prompt_only_includes_plan_files():
    refs = [
        FileReference(name="index.ts", path="src/index.ts", content="const obj = {a: 1};"),
        FileReference(name="format.js", path="src/utils/format.js", content="other"),
    ]
    prompt = build_prompt(PromptTask.codegen, refs, {"plan": _plan()})

    assert "Title: Math helpers" in prompt
    assert "Framework: Jest" in prompt
    assert "Files to test: index.ts" in prompt
    assert "const obj = {a: 1};" in prompt
    assert "src/utils/format.js" not in prompt


def test_codegen_prompt_requires_plan(sample_refs):
    with pytest.raises(ValidationError):
        build_prompt(PromptTask.codegen, sample_refs, {})
