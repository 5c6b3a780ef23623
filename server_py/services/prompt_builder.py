"""Prompt assembly for test plan and test code generation."""
from typing import Any, Dict, List, Optional

from core.constants import MIN_TEST_PLANS, MAX_TEST_PLANS
from prompts import prompt_loader
from schemas.entities import FileReference, PromptTask, TestPlan
from utils.exceptions import ValidationError

PROMPT_FILE = "test_generation.yml"


def _render(key: str, **values) -> str:
    return prompt_loader.render(PROMPT_FILE, key, **values)


def files_for_plan(plan: TestPlan, file_refs: List[FileReference]) -> List[FileReference]:
    """References whose name equals, or whose path contains, one of the plan's file names."""
    wanted = [name for name in plan.fileNames if name]
    return [
        ref for ref in file_refs
        if any(ref.name == name or name in ref.path for name in wanted)
    ]


def _render_files(template_key: str, file_refs: List[FileReference], label: str = "") -> str:
    unavailable = _render("content_unavailable")
    return "\n".join(
        _render(
            template_key,
            name=ref.name,
            path=ref.path,
            body=f"{label}{ref.content}" if ref.content is not None else unavailable,
        )
        for ref in file_refs
    )


def build_summaries_prompt(file_refs: List[FileReference], repository: Optional[str] = None) -> str:
    """One prompt over every selected file's preview, asking for a JSON array of plans."""
    return _render(
        "summaries_user",
        repository=repository or "(unnamed)",
        files=_render_files("summaries_file", file_refs, label="Content preview:\n"),
        min_plans=MIN_TEST_PLANS,
        max_plans=MAX_TEST_PLANS,
    )


def build_codegen_prompt(plan: TestPlan, file_refs: List[FileReference]) -> str:
    """Prompt for a single plan's test file, with full content of the files it names."""
    return _render(
        "codegen_user",
        title=plan.title,
        description=plan.description,
        framework=plan.framework,
        test_type=plan.testType,
        file_names=", ".join(plan.fileNames),
        files=_render_files("codegen_file", files_for_plan(plan, file_refs)),
    )


def build_prompt(task: PromptTask, file_refs: List[FileReference], context: Optional[Dict[str, Any]] = None) -> str:
    """Dispatch on ``task``.

    ``context`` carries ``repository`` for summaries and ``plan`` for codegen.
    """
    context = context or {}
    if task == PromptTask.summaries:
        return build_summaries_prompt(file_refs, context.get("repository"))
    if task == PromptTask.codegen:
        plan = context.get("plan")
        if not isinstance(plan, TestPlan):
            raise ValidationError("Code generation prompt requires a test plan")
        return build_codegen_prompt(plan, file_refs)
    raise ValidationError(f"Unknown prompt task: {task}")
