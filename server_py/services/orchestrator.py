"""Two-stage test generation pipeline.

Stage 1 turns the selected files into a list of test plans with a single
model call. Stage 2 runs once per plan, on demand, and produces one test
file per plan. Every plan carries its own status, so a failure or a retry
of one plan never touches the others.
"""
from typing import Any, Dict, List, Optional

from core.llm_config import CODE_TASK, PLAN_TASK
from core.logging import log_info, log_error, log_warning
from schemas.entities import (
    FileReference, GeneratedArtifact, PipelineSnapshot, PlanState,
    PlanStatus, PromptTask, SummariesStatus, TestPlan,
)
from services.content_fetcher import ContentFetcher
from services.prompt_builder import build_prompt, files_for_plan
from utils.exceptions import (
    ConfigurationError, MalformedResponseError, PlanNotFoundError,
    ValidationError,
)
from utils.file_types import derive_test_filename
from utils.text import parse_json_array, slugify, strip_code_fences


def _as_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def _unique_id(candidate: str, title: str, taken: set) -> str:
    plan_id = candidate if candidate and candidate not in taken else slugify(title)
    base, suffix = plan_id, 2
    while plan_id in taken:
        plan_id = f"{base}-{suffix}"
        suffix += 1
    return plan_id


def coerce_plans(raw_items: List[Any]) -> List[TestPlan]:
    """Validate loosely-shaped model output into TestPlans with unique ids.

    Non-object items are dropped; ``files`` and ``estimatedTests`` are
    accepted as aliases; a missing or duplicate id becomes a title slug.
    """
    plans: List[TestPlan] = []
    taken: set = set()
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip() or "Untitled test suite"
        raw_id = item.get("id")
        candidate = slugify(str(raw_id), fallback="") if raw_id not in (None, "") else ""
        plan_id = _unique_id(candidate, title, taken)
        taken.add(plan_id)
        plans.append(TestPlan(
            id=plan_id,
            title=title,
            description=str(item.get("description") or "").strip(),
            framework=str(item.get("framework") or "Jest").strip(),
            testType=str(item.get("testType") or item.get("test_type") or "unit").strip(),
            estimatedCount=_as_int(item.get("estimatedCount", item.get("estimatedTests"))),
            fileNames=_as_str_list(item.get("fileNames", item.get("files"))),
        ))
    return plans


class GenerationOrchestrator:
    """State of one session's pipeline run."""

    def __init__(self, ai_service: Any):
        self.ai_service = ai_service
        self.status = SummariesStatus.idle
        self.error: Optional[str] = None
        self.plans: Dict[str, TestPlan] = {}
        self.plan_status: Dict[str, PlanStatus] = {}
        self.plan_errors: Dict[str, str] = {}
        self.artifacts: Dict[str, GeneratedArtifact] = {}
        # bumped by reset() and by every stage 1 run; a run only writes while it is current
        self.run = 0

    def reset(self) -> None:
        self.run += 1
        self.status = SummariesStatus.idle
        self.error = None
        self.plans = {}
        self.plan_status = {}
        self.plan_errors = {}
        self.artifacts = {}

    async def generate_summaries(
        self,
        file_refs: List[FileReference],
        fetcher: ContentFetcher,
        api_key: Optional[str],
        repository: Optional[str] = None,
    ) -> List[TestPlan]:
        """Stage 1: preview the files, ask for plans, parse them.

        On failure the run moves to ``failed`` and previous plans and
        artifacts stay as they were. A run superseded by ``reset()`` or by a
        newer run writes nothing, whether it succeeds or fails.
        """
        if not api_key:
            raise ConfigurationError("GenAI API key is required to generate test summaries")
        if not file_refs:
            raise ValidationError("No files selected")

        self.run += 1
        run = self.run
        self.status = SummariesStatus.pending
        self.error = None
        try:
            previews = await fetcher.fetch_batch(file_refs, preview=True)
            prompt = build_prompt(PromptTask.summaries, previews, {"repository": repository})
            response = await self.ai_service.call_genai(prompt, api_key, task_name=PLAN_TASK)

            try:
                raw_items = parse_json_array(response)
            except ValueError as e:
                raise MalformedResponseError("Invalid JSON response from AI", details=str(e)) from e

            plans = coerce_plans(raw_items)
            if not plans:
                raise MalformedResponseError("AI response contained no usable test plans", details=response[:500])
        except Exception as e:
            message = getattr(e, "message", str(e))
            if run == self.run:
                self.status = SummariesStatus.failed
                self.error = message
            log_error(f"Test summary generation failed: {message}", "pipeline")
            raise

        if run != self.run:
            log_warning(f"Discarding {len(plans)} test summaries from a superseded run", "pipeline")
            return plans

        self.plans = {plan.id: plan for plan in plans}
        self.plan_status = {plan.id: PlanStatus.idle for plan in plans}
        self.plan_errors = {}
        self.artifacts = {}
        self.status = SummariesStatus.ready
        log_info(f"Generated {len(plans)} test summaries for {len(file_refs)} files", "pipeline")
        return plans

    def get_plan(self, plan_id: str) -> TestPlan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Unknown test plan: {plan_id}")
        return plan

    async def generate_artifact(
        self,
        plan_id: str,
        file_refs: List[FileReference],
        fetcher: ContentFetcher,
        api_key: Optional[str],
    ) -> GeneratedArtifact:
        """Stage 2 for one plan. Re-running replaces the plan's previous artifact."""
        plan = self.get_plan(plan_id)
        if not api_key:
            raise ConfigurationError("GenAI API key is required to generate test code")

        self.plan_status[plan_id] = PlanStatus.pending
        self.plan_errors.pop(plan_id, None)
        try:
            relevant = files_for_plan(plan, file_refs)
            if not relevant:
                log_warning(f"No selected files match plan '{plan_id}' ({plan.fileNames})", "pipeline")
            with_content = await fetcher.fetch_batch(relevant, preview=False)
            prompt = build_prompt(PromptTask.codegen, with_content, {"plan": plan})
            response = await self.ai_service.call_genai(prompt, api_key, task_name=CODE_TASK)

            content = strip_code_fences(response)
            if not content:
                raise MalformedResponseError("AI returned empty test code")
        except Exception as e:
            message = getattr(e, "message", str(e))
            if self.plans.get(plan_id) is plan:
                self.plan_status[plan_id] = PlanStatus.failed
                self.plan_errors[plan_id] = message
            log_error(f"Test code generation failed for '{plan_id}': {message}", "pipeline")
            raise

        artifact = GeneratedArtifact(
            id=plan.id,
            filename=derive_test_filename(plan.fileNames[0] if plan.fileNames else "", plan.framework),
            content=content,
            framework=plan.framework,
        )
        # a stage 1 rerun may have replaced the plan set while this call was in flight
        if self.plans.get(plan_id) is not plan:
            log_warning(f"Discarding artifact for superseded plan '{plan_id}'", "pipeline")
            return artifact

        self.artifacts[plan_id] = artifact
        self.plan_status[plan_id] = PlanStatus.ready
        log_info(f"Generated {artifact.filename} for plan '{plan_id}'", "pipeline")
        return artifact

    def ready_artifacts(self) -> List[GeneratedArtifact]:
        """Artifacts of plans currently in ``ready``, in plan order."""
        return [
            self.artifacts[plan_id] for plan_id in self.plans
            if self.plan_status.get(plan_id) == PlanStatus.ready and plan_id in self.artifacts
        ]

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            status=self.status,
            error=self.error,
            plans=[
                PlanState(
                    plan=plan,
                    status=self.plan_status.get(plan_id, PlanStatus.idle),
                    error=self.plan_errors.get(plan_id),
                )
                for plan_id, plan in self.plans.items()
            ],
            artifacts=list(self.artifacts.values()),
        )
