"""Bundles generated test files into a single pull request."""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from core.config import get_settings
from core.logging import log_info, log_error
from schemas.entities import ChangeSetResult, GeneratedArtifact
from utils.exceptions import ConfigurationError, SubmissionError


def artifact_paths(artifacts: List[GeneratedArtifact], base_dir: str) -> Dict[str, GeneratedArtifact]:
    """Repository path for each artifact; clashing filenames go under the plan id."""
    base_dir = base_dir.strip("/")
    paths: Dict[str, GeneratedArtifact] = {}
    for artifact in artifacts:
        path = f"{base_dir}/{artifact.filename}" if base_dir else artifact.filename
        if path in paths:
            path = f"{base_dir}/{artifact.id}/{artifact.filename}" if base_dir else f"{artifact.id}/{artifact.filename}"
        paths[path] = artifact
    return paths


def _default_body(paths: Dict[str, GeneratedArtifact]) -> str:
    lines = ["Generated test files:", ""]
    lines += [f"- `{path}` ({artifact.framework})" for path, artifact in paths.items()]
    return "\n".join(lines)


class SubmissionStage:
    """Submits every ready artifact as one change set, or nothing at all."""

    def __init__(self, client: Any = None, repository: Optional[str] = None, base_branch: Optional[str] = None):
        self.client = client
        self.repository = repository
        self.base_branch = base_branch
        self.last_result: Optional[ChangeSetResult] = None
        self.submitted_ids: Set[str] = set()

    def _branch_name(self) -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        return f"{get_settings().branch_prefix}/{stamp}-{uuid.uuid4().hex[:6]}"

    async def submit(
        self,
        artifacts: List[GeneratedArtifact],
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> ChangeSetResult:
        """Open one pull request holding all ``artifacts``.

        Raises SubmissionError when there is nothing to submit (before any
        network call) or when the repository rejects the change set.
        """
        if not artifacts:
            raise SubmissionError("No generated tests to submit")
        if self.client is None or not self.repository:
            raise ConfigurationError("A repository and access token are required to submit tests")

        settings = get_settings()
        paths = artifact_paths(artifacts, settings.generated_tests_dir)
        title = title or settings.pull_request_title

        try:
            result = await self.client.create_change_set(
                self.repository,
                {path: artifact.content for path, artifact in paths.items()},
                branch=self._branch_name(),
                title=title,
                body=body or _default_body(paths),
                base_branch=self.base_branch,
            )
        except SubmissionError as e:
            log_error(f"Submission to {self.repository} failed: {e.message}", "submission")
            raise

        change_set = ChangeSetResult(
            number=result["number"],
            url=result["url"],
            branch=result.get("branch"),
            files=list(paths),
        )
        self.last_result = change_set
        self.submitted_ids = {artifact.id for artifact in artifacts}
        log_info(f"Submitted {len(artifacts)} test files as #{change_set.number}", "submission")
        return change_set
