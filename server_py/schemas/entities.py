"""Pydantic schemas for domain entities."""
from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


class NodeKind(str, Enum):
    """Remote file-system entry kind."""
    file = "file"
    directory = "directory"


class SummariesStatus(str, Enum):
    """Stage 1 state of a pipeline run."""
    idle = "idle"
    pending = "pending"
    ready = "ready"
    failed = "failed"


class PlanStatus(str, Enum):
    """Stage 2 state of a single test plan."""
    idle = "idle"
    pending = "pending"
    ready = "ready"
    failed = "failed"


class PromptTask(str, Enum):
    """Prompt templates known to the prompt builder."""
    summaries = "summaries"
    codegen = "codegen"


class Repository(BaseModel):
    """Remote repository selected by the user."""
    full_name: str
    name: Optional[str] = None
    id: Optional[int] = None
    default_branch: str = "main"
    private: bool = False
    description: Optional[str] = None
    html_url: Optional[str] = None


class TreeNode(BaseModel):
    """One materialized entry in the remote file tree.

    ``children`` holds child paths, not nodes; the owning store keeps the
    path -> node map. ``None`` means the directory has not been listed yet.
    """
    name: str
    path: str
    kind: NodeKind
    children: Optional[List[str]] = None
    size: Optional[int] = None

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.directory

    @property
    def is_materialized(self) -> bool:
        return self.children is not None


class FileReference(BaseModel):
    """Unit of source passed to the generation pipeline."""
    name: str
    path: str
    content: Optional[str] = None


class TestPlan(BaseModel):
    """Model-proposed description of one test suite."""
    id: str
    title: str
    description: str = ""
    framework: str = "Jest"
    testType: str = "unit"
    estimatedCount: int = 0
    fileNames: List[str] = []


class GeneratedArtifact(BaseModel):
    """Test code produced for exactly one test plan."""
    id: str
    filename: str
    content: str
    framework: str


class ChangeSetResult(BaseModel):
    """Outcome of a successful change-set submission."""
    number: int
    url: str
    branch: Optional[str] = None
    files: List[str] = Field(default_factory=list)


class PlanState(BaseModel):
    """Plan together with its stage 2 status."""
    plan: TestPlan
    status: PlanStatus = PlanStatus.idle
    error: Optional[str] = None


class PipelineSnapshot(BaseModel):
    """Read-only view of a pipeline run."""
    status: SummariesStatus
    error: Optional[str] = None
    plans: List[PlanState] = []
    artifacts: List[GeneratedArtifact] = []
