"""Per-session workspace state: credentials, tree, selection and pipeline."""
from typing import Optional

import httpx

from core.logging import log_info
from schemas.entities import Repository
from services.ai_service import AIService, ai_service as default_ai_service
from services.content_fetcher import ContentFetcher
from services.github_client import GitHubClient, validate_repo_name
from services.orchestrator import GenerationOrchestrator
from services.selection import SelectionTracker
from services.submission import SubmissionStage
from services.tree_store import RemoteTreeStore
from utils.exceptions import ConfigurationError, ValidationError


class SessionContext:
    """Everything one user's workspace needs between requests."""

    def __init__(
        self,
        session_id: str,
        ai_service: Optional[AIService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.id = session_id
        self.access_token: Optional[str] = None
        self.api_key: Optional[str] = None
        self.repository: Optional[Repository] = None
        self._transport = transport
        self.tree = RemoteTreeStore()
        self.selection = SelectionTracker()
        self.orchestrator = GenerationOrchestrator(ai_service or default_ai_service)
        self.submission = SubmissionStage()

    @property
    def repository_name(self) -> Optional[str]:
        return self.repository.full_name if self.repository else None

    def set_credentials(self, access_token: Optional[str] = None, api_key: Optional[str] = None) -> None:
        """Store credentials; ``None`` leaves the current value in place."""
        if access_token is not None:
            self.access_token = access_token.strip() or None
            if self.repository and self.access_token:
                self.tree.client = self.client()
                self.submission.client = self.tree.client
        if api_key is not None:
            self.api_key = api_key.strip() or None

    def require_token(self) -> str:
        if not self.access_token:
            raise ConfigurationError("GitHub access token is required")
        return self.access_token

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("GenAI API key is required")
        return self.api_key

    def require_repository(self) -> str:
        if not self.repository:
            raise ValidationError("No repository selected")
        return self.repository.full_name

    def client(self) -> GitHubClient:
        return GitHubClient(self.require_token(), transport=self._transport)

    def fetcher(self) -> ContentFetcher:
        return ContentFetcher(self.client(), self.require_repository())

    def select_repository(self, full_name: str, default_branch: Optional[str] = None) -> Repository:
        """Switch repository, dropping the tree, selection and pipeline of the previous one."""
        validate_repo_name(full_name)
        client = self.client()
        self.repository = Repository(
            full_name=full_name,
            name=full_name.split("/", 1)[1],
            default_branch=default_branch or "main",
        )
        self.tree.reset(full_name, client)
        self.selection.clear()
        self.orchestrator.reset()
        self.submission = SubmissionStage(client, full_name, base_branch=default_branch)
        log_info(f"Session {self.id} switched to {full_name}", "session")
        return self.repository

    def clear(self) -> None:
        """Forget credentials and all repository state."""
        self.access_token = None
        self.api_key = None
        self.repository = None
        self.tree.reset(None)
        self.selection.clear()
        self.orchestrator.reset()
        self.submission = SubmissionStage()
