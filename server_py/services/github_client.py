"""GitHub REST API client for browsing repositories and opening pull requests."""
import re
import base64
from typing import Optional, Dict, Any, List
from urllib.parse import quote

import httpx

from core.config import get_settings
from core.logging import log_info, log_error, log_warning, log_debug
from utils.exceptions import (
    FetchError, ContentTypeError, DirectoryExpectedError,
    SubmissionError, ValidationError,
)


REPO_FULL_NAME_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


def get_github_headers(token: str) -> Dict[str, str]:
    """Get GitHub API headers for a user access token."""
    return {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": get_settings().github_user_agent,
        "Authorization": f"Bearer {token}",
    }


def validate_repo_name(repo: str) -> str:
    """Return ``repo`` if it looks like ``owner/name``."""
    if not repo or not REPO_FULL_NAME_PATTERN.match(repo):
        raise ValidationError(f"Invalid repository name: {repo!r}")
    return repo


def _contents_url(repo: str, path: str) -> str:
    path = path.strip("/")
    return f"/repos/{repo}/contents/{quote(path, safe='/')}" if path else f"/repos/{repo}/contents"


class GitHubClient:
    """Thin async wrapper over the endpoints the pipeline needs."""

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.token = token
        self.base_url = (base_url or settings.github_api_url).rstrip("/")
        self.timeout = settings.github_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=get_github_headers(self.token),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        url: str,
        error_message: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        expected: tuple = (200,),
    ) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, url, params=params, json=json)
        except httpx.HTTPError as e:
            raise FetchError(f"{error_message}: {e}") from e

        if response.status_code not in expected:
            log_debug(f"{method} {url} -> {response.status_code}: {response.text[:200]}", "github")
            raise FetchError(
                f"{error_message}: {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"{error_message}: response is not JSON", status_code=response.status_code) from e

    async def get_user(self) -> Dict[str, Any]:
        """Fetch the authenticated user."""
        return await self._request("GET", "/user", "Failed to fetch user")

    async def list_repositories(self) -> List[Dict[str, Any]]:
        """List repositories of the authenticated user, most recently updated first."""
        return await self._request(
            "GET", "/user/repos", "Failed to fetch repositories",
            params={"sort": "updated", "per_page": 100},
        )

    async def get_repository(self, repo: str) -> Dict[str, Any]:
        validate_repo_name(repo)
        return await self._request("GET", f"/repos/{repo}", "Failed to fetch repository")

    async def list_directory(self, repo: str, path: str = "") -> List[Dict[str, Any]]:
        """List one directory level as ``{name, path, type, size}`` entries.

        ``type`` is ``dir`` or ``file``; symlinks and submodules are skipped.
        """
        validate_repo_name(repo)
        data = await self._request("GET", _contents_url(repo, path), "Failed to fetch files")

        if not isinstance(data, list):
            raise DirectoryExpectedError(f"Path is not a directory: {path}")

        entries = []
        for item in data:
            if item.get("type") not in ("dir", "file"):
                continue
            entries.append({
                "name": item["name"],
                "path": item["path"],
                "type": item["type"],
                "size": item.get("size"),
            })
        return entries

    async def get_file_content(self, repo: str, path: str) -> str:
        """Fetch a file and decode its base64 transport encoding to text."""
        validate_repo_name(repo)
        data = await self._request("GET", _contents_url(repo, path), "Failed to fetch file content")

        if not isinstance(data, dict) or data.get("type") != "file":
            raise ContentTypeError(f"Path is not a file: {path}")

        content = data.get("content") or ""
        if data.get("encoding", "base64") != "base64":
            return content
        return base64.b64decode(content).decode("utf-8", errors="replace")

    async def create_change_set(
        self,
        repo: str,
        files: Dict[str, str],
        branch: str,
        title: str,
        body: str = "",
        commit_message: Optional[str] = None,
        base_branch: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Commit ``files`` (path -> text) to a new branch and open a pull request.

        All files land in a single commit, so the branch either has every file
        or the request failed before the branch ref was created. If the pull
        request is rejected after that, the new branch is deleted again.
        """
        if not files:
            raise SubmissionError("No files to submit")

        branch_created = False
        try:
            if not base_branch:
                repo_data = await self.get_repository(repo)
                base_branch = repo_data.get("default_branch", "main")

            ref = await self._request(
                "GET", f"/repos/{repo}/git/ref/heads/{quote(base_branch, safe='')}",
                "Failed to resolve base branch",
            )
            base_sha = ref["object"]["sha"]
            base_commit = await self._request(
                "GET", f"/repos/{repo}/git/commits/{base_sha}", "Failed to fetch base commit",
            )

            tree = await self._request(
                "POST", f"/repos/{repo}/git/trees", "Failed to create tree",
                json={
                    "base_tree": base_commit["tree"]["sha"],
                    "tree": [
                        {"path": path, "mode": "100644", "type": "blob", "content": content}
                        for path, content in files.items()
                    ],
                },
                expected=(201,),
            )
            commit = await self._request(
                "POST", f"/repos/{repo}/git/commits", "Failed to create commit",
                json={
                    "message": commit_message or title,
                    "tree": tree["sha"],
                    "parents": [base_sha],
                },
                expected=(201,),
            )
            await self._request(
                "POST", f"/repos/{repo}/git/refs", "Failed to create branch",
                json={"ref": f"refs/heads/{branch}", "sha": commit["sha"]},
                expected=(201,),
            )
            branch_created = True
            pull = await self._request(
                "POST", f"/repos/{repo}/pulls", "Failed to create pull request",
                json={"title": title, "head": branch, "base": base_branch, "body": body},
                expected=(201,),
            )
            result = {"number": pull["number"], "url": pull["html_url"], "branch": branch}
        except (FetchError, ValidationError) as e:
            log_error(f"Change set for {repo} rejected", "github", e)
            if branch_created:
                await self._delete_branch(repo, branch)
            raise SubmissionError(e.message, details=getattr(e, "details", None)) from e
        except (KeyError, TypeError) as e:
            log_error(f"Unexpected GitHub response while submitting to {repo}", "github", e)
            if branch_created:
                await self._delete_branch(repo, branch)
            raise SubmissionError("Unexpected GitHub response while submitting tests", details=str(e)) from e

        log_info(f"Opened pull request #{result['number']} on {repo} ({len(files)} files)", "github")
        return result

    async def _delete_branch(self, repo: str, branch: str):
        try:
            await self._request(
                "DELETE", f"/repos/{repo}/git/refs/heads/{branch}", "Failed to delete branch",
                expected=(204,),
            )
        except FetchError as e:
            log_warning(f"Branch {branch} left on {repo}: {e.message}", "github")
