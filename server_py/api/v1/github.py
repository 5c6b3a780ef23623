"""GitHub browsing API router (stateless, token passed per request)."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from core.logging import log_error
from services.github_client import GitHubClient
from services.tree_store import build_nodes
from utils.exceptions import RepoTestGenException, to_http_exception, unauthorized, internal_error

router = APIRouter(prefix="/github", tags=["github"])


def get_bearer_token(request: Request) -> str:
    """Extract the GitHub token from ``Authorization: Bearer <token>``."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise unauthorized("GitHub access token required")
    return token.strip()


def get_github_client(token: str = Depends(get_bearer_token)) -> GitHubClient:
    return GitHubClient(token)


@router.get("/user")
async def get_user(client: GitHubClient = Depends(get_github_client)):
    """Authenticated GitHub user."""
    try:
        user = await client.get_user()
        return {
            "login": user.get("login"),
            "name": user.get("name"),
            "avatar_url": user.get("avatar_url"),
            "html_url": user.get("html_url"),
        }
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error("Error fetching GitHub user", "api", e)
        raise internal_error("Failed to fetch user")


@router.get("/repositories")
async def get_repositories(client: GitHubClient = Depends(get_github_client)):
    """Repositories of the authenticated user, most recently updated first."""
    try:
        repos = await client.list_repositories()
        return [
            {
                "id": repo.get("id"),
                "name": repo.get("name"),
                "full_name": repo.get("full_name"),
                "private": repo.get("private", False),
                "description": repo.get("description"),
                "default_branch": repo.get("default_branch", "main"),
                "html_url": repo.get("html_url"),
            }
            for repo in repos
        ]
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error("Error fetching repositories", "api", e)
        raise internal_error("Failed to fetch repositories")


@router.get("/files")
async def get_files(repo: str, path: Optional[str] = "", client: GitHubClient = Depends(get_github_client)):
    """One directory level, filtered and in display order."""
    try:
        entries = await client.list_directory(repo, path or "")
        return [node.model_dump(exclude={"children"}, mode="json") for node in build_nodes(entries)]
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error(f"Error listing {repo}:{path}", "api", e)
        raise internal_error("Failed to fetch files")


@router.get("/file-content")
async def get_file_content(repo: str, path: str, client: GitHubClient = Depends(get_github_client)):
    """Decoded text of one file."""
    try:
        content = await client.get_file_content(repo, path)
        return {"path": path, "content": content}
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error(f"Error fetching {repo}:{path}", "api", e)
        raise internal_error("Failed to fetch file content")
