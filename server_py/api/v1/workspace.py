"""Workspace API router: tree browsing, selection, generation and submission."""
from fastapi import APIRouter, Depends, HTTPException

from core.logging import log_info, log_error
from repositories import session_repository, SessionRepository
from schemas.requests import (
    CredentialsRequest, PathRequest, SelectRepositoryRequest, SubmitRequest,
)
from services.session import SessionContext
from utils.exceptions import RepoTestGenException, to_http_exception, internal_error, not_found

router = APIRouter(prefix="/workspace", tags=["workspace"])


def get_session_repository() -> SessionRepository:
    return session_repository


def get_session(session_id: str, sessions: SessionRepository = Depends(get_session_repository)) -> SessionContext:
    return sessions.get_or_create(session_id)


def _tree_response(session: SessionContext) -> dict:
    return {"repository": session.repository_name, "nodes": session.tree.snapshot()}


def _selection_response(session: SessionContext) -> dict:
    refs = session.selection.materialize(session.tree)
    return {
        "paths": sorted(session.selection.paths),
        "files": [ref.model_dump(exclude={"content"}) for ref in refs],
    }


@router.post("/{session_id}/credentials")
async def set_credentials(request: CredentialsRequest, session: SessionContext = Depends(get_session)):
    """Store the GitHub token and/or GenAI key for this session."""
    session.set_credentials(request.access_token, request.api_key)
    return {
        "has_access_token": bool(session.access_token),
        "has_api_key": bool(session.api_key),
    }


@router.post("/{session_id}/repository")
async def select_repository(request: SelectRepositoryRequest, session: SessionContext = Depends(get_session)):
    """Switch repository and list its root."""
    try:
        repository = session.select_repository(request.full_name, request.default_branch)
        await session.tree.load_root()
        return {"repository": repository.model_dump(), "nodes": session.tree.snapshot()}
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error(f"Error selecting repository {request.full_name}", "api", e)
        raise internal_error("Failed to load repository")


@router.post("/{session_id}/tree/expand")
async def expand_directory(request: PathRequest, session: SessionContext = Depends(get_session)):
    """List a directory on first expansion."""
    try:
        session.require_repository()
        children = await session.tree.expand(request.path)
        return {
            "path": request.path,
            "children": [child.model_dump(exclude={"children"}, mode="json") for child in children],
        }
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error(f"Error expanding {request.path}", "api", e)
        raise internal_error("Failed to expand directory")


@router.get("/{session_id}/tree")
async def get_tree(session: SessionContext = Depends(get_session)):
    return _tree_response(session)


@router.post("/{session_id}/selection/toggle")
async def toggle_selection(request: PathRequest, session: SessionContext = Depends(get_session)):
    selected = session.selection.toggle(request.path)
    return {"path": request.path, "selected": selected, **_selection_response(session)}


@router.post("/{session_id}/selection/all")
async def select_all(session: SessionContext = Depends(get_session)):
    """Select every code file among the directories listed so far."""
    session.selection.select_all(session.tree)
    return _selection_response(session)


@router.delete("/{session_id}/selection")
async def clear_selection(session: SessionContext = Depends(get_session)):
    session.selection.clear()
    return _selection_response(session)


@router.get("/{session_id}/selection")
async def get_selection(session: SessionContext = Depends(get_session)):
    return _selection_response(session)


@router.post("/{session_id}/summaries")
async def generate_summaries(session: SessionContext = Depends(get_session)):
    """Stage 1: propose test plans for the selected files."""
    try:
        api_key = session.require_api_key()
        refs = session.selection.materialize(session.tree)
        await session.orchestrator.generate_summaries(
            refs, session.fetcher(), api_key, repository=session.repository_name,
        )
        return session.orchestrator.snapshot().model_dump(mode="json")
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error("Error generating test summaries", "api", e)
        raise internal_error("Failed to generate test summaries")


@router.post("/{session_id}/plans/{plan_id}/generate")
async def generate_test(plan_id: str, session: SessionContext = Depends(get_session)):
    """Stage 2: produce the test file for one plan."""
    try:
        api_key = session.require_api_key()
        refs = session.selection.materialize(session.tree)
        artifact = await session.orchestrator.generate_artifact(plan_id, refs, session.fetcher(), api_key)
        return artifact.model_dump()
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error(f"Error generating test code for {plan_id}", "api", e)
        raise internal_error("Failed to generate test code")


@router.get("/{session_id}/pipeline")
async def get_pipeline(session: SessionContext = Depends(get_session)):
    return session.orchestrator.snapshot().model_dump(mode="json")


@router.post("/{session_id}/submit")
async def submit_tests(request: SubmitRequest, session: SessionContext = Depends(get_session)):
    """Open one pull request with every ready test file."""
    try:
        session.require_repository()
        result = await session.submission.submit(
            session.orchestrator.ready_artifacts(), title=request.title, body=request.body,
        )
        return result.model_dump()
    except HTTPException:
        raise
    except RepoTestGenException as e:
        raise to_http_exception(e)
    except Exception as e:
        log_error("Error submitting generated tests", "api", e)
        raise internal_error("Failed to submit tests")


@router.delete("/{session_id}")
async def delete_session(session_id: str, sessions: SessionRepository = Depends(get_session_repository)):
    if not sessions.delete(session_id):
        raise not_found("Session")
    log_info(f"Deleted workspace session {session_id}", "api")
    return {"success": True}
