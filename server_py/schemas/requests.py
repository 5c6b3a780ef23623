"""Pydantic schemas for API requests and responses."""
from pydantic import BaseModel
from typing import Optional


class CredentialsRequest(BaseModel):
    """Session credentials; omitted fields leave the stored value alone."""
    access_token: Optional[str] = None
    api_key: Optional[str] = None


class SelectRepositoryRequest(BaseModel):
    """Repository to browse in a workspace session."""
    full_name: str
    default_branch: Optional[str] = None


class PathRequest(BaseModel):
    """Request carrying a single repository path."""
    path: str


class SubmitRequest(BaseModel):
    """Optional overrides for the pull request opened on submit."""
    title: Optional[str] = None
    body: Optional[str] = None
