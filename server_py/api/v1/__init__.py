"""API v1 routers."""

from . import github
from . import workspace

__all__ = [
    "github",
    "workspace",
]
