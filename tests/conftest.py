"""Shared fixtures: in-memory GitHub and GenAI fakes."""
import base64
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from schemas.entities import FileReference
from utils.exceptions import ContentTypeError, DirectoryExpectedError, FetchError


class FakeGitHub:
    """In-memory stand-in for GitHubClient keyed by repository path.

    ``files`` maps a path to its text; directories are derived from the paths.
    """

    def __init__(self, files: Dict[str, str], failing: Optional[set] = None):
        self.files = files
        self.failing = failing or set()
        self.listed: List[str] = []
        self.fetched: List[str] = []
        self.change_sets: List[Dict[str, Any]] = []

    def _is_dir(self, path: str) -> bool:
        return path == "" or any(p.startswith(path + "/") for p in self.files)

    async def list_directory(self, repo: str, path: str = "") -> List[Dict[str, Any]]:
        self.listed.append(path)
        if path in self.files:
            raise DirectoryExpectedError(f"Path is not a directory: {path}")
        prefix = f"{path}/" if path else ""
        entries = {}
        for file_path in self.files:
            if not file_path.startswith(prefix):
                continue
            name = file_path[len(prefix):].split("/")[0]
            child = prefix + name
            entries[child] = {
                "name": name,
                "path": child,
                "type": "dir" if self._is_dir(child) else "file",
                "size": None if self._is_dir(child) else len(self.files[child]),
            }
        return list(entries.values())

    async def get_file_content(self, repo: str, path: str) -> str:
        self.fetched.append(path)
        if path in self.failing:
            raise FetchError("Failed to fetch file content: 500", status_code=500)
        if path not in self.files:
            raise ContentTypeError(f"Path is not a file: {path}")
        return self.files[path]

    async def create_change_set(self, repo, files, branch, title, body="", commit_message=None, base_branch=None):
        self.change_sets.append({"repo": repo, "files": files, "branch": branch, "title": title, "body": body})
        return {"number": 7, "url": f"https://github.com/{repo}/pull/7", "branch": branch}


class FakeAIService:
    """Returns queued responses in order and records every prompt."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    async def call_genai(self, prompt, api_key, task_name=None, temperature=None, max_tokens=None):
        self.calls.append({"prompt": prompt, "api_key": api_key, "task_name": task_name})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


SAMPLE_FILES = {
    "README.md": "# demo",
    "package.json": "{}",
    "src/index.ts": "export const add = (a: number, b: number) => a + b;\n",
    "src/utils/format.js": "export function format(x) { return String(x); }\n",
    "src/a/helper.py": "def helper():\n    return 1\n",
    "node_modules/lib/index.js": "module.exports = {};",
    "build/out.js": "compiled",
    "app.min.js": "minified",
}


@pytest.fixture
def fake_github():
    return FakeGitHub(dict(SAMPLE_FILES))


@pytest.fixture
def sample_refs():
    return [
        FileReference(name="index.ts", path="src/index.ts"),
        FileReference(name="format.js", path="src/utils/format.js"),
    ]


def json_response(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})


def encoded_file(path: str, text: str) -> Dict[str, Any]:
    return {
        "type": "file",
        "name": path.rsplit("/", 1)[-1],
        "path": path,
        "encoding": "base64",
        "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
    }


class RecordingRouter:
    """httpx.MockTransport handler that answers from a ``(method, path) -> response`` table."""

    def __init__(self, routes: Dict[tuple, httpx.Response]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return json_response(404, {"message": "Not Found"})
        return response

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)
