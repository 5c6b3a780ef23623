import json

import httpx
import pytest

from conftest import RecordingRouter, encoded_file, json_response
from services.github_client import GitHubClient
from utils.exceptions import (
    ContentTypeError, DirectoryExpectedError, FetchError, SubmissionError, ValidationError,
)

BASE = "https://api.github.test"


def _client(router):
    return GitHubClient("tok123", base_url=BASE, transport=router.transport())


@pytest.mark.asyncio
async def test_list_directory_returns_plain_entries():
    router = RecordingRouter({
        ("GET", "/repos/octo/demo/contents/src"): json_response(200, [
            {"name": "index.ts", "path": "src/index.ts", "type": "file", "size": 42},
            {"name": "lib", "path": "src/lib", "type": "dir", "size": 0},
            {"name": "link", "path": "src/link", "type": "symlink", "size": 5},
            {"name": "vendor", "path": "src/vendor", "type": "submodule", "size": 0},
        ]),
    })

    entries = await _client(router).list_directory("octo/demo", "/src/")

    assert entries == [
        {"name": "index.ts", "path": "src/index.ts", "type": "file", "size": 42},
        {"name": "lib", "path": "src/lib", "type": "dir", "size": 0},
    ]
    request = router.requests[0]
    assert request.headers["Authorization"] == "Bearer tok123"
    assert request.headers["Accept"] == "application/vnd.github.v3+json"


@pytest.mark.asyncio
async def test_list_directory_on_file_raises():
    router = RecordingRouter({
        ("GET", "/repos/octo/demo/contents/README.md"): json_response(200, encoded_file("README.md", "# hi")),
    })
    with pytest.raises(DirectoryExpectedError):
        await _client(router).list_directory("octo/demo", "README.md")


@pytest.mark.asyncio
async def test_get_file_content_decodes_base64():
    text = "export const greet = () => 'héllo';\n"
    router = RecordingRouter({
        ("GET", "/repos/octo/demo/contents/src/greet.ts"): json_response(200, encoded_file("src/greet.ts", text)),
    })
    assert await _client(router).get_file_content("octo/demo", "src/greet.ts") == text


@pytest.mark.asyncio
async def test_get_file_content_on_directory_raises():
    router = RecordingRouter({
        ("GET", "/repos/octo/demo/contents/src"): json_response(200, []),
    })
    with pytest.raises(ContentTypeError):
        await _client(router).get_file_content("octo/demo", "src")


@pytest.mark.asyncio
async def test_unauthorized_carries_status_code():
    router = RecordingRouter({("GET", "/user"): json_response(401, {"message": "Bad credentials"})})
    with pytest.raises(FetchError) as excinfo:
        await _client(router).get_user()
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_transport_error_becomes_fetch_error():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = GitHubClient("tok", base_url=BASE, transport=httpx.MockTransport(boom))
    with pytest.raises(FetchError) as excinfo:
        await client.list_repositories()
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_invalid_repository_name():
    router = RecordingRouter({})
    with pytest.raises(ValidationError):
        await _client(router).list_directory("not a repo")
    assert router.requests == []


def _change_set_routes(pull_status=201):
    return {
        ("GET", "/repos/octo/demo"): json_response(200, {"default_branch": "develop"}),
        ("GET", "/repos/octo/demo/git/ref/heads/develop"): json_response(200, {"object": {"sha": "base-sha"}}),
        ("GET", "/repos/octo/demo/git/commits/base-sha"): json_response(200, {"tree": {"sha": "base-tree"}}),
        ("POST", "/repos/octo/demo/git/trees"): json_response(201, {"sha": "new-tree"}),
        ("POST", "/repos/octo/demo/git/commits"): json_response(201, {"sha": "new-commit"}),
        ("POST", "/repos/octo/demo/git/refs"): json_response(201, {"ref": "refs/heads/testgen/x"}),
        ("POST", "/repos/octo/demo/pulls"): json_response(
            pull_status, {"number": 12, "html_url": "https://github.com/octo/demo/pull/12"},
        ),
    }


@pytest.mark.asyncio
async def test_create_change_set_commits_all_files_once():
    router = RecordingRouter(_change_set_routes())
    files = {"generated-tests/a.test.js": "a()", "generated-tests/b.test.js": "b()"}

    result = await _client(router).create_change_set("octo/demo", files, branch="testgen/x", title="Add tests")

    assert result == {"number": 12, "url": "https://github.com/octo/demo/pull/12", "branch": "testgen/x"}
    posts = [r for r in router.requests if r.method == "POST"]
    assert [r.url.path for r in posts] == [
        "/repos/octo/demo/git/trees",
        "/repos/octo/demo/git/commits",
        "/repos/octo/demo/git/refs",
        "/repos/octo/demo/pulls",
    ]
    tree = json.loads(posts[0].content)
    assert tree["base_tree"] == "base-tree"
    assert {entry["path"]: entry["content"] for entry in tree["tree"]} == files
    commit = json.loads(posts[1].content)
    assert commit["parents"] == ["base-sha"]
    pull = json.loads(posts[3].content)
    assert pull["head"] == "testgen/x"
    assert pull["base"] == "develop"


@pytest.mark.asyncio
async def test_rejected_pull_request_becomes_submission_error():
    router = RecordingRouter(_change_set_routes(pull_status=422))
    with pytest.raises(SubmissionError):
        await _client(router).create_change_set("octo/demo", {"t.test.js": "t()"}, branch="testgen/x", title="t")


@pytest.mark.asyncio
async def test_rejected_pull_request_deletes_the_new_branch():
    routes = _change_set_routes(pull_status=422)
    routes[("DELETE", "/repos/octo/demo/git/refs/heads/testgen/x")] = httpx.Response(204)
    router = RecordingRouter(routes)

    with pytest.raises(SubmissionError):
        await _client(router).create_change_set("octo/demo", {"t.test.js": "t()"}, branch="testgen/x", title="t")

    assert (router.requests[-1].method, router.requests[-1].url.path) == (
        "DELETE", "/repos/octo/demo/git/refs/heads/testgen/x",
    )


@pytest.mark.asyncio
async def test_failed_branch_cleanup_still_raises_submission_error():
    router = RecordingRouter(_change_set_routes(pull_status=422))
    with pytest.raises(SubmissionError):
        await _client(router).create_change_set("octo/demo", {"t.test.js": "t()"}, branch="testgen/x", title="t")
    assert router.requests[-1].method == "DELETE"


@pytest.mark.asyncio
async def test_malformed_base_ref_becomes_submission_error():
    routes = _change_set_routes()
    routes[("GET", "/repos/octo/demo/git/ref/heads/develop")] = json_response(200, {"object": {}})
    router = RecordingRouter(routes)

    with pytest.raises(SubmissionError):
        await _client(router).create_change_set("octo/demo", {"t.test.js": "t()"}, branch="testgen/x", title="t")
    assert not any(r.method == "POST" for r in router.requests)


@pytest.mark.asyncio
async def test_pull_response_without_url_becomes_submission_error():
    routes = _change_set_routes()
    routes[("POST", "/repos/octo/demo/pulls")] = json_response(201, {"number": 12})
    routes[("DELETE", "/repos/octo/demo/git/refs/heads/testgen/x")] = httpx.Response(204)
    router = RecordingRouter(routes)

    with pytest.raises(SubmissionError):
        await _client(router).create_change_set("octo/demo", {"t.test.js": "t()"}, branch="testgen/x", title="t")
    assert router.requests[-1].method == "DELETE"


@pytest.mark.asyncio
async def test_create_change_set_rejects_empty_files():
    router = RecordingRouter({})
    with pytest.raises(SubmissionError):
        await _client(router).create_change_set("octo/demo", {}, branch="testgen/x", title="t")
    assert router.requests == []
