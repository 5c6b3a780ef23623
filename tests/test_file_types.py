import pytest

from utils.file_types import derive_test_filename, get_language, get_test_file_extension, is_ignored


@pytest.mark.parametrize("name,path", [
    (".git", ".git"),
    ("sub", "node_modules/sub"),
    ("build", "build"),
    ("app.min.js", "app.min.js"),
    ("vendor.bundle.js", "static/vendor.bundle.js"),
    (".env.local", ".env.local"),
    ("debug.log", "logs/debug.log"),
    ("index.js", "src/node_modules/pkg/index.js"),
])
def test_denylisted_entries_are_ignored(name, path):
    assert is_ignored(name, path)


@pytest.mark.parametrize("name,path", [
    ("index.ts", "src/index.ts"),
    ("src", "src"),
    ("x.js", "mybuild/x.js"),
    ("README.md", "README.md"),
])
def test_regular_entries_are_kept(name, path):
    assert not is_ignored(name, path)


def test_get_language():
    assert get_language("index.TS") == "TypeScript"
    assert get_language("App.jsx") == "React"
    assert get_language("main.py") == "Python"
    assert get_language("README.md") == ""
    assert get_language("Makefile") == ""


def test_test_file_extension_is_case_insensitive():
    assert get_test_file_extension("Jest") == ".js"
    assert get_test_file_extension(" PyTest ") == ".py"
    assert get_test_file_extension("React Testing Library") == ".jsx"
    assert get_test_file_extension("Something Else") == ".js"


@pytest.mark.parametrize("file_name,framework,expected", [
    ("src/index.ts", "Jest", "index.test.js"),
    ("index.ts", "Vitest", "index.test.js"),
    ("Button.tsx", "React Testing Library", "Button.test.jsx"),
    ("utils.py", "pytest", "utils.test.py"),
    ("app.module.ts", "JUnit", "app.test.java"),
    ("login.ts", "Cypress", "login.test.cy.js"),
    ("", "Unknown", "test.test.js"),
])
def test_derive_test_filename(file_name, framework, expected):
    assert derive_test_filename(file_name, framework) == expected
