"""Filename helpers: denylist matching, language detection, test file naming."""
from typing import Iterable

from core.constants import (
    IGNORED_PATHS, LANGUAGE_BY_EXTENSION,
    TEST_FILE_EXTENSIONS, DEFAULT_TEST_FILE_EXTENSION,
)


def _matches_pattern(name: str, pattern: str) -> bool:
    if '*' not in pattern:
        return name.startswith(pattern)
    prefix, _, suffix = pattern.partition('*')
    return (
        len(name) >= len(prefix) + len(suffix)
        and name.startswith(prefix)
        and name.endswith(suffix)
    )


def is_ignored(name: str, path: str, patterns: Iterable[str] = IGNORED_PATHS) -> bool:
    """True if the entry name or one of its parent directories is denylisted.

    Names match by prefix or single-`*` glob; parent segments must match whole.
    """
    parents = path.strip('/').split('/')[:-1]
    for pattern in patterns:
        if _matches_pattern(name, pattern):
            return True
        for segment in parents:
            if segment == pattern or ('*' in pattern and _matches_pattern(segment, pattern)):
                return True
    return False


def get_language(filename: str) -> str:
    """Language label for a filename, or '' when the extension is unknown."""
    if '.' not in filename:
        return ''
    ext = filename.rsplit('.', 1)[-1].lower()
    return LANGUAGE_BY_EXTENSION.get(ext, '')


def get_test_file_extension(framework: str) -> str:
    return TEST_FILE_EXTENSIONS.get((framework or '').strip().lower(), DEFAULT_TEST_FILE_EXTENSION)


def derive_test_filename(file_name: str, framework: str) -> str:
    """Build ``<base>.test<ext>`` from a referenced source file name.

    ``<base>`` is the last path segment up to its first dot.
    """
    base = (file_name or '').strip().replace('\\', '/').split('/')[-1].split('.')[0]
    return f"{base or 'test'}.test{get_test_file_extension(framework)}"
