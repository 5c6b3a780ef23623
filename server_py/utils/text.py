"""JSON parsing and text cleanup utilities for model output."""
import json
import re
from typing import Any, Iterator, List, Optional

_CODE_FENCE_PATTERN = re.compile(r'^```[\w.+#-]*[ \t]*\n?|\n?```\s*$')
_SLUG_PATTERN = re.compile(r'[^a-z0-9]+')


def _fix_json_escape_sequences(text: str) -> str:
    r"""Fix invalid escape sequences in JSON strings.

    Replaces backslashes that are not part of valid JSON escape sequences.
    Valid JSON escapes: \", \\, \/, \b, \f, \n, \r, \t, \uXXXX
    """
    result = []
    i = 0
    in_string = False

    while i < len(text):
        char = text[i]

        # Track if we're inside a string
        if char == '"' and (i == 0 or text[i-1] != '\\'):
            in_string = not in_string
            result.append(char)
            i += 1
            continue

        # Only fix escapes inside strings
        if in_string and char == '\\' and i + 1 < len(text):
            next_char = text[i + 1]
            if next_char in ('"', '\\', '/', 'b', 'f', 'n', 'r', 't'):
                result.append(char)
                result.append(next_char)
                i += 2
            elif next_char == 'u' and i + 5 < len(text) and all(c in '0123456789abcdefABCDEF' for c in text[i+2:i+6]):
                result.append(char)
                i += 1
            else:
                # Invalid escape sequence, escape the backslash
                result.append('\\\\')
                i += 1
        else:
            result.append(char)
            i += 1

    return ''.join(result)


def _remove_trailing_commas(text: str) -> str:
    """Remove trailing commas before closing brackets/braces in JSON.

    Handles cases like:
    - [1, 2, 3,] -> [1, 2, 3]
    - {"key": "value",} -> {"key": "value"}
    """
    return re.sub(r',(\s*[}\]])', r'\1', text)


def _fix_common_json_issues(text: str) -> str:
    """Fix common JSON formatting issues from AI responses."""
    text = _remove_trailing_commas(text)
    text = _fix_json_escape_sequences(text)
    return text


def _balanced_arrays(text: str) -> Iterator[str]:
    """Yield each balanced ``[...]`` substring, outermost first, left to right."""
    start = text.find('[')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = None
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == '[':
                depth += 1
            elif char == ']':
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end is None:
            # never closed; an array may still start after it
            start = text.find('[', start + 1)
            continue
        yield text[start:end + 1]
        start = text.find('[', end + 1)


def extract_json_array(text: str) -> Optional[List[Any]]:
    """Parse a balanced ``[...]`` substring that is a valid JSON array.

    An array of objects wins over an earlier array of scalars (``[1]`` in
    surrounding prose); otherwise the first valid array is returned.
    """
    first = None
    for candidate in _balanced_arrays(text):
        for attempt in (candidate, _fix_common_json_issues(candidate)):
            try:
                parsed = json.loads(attempt)
            except (json.JSONDecodeError, ValueError):
                continue
            if not isinstance(parsed, list):
                continue
            if parsed and all(isinstance(item, dict) for item in parsed):
                return parsed
            if first is None:
                first = parsed
            break
    return first


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence, then trim."""
    return _CODE_FENCE_PATTERN.sub('', text.strip()).strip()


def parse_json_array(text: str) -> List[Any]:
    """Parse a JSON array from AI response text.

    Tries the whole (fence-stripped) response first, then falls back to the
    first balanced ``[...]`` substring. Raises ``ValueError`` if neither works.
    """
    cleaned = strip_code_fences(text or "")

    try:
        parsed = json.loads(cleaned)
        if isinstance(parsed, list):
            return parsed
    except json.JSONDecodeError:
        pass

    extracted = extract_json_array(text or "")
    if extracted is not None:
        return extracted

    preview = text[:200] + "..." if len(text or "") > 200 else text
    raise ValueError(f"Failed to parse JSON array from response. Response preview: {preview}")


def slugify(value: str, fallback: str = "test-plan", max_length: int = 60) -> str:
    """Kebab-case slug of ``value``."""
    slug = _SLUG_PATTERN.sub('-', (value or '').lower()).strip('-')
    slug = slug[:max_length].rstrip('-')
    return slug or fallback
