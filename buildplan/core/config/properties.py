"""
Property file reader — Java-style ``key=value`` files (local.properties).

Handles:
- key=value, key: value, key value
- Comments (# and !)
- Empty lines
- Backslash line continuations
- Escapes (\\t, \\n, \\r, \\f, \\uXXXX, and \\<char> for any other char)
"""

from __future__ import annotations

import logging
import string
from pathlib import Path

from buildplan.core.errors import ConfigError

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def load_properties(path: Path) -> dict[str, str]:
    """Read a property file into a key/value dict.

    A missing file yields an empty dict so that the caller reports the
    missing key rather than the missing file.

    Raises:
        ConfigError: If the file exists but cannot be read or decoded.
    """
    if not path.is_file():
        logger.warning("Property file %s not found", path)
        return {}

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    props = parse_properties(content)
    logger.debug("Loaded %d properties from %s", len(props), path)
    return props


def parse_properties(content: str) -> dict[str, str]:
    """Parse property file content. Later keys override earlier ones."""
    result: dict[str, str] = {}
    for line in _logical_lines(content):
        key, value = _split_key_value(line)
        result[_unescape(key)] = _unescape(value)
    return result


def _logical_lines(content: str):
    """Yield logical lines: comments dropped, continuations joined."""
    pending: str | None = None
    for raw in content.splitlines():
        line = raw.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue

        # An odd number of trailing backslashes continues the line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        yield (pending or "") + line
        pending = None

    if pending is not None:
        yield pending


def _split_key_value(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\":
            i += 2
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            break
        i += 1

    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text

    out: list[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char != "\\":
            out.append(char)
            i += 1
            continue

        i += 1
        if i >= len(text):
            break
        char = text[i]
        if char == "u":
            digits = text[i + 1 : i + 5]
            try:
                if len(digits) != 4 or not all(c in string.hexdigits for c in digits):
                    raise ValueError(digits)
                out.append(chr(int(digits, 16)))
            except ValueError as e:
                raise ConfigError(f"Malformed \\uxxxx escape in property: {text!r}") from e
            i += 5
            continue

        out.append(_ESCAPES.get(char, char))
        i += 1

    return "".join(out)
