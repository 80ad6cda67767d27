"""
Reading and writing Java-style ``.properties`` files.

Gradle loads ``key.properties`` and ``local.properties`` through
``java.util.Properties``; the parser here follows the same line format so a
file resolves to the same values on both sides.
"""

from __future__ import annotations

import os
import re
from typing import Dict, Iterator, List, Mapping, Tuple

from flashbuild.constants import PROPERTIES_ENCODING
from flashbuild.exceptions import PropertiesParseError
from flashbuild.log_utils import logger

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_CONTROL_ESCAPES = {value: "\\" + code for code, value in _ESCAPES.items()}
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _trailing_backslashes(line: str) -> int:
    count = 0
    for char in reversed(line):
        if char != "\\":
            break
        count += 1
    return count


def _logical_lines(text: str) -> Iterator[Tuple[int, str]]:
    """
    Yield (line_number, logical_line) pairs, joining continuation lines.
    """
    pending: List[str] = []
    start_line = 0
    for number, raw in enumerate(_LINE_BREAK.split(text), start=1):
        line = raw.lstrip(_WHITESPACE)
        if not pending:
            if not line or line[0] in "#!":
                continue
            start_line = number

        if _trailing_backslashes(line) % 2 == 1:
            pending.append(line[:-1])
            continue

        pending.append(line)
        yield start_line, "".join(pending)
        pending = []

    if pending:
        yield start_line, "".join(pending)


def _split_key_value(line: str) -> Tuple[str, str]:
    key_end = len(line)
    value_start = len(line)
    escaped = False
    for index, char in enumerate(line):
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            key_end = index
            value_start = index
            break

    # Skip whitespace, at most one separator, then whitespace again
    while value_start < len(line) and line[value_start] in _WHITESPACE:
        value_start += 1
    if value_start < len(line) and line[value_start] in _SEPARATORS:
        value_start += 1
    while value_start < len(line) and line[value_start] in _WHITESPACE:
        value_start += 1

    return line[:key_end], line[value_start:]


def _unescape(value: str, line_number: int) -> str:
    chars: List[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        index += 1
        if char != "\\":
            chars.append(char)
            continue
        if index >= len(value):
            break
        code = value[index]
        index += 1
        if code == "u":
            digits = value[index : index + 4]
            if len(digits) != 4 or any(
                d not in "0123456789abcdefABCDEF" for d in digits
            ):
                raise PropertiesParseError(
                    f"Malformed \\uxxxx encoding: \\u{digits}", line_number=line_number
                )
            chars.append(chr(int(digits, 16)))
            index += 4
        else:
            chars.append(_ESCAPES.get(code, code))
    # Join UTF-16 surrogate pairs produced by consecutive \u escapes
    return (
        "".join(chars)
        .encode("utf-16-le", "surrogatepass")
        .decode("utf-16-le", "surrogatepass")
    )


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse ``.properties`` text into a dictionary.

    Comment lines start with ``#`` or ``!``. Keys and values are separated by
    the first unescaped ``=``, ``:`` or whitespace. A line ending in an odd
    number of backslashes continues on the next line. Later duplicate keys
    override earlier ones.

    Raises:
        PropertiesParseError: If a ``\\u`` escape is malformed.
    """
    properties: Dict[str, str] = {}
    for line_number, line in _logical_lines(text):
        raw_key, raw_value = _split_key_value(line)
        key = _unescape(raw_key, line_number)
        properties[key] = _unescape(raw_value, line_number)
    return properties


def load_properties(path: str) -> Dict[str, str]:
    """
    Read and parse a properties file.

    The file is read completely and closed before parsing. Read failures such
    as a missing file or denied permission propagate as ``OSError``; they are
    not retried.
    """
    with open(path, "r", encoding=PROPERTIES_ENCODING, newline="") as handle:
        text = handle.read()
    try:
        properties = parse_properties(text)
    except PropertiesParseError as exc:
        exc.properties_path = path
        raise
    logger.debug("Loaded %d properties from %s", len(properties), path)
    return properties


def _escape(value: str, *, is_key: bool) -> str:
    chars: List[str] = []
    for index, char in enumerate(value):
        if char == "\\":
            chars.append("\\\\")
        elif char in _CONTROL_ESCAPES:
            chars.append(_CONTROL_ESCAPES[char])
        elif char in "=:#!":
            chars.append("\\" + char)
        elif char == " " and (is_key or index == 0):
            chars.append("\\ ")
        elif ord(char) > 0xFF:
            units = char.encode("utf-16-be")
            for offset in range(0, len(units), 2):
                chars.append(f"\\u{units[offset:offset + 2].hex()}")
        else:
            chars.append(char)
    return "".join(chars)


def format_properties(properties: Mapping[str, str]) -> str:
    """
    Render a mapping as ``key=value`` lines that parse back to the same mapping.
    """
    lines = [
        f"{_escape(key, is_key=True)}={_escape(value, is_key=False)}"
        for key, value in properties.items()
    ]
    return "".join(f"{line}\n" for line in lines)


def write_properties(path: str, properties: Mapping[str, str]) -> None:
    """
    Write a mapping to a properties file, creating parent directories.
    """
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding=PROPERTIES_ENCODING) as handle:
        handle.write(format_properties(properties))
