"""
Path queries over decoded JSON documents.

Implements a small tokenizer for dotted path expressions and an evaluator
that walks a document and returns a QueryResult. Supported syntax:

- ``a.b.c`` selects nested object keys
- ``a\\.b`` escapes a dot so the key ``a.b`` is one segment
- ``items.0`` selects an array element by index
- ``items.#`` returns the array length
- ``items.#.name`` evaluates ``name`` against every element
- ``*`` and ``?`` in a segment match the first key that fits the pattern
"""

import json
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, List, Union

from .exceptions import InvalidDocumentError, UnsupportedShapeError
from .models import QueryResult


@dataclass
class Token:
    """Represents a lexical token of a path expression."""
    type: str
    value: str
    position: int


class Tokenizer:
    """Tokenizes path expressions."""

    TOKEN_PATTERNS = [
        (re.compile(r'\\.', re.DOTALL), 'ESCAPE'),
        (re.compile(r'\\'), 'TEXT'),
        (re.compile(r'\.'), 'DOT'),
        (re.compile(r'[^.\\]+'), 'TEXT'),
    ]

    def __init__(self, path: str):
        """Initialize tokenizer with a path string."""
        self.path = path
        self.position = 0
        self.tokens: List[Token] = []
        self._tokenize()

    def _tokenize(self) -> None:
        while self.position < len(self.path):
            for regex, token_type in self.TOKEN_PATTERNS:
                match = regex.match(self.path, self.position)
                if match:
                    self.tokens.append(Token(token_type, match.group(0), self.position))
                    self.position = match.end()
                    break

    def get_tokens(self) -> List[Token]:
        """Return the list of tokens."""
        return self.tokens


@dataclass
class Segment:
    """One step of a path.

    Attributes:
        text: The unescaped key text
        pattern: fnmatch pattern equivalent of the segment
        is_wildcard: Whether an unescaped ``*`` or ``?`` is present
        escaped: Whether any character was escaped
    """
    text: str = ""
    pattern: str = ""
    is_wildcard: bool = False
    escaped: bool = False

    @property
    def is_count(self) -> bool:
        return self.text == '#' and not self.escaped

    @property
    def is_index(self) -> bool:
        return re.fullmatch(r'[0-9]+', self.text) is not None


def parse_path(path: str) -> List[Segment]:
    """Split a path expression into segments.

    Empty segments (leading, trailing or doubled dots) are dropped.
    """
    if not path:
        return []

    segments: List[Segment] = []
    current = Segment()

    for token in Tokenizer(path).get_tokens():
        if token.type == 'DOT':
            segments.append(current)
            current = Segment()
        elif token.type == 'ESCAPE':
            char = token.value[1]
            current.text += char
            current.pattern += f'[{char}]' if char in '*?[' else char
            current.escaped = True
        else:
            current.text += token.value
            current.pattern += token.value.replace('[', '[[]')
            if '*' in token.value or '?' in token.value:
                current.is_wildcard = True

    segments.append(current)
    return [s for s in segments if s.text]


def last_segment(path: str) -> str:
    """Return the final key of a path, used as a default field name."""
    segments = parse_path(path)
    if not segments:
        return ""
    return segments[-1].text


def _resolve(value: Any, segments: List[Segment]) -> QueryResult:
    current = value

    for i, segment in enumerate(segments):
        if isinstance(current, dict):
            if segment.is_wildcard:
                key = next(
                    (k for k in current if fnmatchcase(k, segment.pattern)),
                    None,
                )
                if key is None:
                    return QueryResult.missing()
                current = current[key]
            elif segment.text in current:
                current = current[segment.text]
            else:
                return QueryResult.missing()
        elif isinstance(current, list):
            if segment.is_count:
                rest = segments[i + 1:]
                if not rest:
                    return QueryResult.of(len(current))
                collected = []
                for item in current:
                    result = _resolve(item, rest)
                    if result.exists:
                        collected.append(result.value)
                return QueryResult.of(collected)
            if not segment.is_index:
                return QueryResult.missing()
            index = int(segment.text)
            if index >= len(current):
                return QueryResult.missing()
            current = current[index]
        else:
            return QueryResult.missing()

    return QueryResult.of(current)


def get(document: Any, path: str) -> QueryResult:
    """Evaluate a path against a decoded JSON document.

    Args:
        document: Decoded JSON value
        path: Path expression

    Returns:
        QueryResult, missing if the path matches nothing
    """
    segments = parse_path(path)
    if not segments:
        return QueryResult.missing()
    return _resolve(document, segments)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def loads(data: Union[bytes, bytearray, str]) -> Any:
    """Decode a JSON document.

    Nesting is bounded by the interpreter recursion limit.

    Raises:
        InvalidDocumentError: If the input is not valid UTF-8 JSON
        UnsupportedShapeError: If the document is nested too deeply to decode
    """
    try:
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode('utf-8')
        return json.loads(data, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidDocumentError(f"Invalid JSON provided, unable to parse: {e}") from e
    except RecursionError as e:
        raise UnsupportedShapeError("Document nested too deeply") from e


def valid(data: Union[bytes, bytearray, str]) -> bool:
    """Report whether the input is valid JSON that can be decoded."""
    try:
        loads(data)
    except (InvalidDocumentError, UnsupportedShapeError):
        return False
    return True
