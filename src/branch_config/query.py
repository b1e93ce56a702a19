"""jq-style queries over the stored configuration document.

Two evaluators are provided. ``NativeEvaluator`` understands the path subset
of the jq language that configuration lookups need::

    .                   whole document
    .name  .a.b         fields
    ."odd key"          quoted field
    .["key"]  .[0]      bracket field / index (negative counts from the end)
    .[]                 every element or value
    .a?                 no error if the input has the wrong type
    a | b               feed each match of a into b
    keys  length        built-ins

``JqEvaluator`` hands the document to an installed ``jq`` binary instead.

Either way a failed query is logged and reported as an empty result.
"""

import json
import logging
import re
import shutil
import subprocess
from collections.abc import Iterator
from typing import Any
from typing import Protocol

import yaml

from .exceptions import QueryEvaluationError
from .models import ConfigHandle
from .models import OutputFormat
from .storage import read_raw

logger = logging.getLogger(__name__)

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INTEGER = re.compile(r"-?[0-9]+")
_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')


class Evaluator(Protocol):
    """Evaluates a selector against a parsed document."""

    def evaluate(self, document: Any, selector: str) -> list[Any]:
        """Return every value the selector matches, in order."""
        ...


class NativeEvaluator:
    """In-process evaluator for the jq path subset."""

    def evaluate(self, document: Any, selector: str) -> list[Any]:
        pipeline = _SelectorParser(selector).parse()
        stream: list[Any] = [document]
        for term in pipeline:
            stream = [out for value in stream for out in _apply_term(term, value)]
        return stream


class JqEvaluator:
    """Evaluator that runs the external ``jq`` program.

    Args:
        executable: Name or path of the jq binary
    """

    def __init__(self, executable: str = "jq"):
        self.executable = executable

    def evaluate(self, document: Any, selector: str) -> list[Any]:
        binary = shutil.which(self.executable)
        if binary is None:
            raise QueryEvaluationError(f"{self.executable} not found on PATH")

        try:
            payload = json.dumps(_jsonable(document), default=str)
        except (TypeError, ValueError) as e:
            raise QueryEvaluationError(f"Cannot convert document to JSON: {e}") from e
        logger.debug(f"Running {binary} -c {selector!r}")
        try:
            proc = subprocess.run(
                [binary, "-c", selector],
                input=payload,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise QueryEvaluationError(f"Failed to run {binary}: {e}") from e

        if proc.returncode != 0:
            raise QueryEvaluationError(proc.stderr.strip() or f"{binary} exited with {proc.returncode}")

        try:
            return [json.loads(line) for line in proc.stdout.splitlines() if line.strip()]
        except json.JSONDecodeError as e:
            raise QueryEvaluationError(f"Unexpected output from {binary}: {e}") from e


def render(values: list[Any], output_format: OutputFormat = OutputFormat.JSON) -> str:
    """Format matches as text, one per line.

    Strings are written raw, like ``jq -r``.

    Args:
        values: Query matches
        output_format: JSON or YAML rendering for non-string values

    Returns:
        Formatted text with surrounding whitespace removed
    """
    lines = []
    for value in values:
        if isinstance(value, str):
            lines.append(value)
        elif output_format is OutputFormat.YAML and isinstance(value, (dict, list)):
            lines.append(
                yaml.safe_dump(value, default_flow_style=False, sort_keys=False, allow_unicode=True).rstrip()
            )
        elif output_format is OutputFormat.YAML:
            lines.append(json.dumps(value, ensure_ascii=False, default=str))
        else:
            lines.append(_to_json(value))
    return "\n".join(lines).strip()


def _to_json(value: Any) -> str:
    return json.dumps(_jsonable(value), indent=2, sort_keys=True, ensure_ascii=False, default=str)


def _jsonable(value: Any) -> Any:
    """Copy value with every mapping key turned into a JSON object key.

    YAML allows keys such as dates, numbers and booleans; JSON only strings.
    """
    if isinstance(value, dict):
        return {_json_key(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def _json_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (bool, int, float)):
        return json.dumps(key)
    return str(key)


def evaluate(
    document: Any,
    selector: str,
    output_format: OutputFormat = OutputFormat.JSON,
    evaluator: Evaluator | None = None,
) -> str:
    """Evaluate selector against document and format the matches.

    Args:
        document: Parsed configuration document
        selector: jq-style selector
        output_format: Rendering of the matches
        evaluator: Back-end (default: NativeEvaluator)

    Returns:
        Formatted matches

    Raises:
        QueryEvaluationError: If the selector is malformed or fails
    """
    evaluator = evaluator or NativeEvaluator()
    return render(evaluator.evaluate(document, selector), output_format)


def query(
    handle: ConfigHandle,
    selector: str,
    output_format: OutputFormat = OutputFormat.JSON,
    evaluator: Evaluator | None = None,
) -> str:
    """Query the stored configuration document.

    Args:
        handle: Store to query
        selector: jq-style selector
        output_format: Rendering of the matches
        evaluator: Back-end (default: NativeEvaluator)

    Returns:
        Formatted matches; empty if the document is empty, nothing matched,
        or the query failed (failures are logged)
    """
    data = read_raw(handle)
    if not data:
        return ""

    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse configuration for {handle.id!r}: {e}")
        return ""

    try:
        return evaluate(document, selector, output_format, evaluator)
    except QueryEvaluationError as e:
        logger.warning(f"Query {selector!r} failed for {handle.id!r}: {e}")
        return ""


# ===== Native selector implementation =====

# Steps are (kind, argument, optional) tuples:
#   ("field", name, opt)  ("index", n, opt)  ("iterate", None, opt)  ("builtin", name, False)


class _SelectorParser:
    """Recursive-descent parser producing a list of terms (lists of steps)."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> list[list[tuple]]:
        terms = [self._term()]
        self._skip_space()
        while self._peek() == "|":
            self.pos += 1
            terms.append(self._term())
            self._skip_space()
        if self.pos != len(self.text):
            self._fail("unexpected input")
        return terms

    def _term(self) -> list[tuple]:
        self._skip_space()
        name = self._match(_IDENT)
        if name is not None:
            if name not in ("keys", "length"):
                self._fail(f"unknown function {name}")
            return [("builtin", name, False)]

        if self._peek() != ".":
            self._fail("expected '.'")
        self.pos += 1

        steps: list[tuple] = []
        # First segment may follow the leading dot directly: .a ."a" .[0]
        if self._peek() == "[":
            steps.append(self._bracket())
        elif self._peek() is not None and (self._peek() == '"' or _IDENT.match(self.text, self.pos)):
            steps.append(self._field())

        while True:
            char = self._peek()
            if char == "[":
                steps.append(self._bracket())
            elif char == ".":
                self.pos += 1
                if self._peek() == "[":
                    steps.append(self._bracket())
                else:
                    steps.append(self._field())
            else:
                return steps

    def _field(self) -> tuple:
        if self._peek() == '"':
            name = self._string()
        else:
            name = self._match(_IDENT)
            if name is None:
                self._fail("expected field name")
        return ("field", name, self._optional())

    def _bracket(self) -> tuple:
        self.pos += 1
        self._skip_space()
        char = self._peek()
        if char == "]":
            self.pos += 1
            return ("iterate", None, self._optional())
        if char == '"':
            step = ("field", self._string())
        else:
            number = self._match(_INTEGER)
            if number is None:
                self._fail("expected index, string or ']'")
            step = ("index", int(number))
        self._skip_space()
        if self._peek() != "]":
            self._fail("expected ']'")
        self.pos += 1
        return (*step, self._optional())

    def _string(self) -> str:
        match = _STRING.match(self.text, self.pos)
        if match is None:
            self._fail("unterminated string")
        self.pos = match.end()
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            self._fail("invalid string escape")

    def _optional(self) -> bool:
        if self._peek() == "?":
            self.pos += 1
            return True
        return False

    def _match(self, pattern: re.Pattern) -> str | None:
        match = pattern.match(self.text, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return match.group(0)

    def _peek(self) -> str | None:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def _skip_space(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _fail(self, message: str):
        raise QueryEvaluationError(f"{message} at position {self.pos} in selector {self.text!r}")


def _apply_term(term: list[tuple], value: Any) -> Iterator[Any]:
    stream: list[Any] = [value]
    for step in term:
        stream = [out for item in stream for out in _apply_step(step, item)]
    yield from stream


def _apply_step(step: tuple, value: Any) -> Iterator[Any]:
    kind, arg, optional = step
    try:
        if kind == "field":
            yield from _field(value, arg)
        elif kind == "index":
            yield from _index(value, arg)
        elif kind == "iterate":
            yield from _iterate(value)
        else:
            yield _builtin(value, arg)
    except QueryEvaluationError:
        if not optional:
            raise


def _field(value: Any, name: str) -> Iterator[Any]:
    if value is None:
        return
    if not isinstance(value, dict):
        raise QueryEvaluationError(f"Cannot index {_type_name(value)} with {name!r}")
    if name in value:
        yield value[name]


def _index(value: Any, index: int) -> Iterator[Any]:
    if value is None:
        return
    if not isinstance(value, list):
        raise QueryEvaluationError(f"Cannot index {_type_name(value)} with number")
    if -len(value) <= index < len(value):
        yield value[index]


def _iterate(value: Any) -> Iterator[Any]:
    if isinstance(value, list):
        yield from value
    elif isinstance(value, dict):
        yield from value.values()
    else:
        raise QueryEvaluationError(f"Cannot iterate over {_type_name(value)}")


def _builtin(value: Any, name: str) -> Any:
    if name == "keys":
        if isinstance(value, dict):
            return sorted(value, key=str)
        if isinstance(value, list):
            return list(range(len(value)))
        raise QueryEvaluationError(f"{_type_name(value)} has no keys")

    # length
    if value is None:
        return 0
    if isinstance(value, bool):
        raise QueryEvaluationError("boolean has no length")
    if isinstance(value, (int, float)):
        return abs(value)
    if isinstance(value, (str, list, dict)):
        return len(value)
    raise QueryEvaluationError(f"{_type_name(value)} has no length")


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__
