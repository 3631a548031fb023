"""Bundled validator namespace handed to ``FnBuilder.build``.

Every schema here exposes the two entry points a guarded function needs:
``parse(value)`` which raises on failure, and ``parse_async(value)`` which
returns a coroutine. Type checks are delegated to pydantic (``of``, ``string``,
``number``, ...) or to jsonschema Draft 7 (``json_schema``). Refinements and
transforms are layered on top and may be async callables, in which case only
``parse_async`` can run them.

Example:
    from guardfn import schema as s

    positive = s.number().refine(lambda v: v > 0, "Number must be positive")
    doubled = s.integer().transform(lambda v: v * 2)
"""

import copy
import inspect
import json
from collections.abc import Callable
from typing import Any

import jsonschema
from jsonschema import Draft7Validator
from pydantic import TypeAdapter, ValidationError

from guardfn.executor.awaitables import discard
from guardfn.executor.errors import configuration_error

ASYNC_PARSE_MESSAGE = "Encountered Promise during synchronous parse. Use .parse_async() instead."


class SchemaParseError(ValueError):
    """Raised when a value does not satisfy a schema.

    The message is the JSON encoding of ``issues`` so that callers which only
    see the message can still recover the structured issue list.

    Attributes:
        issues: Ordered list of ``{"message": str, "path": list}`` dicts
    """

    def __init__(self, issues: list[dict[str, Any]]) -> None:
        self.issues = issues
        super().__init__(json.dumps(issues, indent=2, default=str))


class AsyncParseError(RuntimeError):
    """Raised when ``parse`` meets an async refinement or transform."""

    def __init__(self) -> None:
        super().__init__(ASYNC_PARSE_MESSAGE)


def _issue(message: str, path: Any = ()) -> dict[str, Any]:
    return {"message": message, "path": list(path)}


class Schema:
    """Base schema: a core check followed by refine/transform steps, in order.

    Schemas are immutable; ``refine`` and ``transform`` return new schemas.
    """

    def __init__(self) -> None:
        self._steps: tuple[tuple[str, Callable[[Any], Any], str], ...] = ()

    def _check(self, value: Any) -> Any:
        return value

    def _extend(self, kind: str, fn: Callable[[Any], Any], message: str = "") -> "Schema":
        clone = copy.copy(self)
        clone._steps = self._steps + ((kind, fn, message),)
        return clone

    def refine(self, check: Callable[[Any], Any], message: str = "Invalid input") -> "Schema":
        """Add a predicate; a falsy result fails with ``message``."""
        return self._extend("refine", check, message)

    def transform(self, fn: Callable[[Any], Any]) -> "Schema":
        """Add a step that replaces the parsed value with ``fn(value)``."""
        return self._extend("transform", fn)

    @staticmethod
    def _apply(kind: str, value: Any, result: Any, message: str) -> Any:
        if kind == "transform":
            return result
        if not result:
            raise SchemaParseError([_issue(message)])
        return value

    def parse(self, value: Any) -> Any:
        """Validate ``value`` synchronously.

        Raises:
            SchemaParseError: If the value does not satisfy the schema
            AsyncParseError: If a step returned an awaitable
        """
        value = self._check(value)
        for kind, fn, message in self._steps:
            result = fn(value)
            if inspect.isawaitable(result):
                discard(result)
                raise AsyncParseError()
            value = self._apply(kind, value, result, message)
        return value

    async def parse_async(self, value: Any) -> Any:
        """Validate ``value``, awaiting async steps."""
        value = self._check(value)
        for kind, fn, message in self._steps:
            result = fn(value)
            if inspect.isawaitable(result):
                result = await result
            value = self._apply(kind, value, result, message)
        return value


class TypeSchema(Schema):
    """Schema backed by a pydantic ``TypeAdapter``.

    Accepts anything pydantic can validate: builtins, generics, unions,
    ``BaseModel`` subclasses, dataclasses and ``Annotated`` types.
    """

    def __init__(self, tp: Any, strict: bool = False) -> None:
        super().__init__()
        self._adapter = TypeAdapter(tp)
        self._strict = strict or None

    def _check(self, value: Any) -> Any:
        try:
            return self._adapter.validate_python(value, strict=self._strict)
        except ValidationError as e:
            raise SchemaParseError([_issue(err["msg"], err["loc"]) for err in e.errors()]) from e


class NumberSchema(TypeSchema):
    """Strict number check that hands back the value it was given.

    pydantic's strict ``float`` accepts ``int`` input but converts it, which
    would lose precision above 2**53 and break callers that need an ``int``.
    """

    def __init__(self) -> None:
        super().__init__(float, strict=True)

    def _check(self, value: Any) -> Any:
        super()._check(value)
        return value


class JsonSchema(Schema):
    """Schema backed by a JSON Schema (Draft 7) document."""

    def __init__(self, document: dict[str, Any]) -> None:
        super().__init__()
        try:
            Draft7Validator.check_schema(document)
        except jsonschema.exceptions.SchemaError as e:
            # Schema itself is malformed
            raise configuration_error(f"Schema is malformed: {e.message}") from e
        self._validator = Draft7Validator(document)

    def _check(self, value: Any) -> Any:
        errors = list(self._validator.iter_errors(value))
        if errors:
            raise SchemaParseError([_issue(err.message, err.absolute_path) for err in errors])
        return value


def of(tp: Any, strict: bool = False) -> TypeSchema:
    return TypeSchema(tp, strict=strict)


def string() -> TypeSchema:
    return TypeSchema(str, strict=True)


def number() -> NumberSchema:
    """Accepts ``int`` and ``float`` unchanged, rejects numeric strings."""
    return NumberSchema()


def integer() -> TypeSchema:
    return TypeSchema(int, strict=True)


def boolean() -> TypeSchema:
    return TypeSchema(bool, strict=True)


def json_schema(document: dict[str, Any]) -> JsonSchema:
    """Build a schema from a JSON Schema document.

    Raises:
        GuardFnError: With code CONFIGURATION if the document is malformed
    """
    return JsonSchema(document)
