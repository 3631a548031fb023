"""SchemaValidator: argument and return value validation for guarded functions.

Any object with a callable ``parse_async`` is accepted as a schema. Validator
failures are classified once, as a structured issue list or as an opaque
message, and reported as a GuardFnError with a position-annotated message.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import jsonschema
from pydantic import ValidationError

from guardfn.executor.awaitables import discard, is_awaitable
from guardfn.executor.errors import ErrorCode, GuardFnError, contract_violation
from guardfn.schema import AsyncParseError

ASYNC_PARSE_MESSAGE = "Encountered Promise during synchronous parse. Use .create_async() instead."


def is_schema(value: Any) -> bool:
    """Return True if ``value`` can be used as a schema.

    Only the async entry point is checked; a value without ``parse`` is still
    accepted and fails when it is used in a synchronous pipeline.
    """
    return callable(getattr(value, "parse_async", None))


def ordinal(num: int) -> str:
    """Format ``num`` as an English ordinal (1st, 2nd, 3rd, 4th, 11th, 21st)."""
    j = num % 10
    k = num % 100
    if j == 1 and k != 11:
        return f"{num}st"
    if j == 2 and k != 12:
        return f"{num}nd"
    if j == 3 and k != 13:
        return f"{num}rd"
    return f"{num}th"


def position_label(position: int | None) -> str:
    if position is None:
        return "return value"
    return f"{ordinal(position)} argument"


@dataclass(frozen=True)
class Issue:
    message: str
    path: tuple[str | int, ...]


@dataclass(frozen=True)
class IssueList:
    """Structured validator failure."""

    issues: tuple[Issue, ...]


@dataclass(frozen=True)
class OpaqueMessage:
    """Validator failure that carries only a message."""

    message: str


def _issues_from_mappings(raw: Any) -> IssueList | None:
    if not isinstance(raw, list) or not raw:
        return None
    if not all(isinstance(item, Mapping) for item in raw):
        return None
    first = raw[0]
    if not first.get("message") or not isinstance(first.get("path"), (list, tuple)):
        return None
    return IssueList(
        tuple(Issue(str(item.get("message", "")), tuple(item.get("path") or ())) for item in raw)
    )


def classify_failure(error: Exception) -> IssueList | OpaqueMessage:
    """Decide once whether a validator error carries structured issues.

    Args:
        error: Exception raised by a schema's parse entry point

    Returns:
        IssueList for structured failures, OpaqueMessage otherwise
    """
    issues = _issues_from_mappings(getattr(error, "issues", None))
    if issues is not None:
        return issues

    if isinstance(error, ValidationError) and error.errors():
        return IssueList(tuple(Issue(err["msg"], tuple(err["loc"])) for err in error.errors()))

    if isinstance(error, jsonschema.exceptions.ValidationError):
        return IssueList((Issue(error.message, tuple(error.absolute_path)),))

    message = str(error)
    try:
        issues = _issues_from_mappings(json.loads(message))
    except ValueError:
        issues = None
    return issues if issues is not None else OpaqueMessage(message)


def format_failure(failure: IssueList | OpaqueMessage, label: str) -> tuple[str, str]:
    """Render a classified failure.

    Returns:
        Tuple of (message, dotted path of the first issue)
    """
    if isinstance(failure, OpaqueMessage):
        return failure.message.replace("parse_async()", "create_async()"), ""

    first = failure.issues[0]
    path = ".".join(str(p) for p in first.path)
    message = f"Validation failed for {label}"
    if path:
        message += f" - Path: {path}"
    message += f" - {first.message}"
    return message.replace("parse_async()", "create_async()"), path


class SchemaValidator:
    """Validates call arguments and return values against schemas.

    ``validate`` is the synchronous mode, ``validate_async`` the asynchronous
    one. ``position`` is the 1-based argument position, or None for the
    return value.
    """

    def _failure(self, error: Exception, position: int | None) -> GuardFnError:
        message, path = format_failure(classify_failure(error), position_label(position))
        return GuardFnError(
            code=ErrorCode.VALIDATION,
            message=message,
            position=position,
            path=path,
        )

    def validate(self, value: Any, schema: Any, position: int | None = None) -> Any:
        """Validate ``value`` with the schema's synchronous ``parse``.

        Args:
            value: Argument or return value to validate
            schema: Schema exposing ``parse``
            position: 1-based argument position, None for the return value

        Raises:
            GuardFnError: CONTRACT_VIOLATION if parsing needs to suspend,
                VALIDATION if the value is rejected

        Returns:
            The parsed value
        """
        try:
            result = schema.parse(value)
        except AsyncParseError as e:
            raise contract_violation(ASYNC_PARSE_MESSAGE) from e
        except GuardFnError:
            raise
        except Exception as e:
            raise self._failure(e, position) from e

        if is_awaitable(result):
            discard(result)
            raise contract_violation(ASYNC_PARSE_MESSAGE)

        return result

    async def validate_async(self, value: Any, schema: Any, position: int | None = None) -> Any:
        """Validate ``value`` with the schema's ``parse_async``, awaited."""
        try:
            result = schema.parse_async(value)
            if is_awaitable(result):
                result = await result
            return result
        except GuardFnError:
            raise
        except Exception as e:
            raise self._failure(e, position) from e
