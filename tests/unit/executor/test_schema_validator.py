"""Schema adapter and error normalizer tests.

Test Coverage:
- Capability check for schemas
- Ordinal argument labels
- Failure classification (structured issues vs opaque messages)
- Sync and async validation, including async escalation in sync mode
"""

import asyncio
import json
from typing import Any

import jsonschema
import pytest
from pydantic import BaseModel, TypeAdapter, ValidationError

from guardfn import schema as s
from guardfn.executor.errors import ErrorCode, GuardFnError
from guardfn.executor.schema_validator import (
    IssueList,
    OpaqueMessage,
    SchemaValidator,
    classify_failure,
    format_failure,
    is_schema,
    ordinal,
    position_label,
)


class AsyncOnlySchema:
    """Stand-in exposing only the async entry point."""

    async def parse_async(self, value: Any) -> Any:
        return value


class RaisingSchema:
    """Stand-in whose parse raises a fixed exception."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    def parse(self, value: Any) -> Any:
        raise self.error

    async def parse_async(self, value: Any) -> Any:
        raise self.error


class AwaitingSchema:
    """Stand-in whose synchronous parse hands back a coroutine."""

    def parse(self, value: Any) -> Any:
        return self.parse_async(value)

    async def parse_async(self, value: Any) -> Any:
        return value


class AdapterSchema:
    """Stand-in delegating straight to pydantic without converting errors."""

    def __init__(self, tp: Any) -> None:
        self.adapter = TypeAdapter(tp)

    def parse(self, value: Any) -> Any:
        return self.adapter.validate_python(value)

    async def parse_async(self, value: Any) -> Any:
        return self.parse(value)


class JsonSchemaStandIn:
    """Stand-in delegating straight to jsonschema.validate."""

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document

    def parse(self, value: Any) -> Any:
        jsonschema.validate(value, self.document)
        return value

    async def parse_async(self, value: Any) -> Any:
        return self.parse(value)


class Inner(BaseModel):
    e: str


class Middle(BaseModel):
    d: Inner


class Outer(BaseModel):
    c: Middle


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestIsSchema:
    """Schema capability check."""

    def test_bundled_schemas_accepted(self) -> None:
        """Bundled schemas expose parse_async."""
        assert is_schema(s.number())
        assert is_schema(s.json_schema({"type": "string"}))

    def test_async_entry_point_alone_is_enough(self) -> None:
        """A value without parse is still accepted."""
        assert is_schema(AsyncOnlySchema())

    @pytest.mark.parametrize("value", [None, 1, "number", lambda v: v, {"parse_async": 1}])
    def test_non_schemas_rejected(self, value: Any) -> None:
        """Values without a callable parse_async are rejected."""
        assert not is_schema(value)

    def test_coroutine_of_schema_rejected(self) -> None:
        """A pending coroutine is not a schema."""
        async def make() -> Any:
            return s.number()

        pending = make()
        try:
            assert not is_schema(pending)
        finally:
            pending.close()


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.deterministic
class TestOrdinal:
    """English ordinal labels."""

    @pytest.mark.parametrize(
        ("num", "expected"),
        [
            (1, "1st"),
            (2, "2nd"),
            (3, "3rd"),
            (4, "4th"),
            (11, "11th"),
            (12, "12th"),
            (13, "13th"),
            (21, "21st"),
            (22, "22nd"),
            (103, "103rd"),
            (111, "111th"),
        ],
    )
    def test_ordinal(self, num: int, expected: str) -> None:
        """Ordinals follow English suffix rules, including the teens."""
        assert ordinal(num) == expected

    def test_position_label(self) -> None:
        """Positions render as argument labels, None as the return value."""
        assert position_label(2) == "2nd argument"
        assert position_label(None) == "return value"


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.oracle_schema
class TestClassifyFailure:
    """Failures are classified once as IssueList or OpaqueMessage."""

    def test_schema_parse_error_is_structured(self) -> None:
        """Issues on the error become an IssueList."""
        error = s.SchemaParseError([{"message": "bad", "path": ["a", 0]}])

        failure = classify_failure(error)

        assert isinstance(failure, IssueList)
        assert failure.issues[0].message == "bad"
        assert failure.issues[0].path == ("a", 0)

    def test_json_encoded_message_is_structured(self) -> None:
        """A JSON issue list in the message becomes an IssueList."""
        error = ValueError(json.dumps([{"message": "too small", "path": ["x"]}]))

        failure = classify_failure(error)

        assert isinstance(failure, IssueList)
        assert failure.issues[0].path == ("x",)

    def test_plain_message_is_opaque(self) -> None:
        """Non-JSON messages become an OpaqueMessage."""
        failure = classify_failure(ValueError("not json"))

        assert failure == OpaqueMessage("not json")

    def test_json_without_issue_shape_is_opaque(self) -> None:
        """JSON that is not a list of issues stays opaque."""
        assert isinstance(classify_failure(ValueError('{"message": "x"}')), OpaqueMessage)
        assert isinstance(classify_failure(ValueError('[{"path": ["x"]}]')), OpaqueMessage)
        assert isinstance(classify_failure(ValueError("[]")), OpaqueMessage)

    def test_pydantic_error_without_entries_is_opaque(self) -> None:
        """An empty pydantic error list falls back to the error text."""
        error = ValidationError.from_exception_data("Payload", [])

        failure = classify_failure(error)

        assert failure == OpaqueMessage(str(error))
        assert format_failure(failure, "1st argument") == (str(error), "")

    def test_empty_path_is_still_structured(self) -> None:
        """An empty path drops the Path segment."""
        failure = classify_failure(s.SchemaParseError([{"message": "bad", "path": []}]))

        assert format_failure(failure, "1st argument") == (
            "Validation failed for 1st argument - bad",
            "",
        )

    def test_format_includes_path(self) -> None:
        """The first issue's path is dotted into the message."""
        failure = classify_failure(s.SchemaParseError([{"message": "bad", "path": ["a", "b", 1]}]))

        message, path = format_failure(failure, "return value")

        assert message == "Validation failed for return value - Path: a.b.1 - bad"
        assert path == "a.b.1"

    def test_opaque_message_points_to_create_async(self) -> None:
        """Opaque messages name create_async instead of parse_async."""
        message, _ = format_failure(OpaqueMessage("Use .parse_async() instead."), "1st argument")

        assert message == "Use .create_async() instead."


@pytest.mark.unit
@pytest.mark.P0
@pytest.mark.oracle_schema
class TestSchemaValidator:
    """Sync and async validation."""

    def test_valid_value_returned(self) -> None:
        """A valid value comes back parsed."""
        validator = SchemaValidator()

        assert validator.validate(5, s.integer(), 1) == 5

    def test_invalid_argument_message(self) -> None:
        """Argument failures carry code, position and label."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate("13", s.number(), 2)

        error = exc_info.value
        assert error.code == ErrorCode.VALIDATION
        assert error.position == 2
        assert error.message.startswith("Validation failed for 2nd argument - ")
        assert "valid number" in error.message

    def test_invalid_return_message(self) -> None:
        """Return failures are labelled as the return value."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(18, s.string())

        assert exc_info.value.message.startswith("Validation failed for return value - ")
        assert exc_info.value.position is None

    def test_nested_model_path(self) -> None:
        """Nested model failures report the dotted path."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate({"c": {"d": {"e": 2}}}, s.of(Outer), 1)

        assert exc_info.value.message.startswith("Validation failed for 1st argument - Path: c.d.e - ")
        assert exc_info.value.path == "c.d.e"

    def test_validator_error_is_chained(self) -> None:
        """The validator's own error is kept as the cause."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate("x", s.integer(), 1)

        assert isinstance(exc_info.value.__cause__, s.SchemaParseError)

    def test_raw_pydantic_error(self) -> None:
        """pydantic errors raised directly are recognised."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(["a", "b"], AdapterSchema(list[int]), 3)

        assert exc_info.value.message.startswith("Validation failed for 3rd argument - Path: 0 - ")

    def test_raw_jsonschema_error(self) -> None:
        """jsonschema errors raised directly are recognised."""
        validator = SchemaValidator()
        stand_in = JsonSchemaStandIn(
            {"type": "object", "properties": {"amount": {"type": "number"}}}
        )

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate({"amount": "not_a_number"}, stand_in, 1)

        message = exc_info.value.message
        assert message.startswith("Validation failed for 1st argument - Path: amount - ")
        assert "is not of type 'number'" in message

    def test_plain_error_message_forwarded(self) -> None:
        """Plain exceptions forward their message."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(1, RaisingSchema(ValueError("nope, try parse_async()")), 1)

        assert exc_info.value.message == "nope, try create_async()"
        assert exc_info.value.code == ErrorCode.VALIDATION

    def test_empty_pydantic_error_reported_as_validation(self) -> None:
        """A pydantic error with no entries still yields a validation error."""
        validator = SchemaValidator()
        error = ValidationError.from_exception_data("Payload", [])

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(1, RaisingSchema(error), 1)

        assert exc_info.value.code == ErrorCode.VALIDATION
        assert exc_info.value.message == str(error)
        assert exc_info.value.__cause__ is error

    def test_async_only_schema_fails_in_sync_mode(self) -> None:
        """Accepted at configuration time, rejected when parse is missing."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(1, AsyncOnlySchema(), 1)

        assert "parse" in exc_info.value.message

    def test_async_refinement_in_sync_mode(self) -> None:
        """An async refinement in sync mode is a contract violation."""
        validator = SchemaValidator()

        async def positive(value: Any) -> bool:
            return value > 0

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(1, s.number().refine(positive), 1)

        assert exc_info.value.code == ErrorCode.CONTRACT_VIOLATION
        assert exc_info.value.message == (
            "Encountered Promise during synchronous parse. Use .create_async() instead."
        )

    def test_awaitable_parse_result_in_sync_mode(self) -> None:
        """An awaitable from parse in sync mode is a contract violation."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            validator.validate(1, AwaitingSchema(), None)

        assert exc_info.value.code == ErrorCode.CONTRACT_VIOLATION

    def test_validate_async(self) -> None:
        """Async steps are awaited."""
        validator = SchemaValidator()

        async def double(value: Any) -> Any:
            return value * 2

        result = asyncio.run(validator.validate_async(4, s.integer().transform(double), 1))

        assert result == 8

    def test_validate_async_failure(self) -> None:
        """Async validation failures carry the argument label."""
        validator = SchemaValidator()

        with pytest.raises(GuardFnError) as exc_info:
            asyncio.run(validator.validate_async("4", s.integer(), 4))

        assert exc_info.value.message.startswith("Validation failed for 4th argument - ")
