"""FnContract and ExecutionOptions: configuration and per-callable state."""

from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def noop_spy(args: tuple[Any, ...], result: Any, count: int) -> None:
    return None


def rethrow(error: Exception, args: tuple[Any, ...]) -> Any:
    raise error


class FnContract(BaseModel):
    """Schemas a guarded function validates against.

    Frozen: every configuration step produces a new contract through
    ``model_copy``, replacing the whole argument tuple or the return slot.
    """

    model_config = ConfigDict(frozen=True)

    arg_schemas: tuple[Any, ...] = ()  # Index 0 validates the 1st argument
    return_schema: Any = None

    def with_args(self, schemas: Sequence[Any]) -> "FnContract":
        return self.model_copy(update={"arg_schemas": tuple(schemas)})

    def with_returns(self, schema: Any) -> "FnContract":
        return self.model_copy(update={"return_schema": schema})

    def arg_schema(self, index: int) -> Any:
        """Return the schema for the 0-based argument ``index``, or None."""
        if index < len(self.arg_schemas):
            return self.arg_schemas[index]
        return None


class ExecutionOptions(BaseModel):
    """Mutable instrumentation state owned by one guarded function.

    Concurrent calls of the same function share this record and re-read it at
    every stage; mutating it while calls are in flight is not synchronized.
    """

    model_config = ConfigDict(frozen=False)

    original_fn: Callable[..., Any]
    exec_fn: Callable[..., Any]
    spy_fn: Callable[..., Any] = Field(default=noop_spy)
    spy_fn_count: int = 0
    on_error_fn: Callable[..., Any] = Field(default=rethrow)

    @classmethod
    def wrapping(cls, fn: Callable[..., Any]) -> "ExecutionOptions":
        return cls(original_fn=fn, exec_fn=fn)

    def replace_spy(self, fn: Callable[..., Any]) -> None:
        self.spy_fn = fn
        self.spy_fn_count = 0
