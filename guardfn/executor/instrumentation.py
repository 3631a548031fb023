"""InstrumentedFunction: mock, spy and error handler slots of a guarded function."""

import functools
import logging
from collections.abc import Callable
from typing import Any

from guardfn.executor.errors import configuration_error
from guardfn.executor.fn_contract import ExecutionOptions, FnContract, noop_spy
from guardfn.executor.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)


def _require_callable(fn: Any, missing: str, invalid: str) -> None:
    if fn is None:
        raise configuration_error(missing)
    if not callable(fn):
        raise configuration_error(invalid)


class InstrumentedFunction:
    """Base class for guarded functions.

    Holds the frozen contract and the ExecutionOptions record. Every mutator
    returns ``self`` so calls chain: ``fn.mock(a).spy(b).on_error(c)``.
    """

    def __init__(self, contract: FnContract, fn: Callable[..., Any]) -> None:
        # Copies fn.__dict__, so it must run before our own attributes are set
        functools.update_wrapper(self, fn)
        self._contract = contract
        self._options = ExecutionOptions.wrapping(fn)
        self._validator = SchemaValidator()

    @property
    def contract(self) -> FnContract:
        return self._contract

    @property
    def _name(self) -> str:
        return getattr(self, "__name__", type(self).__name__)

    @property
    def spy_count(self) -> int:
        """Number of completed calls seen by the current spy."""
        return self._options.spy_fn_count

    def mock(self, fn: Callable[..., Any] | None = None) -> "InstrumentedFunction":
        """Replace the implementation until ``reset_mock`` is called.

        Raises:
            GuardFnError: With code CONFIGURATION if ``fn`` is missing or not callable
        """
        _require_callable(fn, "Mock function argument not provided", "Mock argument must be a function")
        self._options.exec_fn = fn
        logger.debug("Mock installed on %s", self._name)
        return self

    def reset_mock(self) -> "InstrumentedFunction":
        self._options.exec_fn = self._options.original_fn
        return self

    def spy(self, fn: Callable[..., Any] | None = None) -> "InstrumentedFunction":
        """Observe every successful call as ``fn(args, result, count)``.

        The counter is 1-based and restarts whenever a spy is installed.
        """
        _require_callable(fn, "Spy handler function not provided", "Spy handler must be a function")
        self._options.replace_spy(fn)
        logger.debug("Spy installed on %s", self._name)
        return self

    def reset_spy(self) -> "InstrumentedFunction":
        self._options.replace_spy(noop_spy)
        return self

    def on_error(self, fn: Callable[..., Any] | None = None) -> "InstrumentedFunction":
        """Recover from implementation errors with ``fn(error, args)``.

        The handler's return value replaces the result; errors it raises
        propagate unchanged. Validation failures never reach it.
        """
        _require_callable(
            fn, "on_error handler function not provided", "on_error handler must be a function"
        )
        self._options.on_error_fn = fn
        return self
