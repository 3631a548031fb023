"""FnBuilder: fluent, immutable configuration of guarded functions."""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from guardfn import schema as schema_namespace
from guardfn.executor.errors import configuration_error
from guardfn.executor.execution_engine import AsyncGuardedFunction, SyncGuardedFunction
from guardfn.executor.fn_contract import FnContract
from guardfn.executor.schema_validator import is_schema, ordinal

logger = logging.getLogger(__name__)


class FnBuilder:
    """Fluent builder for guarded functions.

    Every configuration method returns a new builder; the receiver is never
    modified, so builders can be shared and branched freely:

        numbers = gfn.args(s.number(), s.number())
        add = numbers.returns(s.number()).create(lambda a, b: a + b)
        concat = numbers.returns(s.string()).create(lambda a, b: f"{a}{b}")
    """

    def __init__(self, contract: FnContract | None = None) -> None:
        self._contract = contract if contract is not None else FnContract()

    @property
    def contract(self) -> FnContract:
        return self._contract

    def args(self, *schemas: Any) -> "FnBuilder":
        """Validate positional arguments, the n-th schema checking the n-th argument.

        Replaces any argument schemas configured earlier in the chain.

        Raises:
            GuardFnError: With code CONFIGURATION if no schemas are given or
                one of them is not a schema
        """
        if not schemas:
            raise configuration_error("Argument schemas not provided")

        for i, schema in enumerate(schemas, start=1):
            if not is_schema(schema):
                raise configuration_error(f"{ordinal(i)} argument must be a valid schema")

        return FnBuilder(self._contract.with_args(schemas))

    def returns(self, schema: Any = None) -> "FnBuilder":
        """Validate the return value.

        Raises:
            GuardFnError: With code CONFIGURATION if the schema is missing or invalid
        """
        if schema is None:
            raise configuration_error("Return schema not provided")

        if not is_schema(schema):
            raise configuration_error("Return value must be a valid schema")

        return FnBuilder(self._contract.with_returns(schema))

    def build(self, configurator: Callable[[Any], Any] | None = None) -> "FnBuilder":
        """Configure from a mapping returned by ``configurator(guardfn.schema)``.

        The mapping may hold ``args`` (a list or tuple of schemas) and/or
        ``returns`` (a schema); missing keys keep the current configuration.

        Args:
            configurator: Callable receiving the bundled schema namespace

        Returns:
            New builder with the requested schemas applied

        Raises:
            GuardFnError: With code CONFIGURATION on a missing or non-callable
                configurator, or a result that is not a valid mapping
        """
        if configurator is None:
            raise configuration_error("Build function argument not provided")

        if not callable(configurator):
            raise configuration_error("Build argument must be a function")

        result = configurator(schema_namespace)

        if not isinstance(result, Mapping):
            raise configuration_error("Build function return value is not valid")

        builder = self
        if result.get("args") is not None:
            if not isinstance(result["args"], (list, tuple)):
                raise configuration_error("Build function return value is not valid")
            builder = builder.args(*result["args"])
        if result.get("returns") is not None:
            builder = builder.returns(result["returns"])

        return builder

    def _check_fn(self, fn: Any) -> None:
        if fn is None:
            raise configuration_error("Create function not provided")

        if not callable(fn):
            raise configuration_error("Create argument must be a function")

    def create(self, fn: Callable[..., Any] | None = None) -> SyncGuardedFunction:
        """Wrap ``fn`` in a synchronous guarded function.

        Plain values are returned as-is; a coroutine is returned only when
        ``fn`` itself returns an awaitable.
        """
        self._check_fn(fn)
        logger.debug("Creating sync guarded function for %r", fn)
        return SyncGuardedFunction(self._contract, fn)

    def create_async(self, fn: Callable[..., Any] | None = None) -> AsyncGuardedFunction:
        """Wrap ``fn`` in a guarded function that always returns a coroutine."""
        self._check_fn(fn)
        logger.debug("Creating async guarded function for %r", fn)
        return AsyncGuardedFunction(self._contract, fn)
