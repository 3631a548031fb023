"""Guarded function execution: argument validation, invocation, recovery, return validation, spy.

Two materializations share the same stage order and differ only in how they
treat awaitables:

- SyncGuardedFunction returns plain values whenever the implementation is
  synchronous, and a coroutine only when the implementation returns an
  awaitable. Awaitables coming from schemas, the error handler or the spy
  inside the purely synchronous path are contract violations.
- AsyncGuardedFunction always returns a coroutine and awaits every stage.
"""

import logging
from collections.abc import Awaitable
from typing import Any

from guardfn.executor.awaitables import discard, is_awaitable
from guardfn.executor.errors import contract_violation
from guardfn.executor.instrumentation import InstrumentedFunction

logger = logging.getLogger(__name__)

ON_ERROR_PROMISE_MESSAGE = "on_error handler function cannot return a promise in a synchronous context"
SPY_PROMISE_MESSAGE = "Spy handler function cannot return a promise in a synchronous context"


class SyncGuardedFunction(InstrumentedFunction):
    """Guarded function produced by ``FnBuilder.create``."""

    def _validate_args(self, args: tuple[Any, ...]) -> tuple[Any, ...]:
        parsed = []
        for index, arg in enumerate(args):
            schema = self._contract.arg_schema(index)
            if schema is None:
                parsed.append(arg)
            else:
                parsed.append(self._validator.validate(arg, schema, index + 1))
        return tuple(parsed)

    def _validate_return(self, result: Any) -> Any:
        schema = self._contract.return_schema
        if schema is None:
            return result
        return self._validator.validate(result, schema)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        parsed_args = self._validate_args(args)

        try:
            result = self._options.exec_fn(*parsed_args, **kwargs)
        except Exception as error:
            logger.debug("%s raised %s, calling error handler", self._name, type(error).__name__)
            result = self._options.on_error_fn(error, parsed_args)
            if is_awaitable(result):
                discard(result)
                raise contract_violation(ON_ERROR_PROMISE_MESSAGE)
        else:
            if is_awaitable(result):
                return self._settle(result, parsed_args)

        result = self._validate_return(result)
        self._options.spy_fn_count += 1
        spy_result = self._options.spy_fn(parsed_args, result, self._options.spy_fn_count)
        if is_awaitable(spy_result):
            discard(spy_result)
            raise contract_violation(SPY_PROMISE_MESSAGE)

        return result

    async def _settle(self, pending: Awaitable[Any], parsed_args: tuple[Any, ...]) -> Any:
        """Finish a call whose implementation returned an awaitable."""
        try:
            result = await pending
        except Exception as error:
            logger.debug("%s raised %s, calling error handler", self._name, type(error).__name__)
            result = self._options.on_error_fn(error, parsed_args)
            if is_awaitable(result):
                result = await result

        result = self._validate_return(result)
        self._options.spy_fn_count += 1
        spy_result = self._options.spy_fn(parsed_args, result, self._options.spy_fn_count)
        if is_awaitable(spy_result):
            await spy_result

        return result


class AsyncGuardedFunction(InstrumentedFunction):
    """Guarded function produced by ``FnBuilder.create_async``.

    Schemas are always run through ``parse_async``, so async refinements and
    transforms are supported in both arguments and return value.
    """

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        parsed_args = []
        for index, arg in enumerate(args):
            schema = self._contract.arg_schema(index)
            if schema is not None:
                arg = await self._validator.validate_async(arg, schema, index + 1)
            parsed_args.append(arg)
        parsed = tuple(parsed_args)

        try:
            result = self._options.exec_fn(*parsed, **kwargs)
            if is_awaitable(result):
                result = await result
        except Exception as error:
            logger.debug("%s raised %s, calling error handler", self._name, type(error).__name__)
            result = self._options.on_error_fn(error, parsed)
            if is_awaitable(result):
                result = await result

        if self._contract.return_schema is not None:
            result = await self._validator.validate_async(result, self._contract.return_schema)

        self._options.spy_fn_count += 1
        spy_result = self._options.spy_fn(parsed, result, self._options.spy_fn_count)
        if is_awaitable(spy_result):
            await spy_result

        return result
