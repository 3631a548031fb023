"""Executor module: guarded function building, validation and instrumentation."""

from guardfn.executor.errors import ErrorCode, GuardFnError
from guardfn.executor.execution_engine import AsyncGuardedFunction, SyncGuardedFunction
from guardfn.executor.fn_builder import FnBuilder
from guardfn.executor.fn_contract import ExecutionOptions, FnContract
from guardfn.executor.instrumentation import InstrumentedFunction
from guardfn.executor.schema_validator import SchemaValidator, is_schema

__all__ = [
    "AsyncGuardedFunction",
    "ErrorCode",
    "ExecutionOptions",
    "FnBuilder",
    "FnContract",
    "GuardFnError",
    "InstrumentedFunction",
    "SchemaValidator",
    "SyncGuardedFunction",
    "is_schema",
]
