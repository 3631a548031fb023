"""guardfn: schema-validated, instrumentable function wrappers.

Example:
    from guardfn import gfn, schema as s

    add = gfn.args(s.number(), s.number()).returns(s.number()).create(lambda a, b: a + b)
    add(5, 13)  # 18
    add(5, "13")  # GuardFnError: Validation failed for 2nd argument - ...
"""

import logging

# guardfn.schema imports from guardfn.executor, which must load first
from guardfn.executor import ErrorCode, FnBuilder, GuardFnError
from guardfn import schema

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

gfn = FnBuilder()

__all__ = ["ErrorCode", "FnBuilder", "GuardFnError", "gfn", "schema", "__version__"]
