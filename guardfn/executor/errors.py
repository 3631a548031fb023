"""GuardFnError: the single error kind raised by guarded functions and builders."""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes."""

    CONFIGURATION = "CONFIGURATION"  # Builder or instrumentation misuse
    VALIDATION = "VALIDATION"  # Argument or return value violates its schema
    CONTRACT_VIOLATION = "CONTRACT_VIOLATION"  # Awaitable leaked into a sync pipeline


class GuardFnError(Exception):
    """Raised for configuration errors, validation failures and contract violations.

    Errors raised by the wrapped implementation are never converted to this
    type; they pass through the installed error handler unchanged.

    Attributes:
        code: Standardized error code
        message: Human-readable error description
        position: 1-based argument position, or None for the return value
        path: Dotted path to the invalid field (if applicable)
    """

    name = "GuardFnError"

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        position: int | None = None,
        path: str = "",
    ) -> None:
        """Initialize guarded function error.

        Args:
            code: Standardized error code
            message: Human-readable error description
            position: 1-based argument position the error refers to
            path: Dotted path to the invalid field
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.position = position
        self.path = path


def configuration_error(message: str) -> GuardFnError:
    return GuardFnError(code=ErrorCode.CONFIGURATION, message=message)


def contract_violation(message: str) -> GuardFnError:
    return GuardFnError(code=ErrorCode.CONTRACT_VIOLATION, message=message)
