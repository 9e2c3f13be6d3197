"""Error taxonomy shared by every classifier and the persistence layer."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Numeric error codes carried by every :class:`MLError`."""

    INCOMPATIBLE_FEATURE_TYPE = 100
    INCOMPATIBLE_INSTANCE = 101
    INVALID_PARAMETER = 102
    INVALID_STATE = 103
    IO_ERROR = 104
    IO_FILE_NOT_FOUND = 105


class MLError(Exception):
    """Base class for all toolkit errors.

    Attributes:
        code: The :class:`ErrorCode` identifying the error kind.
        message: Human-readable description.
    """

    code: ErrorCode = ErrorCode.INVALID_STATE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.message}"


class IncompatibleFeatureTypeError(MLError, TypeError):
    """A class or feature kind does not match what the operation needs."""

    code = ErrorCode.INCOMPATIBLE_FEATURE_TYPE


class IncompatibleInstanceError(MLError, ValueError):
    """An instance does not comply with the classifier's signature."""

    code = ErrorCode.INCOMPATIBLE_INSTANCE


class InvalidParameterError(MLError, ValueError):
    """A constructor argument or configuration option is invalid."""

    code = ErrorCode.INVALID_PARAMETER


class InvalidStateError(MLError, RuntimeError):
    """The classifier is not ready for the requested operation."""

    code = ErrorCode.INVALID_STATE


class PersistenceError(MLError, OSError):
    """Reading or writing a classifier store failed."""

    code = ErrorCode.IO_ERROR


class ModelNotFoundError(PersistenceError):
    """The classifier store does not exist."""

    code = ErrorCode.IO_FILE_NOT_FOUND
