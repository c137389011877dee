"""Threshold-tx error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ErrorCategory(IntEnum):
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    NETWORK = 0x06
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Validation
    INVALID_MEMBER_SET = 0x0100
    ENCODING_OVERFLOW = 0x0101
    INVALID_TYPE_TAG = 0x0102
    INVALID_FORMAT = 0x0103
    INVALID_IDENTITY_FILE = 0x0104

    # Authorization
    SIGNING_FAILURE = 0x0200
    INSUFFICIENT_SIGNATURES = 0x0201

    # Network
    SUBMISSION_FAILED = 0x0600
    CONFIRMATION_TIMEOUT = 0x0601

    # Internal
    INTERNAL_ERROR = 0xFF00

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self >> 8)


# Only these may succeed when the caller tries again (with more signatures,
# a new request, or a later status query).
RECOVERABLE_CODES = frozenset({
    ErrorCode.INSUFFICIENT_SIGNATURES,
    ErrorCode.SUBMISSION_FAILED,
    ErrorCode.CONFIRMATION_TIMEOUT,
})


@dataclass(frozen=True)
class ProtocolError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"

    @property
    def recoverable(self) -> bool:
        return self.code in RECOVERABLE_CODES


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
# `raise ... from exc` also sets __suppress_context__.
_EXCEPTION_ATTRS = frozenset(
    ("__traceback__", "__context__", "__cause__", "__suppress_context__", "__notes__")
)


def _allow_exception_attrs(cls: type) -> None:
    frozen_setattr = cls.__setattr__

    def _setattr(self, name: str, value: object) -> None:
        if name in _EXCEPTION_ATTRS:
            object.__setattr__(self, name, value)
        else:
            frozen_setattr(self, name, value)

    cls.__setattr__ = _setattr  # type: ignore[method-assign]


_allow_exception_attrs(ProtocolError)


def err(code: ErrorCode, message: str) -> ProtocolError:
    return ProtocolError(code=code, message=message)


class LedgerStatus(Enum):
    """Ledger-side validation and execution outcomes reported as `Rejected(reason)`."""

    # Validation (mempool admission)
    BAD_CHAIN_ID = "BAD_CHAIN_ID"
    TRANSACTION_EXPIRED = "TRANSACTION_EXPIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_AUTH_KEY = "INVALID_AUTH_KEY"
    SENDING_ACCOUNT_DOES_NOT_EXIST = "SENDING_ACCOUNT_DOES_NOT_EXIST"
    SEQUENCE_NUMBER_TOO_OLD = "SEQUENCE_NUMBER_TOO_OLD"
    SEQUENCE_NUMBER_TOO_NEW = "SEQUENCE_NUMBER_TOO_NEW"
    DUPLICATE_SEQUENCE_NUMBER = "DUPLICATE_SEQUENCE_NUMBER"
    MAX_GAS_UNITS_EXCEEDS_MAX_GAS_UNITS_BOUND = "MAX_GAS_UNITS_EXCEEDS_MAX_GAS_UNITS_BOUND"
    INSUFFICIENT_BALANCE_FOR_TRANSACTION_FEE = "INSUFFICIENT_BALANCE_FOR_TRANSACTION_FEE"
    MALFORMED_TRANSACTION = "MALFORMED_TRANSACTION"

    # Execution
    MISSING_PAYLOAD = "MISSING_PAYLOAD"
    FUNCTION_NOT_FOUND = "FUNCTION_NOT_FOUND"
    NUMBER_OF_TYPE_ARGUMENTS_MISMATCH = "NUMBER_OF_TYPE_ARGUMENTS_MISMATCH"
    NUMBER_OF_ARGUMENTS_MISMATCH = "NUMBER_OF_ARGUMENTS_MISMATCH"
    FAILED_TO_DESERIALIZE_ARGUMENT = "FAILED_TO_DESERIALIZE_ARGUMENT"
    COIN_TYPE_NOT_SUPPORTED = "COIN_TYPE_NOT_SUPPORTED"
    OUT_OF_GAS = "OUT_OF_GAS"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    BALANCE_OVERFLOW = "BALANCE_OVERFLOW"


@dataclass(frozen=True)
class LedgerRejection(Exception):
    status: LedgerStatus
    message: str

    def __str__(self) -> str:
        return f"{self.status.value}: {self.message}"


_allow_exception_attrs(LedgerRejection)
