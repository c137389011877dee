"""Error model, addresses, and runtime configuration."""

from __future__ import annotations

import pytest

from threshold_tx.address import format_address, format_short, parse_address
from threshold_tx.crypto.hash_algorithms import ASSIGNMENTS
from threshold_tx.errors import (
    ErrorCategory,
    ErrorCode,
    LedgerRejection,
    LedgerStatus,
    ProtocolError,
    err,
)
from threshold_tx.settings import ClientConfig, GasConfig, TrackerConfig


# --- errors ---


def test_error_categories() -> None:
    assert ErrorCode.INVALID_MEMBER_SET.category == ErrorCategory.VALIDATION
    assert ErrorCode.INSUFFICIENT_SIGNATURES.category == ErrorCategory.AUTHORIZATION
    assert ErrorCode.CONFIRMATION_TIMEOUT.category == ErrorCategory.NETWORK
    assert ErrorCode.INTERNAL_ERROR.category == ErrorCategory.INTERNAL


def test_recoverable_codes() -> None:
    assert err(ErrorCode.SUBMISSION_FAILED, "x").recoverable
    assert not err(ErrorCode.SIGNING_FAILURE, "x").recoverable


def test_protocol_error_is_frozen_and_chainable() -> None:
    error = err(ErrorCode.ENCODING_OVERFLOW, "too big")
    assert str(error) == "ENCODING_OVERFLOW(0x0101): too big"
    with pytest.raises(AttributeError):
        error.message = "changed"

    with pytest.raises(ProtocolError) as exc:
        try:
            raise ValueError("inner")
        except ValueError as inner:
            raise err(ErrorCode.INVALID_FORMAT, "outer") from inner
    assert isinstance(exc.value.__cause__, ValueError)


def test_ledger_rejection_str() -> None:
    rejection = LedgerRejection(LedgerStatus.OUT_OF_GAS, "max gas below transfer cost")
    assert str(rejection) == "OUT_OF_GAS: max gas below transfer cost"


# --- addresses ---


def test_parse_short_address() -> None:
    assert parse_address("0x1") == bytes(31) + b"\x01"
    assert parse_address("0X0a") == bytes(31) + b"\x0a"
    full = "0x" + "ab" * 32
    assert format_address(parse_address(full)) == full
    assert format_short(bytes(31) + b"\x01") == "0x1"
    assert format_short(bytes(32)) == "0x0"


@pytest.mark.parametrize("value", ["", "0x", "0x" + "00" * 33, "0xgg"])
def test_parse_bad_address(value: str) -> None:
    with pytest.raises(ProtocolError) as exc:
        parse_address(value)
    assert exc.value.code == ErrorCode.INVALID_FORMAT


# --- configuration ---


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("NODE_URL", "http://localhost:8080/v1")
    monkeypatch.setenv("POLL_INTERVAL", "0.25")
    monkeypatch.setenv("POLL_BACKOFF", "1.5")
    monkeypatch.setenv("GAS_UNIT_PRICE", "150")
    assert ClientConfig.from_env().node_url == "http://localhost:8080/v1"
    tracker = TrackerConfig.from_env()
    assert tracker.poll_interval == 0.25
    assert tracker.backoff_factor == 1.5
    assert GasConfig.from_env().gas_unit_price == 150


def test_config_defaults_ignore_unset_env(monkeypatch) -> None:
    for name in ("NODE_URL", "FAUCET_URL", "REQUEST_TIMEOUT", "CONFIRMATION_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    assert ClientConfig.from_env() == ClientConfig()
    assert TrackerConfig.from_env().timeout == TrackerConfig().timeout


def test_hash_assignments_are_32_bytes() -> None:
    assert {a.purpose for a in ASSIGNMENTS} == {
        "threshold_address",
        "envelope_hash",
        "txid",
        "state_digest",
    }
    assert all(a.output_size == 32 for a in ASSIGNMENTS)
