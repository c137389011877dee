"""Shared fixtures and vector collection (`pytest --output DIR`)."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from threshold_tx.config import CHAIN_ID_LOCAL
from threshold_tx.ledger.memory import InMemoryLedger
from threshold_tx.settings import GasConfig
from threshold_tx.state_transition import TransitionResult, apply_tx
from threshold_tx.test_accounts import (
    ALICE,
    CAROL,
    INITIAL_BALANCE,
    NOW,
    RECIPIENT,
    default_identity,
    sign_with,
)
from threshold_tx.transaction import build_envelope, coin_transfer_action
from threshold_tx.types import (
    Action,
    LedgerState,
    SignedTransaction,
    ThresholdIdentity,
    TransactionEnvelope,
)
from tools.fixtures_io import signed_tx_to_json, state_to_json

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_WIRE_VECTORS: list[dict[str, Any]] = []


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated vectors",
    )


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def recipient() -> bytes:
    return RECIPIENT


@pytest.fixture
def identity() -> ThresholdIdentity:
    """2-of-3 over ALICE, BOB, CAROL."""
    return default_identity(2)


@pytest.fixture
def make_envelope(identity) -> Callable[..., TransactionEnvelope]:
    def _make(
        sequence_number: int = 0,
        amount: int = 1_000,
        action: Optional[Action] = None,
        network_id: int = CHAIN_ID_LOCAL,
        now: int = NOW,
        gas: Optional[GasConfig] = None,
    ) -> TransactionEnvelope:
        if action is None:
            action = coin_transfer_action(RECIPIENT, amount)
        return build_envelope(identity, action, sequence_number, network_id, gas, now=now)

    return _make


@pytest.fixture
def signed_transfer(identity, make_envelope) -> SignedTransaction:
    """A 1_000 unit transfer signed by ALICE and CAROL."""
    return sign_with(identity, make_envelope(), ALICE, CAROL)


@pytest.fixture
def ledger(identity) -> InMemoryLedger:
    """In-memory ledger with a fixed clock and the shared account funded."""
    led = InMemoryLedger(network_id=CHAIN_ID_LOCAL, clock=lambda: NOW)
    asyncio.run(led.fund(identity.address, INITIAL_BALANCE))
    return led


@pytest.fixture
def funded_state(identity) -> LedgerState:
    led = InMemoryLedger(network_id=CHAIN_ID_LOCAL)
    asyncio.run(led.fund(identity.address, INITIAL_BALANCE))
    return led.state


@pytest.fixture
def state_test() -> Callable[..., tuple[LedgerState, TransitionResult]]:
    """Apply a transaction, record the case, and hand the outcome back."""

    def _state_test(
        name: str, pre_state: LedgerState, signed: SignedTransaction, now: int = NOW
    ) -> tuple[LedgerState, TransitionResult]:
        pre_json = state_to_json(pre_state)
        post_state, result = apply_tx(pre_state, signed, now)
        _STATE_CASES.setdefault("ledger_state.json", []).append(
            {
                "name": name,
                "now": now,
                "pre_state": pre_json,
                "tx": signed_tx_to_json(signed),
                "expected": {
                    "ok": result.ok,
                    "error": result.reason,
                    "post_state": state_to_json(post_state),
                },
            }
        )
        return post_state, result

    return _state_test


@pytest.fixture
def wire_vector() -> Callable[[str, SignedTransaction], None]:
    """Collect a signed transaction encoding vector."""

    def _wire_vector(name: str, signed: SignedTransaction) -> None:
        payload = {"name": name}
        payload.update(signed_tx_to_json(signed))
        _WIRE_VECTORS.append(payload)

    return _wire_vector


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps({"cases": cases}, indent=2))

    if _WIRE_VECTORS:
        (out / "wire_format.json").write_text(
            json.dumps({"vectors": _WIRE_VECTORS}, indent=2)
        )
