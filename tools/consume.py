"""Replay generated vectors against the Python implementation."""

from __future__ import annotations

import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from threshold_tx.encoding import decode_signed_transaction, encode_signed_transaction  # noqa: E402
from threshold_tx.state_digest import compute_state_digest  # noqa: E402
from threshold_tx.state_transition import apply_tx  # noqa: E402
from fixtures_io import state_from_json  # noqa: E402


def _check_state_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        signed = decode_signed_transaction(bytes.fromhex(case["tx"]["wire_hex"]))
        post_state, result = apply_tx(pre_state, signed, case["now"])

        expected = case["expected"]
        if result.ok != expected["ok"]:
            failures.append(f"{case['name']}: ok_mismatch")
            continue

        if result.reason != expected["error"]:
            failures.append(f"{case['name']}: error_mismatch")
            continue

        if compute_state_digest(post_state) != expected["post_state"]["state_digest"]:
            failures.append(f"{case['name']}: state_digest_mismatch")

    return failures


def _check_wire_vectors(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())
    for vec in data.get("vectors", []):
        wire = bytes.fromhex(vec["wire_hex"])
        if encode_signed_transaction(decode_signed_transaction(wire)) != wire:
            failures.append(f"{vec['name']}: wire_mismatch")
    return failures


def main() -> None:
    vectors = ROOT / "vectors"

    failures: list[str] = []

    state_cases = vectors / "ledger_state.json"
    if state_cases.exists():
        failures.extend(_check_state_cases(state_cases))

    wire = vectors / "wire_format.json"
    if wire.exists():
        failures.extend(_check_wire_vectors(wire))

    if failures:
        for f in failures:
            print("FAIL", f)
        raise SystemExit(1)

    print("All vectors passed")


if __name__ == "__main__":
    main()
