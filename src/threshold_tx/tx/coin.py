"""Coin transfer execution (0x1::coin::transfer, 0x1::aptos_account::transfer)."""

from __future__ import annotations

from copy import deepcopy

from ..config import CORE_ADDRESS, NATIVE_COIN_TYPE, TRANSFER_GAS_UNITS, U64_MAX
from ..encoding import decode_address, decode_u64
from ..errors import LedgerRejection, LedgerStatus, ProtocolError
from ..type_tag import TypeTag
from ..types import AccountState, Action, LedgerState, SignedTransaction

_NATIVE_COIN = TypeTag.from_str(NATIVE_COIN_TYPE)

# (module, function) -> number of type arguments
SUPPORTED_FUNCTIONS = {
    ("coin", "transfer"): 1,
    ("aptos_account", "transfer"): 0,
}


def _action(signed: SignedTransaction) -> Action:
    action = signed.envelope.payload.action
    if action is None:
        raise LedgerRejection(LedgerStatus.MISSING_PAYLOAD, "multisig payload carries no action")
    return action


def _decode_transfer_args(action: Action) -> tuple[bytes, int]:
    if len(action.arguments) != 2:
        raise LedgerRejection(LedgerStatus.NUMBER_OF_ARGUMENTS_MISMATCH, "transfer takes 2 arguments")
    try:
        return decode_address(action.arguments[0]), decode_u64(action.arguments[1])
    except ProtocolError as exc:
        raise LedgerRejection(LedgerStatus.FAILED_TO_DESERIALIZE_ARGUMENT, exc.message) from exc


def gas_units(signed: SignedTransaction) -> int:
    return TRANSFER_GAS_UNITS


def verify(state: LedgerState, signed: SignedTransaction) -> None:
    action = _action(signed)
    key = (action.module.name, action.function)
    if action.module.address != CORE_ADDRESS or key not in SUPPORTED_FUNCTIONS:
        raise LedgerRejection(
            LedgerStatus.FUNCTION_NOT_FOUND, f"{action.module.name}::{action.function} not found"
        )
    if len(action.type_arguments) != SUPPORTED_FUNCTIONS[key]:
        raise LedgerRejection(
            LedgerStatus.NUMBER_OF_TYPE_ARGUMENTS_MISMATCH, "wrong number of type arguments"
        )
    if action.type_arguments and action.type_arguments[0] != _NATIVE_COIN:
        raise LedgerRejection(
            LedgerStatus.COIN_TYPE_NOT_SUPPORTED, f"coin type {action.type_arguments[0]} not supported"
        )
    _decode_transfer_args(action)


def apply(state: LedgerState, signed: SignedTransaction) -> LedgerState:
    """Move the amount; the caller charges gas and bumps the sequence number."""
    next_state = deepcopy(state)
    env = signed.envelope
    recipient, amount = _decode_transfer_args(_action(signed))

    if env.max_gas_units < gas_units(signed):
        raise LedgerRejection(LedgerStatus.OUT_OF_GAS, "max gas below transfer cost")

    sender = next_state.accounts.get(env.sender)
    if sender is None:
        raise LedgerRejection(LedgerStatus.SENDING_ACCOUNT_DOES_NOT_EXIST, "sender not found")
    fee = gas_units(signed) * env.gas_unit_price
    if sender.balance < amount + fee:
        raise LedgerRejection(LedgerStatus.INSUFFICIENT_BALANCE, "insufficient balance")
    sender.balance -= amount

    receiver = next_state.accounts.get(recipient)
    if receiver is None:
        receiver = AccountState(address=recipient)
        next_state.accounts[recipient] = receiver
    if receiver.balance + amount > U64_MAX:
        raise LedgerRejection(LedgerStatus.BALANCE_OVERFLOW, "receiver balance overflow")
    receiver.balance += amount
    return next_state
