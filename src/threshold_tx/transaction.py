"""Builders for actions and threshold transaction envelopes."""

from __future__ import annotations

import time
from typing import Optional, Sequence, Union

from .address import parse_address
from .config import CORE_ADDRESS, NATIVE_COIN_TYPE
from .encoding import encode_address, encode_u64
from .errors import ErrorCode, ProtocolError
from .settings import GasConfig
from .type_tag import TypeTag, is_valid_identifier
from .types import Action, ModuleId, MultisigPayload, ThresholdIdentity, TransactionEnvelope


def entry_function(
    module: str,
    function: str,
    type_arguments: Sequence[Union[str, TypeTag]] = (),
    arguments: Sequence[bytes] = (),
) -> Action:
    """Build an action from `0x1::coin`-style module text."""
    parts = module.split("::")
    if len(parts) != 2 or not is_valid_identifier(parts[1]):
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid module id {module!r}")
    tags = tuple(TypeTag.from_str(t) if isinstance(t, str) else t for t in type_arguments)
    return Action(
        module=ModuleId(parse_address(parts[0]), parts[1]),
        function=function,
        type_arguments=tags,
        arguments=tuple(bytes(a) for a in arguments),
    )


def coin_transfer_action(recipient: bytes, amount: int, coin_type: str = NATIVE_COIN_TYPE) -> Action:
    """`0x1::coin::transfer<coin_type>(recipient, amount)`."""
    return Action(
        module=ModuleId(CORE_ADDRESS, "coin"),
        function="transfer",
        type_arguments=(TypeTag.from_str(coin_type),),
        arguments=(encode_address(recipient), encode_u64(amount)),
    )


def build_envelope(
    identity: ThresholdIdentity,
    action: Optional[Action],
    sequence_number: int,
    network_id: int,
    gas: Optional[GasConfig] = None,
    now: Optional[int] = None,
) -> TransactionEnvelope:
    gas = gas or GasConfig()
    if now is None:
        now = int(time.time())
    return TransactionEnvelope(
        sender=identity.address,
        sequence_number=sequence_number,
        payload=MultisigPayload(multisig_address=identity.address, action=action),
        max_gas_units=gas.max_gas_units,
        gas_unit_price=gas.gas_unit_price,
        expiration_timestamp=now + gas.expiration_seconds,
        network_id=network_id,
    )


def is_expired(envelope: TransactionEnvelope, now: Optional[float] = None) -> bool:
    if now is None:
        now = time.time()
    return envelope.expiration_timestamp <= now
