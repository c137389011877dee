"""YAML persistence of a threshold identity (public data only)."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import yaml

from .address import format_address, parse_address
from .errors import ErrorCode, ProtocolError
from .identity import derive_identity
from .types import ThresholdIdentity


def identity_to_dict(identity: ThresholdIdentity) -> dict:
    return {
        "threshold": identity.member_set.threshold,
        "public_keys": ["0x" + pk.hex() for pk in identity.member_set.public_keys],
        "address": format_address(identity.address),
    }


def identity_from_dict(data: object) -> ThresholdIdentity:
    """Rebuild an identity and check that the stored address still matches.

    The address is always re-derived from the keys and threshold; a file whose
    address disagrees has been edited or corrupted.
    """
    if not isinstance(data, dict):
        raise ProtocolError(ErrorCode.INVALID_IDENTITY_FILE, "identity must be a mapping")
    try:
        keys = [bytes.fromhex(k.removeprefix("0x")) for k in data["public_keys"]]
        threshold = int(data["threshold"])
        stored = parse_address(str(data["address"]))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ProtocolError(ErrorCode.INVALID_IDENTITY_FILE, f"malformed identity: {exc}") from exc
    except ProtocolError as exc:
        raise ProtocolError(ErrorCode.INVALID_IDENTITY_FILE, exc.message) from exc

    try:
        identity = derive_identity(keys, threshold)
    except ProtocolError as exc:
        raise ProtocolError(ErrorCode.INVALID_IDENTITY_FILE, exc.message) from exc

    if identity.address != stored:
        raise ProtocolError(
            ErrorCode.INVALID_IDENTITY_FILE,
            f"stored address {format_address(stored)} does not match "
            f"derived {format_address(identity.address)}",
        )
    return identity


def save_identity(identity: ThresholdIdentity, path: Union[str, Path]) -> None:
    Path(path).write_text(yaml.safe_dump(identity_to_dict(identity), sort_keys=False))


def load_identity(path: Union[str, Path]) -> ThresholdIdentity:
    try:
        data = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as exc:
        raise ProtocolError(ErrorCode.INVALID_IDENTITY_FILE, f"invalid YAML: {exc}") from exc
    return identity_from_dict(data)
