"""threshold-tx command line: key generation, identity setup and transfers."""

import asyncio
import json
import logging
import sys
from typing import Optional

import click

from .address import format_address, parse_address
from .aggregator import aggregate, bind_signature
from .codec_adapter import envelope_to_json, signed_to_json
from .config import NATIVE_COIN_TYPE
from .crypto.keys import Keypair
from .encoding import canonical_hash, encode_envelope, signing_message
from .errors import ProtocolError
from .identity import derive_identity
from .identity_store import load_identity, save_identity
from .ledger.rest_client import FaucetClient, RestLedgerClient
from .settings import ClientConfig, GasConfig, TrackerConfig
from .signer import PartialSigner
from .submission import SubmissionTracker
from .transaction import build_envelope, coin_transfer_action
from .types import TxStatus

logger = logging.getLogger(__name__)


def _parse_public_key(value: str) -> bytes:
    try:
        return bytes.fromhex(value.removeprefix("0x"))
    except ValueError as exc:
        raise click.BadParameter(f"not hex: {value}") from exc


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose output")
def main(verbose: bool) -> None:
    """Build, sign and submit K-of-N threshold transactions."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
def keygen() -> None:
    """Generate an independent member keypair."""
    kp = Keypair.generate()
    click.echo(json.dumps({"public_key": "0x" + kp.public_key.hex(), "private_key": kp.to_hex()}, indent=2))


@main.command()
@click.option("--key", "keys", multiple=True, required=True, help="Member public key (hex), in order")
@click.option("--threshold", type=int, required=True, help="Signatures required (K)")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Write identity YAML here")
def identity(keys: tuple, threshold: int, output: Optional[str]) -> None:
    """Derive the shared account address of a member set."""
    try:
        ident = derive_identity([_parse_public_key(k) for k in keys], threshold)
    except ProtocolError as exc:
        raise click.ClickException(str(exc)) from exc
    if output:
        save_identity(ident, output)
        logger.info("wrote identity to %s", output)
    click.echo(format_address(ident.address))


@main.command()
@click.option("--identity", "identity_path", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--amount", type=int, required=True)
@click.option("--sequence-number", type=int, default=0, show_default=True)
@click.option("--network-id", type=int, required=True)
@click.option("--expiration", type=int, required=True, help="Expiration timestamp (unix seconds)")
@click.option("--coin-type", default=NATIVE_COIN_TYPE, show_default=True)
def encode(
    identity_path: str,
    recipient: str,
    amount: int,
    sequence_number: int,
    network_id: int,
    expiration: int,
    coin_type: str,
) -> None:
    """Print the canonical encoding and signing message of a transfer."""
    gas = GasConfig.from_env()
    try:
        ident = load_identity(identity_path)
        action = coin_transfer_action(parse_address(recipient), amount, coin_type)
        env = build_envelope(
            ident, action, sequence_number, network_id, gas, now=expiration - gas.expiration_seconds
        )
        out = {
            "envelope": envelope_to_json(env),
            "canonical_bytes": "0x" + encode_envelope(env).hex(),
            "signing_message": "0x" + signing_message(env).hex(),
            "envelope_hash": "0x" + canonical_hash(env).hex(),
        }
    except ProtocolError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(out, indent=2))


@main.command()
@click.option("--identity", "identity_path", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option(
    "--signer",
    "signers",
    multiple=True,
    required=True,
    envvar="THRESHOLD_TX_SIGNERS",
    help="Member private key (hex); repeat for each signer",
)
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--amount", type=int, required=True)
@click.option("--fund", type=int, default=0, help="Fund the shared account from the faucet first")
@click.option("--node-url", default=None, help="Ledger node REST endpoint")
@click.option("--faucet-url", default=None, help="Faucet endpoint")
def transfer(
    identity_path: str,
    signers: tuple,
    recipient: str,
    amount: int,
    fund: int,
    node_url: Optional[str],
    faucet_url: Optional[str],
) -> None:
    """Sign a coin transfer with the given members and wait for it to commit."""
    config = ClientConfig.from_env()
    if node_url:
        config.node_url = node_url
    if faucet_url:
        config.faucet_url = faucet_url

    async def run() -> int:
        ident = load_identity(identity_path)
        members = [PartialSigner(Keypair.from_hex(s), ident) for s in signers]
        async with RestLedgerClient(config) as ledger:
            if fund:
                async with FaucetClient(config) as faucet:
                    await faucet.fund(ident.address, fund)

            network_id = await ledger.get_network_id()
            seq = await ledger.account_sequence_number(ident.address)
            env = build_envelope(
                ident,
                coin_transfer_action(parse_address(recipient), amount),
                seq,
                network_id,
                GasConfig.from_env(),
            )
            partials = [m.sign(env) for m in members]
            signed = bind_signature(ident, env, aggregate(ident, signing_message(env), partials))
            logger.debug("signed transaction: %s", json.dumps(signed_to_json(signed)))

            tracker = SubmissionTracker(ledger, TrackerConfig.from_env())
            result = await tracker.submit_and_wait(signed)

        click.echo(json.dumps({"hash": result.hash_hex, "status": result.status.value, "reason": result.reason}))
        return 0 if result.status == TxStatus.COMMITTED else 1

    try:
        exit_code = asyncio.run(run())
    except ProtocolError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
