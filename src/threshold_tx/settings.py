"""
Runtime configuration for ledger clients and the submission tracker.

Nothing here reads the environment implicitly: callers build these objects
(optionally via `from_env`) and pass them in.
"""

import os
from dataclasses import dataclass

from .config import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_EXPIRATION_SECONDS,
    DEFAULT_FAUCET_URL,
    DEFAULT_GAS_UNIT_PRICE,
    DEFAULT_MAX_GAS_UNITS,
    DEFAULT_MAX_POLL_INTERVAL,
    DEFAULT_NODE_URL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


@dataclass
class ClientConfig:
    """Endpoints of the ledger node and the funding service."""
    node_url: str = DEFAULT_NODE_URL
    faucet_url: str = DEFAULT_FAUCET_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load endpoints from NODE_URL / FAUCET_URL / REQUEST_TIMEOUT."""
        return cls(
            node_url=os.environ.get("NODE_URL", DEFAULT_NODE_URL),
            faucet_url=os.environ.get("FAUCET_URL", DEFAULT_FAUCET_URL),
            request_timeout=_env_float("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        )


@dataclass
class TrackerConfig:
    """Confirmation polling: interval, backoff and deadline (seconds)."""
    poll_interval: float = DEFAULT_POLL_INTERVAL
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT

    def __post_init__(self) -> None:
        if self.poll_interval < 0 or self.max_poll_interval < 0:
            raise ValueError("poll intervals must be non-negative")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def next_interval(self, current: float) -> float:
        return min(current * self.backoff_factor, self.max_poll_interval)

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        return cls(
            poll_interval=_env_float("POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            backoff_factor=_env_float("POLL_BACKOFF", DEFAULT_BACKOFF_FACTOR),
            max_poll_interval=_env_float("MAX_POLL_INTERVAL", DEFAULT_MAX_POLL_INTERVAL),
            timeout=_env_float("CONFIRMATION_TIMEOUT", DEFAULT_CONFIRMATION_TIMEOUT),
        )


@dataclass
class GasConfig:
    max_gas_units: int = DEFAULT_MAX_GAS_UNITS
    gas_unit_price: int = DEFAULT_GAS_UNIT_PRICE
    expiration_seconds: int = DEFAULT_EXPIRATION_SECONDS

    @classmethod
    def from_env(cls) -> "GasConfig":
        return cls(
            max_gas_units=_env_int("MAX_GAS_UNITS", DEFAULT_MAX_GAS_UNITS),
            gas_unit_price=_env_int("GAS_UNIT_PRICE", DEFAULT_GAS_UNIT_PRICE),
            expiration_seconds=_env_int("EXPIRATION_SECONDS", DEFAULT_EXPIRATION_SECONDS),
        )
