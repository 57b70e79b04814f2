"""
Signer configuration.

Provides the typed settings shared by the key manager and the engines,
loadable from ``FILECOIN_SIGNER_*`` environment variables.
"""

from __future__ import annotations
import os
from typing import Optional, Mapping, Dict, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..address.codec import Network
from .errors import ConfigError


ENV_PREFIX = "FILECOIN_SIGNER_"

DEFAULT_DERIVATION_PATH = "m/44'/461'/0'/0/0"


class SignerConfig(BaseModel):
    """
    Settings for key derivation, address rendering and batch verification.
    """
    network: Network = Field(default=Network.MAIN, description="Network used when rendering addresses")
    derivation_path: str = Field(
        default=DEFAULT_DERIVATION_PATH,
        description="Default BIP-44 path for mnemonic derivation"
    )
    mnemonic_language: str = Field(default="english", description="BIP-39 word list")
    batch_max_workers: Optional[int] = Field(
        default=None, ge=1,
        description="Thread pool size for batch verification (None lets the executor decide)"
    )
    bls_batch_aggregate: bool = Field(
        default=True,
        description="Use one aggregated pairing check for BLS batches"
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator('network', mode='before')
    @classmethod
    def parse_network(cls, v: Any) -> Network:
        """Accept 'f'/'t' prefixes and 'mainnet'/'testnet' names."""
        if isinstance(v, Network):
            return v
        if isinstance(v, str):
            value = v.strip().lower()
            if value in ("f", "main", "mainnet"):
                return Network.MAIN
            if value in ("t", "test", "testnet"):
                return Network.TEST
        raise ValueError(f"Unknown network: {v!r}")

    @field_validator('derivation_path')
    @classmethod
    def check_path(cls, v: str) -> str:
        if not v.startswith("m"):
            raise ValueError("derivation_path must start with 'm'")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> SignerConfig:
        """
        Build a configuration from environment variables.

        Recognized variables: FILECOIN_SIGNER_NETWORK,
        FILECOIN_SIGNER_DERIVATION_PATH, FILECOIN_SIGNER_MNEMONIC_LANGUAGE,
        FILECOIN_SIGNER_BATCH_MAX_WORKERS, FILECOIN_SIGNER_BLS_BATCH_AGGREGATE.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            SignerConfig

        Raises:
            ConfigError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid signer configuration: {e.error_count()} error(s)",
                              details={"errors": [err["loc"] for err in e.errors()]}, cause=e)


__all__ = [
    "SignerConfig",
    "DEFAULT_DERIVATION_PATH",
    "ENV_PREFIX",
]
