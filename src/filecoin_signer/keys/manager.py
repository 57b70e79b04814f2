"""
Key management for Filecoin wallets.

Derives key pairs from BIP-39 mnemonics and seeds, imports and exports raw
private keys, and maps key pairs to addresses. All randomness comes from a
caller-supplied entropy callable.
"""

from __future__ import annotations
import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from mnemonic import Mnemonic

from ..address import Address, Network, Protocol
from ..crypto import bls, secp256k1
from ..crypto.signature import Curve
from ..runtime.config import SignerConfig
from ..runtime.errors import (
    ErrorCode,
    InvalidMnemonicError,
    InvalidPrivateKeyError,
    KeyManagementError,
    UnsupportedCurveError,
)
from . import hd
from .private_key import PrivateKey, wipe_buffer

logger = logging.getLogger(__name__)

EntropySource = Callable[[int], bytes]

MNEMONIC_STRENGTHS = (128, 160, 192, 224, 256)
PRIVATE_KEY_LEN = 32
MAX_GENERATE_ATTEMPTS = 16


@dataclass(eq=False)
class KeyPair:
    """
    A private key with its curve and public key.

    Use as a context manager to wipe the private key on exit.
    """
    curve: Curve
    private_key: PrivateKey
    public_key: bytes = field(default=b"")

    def __post_init__(self):
        self.curve = Curve(self.curve)
        if not self.public_key:
            self.public_key = public_key_for(self.curve, self.private_key.to_bytes())

    @property
    def protocol(self) -> Protocol:
        return Protocol.SECP256K1 if self.curve == Curve.SECP256K1 else Protocol.BLS

    def address(self, network: Network = Network.MAIN) -> Address:
        """Address controlled by this key pair."""
        if self.curve == Curve.SECP256K1:
            return Address.new_secp256k1(self.public_key, network)
        return Address.new_bls(self.public_key, network)

    def wipe(self) -> None:
        self.private_key.wipe()

    def __enter__(self) -> KeyPair:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wipe()

    def __repr__(self) -> str:
        return f"KeyPair(curve={self.curve.name}, public_key={self.public_key.hex()[:16]}...)"


def public_key_for(curve: Curve, private_key: bytes) -> bytes:
    """
    Public key for a raw private key.

    Returns:
        65-byte uncompressed secp256k1 key, or 48-byte compressed BLS key
    """
    if curve == Curve.SECP256K1:
        return secp256k1.public_key_from_private(private_key)
    return bls.public_key_from_private(private_key)


class KeyManager:
    """
    Derives, imports and exports key pairs.

    Args:
        config: Defaults for derivation path, network and mnemonic language
        logger: Logger to use instead of the module logger
    """

    def __init__(self, config: Optional[SignerConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or SignerConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._mnemonic = Mnemonic(self.config.mnemonic_language)

    # Mnemonics

    def generate_mnemonic(self, entropy: EntropySource, strength: int = 256) -> str:
        """
        Generate a BIP-39 mnemonic.

        Args:
            entropy: Callable returning ``n`` random bytes
            strength: Entropy bits (128, 160, 192, 224 or 256)

        Returns:
            Space separated mnemonic phrase
        """
        if strength not in MNEMONIC_STRENGTHS:
            raise KeyManagementError(f"Unsupported mnemonic strength: {strength}",
                                     code=ErrorCode.INVALID_MNEMONIC,
                                     details={"strength": strength})
        data = bytearray(self._draw(entropy, strength // 8))
        try:
            return self._mnemonic.to_mnemonic(bytes(data))
        finally:
            wipe_buffer(data)

    def validate_mnemonic(self, mnemonic: str) -> bool:
        if not isinstance(mnemonic, str):
            return False
        return self._mnemonic.check(self._normalize(mnemonic))

    def mnemonic_to_seed(self, mnemonic: str, passphrase: str = "") -> bytes:
        """
        BIP-39 seed (PBKDF2-HMAC-SHA512, 2048 rounds).

        Raises:
            InvalidMnemonicError: If the words or checksum are invalid
        """
        if not self.validate_mnemonic(mnemonic):
            raise InvalidMnemonicError("Mnemonic words or checksum are invalid")
        return Mnemonic.to_seed(self._normalize(mnemonic), passphrase)

    # Derivation

    def derive_from_mnemonic(self, mnemonic: str, passphrase: str = "",
                             path: Optional[str] = None,
                             curve: Curve = Curve.SECP256K1) -> KeyPair:
        """
        Derive a key pair from a mnemonic.

        Args:
            mnemonic: BIP-39 phrase
            passphrase: Optional BIP-39 passphrase
            path: Derivation path (defaults to the configured path)
            curve: Target curve

        Returns:
            Derived key pair

        Raises:
            InvalidMnemonicError: If the mnemonic is invalid
            InvalidDerivationPathError: If the path is malformed
        """
        seed = bytearray(self.mnemonic_to_seed(mnemonic, passphrase))
        try:
            return self.derive_from_seed(bytes(seed), path, curve)
        finally:
            wipe_buffer(seed)

    def derive_from_seed(self, seed: bytes, path: Optional[str] = None,
                         curve: Curve = Curve.SECP256K1) -> KeyPair:
        """
        Derive a key pair from a raw seed.

        secp256k1 keys follow BIP-32 along ``path``. BLS keys use KeyGen
        with the seed as key material and the path text as key info.
        """
        path = path or self.config.derivation_path
        curve = Curve(curve)
        if curve == Curve.SECP256K1:
            buf = hd.derive_secp256k1(seed, path)
        else:
            buf = hd.derive_bls(seed, path)
        try:
            keypair = self._keypair(curve, buf)
        finally:
            wipe_buffer(buf)
        self.logger.debug(f"Derived {curve.name} key pair at {path}")
        return keypair

    def generate(self, curve: Curve, entropy: EntropySource) -> KeyPair:
        """
        Generate a fresh key pair from caller entropy.

        secp256k1 draws 32-byte candidates until one lies in range. BLS
        stretches 32 bytes of entropy through KeyGen.
        """
        curve = Curve(curve)
        for _ in range(MAX_GENERATE_ATTEMPTS):
            ikm = bytearray(self._draw(entropy, PRIVATE_KEY_LEN))
            try:
                if curve == Curve.SECP256K1:
                    if not secp256k1.is_valid_private_key(bytes(ikm)):
                        continue
                    candidate = bytearray(ikm)
                else:
                    candidate = bytearray(bls.key_gen(bytes(ikm)))
            finally:
                wipe_buffer(ikm)
            try:
                keypair = self._keypair(curve, candidate)
            finally:
                wipe_buffer(candidate)
            self.logger.debug(f"Generated {curve.name} key pair")
            return keypair
        raise KeyManagementError("Entropy source did not yield a valid private key",
                                 code=ErrorCode.INVALID_PRIVATE_KEY)

    # Import / export

    def import_private_key(self, data: Union[bytes, bytearray], curve: Curve) -> KeyPair:
        """
        Import a raw 32-byte private key.

        Raises:
            InvalidPrivateKeyError: If the key is the wrong size, zero, or
                not below the curve order
        """
        curve = Curve(curve)
        if not isinstance(data, (bytes, bytearray)) or len(data) != PRIVATE_KEY_LEN:
            raise InvalidPrivateKeyError(f"Private key must be {PRIVATE_KEY_LEN} bytes")
        valid = (secp256k1.is_valid_private_key(bytes(data)) if curve == Curve.SECP256K1
                 else bls.is_valid_private_key(bytes(data)))
        if not valid:
            raise InvalidPrivateKeyError(f"Private key is out of range for {curve.name}",
                                         details={"curve": curve.name})
        return self._keypair(curve, data)

    def import_private_key_hex(self, text: str, curve: Curve) -> KeyPair:
        try:
            data = bytes.fromhex(text)
        except (ValueError, TypeError) as e:
            raise InvalidPrivateKeyError("Private key is not valid hex", cause=e)
        return self.import_private_key(data, curve)

    def import_private_key_base64(self, text: str, curve: Curve) -> KeyPair:
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise InvalidPrivateKeyError("Private key is not valid base64", cause=e)
        return self.import_private_key(data, curve)

    def export_private_key(self, keypair: KeyPair) -> str:
        """Base64 of the raw private key."""
        return base64.b64encode(keypair.private_key.to_bytes()).decode("ascii")

    def recover(self, data: Union[bytes, bytearray], curve: Curve,
                network: Optional[Network] = None):
        """
        Import a private key and return it with its address.

        Returns:
            (key_pair, address)
        """
        keypair = self.import_private_key(data, curve)
        return keypair, self.address_for(keypair, network)

    # Addresses

    def address_for(self, keypair: KeyPair, network: Optional[Network] = None,
                    protocol_hint: Optional[Protocol] = None) -> Address:
        """
        Address controlled by a key pair.

        Args:
            keypair: Key pair
            network: Target network (defaults to the configured network)
            protocol_hint: Expected protocol; must agree with the curve

        Raises:
            UnsupportedCurveError: If the hint disagrees with the key's curve
        """
        network = Network(network) if network is not None else self.config.network
        if protocol_hint is not None and Protocol(protocol_hint) != keypair.protocol:
            raise UnsupportedCurveError(
                f"{keypair.curve.name} key cannot control a {Protocol(protocol_hint).name} address",
                details={"curve": keypair.curve.name, "protocol": Protocol(protocol_hint).name}
            )
        return keypair.address(network)

    @staticmethod
    def network_for_path(path: str) -> Network:
        """TEST for coin type 1, MAIN for anything else."""
        return Network.TEST if hd.coin_type(path) == hd.TESTNET_COIN_TYPE else Network.MAIN

    # Helpers

    @staticmethod
    def _normalize(mnemonic: str) -> str:
        return " ".join(mnemonic.split())

    @staticmethod
    def _draw(entropy: EntropySource, n: int) -> bytes:
        data = entropy(n)
        if not isinstance(data, (bytes, bytearray)) or len(data) != n:
            raise KeyManagementError(f"Entropy source must return {n} bytes",
                                     code=ErrorCode.INVALID_PRIVATE_KEY)
        return bytes(data)

    @staticmethod
    def _keypair(curve: Curve, data: Union[bytes, bytearray]) -> KeyPair:
        private_key = PrivateKey(data)
        return KeyPair(curve, private_key, public_key_for(curve, bytes(data)))

