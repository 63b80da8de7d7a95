"""
Ed25519 operator keys.

Keys are derived from a BIP-39 mnemonic along a SLIP-0010 hardened path
(``m/44'/784'/0'/0'/0'`` by default), the same way Sui wallets derive them,
so the operator addresses match the ones shown in a wallet.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import struct

from mnemonic import Mnemonic
from nacl.signing import SigningKey

from kioskops.config.environment import get_phrase
from kioskops.config.models import DEFAULT_DERIVATION_PATH

logger = logging.getLogger(__name__)

ED25519_FLAG = 0x00
HARDENED_OFFSET = 0x80000000
# IntentScope::TransactionData, IntentVersion::V0, AppId::Sui
TRANSACTION_INTENT = bytes([0, 0, 0])


class KeyDerivationError(ValueError):
    """Raised for invalid mnemonics or derivation paths."""

    pass


def parse_derivation_path(path: str) -> list[int]:
    """Turn ``m/44'/784'/0'/0'/0'`` into hardened child indexes.

    Raises:
        KeyDerivationError: If the path is malformed or has a non-hardened segment
    """
    parts = path.strip().split("/")
    if parts[0] != "m" or len(parts) < 2:
        raise KeyDerivationError(f"Invalid derivation path: {path!r}")
    indexes = []
    for part in parts[1:]:
        if not part.endswith("'") or not part[:-1].isdigit():
            raise KeyDerivationError(f"Ed25519 derivation requires hardened segments: {path!r}")
        indexes.append(int(part[:-1]) + HARDENED_OFFSET)
    return indexes


def derive_slip10_ed25519(seed: bytes, path: str) -> bytes:
    """SLIP-0010 private key for the ed25519 curve."""
    digest = hmac.new(b"ed25519 seed", seed, hashlib.sha512).digest()
    key, chain_code = digest[:32], digest[32:]
    for index in parse_derivation_path(path):
        data = b"\x00" + key + struct.pack(">I", index)
        digest = hmac.new(chain_code, data, hashlib.sha512).digest()
        key, chain_code = digest[:32], digest[32:]
    return key


def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


class Ed25519Keypair:
    """An Ed25519 signing key with its Sui address."""

    def __init__(self, private_key: bytes) -> None:
        if len(private_key) != 32:
            raise KeyDerivationError("Ed25519 private key must be 32 bytes")
        self._signing_key = SigningKey(private_key)

    @classmethod
    def derive(cls, mnemonic: str, path: str = DEFAULT_DERIVATION_PATH) -> Ed25519Keypair:
        """Derive a keypair from a mnemonic phrase.

        Raises:
            KeyDerivationError: If the mnemonic fails its checksum
        """
        phrase = " ".join(mnemonic.strip().lower().split())
        if not Mnemonic("english").check(phrase):
            raise KeyDerivationError("Invalid mnemonic phrase")
        seed = Mnemonic.to_seed(phrase)
        return cls(derive_slip10_ed25519(seed, path))

    @property
    def public_key(self) -> bytes:
        return bytes(self._signing_key.verify_key)

    @property
    def public_key_base64(self) -> str:
        """Flagged public key, as printed by the Sui CLI keytool."""
        return base64.b64encode(bytes([ED25519_FLAG]) + self.public_key).decode()

    @property
    def address(self) -> str:
        return "0x" + blake2b256(bytes([ED25519_FLAG]) + self.public_key).hex()

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Serialized signature over the transaction intent message.

        Returns:
            base64(flag || signature || public key)
        """
        digest = blake2b256(TRANSACTION_INTENT + tx_bytes)
        signature = self._signing_key.sign(digest).signature
        return base64.b64encode(bytes([ED25519_FLAG]) + signature + self.public_key).decode()

    def __repr__(self) -> str:
        return f"Ed25519Keypair(address={self.address})"


def get_signer(role: str = "admin", path: str = DEFAULT_DERIVATION_PATH) -> Ed25519Keypair:
    """Keypair of the admin or buyer account, from the environment.

    Raises:
        KeyDerivationError: If the mnemonic is not configured or invalid
    """
    phrase = get_phrase(role)
    if phrase is None:
        raise KeyDerivationError(f"{role.upper()}_PHRASE is not set")
    keypair = Ed25519Keypair.derive(phrase, path)
    logger.info("%s address = %s", role.capitalize(), keypair.address)
    return keypair
