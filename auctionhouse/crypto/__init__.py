"""
Cryptographic primitives for AuctionHouse.

This module provides:
- Keccak-256 hashing
- Key generation for externally owned accounts
- Address derivation for accounts and deployed contracts

Design Notes:
-------------
We use secp256k1 (same as Ethereum) so account addresses look and behave
like the addresses the asset registries and ledgers expect.

Addresses are carried around as lowercase 0x-prefixed hex strings, and
identity is plain string equality, so only the lowercase form is a valid
address. The zero address plays the role of "unset" everywhere (no
bidder, no fee recipient, disabled ledger).
"""

import secrets
from dataclasses import dataclass

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_SIZE = 20

ZERO_ADDRESS = "0x" + "00" * ADDRESS_SIZE

HEX_DIGITS = frozenset("0123456789abcdef")

# Conventional sink for burned funds
BURN_ADDRESS = "0x000000000000000000000000000000000000dead"


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation of accounts and contracts.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Key Generation
# =============================================================================


@dataclass
class KeyPair:
    """
    An ECDSA keypair on secp256k1.

    Attributes:
        private_key: 32-byte secret key (integer in [1, order-1])
        public_key: 64-byte uncompressed public key (x || y coordinates)
    """
    private_key: bytes  # 32 bytes
    public_key: bytes   # 64 bytes (uncompressed, no 0x04 prefix)

    @property
    def address(self) -> str:
        """
        Derive address from public key (Ethereum-style).

        Address = last 20 bytes of keccak256(public_key), hex-encoded with 0x prefix.
        """
        return address_from_public_key(self.public_key)


def generate_keypair() -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator.
    """
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(32, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive public key from private key.

    Args:
        private_key: 32-byte private key

    Returns:
        64-byte uncompressed public key
    """
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    # P = k * G, returned as an (x, y) tuple of integers
    public_key_point = secp256k1.privtopub(private_key)
    x_bytes = public_key_point[0].to_bytes(32, byteorder="big")
    y_bytes = public_key_point[1].to_bytes(32, byteorder="big")
    return x_bytes + y_bytes


# =============================================================================
# Addresses
# =============================================================================


def address_from_public_key(public_key: bytes) -> str:
    """Ethereum-style account address for a 64-byte public key."""
    if len(public_key) != 64:
        raise ValueError("Public key must be 64 bytes")
    return bytes_to_hex(keccak256(public_key)[-ADDRESS_SIZE:])


def contract_address(deployer: str, nonce: int) -> str:
    """
    Derive the address of a contract deployed by `deployer`.

    address = keccak256(deployer || nonce)[-20:]

    Deterministic, so a deployer can predict the address of its next
    deployment.
    """
    data = hex_to_bytes(deployer) + nonce.to_bytes(8, byteorder="big")
    return bytes_to_hex(keccak256(data)[-ADDRESS_SIZE:])


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    """Check if string is a canonical (lowercase 0x-prefixed) address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 2 + 2 * ADDRESS_SIZE:  # 0x + 40 hex chars
        return False
    return all(c in HEX_DIGITS for c in address[2:])


def short(address: str) -> str:
    """Abbreviated address for log lines."""
    return address[:10]


__all__ = [
    "SECP256K1_ORDER",
    "ADDRESS_SIZE",
    "ZERO_ADDRESS",
    "BURN_ADDRESS",
    "keccak256",
    "KeyPair",
    "generate_keypair",
    "private_key_to_public_key",
    "address_from_public_key",
    "contract_address",
    "bytes_to_hex",
    "hex_to_bytes",
    "is_valid_address",
    "short",
]
