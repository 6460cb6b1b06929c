"""
Bitcoin-style signed message verification.

A signature is base64 of 65 bytes: a header byte (27 + recovery id, +4 when
the key is compressed) followed by r and s. The signed digest is
double-SHA256 over the magic prefix, the varint message length and the
message. The public key recovered from the signature must hash to the
address being claimed.
"""

import base64
import binascii
import hashlib

import base58
from Crypto.Hash import RIPEMD160
from coincurve import PrivateKey, PublicKey

from nodeauth.config import settings

P2PKH_VERSION = 0x00
SIGNATURE_LENGTH = 65


def _varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def message_digest(message: str, prefix: str | None = None) -> bytes:
    if prefix is None:
        prefix = settings.message_magic_prefix
    payload = message.encode("utf-8")
    data = prefix.encode("utf-8") + _varint(len(payload)) + payload
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def address_from_public_key(public_key: PublicKey, compressed: bool = True) -> str:
    """P2PKH address (leading "1") for a public key."""
    return base58.b58encode_check(
        bytes([P2PKH_VERSION]) + hash160(public_key.format(compressed=compressed))
    ).decode("ascii")


def sign_message(private_key: PrivateKey, message: str, compressed: bool = True) -> str:
    """Sign a message the way wallets do for "signmessage"."""
    recoverable = private_key.sign_recoverable(message_digest(message), hasher=None)
    header = 27 + recoverable[64] + (4 if compressed else 0)
    return base64.b64encode(bytes([header]) + recoverable[:64]).decode("ascii")


class BitcoinMessageVerifier:
    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix

    def verify(self, message: str, address: str, signature: str) -> bool:
        try:
            raw = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            return False
        if len(raw) != SIGNATURE_LENGTH:
            return False

        header = raw[0]
        if not 27 <= header <= 34:
            return False
        recovery_id = (header - 27) & 3
        compressed = header >= 31

        try:
            decoded = base58.b58decode_check(address)
        except ValueError:
            return False
        if len(decoded) != 21 or decoded[0] != P2PKH_VERSION:
            return False

        try:
            public_key = PublicKey.from_signature_and_message(
                raw[1:] + bytes([recovery_id]),
                message_digest(message, self.prefix),
                hasher=None,
            )
        except ValueError:
            return False

        return hash160(public_key.format(compressed=compressed)) == decoded[1:]
