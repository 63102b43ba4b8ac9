"""ECDSA (secp256k1 / SHA-256) signing of custody records.

Signatures are DER-encoded and hex-encoded so they travel inside JSON block
payloads. The node's private key is kept in a PEM file; a fresh key is
generated on first start if none exists.
"""

import logging
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

logger = logging.getLogger(__name__)


class EcdsaSigner:
    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key.curve, ec.SECP256K1):
            raise ValueError("Signing key must be on the secp256k1 curve")
        self._private_key = private_key
        self._public_key = private_key.public_key()

    @classmethod
    def generate(cls) -> "EcdsaSigner":
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def load_or_create(cls, key_path: str | Path) -> "EcdsaSigner":
        """Load a PEM private key from `key_path`, creating one if absent."""
        path = Path(key_path)
        if path.exists():
            key = serialization.load_pem_private_key(path.read_bytes(), password=None)
            if not isinstance(key, ec.EllipticCurvePrivateKey):
                raise ValueError(f"{path} does not hold an EC private key")
            return cls(key)

        signer = cls.generate()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(signer.private_pem())
        path.chmod(0o600)
        logger.info("Generated new node signing key at %s", path)
        return signer

    def private_pem(self) -> bytes:
        return self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    @property
    def public_key_hex(self) -> str:
        """Uncompressed SEC1 point, hex-encoded."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        ).hex()

    def sign(self, message: str) -> str:
        der = self._private_key.sign(message.encode("utf-8"), ec.ECDSA(hashes.SHA256()))
        return der.hex()

    def verify(self, message: str, signature_hex: str) -> bool:
        try:
            signature = bytes.fromhex(signature_hex)
            self._public_key.verify(signature, message.encode("utf-8"), ec.ECDSA(hashes.SHA256()))
        except (InvalidSignature, ValueError, TypeError):
            return False
        return True
