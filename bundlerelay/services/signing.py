"""Bundle integrity: RSA-SHA256 signatures over the bundle's file hash.

The publisher hashes the artifact (hex SHA-256), signs the UTF-8 bytes of that
hex string with its private key and stores the base64 signature on the
bundle row and in the artifact manifest. Check-in responses carry it, and
clients verify it against the hash of the downloaded file with their embedded
public key before applying the bundle.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from bundlerelay.errors import SigningError

if TYPE_CHECKING:
    from bundlerelay.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

SUPPORTED_KEY_SIZES = (2048, 4096)
MANIFEST_CONTENT_TYPE = "application/json"
_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class KeyPair:
    """PEM-encoded RSA key pair (PKCS8 private, SubjectPublicKeyInfo public)."""

    private_key: str
    public_key: str


def compute_file_hash(path: str | Path) -> str:
    """Hex SHA-256 of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def compute_bytes_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def generate_key_pair(key_size: int = 4096) -> KeyPair:
    if key_size not in SUPPORTED_KEY_SIZES:
        raise SigningError(f"Unsupported key size {key_size}; use 2048 or 4096")
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(private_key=private_pem.decode("ascii"), public_key=public_pem.decode("ascii"))


def _load_private_pem(private_key_pem: str | bytes) -> rsa.RSAPrivateKey:
    data = private_key_pem.encode("ascii") if isinstance(private_key_pem, str) else private_key_pem
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"Invalid private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise SigningError("Private key is not an RSA key")
    return key


def load_private_key(path: str | Path) -> str:
    """Read and validate a PEM private key file. Returns the PEM text."""
    try:
        pem = Path(path).read_text(encoding="utf-8")
        _load_private_pem(pem)
    except (OSError, SigningError, UnicodeDecodeError) as e:
        raise SigningError(f"Failed to load private key from {path}: {e}") from e
    return pem


def get_public_key_from_private(private_key_pem: str | bytes) -> str:
    key = _load_private_pem(private_key_pem)
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return public_pem.decode("ascii")


def sign_file_hash(file_hash: str, private_key_pem: str | bytes) -> str:
    """Base64 RSA-SHA256 (PKCS#1 v1.5) signature over the hex hash string."""
    key = _load_private_pem(private_key_pem)
    signature = key.sign(file_hash.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    return base64.b64encode(signature).decode("ascii")


def verify_signature(file_hash: str, signature: str, public_key_pem: str | bytes) -> bool:
    """True when signature matches file_hash under public_key_pem. Never raises."""
    try:
        data = public_key_pem.encode("ascii") if isinstance(public_key_pem, str) else public_key_pem
        public_key = serialization.load_pem_public_key(data)
        if not isinstance(public_key, rsa.RSAPublicKey):
            logger.warning("Signature verification failed: public key is not RSA")
            return False
        raw = base64.b64decode(signature, validate=True)
        public_key.verify(raw, file_hash.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        logger.warning("Signature verification failed for file hash %s", file_hash)
        return False
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.warning("Signature verification failed: %s", e)
        return False
    return True


def verify_bundle_file(path: str | Path, signature: str, public_key_pem: str | bytes) -> bool:
    """Hash the file on disk and verify its signature."""
    try:
        file_hash = compute_file_hash(path)
    except OSError as e:
        logger.warning("Cannot read bundle %s for verification: %s", path, e)
        return False
    return verify_signature(file_hash, signature, public_key_pem)


# ── Manifest ──────────────────────────────────────────────────────────────


def manifest_key(bundle_id: str) -> str:
    return f"{bundle_id}/manifest.json"


def build_manifest(bundle_id: str, file_hash: str, signature: str | None) -> dict[str, Any]:
    return {
        "bundleId": bundle_id,
        "fileHash": file_hash,
        "signature": signature,
        "algorithm": "RSA-SHA256" if signature else None,
    }


def write_manifest(
    store: "ObjectStore", bundle_id: str, file_hash: str, signature: str | None
) -> dict[str, Any]:
    manifest = build_manifest(bundle_id, file_hash, signature)
    store.put_object(
        manifest_key(bundle_id),
        json.dumps(manifest, indent=2).encode("utf-8"),
        content_type=MANIFEST_CONTENT_TYPE,
    )
    return manifest
