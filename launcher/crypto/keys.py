"""Loading of RSA signing and encryption keys from PEM files."""

import hashlib
from pathlib import Path

import structlog
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from launcher.core.errors import KeyLoadError
from launcher.core.settings import LauncherSettings
from launcher.crypto.types import EncryptionKey, KeyMaterial, KeyPairData, SigningKey

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
PEM_BEGIN_MARKER = b"-----BEGIN "
DEV_KEYS_DIR = "jwt-test-keys"
DEV_SIGNING_KEY_NAME = "sdc-user-authentication-signing-rrm"
DEV_ENCRYPTION_KEY_NAME = "sdc-user-authentication-encryption-sr"

logger = structlog.get_logger(__name__)


def key_id(data: bytes) -> str:
    """Derive a key identifier as the SHA-1 hex digest of ``data``."""
    return hashlib.sha1(data).hexdigest()  # noqa: S324


def _read_pem(path: str, purpose: str) -> bytes:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise KeyLoadError(
            "read", f"Failed to read {purpose} key from file: {path}", exc
        ) from exc
    if PEM_BEGIN_MARKER not in data:
        raise KeyLoadError("decode", f"No PEM block found in {purpose} key: {path}")
    return data


def public_key_pem(key: RSAPublicKey) -> bytes:
    """Encode a public key as a SubjectPublicKeyInfo PEM block."""
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def load_encryption_key(path: str) -> EncryptionKey:
    """Load the RSA public key used to encrypt tokens.

    The kid is the SHA-1 of the file bytes exactly as read.
    """
    data = _read_pem(path, "encryption")
    try:
        loaded = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise KeyLoadError("parse", "Failed to parse encryption key PEM", exc) from exc

    if not isinstance(loaded, RSAPublicKey):
        raise KeyLoadError("cast", "Failed to cast encryption key to an RSA public key")

    return EncryptionKey(key=loaded, kid=key_id(data))


def load_signing_key(path: str) -> SigningKey:
    """Load the RSA private key used to sign tokens.

    The kid is the SHA-1 of the PEM encoding of the derived public key, so
    it matches the kid the survey runner computes from its copy of that key.
    """
    data = _read_pem(path, "signing")
    try:
        loaded = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyLoadError(
            "parse", "Failed to parse signing key from PEM", exc
        ) from exc

    if not isinstance(loaded, RSAPrivateKey):
        raise KeyLoadError("cast", "Failed to cast signing key to an RSA private key")

    try:
        pub_bytes = public_key_pem(loaded.public_key())
    except ValueError as exc:
        raise KeyLoadError("marshal", "Failed to marshal public key", exc) from exc

    return SigningKey(key=loaded, kid=key_id(pub_bytes))


def load_key_material(settings: LauncherSettings) -> KeyMaterial:
    """Load both keys from the paths configured in ``settings``."""
    signing = load_signing_key(settings.jwt_signing_key_path)
    encryption = load_encryption_key(settings.jwt_encryption_key_path)
    logger.debug(
        "keys_loaded", signing_kid=signing.kid, encryption_kid=encryption.kid
    )
    return KeyMaterial(signing=signing, encryption=encryption)


def generate_rsa_keypair() -> KeyPairData:
    """Generate a new RSA-2048 keypair as PKCS#1 private / SPKI public PEM."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=RSA_KEY_SIZE,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = public_key_pem(private_key.public_key())
    return KeyPairData(
        kid=key_id(public_pem),
        private_key_pem=private_pem.decode(),
        public_key_pem=public_pem.decode(),
    )


def write_keypair(directory: str, name: str) -> tuple[Path, Path]:
    """Write a fresh keypair into ``directory`` named after ``name``."""
    pair = generate_rsa_keypair()
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    private_path = target / f"{name}-private-key.pem"
    public_path = target / f"{name}-public-key.pem"
    private_path.write_text(pair.private_key_pem)
    public_path.write_text(pair.public_key_pem)
    return private_path, public_path


def generate_dev_keys(directory: str = DEV_KEYS_DIR) -> None:
    """Write the launcher signing and runner encryption keypairs for local use.

    The file names match the default key paths in LauncherSettings.
    """
    for name in (DEV_SIGNING_KEY_NAME, DEV_ENCRYPTION_KEY_NAME):
        private_path, public_path = write_keypair(directory, name)
        logger.info(
            "dev_keypair_written", private=str(private_path), public=str(public_path)
        )
